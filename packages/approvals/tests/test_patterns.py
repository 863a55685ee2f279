from __future__ import annotations

import pytest

from pr_approvals.owners.patterns import PatternCache, compile_pattern


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("*", "README.md", True),
        ("*", "src/deep/file.py", True),
        ("*.js", "app.js", True),
        ("*.js", "src/lib/app.js", True),
        ("*.js", "src/app.jsx", False),
        ("README.md", "docs/README.md", True),
        ("/README.md", "docs/README.md", False),
        ("/README.md", "README.md", True),
        ("docs/", "docs/api.md", True),
        ("docs/", "docs/v1/api.md", True),
        ("docs/", "src/docs/api.md", True),
        ("docs/", "docs", False),
        ("/docs/", "src/docs/api.md", False),
        ("docs", "docs/api.md", True),
        ("docs/*", "docs/api.md", True),
        ("docs/*", "docs/v1/api.md", False),
        ("docs/*.md", "docs/api.md", True),
        ("docs/*.md", "src/docs/api.md", False),
        ("src/**", "src/a.js", True),
        ("src/**", "src/x/y/z.js", True),
        ("src/**", "lib/src/a.js", False),
        ("**/logs", "logs/today.txt", True),
        ("**/logs", "deep/nested/logs/today.txt", True),
        ("a/**/b", "a/b/file", True),
        ("a/**/b", "a/x/y/b/file", True),
        ("a/**/b", "a/x/c/file", False),
        ("file?.txt", "file1.txt", True),
        ("file?.txt", "file10.txt", False),
        ("apps/web/", "apps/web/index.ts", True),
        ("apps/web/", "other/apps/web/index.ts", False),
        ("/", "anything/at/all.txt", True),
    ],
)
def test_codeowners_glob_semantics(pattern: str, path: str, expected: bool) -> None:
    assert compile_pattern(pattern).matches(path) is expected


def test_paths_are_normalized_before_matching() -> None:
    assert compile_pattern("/src/").matches("./src/a.py")
    assert compile_pattern("/src/").matches("/src/a.py")


def test_special_regex_characters_are_literal() -> None:
    m = compile_pattern("a+b(c).txt")
    assert m.matches("a+b(c).txt")
    assert not m.matches("aab(c).txt")


def test_anchoring_is_reported() -> None:
    assert compile_pattern("/docs").anchored
    assert compile_pattern("src/app").anchored
    assert not compile_pattern("docs/").anchored
    assert not compile_pattern("*.md").anchored


def test_pattern_cache_compiles_each_pattern_once() -> None:
    cache = PatternCache()
    first = cache.get("*.md")
    assert cache.get("*.md") is first
    assert cache.matches("docs/", "docs/a.md")
    assert len(cache) == 2
