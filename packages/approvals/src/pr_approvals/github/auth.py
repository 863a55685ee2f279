import os
import subprocess


def select_auth_token(explicit: str | None = None) -> str:
    """Pick a GitHub token: explicit value, then `gh auth token`, then GITHUB_TOKEN."""
    if explicit:
        return explicit

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            check=False,
            capture_output=True,
            text=True,
        )
        token = (result.stdout or "").strip()
        if result.returncode == 0 and token:
            return token
    except FileNotFoundError:
        pass

    token = os.getenv("GITHUB_TOKEN")
    if token:
        return token

    raise RuntimeError(
        "No GitHub token found. Run `gh auth login`, set GITHUB_TOKEN or pass --token."
    )
