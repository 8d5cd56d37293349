"""proxy_setup.py — Fetch proxy selection and persistence in .env."""

import os
from pathlib import Path

from dotenv import load_dotenv, set_key

ENV_FILE = Path(".env")
PROXY_ENV_VAR = "NOVELPACK_PROXY_URL"


def load_proxy_url() -> str | None:
    """Load NOVELPACK_PROXY_URL from the .env file. Returns None if not set."""
    load_dotenv()
    url = os.getenv(PROXY_ENV_VAR, "").strip()
    return url if url else None


def save_proxy_url(proxy_url: str, env_file: Path = ENV_FILE) -> None:
    """Persist the proxy base URL to .env for future runs."""
    env_file.touch(exist_ok=True)
    set_key(str(env_file), PROXY_ENV_VAR, proxy_url)
    print(f"  Saved {PROXY_ENV_VAR}={proxy_url} to {env_file}")


def resolve_proxy_url(cli_value: str | None = None, save: bool = False) -> str | None:
    """
    Resolve the proxy base URL using the following priority:
    1. Value passed on the command line (optionally saved to .env)
    2. NOVELPACK_PROXY_URL from the environment / .env
    3. None: fetch URLs directly
    """
    if cli_value:
        proxy_url = cli_value.strip().rstrip("/")
        if save:
            save_proxy_url(proxy_url)
        return proxy_url

    proxy_url = load_proxy_url()
    if proxy_url:
        print(f"Using saved fetch proxy: {proxy_url}")
    return proxy_url
