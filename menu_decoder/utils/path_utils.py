from pathlib import Path

def _find_root() -> Path:
    """
    Search upwards for a marker file to find the project root.
    """
    current_path = Path(__file__).resolve().parent
    for parent in [current_path] + list(current_path.parents):
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent

    # Installed as a package without the source tree around it
    return Path.cwd()

PROJECT_ROOT = _find_root()
ENV_FILE = PROJECT_ROOT / ".env"
ENV_LOCAL_FILE = PROJECT_ROOT / ".env.local"
SERVICE_ACCOUNT_FILE = PROJECT_ROOT / "service-account.json"
