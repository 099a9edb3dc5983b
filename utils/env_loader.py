import os
from pathlib import Path
from typing import Optional


def load_environments(env_path: str = ".env") -> None:
    env_file = Path(env_path)
    if not env_file.exists():
        return

    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'").strip('"')
        if key and key not in os.environ:
            os.environ[key] = value


def get_database_url(required: bool = True) -> Optional[str]:
    load_environments()
    url = (os.getenv("DATABASE_URL") or "").strip()
    if not url:
        if required:
            raise ValueError("DATABASE_URL is required")
        return None
    return url


def query_logging_enabled() -> bool:
    load_environments()
    return bool((os.getenv("LOG_QUERY") or "").strip())
