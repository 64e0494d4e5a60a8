import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", Path.cwd() / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _split_env_list(value: str) -> list[str]:
    items: list[str] = []
    for raw in value.split(","):
        cleaned = raw.strip()
        if cleaned and cleaned not in items:
            items.append(cleaned)
    return items


def _default_database_url() -> str:
    backend_root = Path(__file__).resolve().parents[2]
    dev_db = (backend_root / "gameshelf.db").resolve()
    return f"sqlite:///{dev_db.as_posix()}"


DATABASE_URL = os.getenv("DATABASE_URL", _default_database_url())
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

SECRET_KEY = os.getenv("JWT_SECRET", "change-me-in-prod")
REFRESH_SECRET_KEY = os.getenv("REFRESH_TOKEN_SECRET", "change-me-too")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))
REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
REFRESH_COOKIE_SECURE = _env_flag("REFRESH_COOKIE_SECURE", "true")
ALLOW_ADMIN_SIGNUP = _env_flag("ALLOW_ADMIN_SIGNUP", "false")

_DEFAULT_CORS_ORIGINS = "http://localhost:5173,https://cdd-frontend.vercel.app"
CORS_ORIGINS = _split_env_list(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").strip().lower() or "local"
STORAGE_DIR = os.getenv("STORAGE_DIR", "storage/uploads")
STORAGE_PUBLIC_BASE_URL = os.getenv("STORAGE_PUBLIC_BASE_URL", "/files").rstrip("/")
S3_BUCKET = os.getenv("S3_BUCKET", "")
S3_REGION = os.getenv("S3_REGION", "")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL", "")
S3_PUBLIC_BASE_URL = os.getenv("S3_PUBLIC_BASE_URL", "").rstrip("/")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY", "")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

SEED_CONSOLES = _env_flag("SEED_CONSOLES", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
PORT = int(os.getenv("PORT", "5000"))
