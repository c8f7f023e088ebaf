import os
import secrets
from dotenv import load_dotenv

# load env
load_dotenv()

DEFAULT_API_HOST = "http://localhost:5000"

_secret_key = None


def get_secret_key() -> str:
    global _secret_key
    if _secret_key is not None:
        return _secret_key
    _secret_key = os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    return _secret_key


def get_api_host() -> str:
    """Base URL of this API, used to build and recognise locally hosted avatar URLs."""
    return (os.getenv("API_HOST") or DEFAULT_API_HOST).rstrip("/")


def get_avatars_dir() -> str:
    avatars_dir = os.getenv("AVATARS_DIR")
    if not avatars_dir:
        avatars_dir = os.path.abspath(os.path.join(os.getcwd(), "assets", "avatars"))
    return avatars_dir


def get_log_level() -> str:
    return (os.getenv("LOG_LEVEL") or "INFO").upper()
