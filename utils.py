import random
import string
from datetime import datetime, timezone

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 8


def to_iso_z(dt):
    """Convert a datetime to an RFC3339-like ISO string with trailing Z for UTC"""
    if not dt:
        return None
    if dt.tzinfo is None:
        # sqlite hands back naive datetimes; they are stored as UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def random_id() -> str:
    return ''.join(random.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def random_id_while(taken) -> str:
    """Keep drawing random ids until `taken(id)` returns False."""
    while True:
        id = random_id()
        if not taken(id):
            return id


async def generate_unique_id(exists) -> str:
    """Async variant of random_id_while for database-backed existence checks."""
    while True:
        id = random_id()
        if not await exists(id):
            return id
