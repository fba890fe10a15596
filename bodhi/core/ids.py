# bodhi/core/ids.py
import random
import re
import string
import time
from typing import Optional

_PLACEHOLDER = re.compile(r"^db_\d+_[0-9a-z]+$")
_BASE36 = string.digits + string.ascii_lowercase


def generate_connection_id() -> str:
    """Temporary id handed out by the form before the backend knows the connection."""
    ts = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"db_{ts}_{suffix}"


def is_placeholder_id(conn_id: Optional[str]) -> bool:
    return bool(conn_id) and bool(_PLACEHOLDER.match(conn_id))


def is_new_connection(config) -> bool:
    """A connection the backend has not registered yet."""
    return not config.id or is_placeholder_id(config.id)
