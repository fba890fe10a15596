# bodhi/core/uri.py
from typing import Optional, Union
from urllib.parse import quote

from bodhi.core.errors import InvalidHostError, ValidationError
from bodhi.core.logging import log
from bodhi.core.secrets import redact_url

REDIS_DEFAULT_HOST = "localhost"
REDIS_DEFAULT_PORT = 6379

_HOST_WHITESPACE = (" ", "\t", "\n")


def build_redis_url(
    host: Optional[str],
    port: Optional[int],
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    host = host or REDIS_DEFAULT_HOST
    port = int(port or REDIS_DEFAULT_PORT)

    if any(ch in host for ch in _HOST_WHITESPACE):
        raise InvalidHostError(host)

    if username and password:
        u = quote(username, safe="")
        p = quote(password, safe="")
        url = f"redis://{u}:{p}@{host}:{port}"
    else:
        url = f"redis://{host}:{port}"

    log("uri", f"built redis url {redact_url(url)}")
    return url


def parse_redis_db(value: Union[str, int, None]) -> int:
    """
    Redis logical database index from the free-text `database` field.
    Blank means 0; anything that is not a non-negative integer is rejected.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"Invalid Redis database index: {value!r}")
    if isinstance(value, int):
        db = value
    else:
        text = str(value).strip()
        if not text:
            return 0
        if not (text.isascii() and text.isdigit()):
            raise ValidationError(f"Invalid Redis database index: {value!r}")
        db = int(text)
    if db < 0:
        raise ValidationError(f"Invalid Redis database index: {value!r}")
    return db
