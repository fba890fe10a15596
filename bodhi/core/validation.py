# bodhi/core/validation.py
from typing import Any, List, Mapping, Union

from pydantic import BaseModel

from bodhi.api.models import ConnectionConfig, DatabaseType

_KNOWN_TYPES = {t.value for t in DatabaseType}


def _port_ok(port: Any) -> bool:
    if port is None or isinstance(port, bool):
        return False
    try:
        p = int(port)
    except (TypeError, ValueError):
        return False
    return 1 <= p <= 65535


def validate_connection_config(config: Union[ConnectionConfig, Mapping[str, Any]]) -> List[str]:
    """
    Check a (possibly partial) connection form. Returns a list of messages,
    empty when the config is acceptable.
    """
    data = config.model_dump() if isinstance(config, BaseModel) else dict(config)
    errors: List[str] = []

    if not str(data.get("name") or "").strip():
        errors.append("Connection name is required")

    db_type = data.get("type")
    if not db_type:
        errors.append("Database type is required")
    elif db_type not in _KNOWN_TYPES:
        errors.append(f"Unsupported database type: {db_type}")

    if db_type != DatabaseType.REDIS:
        if not str(data.get("host") or "").strip():
            errors.append("Host is required")
        if not _port_ok(data.get("port")):
            errors.append("Port must be a number between 1 and 65535")

    return errors
