# bodhi/core/logging.py
import os
import threading
from datetime import datetime
from typing import Optional

from bodhi.core.secrets import mask_secrets

_lock = threading.Lock()
_log_dir: Optional[str] = None


def set_log_dir(path: Optional[str]):
    global _log_dir
    _log_dir = path or None


def log(scope: str, msg: str):
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{ts}] [{scope}] {mask_secrets(msg)}"
    print(line, flush=True)

    if not _log_dir:
        return
    # Try to write to {log_dir}/{scope}.log
    try:
        with _lock:
            os.makedirs(_log_dir, exist_ok=True)
            with open(os.path.join(_log_dir, f"{scope}.log"), "a", encoding="utf-8") as f:
                f.write(line + "\n")
    except OSError:
        pass


def warn(scope: str, msg: str):
    log(scope, f"WARN {msg}")
