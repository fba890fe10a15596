# bodhi/main.py
from typing import Optional

from bodhi.api.gateway import CommandGateway
from bodhi.api.transport import HttpInvoker
from bodhi.core.config_store import ClientConfig, load_client_config
from bodhi.core.logging import log, set_log_dir
from bodhi.sync.store import ReconcilingStore


def build_store(config: Optional[ClientConfig] = None) -> ReconcilingStore:
    """Wire config -> transport -> gateway -> store for the desktop shell."""
    cfg = config or load_client_config()
    set_log_dir(cfg.log_dir)
    invoker = HttpInvoker(cfg.backend_url, timeout=cfg.timeout_seconds)
    log("store", f"using backend {cfg.backend_url}")
    return ReconcilingStore(CommandGateway(invoker))
