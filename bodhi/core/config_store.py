# bodhi/core/config_store.py
import json
import os
from typing import Optional

from pydantic import BaseModel

CONFIG_DIR = "configs"
CONFIG_FILE = os.path.join(CONFIG_DIR, "client.json")


class ClientConfig(BaseModel):
    backend_url: str = "http://127.0.0.1:1420/invoke"
    timeout_seconds: float = 30
    log_dir: Optional[str] = "logs"


def _apply_env(cfg: ClientConfig) -> ClientConfig:
    overrides = {}
    if os.getenv("BODHI_BACKEND_URL"):
        overrides["backend_url"] = os.environ["BODHI_BACKEND_URL"]
    if os.getenv("BODHI_TIMEOUT"):
        overrides["timeout_seconds"] = os.environ["BODHI_TIMEOUT"]
    if "BODHI_LOG_DIR" in os.environ:
        overrides["log_dir"] = os.environ["BODHI_LOG_DIR"] or None
    if not overrides:
        return cfg
    return ClientConfig(**{**cfg.model_dump(), **overrides})


def load_client_config(path: str = CONFIG_FILE) -> ClientConfig:
    cfg = ClientConfig()
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                cfg = ClientConfig(**json.load(f))
        except Exception:
            cfg = ClientConfig()
    return _apply_env(cfg)


def save_client_config(cfg: ClientConfig, path: str = CONFIG_FILE):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(cfg.model_dump_json(indent=2))
