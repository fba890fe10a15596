# bodhi/api/transport.py
import asyncio
from typing import Any, Dict, Optional, Protocol

import requests

from bodhi.core.errors import BackendError
from bodhi.core.logging import log


class Invoker(Protocol):
    async def __call__(self, command: str, args: Dict[str, Any]) -> Any:
        ...


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if body.get(key):
                return str(body[key])
    if isinstance(body, str) and body:
        return body
    return (resp.text or f"HTTP {resp.status_code}")[:500]


class HttpInvoker:
    """
    Invocation boundary over HTTP: each command is a JSON POST to
    <base_url>/<command>. requests is blocking, so calls run in a worker thread.
    """

    def __init__(self, base_url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _post(self, command: str, args: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{command}"
        try:
            resp = self._session.post(url, json=args, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackendError(f"{command} failed: {type(e).__name__}: {str(e)[:200]}", command=command) from e

        if not resp.ok:
            msg = _error_message(resp)
            log("transport", f"{command} -> HTTP {resp.status_code}: {msg}")
            raise BackendError(msg, command=command, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"{command} returned invalid JSON", command=command, status_code=resp.status_code) from e

    async def __call__(self, command: str, args: Dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._post, command, args)

    def close(self):
        self._session.close()
