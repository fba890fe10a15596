import itertools
from typing import Any, Callable, Dict, List, Tuple

import pytest

from bodhi.api.gateway import CommandGateway
from bodhi.core.errors import BackendError
from bodhi.core.logging import set_log_dir
from bodhi.sync.store import ReconcilingStore

TS = "2024-01-01T00:00:00Z"


class FakeBackend:
    """
    Stands in for the desktop backend behind the invocation boundary.
    Records every command and keeps just enough state to answer listings.
    """

    def __init__(self):
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.configs: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self._seq = itertools.count(1)

    async def __call__(self, command: str, args: Dict[str, Any]) -> Any:
        self.calls.append((command, args))
        handler = self.handlers.get(command) or getattr(self, f"_{command}")
        return handler(args)

    def commands(self) -> List[str]:
        return [c for c, _ in self.calls]

    def args_of(self, command: str) -> Dict[str, Any]:
        return next(a for c, a in self.calls if c == command)

    def fail(self, command: str, message: str = "backend exploded"):
        def _raise(args):
            raise BackendError(message, command=command)

        self.handlers[command] = _raise

    def respond(self, command: str, value: Any):
        self.handlers[command] = lambda args: value

    # ---- default behaviour ----

    def _add_mysql_connection(self, args):
        return f"mysql-{next(self._seq)}"

    def _add_redis_connection(self, args):
        return f"redis-{next(self._seq)}"

    def _test_database_connection(self, args):
        return True

    def _remove_database_connection(self, args):
        return True

    def _save_database_config_to_db(self, args):
        cfg = args["config"]
        self.configs[cfg["id"]] = cfg
        return cfg["id"]

    def _get_all_database_configs_from_db(self, args):
        return list(self.configs.values())

    def _delete_database_config_from_db(self, args):
        self.configs.pop(args["id"], None)

    def _create_pipeline_task(self, args):
        task = dict(args["task"])
        task.update({
            "id": f"task-{next(self._seq)}",
            "status": "pending",
            "progress": 0,
            "createdAt": TS,
            "updatedAt": TS,
        })
        self.tasks[task["id"]] = task
        return task

    def _start_pipeline_task(self, args):
        return None

    def _pause_migration_task(self, args):
        return None

    def _cancel_migration_task(self, args):
        return None

    def _retry_migration_task(self, args):
        return None

    def _get_all_migration_tasks(self, args):
        return list(self.tasks.values())


@pytest.fixture(autouse=True)
def no_file_logging():
    set_log_dir(None)
    yield
    set_log_dir(None)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def gateway(backend):
    return CommandGateway(backend)


@pytest.fixture
def store(gateway):
    return ReconcilingStore(gateway)
