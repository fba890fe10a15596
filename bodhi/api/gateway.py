# bodhi/api/gateway.py
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from bodhi.api.models import ConnectionConfig, PipelineTask, PipelineTaskInput, WireModel
from bodhi.api.transport import Invoker
from bodhi.core.errors import BackendError, UnsupportedTypeError
from bodhi.core.logging import log
from bodhi.core.secrets import mask_config

M = TypeVar("M", bound=WireModel)


class CommandGateway:
    """
    One coroutine per backend command. Translates local models into the
    camelCase payloads the backend expects and validates what comes back.
    Nothing is retried; every failure surfaces as BackendError.
    """

    def __init__(self, invoker: Invoker):
        self._invoke = invoker

    async def _call(self, command: str, args: Optional[Dict[str, Any]] = None) -> Any:
        args = args or {}
        try:
            return await self._invoke(command, args)
        except BackendError:
            raise
        except Exception as e:
            log("gateway", f"{command} failed: {type(e).__name__}: {str(e)[:200]}")
            raise BackendError(str(e) or type(e).__name__, command=command) from e

    @staticmethod
    def _expect_id(command: str, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise BackendError(f"{command} returned an invalid id: {value!r}", command=command)
        return value

    @staticmethod
    def _parse(command: str, model: Type[M], data: Any) -> M:
        try:
            return model.from_wire(data)
        except PydanticValidationError as e:
            raise BackendError(f"{command} returned a malformed {model.__name__}: {e.error_count()} error(s)", command=command) from e

    def _parse_list(self, command: str, model: Type[M], data: Any) -> List[M]:
        if not isinstance(data, list):
            raise BackendError(f"{command} returned {type(data).__name__}, expected a list", command=command)
        return [self._parse(command, model, item) for item in data]

    # ---------------- connections ----------------

    async def add_mysql_connection(self, host: str, port: int, username: str, password: str, database: str) -> str:
        command = "add_mysql_connection"
        res = await self._call(command, {
            "host": host,
            "port": port,
            "username": username,
            "password": password,
            "database": database,
        })
        return self._expect_id(command, res)

    async def add_redis_connection(self, url: str, db: int) -> str:
        command = "add_redis_connection"
        res = await self._call(command, {"url": url, "db": db})
        return self._expect_id(command, res)

    async def add_postgresql_connection(self, *args, **kwargs) -> str:
        # no backend driver yet; refuse before any round trip
        raise UnsupportedTypeError("postgresql", "PostgreSQL is not yet supported in the backend")

    async def test_connection(self, conn_id: str) -> bool:
        res = await self._call("test_database_connection", {"id": conn_id})
        return bool(res)

    async def remove_connection(self, conn_id: str):
        await self._call("remove_database_connection", {"id": conn_id})

    async def save_connection_config(self, config: ConnectionConfig) -> str:
        command = "save_database_config_to_db"
        payload = config.to_wire()
        log("gateway", f"{command} {mask_config(payload)}")
        res = await self._call(command, {"config": payload})
        return self._expect_id(command, res)

    async def list_connection_configs(self) -> List[ConnectionConfig]:
        command = "get_all_database_configs_from_db"
        res = await self._call(command)
        return self._parse_list(command, ConnectionConfig, res)

    async def delete_connection_config(self, conn_id: str):
        await self._call("delete_database_config_from_db", {"id": conn_id})

    # ---------------- pipeline tasks ----------------

    async def create_pipeline_task(self, task: PipelineTaskInput) -> PipelineTask:
        command = "create_pipeline_task"
        res = await self._call(command, {"task": task.to_wire()})
        return self._parse(command, PipelineTask, res)

    async def start_pipeline_task(self, task_id: str):
        await self._call("start_pipeline_task", {"taskId": task_id})

    async def pause_pipeline_task(self, task_id: str):
        await self._call("pause_migration_task", {"id": task_id})

    async def cancel_pipeline_task(self, task_id: str):
        await self._call("cancel_migration_task", {"id": task_id})

    async def retry_pipeline_task(self, task_id: str):
        await self._call("retry_migration_task", {"id": task_id})

    async def list_pipeline_tasks(self) -> List[PipelineTask]:
        command = "get_all_migration_tasks"
        res = await self._call(command)
        return self._parse_list(command, PipelineTask, res)
