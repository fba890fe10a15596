# bodhi/sync/store.py
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bodhi.api.gateway import CommandGateway
from bodhi.api.models import ConnectionConfig, DatabaseType, MigrationStrategy, PipelineTask, PipelineTaskInput
from bodhi.core.errors import BodhiError, NotFoundError, UnsupportedTypeError, ValidationError
from bodhi.core.ids import is_new_connection
from bodhi.core.logging import log, warn
from bodhi.core.observable import Observable
from bodhi.core.secrets import redact_url
from bodhi.core.uri import build_redis_url, parse_redis_db
from bodhi.core.validation import validate_connection_config

E = TypeVar("E")


def _find(items: Tuple[E, ...], entity_id: str) -> Optional[E]:
    for it in items:
        if it.id == entity_id:
            return it
    return None


def _upsert(items: Tuple[E, ...], entity: E) -> Tuple[E, ...]:
    out = list(items)
    for i, it in enumerate(out):
        if it.id == entity.id:
            out[i] = entity
            return tuple(out)
    out.append(entity)
    return tuple(out)


def _without(items: Tuple[E, ...], entity_id: str) -> Tuple[E, ...]:
    return tuple(it for it in items if it.id != entity_id)


class ReconcilingStore:
    """
    In-memory mirror of the backend's connections, strategies and pipeline
    tasks. Every mutation goes through the gateway first; the cache is only
    touched once all backend calls of an operation have succeeded, and
    subscribers are notified right after the merge.
    """

    def __init__(self, gateway: CommandGateway):
        self._gateway = gateway
        self._locks: Dict[str, asyncio.Lock] = {}

        self.connections: Observable[Tuple[ConnectionConfig, ...]] = Observable(())
        self.strategies: Observable[Tuple[MigrationStrategy, ...]] = Observable(())
        self.tasks: Observable[Tuple[PipelineTask, ...]] = Observable(())

        # UI state
        self.selected_connection_id: Observable[Optional[str]] = Observable(None)
        self.selected_task_id: Observable[Optional[str]] = Observable(None)
        self.loading: Observable[bool] = Observable(True)

    @asynccontextmanager
    async def _guard(self, key: Optional[str]):
        # serialize mutations that target the same identity
        if not key:
            yield
            return
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield

    async def _read_through(
        self,
        collection: Observable,
        loader: Callable[[], Awaitable[Any]],
        entity_id: str,
    ):
        found = _find(collection.get(), entity_id)
        if found is None:
            await loader()
            found = _find(collection.get(), entity_id)
        return found

    # ---------------- connections ----------------

    @staticmethod
    def _ensure_valid(config: ConnectionConfig):
        errors = validate_connection_config(config)
        if errors:
            raise ValidationError("; ".join(errors), errors)

    async def _register_connection(self, config: ConnectionConfig) -> str:
        db_type = config.type
        if db_type == DatabaseType.POSTGRESQL:
            return await self._gateway.add_postgresql_connection()
        if db_type not in (DatabaseType.REDIS, DatabaseType.MYSQL):
            raise UnsupportedTypeError(db_type)
        self._ensure_valid(config)

        if db_type == DatabaseType.REDIS:
            url = build_redis_url(config.host, config.port, config.username, config.password)
            db = parse_redis_db(config.database)
            log("store", f"registering redis connection {redact_url(url)} db={db}")
            return await self._gateway.add_redis_connection(url, db)

        log("store", f"registering mysql connection {config.host}:{config.port}")
        return await self._gateway.add_mysql_connection(
            host=config.host,
            port=config.port,
            username=config.username or "",
            password=config.password or "",
            database=config.database or "",
        )

    async def save_connection_config(self, config: ConnectionConfig) -> ConnectionConfig:
        """
        Register (if new) and persist a connection, then merge it into the
        cache under its backend id. Returns the record that was cached.
        """
        is_new = is_new_connection(config)
        async with self._guard(f"conn:{config.id}" if config.id else None):
            try:
                if is_new:
                    conn_id = await self._register_connection(config)
                    log("store", f"new connection registered, id={conn_id}")
                else:
                    self._ensure_valid(config)
                    conn_id = config.id
                    log("store", f"updating existing connection, id={conn_id}")

                canonical = config.model_copy(update={"id": conn_id})
                saved_id = await self._gateway.save_connection_config(canonical)
            except BodhiError as e:
                log("store", f"save connection {config.name!r} failed: {e.message}")
                raise

            if saved_id != conn_id:
                # TODO: decide which id wins once the backend documents its id assignment
                warn("store", f"backend persisted connection under {saved_id}, expected {conn_id}")

            self.connections.update(lambda items: _upsert(items, canonical))
            return canonical

    async def load_all_connection_configs(self) -> Tuple[ConnectionConfig, ...]:
        try:
            configs = await self._gateway.list_connection_configs()
        except BodhiError as e:
            log("store", f"load connections failed: {e.message}")
            raise
        self.connections.set(tuple(configs))
        log("store", f"loaded {len(configs)} connection(s)")
        return self.connections.get()

    async def get_connection_config_by_id(self, conn_id: str) -> Optional[ConnectionConfig]:
        return await self._read_through(self.connections, self.load_all_connection_configs, conn_id)

    async def require_connection_config(self, conn_id: str) -> ConnectionConfig:
        config = await self.get_connection_config_by_id(conn_id)
        if config is None:
            raise NotFoundError("Connection", conn_id)
        return config

    async def test_connection(self, conn_id: str) -> bool:
        try:
            ok = await self._gateway.test_connection(conn_id)
        except BodhiError as e:
            log("store", f"test connection {conn_id} failed: {e.message}")
            raise
        log("store", f"test connection {conn_id}: {'ok' if ok else 'unreachable'}")
        return ok

    async def remove_connection_config(self, conn_id: str):
        async with self._guard(f"conn:{conn_id}"):
            try:
                await self._gateway.remove_connection(conn_id)
                await self._gateway.delete_connection_config(conn_id)
            except BodhiError as e:
                log("store", f"remove connection {conn_id} failed: {e.message}")
                raise

            self.connections.update(lambda items: _without(items, conn_id))
            if self.selected_connection_id.get() == conn_id:
                self.selected_connection_id.set(None)
            log("store", f"connection {conn_id} removed")

    # ---------------- strategies ----------------

    def add_migration_strategy(self, strategy: MigrationStrategy) -> MigrationStrategy:
        if _find(self.strategies.get(), strategy.id) is not None:
            raise ValidationError(f"Migration strategy already exists: {strategy.id}")
        self.strategies.update(lambda items: items + (strategy,))
        return strategy

    def get_migration_strategy_by_id(self, strategy_id: str) -> Optional[MigrationStrategy]:
        return _find(self.strategies.get(), strategy_id)

    # ---------------- pipeline tasks ----------------

    @staticmethod
    def _task_input(value: Union[PipelineTaskInput, Mapping[str, Any]]) -> PipelineTaskInput:
        if type(value) is PipelineTaskInput:
            return value
        data = value.model_dump() if isinstance(value, BaseModel) else dict(value)
        try:
            # generated fields (id, status, progress, timestamps) are dropped here
            return PipelineTaskInput.model_validate(data)
        except PydanticValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ValidationError("Invalid pipeline task: " + "; ".join(errors), errors) from e

    async def create_pipeline_task(self, task_input: Union[PipelineTaskInput, Mapping[str, Any]]) -> PipelineTask:
        inp = self._task_input(task_input)
        try:
            task = await self._gateway.create_pipeline_task(inp)
        except BodhiError as e:
            log("store", f"create task {inp.name!r} failed: {e.message}")
            raise
        self.tasks.update(lambda items: items + (task,))
        log("store", f"task {task.id} created ({task.status})")
        return task

    async def _task_command(self, action: str, call: Callable[[str], Awaitable[None]], task_id: str):
        # status changes are observed through load_all_pipeline_tasks, not applied locally
        async with self._guard(f"task:{task_id}"):
            try:
                await call(task_id)
            except BodhiError as e:
                log("store", f"{action} task {task_id} failed: {e.message}")
                raise
        log("store", f"{action} task {task_id} requested")

    async def start_pipeline_task(self, task_id: str):
        await self._task_command("start", self._gateway.start_pipeline_task, task_id)

    async def pause_pipeline_task(self, task_id: str):
        await self._task_command("pause", self._gateway.pause_pipeline_task, task_id)

    async def cancel_pipeline_task(self, task_id: str):
        await self._task_command("cancel", self._gateway.cancel_pipeline_task, task_id)

    async def retry_pipeline_task(self, task_id: str):
        await self._task_command("retry", self._gateway.retry_pipeline_task, task_id)

    async def load_all_pipeline_tasks(self) -> Tuple[PipelineTask, ...]:
        try:
            tasks = await self._gateway.list_pipeline_tasks()
        except BodhiError as e:
            log("store", f"load tasks failed: {e.message}")
            raise
        self.tasks.set(tuple(tasks))
        log("store", f"loaded {len(tasks)} task(s)")
        return self.tasks.get()

    async def get_pipeline_task_by_id(self, task_id: str) -> Optional[PipelineTask]:
        return await self._read_through(self.tasks, self.load_all_pipeline_tasks, task_id)

    # ---------------- UI state ----------------

    def select_connection(self, conn_id: Optional[str]):
        self.selected_connection_id.set(conn_id)

    def select_task(self, task_id: Optional[str]):
        self.selected_task_id.set(task_id)

    async def initialize(self):
        self.loading.set(True)
        try:
            await self.load_all_connection_configs()
            await self.load_all_pipeline_tasks()
        finally:
            self.loading.set(False)
