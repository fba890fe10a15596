import pytest

from bodhi.api.models import ConnectionConfig, PipelineTaskInput
from bodhi.core.errors import BackendError, UnsupportedTypeError


@pytest.mark.asyncio
async def test_mysql_registration_payload(gateway, backend):
    conn_id = await gateway.add_mysql_connection("h", 3306, "root", "pw", "app")
    assert conn_id == "mysql-1"
    assert backend.calls == [("add_mysql_connection", {
        "host": "h", "port": 3306, "username": "root", "password": "pw", "database": "app",
    })]


@pytest.mark.asyncio
async def test_redis_registration_payload(gateway, backend):
    await gateway.add_redis_connection("redis://localhost:6379", 2)
    assert backend.args_of("add_redis_connection") == {"url": "redis://localhost:6379", "db": 2}


@pytest.mark.asyncio
async def test_postgresql_fails_without_round_trip(gateway, backend):
    with pytest.raises(UnsupportedTypeError) as exc:
        await gateway.add_postgresql_connection()
    assert "PostgreSQL is not yet supported" in exc.value.message
    assert backend.calls == []


@pytest.mark.asyncio
async def test_save_config_sends_camel_case_and_logs_masked(gateway, backend, capsys):
    cfg = ConnectionConfig(id="redis-1", name="c", type="redis", password="hunter2", created_at="t0")
    assert await gateway.save_connection_config(cfg) == "redis-1"
    assert backend.args_of("save_database_config_to_db") == {"config": {
        "id": "redis-1", "name": "c", "type": "redis", "password": "hunter2", "createdAt": "t0",
    }}
    assert "hunter2" not in capsys.readouterr().out


@pytest.mark.asyncio
async def test_backend_error_passes_through_unchanged(gateway, backend):
    backend.fail("remove_database_connection", "connection busy")
    with pytest.raises(BackendError) as exc:
        await gateway.remove_connection("c1")
    assert exc.value.message == "connection busy"
    assert exc.value.command == "remove_database_connection"


@pytest.mark.asyncio
async def test_other_failures_are_wrapped(gateway, backend):
    def boom(args):
        raise RuntimeError("Failed to create MySQL connection: refused")

    backend.handlers["add_mysql_connection"] = boom
    with pytest.raises(BackendError) as exc:
        await gateway.add_mysql_connection("h", 1, "", "", "")
    assert exc.value.message == "Failed to create MySQL connection: refused"
    assert isinstance(exc.value.__cause__, RuntimeError)


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [None, "", 42, {"id": "x"}])
async def test_invalid_identity_is_a_backend_error(gateway, backend, value):
    backend.respond("add_redis_connection", value)
    with pytest.raises(BackendError):
        await gateway.add_redis_connection("redis://h:1", 0)


@pytest.mark.asyncio
async def test_listing_is_parsed(gateway, backend):
    backend.respond("get_all_database_configs_from_db", [{"id": "c1", "name": "n", "type": "mysql", "updatedAt": "t"}])
    configs = await gateway.list_connection_configs()
    assert configs == [ConnectionConfig(id="c1", name="n", type="mysql", updated_at="t")]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [None, {"configs": []}, [{"id": "c1"}]])
async def test_malformed_listing_is_a_backend_error(gateway, backend, value):
    backend.respond("get_all_database_configs_from_db", value)
    with pytest.raises(BackendError):
        await gateway.list_connection_configs()


@pytest.mark.asyncio
async def test_create_task_round_trip(gateway, backend):
    task = await gateway.create_pipeline_task(
        PipelineTaskInput(name="copy", source_db_id="a", target_db_id="b", strategy_id="s")
    )
    assert backend.args_of("create_pipeline_task") == {"task": {
        "name": "copy", "sourceDbId": "a", "targetDbId": "b", "strategyId": "s",
    }}
    assert task.status == "pending"
    assert task.id.startswith("task-")


@pytest.mark.asyncio
async def test_task_commands(gateway, backend):
    await gateway.start_pipeline_task("t1")
    await gateway.pause_pipeline_task("t1")
    await gateway.cancel_pipeline_task("t1")
    await gateway.retry_pipeline_task("t1")
    assert backend.calls == [
        ("start_pipeline_task", {"taskId": "t1"}),
        ("pause_migration_task", {"id": "t1"}),
        ("cancel_migration_task", {"id": "t1"}),
        ("retry_migration_task", {"id": "t1"}),
    ]


@pytest.mark.asyncio
async def test_test_connection(gateway, backend):
    assert await gateway.test_connection("c1") is True
    backend.respond("test_database_connection", False)
    assert await gateway.test_connection("c1") is False
