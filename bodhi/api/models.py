# bodhi/api/models.py
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class DatabaseType(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    REDIS = "redis"


StrategyType = Literal["full", "incremental", "delta"]
TaskStatus = Literal["pending", "running", "completed", "failed", "paused"]
LogLevel = Literal["info", "warning", "error"]


class WireModel(BaseModel):
    # backend speaks camelCase; python side may use either
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]):
        return cls.model_validate(data)


class ConnectionConfig(WireModel):
    id: Optional[str] = None
    name: str
    type: str  # DatabaseType value; unknown values are rejected by the store, not here
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    ssl: Optional[bool] = None
    extra: Optional[Dict[str, str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _enum_to_value(cls, v):
        return v.value if isinstance(v, Enum) else v


class Transformer(WireModel):
    name: str
    params: Dict[str, Any] = Field(default_factory=dict)


class MigrationStrategy(WireModel):
    id: str
    name: str
    type: StrategyType
    batch_size: Optional[int] = None
    retry_count: Optional[int] = None
    timeout: Optional[int] = None
    filters: Optional[Dict[str, Any]] = None
    transformers: Optional[List[Transformer]] = None


class TaskLog(WireModel):
    timestamp: str
    message: str
    level: LogLevel = "info"


class PipelineTaskInput(WireModel):
    """What the client may send when creating a task; the rest is assigned by the backend."""

    name: str
    source_db_id: str
    target_db_id: str
    strategy_id: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    error: Optional[str] = None
    logs: Optional[List[TaskLog]] = None


class PipelineTask(PipelineTaskInput):
    id: str
    status: TaskStatus
    progress: float = 0
    created_at: str
    updated_at: str
