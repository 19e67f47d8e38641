from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence


class Engine(str, Enum):
    SPARK = "spark"
    FLINK = "flink"


class Technology(str, Enum):
    JDBC = "jdbc"
    KAFKA = "kafka"
    MONGODB = "mongodb"
    ELASTICSEARCH = "elasticsearch"


@dataclass(frozen=True)
class MetaColumnInfo:
    name: str
    type: str
    index: Optional[int] = None
    primary_key: bool = False


@dataclass
class PartitionNode:
    name: str = ""
    partitions: Dict[str, "PartitionNode"] = field(default_factory=dict)


@dataclass
class MetaPartitionInfo:
    part_keys: List[str] = field(default_factory=list)
    name: str = ""
    root: PartitionNode = field(default_factory=PartitionNode)


@dataclass(frozen=True)
class GeneratedSql:
    ddl: str = ""
    dml: str = ""
    dql: str = ""

    def is_empty(self) -> bool:
        return not (self.ddl or self.dml or self.dql)


@dataclass(frozen=True)
class ColumnFetch:
    """Result of a best-effort column lookup.

    ``degraded`` is set when the lookup failed and ``columns`` was defaulted to empty.
    """

    columns: Sequence[MetaColumnInfo] = ()
    degraded: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: BaseException) -> "ColumnFetch":
        return cls(columns=(), degraded=True, error=str(error) or type(error).__name__)
