"""
Domain dataclasses used across the application.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

ParameterValue = Union[str, int]


@dataclass(frozen=True)
class ParameterSpec:
    """One declared report parameter and how it is validated/compared."""
    name: str
    type: str                          # "string" or "integer"
    column: str                        # dataset column compared against
    operator: str = "eq"               # eq, lt, le, gt, ge, in
    allowed: Optional[Tuple[ParameterValue, ...]] = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    pattern: Optional[str] = None
    groups: Optional[Dict[str, Tuple[str, ...]]] = None
    free_text: bool = False


@dataclass(frozen=True)
class PowerBITarget:
    workspace_id: str
    report_id: str
    dataset_id: str


@dataclass(frozen=True)
class ParameterSchema:
    """Ordered, typed declaration of the parameters a report accepts."""
    report_id: str
    version: int
    parameters: Tuple[ParameterSpec, ...]
    dataset_table: str
    rls_role: str = "ParameterViewer"
    powerbi: Optional[PowerBITarget] = None

    def __len__(self) -> int:
        return len(self.parameters)

    def __iter__(self) -> Iterator[ParameterSpec]:
        return iter(self.parameters)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.parameters]


@dataclass(frozen=True)
class ParameterSet:
    """Ordered (name, value) pairs supplied by a user."""
    items: Tuple[Tuple[str, ParameterValue], ...]

    @classmethod
    def from_mapping(cls, values: Mapping[str, ParameterValue]) -> "ParameterSet":
        return cls(tuple(values.items()))

    def values(self) -> List[ParameterValue]:
        return [v for _, v in self.items]

    def as_dict(self) -> Dict[str, ParameterValue]:
        return dict(self.items)


@dataclass
class AuditRecord:
    """An accepted ParameterSet, written once for later review."""
    report_id: str
    schema_version: int
    subject: Optional[str]
    parameters: Dict[str, Any]
    created_at: datetime = field(default_factory=datetime.utcnow)
