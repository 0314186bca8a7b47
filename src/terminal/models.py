"""
Domain models for the dev terminal.

These dataclasses mirror the rows of the terminal tables. Conversion to and
from store rows goes through `from_row` / `to_row`; `to_dict` gives the JSON
shape returned by the service.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestStatus(str, Enum):
    """Dev request lifecycle."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    BUILDING = "building"
    COMPLETED = "completed"
    FAILED = "failed"
    REVERTED = "reverted"


class StepStatus(str, Enum):
    """Build step lifecycle."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepType(str, Enum):
    """Build step type tags."""
    ANALYSIS = "analysis"
    SCHEMA_GENERATION = "schema_generation"
    CODE_GENERATION = "code_generation"
    POLICY_GENERATION = "policy_generation"
    INTEGRATION = "integration"
    TESTING = "testing"


class ArtifactType(str, Enum):
    """Generated artifact type tags."""
    TABLE_SCHEMA = "table_schema"
    COMPONENT = "component"
    RLS_POLICY = "rls_policy"
    INTEGRATION = "integration"


class ArtifactCategory(str, Enum):
    """Artifact categories the analyzer can predict."""
    TABLE_SCHEMA = "table_schema"
    FORM_COMPONENT = "form_component"
    DASHBOARD_COMPONENT = "dashboard_component"
    EDGE_FUNCTION = "edge_function"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return value


class RowModel:
    """Row conversion shared by the persistent models."""

    _enum_fields: Dict[str, type] = {}

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in row.items() if k in known}
        for name, enum_cls in cls._enum_fields.items():
            if values.get(name) is not None:
                values[name] = enum_cls(values[name])
        return cls(**values)

    def to_row(self) -> Dict[str, Any]:
        row = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ("id", "created_at") and value is None:
                continue
            row[f.name] = value.value if isinstance(value, Enum) else value
        return row

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _jsonable(getattr(self, f.name)) for f in fields(self)}


@dataclass
class DevRequest(RowModel):
    """One user-submitted feature request."""
    request_prompt: str
    request_type: str = "plugin"
    target_users: List[str] = field(default_factory=lambda: ["admin"])
    build_mode: str = "think_first"
    use_civic_memory: bool = True
    preview_before_build: bool = True
    status: RequestStatus = RequestStatus.PENDING
    created_by: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    build_duration_seconds: Optional[int] = None

    _enum_fields = {"status": RequestStatus}


@dataclass
class BuildStep(RowModel):
    """One planned unit of work (a row of the build log)."""
    request_id: str
    step_name: str
    step_type: StepType
    step_order: int
    status: StepStatus = StepStatus.PENDING
    output_data: Dict[str, Any] = field(default_factory=dict)
    error_details: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    _enum_fields = {"status": StepStatus, "step_type": StepType}


@dataclass
class GeneratedArtifact(RowModel):
    """One synthesized output. Immutable apart from the revert fields."""
    request_id: str
    artifact_type: ArtifactType
    artifact_name: str
    generated_code: str
    file_path: Optional[str] = None
    schema_definition: Optional[Dict[str, Any]] = None
    linked_modules: List[str] = field(default_factory=list)
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    reverted_at: Optional[datetime] = None
    revert_reason: Optional[str] = None

    _enum_fields = {"artifact_type": ArtifactType}

    @property
    def is_reverted(self) -> bool:
        return self.reverted_at is not None


@dataclass
class CivicMemoryPattern(RowModel):
    """Historical pattern, read only."""
    pattern_name: str
    pattern_type: Optional[str] = None
    usage_count: int = 0
    success_rate: Optional[float] = None
    tags: List[str] = field(default_factory=list)
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class AnalysisResult:
    """Output of an analyzer."""
    complexity_score: int
    estimated_artifacts: List[ArtifactCategory]
    matched_keywords: List[str] = field(default_factory=list)
    linked_modules: List[str] = field(default_factory=list)

    def predicts(self, category: ArtifactCategory) -> bool:
        return category in self.estimated_artifacts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity_score": self.complexity_score,
            "estimated_artifacts": [c.value for c in self.estimated_artifacts],
            "matched_keywords": list(self.matched_keywords),
            "linked_modules": list(self.linked_modules),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        return cls(
            complexity_score=int(data["complexity_score"]),
            estimated_artifacts=[ArtifactCategory(c) for c in data.get("estimated_artifacts", [])],
            matched_keywords=list(data.get("matched_keywords", [])),
            linked_modules=list(data.get("linked_modules", [])),
        )


@dataclass(frozen=True)
class StepDescriptor:
    """
    A planned step before it is persisted.

    `produces` names the artifact type the step creates, `requires` the
    artifact types that must already exist for the request, and `follows` the
    artifact types whose producers must run first when they are in the plan.
    """
    name: str
    step_type: StepType
    produces: Optional[ArtifactType] = None
    requires: FrozenSet[ArtifactType] = frozenset()
    follows: FrozenSet[ArtifactType] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.step_type.value}
