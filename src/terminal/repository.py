"""Model-level access to the dev terminal tables."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import NotFound
from .models import BuildStep, CivicMemoryPattern, DevRequest, GeneratedArtifact, RequestStatus
from .store import (
    ARTIFACTS_TABLE,
    BUILD_LOGS_TABLE,
    CIVIC_MEMORY_TABLE,
    REQUESTS_TABLE,
    RecordStore,
)


class DevTerminalRepository:
    """Maps DevRequest / BuildStep / GeneratedArtifact onto a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    def transaction(self):
        return self.store.transaction()

    # Requests

    async def create_request(self, request: DevRequest) -> DevRequest:
        row = await self.store.insert(REQUESTS_TABLE, request.to_row())
        return DevRequest.from_row(row)

    async def find_request(self, request_id: str) -> Optional[DevRequest]:
        rows = await self.store.select(REQUESTS_TABLE, eq={"id": request_id}, limit=1)
        return DevRequest.from_row(rows[0]) if rows else None

    async def get_request(self, request_id: str) -> DevRequest:
        request = await self.find_request(request_id)
        if request is None:
            raise NotFound(f"Request not found: {request_id}")
        return request

    async def update_request(self, request_id: str, **values: Any) -> DevRequest:
        rows = await self.store.update(REQUESTS_TABLE, _plain(values), eq={"id": request_id})
        if not rows:
            raise NotFound(f"Request not found: {request_id}")
        return DevRequest.from_row(rows[0])

    async def recent_requests(self, limit: int) -> List[DevRequest]:
        rows = await self.store.select(REQUESTS_TABLE, order_by="created_at", descending=True, limit=limit)
        return [DevRequest.from_row(r) for r in rows]

    async def active_requests(self) -> List[DevRequest]:
        rows = await self.store.select(
            REQUESTS_TABLE,
            in_={"status": [RequestStatus.ANALYZING.value, RequestStatus.BUILDING.value]},
            order_by="created_at",
        )
        return [DevRequest.from_row(r) for r in rows]

    # Build steps

    async def create_step(self, step: BuildStep) -> BuildStep:
        row = await self.store.insert(BUILD_LOGS_TABLE, step.to_row())
        return BuildStep.from_row(row)

    async def list_steps(self, request_id: str) -> List[BuildStep]:
        rows = await self.store.select(BUILD_LOGS_TABLE, eq={"request_id": request_id}, order_by="step_order")
        return [BuildStep.from_row(r) for r in rows]

    async def update_step(self, step_id: str, **values: Any) -> BuildStep:
        rows = await self.store.update(BUILD_LOGS_TABLE, _plain(values), eq={"id": step_id})
        return BuildStep.from_row(rows[0])

    # Artifacts

    async def insert_artifact(self, artifact: GeneratedArtifact) -> GeneratedArtifact:
        row = await self.store.insert(ARTIFACTS_TABLE, artifact.to_row())
        return GeneratedArtifact.from_row(row)

    async def list_artifacts(self, request_id: str) -> List[GeneratedArtifact]:
        rows = await self.store.select(ARTIFACTS_TABLE, eq={"request_id": request_id}, order_by="created_at")
        return [GeneratedArtifact.from_row(r) for r in rows]

    async def active_artifacts_named(self, artifact_type: str, artifact_name: str) -> List[GeneratedArtifact]:
        rows = await self.store.select(
            ARTIFACTS_TABLE,
            eq={"artifact_type": artifact_type, "artifact_name": artifact_name, "reverted_at": None},
        )
        return [GeneratedArtifact.from_row(r) for r in rows]

    async def revert_artifacts(self, request_id: str, reverted_at: datetime, reason: str) -> List[GeneratedArtifact]:
        """Stamp revert fields on the request's artifacts that are not reverted yet."""
        rows = await self.store.update(
            ARTIFACTS_TABLE,
            {"reverted_at": reverted_at, "revert_reason": reason},
            eq={"request_id": request_id, "reverted_at": None},
        )
        return [GeneratedArtifact.from_row(r) for r in rows]

    async def recent_artifacts(self, limit: int) -> List[GeneratedArtifact]:
        rows = await self.store.select(ARTIFACTS_TABLE, order_by="created_at", descending=True, limit=limit)
        return [GeneratedArtifact.from_row(r) for r in rows]

    # Civic memory

    async def civic_patterns(self) -> List[CivicMemoryPattern]:
        rows = await self.store.select(
            CIVIC_MEMORY_TABLE, eq={"is_active": True}, order_by="usage_count", descending=True
        )
        return [CivicMemoryPattern.from_row(r) for r in rows]


def _plain(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: getattr(v, "value", v) for k, v in values.items()}
