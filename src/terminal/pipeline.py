"""
Request orchestration for the dev terminal: intake, analysis, planning,
building and the lifecycle operations around a request.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .analyzer import Analyzer, KeywordAnalyzer
from .config import ABORT_MARK_FAILED, Config
from .errors import GenerationFailure, InvalidInput
from .executor import StepExecutor
from .models import (
    AnalysisResult,
    BuildStep,
    CivicMemoryPattern,
    DevRequest,
    RequestStatus,
    StepDescriptor,
    utcnow,
)
from .planner import plan_steps, predict_artifacts
from .repository import DevTerminalRepository

logger = logging.getLogger(__name__)

HEALTHY_THRESHOLD = 80
WARNING_THRESHOLD = 60


def calculate_terminal_health(recent: List[DevRequest], active: List[DevRequest]) -> Dict[str, Any]:
    """Coarse health from the share of completed requests in the recent window."""
    total = len(recent)
    completed = sum(1 for r in recent if r.status == RequestStatus.COMPLETED)
    failed = sum(1 for r in recent if r.status == RequestStatus.FAILED)

    success_rate = completed * 100 / total if total else 100.0
    failure_rate = failed * 100 / total if total else 0.0

    if success_rate > HEALTHY_THRESHOLD:
        status = "healthy"
    elif success_rate > WARNING_THRESHOLD:
        status = "warning"
    else:
        status = "critical"

    return {
        "successRate": int(success_rate + 0.5),
        "failureRate": int(failure_rate + 0.5),
        "activeBuilds": len(active),
        "status": status,
    }


def matching_patterns(patterns: List[CivicMemoryPattern], analysis: AnalysisResult) -> List[CivicMemoryPattern]:
    terms = set(analysis.matched_keywords) | set(analysis.linked_modules)
    return [p for p in patterns if terms & set(p.tags)]


class DevTerminalPipeline:
    """
    Orchestrates a feature request from prompt to generated artifacts:
    1. Intake: persist the request
    2. Analysis: complexity and predicted artifact categories
    3. Planning: ordered build steps, stored as pending
    4. Build: run the steps through the executor
    5. Lifecycle: preview, revert, clone and status reporting
    """

    ACTIONS = ("analyze", "build", "preview", "revert", "clone", "status")

    def __init__(
        self,
        repository: DevTerminalRepository,
        analyzer: Optional[Analyzer] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the pipeline with its store and collaborators."""
        self.repository = repository
        self.analyzer = analyzer or KeywordAnalyzer()
        self.config = config or Config()
        self.executor = StepExecutor(repository)

    async def dispatch(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Route a terminal request body to the matching operation."""
        action = body.get("action")
        options = body.get("options") or {}

        if action not in self.ACTIONS:
            raise InvalidInput(f"Unknown action: {action}")

        if action == "analyze":
            return await self.analyze(
                body.get("prompt"),
                request_type=body.get("requestType"),
                target_users=body.get("targetUsers"),
                build_mode=body.get("buildMode"),
                use_civic_memory=body.get("useCivicMemory"),
                preview_before_build=body.get("previewBeforeBuild"),
            )
        if action == "status":
            return await self.status(options)

        request_id = body.get("requestId")
        if not request_id:
            raise InvalidInput(f"requestId is required for action '{action}'")

        if action == "build":
            return await self.build(request_id)
        if action == "preview":
            return await self.preview(request_id)
        if action == "revert":
            return await self.revert(request_id, options)
        return await self.clone(request_id, options)

    async def analyze(
        self,
        prompt: Optional[str],
        request_type: Optional[str] = None,
        target_users: Optional[List[str]] = None,
        build_mode: Optional[str] = None,
        use_civic_memory: Optional[bool] = None,
        preview_before_build: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Record a new request, analyze it and store its build plan.

        Raises:
            InvalidInput: the prompt is missing or blank.
        """
        if not prompt or not prompt.strip():
            raise InvalidInput("prompt is required")

        logger.info(f"Analyzing dev request: {prompt[:100]}")
        request = await self.repository.create_request(
            DevRequest(
                request_prompt=prompt,
                request_type=request_type or "plugin",
                target_users=list(target_users) if target_users else ["admin"],
                build_mode=build_mode or "think_first",
                use_civic_memory=True if use_civic_memory is None else use_civic_memory,
                preview_before_build=True if preview_before_build is None else preview_before_build,
                status=RequestStatus.ANALYZING,
                created_by="dev-terminal",
                started_at=utcnow(),
            )
        )

        request, analysis, descriptors = await self._plan(request)

        response = {
            "success": True,
            "request": request.to_dict(),
            "analysis": analysis.to_dict(),
            "buildSteps": [d.to_dict() for d in descriptors],
            "predictedArtifacts": predict_artifacts(prompt, analysis),
            "message": f"Analysis complete. Estimated complexity: {analysis.complexity_score}/10",
        }
        if request.use_civic_memory:
            patterns = matching_patterns(await self.repository.civic_patterns(), analysis)
            response["civicMemory"] = [p.to_dict() for p in patterns]
        return response

    async def _plan(self, request: DevRequest) -> Tuple[DevRequest, AnalysisResult, List[StepDescriptor]]:
        # An analyzer error leaves the request in `analyzing` with no steps.
        analysis = await self.analyzer.analyze(request.request_prompt, request.request_type)
        descriptors = plan_steps(analysis)

        async with self.repository.transaction():
            request = await self.repository.update_request(request.id, analysis=analysis.to_dict())
            for order, descriptor in enumerate(descriptors, start=1):
                await self.repository.create_step(
                    BuildStep(
                        request_id=request.id,
                        step_name=descriptor.name,
                        step_type=descriptor.step_type,
                        step_order=order,
                    )
                )

        logger.info(f"Planned {len(descriptors)} steps for request {request.id}")
        return request, analysis, descriptors

    async def build(self, request_id: str) -> Dict[str, Any]:
        """
        Execute the stored plan of a request.

        A request without a plan (a fresh clone, or one whose analysis failed)
        is analyzed and planned first. On a step failure the request is handled according to the
        configured abort policy and the GenerationFailure propagates.

        Raises:
            NotFound: no such request.
            InvalidInput: the request is not in a buildable status.
            GenerationFailure: a step failed.
        """
        logger.info(f"Building feature for request: {request_id}")
        request = await self.repository.get_request(request_id)

        if request.status == RequestStatus.PENDING:
            request = await self.repository.update_request(
                request_id, status=RequestStatus.ANALYZING, started_at=utcnow()
            )
        elif request.status != RequestStatus.ANALYZING:
            raise InvalidInput(f"Request {request_id} cannot be built from status '{request.status.value}'")

        # Clones and requests whose analysis failed have no plan yet.
        if not await self.repository.list_steps(request_id):
            request, _, _ = await self._plan(request)

        started = utcnow()
        request = await self.repository.update_request(request_id, status=RequestStatus.BUILDING, started_at=started)
        steps = await self.repository.list_steps(request_id)

        try:
            artifacts = await self.executor.run(request, steps)
        except GenerationFailure as e:
            logger.error(f"Build aborted for request {request_id}: {e.message}")
            if self.config.abort_policy == ABORT_MARK_FAILED:
                await self.repository.update_request(
                    request_id, status=RequestStatus.FAILED, completed_at=utcnow()
                )
            raise

        completed = utcnow()
        await self.repository.update_request(
            request_id,
            status=RequestStatus.COMPLETED,
            completed_at=completed,
            build_duration_seconds=int((completed - started).total_seconds()),
        )

        return {
            "success": True,
            "requestId": request_id,
            "generatedArtifacts": [a.to_dict() for a in artifacts],
            "message": f"Feature built successfully with {len(artifacts)} artifacts",
        }

    async def preview(self, request_id: str) -> Dict[str, Any]:
        """Show a request with its plan and whatever has been generated so far."""
        request = await self.repository.get_request(request_id)
        steps = await self.repository.list_steps(request_id)
        artifacts = await self.repository.list_artifacts(request_id)

        return {
            "success": True,
            "preview": {
                "request": request.to_dict(),
                "buildSteps": [s.to_dict() for s in steps],
                "artifacts": [a.to_dict() for a in artifacts],
                "summary": f"Preview for: {request.request_prompt}",
            },
        }

    async def revert(self, request_id: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Mark a request's artifacts reverted and the request itself `reverted`.

        Reverting twice is a no-op: artifacts keep their first revert stamp.
        """
        options = options or {}
        request = await self.repository.get_request(request_id)
        if request.status == RequestStatus.REVERTED:
            logger.info(f"Request {request_id} is already reverted")
            return {"success": True, "revertedArtifacts": 0, "message": "Feature already reverted"}

        if request.status != RequestStatus.COMPLETED:
            logger.warning(f"Reverting request {request_id} from status '{request.status.value}'")

        reason = options.get("reason") or "Manual revert"
        async with self.repository.transaction():
            reverted = await self.repository.revert_artifacts(request_id, utcnow(), reason)
            await self.repository.update_request(request_id, status=RequestStatus.REVERTED)

        logger.info(f"Reverted {len(reverted)} artifacts for request {request_id}: {reason}")
        return {
            "success": True,
            "revertedArtifacts": len(reverted),
            "message": "Feature reverted successfully",
        }

    async def clone(self, request_id: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Copy a request into a new `pending` one, optionally with a new prompt."""
        options = options or {}
        original = await self.repository.get_request(request_id)

        cloned = await self.repository.create_request(
            DevRequest(
                request_prompt=options.get("newPrompt") or original.request_prompt,
                request_type=original.request_type,
                target_users=list(original.target_users),
                build_mode=original.build_mode,
                use_civic_memory=original.use_civic_memory,
                preview_before_build=original.preview_before_build,
                created_by=original.created_by,
                status=RequestStatus.PENDING,
            )
        )

        logger.info(f"Cloned request {request_id} into {cloned.id}")
        return {
            "success": True,
            "clonedRequest": cloned.to_dict(),
            "message": "Feature cloned successfully",
        }

    async def status(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Recent activity, active builds, civic memory and a health indicator."""
        options = options or {}
        try:
            limit = int(options.get("limit", self.config.status_recent_limit))
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid limit: {options.get('limit')!r}")
        if limit < 0:
            raise InvalidInput(f"Invalid limit: {limit}")

        recent = await self.repository.recent_requests(limit)
        active = await self.repository.active_requests()
        artifacts = await self.repository.recent_artifacts(self.config.status_artifact_limit)
        patterns = await self.repository.civic_patterns()

        return {
            "success": True,
            "status": {
                "recentRequests": [r.to_dict() for r in recent],
                "activeBuilds": [r.to_dict() for r in active],
                "recentArtifacts": [a.to_dict() for a in artifacts],
                "civicMemory": [p.to_dict() for p in patterns],
                "terminalHealth": calculate_terminal_health(recent, active),
            },
        }
