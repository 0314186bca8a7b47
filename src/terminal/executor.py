"""
Sequential execution of a request's build steps.
"""

import logging
from typing import Dict, List, Optional

from .errors import DevTerminalError, GenerationFailure
from .generators import GENERATORS, Generator, check_artifacts
from .models import BuildStep, DevRequest, GeneratedArtifact, StepStatus, StepType, utcnow
from .planner import descriptor_for
from .repository import DevTerminalRepository

logger = logging.getLogger(__name__)


class StepExecutor:
    """
    Runs build steps one at a time in step_order.

    Each step goes pending -> running -> completed|failed. The first failure
    marks that step failed and aborts the run; later steps stay pending. A
    step's artifact insert and its completion are committed together.
    """

    def __init__(self, repository: DevTerminalRepository, generators: Optional[Dict[StepType, Generator]] = None):
        self.repository = repository
        self.generators = GENERATORS if generators is None else generators

    async def run(self, request: DevRequest, steps: List[BuildStep]) -> List[GeneratedArtifact]:
        """
        Execute `steps` for `request`.

        Returns:
            The artifacts generated by this run, in step order.

        Raises:
            GenerationFailure: a step failed; it has been recorded on the step.
            PersistenceFailure: the store failed.
        """
        produced = [a for a in await self.repository.list_artifacts(request.id) if not a.is_reverted]
        generated: List[GeneratedArtifact] = []

        for step in sorted(steps, key=lambda s: s.step_order):
            step = await self.repository.update_step(step.id, status=StepStatus.RUNNING, started_at=utcnow())
            logger.info(f"Running step {step.step_order} '{step.step_name}' for request {request.id}")

            try:
                artifact = await self._execute(request, step, produced)
                async with self.repository.transaction():
                    saved = await self.repository.insert_artifact(artifact) if artifact else None
                    await self.repository.update_step(
                        step.id,
                        status=StepStatus.COMPLETED,
                        completed_at=utcnow(),
                        output_data={"artifact_id": saved.id} if saved else {},
                    )
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Step '{step.step_name}' failed for request {request.id}: {message}")
                await self.repository.update_step(
                    step.id,
                    status=StepStatus.FAILED,
                    completed_at=utcnow(),
                    error_details=message,
                )
                if isinstance(e, DevTerminalError):
                    raise
                raise GenerationFailure(f"Step '{step.step_name}' failed: {message}", step_name=step.step_name) from e

            if saved:
                produced.append(saved)
                generated.append(saved)

        return generated

    async def _execute(
        self, request: DevRequest, step: BuildStep, produced: List[GeneratedArtifact]
    ) -> Optional[GeneratedArtifact]:
        contract = descriptor_for(step.step_type)
        available = {a.artifact_type for a in produced}
        missing = contract.requires - available
        if missing:
            names = ", ".join(sorted(t.value for t in missing))
            raise GenerationFailure(f"Step '{step.step_name}' requires {names}, which has not been generated", step.step_name)

        if step.step_type == StepType.TESTING:
            result = check_artifacts(produced)
            if not result.is_valid:
                raise GenerationFailure(f"Generated code failed checks: {result.summary()}", step.step_name)
            logger.info(f"Checked {result.checked} artifacts for request {request.id}")
            return None

        generator = self.generators.get(step.step_type)
        if generator is None:
            return None

        artifact = generator.generate(request.id, request.request_prompt, step)
        await self._warn_on_collision(artifact)
        return artifact

    async def _warn_on_collision(self, artifact: GeneratedArtifact) -> None:
        existing = await self.repository.active_artifacts_named(artifact.artifact_type.value, artifact.artifact_name)
        others = sorted({a.request_id for a in existing if a.request_id != artifact.request_id})
        if others:
            logger.warning(
                f"{artifact.artifact_type.value} '{artifact.artifact_name}' is also generated by "
                f"active request(s) {', '.join(others)}"
            )
