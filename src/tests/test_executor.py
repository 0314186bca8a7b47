"""Tests for sequential step execution."""

import pytest

from terminal.errors import GenerationFailure
from terminal.executor import StepExecutor
from terminal.generators import GENERATORS
from terminal.models import ArtifactType, BuildStep, DevRequest, RequestStatus, StepStatus, StepType


class ExplodingGenerator:
    """Generator that always fails."""

    def generate(self, request_id, prompt, step):
        raise RuntimeError("template engine exploded")


async def _planned_request(repository, prompt, step_types):
    request = await repository.create_request(DevRequest(request_prompt=prompt, status=RequestStatus.BUILDING))
    for order, step_type in enumerate(step_types, start=1):
        await repository.create_step(
            BuildStep(request_id=request.id, step_name=step_type.value, step_type=step_type, step_order=order)
        )
    return request, await repository.list_steps(request.id)


FULL_PLAN = [
    StepType.ANALYSIS,
    StepType.SCHEMA_GENERATION,
    StepType.POLICY_GENERATION,
    StepType.CODE_GENERATION,
    StepType.INTEGRATION,
    StepType.TESTING,
]


class TestStepExecutor:

    @pytest.mark.asyncio
    async def test_runs_every_step_in_order(self, repository):
        request, steps = await _planned_request(repository, "build a citizen complaint form with an api", FULL_PLAN)

        artifacts = await StepExecutor(repository).run(request, list(reversed(steps)))

        assert [a.artifact_type for a in artifacts] == [
            ArtifactType.TABLE_SCHEMA,
            ArtifactType.RLS_POLICY,
            ArtifactType.COMPONENT,
            ArtifactType.INTEGRATION,
        ]
        stored = await repository.list_steps(request.id)
        assert all(s.status == StepStatus.COMPLETED for s in stored)
        assert all(s.started_at is not None and s.completed_at is not None for s in stored)
        assert stored[0].output_data == {}
        assert stored[1].output_data == {"artifact_id": artifacts[0].id}

    @pytest.mark.asyncio
    async def test_failure_aborts_remaining_steps(self, repository):
        request, steps = await _planned_request(repository, "build a citizen complaint form with an api", FULL_PLAN)
        generators = dict(GENERATORS)
        generators[StepType.CODE_GENERATION] = ExplodingGenerator()

        with pytest.raises(GenerationFailure, match="template engine exploded") as exc_info:
            await StepExecutor(repository, generators).run(request, steps)

        assert exc_info.value.step_name == "code_generation"
        stored = await repository.list_steps(request.id)
        assert [s.status for s in stored] == [
            StepStatus.COMPLETED,
            StepStatus.COMPLETED,
            StepStatus.COMPLETED,
            StepStatus.FAILED,
            StepStatus.PENDING,
            StepStatus.PENDING,
        ]
        assert stored[3].error_details == "template engine exploded"
        assert stored[4].started_at is None

        artifacts = await repository.list_artifacts(request.id)
        assert [a.artifact_type for a in artifacts] == [ArtifactType.TABLE_SCHEMA, ArtifactType.RLS_POLICY]

    @pytest.mark.asyncio
    async def test_unmet_requirement_fails_step(self, repository):
        request, steps = await _planned_request(
            repository, "water complaint", [StepType.ANALYSIS, StepType.POLICY_GENERATION, StepType.TESTING]
        )

        with pytest.raises(GenerationFailure, match="requires table_schema"):
            await StepExecutor(repository).run(request, steps)

        stored = await repository.list_steps(request.id)
        assert [s.status for s in stored] == [StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.PENDING]
        assert await repository.list_artifacts(request.id) == []

    @pytest.mark.asyncio
    async def test_testing_step_rejects_bad_artifacts(self, repository):
        class EmptySchema:
            def generate(self, request_id, prompt, step):
                artifact = GENERATORS[StepType.SCHEMA_GENERATION].generate(request_id, prompt, step)
                artifact.generated_code = ""
                return artifact

        request, steps = await _planned_request(
            repository, "water complaint", [StepType.SCHEMA_GENERATION, StepType.TESTING]
        )

        with pytest.raises(GenerationFailure, match="generated code is empty"):
            await StepExecutor(repository, {StepType.SCHEMA_GENERATION: EmptySchema()}).run(request, steps)

        stored = await repository.list_steps(request.id)
        assert [s.status for s in stored] == [StepStatus.COMPLETED, StepStatus.FAILED]

    @pytest.mark.asyncio
    async def test_warns_on_name_collision(self, repository, caplog):
        first, first_steps = await _planned_request(repository, "do something vague", [StepType.SCHEMA_GENERATION])
        second, second_steps = await _planned_request(repository, "something else vague", [StepType.SCHEMA_GENERATION])
        executor = StepExecutor(repository)

        await executor.run(first, first_steps)
        with caplog.at_level("WARNING", logger="terminal.executor"):
            await executor.run(second, second_steps)

        assert "generated_feature" in caplog.text
        assert first.id in caplog.text
