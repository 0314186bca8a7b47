"""Tests for prompt analysis and step planning."""

import pytest

from terminal.analyzer import KeywordAnalyzer
from terminal.models import AnalysisResult, ArtifactCategory, ArtifactType, StepType
from terminal.planner import STEP_CONTRACTS, plan_steps, predict_artifacts, validate_plan


def _analysis(*categories):
    return AnalysisResult(complexity_score=3, estimated_artifacts=list(categories))


def _types(steps):
    return [s.step_type for s in steps]


class TestKeywordAnalyzer:

    @pytest.mark.asyncio
    async def test_feedback_form_predicts_schema_and_form(self):
        result = await KeywordAnalyzer().analyze("create a village feedback form", "plugin")

        assert ArtifactCategory.TABLE_SCHEMA in result.estimated_artifacts
        assert ArtifactCategory.FORM_COMPONENT in result.estimated_artifacts
        assert "feedback" in result.matched_keywords
        assert "form" in result.matched_keywords
        assert result.linked_modules == ["ratings_core"]

    @pytest.mark.asyncio
    async def test_matching_is_case_insensitive(self):
        result = await KeywordAnalyzer().analyze("Budget DASHBOARD with a Scraper", "plugin")

        assert result.estimated_artifacts == [
            ArtifactCategory.DASHBOARD_COMPONENT,
            ArtifactCategory.EDGE_FUNCTION,
        ]

    @pytest.mark.asyncio
    async def test_ambiguous_prompt_gets_minimal_set(self):
        result = await KeywordAnalyzer().analyze("do something vague", "plugin")

        assert result.estimated_artifacts == [ArtifactCategory.TABLE_SCHEMA]
        assert result.complexity_score == 3

    @pytest.mark.asyncio
    async def test_complexity_is_bounded(self):
        prompt = (
            "real-time analytics dashboard with approval workflow, sms notification, "
            "complaint form and api integration across multiple regions"
        )
        result = await KeywordAnalyzer().analyze(prompt, "module")

        assert result.complexity_score == 10

    @pytest.mark.asyncio
    async def test_same_prompt_same_result(self):
        analyzer = KeywordAnalyzer()
        first = await analyzer.analyze("build a citizen complaint form", "plugin")
        second = await analyzer.analyze("build a citizen complaint form", "plugin")

        assert first == second


class TestPlanSteps:

    def test_schema_and_form_ordering(self):
        steps = plan_steps(_analysis(ArtifactCategory.TABLE_SCHEMA, ArtifactCategory.FORM_COMPONENT))

        assert _types(steps) == [
            StepType.ANALYSIS,
            StepType.SCHEMA_GENERATION,
            StepType.POLICY_GENERATION,
            StepType.CODE_GENERATION,
            StepType.TESTING,
        ]

    def test_form_and_dashboard_share_one_component_step(self):
        steps = plan_steps(_analysis(ArtifactCategory.FORM_COMPONENT, ArtifactCategory.DASHBOARD_COMPONENT))

        assert _types(steps) == [StepType.ANALYSIS, StepType.CODE_GENERATION, StepType.TESTING]

    def test_full_plan(self):
        steps = plan_steps(_analysis(*ArtifactCategory))

        assert _types(steps) == [
            StepType.ANALYSIS,
            StepType.SCHEMA_GENERATION,
            StepType.POLICY_GENERATION,
            StepType.CODE_GENERATION,
            StepType.INTEGRATION,
            StepType.TESTING,
        ]
        assert [s.name for s in steps][0] == "Analyze Requirements"
        assert [s.name for s in steps][-1] == "Test Generated Code"

    def test_empty_analysis_still_brackets_plan(self):
        assert _types(plan_steps(_analysis())) == [StepType.ANALYSIS, StepType.TESTING]

    def test_validate_rejects_policy_without_schema(self):
        steps = [
            STEP_CONTRACTS[StepType.ANALYSIS],
            STEP_CONTRACTS[StepType.POLICY_GENERATION],
            STEP_CONTRACTS[StepType.TESTING],
        ]
        with pytest.raises(ValueError, match="requires table_schema"):
            validate_plan(steps)

    def test_validate_rejects_component_before_schema(self):
        steps = [
            STEP_CONTRACTS[StepType.CODE_GENERATION],
            STEP_CONTRACTS[StepType.SCHEMA_GENERATION],
        ]
        with pytest.raises(ValueError, match="must run after"):
            validate_plan(steps)

    def test_descriptor_serialization(self):
        assert STEP_CONTRACTS[StepType.SCHEMA_GENERATION].to_dict() == {
            "name": "Generate Database Schema",
            "type": "schema_generation",
        }
        assert STEP_CONTRACTS[StepType.POLICY_GENERATION].requires == frozenset({ArtifactType.TABLE_SCHEMA})


def test_predict_artifacts():
    predicted = predict_artifacts(
        "create a village feedback form",
        _analysis(ArtifactCategory.TABLE_SCHEMA, ArtifactCategory.FORM_COMPONENT),
    )

    assert predicted == [
        {"type": "table_schema", "name": "village_feedback", "description": "Database table for village_feedback"},
        {"type": "component", "name": "village_feedbackForm", "description": "React form component for village_feedback"},
    ]
