"""Tests for the artifact generators and artifact checks."""

from terminal.generators import (
    GENERATORS,
    ComponentGenerator,
    Generator,
    IntegrationGenerator,
    PolicyGenerator,
    SchemaGenerator,
    check_artifacts,
)
from terminal.generators.component import component_table_name
from terminal.generators.schema import generate_columns
from terminal.models import ArtifactType, BuildStep, GeneratedArtifact, StepType


def _step(step_type):
    return BuildStep(request_id="req-1", step_name="step", step_type=step_type, step_order=1)


class TestSchemaGenerator:

    def test_feedback_form_schema(self):
        artifact = SchemaGenerator().generate("req-1", "create a village feedback form", _step(StepType.SCHEMA_GENERATION))

        assert artifact.artifact_type == ArtifactType.TABLE_SCHEMA
        assert artifact.artifact_name == "village_feedback"
        assert artifact.generated_code.startswith("CREATE TABLE public.village_feedback (")
        for column in ("id", "created_at", "updated_at", "title", "description", "category", "status", "user_id"):
            assert f"  {column} " in artifact.generated_code
        assert "  user_id UUID REFERENCES auth.users(id)" in artifact.generated_code
        assert "  id UUID PRIMARY KEY DEFAULT gen_random_uuid()" in artifact.generated_code
        assert artifact.linked_modules == ["ratings_core"]

    def test_domain_columns_precede_timestamps(self):
        names = [c["name"] for c in generate_columns("complaint by region with a rating")]

        assert names == [
            "id", "title", "description", "category", "status", "user_id",
            "region", "rating", "created_at", "updated_at",
        ]

    def test_plain_prompt_has_base_columns_only(self):
        assert [c["name"] for c in generate_columns("do something vague")] == ["id", "created_at", "updated_at"]

    def test_indexes_and_constraints(self):
        artifact = SchemaGenerator().generate("req-1", "citizen complaint by location", _step(StepType.SCHEMA_GENERATION))
        schema = artifact.schema_definition

        assert [i["column"] for i in schema["indexes"]] == ["category", "status", "user_id", "region", "created_at"]
        assert schema["indexes"][0] == {"name": "idx_category", "column": "category", "type": "btree"}
        assert schema["constraints"] == [
            {"type": "foreign_key", "column": "user_id", "references": "auth.users(id)"}
        ]


class TestPolicyGenerator:

    def test_default_admin_policy(self):
        artifact = PolicyGenerator().generate("req-1", "build a citizen complaint form", _step(StepType.POLICY_GENERATION))

        assert artifact.artifact_type == ArtifactType.RLS_POLICY
        assert artifact.artifact_name == "citizen_complaint_policies"
        names = [p["name"] for p in artifact.schema_definition["policies"]]
        assert names == ["citizen_complaint_admin_all"]
        assert 'CREATE POLICY "citizen_complaint_admin_all" ON public.citizen_complaint' in artifact.generated_code
        assert "FOR ALL" in artifact.generated_code
        assert "SELECT 1 FROM public.user_roles" in artifact.generated_code
        assert "role = 'admin'" in artifact.generated_code

    def test_public_policies(self):
        artifact = PolicyGenerator().generate(
            "req-1", "build a road complaint form for public and admin", _step(StepType.POLICY_GENERATION)
        )
        names = [p["name"] for p in artifact.schema_definition["policies"]]

        assert names == ["road_complaint_public_insert", "road_complaint_public_select", "road_complaint_admin_all"]
        assert "WITH CHECK (auth.uid() = user_id);" in artifact.generated_code
        assert "USING (true);" in artifact.generated_code

    def test_researcher_gets_read_policy(self):
        artifact = PolicyGenerator().generate("req-1", "water complaint for researcher", _step(StepType.POLICY_GENERATION))

        assert [p["name"] for p in artifact.schema_definition["policies"]] == ["water_complaint_researcher_select"]
        assert "role = 'researcher'" in artifact.generated_code


class TestComponentGenerator:

    def test_form_component(self):
        artifact = ComponentGenerator().generate(
            "req-1", "create a village feedback form for public", _step(StepType.CODE_GENERATION)
        )

        assert artifact.artifact_name == "village_feedbackForm"
        assert artifact.file_path == "src/components/Public/village_feedbackForm.tsx"
        assert ".from('village_feedback')" in artifact.generated_code
        assert ".insert(formData)" in artifact.generated_code
        assert "<CardTitle>village_feedback Form</CardTitle>" in artifact.generated_code
        assert artifact.generated_code.endswith("export default village_feedbackForm;")

    def test_dashboard_component(self):
        artifact = ComponentGenerator().generate(
            "req-1", "create a budget dashboard for the minister", _step(StepType.CODE_GENERATION)
        )

        assert artifact.artifact_name == "budgetDashboard"
        assert artifact.file_path == "src/components/Admin/budgetDashboard.tsx"
        assert ".from('budget')" in artifact.generated_code
        assert ".order('created_at', { ascending: false })" in artifact.generated_code
        assert "No data available" in artifact.generated_code

    def test_generic_component(self):
        artifact = ComponentGenerator().generate("req-1", "show {all} the things", _step(StepType.CODE_GENERATION))

        assert artifact.artifact_name == "generated_featureComponent"
        assert artifact.file_path == "src/components/Shared/generated_featureComponent.tsx"
        assert "interface generated_featureComponentProps" in artifact.generated_code
        assert "&#123;all&#125;" in artifact.generated_code

    def test_table_name_strips_first_occurrence_only(self):
        assert component_table_name("village_feedbackForm", "form") == "village_feedback"
        # Entity names containing the suffix text lose the wrong fragment.
        assert component_table_name("platform_reviewForm", "form") == "plat_reviewform"


class TestIntegrationGenerator:

    def test_scraper(self):
        artifact = IntegrationGenerator().generate("req-1", "a news scraper", _step(StepType.INTEGRATION))

        assert artifact.artifact_type == ArtifactType.INTEGRATION
        assert artifact.artifact_name == "data_scraper"
        assert artifact.file_path == "src/integrations/data_scraper.ts"
        assert "export async function data_scraper()" in artifact.generated_code
        assert "async function fetchData()" in artifact.generated_code
        assert "return { success: false, error: error.message };" in artifact.generated_code

    def test_service_escapes_prompt(self):
        artifact = IntegrationGenerator().generate("req-1", "the mayor's webhook", _step(StepType.INTEGRATION))

        assert artifact.artifact_name == "custom_integration"
        assert "// Generated webhook integration: custom_integration" in artifact.generated_code
        assert "based on: the mayor\\'s webhook" in artifact.generated_code


def test_registry_covers_generating_steps():
    assert set(GENERATORS) == {
        StepType.SCHEMA_GENERATION,
        StepType.POLICY_GENERATION,
        StepType.CODE_GENERATION,
        StepType.INTEGRATION,
    }
    assert all(isinstance(g, Generator) for g in GENERATORS.values())


def test_generators_are_deterministic():
    prompt = "build a citizen complaint form for public users"
    for step_type, generator in GENERATORS.items():
        first = generator.generate("req-1", prompt, _step(step_type))
        second = generator.generate("req-1", prompt, _step(step_type))
        assert first == second


class TestArtifactChecks:

    def test_generated_artifacts_pass(self):
        prompt = "build a citizen complaint form with a news scraper"
        artifacts = [g.generate("req-1", prompt, _step(t)) for t, g in GENERATORS.items()]

        result = check_artifacts(artifacts)

        assert result.is_valid
        assert result.checked == 4

    def test_reports_problems(self):
        broken = [
            GeneratedArtifact("req-1", ArtifactType.TABLE_SCHEMA, "t", "CREATE TABLE public.t (\n  id UUID\n"),
            GeneratedArtifact("req-1", ArtifactType.COMPONENT, "Widget", "const Widget = 1;"),
            GeneratedArtifact("req-1", ArtifactType.RLS_POLICY, "p", "   "),
        ]

        result = check_artifacts(broken)

        assert not result.is_valid
        messages = [(i.artifact_name, i.message) for i in result.issues]
        assert ("t", "unbalanced parentheses in SQL") in messages
        assert ("t", "SQL statement is not terminated") in messages
        assert ("Widget", "component does not export itself") in messages
        assert ("p", "generated code is empty") in messages
