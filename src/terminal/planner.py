"""
Step planning: AnalysisResult -> ordered build steps.

Ordering is carried by the step contracts rather than by convention. A policy
step *requires* a table schema; a component step *follows* the schema and
policy steps whenever they are planned; testing follows everything.
`plan_steps` always returns a plan that satisfies `validate_plan`.
"""

from typing import Dict, List

from .extraction import extract_entity_name, extract_integration_name
from .models import AnalysisResult, ArtifactCategory, ArtifactType, StepDescriptor, StepType

STEP_CONTRACTS: Dict[StepType, StepDescriptor] = {
    StepType.ANALYSIS: StepDescriptor("Analyze Requirements", StepType.ANALYSIS),
    StepType.SCHEMA_GENERATION: StepDescriptor(
        "Generate Database Schema",
        StepType.SCHEMA_GENERATION,
        produces=ArtifactType.TABLE_SCHEMA,
    ),
    StepType.POLICY_GENERATION: StepDescriptor(
        "Generate RLS Policies",
        StepType.POLICY_GENERATION,
        produces=ArtifactType.RLS_POLICY,
        requires=frozenset({ArtifactType.TABLE_SCHEMA}),
    ),
    StepType.CODE_GENERATION: StepDescriptor(
        "Generate React Component",
        StepType.CODE_GENERATION,
        produces=ArtifactType.COMPONENT,
        follows=frozenset({ArtifactType.TABLE_SCHEMA, ArtifactType.RLS_POLICY}),
    ),
    StepType.INTEGRATION: StepDescriptor(
        "Generate Edge Function",
        StepType.INTEGRATION,
        produces=ArtifactType.INTEGRATION,
    ),
    StepType.TESTING: StepDescriptor(
        "Test Generated Code",
        StepType.TESTING,
        follows=frozenset(ArtifactType),
    ),
}


def descriptor_for(step_type: StepType) -> StepDescriptor:
    return STEP_CONTRACTS[StepType(step_type)]


def validate_plan(steps: List[StepDescriptor]) -> None:
    """
    Check that each step comes after the producers it depends on.

    Raises:
        ValueError: a required artifact is never produced earlier in the plan,
            or a step precedes a producer it must follow.
    """
    for index, step in enumerate(steps):
        earlier = {s.produces for s in steps[:index] if s.produces}
        later = {s.produces for s in steps[index + 1:] if s.produces}

        missing = step.requires - earlier
        if missing:
            names = ", ".join(sorted(t.value for t in missing))
            raise ValueError(f"Step '{step.name}' requires {names} from an earlier step")

        out_of_order = (step.requires | step.follows) & later
        if out_of_order:
            names = ", ".join(sorted(t.value for t in out_of_order))
            raise ValueError(f"Step '{step.name}' must run after the steps producing {names}")


def plan_steps(analysis: AnalysisResult) -> List[StepDescriptor]:
    """Translate predicted artifact categories into an ordered step list."""
    steps = [STEP_CONTRACTS[StepType.ANALYSIS]]

    if analysis.predicts(ArtifactCategory.TABLE_SCHEMA):
        steps.append(STEP_CONTRACTS[StepType.SCHEMA_GENERATION])
        steps.append(STEP_CONTRACTS[StepType.POLICY_GENERATION])

    # One component step covers both; the generator picks the kind from the prompt.
    if analysis.predicts(ArtifactCategory.FORM_COMPONENT) or analysis.predicts(ArtifactCategory.DASHBOARD_COMPONENT):
        steps.append(STEP_CONTRACTS[StepType.CODE_GENERATION])

    if analysis.predicts(ArtifactCategory.EDGE_FUNCTION):
        steps.append(STEP_CONTRACTS[StepType.INTEGRATION])

    steps.append(STEP_CONTRACTS[StepType.TESTING])

    validate_plan(steps)
    return steps


def predict_artifacts(prompt: str, analysis: AnalysisResult) -> List[Dict[str, str]]:
    """Describe the artifacts a build of this prompt is expected to produce."""
    entity = extract_entity_name(prompt)
    predicted = []

    if analysis.predicts(ArtifactCategory.TABLE_SCHEMA):
        predicted.append({
            "type": ArtifactType.TABLE_SCHEMA.value,
            "name": entity,
            "description": f"Database table for {entity}",
        })

    if analysis.predicts(ArtifactCategory.FORM_COMPONENT):
        predicted.append({
            "type": ArtifactType.COMPONENT.value,
            "name": f"{entity}Form",
            "description": f"React form component for {entity}",
        })

    if analysis.predicts(ArtifactCategory.DASHBOARD_COMPONENT):
        predicted.append({
            "type": ArtifactType.COMPONENT.value,
            "name": f"{entity}Dashboard",
            "description": f"Dashboard component for {entity}",
        })

    if analysis.predicts(ArtifactCategory.EDGE_FUNCTION):
        name = extract_integration_name(prompt)
        predicted.append({
            "type": ArtifactType.INTEGRATION.value,
            "name": name,
            "description": f"Edge function {name}",
        })

    return predicted
