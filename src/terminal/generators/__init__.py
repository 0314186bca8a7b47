"""
Artifact generators, one per generating step type.
"""

from typing import Dict

from ..models import StepType
from .base import Generator
from .checks import CheckResult, check_artifacts
from .component import ComponentGenerator
from .integration import IntegrationGenerator
from .policy import PolicyGenerator
from .schema import SchemaGenerator

GENERATORS: Dict[StepType, Generator] = {
    StepType.SCHEMA_GENERATION: SchemaGenerator(),
    StepType.POLICY_GENERATION: PolicyGenerator(),
    StepType.CODE_GENERATION: ComponentGenerator(),
    StepType.INTEGRATION: IntegrationGenerator(),
}

__all__ = [
    "GENERATORS",
    "Generator",
    "SchemaGenerator",
    "PolicyGenerator",
    "ComponentGenerator",
    "IntegrationGenerator",
    "CheckResult",
    "check_artifacts",
]
