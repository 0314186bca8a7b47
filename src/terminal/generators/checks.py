"""Sanity checks run by the testing step over a request's generated artifacts."""

import re
from dataclasses import dataclass, field
from typing import List

from ..models import ArtifactType, GeneratedArtifact

SQL_ARTIFACTS = (ArtifactType.TABLE_SCHEMA, ArtifactType.RLS_POLICY)


@dataclass
class CheckIssue:
    """One problem found in an artifact."""
    artifact_name: str
    message: str


@dataclass
class CheckResult:
    """Outcome of checking a set of artifacts."""
    checked: int = 0
    issues: List[CheckIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def summary(self) -> str:
        return "; ".join(f"{i.artifact_name}: {i.message}" for i in self.issues)


def _balanced(code: str) -> bool:
    depth = 0
    for char in code:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def check_artifact(artifact: GeneratedArtifact) -> List[CheckIssue]:
    issues = []
    code = artifact.generated_code or ""
    if not code.strip():
        return [CheckIssue(artifact.artifact_name, "generated code is empty")]

    if artifact.artifact_type in SQL_ARTIFACTS:
        if not _balanced(code):
            issues.append(CheckIssue(artifact.artifact_name, "unbalanced parentheses in SQL"))
        if not code.rstrip().endswith(";"):
            issues.append(CheckIssue(artifact.artifact_name, "SQL statement is not terminated"))

    if artifact.artifact_type == ArtifactType.COMPONENT:
        if not re.search(rf"export default {re.escape(artifact.artifact_name)};", code):
            issues.append(CheckIssue(artifact.artifact_name, "component does not export itself"))

    if artifact.artifact_type == ArtifactType.INTEGRATION:
        if f"export async function {artifact.artifact_name}(" not in code:
            issues.append(CheckIssue(artifact.artifact_name, "integration entry point missing"))

    return issues


def check_artifacts(artifacts: List[GeneratedArtifact]) -> CheckResult:
    result = CheckResult()
    for artifact in artifacts:
        result.checked += 1
        result.issues.extend(check_artifact(artifact))
    return result
