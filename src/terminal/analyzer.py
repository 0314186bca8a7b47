"""
Prompt analysis: complexity estimate and predicted artifact categories.
"""

import logging
from typing import Protocol, runtime_checkable

from .extraction import KeywordRule, all_matches, extract_linked_modules, matched_keywords
from .models import AnalysisResult, ArtifactCategory

logger = logging.getLogger(__name__)

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 10

CATEGORY_RULES = (
    KeywordRule(
        ("complaint", "feedback", "table", "database", "record", "track", "registry", "register", "survey", "report"),
        ArtifactCategory.TABLE_SCHEMA.value,
    ),
    KeywordRule(("form", "submit"), ArtifactCategory.FORM_COMPONENT.value),
    KeywordRule(("dashboard", "analytics", "overview", "monitor"), ArtifactCategory.DASHBOARD_COMPONENT.value),
    KeywordRule(("scraper", "api", "webhook", "integration", "notification", "sync"), ArtifactCategory.EDGE_FUNCTION.value),
)

# Ambiguous prompts still get a table to hang the feature on.
DEFAULT_CATEGORIES = (ArtifactCategory.TABLE_SCHEMA,)

CATEGORY_WEIGHTS = {
    ArtifactCategory.TABLE_SCHEMA: 2,
    ArtifactCategory.FORM_COMPONENT: 1,
    ArtifactCategory.DASHBOARD_COMPONENT: 2,
    ArtifactCategory.EDGE_FUNCTION: 2,
}

COMPLEXITY_RULES = (
    KeywordRule(("real-time", "realtime"), "realtime"),
    KeywordRule(("analytics", "chart", "statistics"), "analytics"),
    KeywordRule(("approval", "workflow", "moderation"), "workflow"),
    KeywordRule(("notification", "alert", "sms", "email"), "messaging"),
    KeywordRule(("multi-", "multiple", "across"), "multi"),
)


@runtime_checkable
class Analyzer(Protocol):
    """Anything that can turn a prompt into an AnalysisResult."""

    async def analyze(self, prompt: str, request_type: str) -> AnalysisResult:
        ...


def clamp_complexity(score: int) -> int:
    return max(MIN_COMPLEXITY, min(MAX_COMPLEXITY, score))


class KeywordAnalyzer:
    """Rule-based analyzer: case-insensitive keyword tests against the prompt."""

    async def analyze(self, prompt: str, request_type: str = "plugin") -> AnalysisResult:
        categories = [ArtifactCategory(value) for value in all_matches(CATEGORY_RULES, prompt)]
        if not categories:
            logger.info("No artifact keywords found, falling back to the minimal artifact set")
            categories = list(DEFAULT_CATEGORIES)

        score = MIN_COMPLEXITY
        score += sum(CATEGORY_WEIGHTS[c] for c in categories)
        score += len(all_matches(COMPLEXITY_RULES, prompt))
        if request_type and request_type != "plugin":
            score += 1

        result = AnalysisResult(
            complexity_score=clamp_complexity(score),
            estimated_artifacts=categories,
            matched_keywords=matched_keywords(CATEGORY_RULES + COMPLEXITY_RULES, prompt),
            linked_modules=extract_linked_modules(prompt),
        )
        logger.debug(f"Analysis for {prompt[:60]!r}: {result.to_dict()}")
        return result
