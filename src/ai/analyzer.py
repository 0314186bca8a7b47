"""
Claude-backed prompt analyzer.

Asks the model for the same shape the keyword analyzer produces. Any error
from the model call, or a reply that is not the expected JSON, propagates to
the caller.
"""

import json
import logging
import re
from typing import Any, Dict

from terminal.analyzer import DEFAULT_CATEGORIES, clamp_complexity
from terminal.extraction import extract_linked_modules
from terminal.models import AnalysisResult, ArtifactCategory

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You estimate the work needed for a civic platform feature request.
Reply with a single JSON object and nothing else:
{"complexity_score": <integer 1-10>,
 "estimated_artifacts": [<zero or more of "table_schema", "form_component", "dashboard_component", "edge_function">],
 "matched_keywords": [<words from the request that drove your estimate>]}"""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_analysis(text: str) -> Dict[str, Any]:
    """Extract the JSON object from a model reply."""
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ValueError("Analyzer reply did not contain a JSON object")
    return json.loads(match.group(0))


class ClaudeAnalyzer:
    """Analyzer that delegates the estimate to Claude."""

    def __init__(self, client):
        self.client = client

    async def analyze(self, prompt: str, request_type: str = "plugin") -> AnalysisResult:
        logger.info(f"Requesting Claude analysis for prompt: {prompt[:100]}...")
        reply = await self.client.generate_response(
            f"Request type: {request_type}\nFeature request: {prompt}",
            system_prompt=SYSTEM_PROMPT,
        )
        data = parse_analysis(reply)

        known = {c.value for c in ArtifactCategory}
        categories = []
        for value in data.get("estimated_artifacts", []):
            if value in known and ArtifactCategory(value) not in categories:
                categories.append(ArtifactCategory(value))
            elif value not in known:
                logger.warning(f"Ignoring unknown artifact category from analyzer: {value!r}")

        if not categories:
            categories = list(DEFAULT_CATEGORIES)

        return AnalysisResult(
            complexity_score=clamp_complexity(int(data["complexity_score"])),
            estimated_artifacts=categories,
            matched_keywords=[str(k) for k in data.get("matched_keywords", [])],
            linked_modules=extract_linked_modules(prompt),
        )
