"""
Keyword heuristics that turn a free-text prompt into names and tags.

Each mapping is an ordered rule table evaluated top to bottom, so extending the
heuristics means adding a row rather than another branch. All helpers are pure:
the same prompt always yields the same result.
"""

import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence, Tuple

DEFAULT_ENTITY_NAME = "generated_feature"


@dataclass(frozen=True)
class KeywordRule:
    """Yields `value` when any of `keywords` occurs in the prompt."""
    keywords: Tuple[str, ...]
    value: str

    def matches(self, prompt: str) -> bool:
        text = prompt.lower()
        return any(keyword in text for keyword in self.keywords)


def first_match(rules: Sequence[KeywordRule], prompt: str, default: str) -> str:
    for rule in rules:
        if rule.matches(prompt):
            return rule.value
    return default


def all_matches(rules: Sequence[KeywordRule], prompt: str) -> List[str]:
    return [rule.value for rule in rules if rule.matches(prompt)]


# First pattern that captures something usable wins.
ENTITY_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"build an? (.*?) form", re.IGNORECASE),
    re.compile(r"create an? (.*?) (?:form|dashboard)", re.IGNORECASE),
    re.compile(r"add an? (.*?) system", re.IGNORECASE),
    re.compile(r"(\w+ complaint)", re.IGNORECASE),
    re.compile(r"(\w+ feedback)", re.IGNORECASE),
)

COMPONENT_SUFFIX_RULES = (
    KeywordRule(("form",), "Form"),
    KeywordRule(("dashboard",), "Dashboard"),
    KeywordRule(("list",), "List"),
)

COMPONENT_CATEGORY_RULES = (
    KeywordRule(("admin", "minister"), "Admin"),
    KeywordRule(("public",), "Public"),
)

COMPONENT_KIND_RULES = (
    KeywordRule(("form",), "form"),
    KeywordRule(("dashboard",), "dashboard"),
)

TARGET_USER_RULES = (
    KeywordRule(("public",), "public"),
    KeywordRule(("admin",), "admin"),
    KeywordRule(("minister",), "minister"),
    KeywordRule(("researcher",), "researcher"),
)

LINKED_MODULE_RULES = (
    KeywordRule(("rating", "feedback"), "ratings_core"),
    KeywordRule(("election", "candidate"), "election_core"),
    KeywordRule(("sentiment", "opinion"), "sentiment_layer"),
    KeywordRule(("party", "political"), "party_system"),
)

INTEGRATION_NAME_RULES = (
    KeywordRule(("scraper",), "data_scraper"),
    KeywordRule(("api",), "api_integration"),
    KeywordRule(("notification",), "notification_service"),
)

INTEGRATION_TYPE_RULES = (
    KeywordRule(("scraper",), "scraper"),
    KeywordRule(("api",), "api"),
    KeywordRule(("webhook",), "webhook"),
)


def _snake_case(text: str) -> str:
    name = re.sub(r"\s+", "_", text.strip()).lower()
    return re.sub(r"[^a-z0-9_]", "", name)


def extract_entity_name(prompt: str) -> str:
    """Derive the snake_case table/file root for a prompt."""
    for pattern in ENTITY_PATTERNS:
        match = pattern.search(prompt)
        if match:
            name = _snake_case(match.group(1))
            if name:
                return name
    return DEFAULT_ENTITY_NAME


def extract_component_name(prompt: str) -> str:
    suffix = first_match(COMPONENT_SUFFIX_RULES, prompt, "Component")
    return f"{extract_entity_name(prompt)}{suffix}"


def extract_component_category(prompt: str) -> str:
    """UI folder the component lands in: Admin, Public or Shared."""
    return first_match(COMPONENT_CATEGORY_RULES, prompt, "Shared")


def extract_component_kind(prompt: str) -> str:
    return first_match(COMPONENT_KIND_RULES, prompt, "generic")


def extract_target_users(prompt: str) -> List[str]:
    return all_matches(TARGET_USER_RULES, prompt) or ["admin"]


def extract_linked_modules(prompt: str) -> List[str]:
    return all_matches(LINKED_MODULE_RULES, prompt)


def extract_integration_name(prompt: str) -> str:
    return first_match(INTEGRATION_NAME_RULES, prompt, "custom_integration")


def extract_integration_type(prompt: str) -> str:
    return first_match(INTEGRATION_TYPE_RULES, prompt, "service")


def matched_keywords(rules: Sequence[KeywordRule], prompt: str) -> List[str]:
    """Keywords from `rules` that occur in the prompt, in table order, without repeats."""
    text = prompt.lower()
    seen: List[str] = []
    for rule in rules:
        for keyword in rule.keywords:
            if keyword in text and keyword not in seen:
                seen.append(keyword)
    return seen


def strip_first(text: str, fragment: str) -> str:
    """Remove the first occurrence of `fragment` from `text`."""
    return text.replace(fragment, "", 1)


def humanize(name: str) -> str:
    """Insert a space before each capital letter: `feedbackForm` -> `feedback Form`."""
    return re.sub(r"([A-Z])", r" \1", name).strip()
