"""Validates raw parsed analysis JSON against domain invariants."""

from datetime import date
from typing import Any

from artifact_worker.analysis.exceptions import AnalysisValidationError
from artifact_worker.analysis.models import (
    AnalysisResult,
    Fact,
    Insight,
    Person,
    Summary,
    Topic,
)

_MAX_ITEMS = 100
_REQUIRED_FIELDS = ("summary", "key_topics", "persons_mentioned", "facts", "insights")


def validate_and_build(data: dict[str, Any]) -> AnalysisResult:
    """Validate raw parsed JSON and build an AnalysisResult.

    Duplicate topics (by name) and duplicate facts (by key and value) are
    collapsed to their first occurrence.

    Raises:
        AnalysisValidationError: on any validation failure.
    """
    for name in _REQUIRED_FIELDS:
        if name not in data:
            raise AnalysisValidationError(f"Missing required top-level field: {name}")
    return AnalysisResult(
        summary=_build_summary(data),
        document_type=_optional_str(data.get("document_type"), "document_type"),
        document_type_confidence=_optional_confidence(
            data.get("document_type_confidence"), "document_type_confidence"
        ),
        topics=_build_topics(_require_list(data["key_topics"], "key_topics")),
        persons=[
            _build_person(item, i)
            for i, item in enumerate(_require_list(data["persons_mentioned"], "persons_mentioned"))
        ],
        facts=_build_facts(_require_list(data["facts"], "facts")),
        insights=[
            _build_insight(item, i)
            for i, item in enumerate(_require_list(data["insights"], "insights"))
        ],
    )


def _build_summary(data: dict[str, Any]) -> Summary:
    text = data["summary"]
    if not isinstance(text, str) or not text.strip():
        raise AnalysisValidationError("'summary' must be a non-empty string")
    takeaways = data.get("key_takeaways") or []
    if not isinstance(takeaways, list) or not all(isinstance(t, str) for t in takeaways):
        raise AnalysisValidationError("'key_takeaways' must be a list of strings")
    return Summary(
        executive_summary=text.strip(),
        key_takeaways=takeaways,
        sentiment=_optional_str(data.get("sentiment"), "sentiment"),
        priority=_build_priority(data.get("priority")),
    )


def _build_priority(raw: Any) -> int | None:
    if raw is None or raw == 0:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise AnalysisValidationError("'priority' must be an integer or null")
    if not 1 <= raw <= 5:
        raise AnalysisValidationError(f"'priority' must be between 1 and 5, got {raw}")
    return raw


def _build_topics(raw: list[Any]) -> list[Topic]:
    seen: set[str] = set()
    topics: list[Topic] = []
    for i, item in enumerate(raw):
        item = _require_object(item, f"Topic at index {i}")
        name = _require_str(item.get("topic"), f"Topic at index {i}: 'topic'")
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        topics.append(
            Topic(name=name, confidence=_confidence(item.get("confidence"), f"Topic at index {i}"))
        )
    return topics


def _build_person(raw: Any, index: int) -> Person:
    label = f"Person at index {index}"
    item = _require_object(raw, label)
    return Person(
        name=_require_str(item.get("name"), f"{label}: 'name'"),
        role=_optional_str(item.get("role"), f"{label}: 'role'"),
        organization=_optional_str(item.get("organization"), f"{label}: 'organization'"),
        context=_optional_str(item.get("context"), f"{label}: 'context'"),
        confidence=_confidence(item.get("confidence"), label),
    )


def _build_facts(raw: list[Any]) -> list[Fact]:
    seen: set[tuple[str, str]] = set()
    facts: list[Fact] = []
    for i, item in enumerate(raw):
        fact = _build_fact(item, i)
        if (fact.key, fact.value) in seen:
            continue
        seen.add((fact.key, fact.value))
        facts.append(fact)
    return facts


def _build_fact(raw: Any, index: int) -> Fact:
    label = f"Fact at index {index}"
    item = _require_object(raw, label)
    numeric = item.get("numeric_value")
    if numeric is not None and (isinstance(numeric, bool) or not isinstance(numeric, (int, float))):
        raise AnalysisValidationError(f"{label}: 'numeric_value' must be a number or null")
    return Fact(
        type=_require_str(item.get("type"), f"{label}: 'type'"),
        key=_require_str(item.get("key"), f"{label}: 'key'"),
        value=_require_str(item.get("value"), f"{label}: 'value'"),
        numeric_value=float(numeric) if numeric is not None else None,
        date_value=_calendar_date(
            _optional_str(item.get("date_value"), f"{label}: 'date_value'")
        ),
        unit=_optional_str(item.get("unit"), f"{label}: 'unit'"),
        confidence=_confidence(item.get("confidence"), label),
    )


def _build_insight(raw: Any, index: int) -> Insight:
    label = f"Insight at index {index}"
    item = _require_object(raw, label)
    modules = item.get("impacted_modules") or []
    if not isinstance(modules, list) or not all(isinstance(m, str) for m in modules):
        raise AnalysisValidationError(f"{label}: 'impacted_modules' must be a list of strings")
    return Insight(
        type=_require_str(item.get("type"), f"{label}: 'type'"),
        title=_require_str(item.get("title"), f"{label}: 'title'"),
        description=_require_str(item.get("description"), f"{label}: 'description'"),
        severity=_optional_str(item.get("severity"), f"{label}: 'severity'"),
        suggested_action=_optional_str(item.get("suggested_action"), f"{label}: 'suggested_action'"),
        impacted_modules=modules,
        confidence=_confidence(item.get("confidence"), label),
    )


def _require_list(raw: Any, name: str) -> list[Any]:
    if not isinstance(raw, list):
        raise AnalysisValidationError(f"'{name}' must be a list")
    if len(raw) > _MAX_ITEMS:
        raise AnalysisValidationError(f"Too many {name}: {len(raw)} (max {_MAX_ITEMS})")
    return raw


def _require_object(raw: Any, label: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise AnalysisValidationError(f"{label} must be an object")
    return raw


def _require_str(raw: Any, label: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise AnalysisValidationError(f"{label} must be a non-empty string")
    return raw.strip()


def _optional_str(raw: Any, label: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise AnalysisValidationError(f"{label} must be a string or null")
    return raw.strip() or None


def _confidence(raw: Any, label: str) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise AnalysisValidationError(f"{label}: 'confidence' must be a number")
    return max(0.0, min(1.0, float(raw)))


def _optional_confidence(raw: Any, label: str) -> float | None:
    if raw is None:
        return None
    return _confidence(raw, label)


def _calendar_date(value: str | None) -> str | None:
    """Normalise to YYYY-MM-DD; text that is not a real date is dropped."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        return None
