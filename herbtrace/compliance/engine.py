"""Compliance engine: scores an entity's history against rule sets.

Scoring is deterministic: the same entity, history and rule sets always
produce the same score and issues (apart from ``checked_at``).
"""

from collections.abc import Iterable, Sequence
from typing import Any

from herbtrace.compliance.models import (
    COMPLIANCE_THRESHOLD,
    STARTING_SCORE,
    ComplianceIssue,
    ComplianceResult,
    RuleSet,
)
from herbtrace.compliance.rules import BUILTIN_RULE_SETS, SEQUENCE_ANOMALY_PENALTY
from herbtrace.entities.enums import EntityKind
from herbtrace.entities.models import Lot, Plant
from herbtrace.events.enums import EventType
from herbtrace.events.models import Event
from herbtrace.events.projector import project

QUALITY_EVENTS = frozenset({EventType.QUALITY_TESTED, EventType.QUALITY_APPROVED})


def quality_documentation(entity: Lot | Plant, history: Iterable[Event]) -> dict[str, Any]:
    """Entity quality data merged with quality event payloads, oldest first."""
    merged = dict(entity.quality_data)
    for event in sorted(history, key=lambda e: e.sort_key):
        if event.event_type in QUALITY_EVENTS:
            merged.update(event.payload)
    return merged


def _present(value: Any) -> bool:
    return value not in (None, "", [], {})


class ComplianceEngine:
    """Evaluate entities against named rule sets."""

    def __init__(
        self,
        threshold: int = COMPLIANCE_THRESHOLD,
        rule_sets: dict[str, RuleSet] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            threshold: Minimum passing score
            rule_sets: Extra rule sets; same-named built-ins are replaced
        """
        self._threshold = threshold
        self._rule_sets = {**BUILTIN_RULE_SETS, **(rule_sets or {})}

    @property
    def threshold(self) -> int:
        """Minimum passing score."""
        return self._threshold

    def rule_set_names(self) -> list[str]:
        """Names of every known rule set."""
        return sorted(self._rule_sets)

    def get_rule_set(self, name: str) -> RuleSet | None:
        """Look up a rule set by name (case-insensitive)."""
        return self._rule_sets.get(name) or self._rule_sets.get(name.upper())

    def evaluate(
        self,
        entity: Lot | Plant,
        kind: EntityKind,
        history: Sequence[Event],
        rule_set_names: Sequence[str],
    ) -> ComplianceResult:
        """Score an entity's history.

        Args:
            entity: The entity record
            kind: Kind it is checked as
            history: Its recorded events
            rule_set_names: Rule sets to apply

        Returns:
            ComplianceResult with score clamped to 0..100
        """
        issues: list[ComplianceIssue] = []
        recorded = {event.event_type for event in history}
        quality = quality_documentation(entity, history)

        for name in rule_set_names:
            rule_set = self.get_rule_set(name)
            if rule_set is None:
                issues.append(
                    ComplianceIssue(
                        code="unknown_rule_set",
                        message=f"Unknown rule set requested: {name}",
                    )
                )
                continue
            issues.extend(self._apply(rule_set, kind, recorded, quality))

        for anomaly in project(kind, history).anomalies:
            issues.append(
                ComplianceIssue(
                    code="sequence_anomaly",
                    message=(
                        f"Event {anomaly.event_type.value} recorded after status "
                        f"{anomaly.reached_status.value} was reached"
                    ),
                    penalty=SEQUENCE_ANOMALY_PENALTY,
                )
            )

        score = max(0, STARTING_SCORE - sum(issue.penalty for issue in issues))
        return ComplianceResult(
            entity_id=entity.id,
            entity_kind=kind,
            rule_sets=list(rule_set_names),
            score=score,
            compliant=score >= self._threshold,
            threshold=self._threshold,
            issues=issues,
        )

    @staticmethod
    def _apply(
        rule_set: RuleSet,
        kind: EntityKind,
        recorded: set[EventType],
        quality: dict[str, Any],
    ) -> list[ComplianceIssue]:
        issues = []
        for event_type in rule_set.required_events.get(kind, []):
            if event_type not in recorded:
                issues.append(
                    ComplianceIssue(
                        rule_set=rule_set.name,
                        code="missing_event",
                        message=f"Missing required event: {event_type.value}",
                        penalty=rule_set.event_penalty,
                    )
                )

        for field in rule_set.required_quality_fields.get(kind, []):
            if not _present(quality.get(field)):
                issues.append(
                    ComplianceIssue(
                        rule_set=rule_set.name,
                        code="missing_quality_field",
                        message=f"Missing quality documentation: {field}",
                        penalty=rule_set.field_penalty,
                    )
                )

        if rule_set.require_quality_data and not any(_present(v) for v in quality.values()):
            issues.append(
                ComplianceIssue(
                    rule_set=rule_set.name,
                    code="missing_quality_data",
                    message="Missing quality data documentation",
                    penalty=rule_set.quality_data_penalty,
                )
            )
        return issues
