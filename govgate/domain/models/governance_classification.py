"""Governance event classification rule table.

Maps an (action, target_type) pair to a category, a severity and a
blocking impact. The rule table is an explicit ordered tuple: the first
matching rule wins, so priority changes show up as reordering in review.

Governance Constraints:
- Pure and total: no I/O, never raises, same answer at write time and
  at any later report time
- The active rule table version is stamped on every ledger row
  (classification_version) so historical rows stay reproducible
- Rule changes are additive; a breaking change requires a new version
- CRITICAL requires a REGULATORY or LEGITIMACY category and an explicit
  hard-stop marker in the action
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

CLASSIFICATION_RULESET_VERSION: str = "GEC_V1"


class GovernanceCategory(str, Enum):
    """Category of a governance event."""

    REGULATORY = "REGULATORY"
    LEGITIMACY = "LEGITIMACY"
    COMPLIANCE = "COMPLIANCE"
    EXECUTION = "EXECUTION"
    SYSTEM = "SYSTEM"


class GovernanceSeverity(str, Enum):
    """Severity of a governance event, ascending."""

    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class GovernanceImpact(str, Enum):
    """Whether a governance event blocks execution."""

    BLOCKING = "BLOCKING"
    NON_BLOCKING = "NON_BLOCKING"


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification rule table.

    Attributes:
        category: Category assigned when the rule matches.
        action_markers: Substrings matched against the upper-cased action.
        target_markers: Substrings matched against the lower-cased target type.
    """

    category: GovernanceCategory
    action_markers: tuple[str, ...]
    target_markers: tuple[str, ...]

    def matches(self, action: str, target_type: str) -> bool:
        return any(marker in action for marker in self.action_markers) or any(
            marker in target_type for marker in self.target_markers
        )


# Ordered by priority. First match wins; SYSTEM when nothing matches.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        category=GovernanceCategory.REGULATORY,
        action_markers=("REGULATORY", "REGULATION", "AUTHORITY_"),
        target_markers=("regulatory",),
    ),
    ClassificationRule(
        category=GovernanceCategory.LEGITIMACY,
        action_markers=("LEGITIMACY", "LEGAL_", "GOVERNANCE_", "RUNTIME_", "OVERRIDE"),
        target_markers=("legitimacy", "governance"),
    ),
    ClassificationRule(
        category=GovernanceCategory.COMPLIANCE,
        action_markers=(
            "COMPLIANCE_",
            "REQUIREMENT",
            "CERTIFICATE",
            "MEDICAL",
            "TRAINING",
        ),
        target_markers=("compliance", "requirement", "certificate"),
    ),
    ClassificationRule(
        category=GovernanceCategory.EXECUTION,
        action_markers=(
            "COCKPIT_",
            "DECISION",
            "SHIFT",
            "ISSUES_",
            "HR_TASK",
            "HR_TEMPLATE",
            "ROSTER",
            "STAFFING",
            "GAPS",
        ),
        target_markers=(
            "shift",
            "station",
            "hr_task",
            "hr_template",
            "resolution",
            "line",
        ),
    ),
)

HARD_STOP_MARKERS: tuple[str, ...] = ("BLOCKED", "LEGAL_STOP", "NO_GO", "HARD_STOP")

_BASE_SEVERITY: dict[GovernanceCategory, GovernanceSeverity] = {
    GovernanceCategory.REGULATORY: GovernanceSeverity.HIGH,
    GovernanceCategory.LEGITIMACY: GovernanceSeverity.HIGH,
    GovernanceCategory.COMPLIANCE: GovernanceSeverity.MEDIUM,
    GovernanceCategory.EXECUTION: GovernanceSeverity.LOW,
    GovernanceCategory.SYSTEM: GovernanceSeverity.INFO,
}

_BLOCKING_SEVERITIES: frozenset[GovernanceSeverity] = frozenset(
    {GovernanceSeverity.HIGH, GovernanceSeverity.CRITICAL}
)


def _normalize(action: object, target_type: object) -> tuple[str, str]:
    action_str = action.strip().upper() if isinstance(action, str) else ""
    target_str = target_type.strip().lower() if isinstance(target_type, str) else ""
    return action_str, target_str


def classify_governance_event(action: str, target_type: str) -> GovernanceCategory:
    """Classify an event by the first matching rule.

    Args:
        action: Action code, e.g. ``COMPLIANCE_ACTION_DONE``.
        target_type: Target type, e.g. ``shift``.

    Returns:
        The category of the first matching rule, or SYSTEM.
    """
    normalized_action, normalized_target = _normalize(action, target_type)
    for rule in CLASSIFICATION_RULES:
        if rule.matches(normalized_action, normalized_target):
            return rule.category
    return GovernanceCategory.SYSTEM


def resolve_governance_severity(
    category: GovernanceCategory, action: str, target_type: str = ""
) -> GovernanceSeverity:
    """Resolve severity for a classified event.

    ``target_type`` does not currently influence severity; it is accepted
    so the signature stays stable if target-based escalation is added.
    """
    normalized_action, _ = _normalize(action, target_type)
    category = GovernanceCategory(category)
    if category in (GovernanceCategory.REGULATORY, GovernanceCategory.LEGITIMACY):
        if any(marker in normalized_action for marker in HARD_STOP_MARKERS):
            return GovernanceSeverity.CRITICAL
    return _BASE_SEVERITY[category]


def resolve_governance_impact(severity: GovernanceSeverity) -> GovernanceImpact:
    """BLOCKING iff severity is HIGH or CRITICAL."""
    if GovernanceSeverity(severity) in _BLOCKING_SEVERITIES:
        return GovernanceImpact.BLOCKING
    return GovernanceImpact.NON_BLOCKING


@dataclass(frozen=True)
class GovernanceClassification:
    """Full classification of one event."""

    category: GovernanceCategory
    severity: GovernanceSeverity
    impact: GovernanceImpact
    ruleset_version: str = CLASSIFICATION_RULESET_VERSION

    @property
    def is_blocking(self) -> bool:
        return self.impact == GovernanceImpact.BLOCKING

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "impact": self.impact.value,
            "is_blocking": self.is_blocking,
            "ruleset_version": self.ruleset_version,
        }


def describe_governance_event(action: str, target_type: str) -> GovernanceClassification:
    """Classify, grade and assess impact in one call."""
    category = classify_governance_event(action, target_type)
    severity = resolve_governance_severity(category, action, target_type)
    return GovernanceClassification(
        category=category,
        severity=severity,
        impact=resolve_governance_impact(severity),
    )


def is_blocking_governance_event(action: str, target_type: str) -> bool:
    """True when the event would be classified as BLOCKING."""
    return describe_governance_event(action, target_type).is_blocking
