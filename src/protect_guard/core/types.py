"""protect-guard shared domain types.

This module defines every value type, enum, and Pydantic model that is
shared across the protect-guard implementation.

Key design decisions:
* Normalized rules form a *closed* tagged union (``SingleValuedRule`` /
  ``MultiValuedRule``) discriminated on ``kind``.  Only the rule validator
  builds them, so downstream code never observes an unnormalized rule.
* Raw caller rules stay plain mappings (``RuleSpec``) until validated.
* All models are frozen; results are never mutated after creation.
* Enums use *string* values so they serialise cleanly to JSON.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FAILED_SENTINEL: str = "Failed"
"""Trigger value used by every single-valued (pass/fail) metric."""

CALL_TYPE_PROTECT: str = "protect"

RuleSpec = Mapping[str, Any]
"""A protection rule as supplied by the caller, before validation."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RuleType(enum.StrEnum):
    """How a multi-valued rule matches its ``contains`` set.

    * **ANY** -- triggers if at least one detected value is in ``contains``.
    * **ALL** -- triggers only if every ``contains`` value was detected.
    """

    ANY = "any"
    ALL = "all"


class VerdictStatus(enum.StrEnum):
    """Final decision of a ``protect`` call."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Normalized rules
# ---------------------------------------------------------------------------

class _RuleBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    remote_id: str
    action: str
    reason_flag: bool = False
    extra_config: dict[str, Any] = Field(default_factory=dict)

    def triggers(self, detected: Iterable[Any]) -> bool:
        """Return ``True`` if *detected* values satisfy this rule."""
        values = list(detected)
        contains = self.contains  # type: ignore[attr-defined]
        if self.type is RuleType.ALL:  # type: ignore[attr-defined]
            return all(value in values for value in contains)
        return any(value in contains for value in values)


class SingleValuedRule(_RuleBase):
    """A rule on a pass/fail metric.  Triggers when the check reports ``Failed``."""

    kind: Literal["single"] = "single"

    @property
    def contains(self) -> tuple[str, ...]:
        return (FAILED_SENTINEL,)

    @property
    def type(self) -> RuleType:
        return RuleType.ANY


class MultiValuedRule(_RuleBase):
    """A rule on a metric that reports several labels (e.g. ``Tone``)."""

    kind: Literal["multi"] = "multi"
    contains: tuple[str, ...] = Field(min_length=1)
    type: RuleType = RuleType.ANY


NormalizedRule = Annotated[
    Union[SingleValuedRule, MultiValuedRule],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Gateway records
# ---------------------------------------------------------------------------

class ProtectInput(BaseModel):
    """One input record as sent to the evaluation service."""

    model_config = ConfigDict(frozen=True)

    input: str
    call_type: str = CALL_TYPE_PROTECT


class EvalResultMetric(BaseModel):
    """A single named metric attached to an evaluation result."""

    model_config = ConfigDict(frozen=True)

    id: str | int
    value: Any = None


class EvaluationOutcome(BaseModel):
    """Structured result of one remote evaluation.

    ``data`` holds the detected values in the order the service reported
    them.  ``runtime`` is in milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    data: Any = Field(default_factory=tuple)
    failure: bool | None = None
    reason: str = ""
    runtime: float = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    metrics: tuple[EvalResultMetric, ...] = ()

    @property
    def detected_values(self) -> tuple[Any, ...]:
        """``data`` as a tuple of values (empty unless ``data`` is a list)."""
        if isinstance(self.data, (list, tuple)):
            return tuple(self.data)
        return ()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """Reduction of one batch of rule checks.

    Attributes
    ----------
    triggered_rule:
        The first rule, in original order, whose condition fired.
    failure_message:
        The triggered rule's action message.
    failure_reason:
        The service-provided reason, when the rule asked for one.
    completed_rules:
        Metrics whose check returned before the deadline.
    uncompleted_rules:
        Metrics whose check was rejected or outlived the deadline.
    """

    triggered_rule: str | None = None
    failure_message: str | None = None
    failure_reason: str | None = None
    completed_rules: tuple[str, ...] = field(default=())
    uncompleted_rules: tuple[str, ...] = field(default=())


class Verdict(BaseModel):
    """Final, immutable result of a single ``protect`` invocation."""

    model_config = ConfigDict(frozen=True)

    status: VerdictStatus
    completed_rules: tuple[str, ...] = ()
    uncompleted_rules: tuple[str, ...] = ()
    failed_rule: str | None = None
    messages: Any = None
    reasons: str | None = None
    time_taken: float = 0.0

    @property
    def passed(self) -> bool:
        return self.status is VerdictStatus.PASSED

    def to_dict(self) -> dict[str, Any]:
        """Render the verdict as a plain dict, omitting absent reasons."""
        data = self.model_dump(mode="json")
        data["completed_rules"] = list(self.completed_rules)
        data["uncompleted_rules"] = list(self.uncompleted_rules)
        if self.reasons is None:
            data.pop("reasons")
        return data
