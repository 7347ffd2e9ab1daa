"""Protection rule validation.

Normalizes a caller-supplied list of rule mappings against the metric
catalog.  Validation is all-or-nothing: the first invalid rule raises and
no normalized rules are returned, so no remote call is made for a rule
list that is only partly valid.

For each rule, in order:

1. It must be a mapping with a ``metric`` key.
2. The metric must exist in the catalog.
3. Multi-valued metrics require a non-empty ``contains`` list; ``type``
   must be ``any`` or ``all`` and defaults to ``any``.
4. Single-valued metrics reject ``contains`` and ``type``; they are fixed
   to ``["Failed"]`` / ``any``.
5. The reason flag and the resolved action (rule-level ``action`` over the
   global default) are attached.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from protect_guard.catalog.metrics import MetricInfo, lookup, metric_names
from protect_guard.core.errors import (
    InvalidRuleOption,
    InvalidValueType,
    MissingRequiredKey,
)
from protect_guard.core.types import (
    MultiValuedRule,
    NormalizedRule,
    RuleType,
    SingleValuedRule,
)

VALID_TYPES: frozenset[str] = frozenset(t.value for t in RuleType)

MetricLookup = Callable[[str], MetricInfo | None]


class RuleValidator:
    """Validates and normalizes protection rules.

    Parameters
    ----------
    catalog:
        Metric lookup function.  Defaults to the built-in catalog.
    valid_metrics:
        Metric names listed in error messages.  Defaults to the built-in
        catalog's names.
    """

    def __init__(
        self,
        catalog: MetricLookup = lookup,
        valid_metrics: Sequence[str] | None = None,
    ) -> None:
        self._lookup = catalog
        self._valid_metrics = list(valid_metrics) if valid_metrics is not None else metric_names()

    def validate(
        self,
        rules: Sequence[Mapping[str, Any] | NormalizedRule] | None,
        *,
        action: str,
        reason: bool = False,
    ) -> list[NormalizedRule]:
        """Return the normalized form of *rules*.

        Parameters
        ----------
        rules:
            Caller rules.  Already-normalized rules are accepted as-is
            (only the reason flag is refreshed).
        action:
            Message used for rules without their own ``action``.
        reason:
            Whether triggered rules should carry the service's reason.

        Raises
        ------
        InvalidValueType
            For an empty list, a non-mapping rule, an unknown metric, or a
            malformed ``contains`` / ``type``.
        MissingRequiredKey
            For a rule without ``metric`` or a multi-valued rule without
            ``contains``.
        InvalidRuleOption
            For ``contains`` / ``type`` on a single-valued metric.
        """
        if not rules:
            raise InvalidValueType("protect_rules", rules, "non-empty list")
        if isinstance(rules, (str, bytes, Mapping)) or not isinstance(rules, Sequence):
            raise InvalidValueType("protect_rules", rules, "list of dictionaries")

        return [
            self._validate_one(index, rule, action=action, reason=reason)
            for index, rule in enumerate(rules)
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate_one(
        self,
        index: int,
        rule: Any,
        *,
        action: str,
        reason: bool,
    ) -> NormalizedRule:
        if isinstance(rule, (SingleValuedRule, MultiValuedRule)):
            if rule.reason_flag == reason:
                return rule
            return rule.model_copy(update={"reason_flag": reason})

        if not isinstance(rule, Mapping):
            raise InvalidValueType(f"Rule at index {index}", rule, "dictionary")

        metric = rule.get("metric")
        if not metric:
            raise MissingRequiredKey(f"Rule at index {index}", "metric")

        info = self._lookup(metric) if isinstance(metric, str) else None
        if info is None:
            raise InvalidValueType(
                f"metric in Rule at index {index}",
                metric,
                f"one of {self._valid_metrics}",
            )

        rule_action = rule.get("action") or action
        common: dict[str, Any] = {
            "metric": info.name,
            "remote_id": info.remote_id,
            "action": rule_action,
            "reason_flag": reason,
            "extra_config": dict(info.extra_config),
        }

        if info.multi_valued:
            return MultiValuedRule(
                contains=self._validate_contains(index, info, rule),
                type=self._validate_type(index, info, rule),
                **common,
            )

        for option in ("contains", "type"):
            if rule.get(option) is not None:
                raise InvalidRuleOption(
                    f"'{option}' should not be specified for {info.name} metric "
                    f"at index {index}. Provide it only for multi-valued metrics "
                    f"such as 'Tone'.",
                    details={"index": index, "metric": info.name, "option": option},
                )
        return SingleValuedRule(**common)

    @staticmethod
    def _validate_contains(
        index: int, info: MetricInfo, rule: Mapping[str, Any]
    ) -> tuple[str, ...]:
        contains = rule.get("contains")
        if contains is None:
            raise MissingRequiredKey(
                f"Rule for {info.name} metric at index {index}", "contains"
            )
        if (
            isinstance(contains, (str, bytes, Mapping))
            or not isinstance(contains, Sequence)
            or len(contains) == 0
        ):
            raise InvalidValueType(
                f"'contains' in {info.name} rule at index {index}",
                contains,
                "non-empty list",
            )
        if not all(isinstance(value, str) for value in contains):
            raise InvalidValueType(
                f"'contains' in {info.name} rule at index {index}",
                contains,
                "list of strings",
            )
        return tuple(contains)

    @staticmethod
    def _validate_type(
        index: int, info: MetricInfo, rule: Mapping[str, Any]
    ) -> RuleType:
        rule_type = rule.get("type")
        if not rule_type:
            return RuleType.ANY
        if not isinstance(rule_type, str) or rule_type not in VALID_TYPES:
            raise InvalidValueType(
                f"'type' in {info.name} rule at index {index}",
                rule_type,
                f"one of {sorted(VALID_TYPES)}",
            )
        return RuleType(rule_type)
