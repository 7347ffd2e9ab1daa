"""Tests for rule validation.

Covers:

1. **Shape checks** -- empty lists, non-mapping rules, missing metric.
2. **Catalog checks** -- unknown metrics name the index and valid names.
3. **Single-valued metrics** -- ``contains`` / ``type`` rejected, defaults
   filled in.
4. **Multi-valued metrics** -- ``contains`` required, ``type`` validated.
5. **Defaults** -- action and reason flag resolution.
6. **Idempotence** -- normalized rules pass through unchanged.
"""
from __future__ import annotations

import pytest

from protect_guard.catalog.metrics import METRICS
from protect_guard.core.errors import (
    InvalidRuleOption,
    InvalidValueType,
    MissingRequiredKey,
    ValidationError,
)
from protect_guard.core.types import (
    FAILED_SENTINEL,
    MultiValuedRule,
    RuleType,
    SingleValuedRule,
)
from protect_guard.rules.validation import RuleValidator

ACTION = "Blocked by policy"


@pytest.fixture()
def validator() -> RuleValidator:
    return RuleValidator()


# ===================================================================
# 1. Shape checks
# ===================================================================

class TestRuleShape:
    """Rule lists and individual rules must have the right shape."""

    @pytest.mark.parametrize("rules", [None, []])
    def test_empty_rule_list_rejected(self, validator: RuleValidator, rules: list | None) -> None:
        """An empty or missing rule list is a validation error."""
        with pytest.raises(InvalidValueType, match="non-empty list"):
            validator.validate(rules, action=ACTION)

    def test_non_mapping_rule_rejected(self, validator: RuleValidator) -> None:
        """A rule that is not a mapping names its index."""
        with pytest.raises(InvalidValueType, match="Rule at index 1"):
            validator.validate([{"metric": "Toxicity"}, "Toxicity"], action=ACTION)

    def test_missing_metric_rejected(self, validator: RuleValidator) -> None:
        """A rule without ``metric`` raises MissingRequiredKey."""
        with pytest.raises(MissingRequiredKey) as exc_info:
            validator.validate([{"action": "x"}], action=ACTION)
        assert exc_info.value.key == "metric"
        assert "index 0" in str(exc_info.value)

    def test_mapping_instead_of_list_rejected(self, validator: RuleValidator) -> None:
        """A single rule mapping is not a rule list."""
        with pytest.raises(InvalidValueType):
            validator.validate({"metric": "Toxicity"}, action=ACTION)  # type: ignore[arg-type]

    def test_set_instead_of_list_rejected(self, validator: RuleValidator) -> None:
        """An unordered collection is not a rule list."""
        with pytest.raises(InvalidValueType, match="list of dictionaries"):
            validator.validate({"Toxicity"}, action=ACTION)  # type: ignore[arg-type]

    def test_errors_are_validation_errors(self, validator: RuleValidator) -> None:
        """Every rule error belongs to the ValidationError category."""
        with pytest.raises(ValidationError):
            validator.validate([{"metric": "Nope"}], action=ACTION)


# ===================================================================
# 2. Catalog checks
# ===================================================================

class TestCatalogChecks:
    """Metrics must exist in the catalog."""

    def test_unknown_metric_names_index_and_metric(self, validator: RuleValidator) -> None:
        """The error names the rule index and the invalid metric."""
        with pytest.raises(InvalidValueType) as exc_info:
            validator.validate([{"metric": "InvalidMetric"}], action=ACTION)
        message = str(exc_info.value)
        assert "metric in Rule at index 0" in message
        assert "'InvalidMetric'" in message
        assert "expected from one of" in message

    def test_unknown_metric_lists_valid_names(self, validator: RuleValidator) -> None:
        """The error lists every valid metric name."""
        with pytest.raises(InvalidValueType) as exc_info:
            validator.validate([{"metric": "toxicity"}], action=ACTION)
        for name in METRICS:
            assert name in str(exc_info.value)

    def test_non_string_metric_rejected(self, validator: RuleValidator) -> None:
        """A non-string metric is reported as invalid, not as a crash."""
        with pytest.raises(InvalidValueType):
            validator.validate([{"metric": ["Toxicity"]}], action=ACTION)

    def test_all_or_nothing(self, validator: RuleValidator) -> None:
        """A later invalid rule fails the whole list."""
        rules = [{"metric": "Toxicity"}, {"metric": "Sexism"}, {"metric": "Bogus"}]
        with pytest.raises(InvalidValueType, match="index 2"):
            validator.validate(rules, action=ACTION)


# ===================================================================
# 3. Single-valued metrics
# ===================================================================

class TestSingleValuedRules:
    """Pass/fail metrics get fixed trigger settings."""

    @pytest.mark.parametrize(
        "metric",
        ["Toxicity", "Sexism", "Prompt Injection", "Data Privacy", "Bias Detection"],
    )
    def test_defaults_filled(self, validator: RuleValidator, metric: str) -> None:
        """Omitting contains/type yields ["Failed"] / any."""
        [rule] = validator.validate([{"metric": metric}], action=ACTION)
        assert isinstance(rule, SingleValuedRule)
        assert rule.contains == (FAILED_SENTINEL,)
        assert rule.type is RuleType.ANY
        assert rule.remote_id == METRICS[metric].remote_id

    @pytest.mark.parametrize(
        ("option", "value"),
        [("contains", ["Failed"]), ("type", "any"), ("contains", [])],
    )
    def test_options_rejected(self, validator: RuleValidator, option: str, value: object) -> None:
        """Supplying contains or type is an error, not a silent ignore."""
        with pytest.raises(InvalidRuleOption) as exc_info:
            validator.validate([{"metric": "Toxicity", option: value}], action=ACTION)
        assert f"'{option}' should not be specified for Toxicity" in str(exc_info.value)
        assert exc_info.value.details["index"] == 0

    def test_data_privacy_extra_config(self, validator: RuleValidator) -> None:
        """Data Privacy rules carry check_internet=False."""
        [rule] = validator.validate([{"metric": "Data Privacy"}], action=ACTION)
        assert rule.extra_config == {"check_internet": False}


# ===================================================================
# 4. Multi-valued metrics
# ===================================================================

class TestMultiValuedRules:
    """Tone rules need an explicit trigger set."""

    def test_contains_required(self, validator: RuleValidator) -> None:
        """A Tone rule without contains raises MissingRequiredKey."""
        with pytest.raises(MissingRequiredKey) as exc_info:
            validator.validate([{"metric": "Tone"}], action=ACTION)
        assert exc_info.value.key == "contains"

    @pytest.mark.parametrize("contains", [[], "anger", {"anger": 1}, 3])
    def test_contains_must_be_non_empty_list(
        self, validator: RuleValidator, contains: object
    ) -> None:
        """contains must be a non-empty list."""
        with pytest.raises(InvalidValueType, match="non-empty list"):
            validator.validate([{"metric": "Tone", "contains": contains}], action=ACTION)

    def test_contains_values_must_be_strings(self, validator: RuleValidator) -> None:
        with pytest.raises(InvalidValueType, match="list of strings"):
            validator.validate([{"metric": "Tone", "contains": ["anger", 1]}], action=ACTION)

    def test_type_defaults_to_any(self, validator: RuleValidator) -> None:
        [rule] = validator.validate(
            [{"metric": "Tone", "contains": ["anger"]}], action=ACTION
        )
        assert isinstance(rule, MultiValuedRule)
        assert rule.type is RuleType.ANY
        assert rule.contains == ("anger",)

    def test_type_all_accepted(self, validator: RuleValidator) -> None:
        [rule] = validator.validate(
            [{"metric": "Tone", "contains": ["anger", "fear"], "type": "all"}],
            action=ACTION,
        )
        assert rule.type is RuleType.ALL

    @pytest.mark.parametrize("rule_type", ["some", "ALL", ["any"]])
    def test_invalid_type_rejected(self, validator: RuleValidator, rule_type: object) -> None:
        with pytest.raises(InvalidValueType, match="'type' in Tone rule at index 0"):
            validator.validate(
                [{"metric": "Tone", "contains": ["anger"], "type": rule_type}],
                action=ACTION,
            )


# ===================================================================
# 5. Defaults
# ===================================================================

class TestDefaults:
    """Action and reason flag resolution."""

    def test_global_action_used(self, validator: RuleValidator) -> None:
        [rule] = validator.validate([{"metric": "Toxicity"}], action=ACTION)
        assert rule.action == ACTION

    def test_rule_action_overrides_global(self, validator: RuleValidator) -> None:
        [rule] = validator.validate(
            [{"metric": "Toxicity", "action": "No toxic content"}], action=ACTION
        )
        assert rule.action == "No toxic content"

    def test_reason_flag_attached(self, validator: RuleValidator) -> None:
        rules = validator.validate(
            [{"metric": "Toxicity"}, {"metric": "Tone", "contains": ["anger"]}],
            action=ACTION,
            reason=True,
        )
        assert all(rule.reason_flag for rule in rules)

    def test_caller_rules_not_mutated(self, validator: RuleValidator) -> None:
        """Validation works on copies of the caller's rules."""
        rules = [{"metric": "Toxicity"}]
        validator.validate(rules, action=ACTION, reason=True)
        assert rules == [{"metric": "Toxicity"}]


# ===================================================================
# 6. Idempotence
# ===================================================================

class TestIdempotence:
    """Normalized rules can be validated again."""

    def test_revalidation_is_stable(self, validator: RuleValidator) -> None:
        raw = [
            {"metric": "Toxicity"},
            {"metric": "Tone", "contains": ["anger"], "type": "all"},
        ]
        first = validator.validate(raw, action=ACTION)
        second = validator.validate(first, action="ignored")
        assert second == first

    def test_revalidation_refreshes_reason_flag(self, validator: RuleValidator) -> None:
        first = validator.validate([{"metric": "Toxicity"}], action=ACTION)
        [again] = validator.validate(first, action=ACTION, reason=True)
        assert again.reason_flag is True
        assert again.action == ACTION
