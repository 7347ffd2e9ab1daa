"""Tests for the core layer and the catalog.

Covers:

1. **Errors** -- codes, hierarchy, dict rendering, code lookup.
2. **Config** -- credential precedence, overrides, immutability.
3. **Payloads** -- build_payload shape for rules and flash checks.
4. **InMemoryGateway** -- recording, failures, protocol conformance.
5. **Catalog** -- metric table and template lookup.
"""
from __future__ import annotations

import pytest

from protect_guard.catalog.metrics import METRICS, PROTECT_FLASH_ID, lookup, metric_names
from protect_guard.catalog.templates import TEMPLATES, get_template
from protect_guard.core.config import DEFAULT_BASE_URL, ProtectConfig
from protect_guard.core.errors import (
    AuthenticationError,
    BadRequest,
    ConnectionFailure,
    InvalidAuth,
    InvalidValueType,
    MissingCredentials,
    MissingRequiredKey,
    ProtectError,
    RequestTimeout,
    TransportError,
    ValidationError,
    error_from_code,
)
from protect_guard.core.interfaces import EvaluationGateway, InMemoryGateway, build_payload
from protect_guard.core.types import EvaluationOutcome, ProtectInput

CREDENTIALS = {"FI_API_KEY": "env-key", "FI_SECRET_KEY": "env-secret"}


# ===================================================================
# 1. Errors
# ===================================================================

class TestErrors:
    """Error taxonomy."""

    def test_invalid_value_type_message(self) -> None:
        exc = InvalidValueType("inputs", 3, "string")
        assert str(exc) == "inputs with value 3 is of type int, but expected from string"
        assert exc.code == "PG-E100"
        assert isinstance(exc, ValidationError)

    def test_missing_required_key(self) -> None:
        exc = MissingRequiredKey("Rule at index 2", "metric")
        assert exc.key == "metric"
        assert "Rule at index 2 is missing required key 'metric'" in str(exc)

    def test_to_dict(self) -> None:
        exc = BadRequest("bad", details={"status_code": 400})
        payload = exc.to_dict()["error"]
        assert payload["code"] == "PG-E300"
        assert payload["message"] == "bad"
        assert payload["detail"] == {"status_code": 400}
        assert payload["resolution"]

    def test_default_message(self) -> None:
        assert str(ConnectionFailure()) == ConnectionFailure.message

    def test_invalid_auth_in_both_categories(self) -> None:
        exc = InvalidAuth()
        assert isinstance(exc, AuthenticationError)
        assert isinstance(exc, TransportError)
        assert exc.http_status == 403

    @pytest.mark.parametrize(
        ("code", "cls"),
        [("PG-E200", MissingCredentials), ("PG-E304", RequestTimeout), ("PG-E300", BadRequest)],
    )
    def test_error_from_code(self, code: str, cls: type[ProtectError]) -> None:
        exc = error_from_code(code, "custom")
        assert type(exc) is cls
        assert exc.message == "custom"

    def test_error_from_unknown_code(self) -> None:
        with pytest.raises(KeyError):
            error_from_code("PG-E999")

    def test_all_errors_share_base(self) -> None:
        for exc in (MissingCredentials(), RequestTimeout(), InvalidValueType("x", 1, "y")):
            assert isinstance(exc, ProtectError)


# ===================================================================
# 2. Config
# ===================================================================

class TestConfig:
    """Credential resolution."""

    def test_explicit_beats_environment(self) -> None:
        config = ProtectConfig.resolve("explicit", "secret", environ=CREDENTIALS)
        assert config.api_key.get_secret_value() == "explicit"
        assert config.secret_key.get_secret_value() == "secret"

    def test_environment_fallback(self) -> None:
        config = ProtectConfig.resolve(environ=CREDENTIALS)
        assert config.api_key.get_secret_value() == "env-key"
        assert config.base_url == DEFAULT_BASE_URL

    def test_base_url_from_environment(self) -> None:
        env = {**CREDENTIALS, "FI_BASE_URL": "https://custom.test/"}
        assert ProtectConfig.resolve(environ=env).base_url == "https://custom.test"

    @pytest.mark.parametrize(
        "env",
        [{}, {"FI_API_KEY": "k"}, {"FI_SECRET_KEY": "s"}, {"FI_API_KEY": "", "FI_SECRET_KEY": "s"}],
    )
    def test_missing_credentials(self, env: dict[str, str]) -> None:
        with pytest.raises(MissingCredentials, match="Protect initialization"):
            ProtectConfig.resolve(environ=env)

    def test_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FI_API_KEY", "process-key")
        monkeypatch.setenv("FI_SECRET_KEY", "process-secret")
        assert ProtectConfig.resolve().api_key.get_secret_value() == "process-key"

    def test_overrides(self) -> None:
        config = ProtectConfig.resolve(environ=CREDENTIALS, batch_size=3, default_timeout_ms=500)
        assert config.batch_size == 3
        assert config.default_timeout_ms == 500

    def test_defaults(self) -> None:
        config = ProtectConfig.resolve(environ=CREDENTIALS)
        assert config.batch_size == 5
        assert config.default_timeout_ms == 30_000

    def test_secrets_not_in_repr(self) -> None:
        config = ProtectConfig.resolve(environ=CREDENTIALS)
        assert "env-secret" not in repr(config)

    def test_frozen(self) -> None:
        config = ProtectConfig.resolve(environ=CREDENTIALS)
        with pytest.raises(Exception):
            config.batch_size = 10  # type: ignore[misc]

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(Exception):
            ProtectConfig.resolve(environ=CREDENTIALS, batch_size=0)


# ===================================================================
# 3. Payloads
# ===================================================================

class TestBuildPayload:
    """Wire payload construction."""

    def test_rule_payload(self) -> None:
        payload = build_payload("15", ProtectInput(input="hi"))
        assert payload == {
            "inputs": [{"input": "hi", "call_type": "protect"}],
            "config": {"15": {"call_type": "protect"}},
        }

    def test_extra_config_merged(self) -> None:
        payload = build_payload("22", ProtectInput(input="hi"), {"check_internet": False})
        assert payload["config"]["22"] == {"call_type": "protect", "check_internet": False}

    def test_flash_payload(self) -> None:
        payload = build_payload(PROTECT_FLASH_ID, ProtectInput(input="hi"), flash=True)
        assert payload["protect_flash"] is True
        assert PROTECT_FLASH_ID in payload["config"]


# ===================================================================
# 4. InMemoryGateway
# ===================================================================

class TestInMemoryGateway:
    """Test double behaviour."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryGateway(), EvaluationGateway)

    @pytest.mark.asyncio
    async def test_records_calls(self) -> None:
        outcome = EvaluationOutcome(data=["Passed"])
        gateway = InMemoryGateway({"15": outcome})

        assert await gateway.check("15", {"x": 1}, 100) is outcome
        assert await gateway.check("16", {}, 100) is None
        assert gateway.call_count == 2
        assert gateway.calls[0].payload == {"x": 1}

    @pytest.mark.asyncio
    async def test_failure(self) -> None:
        gateway = InMemoryGateway()
        gateway.set_failure("15", BadRequest())
        with pytest.raises(BadRequest):
            await gateway.check("15", {}, 100)
        assert gateway.call_count == 1


# ===================================================================
# 5. Catalog
# ===================================================================

class TestCatalog:
    """Metric table and templates."""

    def test_protect_metrics(self) -> None:
        assert metric_names() == [
            "Toxicity",
            "Tone",
            "Sexism",
            "Prompt Injection",
            "Data Privacy",
            "Bias Detection",
        ]

    def test_remote_ids(self) -> None:
        assert METRICS["Toxicity"].remote_id == "15"
        assert METRICS["Tone"].remote_id == "16"
        assert METRICS["Sexism"].remote_id == "17"
        assert METRICS["Prompt Injection"].remote_id == "18"
        assert METRICS["Data Privacy"].remote_id == "22"

    def test_only_tone_is_multi_valued(self) -> None:
        assert [name for name, info in METRICS.items() if info.multi_valued] == ["Tone"]

    def test_lookup_is_case_sensitive(self) -> None:
        assert lookup("Toxicity") is not None
        assert lookup("toxicity") is None

    def test_remote_ids_unique(self) -> None:
        ids = [info.remote_id for info in METRICS.values()]
        assert len(ids) == len(set(ids))

    def test_template_lookup_by_either_name(self) -> None:
        assert get_template("FactualAccuracy") is get_template("factual_accuracy")
        assert get_template("nope") is None

    def test_flash_id_not_a_rule_metric(self) -> None:
        assert PROTECT_FLASH_ID not in {info.remote_id for info in METRICS.values()}
        assert all(t.eval_id for t in TEMPLATES.values())
