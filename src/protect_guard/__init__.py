"""protect-guard -- client-side content-safety guard.

Screens text against configurable content-safety rules (toxicity, tone,
sexism, prompt injection, data privacy, bias) backed by a remote
evaluation service, under a caller-supplied time budget.

Layers
------
* Core types, errors, config, interfaces (:mod:`protect_guard.core`)
* Rule catalog (:mod:`protect_guard.catalog`)
* Rule validation (:mod:`protect_guard.rules`)
* Batch execution (:mod:`protect_guard.engine`)
* HTTP gateway (:mod:`protect_guard.wire`)
* Orchestrator (:mod:`protect_guard.protector`)
"""
from __future__ import annotations

__version__ = "0.1.0"

from protect_guard.catalog import (
    METRICS,
    PROTECT_FLASH_ID,
    PROTECT_FLASH_RULE,
    TEMPLATES,
    EvalInfoCache,
    EvalTemplate,
    MetricInfo,
    get_template,
    lookup,
    metric_names,
)
from protect_guard.core.config import DEFAULT_ACTION, ProtectConfig
from protect_guard.core.errors import (
    AuthenticationError,
    BadRequest,
    ConnectionFailure,
    EvalTemplateNotFound,
    EvaluationError,
    InvalidAuth,
    InvalidRuleOption,
    InvalidValueType,
    MalformedResponse,
    MissingCredentials,
    MissingRequiredKey,
    ProtectError,
    RequestTimeout,
    ServerError,
    TransportError,
    ValidationError,
    error_from_code,
)
from protect_guard.core.interfaces import (
    EvaluationGateway,
    InMemoryGateway,
    build_payload,
)
from protect_guard.core.types import (
    BatchOutcome,
    EvalResultMetric,
    EvaluationOutcome,
    MultiValuedRule,
    NormalizedRule,
    ProtectInput,
    RuleSpec,
    RuleType,
    SingleValuedRule,
    Verdict,
    VerdictStatus,
)
from protect_guard.engine import BatchExecutor, evaluate_trigger
from protect_guard.protector import Protector, protect
from protect_guard.rules import RuleValidator
from protect_guard.wire import HTTPGateway, Routes

__all__ = [
    "__version__",
    # Catalog
    "METRICS",
    "PROTECT_FLASH_ID",
    "PROTECT_FLASH_RULE",
    "TEMPLATES",
    "EvalInfoCache",
    "EvalTemplate",
    "MetricInfo",
    "get_template",
    "lookup",
    "metric_names",
    # Config
    "DEFAULT_ACTION",
    "ProtectConfig",
    # Errors
    "ProtectError",
    "ValidationError",
    "AuthenticationError",
    "TransportError",
    "EvaluationError",
    "InvalidValueType",
    "MissingRequiredKey",
    "InvalidRuleOption",
    "MissingCredentials",
    "InvalidAuth",
    "BadRequest",
    "ServerError",
    "MalformedResponse",
    "ConnectionFailure",
    "RequestTimeout",
    "EvalTemplateNotFound",
    "error_from_code",
    # Interfaces
    "EvaluationGateway",
    "InMemoryGateway",
    "build_payload",
    # Types
    "BatchOutcome",
    "EvalResultMetric",
    "EvaluationOutcome",
    "MultiValuedRule",
    "NormalizedRule",
    "ProtectInput",
    "RuleSpec",
    "RuleType",
    "SingleValuedRule",
    "Verdict",
    "VerdictStatus",
    # Engine
    "BatchExecutor",
    "RuleValidator",
    "evaluate_trigger",
    # Wire
    "HTTPGateway",
    "Routes",
    # Orchestrator
    "Protector",
    "protect",
]
