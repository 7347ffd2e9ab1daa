"""protect-guard error-code hierarchy.

Hierarchy
---------
::

    ProtectError
    +-- ValidationError       (PG-E1xx)
    +-- AuthenticationError   (PG-E2xx)
    +-- TransportError        (PG-E3xx)
    +-- EvaluationError       (PG-E4xx)

Usage
-----
Raise concrete subclasses directly::

    raise MissingRequiredKey("Rule at index 0", "metric")

Catch by category::

    try:
        ...
    except TransportError:
        # handles BadRequest, ServerError, RequestTimeout, etc.
        ...

Validation errors are raised before any remote call is made.  Transport
errors are raised by gateways and absorbed by the batch executor; they
only reach the caller from the general-evaluation helpers.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class ProtectError(Exception):
    """Base exception for all protect-guard errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"PG-E100"``.
    http_status : int
        HTTP status code associated with this error.
    message : str
        Human-readable description.
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "PG-E000"
    http_status: int = 500
    message: str = "Unknown protect-guard error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a JSON-compatible mapping."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class ValidationError(ProtectError):
    """PG-E1xx -- Malformed caller input (inputs, rules, options)."""

    code = "PG-E1XX"
    http_status = 400


class AuthenticationError(ProtectError):
    """PG-E2xx -- Credential resolution and authentication errors."""

    code = "PG-E2XX"
    http_status = 401


class TransportError(ProtectError):
    """PG-E3xx -- A remote evaluation call failed."""

    code = "PG-E3XX"
    http_status = 502


class EvaluationError(ProtectError):
    """PG-E4xx -- The evaluation service could not satisfy a lookup."""

    code = "PG-E4XX"
    http_status = 404


# ===================================================================
# PG-E1xx  Validation Errors
# ===================================================================

def _type_name(value: Any) -> str:
    if value is None:
        return "NoneType"
    return type(value).__name__


class InvalidValueType(ValidationError):
    """PG-E100 -- A value has the wrong type or an unacceptable value."""

    code = "PG-E100"
    http_status = 400
    message = "Invalid value"
    resolution = "Check the value against the expected type and retry."

    def __init__(self, name: str, value: Any, expected: str) -> None:
        self.name = name
        self.value = value
        self.expected = expected
        super().__init__(
            f"{name} with value {value!r} is of type {_type_name(value)}, "
            f"but expected from {expected}",
            details={"name": name, "expected": expected},
        )


class MissingRequiredKey(ValidationError):
    """PG-E101 -- A required key is absent from a mapping."""

    code = "PG-E101"
    http_status = 400
    message = "Missing required key"
    resolution = "Add the missing key and retry."

    def __init__(self, name: str, key: str) -> None:
        self.name = name
        self.key = key
        super().__init__(
            f"{name} is missing required key '{key}'",
            details={"name": name, "key": key},
        )


class InvalidRuleOption(ValidationError):
    """PG-E102 -- An option was given for a metric that does not accept it."""

    code = "PG-E102"
    http_status = 400
    message = "Option is not valid for this metric"
    resolution = (
        "Only multi-valued metrics such as 'Tone' accept 'contains' and 'type'."
    )


# ===================================================================
# PG-E2xx  Authentication Errors
# ===================================================================

class MissingCredentials(AuthenticationError):
    """PG-E200 -- No API key / secret key could be resolved."""

    code = "PG-E200"
    http_status = 401
    message = "API key or secret key is missing"
    resolution = (
        "Pass api_key and secret_key explicitly or set the FI_API_KEY and "
        "FI_SECRET_KEY environment variables."
    )


class InvalidAuth(AuthenticationError, TransportError):
    """PG-E201 -- The evaluation service rejected the credentials."""

    code = "PG-E201"
    http_status = 403
    message = "Invalid API key or secret key"
    resolution = "Verify the credentials are correct and active."


# ===================================================================
# PG-E3xx  Transport Errors
# ===================================================================

class BadRequest(TransportError):
    """PG-E300 -- The service answered 400 Bad Request."""

    code = "PG-E300"
    http_status = 400
    message = (
        "Evaluation failed with a 400 Bad Request. Please check your input "
        "data and evaluation configuration"
    )
    resolution = "Check the input data and evaluation configuration."


class ServerError(TransportError):
    """PG-E301 -- The service answered with an unexpected status."""

    code = "PG-E301"
    http_status = 502
    message = "Error in evaluation"
    resolution = "Retry after a delay. Check the status of the evaluation service."


class MalformedResponse(TransportError):
    """PG-E302 -- The response body could not be decoded."""

    code = "PG-E302"
    http_status = 502
    message = "Malformed response from the evaluation service"
    resolution = "This is a service-side problem. Retry after a delay."


class ConnectionFailure(TransportError):
    """PG-E303 -- The service could not be reached."""

    code = "PG-E303"
    http_status = 503
    message = "Evaluation service is unreachable"
    resolution = "Check network connectivity and the configured base URL."


class RequestTimeout(TransportError):
    """PG-E304 -- The remote call exceeded its timeout."""

    code = "PG-E304"
    http_status = 504
    message = "Evaluation request timed out"
    resolution = "Increase the timeout or reduce the number of rules."


# ===================================================================
# PG-E4xx  Evaluation Errors
# ===================================================================

class EvalTemplateNotFound(EvaluationError):
    """PG-E400 -- No evaluation template with the requested name exists."""

    code = "PG-E400"
    http_status = 404
    message = "Evaluation template not found"
    resolution = "Use list_evaluations() to see the available templates."


# ---------------------------------------------------------------------------
# Lookup helper
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[ProtectError]] = {
    cls.code: cls
    for cls in [
        # E2xx
        MissingCredentials,
        InvalidAuth,
        # E3xx
        BadRequest,
        ServerError,
        MalformedResponse,
        ConnectionFailure,
        RequestTimeout,
        # E4xx
        EvalTemplateNotFound,
        # E102 is the only validation error with the plain signature
        InvalidRuleOption,
    ]
}


def error_from_code(code: str, message: str | None = None) -> ProtectError:
    """Instantiate the exception class registered for *code*.

    Validation errors that take structured constructor arguments
    (``PG-E100``, ``PG-E101``) are not reconstructible and are absent
    from the map.

    Raises
    ------
    KeyError
        If *code* is not a recognised error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()
