"""protect-guard abstract interfaces and in-memory implementations.

This module defines the *structural* interface (``typing.Protocol``) of
the remote evaluation gateway consumed by the protection engine, plus a
lightweight in-memory implementation suitable for testing and local
development.

The Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from protect_guard.core.errors import ConnectionFailure, TransportError
from protect_guard.core.types import (
    CALL_TYPE_PROTECT,
    EvaluationOutcome,
    ProtectInput,
)

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class EvaluationGateway(Protocol):
    """Performs one remote evaluation check.

    Implementations MUST be safe to call concurrently; the batch executor
    fans out several checks at once against a single gateway.
    """

    async def check(
        self,
        remote_id: str,
        payload: dict[str, Any],
        timeout_ms: float,
    ) -> EvaluationOutcome | None:
        """Evaluate *payload* with the metric identified by *remote_id*.

        Returns ``None`` if the service answered without a usable result.

        Raises
        ------
        protect_guard.core.errors.TransportError
            If the call failed (network, authentication, server error).
        """
        ...


# ===================================================================
# Payload construction
# ===================================================================

def build_payload(
    remote_id: str,
    record: ProtectInput,
    config: Mapping[str, Any] | None = None,
    *,
    flash: bool = False,
) -> dict[str, Any]:
    """Build the request body for a single protect check.

    Parameters
    ----------
    remote_id:
        The evaluation identifier the body is addressed to.
    record:
        The input record under test.
    config:
        Metric-specific options merged into the per-metric config.
    flash:
        Mark the request as a ProtectFlash call.
    """
    metric_config: dict[str, Any] = {"call_type": CALL_TYPE_PROTECT}
    if config:
        metric_config.update(config)
    payload: dict[str, Any] = {
        "inputs": [record.model_dump()],
        "config": {remote_id: metric_config},
    }
    if flash:
        payload["protect_flash"] = True
    return payload


# ===================================================================
# In-memory implementations (testing / development)
# ===================================================================

@dataclass(frozen=True, slots=True)
class RecordedCall:
    """One call observed by :class:`InMemoryGateway`."""

    remote_id: str
    payload: dict[str, Any]
    timeout_ms: float


class InMemoryGateway:
    """Scripted evaluation gateway for testing and development.

    Outcomes are registered per remote id.  Latency and failures can be
    injected per remote id to exercise deadline and rejection paths.
    This implementation is NOT suitable for production use.
    """

    def __init__(
        self,
        outcomes: Mapping[str, EvaluationOutcome | None] | None = None,
        *,
        default: EvaluationOutcome | None = None,
    ) -> None:
        self._outcomes: dict[str, EvaluationOutcome | None] = dict(outcomes or {})
        self._default = default
        self._delays: dict[str, float] = {}
        self._failures: dict[str, TransportError] = {}
        self.calls: list[RecordedCall] = []

    # -- scripting helpers (not part of the Protocol) ------------------

    def set_outcome(self, remote_id: str, outcome: EvaluationOutcome | None) -> None:
        """Register the outcome returned for *remote_id*."""
        self._outcomes[remote_id] = outcome

    def set_delay(self, remote_id: str, seconds: float) -> None:
        """Delay every check against *remote_id* by *seconds*."""
        self._delays[remote_id] = seconds

    def set_failure(
        self,
        remote_id: str,
        error: TransportError | None = None,
    ) -> None:
        """Make every check against *remote_id* raise *error*."""
        self._failures[remote_id] = error or ConnectionFailure(
            f"Simulated failure for evaluation {remote_id}"
        )

    @property
    def call_count(self) -> int:
        return len(self.calls)

    # -- Protocol implementation ---------------------------------------

    async def check(
        self,
        remote_id: str,
        payload: dict[str, Any],
        timeout_ms: float,
    ) -> EvaluationOutcome | None:
        self.calls.append(RecordedCall(remote_id, payload, timeout_ms))
        delay = self._delays.get(remote_id, 0.0)
        if delay:
            await asyncio.sleep(delay)
        else:
            # Yield so concurrent checks interleave as they would over I/O.
            await asyncio.sleep(0)
        if remote_id in self._failures:
            raise self._failures[remote_id]
        return self._outcomes.get(remote_id, self._default)
