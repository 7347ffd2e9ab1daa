"""HTTP binding of the evaluation gateway.

This module implements :class:`HTTPGateway`, an async ``httpx`` client
for the remote evaluation service.  It satisfies the
:class:`~protect_guard.core.interfaces.EvaluationGateway` protocol used
by the protection engine and additionally exposes general evaluations
and the template catalogue.

There are no retries: a failed call surfaces as a
:class:`~protect_guard.core.errors.TransportError` subclass and the
caller decides what to do with it.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from protect_guard.catalog.info import EvalInfoCache
from protect_guard.catalog.templates import EvalTemplate
from protect_guard.core.config import ProtectConfig
from protect_guard.core.errors import (
    ConnectionFailure,
    InvalidValueType,
    RequestTimeout,
)
from protect_guard.core.types import EvaluationOutcome
from protect_guard.wire.responses import (
    decode_json,
    parse_eval_info,
    parse_eval_results,
    raise_for_status,
)

logger = logging.getLogger(__name__)


class Routes:
    """Service routes, relative to the configured base URL."""

    EVALUATE = "sdk/api/v1/eval/"
    EVALUATE_V2 = "sdk/api/v1/new-eval/"
    GET_EVAL_TEMPLATES = "sdk/api/v1/get-evals/"


class HTTPGateway:
    """HTTP client for the remote evaluation service.

    Parameters
    ----------
    config:
        Resolved client configuration (credentials, base URL, timeouts).
    client:
        Optional shared ``httpx.AsyncClient``.  When omitted, a client is
        opened per request.  A supplied client is never closed by the
        gateway.
    """

    def __init__(
        self,
        config: ProtectConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._client = client
        self._info_cache = EvalInfoCache(self.list_evaluations)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def info_cache(self) -> EvalInfoCache:
        return self._info_cache

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Api-Key": self._config.api_key.get_secret_value(),
            "X-Secret-Key": self._config.secret_key.get_secret_value(),
        }

    async def _request(
        self,
        method: str,
        route: str,
        *,
        json: Any = None,
        timeout: float | None = None,
    ) -> Any:
        url = f"{self._base_url}/{route}"
        headers = self._build_headers()
        timeout = self._config.request_timeout_seconds if timeout is None else timeout

        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, json=json, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.request(
                        method, url, json=json, headers=headers
                    )
        except httpx.TimeoutException as exc:
            raise RequestTimeout(
                f"Request to {route} timed out after {timeout:.3f}s",
                details={"route": route},
            ) from exc
        except httpx.TransportError as exc:
            raise ConnectionFailure(
                f"Request to {route} failed: {exc}",
                details={"route": route},
            ) from exc

        raise_for_status(response)
        return decode_json(response)

    # ------------------------------------------------------------------
    # EvaluationGateway protocol
    # ------------------------------------------------------------------

    async def check(
        self,
        remote_id: str,
        payload: dict[str, Any],
        timeout_ms: float,
    ) -> EvaluationOutcome | None:
        """Run one protect check and return its first outcome, if any."""
        data = await self._request(
            "POST",
            Routes.EVALUATE,
            json=payload,
            timeout=max(0.0, timeout_ms) / 1000,
        )
        outcomes = parse_eval_results(data)
        if not outcomes:
            logger.debug("Evaluation %s returned no results", remote_id)
            return None
        return outcomes[0]

    # ------------------------------------------------------------------
    # General evaluations and catalogue
    # ------------------------------------------------------------------

    async def evaluate(
        self,
        eval_template: str | EvalTemplate,
        inputs: Mapping[str, str | Sequence[str]],
        *,
        model_name: str,
        timeout: float | None = None,
    ) -> list[EvaluationOutcome]:
        """Run a general evaluation.

        Parameters
        ----------
        eval_template:
            Evaluation name (``"factual_accuracy"``) or template.
        inputs:
            Mapping of input key to a string or a list of strings.  Single
            strings are sent as one-element lists.
        model_name:
            Model the evaluation runs on.  Required.
        timeout:
            Request timeout in seconds; defaults to
            ``config.request_timeout_seconds``.

        Raises
        ------
        InvalidValueType
            For an empty model name, an unsupported template argument or
            malformed inputs.
        TransportError
            If the request fails.
        """
        if not isinstance(model_name, str) or not model_name.strip():
            raise InvalidValueType("model_name", model_name, "non-empty string")

        if isinstance(eval_template, EvalTemplate):
            eval_name = eval_template.eval_name
        elif isinstance(eval_template, str) and eval_template:
            eval_name = eval_template
        else:
            raise InvalidValueType(
                "eval_templates", eval_template, "eval template or name str"
            )

        payload = {
            "eval_name": eval_name,
            "inputs": _normalize_inputs(inputs),
            "model": model_name,
            "trace_eval": False,
        }
        data = await self._request(
            "POST", Routes.EVALUATE_V2, json=payload, timeout=timeout
        )
        return parse_eval_results(data)

    async def list_evaluations(self) -> list[dict[str, Any]]:
        """Return information about every evaluation template."""
        data = await self._request("GET", Routes.GET_EVAL_TEMPLATES)
        return parse_eval_info(data)

    async def get_eval_info(self, eval_name: str) -> dict[str, Any]:
        """Return information about one template, through the cache."""
        return await self._info_cache.get(eval_name)


def _normalize_inputs(
    inputs: Mapping[str, str | Sequence[str]],
) -> dict[str, list[str]]:
    if not isinstance(inputs, Mapping):
        raise InvalidValueType("inputs", inputs, "dictionary")

    normalized: dict[str, list[str]] = {}
    for key, value in inputs.items():
        if isinstance(value, str):
            normalized[key] = [value]
        elif isinstance(value, Sequence) and all(isinstance(v, str) for v in value):
            normalized[key] = list(value)
        else:
            raise InvalidValueType(f"inputs[{key!r}]", value, "string or list of strings")
    return normalized
