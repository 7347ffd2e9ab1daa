"""Evaluation-service response handling.

This module provides:

* **parse_eval_results** -- flattens ``result[*].evaluations[*]`` into a
  list of :class:`EvaluationOutcome`.
* **parse_eval_info** -- extracts the template list from a catalogue
  response.
* **raise_for_status** -- maps HTTP error statuses onto the transport
  error hierarchy.

All helpers are *synchronous* and side-effect-free.
"""
from __future__ import annotations

import json
from typing import Any

import httpx
import pydantic

from protect_guard.core.errors import (
    BadRequest,
    InvalidAuth,
    MalformedResponse,
    ServerError,
)
from protect_guard.core.types import EvalResultMetric, EvaluationOutcome


def decode_json(response: httpx.Response) -> Any:
    """Return the decoded JSON body of *response*.

    Raises
    ------
    MalformedResponse
        If the body is not valid JSON.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError) as exc:
        raise MalformedResponse(
            f"Invalid JSON in HTTP response: {exc}",
            details={"status_code": response.status_code},
        ) from exc


def raise_for_status(response: httpx.Response) -> None:
    """Raise the transport error matching a non-2xx *response*."""
    if response.is_success:
        return
    status = response.status_code
    body = response.text
    if status == 400:
        raise BadRequest(
            "Evaluation failed with a 400 Bad Request. Please check your input "
            f"data and evaluation configuration. Response: {body}",
            details={"status_code": status},
        )
    if status == 403:
        raise InvalidAuth(details={"status_code": status})
    raise ServerError(
        f"Error in evaluation: {status}, response: {body}",
        details={"status_code": status},
    )


def _parse_metadata(raw: Any) -> dict[str, Any]:
    if not raw:
        return {}
    metadata = raw
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except json.JSONDecodeError:
            return {}
    if not isinstance(metadata, dict):
        return {}
    return {
        "usage": metadata.get("usage") or {},
        "cost": metadata.get("cost") or {},
        "explanation": metadata.get("explanation") or {},
    }


def _parse_evaluation(evaluation: dict[str, Any]) -> EvaluationOutcome:
    """Build one outcome from an evaluation record.

    Raises
    ------
    MalformedResponse
        If a field has a type the outcome model does not accept.
    """
    metrics = evaluation.get("metrics")
    try:
        return EvaluationOutcome(
            data=evaluation.get("data") or (),
            failure=evaluation.get("failure"),
            reason=evaluation.get("reason") or "",
            runtime=evaluation.get("runtime") or 0,
            metadata=_parse_metadata(evaluation.get("metadata")),
            metrics=tuple(
                EvalResultMetric(id=m.get("id"), value=m.get("value"))
                for m in metrics
                if isinstance(m, dict) and m.get("id") is not None
            ) if isinstance(metrics, list) else (),
        )
    except pydantic.ValidationError as exc:
        raise MalformedResponse(
            f"Invalid evaluation record in response: {exc.error_count()} field error(s)",
            details={"errors": [".".join(map(str, e["loc"])) for e in exc.errors()]},
        ) from exc


def parse_eval_results(data: Any) -> list[EvaluationOutcome]:
    """Flatten an evaluation response body into outcomes.

    Unknown or missing sections are skipped rather than rejected; an
    empty list means the service returned no usable result.

    Raises
    ------
    MalformedResponse
        If an evaluation record has wrongly typed fields.
    """
    outcomes: list[EvaluationOutcome] = []
    if not isinstance(data, dict):
        return outcomes
    results = data.get("result")
    if not isinstance(results, list):
        return outcomes
    for result in results:
        if not isinstance(result, dict):
            continue
        evaluations = result.get("evaluations")
        if not isinstance(evaluations, list):
            continue
        outcomes.extend(
            _parse_evaluation(evaluation)
            for evaluation in evaluations
            if isinstance(evaluation, dict)
        )
    return outcomes


def parse_eval_info(data: Any) -> list[dict[str, Any]]:
    """Return the template records of a catalogue response.

    Raises
    ------
    MalformedResponse
        If the body has no ``result`` list.
    """
    result = data.get("result") if isinstance(data, dict) else None
    if not isinstance(result, list):
        raise MalformedResponse(f"Failed to get evaluation info: {data!r}")
    return [item for item in result if isinstance(item, dict)]
