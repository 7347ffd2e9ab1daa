"""Remote evaluation gateway over HTTP.

* **HTTPGateway** -- async ``httpx`` client implementing the
  :class:`~protect_guard.core.interfaces.EvaluationGateway` protocol.
* **Routes** -- service routes relative to the base URL.
* Response helpers -- :func:`parse_eval_results`, :func:`parse_eval_info`,
  :func:`raise_for_status`.
"""
from __future__ import annotations

from protect_guard.wire.http import HTTPGateway, Routes
from protect_guard.wire.responses import (
    decode_json,
    parse_eval_info,
    parse_eval_results,
    raise_for_status,
)

__all__ = [
    "HTTPGateway",
    "Routes",
    "decode_json",
    "parse_eval_info",
    "parse_eval_results",
    "raise_for_status",
]
