"""Rule catalog.

This subpackage holds the static lookup tables used by the protection
engine:

* **METRICS** / **lookup** -- protect metric name -> remote evaluation
  identifier and multi-valued flag.
* **TEMPLATES** / **get_template** -- every remote evaluation template
  known to the service.
* **EvalInfoCache** -- read-through, single-flight cache of template
  information fetched from the service.
"""
from __future__ import annotations

from protect_guard.catalog.info import EvalInfoCache
from protect_guard.catalog.metrics import (
    METRICS,
    PROTECT_FLASH_ID,
    PROTECT_FLASH_RULE,
    MetricInfo,
    lookup,
    metric_names,
)
from protect_guard.catalog.templates import TEMPLATES, EvalTemplate, get_template

__all__ = [
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
]
