"""Protect metric catalog.

Maps the human-readable metric names accepted in protection rules to the
remote evaluation template that performs the check.  The table is built
once at import time and is read-only afterwards.

Only ``Tone`` is multi-valued: its check reports one or more labels and
rules must say which labels trigger.  Every other metric reports a
pass/fail outcome and triggers on ``Failed``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from protect_guard.catalog.templates import TEMPLATES, EvalTemplate

PROTECT_FLASH_ID: str = "76"
"""Evaluation identifier of the binary harmful / not-harmful check."""

PROTECT_FLASH_RULE: str = "ProtectFlash"
"""Rule name reported for flash-mode checks."""


@dataclass(frozen=True, slots=True)
class MetricInfo:
    """Catalog entry for one protect metric.

    Attributes
    ----------
    name:
        Metric name as written in rules, e.g. ``"Prompt Injection"``.
    template:
        Remote evaluation template performing the check.
    multi_valued:
        ``True`` if rules on this metric need a ``contains`` set.
    extra_config:
        Metric-specific options sent alongside ``call_type``.
    """

    name: str
    template: EvalTemplate
    multi_valued: bool = False
    extra_config: MappingProxyType[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def remote_id(self) -> str:
        return self.template.eval_id


def _build_metrics() -> dict[str, MetricInfo]:
    entries = [
        MetricInfo("Toxicity", TEMPLATES["Toxicity"]),
        MetricInfo("Tone", TEMPLATES["Tone"], multi_valued=True),
        MetricInfo("Sexism", TEMPLATES["Sexist"]),
        MetricInfo("Prompt Injection", TEMPLATES["PromptInjection"]),
        MetricInfo(
            "Data Privacy",
            TEMPLATES["DataPrivacyCompliance"],
            extra_config=MappingProxyType({"check_internet": False}),
        ),
        MetricInfo("Bias Detection", TEMPLATES["BiasDetection"]),
    ]
    return {entry.name: entry for entry in entries}


METRICS: MappingProxyType[str, MetricInfo] = MappingProxyType(_build_metrics())


def lookup(metric_name: str) -> MetricInfo | None:
    """Return the catalog entry for *metric_name*, or ``None`` if unknown."""
    return METRICS.get(metric_name)


def metric_names() -> list[str]:
    """Return all metric names in catalog order."""
    return list(METRICS)
