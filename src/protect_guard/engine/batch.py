"""Concurrent execution of one batch of rule checks.

Every rule in a batch is checked concurrently against the evaluation
gateway, and the whole batch races a single deadline:

* **Deadline first** -- every rule of the batch is reported uncompleted
  and no trigger is reported.  Checks still in flight are cancelled
  locally; their results, if any, are never observed.
* **Checks first** -- outcomes are reduced in the original rule order, so
  the batch's triggered rule is the lowest-index rule that fired no
  matter in which order the responses arrived.

A check that raises is logged and left out of ``completed_rules``; it is
not retried.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from protect_guard.core.errors import ProtectError
from protect_guard.core.interfaces import EvaluationGateway, build_payload
from protect_guard.core.types import (
    BatchOutcome,
    EvaluationOutcome,
    NormalizedRule,
    ProtectInput,
)

logger = logging.getLogger(__name__)


def evaluate_trigger(rule: NormalizedRule, outcome: EvaluationOutcome | None) -> bool:
    """Return ``True`` if *outcome* fires *rule*.

    ``any`` rules fire when at least one detected value is in ``contains``;
    ``all`` rules fire only when every ``contains`` value was detected.
    A missing outcome never fires.
    """
    if outcome is None:
        return False
    return rule.triggers(outcome.detected_values)


def _dedupe(names: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


class BatchExecutor:
    """Runs a group of rule checks against a gateway under one deadline.

    Parameters
    ----------
    gateway:
        The evaluation gateway every check is sent to.
    """

    def __init__(self, gateway: EvaluationGateway) -> None:
        self._gateway = gateway

    async def run(
        self,
        rules: Sequence[NormalizedRule],
        record: ProtectInput,
        remaining_seconds: float,
    ) -> BatchOutcome:
        """Check *record* against every rule in *rules*.

        Parameters
        ----------
        rules:
            Normalized rules of this batch, in original order.
        record:
            The input record under test.
        remaining_seconds:
            Time left in the caller's budget.  Used both as the deadline
            of the batch and as the timeout of each check.

        Returns
        -------
        BatchOutcome
            The reduced result of the batch.
        """
        if not rules:
            return BatchOutcome()

        timeout_ms = max(0.0, remaining_seconds * 1000)
        tasks = [
            asyncio.create_task(
                self._check(rule, record, timeout_ms),
                name=f"protect-check:{rule.metric}",
            )
            for rule in rules
        ]

        _done, pending = await asyncio.wait(tasks, timeout=max(0.0, remaining_seconds))

        if pending:
            for task in pending:
                task.cancel()
            # Reap the cancelled tasks so none outlives the batch.
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.debug(
                "Batch deadline of %.3fs expired with %d of %d checks pending",
                remaining_seconds,
                len(pending),
                len(tasks),
            )
            return BatchOutcome(uncompleted_rules=_dedupe([r.metric for r in rules]))

        return self._reduce(rules, tasks)

    async def _check(
        self,
        rule: NormalizedRule,
        record: ProtectInput,
        timeout_ms: float,
    ) -> EvaluationOutcome | None:
        payload = build_payload(rule.remote_id, record, rule.extra_config)
        return await self._gateway.check(rule.remote_id, payload, timeout_ms)

    @staticmethod
    def _reduce(
        rules: Sequence[NormalizedRule],
        tasks: Sequence[asyncio.Task[EvaluationOutcome | None]],
    ) -> BatchOutcome:
        completed: list[str] = []
        triggered: NormalizedRule | None = None
        reason: str | None = None

        for rule, task in zip(rules, tasks, strict=True):
            exc = task.exception()
            if exc is not None:
                if isinstance(exc, ProtectError):
                    logger.warning("Rule %s failed with error: %s", rule.metric, exc)
                else:
                    logger.error(
                        "Rule %s failed with unexpected error",
                        rule.metric,
                        exc_info=exc,
                    )
                continue

            outcome = task.result()
            completed.append(rule.metric)
            if triggered is None and evaluate_trigger(rule, outcome):
                triggered = rule
                if rule.reason_flag and outcome is not None and outcome.reason:
                    reason = outcome.reason

        completed_rules = _dedupe(completed)
        uncompleted_rules = _dedupe(
            [r.metric for r in rules if r.metric not in completed_rules]
        )
        return BatchOutcome(
            triggered_rule=triggered.metric if triggered is not None else None,
            failure_message=triggered.action if triggered is not None else None,
            failure_reason=reason,
            completed_rules=completed_rules,
            uncompleted_rules=uncompleted_rules,
        )
