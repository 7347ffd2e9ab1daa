"""protect-guard Protector -- the main orchestrator.

This module implements the :class:`Protector` class, the primary entry
point of the package.  It validates caller input, runs the configured
rules against the evaluation gateway in fixed-size batches under a single
shrinking time budget, and assembles exactly one :class:`Verdict` per
call.

Pipeline (standard mode)
------------------------

1. **Validate inputs** -- a non-empty string, or a list of them.
2. **Validate rules** -- :class:`RuleValidator`, all-or-nothing.
3. **Batch loop** -- for every input text, for every batch of rules:
   recompute the remaining budget, stop if it is spent, run the batch,
   merge completed/uncompleted rules, stop at the first trigger.
4. **Assemble** the verdict.

Flash mode replaces steps 2-3 with a single binary harmful/not-harmful
check.

Running out of time is *not* a failure: rules that could not be checked
are reported in ``uncompleted_rules`` and the verdict still passes unless
a rule triggered before the budget ran out.

Usage
-----
::

    from protect_guard.core.config import ProtectConfig
    from protect_guard.protector import Protector

    protector = Protector(config=ProtectConfig.resolve())
    verdict = await protector.protect(
        "user text",
        [{"metric": "Toxicity"}, {"metric": "Tone", "contains": ["anger"]}],
        reason=True,
        timeout=10_000,
    )
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from protect_guard.catalog.metrics import PROTECT_FLASH_ID, PROTECT_FLASH_RULE
from protect_guard.core.config import DEFAULT_ACTION, ProtectConfig
from protect_guard.core.errors import InvalidValueType, TransportError
from protect_guard.core.interfaces import build_payload
from protect_guard.core.types import (
    MultiValuedRule,
    NormalizedRule,
    ProtectInput,
    SingleValuedRule,
    Verdict,
    VerdictStatus,
)
from protect_guard.engine.batch import BatchExecutor
from protect_guard.rules.validation import RuleValidator
from protect_guard.wire.http import HTTPGateway

if TYPE_CHECKING:
    from protect_guard.core.interfaces import EvaluationGateway

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_BATCH_SIZE = 5

REASON_TRIGGERED = "A protection rule was triggered."
REASON_PASSED = "All checks passed"
REASON_FLASH_HARMFUL = "Content detected as harmful."
REASON_FLASH_NO_RESULT = "No evaluation results returned"
MESSAGE_FLASH_FAILED = "Evaluation failed"


def _dedupe(names: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


class Protector:
    """Screens text against content-safety rules under a time budget.

    Parameters
    ----------
    gateway:
        Evaluation gateway performing the remote checks.  When ``None``,
        an :class:`HTTPGateway` is built from *config*.
    config:
        Client configuration.  When ``None`` and no gateway is given, it
        is resolved from the environment via
        :meth:`ProtectConfig.resolve`.
    validator:
        Rule validator; defaults to one backed by the built-in catalog.
    clock:
        Monotonic clock in seconds, used for budget arithmetic.

    Raises
    ------
    protect_guard.core.errors.MissingCredentials
        If a gateway has to be built and no credentials can be resolved.
    """

    def __init__(
        self,
        gateway: EvaluationGateway | None = None,
        *,
        config: ProtectConfig | None = None,
        validator: RuleValidator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if gateway is None:
            config = config or ProtectConfig.resolve()
            gateway = HTTPGateway(config)

        self._config = config
        self._gateway = gateway
        self._validator = validator or RuleValidator()
        self._executor = BatchExecutor(gateway)
        self._clock = clock

        if config is not None:
            self._batch_size = config.batch_size
            self._default_action = config.default_action
            self._default_timeout_ms = config.default_timeout_ms
        else:
            self._batch_size = DEFAULT_BATCH_SIZE
            self._default_action = DEFAULT_ACTION
            self._default_timeout_ms = DEFAULT_TIMEOUT_MS

    # ------------------------------------------------------------------
    # Properties for introspection
    # ------------------------------------------------------------------

    @property
    def gateway(self) -> EvaluationGateway:
        """The evaluation gateway."""
        return self._gateway

    @property
    def config(self) -> ProtectConfig | None:
        """The client configuration, if one was given or resolved."""
        return self._config

    @property
    def batch_size(self) -> int:
        return self._batch_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def protect(
        self,
        inputs: str | Sequence[str],
        protect_rules: Sequence[Mapping[str, Any] | NormalizedRule] | None = None,
        action: str | None = None,
        reason: bool = False,
        timeout: float | None = None,
        use_flash: bool = False,
    ) -> Verdict:
        """Screen *inputs* against *protect_rules*.

        Parameters
        ----------
        inputs:
            Text to screen, or a list of texts screened in order.
        protect_rules:
            Rule mappings (``metric``, optional ``contains``, ``type``,
            ``action``).  In flash mode only the first rule's ``action``
            is used, but a value that is not a list is still rejected.
        action:
            Message surfaced when a rule without its own action triggers.
        reason:
            Include a human-readable reason in the verdict.
        timeout:
            Total time budget in milliseconds.
        use_flash:
            Run a single binary harmful/not-harmful check instead of the
            per-rule checks.

        Returns
        -------
        Verdict
            ``failed`` if a rule triggered, ``passed`` otherwise (even if
            some rules could not be checked in time), ``error`` only for a
            flash check that produced no result.

        Raises
        ------
        InvalidValueType, MissingRequiredKey, InvalidRuleOption
            For malformed inputs or rules.  Raised before any remote call.
        """
        action = action or self._default_action
        timeout_ms = self._default_timeout_ms if timeout is None else timeout
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)) or timeout_ms < 0:
            raise InvalidValueType("timeout", timeout, "non-negative number of milliseconds")

        texts = _validate_inputs(inputs)

        if use_flash:
            if protect_rules is not None and (
                isinstance(protect_rules, (str, bytes, Mapping))
                or not isinstance(protect_rules, Sequence)
            ):
                raise InvalidValueType("protect_rules", protect_rules, "list of dictionaries")
            if protect_rules:
                logger.info(
                    "Rules are not considered with ProtectFlash; it performs "
                    "binary harmful/not harmful classification only."
                )
            return await self._protect_flash(
                inputs, texts[0], _flash_action(protect_rules, action), timeout_ms
            )

        rules = self._validator.validate(protect_rules, action=action, reason=reason)
        return await self._protect_rules(inputs, texts, rules, reason, timeout_ms)

    # ------------------------------------------------------------------
    # Standard mode
    # ------------------------------------------------------------------

    async def _protect_rules(
        self,
        inputs: str | Sequence[str],
        texts: list[str],
        rules: list[NormalizedRule],
        reason: bool,
        timeout_ms: float,
    ) -> Verdict:
        start = self._clock()
        budget = timeout_ms / 1000.0

        completed: list[str] = []
        uncompleted: list[str] = []
        failed_rule: str | None = None
        failure_message: str | None = None
        failure_reason: str | None = None

        for text in texts:
            record = ProtectInput(input=text)
            for offset in range(0, len(rules), self._batch_size):
                remaining = budget - (self._clock() - start)
                if remaining <= 0:
                    uncompleted.extend(rule.metric for rule in rules[offset:])
                    logger.debug(
                        "Time budget of %.3fs spent; %d rules left unchecked",
                        budget,
                        len(rules) - offset,
                    )
                    break

                batch = rules[offset:offset + self._batch_size]
                outcome = await self._executor.run(batch, record, remaining)
                completed.extend(outcome.completed_rules)
                uncompleted.extend(outcome.uncompleted_rules)

                if outcome.triggered_rule is not None:
                    failed_rule = outcome.triggered_rule
                    failure_message = outcome.failure_message
                    failure_reason = outcome.failure_reason
                    break

            if failed_rule is not None:
                break

        time_taken = self._clock() - start
        status = VerdictStatus.FAILED if failed_rule is not None else VerdictStatus.PASSED
        # A rule left unchecked for any screened text is uncompleted.
        uncompleted_rules = _dedupe(uncompleted)
        completed_rules = tuple(
            name for name in _dedupe(completed) if name not in uncompleted_rules
        )

        if status is VerdictStatus.PASSED and uncompleted_rules:
            logger.warning(
                "Protect passed with %d unchecked rule(s): %s",
                len(uncompleted_rules),
                ", ".join(uncompleted_rules),
            )

        reasons: str | None = None
        if reason:
            if status is VerdictStatus.FAILED:
                reasons = failure_reason or REASON_TRIGGERED
            else:
                reasons = REASON_PASSED

        return Verdict(
            status=status,
            completed_rules=completed_rules,
            uncompleted_rules=uncompleted_rules,
            failed_rule=failed_rule,
            messages=failure_message if status is VerdictStatus.FAILED else inputs,
            reasons=reasons,
            time_taken=time_taken,
        )

    # ------------------------------------------------------------------
    # Flash mode
    # ------------------------------------------------------------------

    async def _protect_flash(
        self,
        inputs: str | Sequence[str],
        text: str,
        action: str,
        timeout_ms: float,
    ) -> Verdict:
        payload = build_payload(PROTECT_FLASH_ID, ProtectInput(input=text), flash=True)
        try:
            outcome = await asyncio.wait_for(
                self._gateway.check(PROTECT_FLASH_ID, payload, timeout_ms),
                timeout=timeout_ms / 1000.0,
            )
        except TimeoutError:
            logger.warning("ProtectFlash check timed out after %.0fms", timeout_ms)
            outcome = None
        except TransportError as exc:
            logger.warning("ProtectFlash check failed with error: %s", exc)
            outcome = None

        if outcome is None:
            return Verdict(
                status=VerdictStatus.ERROR,
                completed_rules=(),
                uncompleted_rules=(PROTECT_FLASH_RULE,),
                failed_rule=None,
                messages=MESSAGE_FLASH_FAILED,
                reasons=REASON_FLASH_NO_RESULT,
                time_taken=0.0,
            )

        harmful = bool(outcome.failure)
        return Verdict(
            status=VerdictStatus.FAILED if harmful else VerdictStatus.PASSED,
            completed_rules=(PROTECT_FLASH_RULE,),
            uncompleted_rules=(),
            failed_rule=PROTECT_FLASH_RULE if harmful else None,
            messages=action if harmful else inputs,
            reasons=REASON_FLASH_HARMFUL if harmful else REASON_PASSED,
            time_taken=outcome.runtime / 1000.0 if outcome.runtime else 0.0,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate_inputs(inputs: Any) -> list[str]:
    """Return *inputs* as a list of texts, raising on malformed input."""
    if isinstance(inputs, str):
        texts = [inputs]
    elif (
        isinstance(inputs, Sequence)
        and not isinstance(inputs, bytes)
        and inputs
        and all(isinstance(text, str) for text in inputs)
    ):
        texts = list(inputs)
    else:
        raise InvalidValueType("inputs", inputs, "string or list of strings")

    for text in texts:
        if not text.strip():
            raise InvalidValueType(
                "inputs",
                text,
                "non-empty string or string with non-whitespace characters",
            )
    return texts


def _flash_action(
    protect_rules: Sequence[Mapping[str, Any] | NormalizedRule] | None,
    default: str,
) -> str:
    """Return the message used when a flash check flags the input."""
    if not protect_rules:
        return default
    first = protect_rules[0]
    if isinstance(first, (SingleValuedRule, MultiValuedRule)):
        return first.action or default
    if isinstance(first, Mapping):
        return first.get("action") or default
    return default


async def protect(
    inputs: str | Sequence[str],
    protect_rules: Sequence[Mapping[str, Any]] | None = None,
    action: str | None = None,
    reason: bool = False,
    timeout: float | None = None,
    use_flash: bool = False,
    *,
    config: ProtectConfig | None = None,
) -> Verdict:
    """Screen *inputs* with a :class:`Protector` built from *config*.

    Convenience wrapper for one-off calls; see :meth:`Protector.protect`.
    When *config* is ``None``, credentials are read from the environment.
    """
    protector = Protector(config=config)
    return await protector.protect(
        inputs,
        protect_rules,
        action=action,
        reason=reason,
        timeout=timeout,
        use_flash=use_flash,
    )
