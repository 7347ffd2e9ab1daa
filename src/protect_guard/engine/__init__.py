"""Rule execution engine.

* **BatchExecutor** -- runs one batch of rule checks concurrently against
  an evaluation gateway, racing a shared deadline.
* **evaluate_trigger** -- any/all trigger semantics for one outcome.
"""
from __future__ import annotations

from protect_guard.engine.batch import BatchExecutor, evaluate_trigger

__all__ = [
    "BatchExecutor",
    "evaluate_trigger",
]
