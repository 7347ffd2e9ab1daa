"""Rule validation.

* **RuleValidator** -- turns caller rule mappings into normalized
  :class:`~protect_guard.core.types.SingleValuedRule` /
  :class:`~protect_guard.core.types.MultiValuedRule` objects.
"""
from __future__ import annotations

from protect_guard.rules.validation import VALID_TYPES, RuleValidator

__all__ = [
    "VALID_TYPES",
    "RuleValidator",
]
