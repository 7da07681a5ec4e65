"""Side effects whose failure must never undo the operation that triggered them.

Emails after a payment, the body of a PayPal webhook: run them through
:func:`best_effort`, which logs the failure and hands back a
:class:`SideEffectResult` instead of raising.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SideEffectResult:
    name: str
    ok: bool
    value: Any = None
    error: str | None = None


def best_effort(name: str, fn: Callable[..., Any], *args, **kwargs) -> SideEffectResult:
    try:
        value = fn(*args, **kwargs)
    except Exception as e:
        logger.exception("best-effort %s failed: %s", name, e)
        return SideEffectResult(name=name, ok=False, error=str(e) or e.__class__.__name__)
    return SideEffectResult(name=name, ok=True, value=value)
