from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from app.metrics import batch_items_total, batch_size

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Outcome(str, enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class BatchResult(Generic[R]):
    succeeded: List[R] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def run_batch(
    op: str,
    items: Iterable[T],
    key: Callable[[T], str],
    apply: Callable[[T], Optional[R]],
    on_error: Optional[Callable[[T], None]] = None,
) -> BatchResult[R]:
    """
    Apply `apply` to each item in order and fold the outcomes.

    `apply` returns a value for a hit or None for a miss. Anything it raises
    is caught here, passed to `on_error` (session rollback), logged and
    recorded as a failure; processing continues with the next item.
    Already-applied items are never undone.
    """
    items = list(items)
    batch_size.labels(op=op).observe(len(items))
    result: BatchResult[R] = BatchResult()
    for item in items:
        outcome, value = _attempt(op, item, key, apply, on_error)
        batch_items_total.labels(op=op, outcome=outcome.value).inc()
        if outcome is Outcome.SUCCESS:
            result.succeeded.append(value)
        else:
            result.failed.append(key(item))
    if result.failed:
        logger.info("[batch] %s: %d ok, %d failed", op, len(result.succeeded), len(result.failed))
    return result


def _attempt(
    op: str,
    item: T,
    key: Callable[[T], str],
    apply: Callable[[T], Optional[R]],
    on_error: Optional[Callable[[T], None]],
) -> Tuple[Outcome, Any]:
    try:
        value = apply(item)
    except Exception:
        logger.exception("[batch] %s failed for id=%s", op, key(item))
        if on_error is not None:
            on_error(item)
        return Outcome.ERROR, None
    if value is None:
        return Outcome.NOT_FOUND, None
    return Outcome.SUCCESS, value
