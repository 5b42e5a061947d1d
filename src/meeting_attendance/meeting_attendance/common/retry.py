from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, TypeVar

from ..core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def retry_read_once(func: F) -> F:
    """Retry a read once when the store reports it is unavailable.

    Only for reads: a retried write could create a duplicate record.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StorageUnavailableError as exc:
            logger.warning("Read %s failed (%s), retrying once", func.__qualname__, exc)
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
