"""Translation of storage failures into the service error taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from threadline.core.errors import InternalError

logger = logging.getLogger(__name__)


@contextmanager
def storage_guard(db: Session, action: str) -> Iterator[None]:
    """Roll back and raise ``InternalError`` when a statement fails.

    The underlying database error is logged with its traceback and never
    surfaced to the caller.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("storage failure while %s", action, exc_info=True)
        raise InternalError() from exc
