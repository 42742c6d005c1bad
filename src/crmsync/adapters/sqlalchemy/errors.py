"""Translation of SQLAlchemy failures into the reconciliation error taxonomy."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from crmsync.domain.errors import DuplicateRecordError, PersistenceError, TransientError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

_UNIQUE_MARKERS = ("unique", "duplicate")


@contextmanager
def translate_errors(
    *,
    identity: str | None = None,
    attributes: Mapping[str, object] | None = None,
) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        message = str(exc.orig)
        if any(marker in message.lower() for marker in _UNIQUE_MARKERS):
            raise DuplicateRecordError(message, identity=identity, attributes=attributes) from exc
        raise PersistenceError(message, identity=identity, attributes=attributes) from exc
    except DBAPIError as exc:
        if exc.connection_invalidated or isinstance(exc, OperationalError):
            raise TransientError(str(exc.orig)) from exc
        raise PersistenceError(str(exc.orig), identity=identity, attributes=attributes) from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc), identity=identity, attributes=attributes) from exc
