import logging

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 2


def run_in_transaction(db, operation, *args, **kwargs):
    """Run ``operation(db, ...)`` and commit it as one unit.

    Any failure rolls the whole unit back. A unique-constraint violation
    means a concurrent writer got there first (same ledger, same open
    request); the operation is replayed once so it observes that write.
    """
    for attempt in range(1, _MAX_ATTEMPTS + 1):
        try:
            result = operation(db, *args, **kwargs)
            db.commit()
            return result
        except IntegrityError:
            db.rollback()
            if attempt >= _MAX_ATTEMPTS:
                raise
            logger.warning(
                "%s hit a concurrent write; retrying (attempt %d of %d)",
                getattr(operation, "__name__", "operation"),
                attempt + 1,
                _MAX_ATTEMPTS,
            )
        except Exception:
            db.rollback()
            raise
    return None


__all__ = ["run_in_transaction"]
