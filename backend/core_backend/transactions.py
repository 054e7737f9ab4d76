"""
Explicit transaction boundaries for admission-check-plus-write operations.

``transaction_scope`` wraps ``transaction.atomic`` with a caller-supplied
deadline; ``retry_on_serialization_failure`` re-runs a whole operation once
when the store reports a transient serialization conflict.
"""
import logging
import time
from contextlib import ExitStack, contextmanager
from functools import wraps

from django.conf import settings
from django.db import DatabaseError, OperationalError, connection, transaction

from core_backend.exceptions import OperationTimeout

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure / deadlock_detected
SERIALIZATION_SQLSTATES = {"40001", "40P01"}

TRANSIENT_MESSAGES = (
    "database is locked",
    "deadlock detected",
    "could not serialize access",
)


def is_serialization_failure(exc):
    """True when ``exc`` is a conflict that a fresh attempt may resolve."""
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate in SERIALIZATION_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in TRANSIENT_MESSAGES)


def _apply_statement_timeout(deadline):
    if connection.vendor != "postgresql":
        return
    timeout_ms = max(int(deadline * 1000), 1)
    with connection.cursor() as cursor:
        cursor.execute(f"SET LOCAL statement_timeout = {timeout_ms}")


@contextmanager
def transaction_scope(deadline=None, unavailable_error=None):
    """
    Run the block in one database transaction.

    Args:
        deadline: seconds the block may take. When exceeded the block raises
            ``OperationTimeout`` before commit, so nothing is persisted.
        unavailable_error: exception class raised (chained) when the
            transaction itself cannot be started.
    """
    if deadline is None:
        deadline = getattr(settings, "DEFAULT_OPERATION_DEADLINE", None)

    started = time.monotonic()
    stack = ExitStack()
    try:
        stack.enter_context(transaction.atomic())
    except DatabaseError as exc:
        if unavailable_error is None or is_serialization_failure(exc):
            raise
        raise unavailable_error() from exc

    with stack:
        if deadline is not None:
            _apply_statement_timeout(deadline)

        yield

        if deadline is not None:
            elapsed = time.monotonic() - started
            if elapsed > deadline:
                raise OperationTimeout(deadline, elapsed)


def retry_on_serialization_failure(func=None, *, attempts=None, backoff=None):
    """
    Retry the decorated operation after a transient serialization conflict.

    Only the outermost call retries: inside an enclosing atomic block the
    transaction is already broken and the error propagates to its owner.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = attempts if attempts is not None else getattr(settings, "TRANSACTION_RETRY_ATTEMPTS", 1)
            delay = backoff if backoff is not None else getattr(settings, "TRANSACTION_RETRY_BACKOFF", 0.05)
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except OperationalError as exc:
                    if (
                        attempt >= retries
                        or not is_serialization_failure(exc)
                        or transaction.get_connection().in_atomic_block
                    ):
                        raise
                    attempt += 1
                    logger.warning(
                        f"Serialization conflict in {func.__qualname__}, retry {attempt}/{retries} in {delay:.3f}s"
                    )
                    time.sleep(delay)
                    delay *= 2

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
