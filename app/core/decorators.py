"""
Database error handling decorators
"""
import functools
import time
from typing import Callable, Tuple, Type

from pymongo.errors import (
    AutoReconnect,
    ConnectionFailure,
    DuplicateKeyError,
    NetworkTimeout,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from app.core.errors import (
    DependencyError,
    PermanentDependencyError,
    TransientDependencyError,
)
from app.core.logging import logger

TRANSIENT_DB_ERRORS: Tuple[Type[BaseException], ...] = (
    AutoReconnect,
    ConnectionFailure,
    NetworkTimeout,
    ServerSelectionTimeoutError,
    TransientDependencyError,
)


def handle_db_errors(func: Callable) -> Callable:
    """
    Decorator to translate pymongo errors into the dependency error taxonomy
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DependencyError:
            raise
        except DuplicateKeyError:
            # Callers that expect races handle this themselves
            raise
        except (AutoReconnect, ConnectionFailure, NetworkTimeout) as e:
            logger.error(f"Database connection error: {str(e)}")
            raise TransientDependencyError(
                "Could not reach the event store",
                details={"operation": func.__name__}
            ) from e
        except OperationFailure as e:
            logger.error(f"Database operation error: {str(e)}")
            raise PermanentDependencyError(
                "Event store rejected the operation",
                details={"operation": func.__name__}
            ) from e
        except PyMongoError as e:
            logger.exception("Unexpected database error")
            raise DependencyError(
                "An unexpected database error occurred",
                details={"operation": func.__name__}
            ) from e
    return wrapper


def retry_on_error(
    retries: int = 3,
    delay: float = 0.1,
    retry_on: Tuple[Type[BaseException], ...] = TRANSIENT_DB_ERRORS,
) -> Callable:
    """
    Decorator to retry idempotent operations on transient failure.
    Only wrap operations that are safe to repeat.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_error = None
            for attempt in range(retries):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    last_error = e
                    if attempt < retries - 1:
                        logger.warning(
                            f"Retrying {func.__name__} after error: {str(e)}",
                            extra={"attempt": attempt + 1}
                        )
                        time.sleep(delay * (attempt + 1))

            logger.error(
                f"{func.__name__} failed after {retries} attempts",
                extra={"last_error": str(last_error)}
            )
            raise last_error
        return wrapper
    return decorator
