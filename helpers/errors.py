import functools
import logging

from tortoise.exceptions import DBConnectionError, IntegrityError, OperationalError


logger = logging.getLogger(__name__)


class AvailabilityError(Exception):
    """Base class for failures surfaced by the availability engine."""

    status_code = 500
    retryable = False


class ValidationError(AvailabilityError):
    status_code = 400


class SlotIndexOutOfRange(ValidationError):
    pass


class InvalidDate(ValidationError):
    pass


class InvalidBookingReference(ValidationError):
    pass


class InvalidWorkingHours(ValidationError):
    pass


class NotFoundError(AvailabilityError):
    status_code = 404


class NotAffiliated(NotFoundError):
    pass


class CalendarNotFound(NotFoundError):
    pass


class NonWorkingDay(AvailabilityError):
    """The doctor does not work on the requested weekday. Not retryable."""

    status_code = 400


class StoreUnavailable(AvailabilityError):
    """The database could not be reached or rejected the statement."""

    status_code = 503
    retryable = True


def translate_store_errors(fn):
    # IntegrityError subclasses OperationalError; callers that expect it handle it themselves.
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except IntegrityError:
            raise
        except (DBConnectionError, OperationalError) as e:
            logger.error("Store call %s failed: %s", fn.__qualname__, e)
            raise StoreUnavailable(f"Availability store unavailable: {e}") from e

    return wrapper
