import logging
from functools import wraps

from stackscope.errors import MalformedProfileError, StackscopeError


logger = logging.getLogger(__name__)

_STRUCTURAL_ERRORS = (
    KeyError,
    IndexError,
    TypeError,
    ValueError,
    AttributeError,
    OverflowError,
    RecursionError,
)


def raises_malformed(function):
    """
    A decorator for importers which reports structural problems as MalformedProfileError.

    Lookups on missing fields, wrong container types and bad numbers surface as
    KeyError, TypeError and friends while walking decoded JSON. They are
    re-raised as MalformedProfileError so callers only deal with one error type.

    Args:
        function: The importer to wrap.

    Returns:
        The wrapped importer.
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except MalformedProfileError:
            raise
        except _STRUCTURAL_ERRORS as e:
            raise MalformedProfileError(
                f"{function.__name__} failed: {type(e).__name__}: {e}"
            ) from e

    return wrapper


def returns_none_on_error(function):
    """
    A decorator which logs any stackscope or structural error and returns None instead.

    Used at the boundary where "no profile" is the only outcome the caller cares
    about.

    Args:
        function: The function to wrap.

    Returns:
        The result of the function, or None if it raised.
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except (StackscopeError,) + _STRUCTURAL_ERRORS as e:
            logger.error(f"Error in {function.__name__}: {type(e).__name__}: {e}")
            return None

    return wrapper
