class DeferflowError(Exception):
    """Base class for all errors raised by deferflow."""

    pass
