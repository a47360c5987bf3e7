"""
Hard-fault exceptions.

These signal malformed input and abort the call before any state is
mutated. Policy outcomes ("don't play", "can't reserve") are never raised;
they come back as ordinary return values.
"""


class KickerError(Exception):
    """Base class for all engine faults."""


class InvalidCardError(KickerError, ValueError):
    pass


class InvalidHandError(KickerError, ValueError):
    pass


class InvalidAmountError(KickerError, ValueError):
    pass


class InvalidProbabilityError(KickerError, ValueError):
    pass


class WagerStateError(KickerError):
    """Settling a wager that does not match the outstanding reservation."""


class ConfigError(KickerError, ValueError):
    pass
