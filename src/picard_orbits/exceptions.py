"""
exceptions
Errors raised by the Picard-Chebyshev solver and its collaborators
"""

from typing import Optional


class InvalidConfigurationError(ValueError):
    """
    Raised before any iteration when the requested problem cannot be solved:
    bad polynomial order / sample count, tf <= t0, non-elliptical orbit, etc.
    """


class ForceModelError(RuntimeError):
    """
    Raised when the force model returns a non-finite or malformed acceleration
    or is queried at an out-of-range position. Fatal for the current solve.
    """

    def __init__(self, message: str, sample: Optional[int] = None):
        self.sample = sample
        if sample is not None:
            message = f"{message} (sample {sample})"
        super().__init__(message)
