"""
Exception classes raised by the projection and regridding packages.

Contract violations (bad parameters, out-of-range coordinates, mismatched
arrays) raise InvalidParameterError. A formula evaluated outside its domain,
or one that would produce a non-finite result, raises DomainError.
Points that simply fall outside a grid are not errors and never raise.
"""

from typing import Optional


class ProjectionError(Exception):
    """Base exception class for all projection and regridding errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        full_message = f"{message}\nDetails: {details}" if details else message
        super().__init__(full_message)


class InvalidParameterError(ProjectionError, ValueError):
    """A parameter or input array violates the documented contract."""

    def __init__(self, name: str, value, reason: Optional[str] = None):
        super().__init__(f"Invalid {name}: {value!r}", reason)
        self.name = name
        self.value = value


class DomainError(ProjectionError, ArithmeticError):
    """A formula was evaluated outside its domain or produced NaN/inf."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        super().__init__(f"Domain error in {operation}", reason)
        self.operation = operation
