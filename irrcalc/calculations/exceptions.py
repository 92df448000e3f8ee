"""
Calculation Errors

Typed failures raised by the return engine. All derive from ValueError so
callers that only care about "bad input or no answer" can catch one type.
"""


class CalculationError(ValueError):
    """Base exception for all return engine errors."""

    def __init__(self, message="An error occurred in the return calculation."):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(CalculationError):
    """Raised for non-positive amounts/years or out-of-range rates."""

    def __init__(self, message="Invalid input provided to the calculation."):
        super().__init__(message)


class InvalidFeeRateError(InvalidInputError):
    """Raised when a fee waterfall rate lies outside [0, 1]."""

    def __init__(self, message="Fee waterfall rates must be between 0 and 1."):
        super().__init__(message)


class InvalidTimingError(InvalidInputError):
    """Raised when a follow-on is timed at or before the initial investment."""

    def __init__(self, message="Follow-on investment must occur after the initial investment."):
        super().__init__(message)


class NoSignChangeError(CalculationError):
    """Raised when cash flows are all one sign and no finite rate exists."""

    def __init__(self, message="Cash flows must contain both positive and negative values."):
        super().__init__(message)


class ConvergenceError(CalculationError):
    """Raised when an iteration cap is reached without meeting tolerance."""

    def __init__(self, message="Rate calculation did not converge."):
        super().__init__(message)


class DivisionByZeroError(CalculationError, ZeroDivisionError):
    """Raised when an inverse computation divides by a zero growth factor."""

    def __init__(self, message="Growth factor is zero; rate must be above -100%."):
        super().__init__(message)
