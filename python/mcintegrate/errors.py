"""Exception types raised by mcintegrate."""


class McIntegrateError(Exception):
    """Base class for all mcintegrate errors."""


class InvalidArgument(McIntegrateError, ValueError):
    """Raised for non-positive sample counts or malformed distribution parameters."""


class UnsupportedDistribution(McIntegrateError, LookupError):
    """Raised when no generation rule is registered for a distribution family."""


class NumericEvaluationError(McIntegrateError, ArithmeticError):
    """Raised when an integrand or inverse CDF fails to evaluate.

    Overflow, domain errors and division by zero all end up here. The
    estimator catches it per sample and tallies the exclusion instead of
    aborting the whole estimate.
    """
