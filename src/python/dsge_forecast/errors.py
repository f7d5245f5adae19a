class ForecastError(Exception):
    """
    Base class for errors raised while forecasting a single draw.
    The batch driver sets `draw` to the index of the failing draw.
    """
    draw = None

class DimensionError(ForecastError, ValueError):
    """Shock matrix, state vector or system matrices have incompatible shapes."""

class DistributionError(ForecastError, ValueError):
    """Shock covariance matrix has no real matrix square root."""

class ZLBUnsolvableError(ForecastError, ArithmeticError):
    """The driving shock has no effect on the constrained observable."""

class ZLBConvergenceError(ForecastError, RuntimeError):
    """The corrected forecast still misses the floor beyond tolerance."""
