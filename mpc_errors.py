class ConfigurationError(ValueError):
    """Raised when the controller is set up with inconsistent data
    (weights, bounds, references, initial states or horizon)"""


class DimensionError(ConfigurationError):
    """Raised when matrix dimensions are inconsistent with each other"""


class SizeError(ValueError):
    """Raised when a block or vector does not have the expected size"""


class InfeasibleError(RuntimeError):
    """Raised when the QP solver reports a primal infeasible problem"""


class SolverError(RuntimeError):
    """Raised when the QP solver finishes without a usable solution"""


class UsageError(RuntimeError):
    """Raised when controller methods are called in the wrong order"""
