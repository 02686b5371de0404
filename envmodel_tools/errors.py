"""
# Errors

Exceptions raised by the models and the sensitivity analysis pipeline.

- `InvalidParameter`: a parameter value the model cannot run with
  (e.g. a carrying capacity of zero).
- `NumericalInstability`: the ODE solver could not meet its tolerances.
"""


class ModelError(Exception):
    """Base class for model evaluation errors."""


class InvalidParameter(ModelError, ValueError):
    """Raised when a parameter set is structurally invalid for the model."""

    def __init__(self, name: str, value, reason: str = ""):
        self.name = name
        self.value = value
        msg = f"Invalid value for '{name}': {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class NumericalInstability(ModelError, RuntimeError):
    """Raised when the integrator fails to produce a trustworthy trajectory."""
