"""
# Forest Growth Model

Piecewise forest carbon growth model and its numerical integration.

Below the canopy closure threshold the carbon stock `C` grows exponentially;
at or above it, growth becomes linear and saturates at the carrying capacity:

    dC/dt = r * C                  if C <  canopy_threshold
    dC/dt = g * (1 - C / K)        if C >= canopy_threshold

## Contents

- `ForestParameters`: The four model parameters (r, g, canopy_threshold, K)
- `forest_growth_rate`: Instantaneous dC/dt, usable directly with `solve_ivp`
- `integrate_forest`: Trajectory of C over a requested time grid

## Example Usage

```python
import numpy as np
from envmodel_tools.forest import ForestParameters, integrate_forest

params = ForestParameters.baseline()
trajectory = integrate_forest(10.0, np.arange(0, 301), params)
print(trajectory["C"].iloc[-1])
```
"""

from dataclasses import dataclass, asdict, replace, fields

import numpy as np
import pandas as pd
from scipy.integrate import solve_ivp

from envmodel_tools.errors import InvalidParameter, NumericalInstability


@dataclass(frozen=True)
class ForestParameters:
    """
    Parameters of the forest growth model.

    Attributes:
        pre_closure_rate (float): Exponential growth rate `r` before canopy
            closure (1/time).
        post_closure_rate (float): Linear growth rate `g` after canopy
            closure (carbon/time).
        canopy_threshold (float): Stock at which the canopy closes and the
            growth regime switches.
        carrying_capacity (float): Asymptotic stock ceiling `K`. Must be > 0.
    """
    pre_closure_rate: float
    post_closure_rate: float
    canopy_threshold: float
    carrying_capacity: float

    @classmethod
    def baseline(cls) -> "ForestParameters":
        """Deterministic reference parameters (r=0.01, g=2, threshold=50, K=250)."""
        return cls(
            pre_closure_rate=0.01,
            post_closure_rate=2.0,
            canopy_threshold=50.0,
            carrying_capacity=250.0,
        )

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def validate(self) -> "ForestParameters":
        """
        Check that the parameters can be integrated.

        Returns:
            ForestParameters: `self`, to allow chaining.

        Raises:
            InvalidParameter: If any value is negative or non-finite, if the
                carrying capacity is not strictly positive, or if the canopy
                threshold exceeds the carrying capacity.
        """
        for name, value in self.to_dict().items():
            if not np.isfinite(value):
                raise InvalidParameter(name, value, "must be finite")
            if value < 0:
                raise InvalidParameter(name, value, "must be non-negative")
        if self.carrying_capacity <= 0:
            raise InvalidParameter(
                "carrying_capacity", self.carrying_capacity, "must be > 0"
            )
        # Above K the closed-canopy rate is negative and C falls back below
        # the threshold, switching regimes at every step
        if self.canopy_threshold > self.carrying_capacity:
            raise InvalidParameter(
                "canopy_threshold", self.canopy_threshold,
                f"must not exceed carrying_capacity ({self.carrying_capacity})"
            )
        return self

    def with_overrides(self, **values) -> "ForestParameters":
        """Return a copy with the given parameters replaced."""
        unknown = set(values) - set(self.names())
        if unknown:
            raise ValueError(f"Unknown forest parameters: {sorted(unknown)}")
        return replace(self, **{k: float(v) for k, v in values.items()})

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def forest_growth_rate(time, C, params: ForestParameters):
    """
    Instantaneous rate of change of forest carbon stock.

    Args:
        time (float): Current time. Unused; present for `solve_ivp`.
        C (float | np.ndarray): Current carbon stock (scalar or length-1 array).
        params (ForestParameters): Model parameters.

    Returns:
        float | np.ndarray: dC/dt, with the same shape as `C`.

    Raises:
        InvalidParameter: If the carrying capacity is not strictly positive.
    """
    if params.carrying_capacity <= 0:
        raise InvalidParameter(
            "carrying_capacity", params.carrying_capacity, "must be > 0"
        )

    if C < params.canopy_threshold:
        return params.pre_closure_rate * C
    return params.post_closure_rate * (1 - C / params.carrying_capacity)


def _canopy_closure(time, C, params: ForestParameters):
    return C[0] - params.canopy_threshold


_canopy_closure.terminal = True
_canopy_closure.direction = 1


def _solve(t_start, t_end, C0, t_eval, params, events=None, **solver_kwargs):
    sol = solve_ivp(
        forest_growth_rate,
        (t_start, t_end),
        [C0],
        t_eval=t_eval,
        args=(params,),
        events=events,
        **solver_kwargs
    )
    if not sol.success:
        raise NumericalInstability(
            f"Integration failed between t={t_start} and t={t_end}: {sol.message}"
        )
    return sol


def integrate_forest(
    initial_stock: float,
    times,
    params: ForestParameters,
    method: str = "RK45",
    rtol: float = 1e-6,
    atol: float = 1e-8,
    max_step: float = np.inf,
) -> pd.DataFrame:
    """
    Integrate the forest growth model over a time grid.

    The integration is split at canopy closure: a terminal event stops the
    solver where `C` reaches `canopy_threshold`, and a second solve restarts
    from that point. Only the step that detects the event evaluates stages on
    both sides of the threshold; every later step lies in the closed-canopy
    regime.

    Args:
        initial_stock (float): Carbon stock at `times[0]`.
        times (array-like): Strictly increasing output times. The first entry
            is the initial time.
        params (ForestParameters): Model parameters.
        method (str, optional): `solve_ivp` method. Defaults to "RK45".
        rtol (float, optional): Relative tolerance. Defaults to 1e-6.
        atol (float, optional): Absolute tolerance. Defaults to 1e-8.
        max_step (float, optional): Maximum solver step. Defaults to no limit.

    Returns:
        pd.DataFrame: Trajectory with columns `time` and `C`, one row per
            requested time. `C` at `times[0]` equals `initial_stock` exactly.

    Raises:
        InvalidParameter: If the parameters or initial stock are invalid.
        NumericalInstability: If the solver fails or the state becomes
            non-finite.
        ValueError: If `times` is empty or not strictly increasing.
    """
    params.validate()
    if not np.isfinite(initial_stock) or initial_stock < 0:
        raise InvalidParameter("initial_stock", initial_stock, "must be finite and >= 0")

    times = np.asarray(times, dtype=float)
    if times.ndim != 1 or times.size == 0:
        raise ValueError("times must be a non-empty 1-D sequence")
    if np.any(np.diff(times) <= 0):
        raise ValueError("times must be strictly increasing")

    solver_kwargs = dict(method=method, rtol=rtol, atol=atol, max_step=max_step)

    stock = np.empty_like(times)
    stock[0] = initial_stock

    t_start, C_start = times[0], float(initial_stock)
    pending = times[1:]
    filled = 1

    # Exponential regime up to canopy closure
    if pending.size and C_start < params.canopy_threshold:
        sol = _solve(
            t_start, times[-1], C_start, pending, params,
            events=_canopy_closure, **solver_kwargs
        )
        n = sol.t.size
        stock[filled:filled + n] = sol.y[0]
        filled += n
        pending = pending[n:]

        if sol.status == 1:
            t_start = float(sol.t_events[0][0])
            C_start = max(float(sol.y_events[0][0][0]), params.canopy_threshold)

    if pending.size:
        sol = _solve(t_start, times[-1], C_start, pending, params, **solver_kwargs)
        stock[filled:filled + sol.t.size] = sol.y[0]
        filled += sol.t.size

    if filled != times.size:
        raise NumericalInstability(
            f"Solver returned {filled} of {times.size} requested time points"
        )
    if not np.all(np.isfinite(stock)):
        raise NumericalInstability("Trajectory contains non-finite values")

    return pd.DataFrame({"time": times, "C": stock})
