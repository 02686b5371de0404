"""
# Parameter Distributions

Factories for the frozen SciPy distributions used to describe uncertain model
parameters, and a helper for drawing physically valid (non-negative) samples.

## Functions

- `get_scipy_normal`: Normal distribution from a mean and standard deviation
- `get_scipy_truncated_normal`: Normal distribution truncated to [a, b]
- `get_scipy_uniform`: Uniform distribution over [a, b]
- `draw_floored`: Draw i.i.d. samples and floor them elementwise

## Example Usage

```python
import numpy as np
from envmodel_tools.utils.distributions import get_scipy_normal, draw_floored

rng = np.random.default_rng(42)
growth_rate = get_scipy_normal(loc=0.01, scale=0.001)
values = draw_floored(growth_rate, 2000, rng)   # all >= 0
```
"""

from scipy.stats import (
    truncnorm,
    norm,
    uniform
)
import numpy as np


def get_scipy_normal(loc=0.0, scale=1.0):
    """
    Create a frozen normal distribution.

    Args:
        loc (float, optional): Mean. Defaults to 0.0.
        scale (float, optional): Standard deviation. Defaults to 1.0.

    Returns:
        scipy.stats.rv_frozen: Normal distribution.
    """
    return norm(loc=loc, scale=scale)


def get_scipy_truncated_normal(loc=0.0, scale=1.0, a=0.0, b=np.inf):
    """
    Create a frozen normal distribution truncated to `[a, b]`.

    SciPy expects the truncation bounds in standard deviations from the mean;
    this function takes them in parameter units and converts them.

    Args:
        loc (float, optional): Mean of the underlying normal. Defaults to 0.0.
        scale (float, optional): Standard deviation of the underlying normal.
            Defaults to 1.0.
        a (float, optional): Lower bound. Defaults to 0.0.
        b (float, optional): Upper bound. Defaults to +inf.

    Returns:
        scipy.stats.rv_frozen: Truncated normal distribution.
    """
    return truncnorm(
        a=(a - loc) / scale,
        b=(b - loc) / scale,
        loc=loc,
        scale=scale
    )


def get_scipy_uniform(a=0.0, b=1.0):
    """
    Create a frozen uniform distribution over `[a, b]`.

    SciPy parameterizes the uniform as (loc, scale) with scale = b - a.
    """
    return uniform(loc=a, scale=b - a)


DISTRIBUTIONS = {
    "normal": get_scipy_normal,
    "truncnorm": get_scipy_truncated_normal,
    "uniform": get_scipy_uniform,
}
"""Distribution names accepted in configuration files."""


def draw_floored(dist, n: int, rng: np.random.Generator, floor: float | None = 0.0) -> np.ndarray:
    """
    Draw `n` i.i.d. samples from `dist` and floor them elementwise.

    Negative draws of rates, thresholds or capacities are physically invalid,
    so by default values below zero are set to zero.

    Args:
        dist: Frozen SciPy distribution.
        n (int): Number of samples.
        rng (np.random.Generator): Random stream to draw from.
        floor (float | None, optional): Lower floor. `None` disables flooring.
            Defaults to 0.0.

    Returns:
        np.ndarray: Array of shape (n,).
    """
    values = np.asarray(dist.rvs(size=n, random_state=rng), dtype=float)
    if floor is not None:
        values = np.maximum(values, floor)
    return values
