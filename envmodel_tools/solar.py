"""Photovoltaic energy output."""

import numpy as np


def photovoltaic_energy(A, H, r=0.2, PR=0.75):
    """
    Energy produced by a photovoltaic system.

        E = A * r * H * PR

    Works elementwise when any argument is an array.

    Args:
        A (float | array-like): Panel area (m^2).
        H (float | array-like): Annual average solar radiation (kWh/m^2).
        r (float, optional): Panel yield, the manufacturing efficiency, in
            [0, 1]. Defaults to 0.2.
        PR (float, optional): Performance ratio accounting for site losses, in
            [0, 1]. Defaults to 0.75.

    Returns:
        float | np.ndarray: Energy (kWh).

    Raises:
        ValueError: If `r` or `PR` lies outside [0, 1].

    Example:
        ```python
        photovoltaic_energy(A=100, H=1500)                  # 22500.0
        photovoltaic_energy(A=200, H=1800, r=0.22, PR=0.8)
        ```
    """
    for name, value in (("r", r), ("PR", PR)):
        if np.any(np.asarray(value) < 0) or np.any(np.asarray(value) > 1):
            raise ValueError(f"{name} must lie in [0, 1], got {value}")

    energy = np.multiply(A, r) * np.multiply(H, PR)
    return float(energy) if np.ndim(energy) == 0 else energy
