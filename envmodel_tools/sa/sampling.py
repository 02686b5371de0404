"""Base sample matrices and the Saltelli design built from them.

`get_base_samples` draws the two independent matrices X1 and X2 from the
parameter distributions. `saltelli_design` interleaves them into the rows the
model has to be evaluated on, in the order SALib's Sobol analysis expects when
second-order indices are not computed:

    X1[i], AB_1[i], ..., AB_D[i], X2[i]     for i = 0 .. N-1

where `AB_j` is X1 with column `j` taken from X2.
"""

import numpy as np
import pandas as pd

from ..config.space import SpaceConfig
from ..utils.distributions import draw_floored


def get_base_samples(
    space: SpaceConfig,
    n: int,
    seed: int = None,
    floor: float | None = 0.0
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Draw the two base sample matrices.

    X1 and X2 come from two independent child streams of
    `np.random.SeedSequence(seed)`, so neither is derived from the other and
    the same seed always yields the same pair.

    Args:
        space (SpaceConfig): Parameter distributions. Key order gives the
            column order.
        n (int): Rows per matrix.
        seed (int, optional): Root seed. None draws fresh entropy.
        floor (float | None, optional): Elementwise floor applied to every
            draw. Defaults to 0.0; None disables it.

    Returns:
        tuple[pd.DataFrame, pd.DataFrame]: `(X1, X2)`, each `(n, D)`.

    Raises:
        ValueError: If `n` is not positive or the space is empty.
    """
    if n <= 0:
        raise ValueError(f"Sample count must be positive, got {n}")
    if not space:
        raise ValueError("Sampling space is empty")

    dists = space.get_search_space()
    streams = [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(2)]

    X1, X2 = (
        pd.DataFrame({
            name: draw_floored(dist, n, rng, floor)
            for name, dist in dists.items()
        })
        for rng in streams
    )
    return X1, X2


def saltelli_design(X1: pd.DataFrame, X2: pd.DataFrame) -> pd.DataFrame:
    """Interleave X1 and X2 into the `N * (D + 2)` row Saltelli design.

    Args:
        X1 (pd.DataFrame): First base matrix, `(N, D)`.
        X2 (pd.DataFrame): Second base matrix with the same shape and columns.

    Returns:
        pd.DataFrame: Design matrix with the columns of X1.

    Raises:
        ValueError: If the matrices do not align.
    """
    if X1.shape != X2.shape or list(X1.columns) != list(X2.columns):
        raise ValueError("X1 and X2 must have the same shape and columns")

    A = X1.to_numpy(dtype=float)
    B = X2.to_numpy(dtype=float)
    N, D = A.shape

    design = np.empty((N, D + 2, D))
    design[:, 0, :] = A
    for j in range(D):
        design[:, j + 1, :] = A
        design[:, j + 1, j] = B[:, j]
    design[:, D + 1, :] = B

    return pd.DataFrame(design.reshape(N * (D + 2), D), columns=X1.columns)
