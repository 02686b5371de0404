import numpy as np
import pandas as pd
import pytest

from envmodel_tools.config import SpaceConfig
from envmodel_tools.sa.sampling import get_base_samples, saltelli_design
from envmodel_tools.utils.distributions import DISTRIBUTIONS, draw_floored, get_scipy_normal


space = SpaceConfig.from_dict(DISTRIBUTIONS, {
    "pre_closure_rate": ["normal", [0.01, 0.001]],
    "post_closure_rate": ["normal", [2.0, 0.2]],
    "canopy_threshold": ["normal", [50.0, 5.0]],
    "carrying_capacity": ["normal", [250.0, 25.0]],
})


def test_base_samples_shape_and_columns():
    X1, X2 = get_base_samples(space, 100, seed=1)

    assert X1.shape == X2.shape == (100, 4)
    assert list(X1.columns) == list(space.keys())
    assert list(X2.columns) == list(space.keys())


def test_base_samples_reproducible():
    a1, a2 = get_base_samples(space, 50, seed=7)
    b1, b2 = get_base_samples(space, 50, seed=7)
    c1, _ = get_base_samples(space, 50, seed=8)

    pd.testing.assert_frame_equal(a1, b1)
    pd.testing.assert_frame_equal(a2, b2)
    assert not a1.equals(c1)


def test_base_samples_independent():
    X1, X2 = get_base_samples(space, 500, seed=3)

    assert not np.allclose(X1.to_numpy(), X2.to_numpy())
    # Two independent draws are nearly uncorrelated
    r = np.corrcoef(X1["carrying_capacity"], X2["carrying_capacity"])[0, 1]
    assert abs(r) < 0.2


def test_base_samples_moments():
    X1, _ = get_base_samples(space, 4000, seed=0)
    assert X1["carrying_capacity"].mean() == pytest.approx(250, rel=0.02)
    assert X1["carrying_capacity"].std() == pytest.approx(25, rel=0.1)


def test_base_samples_floored():
    wide = SpaceConfig.from_dict(DISTRIBUTIONS, {"r": ["normal", [0.0, 1.0]]})
    X1, X2 = get_base_samples(wide, 1000, seed=2)

    assert (X1["r"] >= 0).all() and (X2["r"] >= 0).all()
    assert (X1["r"] == 0).any()


def test_base_samples_invalid():
    with pytest.raises(ValueError):
        get_base_samples(space, 0)
    with pytest.raises(ValueError):
        get_base_samples(SpaceConfig(), 10)


def test_draw_floored_without_floor():
    rng = np.random.default_rng(0)
    values = draw_floored(get_scipy_normal(0, 1), 1000, rng, floor=None)
    assert values.shape == (1000,)
    assert (values < 0).any()


def test_saltelli_design_layout():
    X1 = pd.DataFrame({"a": [1.0, 2.0], "b": [3.0, 4.0], "c": [5.0, 6.0]})
    X2 = pd.DataFrame({"a": [10.0, 20.0], "b": [30.0, 40.0], "c": [50.0, 60.0]})
    D = 3

    design = saltelli_design(X1, X2)
    assert design.shape == (2 * (D + 2), D)
    assert list(design.columns) == ["a", "b", "c"]

    block = design.iloc[0:D + 2].to_numpy()
    np.testing.assert_array_equal(block[0], [1, 3, 5])
    np.testing.assert_array_equal(block[1], [10, 3, 5])
    np.testing.assert_array_equal(block[2], [1, 30, 5])
    np.testing.assert_array_equal(block[3], [1, 3, 50])
    np.testing.assert_array_equal(block[4], [10, 30, 50])

    np.testing.assert_array_equal(design.iloc[D + 2].to_numpy(), [2, 4, 6])
    np.testing.assert_array_equal(design.iloc[-1].to_numpy(), [20, 40, 60])


def test_saltelli_design_mismatch():
    X1 = pd.DataFrame({"a": [1.0, 2.0]})
    with pytest.raises(ValueError):
        saltelli_design(X1, pd.DataFrame({"a": [1.0]}))
    with pytest.raises(ValueError):
        saltelli_design(X1, pd.DataFrame({"b": [1.0, 2.0]}))
