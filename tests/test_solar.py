import numpy as np
import pytest

from envmodel_tools.solar import photovoltaic_energy


def test_photovoltaic_energy_defaults():
    assert photovoltaic_energy(100, 1500) == pytest.approx(22500.0)


def test_photovoltaic_energy_elementwise():
    energy = photovoltaic_energy(np.array([100, 200]), 1800, r=0.22, PR=0.8)
    np.testing.assert_allclose(energy, [100 * 0.22 * 1800 * 0.8, 200 * 0.22 * 1800 * 0.8])


@pytest.mark.parametrize("kwargs", [{"r": 1.5}, {"PR": -0.1}])
def test_photovoltaic_energy_invalid_fractions(kwargs):
    with pytest.raises(ValueError):
        photovoltaic_energy(100, 1500, **kwargs)
