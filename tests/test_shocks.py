import numpy as np
import pytest
from dsge_forecast.distributions import DegenerateDiagMvTDist, DegenerateMvNormal, matrix_sqrt
from dsge_forecast.errors import DimensionError, DistributionError
from dsge_forecast.forecast import forecast
from dsge_forecast.shocks import ShockKind, ShockSpec, generate_shocks, shock_spec
from toy_model import rate_model, random_rate_system

def test_matrix_sqrt_rank_deficient():
    QQ = np.diag([0.25, 0.0, 1.0])
    QQ[0, 2] = QQ[2, 0] = 0.5  # rank 1 block
    S = matrix_sqrt(QQ)
    assert np.allclose(S @ S, QQ)
    assert np.allclose(S, S.T)

    with pytest.raises(DistributionError):
        matrix_sqrt(np.array([[1.0, 0.0], [0.0, -1.0]]))
    with pytest.raises(DistributionError):
        matrix_sqrt(np.array([[1.0, 0.3], [0.0, 1.0]]))
    with pytest.raises(DimensionError):
        matrix_sqrt(np.ones((2, 3)))

def test_normal_shocks_covariance():
    QQ = np.array([[0.5, 0.1, 0.0],
                   [0.1, 0.2, 0.0],
                   [0.0, 0.0, 0.0]])
    rng = np.random.default_rng(20)
    shocks = generate_shocks(QQ, 3, 20000, ShockSpec(ShockKind.NORMAL), random_state=rng)

    print(f"Sample covariance:\n{np.cov(shocks)}")
    assert shocks.shape == (3, 20000)
    assert np.allclose(np.cov(shocks), QQ, atol=0.02)
    # Zero-variance shock stays at zero
    assert np.allclose(shocks[2], 0.0)

def test_tdist_shocks_are_heavier_tailed():
    QQ = np.eye(2)
    normal = generate_shocks(QQ, 2, 20000, ShockSpec(ShockKind.NORMAL), random_state=21)
    tdist = generate_shocks(QQ, 2, 20000, ShockSpec(ShockKind.TDIST, df=3), random_state=21)
    assert np.abs(tdist).max() > np.abs(normal).max()

    dist = DegenerateDiagMvTDist(np.zeros(2), QQ, 5)
    assert dist.rvs(4, random_state=0).shape == (2, 4)
    with pytest.raises(DistributionError):
        DegenerateDiagMvTDist(np.zeros(2), QQ, 0)
    with pytest.raises(DimensionError):
        DegenerateMvNormal(np.zeros(2), np.eye(3))

def test_kill_shocks_and_precedence():
    m = rate_model(horizon=6)
    assert shock_spec(m).kind is ShockKind.NORMAL

    m.settings["forecast_tdist_shocks"].value = True
    spec = shock_spec(m)
    assert spec.kind is ShockKind.TDIST
    assert spec.df == m["forecast_tdist_df_val"]

    m.settings["forecast_kill_shocks"].value = True
    assert m.get_setting("forecast_kill_shocks") is True
    assert shock_spec(m).kind is ShockKind.KILL

    rng = np.random.default_rng(22)
    systems = [random_rate_system(m, rng) for _ in range(2)]
    _, _, _, shocks = forecast(m, systems, [np.zeros(m.n_states)] * 2, seed=0, verbose=False)
    assert np.array_equal(shocks, np.zeros((2, m.n_shocks_exogenous, 6)))

def test_tdist_shocks_in_batch_forecast():
    m = rate_model(horizon=7)
    m.settings["forecast_tdist_shocks"].value = True
    m.settings["forecast_tdist_df_val"].value = 4
    rng = np.random.default_rng(24)
    systems = [random_rate_system(m, rng) for _ in range(3)]
    z0s = [np.zeros(m.n_states)] * 3

    first = forecast(m, systems, z0s, seed=9, verbose=False)
    second = forecast(m, systems, z0s, seed=9, verbose=False)

    states, obs, pseudo, shocks = first
    assert shocks.shape == (3, m.n_shocks_exogenous, 7)
    assert states.shape == (3, m.n_states, 7)
    assert np.all(shocks != 0.0)
    for a, b in zip(first, second):
        assert np.array_equal(a, b)

def test_anticipated_shocks_zeroed():
    m = rate_model(horizon=8, n_anticipated=2)
    spec = shock_spec(m)
    assert spec.anticipated == slice(3, 5)

    rng = np.random.default_rng(23)
    systems = [random_rate_system(m, rng) for _ in range(3)]
    _, _, _, shocks = forecast(m, systems, [np.zeros(m.n_states)] * 3, seed=1, verbose=False)

    assert np.array_equal(shocks[:, 3:5, :], np.zeros((3, 2, 8)))
    assert np.all(shocks[:, :3, :] != 0.0)

def test_generate_shocks_errors():
    spec = ShockSpec(ShockKind.NORMAL)
    with pytest.raises(DimensionError):
        generate_shocks(np.eye(2), 2, 0, spec)
    with pytest.raises(DimensionError):
        generate_shocks(np.eye(2), 0, 4, spec)
    with pytest.raises(DimensionError):
        generate_shocks(np.eye(3), 2, 4, spec)
    with pytest.raises(DistributionError):
        generate_shocks(np.array([[1.0, 2.0], [2.0, 1.0]]), 2, 4, spec)
    with pytest.raises(ValueError):
        ShockSpec(ShockKind.TDIST)

if __name__ == "__main__":
    test_matrix_sqrt_rank_deficient()
    test_normal_shocks_covariance()
    test_anticipated_shocks_zeroed()
    print("\nShock tests passed!")
