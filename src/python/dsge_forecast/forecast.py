import numpy as np
from tqdm import tqdm

from .errors import DimensionError, ForecastError, ZLBConvergenceError, ZLBUnsolvableError
from .shocks import generate_shocks, shock_spec

class ZLBConstraint:
    """
    Lower bound `value` on observable `ind_r`, enforced by solving for
    shock `ind_r_sh`. `tol` bounds |y_r - value| after the correction.
    """
    def __init__(self, ind_r, ind_r_sh, value, tol=1e-8):
        self.ind_r = ind_r
        self.ind_r_sh = ind_r_sh
        self.value = value
        self.tol = tol

    def __repr__(self):
        return f"ZLBConstraint(ind_r={self.ind_r}, ind_r_sh={self.ind_r_sh}, value={self.value})"

class ForecastSettings:
    """
    Everything a forecast reads from the model, resolved once per batch.
    """
    def __init__(self, horizon, n_states, n_obs, n_pseudo, n_shocks,
                 shocks, zlb=None, cond_type="none"):
        self.horizon = horizon
        self.n_states = n_states
        self.n_obs = n_obs
        self.n_pseudo = n_pseudo
        self.n_shocks = n_shocks
        self.shocks = shocks
        self.zlb = zlb
        self.cond_type = cond_type

def forecast_settings(m, cond_type="none", enforce_zlb=False):
    horizon = m.forecast_horizons(cond_type)
    n_pseudo = m.n_pseudoobservables if m["forecast_pseudoobservables"] else 0

    zlb = None
    if enforce_zlb:
        zlb = ZLBConstraint(m.observables[m["zlb_observable"]],
                            m.exogenous_shocks[m["zlb_shock"]],
                            m["forecast_zlb_value"],
                            tol=m["forecast_zlb_tol"])

    return ForecastSettings(horizon, m.n_states_augmented, m.n_observables, n_pseudo,
                            m.n_shocks_exogenous, shock_spec(m), zlb=zlb, cond_type=cond_type)

def iterate(z_t1, eps_t, TTT, RRR, CCC, ZZ, DD, zlb=None):
    """
    Advances the state one period: z_t = C + T z_{t-1} + R eps_t.

    If `zlb` is given and the implied constrained observable falls below the
    floor, the driving shock is replaced by the value that puts the
    observable exactly on the floor.

    Returns:
        z_t: state in period t
        eps_t: shocks in period t, a new array (the input is not modified)
    """
    eps_t = np.array(eps_t, dtype=float)
    z_t = CCC + TTT @ z_t1 + RRR @ eps_t

    if zlb is None:
        return z_t, eps_t

    r, s = zlb.ind_r, zlb.ind_r_sh
    rate = DD[r] + ZZ[r, :] @ z_t
    if rate >= zlb.value:
        return z_t, eps_t

    # Solve for the shock putting the constrained observable on the floor
    eps_t[s] = 0.0
    z_t = CCC + TTT @ z_t1 + RRR @ eps_t

    impact = ZZ[r, :] @ RRR[:, s]
    # Zero up to rounding in the dot product
    if not np.abs(impact) > 4 * np.finfo(float).eps * (np.abs(ZZ[r, :]) @ np.abs(RRR[:, s])):
        raise ZLBUnsolvableError(f"Shock {s} has no impact on observable {r} (Z[r,:] @ R[:,s] = 0)")
    eps_t[s] = (zlb.value - DD[r] - ZZ[r, :] @ z_t) / impact

    # Forecast again with the new shock
    z_t = CCC + TTT @ z_t1 + RRR @ eps_t

    rate = DD[r] + ZZ[r, :] @ z_t
    if not np.abs(rate - zlb.value) <= zlb.tol:
        raise ZLBConvergenceError(f"Observable {r} is {rate!r} after correction, "
                                  f"floor is {zlb.value} (tol {zlb.tol})")
    return z_t, eps_t

def observables(states, ZZ, DD):
    """
    Measurement equation over a [n_states, horizon] path: obs = DD + ZZ states.
    """
    if ZZ.shape[1] != states.shape[0]:
        raise DimensionError(f"ZZ has {ZZ.shape[1]} columns but there are {states.shape[0]} states")
    return DD[:, None] + ZZ @ states

def pseudo_observables(states, ZZ_pseudo=None, DD_pseudo=None):
    # Empty [0, horizon] unless both matrices are present
    if ZZ_pseudo is None or DD_pseudo is None or ZZ_pseudo.size == 0 or DD_pseudo.size == 0:
        return np.zeros((0, states.shape[1]))
    return observables(states, ZZ_pseudo, DD_pseudo)

def compute_forecast(system, z0, shocks, zlb=None, n_pseudo=None):
    """
    Forecasts one draw under a given shock matrix.

    Args:
        system: System
        z0: State in the final historical period [n_states]
        shocks: [n_shocks, horizon]; not modified
        zlb: ZLBConstraint, or None to forecast unconstrained
        n_pseudo: Expected number of pseudo-observables. 0 skips the
                  pseudo-measurement; None uses whatever the system has.

    Returns:
        states: [n_states, horizon]
        obs: [n_obs, horizon]
        pseudo: [n_pseudo, horizon]
        shocks: [n_shocks, horizon], including any ZLB corrections
    """
    z0 = np.asarray(z0, dtype=float)
    shocks = np.array(shocks, dtype=float)

    if z0.shape != (system.n_states,):
        raise DimensionError(f"z0 must have shape ({system.n_states},), got {z0.shape}")
    if shocks.ndim != 2 or shocks.shape[0] != system.n_shocks or shocks.shape[1] == 0:
        raise DimensionError(f"shocks must have shape ({system.n_shocks}, horizon), got {shocks.shape}")

    TTT, RRR, CCC = system.TTT, system.RRR, system.CCC
    ZZ, DD = system.ZZ, system.DD
    horizon = shocks.shape[1]

    states = np.zeros((system.n_states, horizon))
    z_t1 = z0
    for t in range(horizon):
        states[:, t], shocks[:, t] = iterate(z_t1, shocks[:, t], TTT, RRR, CCC, ZZ, DD, zlb=zlb)
        z_t1 = states[:, t]

    obs = observables(states, ZZ, DD)

    if n_pseudo == 0:
        pseudo = np.zeros((0, horizon))
    else:
        pseudo = pseudo_observables(states, system.ZZ_pseudo, system.DD_pseudo)
        if n_pseudo is not None and pseudo.shape[0] != n_pseudo:
            raise DimensionError(f"Expected {n_pseudo} pseudo-observables, system gives {pseudo.shape[0]}")

    return states, obs, pseudo, shocks

def single_draw_forecast(m, system, z0, cond_type="none", enforce_zlb=False, shocks=None,
                         random_state=None, settings=None):
    """
    Forecasts one draw. If `shocks` is None they are drawn according to the
    model's shock settings (see shocks.shock_spec).

    `settings` may be passed to reuse a ForecastSettings built by
    forecast_settings(m, cond_type, enforce_zlb); cond_type and enforce_zlb
    are then ignored.
    """
    if settings is None:
        settings = forecast_settings(m, cond_type, enforce_zlb)

    if (system.n_states, system.n_shocks, system.n_observables) != \
            (settings.n_states, settings.n_shocks, settings.n_obs):
        raise DimensionError(f"System has (states, shocks, obs) = "
                             f"{(system.n_states, system.n_shocks, system.n_observables)}, model has "
                             f"{(settings.n_states, settings.n_shocks, settings.n_obs)}")

    if shocks is None:
        shocks = generate_shocks(system.QQ, settings.n_shocks, settings.horizon, settings.shocks,
                                 random_state=random_state)
    else:
        shocks = np.asarray(shocks, dtype=float)
        if shocks.shape != (settings.n_shocks, settings.horizon):
            raise DimensionError(f"shocks must have shape ({settings.n_shocks}, {settings.horizon}), "
                                 f"got {shocks.shape}")

    return compute_forecast(system, z0, shocks, zlb=settings.zlb, n_pseudo=settings.n_pseudo)

def forecast(m, systems, z0s, cond_type="none", enforce_zlb=False, shocks=None,
             seed=None, verbose=True):
    """
    Computes forecasts for all draws.

    Args:
        m: Model instance (settings and indices)
        systems: List of System, one per draw
        z0s: List of initial states [n_states], one per draw
        cond_type: "none", "semi" or "full"; semi/full shorten the horizon
        enforce_zlb: Enforce the lower bound on the constrained observable
        shocks: Optional [ndraws, n_shocks, horizon] shocks. Drawn per draw if None.
        seed: Seed of the SeedSequence from which each draw gets its own stream

    Returns:
        states: [ndraws, n_states, horizon]
        obs: [ndraws, n_obs, horizon]
        pseudo: [ndraws, n_pseudo, horizon]
        shocks: [ndraws, n_shocks, horizon]

    The first failing draw aborts the batch: its exception is re-raised with
    `draw` set to the draw index.
    """
    settings = forecast_settings(m, cond_type, enforce_zlb)
    ndraws = len(systems)
    horizon = settings.horizon

    if len(z0s) != ndraws:
        raise DimensionError(f"Got {ndraws} systems but {len(z0s)} initial states")

    shocks_provided = shocks is not None
    if shocks_provided:
        shocks = np.asarray(shocks, dtype=float)
        if shocks.shape != (ndraws, settings.n_shocks, horizon):
            raise DimensionError(f"shocks must have shape ({ndraws}, {settings.n_shocks}, {horizon}), "
                                 f"got {shocks.shape}")

    states_out = np.zeros((ndraws, settings.n_states, horizon))
    obs_out = np.zeros((ndraws, settings.n_obs, horizon))
    pseudo_out = np.zeros((ndraws, settings.n_pseudo, horizon))
    shocks_out = np.zeros((ndraws, settings.n_shocks, horizon))

    streams = np.random.SeedSequence(seed).spawn(ndraws)

    if verbose:
        print(f"Forecasting {ndraws} draws (horizon={horizon}, cond_type={cond_type}, "
              f"enforce_zlb={enforce_zlb})...")

    for i in tqdm(range(ndraws), disable=not verbose):
        shocks_i = shocks[i] if shocks_provided else None
        try:
            states_i, obs_i, pseudo_i, shocks_i = single_draw_forecast(
                m, systems[i], z0s[i], shocks=shocks_i,
                random_state=np.random.default_rng(streams[i]), settings=settings)
        except ForecastError as e:
            e.draw = i
            print(f"Forecast failed for draw {i}: {e}")
            raise

        states_out[i, :, :] = states_i
        obs_out[i, :, :] = obs_i
        pseudo_out[i, :, :] = pseudo_i
        shocks_out[i, :, :] = shocks_i

    return states_out, obs_out, pseudo_out, shocks_out

def terminal_state(kal):
    """
    Filtered state in the final historical period. `kal` is a filter output
    mapping holding either 'zend' or the filtered path 'states' [n_states, T],
    or the filtered path itself.
    """
    if isinstance(kal, np.ndarray):
        return np.asarray(kal, dtype=float)[:, -1]
    if "zend" in kal:
        return np.asarray(kal["zend"], dtype=float)
    return np.asarray(kal["states"], dtype=float)[:, -1]

def forecast_from_filter(m, systems, kals, cond_type="none", enforce_zlb=False, shocks=None,
                         seed=None, verbose=True):
    """
    Same as forecast(), starting each draw from the last filtered state.
    """
    z0s = [terminal_state(kal) for kal in kals]
    return forecast(m, systems, z0s, cond_type=cond_type, enforce_zlb=enforce_zlb,
                    shocks=shocks, seed=seed, verbose=verbose)
