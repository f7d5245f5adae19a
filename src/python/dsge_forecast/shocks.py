import numpy as np
from enum import Enum

from .distributions import DegenerateDiagMvTDist, DegenerateMvNormal, matrix_sqrt
from .errors import DimensionError

class ShockKind(Enum):
    KILL = "kill"
    TDIST = "tdist"
    NORMAL = "normal"

class ShockSpec:
    """
    How forecast shocks are drawn when the caller does not supply them.

    kind:        ShockKind
    df:          degrees of freedom, used only when kind is TDIST
    anticipated: slice of shock rows zeroed after sampling, or None
    """
    def __init__(self, kind=ShockKind.NORMAL, df=None, anticipated=None):
        if kind is ShockKind.TDIST and df is None:
            raise ValueError("t-distributed shocks need degrees of freedom")
        self.kind = kind
        self.df = df
        self.anticipated = anticipated

    def __repr__(self):
        return f"ShockSpec(kind={self.kind.value}, df={self.df}, anticipated={self.anticipated})"

def anticipated_shock_block(m):
    """
    Rows of the anticipated policy shocks rm_shl1..rm_shlN as a slice,
    or None if the model has no anticipated shocks.
    """
    n_ant = m.n_anticipated_shocks
    if n_ant <= 0:
        return None

    inds = [m.exogenous_shocks[f"rm_shl{i}"] for i in range(1, n_ant + 1)]
    if inds != list(range(inds[0], inds[0] + n_ant)):
        raise ValueError(f"Anticipated shocks must occupy contiguous indices, got {inds}")
    return slice(inds[0], inds[0] + n_ant)

def shock_spec(m):
    # kill > t > normal
    if m["forecast_kill_shocks"]:
        kind, df = ShockKind.KILL, None
    elif m["forecast_tdist_shocks"]:
        kind, df = ShockKind.TDIST, m["forecast_tdist_df_val"]
    else:
        kind, df = ShockKind.NORMAL, None
    return ShockSpec(kind, df=df, anticipated=anticipated_shock_block(m))

def generate_shocks(QQ, n_shocks, horizon, spec, random_state=None):
    """
    Draws a [n_shocks, horizon] matrix of forecast shock innovations.

    Args:
        QQ: Shock covariance matrix [n_shocks, n_shocks]
        n_shocks, horizon: Output dimensions
        spec: ShockSpec
        random_state: numpy Generator (or seed) consumed by the sampler

    Returns:
        shocks: [n_shocks, horizon]
    """
    if n_shocks <= 0 or horizon <= 0:
        raise DimensionError(f"Shock matrix dimensions must be positive, got ({n_shocks}, {horizon})")

    if spec.kind is ShockKind.KILL:
        return np.zeros((n_shocks, horizon))

    sigma = matrix_sqrt(QQ)
    if sigma.shape != (n_shocks, n_shocks):
        raise DimensionError(f"QQ must have shape ({n_shocks}, {n_shocks}), got {sigma.shape}")

    mu = np.zeros(n_shocks)
    if spec.kind is ShockKind.TDIST:
        dist = DegenerateDiagMvTDist(mu, sigma, spec.df)
    else:
        dist = DegenerateMvNormal(mu, sigma)

    shocks = dist.rvs(horizon, random_state=random_state)

    # Forecast without anticipated shocks
    if spec.anticipated is not None:
        shocks[spec.anticipated, :] = 0.0

    return shocks
