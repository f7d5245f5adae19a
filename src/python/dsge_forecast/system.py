import numpy as np

from .errors import DimensionError

class System:
    """
    State-space matrices for one draw.

    Transition:          z_t = CCC + TTT z_{t-1} + RRR eps_t,  eps_t ~ (0, QQ)
    Measurement:         y_t = DD + ZZ z_t
    Pseudo-measurement:  x_t = DD_pseudo + ZZ_pseudo z_t   (optional)
    """
    def __init__(self, TTT, RRR, CCC, QQ, ZZ, DD, ZZ_pseudo=None, DD_pseudo=None):
        self.TTT = np.asarray(TTT, dtype=float)
        self.RRR = np.asarray(RRR, dtype=float)
        self.CCC = np.asarray(CCC, dtype=float)
        self.QQ = np.asarray(QQ, dtype=float)
        self.ZZ = np.asarray(ZZ, dtype=float)
        self.DD = np.asarray(DD, dtype=float)
        self.ZZ_pseudo = None if ZZ_pseudo is None else np.asarray(ZZ_pseudo, dtype=float)
        self.DD_pseudo = None if DD_pseudo is None else np.asarray(DD_pseudo, dtype=float)
        self._check_shapes()

    def _check_shapes(self):
        n = self.TTT.shape[0] if self.TTT.ndim == 2 else -1
        if self.TTT.shape != (n, n):
            raise DimensionError(f"TTT must be square, got {self.TTT.shape}")
        if self.RRR.ndim != 2 or self.RRR.shape[0] != n:
            raise DimensionError(f"RRR must have {n} rows, got {self.RRR.shape}")
        n_shocks = self.RRR.shape[1]
        if self.CCC.shape != (n,):
            raise DimensionError(f"CCC must have shape ({n},), got {self.CCC.shape}")
        if self.QQ.shape != (n_shocks, n_shocks):
            raise DimensionError(f"QQ must have shape ({n_shocks}, {n_shocks}), got {self.QQ.shape}")
        if self.ZZ.ndim != 2 or self.ZZ.shape[1] != n:
            raise DimensionError(f"ZZ must have {n} columns, got {self.ZZ.shape}")
        if self.DD.shape != (self.ZZ.shape[0],):
            raise DimensionError(f"DD must have shape ({self.ZZ.shape[0]},), got {self.DD.shape}")

        if (self.ZZ_pseudo is None) != (self.DD_pseudo is None):
            raise DimensionError("ZZ_pseudo and DD_pseudo must be given together")
        if self.has_pseudo:
            if self.ZZ_pseudo.ndim != 2 or self.ZZ_pseudo.shape[1] != n:
                raise DimensionError(f"ZZ_pseudo must have {n} columns, got {self.ZZ_pseudo.shape}")
            if self.DD_pseudo.shape != (self.ZZ_pseudo.shape[0],):
                raise DimensionError(f"DD_pseudo must have shape ({self.ZZ_pseudo.shape[0]},), "
                                     f"got {self.DD_pseudo.shape}")

    def __getitem__(self, key):
        if key in ("TTT", "RRR", "CCC", "QQ", "ZZ", "DD", "ZZ_pseudo", "DD_pseudo"):
            return getattr(self, key)
        raise KeyError(key)

    @property
    def has_pseudo(self):
        return (self.ZZ_pseudo is not None and self.DD_pseudo is not None
                and self.ZZ_pseudo.size > 0 and self.DD_pseudo.size > 0)

    @property
    def n_states(self):
        return self.TTT.shape[0]

    @property
    def n_shocks(self):
        return self.RRR.shape[1]

    @property
    def n_observables(self):
        return self.ZZ.shape[0]

    @property
    def n_pseudo(self):
        return self.ZZ_pseudo.shape[0] if self.has_pseudo else 0

def compute_system(m):
    """
    Builds the System for the model's current parameter values.
    """
    TTT, RRR, CCC = m.solve()
    ZZ, DD, QQ, EE = m.measurement(TTT, RRR, CCC)

    if m["forecast_pseudoobservables"]:
        ZZ_pseudo, DD_pseudo = m.pseudo_measurement(TTT, RRR, CCC)
    else:
        ZZ_pseudo, DD_pseudo = None, None

    return System(TTT, RRR, CCC, QQ, ZZ, DD, ZZ_pseudo, DD_pseudo)
