import numpy as np
from collections import OrderedDict

from .errors import DimensionError

COND_TYPES = ("none", "semi", "full")

class Setting:
    def __init__(self, key, value, description=""):
        self.key = key
        self.value = value
        self.description = description

    def __repr__(self):
        return f"Setting({self.key}={self.value!r})"

class AbstractModel:
    def __init__(self):
        self.settings = OrderedDict()
        self.endogenous_states = OrderedDict()
        self.exogenous_shocks = OrderedDict()
        self.observables = OrderedDict()
        self.pseudo_observables = OrderedDict()
        self.init_settings()

    def add_setting(self, setting):
        self.settings[setting.key] = setting

    def get_setting(self, key):
        return self.settings[key].value

    def __getitem__(self, key):
        if key in self.settings:
            return self.get_setting(key)
        if hasattr(self, key):
            return getattr(self, key)
        raise KeyError(key)

    def init_settings(self):
        """
        Registers the default forecast settings. Subclasses override values
        by assigning to `self.settings[key].value` after construction.
        """
        self.add_setting(Setting("forecast_horizons", 60,
                                 "Number of periods to forecast ahead"))
        self.add_setting(Setting("n_conditional_periods", 1,
                                 "Periods of conditional data for semi/full conditional forecasts"))
        self.add_setting(Setting("forecast_kill_shocks", False,
                                 "Forecast with all shocks set to zero"))
        self.add_setting(Setting("forecast_tdist_shocks", False,
                                 "Draw shocks from a Student's t distribution"))
        self.add_setting(Setting("forecast_tdist_df_val", 15,
                                 "Degrees of freedom of t-distributed shocks"))
        self.add_setting(Setting("forecast_pseudoobservables", False,
                                 "Forecast pseudo-observables"))
        self.add_setting(Setting("n_anticipated_shocks", 0,
                                 "Number of anticipated policy shocks rm_shl1..rm_shlN"))
        self.add_setting(Setting("forecast_zlb_value", 0.13 / 4,
                                 "Floor on the constrained observable (quarterly)"))
        self.add_setting(Setting("forecast_zlb_tol", 1e-8,
                                 "Tolerance on the floor after the shock correction"))
        self.add_setting(Setting("zlb_observable", "obs_nominalrate",
                                 "Observable subject to the lower bound"))
        self.add_setting(Setting("zlb_shock", "rm_sh",
                                 "Shock solved for to enforce the lower bound"))

    @property
    def n_states(self):
        return len(self.endogenous_states)

    @property
    def n_shocks_exogenous(self):
        return len(self.exogenous_shocks)

    @property
    def n_observables(self):
        return len(self.observables)

    @property
    def n_pseudoobservables(self):
        return len(self.pseudo_observables)

    @property
    def n_states_augmented(self):
        # Default implementation, can be overridden by models with lags
        return self.n_states

    @property
    def n_anticipated_shocks(self):
        return self["n_anticipated_shocks"]

    def forecast_horizons(self, cond_type="none"):
        """
        Number of periods to forecast. Semi- and fully-conditional forecasts
        start after the conditional data, so their horizon is shorter.
        """
        if cond_type not in COND_TYPES:
            raise ValueError(f"cond_type must be one of {COND_TYPES}, got {cond_type!r}")

        horizon = int(self["forecast_horizons"])
        if cond_type in ("semi", "full"):
            horizon -= int(self["n_conditional_periods"])

        if horizon <= 0:
            raise DimensionError(f"Forecast horizon for cond_type={cond_type!r} is {horizon}")
        return horizon

    def init_model_indices(self):
        raise NotImplementedError("Subclasses must implement init_model_indices")

    def solve(self):
        """
        Returns the transition matrices (TTT, RRR, CCC) at the current parameters.
        """
        raise NotImplementedError

    def measurement(self, TTT, RRR, CCC):
        """
        Returns (ZZ, DD, QQ, EE).
        """
        raise NotImplementedError

    def pseudo_measurement(self, TTT, RRR, CCC):
        """
        Returns (ZZ_pseudo, DD_pseudo). Models without pseudo-observables
        return empty matrices.
        """
        n_states = np.asarray(TTT).shape[0]
        return np.zeros((0, n_states)), np.zeros(0)
