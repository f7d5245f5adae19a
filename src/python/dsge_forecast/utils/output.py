import numpy as np
import pandas as pd

def _labels(model, var_type):
    if var_type == "states":
        return list(model.endogenous_states.keys())
    if var_type == "obs":
        return list(model.observables.keys())
    if var_type == "pseudo":
        return list(model.pseudo_observables.keys())
    if var_type == "shocks":
        return list(model.exogenous_shocks.keys())
    raise ValueError(f"Unknown var_type {var_type!r}")

def forecast_to_df(model, output, var_type="obs", draw=None):
    """
    Converts a [ndraws, n_vars, horizon] forecast output to a DataFrame
    with one column per variable and one row per forecast quarter.
    Uses the given draw, or the mean across draws if draw is None.
    """
    output = np.asarray(output)
    columns = _labels(model, var_type)
    if output.shape[1] != len(columns):
        raise ValueError(f"Output has {output.shape[1]} {var_type} but the model names {len(columns)}")

    mat = output.mean(axis=0) if draw is None else output[draw]
    df = pd.DataFrame(mat.T, columns=columns, index=np.arange(1, mat.shape[1] + 1))
    df.index.name = "Quarter"
    return df
