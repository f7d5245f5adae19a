import numpy as np
import scipy.stats as stats
from scipy.linalg import eigh

from .errors import DimensionError, DistributionError

def matrix_sqrt(A, tol=1e-10):
    """
    Symmetric square root S of a positive semi-definite matrix, S @ S = A.
    Computed from the eigendecomposition so rank-deficient A (e.g. a shock
    covariance with switched-off shocks) is handled where Cholesky fails.
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise DimensionError(f"Covariance matrix must be square, got shape {A.shape}")
    if not np.all(np.isfinite(A)):
        raise DistributionError("Covariance matrix has non-finite entries")
    if not np.allclose(A, A.T, atol=tol):
        raise DistributionError("Covariance matrix is not symmetric")

    w, V = eigh(A)
    scale = max(1.0, np.max(np.abs(w))) if w.size else 1.0
    if w.size and w.min() < -tol * scale:
        raise DistributionError(f"Covariance matrix is not positive semi-definite "
                                f"(smallest eigenvalue {w.min():.3e})")

    w = np.clip(w, 0.0, None)
    return (V * np.sqrt(w)) @ V.T

class AbstractShockDistribution:
    def __init__(self, mu, sigma):
        self.mu = np.asarray(mu, dtype=float)
        self.sigma = np.asarray(sigma, dtype=float)
        if self.sigma.shape != (self.dim, self.dim):
            raise DimensionError(f"sigma must have shape ({self.dim}, {self.dim}), got {self.sigma.shape}")

    @property
    def dim(self):
        return self.mu.shape[0]

    def _standard_draws(self, size, random_state):
        raise NotImplementedError

    def rvs(self, n, random_state=None):
        """
        Returns a (dim, n) matrix whose columns are i.i.d. draws mu + sigma @ z.
        """
        z = self._standard_draws((self.dim, n), random_state)
        return self.mu[:, None] + self.sigma @ z

class DegenerateMvNormal(AbstractShockDistribution):
    """
    Multivariate normal parameterised by a (possibly singular) square-root
    covariance sigma: x = mu + sigma @ z, z ~ N(0, I).
    """
    def _standard_draws(self, size, random_state):
        return stats.norm.rvs(size=size, random_state=random_state)

    def __repr__(self):
        return f"DegenerateMvNormal(dim={self.dim})"

class DegenerateDiagMvTDist(AbstractShockDistribution):
    """
    Scaled vector of independent Student's t variates:
    x = mu + sigma @ z, z_i ~ t(df).
    """
    def __init__(self, mu, sigma, df):
        super().__init__(mu, sigma)
        if df <= 0:
            raise DistributionError(f"Degrees of freedom must be positive, got {df}")
        self.df = df

    def _standard_draws(self, size, random_state):
        return stats.t.rvs(self.df, size=size, random_state=random_state)

    def __repr__(self):
        return f"DegenerateDiagMvTDist(dim={self.dim}, df={self.df})"
