"""Random variate generation from Uniform(0, 1) draws.

Two techniques are used:

* inverse transform, ``X = F^-1(U)``, for families with a closed-form or
  tabulated inverse CDF;
* derived transformations, where the target is a closed-form function of
  Exponential(1) variates (chi-squared, gamma, beta) or of a pair of
  uniforms (Box-Muller for the normal).

Logarithmic transforms draw from ``UniformSource.draw_open``, which redraws
any zero uniform instead of clamping it, so ``-log(U)`` is always finite.

Example:
    >>> from mcintegrate import UniformSource, VariateGenerator, Distribution
    >>> gen = VariateGenerator(UniformSource(seed=1))
    >>> sample = gen.generate(Distribution.chi_squared(v=3), 10_000)
    >>> sample.mean()  # close to 6
"""

import logging
import math
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np

from .distributions import Distribution, DistributionType
from .errors import NumericEvaluationError, UnsupportedDistribution
from .uniform import UniformSource, _check_count

logger = logging.getLogger(__name__)


class VariateSample:
    """Variates produced by one ``generate`` call.

    Attributes:
        values: read-only float64 array of variates (NaN where generation failed)
        distribution: the Distribution (family and parameters) they follow
        failures: index -> error message for points that could not be generated
    """

    def __init__(
        self,
        values: np.ndarray,
        distribution: Distribution,
        failures: Optional[Dict[int, str]] = None,
    ):
        values = np.asarray(values, dtype=np.float64)
        values.flags.writeable = False
        self.values = values
        self.distribution = distribution
        self.failures = dict(failures or {})

    @property
    def failed(self) -> np.ndarray:
        """Boolean mask of positions the inverse CDF could not evaluate."""
        mask = np.zeros(len(self.values), dtype=bool)
        mask[list(self.failures)] = True
        return mask

    def __repr__(self):
        return f"VariateSample({self.distribution!r}, n={len(self.values)})"

    def __len__(self):
        return len(self.values)

    def __getitem__(self, idx):
        return self.values[idx]

    def __iter__(self):
        return iter(self.values)

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.values
        return self.values.astype(dtype)

    def mean(self) -> float:
        return float(np.mean(self.values))

    def var(self) -> float:
        """Unbiased sample variance."""
        return float(np.var(self.values, ddof=1))


class VariateGenerator:
    """Generate variates of a named family from a ``UniformSource``.

    Args:
        source: Uniform source to consume. Defaults to a fresh source with
            the configured seed.
    """

    def __init__(self, source: Optional[UniformSource] = None):
        self.source = source if source is not None else UniformSource()
        self._rules: Dict[DistributionType, Callable[[Distribution, int], np.ndarray]] = {
            DistributionType.UNIFORM: self._uniform,
            DistributionType.EXPONENTIAL: self._exponential,
            DistributionType.WEIBULL: self._weibull,
            DistributionType.CAUCHY: self._cauchy,
            DistributionType.LOGISTIC: self._logistic,
            DistributionType.NORMAL: self._normal,
            DistributionType.CHI_SQUARED: self._chi_squared,
            DistributionType.GAMMA: self._gamma,
            DistributionType.BETA: self._beta,
            DistributionType.INVERSE_CDF: self._inverse_cdf,
            DistributionType.TABLE: self._table,
        }

    def generate(
        self, distribution: Union[Distribution, str], n: int, **params
    ) -> VariateSample:
        """Generate n variates.

        Args:
            distribution: A Distribution, or a family name resolved with
                ``Distribution.from_name(distribution, **params)``.
            n: Number of variates.

        Raises:
            InvalidArgument: If n is not positive or parameters are malformed.
            UnsupportedDistribution: If the family has no generation rule.
            NumericEvaluationError: If a user-supplied inverse CDF fails at
                any point.
        """
        sample = self.generate_partial(distribution, n, **params)
        if sample.failures:
            first = min(sample.failures)
            raise NumericEvaluationError(
                f"Inverse CDF failed at {len(sample.failures)} of {n} point(s); "
                f"first at index {first}: {sample.failures[first]}"
            )
        return sample

    def generate_partial(
        self, distribution: Union[Distribution, str], n: int, **params
    ) -> VariateSample:
        """Like ``generate``, but report per-point failures instead of raising.

        Points a user-supplied inverse CDF cannot evaluate hold NaN and are
        listed in ``VariateSample.failures``.
        """
        n = _check_count(n)
        if isinstance(distribution, str):
            distribution = Distribution.from_name(distribution, **params)
        elif not isinstance(distribution, Distribution):
            raise UnsupportedDistribution(
                f"Expected a Distribution or family name, got {type(distribution).__name__}"
            )
        rule = self._rules.get(distribution.dist_type)
        if rule is None:
            raise UnsupportedDistribution(
                f"No generation rule registered for {distribution.dist_type.name}"
            )
        logger.debug("Generating %d variates from %r", n, distribution)
        if distribution.dist_type is DistributionType.INVERSE_CDF:
            values, failures = rule(distribution, n)
            return VariateSample(values, distribution, failures)
        return VariateSample(rule(distribution, n), distribution)

    def exponentials(self, n: int, k: int = 1) -> np.ndarray:
        """Return an (n, k) array of i.i.d. Exponential(1) variates.

        The whole block comes from one batch of n*k uniforms.
        """
        u = self.source.draw_open(n * k)
        return (-np.log(u)).reshape(n, k)

    # Inverse transform

    def _uniform(self, dist: Distribution, n: int) -> np.ndarray:
        lo, hi = dist.params["min"], dist.params["max"]
        return lo + (hi - lo) * self.source.draw(n)

    def _exponential(self, dist: Distribution, n: int) -> np.ndarray:
        return -np.log(self.source.draw_open(n)) / dist.params["rate"]

    def _weibull(self, dist: Distribution, n: int) -> np.ndarray:
        e = -np.log(self.source.draw_open(n))
        return dist.params["scale"] * e ** (1.0 / dist.params["shape"])

    def _cauchy(self, dist: Distribution, n: int) -> np.ndarray:
        u = self.source.draw_open(n)
        return dist.params["loc"] + dist.params["scale"] * np.tan(math.pi * (u - 0.5))

    def _logistic(self, dist: Distribution, n: int) -> np.ndarray:
        u = self.source.draw_open(n)
        return dist.params["loc"] + dist.params["scale"] * (np.log(u) - np.log1p(-u))

    def _inverse_cdf(self, dist: Distribution, n: int) -> Tuple[np.ndarray, Dict[int, str]]:
        u = self.source.draw_open(n)
        failures: Dict[int, str] = {}
        try:
            x = _apply_ppf(dist._ppf_func, u)
        except (ArithmeticError, ValueError):
            # the batch failed somewhere; find out where point by point
            x = np.full(n, np.nan)
            for i in range(n):
                try:
                    x[i] = _apply_ppf(dist._ppf_func, u[i : i + 1])[0]
                except (ArithmeticError, ValueError) as exc:
                    failures[i] = f"{type(exc).__name__}: {exc}"
        for i in np.flatnonzero(~np.isfinite(x)):
            i = int(i)
            if i not in failures:
                failures[i] = f"non-finite value {x[i]}"
            x[i] = np.nan
        return x, failures

    def _table(self, dist: Distribution, n: int) -> np.ndarray:
        u = self.source.draw(n)
        return np.interp(u, dist._cdf_table, dist._x_table)

    # Derived transformations

    def _normal(self, dist: Distribution, n: int) -> np.ndarray:
        m = (n + 1) // 2
        u = self.source.draw_open(2 * m)
        r = np.sqrt(-2.0 * np.log(u[:m]))
        theta = 2.0 * math.pi * u[m:]
        z = np.concatenate([r * np.cos(theta), r * np.sin(theta)])[:n]
        return dist.params["mean"] + dist.params["std"] * z

    def _chi_squared(self, dist: Distribution, n: int) -> np.ndarray:
        return 2.0 * self.exponentials(n, dist.params["v"]).sum(axis=1)

    def _gamma(self, dist: Distribution, n: int) -> np.ndarray:
        return dist.params["beta"] * self.exponentials(n, dist.params["a"]).sum(axis=1)

    def _beta(self, dist: Distribution, n: int) -> np.ndarray:
        a, b = dist.params["a"], dist.params["b"]
        e = self.exponentials(n, a + b)
        return e[:, :a].sum(axis=1) / e.sum(axis=1)


def _apply_ppf(ppf: Callable, u: np.ndarray) -> np.ndarray:
    with np.errstate(divide="raise", over="raise", invalid="raise", under="ignore"):
        x = np.asarray(ppf(u), dtype=np.float64)
    if x.shape != u.shape:
        x = np.broadcast_to(x, u.shape)
    return x.copy()


def generate(
    distribution: Union[Distribution, str],
    n: int,
    seed: Optional[int] = None,
    **params,
) -> VariateSample:
    """Convenience function: generate n variates from a freshly seeded source.

    Example:
        >>> from mcintegrate import generate
        >>> sample = generate("gamma", 10_000, seed=3, a=4, beta=0.5)
    """
    return VariateGenerator(UniformSource(seed)).generate(distribution, n, **params)
