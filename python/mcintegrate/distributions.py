"""Probability distributions understood by the variate generator.

The set of families is closed: ``DistributionType`` enumerates every kind the
generator knows how to sample, and ``Distribution`` carries the family tag,
its validated parameters and a vectorized density. Generation rules live in
``mcintegrate.generator``.

Examples:
    >>> Distribution.exponential(rate=2.0)
    >>> Distribution.chi_squared(v=3)          # 6 degrees of freedom
    >>> Distribution.gamma(a=4, beta=0.5)
    >>> Distribution.from_name("beta", a=2, b=5)
"""

import math
from enum import Enum, auto
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
from scipy.special import betaln, gammaln, xlog1py, xlogy

from .config import get_settings
from .errors import InvalidArgument, UnsupportedDistribution

ArrayLike = Union[float, np.ndarray]


class DistributionType(Enum):
    """Supported distribution families."""

    UNIFORM = auto()
    EXPONENTIAL = auto()
    WEIBULL = auto()
    CAUCHY = auto()
    LOGISTIC = auto()
    NORMAL = auto()
    CHI_SQUARED = auto()
    GAMMA = auto()
    BETA = auto()
    INVERSE_CDF = auto()
    TABLE = auto()


def _real(name: str, value) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a real number, got {value!r}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a real number, got {value!r}") from None
    if not math.isfinite(value):
        raise InvalidArgument(f"{name} must be finite, got {value}")
    return value


def _positive(name: str, value) -> float:
    value = _real(name, value)
    if value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {value}")
    return value


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")
    if isinstance(value, (int, np.integer)):
        ivalue = int(value)
    elif isinstance(value, float) and value.is_integer():
        ivalue = int(value)
    else:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")
    if ivalue <= 0:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")
    return ivalue


def _gamma_logpdf(x: np.ndarray, shape: float, scale: float) -> np.ndarray:
    return xlogy(shape - 1.0, x) - x / scale - shape * np.log(scale) - gammaln(shape)


def _compute_cdf_table(
    pdf: Callable,
    x_min: float,
    x_max: float,
    n_points: int,
) -> tuple:
    """Compute a normalized CDF lookup table on [x_min, x_max].

    Uses the trapezoidal rule and rescales so the last entry is exactly 1.0.

    Returns:
        (x_grid, cdf_values, total): grid, normalized CDF and the raw integral
        of ``pdf`` over the support (used to normalize the density).

    Raises:
        InvalidArgument: If the PDF integrates to zero on the support.
    """
    x_grid = np.linspace(x_min, x_max, n_points)
    pdf_values = np.array([pdf(float(x)) for x in x_grid], dtype=np.float64)

    pdf_values = np.nan_to_num(pdf_values, nan=0.0, posinf=0.0, neginf=0.0)
    pdf_values = np.clip(pdf_values, 0, None)

    dx = (x_max - x_min) / (n_points - 1)
    cdf_values = np.zeros(n_points)
    cdf_values[1:] = np.cumsum((pdf_values[:-1] + pdf_values[1:]) / 2) * dx

    total = cdf_values[-1]
    if total <= 0:
        raise InvalidArgument(
            "PDF integral is zero. Please check the PDF function or support range."
        )
    return x_grid, cdf_values / total, total


class Distribution:
    """A distribution family tag plus its parameters.

    Instances are created through the factory methods, which validate
    parameters and raise ``InvalidArgument`` on malformed ones. Every
    distribution provides a vectorized ``pdf(x)`` (used for importance
    weights and for the quadrature baseline) and a ``support`` interval.
    """

    def __init__(
        self,
        dist_type: DistributionType,
        params: dict,
        pdf_func: Optional[Callable[[np.ndarray], np.ndarray]],
        support: Tuple[float, float] = (-math.inf, math.inf),
        ppf_func: Optional[Callable] = None,
        x_table: Optional[np.ndarray] = None,
        cdf_table: Optional[np.ndarray] = None,
    ):
        self.dist_type = dist_type
        self.params = params
        self.support = support
        self._pdf_func = pdf_func
        self._ppf_func = ppf_func
        self._x_table = x_table
        self._cdf_table = cdf_table

    def __repr__(self):
        args = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"Distribution.{self.name}({args})"

    @property
    def name(self) -> str:
        return self.dist_type.name.lower()

    @property
    def has_pdf(self) -> bool:
        return self._pdf_func is not None

    def pdf(self, x: ArrayLike) -> ArrayLike:
        """Evaluate the density at x (scalar or array).

        Raises:
            UnsupportedDistribution: If the distribution was built from an
                inverse CDF without a density.
        """
        if self._pdf_func is None:
            raise UnsupportedDistribution(
                f"No density registered for {self!r}; pass pdf= to from_inverse_cdf"
            )
        arr = np.asarray(x, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            values = self._pdf_func(arr)
        if arr.ndim == 0:
            return float(values)
        return values

    @staticmethod
    def uniform(min: float = 0.0, max: float = 1.0) -> "Distribution":
        """Uniform distribution U(min, max), sampled by inverse transform."""
        lo = _real("min", min)
        hi = _real("max", max)
        if not lo < hi:
            raise InvalidArgument(f"uniform requires min < max, got {lo} >= {hi}")
        width = hi - lo

        def pdf(x):
            return np.where((x >= lo) & (x < hi), 1.0 / width, 0.0)

        return Distribution(
            DistributionType.UNIFORM, {"min": lo, "max": hi}, pdf, support=(lo, hi)
        )

    @staticmethod
    def exponential(rate: float = 1.0) -> "Distribution":
        """Exponential distribution with the given rate (1/mean).

        Sampled by inverse transform, ``X = -log(U) / rate``.
        """
        rate = _positive("rate", rate)

        def pdf(x):
            return np.where(x >= 0, rate * np.exp(-rate * np.abs(x)), 0.0)

        return Distribution(
            DistributionType.EXPONENTIAL, {"rate": rate}, pdf, support=(0.0, math.inf)
        )

    @staticmethod
    def weibull(shape: float, scale: float = 1.0) -> "Distribution":
        """Weibull distribution, sampled as ``scale * (-log U) ** (1 / shape)``."""
        k = _positive("shape", shape)
        lam = _positive("scale", scale)

        def pdf(x):
            z = np.abs(x) / lam
            return np.where(x >= 0, (k / lam) * z ** (k - 1) * np.exp(-(z**k)), 0.0)

        return Distribution(
            DistributionType.WEIBULL,
            {"shape": k, "scale": lam},
            pdf,
            support=(0.0, math.inf),
        )

    @staticmethod
    def cauchy(loc: float = 0.0, scale: float = 1.0) -> "Distribution":
        """Cauchy distribution, sampled as ``loc + scale * tan(pi * (U - 1/2))``."""
        loc = _real("loc", loc)
        scale = _positive("scale", scale)

        def pdf(x):
            z = (x - loc) / scale
            return 1.0 / (math.pi * scale * (1.0 + z * z))

        return Distribution(DistributionType.CAUCHY, {"loc": loc, "scale": scale}, pdf)

    @staticmethod
    def logistic(loc: float = 0.0, scale: float = 1.0) -> "Distribution":
        """Logistic distribution, sampled as ``loc + scale * log(U / (1 - U))``."""
        loc = _real("loc", loc)
        scale = _positive("scale", scale)

        def pdf(x):
            z = (x - loc) / scale
            return 1.0 / (4.0 * scale * np.cosh(z / 2.0) ** 2)

        return Distribution(
            DistributionType.LOGISTIC, {"loc": loc, "scale": scale}, pdf
        )

    @staticmethod
    def normal(mean: float = 0.0, std: float = 1.0) -> "Distribution":
        """Normal distribution N(mean, std), sampled with the Box-Muller transform."""
        mean = _real("mean", mean)
        sigma = _positive("std", std)
        sqrt_2pi = math.sqrt(2 * math.pi)

        def pdf(x):
            z = (x - mean) / sigma
            return np.exp(-0.5 * z * z) / (sigma * sqrt_2pi)

        return Distribution(DistributionType.NORMAL, {"mean": mean, "std": sigma}, pdf)

    @staticmethod
    def chi_squared(v: int) -> "Distribution":
        """Chi-squared distribution with 2v degrees of freedom.

        Sampled as ``2 * sum(X_1..X_v)`` with X_j ~ Exponential(1).
        """
        v = _positive_int("v", v)

        def pdf(x):
            safe = np.where(x >= 0, x, 0.0)
            return np.where(x >= 0, np.exp(_gamma_logpdf(safe, v, 2.0)), 0.0)

        return Distribution(
            DistributionType.CHI_SQUARED, {"v": v}, pdf, support=(0.0, math.inf)
        )

    @staticmethod
    def gamma(a: int, beta: float = 1.0) -> "Distribution":
        """Gamma distribution with integer shape a and scale beta.

        Sampled as ``beta * sum(X_1..X_a)`` with X_j ~ Exponential(1).
        """
        a = _positive_int("a", a)
        beta = _positive("beta", beta)

        def pdf(x):
            safe = np.where(x >= 0, x, 0.0)
            return np.where(x >= 0, np.exp(_gamma_logpdf(safe, a, beta)), 0.0)

        return Distribution(
            DistributionType.GAMMA, {"a": a, "beta": beta}, pdf, support=(0.0, math.inf)
        )

    @staticmethod
    def beta(a: int, b: int) -> "Distribution":
        """Beta distribution with integer shapes a and b.

        Sampled as ``S_a / S_{a+b}`` where S_k is the sum of the first k of
        a+b Exponential(1) variates.
        """
        a = _positive_int("a", a)
        b = _positive_int("b", b)
        log_norm = betaln(a, b)

        def pdf(x):
            inside = (x >= 0) & (x <= 1)
            safe = np.where(inside, x, 0.5)
            logp = xlogy(a - 1.0, safe) + xlog1py(b - 1.0, -safe) - log_norm
            return np.where(inside, np.exp(logp), 0.0)

        return Distribution(DistributionType.BETA, {"a": a, "b": b}, pdf, support=(0.0, 1.0))

    @staticmethod
    def from_inverse_cdf(
        ppf: Callable,
        pdf: Optional[Callable] = None,
        support: Tuple[float, float] = (-math.inf, math.inf),
        name: str = "custom",
    ) -> "Distribution":
        """Distribution defined by a caller-supplied inverse CDF.

        Args:
            ppf: Inverse CDF. Called with a numpy array of uniforms in (0, 1)
                and expected to return an array of the same shape.
            pdf: Optional density; required for importance weights and for
                the quadrature baseline.
            support: Support interval, may be infinite.
            name: Label stored in ``params`` for diagnostics.

        Example:
            >>> import numpy as np
            >>> pareto = Distribution.from_inverse_cdf(
            ...     lambda u: (1.0 - u) ** (-1.0 / 3.0),
            ...     pdf=lambda x: np.where(x >= 1, 3.0 * x**-4.0, 0.0),
            ...     support=(1.0, np.inf),
            ... )
        """
        if not callable(ppf):
            raise InvalidArgument("ppf must be callable")
        if pdf is not None and not callable(pdf):
            raise InvalidArgument("pdf must be callable")
        lo, hi = float(support[0]), float(support[1])
        if not lo < hi:
            raise InvalidArgument(f"support must satisfy lower < upper, got {support}")
        return Distribution(
            DistributionType.INVERSE_CDF,
            {"name": name, "support": (lo, hi)},
            pdf,
            support=(lo, hi),
            ppf_func=ppf,
        )

    @staticmethod
    def from_pdf(
        pdf_func: Callable[[float], float],
        support: Tuple[float, float],
        table_size: Optional[int] = None,
    ) -> "Distribution":
        """Custom distribution from an (unnormalized) density on a finite support.

        Builds a CDF lookup table with the trapezoidal rule; sampling inverts
        the table by linear interpolation. The exposed ``pdf`` is normalized
        by the table integral.

        Args:
            pdf_func: Density accepting a float and returning a float.
            support: Finite (x_min, x_max) interval.
            table_size: Grid size (minimum 1000, default from settings).

        Example:
            >>> import math
            >>> dist = Distribution.from_pdf(lambda x: math.sin(x), support=(0.0, math.pi))
        """
        if not callable(pdf_func):
            raise InvalidArgument("pdf_func must be callable")
        x_min = _real("support lower bound", support[0])
        x_max = _real("support upper bound", support[1])
        if not x_min < x_max:
            raise InvalidArgument(f"support must satisfy lower < upper, got {support}")
        if table_size is None:
            table_size = get_settings().table_size
        n_points = max(int(table_size), 1000)

        x_table, cdf_table, total = _compute_cdf_table(pdf_func, x_min, x_max, n_points)
        scalar_pdf = np.vectorize(pdf_func, otypes=[np.float64])

        def pdf(x):
            inside = (x >= x_min) & (x <= x_max)
            return np.where(inside, scalar_pdf(np.where(inside, x, x_min)) / total, 0.0)

        return Distribution(
            DistributionType.TABLE,
            {"table_size": n_points, "support": (x_min, x_max)},
            pdf,
            support=(x_min, x_max),
            x_table=x_table,
            cdf_table=cdf_table,
        )

    @staticmethod
    def from_name(name: str, **params) -> "Distribution":
        """Look up a parametric family by name.

        Raises:
            UnsupportedDistribution: If no family is registered under ``name``.
            InvalidArgument: If the parameters do not fit the family.
        """
        key = str(name).strip().lower().replace("-", "_")
        factory = _FACTORIES.get(key)
        if factory is None:
            raise UnsupportedDistribution(
                f"No generation rule registered for distribution {name!r}; "
                f"known families: {', '.join(sorted(_FACTORIES))}"
            )
        try:
            return factory(**params)
        except TypeError as exc:
            raise InvalidArgument(f"Bad parameters for {key}: {exc}") from None


_FACTORIES: Dict[str, Callable[..., Distribution]] = {
    "uniform": Distribution.uniform,
    "exponential": Distribution.exponential,
    "weibull": Distribution.weibull,
    "cauchy": Distribution.cauchy,
    "logistic": Distribution.logistic,
    "normal": Distribution.normal,
    "chi_squared": Distribution.chi_squared,
    "chi2": Distribution.chi_squared,
    "gamma": Distribution.gamma,
    "beta": Distribution.beta,
}
