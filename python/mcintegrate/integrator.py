"""Monte Carlo estimation of integrals and expectations.

An integral of the form  ∫ h(x) f(x) dx  is rewritten as  E_f[h(X)]  and
estimated by the sample mean of h over N variates drawn from f. When f is
awkward to sample, draw from an auxiliary density g instead and average the
re-weighted values  h(x) f(x) / g(x)  (importance sampling). Either way the
result carries the standard error  s / sqrt(N), which is the honest measure
of how far the estimate can be trusted.

Integrand failures at individual sample points (division by zero, overflow,
math domain errors, non-finite values) are not hidden: the point is excluded,
the reason recorded, and the exclusion count reported in the result.

Example:
    >>> import math
    >>> from mcintegrate import MonteCarloEstimator, EstimationRequest, Distribution, UniformSource
    >>>
    >>> # Gamma(5) = ∫_0^∞ x^4 e^-x dx, sampling from Exp(1)
    >>> request = EstimationRequest.importance(
    ...     integrand=lambda x: x**4 * math.exp(-x),
    ...     target_density=lambda x: 1.0,
    ...     proposal=Distribution.exponential(1.0),
    ...     n_samples=100_000,
    ... )
    >>> result = MonteCarloEstimator(UniformSource(seed=42)).estimate(request)
    >>> result.estimate, result.std_error
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .config import get_settings
from .distributions import Distribution
from .errors import InvalidArgument, NumericEvaluationError
from .generator import VariateGenerator
from .uniform import UniformSource, _check_count

logger = logging.getLogger(__name__)

Density = Union[Distribution, Callable[[float], float]]


def _density_callable(density: Optional[Density]) -> Optional[Callable[[float], float]]:
    if density is None:
        return None
    if isinstance(density, Distribution):
        return density.pdf
    if callable(density):
        return density
    raise InvalidArgument(f"Density must be callable or a Distribution, got {density!r}")


def _check_domain(domain) -> Optional[Tuple[float, float]]:
    if domain is None:
        return None
    try:
        lo, hi = (float(b) for b in domain)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Domain must be a (lower, upper) pair, got {domain!r}") from None
    if math.isnan(lo) or math.isnan(hi) or not lo < hi:
        raise InvalidArgument(f"Domain must satisfy lower < upper, got {domain!r}")
    return lo, hi


@dataclass(frozen=True)
class EstimationRequest:
    """Everything needed for one Monte Carlo estimate.

    Attributes:
        integrand: h, a function of one real argument.
        distribution: Sampling distribution g the variates are drawn from.
        n_samples: Number of variates N.
        domain: Optional (lower, upper) integration bounds, possibly infinite.
            Points outside contribute zero.
        target_density: Optional f. When set, the averaged values are
            ``h(x) * f(x) / g(x)`` and the request estimates ∫ h f dx.
            Pass ``lambda x: 1.0`` to estimate a plain integral ∫ h dx.
        retain_sample: Keep the per-point values in the result.
    """

    integrand: Callable[[float], float]
    distribution: Distribution
    n_samples: int
    domain: Optional[Tuple[float, float]] = None
    target_density: Optional[Density] = None
    retain_sample: bool = False

    @classmethod
    def importance(
        cls,
        integrand: Callable[[float], float],
        target_density: Density,
        proposal: Distribution,
        n_samples: int,
        domain: Optional[Tuple[float, float]] = None,
        retain_sample: bool = False,
    ) -> "EstimationRequest":
        """Build an importance-sampling request for E_f[h] drawing from ``proposal``."""
        return cls(
            integrand=integrand,
            distribution=proposal,
            n_samples=n_samples,
            domain=domain,
            target_density=target_density,
            retain_sample=retain_sample,
        )

    def bounds(self) -> Tuple[float, float]:
        """Integration bounds of the nominal integral."""
        domain = _check_domain(self.domain)
        if domain is not None:
            return domain
        return self.distribution.support

    def nominal_integrand(self) -> Callable[[float], float]:
        """The function whose integral over ``bounds()`` this request estimates.

        That is ``h(x) * f(x)``, with f the target density when one is given
        and the sampling density otherwise.
        """
        h = self.integrand
        density = _density_callable(self.target_density) or self.distribution.pdf

        def nominal(x: float) -> float:
            return float(h(x)) * float(density(x))

        return nominal


class SampleExclusion(NamedTuple):
    """A sample point dropped after a numeric failure.

    ``x`` is NaN when the variate itself could not be generated.
    """

    index: int
    x: float
    error: str


@dataclass(frozen=True)
class EstimationResult:
    """Outcome of a Monte Carlo estimate.

    Attributes:
        estimate: Sample mean of the integrand values that evaluated cleanly.
        std_error: Sample standard deviation / sqrt(n_used); always >= 0,
            ``inf`` when fewer than two values survive.
        n_samples: Number of variates requested.
        n_used: Number of values the estimate is computed from.
        n_excluded: Number of points dropped after a numeric failure.
        exclusions: One SampleExclusion per dropped point.
        sample: Integrand values (only when ``retain_sample`` was set).
    """

    estimate: float
    std_error: float
    n_samples: int
    n_used: int
    n_excluded: int = 0
    exclusions: Tuple[SampleExclusion, ...] = ()
    sample: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def confidence_interval(self, z: float = 1.96) -> Tuple[float, float]:
        """Normal-approximation interval ``estimate ± z * std_error``."""
        return self.estimate - z * self.std_error, self.estimate + z * self.std_error

    @property
    def relative_error(self) -> float:
        if self.estimate == 0:
            return math.inf if self.std_error > 0 else 0.0
        return self.std_error / abs(self.estimate)

    @property
    def exclusion_rate(self) -> float:
        return self.n_excluded / self.n_samples


class MonteCarloEstimator:
    """Classical and importance-sampling Monte Carlo integration.

    Args:
        source: Uniform source for the variates (ignored when ``generator``
            is given). Defaults to a source with the configured seed.
        generator: Variate generator to draw from.
    """

    def __init__(
        self,
        source: Optional[UniformSource] = None,
        generator: Optional[VariateGenerator] = None,
    ):
        self.generator = generator if generator is not None else VariateGenerator(source)

    def estimate(self, request: EstimationRequest) -> EstimationResult:
        """Estimate the integral described by ``request``.

        Raises:
            InvalidArgument: If n_samples is not positive or the domain is malformed.
            UnsupportedDistribution: If the sampling distribution cannot be generated,
                or importance weights need a density it does not have.
            NumericEvaluationError: If evaluation fails at every sample point.
        """
        return self.estimate_many([request.integrand], request)[0]

    def estimate_many(
        self,
        integrands: Sequence[Callable[[float], float]],
        request: EstimationRequest,
    ) -> List[EstimationResult]:
        """Estimate several integrands on the same set of variates.

        ``request`` supplies the sampling distribution, sample size, domain,
        target density and retention flag; its own integrand is ignored.
        """
        if len(integrands) == 0:
            raise InvalidArgument("At least one integrand is required")
        n = _check_count(request.n_samples)
        domain = _check_domain(request.domain)
        target = _density_callable(request.target_density)

        sample = self.generator.generate_partial(request.distribution, n)
        x = sample.values
        inside = np.ones(n, dtype=bool)
        if domain is not None:
            inside = (x >= domain[0]) & (x <= domain[1])
        proposal_pdf = request.distribution.pdf(x) if target is not None else None

        logger.debug(
            "Estimating %d integrand(s) with N=%d from %r", len(integrands), n, request.distribution
        )
        return [
            self._evaluate(h, x, inside, target, proposal_pdf, request.retain_sample, sample.failures)
            for h in integrands
        ]

    def _evaluate(
        self, h, x, inside, target, proposal_pdf, retain_sample, failures
    ) -> EstimationResult:
        n = len(x)
        values = np.zeros(n, dtype=np.float64)
        keep = np.ones(n, dtype=bool)
        exclusions = []

        with np.errstate(divide="raise", over="raise", invalid="raise", under="ignore"):
            for i in range(n):
                if i in failures:
                    keep[i] = False
                    exclusions.append(SampleExclusion(i, math.nan, failures[i]))
                    continue
                if not inside[i]:
                    continue
                xi = x[i]
                try:
                    v = h(xi)
                    if target is not None:
                        v = v * target(xi) / proposal_pdf[i]
                    v = float(v)
                    if not math.isfinite(v):
                        raise NumericEvaluationError(f"non-finite value {v}")
                except InvalidArgument:
                    raise
                except (ArithmeticError, ValueError) as exc:
                    keep[i] = False
                    exclusions.append(
                        SampleExclusion(i, float(xi), f"{type(exc).__name__}: {exc}")
                    )
                    continue
                values[i] = v

        used = values[keep]
        n_used = len(used)
        if n_used == 0:
            raise NumericEvaluationError(
                f"Evaluation failed at all {n} sample points; first error: {exclusions[0].error}"
            )
        if exclusions:
            logger.warning(
                "Excluded %d of %d sample points after numeric errors (first: %s)",
                len(exclusions),
                n,
                exclusions[0].error,
            )

        mean = float(np.mean(used))
        if n_used > 1:
            std_error = float(np.std(used, ddof=1) / math.sqrt(n_used))
        else:
            std_error = math.inf

        if retain_sample:
            used.flags.writeable = False
        return EstimationResult(
            estimate=mean,
            std_error=std_error,
            n_samples=n,
            n_used=n_used,
            n_excluded=len(exclusions),
            exclusions=tuple(exclusions),
            sample=used if retain_sample else None,
        )


def estimate(
    integrand: Callable[[float], float],
    distribution: Distribution,
    n_samples: Optional[int] = None,
    seed: Optional[int] = None,
    domain: Optional[Tuple[float, float]] = None,
) -> EstimationResult:
    """Convenience function: estimate E_g[h(X)] with a freshly seeded source.

    Example:
        >>> from mcintegrate import estimate, Distribution
        >>> result = estimate(lambda x: x * x, Distribution.normal(0.0, 1.0), 100_000, seed=1)
        >>> print(f"E[X²] = {result.estimate:.4f} ± {result.std_error:.4f}")
    """
    if n_samples is None:
        n_samples = get_settings().n_samples
    request = EstimationRequest(integrand, distribution, n_samples, domain=domain)
    return MonteCarloEstimator(UniformSource(seed)).estimate(request)


def estimate_importance_sampling(
    integrand: Callable[[float], float],
    target_density: Density,
    proposal: Distribution,
    n_samples: Optional[int] = None,
    seed: Optional[int] = None,
    domain: Optional[Tuple[float, float]] = None,
) -> EstimationResult:
    """Convenience function: estimate E_f[h(X)] by sampling from ``proposal``.

    Formula: E_f[h(X)] ≈ (1/N) Σ h(x_i) f(x_i) / g(x_i),  x_i ~ g

    Example:
        >>> from mcintegrate import estimate_importance_sampling, Distribution
        >>> target = Distribution.normal(0.0, 1.0)
        >>> proposal = Distribution.normal(1.0, 1.5)
        >>> result = estimate_importance_sampling(lambda x: x * x, target, proposal, 200_000)
    """
    if n_samples is None:
        n_samples = get_settings().n_samples
    request = EstimationRequest.importance(
        integrand, target_density, proposal, n_samples, domain=domain
    )
    return MonteCarloEstimator(UniformSource(seed)).estimate(request)
