"""mcintegrate - random variate generation and Monte Carlo integration.

This library generates random variates from target distributions using only
a seedable Uniform(0, 1) source (inverse transform and derived
transformations), estimates integrals and expectations by simulation with a
standard error attached to every estimate, and compares those estimates
against deterministic quadrature over parameter sweeps.

Example (Variate generation):
    >>> from mcintegrate import UniformSource, VariateGenerator, Distribution
    >>>
    >>> gen = VariateGenerator(UniformSource(seed=42))
    >>> x = gen.generate(Distribution.exponential(rate=1.0), 10_000)
    >>> y = gen.generate("chi_squared", 10_000, v=3)   # 6 degrees of freedom
    >>> print(f"mean = {x.mean():.3f}, {y.mean():.3f}")  # ~1.0, ~6.0

Example (Integration):
    >>> import math
    >>> from mcintegrate import MonteCarloEstimator, EstimationRequest, Distribution
    >>>
    >>> # Gamma(5) = ∫_0^∞ x^4 e^-x dx = 24
    >>> request = EstimationRequest.importance(
    ...     integrand=lambda x: x**4 * math.exp(-x),
    ...     target_density=lambda x: 1.0,
    ...     proposal=Distribution.exponential(1.0),
    ...     n_samples=100_000,
    ... )
    >>> result = MonteCarloEstimator(UniformSource(seed=42)).estimate(request)
    >>> print(f"{result.estimate:.2f} ± {result.std_error:.2f}")
"""

import logging

from .comparison import ComparisonHarness, ComparisonRecord, records_to_rows
from .config import Settings, configure, get_settings
from .distributions import Distribution, DistributionType
from .errors import (
    InvalidArgument,
    McIntegrateError,
    NumericEvaluationError,
    UnsupportedDistribution,
)
from .generator import VariateGenerator, VariateSample, generate
from .integrator import (
    EstimationRequest,
    EstimationResult,
    MonteCarloEstimator,
    SampleExclusion,
    estimate,
    estimate_importance_sampling,
)
from .quadrature import QuadratureBaseline, QuadratureResult
from .uniform import UniformSource

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "UniformSource",
    "Distribution",
    "DistributionType",
    "VariateGenerator",
    "VariateSample",
    "generate",
    "MonteCarloEstimator",
    "EstimationRequest",
    "EstimationResult",
    "SampleExclusion",
    "estimate",
    "estimate_importance_sampling",
    "QuadratureBaseline",
    "QuadratureResult",
    "ComparisonHarness",
    "ComparisonRecord",
    "records_to_rows",
    "Settings",
    "configure",
    "get_settings",
    "McIntegrateError",
    "InvalidArgument",
    "UnsupportedDistribution",
    "NumericEvaluationError",
]
