#!/usr/bin/env python3
"""Importance Sampling Example

Estimate E_f[h(X)] by sampling from a different proposal distribution g,
and compute Γ(5) = ∫_0^∞ x^4 e^-x dx by sampling from Exp(1).
"""

import math

from mcintegrate import Distribution, EstimationRequest, MonteCarloEstimator, UniformSource

estimator = MonteCarloEstimator(UniformSource(seed=42))

# Target: N(0, 1), Proposal: N(0.5, 1.5)
request = EstimationRequest.importance(
    integrand=lambda x: x**2,
    target_density=Distribution.normal(0.0, 1.0),
    proposal=Distribution.normal(0.5, 1.5),
    n_samples=200_000,
)
result = estimator.estimate(request)
print(f"E_f[X²] = {result.estimate:.6f} ± {result.std_error:.6f}  (expected: 1.0)")

# Plain integral: flat target density, exponential proposal
request = EstimationRequest.importance(
    integrand=lambda x: x**4 * math.exp(-x),
    target_density=lambda x: 1.0,
    proposal=Distribution.exponential(1.0),
    n_samples=100_000,
)
result = estimator.estimate(request)
lo, hi = result.confidence_interval()
print(f"Γ(5)    = {result.estimate:.4f} ± {result.std_error:.4f}  95% CI [{lo:.3f}, {hi:.3f}]  (expected: 24)")
