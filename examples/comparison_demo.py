#!/usr/bin/env python3
"""Monte Carlo vs. Quadrature Example

Sweep λ in Γ(λ) = ∫_0^∞ x^(λ-1) e^-x dx and compare Monte Carlo estimates
(sampling from Exp(1)) against adaptive quadrature. Then integrate a
sharply peaked likelihood over a wide nominal domain, where quadrature can
report a tiny error bound on a poor answer.
"""

import logging
import math

from mcintegrate import (
    ComparisonHarness,
    Distribution,
    EstimationRequest,
    MonteCarloEstimator,
    QuadratureBaseline,
    UniformSource,
    records_to_rows,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def gamma_request(lam):
    return EstimationRequest.importance(
        integrand=lambda x: x ** (lam - 1) * math.exp(-x),
        target_density=lambda x: 1.0,
        proposal=Distribution.exponential(1.0),
        n_samples=100_000,
    )


harness = ComparisonHarness(seed=7, max_workers=4)
records = harness.sweep([1.5, 2, 3, 5, 8], gamma_request)

print(f"{'lambda':>8} {'MC':>12} {'SE':>10} {'quad':>12} {'rel diff':>10} {'z':>6}")
for row in records_to_rows(records):
    print(
        f"{row['parameter']:>8} {row['mc_estimate']:>12.5f} {row['mc_std_error']:>10.5f} "
        f"{row['quad_value']:>12.5f} {row['rel_discrepancy']:>10.2e} {row['z_score']:>6.2f}"
    )

# Likelihood of 50 observations centred at 700, flat prior on [0, 10000]
data = [700.0 + 0.1 * (k - 25) for k in range(50)]
n = len(data)
xbar = sum(data) / n


def likelihood(mu):
    return math.exp(-0.5 * sum((d - mu) ** 2 for d in data) + 0.5 * sum((d - xbar) ** 2 for d in data))


quad = QuadratureBaseline().integrate(likelihood, 0.0, 10_000.0)
mc = MonteCarloEstimator(UniformSource(seed=1)).estimate(
    EstimationRequest.importance(likelihood, lambda mu: 1.0, Distribution.normal(xbar, 0.5), 50_000)
)
print()
print(f"exact      = {math.sqrt(2 * math.pi / n):.6f}")
print(f"quadrature = {quad.value:.6f}  (reported error {quad.abserr:.1e}, warnings: {len(quad.warnings)})")
print(f"monte carlo= {mc.estimate:.6f} ± {mc.std_error:.6f}")
