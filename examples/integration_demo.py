#!/usr/bin/env python3
"""Simple Monte Carlo Integration Example

Calculate the variance of a standard normal distribution.
Variance = E[X²] - E[X]²
"""

from mcintegrate import Distribution, EstimationRequest, MonteCarloEstimator, UniformSource

coeff_a = 1.0
coeff_b = 0.0

# Create estimator
estimator = MonteCarloEstimator(UniformSource(seed=42))

# Standard normal distribution N(0, 1)
request = EstimationRequest(None, Distribution.normal(mean=0.0, std=1.0), n_samples=200_000)

# Calculate E[X], E[X²], and E[a*X² + b*X] on the same sample
funcs = [
    lambda x: x,
    lambda x: x**2,
    lambda x: coeff_a * x**2 + coeff_b * x,
]
results = estimator.estimate_many(funcs, request)

mean = results[0].estimate
variance = results[1].estimate - mean**2

print(f"E[X]       = {results[0].estimate:+.6f} ± {results[0].std_error:.6f}  (expected: 0.0)")
print(f"E[X²]      = {results[1].estimate:.6f} ± {results[1].std_error:.6f}  (expected: 1.0)")
print(f"Variance   = {variance:.6f}  (expected: 1.0)")
print(f"E[aX²+bX]  = {results[2].estimate:.6f}  (expected: 1.0, a={coeff_a}, b={coeff_b})")
