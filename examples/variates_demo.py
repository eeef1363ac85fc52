#!/usr/bin/env python3
"""Variate Generation Example

Draw from several families using only a seeded uniform source and compare
sample means with the analytical ones.
"""

import math

from mcintegrate import Distribution, UniformSource, VariateGenerator

gen = VariateGenerator(UniformSource(seed=2024))
N = 50_000

cases = [
    (Distribution.exponential(rate=1.0), 1.0),
    (Distribution.weibull(shape=2.0, scale=1.0), math.gamma(1.5)),
    (Distribution.normal(mean=1.0, std=2.0), 1.0),
    (Distribution.chi_squared(v=3), 6.0),
    (Distribution.gamma(a=4, beta=0.5), 2.0),
    (Distribution.beta(a=2, b=5), 2.0 / 7.0),
]

for dist, expected in cases:
    sample = gen.generate(dist, N)
    print(f"{dist!r:45s} mean = {sample.mean():.4f}  (expected: {expected:.4f})")
