"""Tests for distribution families and variate generation."""

import math

import numpy as np
import pytest
from scipy.integrate import trapezoid

from mcintegrate import (
    Distribution,
    InvalidArgument,
    NumericEvaluationError,
    UniformSource,
    UnsupportedDistribution,
    VariateGenerator,
    generate,
)


def make_generator(seed=42):
    return VariateGenerator(UniformSource(seed))


class TestDistributionCreation:
    """Test distribution creation and parameter validation."""

    def test_uniform_creation(self):
        dist = Distribution.uniform(min=0.0, max=2.0)
        assert dist.dist_type.name == "UNIFORM"
        assert dist.params == {"min": 0.0, "max": 2.0}
        assert dist.support == (0.0, 2.0)

    def test_exponential_creation(self):
        dist = Distribution.exponential(rate=2.0)
        assert dist.dist_type.name == "EXPONENTIAL"
        assert dist.params["rate"] == 2.0
        assert dist.support == (0.0, math.inf)

    def test_chi_squared_creation(self):
        dist = Distribution.chi_squared(v=3)
        assert dist.dist_type.name == "CHI_SQUARED"
        assert dist.params["v"] == 3

    def test_integral_float_shape_accepted(self):
        """Shapes given as integral floats are accepted and stored as int."""
        assert Distribution.gamma(a=3.0).params["a"] == 3

    def test_from_name(self):
        dist = Distribution.from_name("Gamma", a=2, beta=3.0)
        assert dist.dist_type.name == "GAMMA"
        assert dist.params == {"a": 2, "beta": 3.0}

    def test_from_name_alias(self):
        assert Distribution.from_name("chi2", v=1).dist_type.name == "CHI_SQUARED"

    def test_unknown_name(self):
        with pytest.raises(UnsupportedDistribution):
            Distribution.from_name("zipf", s=2.0)

    def test_bad_keyword(self):
        with pytest.raises(InvalidArgument):
            Distribution.from_name("exponential", lam=2.0)

    @pytest.mark.parametrize(
        "factory, kwargs",
        [
            (Distribution.uniform, {"min": 1.0, "max": 1.0}),
            (Distribution.exponential, {"rate": 0.0}),
            (Distribution.exponential, {"rate": -1.0}),
            (Distribution.normal, {"mean": 0.0, "std": 0.0}),
            (Distribution.normal, {"mean": math.nan, "std": 1.0}),
            (Distribution.weibull, {"shape": -2.0}),
            (Distribution.cauchy, {"scale": 0.0}),
            (Distribution.chi_squared, {"v": 0}),
            (Distribution.chi_squared, {"v": 1.5}),
            (Distribution.gamma, {"a": 2.5, "beta": 1.0}),
            (Distribution.gamma, {"a": 2, "beta": -1.0}),
            (Distribution.beta, {"a": 0, "b": 1}),
            (Distribution.beta, {"a": True, "b": 2}),
        ],
    )
    def test_malformed_parameters(self, factory, kwargs):
        """Malformed parameters raise InvalidArgument."""
        with pytest.raises(InvalidArgument):
            factory(**kwargs)

    def test_from_pdf_requires_finite_support(self):
        with pytest.raises(InvalidArgument):
            Distribution.from_pdf(lambda x: math.exp(-x), support=(0.0, math.inf))

    def test_from_pdf_zero_density(self):
        with pytest.raises(InvalidArgument):
            Distribution.from_pdf(lambda x: 0.0, support=(0.0, 1.0))


class TestDensities:
    """Test the vectorized pdf used for importance weights."""

    @pytest.mark.parametrize(
        "dist",
        [
            Distribution.uniform(-1.0, 3.0),
            Distribution.exponential(1.5),
            Distribution.normal(1.0, 2.0),
            Distribution.logistic(0.5, 1.5),
            Distribution.weibull(2.0, 1.5),
            Distribution.chi_squared(2),
            Distribution.gamma(3, 0.5),
            Distribution.beta(2, 5),
        ],
    )
    def test_density_integrates_to_one(self, dist):
        """Each density integrates to ~1 on a wide grid."""
        x = np.linspace(-60.0, 60.0, 600_001)
        assert abs(trapezoid(dist.pdf(x), x) - 1.0) < 1e-3

    def test_cauchy_density_mass(self):
        """Cauchy mass on [-60, 60] is 2 atan(60) / pi."""
        x = np.linspace(-60.0, 60.0, 600_001)
        total = trapezoid(Distribution.cauchy(0.0, 1.0).pdf(x), x)
        assert total == pytest.approx(2.0 * math.atan(60.0) / math.pi, rel=1e-6)

    def test_scalar_input_returns_float(self):
        value = Distribution.normal(0.0, 1.0).pdf(0.0)
        assert isinstance(value, float)
        assert value == pytest.approx(1.0 / math.sqrt(2 * math.pi))

    def test_density_zero_outside_support(self):
        assert Distribution.exponential(1.0).pdf(-1.0) == 0.0
        assert Distribution.beta(2, 2).pdf(1.5) == 0.0
        assert Distribution.gamma(2, 1.0).pdf(-0.1) == 0.0

    def test_gamma_density_at_zero(self):
        """Gamma(1, beta) is the exponential, with density 1/beta at 0."""
        assert Distribution.gamma(1, 2.0).pdf(0.0) == pytest.approx(0.5)

    def test_chi_squared_density_matches_closed_form(self):
        """Chi-squared with 2 d.o.f. has density exp(-x/2)/2."""
        dist = Distribution.chi_squared(1)
        assert dist.pdf(3.0) == pytest.approx(0.5 * math.exp(-1.5))

    def test_inverse_cdf_without_density(self):
        dist = Distribution.from_inverse_cdf(lambda u: u)
        assert not dist.has_pdf
        with pytest.raises(UnsupportedDistribution):
            dist.pdf(0.5)


class TestInverseTransform:
    """Test families generated by X = F^-1(U)."""

    def test_exponential_moments(self):
        """-log(U) has mean 1 and variance 1."""
        sample = make_generator(2024).generate(Distribution.exponential(1.0), 10_000)
        assert len(sample) == 10_000
        assert abs(sample.mean() - 1.0) < 0.05
        assert abs(sample.var() - 1.0) < 0.15

    def test_exponential_is_minus_log_u(self):
        """Exponential(1) variates are exactly -log of the open uniforms."""
        sample = make_generator(3).generate("exponential", 100)
        expected = -np.log(UniformSource(3).draw_open(100))
        np.testing.assert_array_equal(sample.values, expected)

    def test_exponential_rate(self):
        sample = make_generator(5).generate(Distribution.exponential(rate=4.0), 20_000)
        assert abs(sample.mean() - 0.25) < 0.01
        assert np.all(np.isfinite(sample.values))
        assert np.all(sample.values > 0)

    def test_uniform_range(self):
        sample = make_generator(6).generate(Distribution.uniform(2.0, 5.0), 20_000)
        assert np.all(sample.values >= 2.0)
        assert np.all(sample.values < 5.0)
        assert abs(sample.mean() - 3.5) < 0.03

    def test_weibull_mean(self):
        """Weibull(shape=2, scale=1) has mean Gamma(1.5)."""
        sample = make_generator(7).generate(Distribution.weibull(2.0, 1.0), 20_000)
        assert abs(sample.mean() - math.gamma(1.5)) < 0.02

    def test_cauchy_median(self):
        sample = make_generator(8).generate(Distribution.cauchy(loc=3.0, scale=0.5), 20_000)
        assert abs(float(np.median(sample.values)) - 3.0) < 0.05

    def test_logistic_moments(self):
        sample = make_generator(9).generate(Distribution.logistic(0.0, 1.0), 20_000)
        assert abs(sample.mean()) < 0.06
        assert abs(sample.var() - math.pi**2 / 3) < 0.25

    def test_user_inverse_cdf(self):
        """Pareto(3) from a caller-supplied inverse CDF has mean 1.5."""
        pareto = Distribution.from_inverse_cdf(
            lambda u: (1.0 - u) ** (-1.0 / 3.0),
            pdf=lambda x: np.where(x >= 1, 3.0 * np.abs(x) ** -4.0, 0.0),
            support=(1.0, math.inf),
            name="pareto",
        )
        sample = make_generator(10).generate(pareto, 20_000)
        assert np.all(sample.values >= 1.0)
        assert abs(sample.mean() - 1.5) < 0.03

    def test_failing_inverse_cdf(self):
        """An inverse CDF producing non-finite values is a numeric error."""
        broken = Distribution.from_inverse_cdf(lambda u: np.log(u - 2.0))
        with pytest.raises(NumericEvaluationError):
            make_generator().generate(broken, 10)

    def test_partial_generation_marks_failed_points(self):
        """generate_partial reports failing points instead of raising."""
        dist = Distribution.from_inverse_cdf(lambda u: np.where(u > 0.9, np.nan, u))
        u = UniformSource(13).draw_open(1000)

        sample = make_generator(13).generate_partial(dist, 1000)

        np.testing.assert_array_equal(sample.failed, u > 0.9)
        assert sorted(sample.failures) == list(np.flatnonzero(u > 0.9))
        assert np.all(np.isnan(sample.values[sample.failed]))
        np.testing.assert_array_equal(sample.values[~sample.failed], u[u <= 0.9])
        with pytest.raises(NumericEvaluationError):
            make_generator(13).generate(dist, 1000)

    def test_underflowing_inverse_cdf(self):
        """X = U**100 underflows to zero for small U, which is still a valid variate."""
        dist = Distribution.from_inverse_cdf(lambda u: u**100.0, support=(0.0, 1.0))
        sample = make_generator(12).generate(dist, 100_000)
        assert np.all(np.isfinite(sample.values))
        assert sample.values.min() < np.finfo(np.float64).tiny
        assert abs(sample.mean() - 1.0 / 101.0) < 0.002

    def test_table_distribution(self):
        """Density sin(x) on [0, pi] sampled through its CDF table."""
        dist = Distribution.from_pdf(math.sin, support=(0.0, math.pi))
        assert dist.params["table_size"] == 2048
        sample = make_generator(11).generate(dist, 20_000)
        assert np.all(sample.values >= 0.0)
        assert np.all(sample.values <= math.pi)
        assert abs(sample.mean() - math.pi / 2) < 0.03
        assert dist.pdf(math.pi / 2) == pytest.approx(0.5, rel=1e-3)


class TestDerivedTransformations:
    """Test families built from sums of Exponential(1) variates."""

    def test_chi_squared_mean(self):
        """v = 3 gives 6 degrees of freedom and mean 6."""
        sample = make_generator(314).generate(Distribution.chi_squared(v=3), 10_000)
        assert abs(sample.mean() - 6.0) < 0.1

    def test_chi_squared_consumes_one_exponential_batch(self):
        """Each variate uses exactly v exponentials from one batch of n*v uniforms."""
        sample = make_generator(12).generate(Distribution.chi_squared(v=3), 5)
        e = -np.log(UniformSource(12).draw_open(15)).reshape(5, 3)
        np.testing.assert_array_equal(sample.values, 2.0 * e.sum(axis=1))

    def test_gamma_moments(self):
        """Gamma(4, 0.5) has mean 2 and variance 1."""
        sample = make_generator(13).generate(Distribution.gamma(a=4, beta=0.5), 20_000)
        assert abs(sample.mean() - 2.0) < 0.05
        assert abs(sample.var() - 1.0) < 0.1

    def test_beta_moments(self):
        """Beta(2, 5) has mean 2/7."""
        a, b = 2, 5
        sample = make_generator(14).generate(Distribution.beta(a, b), 20_000)
        assert np.all((sample.values > 0) & (sample.values < 1))
        expected_var = a * b / ((a + b) ** 2 * (a + b + 1))
        assert abs(sample.mean() - a / (a + b)) < 0.01
        assert abs(sample.var() - expected_var) < 0.003

    def test_beta_uses_shared_exponentials(self):
        sample = make_generator(15).generate(Distribution.beta(2, 3), 4)
        e = -np.log(UniformSource(15).draw_open(20)).reshape(4, 5)
        np.testing.assert_array_equal(sample.values, e[:, :2].sum(axis=1) / e.sum(axis=1))

    def test_normal_moments(self):
        """Box-Muller gives N(1, 2) with mean 1 and variance 4."""
        sample = make_generator(16).generate(Distribution.normal(1.0, 2.0), 20_001)
        assert len(sample) == 20_001
        assert abs(sample.mean() - 1.0) < 0.06
        assert abs(sample.var() - 4.0) < 0.2


class TestGenerator:
    """Test the generate() contract."""

    def test_reproducible(self):
        a = make_generator(77).generate(Distribution.gamma(3, 1.0), 1000)
        b = make_generator(77).generate(Distribution.gamma(3, 1.0), 1000)
        np.testing.assert_array_equal(a.values, b.values)

    def test_sample_is_tagged(self):
        dist = Distribution.beta(2, 2)
        sample = make_generator().generate(dist, 10)
        assert sample.distribution is dist
        assert sample.values.dtype == np.float64
        assert not sample.values.flags.writeable

    def test_generate_by_name(self):
        sample = make_generator().generate("gamma", 100, a=2, beta=1.0)
        assert sample.distribution.dist_type.name == "GAMMA"

    def test_unregistered_name(self):
        with pytest.raises(UnsupportedDistribution):
            make_generator().generate("hypergeometric", 10)

    def test_not_a_distribution(self):
        with pytest.raises(UnsupportedDistribution):
            make_generator().generate(object(), 10)

    @pytest.mark.parametrize("n", [0, -5])
    def test_non_positive_count(self, n):
        with pytest.raises(InvalidArgument):
            make_generator().generate(Distribution.exponential(), n)

    def test_convenience_function(self):
        sample = generate("exponential", 50, seed=3)
        np.testing.assert_array_equal(
            sample.values, make_generator(3).generate(Distribution.exponential(), 50).values
        )
