"""Monte Carlo vs. quadrature comparison over a parameter sweep.

For every parameter value the harness builds an ``EstimationRequest``, runs
the Monte Carlo estimator and the quadrature baseline on the same nominal
integral, and records both together with their discrepancy.

Each sweep element i draws from its own ``UniformSource`` built from the
i-th child of the harness seed sequence. Streams therefore never overlap,
and the records are identical whether the sweep runs sequentially or in a
worker pool.

Example:
    >>> import math
    >>> from mcintegrate import ComparisonHarness, EstimationRequest, Distribution
    >>>
    >>> def gamma_request(lam):
    ...     return EstimationRequest.importance(
    ...         integrand=lambda x: x ** (lam - 1) * math.exp(-x),
    ...         target_density=lambda x: 1.0,
    ...         proposal=Distribution.exponential(1.0),
    ...         n_samples=50_000,
    ...     )
    >>> records = ComparisonHarness(seed=7).sweep([2, 3, 5, 8], gamma_request)
    >>> [round(r.rel_discrepancy, 4) for r in records]
"""

import logging
import math
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from .config import get_settings
from .errors import InvalidArgument
from .integrator import EstimationRequest, EstimationResult, MonteCarloEstimator
from .quadrature import QuadratureBaseline, QuadratureResult
from .uniform import UniformSource

logger = logging.getLogger(__name__)

_EXECUTORS = ("thread", "process")


@dataclass(frozen=True)
class ComparisonRecord:
    """Monte Carlo and quadrature outputs for one swept parameter value."""

    parameter: Any
    monte_carlo: EstimationResult
    quadrature: QuadratureResult
    abs_discrepancy: float
    rel_discrepancy: float
    z_score: float

    def as_row(self) -> Dict[str, Any]:
        """Flatten into plain Python scalars for a presentation layer."""
        return {
            "parameter": _coerce_value(self.parameter),
            "mc_estimate": self.monte_carlo.estimate,
            "mc_std_error": self.monte_carlo.std_error,
            "mc_n_used": self.monte_carlo.n_used,
            "mc_n_excluded": self.monte_carlo.n_excluded,
            "quad_value": self.quadrature.value,
            "quad_abserr": self.quadrature.abserr,
            "quad_warnings": len(self.quadrature.warnings),
            "abs_discrepancy": self.abs_discrepancy,
            "rel_discrepancy": self.rel_discrepancy,
            "z_score": self.z_score,
        }


def _coerce_value(v: Any) -> Any:
    """Convert numpy scalars into plain Python types."""
    if isinstance(v, np.floating):
        return float(v)
    if isinstance(v, np.integer):
        return int(v)
    if isinstance(v, np.bool_):
        return bool(v)
    return v


def records_to_rows(records: Sequence[ComparisonRecord]) -> List[Dict[str, Any]]:
    return [r.as_row() for r in records]


def discrepancy(mc: EstimationResult, quad: QuadratureResult) -> tuple:
    """Return (absolute, relative, z-score) discrepancy between the two results."""
    abs_diff = abs(mc.estimate - quad.value)
    if quad.value != 0:
        rel_diff = abs_diff / abs(quad.value)
    else:
        rel_diff = math.inf if abs_diff > 0 else 0.0
    if mc.std_error > 0:
        z = abs_diff / mc.std_error
    else:
        z = math.inf if abs_diff > 0 else 0.0
    return abs_diff, rel_diff, z


def _run_one_element(
    parameter: Any,
    seed_seq: np.random.SeedSequence,
    build_request_fn: Callable[[Any], EstimationRequest],
    baseline: QuadratureBaseline,
) -> ComparisonRecord:
    request = build_request_fn(parameter)
    if not isinstance(request, EstimationRequest):
        raise InvalidArgument(
            f"build_request_fn must return an EstimationRequest, got {type(request).__name__}"
        )
    mc = MonteCarloEstimator(UniformSource(seed_seq)).estimate(request)
    quad = baseline.integrate_request(request)
    abs_diff, rel_diff, z = discrepancy(mc, quad)
    return ComparisonRecord(parameter, mc, quad, abs_diff, rel_diff, z)


class ComparisonHarness:
    """Run Monte Carlo and the quadrature baseline side by side over a sweep.

    Args:
        seed: Root seed; element i uses child i of its seed sequence.
        baseline: Quadrature baseline (default ``QuadratureBaseline()``).
        max_workers: Worker count; 1 runs sequentially. Defaults to
            ``Settings.max_workers``.
        executor: "thread" or "process". Process pools need picklable
            (module-level) ``build_request_fn`` and integrands.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        baseline: Optional[QuadratureBaseline] = None,
        max_workers: Optional[int] = None,
        executor: Optional[str] = None,
    ):
        settings = get_settings()
        self.seed = settings.seed if seed is None else seed
        self.baseline = baseline if baseline is not None else QuadratureBaseline()
        self.max_workers = settings.max_workers if max_workers is None else max_workers
        self.executor = settings.executor if executor is None else executor
        if self.max_workers < 1:
            raise InvalidArgument(f"max_workers must be >= 1, got {self.max_workers}")
        if self.executor not in _EXECUTORS:
            raise InvalidArgument(
                f"executor must be one of {_EXECUTORS}, got {self.executor!r}"
            )

    def _seed_sequences(self, n: int) -> List[np.random.SeedSequence]:
        # fresh root each sweep so repeated sweeps reproduce
        return UniformSource(self.seed).seed_sequence.spawn(n)

    def iter_sweep(
        self,
        parameter_values: Sequence[Any],
        build_request_fn: Callable[[Any], EstimationRequest],
    ) -> Iterator[ComparisonRecord]:
        """Yield one ComparisonRecord per parameter value, in input order.

        Records already yielded stay valid if iteration is abandoned.
        """
        params = list(parameter_values)
        if not params:
            return
        seeds = self._seed_sequences(len(params))
        logger.info(
            "Sweeping %d parameter value(s) with %d %s worker(s)",
            len(params),
            self.max_workers,
            self.executor,
        )

        if self.max_workers <= 1:
            for i, (param, ss) in enumerate(zip(params, seeds)):
                yield _run_one_element(param, ss, build_request_fn, self.baseline)
                logger.debug("Sweep element %d/%d done", i + 1, len(params))
            return

        pool_cls = ThreadPoolExecutor if self.executor == "thread" else ProcessPoolExecutor
        with pool_cls(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(_run_one_element, param, ss, build_request_fn, self.baseline)
                for param, ss in zip(params, seeds)
            ]
            try:
                for i, fut in enumerate(futures):
                    yield fut.result()
                    logger.debug("Sweep element %d/%d done", i + 1, len(params))
            finally:
                for fut in futures:
                    fut.cancel()

    def sweep(
        self,
        parameter_values: Sequence[Any],
        build_request_fn: Callable[[Any], EstimationRequest],
    ) -> List[ComparisonRecord]:
        """Run the whole sweep and return records in the order of ``parameter_values``."""
        return list(self.iter_sweep(parameter_values, build_request_fn))
