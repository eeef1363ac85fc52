"""Deterministic quadrature baseline.

A thin wrapper around ``scipy.integrate.quad`` used only to compare Monte
Carlo estimates against. Its error bound is advisory: adaptive quadrature
can report a tiny error on a sharply peaked integrand whose mass lies away
from where the routine looked, so the baseline also surfaces every
diagnostic the routine reports.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Tuple

from scipy import integrate

from .errors import InvalidArgument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuadratureResult:
    """Value and nominal (advisory) error bound from the quadrature routine."""

    value: float
    abserr: float
    n_evaluations: int
    warnings: Tuple[str, ...] = ()

    @property
    def reliable(self) -> bool:
        """False when the routine itself warned about its result."""
        return not self.warnings


class QuadratureBaseline:
    """Adaptive Gauss-Kronrod quadrature over finite or infinite bounds."""

    def __init__(self, limit: int = 50, epsabs: float = 1.49e-8, epsrel: float = 1.49e-8):
        if limit <= 0:
            raise InvalidArgument(f"limit must be positive, got {limit}")
        self.limit = limit
        self.epsabs = epsabs
        self.epsrel = epsrel

    def integrate(
        self, func: Callable[[float], float], lower: float, upper: float
    ) -> QuadratureResult:
        lower, upper = float(lower), float(upper)
        if math.isnan(lower) or math.isnan(upper) or lower > upper:
            raise InvalidArgument(f"Bounds must satisfy lower <= upper, got ({lower}, {upper})")
        if lower == upper:
            return QuadratureResult(0.0, 0.0, 0)

        out = integrate.quad(
            func,
            lower,
            upper,
            limit=self.limit,
            epsabs=self.epsabs,
            epsrel=self.epsrel,
            full_output=1,
        )
        value, abserr, info = out[:3]
        # with full_output quad returns its diagnostic message instead of warning
        messages = (str(out[3]).strip(),) if len(out) > 3 else ()
        for message in messages:
            logger.warning("Quadrature on [%s, %s]: %s", lower, upper, message.splitlines()[0])
        return QuadratureResult(
            value=float(value),
            abserr=float(abserr),
            n_evaluations=int(info.get("neval", 0)),
            warnings=messages,
        )

    def integrate_request(self, request) -> QuadratureResult:
        """Integrate the nominal integral of an ``EstimationRequest``."""
        lower, upper = request.bounds()
        return self.integrate(request.nominal_integrand(), lower, upper)
