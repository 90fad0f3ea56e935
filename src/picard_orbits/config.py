"""
config
Immutable configuration passed explicitly into every solver component
"""

from dataclasses import dataclass
from functools import cached_property

import numpy as np

from . import astroconsts as ast
from .exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class CentralBody:
    """
    Physical constants of the central body

    Args:
        mu (float): gravitational parameter [km3/s2]. Defaults to Earth.
        radius (float): reference radius [km]. Defaults to Earth.
        rotation_rate (float): spin rate about +Z [rad/s]. Defaults to Earth.

    Returns:
        CentralBody: frozen object with canonical unit helpers
    """

    mu: float = ast.EARTH_MU
    radius: float = ast.EARTH_RAD
    rotation_rate: float = ast.EARTH_ANGVEL

    def __post_init__(self):
        if self.mu <= 0 or self.radius <= 0:
            raise InvalidConfigurationError(
                "Gravitational parameter and radius must be positive"
            )
        if not np.isfinite(self.rotation_rate):
            raise InvalidConfigurationError("Rotation rate must be finite")

    @cached_property
    def distance_unit(self) -> float:
        """Canonical distance unit [km]"""
        return self.radius

    @cached_property
    def time_unit(self) -> float:
        """Canonical time unit [s]"""
        return np.sqrt(self.radius**3 / self.mu)

    @cached_property
    def velocity_unit(self) -> float:
        """Canonical velocity unit [km/s]"""
        return self.distance_unit / self.time_unit

    def period(self, semi_major: float) -> float:
        """
        Period of an elliptical orbit about this body

        Args:
            semi_major (float): semi-major axis [km]

        Returns:
            float: orbital period [s]
        """
        return 2 * np.pi * np.sqrt(semi_major**3 / self.mu)


@dataclass(frozen=True)
class SolverSettings:
    """
    Picard-Chebyshev discretization and convergence controls

    Args:
        order (int): Chebyshev polynomial order N of the position series
        samples (int): number of sample intervals M (M+1 nodes)
        degree (int): gravity degree/order handed to the force model
        tol (float): convergence tolerance in canonical units
        max_iter (int): iteration cap. Defaults to 20.
        workers (int): processes used for force evaluation. 1 runs in-process.
    """

    order: int = 100
    samples: int = 110
    degree: int = 6
    tol: float = ast.DEFAULT_TOLERANCE
    max_iter: int = ast.MAX_ITERATIONS
    workers: int = 1

    def __post_init__(self):
        if self.order < 2 or self.samples < 1:
            raise InvalidConfigurationError(
                f"Invalid discretization: N={self.order}, M={self.samples}. "
                "Need N >= 2 and M >= 1."
            )
        if self.order > self.samples:
            raise InvalidConfigurationError(
                f"Polynomial order N={self.order} exceeds sample count "
                f"M={self.samples}"
            )
        if not self.tol > 0:
            raise InvalidConfigurationError("Tolerance must be positive")
        if self.max_iter < 1:
            raise InvalidConfigurationError("Iteration cap must be at least 1")
        if self.workers < 1:
            raise InvalidConfigurationError("Worker count must be at least 1")
        if self.degree < 0:
            raise InvalidConfigurationError("Gravity degree must be non-negative")
