"""
perturbations
Force models queried by the Picard-Chebyshev solver in the Earth-fixed frame

Every force model follows the same narrow contract:
    accel = force(position_m, degree)
position in meters (Earth-fixed), acceleration in m/s2 *excluding* the
central-body term, which the solver adds itself. Models that set the class
attribute `batch = True` accept a (K, 3) array and return (K, 3); others are
called once per sample. Models may also expose `potential(position_m, degree)`
[m2/s2] so the Jacobi integral can include the perturbing potential, and
`max_degree` so the solver can reject an unsupported degree up front.
"""

from dataclasses import dataclass, field
from multiprocessing.pool import Pool
from typing import Callable, ClassVar, Dict, Optional, Protocol, Tuple

import numpy as np
from numpy.polynomial import legendre
from pymap3d import ecef2geodetic

from . import astroconsts as ast
from .exceptions import ForceModelError, InvalidConfigurationError


class ForceModel(Protocol):
    """Perturbing acceleration in the rotating frame."""

    def __call__(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        """position [m] -> acceleration [m/s2]"""
        ...


"""
FORCE MODELS
"""


class ZeroForce:
    """
    Unperturbed two-body problem: no acceleration beyond the central term
    """

    batch: ClassVar[bool] = True

    def __call__(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        return np.zeros_like(np.asarray(position_m, dtype=float))

    def potential(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        return np.zeros(np.atleast_2d(position_m).shape[0])


@dataclass(frozen=True)
class ConstantForce:
    """
    Constant acceleration fixed in the rotating frame, e.g. a synthetic
    perturbation for testing.

    Args:
        accel_m_s2 (tuple): acceleration [m/s2] in the rotating frame
    """

    accel_m_s2: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    batch: ClassVar[bool] = True

    def __call__(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        position_m = np.asarray(position_m, dtype=float)
        return np.broadcast_to(np.asarray(self.accel_m_s2), position_m.shape).copy()

    def potential(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        """Potential whose gradient is the constant acceleration"""
        return np.atleast_2d(position_m) @ np.asarray(self.accel_m_s2)


@dataclass(frozen=True)
class ZonalGravity:
    """
    Zonal spherical-harmonic gravity (J2 through J6), excluding the central term.
    Generalizes the Curtis zonal formulas through the Legendre-polynomial
    gradient of the zonal potential:
        V_n = -mu J_n R^n / r^(n+1) P_n(z/r)

    Args:
        mu (float): gravitational parameter [m3/s2]. Defaults to Earth.
        radius (float): reference radius [m]. Defaults to Earth.
        zonals (dict): degree -> unnormalized J_n. Defaults to Earth J2-J6.
        check_surface (bool): reject positions below the WGS84 ellipsoid
    """

    mu: float = ast.EARTH_MU * ast.KM_TO_M**3
    radius: float = ast.EARTH_RAD * ast.KM_TO_M
    zonals: Dict[int, float] = field(default_factory=lambda: dict(ast.EARTH_ZONALS))
    check_surface: bool = True
    batch: ClassVar[bool] = True

    @property
    def max_degree(self) -> int:
        """Highest zonal term available"""
        return max(self.zonals)

    def _terms(self, degree: int):
        """(n, J_n) pairs included at this degree"""
        if degree > self.max_degree:
            raise InvalidConfigurationError(
                f"Invalid Zonal Degree {degree}. Pick at most {self.max_degree}."
            )
        return [(n, J) for n, J in sorted(self.zonals.items()) if n <= degree]

    def _check_position(self, position_m: np.ndarray) -> np.ndarray:
        position_m = np.atleast_2d(np.asarray(position_m, dtype=float))
        r = np.linalg.norm(position_m, axis=1)

        if np.any(r == 0) or not np.isfinite(position_m).all():
            bad = int(np.argmax((r == 0) | ~np.isfinite(position_m).all(axis=1)))
            raise ForceModelError("Force model queried at an invalid position", bad)

        if self.check_surface:
            _, _, alt = ecef2geodetic(
                position_m[:, 0], position_m[:, 1], position_m[:, 2]
            )
            alt = np.atleast_1d(alt)
            if np.any(alt < 0):
                bad = int(np.argmax(alt < 0))
                raise ForceModelError(
                    f"Position below the reference ellipsoid (alt {alt[bad]:.1f} m)",
                    bad,
                )

        return position_m

    def __call__(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        """
        Zonal perturbing acceleration

        Args:
            position_m (np.ndarray): (3,) or (K, 3) Earth-fixed position [m]
            degree (int): highest zonal term to include

        Returns:
            np.ndarray: acceleration [m/s2], same shape as position_m
        """
        single = np.ndim(position_m) == 1
        pos = self._check_position(position_m)

        r = np.linalg.norm(pos, axis=1)
        r_hat = pos / r[:, None]
        s = r_hat[:, 2]

        # gradient of s = z/r
        grad_s = (np.array([0.0, 0.0, 1.0]) - s[:, None] * r_hat) / r[:, None]

        accel = np.zeros_like(pos)
        for n, J in self._terms(degree):
            unit = np.zeros(n + 1)
            unit[n] = 1.0
            Pn = legendre.legval(s, unit)
            dPn = legendre.legval(s, legendre.legder(unit))

            coeff = self.mu * J * self.radius**n
            dV_dr = coeff * (n + 1) * Pn / r ** (n + 2)
            dV_ds = -coeff * dPn / r ** (n + 1)

            accel += dV_dr[:, None] * r_hat + dV_ds[:, None] * grad_s

        return accel[0] if single else accel

    def potential(self, position_m: np.ndarray, degree: int) -> np.ndarray:
        """
        Perturbing (zonal) potential, sign convention a = grad(V)

        Args:
            position_m (np.ndarray): (K, 3) Earth-fixed position [m]
            degree (int): highest zonal term to include

        Returns:
            np.ndarray: (K,) potential [m2/s2]
        """
        pos = self._check_position(position_m)
        r = np.linalg.norm(pos, axis=1)
        s = pos[:, 2] / r

        V = np.zeros(len(pos))
        for n, J in self._terms(degree):
            unit = np.zeros(n + 1)
            unit[n] = 1.0
            V -= self.mu * J * self.radius**n / r ** (n + 1) * legendre.legval(s, unit)

        return V


"""
EVALUATION
"""


def _call_force(args: Tuple[Callable, np.ndarray, int]) -> np.ndarray:
    """
    Top-level function for pickling by multiprocessing.Pool.
    Unpacks (force, position, degree) and calls force(position, degree).
    """
    force, position, degree = args
    return np.asarray(force(position, degree), dtype=float)


def evaluate_force_model(
    force: ForceModel,
    position_m: np.ndarray,
    degree: int,
    pool: Optional[Pool] = None,
) -> np.ndarray:
    """
    Query the force model at every sample, preserving sample order.
    Batch models get one vectorized call; per-sample models are mapped
    across `pool` when given, otherwise evaluated in-process.

    Args:
        force (ForceModel): perturbing force model
        position_m (np.ndarray): (K, 3) Earth-fixed positions [m]
        degree (int): gravity degree and order
        pool (Pool, optional): worker pool for per-sample models

    Returns:
        np.ndarray: (K, 3) accelerations [m/s2]

    Raises:
        ForceModelError: malformed or non-finite acceleration
    """
    position_m = np.asarray(position_m, dtype=float)

    if getattr(force, "batch", False):
        accel = np.asarray(force(position_m, degree), dtype=float)
    elif pool is not None:
        tasks = [(force, pos, degree) for pos in position_m]
        accel = np.array(pool.map(_call_force, tasks))
    else:
        accel = np.array([_call_force((force, pos, degree)) for pos in position_m])

    if accel.shape != position_m.shape:
        raise ForceModelError(
            f"Force model returned shape {accel.shape}, expected {position_m.shape}"
        )

    bad = ~np.isfinite(accel).all(axis=1)
    if bad.any():
        raise ForceModelError(
            "Non-finite acceleration from force model", int(np.argmax(bad))
        )

    return accel
