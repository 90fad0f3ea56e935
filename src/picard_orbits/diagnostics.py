"""
diagnostics
Post-hoc quality checks on a converged trajectory. Nothing here feeds back
into the solver.
"""

from typing import Optional

import numpy as np

from . import astroconsts as ast
from .config import CentralBody
from .frames import inertial_to_rotating
from .perturbations import ForceModel


def jacobi_integral(
    position: np.ndarray,
    velocity: np.ndarray,
    body: CentralBody = CentralBody(),
    force: Optional[ForceModel] = None,
    degree: int = 0,
) -> np.ndarray:
    """
    Relative drift of the Jacobi integral (rotating-frame Hamiltonian)
        J = |v|^2 / 2 - w^2 (x^2 + y^2) / 2 - mu / r - V_pert(r)
    which is constant for any gravity field fixed in the rotating frame.

    Args:
        position (np.ndarray): (K, 3) rotating-frame position [km]
        velocity (np.ndarray): (K, 3) rotating-frame velocity [km/s]
        body (CentralBody): central body constants. Defaults to Earth.
        force (ForceModel, optional): force model; its `potential` is included
            when it has one
        degree (int): gravity degree passed to the potential

    Returns:
        np.ndarray: (K,) |J - J0| / |J0|
    """
    position = np.atleast_2d(position)
    velocity = np.atleast_2d(velocity)

    r = np.linalg.norm(position, axis=1)
    kinetic = 0.5 * np.sum(velocity**2, axis=1)
    rho_sq = position[:, 0] ** 2 + position[:, 1] ** 2
    centrifugal = 0.5 * body.rotation_rate**2 * rho_sq

    potential = body.mu / r
    if force is not None and hasattr(force, "potential"):
        # m2/s2 -> km2/s2
        pert = force.potential(position * ast.KM_TO_M, degree)
        potential = potential + pert / ast.KM_TO_M**2

    J = kinetic - centrifugal - potential

    return np.abs(J - J[0]) / np.abs(J[0])


def result_jacobi_integral(
    result,
    body: CentralBody = CentralBody(),
    force: Optional[ForceModel] = None,
    degree: int = 0,
) -> np.ndarray:
    """
    Jacobi integral drift of a solver result (inertial samples are rotated
    into the body-fixed frame first)

    Args:
        result (ConvergenceResult): solver output
        body (CentralBody): central body constants used in the solve
        force (ForceModel, optional): force model used in the solve
        degree (int): gravity degree used in the solve

    Returns:
        np.ndarray: (M+1,) |J - J0| / |J0|
    """
    pos_B, vel_B = inertial_to_rotating(
        result.time, result.position, result.velocity, rate=body.rotation_rate
    )
    return jacobi_integral(pos_B, vel_B, body, force, degree)
