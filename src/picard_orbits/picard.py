"""
picard
Second-order Picard-Chebyshev solver for the perturbed two-body two-point
boundary value problem: given r(t0) = r0 and r(tf) = rf, find the trajectory
and the departure velocity under central gravity plus a perturbing force model
evaluated in the rotating (Earth-fixed) frame.

Adapted from the Junkins & Woollands Picard-Chebyshev lecture series
(Example 5, TPBVP II).
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum, auto
from multiprocessing import Pool
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from . import astroconsts as ast
from .chebyshev import ChebyshevOperatorSet, clenshaw_curtis_operators
from .config import CentralBody, SolverSettings
from .exceptions import InvalidConfigurationError
from .frames import inertial_to_rotating, rotating_to_inertial
from .orbitalcore import (
    elements_to_statevector,
    fg_trajectory,
    trajectory_to_dataframe,
    two_body_acceleration,
)
from .perturbations import ForceModel, ZeroForce, evaluate_force_model

logger = logging.getLogger(__name__)


class SolverState(Enum):
    """Lifecycle of a Picard-Chebyshev solve."""
    SEEDED = auto()      # trajectory = initial guess
    ITERATING = auto()   # at least one pass, tolerance not met yet
    CONVERGED = auto()   # error <= tolerance
    EXHAUSTED = auto()   # iteration cap reached first


@dataclass(frozen=True)
class BoundaryConditions:
    """
    Fixed endpoints of the transfer

    Args:
        r0 (np.ndarray): initial position [km]
        rf (np.ndarray): final position [km]
        t0 (float): initial time [s]
        tf (float): final time [s]
    """

    r0: np.ndarray
    rf: np.ndarray
    t0: float
    tf: float

    def __post_init__(self):
        r0 = np.array(self.r0, dtype=float)
        rf = np.array(self.rf, dtype=float)

        if r0.shape != (3,) or rf.shape != (3,):
            raise InvalidConfigurationError("Boundary positions must be 3-vectors")
        if not (np.isfinite(r0).all() and np.isfinite(rf).all()):
            raise InvalidConfigurationError("Boundary positions must be finite")
        if not self.tf > self.t0:
            raise InvalidConfigurationError(
                f"Final time ({self.tf}) must exceed initial time ({self.t0})"
            )

        r0.setflags(write=False)
        rf.setflags(write=False)
        object.__setattr__(self, "r0", r0)
        object.__setattr__(self, "rf", rf)

    @property
    def w1(self) -> float:
        """Time midpoint [s]"""
        return (self.tf + self.t0) / 2

    @property
    def w2(self) -> float:
        """Time half-range [s]"""
        return (self.tf - self.t0) / 2


@dataclass(frozen=True)
class IterationState:
    """Trajectory after one pass, replaced wholesale every iteration."""

    position: np.ndarray  # (M+1, 3) [km]
    velocity: np.ndarray  # (M+1, 3) [km/s]
    error: float
    iteration: int


@dataclass(frozen=True)
class ConvergenceResult:
    """
    Outcome of a solve. Always carries the last trajectory, whether or not the
    tolerance was met.
    """

    time: np.ndarray
    position: np.ndarray
    velocity: np.ndarray
    iterations: int
    error: float
    converged: bool
    state: SolverState
    error_history: List[float] = field(default_factory=list)

    @property
    def initial_velocity(self) -> np.ndarray:
        """Departure velocity solving the boundary value problem [km/s]"""
        return self.velocity[0]

    @property
    def final_velocity(self) -> np.ndarray:
        """Arrival velocity [km/s]"""
        return self.velocity[-1]

    def to_dataframe(self) -> pd.DataFrame:
        """TIME, RX, RY, RZ, VX, VY, VZ dataframe of the trajectory"""
        return trajectory_to_dataframe(self.time, self.position, self.velocity)


class PicardChebyshevSolver:
    """
    Fixed-point iteration on the Chebyshev coefficients of position and
    velocity. The constant operators are built once per solver.

    Args:
        settings (SolverSettings): discretization and convergence controls
        body (CentralBody): central body constants. Defaults to Earth.
        force (ForceModel): perturbing force model. Defaults to none.
    """

    def __init__(
        self,
        settings: SolverSettings = SolverSettings(),
        body: CentralBody = CentralBody(),
        force: Optional[ForceModel] = None,
    ):
        self.settings = settings
        self.body = body
        self.force = ZeroForce() if force is None else force

        max_degree = getattr(self.force, "max_degree", None)
        if max_degree is not None and settings.degree > max_degree:
            raise InvalidConfigurationError(
                f"Force model supports degree <= {max_degree}, "
                f"got {settings.degree}"
            )

        self.operators: ChebyshevOperatorSet = clenshaw_curtis_operators(
            settings.order, settings.samples
        )

    def sample_times(self, t0: float, tf: float) -> np.ndarray:
        """CGL sample times in [t0, tf]"""
        return self.operators.sample_times(t0, tf)

    def acceleration(self, time: np.ndarray, position: np.ndarray, pool=None):
        """
        Total inertial acceleration at every sample [km/s2]:
        central term plus the force model evaluated in the rotating frame

        Args:
            time (np.ndarray): (M+1,) sample times [s]
            position (np.ndarray): (M+1, 3) inertial positions [km]
            pool (Pool, optional): worker pool for per-sample force models

        Returns:
            np.ndarray: (M+1, 3) acceleration [km/s2]
        """
        rate = self.body.rotation_rate

        x_B, _ = inertial_to_rotating(time, position, rate=rate)
        g_B = evaluate_force_model(
            self.force, x_B * ast.KM_TO_M, self.settings.degree, pool
        )
        g_I, _ = rotating_to_inertial(time, g_B / ast.KM_TO_M, rate=rate)

        return two_body_acceleration(position, self.body.mu) + g_I

    def step(
        self,
        bc: BoundaryConditions,
        time: np.ndarray,
        position: np.ndarray,
        pool=None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        One Picard-Chebyshev pass. The returned positions satisfy both
        boundary conditions up to round-off, whatever the force model output.

        Args:
            bc (BoundaryConditions): fixed endpoints
            time (np.ndarray): (M+1,) sample times [s]
            position (np.ndarray): (M+1, 3) current positions [km]
            pool (Pool, optional): worker pool for per-sample force models

        Returns:
            tuple[np.ndarray, np.ndarray]: new positions and velocities
        """
        ops = self.operators
        w2 = bc.w2
        N = ops.N

        G = self.acceleration(time, position, pool)

        # particular solutions vanish at t0
        beta_p = w2 * ops.P1 @ ops.fit(G)
        alpha_p = w2 * ops.P2 @ beta_p

        # free constant: initial velocity that lands on rf at tf
        v0 = ((bc.rf - bc.r0) - ops.T2[-1] @ alpha_p) / (bc.tf - bc.t0)
        V0 = np.vstack([v0, np.zeros((N - 1, 3))])
        X0 = np.vstack([bc.r0, np.zeros((N, 3))])

        beta = beta_p + V0
        alpha = alpha_p + w2 * ops.P2 @ V0 + X0

        velocity = ops.T1 @ beta
        position = ops.T2 @ alpha

        return position, velocity

    def error(
        self,
        position: np.ndarray,
        velocity: np.ndarray,
        prev_position: np.ndarray,
        prev_velocity: np.ndarray,
    ) -> float:
        """
        Largest change across samples and axes in canonical units,
        max(position error, velocity error)
        """
        err_x = np.max(np.abs(position - prev_position)) / self.body.distance_unit
        err_v = np.max(np.abs(velocity - prev_velocity)) / self.body.velocity_unit
        return float(max(err_x, err_v))

    def solve(
        self,
        bc: BoundaryConditions,
        position: Optional[np.ndarray] = None,
        velocity: Optional[np.ndarray] = None,
        callback: Optional[Callable[[IterationState], None]] = None,
    ) -> ConvergenceResult:
        """
        Iterate from the seed trajectory until converged or the cap is hit

        Args:
            bc (BoundaryConditions): fixed endpoints
            position (np.ndarray, optional): (M+1, 3) seed positions [km].
                Defaults to straight-line interpolation between r0 and rf.
            velocity (np.ndarray, optional): (M+1, 3) seed velocities [km/s].
                Defaults to the constant chord velocity.
            callback (callable, optional): called with each new IterationState

        Returns:
            ConvergenceResult: last trajectory, iteration count, error, status
        """
        settings = self.settings
        time = self.sample_times(bc.t0, bc.tf)
        n_samples = settings.samples + 1

        chord = (bc.rf - bc.r0) / (bc.tf - bc.t0)
        if position is None:
            position = bc.r0 + np.outer(time - bc.t0, chord)
        if velocity is None:
            velocity = np.tile(chord, (n_samples, 1))

        position = np.array(position, dtype=float)
        velocity = np.array(velocity, dtype=float)
        if position.shape != (n_samples, 3) or velocity.shape != (n_samples, 3):
            raise InvalidConfigurationError(
                f"Seed trajectory must have shape ({n_samples}, 3), got "
                f"{position.shape} and {velocity.shape}"
            )

        state = IterationState(position, velocity, np.inf, 0)
        status = SolverState.SEEDED
        history = []

        # batch models are evaluated in one call and never use the pool
        batch = getattr(self.force, "batch", False)
        if settings.workers > 1 and not batch:
            pool_ctx = Pool(processes=settings.workers)
        else:
            pool_ctx = nullcontext()

        with pool_ctx as pool:
            while True:
                new_pos, new_vel = self.step(bc, time, state.position, pool)
                err = self.error(new_pos, new_vel, state.position, state.velocity)

                state = IterationState(new_pos, new_vel, err, state.iteration + 1)
                status = SolverState.ITERATING
                history.append(err)
                logger.debug("Iteration %d: error %.3e", state.iteration, err)

                if callback is not None:
                    callback(state)

                if err <= settings.tol:
                    status = SolverState.CONVERGED
                    break
                if state.iteration >= settings.max_iter:
                    status = SolverState.EXHAUSTED
                    break

        if status is SolverState.CONVERGED:
            logger.info(
                "Picard-Chebyshev converged in %d iterations (error %.3e)",
                state.iteration,
                state.error,
            )
        else:
            logger.warning(
                "Converged to: %.3e instead of %.3e after %d iterations",
                state.error,
                settings.tol,
                state.iteration,
            )

        return ConvergenceResult(
            time=time,
            position=state.position,
            velocity=state.velocity,
            iterations=state.iteration,
            error=state.error,
            converged=status is SolverState.CONVERGED,
            state=status,
            error_history=history,
        )


def solve_from_elements(
    semi_major: float,
    ecc: float,
    inc: float,
    raan: float,
    arg_peri: float,
    mean_anom: float,
    tf: float,
    t0: float = 0.0,
    special: float = 0.0,
    settings: SolverSettings = SolverSettings(),
    body: CentralBody = CentralBody(),
    force: Optional[ForceModel] = None,
) -> Tuple[ConvergenceResult, np.ndarray, np.ndarray]:
    """
    End-to-end boundary value problem from orbital elements:
    the F&G solution supplies r0, rf and the warm start, then the
    Picard-Chebyshev iteration solves the perturbed transfer between them.

    Args:
        semi_major (float): semi-major axis [km]
        ecc (float): eccentricity, 0 <= ecc < 1
        inc (float): inclination [rad]
        raan (float): right ascension of ascending node [rad]
        arg_peri (float): argument of periapsis [rad]
        mean_anom (float): mean anomaly at t0 [rad]
        tf (float): final time [s]
        t0 (float): initial time [s]. Defaults to 0.
        special (float): special parameter for degenerate orbits [rad]
        settings (SolverSettings): discretization and convergence controls
        body (CentralBody): central body constants
        force (ForceModel, optional): perturbing force model

    Returns:
        tuple: (ConvergenceResult, seed positions, seed velocities)
    """
    if not tf > t0:
        raise InvalidConfigurationError(
            f"Final time ({tf}) must exceed initial time ({t0})"
        )

    solver = PicardChebyshevSolver(settings, body, force)

    bc_time = solver.sample_times(t0, tf)
    r0, v0 = elements_to_statevector(
        semi_major, ecc, inc, raan, arg_peri, mean_anom, special, body.mu
    )
    seed_pos, seed_vel = fg_trajectory(r0, v0, bc_time, body.mu)

    bc = BoundaryConditions(r0=seed_pos[0], rf=seed_pos[-1], t0=t0, tf=tf)
    result = solver.solve(bc, seed_pos, seed_vel)

    return result, seed_pos, seed_vel
