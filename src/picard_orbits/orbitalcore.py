"""
orbitalcore
Two-body orbital mechanics used to seed and check the Picard-Chebyshev solver:
element conversion, Kepler's equation, and closed-form F&G propagation
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy.optimize import newton

from . import astroconsts as ast
from .exceptions import InvalidConfigurationError


"""
ORBITAL CLASSES
"""


@dataclass
class COES:
    """
    Class containing COES for single elliptical orbit

    Args:
        ecc (float): eccentricity [-], 0 <= ecc < 1
        inc_rad (float): inclination [rad]
        raan_rad (float): right ascension of ascending node [rad]
        arg_peri_rad (float): argument of periapsis [rad]
        theta_rad (float): true anomaly [rad]
        semi_major (float): semi major axis [km]
        mu (float, optional): gravitational parameter [km3/s2]. Defaults to Earth.

    Returns:
        COES: COES object with user-supplied parameters
    """

    ecc: float
    inc_rad: float
    raan_rad: float
    arg_peri_rad: float
    theta_rad: float
    semi_major: float
    mu: float = ast.EARTH_MU
    h: Optional[float] = None

    def __post_init__(self):
        if self.semi_major <= 0:
            raise InvalidConfigurationError(
                f"Semi-major axis must be positive, got {self.semi_major}"
            )
        if not 0 <= self.ecc < 1:
            raise InvalidConfigurationError(
                f"Eccentricity must be in [0, 1), got {self.ecc}"
            )

        if self.h is None:
            self.h: float = np.sqrt(self.semi_major * self.mu * (1 - self.ecc**2))

    def __str__(self) -> str:
        return (
            f"h [km2/s]: {self.h}\n"
            f"Eccentricity[~]: {self.ecc}\n"
            f"Inclination [rad]: {self.inc_rad}\n"
            f"RAAN [rad]: {self.raan_rad}\n"
            f"Argument of Perigee [rad]: {self.arg_peri_rad}\n"
            f"True Anomaly [rad]: {self.theta_rad}\n"
            f"Semi-Major Axis [km]: {self.semi_major}\n"
        )

    @property
    def period(self) -> float:
        """Orbital period [s]"""
        return 2 * np.pi * np.sqrt(self.semi_major**3 / self.mu)


"""
GENERIC FUNCTIONS
"""


# Rotation Matrices
def rot_z(theta: float) -> np.ndarray:
    """
    Rotation about Z Axis
    Adapted from Eqn. 4.34 "Orbital Mechanics for Engineers", Curtis

    Args:
        theta (float): angle to rotate through [rad]

    Returns:
        np.ndarray: Rotation matrix about Z axis
    """
    return np.array(
        [
            [np.cos(theta), np.sin(theta), 0],
            [-np.sin(theta), np.cos(theta), 0],
            [0, 0, 1],
        ]
    )


def rot_x(theta: float) -> np.ndarray:
    """
    Rotation about X Axis
    Adapted from Eqn. 4.32 "Orbital Mechanics for Engineers", Curtis

    Args:
        theta (float): angle to rotate through [rad]

    Returns:
        np.ndarray: Rotation matrix about X axis
    """
    return np.array(
        [
            [1, 0, 0],
            [0, np.cos(theta), np.sin(theta)],
            [0, -np.sin(theta), np.cos(theta)],
        ]
    )


"""
CONVERSIONS
"""


def solve_kepler(mean_anom: float, ecc: float, tol: float = 1e-14) -> float:
    """
    Solve Kepler's equation M = E - e sin(E) for the eccentric anomaly
    using Newton's iteration

    Args:
        mean_anom (float): mean anomaly [rad]
        ecc (float): eccentricity, 0 <= ecc < 1
        tol (float): iteration tolerance. Defaults to 1e-14

    Returns:
        float: eccentric anomaly [rad], same revolution as mean_anom
    """
    if not 0 <= ecc < 1:
        raise InvalidConfigurationError(f"Eccentricity must be in [0, 1), got {ecc}")

    Me = np.mod(mean_anom, 2 * np.pi)

    if Me < np.pi:
        E_0 = Me + ecc / 2
    else:
        E_0 = Me - ecc / 2

    def f(E: float) -> float:
        """
        Kepler's equation residual
        """
        return E - ecc * np.sin(E) - Me

    def fp(E: float) -> float:
        """
        Derivative of residual
        """
        return 1 - ecc * np.cos(E)

    E = newton(f, E_0, fprime=fp, tol=tol, maxiter=100)

    return E + (mean_anom - Me)


def mean_to_true_anomaly(mean_anom: float, ecc: float) -> float:
    """
    Convert mean anomaly to true anomaly for an elliptical orbit

    Args:
        mean_anom (float): mean anomaly [rad]
        ecc (float): eccentricity [-]

    Returns:
        float: true anomaly [rad] in [0, 2pi)
    """
    E = solve_kepler(mean_anom, ecc)
    theta = 2 * np.arctan2(
        np.sqrt(1 + ecc) * np.sin(E / 2), np.sqrt(1 - ecc) * np.cos(E / 2)
    )
    return np.mod(theta, 2 * np.pi)


def coes_to_statevector(coes: COES) -> np.ndarray:
    """
    Convert COES to State Vector: R, V
    Adapted from Algorithm 4.5, "Orbital Mechanics for Engineers", Curtis

    Args:
        coes (COES): orbital COES

    Returns:
        np.ndarray: 6x1 state vector: [Rx, Ry, Rz, Vx, Vy, Vz]
    """
    mu = coes.mu
    h: float = coes.h
    ecc = coes.ecc
    theta = coes.theta_rad

    p_r = (
        h**2
        / mu
        * (1 / (1 + ecc * np.cos(theta)))
        * np.array([np.cos(theta), np.sin(theta), 0])
    )
    p_v = mu / h * np.array([-np.sin(theta), ecc + np.cos(theta), 0])

    q_bar_Xx = rot_z(coes.arg_peri_rad) @ rot_x(coes.inc_rad) @ rot_z(coes.raan_rad)

    r_km = q_bar_Xx.T @ p_r
    v_kms = q_bar_Xx.T @ p_v

    return np.append(r_km, v_kms)


def elements_to_statevector(
    semi_major: float,
    ecc: float,
    inc: float,
    raan: float,
    arg_peri: float,
    mean_anom: float,
    special: float = 0.0,
    mu: float = ast.EARTH_MU,
    small: float = 1e-11,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Classical elements (with mean anomaly) to inertial position and velocity.
    Follows Vallado's COE2RV conventions for the special parameter, which
    replaces the angles that are undefined for degenerate orbits:
        circular inclined:     argument of latitude (replaces arg_peri + theta)
        circular equatorial:   true longitude (replaces raan + arg_peri + theta)
        elliptical equatorial: longitude of periapsis (replaces raan + arg_peri)

    Args:
        semi_major (float): semi-major axis [km]
        ecc (float): eccentricity [-], 0 <= ecc < 1
        inc (float): inclination [rad]
        raan (float): right ascension of ascending node [rad]
        arg_peri (float): argument of periapsis [rad]
        mean_anom (float): mean anomaly [rad]
        special (float): special parameter [rad] (see above). Defaults to 0.
        mu (float): gravitational parameter of central body. Defaults to Earth.
        small (float): threshold for circular / equatorial detection

    Returns:
        tuple[np.ndarray, np.ndarray]: position [km] and velocity [km/s]
    """
    if semi_major <= 0:
        raise InvalidConfigurationError(
            f"Semi-major axis must be positive, got {semi_major}"
        )
    if not 0 <= ecc < 1:
        raise InvalidConfigurationError(f"Eccentricity must be in [0, 1), got {ecc}")

    circular = ecc < small
    equatorial = np.abs(np.sin(inc)) < small

    theta = mean_to_true_anomaly(mean_anom, ecc)

    if circular and equatorial:
        raan = 0.0
        arg_peri = 0.0
        theta = special
    elif circular:
        arg_peri = 0.0
        theta = special
    elif equatorial:
        raan = 0.0
        arg_peri = special

    coes = COES(ecc, inc, raan, arg_peri, theta, semi_major, mu)
    state = coes_to_statevector(coes)

    return state[:3], state[3:]


def trajectory_to_dataframe(
    time: np.ndarray,
    position: np.ndarray,
    velocity: np.ndarray,
    labels: Sequence[str] = ("RX", "RY", "RZ", "VX", "VY", "VZ"),
) -> pd.DataFrame:
    """
    Convert sampled trajectory into a dataframe with specified labels
        for easy extraction: `frame.TIME, frame.RX, ...`

    Args:
        time (np.ndarray): (K,) sample times [s]
        position (np.ndarray): (K, 3) positions [km]
        velocity (np.ndarray): (K, 3) velocities [km/s]
        labels (Sequence[str]): column labels of the six state components

    Returns:
        Dataframe: dataframe of data with associated column titles
    """
    states = np.hstack([position, velocity]).T

    if len(labels) != len(states):
        raise IndexError(
            f"Insufficient Number of Labels/States. {len(labels)} "
            f"Labels provided and {len(states)} States in trajectory."
        )

    fdata = {"TIME": np.asarray(time)}
    for label, data in zip(labels, states):
        fdata[label] = data

    return pd.DataFrame(fdata)


"""
CORE FUNCTIONS
"""


def two_body_acceleration(
    position: np.ndarray, mu: float = ast.EARTH_MU
) -> np.ndarray:
    """
    Central-body gravitational acceleration for a series of positions

    Args:
        position (np.ndarray): (K, 3) positions [km]
        mu (float): gravitational parameter of central body. Defaults to Earth.

    Returns:
        np.ndarray: (K, 3) acceleration [km/s2]
    """
    r_norm = np.linalg.norm(position, axis=-1, keepdims=True)
    return -mu * position / r_norm**3


def stumpff_S(z: float) -> float:
    """
    Stumpff S Function

    Args:
        z (float): Z-Value

    Returns:
        float: Result of Function
    """
    if z > 0:
        return (np.sqrt(z) - np.sin(np.sqrt(z))) / (np.sqrt(z) ** 3)
    if z < 0:
        return (np.sinh(np.sqrt(-z)) - np.sqrt(-z)) / (np.sqrt(-z) ** 3)
    return 1 / 6


def stumpff_C(z: float) -> float:
    """
    Stumpff C Function

    Args:
        z (float): Z-Value

    Returns:
        float: Result of Function
    """

    if z > 0:
        return (1 - np.cos(np.sqrt(z))) / z
    if z < 0:
        return (np.cosh(np.sqrt(-z)) - 1) / (-z)

    return 1 / 2


def la_grange_coefficients(
    alpha: float,
    R0: Union[List, np.ndarray],
    V0: Union[List, np.ndarray],
    delta_t: float,
    X: float,
    mu: float = ast.EARTH_MU,
) -> np.ndarray:
    """
    Method to compute LaGrange Coefficients: f, g, fdot, gdot
    Args:
        alpha (float): alpha value
        R0 (np.ndarray): position vector
        V0 (np.ndarray): velocity vector
        delta_t (float): time delta
        X (float): Universal Variable
        mu (float): Gravitational parameter of central body

    Returns:
        np.ndarray: LaGrange Coefficients in order [f, g, fdot, gdot]
    """

    R0 = np.array(R0)
    V0 = np.array(V0)

    r0 = np.linalg.norm(R0)

    f = 1 - X**2 / r0 * stumpff_C(alpha * X**2)
    g = delta_t - 1 / np.sqrt(mu) * X**3 * stumpff_S(alpha * X**2)

    rf_vec = f * R0 + g * V0
    rf = np.linalg.norm(rf_vec)

    fdot = np.sqrt(mu) / (rf * r0) * (alpha * X**3 * stumpff_S(alpha * X**2) - X)
    gdot = 1 - X**2 / rf * stumpff_C(alpha * X**2)

    return np.array([f, g, fdot, gdot])


def universal_variable_propagation(
    R0: Union[np.ndarray, List],
    V0: Union[np.ndarray, List],
    delta_t: float,
    mu: float = ast.EARTH_MU,
) -> np.ndarray:
    """
    Universal Variable Method for Orbit Propagation (F&G solution)
    Adapted from Alg. 3.4 from "Orbital Mechanics for Engineering Students", Curtis

    Args:
        R0 (np.ndarray): Position at initial time
        V0 (np.ndarray): Velocity at initial time
        delta_t (float): Time of propagation
        mu (float): Gravitational parameter of central body

    Returns:
        final_state (np.ndarray): State Vector at final time with format:
            [Rx, Ry, Rz, Vx, Vy, Vz]
    """

    def compute_universal_variable(
        r0: float, vr0: float, alpha: float, delT: float, mu: float
    ) -> float:
        """
        Inner function to compute universal variable, X
        """
        abs_tol = 1e-12
        nMax = 1000
        n = 0
        ratio = 1

        # initial guess
        x = np.sqrt(mu) * np.abs(alpha) * delT

        # Newton's Iteration to find true X
        while np.abs(ratio) > abs_tol and n < nMax:
            n += 1
            C = stumpff_C(alpha * x**2)
            S = stumpff_S(alpha * x**2)

            F = (
                r0 * vr0 / np.sqrt(mu) * x**2 * C
                + (1 - alpha * r0) * x**3 * S
                + r0 * x
                - np.sqrt(mu) * delT
            )

            Fp = (
                r0 * vr0 / np.sqrt(mu) * x * (1 - alpha * x**2 * S)
                + (1 - alpha * r0) * x**2 * C
                + r0
            )

            ratio = F / Fp
            x = x - ratio

        return x

    R0 = np.array(R0, dtype=float)
    V0 = np.array(V0, dtype=float)

    r0 = np.sqrt(R0.dot(R0))
    v0 = np.sqrt(V0.dot(V0))
    vr0 = V0.dot(R0) / r0

    alpha = 2 / r0 - v0**2 / mu

    X = compute_universal_variable(r0, vr0, alpha, delta_t, mu)
    [f, g, fdot, gdot] = la_grange_coefficients(alpha, R0, V0, delta_t, X, mu)

    RF = f * R0 + g * V0
    VF = fdot * R0 + gdot * V0

    return np.array([*RF, *VF])


def fg_trajectory(
    R0: Union[np.ndarray, List],
    V0: Union[np.ndarray, List],
    time: np.ndarray,
    mu: float = ast.EARTH_MU,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Analytical two-body trajectory at every sample time.
    Used as the warm start of the Picard-Chebyshev iteration.

    Args:
        R0 (np.ndarray): position at time[0] [km]
        V0 (np.ndarray): velocity at time[0] [km/s]
        time (np.ndarray): (K,) sample times [s]
        mu (float): gravitational parameter of central body. Defaults to Earth.

    Returns:
        tuple[np.ndarray, np.ndarray]: (K, 3) positions and (K, 3) velocities
    """
    time = np.asarray(time, dtype=float)
    states = np.array(
        [universal_variable_propagation(R0, V0, t - time[0], mu) for t in time]
    )
    return states[:, :3], states[:, 3:]
