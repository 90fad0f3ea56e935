"""
frames
Rotation of time-tagged vectors between the inertial frame and a frame
spinning uniformly about +Z (e.g. ECI <-> ECEF with a fixed Earth rotation rate)
"""

from typing import Optional, Tuple, Union

import numpy as np

from . import astroconsts as ast


def rotation_angles(time: Union[float, np.ndarray], rate: float) -> np.ndarray:
    """
    Rotation angle of the spinning frame at each time tag

    Args:
        time (np.ndarray): time since the frames were aligned [s]
        rate (float): rotation rate about +Z [rad/s]

    Returns:
        np.ndarray: angle = rate * time, wrapped into [0, 2pi)
    """
    return np.mod(rate * np.asarray(time, dtype=float), 2 * np.pi)


def rot_z_stack(theta: np.ndarray) -> np.ndarray:
    """
    Stack of rotations about Z, one per angle.
    Same sense as `orbitalcore.rot_z`: maps inertial components into the
    frame rotated by theta.

    Args:
        theta (np.ndarray): (K,) angles [rad]

    Returns:
        np.ndarray: (K, 3, 3) rotation matrices
    """
    theta = np.atleast_1d(theta)
    c = np.cos(theta)
    s = np.sin(theta)

    R = np.zeros((len(theta), 3, 3))
    R[:, 0, 0] = c
    R[:, 0, 1] = s
    R[:, 1, 0] = -s
    R[:, 1, 1] = c
    R[:, 2, 2] = 1.0
    return R


def _as_series(
    time: Union[float, np.ndarray], vectors: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    Promote a single vector / scalar time to a one-sample series and check shapes
    """
    vectors = np.asarray(vectors, dtype=float)
    single = vectors.ndim == 1
    vectors = np.atleast_2d(vectors)
    time = np.atleast_1d(np.asarray(time, dtype=float))

    if vectors.shape[1] != 3:
        raise ValueError(f"Expected (K, 3) vectors, got shape {vectors.shape}")
    if len(time) != len(vectors):
        raise IndexError(
            f"Time vector has {len(time)} samples but {len(vectors)} vectors given"
        )

    return time, vectors, single


def _omega_cross(rate: float, position: np.ndarray) -> np.ndarray:
    """w x r for w = [0, 0, rate]"""
    return rate * np.column_stack(
        [-position[:, 1], position[:, 0], np.zeros(len(position))]
    )


def inertial_to_rotating(
    time: Union[float, np.ndarray],
    position: np.ndarray,
    velocity: Optional[np.ndarray] = None,
    rate: float = ast.EARTH_ANGVEL,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Rotate a series of inertial vectors into the rotating frame.
    Velocity (if supplied) is corrected with the transport theorem:
        v_B = R (v_I - w x r_I)

    Args:
        time (np.ndarray): (K,) time tags [s]
        position (np.ndarray): (K, 3) inertial vectors (any vector quantity)
        velocity (np.ndarray, optional): (K, 3) inertial velocity. Defaults to None.
        rate (float): rotation rate [rad/s]. Defaults to Earth.

    Returns:
        tuple[np.ndarray, Optional[np.ndarray]]: rotating-frame position and
            velocity (None if no velocity supplied)
    """
    time, position, single = _as_series(time, position)
    R = rot_z_stack(rotation_angles(time, rate))

    pos_B = np.einsum("kij,kj->ki", R, position)

    vel_B = None
    if velocity is not None:
        _, velocity, _ = _as_series(time, velocity)
        vel_B = np.einsum(
            "kij,kj->ki", R, velocity - _omega_cross(rate, position)
        )

    if single:
        pos_B = pos_B[0]
        vel_B = None if vel_B is None else vel_B[0]

    return pos_B, vel_B


def rotating_to_inertial(
    time: Union[float, np.ndarray],
    position: np.ndarray,
    velocity: Optional[np.ndarray] = None,
    rate: float = ast.EARTH_ANGVEL,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Inverse of `inertial_to_rotating` for the same time tags and rate:
        r_I = R^T r_B
        v_I = R^T v_B + w x r_I

    Args:
        time (np.ndarray): (K,) time tags [s]
        position (np.ndarray): (K, 3) rotating-frame vectors
        velocity (np.ndarray, optional): (K, 3) rotating-frame velocity
        rate (float): rotation rate [rad/s]. Defaults to Earth.

    Returns:
        tuple[np.ndarray, Optional[np.ndarray]]: inertial position and
            velocity (None if no velocity supplied)
    """
    time, position, single = _as_series(time, position)
    R = rot_z_stack(rotation_angles(time, rate))

    pos_I = np.einsum("kji,kj->ki", R, position)

    vel_I = None
    if velocity is not None:
        _, velocity, _ = _as_series(time, velocity)
        vel_I = np.einsum("kji,kj->ki", R, velocity) + _omega_cross(rate, pos_I)

    if single:
        pos_I = pos_I[0]
        vel_I = None if vel_I is None else vel_I[0]

    return pos_I, vel_I
