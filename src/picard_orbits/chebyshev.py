"""
chebyshev
Constant matrices for second-order Picard-Chebyshev iteration.

The trajectory is represented on M+1 Chebyshev-Gauss-Lobatto (CGL) nodes.
Acceleration is fit with N-1 coefficients (degree N-2), integrated once into N
velocity coefficients and again into N+1 position coefficients. Each
antiderivative vanishes at tau = -1, so the initial position and velocity
enter as the constant (T0) coefficient and are supplied by the solver.

Adapted from Clenshaw & Curtis (1960) and the Junkins & Woollands
Picard-Chebyshev lecture series.
"""

from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from numpy.polynomial import chebyshev as cheb

from .exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class ChebyshevOperatorSet:
    # pylint: disable=C0103
    """
    Read-only operator matrices for a given (N, M)

    Args:
        N (int): position polynomial order
        M (int): number of sample intervals
        tau (np.ndarray): (M+1,) CGL nodes on [-1, 1], ascending
        A (np.ndarray): (N-1, M+1) samples -> acceleration coefficients
        Ta (np.ndarray): (M+1, N-1) acceleration coefficients -> samples
        P1 (np.ndarray): (N, N-1) acceleration -> velocity coefficients
        P2 (np.ndarray): (N+1, N) velocity -> position coefficients
        T1 (np.ndarray): (M+1, N) velocity coefficients -> samples
        T2 (np.ndarray): (M+1, N+1) position coefficients -> samples
    """

    N: int
    M: int
    tau: np.ndarray
    A: np.ndarray
    Ta: np.ndarray
    P1: np.ndarray
    P2: np.ndarray
    T1: np.ndarray
    T2: np.ndarray

    def sample_times(self, t0: float, tf: float) -> np.ndarray:
        """
        Map the CGL nodes into [t0, tf]

        Args:
            t0 (float): initial time [s]
            tf (float): final time [s]

        Returns:
            np.ndarray: (M+1,) sample times, t[0] == t0 and t[-1] == tf
        """
        w1 = (tf + t0) / 2
        w2 = (tf - t0) / 2
        time = w2 * self.tau + w1
        # pin the endpoints against round-off
        time[0] = t0
        time[-1] = tf
        return time

    def fit(self, values: np.ndarray) -> np.ndarray:
        """Least-squares Chebyshev coefficients of sampled values"""
        return self.A @ values


def cgl_nodes(M: int) -> np.ndarray:
    """
    Chebyshev-Gauss-Lobatto nodes, ascending from -1 to 1

    Args:
        M (int): number of intervals

    Returns:
        np.ndarray: (M+1,) nodes tau_j = -cos(j * pi / M)
    """
    tau = -np.cos(np.arange(M + 1) * np.pi / M)
    tau[0] = -1.0
    tau[-1] = 1.0
    return tau


def least_squares_operator(Ta: np.ndarray, M: int) -> np.ndarray:
    """
    Discrete cosine transform from CGL samples to Chebyshev coefficients.
    Uses the discrete orthogonality of T_k on the CGL grid, so A @ Ta = I
    whenever the number of coefficients does not exceed M+1.

    Args:
        Ta (np.ndarray): (M+1, n) Chebyshev matrix evaluated at the nodes
        M (int): number of intervals

    Returns:
        np.ndarray: (n, M+1) least-squares operator
    """
    n = Ta.shape[1]

    # trapezoid weights: endpoints count half
    W = np.ones(M + 1)
    W[0] = 0.5
    W[-1] = 0.5

    V = np.full(n, 2 / M)
    V[0] = 1 / M
    if n == M + 1:
        V[-1] = 1 / M

    return V[:, None] * Ta.T * W[None, :]


def integration_operator(n: int) -> np.ndarray:
    """
    Chebyshev antiderivative operator with the constant chosen so the
    integral vanishes at tau = -1

    Args:
        n (int): number of input coefficients

    Returns:
        np.ndarray: (n+1, n) operator mapping coefficients of f to those of
            the integral of f from -1 to tau
    """
    P = np.zeros((n + 1, n))
    for k in range(n):
        unit = np.zeros(n)
        unit[k] = 1.0
        P[:, k] = cheb.chebint(unit, lbnd=-1)
    return P


@lru_cache(maxsize=16)
def clenshaw_curtis_operators(N: int, M: int) -> ChebyshevOperatorSet:
    # pylint: disable=C0103
    """
    Build the constant Picard-Chebyshev matrices for a two-point boundary
    value problem of a second-order system.
    Pure function of (N, M); results are cached and returned read-only.

    Args:
        N (int): Chebyshev polynomial order of the position series
        M (int): number of sample intervals (M+1 CGL nodes)

    Returns:
        ChebyshevOperatorSet: operator matrices
    """
    if N < 2 or M < 1:
        raise InvalidConfigurationError(
            f"Invalid discretization: N={N}, M={M}. Need N >= 2 and M >= 1."
        )
    if N > M:
        raise InvalidConfigurationError(
            f"Polynomial order N={N} exceeds sample count M={M}"
        )

    tau = cgl_nodes(M)

    # Chebyshev matrices at the nodes
    T2 = cheb.chebvander(tau, N)
    T1 = T2[:, :N].copy()
    Ta = T2[:, : N - 1].copy()

    A = least_squares_operator(Ta, M)

    P1 = integration_operator(N - 1)
    P2 = integration_operator(N)

    for mat in (tau, A, Ta, P1, P2, T1, T2):
        mat.setflags(write=False)

    return ChebyshevOperatorSet(
        N=N, M=M, tau=tau, A=A, Ta=Ta, P1=P1, P2=P2, T1=T1, T2=T2
    )
