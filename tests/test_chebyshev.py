"""
test_chebyshev
Test cases for the Picard-Chebyshev operator matrices
"""
import pytest
import numpy as np
from numpy.polynomial import chebyshev as cheb

from picard_orbits import chebyshev as cc
from picard_orbits.exceptions import InvalidConfigurationError

# pylint: disable=C0103


class TestNodes:
    """
    Chebyshev-Gauss-Lobatto nodes and sample times
    """

    def test_cgl_endpoints_and_order(self):
        """
        nodes run from -1 to 1 and increase monotonically
        """
        tau = cc.cgl_nodes(25)

        assert len(tau) == 26
        assert tau[0] == -1.0 and tau[-1] == 1.0
        assert np.all(np.diff(tau) > 0)

    def test_cgl_cluster_at_ends(self):
        """
        spacing near the endpoints is tighter than at the center
        """
        tau = cc.cgl_nodes(40)
        spacing = np.diff(tau)
        assert spacing[0] < spacing[len(spacing) // 2]

    def test_sample_times(self):
        """
        nodes map onto [t0, tf] with pinned endpoints
        """
        ops = cc.clenshaw_curtis_operators(10, 12)
        time = ops.sample_times(100.0, 700.0)

        assert time[0] == 100.0 and time[-1] == 700.0
        assert np.isclose(time[6], 400.0)
        assert np.all(np.diff(time) > 0)


class TestOperators:
    """
    Least squares, integration and evaluation matrices
    """

    @pytest.fixture
    def ops(self) -> cc.ChebyshevOperatorSet:
        """
        N = 20, M = 25 operators
        """
        return cc.clenshaw_curtis_operators(20, 25)

    def test_shapes(self, ops: cc.ChebyshevOperatorSet):
        """
        matrix dimensions follow from (N, M)
        """
        assert ops.tau.shape == (26,)
        assert ops.A.shape == (19, 26)
        assert ops.Ta.shape == (26, 19)
        assert ops.P1.shape == (20, 19)
        assert ops.P2.shape == (21, 20)
        assert ops.T1.shape == (26, 20)
        assert ops.T2.shape == (26, 21)

    def test_least_squares_inverts_evaluation(self, ops: cc.ChebyshevOperatorSet):
        """
        discrete orthogonality on the CGL grid: A @ Ta = I
        """
        assert np.isclose(ops.A @ ops.Ta, np.eye(19), atol=1e-13).all()

    def test_full_degree_least_squares(self):
        """
        fitting M+1 coefficients halves the last weight as well
        """
        M = 8
        tau = cc.cgl_nodes(M)
        Ta = cheb.chebvander(tau, M)
        A = cc.least_squares_operator(Ta, M)
        assert np.isclose(A @ Ta, np.eye(M + 1), atol=1e-13).all()

    def test_fit_recovers_polynomial(self, ops: cc.ChebyshevOperatorSet):
        """
        sampled polynomial of degree <= N-2 is fit exactly
        """
        coeffs = np.array([0.5, -1.0, 0.25, 0.0, 2.0])
        values = cheb.chebval(ops.tau, coeffs)

        fit = ops.fit(values)
        assert np.isclose(fit[:5], coeffs, atol=1e-13).all()
        assert np.isclose(fit[5:], 0.0, atol=1e-13).all()

    def test_integration_vanishes_at_minus_one(self, ops: cc.ChebyshevOperatorSet):
        """
        antiderivative is zero at tau = -1 for every basis function
        """
        at_start = cheb.chebvander(np.array([-1.0]), 19)[0]
        assert np.isclose(at_start @ ops.P1, 0.0, atol=1e-14).all()

    def test_single_integration(self, ops: cc.ChebyshevOperatorSet):
        """
        integral of cos(tau) from -1 is sin(tau) + sin(1)
        """
        coeffs = ops.fit(np.cos(ops.tau))
        integral = ops.T1 @ (ops.P1 @ coeffs)
        expect = np.sin(ops.tau) + np.sin(1)

        assert np.isclose(integral, expect, atol=1e-13).all()

    def test_double_integration(self, ops: cc.ChebyshevOperatorSet):
        """
        twice integrating cos(tau) from -1 gives
        -cos(tau) + cos(1) + sin(1) (tau + 1)
        """
        tau = ops.tau
        coeffs = ops.fit(np.cos(tau))
        integral = ops.T2 @ (ops.P2 @ (ops.P1 @ coeffs))
        expect = -np.cos(tau) + np.cos(1) + np.sin(1) * (tau + 1)

        assert np.isclose(integral, expect, atol=1e-13).all()

    def test_last_row_is_value_at_one(self, ops: cc.ChebyshevOperatorSet):
        """
        T_k(1) = 1 so the final-sample row of T2 is all ones
        """
        assert np.isclose(ops.T2[-1], 1.0).all()


class TestContract:
    """
    Configuration checks, caching and immutability
    """

    @pytest.mark.parametrize("N, M", [(12, 10), (1, 10), (0, 5), (5, 0)])
    def test_invalid_configuration(self, N, M):
        """
        N > M or non-positive sizes are rejected
        """
        with pytest.raises(InvalidConfigurationError):
            cc.clenshaw_curtis_operators(N, M)

    def test_order_equal_samples_allowed(self):
        """
        N == M is a valid configuration
        """
        ops = cc.clenshaw_curtis_operators(10, 10)
        assert np.isclose(ops.A @ ops.Ta, np.eye(9), atol=1e-13).all()

    def test_operators_cached(self):
        """
        operators are computed once per (N, M)
        """
        first = cc.clenshaw_curtis_operators(30, 35)
        second = cc.clenshaw_curtis_operators(30, 35)
        assert first is second

    def test_operators_read_only(self):
        """
        shared matrices cannot be modified in place
        """
        ops = cc.clenshaw_curtis_operators(30, 35)
        with pytest.raises(ValueError):
            ops.T2[0, 0] = 5.0
