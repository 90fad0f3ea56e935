"""
test_diagnostics
Test cases for the Jacobi integral check
"""
import pytest
import numpy as np

from picard_orbits import diagnostics as diag
from picard_orbits import frames
from picard_orbits import orbitalcore as core
from picard_orbits import perturbations as pert
from picard_orbits import picard
from picard_orbits.config import CentralBody, SolverSettings

# pylint: disable=C0103


class TestJacobiIntegral:
    """
    Conservation of the rotating-frame Hamiltonian
    """

    @pytest.fixture
    def two_body(self):
        """
        analytical two-body trajectory in the rotating frame over an hour
        """
        r0, v0 = core.elements_to_statevector(8_000, 0.1, 0.9, 0.4, 1.1, 0.2)
        time = np.linspace(0, 3_600, 50)
        X, V = core.fg_trajectory(r0, v0, time)
        return frames.inertial_to_rotating(time, X, V)

    def test_two_body_conserved(self, two_body):
        """
        unperturbed motion keeps J constant
        """
        pos_B, vel_B = two_body
        drift = diag.jacobi_integral(pos_B, vel_B)

        assert drift.shape == (50,)
        assert drift[0] == 0.0
        assert np.max(drift) < 1e-11

    def test_zero_force_potential(self, two_body):
        """
        zero force model adds nothing to the potential
        """
        pos_B, vel_B = two_body
        bare = diag.jacobi_integral(pos_B, vel_B)
        with_force = diag.jacobi_integral(pos_B, vel_B, force=pert.ZeroForce())
        assert np.isclose(bare, with_force, rtol=0, atol=1e-15).all()

    def test_wrong_dynamics_detected(self, two_body):
        """
        two-body motion checked against a J2 field shows measurable drift
        """
        pos_B, vel_B = two_body
        drift = diag.jacobi_integral(pos_B, vel_B, force=pert.ZonalGravity(), degree=2)
        assert np.max(drift) > 1e-7

    def test_converged_j2_transfer(self):
        """
        converged J2 solution conserves J to the solver tolerance
        """
        a = 7_000
        force = pert.ZonalGravity()
        settings = SolverSettings(order=30, samples=40, degree=2, tol=1e-13)
        tf = 0.1 * CentralBody().period(a)

        result, _, _ = picard.solve_from_elements(
            a, 0.02, np.deg2rad(45.0), 0.0, 0.3, 0.0, tf=tf,
            settings=settings, force=force,
        )
        drift = diag.result_jacobi_integral(result, force=force, degree=2)

        assert result.iterations <= 20
        assert np.max(drift) < 1e-9

    def test_constant_force_transfer(self):
        """
        constant rotating-frame force is conservative, J still holds
        """
        a = 7_000
        force = pert.ConstantForce((2e-5, 1e-5, -1e-5))
        settings = SolverSettings(order=30, samples=40, degree=0, tol=1e-13)
        tf = 0.1 * CentralBody().period(a)

        result, _, _ = picard.solve_from_elements(
            a, 0.0, 0.5, 0.0, 0.0, 0.0, tf=tf, settings=settings, force=force,
        )
        with_potential = diag.result_jacobi_integral(result, force=force)
        without = diag.result_jacobi_integral(result)

        assert np.max(with_potential) < 1e-10
        assert np.max(with_potential) < np.max(without)
