"""
test_frames
Test cases for inertial <-> rotating frame transforms
"""
import pytest
import numpy as np

from picard_orbits import astroconsts as ast
from picard_orbits import frames
from picard_orbits import orbitalcore as core

# pylint: disable=C0103


class TestFrameTransform:
    """
    Rotations about +Z with a uniform rate
    """

    @pytest.fixture
    def series(self):
        """
        random position / velocity series with time tags over several hours
        """
        rng = np.random.default_rng(7)
        time = np.sort(rng.uniform(0, 6 * 3_600, 40))
        position = rng.normal(0, 7_000, (40, 3))
        velocity = rng.normal(0, 7, (40, 3))
        return time, position, velocity

    def test_angles_wrap(self):
        """
        angle = rate * time modulo a full turn
        """
        rate = ast.EARTH_ANGVEL
        day = 2 * np.pi / rate
        theta = frames.rotation_angles(np.array([0.0, day / 4, 1.25 * day]), rate)
        assert np.isclose(theta, [0.0, np.pi / 2, np.pi / 2]).all()

    def test_matches_rot_z(self):
        """
        stacked rotations agree with the single-angle rotation matrix
        """
        angles = np.array([0.1, 1.3, 4.0])
        stack = frames.rot_z_stack(angles)
        for R, theta in zip(stack, angles):
            assert np.isclose(R, core.rot_z(theta)).all()

    def test_quarter_turn(self):
        """
        after a quarter turn the inertial X axis lies along rotating -Y
        """
        rate = ast.EARTH_ANGVEL
        t = (np.pi / 2) / rate
        x_hat = np.array([1.0, 0.0, 0.0])
        pos_B, vel_B = frames.inertial_to_rotating(t, x_hat, rate=rate)

        assert vel_B is None
        assert np.isclose(pos_B, [0.0, -1.0, 0.0], atol=1e-12).all()

    def test_position_round_trip(self, series):
        """
        rotating then un-rotating reproduces the input series
        """
        time, position, _ = series
        pos_B, _ = frames.inertial_to_rotating(time, position)
        pos_I, _ = frames.rotating_to_inertial(time, pos_B)

        assert np.isclose(pos_I, position, rtol=1e-12, atol=1e-9).all()

    def test_state_round_trip(self, series):
        """
        round trip including the transport-theorem velocity correction
        """
        time, position, velocity = series
        pos_B, vel_B = frames.inertial_to_rotating(time, position, velocity)
        pos_I, vel_I = frames.rotating_to_inertial(time, pos_B, vel_B)

        assert np.isclose(pos_I, position, rtol=1e-12, atol=1e-9).all()
        assert np.isclose(vel_I, velocity, rtol=1e-12, atol=1e-12).all()

    def test_norm_preserved(self, series):
        """
        rotations preserve vector length
        """
        time, position, _ = series
        pos_B, _ = frames.inertial_to_rotating(time, position)
        assert np.isclose(
            np.linalg.norm(pos_B, axis=1), np.linalg.norm(position, axis=1)
        ).all()

    def test_body_fixed_point(self):
        """
        a point at rest in the rotating frame moves with w x r inertially
        """
        rate = ast.EARTH_ANGVEL
        time = np.linspace(0, 3_600, 5)
        pos_B = np.tile([ast.EARTH_RAD, 0.0, 1_000.0], (5, 1))
        vel_B = np.zeros((5, 3))

        pos_I, vel_I = frames.rotating_to_inertial(time, pos_B, vel_B, rate=rate)
        expect = np.cross(np.array([0.0, 0.0, rate]), pos_I)

        assert np.isclose(vel_I, expect, atol=1e-15).all()

    def test_zero_rate_is_identity(self, series):
        """
        non-rotating frame leaves vectors untouched
        """
        time, position, velocity = series
        pos_B, vel_B = frames.inertial_to_rotating(time, position, velocity, rate=0.0)
        assert np.equal(pos_B, position).all()
        assert np.equal(vel_B, velocity).all()

    def test_length_mismatch(self):
        """
        time vector must tag every sample
        """
        with pytest.raises(IndexError):
            frames.inertial_to_rotating(np.zeros(3), np.zeros((4, 3)))

    def test_bad_shape(self):
        """
        vectors must be 3-D
        """
        with pytest.raises(ValueError):
            frames.inertial_to_rotating(np.zeros(4), np.zeros((4, 2)))
