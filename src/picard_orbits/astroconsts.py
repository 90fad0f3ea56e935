"""
ASTROCONSTS
Astronomical Constants relevant for the Picard-Chebyshev solver
"""

# pylint: disable=pointless-string-statement
"""
EARTH CONSTANTS
"""
EARTH_MU = 398600.4418  # [km3/s2] Earth Gravitational Parameter
EARTH_RAD = 6378.137  # [km] Earth Radius
EARTH_ANGVEL = 7.2921151e-5  # [rad/s] Rotation rate of the Earth about +Z

"""
ZONAL HARMONICS
Unnormalized zonal coefficients J2-J6
"""
EARTH_ZONALS = {
    2: 1.08262668355e-3,
    3: -2.53265648533e-6,
    4: -1.61962159137e-6,
    5: -2.27296082869e-7,
    6: 5.40681239107e-7,
}

"""
SOLVER DEFAULTS
"""
MAX_ITERATIONS = 20  # iteration cap before reporting non-convergence
DEFAULT_TOLERANCE = 1e-13  # [~] canonical-unit convergence tolerance
KM_TO_M = 1e3
