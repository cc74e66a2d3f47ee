"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

# Empirical values for the 128-d face descriptor model; treat as configuration.
DEFAULT_MAX_DESCRIPTOR_DISTANCE = 1.5
DEFAULT_CONFIDENCE_THRESHOLD = 0.6

DEFAULT_SCHOOL_START = time(8, 0)
DEFAULT_SCHOOL_END = time(16, 0)
DEFAULT_LATE_THRESHOLD_MINUTES = 15

EARTH_RADIUS_METERS = 6_371_000.0
DEFAULT_GEOFENCE_RADIUS_METERS = 100.0
DEFAULT_LOCATION_TIMEOUT_SECONDS = 10.0

DEFAULT_CODE_COOLDOWN_SECONDS = 2.0
DEFAULT_BIOMETRIC_COOLDOWN_SECONDS = 3.0

DEFAULT_CAMERA_DEVICE_ID = 0
DEFAULT_CAMERA_RESOLUTION = (640, 480)
