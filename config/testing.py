import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

SCHOOL_ID = 1
CAMERA_DEVICE_ID = 0
MAX_DESCRIPTOR_DISTANCE = 1.5
CODE_COOLDOWN_SECONDS = 2.0
BIOMETRIC_COOLDOWN_SECONDS = 3.0
LOCATION_TIMEOUT_SECONDS = 1.0
KIOSK_LATITUDE = None
KIOSK_LONGITUDE = None
LOCATION_QUERY = ""
FACE_FALLBACK = False
