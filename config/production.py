import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SCHOOL_ID = int(os.getenv("SCHOOL_ID", "1"))
CAMERA_DEVICE_ID = int(os.getenv("CAMERA_DEVICE_ID", "0"))
MAX_DESCRIPTOR_DISTANCE = float(os.getenv("MAX_DESCRIPTOR_DISTANCE", "1.5"))
CODE_COOLDOWN_SECONDS = float(os.getenv("CODE_COOLDOWN_SECONDS", "2"))
BIOMETRIC_COOLDOWN_SECONDS = float(os.getenv("BIOMETRIC_COOLDOWN_SECONDS", "3"))
LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))
KIOSK_LATITUDE = os.getenv("KIOSK_LATITUDE")
KIOSK_LONGITUDE = os.getenv("KIOSK_LONGITUDE")
# Optional "package.module:function" returning a Location (GPS dongle, OS location service).
# When set it replaces the fixed KIOSK_LATITUDE/KIOSK_LONGITUDE and is bounded by LOCATION_TIMEOUT_SECONDS.
LOCATION_QUERY = os.getenv("LOCATION_QUERY", "")
# Try face recognition when an uploaded frame carries no QR badge.
FACE_FALLBACK = bool(int(os.getenv("FACE_FALLBACK", "0")))
