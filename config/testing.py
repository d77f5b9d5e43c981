import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geo_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

GEOFENCE = {
    "center_latitude": 25.6146835780726,
    "center_longitude": 85.1126174983296,
    "radius_meters": 50.0,
    "enabled": True,
    "required": True,
    "name": "Office Location",
}

ATTENDANCE_REFRESH_DELAYS = (0.0, 0.0)
LABEL_LOOKUP_TIMEOUT = 0.5

GEOCODER_URL = "http://geocoder.test/reverse"
GEOCODER_USER_AGENT = "geo-attendance-tests"
GEOCODER_TIMEOUT = 1.0

HRMS_API_BASE_URL = "http://hrms.test"
