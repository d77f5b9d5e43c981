import os

from config import parse_delays

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "geo_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also create the demo admin/employee accounts on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

GEOFENCE = {
    "center_latitude": float(os.getenv("OFFICE_LATITUDE", "25.6146835780726")),
    "center_longitude": float(os.getenv("OFFICE_LONGITUDE", "85.1126174983296")),
    "radius_meters": float(os.getenv("OFFICE_RADIUS_METERS", "50")),
    "enabled": os.getenv("GEOFENCE_ENABLED", "1"),
    "required": os.getenv("GEOFENCE_REQUIRED", "1"),
    "name": os.getenv("OFFICE_NAME", "Office Location"),
}

# Seconds after a recorded punch at which today's status is re-read
ATTENDANCE_REFRESH_DELAYS = parse_delays(os.getenv("ATTENDANCE_REFRESH_DELAYS", "0.5,1.5"))
LABEL_LOOKUP_TIMEOUT = float(os.getenv("LABEL_LOOKUP_TIMEOUT", "3"))

GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "geo-attendance/0.1 (development)")
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", "5"))

HRMS_API_BASE_URL = os.getenv("HRMS_API_BASE_URL", "http://127.0.0.1:5000")
