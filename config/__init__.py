import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; anything unknown means development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def parse_delays(raw: str) -> tuple:
    """"0.5,1.5" -> (0.5, 1.5). Blank entries are skipped."""
    return tuple(float(part) for part in raw.split(",") if part.strip())
