import os


def is_enabled(flag: str, default: bool = False) -> bool:
    return os.getenv(flag, str(default)).lower() == "true"


def log_level() -> str:
    return os.getenv("POINTS_LOG_LEVEL", "WARNING").upper()


def strict_csv() -> bool:
    return is_enabled("POINTS_STRICT_CSV", False)
