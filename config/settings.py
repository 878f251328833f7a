import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete"""
    pass


DEFAULT_CAST_CONFIG = {
    "swipe_min_distance": 50.0,      # px vertical delta to count as a swipe
    "swipe_max_duration": 500.0,     # ms - max time for a single swipe
    "swipe_window": 2000.0,          # ms - all swipes must fit in this window
    "swipes_required": 3,
    "default_distance": 100,         # meters - picker starts here
    "picker_sensitivity": 0.02,      # index change per pixel dragged
    "momentum_decay": 0.92,          # velocity multiplier per frame
    "momentum_min_velocity": 0.3,    # px/ms needed to start momentum
    "momentum_stop_velocity": 0.01,  # px/ms below which momentum ends
    "frame_ms": 16.0,
}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def load_cast_config() -> dict:
    """Read cast gesture and picker settings from the environment"""
    return {
        "swipe_min_distance": _env_float("CAST_SWIPE_MIN_DISTANCE", DEFAULT_CAST_CONFIG["swipe_min_distance"]),
        "swipe_max_duration": _env_float("CAST_SWIPE_MAX_DURATION", DEFAULT_CAST_CONFIG["swipe_max_duration"]),
        "swipe_window": _env_float("CAST_SWIPE_WINDOW", DEFAULT_CAST_CONFIG["swipe_window"]),
        "swipes_required": _env_int("CAST_SWIPES_REQUIRED", DEFAULT_CAST_CONFIG["swipes_required"]),
        "default_distance": _env_int("CAST_DEFAULT_DISTANCE", DEFAULT_CAST_CONFIG["default_distance"]),
        "picker_sensitivity": _env_float("CAST_PICKER_SENSITIVITY", DEFAULT_CAST_CONFIG["picker_sensitivity"]),
        "momentum_decay": _env_float("CAST_MOMENTUM_DECAY", DEFAULT_CAST_CONFIG["momentum_decay"]),
        "momentum_min_velocity": DEFAULT_CAST_CONFIG["momentum_min_velocity"],
        "momentum_stop_velocity": DEFAULT_CAST_CONFIG["momentum_stop_velocity"],
        "frame_ms": DEFAULT_CAST_CONFIG["frame_ms"],
    }


def validate_cast_config(config: dict) -> dict:
    """Validate cast settings, logging warnings and raising on hard errors"""
    errors = []
    warnings = []

    if config["swipe_min_distance"] <= 0:
        errors.append(f"CAST_SWIPE_MIN_DISTANCE must be positive, got {config['swipe_min_distance']}")
    if config["swipe_max_duration"] <= 0:
        errors.append(f"CAST_SWIPE_MAX_DURATION must be positive, got {config['swipe_max_duration']}")
    if config["swipe_window"] < config["swipe_max_duration"]:
        errors.append("CAST_SWIPE_WINDOW must not be shorter than CAST_SWIPE_MAX_DURATION")
    if config["swipes_required"] < 1:
        errors.append(f"CAST_SWIPES_REQUIRED must be at least 1, got {config['swipes_required']}")
    if not 0 < config["momentum_decay"] < 1:
        errors.append(f"CAST_MOMENTUM_DECAY must be between 0 and 1, got {config['momentum_decay']}")
    if config["default_distance"] < 10 or config["default_distance"] > 100000:
        warnings.append(f"CAST_DEFAULT_DISTANCE {config['default_distance']}m is outside the step table, "
                        "the nearest step will be used")
    if config["swipes_required"] == 1:
        warnings.append("CAST_SWIPES_REQUIRED=1 makes cast mode easy to trigger by accident")

    if errors:
        error_msg = "Cast configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
        logger.error(error_msg)
        raise ConfigurationError(error_msg)

    if warnings:
        warning_msg = "Cast configuration warnings:\n" + "\n".join(f"  - {warn}" for warn in warnings)
        logger.warning(warning_msg)

    return config


# Validate configuration on import
try:
    cast_config = validate_cast_config(load_cast_config())
except ConfigurationError as e:
    logger.error(f"Cast configuration invalid: {e}")
    logger.info("Falling back to default cast gesture settings")
    cast_config = dict(DEFAULT_CAST_CONFIG)

# Compass state and persistence
compass_config = {
    "storage_path": os.getenv("COMPASS_STORAGE_PATH", os.path.join("data", "compass_state.json")),
    "arrival_min_radius": float(os.getenv("COMPASS_ARRIVAL_MIN_RADIUS", "10")),  # meters
    "arrow_smoothing": float(os.getenv("COMPASS_ARROW_SMOOTHING", "0.2")),
}

# Optional NMEA receiver on a serial port
gps_config = {
    "port": os.getenv("GPS_PORT", ""),  # empty disables the serial reader
    "baudrate": int(os.getenv("GPS_BAUDRATE", "9600")),
    "timeout": float(os.getenv("GPS_TIMEOUT", "1.0")),
    "uere_meters": float(os.getenv("GPS_UERE_METERS", "5.0")),  # range error per unit of HDOP
}
