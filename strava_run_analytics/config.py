"""Configuration management for the Strava run analytics engine."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    ACTIVITIES_FILE: Path = Path(os.getenv("ACTIVITIES_FILE", "activities.json"))

    # Best efforts & prediction
    BEST_EFFORT_WINDOW_DAYS: int = int(os.getenv("BEST_EFFORT_WINDOW_DAYS", "365"))
    BEST_EFFORT_LIMIT: int = int(os.getenv("BEST_EFFORT_LIMIT", "10"))
    RIEGEL_EXPONENT: float = float(os.getenv("RIEGEL_EXPONENT", "1.06"))

    # Training load (ACR-driven daily cap)
    ACR_LIMIT: float = float(os.getenv("ACR_LIMIT", "1.3"))
    ACR_ORANGE_LIMIT: float = float(os.getenv("ACR_ORANGE_LIMIT", "1.5"))
    RECOVERY_BOOST_PER_REST_DAY: float = float(os.getenv("RECOVERY_BOOST_PER_REST_DAY", "0.08"))
    RECOVERY_BOOST_MAX: float = float(os.getenv("RECOVERY_BOOST_MAX", "0.24"))
    FATIGUE_PENALTY_FACTOR: float = float(os.getenv("FATIGUE_PENALTY_FACTOR", "0.25"))
    FATIGUE_PENALTY_MAX: float = float(os.getenv("FATIGUE_PENALTY_MAX", "0.3"))
    CARRYOVER_PENALTY_FACTOR: float = float(os.getenv("CARRYOVER_PENALTY_FACTOR", "0.35"))
    CARRYOVER_PENALTY_MAX: float = float(os.getenv("CARRYOVER_PENALTY_MAX", "0.35"))
    OVERRUN_CAP_RATIO: float = float(os.getenv("OVERRUN_CAP_RATIO", "0.9"))

    # Gear
    SHOE_WEAR_ORANGE_KM: float = float(os.getenv("SHOE_WEAR_ORANGE_KM", "400"))
    SHOE_WEAR_RED_KM: float = float(os.getenv("SHOE_WEAR_RED_KM", "800"))

    @classmethod
    def validate(cls) -> bool:
        """Validate numeric configuration."""
        if cls.RIEGEL_EXPONENT <= 0:
            raise ValueError("RIEGEL_EXPONENT must be positive")
        if cls.ACR_LIMIT <= 0 or cls.ACR_ORANGE_LIMIT < cls.ACR_LIMIT:
            raise ValueError(
                "ACR limits must be positive and ACR_ORANGE_LIMIT must not be below ACR_LIMIT"
            )
        if cls.SHOE_WEAR_RED_KM < cls.SHOE_WEAR_ORANGE_KM:
            raise ValueError("SHOE_WEAR_RED_KM must not be below SHOE_WEAR_ORANGE_KM")
        return True


config = Config()
