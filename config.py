import os
import logging
from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """
    Application settings and environment variables.
    """
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./running_coach.db")

    # Generation backend: "gemini" or "mock"
    LLM_BACKEND = os.getenv("LLM_BACKEND", "gemini").lower()
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Upper bound for a single generation call
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

    ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost,http://localhost:3000,http://localhost:5173"
        ).split(",")
        if origin.strip()
    ]

    VERSION = "1.0.0"

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def validate(cls):
        """
        Check that the critical variables are set.
        Returns a list of problems (empty when the configuration is usable).
        """
        problems = []
        if cls.LLM_BACKEND not in ("gemini", "mock"):
            problems.append(f"LLM_BACKEND must be 'gemini' or 'mock', got '{cls.LLM_BACKEND}'")
        if cls.LLM_BACKEND == "gemini" and not cls.GEMINI_API_KEY:
            problems.append("GEMINI_API_KEY")
        if cls.LLM_TIMEOUT_SECONDS <= 0:
            problems.append("LLM_TIMEOUT_SECONDS must be positive")
        return problems


# Validate settings (runs on import)
_problems = Settings.validate()
if _problems:
    logger.warning(f"Configuration problems: {', '.join(_problems)}")
