"""
Configuration management for SuperRes
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Main configuration class for SuperRes"""

    # Paths
    BASE_DIR = Path(__file__).parent.parent
    MODELS_DIR = Path(os.getenv("MODELS_DIR", str(BASE_DIR / "models")))
    LOGS_DIR = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))

    # Create directories if they don't exist
    for directory in [MODELS_DIR, LOGS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)

    # Capability provider settings
    SUPERRES_ENABLED = _env_flag("SUPERRES_ENABLED", "True")
    SUPERRES_PROVIDER = os.getenv("SUPERRES_PROVIDER", "realesrgan")
    SUPERRES_AUTO_PROVISION = _env_flag("SUPERRES_AUTO_PROVISION", "True")

    # Real-ESRGAN settings
    SUPERRES_MODEL = os.getenv("SUPERRES_MODEL", "realesrgan_x4plus")
    SUPERRES_DEVICE = os.getenv("SUPERRES_DEVICE", "auto")
    SUPERRES_TILE = int(os.getenv("SUPERRES_TILE", "0"))
    SUPERRES_TILE_PAD = int(os.getenv("SUPERRES_TILE_PAD", "10"))
    SUPERRES_HALF_PRECISION = _env_flag("SUPERRES_HALF_PRECISION", "False")
    SUPERRES_DOWNLOAD_TIMEOUT = float(os.getenv("SUPERRES_DOWNLOAD_TIMEOUT", "300"))

    # Output settings
    SUPERRES_JPEG_QUALITY = int(os.getenv("SUPERRES_JPEG_QUALITY", "95"))

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_TO_FILE = _env_flag("LOG_TO_FILE", "True")
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))


class DevelopmentConfig(Config):
    """Development configuration"""

    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration"""

    LOG_LEVEL = "INFO"


class TestingConfig(Config):
    """Testing configuration"""

    LOG_LEVEL = "DEBUG"
    SUPERRES_PROVIDER = "lanczos"
    LOG_TO_FILE = False


def get_config() -> Config:
    """Get appropriate configuration based on environment"""
    env = os.getenv("ENVIRONMENT", "development").lower()

    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }

    return config_map.get(env, DevelopmentConfig)
