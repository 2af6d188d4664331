"""
Configuration settings for the MTG Ruling Scanner
"""
from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Configuration
    SCRYFALL_API_BASE: str = "https://api.scryfall.com"
    API_RATE_LIMIT_DELAY: float = 0.1  # 100ms between requests
    API_TIMEOUT: int = 30
    API_MAX_RETRIES: int = 2  # retries after a 429 response
    API_CACHE_SIZE: int = 500
    USER_AGENT: str = "MTGRulingScanner/1.0"

    # Lookup Settings
    MAX_SUGGESTIONS: int = 3

    # Name band crop (fractions of the photo height)
    NAME_BAND_TOP: float = 0.3
    NAME_BAND_HEIGHT: float = 0.2
    JPEG_QUALITY: int = 100

    # OCR Configuration
    OCR_LANGUAGE: str = "eng"
    OCR_TESSERACT_CONFIG: str = "--oem 3 --psm 6"
    OCR_TARGET_HEIGHT: int = 240
    TESSERACT_CMD: Optional[str] = None

    # Presentation
    SCAN_ERROR_COMMENT: str = "OCR or fetch error."

    # File Storage Paths
    EXPORTS_PATH: str = "./data/exports"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "./logs/ruling_scanner.log"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

# Create directories if they don't exist
def ensure_directories(settings: Settings):
    """Create necessary directories"""
    directories = [settings.EXPORTS_PATH]
    if settings.LOG_FILE:
        directories.append(str(Path(settings.LOG_FILE).parent))

    for directory in directories:
        Path(directory).mkdir(parents=True, exist_ok=True)

# Global settings instance
settings = Settings()
ensure_directories(settings)
