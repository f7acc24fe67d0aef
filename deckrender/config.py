"""
config.py — Environment configuration for deckrender.

Settings are read from environment variables; a `.env` file in the working
directory is loaded first without overriding variables already set.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


# Load .env file if it exists
def _load_dotenv(env_path: Optional[Path] = None):
    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()
                    if key and value and key not in os.environ:
                        os.environ[key] = value


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Fonts (the only variable the font cache reads)
        self.font_dir: str = os.environ.get("DECKFONTS", "")

        # Compiler
        self.decksh_bin: str = os.environ.get("DECKSH_BIN", "decksh")
        self.compile_timeout: float = float(os.environ.get("DECKSH_TIMEOUT", "30"))

        # Rendering defaults
        self.canvas_width: float = float(os.environ.get("DECK_WIDTH", "792"))
        self.canvas_height: float = float(os.environ.get("DECK_HEIGHT", "612"))
        self.layers: str = os.environ.get("DECK_LAYERS", "image:rect:ellipse:curve:arc:line:poly:text:list")
        self.font_family: str = os.environ.get("DECK_FONT_FAMILY", "Arial")
        self.font_weight: int = int(os.environ.get("DECK_FONT_WEIGHT", "400"))

        # Watcher
        self.output_dir: str = os.environ.get("DECK_OUTPUT_DIR", "")
        self.poll_interval: float = float(os.environ.get("DECK_POLL_INTERVAL", "2.0"))
        self.freshness_window: float = float(os.environ.get("DECK_FRESHNESS_WINDOW", "10.0"))
        self.shutdown_timeout: float = float(os.environ.get("DECK_SHUTDOWN_TIMEOUT", "30.0"))

        # Server settings
        self.app_name: str = "deckrender"
        self.app_version: str = "0.1.0"
        self.host: str = os.environ.get("HOST", "0.0.0.0")
        self.port: int = int(os.environ.get("PORT", "8000"))
        self.debug: bool = os.environ.get("DEBUG", "false").lower() == "true"
        self.log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def has_font_dir(self) -> bool:
        """Check if a font directory is configured."""
        return bool(self.font_dir)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    _load_dotenv()
    return Settings()
