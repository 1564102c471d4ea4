"""
Settings Configuration Service for EdConnect

This module provides centralized configuration management using properties files.
It handles loading, parsing, and providing access to application settings.

Configuration files:
- env.properties: Production configuration (default)
- env-test.properties: Test configuration (used when EDCONNECT_TEST_MODE=1)
"""

import os
import configparser
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

DEFAULT_MODEL = "claude-sonnet-4-20250514"

# Concept keyword tables, one per subject category. Each category also lists
# the subject substrings that select it.
DEFAULT_CONCEPT_TABLES: Dict[str, Dict[str, str]] = {
    "math": {
        "subjects": "math",
        "keywords": (
            "algebra,equation,quadratic,polynomial,geometry,theorem,proof,function,"
            "derivative,integral,matrix,vector,probability,statistics"
        ),
    },
    "science": {
        "subjects": "science,physics,chemistry,biology",
        "keywords": (
            "physics,chemistry,biology,atom,molecule,cell,energy,force,momentum,"
            "reaction,evolution,photosynthesis,newton,law,theory"
        ),
    },
    "english": {
        "subjects": "english,literature",
        "keywords": (
            "metaphor,simile,theme,symbolism,character,plot,narrative,essay,"
            "analysis,rhetoric,syntax,diction,tone,irony"
        ),
    },
    "history": {
        "subjects": "history,social",
        "keywords": (
            "revolution,empire,democracy,constitution,reform,renaissance,"
            "enlightenment,industrial,colonization,treaty,amendment"
        ),
    },
}

DEFAULT_KNOWN_SCHOOLS = (
    "Stuyvesant,Bronx Science,Brooklyn Tech,Townsend Harris,"
    "Staten Island Tech,HSMSE,Bard,LaGuardia"
)


def get_config_file_path() -> str:
    """
    Determine the appropriate configuration file based on environment.

    Priority:
    1. EDCONNECT_CONFIG_FILE environment variable (explicit override)
    2. env-test.properties (when EDCONNECT_TEST_MODE=1)
    3. env.properties (production default)
    """
    explicit_config = os.environ.get("EDCONNECT_CONFIG_FILE")
    if explicit_config and os.path.exists(explicit_config):
        return explicit_config

    search_paths = [
        Path.cwd(),
        # From src/edconnect/core/services/ to project root
        Path(__file__).resolve().parents[4],
    ]

    for base_path in search_paths:
        if os.environ.get("EDCONNECT_TEST_MODE") == "1":
            test_config = base_path / "env-test.properties"
            if test_config.exists():
                return str(test_config)

        prod_config = base_path / "env.properties"
        if prod_config.exists():
            return str(prod_config)

    return "env.properties"


class SettingsConfigService:
    """Service for managing application settings from properties files."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize the settings configuration service.

        Args:
            config_file: Optional path to config file. If None, auto-detects based on environment.
        """
        self.config_file = config_file or get_config_file_path()
        self.config = configparser.ConfigParser()
        self.logger = logging.getLogger(__name__)
        self._load_config()

    def _load_config(self):
        """Load configuration from properties file."""
        if not os.path.exists(self.config_file):
            self.logger.warning(
                f"Config file {self.config_file} not found, using defaults"
            )
            self._create_default_config()
            return

        try:
            self.config.read(self.config_file, encoding="utf-8")
            self.logger.info(f"Configuration loaded from {self.config_file}")
        except configparser.Error as e:
            self.logger.error(f"Failed to load configuration: {e}")
            self.config = configparser.ConfigParser()
            self._create_default_config(save=False)

    def _create_default_config(self, save: bool = True):
        """Create default configuration if file doesn't exist."""
        self.config.add_section("app")
        self.config.set("app", "environment", "development")

        self.config.add_section("ai")
        self.config.set("ai", "provider", "anthropic")
        self.config.set("ai", "anthropic.model", DEFAULT_MODEL)
        self.config.set("ai", "anthropic.api_key", "")
        self.config.set("ai", "tutor.max_tokens", "8192")
        self.config.set("ai", "summary.max_tokens", "2048")
        self.config.set("ai", "timeout_seconds", "60")

        self.config.add_section("tutor")
        for category, table in DEFAULT_CONCEPT_TABLES.items():
            self.config.set("tutor", f"{category}.subjects", table["subjects"])
            self.config.set("tutor", f"{category}.keywords", table["keywords"])
        self.config.set("tutor", "concepts.max", "10")
        self.config.set("tutor", "known_schools", DEFAULT_KNOWN_SCHOOLS)

        self.config.add_section("security")
        self.config.set("security", "token_expiry_minutes", "60")
        self.config.set("security", "cookie_name", "edconnect_session")
        self.config.set("security", "password_min_length", "8")

        self.config.add_section("database")
        self.config.set("database", "url", "sqlite:///edconnect.db")
        self.config.set("database", "echo", "false")
        self.config.set("database", "seed_demo", "false")

        self.config.add_section("logging")
        self.config.set("logging", "default_level", "INFO")
        self.config.set("logging", "dir", "logs")

        if save:
            self.save_config()

    def save_config(self):
        """Save current configuration to file."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                self.config.write(f)
            self.logger.info(f"Configuration saved to {self.config_file}")
        except OSError as e:
            self.logger.error(f"Failed to save configuration: {e}")

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> str:
        """Get a configuration value."""
        try:
            return self.config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Configuration not found: {section}.{key}")
            return ""

    def getint(self, section: str, key: str, fallback: Optional[int] = None) -> int:
        """Get an integer configuration value."""
        try:
            return self.config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Integer configuration not found: {section}.{key}")
            return 0

    def getfloat(
        self, section: str, key: str, fallback: Optional[float] = None
    ) -> float:
        """Get a float configuration value."""
        try:
            return self.config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Float configuration not found: {section}.{key}")
            return 0.0

    def getboolean(
        self, section: str, key: str, fallback: Optional[bool] = None
    ) -> bool:
        """Get a boolean configuration value."""
        try:
            return self.config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            if fallback is not None:
                return fallback
            self.logger.warning(f"Boolean configuration not found: {section}.{key}")
            return False

    def get_list(self, section: str, key: str, fallback: Optional[list] = None) -> list:
        """Get a list configuration value (comma-separated)."""
        value = self.get(section, key, "")
        if value:
            return [item.strip() for item in value.split(",") if item.strip()]
        return fallback or []

    def set(self, section: str, key: str, value: Union[str, int, float, bool]):
        """Set a configuration value."""
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, str(value))

    def get_ai_config_defaults(self) -> Dict[str, Any]:
        """AI tutor settings; ANTHROPIC_API_KEY overrides the stored key."""
        return {
            "provider": self.get("ai", "provider", "anthropic"),
            "model": self.get("ai", "anthropic.model", DEFAULT_MODEL),
            "api_key": os.environ.get("ANTHROPIC_API_KEY")
            or self.get("ai", "anthropic.api_key", ""),
            "tutor_max_tokens": self.getint("ai", "tutor.max_tokens", 8192),
            "summary_max_tokens": self.getint("ai", "summary.max_tokens", 2048),
            "timeout_seconds": self.getfloat("ai", "timeout_seconds", 60.0),
        }

    def get_concept_tables(self) -> Dict[str, Dict[str, list]]:
        """Keyword tables per subject category, falling back to the built-in ones."""
        tables = {}
        for category, table in DEFAULT_CONCEPT_TABLES.items():
            tables[category] = {
                "subjects": self.get_list(
                    "tutor", f"{category}.subjects", table["subjects"].split(",")
                ),
                "keywords": self.get_list(
                    "tutor", f"{category}.keywords", table["keywords"].split(",")
                ),
            }
        return tables

    def get_known_schools(self) -> list:
        return self.get_list(
            "tutor", "known_schools", DEFAULT_KNOWN_SCHOOLS.split(",")
        )

    def is_production(self) -> bool:
        return self.get("app", "environment", "development").lower() == "production"


# Global instance
_settings_service = None


def get_settings_service(config_file: Optional[str] = None) -> SettingsConfigService:
    """
    Get the global settings service instance.

    Args:
        config_file: Optional path to config file. If None, auto-detects:
                    - env-test.properties when EDCONNECT_TEST_MODE=1
                    - env.properties otherwise

    Returns:
        SettingsConfigService instance
    """
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsConfigService(config_file)
    return _settings_service


def reset_settings_service():
    """Reset the global settings service instance. Useful for testing."""
    global _settings_service
    _settings_service = None
