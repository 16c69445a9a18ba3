"""Configuration settings for the mini-program to Vue transpiler"""
import logging
from pydantic_settings import BaseSettings
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Transpiler settings.

    Priority (highest to lowest):
    1. Environment variables (MINI2VUE_ prefix)
    2. .env file
    3. Default values
    """

    # Source file kinds
    MARKUP_EXTENSION: str = ".axml"
    SCRIPT_EXTENSIONS: List[str] = [".js", ".ts"]
    # Inline helper modules: copied verbatim, never scanned for declaration calls
    HELPER_EXTENSION: str = ".sjs"

    # Target file kinds
    TEMPLATE_EXTENSION: str = ".vue"
    STYLE_EXTENSION: str = ".css"
    STYLE_PLACEHOLDER: str = "/* styles */"

    # Class of the single root element wrapping every template
    ROOT_CONTAINER_CLASS: str = "app-container"

    # Type declaration stub written once at the output root
    DECLARATION_FILE_NAME: str = "declare.d.ts"

    # Copy a file verbatim when its pipeline fails instead of skipping it
    COPY_ON_FAILURE: bool = False

    LOG_LEVEL: str = "INFO"

    class Config:
        env_prefix = "MINI2VUE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def is_script(self, file_name: str) -> bool:
        """Check if a file is a script that may declare a page or component."""
        if file_name.endswith(self.HELPER_EXTENSION):
            return False
        return any(file_name.endswith(ext) for ext in self.SCRIPT_EXTENSIONS)

    def strip_script_extension(self, file_name: str) -> str:
        """Get the base name of a script file."""
        for ext in self.SCRIPT_EXTENSIONS:
            if file_name.endswith(ext):
                return file_name[:-len(ext)]
        return file_name


# Global settings instance
settings = Settings()


def log_settings():
    """Log the effective configuration."""
    logger.debug(f"Markup: {settings.MARKUP_EXTENSION} -> {settings.TEMPLATE_EXTENSION}")
    logger.debug(f"Scripts: {', '.join(settings.SCRIPT_EXTENSIONS)} (helpers: {settings.HELPER_EXTENSION})")
    logger.debug(f"Style: {settings.STYLE_EXTENSION}")
    logger.debug(f"Copy on failure: {'ENABLED' if settings.COPY_ON_FAILURE else 'DISABLED'}")
