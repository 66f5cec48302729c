"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use HTMLPROCESSOR_ prefix (e.g., HTMLPROCESSOR_STRICT_MODE=true).

Settings can also be loaded from a .env file in the project root. Per-call
ProcessorOptions fall back to these values when a caller leaves them unset.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use HTMLPROCESSOR_ prefix.

    Examples:
        HTMLPROCESSOR_COMMENT_MARKER=process
        HTMLPROCESSOR_MAX_INCLUDE_DEPTH=8
        HTMLPROCESSOR_STRICT_MODE=true
    """

    model_config = SettingsConfigDict(
        env_prefix="HTMLPROCESSOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Scanner configuration
    comment_marker: str = Field(
        default="build",
        description="Marker token that opens a directive comment (<!-- build:type -->)",
    )

    # Include configuration
    max_include_depth: int = Field(
        default=32,
        description="Maximum nesting of recursively processed includes",
    )

    html_extensions: List[str] = Field(
        default=[".html", ".htm"],
        description="Include file extensions that are treated as HTML (eligible for recursion)",
    )

    file_encoding: str = Field(
        default="utf-8",
        description="Encoding used to read sources and included files",
    )

    # Interpolation configuration
    default_interpolate: str = Field(
        default=r"\$\{([\s\S]+?)\}",
        description="Default interpolation pattern; group 1 captures the expression",
    )

    strict_mode: bool = Field(
        default=False,
        description="Strict mode: unresolved interpolation expressions raise instead of passing through",
    )

    # Pipeline configuration
    max_workers: Optional[int] = Field(
        default=None,
        description="Worker threads for multi-file processing (None = CPU count)",
    )

    def extension_isHTML(self, suffix: str) -> bool:
        """
        Check whether a file suffix denotes an HTML include.

        Args:
            suffix: File suffix including the dot (e.g., ".html")

        Returns:
            True if suffix is one of html_extensions (case-insensitive)

        Example:
            >>> settings = AppSettings()
            >>> settings.extension_isHTML('.HTM')
            True
        """
        return suffix.lower() in {ext.lower() for ext in self.html_extensions}


# Singleton instance - import this in your code
appsettings = AppSettings()
