"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use DOCMARK_ prefix (e.g., DOCMARK_LINE_NUMBERS_DEFAULT=true).

Settings can also be loaded from a .env file in the project root.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use DOCMARK_ prefix.

    Examples:
        DOCMARK_DOCS_ROOT=site/docs
        DOCMARK_LINE_NUMBERS_DEFAULT=true
        DOCMARK_TOOLTIP_LINK_TEXT="Read more"
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCMARK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Raw HTML stash configuration
    raw_placeholder_prefix: str = Field(
        default="<!--docmark-raw:",
        description="Prefix for opaque raw-HTML placeholders (an HTML comment survives the markdown converter)",
    )

    raw_placeholder_suffix: str = Field(
        default="-->",
        description="Suffix for opaque raw-HTML placeholders",
    )

    # Source resolution
    docs_root: str = Field(
        default="docs",
        description="Docs root used for include/snippet resolution when the render context has none",
    )

    include_extensions: List[str] = Field(
        default=[".md", ".markdown", ".mdx"],
        description="File extensions that may be pulled in with <!--@include: path-->",
    )

    # Code block configuration
    line_numbers_default: bool = Field(
        default=False,
        description="Show line numbers on code blocks that carry no :line-numbers option",
    )

    option_excluded_languages: List[str] = Field(
        default=["filetree"],
        description="Fence languages ignored by the code-block feature extractors",
    )

    # Heading configuration
    heading_anchor_levels: List[int] = Field(
        default=[2, 3, 4, 5, 6],
        description="Heading levels that receive a trailing anchor link",
    )

    toc_levels: List[int] = Field(
        default=[2, 3, 4],
        description="Heading levels collected into the table of contents",
    )

    # Output configuration
    tooltip_link_text: str = Field(
        default="Learn more",
        description="Fallback link text for tooltips carrying a link but no link_text",
    )

    def placeHolder_make(self, index: int) -> str:
        """
        Generate a placeholder string for a stashed raw HTML block.

        Args:
            index: Zero-based index into the context's raw block stash

        Returns:
            Placeholder string (e.g., "<!--docmark-raw:0-->")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make(0)
            '<!--docmark-raw:0-->'
        """
        return f"{self.raw_placeholder_prefix}{index}{self.raw_placeholder_suffix}"

    def rawIndex_extract(self, placeholder: str) -> int | None:
        """
        Extract the stash index from a placeholder string.

        Args:
            placeholder: Placeholder string to parse

        Returns:
            Stash index if valid placeholder, None otherwise

        Example:
            >>> settings = AppSettings()
            >>> settings.rawIndex_extract('<!--docmark-raw:3-->')
            3
        """
        if not placeholder.startswith(self.raw_placeholder_prefix):
            return None
        if not placeholder.endswith(self.raw_placeholder_suffix):
            return None

        content = placeholder[len(self.raw_placeholder_prefix) : -len(self.raw_placeholder_suffix)]

        try:
            return int(content)
        except ValueError:
            return None


# Singleton instance - import this in your code
appsettings = AppSettings()
