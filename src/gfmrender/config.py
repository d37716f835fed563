"""Centralised renderer configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class MarkupConfig(BaseModel):
    """CSS classes for the diff block wrappers and intra-line changes."""

    removed_block_class: str = "gd input-block"
    added_block_class: str = "gi input-block"
    changed_span_class: str = "x"


class CodeClassConfig(BaseModel):
    """Short token classes understood by GitHub-style stylesheets."""

    string: str = "s"
    keyword: str = "k"
    comment: str = "c"
    type: str = "n"
    literal: str = "o"
    punctuation: str = "p"
    plaintext: str = "n"
    tag: str = "tag"
    html_attr_name: str = "atn"
    decimal: str = "m"
    deleted: str = "gd"
    inserted: str = "gi"
    subheading: str = "gu"
    heading: str = "gh"


class HighlightConfig(BaseModel):
    """Code block language dispatch."""

    diff_languages: tuple[str, ...] = ("diff",)
    language_aliases: dict[str, str] = {"Go-unformatted": "go"}
    intraline_timeout: float = 1.0

    @field_validator("intraline_timeout")
    @classmethod
    def _non_negative_timeout(cls, value: float) -> float:
        if value < 0:
            msg = "HIGHLIGHT__INTRALINE_TIMEOUT must be >= 0 (0 disables the limit)"
            raise ValueError(msg)
        return value


class MarkdownConfig(BaseModel):
    """Block parser extensions."""

    plugins: tuple[str, ...] = ("table", "strikethrough", "url")
    task_lists: bool = True


class SanitizeConfig(BaseModel):
    """Output sanitisation toggles."""

    enabled: bool = True
    allow_data_uri_images: bool = True


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Renderer settings with automatic .env loading and type validation.

    Environment variables use the ``GFMRENDER_`` prefix and a
    double-underscore delimiter for nesting:
    ``GFMRENDER_HIGHLIGHT__INTRALINE_TIMEOUT``,
    ``GFMRENDER_SANITIZE__ENABLED``, etc.
    """

    model_config = SettingsConfigDict(
        env_prefix="GFMRENDER_",
        env_file=Path(".env"),
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    markup: MarkupConfig = MarkupConfig()
    code_classes: CodeClassConfig = CodeClassConfig()
    highlight: HighlightConfig = HighlightConfig()
    markdown: MarkdownConfig = MarkdownConfig()
    sanitize: SanitizeConfig = SanitizeConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()
    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    return settings
