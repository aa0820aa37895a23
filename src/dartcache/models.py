"""Canonical Pydantic models shared across all dartcache modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`OutputConfig`, :class:`OptimizeConfig`
    and :class:`GlobalConfig`.

**Reference data models** -- rows of the local corp-code dictionary:
    :class:`CorpCode`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


DEFAULT_TTL_SECONDS = 3600
"""TTL applied by :meth:`~dartcache.store.CacheStore.set` when the caller omits one."""

DEFAULT_BUSY_TIMEOUT = 5.0
"""Seconds a store operation waits on a locked database file before failing."""


# --- Configuration ---


class CacheConfig(BaseModel):
    """Cache database settings stored in :class:`GlobalConfig`."""

    path: Optional[str] = Field(
        default=None,
        description="Path to the SQLite cache file (default: <cache dir>/cache.db)",
    )
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, ge=0, description="Default cache TTL in seconds"
    )
    busy_timeout: float = Field(
        default=DEFAULT_BUSY_TIMEOUT,
        gt=0,
        description="Seconds to wait for a locked database before giving up",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class OptimizeConfig(BaseModel):
    """Which normalizer stages ``dartcache optimize`` runs by default."""

    factor_common: bool = Field(
        default=True, description="Factor fields shared by every list item into 'common'"
    )
    sanitize: bool = Field(
        default=True, description="Drop empty values, success markers and expand XML"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/dartcache/config.json``.

    Loaded and saved by :func:`~dartcache.config.load_global_config` and
    :func:`~dartcache.config.save_global_config`. The cache path can be
    overridden by environment variables or the ``--db`` flag; see
    :func:`~dartcache.config.resolve_db_path`.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    optimize: OptimizeConfig = Field(default_factory=OptimizeConfig)


# --- Reference data ---


class CorpCode(BaseModel):
    """One row of the corp-code dictionary.

    Field names follow the store's column names. The OpenDART
    ``CORPCODE.xml`` element names are accepted as aliases so parsed XML
    records validate directly::

        CorpCode.model_validate(
            {"corp_code": "00126380", "corp_name": "삼성전자",
             "stock_code": "005930", "modify_date": "20230101"}
        )

    Missing or ``None`` fields become ``""``; numbers become strings.
    Zero-padding of ``code`` and ``ticker`` is applied by the store on
    import, not here.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(default="", validation_alias=AliasChoices("code", "corp_code"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "corp_name"))
    ticker: str = Field(default="", validation_alias=AliasChoices("ticker", "stock_code"))
    modified: str = Field(
        default="", validation_alias=AliasChoices("modified", "modify_date")
    )

    @field_validator("code", "name", "ticker", "modified", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value
