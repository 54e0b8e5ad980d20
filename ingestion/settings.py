"""
Environment-backed configuration loading.

Reads ``.env`` (python-dotenv) and the process environment, then builds a
validated :class:`core.config.RemapConfig`.  Lives in ingestion/ because it
touches the environment (core/ must remain pure).

Recognised variables:

    LV2_PATH               LV2 search path, ``os.pathsep``-separated
    FIX_LV2_CATALOG        YAML catalog to use instead of LV2_PATH
    FIX_LV2_BACKUP_SUFFIX  Backup suffix (default ``.orig``)
"""

import os
from typing import Any

from dotenv import load_dotenv

from core.config import RemapConfig


def split_search_path(value: str) -> tuple[str, ...]:
    """``"/a:/b::/c"`` → ``("/a", "/b", "/c")`` (empty entries dropped)."""
    return tuple(p for p in value.split(os.pathsep) if p.strip())


def load_config(**overrides: Any) -> RemapConfig:
    """
    Build a RemapConfig from the environment plus explicit overrides.

    Overrides whose value is ``None`` are ignored, so CLI options that were
    not given fall through to the environment and then to the defaults.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    load_dotenv()
    kwargs: dict[str, Any] = {}

    lv2_path = os.environ.get("LV2_PATH", "")
    if lv2_path.strip():
        kwargs["lv2_path"] = split_search_path(lv2_path)

    catalog = os.environ.get("FIX_LV2_CATALOG", "")
    if catalog.strip():
        kwargs["catalog_path"] = catalog

    suffix = os.environ.get("FIX_LV2_BACKUP_SUFFIX", "")
    if suffix.strip():
        kwargs["backup_suffix"] = suffix.strip()

    kwargs.update({k: v for k, v in overrides.items() if v is not None})
    return RemapConfig(**kwargs)
