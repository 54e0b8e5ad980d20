"""
Configuration dataclasses for the index remap engine.

These immutable config objects decouple parameter passing from function signatures,
so the CLI, the engine and the tests share one validated set of knobs.
Pure module: environment lookups live in ingestion/settings.py.
"""

import os
from dataclasses import dataclass

# LV2's own default search path on Linux (see the LV2_PATH convention).
DEFAULT_LV2_PATH: tuple[str, ...] = (
    "~/.lv2",
    "/usr/local/lib/lv2",
    "/usr/lib/lv2",
)


@dataclass(frozen=True)
class RemapConfig:
    """
    Configuration for one remap run.

    Immutable configuration object built once per invocation and handed to
    :class:`ingestion.remap_engine.RemapEngine`.

    Attributes:
        backup_suffix: Suffix appended to the session path to form the backup
            path. Defaults to ``".orig"``, giving ``<session>.orig``.
        lv2_path: Directories scanned for LV2 bundles, in priority order.
            Defaults to the standard Linux LV2 search path.
        catalog_path: Optional YAML catalog used instead of scanning LV2
            bundles. ``None`` means scan ``lv2_path``.
        dry_run: Resolve and report without writing anything.

    Example:
        >>> config = RemapConfig(lv2_path=("/opt/lv2",), dry_run=True)
    """

    backup_suffix: str = ".orig"
    lv2_path: tuple[str, ...] = DEFAULT_LV2_PATH
    catalog_path: str | None = None
    dry_run: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.backup_suffix.startswith(".") or len(self.backup_suffix) < 2:
            raise ValueError(
                f"backup_suffix must start with '.' and name an extension, "
                f"got {self.backup_suffix!r}"
            )
        if os.sep in self.backup_suffix or (os.altsep and os.altsep in self.backup_suffix):
            raise ValueError(f"backup_suffix must not contain a path separator, got {self.backup_suffix!r}")
        if not isinstance(self.lv2_path, tuple):
            raise ValueError(f"lv2_path must be a tuple of directories, got {type(self.lv2_path).__name__}")
        if self.catalog_path is not None and not self.catalog_path.strip():
            raise ValueError("catalog_path must be None or a non-empty path")


# Pre-defined configuration

DEFAULT_CONFIG = RemapConfig()
"""Default configuration: ``.orig`` backups, standard LV2 search path."""
