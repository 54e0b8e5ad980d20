"""ingestion/yaml_catalog.py — Offline parameter catalog loaded from YAML.

Lets a session be repaired on a machine without the plugins installed, or
against a pinned description of a plugin version.  Side effects: reads one
YAML file at construction time.

File format::

    plugins:
      "http://example.org/plugins/eq":
        - {index: 0, symbol: freq, label: Frequency}
        - {index: 1, symbol: gain, label: Gain}
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.ardour.errors import CatalogError, PluginNotFound
from core.ardour.types import ParameterDescriptor, ParameterTable

logger = logging.getLogger(__name__)


class PortEntry(BaseModel):
    """One control port of a catalogued plugin."""

    index: int = Field(..., ge=0, description="Current LV2 port index")
    symbol: str = Field(..., min_length=1, description="lv2:symbol")
    label: str = Field(..., description="lv2:name, compared exactly")


class CatalogFile(BaseModel):
    """Top-level YAML document."""

    plugins: dict[str, list[PortEntry]] = Field(default_factory=dict)

    @field_validator("plugins")
    @classmethod
    def indices_must_be_unique(cls, v: dict[str, list[PortEntry]]) -> dict[str, list[PortEntry]]:
        """Reject a plugin that lists the same port index twice."""
        for uri, ports in v.items():
            seen: set[int] = set()
            for port in ports:
                if port.index in seen:
                    raise ValueError(f"duplicate port index {port.index} for {uri}")
                seen.add(port.index)
        return v


class YamlCatalogProvider:
    """
    Descriptor provider backed by a YAML catalog file.

    Satisfies the ``DescriptorProvider`` protocol.
    """

    def __init__(self, catalog_path: Path) -> None:
        """Load and validate the catalog.

        Args:
            catalog_path: Path to the YAML catalog.

        Raises:
            CatalogError: If the file cannot be read, is not YAML, or does
                not match the catalog schema.
        """
        self.catalog_path = Path(catalog_path)
        try:
            with open(self.catalog_path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except OSError as exc:
            raise CatalogError(f"could not read catalog {self.catalog_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise CatalogError(f"catalog {self.catalog_path} is not valid YAML: {exc}") from exc

        try:
            catalog = CatalogFile.model_validate(raw)
        except ValidationError as exc:
            raise CatalogError(f"invalid catalog {self.catalog_path}: {exc}") from exc

        self._tables: dict[str, ParameterTable] = {
            uri: ParameterTable(
                uri=uri,
                parameters=tuple(
                    ParameterDescriptor(index=p.index, symbol=p.symbol, label=p.label)
                    for p in sorted(ports, key=lambda p: p.index)
                ),
            )
            for uri, ports in catalog.plugins.items()
        }
        logger.info("loaded catalog %s: %d plugin(s)", self.catalog_path, len(self._tables))

    def __len__(self) -> int:
        return len(self._tables)

    def lookup(self, plugin_uri: str) -> ParameterTable:
        """Return the catalogued table for ``plugin_uri``.

        Raises:
            PluginNotFound: If the catalog does not list the URI.
        """
        table = self._tables.get(plugin_uri)
        if table is None:
            raise PluginNotFound(plugin_uri)
        return table
