"""
Plugin descriptor provider protocol for the index remap engine.

Defines the contract that every LV2 parameter catalog must satisfy.
This module is pure — no I/O, no filesystem scans, no side effects.
Concrete implementations (LV2 bundle scanning, YAML catalogs) live in
ingestion/.
"""

from typing import Protocol, runtime_checkable

from core.ardour.types import ParameterTable


@runtime_checkable
class DescriptorProvider(Protocol):
    """
    Protocol for plugin descriptor providers.

    Any class that implements ``lookup`` can back the identity resolver.
    """

    def lookup(self, plugin_uri: str) -> ParameterTable:
        """
        Return the current control-parameter table of a plugin.

        Args:
            plugin_uri: The plugin's stable LV2 URI.

        Returns:
            ParameterTable ordered by current port index.

        Raises:
            PluginNotFound: If no installed plugin has this URI.
        """
        ...
