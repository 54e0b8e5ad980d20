"""
LV2 world provider — installed plugin metadata read from Turtle bundles.

Implements the ``DescriptorProvider`` protocol from core by scanning the
LV2 search path for bundles (``*.lv2/manifest.ttl``), the same layout lilv
walks.  Lives in ingestion/ because it reads the filesystem (core/ must
remain pure).

Usage::

    provider = Lv2WorldProvider(config.lv2_path)
    table = provider.lookup("http://lsp-plug.in/plugins/lv2/comp_delay_x2_stereo")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from rdflib import Graph, Literal, Namespace, URIRef
from rdflib.namespace import RDF, RDFS

from core.ardour.errors import PluginNotFound
from core.ardour.types import ParameterDescriptor, ParameterTable

logger = logging.getLogger(__name__)

LV2 = Namespace("http://lv2plug.in/ns/lv2core#")
# Namespace is a str subclass: attribute access would give str.index.
LV2_INDEX = LV2["index"]

MANIFEST_NAME = "manifest.ttl"

# Turtle parse failures surface as rdflib's BadSyntax (a SyntaxError) or
# as ValueError for malformed literals/IRIs.
_PARSE_ERRORS = (OSError, SyntaxError, ValueError)


def _file_uri_to_path(node: object) -> Path | None:
    if not isinstance(node, URIRef):
        return None
    parsed = urlparse(str(node))
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path))


def _port_index(node: object) -> int | None:
    """``lv2:index`` as a non-negative int, or ``None`` if it is anything else."""
    if not isinstance(node, Literal):
        return None
    value = node.toPython()
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def _port_label(graph: Graph, port: object, symbol: str) -> str:
    """Pick the port's ``lv2:name``: untagged literal first, then any language."""
    names = [n for n in graph.objects(port, LV2.name) if isinstance(n, Literal)]
    if not names:
        logger.debug("port %s has no lv2:name; using its symbol", symbol)
        return symbol
    untagged = [n for n in names if n.language is None]
    chosen = untagged[0] if untagged else sorted(names, key=lambda n: (n.language or "", str(n)))[0]
    return str(chosen)


class Lv2WorldProvider:
    """
    Descriptor provider backed by the LV2 bundles installed on this machine.

    The bundle index (plugin URI → data files) is built lazily on the first
    lookup and kept for the life of the provider; plugin data files are
    parsed per lookup.  Earlier search-path entries win when a URI appears
    in more than one bundle.

    Satisfies the ``DescriptorProvider`` protocol.
    """

    def __init__(self, search_path: Iterable[str]) -> None:
        self._search_path = tuple(Path(os.path.expanduser(p)) for p in search_path)
        self._index: dict[str, list[Path]] | None = None

    @property
    def search_path(self) -> tuple[Path, ...]:
        return self._search_path

    def _manifests(self) -> Iterator[Path]:
        for root in self._search_path:
            if not root.is_dir():
                logger.debug("LV2 path entry %s is not a directory", root)
                continue
            for bundle in sorted(root.iterdir()):
                manifest = bundle / MANIFEST_NAME
                if manifest.is_file():
                    yield manifest

    def _build_index(self) -> dict[str, list[Path]]:
        index: dict[str, list[Path]] = {}
        for manifest in self._manifests():
            graph = Graph()
            try:
                graph.parse(str(manifest), format="turtle")
            except _PARSE_ERRORS as exc:
                logger.warning("skipping LV2 bundle %s: %s", manifest.parent, exc)
                continue

            for plugin in graph.subjects(RDF.type, LV2.Plugin):
                uri = str(plugin)
                if uri in index:
                    logger.debug("plugin %s also found in %s; keeping first", uri, manifest.parent)
                    continue
                files = [manifest]
                for see_also in graph.objects(plugin, RDFS.seeAlso):
                    path = _file_uri_to_path(see_also)
                    if path is not None and path not in files:
                        files.append(path)
                index[uri] = files

        logger.info("LV2 world: %d plugin(s) indexed from %d path entries", len(index), len(self._search_path))
        return index

    def _plugin_files(self, plugin_uri: str) -> list[Path] | None:
        if self._index is None:
            self._index = self._build_index()
        return self._index.get(plugin_uri)

    def lookup(self, plugin_uri: str) -> ParameterTable:
        """Return the control ports of ``plugin_uri`` ordered by port index.

        Raises:
            PluginNotFound: If no bundle on the search path declares the URI.
        """
        files = self._plugin_files(plugin_uri)
        if files is None:
            raise PluginNotFound(plugin_uri)

        graph = Graph()
        for path in files:
            try:
                graph.parse(str(path), format="turtle")
            except _PARSE_ERRORS as exc:
                logger.warning("could not read %s for %s: %s", path, plugin_uri, exc)

        params: dict[int, ParameterDescriptor] = {}
        for port in graph.objects(URIRef(plugin_uri), LV2.port):
            if (port, RDF.type, LV2.ControlPort) not in graph:
                continue
            index = graph.value(port, LV2_INDEX)
            symbol = graph.value(port, LV2.symbol)
            if index is None or symbol is None:
                logger.warning("control port without index or symbol in %s", plugin_uri)
                continue
            port_index = _port_index(index)
            if port_index is None:
                logger.warning("invalid port index %r for %s in %s", str(index), symbol, plugin_uri)
                continue
            if port_index in params:
                logger.warning("duplicate port index %d in %s; keeping first", port_index, plugin_uri)
                continue
            params[port_index] = ParameterDescriptor(
                index=port_index,
                symbol=str(symbol),
                label=_port_label(graph, port, str(symbol)),
            )

        table = ParameterTable(
            uri=plugin_uri,
            parameters=tuple(params[i] for i in sorted(params)),
        )
        logger.debug("looked up %s: %d control port(s)", plugin_uri, len(table))
        return table
