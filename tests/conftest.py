"""
Shared fixtures for the test suite.

Centralizes the fake descriptor provider and the session-XML builders so
individual test files don't need to repeat Ardour boilerplate.
"""

from pathlib import Path

import pytest

from core.ardour.errors import PluginNotFound
from core.ardour.types import ParameterDescriptor, ParameterTable

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EQ_URI = "http://example.org/plugins/eq"
COMP_URI = "http://example.org/plugins/comp"
MISSING_URI = "http://example.org/plugins/not-installed"

OLD_EQ = [(0, "Gain"), (1, "Freq")]
NEW_EQ = [(0, "Freq"), (1, "Gain")]
"""Port order before and after the plugin update that swapped two ports."""


# ---------------------------------------------------------------------------
# Fake descriptor provider
# ---------------------------------------------------------------------------


def make_table(uri: str, rows: list[tuple[int, str]]) -> ParameterTable:
    return ParameterTable(
        uri=uri,
        parameters=tuple(
            ParameterDescriptor(index=i, symbol=label.lower().replace(" ", "_"), label=label)
            for i, label in sorted(rows)
        ),
    )


class FakeDescriptorProvider:
    """In-memory catalog — no LV2 bundles, records every lookup."""

    def __init__(self, tables: dict[str, list[tuple[int, str]]]) -> None:
        self.tables = {uri: make_table(uri, rows) for uri, rows in tables.items()}
        self.calls: list[str] = []

    def lookup(self, plugin_uri: str) -> ParameterTable:
        self.calls.append(plugin_uri)
        table = self.tables.get(plugin_uri)
        if table is None:
            raise PluginNotFound(plugin_uri)
        return table


# ---------------------------------------------------------------------------
# Session builders
# ---------------------------------------------------------------------------


def lv2_processor(
    uri: str,
    params: list[tuple[int, str]],
    *,
    automated: list[int] | None = None,
    name: str = "Plugin",
    proc_id: int = 1,
) -> str:
    """One ``<Processor type="lv2">`` with controllables and automation lists."""
    controllables = "".join(
        f'        <Controllable name="{label}" id="{proc_id * 100 + i}" flags="" '
        f'value="0.5" parameter="{index}" symbol="{label.lower()}"/>\n'
        for i, (index, label) in enumerate(params)
    )
    lists = "".join(
        f'          <AutomationList automation-id="parameter-{index}" id="{proc_id * 1000 + index}" '
        f'interpolation-style="Linear" state="Off">\n'
        f"            <events>0 0.25\n48000 0.75\n</events>\n"
        f"          </AutomationList>\n"
        for index in (automated or [])
    )
    return (
        f'      <Processor id="{proc_id}" name="{name}" active="1" user-latency="0" '
        f'type="lv2" unique-id="{uri}" count="1" custom="0">\n'
        f"{controllables}"
        f"        <Automation>\n{lists}        </Automation>\n"
        f"      </Processor>\n"
    )


def make_session(*processors: str) -> bytes:
    """Wrap processors in a minimal but realistic ``.ardour`` document."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Session version="7003" name="demo" sample-rate="48000">\n'
        "  <!-- saved by Ardour 8 -->\n"
        "  <Routes>\n"
        '    <Route version="7003" id="42" name="Audio 1" default-type="audio">\n'
        '      <Processor id="7" name="Amp" active="1" type="amp"/>\n'
        f"{''.join(processors)}"
        "    </Route>\n"
        "  </Routes>\n"
        "</Session>\n"
    ).encode("utf-8")


def make_lv2_bundle(root: Path, name: str, uri: str, ports: list[tuple[object, str]]) -> Path:
    """Write ``<root>/<name>.lv2`` with a manifest and one plugin data file.

    ``ports`` are ``(lv2:index, label)`` pairs; the index is emitted as a raw
    Turtle term, so ``'"one"'`` or ``-1`` produce malformed ports.
    """
    bundle = root / f"{name}.lv2"
    bundle.mkdir(parents=True)
    prefixes = (
        "@prefix lv2:  <http://lv2plug.in/ns/lv2core#> .\n"
        "@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .\n\n"
    )
    (bundle / "manifest.ttl").write_text(
        f"{prefixes}<{uri}> a lv2:Plugin ;\n    rdfs:seeAlso <{name}.ttl> .\n",
        encoding="utf-8",
    )
    port_blocks = " , ".join(
        f'[ a lv2:InputPort , lv2:ControlPort ; lv2:index {index} ; '
        f'lv2:symbol "{label.lower()}" ; lv2:name "{label}" ]'
        for index, label in ports
    )
    (bundle / f"{name}.ttl").write_text(
        f"{prefixes}<{uri}> a lv2:Plugin ;\n    lv2:port {port_blocks} .\n",
        encoding="utf-8",
    )
    return bundle


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def swapped_provider() -> FakeDescriptorProvider:
    """EQ whose Gain/Freq ports swapped places; compressor unchanged."""
    return FakeDescriptorProvider(
        {
            EQ_URI: NEW_EQ,
            COMP_URI: [(0, "Threshold"), (1, "Ratio"), (2, "Attack")],
        }
    )


@pytest.fixture()
def swapped_session() -> bytes:
    """Session saved against the old EQ port order, with automation."""
    return make_session(
        lv2_processor(EQ_URI, OLD_EQ, automated=[0, 1], name="EQ", proc_id=1),
        lv2_processor(COMP_URI, [(0, "Threshold"), (1, "Ratio")], automated=[1], name="Comp", proc_id=2),
    )


@pytest.fixture()
def session_file(tmp_path: Path, swapped_session: bytes) -> Path:
    path = tmp_path / "demo.ardour"
    path.write_bytes(swapped_session)
    return path
