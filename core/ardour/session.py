"""core/ardour/session.py — Byte-faithful model of an Ardour session document.

The session is kept as the original input bytes.  Parsing runs the expat
parser over those bytes (which also checks well-formedness) and records,
for every LV2 plugin parameter reference, the byte range of its index
digits.  Serializing splices edited indices back into the original bytes,
so everything else comes out bit-identical: whitespace, attribute order,
comments, entity spelling, the XML declaration.

Recognised references inside ``<Processor type="lv2" unique-id="URI">``::

    <Controllable name="Gain" parameter="3" symbol="gain" .../>
    <AutomationList automation-id="parameter-3" ...>

Usage
─────
::

    document = parse(path.read_bytes())
    for instance in enumerate_plugin_instances(document):
        ...
    document.set_index(reference, 5)
    path.write_bytes(serialize(document))

Pure module: no filesystem access.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from xml.parsers import expat

from core.ardour.errors import ParseError
from core.ardour.types import AutomationReference, PluginInstance, ReferenceKind

logger = logging.getLogger(__name__)

PROCESSOR_TAG = "Processor"
CONTROLLABLE_TAG = "Controllable"
AUTOMATION_LIST_TAG = "AutomationList"
LV2_PROCESSOR_TYPE = "lv2"
AUTOMATION_ID_PREFIX = "parameter-"

# A start tag: quoted values may contain '>' so they are consumed whole.
_START_TAG_RE = re.compile(rb"<[^>\"']*(?:(?:\"[^\"]*\"|'[^']*')[^>\"']*)*>")
_ATTRIBUTE_RE = re.compile(rb"([^\s=/>]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
_DIGITS_RE = re.compile(rb"[0-9]+")


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


@dataclass
class SessionDocument:
    """One parsed session file.

    ``source`` is never modified; index edits are kept on the side and
    applied by :func:`serialize`.
    """

    source: bytes
    instances: tuple[PluginInstance, ...]
    _edits: dict[tuple[int, int], int] = field(default_factory=dict, repr=False)
    _owned: dict[tuple[int, int], AutomationReference] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._owned = {ref.span: ref for _, ref in self.references()}

    @property
    def is_modified(self) -> bool:
        return bool(self._edits)

    def references(self) -> Iterator[tuple[PluginInstance, AutomationReference]]:
        """Yield every ``(instance, reference)`` pair in document order."""
        for instance in self.instances:
            for reference in instance.references:
                yield instance, reference

    def set_index(self, reference: AutomationReference, value: int) -> None:
        """Rewrite one reference's stored index in place.

        Raises:
            ValueError: If ``value`` is negative or ``reference`` does not
                belong to this document.
        """
        if value < 0:
            raise ValueError(f"parameter index must be non-negative, got {value}")
        if self._owned.get(reference.span) is not reference:
            raise ValueError("reference does not belong to this document")
        reference.stored_index = value
        self._edits[reference.span] = value


# ---------------------------------------------------------------------------
# Raw attribute location
# ---------------------------------------------------------------------------


def _attribute_span(data: bytes, tag_start: int, name: str) -> tuple[int, int] | None:
    """Byte range of attribute ``name``'s raw value in the start tag at ``tag_start``."""
    tag = _START_TAG_RE.match(data, tag_start)
    if tag is None:
        return None
    wanted = name.encode("utf-8")
    for match in _ATTRIBUTE_RE.finditer(data, tag_start, tag.end()):
        if match.group(1) == wanted:
            group = 2 if match.group(2) is not None else 3
            return match.span(group)
    return None


def _is_digits(data: bytes, span: tuple[int, int]) -> bool:
    return _DIGITS_RE.fullmatch(data, span[0], span[1]) is not None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


@dataclass
class _InstanceBuilder:
    uri: str
    name: str
    offset: int
    labels: dict[int, str | None] = field(default_factory=dict)
    conflicts: set[int] = field(default_factory=set)
    pending: list[tuple[ReferenceKind, int, tuple[int, int], str | None]] = field(default_factory=list)

    def add_controllable(self, index: int, span: tuple[int, int], label: str | None) -> None:
        if index in self.labels and self.labels[index] != label:
            self.conflicts.add(index)
        self.labels.setdefault(index, label)
        self.pending.append((ReferenceKind.CONTROLLABLE, index, span, label))

    def add_automation_list(self, index: int, span: tuple[int, int]) -> None:
        self.pending.append((ReferenceKind.AUTOMATION_LIST, index, span, None))

    def _list_label(self, index: int) -> str | None:
        # An automation list names no parameter itself; it borrows the label
        # of the controllable with the same index, unless those disagree.
        if index in self.conflicts:
            return None
        return self.labels.get(index)

    def build(self) -> PluginInstance:
        references = tuple(
            AutomationReference(
                stored_index=index,
                stored_label=label if kind == ReferenceKind.CONTROLLABLE else self._list_label(index),
                kind=kind,
                span=span,
            )
            for kind, index, span, label in self.pending
        )
        return PluginInstance(uri=self.uri, name=self.name, offset=self.offset, references=references)


class _SessionParser:
    """Expat callbacks collecting LV2 plugin instances in document order."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._parser = expat.ParserCreate()
        self._parser.StartElementHandler = self._on_start
        self._parser.EndElementHandler = self._on_end
        self._depth = 0
        self._processor_depth: int | None = None
        self._reference_depth: int | None = None
        self._current: _InstanceBuilder | None = None
        self.instances: list[PluginInstance] = []

    def run(self) -> list[PluginInstance]:
        try:
            self._parser.Parse(self._data, True)
        except expat.ExpatError as exc:
            raise ParseError(
                f"could not parse session file: {expat.ErrorString(exc.code)}",
                line=exc.lineno,
                column=exc.offset,
            ) from exc
        return self.instances

    # -- callbacks ----------------------------------------------------------

    def _on_start(self, tag: str, attrs: dict[str, str]) -> None:
        self._depth += 1
        if self._reference_depth is not None:
            return
        offset = self._parser.CurrentByteIndex

        if self._processor_depth is None:
            if tag == PROCESSOR_TAG:
                self._processor_depth = self._depth
                self._current = self._on_processor(attrs, offset)
            return

        if self._current is None:
            return
        if tag == CONTROLLABLE_TAG:
            self._reference_depth = self._depth
            self._on_controllable(self._current, attrs, offset)
        elif tag == AUTOMATION_LIST_TAG:
            self._reference_depth = self._depth
            self._on_automation_list(self._current, attrs, offset)

    def _on_end(self, tag: str) -> None:
        if self._reference_depth == self._depth:
            self._reference_depth = None
        if self._processor_depth == self._depth:
            if self._current is not None:
                self.instances.append(self._current.build())
            self._processor_depth = None
            self._current = None
        self._depth -= 1

    # -- element handlers ---------------------------------------------------

    def _on_processor(self, attrs: dict[str, str], offset: int) -> _InstanceBuilder | None:
        if attrs.get("type") != LV2_PROCESSOR_TYPE:
            return None
        uri = attrs.get("unique-id")
        if not uri:
            logger.warning("missing uri for lv2 processor at byte %d", offset)
            return None
        return _InstanceBuilder(uri=uri, name=attrs.get("name", ""), offset=offset)

    def _on_controllable(self, builder: _InstanceBuilder, attrs: dict[str, str], offset: int) -> None:
        if "parameter" not in attrs:
            return
        span = _attribute_span(self._data, offset, "parameter")
        if span is None or not _is_digits(self._data, span):
            logger.warning("could not parse parameter index %r at byte %d", attrs["parameter"], offset)
            return
        index = int(self._data[span[0] : span[1]])
        label = attrs.get("name")
        if label is None:
            logger.debug("controllable at byte %d has no name", offset)
        builder.add_controllable(index, span, label)

    def _on_automation_list(self, builder: _InstanceBuilder, attrs: dict[str, str], offset: int) -> None:
        automation_id = attrs.get("automation-id", "")
        if not automation_id.startswith(AUTOMATION_ID_PREFIX):
            return
        span = _attribute_span(self._data, offset, "automation-id")
        prefix = AUTOMATION_ID_PREFIX.encode("ascii")
        if span is None or self._data[span[0] : span[0] + len(prefix)] != prefix:
            logger.warning("could not locate automation-id %r at byte %d", automation_id, offset)
            return
        digits = (span[0] + len(prefix), span[1])
        if not _is_digits(self._data, digits):
            logger.warning("could not parse parameter index %r at byte %d", automation_id, offset)
            return
        index = int(self._data[digits[0] : digits[1]])
        builder.add_automation_list(index, digits)


# ---------------------------------------------------------------------------
# Public contract
# ---------------------------------------------------------------------------


def parse(data: bytes) -> SessionDocument:
    """Parse session bytes into a :class:`SessionDocument`.

    Args:
        data: The complete session file contents.

    Returns:
        Document holding ``data`` and every LV2 plugin instance found.

    Raises:
        ParseError: If ``data`` is empty or not well-formed XML.
    """
    if not data.strip():
        raise ParseError("could not parse session file: empty document")
    instances = _SessionParser(data).run()
    logger.debug(
        "parsed session: %d lv2 instance(s), %d reference(s)",
        len(instances),
        sum(len(i.references) for i in instances),
    )
    return SessionDocument(source=data, instances=tuple(instances))


def enumerate_plugin_instances(document: SessionDocument) -> Iterator[PluginInstance]:
    """Yield the document's LV2 plugin instances in document order.

    Each call returns a fresh iterator.
    """
    yield from document.instances


def serialize(document: SessionDocument) -> bytes:
    """Return the document's bytes with every index edit applied.

    An unedited document serializes to exactly its input bytes.
    """
    source = document.source
    if not document.is_modified:
        return source
    pieces: list[bytes] = []
    pos = 0
    for (start, end), value in sorted(document._edits.items()):
        if start < pos:
            raise ValueError(f"overlapping index edits at byte {start}")
        pieces.append(source[pos:start])
        pieces.append(str(value).encode("ascii"))
        pos = end
    pieces.append(source[pos:])
    return b"".join(pieces)
