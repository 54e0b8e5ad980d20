"""core/ardour/types.py — Value objects for Ardour sessions and LV2 parameter tables.

Hierarchy mirroring the session XML:

    SessionDocument  (core/ardour/session.py)
    └── PluginInstance  (<Processor type="lv2" unique-id="...">)
        └── AutomationReference  (<Controllable parameter="N" name="...">
                                  <AutomationList automation-id="parameter-N">)

    ParameterTable  (one per plugin URI, from a DescriptorProvider)
    └── ParameterDescriptor  (one per LV2 control port)

Decisions (one per AutomationReference, ephemeral):

    Unchanged | Remap(old, new) | Unresolved(reason)

Everything except :class:`AutomationReference` is frozen.  No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ReferenceKind(str, Enum):
    """Which session element carries the stored index."""

    CONTROLLABLE = "controllable"  # <Controllable parameter="N">
    AUTOMATION_LIST = "automation-list"  # <AutomationList automation-id="parameter-N">


class UnresolvedReason(str, Enum):
    """Why a reference could not be matched to a current parameter."""

    PLUGIN_NOT_FOUND = "plugin-not-found"
    AMBIGUOUS_LABEL = "ambiguous-label"
    LABEL_NOT_FOUND = "label-not-found"


# ---------------------------------------------------------------------------
# Session side
# ---------------------------------------------------------------------------


@dataclass
class AutomationReference:
    """One stored association between a parameter index and a label.

    Mutable: :meth:`core.ardour.session.SessionDocument.set_index` updates
    ``stored_index`` in place when a remap is applied.
    """

    stored_index: int
    """Index as currently recorded (after any applied edit)."""

    stored_label: str | None
    """Controllable ``name`` for this index, or ``None`` if the session has none."""

    kind: ReferenceKind

    span: tuple[int, int]
    """Byte range of the index digits in the original input."""


@dataclass(frozen=True)
class PluginInstance:
    """One LV2 plugin loaded in the session."""

    uri: str
    """Plugin URI from the ``unique-id`` attribute; stable across versions."""

    name: str
    """Instance name shown in Ardour (``name`` attribute); may be empty."""

    offset: int
    """Byte offset of the ``<Processor`` tag, for diagnostics."""

    references: tuple[AutomationReference, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Plugin side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParameterDescriptor:
    """A control port as the currently installed plugin describes it."""

    index: int
    """Current LV2 port index (``lv2:index``)."""

    symbol: str
    """Machine identifier (``lv2:symbol``)."""

    label: str
    """Display name (``lv2:name``); the identity anchor."""

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"port index must be non-negative, got {self.index}")


@dataclass(frozen=True)
class ParameterTable:
    """Ordered control ports of one plugin, sorted by ``index``."""

    uri: str
    parameters: tuple[ParameterDescriptor, ...]

    def __post_init__(self) -> None:
        indices = [p.index for p in self.parameters]
        if indices != sorted(indices):
            raise ValueError(f"parameters of {self.uri} must be sorted by index")
        if len(set(indices)) != len(indices):
            raise ValueError(f"parameters of {self.uri} must have unique indices")

    def __len__(self) -> int:
        return len(self.parameters)

    def by_label(self) -> dict[str, list[ParameterDescriptor]]:
        """Group descriptors by exact label (no case or whitespace folding)."""
        groups: dict[str, list[ParameterDescriptor]] = {}
        for param in self.parameters:
            groups.setdefault(param.label, []).append(param)
        return groups


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unchanged:
    instance: PluginInstance
    reference: AutomationReference


@dataclass(frozen=True)
class Remap:
    """The reference's label now lives at ``new``; it was stored at ``old``."""

    instance: PluginInstance
    reference: AutomationReference
    old: int
    new: int


@dataclass(frozen=True)
class Unresolved:
    instance: PluginInstance
    reference: AutomationReference
    reason: UnresolvedReason
    detail: str = ""


RemapDecision = Unchanged | Remap | Unresolved
