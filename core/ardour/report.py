"""Remap summary — per-instance breakdown of resolver decisions.

Usage
-----
    decisions = resolve(enumerate_plugin_instances(document), provider)
    summary   = summarize(decisions)
    print(summary.render())
    json.dumps(summary.to_dict())

All report functions are pure — no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from core.ardour.types import Remap, RemapDecision, Unchanged, Unresolved


@dataclass
class RemapEntry:
    """One index that was (or would be) rewritten."""

    kind: str
    label: str | None
    old: int
    new: int


@dataclass
class UnresolvedEntry:
    """One index left untouched because its identity is unknown."""

    kind: str
    label: str | None
    index: int
    reason: str
    detail: str = ""


@dataclass
class InstanceSummary:
    """All decisions for a single plugin instance."""

    uri: str
    name: str
    offset: int
    unchanged: int = 0
    remapped: list[RemapEntry] = field(default_factory=list)
    unresolved: list[UnresolvedEntry] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"{self.name} <{self.uri}>" if self.name else f"<{self.uri}>"


@dataclass
class RemapSummary:
    """Full breakdown of one run, instances in document order."""

    instances: list[InstanceSummary] = field(default_factory=list)

    @property
    def unchanged_count(self) -> int:
        return sum(i.unchanged for i in self.instances)

    @property
    def remap_count(self) -> int:
        return sum(len(i.remapped) for i in self.instances)

    @property
    def unresolved_count(self) -> int:
        return sum(len(i.unresolved) for i in self.instances)

    @property
    def has_remaps(self) -> bool:
        return self.remap_count > 0

    @property
    def has_unresolved(self) -> bool:
        return self.unresolved_count > 0

    def render(self) -> str:
        lines: list[str] = [
            "=" * 65,
            "  LV2 Parameter Index Report",
            "=" * 65,
            f"  Plugin instances: {len(self.instances)}",
            f"  Unchanged: {self.unchanged_count}   "
            f"Remapped: {self.remap_count}   "
            f"Unresolved: {self.unresolved_count}",
            "",
        ]

        for inst in self.instances:
            lines.append(f"  {inst.title}")
            lines.append(
                f"    unchanged={inst.unchanged}  remapped={len(inst.remapped)}"
                f"  unresolved={len(inst.unresolved)}"
            )
            for r in inst.remapped:
                lines.append(f"    → {r.kind:<16} {r.old:>4} → {r.new:<4} {_quote(r.label)}")
            for u in inst.unresolved:
                lines.append(f"    ✗ {u.kind:<16} {u.index:>4}         {_quote(u.label)}  [{u.reason}]")
            lines.append("")

        if not self.has_remaps:
            lines.append("  No changes needed.")
        lines.append("=" * 65)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": {
                "instances": len(self.instances),
                "unchanged": self.unchanged_count,
                "remapped": self.remap_count,
                "unresolved": self.unresolved_count,
            },
            "instances": [
                {
                    "uri": i.uri,
                    "name": i.name,
                    "offset": i.offset,
                    "unchanged": i.unchanged,
                    "remapped": [vars(r) for r in i.remapped],
                    "unresolved": [vars(u) for u in i.unresolved],
                }
                for i in self.instances
            ],
        }


def _quote(label: str | None) -> str:
    return "(no label)" if label is None else repr(label)


def summarize(decisions: Iterable[RemapDecision]) -> RemapSummary:
    """Group decisions by plugin instance, preserving first-seen order."""
    by_offset: dict[int, InstanceSummary] = {}

    for decision in decisions:
        inst = decision.instance
        summary = by_offset.get(inst.offset)
        if summary is None:
            summary = InstanceSummary(uri=inst.uri, name=inst.name, offset=inst.offset)
            by_offset[inst.offset] = summary

        ref = decision.reference
        if isinstance(decision, Unchanged):
            summary.unchanged += 1
        elif isinstance(decision, Remap):
            summary.remapped.append(
                RemapEntry(kind=ref.kind.value, label=ref.stored_label, old=decision.old, new=decision.new)
            )
        elif isinstance(decision, Unresolved):
            summary.unresolved.append(
                UnresolvedEntry(
                    kind=ref.kind.value,
                    label=ref.stored_label,
                    index=ref.stored_index,
                    reason=decision.reason.value,
                    detail=decision.detail,
                )
            )

    return RemapSummary(instances=list(by_offset.values()))
