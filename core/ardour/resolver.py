"""core/ardour/resolver.py — Identity resolution for stored parameter indices.

For every automation reference in a session, decide whether its stored
index still points at the parameter it was recorded against.  The display
label is the only identity criterion:

    label absent from the current table     → Unresolved(label-not-found)
    label shared by 2+ current parameters   → Unresolved(ambiguous-label)
    one match, same index                   → Unchanged
    one match, different index              → Remap(old, new)

Positional fallbacks, index proximity and symbol matching are never used;
a reference that cannot be identified is left alone and reported.

Pure module: the only collaborator is a :class:`DescriptorProvider`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from core.ardour.errors import AmbiguousLabel, LabelNotFound, PluginNotFound
from core.ardour.types import (
    ParameterTable,
    PluginInstance,
    Remap,
    RemapDecision,
    Unchanged,
    Unresolved,
    UnresolvedReason,
)
from core.lv2.base import DescriptorProvider

logger = logging.getLogger(__name__)


def resolve_instance(instance: PluginInstance, table: ParameterTable) -> list[RemapDecision]:
    """Decide every reference of one instance against its current table.

    Args:
        instance: Plugin instance from the session.
        table:    Current parameter table for ``instance.uri``.

    Returns:
        One decision per reference, in the instance's reference order.
    """
    by_label = table.by_label()
    decisions: list[RemapDecision] = []

    for reference in instance.references:
        label = reference.stored_label
        matches = by_label.get(label, []) if label is not None else []

        if not matches:
            detail = str(LabelNotFound(instance.uri, label))
            decisions.append(Unresolved(instance, reference, UnresolvedReason.LABEL_NOT_FOUND, detail))
        elif len(matches) > 1:
            detail = str(AmbiguousLabel(instance.uri, label))
            decisions.append(Unresolved(instance, reference, UnresolvedReason.AMBIGUOUS_LABEL, detail))
        elif matches[0].index == reference.stored_index:
            decisions.append(Unchanged(instance, reference))
        else:
            decisions.append(Remap(instance, reference, old=reference.stored_index, new=matches[0].index))

    return decisions


def resolve(instances: Iterable[PluginInstance], provider: DescriptorProvider) -> list[RemapDecision]:
    """Resolve every reference of every instance.

    The provider is queried at most once per distinct plugin URI; both
    tables and lookup failures are remembered for the duration of this call.
    Instances without references are not looked up at all.

    Args:
        instances: Plugin instances, usually ``enumerate_plugin_instances(doc)``.
        provider:  Current parameter catalog.

    Returns:
        Flat list of decisions covering every reference, in document order.
    """
    tables: dict[str, ParameterTable | PluginNotFound] = {}
    decisions: list[RemapDecision] = []

    for instance in instances:
        if not instance.references:
            continue

        if instance.uri not in tables:
            try:
                tables[instance.uri] = provider.lookup(instance.uri)
            except PluginNotFound as exc:
                logger.warning("%s", exc)
                tables[instance.uri] = exc
        table = tables[instance.uri]

        if isinstance(table, PluginNotFound):
            decisions.extend(
                Unresolved(instance, ref, UnresolvedReason.PLUGIN_NOT_FOUND, str(table))
                for ref in instance.references
            )
            continue

        decisions.extend(resolve_instance(instance, table))

    logger.debug("resolved %d reference(s) across %d plugin uri(s)", len(decisions), len(tables))
    return decisions
