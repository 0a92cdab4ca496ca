"""
Behavior inheritance across the IIIF resource hierarchy.

A resource's effective behaviors are its own behaviors plus whatever it
inherits from its containing resource. The resource's own choice always wins:
an inherited behavior from a disjoint set is dropped when the resource already
declares a behavior from that set.
"""

from __future__ import annotations

from typing import Iterable

from .behaviors import (
    Behavior,
    ResourceType,
    as_behavior,
    disjoint_set_for,
    inheritance_rule,
    is_valid_for,
)


def inherited_behaviors(
    child_type: ResourceType | str,
    parent_type: ResourceType | str,
    parent_behaviors: Iterable[Behavior | str],
) -> list[Behavior]:
    """
    Parent behaviors a child of ``child_type`` may inherit.

    Keeps parent behaviors that are valid on the child type, plus those in a
    category the inheritance rule carries as context (a Manifest's layout is
    carried to its Canvases). Unknown tokens are never inherited.

    Returns:
        Candidate behaviors in the parent's order, or [] when no rule allows
        inheritance
    """
    rule = inheritance_rule(child_type, parent_type)
    if rule is None or not rule.inherits:
        return []

    candidates: list[Behavior] = []
    for token in parent_behaviors:
        behavior = as_behavior(token)
        if behavior is None or behavior in candidates:
            continue
        disjoint = disjoint_set_for(behavior)
        carried = disjoint is not None and disjoint.category in rule.carries
        if is_valid_for(behavior, child_type) or carried:
            candidates.append(behavior)
    return candidates


def resolve_effective(
    child_type: ResourceType | str,
    child_behaviors: Iterable[Behavior | str],
    parent_type: ResourceType | str | None = None,
    parent_behaviors: Iterable[Behavior | str] | None = None,
) -> list[str]:
    """
    Compute the effective behaviors of a resource.

    Parameters:
        child_type: Type of the resource
        child_behaviors: Behaviors the resource declares itself
        parent_type: Type of the containing resource, if any
        parent_behaviors: Effective behaviors of the containing resource

    Returns:
        The child's own behaviors followed by any inherited ones

    Example:
        >>> resolve_effective("Manifest", [], "Collection", ["multi-part"])
        []
        >>> resolve_effective("Canvas", ["facing-pages"], "Manifest", ["paged"])
        ['facing-pages', 'paged']
    """
    effective: list[str] = list(child_behaviors)
    if parent_type is None or parent_behaviors is None:
        return effective

    for behavior in inherited_behaviors(child_type, parent_type, parent_behaviors):
        disjoint = disjoint_set_for(behavior)
        if disjoint is None:
            if behavior not in effective:
                effective.append(behavior.value)
        elif not any(b in disjoint.values for b in effective):
            effective.append(behavior.value)
    return effective
