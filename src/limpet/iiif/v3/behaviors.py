"""
IIIF Presentation API 3.0 behavior vocabulary.

Defines the closed set of ``behavior`` values, the resource types each one is
valid on, the disjoint sets of mutually exclusive behaviors, and the rules for
which resources inherit behaviors from which parents.

Basic usage:
    >>> from limpet.iiif.v3 import validate_behaviors
    >>>
    >>> result = validate_behaviors("Manifest", ["paged", "continuous"])
    >>> result.errors
    ['Conflicting behaviors from layout set: paged, continuous']
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Iterable, Mapping

from .validation import ValidationResult


class Behavior(StrEnum):
    AUTO_ADVANCE = "auto-advance"
    NO_AUTO_ADVANCE = "no-auto-advance"
    REPEAT = "repeat"
    NO_REPEAT = "no-repeat"
    UNORDERED = "unordered"
    INDIVIDUALS = "individuals"
    CONTINUOUS = "continuous"
    PAGED = "paged"
    FACING_PAGES = "facing-pages"
    NON_PAGED = "non-paged"
    MULTI_PART = "multi-part"
    TOGETHER = "together"
    SEQUENCE = "sequence"
    THUMBNAIL_NAV = "thumbnail-nav"
    NO_NAV = "no-nav"
    HIDDEN = "hidden"


class BehaviorCategory(StrEnum):
    TEMPORAL_ADVANCE = "temporal_advance"
    TEMPORAL_REPEAT = "temporal_repeat"
    LAYOUT = "layout"
    CANVAS_PAGING = "canvas_paging"
    COLLECTION_PRESENTATION = "collection_presentation"
    RANGE_NAVIGATION = "range_navigation"
    VISIBILITY = "visibility"


class ResourceType(StrEnum):
    COLLECTION = "Collection"
    MANIFEST = "Manifest"
    CANVAS = "Canvas"
    RANGE = "Range"
    ANNOTATION_COLLECTION = "AnnotationCollection"
    ANNOTATION_PAGE = "AnnotationPage"
    ANNOTATION = "Annotation"
    SPECIFIC_RESOURCE = "SpecificResource"
    CHOICE = "Choice"


_CONTAINERS = frozenset({ResourceType.COLLECTION, ResourceType.MANIFEST, ResourceType.RANGE})
_ANNOTATION_TYPES = frozenset({
    ResourceType.ANNOTATION_COLLECTION,
    ResourceType.ANNOTATION_PAGE,
    ResourceType.ANNOTATION,
    ResourceType.SPECIFIC_RESOURCE,
    ResourceType.CHOICE,
})

VALIDITY_MATRIX: Mapping[Behavior, frozenset[ResourceType]] = MappingProxyType({
    Behavior.AUTO_ADVANCE: _CONTAINERS | {ResourceType.CANVAS},
    Behavior.NO_AUTO_ADVANCE: _CONTAINERS | {ResourceType.CANVAS},
    Behavior.REPEAT: frozenset({ResourceType.COLLECTION, ResourceType.MANIFEST}),
    Behavior.NO_REPEAT: frozenset({ResourceType.COLLECTION, ResourceType.MANIFEST}),
    Behavior.UNORDERED: _CONTAINERS,
    Behavior.INDIVIDUALS: _CONTAINERS,
    Behavior.CONTINUOUS: _CONTAINERS,
    Behavior.PAGED: _CONTAINERS,
    Behavior.FACING_PAGES: frozenset({ResourceType.CANVAS}),
    Behavior.NON_PAGED: frozenset({ResourceType.CANVAS}),
    Behavior.MULTI_PART: frozenset({ResourceType.COLLECTION}),
    Behavior.TOGETHER: frozenset({ResourceType.COLLECTION}),
    Behavior.SEQUENCE: frozenset({ResourceType.RANGE}),
    Behavior.THUMBNAIL_NAV: frozenset({ResourceType.RANGE}),
    Behavior.NO_NAV: frozenset({ResourceType.RANGE}),
    Behavior.HIDDEN: _ANNOTATION_TYPES,
})


@dataclass(frozen=True)
class DisjointSet:
    """A group of behaviors of which a resource may carry at most one."""

    category: BehaviorCategory
    values: frozenset[Behavior]
    default: Behavior | None = None
    notes: str | None = None


DISJOINT_SETS: tuple[DisjointSet, ...] = (
    DisjointSet(
        BehaviorCategory.TEMPORAL_ADVANCE,
        frozenset({Behavior.AUTO_ADVANCE, Behavior.NO_AUTO_ADVANCE}),
        default=Behavior.NO_AUTO_ADVANCE,
    ),
    DisjointSet(
        BehaviorCategory.TEMPORAL_REPEAT,
        frozenset({Behavior.REPEAT, Behavior.NO_REPEAT}),
        default=Behavior.NO_REPEAT,
    ),
    DisjointSet(
        BehaviorCategory.LAYOUT,
        frozenset({Behavior.UNORDERED, Behavior.INDIVIDUALS, Behavior.CONTINUOUS, Behavior.PAGED}),
        default=Behavior.INDIVIDUALS,
    ),
    DisjointSet(
        BehaviorCategory.CANVAS_PAGING,
        frozenset({Behavior.FACING_PAGES, Behavior.NON_PAGED}),
        notes="Only meaningful when Manifest has paged behavior",
    ),
    DisjointSet(
        BehaviorCategory.COLLECTION_PRESENTATION,
        frozenset({Behavior.MULTI_PART, Behavior.TOGETHER}),
    ),
    DisjointSet(
        BehaviorCategory.RANGE_NAVIGATION,
        frozenset({Behavior.SEQUENCE, Behavior.THUMBNAIL_NAV, Behavior.NO_NAV}),
    ),
)


@dataclass(frozen=True)
class BehaviorDescription:
    behavior: Behavior
    category: BehaviorCategory
    description: str
    requires: str | None = None
    context: str | None = None
    default: bool = False


BEHAVIOR_DESCRIPTIONS: Mapping[Behavior, BehaviorDescription] = MappingProxyType({
    d.behavior: d
    for d in (
        BehaviorDescription(
            Behavior.AUTO_ADVANCE, BehaviorCategory.TEMPORAL_ADVANCE,
            "Proceed to next Canvas/segment when current one ends",
            requires="duration dimension",
        ),
        BehaviorDescription(
            Behavior.NO_AUTO_ADVANCE, BehaviorCategory.TEMPORAL_ADVANCE,
            "Do not proceed automatically when Canvas/segment ends",
            default=True,
        ),
        BehaviorDescription(
            Behavior.REPEAT, BehaviorCategory.TEMPORAL_REPEAT,
            "Loop back to first Canvas when reaching end (if auto-advance active)",
            requires="duration dimension",
        ),
        BehaviorDescription(
            Behavior.NO_REPEAT, BehaviorCategory.TEMPORAL_REPEAT,
            "Do not loop back to beginning",
            default=True,
        ),
        BehaviorDescription(
            Behavior.UNORDERED, BehaviorCategory.LAYOUT,
            "Canvases have no inherent order, UI should not imply order",
        ),
        BehaviorDescription(
            Behavior.INDIVIDUALS, BehaviorCategory.LAYOUT,
            "Each Canvas is a distinct view, not for page-turning interface",
            default=True,
        ),
        BehaviorDescription(
            Behavior.CONTINUOUS, BehaviorCategory.LAYOUT,
            "Canvases are partial views, display stitched together (e.g., scroll)",
            requires="height and width dimensions",
        ),
        BehaviorDescription(
            Behavior.PAGED, BehaviorCategory.LAYOUT,
            "Display in page-turning interface, first canvas is recto",
            requires="height and width dimensions",
        ),
        BehaviorDescription(
            Behavior.FACING_PAGES, BehaviorCategory.CANVAS_PAGING,
            "Canvas depicts both parts of opening, display alone",
            context="Only meaningful when Manifest has paged behavior",
        ),
        BehaviorDescription(
            Behavior.NON_PAGED, BehaviorCategory.CANVAS_PAGING,
            "Skip this Canvas in page-turning interface",
            context="Only meaningful when Manifest has paged behavior",
        ),
        BehaviorDescription(
            Behavior.MULTI_PART, BehaviorCategory.COLLECTION_PRESENTATION,
            "Child Manifests/Collections form logical whole (e.g., multi-volume)",
        ),
        BehaviorDescription(
            Behavior.TOGETHER, BehaviorCategory.COLLECTION_PRESENTATION,
            "Present all child Manifests simultaneously in separate viewing area",
        ),
        BehaviorDescription(
            Behavior.SEQUENCE, BehaviorCategory.RANGE_NAVIGATION,
            "Range represents alternative ordering of Manifest's Canvases",
            context="Must be in Manifest's structures property",
        ),
        BehaviorDescription(
            Behavior.THUMBNAIL_NAV, BehaviorCategory.RANGE_NAVIGATION,
            "Use for thumbnail-based navigation (keyframes, scroll sections)",
        ),
        BehaviorDescription(
            Behavior.NO_NAV, BehaviorCategory.RANGE_NAVIGATION,
            "Do not display in navigation hierarchy (blank pages, dead air)",
        ),
        BehaviorDescription(
            Behavior.HIDDEN, BehaviorCategory.VISIBILITY,
            "Do not render by default, allow user to toggle",
        ),
    )
})


@dataclass(frozen=True)
class InheritanceRule:
    """
    Whether ``child_type`` inherits behaviors from ``parent_type``.

    ``carries`` names categories passed down as context even though their
    behaviors are not valid on the child itself.
    """

    child_type: ResourceType
    parent_type: ResourceType
    inherits: bool
    carries: frozenset[BehaviorCategory] = frozenset()
    notes: str | None = None


INHERITANCE_RULES: tuple[InheritanceRule, ...] = (
    InheritanceRule(
        ResourceType.COLLECTION, ResourceType.COLLECTION, True,
        notes="Nested Collections inherit from parent Collection",
    ),
    InheritanceRule(
        ResourceType.MANIFEST, ResourceType.COLLECTION, False,
        notes="Manifests do not inherit from a referencing Collection",
    ),
    InheritanceRule(
        ResourceType.CANVAS, ResourceType.MANIFEST, True,
        carries=frozenset({BehaviorCategory.LAYOUT}),
        notes="Canvases inherit from their Manifest; its layout decides canvas paging",
    ),
    InheritanceRule(
        ResourceType.CANVAS, ResourceType.RANGE, False,
        notes="Canvases do not inherit from a referencing Range",
    ),
    InheritanceRule(
        ResourceType.RANGE, ResourceType.RANGE, True,
        notes="Nested Ranges inherit from parent Range",
    ),
    InheritanceRule(
        ResourceType.RANGE, ResourceType.MANIFEST, True,
        notes="Ranges inherit from their Manifest",
    ),
)


# Lookups


def as_behavior(token: str) -> Behavior | None:
    """The Behavior for ``token``, or None if it is not in the vocabulary."""
    try:
        return Behavior(token)
    except ValueError:
        return None


def _as_resource_type(name: str) -> ResourceType | None:
    try:
        return ResourceType(name)
    except ValueError:
        return None


def is_valid_for(behavior: Behavior | str, resource_type: ResourceType | str) -> bool:
    """
    Check whether a behavior may be used on a resource type.

    Tokens outside the vocabulary are invalid for every type.

    Example:
        >>> is_valid_for("facing-pages", "Canvas")
        True
        >>> is_valid_for("paged", "Canvas")
        False
    """
    known = as_behavior(behavior)
    if known is None:
        return False
    return resource_type in VALIDITY_MATRIX[known]


def valid_behaviors_for(resource_type: ResourceType | str) -> list[Behavior]:
    """All behaviors valid on a resource type, in vocabulary order."""
    return [b for b in Behavior if resource_type in VALIDITY_MATRIX[b]]


def disjoint_set_for(behavior: Behavior | str) -> DisjointSet | None:
    for disjoint in DISJOINT_SETS:
        if behavior in disjoint.values:
            return disjoint
    return None


def default_behavior(category: BehaviorCategory | str) -> Behavior | None:
    for disjoint in DISJOINT_SETS:
        if disjoint.category == category:
            return disjoint.default
    return None


def behaviors_in_category(category: BehaviorCategory | str) -> list[Behavior]:
    return [b for b, d in BEHAVIOR_DESCRIPTIONS.items() if d.category == category]


def describe(behavior: Behavior | str) -> BehaviorDescription | None:
    known = as_behavior(behavior)
    return BEHAVIOR_DESCRIPTIONS[known] if known is not None else None


def inheritance_rule(
    child_type: ResourceType | str, parent_type: ResourceType | str
) -> InheritanceRule | None:
    for rule in INHERITANCE_RULES:
        if rule.child_type == child_type and rule.parent_type == parent_type:
            return rule
    return None


def does_inherit(child_type: ResourceType | str, parent_type: ResourceType | str) -> bool:
    """True if an explicit rule says the child inherits from the parent type."""
    rule = inheritance_rule(child_type, parent_type)
    return rule is not None and rule.inherits


# Conflicts and validation


def find_conflicts(behaviors: Iterable[Behavior | str]) -> list[str]:
    """
    Report behaviors that belong to the same disjoint set.

    Produces one message per disjoint set that has two or more distinct
    members among ``behaviors``. Visibility behaviors are in no disjoint set
    and never conflict.

    Parameters:
        behaviors: Behavior tokens declared on one resource

    Returns:
        Conflict messages, in disjoint-set order (empty if none)
    """
    distinct = list(dict.fromkeys(behaviors))
    conflicts: list[str] = []
    for disjoint in DISJOINT_SETS:
        matching = [b for b in distinct if b in disjoint.values]
        if len(matching) > 1:
            conflicts.append(
                f"Conflicting behaviors from {disjoint.category} set: {', '.join(matching)}"
            )
    return conflicts


def validate_behaviors(
    resource_type: ResourceType | str,
    behaviors: Iterable[Behavior | str],
    parent_type: ResourceType | str | None = None,
    parent_behaviors: Iterable[Behavior | str] | None = None,
) -> ValidationResult:
    """
    Validate the behaviors declared on a resource.

    Errors:
        - a behavior not valid for the resource type (including unknown tokens)
        - two or more behaviors from the same disjoint set

    Warnings:
        - a behavior that disagrees with one inherited from the parent (the
          child's own behavior wins)
        - behaviors that need particular dimensions, e.g. ``paged``
        - canvas paging behaviors under a Manifest that is not ``paged``

    Parameters:
        resource_type: Type of the resource carrying the behaviors
        behaviors: Declared behavior tokens
        parent_type: Type of the containing resource, if any
        parent_behaviors: Effective behaviors of the containing resource

    Returns:
        ValidationResult
    """
    behaviors = list(behaviors)
    parents = list(parent_behaviors) if parent_behaviors is not None else None
    errors: list[str] = []
    warnings: list[str] = []

    for behavior in behaviors:
        if as_behavior(behavior) is None:
            errors.append(f'Behavior "{behavior}" is not a recognized IIIF behavior')
        elif not is_valid_for(behavior, resource_type):
            errors.append(f'Behavior "{behavior}" is not valid for {resource_type}')

    errors.extend(find_conflicts(behaviors))

    if parent_type is not None and parents is not None and does_inherit(resource_type, parent_type):
        for behavior in dict.fromkeys(behaviors):
            disjoint = disjoint_set_for(behavior)
            if disjoint is None:
                continue
            disagreeing = [b for b in dict.fromkeys(parents) if b in disjoint.values and b != behavior]
            if disagreeing:
                warnings.append(
                    f'Behavior "{behavior}" conflicts with inherited parent behavior: '
                    f"{', '.join(disagreeing)}. Child overrides parent."
                )

    for behavior in dict.fromkeys(behaviors):
        description = describe(behavior)
        if description is not None and description.requires:
            warnings.append(f'Behavior "{behavior}" requires {description.requires}')

    if (
        resource_type == ResourceType.CANVAS
        and parent_type == ResourceType.MANIFEST
        and parents is not None
        and Behavior.PAGED not in parents
    ):
        for behavior in dict.fromkeys(behaviors):
            if behavior in (Behavior.FACING_PAGES, Behavior.NON_PAGED):
                warnings.append(
                    f'Behavior "{behavior}" is only meaningful when the Manifest has "paged" behavior'
                )

    return ValidationResult(errors=errors, warnings=warnings)


def suggest_behaviors(
    resource_type: ResourceType | str,
    *,
    has_duration: bool = False,
    has_page_sequence: bool = False,
    is_unordered: bool = False,
    is_multi_volume: bool = False,
    has_width: bool = False,
    has_height: bool = False,
) -> list[Behavior]:
    """
    Suggest behaviors from simple characteristics of a resource's content.

    Only behaviors valid for ``resource_type`` are suggested.

    Example:
        >>> suggest_behaviors("Manifest", has_page_sequence=True)
        [<Behavior.PAGED: 'paged'>]
    """
    valid = set(valid_behaviors_for(resource_type))
    wanted = [
        (has_duration, Behavior.AUTO_ADVANCE),
        (has_page_sequence, Behavior.PAGED),
        (is_unordered, Behavior.UNORDERED),
        (is_multi_volume, Behavior.MULTI_PART),
        (has_width and has_height and not has_page_sequence, Behavior.CONTINUOUS),
    ]
    return [behavior for condition, behavior in wanted if condition and behavior in valid]
