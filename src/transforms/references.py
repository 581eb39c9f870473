"""Component reference helpers.

A component reference is a mapping carrying a ``_ref`` URI. In bootstrap
form it carries only the URI; in dispatch form it also carries a snapshot
of the referenced component's fields. These helpers walk arbitrary JSON
values to inline, strip, discover, and re-key such references.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Mapping

from core.constants import COMPONENTS_COLLECTION, COMPONENTS_SEGMENT, REFERENCE_KEY
from core.resource_uri import parse_resource_uri

ReferenceResolver = Callable[[str], "Mapping[str, Any] | None"]


def is_component_reference(value: object) -> bool:
    """Return whether a value is a component reference mapping."""
    if not isinstance(value, Mapping):
        return False
    reference = value.get(REFERENCE_KEY)
    return isinstance(reference, str) and COMPONENTS_SEGMENT in reference


def inline_references(
    value: Any,
    resolve: ReferenceResolver,
    inlined: set[str] | None = None,
) -> Any:
    """Inline referenced component fields one level deep.

    Args:
        value: JSON value possibly containing component references.
        resolve: Lookup returning a reference target's current fields, or None.
        inlined: Optional set collecting every reference whose target carried
            fields. References to empty targets stay bare and are not collected.

    Returns:
        Copy of the value with each resolvable reference carrying its target's
        fields. References inside the inlined fields are left untouched.
    """
    if is_component_reference(value):
        reference = value[REFERENCE_KEY]
        target = resolve(reference)
        if target is None:
            return {REFERENCE_KEY: reference}
        if inlined is not None and target:
            inlined.add(reference)
        return {REFERENCE_KEY: reference, **copy.deepcopy(dict(target))}
    if isinstance(value, Mapping):
        return {key: inline_references(item, resolve, inlined) for key, item in value.items()}
    if isinstance(value, list):
        return [inline_references(item, resolve, inlined) for item in value]
    return value


def strip_references(value: Any) -> tuple[Any, list[tuple[str, dict[str, Any]]]]:
    """Reduce every component reference back to its bare ``_ref``.

    Args:
        value: JSON value possibly containing denormalized references.

    Returns:
        The stripped value and the ``(reference, fields)`` pairs that were
        removed, nested references included, in discovery order.
    """
    extracted: list[tuple[str, dict[str, Any]]] = []
    stripped_value = _strip(value, extracted)
    return stripped_value, extracted


def _strip(value: Any, extracted: list[tuple[str, dict[str, Any]]]) -> Any:
    if is_component_reference(value):
        reference = value[REFERENCE_KEY]
        fields = {key: item for key, item in value.items() if key != REFERENCE_KEY}
        if fields:
            child_fields = {key: _strip(item, extracted) for key, item in fields.items()}
            extracted.append((reference, child_fields))
        return {REFERENCE_KEY: reference}
    if isinstance(value, Mapping):
        return {key: _strip(item, extracted) for key, item in value.items()}
    if isinstance(value, list):
        return [_strip(item, extracted) for item in value]
    return value


def discover_references(value: Any) -> list[str]:
    """Collect component URIs referenced anywhere in a value.

    Both ``_ref`` values and bare component URIs (page layouts and areas)
    are collected, deduplicated in first-seen order.
    """
    found: dict[str, None] = {}
    _discover(value, found)
    return list(found)


def _discover(value: Any, found: dict[str, None]) -> None:
    if isinstance(value, str):
        parsed = parse_resource_uri(value)
        if parsed is not None and parsed.collection == COMPONENTS_COLLECTION:
            found.setdefault(value, None)
    elif isinstance(value, Mapping):
        for item in value.values():
            _discover(item, found)
    elif isinstance(value, list):
        for item in value:
            _discover(item, found)


def rewrite_uris(value: Any, convert: Callable[[str], str]) -> Any:
    """Return a copy of a value with every resource URI string converted.

    Args:
        value: JSON value.
        convert: Function mapping one resource URI to another.
    """
    if isinstance(value, str):
        if parse_resource_uri(value) is None:
            return value
        return convert(value)
    if isinstance(value, Mapping):
        return {key: rewrite_uris(item, convert) for key, item in value.items()}
    if isinstance(value, list):
        return [rewrite_uris(item, convert) for item in value]
    return value
