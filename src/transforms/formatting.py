"""Bootstrap and dispatch conversion.

Bootstrap documents nest every resource of a site under root collections
(``_components``, ``_pages``, ``_users`` and arbitrary ones like ``_lists``).
Dispatch records are flat: one URI-keyed record per resource, with component
references denormalized. ``to_dispatch`` and ``to_bootstrap`` convert between
the two while preserving referential integrity.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Iterator, Mapping

from core.constants import (
    COMPONENTS_COLLECTION,
    INSTANCES_KEY,
    PAGE_FIELD_ALIASES,
    PAGES_COLLECTION,
    PATH_SEPARATOR,
    USERS_COLLECTION,
)
from core.errors import FerryValidationError
from core.resource_uri import (
    build_collection_uri,
    build_component_uri,
    build_user_uri,
    decode_user_key,
    parse_resource_uri,
    split_component_name,
)
from core.types import BootstrapDocument, DispatchChunk
from transforms.references import inline_references, strip_references

_USER_FIELDS = ("username", "provider", "auth")


def to_dispatch(bootstrap: Mapping[str, Any]) -> Iterator[DispatchChunk]:
    """Convert a bootstrap document into dispatch records.

    Irregular input never raises: root collections of the wrong shape are
    skipped and non-string keys are rendered with ``str``.

    Args:
        bootstrap: Nested document with root collections.

    Yields:
        One single-key record per resource, in declaration order.
    """
    if not isinstance(bootstrap, Mapping):
        return
    for collection, entries in bootstrap.items():
        if not entries:
            continue
        if collection == USERS_COLLECTION:
            if isinstance(entries, (list, tuple)):
                yield from _users_to_dispatch(entries)
        elif not isinstance(entries, Mapping):
            continue
        elif collection == COMPONENTS_COLLECTION:
            yield from _components_to_dispatch(entries)
        elif collection == PAGES_COLLECTION:
            yield from _pages_to_dispatch(entries)
        else:
            for key, value in entries.items():
                yield {build_collection_uri(collection, key): value}


def _components_to_dispatch(components: Mapping[str, Any]) -> Iterator[DispatchChunk]:
    """Emit base and instance records, skipping components already inlined.

    A component inlined into an earlier record travels with its parent and
    is not written again on its own.
    """
    lookup = _ComponentLookup(components)
    inlined: set[str] = set()
    for name, definition in components.items():
        base_fields = _base_fields(definition)
        instances = _instances(definition)
        base_uri = build_component_uri(name)
        if (base_fields or not instances) and base_uri not in inlined:
            yield {base_uri: lookup.inline(base_fields, inlined)}
        for instance_name, instance_fields in instances.items():
            instance_uri = build_component_uri(name, instance_name)
            if instance_uri in inlined:
                continue
            yield {instance_uri: lookup.inline(instance_fields, inlined)}


class _ComponentLookup:
    """Resolve component references against a bootstrap ``_components`` mapping."""

    def __init__(self, components: Mapping[str, Any]) -> None:
        self._components = {str(name): definition for name, definition in components.items()}

    def resolve(self, reference: str) -> Mapping[str, Any] | None:
        parsed = parse_resource_uri(reference)
        if parsed is None or parsed.collection != COMPONENTS_COLLECTION:
            return None
        name, instance = split_component_name(parsed.remainder)
        definition = self._components.get(name)
        if not isinstance(definition, Mapping):
            return None
        if instance is None:
            return _base_fields(definition)
        instances = {str(key): fields for key, fields in _instances(definition).items()}
        instance_fields = instances.get(instance)
        return instance_fields if isinstance(instance_fields, Mapping) else None

    def inline(self, fields: Any, inlined: set[str]) -> Any:
        if not isinstance(fields, Mapping):
            return fields
        references: set[str] = set()
        inlined_fields = inline_references(dict(fields), self.resolve, references)
        for reference in references:
            parsed = parse_resource_uri(reference)
            if parsed is not None:
                inlined.add(parsed.agnostic)
        return inlined_fields


def _base_fields(definition: Any) -> dict[str, Any]:
    if not isinstance(definition, Mapping):
        return {}
    return {key: value for key, value in definition.items() if key != INSTANCES_KEY}


def _instances(definition: Any) -> Mapping[str, Any]:
    if not isinstance(definition, Mapping):
        return {}
    instances = definition.get(INSTANCES_KEY)
    return instances if isinstance(instances, Mapping) else {}


def _pages_to_dispatch(pages: Mapping[str, Any]) -> Iterator[DispatchChunk]:
    for key, page in pages.items():
        page_uri = f"/{PAGES_COLLECTION}/{_strip_separator(str(key))}"
        yield {page_uri: _alias_page_fields(page)}


def _users_to_dispatch(users: Iterable[Any]) -> Iterator[DispatchChunk]:
    for user in users:
        if not isinstance(user, Mapping) or not user.get("auth"):
            continue
        user_uri = build_user_uri(str(user.get("username")), str(user.get("provider")))
        yield {user_uri: dict(user)}


def to_bootstrap(chunks: Iterable[Mapping[str, Any]]) -> BootstrapDocument:
    """Fold dispatch records into one bootstrap document.

    Args:
        chunks: Dispatch records in any order.

    Returns:
        Bootstrap document with every component reference reduced to ``_ref``.

    Raises:
        FerryValidationError: If a record key is not a resource URI.
    """
    document: BootstrapDocument = {}
    for chunk in chunks:
        _merge_into(document, chunk_to_bootstrap(chunk))
    return document


def chunk_to_bootstrap(chunk: Mapping[str, Any]) -> BootstrapDocument:
    """Convert a single dispatch record into a partial bootstrap document."""
    document: BootstrapDocument = {}
    for uri, value in chunk.items():
        parsed = parse_resource_uri(uri)
        if parsed is None:
            raise FerryValidationError(
                f"Cannot convert record '{uri}': key is not a resource uri.", dict(chunk)
            )
        if parsed.collection == COMPONENTS_COLLECTION:
            _add_component_record(document, parsed.remainder, value)
        elif parsed.collection == PAGES_COLLECTION:
            pages = document.setdefault(PAGES_COLLECTION, {})
            pages[_strip_separator(parsed.remainder)] = _alias_page_fields(value)
        elif parsed.collection == USERS_COLLECTION:
            users = document.setdefault(USERS_COLLECTION, [])
            users.append(_user_from_record(parsed.remainder, value))
        else:
            entries = document.setdefault(parsed.collection, {})
            entries[parsed.remainder or PATH_SEPARATOR] = copy.deepcopy(value)
    return document


def _add_component_record(document: BootstrapDocument, remainder: str, value: Any) -> None:
    components = document.setdefault(COMPONENTS_COLLECTION, {})
    stripped_value, extracted = strip_references(value)
    _set_component(components, remainder, stripped_value)
    for reference, fields in extracted:
        parsed = parse_resource_uri(reference)
        if parsed is not None and parsed.collection == COMPONENTS_COLLECTION:
            _set_component(components, parsed.remainder, fields)


def _set_component(components: dict[str, Any], remainder: str, fields: Any) -> None:
    name, instance = split_component_name(remainder)
    definition = components.setdefault(name, {})
    if not isinstance(fields, Mapping):
        return
    if instance is None:
        definition.update(_base_fields(fields))
        return
    instances = definition.setdefault(INSTANCES_KEY, {})
    instances.setdefault(instance, {}).update(fields)


def _user_from_record(key: str, value: Any) -> dict[str, Any]:
    """Rebuild a bootstrap user with its identity fields first.

    Identity fields missing from the record are recovered from the key.
    """
    fields = dict(value) if isinstance(value, Mapping) else {}
    decoded = decode_user_key(key)
    if decoded is not None:
        fields.setdefault("username", decoded[0])
        fields.setdefault("provider", decoded[1])
    user = {field: fields.pop(field) for field in _USER_FIELDS if field in fields}
    user.update(fields)
    return user


def merge_bootstrap(left: Mapping[str, Any], right: Mapping[str, Any]) -> BootstrapDocument:
    """Merge two partial bootstrap documents.

    Merging is associative, so a record stream folded in contiguous chunks
    and merged yields the same document as folding it whole.
    """
    merged = copy.deepcopy(dict(left))
    _merge_into(merged, copy.deepcopy(dict(right)))
    return merged


def _merge_into(target: BootstrapDocument, partial: Mapping[str, Any]) -> None:
    for collection, entries in partial.items():
        if collection == USERS_COLLECTION:
            target.setdefault(USERS_COLLECTION, []).extend(entries)
        elif collection == COMPONENTS_COLLECTION:
            components = target.setdefault(COMPONENTS_COLLECTION, {})
            for name, definition in entries.items():
                _merge_component(components.setdefault(name, {}), definition)
        else:
            target.setdefault(collection, {}).update(entries)


def _merge_component(target: dict[str, Any], definition: Mapping[str, Any]) -> None:
    target.update(_base_fields(definition))
    for instance, fields in _instances(definition).items():
        target.setdefault(INSTANCES_KEY, {}).setdefault(instance, {}).update(fields)


def _strip_separator(key: str) -> str:
    return key[1:] if key.startswith(PATH_SEPARATOR) else key


def _alias_page_fields(page: Any) -> Any:
    """Rename legacy page fields to their canonical names.

    The canonical field wins when a page carries both names.
    """
    if not isinstance(page, Mapping):
        return page
    aliased: dict[str, Any] = {}
    for field, value in page.items():
        canonical = PAGE_FIELD_ALIASES.get(field)
        if canonical is None:
            aliased[field] = value
        elif canonical not in page:
            aliased[canonical] = value
    return aliased
