"""Readable-name introspection for parameter objects.

Determines which names a value object exposes for named parameter binding:

- accessor properties: ``property`` (with a getter) and ``functools.cached_property``
  attributes declared on the type or its bases
- public fields: declared attributes of dataclasses, attrs classes, msgspec
  structs, pydantic models, NamedTuples, ``__slots__`` and class annotations

Metadata is derived once per type and kept in a :class:`BeanRegistry`.
"""

import dataclasses
import inspect
import threading
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from functools import cached_property
from operator import attrgetter
from typing import Any, ClassVar, Final, Optional, get_origin

from sqltemplate.utils.logging import get_logger
from sqltemplate.utils.type_guards import (
    is_attrs_schema,
    is_dataclass,
    is_msgspec_struct,
    is_named_tuple,
    is_pydantic_model,
)

__all__ = (
    "BeanMetadata",
    "BeanRegistry",
    "FieldDescriptor",
    "FieldKind",
    "get_default_registry",
    "introspect",
)

logger = get_logger("core.introspection")

# Properties contributed by these packages describe the library, not the user's model.
_LIBRARY_MODULES: Final[frozenset[str]] = frozenset({
    "abc",
    "attr",
    "attrs",
    "builtins",
    "enum",
    "msgspec",
    "pydantic",
    "typing",
})


class FieldKind(str, Enum):
    """How a name is read from a parameter object."""

    PROPERTY = "property"
    FIELD = "field"


class FieldDescriptor:
    """A readable name on a parameter object and the callable that reads it."""

    __slots__ = ("getter", "kind", "name")

    def __init__(self, name: str, kind: FieldKind, getter: "Optional[Callable[[Any], Any]]" = None) -> None:
        self.name = name
        self.kind = kind
        self.getter = getter if getter is not None else attrgetter(name)

    def read(self, obj: Any) -> Any:
        """Read the current value from ``obj``."""
        return self.getter(obj)

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.name!r}, {self.kind.value})"


class BeanMetadata:
    """Readable names of one parameter type.

    ``properties`` and ``public_fields`` keep declaration order. A name can be
    present in both; lookups consult ``properties`` first. ``deferred`` names
    annotation-only fields without a class default; an instance exposes them
    only once it has assigned them.
    """

    __slots__ = ("bean_type", "deferred", "properties", "public_fields", "registered")

    def __init__(
        self,
        bean_type: type,
        properties: "Mapping[str, FieldDescriptor]",
        public_fields: "Mapping[str, FieldDescriptor]",
        registered: bool = False,
        deferred: "Iterable[str]" = (),
    ) -> None:
        self.bean_type = bean_type
        self.properties: dict[str, FieldDescriptor] = dict(properties)
        self.public_fields: dict[str, FieldDescriptor] = dict(public_fields)
        self.registered = registered
        self.deferred: frozenset[str] = frozenset(deferred)

    @property
    def names(self) -> "list[str]":
        """All readable names, properties first."""
        return [*self.properties, *(name for name in self.public_fields if name not in self.properties)]

    def has_name(self, name: str) -> bool:
        return name in self.properties or name in self.public_fields

    def with_fields(self, descriptors: "Iterable[FieldDescriptor]") -> "BeanMetadata":
        """Return a copy with additional public fields."""
        public_fields = dict(self.public_fields)
        for descriptor in descriptors:
            public_fields.setdefault(descriptor.name, descriptor)
        return BeanMetadata(self.bean_type, self.properties, public_fields, self.registered, self.deferred)

    def without_fields(self, names: "Iterable[str]") -> "BeanMetadata":
        """Return a copy without the given public fields."""
        dropped = set(names)
        public_fields = {name: d for name, d in self.public_fields.items() if name not in dropped}
        return BeanMetadata(self.bean_type, self.properties, public_fields, self.registered, self.deferred - dropped)

    def __repr__(self) -> str:
        return (
            f"BeanMetadata({self.bean_type.__qualname__}, properties={list(self.properties)}, "
            f"public_fields={list(self.public_fields)})"
        )


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _is_library_type(klass: type) -> bool:
    return klass.__module__.split(".", 1)[0] in _LIBRARY_MODULES


def _is_field_annotation(annotation: Any) -> bool:
    if annotation is ClassVar or get_origin(annotation) is ClassVar or isinstance(annotation, dataclasses.InitVar):
        return False
    if isinstance(annotation, str):
        return not annotation.startswith(("ClassVar", "typing.ClassVar", "InitVar", "dataclasses.InitVar"))
    return True


def _accessor_descriptors(bean_type: type) -> "dict[str, FieldDescriptor]":
    found: dict[str, FieldDescriptor] = {}
    for klass in reversed(bean_type.__mro__):
        if _is_library_type(klass):
            continue
        for name, attr in vars(klass).items():
            if not _is_public(name):
                continue
            if isinstance(attr, property):
                if attr.fget is None:
                    found.pop(name, None)
                    continue
                found[name] = FieldDescriptor(name, FieldKind.PROPERTY)
            elif isinstance(attr, cached_property):
                found[name] = FieldDescriptor(name, FieldKind.PROPERTY)
            else:
                # a subclass attribute shadows an inherited property
                found.pop(name, None)
    return found


def _declared_field_names(bean_type: type) -> "tuple[list[str], set[str]]":
    """Return declared field names and the annotation-only names without a class default."""
    names: list[str] = []
    if is_dataclass(bean_type):
        names.extend(f.name for f in dataclasses.fields(bean_type))
    if is_attrs_schema(bean_type):
        import attrs

        names.extend(a.name for a in attrs.fields(bean_type))
    if is_msgspec_struct(bean_type):
        names.extend(bean_type.__struct_fields__)  # type: ignore[attr-defined]
    if is_pydantic_model(bean_type):
        names.extend(bean_type.model_fields)  # type: ignore[attr-defined]
    if is_named_tuple(bean_type):
        names.extend(bean_type._fields)  # type: ignore[attr-defined]
    schema_names = set(names)

    annotated: list[str] = []
    for klass in reversed(bean_type.__mro__):
        if _is_library_type(klass):
            continue
        slots = vars(klass).get("__slots__", ())
        names.extend((slots,) if isinstance(slots, str) else slots)
        annotations = inspect.get_annotations(klass)
        field_annotations = [name for name, annotation in annotations.items() if _is_field_annotation(annotation)]
        names.extend(field_annotations)
        annotated.extend(field_annotations)

    deferred = {name for name in annotated if name not in schema_names and not hasattr(bean_type, name)}
    return names, deferred


def introspect(bean_type: type) -> BeanMetadata:
    """Derive the readable names of ``bean_type``.

    Args:
        bean_type: The parameter object's type.

    Returns:
        The derived metadata. Unreadable properties are left out; nothing raises.
    """
    properties = _accessor_descriptors(bean_type)
    names, deferred = _declared_field_names(bean_type)
    public_fields: dict[str, FieldDescriptor] = {}
    for name in names:
        if _is_public(name) and name not in public_fields:
            public_fields[name] = FieldDescriptor(name, FieldKind.FIELD)
    return BeanMetadata(bean_type, properties, public_fields, deferred=deferred & public_fields.keys())


def _instance_fields(obj: Any, metadata: BeanMetadata) -> "list[FieldDescriptor]":
    try:
        attributes = vars(obj)
    except TypeError:
        return []
    return [
        FieldDescriptor(name, FieldKind.FIELD)
        for name in attributes
        if _is_public(name) and not metadata.has_name(name)
    ]


class BeanRegistry:
    """Per-type metadata registry.

    Types are either registered explicitly or introspected on first lookup.
    Reads take no lock; the first metadata stored for a type is kept, so
    concurrent first lookups may introspect twice but always agree.
    """

    __slots__ = ("_lock", "_metadata")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._metadata: dict[type, BeanMetadata] = {}

    def register(
        self,
        bean_type: type,
        *,
        properties: "Optional[Mapping[str, Callable[[Any], Any]]]" = None,
        fields: "Optional[Iterable[str]]" = None,
    ) -> BeanMetadata:
        """Register the readable names of ``bean_type``.

        Without ``properties`` and ``fields`` the type is introspected now.
        An explicit registration replaces earlier metadata for the type and
        is used as is: instance attributes are not added to it.

        Args:
            bean_type: Type to register.
            properties: Accessor names mapped to getter callables.
            fields: Names read directly as attributes.

        Returns:
            The stored metadata.
        """
        if properties is None and fields is None:
            derived = introspect(bean_type)
            metadata = BeanMetadata(
                bean_type, derived.properties, derived.public_fields, registered=True, deferred=derived.deferred
            )
        else:
            metadata = BeanMetadata(
                bean_type,
                {
                    name: FieldDescriptor(name, FieldKind.PROPERTY, getter)
                    for name, getter in (properties or {}).items()
                },
                {name: FieldDescriptor(name, FieldKind.FIELD) for name in (fields or ())},
                registered=True,
            )
        with self._lock:
            self._metadata[bean_type] = metadata
        logger.debug("Registered parameter type %s", bean_type.__qualname__)
        return metadata

    def get(self, bean_type: type) -> BeanMetadata:
        """Return the metadata of ``bean_type``, introspecting it on first use."""
        metadata = self._metadata.get(bean_type)
        if metadata is not None:
            return metadata
        metadata = introspect(bean_type)
        with self._lock:
            metadata = self._metadata.setdefault(bean_type, metadata)
        logger.debug(
            "Introspected parameter type %s: %d properties, %d fields",
            bean_type.__qualname__,
            len(metadata.properties),
            len(metadata.public_fields),
        )
        return metadata

    def describe(self, obj: Any) -> BeanMetadata:
        """Return the metadata for one parameter object.

        Introspected types also expose the public instance attributes present
        right now; later changes to the instance do not alter the result.
        """
        metadata = self.get(type(obj))
        if metadata.registered:
            return metadata
        extra = _instance_fields(obj, metadata)
        return metadata.with_fields(extra) if extra else metadata

    def readable(self, obj: Any) -> BeanMetadata:
        """Return the names that can be read from ``obj`` right now.

        Like :meth:`describe`, minus deferred fields the instance has not assigned.
        """
        metadata = self.describe(obj)
        unassigned = [name for name in metadata.deferred if not hasattr(obj, name)]
        return metadata.without_fields(unassigned) if unassigned else metadata

    def clear(self) -> None:
        with self._lock:
            self._metadata.clear()

    def __contains__(self, bean_type: object) -> bool:
        return bean_type in self._metadata

    def __len__(self) -> int:
        return len(self._metadata)


_default_registry = BeanRegistry()


def get_default_registry() -> BeanRegistry:
    """Return the process-wide default registry."""
    return _default_registry
