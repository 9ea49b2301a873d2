"""Shared pieces of the template engines."""

import threading
from collections import OrderedDict
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar, Union

from sqltemplate.utils.type_guards import is_iterable_parameters, is_mapping

if TYPE_CHECKING:
    from sqltemplate.core.introspection import BeanRegistry

__all__ = ("DEFAULT_CACHE_SIZE", "LRUCache", "PathLike", "build_context", "normalize_search_path")

DEFAULT_CACHE_SIZE = 512

PathLike = Union[str, Path]

K = TypeVar("K")
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Small thread-safe LRU mapping.

    Lookups and stores are guarded by a lock; ``get_or_create`` runs the
    factory outside the lock, so two threads may both build a missing value.
    The first value stored wins.
    """

    __slots__ = ("_data", "_lock", "max_size")

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        self.max_size = max_size
        self._data: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K) -> "Optional[V]":
        with self._lock:
            value = self._data.get(key)
            if value is not None:
                self._data.move_to_end(key)
            return value

    def put(self, key: K, value: V) -> V:
        with self._lock:
            existing = self._data.get(key)
            if existing is not None:
                return existing
            self._data[key] = value
            if len(self._data) > self.max_size:
                self._data.popitem(last=False)
            return value

    def get_or_create(self, key: K, factory: "Callable[[], V]") -> V:
        value = self.get(key)
        if value is None:
            value = self.put(key, factory())
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


def normalize_search_path(search_path: "Union[PathLike, list[PathLike], tuple[PathLike, ...]]") -> "list[Path]":
    if isinstance(search_path, (str, Path)):
        return [Path(search_path)]
    return [Path(p) for p in search_path]


def build_context(argument: Any, registry: "Optional[BeanRegistry]" = None) -> "dict[str, Any]":
    """Build the template context for a binding argument.

    - ``None``: an empty context
    - a mapping: its items
    - a tuple or list of positional values: ``{"args": values}``
    - a parameter source exposing ``parameter_names``: its values
    - any other object: its readable names mapped to the raw values

    Args:
        argument: The binding argument of a call.
        registry: Registry used to describe parameter objects.

    Returns:
        The template context.
    """
    if argument is None:
        return {}
    if is_mapping(argument):
        return dict(argument)
    if is_iterable_parameters(argument):
        return {"args": tuple(argument)}

    names = getattr(argument, "parameter_names", None)
    if names is not None and callable(getattr(argument, "get_value", None)):
        return {name: argument.get_value(name) for name in names}

    if registry is None:
        from sqltemplate.core.introspection import get_default_registry

        registry = get_default_registry()
    metadata = registry.readable(argument)
    context: dict[str, Any] = {}
    for name, descriptor in metadata.public_fields.items():
        try:
            context[name] = descriptor.read(argument)
        except AttributeError:
            # declared but unset fields stay undefined in the template
            continue
    context.update((name, descriptor.read(argument)) for name, descriptor in metadata.properties.items())
    return context
