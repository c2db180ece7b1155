"""Registry of the model classes known to a serializer.

A registry is built from the shape being serialized plus the caller's
extra types. Every model class reachable from their field annotations is
known automatically; the extra types cover subclasses that only show up at
runtime (a ``Derived`` stored in a field declared as ``Base``).
"""

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, get_args, get_origin

from pydantic import BaseModel

from xmlbridge.exceptions import TypeConflictError

logger = logging.getLogger("xmlbridge")


class TypeRegistry:
    """Immutable mapping of XML type names to pydantic model classes.

    Attributes:
        shape: The root shape the registry was built for
    """

    def __init__(self, shape: type, types: dict[str, type[BaseModel]]):
        self.shape = shape
        self._types = MappingProxyType(dict(types))

    def __contains__(self, cls: object) -> bool:
        return self.is_known(cls)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry(shape={self.shape.__name__}, types={list(self._types)})"

    def names(self) -> list[str]:
        """Return the registered type names in registration order."""
        return list(self._types)

    def is_known(self, cls: object) -> bool:
        """Check whether ``cls`` is exactly one of the registered classes."""
        if not isinstance(cls, type):
            return False
        return self._types.get(cls.__name__) is cls

    def resolve(self, name: str) -> type[BaseModel] | None:
        """Look up a model class by its XML type name."""
        return self._types.get(name)


def is_model_class(tp: Any) -> bool:
    """Check if a type is a Pydantic model class."""
    try:
        return isinstance(tp, type) and issubclass(tp, BaseModel)
    except TypeError:
        return False


def build_registry(shape: type, extra_types: Iterable[type] | None = None) -> TypeRegistry:
    """Build the registry for ``shape`` and ``extra_types``.

    Registries are cached per ``(shape, extra_types)`` pair, so repeated
    calls with the same arguments return the same instance.

    Raises:
        TypeError: If an extra type is not a Pydantic model class
        TypeConflictError: If two different classes share a name
    """
    return _build_registry(shape, tuple(extra_types or ()))


@lru_cache(maxsize=256)
def _build_registry(shape: type, extra_types: tuple[type, ...]) -> TypeRegistry:
    for extra in extra_types:
        if not is_model_class(extra):
            raise TypeError(f"Extra types must be Pydantic BaseModel classes, got {extra!r}")

    types: dict[str, type[BaseModel]] = {}
    pending = [tp for tp in (shape, *extra_types) if is_model_class(tp)]

    while pending:
        cls = pending.pop(0)
        existing = types.get(cls.__name__)
        if existing is cls:
            continue
        if existing is not None:
            raise TypeConflictError(
                f"Types {existing.__module__}.{existing.__qualname__} and "
                f"{cls.__module__}.{cls.__qualname__} both use the XML type name '{cls.__name__}'"
            )
        types[cls.__name__] = cls

        for field_info in cls.model_fields.values():
            pending.extend(_models_in_annotation(field_info.annotation))

    logger.debug("Built type registry for %s: %s", getattr(shape, "__name__", shape), list(types))
    return TypeRegistry(shape, types)


def _models_in_annotation(annotation: Any) -> list[type[BaseModel]]:
    """Collect every model class referenced by a type hint."""
    if is_model_class(annotation):
        return [annotation]

    found = []
    for arg in get_args(annotation) if get_origin(annotation) is not None else ():
        found.extend(_models_in_annotation(arg))
    return found
