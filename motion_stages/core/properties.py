"""
Typed property store for stage configuration.

Properties are declared once with a type (a class, tuple of classes or a
Union of msgspec Structs). ``set`` validates the value right away, so a
malformed configuration fails at setup instead of during compute. Raw
``dict``/``list`` payloads are converted through msgspec.
"""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass
from typing import Any

import msgspec

from motion_stages.utils.errors import PropertyTypeError, PropertyUndefinedError

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _accepted_classes(type_: Any) -> tuple[type, ...]:
    if isinstance(type_, tuple):
        return type_
    args = typing.get_args(type_)
    if args:
        return tuple(a for a in args if isinstance(a, type))
    return (type_,)


@dataclass
class Property:
    name: str
    type_: Any
    description: str = ""
    default: Any = _UNSET
    value: Any = _UNSET

    def defined(self) -> bool:
        return self.value is not _UNSET or self.default is not _UNSET

    def current(self) -> Any:
        if self.value is not _UNSET:
            return self.value
        if self.default is not _UNSET:
            return self.default
        return None

    def coerce(self, value: Any) -> Any:
        accepted = _accepted_classes(self.type_)
        # bool is an int subclass; keep it out of numeric properties
        if isinstance(value, accepted) and not (
            isinstance(value, bool) and bool not in accepted
        ):
            return value
        if float in accepted and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, (dict, list)):
            try:
                return msgspec.convert(value, type=self.type_)
            except msgspec.ValidationError as e:
                raise PropertyTypeError(f"property '{self.name}': {e}") from e
        names = ", ".join(c.__name__ for c in accepted)
        raise PropertyTypeError(
            f"property '{self.name}' expects {names}, got {type(value).__name__}"
        )


class PropertyMap:
    """Declared, typed, defaulted properties of a stage."""

    def __init__(self) -> None:
        self._props: dict[str, Property] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._props

    def __iter__(self):
        return iter(self._props)

    def declare(
        self,
        name: str,
        type_: Any,
        description: str = "",
        default: Any = _UNSET,
    ) -> Property:
        if name in self._props:
            raise PropertyTypeError(f"property '{name}' already declared")
        prop = Property(name, type_, description)
        if default is not _UNSET:
            prop.default = prop.coerce(default)
        self._props[name] = prop
        return prop

    def property(self, name: str) -> Property:
        try:
            return self._props[name]
        except KeyError:
            raise PropertyUndefinedError(f"undeclared property '{name}'") from None

    def set(self, name: str, value: Any) -> None:
        prop = self.property(name)
        prop.value = prop.coerce(value)
        logger.debug("property %s <- %r", name, prop.value)

    def set_default(self, name: str, value: Any) -> None:
        prop = self.property(name)
        prop.default = prop.coerce(value)

    def reset(self, name: str) -> None:
        """Drop an explicitly set value (the default applies again)."""
        self.property(name).value = _UNSET

    def defined(self, name: str) -> bool:
        return self.property(name).defined()

    def get(self, name: str) -> Any:
        """Current value or default, None when neither exists."""
        return self.property(name).current()

    def value(self, name: str) -> Any:
        """Like get(), but an undefined property is an error."""
        prop = self.property(name)
        if not prop.defined():
            raise PropertyUndefinedError(f"property '{name}' is undefined")
        return prop.current()

    def description(self, name: str) -> str:
        return self.property(name).description
