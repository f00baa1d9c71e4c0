"""
Flagtree utilities shared by the values, flags and commands layers.

Contents
- Unset: sentinel for "argument not given", kept apart from None so that None,
  0 and "" remain ordinary values (see coalesce()).
- coalesce(object, default): Unset → default, anything else unchanged.
- rename(name): decorator giving generated callables a readable name in tracebacks.
- view(name): read-only property over the private "_name" field, handing out
  frozen containers.
- validate_name(kind, name): the naming rule for flags, aliases and commands.
- ordinal(number): position labels used by resolution messages.

Only the names in __all__ are meant for the other modules.
"""
import functools
import re
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final

_NAME = re.compile(r"[^\s=\-][^\s=]*")


@final
class UnsetType:
    """
    Type of the Unset sentinel.

    UnsetType() always returns the one instance; it is falsy, prints as
    "Unset", survives copy and pickle unchanged, and cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError(f"cannot subclass {UnsetType.__name__!r}")

    # "str | Unset" in isinstance() checks reads as "str | UnsetType"
    def __or__(self, other, /):
        return type(self) | other

    def __ror__(self, other, /):
        return other | type(self)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return 'default' when 'object' is Unset, else 'object' itself
    (None, 0 and "" are kept).
    """
    if object is Unset:
        return default
    return object


def rename(name, /):
    """
    Decorator: set __name__ and __qualname__ of the decorated callable to 'name'.

        @rename("port")
        def getter(self): ...
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function, /):
        if not callable(function):
            raise TypeError("@rename() must decorate a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def view(name, /):
    """
    Build a read-only property serving self._<name>.

    Mutable containers are frozen on the way out: sequences (but not strings)
    as tuples, mappings as MappingProxyType, sets as frozensets.
    """
    if not isinstance(name, str):
        raise TypeError("view() argument must be a string")

    @rename(name)
    def getter(self):
        object = getattr(self, "_" + name)
        match object:
            case str():
                return object
            case Sequence():
                return tuple(object)
            case Mapping():
                return MappingProxyType(object)
            case Set():
                return frozenset(object)
        return object

    return property(getter)


def validate_name(kind, name, /):
    """
    Check a flag name, alias or command name and return it unchanged.

    Names are non-empty, do not start with '-', and contain neither whitespace
    nor '=' (any of those would make them unreachable from a token stream).
    """
    if not isinstance(name, str):
        raise TypeError(f"{kind} must be a string")
    if not name:
        raise ValueError(f"{kind} cannot be an empty string")
    if not _NAME.fullmatch(name):
        raise ValueError(f"{kind} {name!r} must not start with '-' or contain whitespace or '='")
    return name


_WORDS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")


@functools.cache
def ordinal(number, /):
    """
    1 → "first" ... 10 → "tenth", then "11th", "21st", "22nd", "112th", ...
    """
    if 1 <= number <= len(_WORDS):
        return _WORDS[number - 1]
    if number % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "view",
    "validate_name",
    "ordinal",
)
