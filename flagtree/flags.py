r"""
Flagtree flag declarations.

Overview
- Flag: named, typed, optionally-aliased option with a default value.
  • Flag(name, usage, type): zero-value default, no aliases.
  • Flag.build_new(name, usage, short_aliases, long_aliases, type, default_value):
    full declaration; a default whose type disagrees with the declared type is
    replaced by the type's zero value and a DeclarationMismatchWarning is emitted.
  • Fluent mutators (short, alias, default_value, usage, local_only) return a NEW
    Flag; declarations are immutable values once built.
  • Lookup predicates (is_name, is_short, is_long) use exact, case-sensitive equality.

Metadata (sanitized on construction)
- name: non-empty string, no leading '-', no whitespace, no '='.
- descr: help text (str); the 'usage' argument and mutator set it.
- short_aliases / long_aliases: ordered, duplicate-free tuples of names
  (spelled without dashes; "-v" on the command line matches short alias "v").
- flag_type: FlagType.
- default: FlagValue whose tag always equals flag_type.
- local: when True, the flag is not inherited by subcommands.

Quick example:
    >>> from flagtree import Flag, FlagType, FlagValue
    >>> verbose = Flag("verbose", "print more", FlagType.BOOL).short("v")
    >>> port = Flag("port", "listen port", FlagType.INT).default_value(FlagValue.Int(8000))
    ...
"""
import functools
import operator
from collections.abc import Iterable

from .faults import DeclarationMismatchWarning, FaultCode, getdoc, trigger
from .utils import *
from .values import FlagType, FlagValue


def _sanitize_aliases(kind, aliases, /):
    """
    Internal: validate an alias collection and return it as a duplicate-free tuple.
    """
    if isinstance(aliases, str) or not isinstance(aliases, Iterable):
        raise TypeError(f"flag {kind} aliases must be an iterable of strings")
    sanitized = []
    for alias in aliases:
        validate_name(f"flag {kind} alias", alias)
        if alias in sanitized:
            raise ValueError(f"flag {kind} aliases cannot contain duplicates ({alias!r})")
        sanitized.append(alias)
    return tuple(sanitized)


class Flag:
    """
    Immutable flag declaration.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    - Equality and hashing are by value, so rebuilding the same declaration
      yields an equal Flag.
    """

    __introspectable__ = (
        "name",
        "descr",
        "short_aliases",
        "long_aliases",
        "flag_type",
        "default",
        "local",
    )

    name = view("name")
    descr = view("descr")
    short_aliases = view("short_aliases")
    long_aliases = view("long_aliases")
    flag_type = view("flag_type")
    default = view("default")
    local = view("local")

    def __new__(cls, name, usage="", type=FlagType.STRING, /):
        """
        Declare a flag with the type's zero value as default and no aliases.
        """
        if not isinstance(type, FlagType):
            raise TypeError("flag 'type' must be a flag type")
        return cls.build_new(name, usage, (), (), type, type.type_default())

    @classmethod
    def build_new(cls, name, usage, short_aliases, long_aliases, type, default_value, /, *, local=False):
        """
        Declare a flag with every field spelled out.

        Parameters
        - name: str, the canonical name (matched by --name).
        - usage: str, help text.
        - short_aliases: Iterable[str], matched by -alias.
        - long_aliases: Iterable[str], matched by --alias.
        - type: FlagType
        - default_value: FlagValue; when its type differs from 'type', a
          DeclarationMismatchWarning is emitted and type.type_default() is used.
        - local: bool, keyword-only; opt out of inheritance by subcommands.

        Raises
        - TypeError/ValueError on malformed names, aliases, usage or type.
          Construction does not fail on a mismatched default.
        """
        validate_name("flag name", name)
        if not isinstance(usage, str):
            raise TypeError("flag 'usage' must be a string")
        if not isinstance(type, FlagType):
            raise TypeError("flag 'type' must be a flag type")
        if not isinstance(default_value, FlagValue):
            raise TypeError("flag 'default_value' must be a flag value")

        if not type.is_type_of(default_value):
            trigger(DeclarationMismatchWarning(
                "flag %r is declared %s, but its default value %r is not %s; %s's default will be used" % (
                    name, type.typename, default_value, type.typename, type.typename
                ),
                title="declaration mismatch",
                code=FaultCode.DECLARATION_MISMATCH,
                hint="declare the default as FlagValue.%s(...) or change the flag type" % type.typename,
                docs=getdoc(FaultCode.DECLARATION_MISMATCH),
                name=name,
            ))
            default_value = type.type_default()

        self = super().__new__(cls)
        self._name = name
        self._descr = usage
        self._short_aliases = _sanitize_aliases("short", short_aliases)
        self._long_aliases = _sanitize_aliases("long", long_aliases)
        self._flag_type = type
        self._default = default_value
        self._local = bool(local)
        return self

    def __replace__(self, **changes):
        """
        Return a copy with the given private fields replaced (no re-validation).
        """
        clone = super().__new__(type(self))
        for name in type(self).__introspectable__:
            setattr(clone, "_" + name, changes.get(name, getattr(self, "_" + name)))
        return clone

    def short(self, alias, /):
        """
        Return a new flag with one more short alias (matched by -alias).
        """
        validate_name("flag short alias", alias)
        if alias in self._short_aliases:
            raise ValueError(f"flag short aliases cannot contain duplicates ({alias!r})")
        return self.__replace__(short_aliases=self._short_aliases + (alias,))

    def alias(self, alias, /):
        """
        Return a new flag with one more long alias (matched by --alias).
        """
        validate_name("flag long alias", alias)
        if alias in self._long_aliases:
            raise ValueError(f"flag long aliases cannot contain duplicates ({alias!r})")
        return self.__replace__(long_aliases=self._long_aliases + (alias,))

    def default_value(self, value, /):
        """
        Return a new flag with a replaced default value.

        A value whose type disagrees with flag_type is rejected: a
        DeclarationMismatchWarning is emitted and the flag is returned unchanged.
        """
        if not self._flag_type.is_type_of(value):
            trigger(DeclarationMismatchWarning(
                "default value %r does not match flag %r type %s; default value is not changed" % (
                    value, self._name, self._flag_type.typename
                ),
                title="declaration mismatch",
                code=FaultCode.DECLARATION_MISMATCH,
                hint="pass a FlagValue.%s(...)" % self._flag_type.typename,
                docs=getdoc(FaultCode.DECLARATION_MISMATCH),
                name=self._name,
            ))
            return self
        return self.__replace__(default=value)

    def usage(self, usage, /):
        if not isinstance(usage, str):
            raise TypeError("flag 'usage' must be a string")
        return self.__replace__(descr=usage)

    def local_only(self):
        """
        Return a new flag that subcommands do not inherit.
        """
        return self.__replace__(local=True)

    def is_name(self, name, /):
        return self._name == name

    def is_short(self, alias, /):
        # An empty alias collection simply matches nothing.
        return alias in self._short_aliases

    def is_long(self, alias, /):
        return alias in self._long_aliases

    @property
    def spellings(self):
        """
        Every command-line spelling of this flag, long forms first
        (e.g. ('--verbose', '--loud', '-v')).
        """
        return (
            ("--" + self._name,)
            + tuple("--" + alias for alias in self._long_aliases)
            + tuple("-" + alias for alias in self._short_aliases)
        )

    @property
    def identifiers(self):
        """
        Every name and alias of this flag, used for uniqueness checks on registration.
        """
        return frozenset((self._name, *self._short_aliases, *self._long_aliases))

    def _key(self):
        return tuple(getattr(self, "_" + name) for name in type(self).__introspectable__)

    def __eq__(self, other, /):
        if not isinstance(other, Flag):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "flag(%s)" % (
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
        )


__all__ = (
    "Flag",
)
