"""
Flagtree invocation context.

A Context is built fresh by the resolver for every invocation and handed to the
matched command's action. It is a read-only mapping from flag name to FlagValue
(one entry per flag visible on the matched command, explicit or default) plus
the leftover positional arguments.

Access patterns
- ctx["port"]            → FlagValue.Int(8080)
- ctx.int_flag("port")   → 8080          (TypeError if the flag is not an Int)
- ctx.args               → ("file.txt",)
- ctx.path               → ("app", "serve")
"""
from collections.abc import Mapping
from types import MappingProxyType

from .utils import view
from .values import FlagType


class Context(Mapping):
    """
    Per-invocation bundle of resolved flag values and positional arguments.
    """

    command = view("command")
    path = view("path")
    bindings = view("bindings")
    args = view("args")

    def __init__(self, command, path, bindings, args, /):
        self._command = command
        self._path = tuple(path)
        self._bindings = dict(bindings)
        self._args = tuple(args)

    @property
    def name(self):
        """
        Name of the matched command (last element of path).
        """
        return self._path[-1]

    def __getitem__(self, name, /):
        return self._bindings[name]

    def __iter__(self):
        return iter(self._bindings)

    def __len__(self):
        return len(self._bindings)

    def _typed(self, name, type, /):
        try:
            value = self._bindings[name]
        except KeyError:
            raise KeyError(f"no flag named {name!r} on command {' '.join(self._path)!r}") from None
        if not type.is_type_of(value):
            raise TypeError(f"flag {name!r} holds {value!r}, not a {type.typename} value")
        return value.object

    def bool_flag(self, name, /):
        return self._typed(name, FlagType.BOOL)

    def string_flag(self, name, /):
        return self._typed(name, FlagType.STRING)

    def int_flag(self, name, /):
        return self._typed(name, FlagType.INT)

    def float_flag(self, name, /):
        return self._typed(name, FlagType.FLOAT)

    def __eq__(self, other, /):
        if not isinstance(other, Context):
            return NotImplemented
        return (self._path, self._bindings, self._args) == (other._path, other._bindings, other._args)

    __hash__ = None

    def __rich_repr__(self):
        yield "path", self._path
        yield "bindings", MappingProxyType(self._bindings)
        yield "args", self._args

    def __repr__(self):
        return f"context(path={self._path!r}, bindings={self._bindings!r}, args={self._args!r})"


__all__ = (
    "Context",
)
