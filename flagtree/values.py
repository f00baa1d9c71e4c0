r"""
Flagtree value model: the closed set of scalar kinds a flag can carry.

Overview
- FlagType: enumeration {BOOL, STRING, INT, FLOAT}.
  • type_default(): the zero value of the kind (false / "" / 0 / 0.0).
  • is_type_of(value): True iff the value carries this kind's tag.
  • parse(raw): type-directed conversion from text; raises ValueError with a reason.
  • parse_from_text(raw): same conversion, but failure yields FlagValue.NONE.

- FlagValue: immutable tagged value.
  • FlagValue.Bool(b), FlagValue.String(s), FlagValue.Int(i), FlagValue.Float(f)
  • FlagValue.NONE: “no value of any kind” (absent or unparseable), distinct
    from any kind's zero value (Int(0) is a valid Int).

Text conversion rules
- Bool accepts exactly "true" / "false" (case-sensitive); nothing else is truthy or falsy.
- Int accepts an optional sign followed by ASCII decimal digits, within the signed
  64-bit range. Whitespace, underscores and partial numbers are rejected.
- Float accepts decimal and exponent literals plus inf/infinity/nan (any case).
- String always succeeds and copies the text verbatim.

Quick example:
    >>> FlagType.INT.parse_from_text("42")
    FlagValue.Int(42)
    >>> FlagType.INT.parse_from_text("4x2")
    FlagValue.NONE
    >>> FlagType.BOOL.is_type_of(FlagValue.NONE)
    False
"""
import builtins
import math
import re
from enum import Enum
from typing import final

from rich.text import Text

_INTEGER = re.compile(r"[+-]?[0-9]+")
_REAL = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?|inf|infinity|nan)", re.IGNORECASE)

# Signed 64-bit bounds for Int payloads.
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1


class FlagType(Enum):
    """
    Supported flag kinds.

    Members are stateless; the member value is the display name used in
    diagnostics and help output (see typename).
    """
    BOOL = "Bool"
    STRING = "String"
    INT = "Int"
    FLOAT = "Float"

    @property
    def typename(self):
        return self.value

    def type_default(self):
        """
        Return the zero value of this kind.
        """
        match self:
            case FlagType.BOOL:
                return FlagValue.Bool(False)
            case FlagType.STRING:
                return FlagValue.String("")
            case FlagType.INT:
                return FlagValue.Int(0)
            case FlagType.FLOAT:
                return FlagValue.Float(0.0)

    def is_type_of(self, value, /):
        """
        Return True iff value carries this kind's tag (FlagValue.NONE never matches).
        """
        return isinstance(value, FlagValue) and value.get_type() is self

    def parse(self, raw, /):
        """
        Convert raw text into a FlagValue of this kind.

        Returns
        - FlagValue tagged with this kind.

        Raises
        - TypeError: raw is not a string.
        - ValueError: raw is not acceptable text for this kind; the message is the reason
          and is meant to be shown to the user as-is.
        """
        if not isinstance(raw, str):
            raise TypeError(f"{self.typename} parse() argument must be a string")

        match self:
            case FlagType.BOOL:
                if raw == "true":
                    return FlagValue.Bool(True)
                if raw == "false":
                    return FlagValue.Bool(False)
                raise ValueError(f"expected 'true' or 'false', got {raw!r}")
            case FlagType.STRING:
                return FlagValue.String(raw)
            case FlagType.INT:
                if not _INTEGER.fullmatch(raw):
                    raise ValueError(f"expected a base-10 integer, got {raw!r}")
                number = int(raw)
                if not _INT_MIN <= number <= _INT_MAX:
                    raise ValueError(f"integer {raw!r} is out of range")
                return FlagValue.Int(number)
            case FlagType.FLOAT:
                if not _REAL.fullmatch(raw):
                    raise ValueError(f"expected a floating point number, got {raw!r}")
                return FlagValue.Float(float(raw))

    def parse_from_text(self, raw, /):
        """
        Sentinel form of parse(): FlagValue.NONE instead of a ValueError.
        """
        try:
            return self.parse(raw)
        except ValueError:
            return FlagValue.NONE


# Python payload type accepted for each kind.
_PAYLOADS = {
    FlagType.BOOL: bool,
    FlagType.STRING: str,
    FlagType.INT: int,
    FlagType.FLOAT: float,
}


@final
class FlagValue:
    """
    Immutable tagged flag value.

    Use the named constructors (Bool/String/Int/Float) or the NONE singleton;
    calling FlagValue(...) directly is reserved for them.

    Notes
    - Payloads are checked at construction: bool is not an Int, and ints are
      widened to float for Float.
    - Equality and hashing consider both the tag and the payload, so
      Int(1) != Float(1.0). Float NaN payloads compare equal to each other, so
      resolving "--ratio nan" twice yields equal values.
    - NONE is falsy; every other value is truthy, including zero values.
    """
    __slots__ = ("_type", "_object")

    NONE = None  # Replaced with the singleton below the class body.

    def __new__(cls, type, object, /):
        if type is None:
            if cls.NONE is not None:
                return cls.NONE
        elif not isinstance(type, FlagType):
            raise TypeError("FlagValue() first argument must be a flag type or None")
        else:
            payload = _PAYLOADS[type]
            if type is FlagType.FLOAT and isinstance(object, int) and not isinstance(object, bool):
                object = float(object)
            if not isinstance(object, payload) or (payload is int and isinstance(object, bool)):
                raise TypeError(f"{type.typename} value must be {payload.__name__}, not {builtins.type(object).__name__}")
            if type is FlagType.INT and not _INT_MIN <= object <= _INT_MAX:
                raise ValueError(f"Int value {object} is out of range")

        self = super().__new__(cls)
        builtins.object.__setattr__(self, "_type", type)
        builtins.object.__setattr__(self, "_object", object if type is not None else None)
        return self

    @classmethod
    def Bool(cls, value, /):
        return cls(FlagType.BOOL, value)

    @classmethod
    def String(cls, value, /):
        return cls(FlagType.STRING, value)

    @classmethod
    def Int(cls, value, /):
        return cls(FlagType.INT, value)

    @classmethod
    def Float(cls, value, /):
        return cls(FlagType.FLOAT, value)

    @property
    def object(self):
        """
        The Python payload (None for FlagValue.NONE).
        """
        return self._object

    def get_type(self):
        """
        Inverse lookup: the FlagType of this value, or None for FlagValue.NONE.
        """
        return self._type

    def is_type(self, type, /):
        return type is not None and self._type is type

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __bool__(self):
        return self._type is not None

    def __eq__(self, other, /):
        if not isinstance(other, FlagValue):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        if self._type is FlagType.FLOAT and math.isnan(self._object):
            return self._type, "nan"
        return self._type, self._object

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        if self._type is None:
            return FlagValue, (None, None)
        return FlagValue, (self._type, self._object)

    def __repr__(self):
        if self._type is None:
            return "FlagValue.NONE"
        return f"FlagValue.{self._type.typename}({self._object!r})"

    def __rich__(self):
        if self._type is None:
            return Text("none", style="dim")
        return Text.assemble((self._type.typename, "cyan"), "(", (repr(self._object), "yellow"), ")")


FlagValue.NONE = FlagValue(None, None)


__all__ = (
    "FlagType",
    "FlagValue",
)
