"""
Flagtree faults: the errors and warnings surfaced by declaration, resolution
and dispatch, and their rich rendering.

Kinds
- DeclarationMismatchWarning: a flag default disagrees with the flag type; the
  flag keeps the type's zero value instead. Handled locally (warned, not raised).
- ParseFailureError: an explicit value could not be converted to its flag's type.
  MissingValueError is the case where no value token followed the flag at all.
- UnknownTokenError: a flag-shaped token names no flag on the resolution path.
- NoActionBoundError: resolution ended on a command without an action.
- ActionFailure: raised by actions to report failure; passed through verbatim.

Every fault carries a lowercased message plus read-only options (code, title,
hint, input, index, path, ...) readable as attributes. trigger(fault, **options)
merges options in and then raises (errors) or warns (warnings). Nothing here
prints or exits; rendering happens only when a fault is handed to a rich console.

Host hooks, looked up on __main__
- __codes__: FaultCode → label shown instead of the number.
- __docs__: FaultCode → documentation string returned by getdoc().
- __styles__: palette overrides for the rendered output.
- __prog__: program name shown in the fault header.
"""
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    stable numeric identifiers of every fault.

    - 111xx: resolution and dispatch errors
    - 121xx: declaration warnings
    """
    NO_ACTION_BOUND             = 11103
    UNKNOWN_TOKEN               = 11112
    UNCASTABLE_VALUE            = 11115
    MISSING_VALUE               = 11117
    ACTION_FAILURE              = 11131

    DECLARATION_MISMATCH        = 12101

    def normalize(self):
        """
        the label shown for this code: __main__.__codes__[self] when defined,
        else the number as text.
        """
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


def _render(fault, palette):
    """
    layout shared by errors and warnings: a header line, the message and the hint.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    code = fault.options.get("code")
    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", fault.options.get("prog", "flagtree")), "prog-name"),
        " — ",
        text(code.normalize() if code is not None else "-", "code"),
        " | ",
        text(fault.options.get("title", type(fault).__name__).title(), "title"),
        " ]",
    )

    body = [text(fault.message if fault.message is not Unset else type(fault).__name__, "message")]
    if hint := fault.options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fault.options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class _Fault:
    """
    message + options behavior shared by CommandException and CommandWarning.
    """
    palette = {}

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # options double as attributes: fault.input, fault.index, fault.path, ...
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __replace__(self, /, **changes):
        return type(self)(self.message, **(dict(self.options) | changes))

    def __rich__(self):
        return _render(self, type(self).palette)


class CommandException(_Fault, Exception):
    """
    base type of every error raised by resolution and dispatch.
    """
    palette = {
        "prog-name": "bold #ECECF4",
        "code": "bold #38BDF8",
        "title": "bold #F472B6",
        "message": "#D4D4D8",
        "hint-arrow": "dim #86EFAC",
        "hint": "italic #86EFAC",
    }

    def __trigger__(self):
        raise self


class ParseFailureError(CommandException): ...
class MissingValueError(ParseFailureError): ...
class UnknownTokenError(CommandException): ...
class NoActionBoundError(CommandException): ...
class ActionFailure(CommandException): ...


class CommandWarning(_Fault, Warning):
    """
    base type of advisory diagnostics, emitted with warnings.warn (stderr by default).

    the 'stacklevel' option counts from the caller of trigger().
    """
    palette = {
        "prog-name": "bold #ECECF4",
        "code": "bold #FBBF24",
        "title": "bold #FBCFE8",
        "message": "#E4E4E7",
        "hint-arrow": "dim #BBF7D0",
        "hint": "italic #BBF7D0",
    }

    def __trigger__(self):
        warnings.warn(self, stacklevel=self.options.get("stacklevel", 2) + 2)


class DeclarationMismatchWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    raise or warn 'fault' after merging 'options' into it.

    'fault' must implement __replace__(**options) and __trigger__(); every
    CommandException and CommandWarning does.
    """
    for method in ("__replace__", "__trigger__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError(f"trigger() argument must implement {method}()")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    documentation registered for 'code' in __main__.__docs__, or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "ParseFailureError",
    "MissingValueError",
    "UnknownTokenError",
    "NoActionBoundError",
    "ActionFailure",
    "CommandWarning",
    "DeclarationMismatchWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
