"""
Flagtree command layer: declare, compose, resolve and dispatch CLI commands.

What this module provides
- Command: immutable node of the dispatch tree with
  • an ordered set of flags (names and aliases unique within the command),
  • named subcommands (names and aliases unique among siblings),
  • at most one action (any callable taking a Context).
- App: the root command plus program metadata and a process-entry helper (main()).
- Factories and helpers:
  • command(...): build a Command from an action callable (decorator-friendly).
  • invoke(object, prompt): convenience runner for commands.

Resolution (Command.parse)
- Single left-to-right scan, no backtracking:
  1. start at the root, binding every visible flag to its default;
  2. a bare token naming a child command (name or alias) descends into it, as long
     as no positional argument has been seen yet; the child's flags join the scope;
  3. a flag-shaped token ('--name', '--alias', '-s', optionally '=value') is matched
     against the flags in scope, nearest command first, and its value is parsed;
  4. anything else is a leftover positional argument;
  5. after '--' every token is positional.
- Explicit values always override defaults; the last occurrence of a flag wins.
- Ancestor flags are inherited unless declared local_only(); for each name the
  nearest inheritable declaration is visible.
- A flag set before descending must still be visible (not redeclared, not local)
  in the command descended into, otherwise resolution fails.
- Bool flags are satisfied by presence alone or by a following 'true'/'false'.
- Every other kind requires a value ('--port 8080' or '--port=8080'); unparseable
  values are reported, never replaced with the default.

Dispatch (Command.run)
- Either the matched command's action runs exactly once with a fully resolved
  Context and its result is returned verbatim, or nothing runs and a fault is raised.

Quick start
    from flagtree import App, Flag, FlagType, command

    @command("serve", Flag("port", "listen port", FlagType.INT))
    def serve(context):
        print("serving on", context.int_flag("port"))

    app = App("tool", "example tool").command(serve)

    if __name__ == "__main__":
        raise SystemExit(app.main())
"""
import difflib
import inspect
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .context import Context
from .faults import *
from .faults import console
from .flags import Flag
from .renderers import render_help, render_version
from .utils import *
from .values import FlagType, FlagValue


def _scope(chain, /):
    """
    Internal: flags visible inside the last command of 'chain' (root first).

    For each flag name the nearest declaration wins, where an ancestor's
    declaration only counts when it is not local. The command's own flags come
    first, then the ancestors' from nearest to root (alias lookups follow that order).
    """
    scope = {}
    for depth, command in enumerate(reversed(chain)):
        for flag in command.flags.values():
            if depth and flag.local:
                continue
            scope.setdefault(flag.name, flag)
    return tuple(scope.values())


def _lookup(token, scope, /):
    """
    Internal: match a flag-shaped token against the flags in scope.

    Returns (flag, input, inline) where input is the spelling without its value
    and inline is the text after '=' (None when absent), or (None, input, inline)
    when no flag in scope answers to that spelling.
    """
    if token.startswith("--"):
        input, separator, inline = token.partition("=")
        name = input[2:]
        flag = next((flag for flag in scope if flag.is_name(name) or flag.is_long(name)), None)
    else:
        input, separator, inline = token.partition("=")
        flag = next((flag for flag in scope if flag.is_short(input[1:])), None)
    return flag, input, inline if separator else None


def _is_flag_shaped(token, scope, /):
    """
    Internal: True when a token should be read as a flag rather than a positional.

    '-' alone and '--' are not flags. Negative numbers ('-5', '-1.5e3') stay
    positional unless a short alias of that exact spelling exists.
    """
    if len(token) < 2 or not token.startswith("-") or token == "--":
        return False
    if FlagType.FLOAT.parse_from_text(token):
        return _lookup(token, scope)[0] is not None
    return True


def _sanitize_tokens(tokens, /):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("parse() argument must be an iterable of strings")
    tokens = list(tokens)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("parse() argument must be an iterable of strings")
    return tokens


def _tokenize(prompt, /):
    """
    Normalize a prompt into tokens.

    - Unset: the process arguments, sys.argv[1:].
    - str: shell-like string, split with shlex.split.
    - Iterable[str]: used as-is.
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    return _sanitize_tokens(prompt)


class Command:
    """
    Immutable command node.

    Lifecycle
    - Built once at startup with the fluent builders below; each builder returns a
      new Command and leaves the receiver untouched, so a tree can be shared by
      concurrent read-only parses.
    - Registration-time invariants:
      • two flags of the same command never share a name or alias;
      • two children of the same command never share a name or alias;
      • at most one action is bound.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "name",
        "descr",
        "aliases",
        "flags",
        "children",
        "callback",
    )

    name = view("name")
    descr = view("descr")
    aliases = view("aliases")
    flags = view("flags")
    children = view("children")
    callback = view("callback")

    def __new__(cls, name, usage="", /):
        """
        Declare an empty command (no flags, no children, no action).
        """
        validate_name(f"{cls.__name__.lower()} name", name)
        if not isinstance(usage, str):
            raise TypeError(f"{cls.__name__.lower()} 'usage' must be a string")
        self = super().__new__(cls)
        self._name = name
        self._descr = usage
        self._aliases = ()
        self._flags = {}
        self._children = {}
        self._callback = Unset
        return self

    def __replace__(self, **changes):
        """
        Return a copy with the given private fields replaced (containers are copied).
        """
        clone = super().__new__(type(self))
        for name in type(self).__introspectable__:
            object = changes.get(name, getattr(self, "_" + name))
            setattr(clone, "_" + name, dict(object) if isinstance(object, dict) else object)
        return clone

    @property
    def identifiers(self):
        """
        The command name and its aliases (every token that routes to it).
        """
        return frozenset((self._name, *self._aliases))

    def usage(self, usage, /):
        if not isinstance(usage, str):
            raise TypeError(f"{type(self).__name__.lower()} 'usage' must be a string")
        return self.__replace__(descr=usage)

    def alias(self, alias, /):
        """
        Return a new command that is also routed to by 'alias'.
        """
        validate_name("command alias", alias)
        if alias in self.identifiers:
            raise ValueError(f"command {self._name!r} already answers to {alias!r}")
        return self.__replace__(aliases=self._aliases + (alias,))

    def flag(self, *flags):
        """
        Return a new command declaring the given flags, in order.

        Raises
        - TypeError: an argument is not a Flag.
        - ValueError: a flag shares a name or alias with another flag of this command.
        """
        declared = dict(self._flags)
        for flag in flags:
            if not isinstance(flag, Flag):
                raise TypeError(f"command {self._name!r} flags must be flag declarations")
            for other in declared.values():
                if overlap := flag.identifiers & other.identifiers:
                    raise ValueError(
                        f"command {self._name!r} flag {flag.name!r} conflicts with flag {other.name!r} "
                        f"on {', '.join(map(repr, sorted(overlap)))}"
                    )
            declared[flag.name] = flag
        return self.__replace__(flags=declared)

    def command(self, *children):
        """
        Return a new command with the given subcommands attached, in order.

        Raises
        - TypeError: an argument is not a Command.
        - ValueError: a child shares a name or alias with a sibling.
        """
        attached = dict(self._children)
        for child in children:
            if not isinstance(child, Command):
                raise TypeError(f"command {self._name!r} children must be commands")
            for other in attached.values():
                if overlap := child.identifiers & other.identifiers:
                    raise ValueError(
                        f"command name {', '.join(map(repr, sorted(overlap)))} is already in use under {self._name!r}"
                    )
            attached[child.name] = child
        return self.__replace__(children=attached)

    def action(self, callback, /):
        """
        Return a new command bound to 'callback' (called with a Context).

        Rules
        - Must be callable.
        - Can be bound only once per command (cannot be overridden).
        """
        if not callable(callback):
            raise TypeError(f"command {self._name!r} action must be callable")
        if self._callback is not Unset:
            raise TypeError(f"command {self._name!r} action cannot be overridden")
        return self.__replace__(callback=callback)

    def route(self, token, /):
        """
        Return the child answering to 'token' (name or alias), or None.
        """
        try:
            return self._children[token]
        except KeyError:
            return next((child for child in self._children.values() if token in child.aliases), None)

    def descendant(self, *names):
        """
        Return the chain of commands from self following 'names'.

        Raises
        - KeyError: a name routes to no child.
        """
        chain = [self]
        for name in names:
            child = chain[-1].route(name)
            if child is None:
                raise KeyError(f"{' '.join(command.name for command in chain)!r} has no subcommand {name!r}")
            chain.append(child)
        return tuple(chain)

    def scope(self, *names):
        """
        Return the flags resolvable inside the descendant reached by 'names'
        (its own flags first, then inherited ones).
        """
        return _scope(self.descendant(*names))

    def parse(self, tokens, /):
        """
        Resolve a token sequence against this command tree into a Context.

        Parameters
        - tokens: Iterable[str], the program arguments without the program name.

        Returns
        - Context for the deepest matched command: one binding per flag in its scope
          (explicit or default) and the leftover positional arguments.

        Raises
        - UnknownTokenError: a flag-shaped token names no flag in scope, or a flag set
          before a subcommand is redeclared by it or not inherited by it.
        - MissingValueError: a non-Bool flag is not followed by a value.
        - ParseFailureError: an explicit value cannot be converted to its flag's type.

        Notes
        - Pure function of the tree and the tokens; no I/O and no state kept on self.
        """
        tokens = _sanitize_tokens(tokens)

        chain = [self]
        scope = _scope(chain)
        # flag name -> (flag, spelling, position, value) for every explicit occurrence
        explicit = {}
        args = []
        terminated = False

        index = 0
        while index < len(tokens):
            token = tokens[index]
            position = index + 1
            index += 1

            if terminated:
                args.append(token)
                continue

            if token == "--":
                terminated = True
                continue

            # command names win over positional interpretation, until a positional is seen
            if not args and (child := chain[-1].route(token)) is not None:
                chain.append(child)
                scope = _scope(chain)
                # an explicit value never gives way to a redeclared or local-only flag
                for flag, spelling, where, _ in explicit.values():
                    if flag in scope:
                        continue
                    route = " ".join(command.name for command in chain)
                    trigger(UnknownTokenError(
                        "flag %r at %s position does not apply to %r" % (spelling, ordinal(where), route),
                        title="flag out of scope",
                        code=FaultCode.UNKNOWN_TOKEN,
                        input=spelling,
                        index=where,
                        flag=flag,
                        path=tuple(command.name for command in chain),
                        suggestions=[],
                        hint="%r redeclares or does not inherit %r; run '%s --help' to see its flags" % (route, spelling, route),
                        docs=getdoc(FaultCode.UNKNOWN_TOKEN),
                    ))
                continue

            if not _is_flag_shaped(token, scope):
                args.append(token)
                continue

            flag, input, inline = _lookup(token, scope)
            route = " ".join(command.name for command in chain)

            if flag is None:
                spellings = [spelling for flag in scope for spelling in flag.spellings]
                suggestions = difflib.get_close_matches(input, spellings, 5)
                try:
                    hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], route)
                except IndexError:
                    hint = "try '%s --help' to see all available flags" % route
                trigger(UnknownTokenError(
                    "unknown flag %r at %s position" % (input, ordinal(position)),
                    title="unknown flag",
                    code=FaultCode.UNKNOWN_TOKEN,
                    input=input,
                    index=position,
                    path=tuple(command.name for command in chain),
                    suggestions=suggestions,
                    hint=hint,
                    docs=getdoc(FaultCode.UNKNOWN_TOKEN),
                ))

            if inline is not None:
                raw = inline
            elif flag.flag_type is FlagType.BOOL:
                # presence alone means true; an explicit literal may follow
                if index < len(tokens) and tokens[index] in ("true", "false"):
                    raw = tokens[index]
                    index += 1
                else:
                    raw = "true"
            elif index >= len(tokens) or tokens[index] == "--" or (
                    _is_flag_shaped(tokens[index], scope) and _lookup(tokens[index], scope)[0] is not None
            ):
                trigger(MissingValueError(
                    "flag %r at %s position requires a %s value" % (input, ordinal(position), flag.flag_type.typename),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    input=input,
                    index=position,
                    flag=flag,
                    path=tuple(command.name for command in chain),
                    hint="pass a value after a space or inline (for example: %s=<value>)" % input,
                    docs=getdoc(FaultCode.MISSING_VALUE),
                ))
            else:
                raw = tokens[index]
                index += 1

            try:
                explicit[flag.name] = (flag, input, position, flag.flag_type.parse(raw))
            except ValueError as error:
                trigger(ParseFailureError(
                    "invalid value %r for flag %r at %s position: %s" % (raw, input, ordinal(position), error),
                    title="invalid %s value" % flag.flag_type.typename,
                    code=FaultCode.UNCASTABLE_VALUE,
                    input=input,
                    value=raw,
                    index=position,
                    flag=flag,
                    reason=str(error),
                    path=tuple(command.name for command in chain),
                    hint="run '%s --help' to see the expected value types" % route,
                    docs=getdoc(FaultCode.UNCASTABLE_VALUE),
                ))

        return Context(
            chain[-1],
            (command.name for command in chain),
            {flag.name: explicit[flag.name][3] if flag.name in explicit else flag.default for flag in scope},
            args,
        )

    def dispatch(self, context, /):
        """
        Invoke the action of context.command with the context and return its result.

        Raises
        - NoActionBoundError: the matched command has no action; nothing runs.
        - whatever the action raises, unchanged.
        """
        callback = context.command.callback
        if callback is Unset:
            route = " ".join(context.path)
            typeof = "subcommand" if len(context.path) > 1 else "command"
            trigger(NoActionBoundError(
                "%s %r has no action to run" % (typeof, route),
                title="no action for %s" % typeof,
                code=FaultCode.NO_ACTION_BOUND,
                command=context.command,
                path=context.path,
                hint="run '%s --help' to see the available subcommands" % route,
                docs=getdoc(FaultCode.NO_ACTION_BOUND),
            ))
        return callback(context)

    def run(self, tokens, /):
        """
        Resolve 'tokens' and dispatch the matched command's action (see parse/dispatch).
        """
        return self.dispatch(self.parse(tokens))

    def __invoke__(self, prompt=Unset, /):
        """
        Run this command with a prompt (Unset → sys.argv[1:], str → shlex.split,
        Iterable[str] → as-is) and return the action's result.
        """
        return self.run(_tokenize(prompt))

    def _key(self):
        return tuple(getattr(self, "_" + name) for name in type(self).__introspectable__ if name != "children") + (
            tuple(self._children.items()),
        )

    def __eq__(self, other, /):
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash((type(self), self._name, self._aliases, tuple(self._flags.values()), tuple(self._children)))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __rich_repr__(self):
        yield "name", self._name
        yield "descr", self._descr
        yield "aliases", self._aliases
        yield "flags", tuple(self._flags)
        yield "children", tuple(self._children)
        yield "callback", self._callback

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__.lower(),
            ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
        )


class App(Command):
    """
    Root command of a program, with program metadata and a process-entry helper.

    Extra metadata
    - version / author: shown by the version renderer (Unset → not shown).
    - colorful / fancy: presentation options for faults and help rendered by main().
    - helper: when True, main() understands --help/-h (and --version when a version
      is declared) unless the application declares flags with those names itself.
    """

    __introspectable__ = Command.__introspectable__ + (
        "version",
        "author",
        "colorful",
        "fancy",
        "helper",
    )

    version = view("version")
    author = view("author")
    colorful = view("colorful")
    fancy = view("fancy")
    helper = view("helper")

    def __new__(cls, name, usage="", /, *, version=Unset, author=Unset, colorful=True, fancy=False, helper=True):
        if not isinstance(version, str | Unset):
            raise TypeError("app 'version' must be a string")
        if not isinstance(author, str | Unset):
            raise TypeError("app 'author' must be a string")
        self = super().__new__(cls, name, usage)
        self._version = version
        self._author = author
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._helper = bool(helper)
        return self

    def _builtins(self):
        """
        Internal: the help/version flags main() adds, minus those the app already declares.
        """
        taken = frozenset().union(*(flag.identifiers for flag in self._flags.values()))
        builtins = []
        if self._helper and not {"help", "h"} & taken:
            builtins.append(Flag("help", "show this help message", FlagType.BOOL).short("h"))
        if self._helper and self._version is not Unset and "version" not in taken:
            builtins.append(Flag("version", "show the version and exit", FlagType.BOOL).local_only())
        return tuple(builtins)

    def main(self, prompt=Unset, /):
        """
        Process entry: run the app and turn faults into rendered output plus an exit status.

        Returns
        - 0: the action ran (or help/version was shown).
        - 1: the action raised ActionFailure.
        - 2: the arguments could not be resolved, or the command has no action
          (its help is shown after the fault).

        Notes
        - Never calls sys.exit(); callers typically do raise SystemExit(app.main()).
        - Exceptions other than CommandException propagate unchanged.
        """
        builtins = self._builtins()
        app = self.flag(*builtins)
        options = {"prog": self._name, "colorful": self._colorful, "fancy": self._fancy}
        stdout = Console()

        try:
            context = app.parse(_tokenize(prompt))
            for flag in builtins:
                if context.get(flag.name) == FlagValue.Bool(True):
                    if flag.name == "help":
                        stdout.print(render_help(app, *context.path[1:], **options))
                    else:
                        stdout.print(render_version(app, **options))
                    return 0
            app.dispatch(context)
        except NoActionBoundError as fault:
            console.print(fault.__replace__(**options))
            console.print(render_help(app, *fault.path[1:], **options))
            return 2
        except ActionFailure as fault:
            console.print(fault.__replace__(**options | {"code": fault.options.get("code", FaultCode.ACTION_FAILURE)}))
            return 1
        except CommandException as fault:
            console.print(fault.__replace__(**options))
            return 2
        return 0


def command(source=Unset, /, *flags, usage=Unset, aliases=()):
    """
    Build a Command from an action callable, or return a decorator that does.

    Invocation modes
    - Bare decorator:
        @command
        def serve(context): ...
      name from the function (underscores become dashes), usage from the docstring.

    - Decorator with declarations:
        @command("serve", Flag("port", "listen port", FlagType.INT), aliases=("s",))
        def serve(context): ...

    Returns
    - Command | Callable[[Callable], Command]
    """
    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        name = source if isinstance(source, str) else callback.__name__.strip("_").replace("_", "-")
        built = Command(name, coalesce(usage, inspect.getdoc(callback) or ""))
        for alias in aliases:
            built = built.alias(alias)
        return built.flag(*flags).action(callback)

    if callable(source):
        if flags:
            raise TypeError("command() flags require a name as first argument")
        return wrapper(source)
    if not isinstance(source, str | Unset):
        raise TypeError("command() first argument must be a name or a callable")
    return wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands.

    Parameters
    - object: an instance providing __invoke__(prompt).
    - prompt: Unset (sys.argv[1:]), a shell-like str, or an Iterable[str].

    Returns
    - the action's result.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "App",
    "command",
    "invoke",
)
