"""
Flagtree help and version renderers (rich).

These are presentation collaborators of the core: they read command and flag
metadata and return rich renderables; they never print by themselves. App.main()
is the only caller inside the package.

Palette keys
- usage-label, program-name, usage-section, description-section
- group-label, flag-name, metavar, default, argument-description
- children-title, children-table, children, children-description
- version-label, version, author-label, author
- panel-title

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .utils import Unset


def _palette(colorful):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Flags ===
        "group-label": "bold #FFFFFF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "default": "#737373",
        "argument-description": "#9CA3AF",

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        # === Version ===
        "version-label": "bold #FFFFFF",
        "version": "bold #00E6FF",
        "author-label": "bold #FFFFFF",
        "author": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__('__main__'), "__styles__", {}))

    def text(fragment, style=""):
        # Normalize to Text; in non-colorful mode strip styles.
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    return text


def render_help(root, /, *names, prog=Unset, colorful=True, fancy=False):
    """
    Build the help view for the command reached from 'root' by 'names'.

    Sections
    - usage line: route + [flags] + <command> (when there are subcommands) + [args...]
    - description (the command usage text)
    - subcommands table (name, aliases, help)
    - flags: own flags first, then inherited ones, each with spellings, <TYPE>,
      default and help text.
    """
    text = _palette(colorful)
    chain = root.descendant(*names)
    command = chain[-1]
    scope = root.scope(*names)

    route = [str(prog) if prog is not Unset else chain[0].name, *(step.name for step in chain[1:])]

    usage = Text()
    usage.append(text("usage", "usage-label")).append(": ")
    usage.append(text(" ".join(route), "program-name"))
    if scope:
        usage.append(" ").append(text("[flags]", "usage-section"))
    if command.children:
        usage.append(" ").append(text("<command>", "usage-section"))
    usage.append(" ").append(text("[args...]", "usage-section"))

    renders = [usage]

    if command.descr:
        renders.append(Text("\n").append(text(command.descr, "description-section")))

    if command.children:
        table = Table(
            "name", "help",
            title=text("subcommands" if len(chain) > 1 else "commands", "children-title"),
            box=ROUNDED,
            style="" if not colorful else "#4B5563",
        )
        for name, child in command.children.items():
            label = text(name, "children")
            if child.aliases:
                label.append(text(" (%s)" % ", ".join(child.aliases), "children-description"))
            table.add_row(label, text(child.descr or "-", "children-description"))
        renders.append(table)

    own = [flag for flag in scope if flag.name in command.flags]
    inherited = [flag for flag in scope if flag.name not in command.flags]

    for label, flags in (("flags", own), ("inherited flags", inherited)):
        if not flags:
            continue
        section = Text("\n")
        section.append(text(label, "group-label")).append(":\n")
        for flag in flags:
            section.append("  ").append(Text(", ").join(text(spelling, "flag-name") for spelling in flag.spellings))
            section.append(" ").append(text("<%s>" % flag.flag_type.typename.upper(), "metavar"))
            section.append(" ").append(text("(default: %s)" % _display(flag.default.object), "default"))
            if flag.descr:
                section.append("\n      ").append(text(flag.descr, "argument-description"))
            section.append("\n")
        section.rstrip()
        renders.append(section)

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=text("[ %s HELP ]" % " ".join(route).upper(), "panel-title"),
            title_align="left",
        )
    return renderable


def render_version(app, /, *, prog=Unset, colorful=True, fancy=False):
    """
    Build the version view: "<name> — <version>" plus the author when declared.
    """
    text = _palette(colorful)
    name = str(prog) if prog is not Unset else app.name

    renders = [Text(" — ").join((text(name, "program-name"), text(app.version, "version")))]
    if app.author is not Unset:
        renders.append(Text.assemble(text("author", "author-label"), ": ", text(app.author, "author")))

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(renderable, title=text("[ %s VERSION ]" % name.upper(), "panel-title"), title_align="left")
    return renderable


def _display(object):
    if isinstance(object, bool):
        return "true" if object else "false"
    if isinstance(object, str):
        return repr(object)
    return str(object)


__all__ = (
    "render_help",
    "render_version",
)
