"""Finder launch options and their command-line rendering.

Options that take a fixed set of values are closed enums, so an invalid flag
value cannot be represented. ``build_args`` turns a ``FinderOptions`` record
into the argument list for the finder; options left at their default are not
emitted, which leaves the finder's own defaults in effect.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = [
    "Border",
    "Layout",
    "Color",
    "Scheme",
    "FinderOptions",
    "OptionsBuilder",
    "build_args",
]


class Border(str, Enum):
    """Border drawn around the finder."""

    NONE = "none"
    ROUNDED = "rounded"
    SHARP = "sharp"
    BOLD = "bold"
    DOUBLE = "double"
    BLOCK = "block"
    THINBLOCK = "thinblock"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class Layout(str, Enum):
    """Where the prompt and list are placed."""

    DEFAULT = "default"
    REVERSE = "reverse"
    REVERSE_LIST = "reverse-list"


class Color(str, Enum):
    """Base color scheme."""

    DARK = "dark"
    LIGHT = "light"
    SIXTEEN = "16"
    BW = "bw"


class Scheme(str, Enum):
    """Scoring scheme used by the matcher."""

    DEFAULT = "default"
    PATH = "path"
    HISTORY = "history"


# Boolean switches rendered as bare flags, grouped in emission order.
_SEARCH_SWITCHES = ("literal", "track", "tac", "disabled")
_INTERFACE_SWITCHES = ("no_mouse", "cycle", "keep_right", "no_hscroll", "filepath_word")
_LAYOUT_SWITCHES = ("no_separator", "no_scrollbar")


@dataclass(frozen=True)
class FinderOptions:
    """Immutable description of how the finder is launched.

    Every field defaults to "unset". Enum fields also accept their string
    value (``border="rounded"``); unknown values raise ValueError.

    Attributes:
        border: Border style (NONE = not drawn)
        border_label: Label printed on the border
        layout: Layout variant
        color: Base color scheme (None = finder default)
        header: Header text
        header_first: Print the header before the prompt line
        prompt: Input prompt
        pointer: Pointer to the current line
        scheme: Scoring scheme
        tabstop: Number of spaces for a tab character
        extra_args: Raw tokens appended after all derived ones
    """

    # Search
    scheme: Scheme = Scheme.DEFAULT
    literal: bool = False
    track: bool = False
    tac: bool = False
    disabled: bool = False

    # Interface
    no_mouse: bool = False
    cycle: bool = False
    keep_right: bool = False
    no_hscroll: bool = False
    filepath_word: bool = False

    # Layout
    layout: Layout = Layout.DEFAULT
    border: Border = Border.NONE
    border_label: str | None = None
    no_separator: bool = False
    no_scrollbar: bool = False
    prompt: str | None = None
    pointer: str | None = None
    header: str | None = None
    header_first: bool = False

    # Display
    ansi: bool = False
    tabstop: int | None = None
    color: Color | None = None
    no_bold: bool = False

    extra_args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Coerce enum strings and the extra token sequence."""
        object.__setattr__(self, "scheme", Scheme(self.scheme))
        object.__setattr__(self, "layout", Layout(self.layout))
        object.__setattr__(self, "border", Border(self.border))
        if self.color is not None:
            object.__setattr__(self, "color", Color(self.color))
        if isinstance(self.extra_args, str):
            raise TypeError("extra_args must be a sequence of tokens, not a string")
        object.__setattr__(self, "extra_args", tuple(str(arg) for arg in self.extra_args))
        if self.tabstop is not None and self.tabstop < 1:
            raise ValueError(f"tabstop must be at least 1, got {self.tabstop}")

    @classmethod
    def builder(cls) -> "OptionsBuilder":
        return OptionsBuilder()

    def replace(self, **changes: Any) -> "FinderOptions":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


class OptionsBuilder:
    """Fluent construction of ``FinderOptions``.

    Example:
        options = (
            FinderOptions.builder()
            .layout(Layout.REVERSE)
            .border(Border.ROUNDED)
            .border_label("Favourite Colour")
            .extra_args(["--height=10"])
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> "OptionsBuilder":
        self._fields[name] = value
        return self

    def scheme(self, value: Scheme | str) -> "OptionsBuilder":
        return self._set("scheme", value)

    def literal(self, value: bool = True) -> "OptionsBuilder":
        return self._set("literal", value)

    def track(self, value: bool = True) -> "OptionsBuilder":
        return self._set("track", value)

    def tac(self, value: bool = True) -> "OptionsBuilder":
        return self._set("tac", value)

    def disabled(self, value: bool = True) -> "OptionsBuilder":
        return self._set("disabled", value)

    def no_mouse(self, value: bool = True) -> "OptionsBuilder":
        return self._set("no_mouse", value)

    def cycle(self, value: bool = True) -> "OptionsBuilder":
        return self._set("cycle", value)

    def keep_right(self, value: bool = True) -> "OptionsBuilder":
        return self._set("keep_right", value)

    def no_hscroll(self, value: bool = True) -> "OptionsBuilder":
        return self._set("no_hscroll", value)

    def filepath_word(self, value: bool = True) -> "OptionsBuilder":
        return self._set("filepath_word", value)

    def layout(self, value: Layout | str) -> "OptionsBuilder":
        return self._set("layout", value)

    def border(self, value: Border | str) -> "OptionsBuilder":
        return self._set("border", value)

    def border_label(self, value: str) -> "OptionsBuilder":
        return self._set("border_label", value)

    def no_separator(self, value: bool = True) -> "OptionsBuilder":
        return self._set("no_separator", value)

    def no_scrollbar(self, value: bool = True) -> "OptionsBuilder":
        return self._set("no_scrollbar", value)

    def prompt(self, value: str) -> "OptionsBuilder":
        return self._set("prompt", value)

    def pointer(self, value: str) -> "OptionsBuilder":
        return self._set("pointer", value)

    def header(self, value: str) -> "OptionsBuilder":
        return self._set("header", value)

    def header_first(self, value: bool = True) -> "OptionsBuilder":
        return self._set("header_first", value)

    def ansi(self, value: bool = True) -> "OptionsBuilder":
        return self._set("ansi", value)

    def tabstop(self, value: int) -> "OptionsBuilder":
        return self._set("tabstop", value)

    def color(self, value: Color | str) -> "OptionsBuilder":
        return self._set("color", value)

    def no_bold(self, value: bool = True) -> "OptionsBuilder":
        return self._set("no_bold", value)

    def extra_args(self, args: Iterable[str]) -> "OptionsBuilder":
        return self._set("extra_args", tuple(args))

    def build(self) -> FinderOptions:
        return FinderOptions(**self._fields)


def _flag(name: str) -> str:
    return "--" + name.replace("_", "-")


def build_args(options: FinderOptions) -> list[str]:
    """Render options as finder command-line tokens.

    Each set option yields one token (``--name=value`` or a bare switch);
    unset options yield nothing. ``extra_args`` come last, in the order
    given, so a caller can override any derived flag by repeating it.

    Args:
        options: The launch options

    Returns:
        Ordered list of argument tokens
    """
    args: list[str] = []

    def add_switches(names: tuple[str, ...]) -> None:
        for name in names:
            if getattr(options, name):
                args.append(_flag(name))

    # Search
    if options.scheme is not Scheme.DEFAULT:
        args.append(f"--scheme={options.scheme.value}")
    add_switches(_SEARCH_SWITCHES)

    # Interface
    add_switches(_INTERFACE_SWITCHES)

    # Layout
    if options.layout is not Layout.DEFAULT:
        args.append(f"--layout={options.layout.value}")
    if options.border is not Border.NONE:
        args.append(f"--border={options.border.value}")
    if options.border_label:
        args.append(f"--border-label={options.border_label}")
    add_switches(_LAYOUT_SWITCHES)
    if options.prompt is not None:
        args.append(f"--prompt={options.prompt}")
    if options.pointer is not None:
        args.append(f"--pointer={options.pointer}")
    if options.header:
        args.append(f"--header={options.header}")
    if options.header_first:
        args.append("--header-first")

    # Display
    if options.ansi:
        args.append("--ansi")
    if options.tabstop is not None:
        args.append(f"--tabstop={options.tabstop}")
    if options.color is not None:
        args.append(f"--color={options.color.value}")
    if options.no_bold:
        args.append("--no-bold")

    args.extend(options.extra_args)
    return args
