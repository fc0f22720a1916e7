# -*- coding: utf-8; -*-
"""Colorize terminal output, using Colorama. Works on any OS."""

__all__ = ["setcolor", "colorize", "maybe_colorize", "ColorScheme",
           "Fore", "Back", "Style"]

from colorama import Back, Fore, Style  # type: ignore[import]
from colorama import init as colorama_init  # type: ignore[import]

colorama_init()


def setcolor(*colors, reset=True):
    """Set color for terminal display.

    Returns a string that, when printed into a terminal, sets the style
    and color.

    If `reset=True`, reset style and color before setting the requested
    style and color. If `reset=False`, augment the current style and color.

    Each entry can also be a tuple (arbitrarily nested), which is useful
    for defining compound styles.

    **CAUTION**: The specified style and color remain in effect until another
    explicit call to `setcolor`. To reset, use `setcolor()`.
    """
    def _setcolor(color):
        if isinstance(color, (list, tuple)):
            return "".join(_setcolor(elt) for elt in color)
        return color
    out = [_setcolor(Style.RESET_ALL)] if reset else []
    out.append(_setcolor(colors))
    return "".join(out)


def colorize(text, *colors):
    """Colorize string `text` for terminal display.

    Always reset style and color at the start of `text`, as well as after it.

    Usage::

        print(colorize("I'm new here", Fore.GREEN))
        print(colorize("I'm bold and bluetiful", Style.BRIGHT, Fore.BLUE))

    **CAUTION**: Does not nest. If you want to set a color and style
    until further notice, use `setcolor` instead.
    """
    return "{}{}{}".format(setcolor(colors),
                           text,
                           setcolor())


def maybe_colorize(text, *colors, color=True):
    """Like `colorize`, but a no-op when `color` is false."""
    if not color:
        return text
    return colorize(text, *colors)


class ColorScheme:
    """The color scheme for terminal output in `treemacro`'s diagnostics.

    This is just a bunch of constants. To change the colors, simply assign new
    values to them. Changes take effect immediately for any new output.

    Don't replace the color scheme object itself; all the use sites
    from-import it.

    See `Fore`, `Back`, `Style` for valid values. To make a compound style,
    place the values into a tuple.
    """
    def __init__(self):
        # ------------------------------------------------------------
        # unparse, dump

        self.MACRONAME = Fore.BLUE  # operator bound to a macro (needs a registry)
        self.TERMINAL = (Style.BRIGHT, Fore.YELLOW)  # terminal primitive operator
        self.OPERATOR = Style.BRIGHT  # any other operator

        self.STRING = Fore.GREEN
        self.NUMBER = Fore.GREEN
        self.ATOM = Fore.CYAN  # also true, false, nil

        self.BINDINGNAME = Style.NORMAL
        self.HYGIENETAG = Style.DIM  # the "@3" in "x@3"
        self.PLACEHOLDER = (Style.BRIGHT, Fore.MAGENTA)

        self.NODEMARKER = Style.DIM  # the "$" prefix
        self.NODEMARKERCLASS = Fore.YELLOW  # the actual marker type name

        self.TREELINES = Style.DIM  # box-drawing connectors in `dump`
        self.METADATA = Style.DIM

        # ------------------------------------------------------------
        # step_expansion, format_registry, error reports

        self.HEADING1 = (Style.BRIGHT, Fore.LIGHTBLUE_EX)  # main heading
        self.HEADING2 = Fore.LIGHTBLUE_EX  # subheading (filenames, tree ids, ...)
        self.SOURCEFILENAME = Style.BRIGHT
        self.GREYEDOUT = Style.DIM  # if no macros

        # ------------------------------------------------------------
        # runtests

        self.TESTHEADING = self.HEADING1
        self.TESTPASS = (Style.BRIGHT, Fore.GREEN)
        self.TESTFAIL = (Style.BRIGHT, Fore.RED)
        self.TESTERROR = (Style.BRIGHT, Fore.YELLOW)

    def keys(self):
        """Return the names of all settings."""
        return [k for k in vars(self) if k.isupper()]
ColorScheme = ColorScheme()  # type: ignore[assignment, misc]
