"""fuzzy-pick command line entry point.

Items come from the positional arguments or, when there are none and stdin
is not a terminal, are streamed line by line from stdin while the finder is
already open. The selection is printed on stdout.

Exit codes:
    0: an item was selected
    1: nothing was selected
    2: the finder failed or could not be started
    130: interrupted
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable, Sequence
from typing import TextIO

from .config import Config, get_config
from .errors import FinderError, FinderFailedError, SessionFinishedError, SpawnFailedError
from .finder import Finder
from .options import Border, Color, FinderOptions, Layout, Scheme

__all__ = ["main", "build_parser"]

logger = logging.getLogger(__name__)

EXIT_SELECTED = 0
EXIT_NO_SELECTION = 1
EXIT_FAILED = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuzzy-pick",
        description="Pick one item with an interactive fuzzy finder.",
    )
    parser.add_argument("items", nargs="*", help="Items to choose from (default: read stdin)")
    parser.add_argument("--border", type=Border, choices=list(Border), metavar="STYLE",
                        default=Border.NONE, help="Border style")
    parser.add_argument("--border-label", default=None, help="Label printed on the border")
    parser.add_argument("--layout", type=Layout, choices=list(Layout), metavar="LAYOUT",
                        default=Layout.DEFAULT, help="Layout variant")
    parser.add_argument("--color", type=Color, choices=list(Color), metavar="THEME",
                        default=None, help="Base color scheme")
    parser.add_argument("--scheme", type=Scheme, choices=list(Scheme), metavar="SCHEME",
                        default=Scheme.DEFAULT, help="Scoring scheme")
    parser.add_argument("--header", default=None, help="Header text")
    parser.add_argument("--header-first", action="store_true", help="Print the header before the prompt")
    parser.add_argument("--prompt", default=None, help="Input prompt")
    parser.add_argument("--pointer", default=None, help="Pointer to the current line")
    parser.add_argument("--height", default=None, help="Finder height, e.g. 10 or 40%%")
    parser.add_argument("--extra", action="append", default=[], metavar="TOKEN",
                        help="Raw finder argument, may be repeated (use --extra=--flag)")
    return parser


def options_from_args(args: argparse.Namespace) -> FinderOptions:
    extra = list(args.extra)
    if args.height:
        extra.insert(0, f"--height={args.height}")
    return FinderOptions(
        border=args.border,
        border_label=args.border_label,
        layout=args.layout,
        color=args.color,
        scheme=args.scheme,
        header=args.header,
        header_first=args.header_first,
        prompt=args.prompt,
        pointer=args.pointer,
        extra_args=tuple(extra),
    )


def setup_logging(config: Config) -> None:
    """Configure logging for the command line tool.

    The finder owns the terminal while it runs, so verbose output goes to a
    file (FUZZY_PICK_LOG_DEBUG) and stderr only gets warnings.
    """
    if config.log_debug and config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        log_level = logging.DEBUG
    else:
        handler = logging.StreamHandler(sys.stderr)
        log_level = logging.WARNING

    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    logging.basicConfig(level=logging.WARNING, handlers=[handler])
    logging.getLogger("fuzzy_pick").setLevel(log_level)


def _stream_items(finder: Finder, lines: Iterable[str]) -> None:
    """Feed lines into the running finder until input ends or it exits."""
    count = 0
    for line in lines:
        try:
            finder.add_item(line.rstrip("\r\n"))
        except SessionFinishedError:
            logger.debug(f"Finder exited after {count} streamed item(s)")
            return
        count += 1
    logger.debug(f"Streamed {count} item(s)")


def main(argv: Sequence[str] | None = None, stdin: TextIO | None = None) -> int:
    """Run the command line tool and return its exit code."""
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config)
    logger.debug(f"fuzzy-pick starting with {config!r}")

    stdin = stdin if stdin is not None else sys.stdin
    finder = Finder(options_from_args(args), config=config)

    try:
        finder.run()
        if args.items:
            finder.add_items(args.items)
        elif not stdin.isatty():
            _stream_items(finder, stdin)
        selection = finder.output()
    except KeyboardInterrupt:
        finder.discard()
        return EXIT_INTERRUPTED
    except SpawnFailedError as e:
        print(f"fuzzy-pick: {e}", file=sys.stderr)
        return EXIT_FAILED
    except FinderFailedError as e:
        print(f"fuzzy-pick: {e.reason}", file=sys.stderr)
        return EXIT_FAILED
    except (FinderError, ValueError) as e:
        finder.discard()
        print(f"fuzzy-pick: {e}", file=sys.stderr)
        return EXIT_FAILED

    if selection is None:
        return EXIT_NO_SELECTION

    print(selection)
    return EXIT_SELECTED


if __name__ == "__main__":
    sys.exit(main())
