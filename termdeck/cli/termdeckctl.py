"""
termdeck — CLI for the terminal slide presenter.

Commands:
    present  Show a deck interactively in the terminal
    check    Parse a deck and print a slide summary
    dump     Render every slide to stdout (no interaction)

Exit codes:
    0   clean exit
    1   invalid configuration or unusable terminal
    65  malformed deck (parse error, invalid UTF-8)
    66  deck file not found

Author: termdeck contributors | 2026-10-19
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from termdeck.config import TermdeckConfig, load_config
from termdeck.evaluator import create_bridge
from termdeck.logging_utils import EvaluationLog, setup_logging
from termdeck.models import Deck
from termdeck.parser import ParseError, load_deck
from termdeck.renderer import RenderOptions, Renderer
from termdeck.session import PresentationSession, run_loop
from termdeck.terminal import presentation_screen, raw_mode, read_keys, terminal_size
from termdeck.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_MALFORMED_DECK = 65
EXIT_FILE_NOT_FOUND = 66

# ANSI color helpers (auto-disabled for non-TTY)
_USE_COLOR = sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def _bold(text: str) -> str:
    return _c("1", text)


def _green(text: str) -> str:
    return _c("32", text)


def _yellow(text: str) -> str:
    return _c("33", text)


def _red(text: str) -> str:
    return _c("31", text)


def _dim(text: str) -> str:
    return _c("2", text)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _load(path_arg: str) -> Tuple[Optional[Deck], int]:
    """Load a deck, reporting failures the way every command does."""
    path = Path(path_arg)
    try:
        return load_deck(path), EXIT_OK
    except (FileNotFoundError, IsADirectoryError):
        print(_red(f"Error: Deck not found: {path}"), file=sys.stderr)
        return None, EXIT_FILE_NOT_FOUND
    except ParseError as e:
        print(_red(f"Error: {path}:{e.line}: {e.reason}"), file=sys.stderr)
        return None, EXIT_MALFORMED_DECK


def _config(args: argparse.Namespace) -> Optional[TermdeckConfig]:
    """Load configuration and fold in command-line overrides."""
    try:
        config = load_config(Path(args.config) if args.config else None)
    except ValueError as e:
        print(_red(f"Error: Invalid configuration: {e}"), file=sys.stderr)
        return None

    if getattr(args, "evaluator", None):
        config.evaluator.backend = args.evaluator
    if getattr(args, "timeout", None) is not None:
        if args.timeout <= 0:
            print(_red("Error: --timeout must be positive"), file=sys.stderr)
            return None
        config.evaluator.timeout = args.timeout
    if getattr(args, "no_color", False):
        config.render.color = False
    return config


def _renderer(config: TermdeckConfig, color: bool, bridge=None) -> Renderer:
    options = RenderOptions(
        color=color,
        min_width=config.render.min_width,
        code_margin=config.render.code_margin,
        show_status=config.render.show_status,
    )
    return Renderer(options, bridge=bridge)


def _bridge(config: TermdeckConfig):
    eval_log = None
    if config.logging.eval_log:
        eval_log = EvaluationLog(Path(config.logging.log_dir))
    return create_bridge(config.evaluator, eval_log=eval_log)


# ---------------------------------------------------------------------------
# Command: present
# ---------------------------------------------------------------------------

def cmd_present(args: argparse.Namespace) -> int:
    """Run an interactive presentation."""
    config = _config(args)
    if config is None:
        return EXIT_CONFIG
    setup_logging(config.logging.level, Path(config.logging.log_dir), config.logging.log_file)

    deck, status = _load(args.deck)
    if deck is None:
        return status

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        print(_red("Error: 'present' needs an interactive terminal"), file=sys.stderr)
        print(_dim("Use 'termdeck dump' to render a deck to a file or pipe."), file=sys.stderr)
        return EXIT_CONFIG

    try:
        bridge = _bridge(config)
    except ValueError as e:
        print(_red(f"Error: Invalid configuration: {e}"), file=sys.stderr)
        return EXIT_CONFIG

    session = PresentationSession(
        deck,
        _renderer(config, config.render.color, bridge),
        start=(args.start or 1) - 1,
        evaluate=args.eval,
    )
    logger.info(f"Presenting {deck.source} ({len(deck)} slides)")
    try:
        with presentation_screen(sys.stdout), raw_mode(sys.stdin):
            run_loop(session, read_keys(sys.stdin), sys.stdout, terminal_size)
    finally:
        bridge.close()
    return EXIT_OK


# ---------------------------------------------------------------------------
# Command: check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Parse a deck and summarize it."""
    deck, status = _load(args.deck)
    if deck is None:
        return status

    if args.json:
        print(json.dumps(deck.to_dict(), indent=2, ensure_ascii=False))
        return EXIT_OK

    print(_bold(f"termdeck — {Path(args.deck).name}"))
    print(f"Slides: {_bold(str(len(deck)))}")
    print()
    for slide in deck:
        title = slide.title.plain if slide.title is not None else _dim("(untitled)")
        blocks = slide.code_blocks()
        evaluable = slide.evaluable_blocks()
        detail = ""
        if blocks:
            detail = f"{len(blocks)} code block{'s' if len(blocks) != 1 else ''}"
            if evaluable:
                detail += f", {_yellow(f'{len(evaluable)} evaluable')}"
            detail = f" ({detail})"
        print(f"  {slide.index + 1:>3}. {title}{detail}")
    print()
    print(_green("OK"))
    return EXIT_OK


# ---------------------------------------------------------------------------
# Command: dump
# ---------------------------------------------------------------------------

def cmd_dump(args: argparse.Namespace) -> int:
    """Render all slides to stdout."""
    config = _config(args)
    if config is None:
        return EXIT_CONFIG
    setup_logging(config.logging.level)

    deck, status = _load(args.deck)
    if deck is None:
        return status

    bridge = None
    if args.eval:
        try:
            bridge = _bridge(config)
        except ValueError as e:
            print(_red(f"Error: Invalid configuration: {e}"), file=sys.stderr)
            return EXIT_CONFIG

    renderer = _renderer(config, config.render.color and _USE_COLOR, bridge)
    width = renderer.effective_width(args.width or terminal_size()[0])
    results = {}
    try:
        for slide in deck:
            if slide.index:
                print(_dim("─" * width))
            rendered = renderer.render(slide, width, evaluate=args.eval, results=results)
            for line in rendered.lines:
                print(line)
    finally:
        if bridge is not None:
            bridge.close()
    return EXIT_OK


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the termdeck argument parser."""
    parser = argparse.ArgumentParser(
        prog="termdeck",
        description="termdeck — plain-text slide decks in the terminal",
    )
    parser.add_argument("--version", action="version", version=f"termdeck {__version__}")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # --- present ---
    p_present = sub.add_parser("present", help="Show a deck interactively")
    p_present.add_argument("deck", help="Path to the deck file (UTF-8)")
    p_present.add_argument(
        "-s", "--start", type=int, default=1,
        help="Slide number to start on, 1-based (default: 1)"
    )
    p_present.add_argument(
        "--eval", action="store_true",
        help="Evaluate runnable code blocks as slides are shown"
    )
    p_present.add_argument(
        "--evaluator", choices=["repl", "http", "none"], default=None,
        help="Evaluator backend (default: from config, repl)"
    )
    p_present.add_argument(
        "--timeout", type=float, default=None,
        help="Evaluation timeout in seconds (default: from config, 10)"
    )
    p_present.add_argument("--no-color", action="store_true", help="Disable colors")
    p_present.add_argument("-c", "--config", help="Path to termdeck.yaml")
    p_present.set_defaults(func=cmd_present)

    # --- check ---
    p_check = sub.add_parser("check", help="Parse a deck and print a summary")
    p_check.add_argument("deck", help="Path to the deck file (UTF-8)")
    p_check.add_argument("--json", action="store_true", help="Print the parsed deck as JSON")
    p_check.set_defaults(func=cmd_check)

    # --- dump ---
    p_dump = sub.add_parser("dump", help="Render every slide to stdout")
    p_dump.add_argument("deck", help="Path to the deck file (UTF-8)")
    p_dump.add_argument("-w", "--width", type=int, default=None, help="Output width (default: terminal)")
    p_dump.add_argument("--eval", action="store_true", help="Evaluate runnable code blocks")
    p_dump.add_argument(
        "--evaluator", choices=["repl", "http", "none"], default=None,
        help="Evaluator backend (default: from config, repl)"
    )
    p_dump.add_argument("--timeout", type=float, default=None, help="Evaluation timeout in seconds")
    p_dump.add_argument("--no-color", action="store_true", help="Disable colors")
    p_dump.add_argument("-c", "--config", help="Path to termdeck.yaml")
    p_dump.set_defaults(func=cmd_dump)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for termdeck."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
