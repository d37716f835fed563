"""Command-line rendering of Markdown files.

Usage:
    gfmrender README.md -o README.html
    cat notes.md | gfmrender - --standalone
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from gfmrender import __version__
from gfmrender.annotation import escape_html
from gfmrender.markdown import render_html

console = Console(stderr=True)

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<article class="markdown-body">
{body}</article>
</body>
</html>
"""


def _setup_logging(verbose: bool) -> None:
    """Configure console logging for a CLI run."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gfmrender",
        description="Render GitHub-flavoured Markdown to HTML.",
    )
    parser.add_argument("input", help="Markdown file to render ('-' for stdin)")
    parser.add_argument(
        "-o", "--output", type=Path, help="Write HTML here instead of stdout"
    )
    parser.add_argument(
        "--standalone",
        action="store_true",
        help="Wrap the fragment in a complete HTML page",
    )
    parser.add_argument("--title", help="Page title for --standalone")
    parser.add_argument(
        "--no-sanitize",
        action="store_true",
        help="Skip the allow-list sanitiser (trusted input only)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def _read_source(name: str) -> bytes:
    if name == "-":
        return sys.stdin.buffer.read()
    return Path(name).read_bytes()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``gfmrender`` command."""
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        source = _read_source(args.input)
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {args.input}: {exc.strerror}")
        return 1

    html = render_html(source, sanitize=False if args.no_sanitize else None)

    if args.standalone:
        title = args.title or ("stdin" if args.input == "-" else Path(args.input).stem)
        html = _PAGE_TEMPLATE.format(title=escape_html(title), body=html)

    if args.output is None:
        sys.stdout.write(html)
    else:
        args.output.write_text(html, encoding="utf-8")
        console.print(f"[green]Wrote[/] {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
