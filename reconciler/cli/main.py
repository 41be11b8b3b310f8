"""
Reconciler CLI
==============
Terminal command surface for reconciling books and inspecting the library.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, Optional, TextIO

from reconciler.app.config import AppConfig
from reconciler.app.controller import AppController
from reconciler.errors import ReconcilerError
from reconciler.storage.models import BookContent, EPOCH


def build_parser() -> argparse.ArgumentParser:
    """Create the root CLI parser."""
    parser = argparse.ArgumentParser(prog="reconciler", description="Audiobook reconciler CLI")
    parser.add_argument("--config", help="Path to a JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # reconcile
    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Create the record of a book, migrating legacy state"
    )
    reconcile_parser.add_argument("book_uri", help="Locator of the book root")
    reconcile_parser.add_argument("chapter_uris", nargs="+", help="Chapter locators in play order")
    reconcile_parser.add_argument("--name", help="Display name of the book root")
    reconcile_parser.add_argument(
        "--file", action="store_true", help="The book root is a single file"
    )
    reconcile_parser.set_defaults(handler=handle_reconcile)

    # show
    show_parser = subparsers.add_parser("show", help="Show the stored record of a book")
    show_parser.add_argument("book_uri", help="Locator of the book root")
    show_parser.set_defaults(handler=handle_show)

    # bookmarks
    bookmarks_parser = subparsers.add_parser("bookmarks", help="List bookmarks of a book")
    bookmarks_parser.add_argument("book_uri", help="Locator of the book root")
    bookmarks_parser.set_defaults(handler=handle_bookmarks)

    # library
    library_parser = subparsers.add_parser("library", help="List active books")
    library_parser.set_defaults(handler=handle_library)

    return parser


def _print(msg: str, out: TextIO) -> None:
    out.write(msg + "\n")
    out.flush()


def _print_content(content: BookContent, out: TextIO) -> None:
    _print(f"id: {content.id}", out)
    _print(f"name: {content.name}", out)
    _print(f"author: {content.author or 'unknown'}", out)
    _print(f"chapters: {len(content.chapters)}", out)
    _print(f"current chapter: {content.current_chapter}", out)
    _print(f"position: {content.position_in_chapter}ms", out)
    _print(f"speed: {content.playback_speed}", out)
    _print(f"skip silence: {'yes' if content.skip_silence else 'no'}", out)
    _print(f"added: {content.added_at.isoformat()}", out)
    last_played = "never" if content.last_played_at == EPOCH else content.last_played_at.isoformat()
    _print(f"last played: {last_played}", out)
    _print(f"cover: {content.cover or 'none'}", out)


async def handle_reconcile(args: argparse.Namespace, controller: AppController, out: TextIO) -> int:
    """Reconcile a book and print the stored record."""
    content = await controller.reconcile(
        args.book_uri,
        args.chapter_uris,
        name=args.name,
        is_file=args.file,
    )
    _print_content(content, out)
    return 0


async def handle_show(args: argparse.Namespace, controller: AppController, out: TextIO) -> int:
    """Print the stored record of a book."""
    content = await controller.get_book(args.book_uri)
    if content is None:
        _print(f"no record for {args.book_uri}", out)
        return 1
    _print_content(content, out)
    return 0


async def handle_bookmarks(args: argparse.Namespace, controller: AppController, out: TextIO) -> int:
    """List bookmarks of a book."""
    bookmarks = await controller.bookmarks(args.book_uri)
    if not bookmarks:
        _print("no bookmarks", out)
        return 0

    for bookmark in bookmarks:
        title = bookmark.title or "-"
        timer = " (sleep timer)" if bookmark.set_by_sleep_timer else ""
        _print(f"- {bookmark.chapter_id} @ {bookmark.time}ms: {title}{timer}", out)
    return 0


async def handle_library(args: argparse.Namespace, controller: AppController, out: TextIO) -> int:
    """List active books."""
    books = await controller.library()
    if not books:
        _print("no books found", out)
        return 0

    for book in books:
        author = book.author or "unknown"
        _print(f"- {book.name} by {author} ({len(book.chapters)} chapters) [{book.id}]", out)
    return 0


def main(
    argv: Optional[list[str]] = None,
    controller_factory: Callable[[AppConfig], AppController] = AppController,
    out: TextIO = sys.stdout,
) -> int:
    """
    CLI entrypoint.

    Args:
        argv: Optional argv override for testing.
        controller_factory: Dependency-injection hook for tests.
        out: Output stream.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = AppConfig.from_json(args.config) if args.config else AppConfig()
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else config.log_level.upper(),
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        )
        controller = controller_factory(config)
        return int(asyncio.run(args.handler(args, controller, out)))
    except ReconcilerError as exc:
        _print(f"error: {exc}", out)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
