"""
lidderbuch — command-line access to the local songbook.

Usage:
    lidderbuch sync                 # fetch updates now and save
    lidderbuch search "Ons Heemecht"
    lidderbuch categories
    lidderbuch bookmark 42          # --off to remove the bookmark
"""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from .config import SongbookSettings
from .models import SpecialCategory
from .remote import SongbookClient
from .songbook import Songbook
from .store import SongStore


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _open_songbook(settings: SongbookSettings) -> Songbook:
    # no scheduled sync: the CLI runs it explicitly when asked
    return Songbook(
        store=SongStore(settings.songs_path),
        source=SongbookClient(settings.api_url, timeout=settings.timeout),
        settings=settings,
    )


def _cmd_sync(book: Songbook, args: argparse.Namespace) -> int:
    result = book.sync.run()
    if result.failed:
        print(f"Sync failed: {result.error}", file=sys.stderr)
        return 1
    print(
        f"{result.fetched} fetched: {result.inserted} new, "
        f"{result.replaced} updated, {result.ignored} unchanged"
    )
    return 0


def _cmd_search(book: Songbook, args: argparse.Namespace) -> int:
    results = book.search_now(args.query)
    if not results:
        print("No songs found.")
        return 0
    for song in results[: args.limit]:
        number = f"{song.number:>4}" if song.number is not None else "   -"
        print(f"{number}  {song.name}  [{song.category}]")
    return 0


def _cmd_categories(book: Songbook, args: argparse.Namespace) -> int:
    for category in book.categories:
        songs = book.category_songs(category)
        if category is SpecialCategory.BOOKMARKS and not songs:
            continue
        print(f"{str(category):<30} {len(songs):>4}")
    return 0


def _cmd_bookmark(book: Songbook, args: argparse.Namespace) -> int:
    try:
        song = book.set_bookmark(args.song_id, not args.off)
    except KeyError:
        print(f"No song with id {args.song_id}", file=sys.stderr)
        return 1
    state = "bookmarked" if song.bookmarked else "not bookmarked"
    print(f"{song.name}: {state}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lidderbuch",
        description="Browse, search and synchronize the local songbook.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sync", help="Fetch song updates from the web service")

    p_search = sub.add_parser("search", help="Search songs by keywords")
    p_search.add_argument("query")
    p_search.add_argument("--limit", type=int, default=20, help="Maximum results (default: 20)")

    sub.add_parser("categories", help="List categories with song counts")

    p_bookmark = sub.add_parser("bookmark", help="Bookmark a song")
    p_bookmark.add_argument("song_id", type=int)
    p_bookmark.add_argument("--off", action="store_true", help="Remove the bookmark instead")
    return parser


_COMMANDS = {
    "sync": _cmd_sync,
    "search": _cmd_search,
    "categories": _cmd_categories,
    "bookmark": _cmd_bookmark,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    book = _open_songbook(SongbookSettings.from_env())
    try:
        return _COMMANDS[args.command](book, args)
    finally:
        book.close()


if __name__ == "__main__":
    sys.exit(main())
