"""
Category Indexer — group songs into ordered categories.

The index is a derived view: it is rebuilt from the collection after every
mutation batch and never edited in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple, Union

from .models import Song, SpecialCategory

CategoryKey = Union[str, SpecialCategory]


@dataclass(frozen=True)
class CategoryIndex:
    categories: Tuple[CategoryKey, ...] = (SpecialCategory.BOOKMARKS,)
    songs_by_category: Mapping[CategoryKey, Tuple[Song, ...]] = field(
        default_factory=lambda: MappingProxyType({SpecialCategory.BOOKMARKS: ()})
    )

    def songs(self, category: CategoryKey) -> Tuple[Song, ...]:
        return self.songs_by_category.get(category, ())

    @property
    def bookmarks(self) -> Tuple[Song, ...]:
        return self.songs(SpecialCategory.BOOKMARKS)

    @property
    def labels(self) -> list[str]:
        return [str(c) for c in self.categories]


def sort_by_position(songs: Iterable[Song]) -> list[Song]:
    # sorted() is stable: equal positions keep collection order
    return sorted(songs, key=lambda s: s.position)


def build_category_index(songs: Iterable[Song]) -> CategoryIndex:
    """
    Rebuild the category index from scratch.

    Order: the bookmarks bucket first, then real categories in the order they
    are first met while walking songs by position.  A bookmarked song is
    listed both in the bookmarks bucket and in its own category.
    """
    categories: list[CategoryKey] = [SpecialCategory.BOOKMARKS]
    buckets: dict[CategoryKey, list[Song]] = {SpecialCategory.BOOKMARKS: []}

    for song in sort_by_position(songs):
        if song.bookmarked:
            buckets[SpecialCategory.BOOKMARKS].append(song)
        if song.category not in buckets:
            categories.append(song.category)
            buckets[song.category] = [song]
        else:
            buckets[song.category].append(song)

    return CategoryIndex(
        categories=tuple(categories),
        songs_by_category=MappingProxyType({k: tuple(v) for k, v in buckets.items()}),
    )
