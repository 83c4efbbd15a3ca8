"""
Search Engine — keyword search over the songbook.

Relevance is a pluggable ``scorer(song, keywords) -> float``.  A score of 0
means "no match"; results are ordered by descending score, ties keeping
collection order.  Each song is scored exactly once per search.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Callable, Iterable, List

from .models import Song

MIN_QUERY_LENGTH = 3

Scorer = Callable[[Song, str], float]


# ---------------------------------------------------------------------------
# Text normalisation
# ---------------------------------------------------------------------------

def normalize_text(text: str) -> str:
    """Lower-case, strip accents and punctuation, collapse whitespace."""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[’']", "", text)
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


# ---------------------------------------------------------------------------
# Default relevance
# ---------------------------------------------------------------------------

# Weights per field; the song number is matched exactly and outranks text.
_NUMBER_WEIGHT = 100.0
_PHRASE_IN_NAME = 20.0
_WEIGHTS = (
    ("name", 5.0),
    ("lyrics_author", 3.0),
    ("music_author", 3.0),
    ("way", 2.0),
    ("lyrics", 1.0),
)


def keyword_relevance(song: Song, keywords: str) -> float:
    """
    Default scorer.

    Every keyword must occur somewhere in the song, otherwise the score is 0.
    A keyword equal to the song number counts as a match; since queries
    shorter than three characters are never searched, a one- or two-digit
    number needs another keyword next to it ("1 Heemecht").
    """
    query = normalize_text(keywords)
    if not query:
        return 0.0

    fields = {name: normalize_text(getattr(song, name) or "") for name, _ in _WEIGHTS}
    number = str(song.number) if song.number is not None else None
    score = 0.0
    for word in query.split(" "):
        word_score = 0.0
        if word == number:
            word_score += _NUMBER_WEIGHT
        for name, weight in _WEIGHTS:
            hits = fields[name].count(word)
            if hits:
                word_score += weight * min(hits, 3)
        if word_score == 0:
            return 0.0
        score += word_score

    if query in fields["name"]:
        score += _PHRASE_IN_NAME
    return score


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def search_songs(
    songs: Iterable[Song],
    query: str,
    scorer: Scorer = keyword_relevance,
    min_length: int = MIN_QUERY_LENGTH,
) -> List[Song]:
    """Filter ``songs`` by nonzero relevance and rank them, best first."""
    if len(query.strip()) < min_length:
        return []

    scored = []
    for song in songs:
        score = scorer(song, query)
        if score:
            scored.append((score, song))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [song for _, song in scored]
