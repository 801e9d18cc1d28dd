"""Search result ranking."""

from typing import Iterable, NamedTuple


class SearchHit(NamedTuple):
    """A page matching a search query and how often it matched."""

    name: str
    count: int


def rank_hits(hits: Iterable[SearchHit]) -> list[SearchHit]:
    """Order search hits by count (desc) and then by name (asc)."""
    return sorted(hits, key=lambda hit: (-hit.count, hit.name))
