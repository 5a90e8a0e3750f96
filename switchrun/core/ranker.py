from typing import Any, List, Optional

from switchrun.core.catalog_loader import CatalogState
from switchrun.core.entry import Command, Entry
from switchrun.core.errors import DirectoryListingError
from switchrun.core.query_mode import (
    DirectoryListingCache,
    Mode,
    QueryClassification,
    entry_file_name,
)


def match_term(query: str) -> str:
    """The first word of the query, lower-cased. Later words are arguments."""
    words = query.split()
    return words[0].lower() if words else ""


def is_single_word(query: str) -> bool:
    return len(query.split()) <= 1


def entry_matches(entry: Entry, term: str) -> bool:
    if term in entry.name.lower():
        return True
    secondary = entry.secondary_match_field()
    return secondary is not None and term in secondary.lower()


def should_show_query_entry(second_name: Optional[str], query: str, mode: Mode) -> bool:
    """
    Whether the synthetic "run this text" entry stays visible.

    It is hidden when the entry after it is an exact match for the query, and
    for single-word queries outside URL mode, where a catalog match is the
    better answer.
    """
    if second_name is not None and second_name == query:
        return False
    if is_single_word(query) and mode is not Mode.URL:
        return False
    return True


def rank_catalog(state: CatalogState, query: str, mode: Mode) -> List[Entry]:
    term = match_term(query)
    filtered = [entry for entry in state.entries() if entry_matches(entry, term)]
    second_name = filtered[1].name if len(filtered) >= 2 else None
    if filtered and filtered[0] is state.synthetic:
        if not should_show_query_entry(second_name, query, mode):
            filtered.pop(0)
    return filtered


def rank_directory(
    cache: DirectoryListingCache,
    classification: QueryClassification,
    query: str,
    logger: Any,
) -> List[Entry]:
    """
    Candidates for a path-like query: the listing of the resolved directory
    filtered by the partial file name. Typing arguments after the path, or a
    directory that cannot be listed, yields the raw text as a command.
    """
    suffix = classification.suffix
    if any(c.isspace() for c in suffix):
        return [Entry(name=query, kind=Command(query))]
    try:
        listing = cache.entries_for(classification.resolved_prefix)
    except DirectoryListingError as e:
        logger.warning(e.message)
        return [Entry(name=query, kind=Command(query))]
    needle = suffix.lower()
    return [entry for entry in listing if needle in entry_file_name(entry).lower()]
