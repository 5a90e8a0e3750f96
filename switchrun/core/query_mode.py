import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from switchrun.core.entry import Entry, Exe
from switchrun.core.errors import DirectoryListingError

URL_PREFIXES = ("http://", "https://")
SEPARATORS = tuple(s for s in (os.sep, os.altsep) if s)
# A backslash may start a UNC path even where it is not a separator.
PATH_LEADERS = ("\\",) + SEPARATORS


class Mode(Enum):
    START_APPS = "start_apps"
    DIRECTORY_LISTING = "directory_listing"
    URL = "url"


@dataclass(frozen=True)
class QueryClassification:
    mode: Mode
    resolved_prefix: str = ""
    suffix: str = ""


def _has_parent_dir(query: str) -> bool:
    parent = os.path.dirname(query)
    return bool(parent) and os.path.isdir(parent)


def split_path_query(query: str) -> Tuple[str, str]:
    """
    Splits a path-like query into the directory to list and the partial file
    name typed after it.
    """
    if query.endswith(SEPARATORS) and os.path.isdir(query):
        return query, ""
    return os.path.dirname(query), os.path.basename(query)


def classify(query: str) -> QueryClassification:
    """
    Decides how a query is interpreted.

    Args:
        query (str): The raw text typed by the user.

    Returns:
        QueryClassification: The mode, plus prefix and suffix in
        DIRECTORY_LISTING mode.
    """
    if not query:
        return QueryClassification(Mode.START_APPS)
    if query.startswith(URL_PREFIXES):
        return QueryClassification(Mode.URL)
    first = query[0]
    if first.isalnum() or first in PATH_LEADERS:
        is_existing_abs = os.path.isabs(query) and os.path.exists(query)
        if is_existing_abs or _has_parent_dir(query):
            prefix, suffix = split_path_query(query)
            return QueryClassification(Mode.DIRECTORY_LISTING, prefix, suffix)
    return QueryClassification(Mode.START_APPS)


def list_directory(prefix: str) -> List[Entry]:
    """
    Lists the children of `prefix` as executable entries, sorted by name.
    Directory names carry a trailing separator so completing them continues
    the path.

    Raises:
        DirectoryListingError: If the directory cannot be read.
    """
    entries = []
    try:
        with os.scandir(prefix) as it:
            for child in it:
                path = os.path.join(prefix, child.name)
                name = path + os.sep if child.is_dir() else path
                entries.append(Entry(name=name, kind=Exe(path=path)))
    except OSError as e:
        raise DirectoryListingError(prefix, str(e)) from e
    entries.sort(key=lambda e: e.name.lower())
    return entries


def entry_file_name(entry: Entry) -> str:
    path = getattr(entry.kind, "path", entry.name)
    return os.path.basename(path.rstrip("".join(SEPARATORS)) or path)


class DirectoryListingCache:
    """Keeps the listing of one directory until the query moves to another."""

    def __init__(self, lister: Callable[[str], List[Entry]] = list_directory):
        self.lister = lister
        self.resolved_prefix: Optional[str] = None
        self.entries: List[Entry] = []

    def entries_for(self, prefix: str) -> List[Entry]:
        if prefix != self.resolved_prefix:
            self.invalidate()
            self.entries = self.lister(prefix)
            self.resolved_prefix = prefix
        return self.entries

    def invalidate(self) -> None:
        self.resolved_prefix = None
        self.entries = []
