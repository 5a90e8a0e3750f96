import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional
import orjson

from switchrun.core.entry import Command, Entry
from switchrun.core.errors import CatalogFileError
from switchrun.core.frecency_store import FrecencyStore

DEFAULT_CATALOG_GLOB = "app*.json"


@dataclass
class CatalogState:
    """
    The aggregated candidate source, in precedence order: the synthetic query
    entry, then history (most recent first), then the static catalog.
    """

    synthetic: Entry = field(default_factory=lambda: Entry(name="", kind=Command("")))
    history: List[Entry] = field(default_factory=list)
    static: List[Entry] = field(default_factory=list)

    def entries(self) -> List[Entry]:
        return [self.synthetic, *self.history, *self.static]

    def is_history(self, entry: Entry) -> bool:
        return any(item is entry for item in self.history)

    def drop_history(self, entry: Entry) -> bool:
        """Removes `entry` (by identity) from the history section."""
        for i, item in enumerate(self.history):
            if item is entry:
                del self.history[i]
                return True
        return False


class CatalogLoader:
    """
    Builds a CatalogState from the history store and the static catalog files
    found in the data directory.

    Attributes:
        catalog_dir (str): Directory searched for catalog files.
        catalog_glob (str): File name pattern of catalog files.
    """

    def __init__(
        self,
        catalog_dir: str,
        logger: Any,
        store: Optional[FrecencyStore] = None,
        catalog_glob: str = DEFAULT_CATALOG_GLOB,
    ):
        self.catalog_dir = catalog_dir
        self.catalog_glob = catalog_glob
        self.store = store
        self.logger = logger

    def load(self) -> CatalogState:
        state = CatalogState()
        state.history = self.load_history()
        for catalog_file in self.discover():
            try:
                state.static.extend(self.read_catalog_file(catalog_file))
            except CatalogFileError as e:
                self.logger.error(e.message)
        self.logger.info(
            f"Catalog loaded: {len(state.history)} history and {len(state.static)} static entries."
        )
        return state

    def load_history(self) -> List[Entry]:
        if self.store is None:
            return []
        entries = []
        for record in reversed(self.store.iterate()):
            try:
                entries.append(record.to_entry())
            except ValueError as e:
                self.logger.warning(f"Ignoring history record {record.name!r}: {e}")
        return entries

    def discover(self) -> List[Path]:
        """Returns catalog files matching the glob, sorted by file name."""
        root = Path(self.catalog_dir)
        if not root.is_dir():
            self.logger.warning(f"Catalog directory {root} does not exist.")
            return []
        return sorted(p for p in root.glob(self.catalog_glob) if p.is_file())

    def read_catalog_file(self, path: Path) -> List[Entry]:
        """
        Parses one catalog file. Malformed elements are skipped one by one;
        a file that cannot be read or is not a JSON array raises.

        Raises:
            CatalogFileError: If the file is unreadable or not a JSON array.
        """
        try:
            data = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise CatalogFileError(str(path), str(e)) from e
        if not isinstance(data, list):
            raise CatalogFileError(str(path), "top-level value is not an array")
        entries = []
        for position, item in enumerate(data):
            try:
                entries.append(Entry.from_dict(item))
            except (ValueError, TypeError) as e:
                self.logger.warning(f"{path}: skipping element {position}: {e}")
        return entries


def write_catalog_file(path: str, entries: Iterable[Entry]) -> None:
    """Writes entries as a catalog file, replacing any previous file atomically."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    payload = orjson.dumps([entry.to_dict() for entry in entries], option=orjson.OPT_INDENT_2)
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise
