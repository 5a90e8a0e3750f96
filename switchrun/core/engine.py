import os
import sqlite3
import time
from typing import Any, List, Optional, Protocol

from switchrun.core.catalog_loader import DEFAULT_CATALOG_GLOB, CatalogLoader, CatalogState
from switchrun.core.entry import Command, Entry
from switchrun.core.errors import ActivationError, StoreUnavailable
from switchrun.core.frecency_store import FrecencyStore
from switchrun.core.query_mode import (
    DirectoryListingCache,
    Mode,
    QueryClassification,
    classify,
)
from switchrun.core.ranker import rank_catalog, rank_directory

DEFAULT_HISTORY_DIRNAME = "history"


class Activator(Protocol):
    def activate(self, entry: Entry, elevated: bool) -> None:
        """Launches `entry`, raising ActivationError on failure."""
        ...


class CatalogEngine:
    """
    Owns the catalog, the history store and the current query, and answers
    the UI's questions about what to show and what to launch.

    The candidate list is recomputed on every call, so an index handed back
    by the UI always refers to the list as it is for the current query.
    """

    def __init__(
        self,
        data_dir: str,
        logger: Any,
        activator: Optional[Activator] = None,
        catalog_glob: str = DEFAULT_CATALOG_GLOB,
        history_dirname: str = DEFAULT_HISTORY_DIRNAME,
        store: Optional[FrecencyStore] = None,
        time_handler: Any = time,
    ):
        """
        Opens the history store and loads the catalog.

        Args:
            data_dir (str): Directory holding the catalog files and the history store.
            logger (Any): Structured logger shared with every component.
            activator (Optional[Activator]): Launches entries. Without one,
                activate() only records the use.
            catalog_glob (str): File name pattern of catalog files.
            history_dirname (str): Store directory name inside data_dir.
            store (Optional[FrecencyStore]): An already opened store to use instead.
            time_handler (Any): An object or module providing a time() method.
        """
        self.data_dir = data_dir
        self.logger = logger
        self.activator = activator
        self.store = store
        if self.store is None:
            self.store = self._open_store(
                os.path.join(data_dir, history_dirname), time_handler
            )
        self.loader = CatalogLoader(data_dir, logger, self.store, catalog_glob)
        self.directory_cache = DirectoryListingCache()
        self._query = ""
        self._classification = QueryClassification(Mode.START_APPS)
        self.state: CatalogState = self.loader.load()

    @classmethod
    def from_config(
        cls, config_handler: Any, logger: Any, activator: Optional[Activator] = None
    ) -> "CatalogEngine":
        """Builds an engine from the [catalog] and [history] config sections."""
        data_dir = config_handler.get(["catalog", "data_dir"]) or str(
            config_handler.path_handler.get_data_dir()
        )
        return cls(
            os.path.expanduser(data_dir),
            logger,
            activator=activator,
            catalog_glob=config_handler.get(["catalog", "glob"], DEFAULT_CATALOG_GLOB),
            history_dirname=config_handler.get(
                ["history", "directory"], DEFAULT_HISTORY_DIRNAME
            ),
        )

    def _open_store(self, directory: str, time_handler: Any) -> Optional[FrecencyStore]:
        try:
            return FrecencyStore(directory, self.logger, time_handler=time_handler)
        except StoreUnavailable as e:
            self.logger.error(f"{e.message}. Continuing without history.")
            return None

    @property
    def query(self) -> str:
        return self._query

    @property
    def mode(self) -> Mode:
        return self._classification.mode

    @property
    def classification(self) -> QueryClassification:
        return self._classification

    def set_query(self, text: str) -> None:
        self._query = text
        self._classification = classify(text)
        self.state.synthetic = Entry(name=text, kind=Command(text))
        if self._classification.mode is not Mode.DIRECTORY_LISTING:
            self.directory_cache.invalidate()

    def candidate_items(self) -> List[Entry]:
        if self._classification.mode is Mode.DIRECTORY_LISTING:
            return rank_directory(
                self.directory_cache, self._classification, self._query, self.logger
            )
        return rank_catalog(self.state, self._query, self._classification.mode)

    def candidates(self) -> List[str]:
        return [entry.display_string() for entry in self.candidate_items()]

    def resolve(self, index: int) -> Entry:
        """
        The candidate at `index`, or a fresh command for the raw query when
        nothing is shown there.
        """
        items = self.candidate_items()
        if 0 <= index < len(items):
            return items[index]
        return Entry(name=self._query, kind=Command(self._query))

    def completion(self, index: int) -> str:
        """Text to put in the query box when the user tab-completes `index`."""
        return self.resolve(index).match_string()

    def record_use(self, entry: Entry) -> None:
        if self.store is None:
            self.logger.warning(f"No history store, use of {entry.name!r} not recorded.")
            return
        try:
            self.store.record_use(entry)
        except sqlite3.Error as e:
            self.logger.error(f"Could not record use of {entry.name!r}: {e}")
            return
        self.logger.debug(f"Recorded use of {entry.name!r}")

    def activate(self, index: int, elevated: bool = False) -> Entry:
        """
        Records a use of the candidate at `index` and hands it to the activator.

        The use is recorded before launching and is kept even when the launch
        fails.

        Raises:
            ActivationError: If the activator fails.
        """
        entry = self.resolve(index)
        self.record_use(entry)
        if self.activator is None:
            self.logger.info(f"No activator configured, {entry.name!r} not launched.")
            return entry
        try:
            self.activator.activate(entry, elevated)
        except ActivationError as e:
            self.logger.error(e.message)
            raise
        self.logger.info(f"Activated {entry.name!r}", elevated=elevated)
        return entry

    def remove(self, index: int) -> Entry:
        """
        Forgets the history of the candidate at `index`. Only entries that
        came from history leave the current list.
        """
        entry = self.resolve(index)
        if self.store is not None:
            try:
                self.store.delete(entry.name)
            except sqlite3.Error as e:
                self.logger.error(f"Could not remove {entry.name!r} from history: {e}")
        if self.state.drop_history(entry):
            self.logger.info(f"Removed {entry.name!r} from history.")
        return entry

    def reload(self) -> None:
        """Rebuilds the catalog from the store and the catalog files."""
        self.state = self.loader.load()
        self.state.synthetic = Entry(name=self._query, kind=Command(self._query))
        self.directory_cache.invalidate()

    def close(self) -> None:
        if self.store is not None:
            self.store.close()

    def __enter__(self) -> "CatalogEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
