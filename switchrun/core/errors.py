"""Error taxonomy of the catalog engine.

None of these is fatal to the process: every one of them is caught at the
engine boundary, logged, and degraded around, except ActivationError which
is reported back to whoever asked for the activation.
"""

from typing import Any, Dict, Optional


class SwitchrunError(Exception):
    """Base class for every error raised by switchrun."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class CatalogFileError(SwitchrunError):
    """One static catalog file could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Catalog file {path} skipped: {reason}",
            {"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


class StoreUnavailable(SwitchrunError):
    """The frecency store could not be opened."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"History store at {path} is unavailable: {reason}",
            {"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


class DirectoryListingError(SwitchrunError):
    """Listing a directory for path completion failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Could not list {path}: {reason}",
            {"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


class ActivationError(SwitchrunError):
    """The activator could not launch an entry."""

    def __init__(self, entry_name: str, reason: str):
        super().__init__(
            f"Failed to activate {entry_name!r}: {reason}",
            {"entry": entry_name, "reason": reason},
        )
        self.entry_name = entry_name
        self.reason = reason
