import os
from pathlib import Path
from typing import Any


class PathHandler:
    """
    Resolves the application's directories following the XDG Base Directory
    Specification, creating them on first use.
    """

    def __init__(self, logger: Any, app_name: str = "switchrun"):
        """
        Args:
            logger: Structured logger.
            app_name: Directory name used under each XDG base directory.
        """
        self.app_name = app_name
        self._home = Path.home()
        self.logger = logger

    def _get_xdg_base_dir(self, env_var: str, default_path: Path) -> Path:
        """Helper to get XDG base directory with fallback."""
        path_str = os.getenv(env_var)
        if path_str:
            return Path(path_str)
        return default_path

    def _app_dir(self, env_var: str, default_path: Path) -> Path:
        app_dir = self._get_xdg_base_dir(env_var, default_path) / self.app_name
        app_dir.mkdir(parents=True, exist_ok=True)
        return app_dir

    def get_config_dir(self) -> Path:
        """
        Returns $XDG_CONFIG_HOME/switchrun or ~/.config/switchrun.
        """
        return self._app_dir("XDG_CONFIG_HOME", self._home / ".config")

    def get_data_dir(self) -> Path:
        """
        Returns $XDG_DATA_HOME/switchrun or ~/.local/share/switchrun, where the
        catalog files and the history store live.
        """
        return self._app_dir("XDG_DATA_HOME", self._home / ".local" / "share")

    def get_cache_dir(self) -> Path:
        return self._app_dir("XDG_CACHE_HOME", self._home / ".cache")

    def get_state_dir(self) -> Path:
        return self._app_dir("XDG_STATE_HOME", self._home / ".local" / "state")

    def get_log_path(self) -> str:
        return str(self.get_state_dir() / f"{self.app_name}.log")
