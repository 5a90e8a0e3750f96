import time
from pathlib import Path
from typing import Any, Dict, List, Optional
import toml

from switchrun.shared import config_template
from switchrun.shared.path_handler import PathHandler


class ConfigHandler:
    """
    Manages the configuration file (config.toml) and provides layered access
    to it: values from the file, with missing keys filled from the defaults in
    config_template.
    """

    def __init__(
        self,
        logger: Any,
        config_file: Optional[str] = None,
        path_handler: Optional[PathHandler] = None,
    ):
        """
        Loads the configuration, creating the file with defaults if missing.

        Args:
            logger: Structured logger.
            config_file: Explicit path of config.toml. Defaults to the XDG
                config directory.
            path_handler: Resolver of the XDG directories.
        """
        self.logger = logger
        self.path_handler = path_handler or PathHandler(logger)
        self.default_config = config_template.default_config
        if config_file is None:
            config_file = str(self.path_handler.get_config_dir() / "config.toml")
        self.config_file = Path(config_file)
        self._cached_config: Optional[Dict[str, Any]] = None
        self._load_successful: bool = False
        self.config_data: Dict[str, Any] = self.load_config()

    def _strip_hints(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively removes keys ending with '_hint' from the configuration
        dictionary destined for TOML.
        """
        stripped_data = {}
        for key, value in data.items():
            if key.endswith("_hint"):
                continue
            if isinstance(value, dict):
                stripped_data[key] = self._strip_hints(value)
            else:
                stripped_data[key] = value
        return stripped_data

    @property
    def default_config_stripped(self) -> Dict[str, Any]:
        """Returns the default config without any setting hints."""
        return self._strip_hints(self.default_config)

    def _recursive_merge(
        self,
        user_config: Dict[str, Any],
        default_config: Dict[str, Any],
    ) -> bool:
        """
        Recursively merges missing keys from `default_config` into `user_config`.

        Returns:
            True if any key was added.
        """
        write_back_needed = False
        for key, default_value in default_config.items():
            if key not in user_config:
                user_config[key] = default_value
                write_back_needed = True
            elif isinstance(default_value, dict) and isinstance(
                user_config.get(key), dict
            ):
                if self._recursive_merge(user_config[key], default_value):
                    write_back_needed = True
        return write_back_needed

    def save_config(self) -> None:
        """Writes the current state of self.config_data to the TOML file."""
        if not self._load_successful:
            self.logger.warning(
                "Skipping configuration save: config.toml failed to load. Please fix it manually."
            )
            return
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                toml.dump(self.config_data, f)
            self.logger.info("Configuration saved successfully.")
        except OSError as e:
            self.logger.error(f"Failed to save configuration to {self.config_file}: {e}")

    def reload_config(self) -> None:
        """Loads the configuration from the file, overwriting the current data."""
        self.config_data = self.load_config(force_reload=True)
        self.logger.info("Configuration reloaded from file.")

    def load_config(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Loads the configuration from file, or uses defaults if missing/corrupt.

        Args:
            force_reload: If True, bypasses the internal cache.

        Returns:
            The loaded and merged configuration dictionary.
        """
        if self._cached_config and not force_reload:
            return self._cached_config
        config_from_file: Dict[str, Any] = {}
        file_must_be_created = not self.config_file.exists()
        load_succeeded = False
        if file_must_be_created:
            self.logger.info("Config file is missing. Will apply defaults and create.")
            load_succeeded = True
        else:
            max_retries = 3
            retry_delay_seconds = 0.1
            for attempt in range(max_retries):
                try:
                    with open(self.config_file, "r") as f:
                        config_from_file = toml.load(f)
                    self.logger.debug("Existing config.toml loaded successfully.")
                    load_succeeded = True
                    break
                except (OSError, toml.TomlDecodeError) as e:
                    self.logger.error(
                        f"Error loading config file on attempt {attempt + 1}: {e}. Retrying..."
                    )
                    time.sleep(retry_delay_seconds)
            else:
                self.logger.error(
                    "Failed to load config file after all retries. Using default configuration and skipping file save to preserve user data."
                )
                config_from_file = {}
        self._load_successful = load_succeeded
        self._recursive_merge(config_from_file, self.default_config_stripped)
        if file_must_be_created:
            self.logger.info("Saving default configuration to file because it was missing.")
            self.config_data = config_from_file
            self.save_config()
        self._cached_config = config_from_file
        return config_from_file

    def get(self, key_path: List[str], default: Any = None) -> Any:
        """Safely retrieves a configuration value using a list of keys."""
        data: Any = self.config_data
        for key in key_path:
            if isinstance(data, dict):
                data = data.get(key)
            else:
                return default
            if data is None:
                return default
        return data

    def set_root_setting(self, key_path: List[str], new_value: Any) -> bool:
        """
        Sets a configuration value and saves the file.
        """
        if not key_path:
            self.logger.error("Configuration key path cannot be empty.")
            return False
        if not self._load_successful:
            self.logger.warning(
                f"Update to key {' -> '.join(key_path)} skipped: Config file failed to load. Please fix config.toml manually."
            )
            return False
        current_data = self.config_data
        for key in key_path[:-1]:
            if key not in current_data or not isinstance(current_data[key], dict):
                current_data[key] = {}
            current_data = current_data[key]
        current_data[key_path[-1]] = new_value
        self.logger.info(f"Set config key {' -> '.join(key_path)} to {new_value}.")
        self.save_config()
        return True
