import os
import shlex
import subprocess
from typing import Any, Callable, List

from switchrun.core.entry import Command, Entry, Exe, Link, Packaged
from switchrun.core.errors import ActivationError
from switchrun.core.query_mode import URL_PREFIXES


class CommandRunner:
    """
    Launches catalog entries as detached processes.

    Exe and Link entries run their path with their params, unless the path is
    a directory or a non-executable file, which is handed to the URL opener.
    Packaged entries go through flatpak, and Command text is split like a
    shell would split it, except URLs which also go to the URL opener.
    """

    def __init__(
        self,
        logger: Any,
        elevate_command: str = "pkexec",
        url_opener: str = "xdg-open",
        flatpak_command: str = "flatpak",
        spawn: Callable[..., Any] = subprocess.Popen,
    ):
        self.logger = logger
        self.elevate_command = elevate_command
        self.url_opener = url_opener
        self.flatpak_command = flatpak_command
        self.spawn = spawn

    @classmethod
    def from_config(cls, config_handler: Any, logger: Any) -> "CommandRunner":
        return cls(
            logger,
            elevate_command=config_handler.get(["activation", "elevate_command"], "pkexec"),
            url_opener=config_handler.get(["activation", "url_opener"], "xdg-open"),
            flatpak_command=config_handler.get(["activation", "flatpak_command"], "flatpak"),
        )

    @staticmethod
    def _needs_opener(path: str) -> bool:
        """Directories and non-executable files are opened, not executed."""
        if os.path.isdir(path):
            return True
        return os.path.isfile(path) and not os.access(path, os.X_OK)

    def build_argv(self, entry: Entry, elevated: bool = False) -> List[str]:
        """
        Turns an entry into the argument vector to execute.

        Raises:
            ActivationError: If the entry resolves to nothing runnable.
        """
        kind = entry.kind
        try:
            if isinstance(kind, (Exe, Link)):
                if self._needs_opener(kind.path):
                    argv = [self.url_opener, kind.path]
                else:
                    argv = [kind.path, *shlex.split(kind.params)]
            elif isinstance(kind, Packaged):
                argv = [self.flatpak_command, "run", kind.app_id]
            elif isinstance(kind, Command):
                text = kind.command_text.strip()
                if text.startswith(URL_PREFIXES):
                    argv = [self.url_opener, text]
                else:
                    argv = shlex.split(text)
            else:
                raise ActivationError(entry.name, f"unsupported entry kind {type(kind).__name__}")
        except ValueError as e:
            raise ActivationError(entry.name, f"cannot parse command line: {e}") from e
        if not argv or not argv[0]:
            raise ActivationError(entry.name, "nothing to run")
        if elevated:
            argv = [self.elevate_command, *argv]
        return argv

    def activate(self, entry: Entry, elevated: bool = False) -> None:
        """
        Execute an entry without blocking the caller.
        """
        argv = self.build_argv(entry, elevated)
        try:
            process = self.spawn(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ActivationError(entry.name, str(e)) from e
        self.logger.info(f"Command started with PID: {process.pid}", argv=argv)
