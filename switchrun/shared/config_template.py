default_config = {
    "_section_hint": (
        "General configuration for switchrun, a query-driven launcher catalog."
    ),
    "catalog": {
        "_section_hint": "Where the static catalog files are read from.",
        "data_dir": "",
        "data_dir_hint": (
            "Directory holding the catalog files and the history store. "
            "Empty means $XDG_DATA_HOME/switchrun."
        ),
        "glob": "app*.json",
        "glob_hint": (
            "File name pattern of catalog files inside data_dir. Every match "
            "is loaded, in file name order."
        ),
    },
    "history": {
        "_section_hint": "Persistent usage statistics.",
        "directory": "history",
        "directory_hint": "Name of the history store directory inside data_dir.",
    },
    "logging": {
        "_section_hint": "Log output.",
        "level": "WARNING",
        "level_hint": "One of DEBUG, INFO, WARNING, ERROR.",
        "file": "",
        "file_hint": (
            "Path of the rotating JSON log file. Empty means "
            "$XDG_STATE_HOME/switchrun/switchrun.log."
        ),
    },
    "activation": {
        "_section_hint": "How entries are launched by the built-in activator.",
        "elevate_command": "pkexec",
        "elevate_command_hint": "Program prefixed to launches requested as elevated.",
        "url_opener": "xdg-open",
        "url_opener_hint": "Program used to open URLs typed into the query.",
        "flatpak_command": "flatpak",
        "flatpak_command_hint": "Program used to run packaged applications.",
    },
}
