from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Exe:
    """A directly executable target."""

    path: str
    params: str = ""


@dataclass(frozen=True)
class Link:
    """A shortcut. target_path is shown to the user but never launched."""

    path: str
    params: str = ""
    target_path: str = ""


@dataclass(frozen=True)
class Packaged:
    """An application identified by the package manager rather than a path."""

    package_id: str
    publisher_id: str
    app_id: str


@dataclass(frozen=True)
class Command:
    """Raw text typed by the user, resolved into program and arguments on launch."""

    command_text: str = ""


EntryKind = Union[Exe, Link, Packaged, Command]

KIND_TAGS: Dict[type, str] = {
    Exe: "Exe",
    Link: "Link",
    Packaged: "Packaged",
    Command: "Command",
}


@dataclass
class Entry:
    """
    One launchable item of the catalog.

    Attributes:
        name (str): Display and search key, also the history key.
        kind (EntryKind): The variant payload describing how to launch it.
        use_count (int): Number of recorded activations.
        last_use_time (float): POSIX timestamp of the last activation, 0.0 if never.
    """

    name: str = ""
    kind: EntryKind = field(default_factory=Command)
    use_count: int = 0
    last_use_time: float = 0.0

    def display_string(self) -> str:
        """Text shown in the candidate list."""
        kind = self.kind
        if isinstance(kind, Link):
            return f"{self.name} ({kind.target_path})"
        if isinstance(kind, Command) and self.name != kind.command_text:
            return f"{self.name} ({kind.command_text})"
        return self.name

    def match_string(self) -> str:
        """Text inserted into the query box on tab completion."""
        if isinstance(self.kind, Command):
            return self.kind.command_text
        return self.name

    def secondary_match_field(self) -> Optional[str]:
        if isinstance(self.kind, Link):
            return self.kind.target_path
        if isinstance(self.kind, Command):
            return self.kind.command_text
        return None

    def with_usage(self, use_count: int, last_use_time: float) -> "Entry":
        return replace(self, use_count=use_count, last_use_time=last_use_time)

    def kind_to_dict(self) -> Dict[str, Any]:
        payload = {
            key: getattr(self.kind, key) for key in self.kind.__dataclass_fields__
        }
        return {KIND_TAGS[type(self.kind)]: payload}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind_to_dict(),
            "use_count": self.use_count,
            "last_use_time": self.last_use_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        """
        Builds an Entry from its JSON projection.

        Raises:
            ValueError: If the element is not an object, has no name, or
                carries an unknown or malformed kind.
        """
        if not isinstance(data, dict):
            raise ValueError(f"entry must be an object, got {type(data).__name__}")
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError("entry has no string 'name'")
        use_count = data.get("use_count", 0)
        if not isinstance(use_count, int) or use_count < 0:
            raise ValueError(f"invalid use_count {use_count!r} for {name!r}")
        return cls(
            name=name,
            kind=parse_kind(data.get("kind")),
            use_count=use_count,
            last_use_time=parse_timestamp(data.get("last_use_time", 0.0)),
        )


def _text_field(tag: str, fields: Dict[str, Any], key: str, default: Optional[str] = None) -> str:
    if key not in fields:
        if default is None:
            raise ValueError(f"kind {tag!r} is missing field {key!r}")
        return default
    value = fields[key]
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} of kind {tag!r} must be a string, got {value!r}")
    return value


def parse_kind(raw: Any) -> EntryKind:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ValueError(f"kind must be a single-key object, got {raw!r}")
    tag, fields = next(iter(raw.items()))
    if not isinstance(fields, dict):
        raise ValueError(f"fields of kind {tag!r} must be an object")
    if tag == "Exe":
        return Exe(
            path=_text_field(tag, fields, "path"),
            params=_text_field(tag, fields, "params", ""),
        )
    if tag == "Link":
        return Link(
            path=_text_field(tag, fields, "path"),
            params=_text_field(tag, fields, "params", ""),
            target_path=_text_field(tag, fields, "target_path", ""),
        )
    if tag == "Packaged":
        return Packaged(
            package_id=_text_field(tag, fields, "package_id"),
            publisher_id=_text_field(tag, fields, "publisher_id"),
            app_id=_text_field(tag, fields, "app_id"),
        )
    # Older indexers wrote package entries under this tag.
    if tag == "Appx":
        return Packaged(
            package_id=_text_field(tag, fields, "identity_id"),
            publisher_id=_text_field(tag, fields, "publisher_id"),
            app_id=_text_field(tag, fields, "application_id"),
        )
    if tag == "Command":
        return Command(command_text=_text_field(tag, fields, "command_text", ""))
    raise ValueError(f"unknown entry kind {tag!r}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_timestamp(raw: Any) -> float:
    """Accepts float seconds or a {secs_since_epoch, nanos_since_epoch} object."""
    if raw is None:
        return 0.0
    if _is_number(raw):
        return float(raw)
    if isinstance(raw, dict) and "secs_since_epoch" in raw:
        secs = raw["secs_since_epoch"]
        nanos = raw.get("nanos_since_epoch", 0)
        if _is_number(secs) and _is_number(nanos):
            return secs + nanos / 1e9
    raise ValueError(f"invalid timestamp {raw!r}")
