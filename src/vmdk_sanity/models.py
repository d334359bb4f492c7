from dataclasses import dataclass
from typing import Any


class Volume:
    """A volume as reported by an engine's volume list."""

    def __init__(self, attrs: dict[str, Any] | None = None) -> None:
        self.attrs = attrs or {}

    @property
    def name(self) -> str:
        return self.attrs.get("Name", "")

    @property
    def driver(self) -> str:
        return self.attrs.get("Driver", "")

    @property
    def mountpoint(self) -> str:
        return self.attrs.get("Mountpoint", "")

    @property
    def options(self) -> dict[str, str]:
        return self.attrs.get("Options") or {}

    def __repr__(self) -> str:
        return f"<Volume: {self.name} ({self.driver})>"


@dataclass(frozen=True)
class ContainerCase:
    """One container run and the exit code it must finish with."""

    image: str
    command: tuple[str, ...]
    expected: int = 0

    def __str__(self) -> str:
        return " ".join(self.command)
