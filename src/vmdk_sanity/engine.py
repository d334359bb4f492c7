"""The slice of the engine remote API the sanity run depends on.

`EngineClient` implements it against a live endpoint; tests substitute an
in-memory engine.
"""

from typing import Any, Generator, Protocol

from .models import Volume


class EngineAPI(Protocol):
    address: str

    def ping(self) -> None: ...

    def create_volume(
        self, name: str, driver: str, driver_opts: dict[str, str] | None = None
    ) -> Volume: ...

    def list_volumes(self) -> list[Volume]: ...

    def remove_volume(self, name: str) -> None: ...

    def create_container(
        self,
        image: str,
        command: list[str],
        volumes: list[str] | None = None,
        binds: list[str] | None = None,
    ) -> str: ...

    def start_container(self, container_id: str) -> None: ...

    def wait_container(self, container_id: str) -> int: ...

    def remove_container(
        self, container_id: str, force: bool = False, remove_volumes: bool = False
    ) -> None: ...

    def image_exists(self, image: str) -> bool: ...

    def pull_image(self, image: str) -> Generator[dict[str, Any], None, None]: ...
