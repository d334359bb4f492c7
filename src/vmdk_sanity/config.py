"""Run configuration for the sanity checker."""

from dataclasses import dataclass, field

from .const import (
    API_VERSION,
    DEFAULT_DRIVER_OPTS,
    DEFAULT_HEADERS,
    DEFAULT_IMAGE,
    DEFAULT_MOUNT_LOCATION,
    DEFAULT_TOUCH_FILE,
    DEFAULT_VOLUME_NAME,
    DOCKER_USOCKET,
    DRIVER_NAME,
)


@dataclass(frozen=True)
class SanityConfig:
    """
    Everything a sanity run needs, built once and passed to `run_sanity`.

    `endpoint1` is the master: volumes are created and removed there and
    the touch/stat containers run there. Both endpoints are checked for
    the volume after create and after remove.
    """

    endpoint1: str = DOCKER_USOCKET
    endpoint2: str = DOCKER_USOCKET
    volume_name: str = DEFAULT_VOLUME_NAME
    remove_containers: bool = True
    driver: str = DRIVER_NAME
    driver_opts: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DRIVER_OPTS)
    )
    image: str = DEFAULT_IMAGE
    pull_image: bool = True
    touch_file: str = DEFAULT_TOUCH_FILE
    mount_location: str = DEFAULT_MOUNT_LOCATION
    api_version: str = API_VERSION
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    def __post_init__(self) -> None:
        if not self.volume_name:
            raise ValueError("volume_name must not be empty")
        if not self.driver:
            raise ValueError("driver must not be empty")

    @property
    def endpoints(self) -> tuple[str, str]:
        return (self.endpoint1, self.endpoint2)

    @property
    def mount_point(self) -> str:
        return f"{self.mount_location}/{self.volume_name}"
