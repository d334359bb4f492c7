"""Sanity run for the vmdk volume driver.

- check we can attach/detach the volume (`touch` in one container, `stat`
  in another)
- check the volume is created with the right driver and deleted
- check it is seen the same way from a second engine endpoint
"""

import logging
from typing import Callable, Iterable, List, NamedTuple, Sequence

from .client import EngineClient
from .config import SanityConfig
from .const import DEFAULT_IMAGE, DEFAULT_MOUNT_LOCATION
from .engine import EngineAPI
from .exceptions import DockerException, FatalSanityError
from .models import ContainerCase, Volume
from .progress import PullProgress
from .report import SanityReport

logger = logging.getLogger(__name__)

# Errors a remote call can surface; anything else is a bug, not a failure
ENGINE_ERRORS = (DockerException, OSError, ValueError)


class Endpoint(NamedTuple):
    address: str
    client: EngineAPI


def get_mountpoint(volume: str, root: str = DEFAULT_MOUNT_LOCATION) -> str:
    """Return the in-container mount point for a volume."""
    return f"{root}/{volume}"


def touch_cases(
    volume: str, filename: str, image: str, root: str = DEFAULT_MOUNT_LOCATION
) -> List[ContainerCase]:
    """Write a file through the volume, then read it back from a new container."""
    path = f"{get_mountpoint(volume, root)}/{filename}"
    return [
        ContainerCase(image, ("touch", path), 0),
        ContainerCase(image, ("stat", path), 0),
    ]


def connect_endpoints(
    config: SanityConfig,
    report: SanityReport,
    factory: Callable[..., EngineAPI] | None = None,
) -> List[Endpoint]:
    factory = factory or EngineClient
    endpoints = []
    for address in config.endpoints:
        try:
            client = factory(address, config.api_version, config.headers)
            client.ping()
        except ENGINE_ERRORS as e:
            report.fatal("Failed to connect to %s, err: %s", address, e)
        report.log("Successfully connected to %s", address)
        endpoints.append(Endpoint(address, client))
    return endpoints


def create_volume(
    master: EngineAPI,
    name: str,
    driver: str,
    opts: dict[str, str],
    report: SanityReport,
) -> None:
    try:
        master.create_volume(name, driver, opts)
    except ENGINE_ERRORS as e:
        report.fatal("Failed to create volume %s, err: %s", name, e)


def remove_volume(master: EngineAPI, name: str, report: SanityReport) -> None:
    try:
        master.remove_volume(name)
    except ENGINE_ERRORS as e:
        report.fatal("Failed to delete volume, err: %s", e)


def volume_exists(
    client: EngineAPI, name: str, report: SanityReport
) -> Volume | None:
    """
    Look a volume up by name in the endpoint's volume list.

    Returns None when it is not there. Failing to list is fatal.
    """
    try:
        volumes = client.list_volumes()
    except ENGINE_ERRORS as e:
        report.fatal("Failed to enumerate volumes: %s", e)

    for volume in volumes:
        if volume.name == name:
            return volume
    return None


def run_container_cmd(
    client: EngineAPI,
    volume: str,
    image: str,
    command: Sequence[str],
    report: SanityReport,
    addr: str = "",
    remove: bool = True,
    mount_root: str = DEFAULT_MOUNT_LOCATION,
) -> int:
    """
    Run a command in a new container with the volume mounted and return
    its exit code. Create, start, wait and remove failures are fatal.
    """
    mount_point = get_mountpoint(volume, mount_root)
    bind = f"{volume}:{mount_point}"
    report.log(
        "Running cmd=%s with vol=%s on client %s",
        list(command),
        volume,
        addr or client.address,
    )

    try:
        container_id = client.create_container(
            image, list(command), volumes=[mount_point], binds=[bind]
        )
    except ENGINE_ERRORS as e:
        report.fatal("Container create failed: %s", e)

    try:
        client.start_container(container_id)
    except ENGINE_ERRORS as e:
        report.fatal("Container start failed: id=%s, err %s", container_id, e)

    try:
        code = client.wait_container(container_id)
    except ENGINE_ERRORS as e:
        report.fatal("Container wait failed: id=%s, err %s", container_id, e)

    if not remove:
        report.log(
            "Skipping container removal, id=%s (remove_containers is off)",
            container_id,
        )
        return code

    try:
        client.remove_container(container_id, force=True, remove_volumes=True)
    except ENGINE_ERRORS as e:
        report.fatal("Container removal failed: %s", e)

    return code


def run_cases(
    client: EngineAPI,
    volume: str,
    cases: Iterable[ContainerCase],
    report: SanityReport,
    addr: str = "",
    remove: bool = True,
    mount_root: str = DEFAULT_MOUNT_LOCATION,
) -> None:
    """Run each case in order; an unexpected exit code is recorded, not fatal."""
    for case in cases:
        code = run_container_cmd(
            client,
            volume,
            case.image,
            case.command,
            report,
            addr=addr,
            remove=remove,
            mount_root=mount_root,
        )
        if code != case.expected:
            report.error(
                "Expected %d, got %d (cmd: %s)", case.expected, code, list(case.command)
            )


def check_touch(
    client: EngineAPI,
    volume: str,
    filename: str,
    report: SanityReport,
    addr: str = "",
    image: str = DEFAULT_IMAGE,
    remove: bool = True,
    mount_root: str = DEFAULT_MOUNT_LOCATION,
) -> None:
    """
    Check that a file touched in one container can be stat'ed from
    another container using the same volume.
    """
    run_cases(
        client,
        volume,
        touch_cases(volume, filename, image, mount_root),
        report,
        addr=addr,
        remove=remove,
        mount_root=mount_root,
    )


def verify_volume_present(
    endpoints: Iterable[Endpoint], name: str, driver: str, report: SanityReport
) -> None:
    for endpoint in endpoints:
        volume = volume_exists(endpoint.client, name, report)
        if volume is None:
            report.fatal(
                "Volume=%s is missing on %s after create", name, endpoint.address
            )
        if volume.driver != driver:
            report.fatal("wrong driver (%s) for volume %s", volume.driver, volume.name)


def verify_volume_absent(
    endpoints: Iterable[Endpoint], name: str, report: SanityReport
) -> None:
    for endpoint in endpoints:
        if volume_exists(endpoint.client, name, report) is not None:
            report.error(
                "Volume=%s is still present on %s after removal",
                name,
                endpoint.address,
            )


def ensure_image(
    client: EngineAPI, image: str, report: SanityReport, addr: str = ""
) -> None:
    """Pull the test image on the endpoint unless it is already there."""
    try:
        if client.image_exists(image):
            return
        report.log("Image %s not found on %s, pulling...", image, addr or client.address)
        PullProgress(client.pull_image(image), description=f"pull {image}").consume()
    except ENGINE_ERRORS as e:
        report.fatal("Failed to pull image %s, err: %s", image, e)


def run_sanity(
    config: SanityConfig, endpoints: Sequence[Endpoint] | None = None
) -> SanityReport:
    """
    Run the whole sanity sequence against the configured endpoints.

    Args:
        config: The run configuration.
        endpoints: Already connected endpoints; the first is the master.
            When omitted, `config.endpoints` are connected.

    Returns:
        The report; `report.passed` tells whether every check held.
    """
    report = SanityReport()
    report.log("Running tests on %s (may take a while)...", config.endpoint1)

    try:
        if endpoints is None:
            endpoints = connect_endpoints(config, report)
        master = endpoints[0]

        if config.pull_image:
            ensure_image(master.client, config.image, report, master.address)

        report.log("Creating vol=%s on client %s.", config.volume_name, master.address)
        create_volume(
            master.client,
            config.volume_name,
            config.driver,
            config.driver_opts,
            report,
        )
        # A same-named volume under another driver invalidates the run
        verify_volume_present([master], config.volume_name, config.driver, report)

        check_touch(
            master.client,
            config.volume_name,
            config.touch_file,
            report,
            addr=master.address,
            image=config.image,
            remove=config.remove_containers,
            mount_root=config.mount_location,
        )

        verify_volume_present(endpoints, config.volume_name, config.driver, report)

        remove_volume(master.client, config.volume_name, report)

        verify_volume_absent(endpoints, config.volume_name, report)
    except FatalSanityError:
        logger.error("Sanity run aborted")

    return report
