import logging
from typing import List, Optional

import typer

from .config import SanityConfig
from .const import (
    DEFAULT_DRIVER_OPTS,
    DEFAULT_IMAGE,
    DEFAULT_VOLUME_NAME,
    DOCKER_USOCKET,
    DRIVER_NAME,
)
from .sanity import run_sanity

app = typer.Typer(help="Sanity checks for the vmdk volume driver")


def parse_opts(values: Optional[List[str]]) -> dict[str, str]:
    """Turn repeated KEY=VALUE flags into a driver options mapping."""
    if not values:
        return dict(DEFAULT_DRIVER_OPTS)

    opts = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {value!r}")
        opts[key] = val
    return opts


@app.command()
def sanity(
    host1: str = typer.Option(
        DOCKER_USOCKET,
        "-H1",
        "--host1",
        envvar="VMDK_SANITY_H1",
        help="Endpoint (Host1) to connect to; volumes are created here",
    ),
    host2: str = typer.Option(
        DOCKER_USOCKET,
        "-H2",
        "--host2",
        envvar="VMDK_SANITY_H2",
        help="Endpoint (Host2) to connect to",
    ),
    volume: str = typer.Option(
        DEFAULT_VOLUME_NAME,
        "-v",
        "--volume",
        envvar="VMDK_SANITY_VOLUME",
        help="Volume name to use in sanity tests",
    ),
    rm: bool = typer.Option(
        True, "--rm/--no-rm", envvar="VMDK_SANITY_RM", help="rm container after run"
    ),
    driver: str = typer.Option(DRIVER_NAME, "--driver", help="Volume driver under test"),
    opt: Optional[List[str]] = typer.Option(
        None, "-o", "--opt", help="Driver option KEY=VALUE (repeatable)"
    ),
    image: str = typer.Option(
        DEFAULT_IMAGE, "--image", help="Image used for touch/stat containers"
    ),
    pull: bool = typer.Option(
        True, "--pull/--no-pull", help="Pull the image on Host1 if it is missing"
    ),
    debug: bool = typer.Option(False, "--debug"),
):
    """Create a volume, mount it from containers, and check every endpoint sees it."""
    if debug:
        logging.getLogger("vmdk_sanity").setLevel(logging.DEBUG)

    try:
        config = SanityConfig(
            endpoint1=host1,
            endpoint2=host2,
            volume_name=volume,
            remove_containers=rm,
            driver=driver,
            driver_opts=parse_opts(opt),
            image=image,
            pull_image=pull,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))

    report = run_sanity(config)

    for failure in report.failures:
        typer.echo(f"  - {failure}")
    typer.secho(f"Sanity on {host1}: {report.summary()}", bold=True)

    raise typer.Exit(code=0 if report.passed else 1)


def main() -> None:
    app(prog_name="vmdk-sanity")
