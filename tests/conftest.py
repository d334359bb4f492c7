import itertools
import json
from typing import Any, Generator

import pytest

from vmdk_sanity import SanityConfig
from vmdk_sanity.exceptions import DockerException
from vmdk_sanity.models import Volume
from vmdk_sanity.sanity import Endpoint


class FakeBackend:
    """Storage shared by fake engines, like a datastore seen from several hosts."""

    def __init__(self) -> None:
        self.volumes: dict[str, dict[str, Any]] = {}
        # volume name -> files written through it
        self.files: dict[str, set[str]] = {}


class FakeEngine:
    """In-memory engine that runs `touch` and `stat` against the backend."""

    _ids = itertools.count(1)

    def __init__(self, address: str, backend: FakeBackend) -> None:
        self.address = address
        self.backend = backend
        self.containers: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple] = []
        self.images = {"busybox"}
        self.fail_on: dict[str, Exception] = {}
        # volume names this engine does not report, to simulate a lagging host
        self.hidden: set[str] = set()
        self.exit_override: dict[str, int] = {}

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def ping(self) -> None:
        self._call("ping")

    def create_volume(self, name, driver, driver_opts=None):
        self._call("create_volume", name, driver, dict(driver_opts or {}))
        attrs = self.backend.volumes.setdefault(
            name, {"Name": name, "Driver": driver, "Options": driver_opts or {}}
        )
        self.backend.files.setdefault(name, set())
        return Volume(attrs)

    def list_volumes(self):
        self._call("list_volumes")
        return [
            Volume(attrs)
            for name, attrs in self.backend.volumes.items()
            if name not in self.hidden
        ]

    def remove_volume(self, name):
        self._call("remove_volume", name)
        if name not in self.backend.volumes:
            raise DockerException("Docker API Error (404): no such volume", 404)
        del self.backend.volumes[name]
        self.backend.files.pop(name, None)

    def create_container(self, image, command, volumes=None, binds=None):
        self._call("create_container", image, list(command), volumes, binds)
        container_id = f"{next(self._ids):064x}"
        self.containers[container_id] = {
            "image": image,
            "command": list(command),
            "binds": list(binds or []),
        }
        return container_id

    def start_container(self, container_id):
        self._call("start_container", container_id)

    def wait_container(self, container_id):
        self._call("wait_container", container_id)
        container = self.containers[container_id]
        verb, path = container["command"][0], container["command"][1]
        if verb in self.exit_override:
            return self.exit_override[verb]

        for bind in container["binds"]:
            volume, mount_point = bind.split(":", 1)
            if not path.startswith(mount_point + "/"):
                continue
            files = self.backend.files.get(volume)
            if files is None:
                return 1
            relative = path[len(mount_point) + 1 :]
            if verb == "touch":
                files.add(relative)
                return 0
            if verb == "stat":
                return 0 if relative in files else 1
        return 1

    def remove_container(self, container_id, force=False, remove_volumes=False):
        self._call("remove_container", container_id, force, remove_volumes)
        del self.containers[container_id]

    def image_exists(self, image):
        self._call("image_exists", image)
        return image in self.images

    def pull_image(self, image) -> Generator[dict[str, Any], None, None]:
        self._call("pull_image", image)
        yield {"status": f"Pulling from library/{image}", "id": "latest"}
        yield {"status": "Pulling fs layer", "id": "abc123"}
        yield {"status": "Pull complete", "id": "abc123"}
        self.images.add(image)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeResponse:
    def __init__(self, status: int, body: Any = b"") -> None:
        self.status = status
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode()
        elif isinstance(body, str):
            body = body.encode()
        self._lines = body.splitlines(keepends=True)
        self._body = body
        self.closed = False

    def read(self) -> bytes:
        return self._body

    def readline(self) -> bytes:
        return self._lines.pop(0) if self._lines else b""

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """Stands in for http.client connections; replies with queued responses."""

    def __init__(self, responses: list[FakeResponse]) -> None:
        self.responses = responses
        self.requests: list[dict[str, Any]] = []
        self.closed = 0

    def request(self, method, path, body=None, headers=None):
        self.requests.append(
            {
                "method": method,
                "path": path,
                "body": json.loads(body) if body else None,
                "headers": dict(headers or {}),
            }
        )

    def getresponse(self):
        return self.responses.pop(0)

    def close(self):
        self.closed += 1


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def engines(backend: FakeBackend) -> list[FakeEngine]:
    return [FakeEngine("tcp://host1:2375", backend), FakeEngine("tcp://host2:2375", backend)]


@pytest.fixture
def endpoints(engines: list[FakeEngine]) -> list[Endpoint]:
    return [Endpoint(engine.address, engine) for engine in engines]


@pytest.fixture
def config() -> SanityConfig:
    return SanityConfig(endpoint1="tcp://host1:2375", endpoint2="tcp://host2:2375")


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch):
    """Route EngineClient connections to a FakeConnection; queue replies on it."""
    conn = FakeConnection([])
    opened: list[tuple[str, float | None]] = []

    def _open(address: str, timeout: float | None = None) -> FakeConnection:
        opened.append((address, timeout))
        return conn

    monkeypatch.setattr("vmdk_sanity.client.open_connection", _open)
    conn.opened = opened
    return conn


@pytest.fixture
def reply():
    """Build a FakeResponse: reply(status, body)."""
    return FakeResponse


@pytest.fixture
def engine_factory(backend: FakeBackend):
    """Factory with EngineClient's signature that hands out FakeEngines."""
    made: list[FakeEngine] = []

    def _factory(address, api_version, headers):
        engine = FakeEngine(address, backend)
        engine.api_version = api_version
        engine.headers = headers
        made.append(engine)
        return engine

    _factory.made = made
    return _factory
