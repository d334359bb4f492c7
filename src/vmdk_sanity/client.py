import http.client
import json
import logging
import urllib.parse
from typing import Any, Generator

from .const import API_VERSION, DEFAULT_HEADERS, PING_TIMEOUT
from .exceptions import DockerException
from .models import Volume
from .transport import open_connection

logger = logging.getLogger(__name__)


def split_image(image: str) -> tuple[str, str]:
    """Split "repo[:tag]" into (repo, tag), defaulting the tag to "latest"."""
    repo, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return image, "latest"
    return repo, tag


class EngineClient:
    """
    A session to one container-engine endpoint.

    Every request is pinned to a single remote API version and carries
    the same header set. Connections are opened per request and closed
    afterwards; calls block until the engine answers.
    """

    def __init__(
        self,
        address: str,
        api_version: str = API_VERSION,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.address = address
        self.api_version = api_version
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)

    def __repr__(self) -> str:
        return f"<EngineClient: {self.address} ({self.api_version})>"

    def _path(self, endpoint: str) -> str:
        return f"/{self.api_version}{endpoint}"

    def _send(
        self,
        method: str,
        endpoint: str,
        body: Any | None = None,
        timeout: float | None = None,
    ) -> tuple[http.client.HTTPConnection, http.client.HTTPResponse]:
        conn = open_connection(self.address, timeout=timeout)
        headers = dict(self.headers)

        if body is not None:
            payload: str | None = json.dumps(body)
            headers["Content-Type"] = "application/json"
            headers["Content-Length"] = str(len(payload))
        else:
            payload = None

        headers["Connection"] = "close"

        path = self._path(endpoint)
        logger.debug("%s %s", method, path)
        try:
            conn.request(method, path, body=payload, headers=headers)
            return conn, conn.getresponse()
        except BaseException:
            conn.close()
            raise

    def _request(
        self,
        method: str,
        endpoint: str,
        body: Any | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Helper to send a request to the endpoint and decode the reply."""
        conn, response = self._send(method, endpoint, body=body, timeout=timeout)
        try:
            data = response.read().decode("utf-8")

            if response.status < 400:
                if not data:
                    return None
                try:
                    return json.loads(data)
                except json.JSONDecodeError:
                    return data

            raise DockerException(
                f"Docker API Error ({response.status}): {data.strip()}",
                status_code=response.status,
            )
        finally:
            conn.close()

    def _stream_json_response(
        self, conn: http.client.HTTPConnection, response: http.client.HTTPResponse
    ) -> Generator[dict[str, Any], None, None]:
        """
        Helper to stream JSON objects from an engine API response.
        Yields decoded JSON objects.
        """
        try:
            if response.status >= 400:
                data = response.read().decode("utf-8")
                raise DockerException(
                    f"Docker API Error ({response.status}): {data.strip()}",
                    status_code=response.status,
                )

            while True:
                line = response.readline()
                if not line:
                    break

                line_str = line.decode("utf-8").strip()
                if not line_str:
                    continue

                try:
                    obj = json.loads(line_str)
                except json.JSONDecodeError:
                    logger.warning("Failed to decode JSON from stream: %s", line_str)
                    continue
                if "error" in obj:
                    raise DockerException(f"Stream Error: {obj['error']}")
                yield obj
        finally:
            response.close()
            conn.close()

    def ping(self) -> None:
        """
        Check that the endpoint answers.
        API: GET /_ping
        """
        self._request("GET", "/_ping", timeout=PING_TIMEOUT)

    def create_volume(
        self, name: str, driver: str, driver_opts: dict[str, str] | None = None
    ) -> Volume:
        """
        Create a volume.
        Equivalent to: docker volume create
        """
        logger.debug("Creating volume %s (driver=%s)...", name, driver)
        payload = {"Name": name, "Driver": driver, "DriverOpts": driver_opts or {}}
        res = self._request("POST", "/volumes/create", body=payload)
        return Volume(res if isinstance(res, dict) else {"Name": name})

    def list_volumes(self) -> list[Volume]:
        """
        List volumes.
        Equivalent to: docker volume ls
        """
        data = self._request("GET", "/volumes") or {}
        volumes = data.get("Volumes") or []
        return [Volume(v) for v in volumes]

    def remove_volume(self, name: str) -> None:
        """
        Remove a volume.
        Equivalent to: docker volume rm
        """
        logger.debug("Removing volume %s...", name)
        self._request("DELETE", "/volumes/" + urllib.parse.quote(name, safe=""))

    def create_container(
        self,
        image: str,
        command: list[str],
        volumes: list[str] | None = None,
        binds: list[str] | None = None,
    ) -> str:
        """
        Create (but do not start) a container.
        Equivalent to: docker create
        API: POST /containers/create

        Args:
            image: Image to use
            command: Command argument list
            volumes: In-container paths declared as volumes
            binds: Bind specs, e.g. ["TestVol:/mnt/vol/TestVol"]

        Returns:
            The new container's id.
        """
        payload: dict[str, Any] = {
            "Image": image,
            "Cmd": list(command),
            "Volumes": {path: {} for path in volumes or []},
            "HostConfig": {"Binds": list(binds or [])},
        }
        res = self._request("POST", "/containers/create", body=payload)
        if not isinstance(res, dict) or not res.get("Id"):
            raise DockerException(f"Malformed container create reply: {res!r}")
        container_id: str = res["Id"]
        for warning in res.get("Warnings") or []:
            logger.warning("Container %s: %s", container_id[:12], warning)
        return container_id

    def start_container(self, container_id: str) -> None:
        """
        Start a container.
        Equivalent to: docker start
        """
        logger.debug("Starting container %s...", container_id[:12])
        self._request("POST", f"/containers/{container_id}/start")

    def wait_container(self, container_id: str) -> int:
        """
        Block until a container stops and return its exit code.
        Equivalent to: docker wait
        """
        logger.debug("Waiting for container %s...", container_id[:12])
        res = self._request("POST", f"/containers/{container_id}/wait")
        try:
            return int(res["StatusCode"])
        except (KeyError, TypeError, ValueError):
            raise DockerException(f"Malformed container wait reply: {res!r}")

    def remove_container(
        self, container_id: str, force: bool = False, remove_volumes: bool = False
    ) -> None:
        """
        Remove a container.
        Equivalent to: docker rm
        """
        logger.debug("Removing container %s...", container_id[:12])
        params = {}
        if force:
            params["force"] = "1"
        if remove_volumes:
            params["v"] = "1"

        endpoint = f"/containers/{container_id}"
        if params:
            endpoint += f"?{urllib.parse.urlencode(params)}"
        self._request("DELETE", endpoint)

    def image_exists(self, image: str) -> bool:
        """
        Check whether an image is present on the endpoint.
        Equivalent to: docker image inspect
        """
        repo, tag = split_image(image)
        try:
            self._request("GET", f"/images/{repo}:{tag}/json")
        except DockerException as e:
            if e.status_code == 404:
                return False
            raise
        return True

    def pull_image(self, image: str) -> Generator[dict[str, Any], None, None]:
        """
        Pull an image.
        Equivalent to: docker pull

        Yields:
            dict: Progress objects from the engine
        """
        repo, tag = split_image(image)
        logger.debug("Pulling %s:%s...", repo, tag)
        query = urllib.parse.urlencode({"fromImage": repo, "tag": tag})
        conn, response = self._send("POST", f"/images/create?{query}")
        yield from self._stream_json_response(conn, response)
