import http.client
import logging
import socket
import urllib.parse

logger = logging.getLogger(__name__)


class UnixHttpConnection(http.client.HTTPConnection):
    """
    Custom HTTP Connection that connects to a Unix Socket
    instead of a TCP host:port.
    """

    def __init__(self, socket_path: str, timeout: float | None = None) -> None:
        super().__init__("localhost", timeout=timeout)
        self.socket_path = socket_path

    def connect(self) -> None:
        logger.debug("Connecting to socket path: %s", self.socket_path)
        if not hasattr(socket, "AF_UNIX"):
            raise NotImplementedError("Unix sockets not supported on this platform")
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        if self.timeout is not None:
            self.sock.settimeout(self.timeout)
        self.sock.connect(self.socket_path)


def parse_address(address: str) -> tuple[str, str, int | None]:
    """
    Split an endpoint address into (scheme, target, port).

    Accepted forms:
        unix:///var/run/docker.sock  -> ("unix", "/var/run/docker.sock", None)
        /var/run/docker.sock         -> ("unix", "/var/run/docker.sock", None)
        tcp://10.0.0.5:2375          -> ("tcp", "10.0.0.5", 2375)
        http://10.0.0.5:2375         -> ("tcp", "10.0.0.5", 2375)
    """
    if address.startswith("/"):
        return "unix", address, None

    parsed = urllib.parse.urlparse(address)
    if parsed.scheme == "unix":
        path = parsed.path or parsed.netloc
        if not path:
            raise ValueError(f"Missing socket path in address: {address}")
        return "unix", path, None

    if parsed.scheme in ("tcp", "http"):
        if not parsed.hostname:
            raise ValueError(f"Missing host in address: {address}")
        return "tcp", parsed.hostname, parsed.port or 2375

    raise ValueError(f"Unsupported endpoint address: {address}")


def open_connection(
    address: str, timeout: float | None = None
) -> http.client.HTTPConnection:
    """Return an unopened HTTP connection for the given endpoint address."""
    scheme, target, port = parse_address(address)
    if scheme == "unix":
        return UnixHttpConnection(target, timeout=timeout)
    return http.client.HTTPConnection(target, port, timeout=timeout)
