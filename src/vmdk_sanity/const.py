"""
Constants for the vmdk sanity checker.
"""

# Engine remote API version every request is pinned to
API_VERSION = "v1.22"

# Volume driver under test
DRIVER_NAME = "vmdk"

# Default endpoint: the local engine socket
DOCKER_USOCKET = "unix:///var/run/docker.sock"

# In-container directory volumes are mounted under
DEFAULT_MOUNT_LOCATION = "/mnt/vol"

DEFAULT_VOLUME_NAME = "TestVol"

# Image used to run the touch/stat checks
DEFAULT_IMAGE = "busybox"

DEFAULT_TOUCH_FILE = "file_to_touch"

DEFAULT_HEADERS = {"User-Agent": "engine-api-client-1.0"}

# Options handed to the driver when the test volume is created
DEFAULT_DRIVER_OPTS = {"size": "1gb", "policy": "good"}

# Timeout for the connection probe (in seconds); other calls block
PING_TIMEOUT = 10
