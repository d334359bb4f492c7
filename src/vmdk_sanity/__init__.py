"""Sanity checks for the vmdk volume driver.

This package drives one or two container-engine endpoints through a
volume create / mount / remove cycle and reports what did not hold.
"""

from .client import EngineClient
from .config import SanityConfig
from .exceptions import DockerException, FatalSanityError, SanityFailure
from .models import ContainerCase, Volume
from .report import SanityReport
from .sanity import run_sanity

__all__ = [
    "EngineClient",
    "SanityConfig",
    "DockerException",
    "FatalSanityError",
    "SanityFailure",
    "ContainerCase",
    "Volume",
    "SanityReport",
    "run_sanity",
]

import logging
import sys

# Configure logging for the entire package
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Only add handler if none exists to avoid duplicates
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
