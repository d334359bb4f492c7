import logging
from typing import List, NoReturn

from .exceptions import FatalSanityError

logger = logging.getLogger(__name__)


class SanityReport:
    """
    Collects the outcome of a sanity run.

    `error` records a failure and lets the run continue; `fatal` records
    it and raises `FatalSanityError`. The run passed only if nothing was
    recorded either way.
    """

    def __init__(self) -> None:
        self.failures: List[str] = []
        self.aborted = False

    def log(self, msg: str, *args: object) -> None:
        logger.info(msg, *args)

    def error(self, msg: str, *args: object) -> None:
        message = msg % args if args else msg
        logger.error(message)
        self.failures.append(message)

    def fatal(self, msg: str, *args: object) -> NoReturn:
        message = msg % args if args else msg
        logger.error(message)
        self.failures.append(message)
        self.aborted = True
        raise FatalSanityError(message)

    @property
    def passed(self) -> bool:
        return not self.failures and not self.aborted

    def summary(self) -> str:
        if self.passed:
            return "PASS"
        state = "aborted" if self.aborted else "completed"
        return f"FAIL ({len(self.failures)} failure(s), run {state})"
