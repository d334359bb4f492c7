import logging
from typing import Any, Dict, Iterable, List

from tqdm import tqdm

logger = logging.getLogger(__name__)


class PullProgress:
    """
    Handles image pull events from the engine and displays a progress bar.
    """

    def __init__(
        self,
        events: Iterable[Dict[str, Any]],
        description: str = "pull",
        disable: bool | None = None,
    ) -> None:
        self.events = events
        self.description = description
        self.disable = disable
        # Last event seen per layer id
        self.layers: Dict[str, Dict[str, Any]] = {}

    def consume(self) -> List[Dict[str, Any]]:
        """
        Consumes the events, updating the bar as layers change status, and
        returns the collected events.
        """
        collected: List[Dict[str, Any]] = []
        with tqdm(
            desc=self.description, unit="layer", disable=self.disable, leave=False
        ) as bar:
            for event in self.events:
                collected.append(event)
                if self._handle_event(event):
                    bar.update(1)
                bar.set_postfix_str(event.get("status", ""), refresh=False)
        return collected

    def _handle_event(self, event: Dict[str, Any]) -> bool:
        """
        Log a single event; returns True when a layer finished.
        """
        if "status" not in event:
            return False

        layer_id = event.get("id")
        status = event["status"]

        if not layer_id:
            logger.info(status)
            return False

        prev_event = self.layers.get(layer_id)
        prev_status = prev_event.get("status") if prev_event else None
        self.layers[layer_id] = event

        # Only log status changes, not every download percentage
        if status == prev_status:
            return False

        logger.debug("%s: %s", layer_id, status)
        return status in ("Pull complete", "Already exists")
