"""Bridge loop forwarding ARIA frames from the serial gateway to a channel."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from . import decoder
from .api import MessagingClient
from .exceptions import AuthError, MalformedFrameError, PublishError, SigningError
from .models import SensorFrame

_LOGGER = logging.getLogger(__name__)


@dataclass
class BridgeStats:
    """Counters of the frames handled by a bridge."""

    published: int = 0
    skipped: int = 0
    failed: int = 0


class AriaBridge:
    """Decode gateway lines and publish the resulting frames to one channel."""

    def __init__(self, client: MessagingClient, channel_id: str) -> None:
        self._client = client
        self._channel_id = channel_id
        self.stats = BridgeStats()

    def process_line(self, line: str) -> SensorFrame | None:
        """Decode and publish one gateway line.

        Malformed lines are skipped, auth and publish failures are logged.
        Neither stops the bridge.

        Returns:
            The published frame, or None if the line was skipped or the
            publish failed.

        Raises:
            SigningError: If the device key cannot sign assertions.

        """
        try:
            frame = decoder.decode(decoder.parse_frame_line(line))
        except MalformedFrameError as err:
            _LOGGER.debug("Skipping line: %s", err)
            self.stats.skipped += 1
            return None

        _LOGGER.debug("Decoded frame: %s", frame)

        try:
            self._client.publish_frame(self._channel_id, frame)
        except SigningError:
            raise
        except AuthError as err:
            _LOGGER.error("Access token update error (%s): %s", err.kind, err)
            self.stats.failed += 1
            return None
        except PublishError as err:
            _LOGGER.error("Publish error (%s): %s", err.kind, err)
            self.stats.failed += 1
            return None

        self.stats.published += 1
        _LOGGER.info(
            "Published frame %d from sender %s",
            frame.sequence_number,
            frame.sender_serial_id,
        )
        return frame

    def run(self, lines: Iterable[str]) -> BridgeStats:
        """Process lines until the source is exhausted."""
        _LOGGER.info("Forwarding ARIA frames to channel %s", self._channel_id)
        for line in lines:
            self.process_line(line)

        _LOGGER.info(
            "Line source exhausted: %d published, %d skipped, %d failed",
            self.stats.published,
            self.stats.skipped,
            self.stats.failed,
        )
        return self.stats
