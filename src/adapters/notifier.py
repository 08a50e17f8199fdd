"""Local notification delivery: one log record per reminder."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LogNotifier:
    async def notify(self, channel: str, message: str) -> None:
        logger.info("[%s] %s", channel, message)
