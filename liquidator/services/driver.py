"""Epoch driver — runs the liquidation scanner forever."""
from __future__ import annotations

import asyncio
import logging
import time

from ..models import EpochStats
from .scanner import LiquidationScanner

logger = logging.getLogger(__name__)


class EpochDriver:
    """Runs one scanner epoch after another with a fixed delay in between."""

    def __init__(self, scanner: LiquidationScanner, throttle_seconds: float = 0.0) -> None:
        self._scanner = scanner
        self._throttle = throttle_seconds

    async def run_once(self, epoch: int) -> EpochStats | None:
        """Run a single epoch; failures are logged and yield None."""
        try:
            return await self._scanner.run_epoch(epoch)
        except Exception as e:
            logger.error("Epoch %d aborted: %s", epoch, e)
            return None

    async def run(self, max_epochs: int | None = None) -> None:
        """Run epochs until ``max_epochs`` is reached, or forever when None."""
        start = time.monotonic()
        logger.info(
            "Starting liquidator (throttle %.1fs between epochs)", self._throttle
        )

        epoch = 0
        while max_epochs is None or epoch < max_epochs:
            logger.info("Epoch %d: %.1fs since start", epoch, time.monotonic() - start)
            await self.run_once(epoch)
            epoch += 1

            if max_epochs is not None and epoch >= max_epochs:
                break
            if self._throttle > 0:
                await asyncio.sleep(self._throttle)
