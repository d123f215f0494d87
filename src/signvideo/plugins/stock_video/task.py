"""Stock video processor implementation."""

import asyncio
import random
from typing import override

from loguru import logger

from ...common.errors import ProcessingError
from ...common.video_processor import VideoProcessor
from ...utils.profiling import timed
from .schema import StockVideoConfig


class StockVideoProcessor(VideoProcessor):
    """Stand-in for a real sign language model.

    Waits for the configured delay, then returns one of the candidate URLs.
    Pass a seeded random.Random to make the pick deterministic.
    """

    def __init__(
        self,
        config: StockVideoConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.config: StockVideoConfig = config if config is not None else StockVideoConfig()
        self.rng: random.Random = rng if rng is not None else random.Random()

    @property
    @override
    def processor_type(self) -> str:
        return "stock_video"

    @override
    @timed
    async def run(self, text: str) -> str:
        if not self.config.candidates:
            raise ProcessingError("No stock videos configured")

        await asyncio.sleep(self.config.delay_seconds)

        video_url = self.rng.choice(self.config.candidates)
        logger.debug(f"Picked {video_url} for {len(text)} chars of text")
        return video_url
