"""Stock video processor configuration."""

from pydantic import BaseModel, Field

DEFAULT_STOCK_VIDEOS: tuple[str, ...] = (
    "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
    "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ElephantsDream.mp4",
)


class StockVideoConfig(BaseModel):
    """Parameters for the stock video processor.

    Attributes:
        delay_seconds: Simulated generation time before a clip is picked
        candidates: URLs to choose from, uniformly at random
    """

    delay_seconds: float = Field(default=3.0, ge=0, description="Simulated processing time in seconds")
    candidates: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STOCK_VIDEOS),
        description="Video URLs returned by the processor",
    )
