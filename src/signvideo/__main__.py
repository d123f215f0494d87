"""Command line entry point: run the server or generate a video against one."""

import argparse
import asyncio

import uvicorn
from loguru import logger

from .app import configure_logging, create_app
from .client import VideoStatusPoller
from .common.errors import SignVideoError
from .common.schema_job_record import JobStatus, JobStatusResponse
from .config import Settings


def _serve(settings: Settings) -> int:
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


async def _generate(settings: Settings, url: str, text: str) -> int:
    def report(status: JobStatusResponse) -> None:
        logger.info(f"status: {status.status.value}")

    async with VideoStatusPoller(url, interval=settings.poll_interval, on_update=report) as poller:
        result = await poller.generate(text)

    if result.status == JobStatus.completed:
        print(result.video_url)
        return 0
    logger.error("Video generation failed")
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="signvideo")
    sub = parser.add_subparsers(dest="command", required=True)

    _ = sub.add_parser("serve", help="Run the HTTP service")

    gen = sub.add_parser("generate", help="Submit text and wait for the video URL")
    _ = gen.add_argument("text")
    _ = gen.add_argument("--url", default=None, help="Service base URL (default: from settings)")

    args = parser.parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        return _serve(settings)

    url = args.url or f"http://{settings.host}:{settings.port}"
    try:
        return asyncio.run(_generate(settings, url, args.text))
    except SignVideoError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
