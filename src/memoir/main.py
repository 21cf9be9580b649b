"""memoir-process command-line interface.

Usage:
    memoir-process submit <audio-url>... --title T --description D [--watch]
    memoir-process watch <session-id> [--interval S] [--max-duration S]
    memoir-process status <session-id>
"""

# main lives at the outermost layer (not in core)
# Configures logging, builds the service and renders progress

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from memoir.core.exceptions import BackendAiServiceError
from memoir.core.logging_config import configure_logging
from memoir.core.models.results import ProcessingResults
from memoir.core.models.session import ProcessingSession
from memoir.core.services.processing_service import ProcessingService, create_service
from memoir.core.settings import app_settings, logger

console = Console()


class RichProgressObserver:
    """Renders each progress snapshot on a rich progress bar."""

    def __init__(self, progress: Progress, session_id: str):
        self._progress = progress
        self._task = progress.add_task(session_id, total=100)

    def on_progress(self, session: ProcessingSession) -> None:
        self._progress.update(
            self._task,
            completed=session.progress_percentage,
            description=f"[{session.pipeline_stage()}] {session.current_stage} - {session.current_task}",
        )


def _print_results(results: ProcessingResults) -> None:
    summary = results.processing_summary
    console.print(f"[bold green]Completed[/]: {len(results.chapters)} chapters, "
                  f"{len(results.followup_questions)} follow-up questions")
    for chapter in results.chapters:
        console.print(
            f"  - {chapter.title or chapter.id}: {chapter.word_count} words, "
            f"~{chapter.estimated_reading_time} min"
        )
    if summary.total_processing_time:
        console.print(f"Processing time: {summary.total_processing_time}")


async def _watch(service: ProcessingService, session_id: str, args: argparse.Namespace) -> ProcessingResults:
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        handle = service.start_monitoring(
            session_id,
            RichProgressObserver(progress, session_id),
            poll_interval=args.interval,
            max_duration=args.max_duration,
        )
        return await handle


async def cmd_submit(service: ProcessingService, args: argparse.Namespace) -> None:
    session_id = await service.submit(args.audio_urls, args.title, args.description, args.preferences)
    console.print(f"Session: [bold]{session_id}[/]")
    if args.watch:
        _print_results(await _watch(service, session_id, args))


async def cmd_watch(service: ProcessingService, args: argparse.Namespace) -> None:
    _print_results(await _watch(service, args.session_id, args))


async def cmd_status(service: ProcessingService, args: argparse.Namespace) -> None:
    session = await service.get_status(args.session_id)
    console.print_json(session.model_dump_json())


def json_object(value: str) -> dict:
    """argparse type for a JSON object given on the command line."""
    try:
        parsed = json.loads(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid JSON: {exc}")
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="memoir-process", description="Run audio chapters through the AI pipeline")
    parser.add_argument("--log-level", default=app_settings.MEMOIR_LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    def add_poll_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("--interval", type=float, default=None, help="Seconds between status polls")
        p.add_argument("--max-duration", type=float, default=None, help="Give up after this many seconds")

    submit = sub.add_parser("submit", help="Submit recordings for processing")
    submit.add_argument("audio_urls", nargs="+")
    submit.add_argument("--title", required=True)
    submit.add_argument("--description", required=True)
    submit.add_argument("--preferences", type=json_object, default={}, help="JSON object of user preferences")
    submit.add_argument("--watch", action="store_true", help="Monitor until completion")
    add_poll_options(submit)
    submit.set_defaults(handler=cmd_submit)

    watch = sub.add_parser("watch", help="Monitor an existing session")
    watch.add_argument("session_id")
    add_poll_options(watch)
    watch.set_defaults(handler=cmd_watch)

    status = sub.add_parser("status", help="Print the current status of a session")
    status.add_argument("session_id")
    status.set_defaults(handler=cmd_status)
    return parser


async def run(args: argparse.Namespace) -> int:
    async with create_service(app_settings) as service:
        try:
            await args.handler(service, args)
        except BackendAiServiceError as exc:
            logger.error("Processing failed: %s", exc.message)
            console.print(f"[bold red]{type(exc).__name__}[/]: {exc.message}")
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger.set_level(args.log_level)
    app_settings.print_settings(logger)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
