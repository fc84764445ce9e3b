"""Command-line interface for Dictum."""

import argparse
import logging
import signal
import sys
import threading
import wave
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from dictum.config import Settings, get_settings
from dictum.events import (
    MODEL_DOWNLOAD_PROGRESS,
    MODEL_EXTRACTION_FAILED,
    MODEL_EXTRACTION_STARTED,
    EventSink,
)
from dictum.exceptions import DictumError, OperationCancelledError
from dictum.models.catalog import ModelCatalog
from dictum.models.descriptors import ModelDescriptor

console = Console()

DEFAULT_CONFIG_PATH = Path("./settings.yml")


class SignalHandler:
    """Turns SIGINT/SIGTERM into a cancel event for long operations."""

    def __init__(self) -> None:
        self.cancel = threading.Event()

    def __call__(self, signum: int, frame: object) -> None:
        self.cancel.set()

    def install(self) -> None:
        """Install signal handlers for SIGINT and SIGTERM."""
        signal.signal(signal.SIGINT, self)
        signal.signal(signal.SIGTERM, self)

    def should_stop(self) -> bool:
        """Check if stop was requested."""
        return self.cancel.is_set()


class ProgressEventSink:
    """Mirrors download and extraction events onto a rich progress bar."""

    def __init__(self, progress: Progress, task_id: TaskID) -> None:
        self._progress = progress
        self._task_id = task_id

    def emit(self, event: str, payload: Any) -> None:
        if event == MODEL_DOWNLOAD_PROGRESS:
            total = payload["total"] or None
            self._progress.update(self._task_id, completed=payload["downloaded"], total=total)
        elif event == MODEL_EXTRACTION_STARTED:
            self._progress.update(self._task_id, description="Extracting")
        elif event == MODEL_EXTRACTION_FAILED:
            self._progress.update(self._task_id, description="Extraction failed")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _config_path(args: argparse.Namespace) -> Path:
    return Path(args.config) if args.config else DEFAULT_CONFIG_PATH


def _load_settings(args: argparse.Namespace) -> Settings | None:
    try:
        return get_settings(_config_path(args))
    except DictumError as e:
        console.print(f"[red]Error:[/red] {e}")
        return None


def _open_catalog(settings: Settings, events: EventSink | None = None) -> ModelCatalog | None:
    """Build the catalog, or print the error and return None."""
    try:
        return ModelCatalog.from_settings(settings, events=events)
    except DictumError as e:
        console.print(f"[red]Error opening models directory:[/red] {e}")
        return None


def _status_label(model: ModelDescriptor) -> str:
    if model.is_remote:
        return "[blue]remote[/blue]"
    if model.downloaded:
        return "[green]downloaded[/green]"
    if model.partial_size:
        return f"[yellow]partial ({model.partial_size / 1_048_576:.0f} MB)[/yellow]"
    return "[dim]-[/dim]"


def cmd_models(args: argparse.Namespace) -> int:
    """List known models and their download status."""
    settings = _load_settings(args)
    if settings is None:
        return 1
    previous = settings.transcription.selected_model
    catalog = _open_catalog(settings)
    if catalog is None:
        return 1

    if settings.transcription.selected_model != previous:
        try:
            settings.save(_config_path(args))
        except DictumError as e:
            console.print(f"[yellow]Warning:[/yellow] {e}")

    table = Table(title="Transcription Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Engine")
    table.add_column("Size", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Speed", justify="right")
    table.add_column("Status")
    table.add_column("", justify="center")

    current = settings.transcription.selected_model
    for model in catalog.list():
        engine = model.backend.value if model.is_remote else model.engine_type.value
        table.add_row(
            model.id,
            model.name,
            engine,
            f"{model.size_mb} MB" if model.size_mb else "-",
            f"{model.accuracy_score:.2f}",
            f"{model.speed_score:.2f}",
            _status_label(model),
            "★" if model.id == current else "",
        )

    console.print(table)
    console.print("\n[dim]★ = selected model[/dim]")
    return 0


def cmd_select(args: argparse.Namespace) -> int:
    """Set the selected model in the settings file."""
    settings = _load_settings(args)
    if settings is None:
        return 1
    catalog = _open_catalog(settings)
    if catalog is None:
        return 1

    try:
        model = catalog.get(args.model_id)
        settings.transcription.selected_model = model.id
        settings.save(_config_path(args))
    except DictumError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    console.print(f"[green]✓ Selected:[/green] {model.name}")
    return 0


def cmd_download(args: argparse.Namespace) -> int:
    """Download (or resume) a model."""
    settings = _load_settings(args)
    if settings is None:
        return 1

    sig_handler = SignalHandler()
    sig_handler.install()

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Downloading", total=None)
        catalog = _open_catalog(settings, events=ProgressEventSink(progress, task_id))
        if catalog is None:
            return 1
        try:
            catalog.download(args.model_id, cancel=sig_handler.cancel)
        except OperationCancelledError:
            catalog.cancel(args.model_id)
            console.print("\n[yellow]Download paused. Run the command again to resume.[/yellow]")
            return 130
        except DictumError as e:
            console.print(f"[red]Download failed:[/red] {e}")
            return 1
        finally:
            catalog.close()

    console.print(f"[green]✓ Downloaded:[/green] {args.model_id}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a model's files."""
    settings = _load_settings(args)
    if settings is None:
        return 1
    catalog = _open_catalog(settings)
    if catalog is None:
        return 1

    try:
        catalog.delete(args.model_id)
    except DictumError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    console.print(f"[green]✓ Deleted:[/green] {args.model_id}")
    return 0


def cmd_transcribe(args: argparse.Namespace) -> int:
    """Transcribe a WAV file with the selected (or given) model."""
    from dictum.audio import load_wav
    from dictum.events import LoggingEventSink
    from dictum.stt.orchestrator import TranscriptionOrchestrator

    audio_path = Path(args.audio_file)
    if not audio_path.exists():
        console.print(f"[red]Error:[/red] Audio file not found: {audio_path}")
        return 1

    settings = _load_settings(args)
    if settings is None:
        return 1
    if args.language:
        settings.transcription.selected_language = args.language
    if args.translate:
        settings.transcription.translate_to_english = True

    catalog = _open_catalog(settings)
    if catalog is None:
        return 1

    sig_handler = SignalHandler()
    sig_handler.install()

    orchestrator = TranscriptionOrchestrator(catalog, settings, events=LoggingEventSink())
    try:
        samples = load_wav(audio_path)
        with console.status("Loading model..."):
            if args.model:
                orchestrator.load(args.model)
            else:
                orchestrator.load_selected()
        with console.status("Transcribing..."):
            text = orchestrator.transcribe(samples, cancel=sig_handler.cancel)
    except OperationCancelledError:
        console.print("[yellow]Cancelled.[/yellow]")
        return 130
    except (DictumError, ValueError, wave.Error) as e:
        console.print(f"[red]Transcription error:[/red] {e}")
        return 1
    finally:
        orchestrator.close()
        catalog.close()

    console.print(text)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dictum",
        description="Dictation backend: manage models and transcribe audio",
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to settings file (default: ./settings.yml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    models_parser = subparsers.add_parser("models", help="List transcription models")
    models_parser.set_defaults(func=cmd_models)

    select_parser = subparsers.add_parser("select", help="Select the active model")
    select_parser.add_argument("model_id", help="Model ID")
    select_parser.set_defaults(func=cmd_select)

    download_parser = subparsers.add_parser(
        "download", help="Download a model (resumes partial downloads)"
    )
    download_parser.add_argument("model_id", help="Model ID")
    download_parser.set_defaults(func=cmd_download)

    delete_parser = subparsers.add_parser("delete", help="Delete a downloaded model")
    delete_parser.add_argument("model_id", help="Model ID")
    delete_parser.set_defaults(func=cmd_delete)

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe a WAV file")
    transcribe_parser.add_argument("audio_file", help="16-bit PCM WAV file")
    transcribe_parser.add_argument(
        "--model",
        "-m",
        help="Model ID (default: selected model)",
    )
    transcribe_parser.add_argument(
        "--language",
        "-l",
        help="Language code, or 'auto' to detect (default: from settings)",
    )
    transcribe_parser.add_argument(
        "--translate",
        action="store_true",
        help="Translate to English (local Whisper models only)",
    )
    transcribe_parser.set_defaults(func=cmd_transcribe)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
