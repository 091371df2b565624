"""Command-line report: python -m dockstart [PATH] [--all] [--debug]."""

import json
from pathlib import Path

import structlog
import typer

from dockstart.core.config import get_settings
from dockstart.core.logging import configure_structlog
from dockstart.detector.registry import default_registry

log = structlog.get_logger("dockstart.cli")

app = typer.Typer(
    name="dockstart",
    help="Detect a project's language, runtime and auxiliary services.",
    add_completion=False,
)


@app.command()
def detect(
    path: Path = typer.Argument(Path("."), help="Project directory to analyze"),
    show_all: bool = typer.Option(False, "--all", help="Print every detection, not just the primary one"),
    debug: bool = typer.Option(False, "--debug", help="Human-readable debug logging"),
) -> None:
    """Print the detection result for PATH as JSON."""
    settings = get_settings()
    debug = debug or settings.debug
    configure_structlog(debug=debug, level=None if debug else settings.log_level)

    if not path.is_dir():
        typer.secho(f"Error: {path} is not a directory", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    log.debug("analyze_start", path=str(path), disabled=settings.disabled_detectors)
    project = default_registry(settings).analyze(path)

    if project.detection is None:
        typer.secho(f"No supported project found in {project.path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    log.debug("analyze_done", primary=project.detection.language, matches=len(project.detections))
    payload = project.to_dict() if show_all else project.detection.to_dict()
    typer.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    app()
