"""Command-line interface using Typer."""

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from history_talks import __version__
from history_talks.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="history-talks",
    help="History Talks - persona catalog and media maintenance CLI",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"History Talks v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """History Talks - chat with historical figures."""
    pass


def _print_stats(title: str, stats: dict[str, Any]) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key, value in stats.items():
        table.add_row(key, str(value))
    console.print(table)


def _protected_urls() -> set[str]:
    from history_talks.db.session import get_session_context
    from history_talks.services.catalog import PersonaCatalog

    with get_session_context() as session:
        return PersonaCatalog(session).media_urls()


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the API server."""
    import uvicorn

    from history_talks.config import settings

    uvicorn.run(
        "history_talks.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )


@app.command()
def seed() -> None:
    """Create tables, seed an empty catalog and reconcile stored video URLs."""
    from history_talks.main import prepare_catalog

    result = prepare_catalog()
    console.print(
        f"[green]Seeded {result['seeded']} personas[/green] "
        f"[dim](restored {result['restored']}, recorded {result['recorded']} video URLs)[/dim]"
    )


@app.command()
def optimize(
    background: bool = typer.Option(
        False, "--background", "-b", help="Queue on the worker instead of running here"
    ),
) -> None:
    """Optimize every unoptimized video in the content root."""
    from history_talks.jobs.media_tasks import optimize_all_videos_task

    if background:
        task = optimize_all_videos_task.delay()
        console.print(f"[green]Task enqueued: {task.id}[/green]")
        return

    console.print("[bold blue]Optimizing videos...[/bold blue]")
    result = optimize_all_videos_task.apply().get()
    _print_stats("Optimization", {k: v for k, v in result.items() if k != "task_id"})
    if result["failed"]:
        raise typer.Exit(code=1)


@app.command()
def cleanup() -> None:
    """Delete media files no persona references."""
    from history_talks.services.catalog import get_video_url_map
    from history_talks.services.maintenance import StorageMaintenance
    from history_talks.services.storage import MediaStorage

    maintenance = StorageMaintenance(MediaStorage(), get_video_url_map())
    stats = maintenance.cleanup_unused_files(_protected_urls())
    _print_stats("Cleanup", stats.as_dict())


@app.command()
def reorganize() -> None:
    """Move loose files in the content root into category folders."""
    from history_talks.services.catalog import get_video_url_map
    from history_talks.services.maintenance import StorageMaintenance
    from history_talks.services.storage import MediaStorage

    maintenance = StorageMaintenance(MediaStorage(), get_video_url_map())
    stats = maintenance.reorganize(_protected_urls())
    _print_stats("Reorganize", stats.as_dict())


@app.command()
def maintenance() -> None:
    """Run cleanup followed by reorganize."""
    from history_talks.jobs.media_tasks import cleanup_storage_task

    result = cleanup_storage_task.apply().get()
    if not result.get("success"):
        console.print(f"[bold red]Maintenance failed: {result.get('error')}[/bold red]")
        raise typer.Exit(code=1)
    _print_stats("Cleanup", result["cleanupStats"])
    _print_stats("Reorganize", result["reorganizeStats"])


@app.command()
def stats() -> None:
    """Show storage usage by directory and file type."""
    from history_talks.config import settings
    from history_talks.services.storage_stats import get_storage_stats

    data = get_storage_stats(settings.upload_dir, settings.data_dir)
    console.print(f"[bold]Total:[/bold] {data['total']['sizeHuman']}")

    directories = Table(title="Directories")
    directories.add_column("Directory", style="cyan")
    directories.add_column("Size", justify="right")
    directories.add_column("%", justify="right")
    for name, entry in data["directories"].items():
        directories.add_row(name, entry["sizeHuman"], f"{entry['percentage']:.1f}")
    console.print(directories)

    file_types = Table(title=f"Uploads ({data['uploads']['totalFiles']} files)")
    file_types.add_column("Extension", style="cyan")
    file_types.add_column("Files", justify="right")
    file_types.add_column("Size", justify="right")
    file_types.add_column("%", justify="right")
    for ext, entry in data["uploads"]["fileTypes"].items():
        file_types.add_row(
            ext, str(entry["count"]), entry["sizeHuman"], f"{entry['percentage']:.1f}"
        )
    console.print(file_types)


@app.command()
def thumbnails() -> None:
    """Generate a thumbnail for every video in the content root."""
    from history_talks.services.thumbnails import ThumbnailGenerator

    counts = ThumbnailGenerator().batch_generate()
    _print_stats("Thumbnails", counts)
    if counts["failed"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
