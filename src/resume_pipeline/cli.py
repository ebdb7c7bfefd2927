"""
Typer CLI for the resume pipeline.

Each pipeline stage runs as its own process:

    resume-pipeline ingest --config config.yaml
    resume-pipeline embed --config config.yaml
    resume-pipeline index --config config.yaml
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from resume_pipeline import __version__
from resume_pipeline.config import DEFAULT_CONFIG_FILE, Settings, load_settings
from resume_pipeline.errors import ConnectivityError
from resume_pipeline.utils.logging import configure_logging, get_logger
from resume_pipeline.utils.metrics import set_service_info

app = typer.Typer(
    name="resume-pipeline",
    help="Ingestion, embedding and indexing stages of the resume search pipeline",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="YAML config file; missing files fall back to defaults",
        dir_okay=False,
    ),
]


def _bootstrap(config: Path, component: str) -> Settings:
    """Resolve settings and configure logging for one process."""
    settings = load_settings(config)
    configure_logging(debug=settings.debug)
    set_service_info(component=component, version=__version__)
    return settings


@app.command()
def ingest(config: ConfigOption = Path(DEFAULT_CONFIG_FILE)) -> None:
    """Serve the HTTP ingestion endpoint."""
    from resume_pipeline.ingestion.app import serve

    settings = _bootstrap(config, "ingestion")
    serve(settings)


@app.command()
def embed(config: ConfigOption = Path(DEFAULT_CONFIG_FILE)) -> None:
    """Run the embedding worker."""
    from resume_pipeline.workers.embedding import serve

    settings = _bootstrap(config, "embedding")
    try:
        asyncio.run(serve(settings))
    except ConnectivityError as e:
        logger.error("startup_failed", error=str(e))
        raise typer.Exit(code=1) from e


@app.command()
def index(config: ConfigOption = Path(DEFAULT_CONFIG_FILE)) -> None:
    """Run the indexing worker. Exits non-zero if the collection is missing."""
    from resume_pipeline.workers.indexing import serve

    settings = _bootstrap(config, "indexing")
    try:
        asyncio.run(serve(settings))
    except ConnectivityError as e:
        logger.error("startup_failed", error=str(e))
        raise typer.Exit(code=1) from e


@app.command("init-collection")
def init_collection(config: ConfigOption = Path(DEFAULT_CONFIG_FILE)) -> None:
    """Create the Qdrant collection if it does not exist."""
    from resume_pipeline.clients.qdrant import QdrantClientWrapper

    settings = _bootstrap(config, "admin")

    async def _run() -> bool:
        async with QdrantClientWrapper(settings) as qdrant:
            return await qdrant.ensure_collection(settings.embedding_dimensions)

    try:
        created = asyncio.run(_run())
    except ConnectivityError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(code=1) from e

    if created:
        console.print(
            f"[bold green]✓ Created collection '{settings.qdrant_collection}' "
            f"({settings.embedding_dimensions} dims)[/bold green]"
        )
    else:
        console.print(f"Collection '{settings.qdrant_collection}' already exists")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
