"""CLI interface for mqa-scoring."""

import json
import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mqa_scoring.consts import DATABASE_URL_ENV, DEFAULT_DATA_DIR, GRAPH_FORMAT_TURTLE
from mqa_scoring.errors import ScoringError
from mqa_scoring.extraction import extract_scores, parse_graph
from mqa_scoring.pipeline import (
    aggregate_scores,
    load_graph,
    load_score_json,
    open_store,
    parse_assessment_id,
    save_assessment,
)
from mqa_scoring.storage import AssessmentStore, FileAssessmentStore, SqlAssessmentStore, database_url_from_env

app = typer.Typer(
    name="mqa",
    help="mqa-scoring - Extract and aggregate dataset quality scores",
)

console = Console()

DatabaseUrlOption = typer.Option(
    None,
    "--database-url",
    envvar=DATABASE_URL_ENV,
    help="SQLAlchemy database URL. Without it, the file store is used.",
)
DataDirOption = typer.Option(DEFAULT_DATA_DIR, "--data-dir", help="Data directory of the file store")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Log progress at INFO level")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def _get_score_color(score: float, max_score: float) -> str:
    """Get color for score display."""
    if max_score <= 0:
        return "dim"
    ratio = score / max_score
    if ratio >= 0.7:
        return "green"
    elif ratio >= 0.5:
        return "yellow"
    else:
        return "red"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error:[/red] Cannot read {escape(str(path))}: {escape(str(e))}")
        raise typer.Exit(1)


def _read_ceilings(path: Path | None) -> dict[str, int] | None:
    """Load a JSON object mapping metric IRIs to max scores."""
    if path is None:
        return None
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid ceilings file: {escape(str(e))}")
        raise typer.Exit(1)
    if not isinstance(data, dict) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in data.values()
    ):
        console.print("[red]Error:[/red] Ceilings file must map metric IRIs to integers")
        raise typer.Exit(1)
    return data


@app.command()
def extract(
    graph_file: Path = typer.Argument(..., help="Assessment graph file"),
    dataset: str = typer.Option(..., "--dataset", "-d", help="IRI of the dataset node"),
    format: str = typer.Option(GRAPH_FORMAT_TURTLE, "--format", "-f", help="Graph format (turtle, json-ld)"),
    ceilings: Path = typer.Option(None, "--ceilings", help="JSON file of fallback metric max scores"),
    verbose: bool = VerboseOption,
) -> None:
    """Extract the score tree of a dataset and print it as JSON."""
    _configure_logging(verbose)

    text = _read_text(graph_file)
    metric_ceilings = _read_ceilings(ceilings)
    try:
        graph = parse_graph(text, format)
        tree = extract_scores(graph, dataset, metric_ceilings)
    except (ScoringError, ValueError) as e:
        _fail(e)

    console.print_json(tree.model_dump_json())


@app.command()
def save(
    graph_file: Path = typer.Argument(..., help="Assessment graph as Turtle"),
    assessment_id: str = typer.Option(..., "--id", help="Assessment UUID"),
    dataset: str = typer.Option(..., "--dataset", "-d", help="IRI of the dataset node"),
    jsonld: Path = typer.Option(None, "--jsonld", help="Same graph as JSON-LD (rendered if omitted)"),
    ceilings: Path = typer.Option(None, "--ceilings", help="JSON file of fallback metric max scores"),
    database_url: str = DatabaseUrlOption,
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Extract scores from an assessment graph and store the assessment."""
    _configure_logging(verbose)

    turtle = _read_text(graph_file)
    jsonld_text = _read_text(jsonld) if jsonld else None
    metric_ceilings = _read_ceilings(ceilings)

    try:
        store = open_store(database_url, data_dir)
        tree = save_assessment(store, assessment_id, dataset, turtle, jsonld_text, metric_ceilings)
    except (ScoringError, ValueError) as e:
        _fail(e)

    console.print(
        f"[green]Saved assessment {parse_assessment_id(assessment_id)}[/green] "
        f"({len(tree.dataset.dimensions)} dimensions, score {tree.dataset.score}/{tree.dataset.max_score})"
    )


@app.command()
def score(
    assessment_id: str = typer.Argument(..., help="Assessment UUID"),
    database_url: str = DatabaseUrlOption,
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the stored score tree of an assessment."""
    _configure_logging(verbose)

    try:
        store = open_store(database_url, data_dir)
        score_json = load_score_json(store, assessment_id)
    except (ScoringError, ValueError) as e:
        _fail(e)

    console.print_json(score_json)


@app.command()
def graph(
    assessment_id: str = typer.Argument(..., help="Assessment UUID"),
    format: str = typer.Option(GRAPH_FORMAT_TURTLE, "--format", "-f", help="Graph format (turtle, json-ld)"),
    database_url: str = DatabaseUrlOption,
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the stored assessment graph."""
    _configure_logging(verbose)

    try:
        store = open_store(database_url, data_dir)
        text = load_graph(store, assessment_id, format)
    except (ScoringError, ValueError) as e:
        _fail(e)

    console.print(text, markup=False, highlight=False, soft_wrap=True)


@app.command()
def aggregate(
    dataset_ids: list[str] = typer.Argument(..., help="Dataset IRIs to aggregate over"),
    as_json: bool = typer.Option(False, "--json", help="Print full-precision JSON instead of a table"),
    database_url: str = DatabaseUrlOption,
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show mean score and mean max score per dimension across datasets."""
    _configure_logging(verbose)

    try:
        store = open_store(database_url, data_dir)
        aggregates = aggregate_scores(store, dataset_ids)
    except (ScoringError, ValueError) as e:
        _fail(e)

    if as_json:
        data = {
            dimension_id: {"score": agg.score, "max_score": agg.max_score}
            for dimension_id, agg in aggregates.items()
        }
        console.print_json(json.dumps(data))
        return

    if not aggregates:
        console.print("[yellow]No dimension scores found for the given datasets.[/yellow]")
        return

    table = Table(title=f"Dimension Averages ({len(set(dataset_ids))} datasets)")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Max Score", justify="right", style="magenta")

    for dimension_id, agg in aggregates.items():
        color = _get_score_color(agg.score, agg.max_score)
        table.add_row(
            dimension_id,
            f"[{color}]{agg.score:.2f}[/{color}]",
            f"{agg.max_score:.2f}",
        )

    console.print(table)


@app.command("init-db")
def init_db(
    database_url: str = DatabaseUrlOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create the assessment tables (URL from --database-url or POSTGRES_* variables)."""
    _configure_logging(verbose)

    try:
        url = database_url or database_url_from_env()
        SqlAssessmentStore(url).init_schema()
    except ScoringError as e:
        _fail(e)

    console.print("[green]Assessment schema ready[/green]")


@app.command()
def ping(
    database_url: str = DatabaseUrlOption,
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Check that the assessment store is reachable."""
    _configure_logging(verbose)

    try:
        store: AssessmentStore = open_store(database_url, data_dir)
        store.ping()
    except ScoringError as e:
        _fail(e)

    console.print("pong")
    if isinstance(store, FileAssessmentStore):
        summary = store.get_data_summary()
        console.print(
            f"[dim]{summary['assessments']} assessments, "
            f"{summary['datasets_with_dimensions']} datasets with dimension rows[/dim]"
        )


if __name__ == "__main__":
    app()
