"""
TruthTrack - CLI Entry Point.

Product transparency scoring from the command line, using Click and Rich.
Products, questions, answers and reports persist in a JSON data store
(``DATA_DIR``) so each step can run as a separate invocation.
"""

import asyncio
import json
import sys
from functools import wraps
from pathlib import Path
from typing import Any, Optional
from uuid import UUID, uuid4

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from truthtrack import __version__
from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import Answer, Product, ProductCategory, TransparencyReport
from truthtrack.pipeline.orchestrator import PipelineError, TransparencyPipeline
from truthtrack.scoring.report import score_answers
from truthtrack.services.storage import JsonFileDataStore
from truthtrack.services.validation_service import ValidationService
from truthtrack.utils.errors import AppError, ValidationError
from truthtrack.utils.formatters import ReportFormatter, render_report
from truthtrack.utils.logger import configure_from_settings

# Rich output goes to stdout; logs go to stderr
console = Console()
FORMATS = ["markdown", "html", "json"]


# =============================================================================
# Helper Functions
# =============================================================================

def async_command(f):
    """Decorator to run async click commands."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def load_settings(ctx: click.Context) -> Settings:
    settings = get_settings()
    configure_from_settings(settings, verbose=ctx.obj.get("verbose", False))
    return settings


def data_dir_for(ctx: click.Context, settings: Settings) -> Path:
    return Path(ctx.obj.get("data_dir") or settings.data_dir)


def fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


def parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a valid id")


def read_json_file(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}")


def parse_scoring_input(data: Any) -> tuple[Product, list[Answer]]:
    """
    Parse a stateless scoring document:

        {"product": {...}, "answers": ["...", {"value": "..."}, ...]}

    Answers without a question id get a fresh one; only values are scored.
    """
    if not isinstance(data, dict) or "product" not in data:
        raise ValidationError(
            code="INVALID_INPUT_FORMAT",
            message="Expected an object with 'product' and 'answers'",
        )

    product = ValidationService().validate_product_input(data["product"])

    answers = []
    try:
        for item in data.get("answers") or []:
            if isinstance(item, dict):
                answers.append(Answer(
                    question_id=item.get("question_id") or uuid4(),
                    value=item.get("value"),
                ))
            else:
                answers.append(Answer(question_id=uuid4(), value=item))
    except PydanticValidationError as e:
        raise ValidationError(
            code="INVALID_INPUT_FORMAT",
            message=f"Invalid answer: {e.errors()[0]['msg']}",
        ) from e
    return product, answers


def print_report_summary(report: TransparencyReport, saved_to: Optional[Path] = None) -> None:
    table = Table(title="Transparency Report", show_header=False)
    table.add_row("Product", report.product.name)
    table.add_row("Category", report.product.category)
    table.add_row("Total Score", f"[bold]{report.total}/100[/bold] ({report.band.value})")
    table.add_row("Completeness", f"{report.breakdown.completeness}/25")
    table.add_row("Quality", f"{report.breakdown.quality}/25")
    table.add_row("Transparency Level", f"{report.breakdown.transparency_level}/25")
    table.add_row("Category Specific", f"{report.breakdown.category_specific}/25")
    table.add_row("Questions Answered", str(report.questions_answered))
    if report.enhanced_score is not None:
        table.add_row("Enhanced Score", f"{report.enhanced_score}/100 (display only)")
    table.add_row("Report ID", str(report.report_id))
    if saved_to:
        table.add_row("Output", str(saved_to))
    console.print(table)


# =============================================================================
# CLI Group
# =============================================================================

@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              help="Data store directory (defaults to DATA_DIR)")
@click.option("--verbose", is_flag=True, help="Detailed logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str], verbose: bool):
    """TruthTrack - Product Transparency Scoring"""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["verbose"] = verbose


# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.option("--name", required=True, help="Product name")
@click.option("--category", required=True,
              type=click.Choice([c.value for c in ProductCategory]), help="Product category")
@click.option("--brand", default=None, help="Brand name")
@click.option("--description", default=None, help="Product description")
@click.option("--submitted-by", default=None, help="Submitter identity")
@click.pass_context
@async_command
async def submit(
    ctx: click.Context,
    name: str,
    category: str,
    brand: Optional[str],
    description: Optional[str],
    submitted_by: Optional[str],
):
    """Submit a product and print its questionnaire."""
    settings = load_settings(ctx)

    try:
        store = JsonFileDataStore(data_dir_for(ctx, settings))
        async with TransparencyPipeline(settings=settings, store=store) as pipeline:
            product, questions = await pipeline.submit_product({
                "name": name,
                "category": category,
                "brand": brand,
                "description": description,
                "submitted_by": submitted_by,
            })
    except ValidationError as e:
        fail(f"{e.code}: {e.message}")
    except (PipelineError, AppError) as e:
        fail(e.message)

    console.print(Panel.fit(
        f"[bold blue]Product submitted[/bold blue]\n"
        f"Name: [cyan]{product.name}[/cyan]\nID: [cyan]{product.id}[/cyan]"
    ))

    table = Table(title="Questions", show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Question ID")
    table.add_column("Type")
    table.add_column("Question")
    table.add_column("Options")
    for q in questions:
        table.add_row(
            str(q.order_index),
            str(q.id),
            q.type,
            q.text,
            ", ".join(q.options or []),
        )
    console.print(table)


@cli.command()
@click.argument("product_id")
@click.argument("answers_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@async_command
async def answer(ctx: click.Context, product_id: str, answers_file: str):
    """
    Submit answers for a product.

    ANSWERS_FILE: JSON object mapping question id to value, or a list of
    {"question_id": ..., "value": ...} objects.
    """
    settings = load_settings(ctx)
    pid = parse_uuid(product_id)
    data = read_json_file(answers_file)

    try:
        store = JsonFileDataStore(data_dir_for(ctx, settings))
        async with TransparencyPipeline(settings=settings, store=store) as pipeline:
            stored = await pipeline.submit_answers(pid, data)
    except ValidationError as e:
        fail(f"{e.code}: {e.message}")
    except (PipelineError, AppError) as e:
        fail(e.message)

    answered = sum(1 for a in stored if a.is_answered)
    console.print(f"[green]✓[/green] Stored {len(stored)} answers ({answered} non-empty).")


@cli.command()
@click.argument("product_id")
@click.option("--format", "format_type", type=click.Choice(FORMATS), default=None,
              help="Output format (defaults to REPORT_FORMAT)")
@click.option("--output-dir", default=None, help="Custom output directory")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the rendered report instead of saving it")
@click.pass_context
@async_command
async def report(
    ctx: click.Context,
    product_id: str,
    format_type: Optional[str],
    output_dir: Optional[str],
    to_stdout: bool,
):
    """Compute, store and render the transparency report for a product."""
    settings = load_settings(ctx)
    pid = parse_uuid(product_id)
    format_type = format_type or settings.report_format

    try:
        store = JsonFileDataStore(data_dir_for(ctx, settings))
        async with TransparencyPipeline(settings=settings, store=store) as pipeline:
            result = await pipeline.generate_report(pid)
    except ValidationError as e:
        fail(f"{e.code}: {e.message}")
    except (PipelineError, AppError) as e:
        fail(e.message)

    if to_stdout:
        click.echo(render_report(result, format_type))
        return

    formatter = ReportFormatter(Path(output_dir) if output_dir else settings.output_dir)
    saved_to = formatter.save_report(result, format_type)
    print_report_summary(result, saved_to)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "format_type", type=click.Choice(FORMATS), default="json",
              help="Output format")
@click.pass_context
def score(ctx: click.Context, input_file: str, format_type: str):
    """
    Score a product and answers without storing anything.

    INPUT_FILE: JSON with "product" and "answers". Prints the rendered report.
    """
    load_settings(ctx)
    data = read_json_file(input_file)

    try:
        product, answers = parse_scoring_input(data)
    except ValidationError as e:
        fail(f"{e.code}: {e.message}")

    click.echo(render_report(score_answers(product, answers), format_type))


@cli.command()
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--output-dir", default=None, help="Output directory")
@click.option("--format", "format_type", type=click.Choice(FORMATS), default="markdown",
              help="Output format")
@click.option("--concurrency", default=3, help="Max concurrent scoring jobs")
@click.pass_context
@async_command
async def batch(
    ctx: click.Context,
    input_dir: str,
    output_dir: Optional[str],
    format_type: str,
    concurrency: int,
):
    """
    Score every *.json scoring document in a directory.

    INPUT_DIR: Directory of files in the same format as the score command.
    """
    settings = load_settings(ctx)

    files = sorted(Path(input_dir).glob("*.json"))
    if not files:
        console.print("[red]No JSON files found in directory.[/red]")
        sys.exit(1)

    console.print(
        f"[bold]Batch scoring [cyan]{len(files)}[/cyan] products "
        f"with concurrency [cyan]{concurrency}[/cyan][/bold]"
    )

    formatter = ReportFormatter(Path(output_dir) if output_dir else settings.output_dir)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def process_one(path: Path):
        async with semaphore:
            try:
                product, answers = parse_scoring_input(read_json_file(str(path)))
                result = score_answers(product, answers)
                formatter.save_report(result, format_type)
                return path.name, result.total, None
            except (ValidationError, click.BadParameter, OSError) as e:
                return path.name, None, getattr(e, "message", None) or str(e)

    results = []
    with Progress(console=console) as progress:
        task = progress.add_task("[cyan]Scoring...", total=len(files))
        for coro in asyncio.as_completed([process_one(f) for f in files]):
            name, total, error = await coro
            progress.advance(task)
            results.append((name, total, error))

            if error is None:
                console.print(f"[green]✓ {name}: {total}/100[/green]")
            else:
                console.print(f"[red]✗ {name}: {error}[/red]")

    success_count = sum(1 for r in results if r[2] is None)
    console.print(Panel(
        f"Batch Complete\nSuccess: [green]{success_count}[/green]\n"
        f"Failed: [red]{len(files) - success_count}[/red]"
    ))
    if success_count < len(files):
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_setup(ctx: click.Context):
    """Check configuration and AI question generation availability."""
    console.print("[bold]Validating Setup...[/bold]")

    try:
        settings = load_settings(ctx)
    except Exception as e:
        fail(f"Configuration error: {e}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")

    if settings.has_ai_credentials():
        table.add_row("Anthropic API Key", "[green]Pass[/green]", f"model {settings.claude_model}")
    else:
        table.add_row("Anthropic API Key", "[yellow]Missing[/yellow]",
                      "category fallback questions will be used")

    table.add_row("Question Source", "[blue]Info[/blue]", settings.get_question_provider())
    table.add_row(
        "Score Enhancer",
        "[blue]Info[/blue]",
        settings.score_enhancer_url or "disabled",
    )

    data_dir = data_dir_for(ctx, settings)
    try:
        JsonFileDataStore(data_dir)
        table.add_row("Data Dir", "[green]Pass[/green]", str(data_dir))
        data_ok = True
    except AppError as e:
        table.add_row("Data Dir", "[red]Fail[/red]", e.message)
        data_ok = False

    table.add_row("Output Dir", "[blue]Info[/blue]", str(settings.output_dir))
    table.add_row("Environment", "[blue]Info[/blue]", settings.app_env)
    console.print(table)

    if not data_ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
