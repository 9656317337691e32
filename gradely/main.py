"""
Gradely CLI Application.

Provides a command-line interface for grading score breakdowns,
submitting mark sheets, and reporting offering results.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gradely.config import get_settings
from gradely.grading import (
    STANDARD_MAXIMA,
    GradingEngine,
    GradingScaleError,
    ScoreValidator,
    SubmissionError,
    grade_outcome,
)
from gradely.importers import MarkSheetError, read_mark_sheet
from gradely.log import setup_logging
from gradely.models import ClassStatistics, CourseOffering, GradingScale, StudentResult
from gradely.output import ReportFormat, ReportGenerator
from gradely.store import StoreError

# Create Typer app
app = typer.Typer(
    name="gradely",
    help="Grade computation and mark management for lecturers",
    add_completion=False,
)

console = Console()


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", "-l", help="Override the configured log level"),
    ] = None,
) -> None:
    """Gradely command-line interface."""
    setup_logging(log_level or get_settings().log_level, console=console)


@app.command()
def grade(
    score: Annotated[
        list[str],
        typer.Option("--score", "-s", help="Score as KIND=VALUE (repeatable)"),
    ],
    offering_file: Annotated[
        Optional[Path],
        typer.Option("--offering", "-o", help="Offering JSON defining the assessments"),
    ] = None,
) -> None:
    """
    Grade a single score breakdown.

    Without --offering the standard five-category breakdown is used
    (assignment, quiz, project, midsem, finalExam).
    """
    try:
        settings = get_settings()
        maxima = _load_offering(offering_file).maxima if offering_file else STANDARD_MAXIMA
        scores = _parse_scores(score)

        ScoreValidator().check_breakdown(scores, maxima)

        with GradingEngine(settings) as engine:
            active = engine.active_scale()

        outcome = grade_outcome(
            scores,
            scale=active,
            maxima=maxima,
            threshold=settings.passing_threshold,
            cap=settings.total_cap,
        )

        color = "green" if outcome.passed else "red"
        status = "PASS" if outcome.passed else "FAIL"
        console.print(
            Panel(
                f"[{color}][bold]{outcome.total} / 100[/bold]  "
                f"Grade: {outcome.grade}  {status}[/{color}]",
                title="Result",
            )
        )

    except SubmissionError as e:
        console.print(f"[red]Invalid Score ({e.field}):[/red] {e}")
        raise typer.Exit(1)
    except GradingScaleError as e:
        console.print(f"[red]Grading Scale Error:[/red] {e}")
        raise typer.Exit(1)
    except StoreError as e:
        console.print(f"[red]Store Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def submit(
    offering_file: Annotated[Path, typer.Argument(help="Offering JSON defining the assessments")],
    sheet_file: Annotated[Path, typer.Argument(help="Mark sheet (.csv, .xlsx or .json)")],
    grader: Annotated[str, typer.Option("--grader", "-g", help="Id of the grading lecturer")],
) -> None:
    """
    Submit a mark sheet for an offering.

    Each row is validated and stored independently; rejected rows are
    listed with the offending field.
    """
    try:
        settings = get_settings()
        offering = _load_offering(offering_file)
        entries = read_mark_sheet(sheet_file)

        with GradingEngine(settings) as engine:
            result = engine.submit_marks(offering, entries, grader_id=grader)

        table = Table(title=f"Submission for {offering.id}")
        table.add_column("#", justify="right")
        table.add_column("Student", style="cyan")
        table.add_column("Assessment")
        table.add_column("Score", justify="right")
        table.add_column("Status")

        for outcome in result.outcomes:
            entry = entries[outcome.index]
            if outcome.accepted and outcome.mark is not None:
                table.add_row(
                    str(outcome.index + 1),
                    outcome.mark.student_id,
                    outcome.mark.assessment_id,
                    str(outcome.mark.score),
                    "[green]stored[/green]",
                )
            else:
                table.add_row(
                    str(outcome.index + 1),
                    str(entry.get("studentId", "")),
                    str(entry.get("assessmentId", "")),
                    str(entry.get("score", "")),
                    f"[red]rejected[/red] {outcome.field or ''}: {outcome.error}",
                )

        console.print(table)
        console.print(
            f"\n[bold]{result.accepted_count}[/bold] stored, "
            f"[bold]{result.rejected_count}[/bold] rejected"
        )

        if result.rejected_count:
            raise typer.Exit(1)

    except MarkSheetError as e:
        console.print(f"[red]Mark Sheet Error:[/red] {e}")
        raise typer.Exit(1)
    except SubmissionError as e:
        console.print(f"[red]Submission Error ({e.field}):[/red] {e}")
        raise typer.Exit(1)
    except StoreError as e:
        console.print(f"[red]Store Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def results(
    offering_file: Annotated[Path, typer.Argument(help="Offering JSON defining the assessments")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path for the report"),
    ] = None,
    format: Annotated[
        Optional[ReportFormat],
        typer.Option("--format", "-f", help="Report format"),
    ] = None,
) -> None:
    """
    Show per-student results and class statistics for an offering.
    """
    try:
        settings = get_settings()
        offering = _load_offering(offering_file)

        with GradingEngine(settings) as engine:
            active = engine.active_scale()
            student_results = engine.offering_results(offering, active)
            statistics = engine.class_statistics(offering, student_results, active)

        _display_results(offering, student_results, statistics)

        generator = ReportGenerator()
        if output:
            saved_path = generator.save(
                offering, student_results, statistics, output, format or ReportFormat.JSON
            )
            console.print(f"\n[green]Report saved to:[/green] {saved_path}")
        elif format:
            console.print(
                generator.generate(offering, student_results, statistics, format),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

    except SubmissionError as e:
        console.print(f"[red]Stored Marks Error:[/red] {e}")
        raise typer.Exit(1)
    except GradingScaleError as e:
        console.print(f"[red]Grading Scale Error:[/red] {e}")
        raise typer.Exit(1)
    except StoreError as e:
        console.print(f"[red]Store Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def scale(
    seed: Annotated[
        bool,
        typer.Option("--seed", help="Store the default scale if none is configured"),
    ] = False,
) -> None:
    """
    Show the active grading scale.
    """
    try:
        with GradingEngine(get_settings()) as engine:
            if seed:
                if engine.seed_default_scale():
                    console.print("[green]Default grading scale stored[/green]")
                else:
                    console.print("[yellow]A grading scale is already configured[/yellow]")

            active = engine.active_scale()

        _display_scale(active)

    except GradingScaleError as e:
        console.print(f"[red]Grading Scale Error:[/red] {e}")
        raise typer.Exit(1)
    except StoreError as e:
        console.print(f"[red]Store Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """
    Check if the grading system is operational.

    Verifies configuration and store connectivity.
    """
    try:
        settings = get_settings()
        console.print("[bold]Gradely Health Check[/bold]\n")

        console.print("[dim]Checking configuration...[/dim]")
        console.print(f"  Database URL: {settings.database_url}")
        console.print(f"  Passing Threshold: {settings.passing_threshold}")
        console.print(f"  Total Cap: {settings.total_cap}")

        console.print("\n[dim]Checking mark store...[/dim]")
        with GradingEngine(settings) as engine:
            healthy = engine.health_check()

        if healthy:
            console.print("[green]✓ Mark store is reachable[/green]")
        else:
            console.print("[red]✗ Mark store is not reachable[/red]")
            raise typer.Exit(1)

        console.print("\n[green]All systems operational[/green]")

    except (ValidationError, StoreError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _load_offering(path: Path) -> CourseOffering:
    """Load an offering definition from a JSON file."""
    if not path.exists():
        console.print(f"[red]Error:[/red] Offering file not found: {path}")
        raise typer.Exit(1)
    try:
        return CourseOffering.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Invalid Offering:[/red] {e}")
        raise typer.Exit(1)


def _parse_scores(pairs: list[str]) -> dict[str, str]:
    """Parse KIND=VALUE options into a mapping."""
    scores: dict[str, str] = {}
    for pair in pairs:
        kind, sep, value = pair.partition("=")
        if not sep or not kind.strip():
            console.print(f"[red]Error:[/red] Expected KIND=VALUE, got '{pair}'")
            raise typer.Exit(1)
        scores[kind.strip()] = value.strip()
    return scores


def _display_results(
    offering: CourseOffering, student_results: list[StudentResult], statistics: ClassStatistics
) -> None:
    """Display offering results in formatted tables."""
    table = Table(title=f"Results: {offering.course_code or offering.id}")
    table.add_column("Student", style="cyan")
    for assessment in offering.assessments:
        table.add_column(f"{assessment.name} (/{assessment.max_score})", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Grade")
    table.add_column("Status")

    for result in student_results:
        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        table.add_row(
            result.student_id,
            *[str(result.scores.get(a.id, "-")) for a in offering.assessments],
            str(result.total),
            result.grade,
            status,
        )

    console.print(table)
    console.print(
        Panel(
            f"Students: {statistics.total_students}\n"
            f"Average: {statistics.average}  Highest: {statistics.highest}  "
            f"Lowest: {statistics.lowest}\n"
            f"Pass Rate: {statistics.pass_rate}% "
            f"({statistics.passed_count} passed, {statistics.failed_count} failed)",
            title="Class Statistics",
        )
    )

    distribution = Table(title="Grade Distribution")
    distribution.add_column("Grade", style="cyan")
    distribution.add_column("Students", justify="right")
    for label, count in statistics.distribution.items():
        distribution.add_row(label, str(count))
    console.print(distribution)


def _display_scale(active: GradingScale) -> None:
    """Display a grading scale as a table."""
    table = Table(title="Grading Scale")
    table.add_column("Grade", style="cyan")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Points", justify="right")

    for band in active.bands:
        table.add_row(band.label, str(band.min_score), str(band.max_score), str(band.grade_point))

    console.print(table)


if __name__ == "__main__":
    app()
