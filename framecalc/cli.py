"""FrameCalc CLI.

Commands:
- schedule: Print the per-scope days and total of a building
- override: Override an item's direct work days and save the plan
- catalog: List process modules and their work items
- info: Show the building summary (units, cores, floors)
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from framecalc.catalog.modules import get_catalog
from framecalc.config import get_config
from framecalc.core.logging import configure_logging
from framecalc.errors import FrameCalcError
from framecalc.models import Building, ProcessCategory, ProcessPlan
from framecalc.planning.engine import ProcessPlanEngine
from framecalc.planning.scopes import CategoryScope
from framecalc.planning.store import JsonFilePlanStore, load_or_initialize
from framecalc.reporting.schedule import build_schedule_rows
from framecalc.reporting.summary import summarize_building

app = typer.Typer(
    name="framecalc",
    help="FrameCalc - Structural frame work-duration schedules",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(config.log_level, json_logs=config.log_format == "json")


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _load_building(path: Path) -> Building:
    if not path.exists():
        _fail(f"File not found: {path}")
    try:
        return Building.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        _fail(f"Invalid building file {path}: {e}")


def _parse_scope(scope: str | None) -> CategoryScope:
    value = (scope or get_config().calculation.default_category_scope).lower()
    try:
        return CategoryScope(value)
    except ValueError:
        _fail(f"Unknown scope '{value}' (expected 'full' or 'basement')")


def _parse_category(category: str) -> ProcessCategory:
    try:
        return ProcessCategory(category)
    except ValueError:
        choices = ", ".join(c.value for c in ProcessCategory)
        _fail(f"Unknown category '{category}' (expected one of: {choices})")


def _format_quantity(value: float) -> str:
    return f"{value:,.2f}" if value else "-"


@app.command()
def schedule(
    building_file: Path = typer.Argument(..., help="Building JSON file"),
    plan_file: Path | None = typer.Option(None, "--plan", help="Plan JSON file"),
    scope: str | None = typer.Option(None, "--scope", help="full or basement"),
):
    """Print per-scope days and the building total."""
    config = get_config()
    building = _load_building(building_file)

    try:
        engine = ProcessPlanEngine(building, _parse_scope(scope))
        if plan_file is not None:
            plan = engine.recalculate(
                ProcessPlan.model_validate_json(plan_file.read_text(encoding="utf-8"))
            )
        else:
            plan = load_or_initialize(JsonFilePlanStore(config.store.plan_dir), engine)
    except (FrameCalcError, ValidationError, OSError) as e:
        _fail(str(e))

    title = building.building_name or building.id
    table = Table(title=f"Process Schedule: {title}")
    table.add_column("Category", style="cyan")
    table.add_column("Floor")
    table.add_column("Process Type")
    table.add_column("Formwork (㎡)", justify="right")
    table.add_column("Rebar (ton)", justify="right")
    table.add_column("Concrete (㎥)", justify="right")
    table.add_column("Days", justify="right", style="green")

    for row in build_schedule_rows(engine, plan):
        table.add_row(
            row.category.value,
            row.floor_label or "",
            row.process_type,
            _format_quantity(row.formwork),
            _format_quantity(row.rebar),
            _format_quantity(row.concrete),
            f"({row.days})" if row.special else str(row.days),
            style="dim" if row.special else None,
        )

    console.print(table)
    console.print(f"[bold]Total days:[/bold] {plan.total_days}")


@app.command()
def override(
    building_file: Path = typer.Argument(..., help="Building JSON file"),
    category: str = typer.Argument(..., help="Process category (e.g. 기준층)"),
    item_id: str = typer.Argument(..., help="Catalog item id"),
    days: str = typer.Argument(..., help="Direct work days (0 or empty clears)"),
    floor: str | None = typer.Option(None, "--floor", help="Floor label"),
    scope: str | None = typer.Option(None, "--scope", help="full or basement"),
):
    """Override an item's direct work days and save the plan."""
    config = get_config()
    building = _load_building(building_file)
    process_category = _parse_category(category)
    store = JsonFilePlanStore(config.store.plan_dir)

    try:
        engine = ProcessPlanEngine(building, _parse_scope(scope))
        plan = load_or_initialize(store, engine)
        before = plan.total_days
        plan = engine.set_override(plan, process_category, floor, item_id, days)
        store.set(building.id, plan)
    except FrameCalcError as e:
        _fail(str(e))

    console.print(
        f"[bold green]✓[/bold green] Total days: {before} → {plan.total_days} "
        f"(saved to {store.path_for(building.id)})"
    )


@app.command()
def catalog(
    category: str | None = typer.Option(None, "--category", help="Only this category"),
):
    """List process modules (and their items for one category)."""
    try:
        modules_catalog = get_catalog(get_config().catalog_path)
    except FrameCalcError as e:
        _fail(str(e))

    if category is None:
        table = Table(title="Process Modules")
        table.add_column("Module", style="cyan")
        table.add_column("Category")
        table.add_column("Process Type")
        table.add_column("Items", justify="right", style="green")
        for module in modules_catalog.modules:
            table.add_row(
                module.id, module.category.value, module.process_type, str(len(module.items))
            )
        console.print(table)
        return

    process_category = _parse_category(category)
    for module in modules_catalog.available_modules(process_category):
        table = Table(title=f"{module.category.value} / {module.process_type}")
        table.add_column("Item", style="cyan")
        table.add_column("Work")
        table.add_column("Unit")
        table.add_column("Reference")
        table.add_column("Floor")
        table.add_column("Direct", justify="right")
        table.add_column("Indirect", justify="right")
        for item in module.items:
            table.add_row(
                item.id,
                item.work_item,
                item.unit,
                item.quantity_reference or "",
                item.floor_label or "",
                f"{item.direct_work_days:g}" if item.direct_work_days is not None else "calc",
                f"{item.indirect_days:g}",
            )
        console.print(table)


@app.command()
def info(
    building_file: Path = typer.Argument(..., help="Building JSON file"),
):
    """Show the building summary."""
    building = _load_building(building_file)
    summary = summarize_building(building)

    table = Table(title=f"Building: {summary.building_name or summary.building_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Units", str(summary.total_units))
    table.add_row("Cores", str(summary.core_count))
    table.add_row("Pilotis Units", str(summary.pilotis_count))
    table.add_row("Ground Floors", str(summary.ground_floors))
    for core in summary.core_units:
        table.add_row(f"Core {core.core_number} Units", str(core.units))

    console.print(table)
    if summary.unit_composition:
        console.print(f"[bold]Composition:[/bold] {summary.unit_composition}")


if __name__ == "__main__":
    app()
