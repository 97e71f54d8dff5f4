"""Terminal-Darstellung von Ergebnissen und Fortschritt (Rich).

Wird von main.py (solve, export, tune) verwendet.
"""

from typing import TYPE_CHECKING, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from export.helpers import BreakRow, UnitRow, build_grid, build_time_grid_rows, format_entries

if TYPE_CHECKING:
    from models.catalog import Catalog
    from solver.progress import ProgressSnapshot
    from solver.result import OptimizationResult
    from solver.tuning import TuningReport


def render_group_rows(
    class_group_id: str,
    result: "OptimizationResult",
    catalog: "Catalog",
) -> list[list[str]]:
    """Tabellenzeilen für den Plan einer Studiengruppe.

    Jede Zeile: [Einheit, Zeit, Mo, Di, ...]; Pausen als eigene Zeile.
    """
    day_names = list(dict.fromkeys(ts.day_name for ts in catalog.time_slots))
    grid = build_grid(result.get_group_schedule(class_group_id))
    rows: list[list[str]] = []
    for row in build_time_grid_rows(catalog.time_slots):
        if isinstance(row, BreakRow):
            rows.append(["—", row.label] + ["─" * 8] * len(day_names))
            continue
        cells = [str(row.unit_no), f"{row.start_time}–{row.end_time}"]
        for day in range(len(day_names)):
            here = grid.get((day, row.unit_no), [])
            content = format_entries(here, "group") or "—"
            if len(here) > 1:
                content = f"[red]{content}[/red]"
            cells.append(content)
        rows.append(cells)
    return rows


def group_table(class_group_id: str, result: "OptimizationResult", catalog: "Catalog") -> Table:
    day_names = list(dict.fromkeys(ts.day_name for ts in catalog.time_slots))
    table = Table(title=f"Gruppe {class_group_id}", box=box.ROUNDED, show_lines=True)
    table.add_column("Nr.", justify="right", style="bold")
    table.add_column("Zeit", style="dim")
    for name in day_names:
        table.add_column(name, justify="center")
    for row in render_group_rows(class_group_id, result, catalog):
        table.add_row(*row)
    return table


def print_result(
    result: "OptimizationResult",
    console: Optional[Console] = None,
    max_conflicts: int = 20,
) -> None:
    """Kurzbericht: Status, Fitness, Konfliktzahlen, erste Konflikte."""
    console = console or Console()
    if not result.success:
        console.print(Panel(
            f"[red bold]Optimierung fehlgeschlagen[/red bold]\n{result.message}",
            border_style="red",
        ))
        return

    status = "[yellow]abgebrochen[/yellow]" if result.cancelled else "[green]fertig[/green]"
    best = (
        f"Lauf {result.best_run + 1}, Iteration {result.best_iteration}"
        if result.best_run is not None else "–"
    )
    console.print(Panel(
        f"Status: {status}  |  Fitness: [bold]{result.fitness:.1f}[/bold]  |  "
        f"Bester Plan: {best}  |  Zeit: {result.elapsed_seconds:.1f}s  |  Seed: {result.seed}\n"
        f"[dim]{result.message}[/dim]",
        title="Ergebnis",
        border_style="cyan",
    ))

    counts = result.conflicts.counts()
    table = Table(box=box.SIMPLE)
    table.add_column("Raum", justify="right")
    table.add_column("Dozent", justify="right")
    table.add_column("Gruppe", justify="right")
    table.add_column("Zeitwunsch", justify="right")
    table.add_row(*(
        f"[green]{n}[/green]" if n == 0 else f"[red]{n}[/red]"
        for n in (counts["room"], counts["lecturer"], counts["class_group"], counts["preference"])
    ))
    console.print(table)

    messages = result.conflicts.messages
    for msg in messages[:max_conflicts]:
        console.print(f"  [yellow]• {msg}[/yellow]")
    if len(messages) > max_conflicts:
        console.print(f"  [dim]… {len(messages) - max_conflicts} weitere[/dim]")

    if len(result.all_best_fitness) > 1:
        runs = ", ".join(f"{v:.0f}" for v in result.all_best_fitness)
        console.print(f"[dim]Bestwerte je Lauf: {runs}[/dim]")


def progress_line(snapshot: "ProgressSnapshot") -> str:
    """Einzeilige Fortschrittsanzeige für die Live-Ausgabe."""
    return (
        f"Lauf {snapshot.current_run + 1}/{snapshot.total_runs}  "
        f"Iteration {snapshot.iteration}  "
        f"Bestfitness [bold]{snapshot.best_fitness:.1f}[/bold]  "
        f"[dim]{snapshot.elapsed_time.total_seconds:.1f}s[/dim]"
    )


def print_tuning_report(report: "TuningReport", console: Optional[Console] = None) -> None:
    console = console or Console()
    for name, trials in report.history.items():
        table = Table(title=name, box=box.ROUNDED)
        table.add_column("Wert", justify="right")
        table.add_column("Fitness", justify="right")
        best = min(t.fitness for t in trials)
        for t in trials:
            style = "bold green" if t.fitness == best else ""
            table.add_row(f"{t.value:g}", f"{t.fitness:.1f}", style=style)
        console.print(table)

    p = report.best_params
    console.print(Panel(
        f"Partikel {p.swarm_size} | Iterationen {p.max_iterations} | "
        f"w {p.inertia_weight:g} | c1 {p.cognitive_weight:g} | c2 {p.social_weight:g}\n"
        f"Fitness: [bold]{report.best_fitness:.1f}[/bold] "
        f"({report.trial_count} Versuche)",
        title="Beste Parameter",
        border_style="green",
    ))
