"""Vorlesungsplan-Generator — Haupt-CLI.

Verwendung:
  python main.py setup                    Standard-Konfiguration anlegen
  python main.py config show              Konfiguration anzeigen
  python main.py generate                 Fake-Daten (CSV) erzeugen
  python main.py validate                 Machbarkeits-Check
  python main.py solve                    Vorlesungsplan optimieren (PSO)
  python main.py export                   Ergebnis als CSV / Excel exportieren
  python main.py tune                     PSO-Parameter suchen
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()

# Standard-Pfade
DEFAULT_COURSES = Path("input/courses.csv")
DEFAULT_PREFERENCES = Path("input/preferences.csv")
DEFAULT_OUTPUT_DIR = Path("output")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_catalog_or_abort(config, courses: Path, preferences: Optional[Path]):
    from data.csv_import import load_catalog
    from models.catalog import CatalogError

    if not courses.exists():
        console.print(
            f"[red]Keine Veranstaltungsdatei gefunden: {courses}[/red]\n"
            "Verwenden Sie [bold]python main.py generate[/bold] oder [bold]--courses[/bold]."
        )
        sys.exit(1)
    if preferences is not None and not preferences.exists():
        console.print(f"[yellow]Keine Zeitwunsch-Datei gefunden: {preferences}[/yellow]")
        preferences = None
    try:
        return load_catalog(config, courses, preferences)
    except CatalogError as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)


def _parse_range(ctx, param, value):
    """click-Callback: "start:stop:step" → ParameterRange."""
    if value is None:
        return None
    from solver.tuning import ParameterRange
    parts = value.split(":")
    if len(parts) != 3:
        raise click.BadParameter("Format: START:STOP:SCHRITT, z.B. 0.4:0.9:0.1")
    try:
        start, stop, step = (float(p) for p in parts)
        return ParameterRange(start=start, stop=stop, step=step)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _follow_progress(job):
    """Zeigt Live-Fortschritt an; Strg+C fordert einen Abbruch an."""
    from export.console import progress_line

    stop_requested = False
    with Live(Text("Starte Optimierung..."), console=console, refresh_per_second=8) as live:
        while True:
            try:
                snapshot = job.progress.get(timeout=0.25)
                if snapshot is not None:
                    live.update(Text.from_markup(progress_line(snapshot)))
                    if snapshot.is_finished:
                        break
                elif job.done():
                    break
            except KeyboardInterrupt:
                if stop_requested:
                    raise
                stop_requested = True
                job.stop()
                console.print("[yellow]Abbruch angefordert – warte auf Iterationsende...[/yellow]")
    return job.result()


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration überschreiben.")
def cmd_setup(force: bool):
    """Ersteinrichtung: Standard-Konfiguration anlegen."""
    from config.defaults import default_planner_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            f"Bearbeiten Sie [bold]{mgr.DEFAULT_CONFIG}[/bold] direkt oder verwenden Sie --force."
        )
        return

    mgr.save(default_planner_config())
    console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
    console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from models.timeslot import build_time_slots

    mgr, config = _load_config_or_abort()
    console.print(Panel(
        f"[bold]{config.institution_name}[/bold]  |  {mgr.DEFAULT_CONFIG}",
        title="Planer-Konfiguration",
        border_style="cyan",
    ))

    tg = config.time_grid
    table = Table(title="Zeitraster", box=box.ROUNDED)
    table.add_column("Abschnitt")
    table.add_column("Beginn")
    table.add_column("Einheiten", justify="right")
    for session in tg.sessions:
        table.add_row(session.name, session.start_time, str(session.num_units))
    console.print(table)
    console.print(
        f"Tage: {', '.join(tg.day_names)} | Einheit: {tg.unit_minutes} Min. | "
        f"{len(build_time_slots(tg))} Zeitslots"
    )

    table2 = Table(title="Räume", box=box.ROUNDED)
    table2.add_column("ID", style="bold")
    table2.add_column("Name")
    table2.add_column("Kapazität", justify="right")
    for room in config.rooms.rooms:
        table2.add_row(room.id, room.name or "", str(room.capacity or "–"))
    console.print(table2)

    op = config.optimization
    console.print(
        f"\n[bold]PSO:[/bold] {op.swarm_size} Partikel | {op.max_iterations} Iterationen | "
        f"w {op.inertia_weight} | c1 {op.cognitive_weight} | c2 {op.social_weight} | "
        f"{op.num_runs} Läufe"
    )
    w, en = config.weights, config.engine
    console.print(
        f"[bold]Gewichte:[/bold] hart {w.weight_hard} | Zeitwunsch {w.weight_preference}\n"
        f"[bold]Engine:[/bold] Worker {en.num_workers} | Seed {en.seed} | "
        f"Initialisierung {en.init_strategy}"
    )


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--output-dir", "-o", default=str(DEFAULT_COURSES.parent),
              help="Zielverzeichnis für courses.csv und preferences.csv.")
@click.option("--semesters", default=2, help="Semester je Studiengang.")
@click.option("--courses-per-group", default=4, help="Veranstaltungen je Gruppe.")
@click.option("--lecturers", default=8, help="Anzahl Dozenten.")
def cmd_generate(seed: int, output_dir: str, semesters: int, courses_per_group: int, lecturers: int):
    """Erzeugt Testdaten (Veranstaltungen + Zeitwünsche) als CSV."""
    mgr, config = _load_config_or_abort()
    from data.fake_data import FakeDataGenerator

    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeDataGenerator(
        config, seed=seed, semesters=semesters,
        courses_per_group=courses_per_group, num_lecturers=lecturers,
    )
    catalog = gen.generate()
    gen.print_summary(catalog)
    console.print(f"\n[dim]{catalog.summary()}[/dim]")
    catalog.validate_feasibility().print_rich()

    course_path, pref_path = gen.write_csv(catalog, Path(output_dir))
    console.print(f"[green]✓[/green] Veranstaltungen gespeichert: {course_path}")
    console.print(f"[green]✓[/green] Zeitwünsche gespeichert: {pref_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--courses", type=click.Path(path_type=Path), default=DEFAULT_COURSES)
@click.option("--preferences", type=click.Path(path_type=Path), default=DEFAULT_PREFERENCES)
def cmd_validate(courses: Path, preferences: Path):
    """Führt einen Machbarkeits-Check auf den Eingabedaten durch."""
    mgr, config = _load_config_or_abort()
    catalog = _load_catalog_or_abort(config, courses, preferences)

    console.print(f"\n{catalog.summary()}\n")
    report = catalog.validate_feasibility()
    report.print_rich()

    sys.exit(0 if report.is_feasible else 1)


# ─── SOLVE ────────────────────────────────────────────────────────────────────

@click.command("solve")
@click.option("--courses", type=click.Path(path_type=Path), default=DEFAULT_COURSES)
@click.option("--preferences", type=click.Path(path_type=Path), default=DEFAULT_PREFERENCES)
@click.option("--swarm-size", type=int, default=None, help="Partikel je Schwarm.")
@click.option("--iterations", type=int, default=None, help="Iterationen je Lauf.")
@click.option("--runs", type=int, default=None, help="Anzahl unabhängiger Läufe.")
@click.option("--inertia", type=float, default=None, help="Trägheitsgewicht w.")
@click.option("--cognitive", type=float, default=None, help="Kognitives Gewicht c1.")
@click.option("--social", type=float, default=None, help="Soziales Gewicht c2.")
@click.option("--seed", type=int, default=None, help="Seed (leer = zufällig).")
@click.option("--workers", type=int, default=None, help="Threads für die Bewertung.")
@click.option("--output-dir", "-o", type=click.Path(path_type=Path), default=DEFAULT_OUTPUT_DIR)
@click.option("--excel", is_flag=True, default=False, help="Zusätzlich Excel-Datei schreiben.")
@click.option("--show-group", "show_groups", multiple=True, help="Plan einer Gruppe anzeigen.")
def cmd_solve(
    courses, preferences, swarm_size, iterations, runs, inertia, cognitive, social,
    seed, workers, output_dir, excel, show_groups,
):
    """Berechnet den Vorlesungsplan mit Partikelschwarm-Optimierung."""
    from export.console import group_table, print_result
    from export.csv_export import write_csv
    from solver.orchestrator import InvalidRequestError, start_optimization

    mgr, config = _load_config_or_abort()
    catalog = _load_catalog_or_abort(config, courses, preferences)

    overrides = {
        "swarm_size": swarm_size,
        "max_iterations": iterations,
        "num_runs": runs,
        "inertia_weight": inertia,
        "cognitive_weight": cognitive,
        "social_weight": social,
    }
    try:
        params = config.optimization.model_validate({
            **config.optimization.model_dump(),
            **{k: v for k, v in overrides.items() if v is not None},
        })
    except ValueError as e:
        console.print(f"[red]Ungültige Parameter:[/red] {e}")
        sys.exit(1)
    engine = config.engine
    if workers is not None:
        engine = engine.model_copy(update={"num_workers": workers})

    console.print(f"[bold]Katalog:[/bold]\n[dim]{catalog.summary()}[/dim]\n")
    try:
        job = start_optimization(catalog, params, weights=config.weights, engine=engine, seed=seed)
    except InvalidRequestError as e:
        if e.report is not None:
            e.report.print_rich()
        else:
            console.print(f"[red]{e}[/red]")
        sys.exit(1)

    result = _follow_progress(job)
    print_result(result, console)
    if not result.success:
        sys.exit(1)

    for group_id in show_groups:
        console.print(group_table(group_id, result, catalog))

    output_dir = Path(output_dir)
    result.save_json(output_dir / "result.json")
    catalog.save_json(output_dir / "catalog.json")
    csv_path = write_csv(result.schedule, output_dir / "schedule.csv")
    console.print(f"[green]✓[/green] Ergebnis gespeichert: {output_dir / 'result.json'}")
    console.print(f"[green]✓[/green] CSV gespeichert: {csv_path}")
    if excel:
        from export.excel_export import ExcelExporter
        path = ExcelExporter(
            result, catalog, config.institution_name, config.time_grid.day_names
        ).export(output_dir / "vorlesungsplan.xlsx")
        console.print(f"[green]✓[/green] Excel gespeichert: {path}")


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--input-dir", "-i", type=click.Path(path_type=Path), default=DEFAULT_OUTPUT_DIR,
              help="Verzeichnis mit result.json und catalog.json.")
@click.option("--format", "fmt", type=click.Choice(["csv", "xlsx", "all"]), default="all")
@click.option("--lecturers", "with_lecturers", is_flag=True, default=False,
              help="Excel: zusätzlich ein Blatt je Dozent.")
def cmd_export(input_dir: Path, fmt: str, with_lecturers: bool):
    """Exportiert ein gespeichertes Ergebnis als CSV und/oder Excel."""
    from export.csv_export import write_csv
    from export.excel_export import ExcelExporter
    from models.catalog import Catalog
    from solver.result import OptimizationResult

    input_dir = Path(input_dir)
    try:
        result = OptimizationResult.load_json(input_dir / "result.json")
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]\nFühren Sie zunächst [bold]python main.py solve[/bold] aus.")
        sys.exit(1)

    if fmt in ("csv", "all"):
        path = write_csv(result.schedule, input_dir / "schedule.csv")
        console.print(f"[green]✓[/green] CSV gespeichert: {path}")
    if fmt in ("xlsx", "all"):
        catalog = Catalog.load_json(input_dir / "catalog.json")
        mgr, config = _load_config_or_abort()
        path = ExcelExporter(
            result, catalog, config.institution_name, config.time_grid.day_names
        ).export(input_dir / "vorlesungsplan.xlsx", include_lecturers=with_lecturers)
        console.print(f"[green]✓[/green] Excel gespeichert: {path}")


# ─── TUNE ─────────────────────────────────────────────────────────────────────

@click.command("tune")
@click.option("--courses", type=click.Path(path_type=Path), default=DEFAULT_COURSES)
@click.option("--preferences", type=click.Path(path_type=Path), default=DEFAULT_PREFERENCES)
@click.option("--swarm-size", callback=_parse_range, default=None, help="START:STOP:SCHRITT")
@click.option("--iterations", callback=_parse_range, default=None, help="START:STOP:SCHRITT")
@click.option("--inertia", callback=_parse_range, default=None, help="START:STOP:SCHRITT")
@click.option("--cognitive", callback=_parse_range, default=None, help="START:STOP:SCHRITT")
@click.option("--social", callback=_parse_range, default=None, help="START:STOP:SCHRITT")
@click.option("--seed", type=int, default=0, help="Fester Seed für alle Versuche.")
def cmd_tune(courses, preferences, swarm_size, iterations, inertia, cognitive, social, seed):
    """Sucht PSO-Parameter, einen nach dem anderen."""
    from export.console import print_tuning_report
    from solver.orchestrator import InvalidRequestError
    from solver.tuning import tune_parameters

    mgr, config = _load_config_or_abort()
    catalog = _load_catalog_or_abort(config, courses, preferences)

    ranges = {
        name: rng
        for name, rng in {
            "swarm_size": swarm_size,
            "max_iterations": iterations,
            "inertia_weight": inertia,
            "cognitive_weight": cognitive,
            "social_weight": social,
        }.items()
        if rng is not None
    }
    if not ranges:
        console.print("[yellow]Kein Parameterbereich angegeben (z.B. --inertia 0.4:0.9:0.1).[/yellow]")
        sys.exit(1)

    try:
        report = tune_parameters(
            catalog, config.optimization, ranges,
            weights=config.weights, engine=config.engine, seed=seed,
        )
    except InvalidRequestError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    print_tuning_report(report, console)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben anzeigen.")
def cli(verbose: bool):
    """Vorlesungsplan-Generator (Partikelschwarm-Optimierung).

    Starten Sie mit: python main.py setup
    """
    _setup_logging(verbose)


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf die Standard-Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Vorlesungsplan-Generator![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Standard-Konfiguration wird jetzt angelegt...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_solve)
cli.add_command(cmd_export)
cli.add_command(cmd_tune)


if __name__ == "__main__":
    main()
