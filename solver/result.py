"""Ergebnis einer Optimierungsanfrage."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from config.schema import OptimizationParams
from solver.encoding import ScheduleEntry
from solver.fitness import ConflictReport


class OptimizationResult(BaseModel):
    """Endergebnis über alle Läufe (wird genau einmal geliefert)."""

    success: bool
    fitness: Optional[float] = None
    schedule: list[ScheduleEntry] = []
    conflicts: ConflictReport = Field(default_factory=ConflictReport)
    all_best_fitness: list[float] = []
    cancelled: bool = False
    runs_completed: int = 0
    best_run: Optional[int] = None
    best_iteration: Optional[int] = None
    elapsed_seconds: float = 0.0
    message: str = ""
    params: Optional[OptimizationParams] = None
    seed: Optional[int] = None

    def get_group_schedule(self, class_group_id: str) -> list[ScheduleEntry]:
        """Alle Einträge einer Studiengruppe."""
        return [e for e in self.schedule if e.class_group_id == class_group_id]

    def get_lecturer_schedule(self, lecturer_id: str) -> list[ScheduleEntry]:
        """Alle Einträge einer Lehrperson."""
        return [e for e in self.schedule if e.lecturer_id == lecturer_id]

    def save_json(self, path: Path) -> None:
        """Speichert das Ergebnis als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "OptimizationResult":
        """Lädt ein gespeichertes Ergebnis aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ergebnis nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())


def assemble_result(
    *,
    fitness: float,
    schedule: list[ScheduleEntry],
    conflicts: ConflictReport,
    all_best_fitness: list[float],
    best_run: int,
    best_iteration: int,
    cancelled: bool,
    elapsed_seconds: float,
    params: OptimizationParams,
    seed: int,
) -> OptimizationResult:
    """Verpackt den besten Stundenplan aller Läufe."""
    runs_completed = len(all_best_fitness)
    if cancelled:
        message = (
            f"Abgebrochen nach {runs_completed} von {params.num_runs} Läufen – "
            f"bester bisher gefundener Plan."
        )
    else:
        message = f"{runs_completed} Läufe abgeschlossen."
    return OptimizationResult(
        success=True,
        fitness=fitness,
        schedule=list(schedule),
        conflicts=conflicts,
        all_best_fitness=list(all_best_fitness),
        cancelled=cancelled,
        runs_completed=runs_completed,
        best_run=best_run,
        best_iteration=best_iteration,
        elapsed_seconds=elapsed_seconds,
        message=message,
        params=params,
        seed=seed,
    )


def failure_result(
    message: str,
    all_best_fitness: Optional[list[float]] = None,
    elapsed_seconds: float = 0.0,
    params: Optional[OptimizationParams] = None,
    seed: Optional[int] = None,
) -> OptimizationResult:
    """Ergebnis für einen internen Fehler während der Läufe."""
    return OptimizationResult(
        success=False,
        all_best_fitness=list(all_best_fitness or []),
        runs_completed=len(all_best_fitness or []),
        elapsed_seconds=elapsed_seconds,
        message=message,
        params=params,
        seed=seed,
    )
