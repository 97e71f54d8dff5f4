"""Lauf-Steuerung: mehrere unabhängige PSO-Läufe, Fortschritt, Abbruch.

Architektur:
  - OptimizationContext   expliziter Kontext einer Anfrage (kein globaler Zustand)
  - RunOrchestrator       Iterationsschleife über alle Läufe, Abbruch nur an
                          Iterationsgrenzen, Snapshots nach jeder Iteration
  - OptimizationJob       führt den Orchestrator in einem Hintergrund-Thread aus
  - start_optimization()  Validierung + Start; optimize() blockierende Variante
"""

import logging
import math
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from config.schema import EngineConfig, FitnessWeights, OptimizationParams
from models.catalog import Catalog, CatalogError, FeasibilityReport
from solver.encoding import ScheduleEncoder
from solver.fitness import FitnessEvaluator
from solver.progress import ElapsedTime, ProgressChannel, ProgressSnapshot
from solver.result import OptimizationResult, assemble_result, failure_result
from solver.swarm import GlobalBest, ParticleSwarmOptimizer

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Anfrage ist ungültig; es wurde kein Lauf gestartet."""

    def __init__(self, message: str, report: Optional[FeasibilityReport] = None) -> None:
        super().__init__(message)
        self.report = report


# ─── Kontext ──────────────────────────────────────────────────────────────────

@dataclass
class OptimizationContext:
    """Alles, was eine einzelne Optimierungsanfrage braucht.

    Mehrere Kontexte können unabhängig voneinander laufen.
    """

    catalog: Catalog
    params: OptimizationParams
    weights: FitnessWeights
    engine: EngineConfig
    encoder: ScheduleEncoder
    evaluator: FitnessEvaluator
    seed: int
    progress: ProgressChannel
    cancel_event: threading.Event = field(default_factory=threading.Event)
    started_ns: int = field(default_factory=time.perf_counter_ns)

    @classmethod
    def create(
        cls,
        catalog: Catalog,
        params: OptimizationParams,
        weights: Optional[FitnessWeights] = None,
        engine: Optional[EngineConfig] = None,
        progress: Optional[ProgressChannel] = None,
        seed: Optional[int] = None,
    ) -> "OptimizationContext":
        """Validiert die Anfrage und baut Kodierung + Bewertung auf.

        Raises:
            InvalidRequestError: leerer Katalog, fehlende Präferenzen, ...
        """
        engine = engine or EngineConfig()
        weights = weights or FitnessWeights()
        validate_request(catalog)
        try:
            encoder = ScheduleEncoder(catalog)
        except CatalogError as e:
            raise InvalidRequestError(str(e)) from e

        if seed is None:
            seed = engine.seed
        if seed is None:
            # Systementropie, aber im Ergebnis festgehalten (reproduzierbar)
            seed = int(np.random.SeedSequence().entropy % (2 ** 63))

        return cls(
            catalog=catalog,
            params=params,
            weights=weights,
            engine=engine,
            encoder=encoder,
            evaluator=FitnessEvaluator(catalog, weights),
            seed=seed,
            progress=progress or ProgressChannel(engine.progress_queue_size),
        )

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def elapsed(self) -> ElapsedTime:
        return ElapsedTime.from_ns(time.perf_counter_ns() - self.started_ns)


def validate_request(catalog: Catalog) -> FeasibilityReport:
    """Prüft den Katalog vor dem Start; Fehler → InvalidRequestError."""
    report = catalog.validate_feasibility()
    if not report.is_feasible:
        raise InvalidRequestError(
            "Ungültige Anfrage:\n" + "\n".join(f"  • {e}" for e in report.errors),
            report,
        )
    for warning in report.warnings:
        logger.warning(warning)
    return report


# ─── Orchestrator ─────────────────────────────────────────────────────────────

class RunOrchestrator:
    """Führt `num_runs` unabhängige Läufe aus und wählt den besten Plan.

    Jeder Lauf erhält einen eigenen Zufallsgenerator aus
    SeedSequence(seed).spawn(num_runs): gleicher Seed → gleiches Ergebnis.
    """

    def __init__(self, context: OptimizationContext) -> None:
        self.context = context
        self.all_best_fitness: list[float] = []
        self.last_published: Optional[tuple[int, int, float]] = None

    def run(self) -> OptimizationResult:
        ctx = self.context
        params = ctx.params
        child_seeds = np.random.SeedSequence(ctx.seed).spawn(params.num_runs)

        logger.info(
            f"Optimierung gestartet: {len(ctx.catalog.sections)} Angebote, "
            f"{params.num_runs} Läufe × {params.max_iterations} Iterationen, "
            f"{params.swarm_size} Partikel, Seed {ctx.seed}"
        )

        best_run = -1
        best: Optional[GlobalBest] = None
        cancelled = False

        workers = ctx.engine.num_workers
        pool = ThreadPoolExecutor(max_workers=workers) if workers > 1 else nullcontext()
        with pool as executor:
            for run in range(params.num_runs):
                # Erster Lauf startet immer, damit ein Plan existiert
                if run > 0 and ctx.cancelled:
                    cancelled = True
                    self.publish_final()
                    break

                run_best, cancelled = self._run_once(run, child_seeds[run], executor)
                if best is None or run_best.fitness < best.fitness:
                    best, best_run = run_best, run
                if cancelled:
                    break

        elapsed = ctx.elapsed().total_seconds
        logger.info(
            f"Optimierung {'abgebrochen' if cancelled else 'beendet'}: "
            f"Fitness {best.fitness:.1f} (Lauf {best_run + 1}, Iteration {best.iteration}) | "
            f"Zeit: {elapsed:.1f}s"
        )
        return assemble_result(
            fitness=best.fitness,
            schedule=best.timetable,
            conflicts=best.report,
            all_best_fitness=self.all_best_fitness,
            best_run=best_run,
            best_iteration=best.iteration,
            cancelled=cancelled,
            elapsed_seconds=elapsed,
            params=params,
            seed=ctx.seed,
        )

    def _run_once(self, run, seed_seq, executor) -> tuple[GlobalBest, bool]:
        """Ein Lauf; gibt (Bestwert, abgebrochen) zurück."""
        ctx = self.context
        params = ctx.params
        last_run = run == params.num_runs - 1

        pso = ParticleSwarmOptimizer(
            ctx.encoder,
            ctx.evaluator,
            params,
            ctx.engine,
            np.random.default_rng(seed_seq),
            executor=executor,
        )
        pso.initialize()

        for iteration in range(1, params.max_iterations + 1):
            summary = pso.step(iteration)

            # Iterationsgrenze: hier und nur hier wird der Abbruch beachtet
            cancelled = ctx.cancelled
            completed = iteration == params.max_iterations
            if completed:
                self.all_best_fitness.append(summary.best_fitness)
                logger.info(
                    f"  Lauf {run + 1}/{params.num_runs}: Bestfitness {summary.best_fitness:.1f}"
                )

            # Ein vollständig beendeter letzter Lauf ist kein Abbruch mehr
            stop = cancelled and not (completed and last_run)
            self._publish(
                run, iteration, summary.best_fitness,
                finished=stop or (completed and last_run),
            )
            if stop:
                logger.warning(
                    f"Abbruch angefordert – Lauf {run + 1} endet nach Iteration {iteration}"
                )
                return pso.swarm.best, True

        return pso.swarm.best, False

    def publish_final(self) -> None:
        """Abschlussmeldung mit dem zuletzt gemeldeten Stand (Lauf, Iteration, Bestwert)."""
        run, iteration, best_fitness = self.last_published or (0, 0, math.inf)
        self._publish(run, iteration, best_fitness, finished=True)

    def _publish(self, run: int, iteration: int, best_fitness: float, finished: bool) -> None:
        ctx = self.context
        self.last_published = (run, iteration, best_fitness)
        ctx.progress.publish(ProgressSnapshot(
            iteration=iteration,
            best_fitness=best_fitness,
            current_run=run,
            total_runs=ctx.params.num_runs,
            all_best_fitness=list(self.all_best_fitness),
            elapsed_time=ctx.elapsed(),
            is_finished=finished,
        ))


# ─── Hintergrund-Job ──────────────────────────────────────────────────────────

class OptimizationJob:
    """Eine laufende Optimierung im Hintergrund.

    Verwendung:
        job = start_optimization(catalog, params)
        for snapshot in job.progress:
            ...
        result = job.result()
    """

    def __init__(self, context: OptimizationContext) -> None:
        self.context = context
        self._future: "Future[OptimizationResult]" = Future()
        self._thread = threading.Thread(
            target=self._run, name="pso-optimization", daemon=True
        )

    @property
    def progress(self) -> ProgressChannel:
        return self.context.progress

    def start(self) -> "OptimizationJob":
        self._future.set_running_or_notify_cancel()
        self._thread.start()
        return self

    def _run(self) -> None:
        ctx = self.context
        orchestrator = RunOrchestrator(ctx)
        try:
            result = orchestrator.run()
        except Exception as e:
            logger.exception("Interner Fehler während der Optimierung")
            elapsed = ctx.elapsed()
            result = failure_result(
                f"Interner Fehler: {type(e).__name__}: {e}",
                all_best_fitness=orchestrator.all_best_fitness,
                elapsed_seconds=elapsed.total_seconds,
                params=ctx.params,
                seed=ctx.seed,
            )
            # Letzter gemeldeter Stand, damit die Meldungsfolge nicht zurückspringt
            orchestrator.publish_final()
        self._future.set_result(result)

    def stop(self) -> None:
        """Kooperativer Abbruch; wird an der nächsten Iterationsgrenze wirksam."""
        logger.info("Abbruch angefordert")
        self.context.cancel_event.set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> OptimizationResult:
        """Wartet auf das Endergebnis (höchstens `timeout` Sekunden)."""
        return self._future.result(timeout=timeout)

    def add_done_callback(self, fn) -> None:
        self._future.add_done_callback(lambda fut: fn(fut.result()))


def start_optimization(
    catalog: Catalog,
    params: OptimizationParams,
    weights: Optional[FitnessWeights] = None,
    engine: Optional[EngineConfig] = None,
    progress: Optional[ProgressChannel] = None,
    seed: Optional[int] = None,
) -> OptimizationJob:
    """Validiert synchron und startet die Optimierung im Hintergrund.

    Raises:
        InvalidRequestError: bevor irgendein Lauf gestartet wurde
    """
    context = OptimizationContext.create(
        catalog, params, weights=weights, engine=engine, progress=progress, seed=seed
    )
    return OptimizationJob(context).start()


def optimize(
    catalog: Catalog,
    params: OptimizationParams,
    weights: Optional[FitnessWeights] = None,
    engine: Optional[EngineConfig] = None,
    seed: Optional[int] = None,
) -> OptimizationResult:
    """Blockierende Variante von start_optimization()."""
    job = start_optimization(catalog, params, weights=weights, engine=engine, seed=seed)
    return job.result()
