"""Partikelschwarm-Optimierung (PSO) für einen einzelnen Lauf.

Ablauf pro Iteration:
  1. Geschwindigkeit und Position aller Partikel aktualisieren
     (sequentiell, damit die Zufallszahlen-Reihenfolge fest ist)
  2. Dekodieren + Bewerten (optional parallel im ThreadPool)
  3. Persönliche Bestwerte aktualisieren
  4. Globalen Bestwert unter Lock per Vergleich-und-Setzen aktualisieren

Die Iterationsschleife selbst (inkl. Abbruchprüfung) liegt im RunOrchestrator.
"""

import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from config.schema import EngineConfig, OptimizationParams
from solver.encoding import ScheduleEncoder, ScheduleEntry
from solver.fitness import ConflictReport, FitnessEvaluator
from solver.particle import Particle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalBest:
    """Bester Stand eines Laufs (unveränderliche Momentaufnahme)."""

    position: np.ndarray
    fitness: float
    timetable: list[ScheduleEntry]
    report: ConflictReport
    iteration: int


@dataclass(frozen=True)
class IterationSummary:
    iteration: int
    best_fitness: float
    improved: bool


class Swarm:
    """Alle Partikel eines Laufs plus gemeinsamer globaler Bestwert."""

    def __init__(self, particles: list[Particle]) -> None:
        self.particles = particles
        self._lock = threading.Lock()
        self._best: Optional[GlobalBest] = None

    @property
    def best(self) -> Optional[GlobalBest]:
        with self._lock:
            return self._best

    def offer(self, particle: Particle, iteration: int) -> bool:
        """Übernimmt den Partikelstand nur, wenn er echt besser ist."""
        with self._lock:
            if self._best is not None and particle.fitness >= self._best.fitness:
                return False
            self._best = GlobalBest(
                position=particle.position.copy(),
                fitness=particle.fitness,
                timetable=particle.timetable,
                report=particle.report,
                iteration=iteration,
            )
            return True

    def __len__(self) -> int:
        return len(self.particles)


class ParticleSwarmOptimizer:
    """Ein PSO-Lauf über dem Positionsraum eines ScheduleEncoders.

    Verwendung:
        pso = ParticleSwarmOptimizer(encoder, evaluator, params, engine, rng)
        pso.initialize()
        for it in range(1, params.max_iterations + 1):
            pso.step(it)
        best = pso.swarm.best
    """

    def __init__(
        self,
        encoder: ScheduleEncoder,
        evaluator: FitnessEvaluator,
        params: OptimizationParams,
        engine: EngineConfig,
        rng: np.random.Generator,
        executor: Optional[Executor] = None,
    ) -> None:
        self.encoder = encoder
        self.evaluator = evaluator
        self.params = params
        self.engine = engine
        self.rng = rng
        self._executor = executor
        self.swarm: Optional[Swarm] = None

    # ─── Bewertung ────────────────────────────────────────────────────────────

    def _evaluate_position(
        self, position: np.ndarray
    ) -> tuple[float, list[ScheduleEntry], ConflictReport]:
        timetable = self.encoder.decode(position)
        fitness, report = self.evaluator.evaluate(timetable)
        return fitness, timetable, report

    def _evaluate_all(self) -> list[tuple[float, list[ScheduleEntry], ConflictReport]]:
        positions = [p.position for p in self.swarm.particles]
        if self._executor is not None:
            return list(self._executor.map(self._evaluate_position, positions))
        return [self._evaluate_position(pos) for pos in positions]

    def _absorb(self, iteration: int) -> bool:
        """Ergebnisse übernehmen; Reihenfolge = Partikelreihenfolge."""
        improved = False
        for particle, (fitness, timetable, report) in zip(
            self.swarm.particles, self._evaluate_all()
        ):
            if particle.record(fitness, timetable, report):
                improved = self.swarm.offer(particle, iteration) or improved
        return improved

    # ─── Lauf ─────────────────────────────────────────────────────────────────

    def initialize(self) -> IterationSummary:
        """Erzeugt und bewertet den Startschwarm (Iteration 0)."""
        n = self.params.swarm_size
        positions = self.encoder.initial_positions(self.rng, n, self.engine.init_strategy)
        v0 = self.engine.initial_velocity
        if v0 > 0:
            velocities = self.rng.uniform(-v0, v0, size=positions.shape)
        else:
            velocities = np.zeros_like(positions)

        self.swarm = Swarm([
            Particle(positions[i], velocities[i]) for i in range(n)
        ])
        self._absorb(iteration=0)
        best = self.swarm.best
        logger.debug(f"Schwarm initialisiert: {n} Partikel, Start-Fitness {best.fitness:.1f}")
        return IterationSummary(iteration=0, best_fitness=best.fitness, improved=True)

    def step(self, iteration: int) -> IterationSummary:
        """Eine vollständige Iteration über alle Partikel."""
        if self.swarm is None:
            raise RuntimeError("initialize() muss vor step() aufgerufen werden")
        global_best = self.swarm.best.position
        lower, upper = self.encoder.lower, self.encoder.upper
        for particle in self.swarm.particles:
            particle.update_velocity(global_best, self.params, self.rng)
            particle.update_position(lower, upper)

        improved = self._absorb(iteration)
        best = self.swarm.best
        if improved:
            logger.debug(f"  Iteration {iteration}: neue Bestfitness {best.fitness:.1f}")
        return IterationSummary(
            iteration=iteration, best_fitness=best.fitness, improved=improved
        )
