"""Ein Partikel des Schwarms: Position, Geschwindigkeit, persönlicher Bestwert."""

from typing import Optional

import numpy as np

from config.schema import OptimizationParams
from solver.encoding import ScheduleEntry
from solver.fitness import ConflictReport


class Particle:
    """Kandidat für einen vollständigen Stundenplan.

    Gehört genau einem Schwarm und wird nur von dessen Iterationsschleife
    verändert.
    """

    def __init__(self, position: np.ndarray, velocity: np.ndarray) -> None:
        self.position = np.array(position, dtype=float)
        self.velocity = np.array(velocity, dtype=float)
        self.fitness = float("inf")
        self.timetable: list[ScheduleEntry] = []
        self.report: Optional[ConflictReport] = None

        self.best_position = self.position.copy()
        self.best_fitness = float("inf")

    def update_velocity(
        self,
        global_best: np.ndarray,
        params: OptimizationParams,
        rng: np.random.Generator,
    ) -> None:
        """v = w·v + c1·r1·(pbest − x) + c2·r2·(gbest − x), r1/r2 je Dimension."""
        r1 = rng.random(self.position.shape[0])
        r2 = rng.random(self.position.shape[0])
        cognitive = params.cognitive_weight * r1 * (self.best_position - self.position)
        social = params.social_weight * r2 * (global_best - self.position)
        self.velocity = params.inertia_weight * self.velocity + cognitive + social

    def update_position(self, lower: np.ndarray, upper: np.ndarray) -> None:
        """x += v, danach auf den gültigen Bereich begrenzen."""
        self.position += self.velocity
        np.clip(self.position, lower, upper, out=self.position)

    def record(
        self,
        fitness: float,
        timetable: list[ScheduleEntry],
        report: ConflictReport,
    ) -> bool:
        """Übernimmt das Bewertungsergebnis. True wenn persönlicher Bestwert verbessert."""
        self.fitness = fitness
        self.timetable = timetable
        self.report = report
        if fitness < self.best_fitness:
            self.best_fitness = fitness
            self.best_position = self.position.copy()
            return True
        return False

    def __repr__(self) -> str:
        return f"Particle(fitness={self.fitness:.1f}, best={self.best_fitness:.1f})"
