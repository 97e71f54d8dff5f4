"""Parametersuche: ein Parameter nach dem anderen.

Für jeden Parameter wird sein Wertebereich durchlaufen, während alle
anderen auf dem bisher besten Wert stehen. Der beste Wert wird übernommen,
dann kommt der nächste Parameter dran. Jeder Versuch ist eine vollständige
Optimierung mit festem Seed, damit sich die Versuche vergleichen lassen.
"""

import logging
import math
from typing import Callable, Optional

from pydantic import BaseModel, model_validator

from config.schema import EngineConfig, FitnessWeights, OptimizationParams
from models.catalog import Catalog
from solver.orchestrator import optimize

logger = logging.getLogger(__name__)

# Reihenfolge der Suche
TUNABLE_PARAMETERS: tuple[str, ...] = (
    "swarm_size",
    "max_iterations",
    "inertia_weight",
    "cognitive_weight",
    "social_weight",
)
_INTEGER_PARAMETERS = {"swarm_size", "max_iterations"}


class ParameterRange(BaseModel):
    """Geschlossener Bereich [start, stop] mit Schrittweite `step`."""

    start: float
    stop: float
    step: float

    @model_validator(mode="after")
    def _check(self) -> "ParameterRange":
        if self.step <= 0:
            raise ValueError(f"Schrittweite muss > 0 sein, ist {self.step}")
        if self.stop < self.start:
            raise ValueError(f"Ende ({self.stop}) liegt vor Anfang ({self.start})")
        return self

    def values(self) -> list[float]:
        # Rundung verhindert, dass 0.1-Schritte den Endwert verfehlen
        count = math.floor((self.stop - self.start) / self.step + 1e-9) + 1
        return [round(self.start + k * self.step, 10) for k in range(count)]


class TuningTrial(BaseModel):
    parameter: str
    value: float
    fitness: float
    params: OptimizationParams


class TuningReport(BaseModel):
    """Ergebnis der Parametersuche."""

    best_params: OptimizationParams
    best_fitness: float
    history: dict[str, list[TuningTrial]] = {}

    @property
    def trial_count(self) -> int:
        return sum(len(trials) for trials in self.history.values())


def _with_value(params: OptimizationParams, name: str, value: float) -> OptimizationParams:
    if name in _INTEGER_PARAMETERS:
        value = int(round(value))
    # Grenzen (z.B. swarm_size >= 1) werden geprüft
    return OptimizationParams.model_validate({**params.model_dump(), name: value})


def tune_parameters(
    catalog: Catalog,
    base_params: OptimizationParams,
    ranges: dict[str, ParameterRange],
    weights: Optional[FitnessWeights] = None,
    engine: Optional[EngineConfig] = None,
    seed: int = 0,
    on_trial: Optional[Callable[[TuningTrial], None]] = None,
) -> TuningReport:
    """Sucht nacheinander den besten Wert je Parameter aus `ranges`.

    Parameter ohne Bereich bleiben auf dem Wert aus `base_params`.

    Raises:
        ValueError: unbekannter Parametername oder Wert außerhalb der Grenzen
        InvalidRequestError: Katalog ungültig (vor dem ersten Versuch)
    """
    unknown = set(ranges) - set(TUNABLE_PARAMETERS)
    if unknown:
        raise ValueError(
            f"Unbekannte Parameter: {', '.join(sorted(unknown))} "
            f"(erlaubt: {', '.join(TUNABLE_PARAMETERS)})"
        )

    best_params = base_params.model_copy(update={"num_runs": 1})
    best_fitness = math.inf
    history: dict[str, list[TuningTrial]] = {}

    for name in TUNABLE_PARAMETERS:
        if name not in ranges:
            continue
        values = ranges[name].values()
        logger.info(f"Parameter {name}: {len(values)} Werte")

        trials: list[TuningTrial] = []
        param_best: Optional[TuningTrial] = None
        for value in values:
            trial_params = _with_value(best_params, name, value)
            result = optimize(
                catalog, trial_params, weights=weights, engine=engine, seed=seed
            )
            if not result.success:
                raise RuntimeError(f"Versuch {name}={value} fehlgeschlagen: {result.message}")

            trial = TuningTrial(
                parameter=name, value=value, fitness=result.fitness, params=trial_params
            )
            trials.append(trial)
            logger.debug(f"  {name}={value}: Fitness {result.fitness:.1f}")
            if on_trial is not None:
                on_trial(trial)
            if param_best is None or trial.fitness < param_best.fitness:
                param_best = trial

        history[name] = trials
        best_params = param_best.params
        best_fitness = param_best.fitness
        logger.info(f"  Bester Wert {name}={param_best.value} (Fitness {best_fitness:.1f})")

    if not history:
        result = optimize(catalog, best_params, weights=weights, engine=engine, seed=seed)
        best_fitness = result.fitness

    return TuningReport(best_params=best_params, best_fitness=best_fitness, history=history)
