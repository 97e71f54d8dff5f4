"""Solver-Modul (Partikelschwarm-Optimierung mit numpy)."""

from .encoding import ScheduleEncoder, ScheduleEntry, EXPORT_FIELDS
from .fitness import ConflictReport, FitnessEvaluator, PreferenceViolation, ResourceConflict
from .orchestrator import (
    InvalidRequestError,
    OptimizationJob,
    optimize,
    start_optimization,
)
from .progress import ElapsedTime, ProgressChannel, ProgressSnapshot
from .result import OptimizationResult
from .tuning import ParameterRange, TuningReport, tune_parameters

__all__ = [
    "ScheduleEncoder",
    "ScheduleEntry",
    "EXPORT_FIELDS",
    "ConflictReport",
    "FitnessEvaluator",
    "PreferenceViolation",
    "ResourceConflict",
    "InvalidRequestError",
    "OptimizationJob",
    "optimize",
    "start_optimization",
    "ElapsedTime",
    "ProgressChannel",
    "ProgressSnapshot",
    "OptimizationResult",
    "ParameterRange",
    "TuningReport",
    "tune_parameters",
]
