from config.schema import (
    EngineConfig,
    FitnessWeights,
    OptimizationParams,
    PlannerConfig,
    RoomConfig,
    RoomDef,
    SessionDef,
    TimeGridConfig,
)


def default_time_grid() -> TimeGridConfig:
    """Standard-Wochenraster einer Hochschule mit Tages- und Abendstudium.

    Zeiteinheit: 40 Minuten (= 1 SKS)

    vormittag  08:00 - 12:00   6 Einheiten
       ── Pause ──
    abend      18:00 - 22:00   6 Einheiten

    Eine Veranstaltung mit 3 SKS belegt drei aufeinanderfolgende Einheiten
    innerhalb EINES Abschnitts. Über die Pause hinweg wird nicht geplant.
    """
    return TimeGridConfig(
        day_names=["Mo", "Di", "Mi", "Do", "Fr"],
        unit_minutes=40,
        sessions=[
            SessionDef(name="vormittag", start_time="08:00", num_units=6),
            SessionDef(name="abend", start_time="18:00", num_units=6),
        ],
    )


def default_rooms(count: int = 5) -> RoomConfig:
    """Standard-Räume R1..Rn ohne Kapazitätsangabe."""
    return RoomConfig(rooms=[
        RoomDef(id=f"R{i}", name=f"Raum {i}") for i in range(1, count + 1)
    ])


def default_optimization_params() -> OptimizationParams:
    """Bewährte Startwerte: 30 Partikel, 100 Iterationen, c1=c2=2.0, w=0.7."""
    return OptimizationParams(
        swarm_size=30,
        max_iterations=100,
        cognitive_weight=2.0,
        social_weight=2.0,
        inertia_weight=0.7,
        num_runs=1,
    )


def default_planner_config() -> PlannerConfig:
    """Vollständige Default-Konfiguration."""
    return PlannerConfig(
        institution_name="Muster-Hochschule",
        time_grid=default_time_grid(),
        rooms=default_rooms(),
        optimization=default_optimization_params(),
        weights=FitnessWeights(),
        engine=EngineConfig(),
    )
