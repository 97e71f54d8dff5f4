"""Fortschrittsmeldungen: Momentaufnahmen + nicht-blockierender Kanal.

Der Optimierer schreibt Snapshots in einen begrenzten Puffer und wartet
nie auf den Empfänger. Ist der Puffer voll, wird die älteste Meldung
verworfen; die abschließende Meldung (is_finished=True) geht nie verloren.
"""

import queue
from typing import Iterator, Optional

from pydantic import BaseModel


class ElapsedTime(BaseModel):
    """Verstrichene Zeit seit Start der Anfrage."""

    seconds: int
    nanoseconds: int

    @classmethod
    def from_ns(cls, ns: int) -> "ElapsedTime":
        return cls(seconds=ns // 1_000_000_000, nanoseconds=ns % 1_000_000_000)

    @property
    def total_seconds(self) -> float:
        return self.seconds + self.nanoseconds / 1e9


class ProgressSnapshot(BaseModel):
    """Lesekopie des Laufzustands nach einer Iteration."""

    iteration: int
    best_fitness: float           # Bestwert im aktuellen Lauf
    current_run: int              # 0-basiert
    total_runs: int
    all_best_fitness: list[float] # ein Wert je abgeschlossenem Lauf
    elapsed_time: ElapsedTime
    is_finished: bool = False


class ProgressChannel:
    """Begrenzter FIFO-Kanal zwischen Optimierer (Sender) und Aufrufer (Empfänger)."""

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: "queue.Queue[ProgressSnapshot]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def publish(self, snapshot: ProgressSnapshot) -> None:
        """Nicht-blockierend einstellen; bei vollem Puffer älteste Meldung verwerfen."""
        while True:
            try:
                self._queue.put_nowait(snapshot)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressSnapshot]:
        """Nächste Meldung oder None nach Ablauf von `timeout`."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[ProgressSnapshot]:
        """Alle aktuell gepufferten Meldungen entnehmen."""
        items: list[ProgressSnapshot] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def __iter__(self) -> Iterator[ProgressSnapshot]:
        """Blockierend iterieren bis einschließlich der Abschlussmeldung."""
        while True:
            snapshot = self._queue.get()
            yield snapshot
            if snapshot.is_finished:
                return
