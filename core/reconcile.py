"""
Reconciliation of duplicate records within one feed snapshot.

A snapshot can list the same bib several times (an "on course" line early,
the finished time later). RacerReconciler merges them into one RacerRecord
per bib, in the order bibs were first seen. Records are immutable: each
merge produces a replacement record.

Merge policy per run slot: a duration always replaces what is there; an
"on course" placeholder only fills a slot that is still unset; any other
status is ignored once the slot holds something.

Usage:
    from core.reconcile import RacerReconciler

    reconciler = RacerReconciler()
    for raw in records:
        reconciler.add(raw)
    racers = reconciler.racers()
"""

import math
from dataclasses import replace
from typing import Optional

from core.durations import RunResult, RunStatus
from core.models import RawRecord, RacerRecord


def should_replace(existing: RunResult, incoming: RunResult) -> bool:
    """
    Decide whether an incoming run result overwrites the stored one.

    Examples:
        >>> should_replace(RunResult.of_status(RunStatus.ON_COURSE), RunResult.duration(45670))
        True
        >>> should_replace(RunResult.duration(45670), RunResult.of_status(RunStatus.DNF))
        False
    """
    if incoming.is_duration:
        return True
    return incoming.is_on_course and existing.is_unset


def derive_total(racer: RacerRecord) -> RacerRecord:
    """
    Return the record with its total time recomputed from the two runs.

    Total is the sum when both runs are durations, otherwise None. A sum that
    is not finite clears the total and marks both runs DNS.
    """
    if not (racer.run1.is_duration and racer.run2.is_duration):
        return replace(racer, total_time=None)

    total = racer.run1.milliseconds + racer.run2.milliseconds
    if math.isfinite(total):
        return replace(racer, total_time=total)

    dns = RunResult.of_status(RunStatus.DNS)
    return replace(racer, total_time=None, run1=dns, run2=dns)


class RacerReconciler:
    """
    Ordered bib -> RacerRecord map for a single decode.

    Sequence ids start at 1 and are handed out on first sighting of a bib.
    Records are frozen; a merge stores a new record under the same bib,
    keeping its position. A fresh reconciler must be used for every snapshot.
    """

    def __init__(self):
        self._racers: dict[int, RacerRecord] = {}
        self._next_id = 1

    @property
    def next_id(self) -> int:
        """Sequence id the next new bib will receive."""
        return self._next_id

    def __len__(self) -> int:
        return len(self._racers)

    def __contains__(self, bib_number: int) -> bool:
        return bib_number in self._racers

    def get(self, bib_number: int) -> Optional[RacerRecord]:
        return self._racers.get(bib_number)

    def add(self, raw: RawRecord) -> RacerRecord:
        """
        Merge a raw record into the snapshot.

        Args:
            raw: Record as read by a decoder

        Returns:
            The canonical record for the raw record's bib after the merge
        """
        existing = self._racers.get(raw.bib_number)

        if existing is None:
            racer = derive_total(RacerRecord.from_raw(self._next_id, raw))
            self._next_id += 1
            self._racers[raw.bib_number] = racer
            return racer

        # Result and raw token move together so they always describe one record
        changes = {}
        if should_replace(existing.run1, raw.run1):
            changes.update(run1=raw.run1, raw_run1=raw.raw_run1)
        if should_replace(existing.run2, raw.run2):
            changes.update(run2=raw.run2, raw_run2=raw.raw_run2)

        if raw.timestamp is not None:
            changes["timestamp"] = raw.timestamp

        racer = derive_total(replace(existing, **changes))
        self._racers[raw.bib_number] = racer
        return racer

    def racers(self) -> tuple[RacerRecord, ...]:
        """All reconciled records in first-seen order."""
        return tuple(self._racers.values())
