"""Stale-result guard for deferred sampling passes.

Every scheduled pass gets a ticket carrying the key it was computed for.
When the pass finishes the caller asks :meth:`PassTracker.accept` whether it
may still be applied: only the newest ticket for a formula whose key equals
the current state is accepted.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Mapping

from .models import CanvasSize, Formula, GridFrame

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SamplingKey:
    formula_id: str
    expression: str
    parameters: tuple[tuple[str, float], ...]
    scale_factor: float
    x_range: tuple[float, float]
    frame: GridFrame
    canvas: CanvasSize

    @classmethod
    def for_pass(cls, formula: Formula, frame: GridFrame, canvas: CanvasSize) -> "SamplingKey":
        return cls(
            formula_id=formula.id,
            expression=formula.expression,
            parameters=_freeze(formula.parameters),
            scale_factor=formula.scale_factor,
            x_range=formula.x_range,
            frame=frame,
            canvas=canvas,
        )


def _freeze(parameters: Mapping[str, float]) -> tuple[tuple[str, float], ...]:
    return tuple(sorted((k, float(v)) for k, v in parameters.items()))


@dataclass(frozen=True, slots=True)
class PassTicket:
    generation: int
    key: SamplingKey


class PassTracker:
    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def schedule(self, key: SamplingKey) -> PassTicket:
        """Issue a ticket that supersedes every earlier one for the formula."""
        ticket = PassTicket(next(self._counter), key)
        self._latest[key.formula_id] = ticket.generation
        return ticket

    def is_current(self, ticket: PassTicket, current_key: SamplingKey) -> bool:
        """Like :meth:`accept` but without consuming the ticket.

        Checked before a pass runs, so a stale pass is never computed.
        """
        return (
            self._latest.get(ticket.key.formula_id) == ticket.generation
            and ticket.key == current_key
        )

    def accept(self, ticket: PassTicket, current_key: SamplingKey) -> bool:
        """True if *ticket* is the newest for its formula and still current.

        An accepted ticket is consumed.
        """
        latest = self._latest.get(ticket.key.formula_id)
        if latest != ticket.generation:
            log.debug("dropping superseded pass %d for %s", ticket.generation, ticket.key.formula_id)
            return False
        if ticket.key != current_key:
            log.debug("dropping stale pass %d for %s", ticket.generation, ticket.key.formula_id)
            return False
        del self._latest[ticket.key.formula_id]
        return True

    def cancel(self, formula_id: str) -> None:
        self._latest.pop(formula_id, None)

    def pending(self, formula_id: str) -> bool:
        return formula_id in self._latest
