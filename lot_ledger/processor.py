"""
Ledger event processor.

Applies a stream of buy/sell events to a single ledger using one cost basis
method for the whole session, and decides what happens when an event is
rejected: skip it and carry on, or abort the run.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Union

from .data.events import EventAction, LedgerEvent, parse_event
from .tax.cost_basis import CostBasisMethod
from .tax.errors import LedgerError
from .tax.lot_tracking import Ledger, apply_buy, apply_sale
from .utils.logging import log_buy, log_rejection, log_sale

logger = logging.getLogger(__name__)


class ErrorPolicy(str, Enum):
    """What to do with an event the ledger rejects."""
    SKIP = "skip"
    ABORT = "abort"


@dataclass
class ProcessingSummary:
    """Counts for one processing run."""
    events: int = 0
    buys: int = 0
    sales: int = 0
    rejected: int = 0
    errors_by_kind: Counter = field(default_factory=Counter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "events": self.events,
            "buys": self.buys,
            "sales": self.sales,
            "rejected": self.rejected,
            "errors_by_kind": dict(self.errors_by_kind),
        }


class LedgerProcessor:
    """
    Runs events against an owned ledger.

    The cost basis method is resolved once at construction, so an unknown
    method fails before any event is read.
    """

    def __init__(
        self,
        method: Union[str, CostBasisMethod] = CostBasisMethod.FIFO,
        on_error: Union[str, ErrorPolicy] = ErrorPolicy.SKIP,
        ledger: Optional[Ledger] = None,
    ):
        self.method = CostBasisMethod.parse(method)
        self.on_error = ErrorPolicy(on_error)
        self._ledger = ledger if ledger is not None else Ledger()
        self.summary = ProcessingSummary()

    @classmethod
    def from_settings(cls, settings: dict, method: Optional[str] = None) -> "LedgerProcessor":
        """Create a processor from validated settings; ``method`` overrides the config."""
        ledger_settings = settings.get("ledger", {})
        return cls(
            method=method or ledger_settings.get("strategy", CostBasisMethod.FIFO.value),
            on_error=ledger_settings.get("on_error", ErrorPolicy.SKIP.value),
        )

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def process(self, event: LedgerEvent) -> bool:
        """
        Apply one event.

        Returns:
            True if the event was applied, False if it was rejected and skipped

        Raises:
            LedgerError: If the event is rejected and the policy is ABORT
        """
        self.summary.events += 1

        try:
            if event.action == EventAction.BUY:
                lot = apply_buy(self._ledger, event.date, event.price, event.quantity)
                self.summary.buys += 1
                log_buy(
                    logger,
                    lot_id=lot.lot_id,
                    date=lot.date.isoformat(),
                    price=event.price,
                    quantity=event.quantity,
                    line_number=event.line_number,
                )
            else:
                record = apply_sale(self._ledger, self.method, event.quantity)
                self.summary.sales += 1
                log_sale(
                    logger,
                    method=record.method.value,
                    quantity=record.quantity,
                    cost_basis=record.total_cost_basis,
                    lots_depleted=[d.lot_id for d in record.depletions],
                    line_number=event.line_number,
                )
        except LedgerError as e:
            self._reject(e, event.line_number)
            return False

        return True

    def process_lines(self, lines: Iterable[str]) -> ProcessingSummary:
        """
        Parse and apply every line of input.

        Malformed lines are handled by the same error policy as rejected events.
        """
        for line_number, line in enumerate(lines, 1):
            try:
                event = parse_event(line, line_number)
            except LedgerError as e:
                self.summary.events += 1
                self._reject(e, line_number)
                continue

            if event is not None:
                self.process(event)

        return self.summary

    def process_all(self, events: Iterable[LedgerEvent]) -> ProcessingSummary:
        """Apply already-parsed events in order."""
        for event in events:
            self.process(event)
        return self.summary

    def _reject(self, error: LedgerError, line_number: int) -> None:
        self.summary.rejected += 1
        self.summary.errors_by_kind[error.kind] += 1
        log_rejection(logger, error_kind=error.kind, message=str(error), line_number=line_number)

        if self.on_error == ErrorPolicy.ABORT:
            raise error
