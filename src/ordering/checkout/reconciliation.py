"""Reconciliation entries — gateway money with no matching local order.

An entry is opened whenever a gateway reports a capture that settlement
could not turn into an order (stock ran out, funds moved, the attempt was
already failed or abandoned, or a ledger write failed). Operators review
open entries and resolve them after refunding or fulfilling by hand.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.checkout.events import ReconciliationRequired, ReconciliationResolved
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


class ReconciliationStatus(Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"


@ordering.aggregate
class ReconciliationEntry:
    checkout_id = Identifier(required=True)
    customer_id = Identifier()
    gateway = String(max_length=50)
    intent_ref = String(max_length=255)
    captured_cents = Integer(required=True, min_value=0)
    expected_cents = Integer(required=True, min_value=0)
    reason = String(required=True, max_length=500)
    status = String(choices=ReconciliationStatus, default=ReconciliationStatus.OPEN.value)
    note = String(max_length=500)
    created_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def open(cls, checkout_id, captured_cents, expected_cents, reason, customer_id=None, gateway=None, intent_ref=None):
        now = datetime.now(UTC)
        entry = cls(
            checkout_id=str(checkout_id),
            customer_id=str(customer_id) if customer_id else None,
            gateway=gateway,
            intent_ref=intent_ref,
            captured_cents=captured_cents,
            expected_cents=expected_cents,
            reason=reason[:500],
            status=ReconciliationStatus.OPEN.value,
            created_at=now,
        )
        entry.raise_(
            ReconciliationRequired(
                entry_id=str(entry.id),
                checkout_id=str(checkout_id),
                gateway=gateway,
                intent_ref=intent_ref,
                captured_cents=captured_cents,
                expected_cents=expected_cents,
                reason=entry.reason,
                recorded_at=now,
            )
        )
        return entry

    def resolve(self, note=None):
        if self.status != ReconciliationStatus.OPEN.value:
            raise ValidationError({"status": ["Reconciliation entry is already resolved"]})

        now = datetime.now(UTC)
        self.status = ReconciliationStatus.RESOLVED.value
        self.note = note
        self.resolved_at = now
        self.raise_(ReconciliationResolved(entry_id=str(self.id), note=note, resolved_at=now))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@ordering.command(part_of="ReconciliationEntry")
class RecordReconciliation:
    checkout_id = Identifier(required=True)
    customer_id = Identifier()
    gateway = String(max_length=50)
    intent_ref = String(max_length=255)
    captured_cents = Integer(required=True, min_value=0)
    expected_cents = Integer(required=True, min_value=0)
    reason = String(required=True, max_length=500)


@ordering.command(part_of="ReconciliationEntry")
class ResolveReconciliation:
    entry_id = Identifier(required=True)
    note = String(max_length=500)


@ordering.command_handler(part_of=ReconciliationEntry)
class ReconciliationHandler:
    @handle(RecordReconciliation)
    def record(self, command):
        entry = ReconciliationEntry.open(
            checkout_id=command.checkout_id,
            customer_id=command.customer_id,
            gateway=command.gateway,
            intent_ref=command.intent_ref,
            captured_cents=command.captured_cents,
            expected_cents=command.expected_cents,
            reason=command.reason,
        )
        current_domain.repository_for(ReconciliationEntry).add(entry)

        logger.error(
            "payment_captured_without_order",
            entry_id=str(entry.id),
            checkout_id=command.checkout_id,
            gateway=command.gateway,
            intent_ref=command.intent_ref,
            captured_cents=command.captured_cents,
            expected_cents=command.expected_cents,
            reason=command.reason,
        )
        return str(entry.id)

    @handle(ResolveReconciliation)
    def resolve(self, command):
        repo = current_domain.repository_for(ReconciliationEntry)
        entry = repo.get(command.entry_id)
        entry.resolve(note=command.note)
        repo.add(entry)
        logger.info("reconciliation_resolved", entry_id=command.entry_id)


def open_reconciliations():
    """Entries still waiting for an operator, oldest first."""
    repo = current_domain.repository_for(ReconciliationEntry)
    rows = repo._dao.query.filter(status=ReconciliationStatus.OPEN.value).all().items
    return sorted(rows, key=lambda e: e.created_at)


def reconciliations_for_checkout(checkout_id):
    repo = current_domain.repository_for(ReconciliationEntry)
    return repo._dao.query.filter(checkout_id=str(checkout_id)).all().items
