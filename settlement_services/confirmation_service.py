"""
ConfirmationService -- Instructor fee payment confirmations for events.

Loads an event and the member directory from their record stores and hands
them to the confirmation engine.  Nothing is written.
"""

from __future__ import annotations

from typing import Any

from settlement_kernel.exceptions import EventNotFoundError
from settlement_kernel.logging_config import get_logger
from settlement_kernel.services.record_store import RecordStore

from settlement_engines.confirmation import (
    DEFAULT_CONFIRMATION_RATES,
    MAIN_INSTRUCTOR,
    ConfirmationRates,
    EventInfo,
    InstructorInfo,
    PaymentConfirmation,
    build_payment_confirmation,
    list_event_instructors,
)

logger = get_logger("services.confirmation")


class ConfirmationService:
    """Builds payment confirmations from the events and members collections."""

    def __init__(
        self,
        event_store: RecordStore,
        member_store: RecordStore,
        rates: ConfirmationRates = DEFAULT_CONFIRMATION_RATES,
    ):
        self._events = event_store
        self._members = member_store
        self._rates = rates

    def load_event(self, event_id: Any) -> EventInfo:
        """Raises EventNotFoundError for an unknown id."""
        doc = self._events.get(event_id)
        if doc is None:
            logger.warning("event_not_found", extra={"event_id": str(event_id)})
            raise EventNotFoundError(str(event_id))
        return EventInfo.from_document(doc)

    def load_instructors(self) -> list[InstructorInfo]:
        return [InstructorInfo.from_document(doc) for doc in self._members.get_all()]

    def instructors_for(self, event_id: Any) -> list[tuple[int, str]]:
        """Selectable (instructor_index, label) pairs for an event."""
        return list_event_instructors(self.load_event(event_id), self.load_instructors())

    def prepare(
        self,
        event_id: Any,
        instructor_index: int = MAIN_INSTRUCTOR,
        fee_override: int | None = None,
    ) -> PaymentConfirmation:
        """Confirmation for one instructor of ``event_id``.

        Raises:
            EventNotFoundError: No such event.
            InstructorNotFoundError: The instructor is not a member.
            ConfirmationError: ``instructor_index`` is out of range.
        """
        return build_payment_confirmation(
            self.load_event(event_id),
            self.load_instructors(),
            instructor_index=instructor_index,
            fee_override=fee_override,
            rates=self._rates,
        )
