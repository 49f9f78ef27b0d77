"""Abstract repository for the Quotation aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  The outbox lives here too: an outbox message must be
written in the same unit as the quotation change that produced it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from qms.domain.model.outbox import OutboxMessage
from qms.domain.model.quotation import Quotation


class QuotationRepository(ABC):

    @abstractmethod
    def get_by_id(self, quotation_id: str) -> Quotation | None:
        """Return a quotation by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Quotation]:
        """Return every quotation."""

    @abstractmethod
    def add(self, quotation: Quotation) -> None:
        """Persist a brand-new quotation.

        Raises ConcurrentModificationError if the ID is already taken.
        """

    @abstractmethod
    def update(
        self,
        quotation: Quotation,
        outbox: list[OutboxMessage] | None = None,
    ) -> None:
        """Persist changes to an existing quotation, plus outbox messages.

        Compare-and-swap on ``(id, version)``: the stored version must equal
        ``quotation.version``, otherwise ConcurrentModificationError is raised
        and nothing is written.  On success ``quotation.version`` is bumped.
        """

    @abstractmethod
    def pending_outbox(self) -> list[OutboxMessage]:
        """Return unpublished outbox messages, oldest first."""

    @abstractmethod
    def mark_published(self, message_id: str) -> None:
        """Flag an outbox message as delivered to the event channel."""
