"""Application service: relay pending outbox messages to the event channel."""

from __future__ import annotations

import logging

from qms.domain.exceptions import DependencyError
from qms.domain.ports.event_channel import EventPublisher
from qms.domain.repository.quotation_repository import QuotationRepository

logger = logging.getLogger(__name__)


class OutboxRelay:

    def __init__(
        self,
        quotation_repo: QuotationRepository,
        publisher: EventPublisher,
    ) -> None:
        self._quotation_repo = quotation_repo
        self._publisher = publisher

    def flush(self) -> int:
        """Publish pending messages oldest first; return how many went out.

        Stops at the first publish failure so messages keep their order;
        the failed message stays pending for the next flush.
        """
        published = 0
        for message in self._quotation_repo.pending_outbox():
            try:
                self._publisher.publish(message.topic, message.payload)
            except DependencyError as exc:
                logger.warning(
                    "Publishing outbox message %s on %s failed, will retry: %s",
                    message.message_id,
                    message.topic,
                    exc,
                )
                break
            self._quotation_repo.mark_published(message.message_id)
            published += 1
        if published:
            logger.info("Relayed %d outbox message(s)", published)
        return published
