"""Application service: Submit Quotation use case (DRAFT -> PENDING)."""

from __future__ import annotations

import logging

from qms.domain.exceptions import EntityNotFoundError
from qms.domain.repository.quotation_repository import QuotationRepository

logger = logging.getLogger(__name__)


class SubmitQuotationHandler:

    def __init__(self, quotation_repo: QuotationRepository) -> None:
        self._quotation_repo = quotation_repo

    def handle(self, quotation_id: str) -> None:
        quotation = self._quotation_repo.get_by_id(quotation_id)
        if quotation is None:
            raise EntityNotFoundError(f"Quotation {quotation_id} not found")

        quotation.submit()
        self._quotation_repo.update(quotation)
        logger.info("Quotation %s submitted for approval", quotation_id)
