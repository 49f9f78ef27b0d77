"""Application service: Show Quotation use case (query)."""

from __future__ import annotations

from qms.application.dto import QuotationDTO
from qms.domain.exceptions import EntityNotFoundError
from qms.domain.repository.quotation_repository import QuotationRepository


class ShowQuotationHandler:

    def __init__(self, quotation_repo: QuotationRepository) -> None:
        self._quotation_repo = quotation_repo

    def handle(self, quotation_id: str) -> QuotationDTO:
        quotation = self._quotation_repo.get_by_id(quotation_id)
        if quotation is None:
            raise EntityNotFoundError(f"Quotation {quotation_id} not found")
        return QuotationDTO.from_domain(quotation)
