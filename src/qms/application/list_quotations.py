"""Application service: List Quotations use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from qms.application.dto import QuotationSummaryDTO
from qms.domain.exceptions import ValidationError
from qms.domain.model.quotation import QuotationStatus
from qms.domain.repository.quotation_repository import QuotationRepository


@dataclass(frozen=True)
class QuotationFilters:

    status: str | None = None
    customer_id: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    limit: int | None = None
    offset: int = 0


class ListQuotationsHandler:

    def __init__(self, quotation_repo: QuotationRepository) -> None:
        self._quotation_repo = quotation_repo

    def handle(self, filters: QuotationFilters | None = None) -> list[QuotationSummaryDTO]:
        """Return matching quotations, newest first."""
        filters = filters or QuotationFilters()
        status = self._parse_status(filters.status)
        if filters.offset < 0 or (filters.limit is not None and filters.limit < 0):
            raise ValidationError("limit and offset must not be negative")

        rows = []
        for q in self._quotation_repo.list_all():
            if status is not None and q.status != status:
                continue
            if filters.customer_id and q.customer_id != filters.customer_id:
                continue
            if filters.min_amount is not None and q.total_amount.amount < filters.min_amount:
                continue
            if filters.max_amount is not None and q.total_amount.amount > filters.max_amount:
                continue
            rows.append(q)

        rows.sort(key=lambda q: q.created_at, reverse=True)
        end = None if filters.limit is None else filters.offset + filters.limit
        return [
            QuotationSummaryDTO(
                id=q.id,
                customer_id=q.customer_id,
                status=q.status.value,
                total_amount=str(q.total_amount),
                item_count=len(q.line_items),
                created_at=q.created_at.isoformat(),
            )
            for q in rows[filters.offset:end]
        ]

    @staticmethod
    def _parse_status(raw: str | None) -> QuotationStatus | None:
        if raw is None:
            return None
        try:
            return QuotationStatus(raw.upper())
        except ValueError as exc:
            raise ValidationError(f"Unknown quotation status '{raw}'") from exc
