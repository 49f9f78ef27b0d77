"""JSON-file-backed implementation of QuotationRepository.

Quotations and the outbox share one document so a status change and the
event it produced are written together.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from qms.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from qms.domain.model.line_item import FrozenLineItem, LineItem, PricedLineItem
from qms.domain.model.outbox import OutboxMessage
from qms.domain.model.quotation import Quotation, QuotationEvent, QuotationStatus
from qms.domain.model.value_objects import Money, Quantity
from qms.domain.repository.quotation_repository import QuotationRepository
from qms.infrastructure.persistence.json_file import JsonDocument


class JsonQuotationRepository(QuotationRepository):

    def __init__(self, file_path: Path) -> None:
        self._doc = JsonDocument(file_path, {"quotations": [], "outbox": []})

    # --- QuotationRepository interface ----------------------------------------

    def get_by_id(self, quotation_id: str) -> Quotation | None:
        for raw in self._doc.load()["quotations"]:
            if raw["id"] == quotation_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Quotation]:
        return [self._to_domain(raw) for raw in self._doc.load()["quotations"]]

    def add(self, quotation: Quotation) -> None:
        with self._doc.locked():
            data = self._doc.load()
            if any(raw["id"] == quotation.id for raw in data["quotations"]):
                raise ConcurrentModificationError(f"Quotation {quotation.id} already exists")
            data["quotations"].append(self._to_raw(quotation))
            self._doc.persist(data)

    def update(
        self,
        quotation: Quotation,
        outbox: list[OutboxMessage] | None = None,
    ) -> None:
        with self._doc.locked():
            data = self._doc.load()
            for i, raw in enumerate(data["quotations"]):
                if raw["id"] == quotation.id:
                    break
            else:
                raise EntityNotFoundError(f"Quotation {quotation.id} not found")

            if raw["version"] != quotation.version:
                raise ConcurrentModificationError(
                    f"Quotation {quotation.id} was modified concurrently "
                    f"(expected version {quotation.version}, found {raw['version']})"
                )

            quotation.version += 1
            data["quotations"][i] = self._to_raw(quotation)
            data["outbox"].extend(self._message_to_raw(m) for m in outbox or [])
            try:
                self._doc.persist(data)
            except BaseException:
                quotation.version -= 1
                raise

    def pending_outbox(self) -> list[OutboxMessage]:
        messages = [self._message_to_domain(raw) for raw in self._doc.load()["outbox"]]
        return sorted(
            (m for m in messages if not m.is_published), key=lambda m: m.created_at
        )

    def mark_published(self, message_id: str) -> None:
        with self._doc.locked():
            data = self._doc.load()
            for raw in data["outbox"]:
                if raw["message_id"] == message_id:
                    message = self._message_to_domain(raw)
                    message.mark_published()
                    raw.update(self._message_to_raw(message))
                    self._doc.persist(data)
                    return
        raise EntityNotFoundError(f"Outbox message {message_id} not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(quotation: Quotation) -> dict:
        return {
            "id": quotation.id,
            "customer_id": quotation.customer_id,
            "status": quotation.status.value,
            "total_amount": str(quotation.total_amount.amount),
            "currency": quotation.total_amount.currency,
            "created_by": quotation.created_by,
            "created_at": quotation.created_at.isoformat(),
            "updated_at": quotation.updated_at.isoformat() if quotation.updated_at else None,
            "version": quotation.version,
            "line_items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "price_snapshot": isinstance(item, FrozenLineItem),
                }
                for item in quotation.line_items
            ],
            "event_log": [
                {
                    "type": event.type,
                    "timestamp": event.timestamp.isoformat(),
                    "total_amount": str(event.total_amount.amount),
                }
                for event in quotation.event_log
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Quotation:
        currency = raw.get("currency", "USD")
        items: list[LineItem] = []
        for i in raw["line_items"]:
            cls = FrozenLineItem if i.get("price_snapshot") else PricedLineItem
            items.append(
                cls(
                    product_id=i["product_id"],
                    product_name=i["product_name"],
                    quantity=Quantity(i["quantity"]),
                    unit_price=Money(Decimal(i["unit_price"]), currency),
                )
            )
        return Quotation(
            id=raw["id"],
            customer_id=raw["customer_id"],
            line_items=items,
            status=QuotationStatus(raw["status"]),
            total_amount=Money(Decimal(raw["total_amount"]), currency),
            created_by=raw.get("created_by", "system"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=(
                datetime.fromisoformat(raw["updated_at"]) if raw.get("updated_at") else None
            ),
            version=raw.get("version", 1),
            event_log=[
                QuotationEvent(
                    type=e["type"],
                    timestamp=datetime.fromisoformat(e["timestamp"]),
                    total_amount=Money(Decimal(e["total_amount"]), currency),
                )
                for e in raw.get("event_log", [])
            ],
        )

    @staticmethod
    def _message_to_raw(message: OutboxMessage) -> dict:
        return {
            "message_id": message.message_id,
            "topic": message.topic,
            "payload": message.payload,
            "created_at": message.created_at.isoformat(),
            "published_at": (
                message.published_at.isoformat() if message.published_at else None
            ),
        }

    @staticmethod
    def _message_to_domain(raw: dict) -> OutboxMessage:
        return OutboxMessage(
            topic=raw["topic"],
            payload=raw["payload"],
            message_id=raw["message_id"],
            created_at=datetime.fromisoformat(raw["created_at"]),
            published_at=(
                datetime.fromisoformat(raw["published_at"]) if raw.get("published_at") else None
            ),
        )
