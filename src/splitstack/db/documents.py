"""
Document schemas for the persistence and sharing boundaries.

Stacks are stored as a single JSON document and shared snapshots are plain
JSON values in a key-value store. Field names are camelCase on the wire.
Older documents may lack ``activeParticipants``, ``individualItems`` or
``payments``; loading fills those in against the configured roster.
``subtotal`` and ``total`` are written for readers but recomputed on load.
"""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from splitstack.db.models import LineItem, Participant, Receipt, SharedLineItem, SharedSnapshot, Stack


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LineItemDocument(_Document):
    name: str
    price: Decimal = Field(..., ge=0)


class SharedLineItemDocument(LineItemDocument):
    participants: list[str] = Field(default_factory=list)


class ReceiptDocument(_Document):
    id: str
    subject: str = ""
    active_participants: Optional[list[str]] = None
    individual_items: dict[str, list[LineItemDocument]] = Field(default_factory=dict)
    shared_items: list[SharedLineItemDocument] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    taxes: Decimal = Field(Decimal("0"), ge=0)
    tip: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Decimal("0")
    payer: str = ""
    splits: dict[str, Decimal] = Field(default_factory=dict)
    is_completed: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payments: dict[str, bool] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # early documents used a millisecond timestamp as id
        return str(value)

    @field_validator("taxes", "tip", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0 if value in (None, "") else value

    @field_validator("payer", mode="before")
    @classmethod
    def _none_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class StackDocument(_Document):
    id: str
    name: str
    date: dt.date
    receipts: list[ReceiptDocument] = Field(default_factory=list)
    created_at: datetime
    share_id: Optional[str] = None


class SharedSnapshotDocument(_Document):
    stack_name: str
    stack_date: date
    receipts: list[ReceiptDocument] = Field(default_factory=list)
    shared_at: datetime


def _receipt_document(receipt: Receipt) -> ReceiptDocument:
    return ReceiptDocument(
        id=receipt.id,
        subject=receipt.subject,
        active_participants=list(receipt.active_participants),
        individual_items={
            participant: [LineItemDocument(name=item.name, price=item.price) for item in items]
            for participant, items in receipt.individual_items.items()
        },
        shared_items=[
            SharedLineItemDocument(name=item.name, price=item.price, participants=list(item.participants))
            for item in receipt.shared_items
        ],
        subtotal=receipt.subtotal,
        taxes=receipt.taxes,
        tip=receipt.tip,
        total=receipt.total,
        payer=receipt.payer or "",
        splits=dict(receipt.splits),
        is_completed=receipt.is_completed,
        timestamp=receipt.timestamp,
        payments=dict(receipt.payments),
    )


def _receipt_from(document: ReceiptDocument, roster: Sequence[Participant]) -> Receipt:
    active = tuple(document.active_participants or roster)
    individual = {participant: () for participant in roster}
    for participant, items in document.individual_items.items():
        individual[participant] = tuple(LineItem(name=item.name, price=item.price) for item in items)
    return Receipt(
        id=document.id,
        subject=document.subject,
        active_participants=active,
        individual_items=individual,
        shared_items=tuple(
            SharedLineItem(name=item.name, price=item.price, participants=tuple(item.participants))
            for item in document.shared_items
            if item.participants
        ),
        timestamp=document.timestamp,
        taxes=document.taxes,
        tip=document.tip,
        payer=document.payer or None,
        splits=dict(document.splits),
        is_completed=document.is_completed,
        payments=dict(document.payments),
    )


def stack_to_document(stack: Stack) -> dict[str, Any]:
    document = StackDocument(
        id=stack.id,
        name=stack.name,
        date=stack.date,
        receipts=[_receipt_document(receipt) for receipt in stack.receipts],
        created_at=stack.created_at,
        share_id=stack.share_id,
    )
    return document.model_dump(mode="json", by_alias=True)


def stack_from_document(data: dict[str, Any], roster: Sequence[Participant]) -> Stack:
    document = StackDocument.model_validate(data)
    return Stack(
        id=document.id,
        name=document.name,
        date=document.date,
        receipts=tuple(_receipt_from(receipt, roster) for receipt in document.receipts),
        created_at=document.created_at,
        share_id=document.share_id,
    )


def snapshot_to_document(snapshot: SharedSnapshot) -> dict[str, Any]:
    document = SharedSnapshotDocument(
        stack_name=snapshot.stack_name,
        stack_date=snapshot.stack_date,
        receipts=[_receipt_document(receipt) for receipt in snapshot.receipts],
        shared_at=snapshot.shared_at,
    )
    return document.model_dump(mode="json", by_alias=True)


def snapshot_from_document(data: dict[str, Any], roster: Sequence[Participant]) -> SharedSnapshot:
    document = SharedSnapshotDocument.model_validate(data)
    return SharedSnapshot(
        stack_name=document.stack_name,
        stack_date=document.stack_date,
        receipts=tuple(_receipt_from(receipt, roster) for receipt in document.receipts),
        shared_at=document.shared_at,
    )
