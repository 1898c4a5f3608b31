from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.types import TypeDecorator

metadata = MetaData()


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


customers = Table(
    "customers",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255)),
    Column("phone", String(50)),
)

casts = Table(
    "casts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("location", String(255)),
)

courses = Table(
    "courses",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("duration_minutes", Integer, nullable=False, default=60),
    Column("price", Numeric(12, 2), nullable=False, default=0),
)

reservations = Table(
    "reservations",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("customer_id", String(36), nullable=False),
    Column("staff_id", String(36), nullable=False),
    Column("course_id", String(36), nullable=False),
    Column("start_time", UTCDateTime, nullable=False),
    Column("end_time", UTCDateTime, nullable=False),
    Column("status", String(32), nullable=False),
    Column("payment_status", String(32), nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("currency_code", String(3), nullable=False),
    Column("notes", Text),
    Column("modifiable_until", UTCDateTime),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime),
    Column("updated_at", UTCDateTime),
    Index("ix_reservations_staff_start", "staff_id", "start_time"),
)

payment_transactions = Table(
    "payment_transactions",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("reservation_id", String(32), nullable=False, index=True),
    Column("customer_id", String(36), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("provider", String(32), nullable=False),
    Column("payment_method", String(32), nullable=False),
    Column("status", String(32), nullable=False),
    Column("payment_intent_id", String(255)),
    Column("provider_payment_id", String(255), index=True),
    Column("metadata_json", JSON),
    Column("error_message", Text),
    Column("processed_at", UTCDateTime),
    Column("refunded_at", UTCDateTime),
    Column("refund_amount", Numeric(12, 2)),
    Column("created_at", UTCDateTime),
)

payment_intents = Table(
    "payment_intents",
    metadata,
    Column("id", String(40), primary_key=True),
    Column("provider_id", String(255), nullable=False, index=True),
    Column("provider", String(32), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", String(32), nullable=False),
    Column("payment_method", String(32), nullable=False),
    Column("reservation_id", String(32), index=True),
    Column("customer_id", String(36)),
    Column("client_secret", String(255)),
    Column("metadata_json", JSON),
    Column("error_message", Text),
    Column("created_at", UTCDateTime),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", String(64), nullable=False),
    Column("aggregate_type", String(32), nullable=False),
    Column("aggregate_id", String(64), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(20), nullable=False),
    Column("attempts", Integer, nullable=False, default=0),
    Column("next_attempt_at", UTCDateTime),
    Column("last_error", Text),
    Column("locked_by", String(64)),
    Column("lock_expires_at", UTCDateTime),
    Column("created_at", UTCDateTime),
    Column("updated_at", UTCDateTime),
    Index("ix_outbox_events_status_next", "status", "next_attempt_at"),
)
