from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from database import Base


class Entry(Base):
    __tablename__ = "entries"

    __table_args__ = (
        CheckConstraint("type IN ('NR', 'R', 'Vyapari')", name="entries_type_check"),
        CheckConstraint("status IN ('active', 'settled')", name="entries_status_check"),
        CheckConstraint("given_amount >= 0", name="entries_given_amount_check"),
        CheckConstraint(
            "(status = 'settled' AND settled_amount IS NOT NULL AND settled_date IS NOT NULL) OR "
            "(status = 'active' AND settled_amount IS NULL AND settled_date IS NULL)",
            name="settlement_details_required",
        ),
        CheckConstraint(
            "(renewal_date IS NOT NULL AND renewal_amount IS NOT NULL) OR "
            "(renewal_date IS NULL AND renewal_amount IS NULL)",
            name="renewal_details_check",
        ),
        Index("ix_entries_status_date", "status", "date"),
        Index("ix_entries_status_settled_date", "status", "settled_date"),
    )

    # BigInteger on PostgreSQL; SQLite only autoincrements INTEGER primary keys.
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    type = Column(String(16), nullable=False)
    date = Column(Date, nullable=False)
    customer_name = Column(Text, nullable=False, index=True)
    customer_address = Column(Text, nullable=False)
    customer_mobile = Column(Text, nullable=True)
    items = Column(Text, nullable=False)
    given_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(String(16), nullable=False, default="active", server_default="active")
    settled_amount = Column(Numeric(12, 2), nullable=True)
    settled_date = Column(Date, nullable=True)
    settlement_notes = Column(Text, nullable=True)

    # Append-only list of {date, amount, settled_amount, renewal_date, new_amount}
    renewal_history = Column(JSON, nullable=False, default=list)
    renewal_date = Column(Date, nullable=True)
    renewal_amount = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
