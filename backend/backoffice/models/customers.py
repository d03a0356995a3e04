from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Customer master data with a running receivable balance.

    current_balance_cents > 0 means the customer owes money. It is only
    changed by customer_service alongside a CustomerTransaction row.
    sales_rep_id owns the customer for row-level access.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_status_name", "status", "name"),
        db.Index("ix_customers_sales_rep", "sales_rep_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(32), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)

    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(128), nullable=True)
    region = db.Column(db.String(128), nullable=True)
    country = db.Column(db.String(128), nullable=True)

    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    payment_terms_days = db.Column(db.Integer, nullable=False, default=30)
    balance_risk_limit_cents = db.Column(db.Integer, nullable=False, default=0)
    current_balance_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    sales_rep = db.relationship("User", foreign_keys=[sales_rep_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Customer id={self.id} code={self.code!r} balance_cents={self.current_balance_cents}>"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "sales_rep_id": self.sales_rep_id,
            "sales_rep_name": self.sales_rep.name if self.sales_rep else None,
            "payment_terms_days": self.payment_terms_days,
            "balance_risk_limit": format_cents(self.balance_risk_limit_cents),
            "current_balance": format_cents(self.current_balance_cents),
            "status": self.status,
            "created_by": self.created_by,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CustomerTransaction(db.Model):
    """
    One receivable movement (sale, payment, credit_note). IMMUTABLE.

    amount_cents is always a positive magnitude; direction comes from the type.
    """
    __tablename__ = "customer_transactions"
    __table_args__ = (
        db.Index("ix_customer_transactions_customer_id_id", "customer_id", "id"),
        db.CheckConstraint("amount_cents > 0", name="ck_customer_transactions_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    balance_before_cents = db.Column(db.Integer, nullable=False)
    balance_after_cents = db.Column(db.Integer, nullable=False)

    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    reference_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("transactions", lazy="dynamic"))
    creator = db.relationship("User", foreign_keys=[created_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "transaction_type": self.transaction_type,
            "amount": format_cents(self.amount_cents),
            "balance_before": format_cents(self.balance_before_cents),
            "balance_after": format_cents(self.balance_after_cents),
            "transaction_date": to_utc_z(self.transaction_date),
            "reference_number": self.reference_number,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_by_name": self.creator.name if self.creator else None,
            "created_at": to_utc_z(self.created_at),
        }
