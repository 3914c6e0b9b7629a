"""
SQLAlchemy Database Models

Record layout for the persistence collaborator:
- Customers and menu items
- Orders with their line items and status history
- Payment attempts

Statuses are stored by value ("Pending", "Completed", ...). The observers
attached to an order are never persisted.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ordering.database import Base


class CustomerRecord(Base):
    """Registered customer."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(String(255), nullable=True)
    preferred_payment_method = Column(String(20), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Customer #{self.id} - {self.name}>"


class ItemRecord(Base):
    """Menu item."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    available = Column(Boolean, default=True, nullable=False)
    prep_time = Column(Integer, default=15, nullable=False)

    def __repr__(self):
        return f"<Item #{self.id} - {self.name} - {self.price:.2f}>"


class OrderRecord(Base):
    """
    Main Order table.

    Line items and history are loaded eagerly with the order.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # =========================================================================
    # STATUS
    # =========================================================================
    status = Column(String(20), default="Pending", nullable=False, index=True)
    payment_status = Column(String(20), default="Pending", nullable=False)
    payment_method = Column(String(20), nullable=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_amount = Column(Float, nullable=False, default=0.0)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, onupdate=func.now())
    delivered_at = Column(DateTime, nullable=True)

    lines = relationship(
        "OrderLineRecord",
        order_by="OrderLineRecord.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    history = relationship(
        "StatusHistoryRecord",
        order_by="StatusHistoryRecord.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order #{self.id} - customer {self.customer_id} - {self.status}>"


class OrderLineRecord(Base):
    """Single line item of an order."""
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_name = Column(String(100), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    # JSON list of [name, per-unit surcharge] pairs
    customizations = Column(Text, nullable=False, default="[]")


class StatusHistoryRecord(Base):
    """Append-only status audit entry."""
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    message = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime, nullable=False)


class PaymentRecord(Base):
    """One processed payment attempt."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    method = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False)
    transaction_id = Column(String(100), nullable=True)
    failure_reason = Column(Text, nullable=True)
    details = Column(Text, nullable=True)  # JSON string of method details
    processed_at = Column(DateTime, nullable=True, index=True)

    def __repr__(self):
        return f"<Payment #{self.id} - {self.method} - {self.status}>"
