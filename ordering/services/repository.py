"""
Order Repository

Persistence collaborator for the ordering engine. Maps domain objects to
SQLAlchemy records and back; every method opens its own session.

Orders read from the store come back without observers. Whoever resumes
monitoring re-attaches them through the NotificationService.
"""

import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ordering.core.exceptions import (
    InvalidArgumentError,
    InvalidStateTransitionError,
    OrderNotFoundError,
)
from ordering.domain import (
    Customer,
    Customization,
    MenuItem,
    Order,
    OrderLine,
    OrderStatus,
    PaymentStatus,
    StatusUpdate,
)
from ordering.models import (
    CustomerRecord,
    ItemRecord,
    OrderLineRecord,
    OrderRecord,
    PaymentRecord,
    StatusHistoryRecord,
)
from ordering.services.payment import Payment

logger = logging.getLogger(__name__)


def _to_customer(record: CustomerRecord) -> Customer:
    return Customer(
        id=record.id,
        name=record.name,
        email=record.email,
        address=record.address,
        preferred_payment_method=record.preferred_payment_method,
    )


def _to_item(record: ItemRecord) -> MenuItem:
    return MenuItem(
        id=record.id,
        name=record.name,
        price=record.price,
        category=record.category,
        description=record.description or "",
        available=record.available,
        prep_time=record.prep_time,
    )


def _dump_customizations(line: OrderLine) -> str:
    return json.dumps([[c.name, c.additional_cost] for c in line.customizations])


def _load_customizations(raw: Optional[str]) -> list[Customization]:
    return [Customization(name, cost) for name, cost in json.loads(raw or "[]")]


def _to_order(record: OrderRecord) -> Order:
    return Order(
        record.customer_id,
        [
            OrderLine(
                line.item_id,
                line.quantity,
                line.unit_price,
                line.item_name,
                _load_customizations(line.customizations),
            )
            for line in record.lines
        ],
        order_id=record.id,
        status=record.status,
        payment_status=record.payment_status,
        payment_method=record.payment_method or "",
        history=[
            StatusUpdate(OrderStatus.parse(entry.status), entry.message, entry.timestamp)
            for entry in record.history
        ],
        created_at=record.created_at,
        delivered_at=record.delivered_at,
    )


def _line_records(order: Order) -> list[OrderLineRecord]:
    return [
        OrderLineRecord(
            item_id=line.item_id,
            item_name=line.item_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            customizations=_dump_customizations(line),
        )
        for line in order.line_items
    ]


def _history_record(entry: StatusUpdate) -> StatusHistoryRecord:
    return StatusHistoryRecord(
        status=entry.status.value,
        message=entry.message,
        timestamp=entry.timestamp,
    )


class OrderRepository:
    """
    CRUD and queries for customers, menu items, orders and payments.

    Args:
        session_maker: Async session factory from ordering.database
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    async def add_customer(
        self,
        name: str,
        email: Optional[str] = None,
        address: Optional[str] = None,
        preferred_payment_method: Optional[str] = None,
    ) -> Customer:
        if not name or not name.strip():
            raise InvalidArgumentError("Customer name cannot be null or empty")

        async with self._session_maker() as session:
            record = CustomerRecord(
                name=name.strip(),
                email=email,
                address=address,
                preferred_payment_method=preferred_payment_method,
            )
            session.add(record)
            await session.commit()
            logger.debug(f"Customer #{record.id} created")
            return _to_customer(record)

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        async with self._session_maker() as session:
            record = await session.get(CustomerRecord, customer_id)
            return _to_customer(record) if record else None

    async def list_customers(self) -> list[Customer]:
        async with self._session_maker() as session:
            result = await session.execute(select(CustomerRecord).order_by(CustomerRecord.id))
            return [_to_customer(r) for r in result.scalars().all()]

    # =========================================================================
    # MENU ITEMS
    # =========================================================================

    async def add_item(
        self,
        name: str,
        price: float,
        category: str,
        description: str = "",
        available: bool = True,
        prep_time: int = 15,
    ) -> MenuItem:
        if not name or not name.strip():
            raise InvalidArgumentError("Item name cannot be null or empty")
        if price is None or price < 0:
            raise InvalidArgumentError("Item price cannot be negative")
        if not category or not category.strip():
            raise InvalidArgumentError("Category cannot be null or empty")

        async with self._session_maker() as session:
            record = ItemRecord(
                name=name.strip(),
                price=price,
                category=category.strip(),
                description=description,
                available=available,
                prep_time=prep_time,
            )
            session.add(record)
            await session.commit()
            return _to_item(record)

    async def get_item(self, item_id: int) -> Optional[MenuItem]:
        async with self._session_maker() as session:
            record = await session.get(ItemRecord, item_id)
            return _to_item(record) if record else None

    async def list_items(self, available_only: bool = True) -> list[MenuItem]:
        stmt = select(ItemRecord).order_by(ItemRecord.category, ItemRecord.name)
        if available_only:
            stmt = stmt.where(ItemRecord.available.is_(True))
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return [_to_item(r) for r in result.scalars().all()]

    async def list_items_by_category(self, category: str, available_only: bool = True) -> list[MenuItem]:
        stmt = (
            select(ItemRecord)
            .where(func.lower(ItemRecord.category) == category.strip().lower())
            .order_by(ItemRecord.name)
        )
        if available_only:
            stmt = stmt.where(ItemRecord.available.is_(True))
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return [_to_item(r) for r in result.scalars().all()]

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def create_order(self, order: Order) -> Order:
        """Insert ``order`` and assign its id."""
        if order.id:
            raise InvalidStateTransitionError(f"Order #{order.id} is already persisted")

        async with self._session_maker() as session:
            record = OrderRecord(
                customer_id=order.customer_id,
                status=order.status.value,
                payment_status=order.payment_status.value,
                payment_method=order.payment_method or None,
                total_amount=order.total_amount,
                created_at=order.created_at,
                delivered_at=order.delivered_at,
                lines=_line_records(order),
                history=[_history_record(e) for e in order.status_history],
            )
            session.add(record)
            await session.commit()
            order.assign_id(record.id)

        logger.info(f"Order #{order.id} stored for customer {order.customer_id}")
        return order

    async def get_order(self, order_id: int) -> Optional[Order]:
        async with self._session_maker() as session:
            record = await session.get(OrderRecord, order_id)
            return _to_order(record) if record else None

    async def save_order(self, order: Order) -> None:
        """
        Write status, payment status, lines and any new history entries.

        Raises:
            InvalidArgumentError: If the order was never persisted
            OrderNotFoundError: If the order row no longer exists
        """
        if not order.id:
            raise InvalidArgumentError("Order must be persisted before it can be saved")

        async with self._session_maker() as session:
            record = await session.get(OrderRecord, order.id)
            if record is None:
                raise OrderNotFoundError(order.id)

            record.status = order.status.value
            record.payment_status = order.payment_status.value
            record.payment_method = order.payment_method or None
            record.total_amount = order.total_amount
            record.delivered_at = order.delivered_at

            current_lines = [
                (l.item_id, l.quantity, l.unit_price, l.customizations or "[]")
                for l in record.lines
            ]
            wanted_lines = [
                (l.item_id, l.quantity, l.unit_price, _dump_customizations(l))
                for l in order.line_items
            ]
            if current_lines != wanted_lines:
                record.lines = _line_records(order)

            # History is append-only: only entries past the stored ones are new.
            for entry in order.status_history[len(record.history):]:
                record.history.append(_history_record(entry))

            await session.commit()

    async def delete_order(self, order_id: int) -> bool:
        async with self._session_maker() as session:
            record = await session.get(OrderRecord, order_id)
            if record is None:
                return False
            payments = await session.execute(
                select(PaymentRecord).where(PaymentRecord.order_id == order_id)
            )
            for payment in payments.scalars().all():
                await session.delete(payment)
            await session.delete(record)
            await session.commit()

        logger.info(f"Order #{order_id} deleted")
        return True

    async def _list_orders(self, *criteria) -> list[Order]:
        stmt = select(OrderRecord).where(*criteria).order_by(
            OrderRecord.created_at.desc(), OrderRecord.id.desc()
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return [_to_order(r) for r in result.scalars().all()]

    async def list_orders(self, limit: int = 50) -> list[Order]:
        stmt = (
            select(OrderRecord)
            .order_by(OrderRecord.created_at.desc(), OrderRecord.id.desc())
            .limit(limit)
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return [_to_order(r) for r in result.scalars().all()]

    async def list_orders_by_status(self, status) -> list[Order]:
        return await self._list_orders(OrderRecord.status == OrderStatus.parse(status).value)

    async def list_orders_by_customer(self, customer_id: int) -> list[Order]:
        return await self._list_orders(OrderRecord.customer_id == customer_id)

    async def list_orders_by_date_range(self, start: datetime, end: datetime) -> list[Order]:
        if start > end:
            raise InvalidArgumentError("Start date must not be after end date")
        return await self._list_orders(
            OrderRecord.created_at >= start,
            OrderRecord.created_at <= end,
        )

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    async def save_payment(self, order_id: int, payment: Payment) -> int:
        """Record a processed payment against an order. Returns the row id."""
        async with self._session_maker() as session:
            record = PaymentRecord(
                order_id=order_id,
                method=payment.method,
                amount=payment.amount,
                status=payment.status.value,
                transaction_id=payment.transaction_id,
                failure_reason=payment.failure_reason,
                details=json.dumps(payment.details()),
                processed_at=payment.processed_at,
            )
            session.add(record)
            await session.commit()
            return record.id

    async def list_payments_for_order(self, order_id: int) -> list[PaymentRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(PaymentRecord)
                .where(PaymentRecord.order_id == order_id)
                .order_by(PaymentRecord.id)
            )
            return list(result.scalars().all())

    async def total_sales(self, start: datetime, end: datetime) -> float:
        """Sum of completed payments processed between ``start`` and ``end``."""
        stmt = select(func.coalesce(func.sum(PaymentRecord.amount), 0.0)).where(
            PaymentRecord.status == PaymentStatus.COMPLETED.value,
            PaymentRecord.processed_at >= start,
            PaymentRecord.processed_at <= end,
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return round(float(result.scalar_one()), 2)
