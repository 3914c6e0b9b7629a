"""
Shared fixtures for the ordering test suite.

Database fixtures run against a throwaway SQLite file (aiosqlite), so no
PostgreSQL server is needed. Notification fixtures use logging channels,
so nothing leaves the process.
"""
import pytest
import pytest_asyncio

from ordering.core.config import Settings
from ordering.database import create_engine, create_session_maker, init_db
from ordering.domain import Order
from ordering.services.notifications import (
    CustomerObserver,
    DeliveryObserver,
    KitchenObserver,
    LogChannel,
    NotificationService,
)
from ordering.services.ordering import OrderingService
from ordering.services.repository import OrderRepository


# ============================================================================
# SETTINGS
# ============================================================================

@pytest.fixture
def settings(tmp_path):
    """Development settings pointing at a per-test SQLite database."""
    return Settings(
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        payment_methods="cash,credit,check",
        default_contact_address="customer@example.com",
    )


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@pytest.fixture
def customer_channel():
    return LogChannel("email")


@pytest.fixture
def notification_service(customer_channel):
    """A fresh service per test; there is no shared global instance."""
    return NotificationService(
        customer_observer=CustomerObserver(customer_channel),
        kitchen_observer=KitchenObserver(LogChannel("kitchen"), "kitchen-display"),
        delivery_observer=DeliveryObserver(LogChannel("delivery"), "dispatch-board"),
    )


@pytest.fixture
def order():
    """Unsaved order with two lines totalling $20.00."""
    order = Order(customer_id=1)
    order.add_item(1, 1, 12.50, "Margherita Pizza")
    order.add_item(2, 3, 2.50, "Garlic Bread")
    return order


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def repository(engine):
    return OrderRepository(create_session_maker(engine))


@pytest_asyncio.fixture
async def ordering_service(repository, notification_service, settings):
    return OrderingService(repository, notification_service, settings)


@pytest_asyncio.fixture
async def menu(repository):
    """Customer plus a small menu: two mains, a side, and an unavailable item."""
    customer = await repository.add_customer("Jane Doe", email="jane@example.com")
    pizza = await repository.add_item("Margherita Pizza", 12.50, "Mains")
    burger = await repository.add_item("Cheeseburger", 7.50, "Mains")
    bread = await repository.add_item("Garlic Bread", 2.50, "Sides")
    special = await repository.add_item("Truffle Risotto", 24.00, "Mains", available=False)
    return {
        "customer": customer,
        "pizza": pizza,
        "burger": burger,
        "bread": bread,
        "special": special,
    }
