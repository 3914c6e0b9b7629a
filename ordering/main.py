"""
FastAPI Application Entry Point

Restaurant Ordering System - order lifecycle over HTTP.
Notifications go to the log in development and through Twilio or SendGrid
in production.

Endpoints:
    - POST /api/customers: Register a customer
    - POST /api/items, GET /api/items: Manage and browse the menu
    - GET /api/payment-methods: Payment methods offered
    - POST /api/orders: Place an order, optionally paying for it
    - GET /api/orders, GET /api/orders/{id}: Query orders
    - POST /api/orders/{id}/checkout: Pay for an order
    - POST /api/orders/{id}/status: Advance an order
    - POST /api/orders/{id}/cancel: Cancel an order
    - POST/DELETE /api/orders/{id}/items/{item_id}/customizations: Customize a line
    - POST /api/notifications/custom: Broadcast to all stakeholders
    - GET /api/notifications/stats: Monitoring statistics
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from ordering.core.config import Settings, get_settings, setup_logging
from ordering.core.exceptions import (
    InvalidArgumentError,
    InvalidStateTransitionError,
    OrderingError,
    OrderNotFoundError,
    UnsupportedPaymentMethodError,
)
from ordering.database import create_engine, create_session_maker, init_db
from ordering.schemas import (
    CheckoutRequest,
    CustomerCreate,
    CustomerResponse,
    CustomizationCreate,
    CustomNotificationRequest,
    HealthResponse,
    ItemCreate,
    ItemResponse,
    NotificationStatsResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    PaymentResponse,
    StatusUpdateRequest,
)
from ordering.services import (
    OrderingService,
    OrderRepository,
    build_notification_service,
)
from ordering.services.payment import PaymentResult

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    InvalidArgumentError: 400,
    UnsupportedPaymentMethodError: 400,
    OrderNotFoundError: 404,
    InvalidStateTransitionError: 409,
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application startup and shutdown events.
        """
        # Startup
        logger.info("=" * 60)
        logger.info(f"Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        engine = create_engine(settings)
        await init_db(engine)
        logger.info("Database initialized")

        notifications = build_notification_service(settings)
        repository = OrderRepository(create_session_maker(engine))

        app.state.engine = engine
        app.state.notifications = notifications
        app.state.ordering_service = OrderingService(repository, notifications, settings)

        # Validate production config
        if settings.use_real_services:
            missing = settings.validate_production_config()
            if missing:
                logger.warning(f"Missing production config: {missing}")

        logger.info("Application ready!")

        yield  # Application runs

        # Shutdown
        logger.info("Shutting down...")
        for order in notifications.get_monitored_orders():
            notifications.stop_monitoring(order)
        await engine.dispose()
        logger.info("Cleanup complete")

    return lifespan


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_ordering_service(request: Request) -> OrderingService:
    return request.app.state.ordering_service


def _payment_response(result: Optional[PaymentResult]) -> Optional[PaymentResponse]:
    if result is None:
        return None
    return PaymentResponse(**result.to_dict())


async def _require_order(service: OrderingService, order_id: int):
    order = await service.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order #{order_id} not found")
    return order


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application for ``settings``."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Restaurant order lifecycle: placement, payment, status tracking "
            "and stakeholder notifications."
        ),
        version=settings.app_version,
        lifespan=_build_lifespan(settings),
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"Welcome to {settings.restaurant_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="System Health Check",
    )
    async def health_check(request: Request) -> HealthResponse:
        """Verify all system components are operational."""

        # Check database
        db_status = "healthy"
        try:
            async with request.app.state.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"unhealthy: {str(e)}"
            logger.error(f"Database health check failed: {e}")

        stats = request.app.state.notifications.get_notification_stats()
        notification_status = f"healthy ({stats.monitored_orders} monitored)"

        overall = "healthy" if db_status == "healthy" else "degraded"

        return HealthResponse(
            status=overall,
            database=db_status,
            notification_service=notification_status,
            timestamp=datetime.now(),
        )

    # =========================================================================
    # CATALOG ENDPOINTS
    # =========================================================================

    @app.post(
        "/api/customers",
        response_model=CustomerResponse,
        status_code=201,
        tags=["Customers"],
    )
    async def create_customer(
        payload: CustomerCreate,
        service: OrderingService = Depends(get_ordering_service),
    ) -> CustomerResponse:
        """Register a customer."""
        customer = await service.repository.add_customer(
            payload.name,
            email=payload.email,
            address=payload.address,
            preferred_payment_method=payload.preferred_payment_method,
        )
        return CustomerResponse.model_validate(customer)

    @app.get(
        "/api/customers/{customer_id}/orders",
        response_model=OrderListResponse,
        tags=["Customers"],
    )
    async def customer_order_history(
        customer_id: int,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderListResponse:
        """Past orders of a customer, newest first."""
        if await service.get_customer_by_id(customer_id) is None:
            raise HTTPException(status_code=404, detail=f"Customer #{customer_id} not found")
        orders = await service.get_order_history(customer_id)
        return OrderListResponse(
            total=len(orders),
            orders=[OrderResponse.from_order(o) for o in orders],
        )

    @app.post(
        "/api/items",
        response_model=ItemResponse,
        status_code=201,
        tags=["Menu"],
    )
    async def create_item(
        payload: ItemCreate,
        service: OrderingService = Depends(get_ordering_service),
    ) -> ItemResponse:
        """Add a menu item."""
        item = await service.repository.add_item(**payload.model_dump())
        return ItemResponse.model_validate(item)

    @app.get(
        "/api/items",
        response_model=list[ItemResponse],
        tags=["Menu"],
    )
    async def list_items(
        category: Optional[str] = Query(None),
        service: OrderingService = Depends(get_ordering_service),
    ) -> list[ItemResponse]:
        """Available menu items, optionally for one category."""
        if category is not None:
            items = await service.get_items_by_category(category)
        else:
            items = await service.get_all_items()
        return [ItemResponse.model_validate(item) for item in items]

    @app.get("/api/payment-methods", tags=["Payments"])
    async def payment_methods(
        service: OrderingService = Depends(get_ordering_service),
    ) -> dict[str, Any]:
        return {"methods": service.get_available_payment_methods()}

    # =========================================================================
    # ORDER ENDPOINTS
    # =========================================================================

    @app.post(
        "/api/orders",
        response_model=OrderCreateResponse,
        status_code=201,
        tags=["Orders"],
        summary="Place Order",
    )
    async def create_order(
        payload: OrderCreate,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderCreateResponse:
        """
        Place an order and, when a payment method is given, pay for it.

        A declined payment leaves the order placed with a Failed payment
        status; the response reports both.
        """
        if payload.payment_method:
            service.ensure_payment_method(payload.payment_method)

        quantities: dict[int, int] = {}
        customizations: dict[int, list[tuple[str, float]]] = {}
        for line in payload.items:
            quantities[line.item_id] = quantities.get(line.item_id, 0) + line.quantity
            customizations.setdefault(line.item_id, []).extend(
                (c.name, c.additional_cost) for c in line.customizations
            )

        order = await service.place_order(
            payload.customer_id, quantities, payload.contact_address, customizations
        )

        result = None
        if payload.payment_method:
            result = await service.checkout(
                order,
                payload.payment_method,
                **payload.payment_details.for_method(payload.payment_method),
            )

        if result is None:
            message = f"Order #{order.id} placed"
        elif result.success:
            message = f"Order #{order.id} placed and paid"
        else:
            message = f"Order #{order.id} placed, payment failed: {result.error_message}"

        return OrderCreateResponse(
            success=result is None or result.success,
            message=message,
            order=OrderResponse.from_order(order),
            payment=_payment_response(result),
        )

    @app.get(
        "/api/orders",
        response_model=OrderListResponse,
        tags=["Orders"],
    )
    async def list_orders(
        status: Optional[str] = Query(None),
        customer_id: Optional[int] = Query(None, ge=1),
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderListResponse:
        """Retrieve orders, optionally filtered by status and customer."""
        orders = await service.list_orders(status=status, customer_id=customer_id)
        return OrderListResponse(
            total=len(orders),
            orders=[OrderResponse.from_order(o) for o in orders],
        )

    @app.get(
        "/api/orders/{order_id}",
        response_model=OrderResponse,
        tags=["Orders"],
    )
    async def get_order(
        order_id: int,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderResponse:
        """Get a specific order by ID."""
        order = await _require_order(service, order_id)
        return OrderResponse.from_order(order)

    @app.post(
        "/api/orders/{order_id}/checkout",
        response_model=OrderCreateResponse,
        tags=["Orders"],
    )
    async def checkout_order(
        order_id: int,
        payload: CheckoutRequest,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderCreateResponse:
        """Pay for an existing order."""
        order = await service.resume_monitoring(order_id)
        result = await service.checkout(
            order,
            payload.payment_method,
            **payload.payment_details.for_method(payload.payment_method),
        )
        return OrderCreateResponse(
            success=result.success,
            message="Payment completed" if result.success else result.error_message,
            order=OrderResponse.from_order(order),
            payment=_payment_response(result),
        )

    @app.post(
        "/api/orders/{order_id}/status",
        response_model=OrderResponse,
        tags=["Orders"],
    )
    async def update_order_status(
        order_id: int,
        payload: StatusUpdateRequest,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderResponse:
        """
        Move an order to a new status.

        Completed and Cancelled orders are returned unchanged.
        """
        order = await service.update_order_status(order_id, payload.status)
        return OrderResponse.from_order(order)

    @app.post(
        "/api/orders/{order_id}/cancel",
        response_model=OrderResponse,
        tags=["Orders"],
    )
    async def cancel_order(
        order_id: int,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderResponse:
        order = await service.cancel_order(order_id)
        return OrderResponse.from_order(order)

    @app.post(
        "/api/orders/{order_id}/items/{item_id}/customizations",
        response_model=OrderResponse,
        tags=["Orders"],
    )
    async def add_customization(
        order_id: int,
        item_id: int,
        payload: CustomizationCreate,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderResponse:
        """Add a per-unit customization to an order line."""
        order = await service.customize_item(
            order_id, item_id, payload.name, payload.additional_cost
        )
        return OrderResponse.from_order(order)

    @app.delete(
        "/api/orders/{order_id}/items/{item_id}/customizations/{name}",
        response_model=OrderResponse,
        tags=["Orders"],
    )
    async def remove_customization(
        order_id: int,
        item_id: int,
        name: str,
        service: OrderingService = Depends(get_ordering_service),
    ) -> OrderResponse:
        order = await service.remove_customization(order_id, item_id, name)
        return OrderResponse.from_order(order)

    # =========================================================================
    # NOTIFICATION ENDPOINTS
    # =========================================================================

    @app.post("/api/notifications/custom", tags=["Notifications"])
    async def custom_notification(
        payload: CustomNotificationRequest,
        service: OrderingService = Depends(get_ordering_service),
    ) -> dict[str, Any]:
        """Broadcast a message to the customer, kitchen and delivery."""
        service.notifications.send_custom_notification(payload.message)
        return {"success": True, "message": payload.message}

    @app.get(
        "/api/notifications/stats",
        response_model=NotificationStatsResponse,
        tags=["Notifications"],
    )
    async def notification_stats(
        service: OrderingService = Depends(get_ordering_service),
    ) -> NotificationStatsResponse:
        stats = service.notifications.get_notification_stats()
        return NotificationStatsResponse(**stats.to_dict())

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(OrderingError)
    async def ordering_exception_handler(request: Request, exc: OrderingError) -> JSONResponse:
        """Map domain errors to client error responses."""
        status_code = next(
            (code for err, code in ERROR_STATUS_CODES.items() if isinstance(exc, err)),
            500,
        )
        if status_code == 500:
            logger.exception(f"Unhandled ordering error: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")

        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": type(exc).__name__,
                "detail": str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal Server Error",
                "detail": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return app


setup_logging()
app = create_app()


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ordering.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
    )
