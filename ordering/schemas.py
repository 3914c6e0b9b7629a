"""
Pydantic Schemas for Request/Response Validation
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
import re

from ordering.domain import Order


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CustomerCreate(BaseModel):
    """Request schema for registering a customer."""
    name: str = Field(..., min_length=2, max_length=100, examples=["Jane Doe"])
    email: Optional[str] = Field(None, examples=["jane@example.com"])
    address: Optional[str] = Field(None, max_length=255)
    preferred_payment_method: Optional[str] = Field(None, examples=["credit"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not re.match(r"^[\w\.-]+@[\w\.-]+\.\w+$", v):
            raise ValueError("Invalid email format")
        return v


class ItemCreate(BaseModel):
    """Request schema for adding a menu item."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita Pizza"])
    price: float = Field(..., ge=0, examples=[12.50])
    category: str = Field(..., min_length=1, max_length=50, examples=["Mains"])
    description: str = Field(default="", max_length=500)
    available: bool = True
    prep_time: int = Field(default=15, ge=0)


class CustomizationCreate(BaseModel):
    """Change to a line item, charged per unit."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Extra cheese"])
    additional_cost: float = Field(default=0.0, ge=0, examples=[1.50])


class OrderLineCreate(BaseModel):
    """Single item in an order request."""
    item_id: int = Field(..., ge=1)
    quantity: int = Field(default=1, ge=1, le=99)
    customizations: List[CustomizationCreate] = Field(default_factory=list)


# Fields each payment method accepts from a request
PAYMENT_DETAIL_FIELDS = {
    "cash": {"amount_tendered"},
    "credit": {"card_number", "card_holder_name", "expiry_date", "cvv"},
    "check": {"cheque_number", "bank_name", "check_date"},
}


class PaymentDetails(BaseModel):
    """Method-specific payment fields. Fields left out fall back to factory defaults."""
    amount_tendered: Optional[float] = Field(None, ge=0, examples=[20.00])
    card_number: Optional[str] = Field(None, examples=["4242424242424242"])
    card_holder_name: Optional[str] = None
    expiry_date: Optional[datetime] = None
    cvv: Optional[str] = None
    cheque_number: Optional[str] = None
    bank_name: Optional[str] = None
    check_date: Optional[datetime] = None

    def for_method(self, method: str) -> dict:
        fields = PAYMENT_DETAIL_FIELDS.get(method.strip().lower(), set())
        return self.model_dump(include=fields, exclude_none=True)


class OrderCreate(BaseModel):
    """Request schema for placing an order, optionally paying for it."""
    customer_id: int = Field(..., ge=1)
    items: List[OrderLineCreate] = Field(..., min_length=1)
    contact_address: Optional[str] = None
    payment_method: Optional[str] = Field(None, examples=["cash", "credit", "check"])
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)


class CheckoutRequest(BaseModel):
    """Request schema for paying an existing order."""
    payment_method: str = Field(..., examples=["credit"])
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)


class StatusUpdateRequest(BaseModel):
    """Request to move an order to a new status."""
    status: str = Field(..., min_length=1, examples=["Preparing"])


class CustomNotificationRequest(BaseModel):
    """Broadcast to all stakeholders."""
    message: str = Field(..., min_length=1, max_length=500, examples=["Kitchen delayed"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CustomerResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]
    address: Optional[str]
    preferred_payment_method: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ItemResponse(BaseModel):
    id: int
    name: str
    price: float
    category: str
    description: str
    available: bool
    prep_time: int

    model_config = ConfigDict(from_attributes=True)


class CustomizationResponse(BaseModel):
    name: str
    additional_cost: float

    model_config = ConfigDict(from_attributes=True)


class OrderLineResponse(BaseModel):
    item_id: int
    item_name: str
    quantity: int
    unit_price: float
    customizations: List[CustomizationResponse] = []
    customization_cost: float = 0.0
    total_price: float


class StatusUpdateResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: int
    customer_id: int
    status: str
    payment_status: str
    payment_method: str
    total_amount: float
    created_at: datetime
    line_items: List[OrderLineResponse]
    status_history: List[StatusUpdateResponse]

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method,
            total_amount=order.total_amount,
            created_at=order.created_at,
            line_items=[
                OrderLineResponse(
                    item_id=line.item_id,
                    item_name=line.item_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    customizations=[
                        CustomizationResponse.model_validate(c) for c in line.customizations
                    ],
                    customization_cost=line.customization_cost,
                    total_price=line.total_price,
                )
                for line in order.line_items
            ],
            status_history=[
                StatusUpdateResponse(
                    status=entry.status.value,
                    message=entry.message,
                    timestamp=entry.timestamp,
                )
                for entry in order.status_history
            ],
        )


class PaymentResponse(BaseModel):
    """Outcome of a payment attempt."""
    success: bool
    method: str
    amount: float
    status: str
    transaction_id: Optional[str] = None
    change_due: Optional[float] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class OrderCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    success: bool
    message: str
    order: OrderResponse
    payment: Optional[PaymentResponse] = None


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class NotificationStatsResponse(BaseModel):
    monitored_orders: int
    customer_notifications: int
    kitchen_notifications: int
    delivery_notifications: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    notification_service: str
    timestamp: datetime
