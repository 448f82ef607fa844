from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    name: str
    quantity: int = Field(1, ge=1)
    unit_price: float = Field(0, ge=0)

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


class OrderCreate(BaseModel):
    page_id: Optional[str] = None
    customer_name: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    customer_fb_id: Optional[str] = None
    products: List[OrderItem] = Field(default_factory=list)
    subtotal: Optional[float] = None
    delivery_charge: float = 0
    advance_amount: float = 0
    notes: Optional[str] = None
    conversation_id: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    page_id: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_address: str
    customer_fb_id: Optional[str] = None
    products: List[OrderItem] = Field(default_factory=list)
    subtotal: float = 0
    delivery_charge: float = 0
    advance_amount: float = 0
    total: float = 0
    invoice_number: Optional[str] = None
    notes: Optional[str] = None
    conversation_id: Optional[str] = None
    order_status: OrderStatus = OrderStatus.PENDING


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
