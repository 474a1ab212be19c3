"""
Database Schemas

Storefront models. Products live in the "product" collection and orders in
the "order" collection (lowercased class name). Orders are append-only: each
embeds a frozen copy of the purchased products.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal["night cream", "serum", "foam", "sunscreen", "mask"]
PaymentMethod = Literal["delivery", "qr"]
OrderStatus = Literal["pending", "completed", "cancelled"]


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, description="Unit price shown to customers")
    cost_price: Optional[float] = Field(None, ge=0, description="Unit cost, admin only")
    stock: int = Field(0, ge=0, description="Units available")
    category: Category
    image_url: str = Field("", description="Image URL")


class ProductUpdate(BaseModel):
    """Partial admin edit. `stock` is an absolute set."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[Category] = None
    image_url: Optional[str] = None

    @field_validator("name", "description", "price", "stock", "category", "image_url", mode="before")
    @classmethod
    def not_null(cls, value):
        # only cost_price may be cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class Product(ProductIn):
    id: str


class ProductPublic(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float
    stock: int
    category: Category
    image_url: str = ""


# ----- Checkout -----

class CartLine(BaseModel):
    """A cart entry as submitted. Anything besides id/quantity is ignored."""
    id: str
    quantity: int = Field(..., ge=1)


class CustomerInfo(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer: CustomerInfo
    cart: List[CartLine]
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")


class OrderItem(BaseModel):
    """Snapshot of a product at purchase time, priced from the catalog."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str = ""
    image_url: str = ""
    price: float = Field(..., ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    customer_info: CustomerInfo
    items: List[OrderItem]
    subtotal: float = Field(..., ge=0)
    delivery_fee: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    payment_method: PaymentMethod
    status: OrderStatus
    created_at: datetime


class OrdersPage(BaseModel):
    data: List[Order]
    total: int
    limit: int
    offset: int
    has_more: bool


# ----- Analytics -----

class FinancialStats(BaseModel):
    revenue: float = 0.0
    profit: float = 0.0
    margin: float = 0.0
    growth: float = 0.0


class DailySales(BaseModel):
    date: str
    amount: float


class CategorySales(BaseModel):
    name: str
    value: float


class TopProduct(BaseModel):
    id: str
    name: str
    category: str = ""
    price: float = 0.0
    count: int


class DashboardMetrics(BaseModel):
    financial_stats: FinancialStats
    sales_data: List[DailySales]
    sales_by_category: List[CategorySales]
    top_products: List[TopProduct]
    returning_customer_rate: float


# ----- AI copy -----

class DescriptionRequest(BaseModel):
    product_name: str = Field(..., min_length=1)


class SalesAnalysisRequest(BaseModel):
    sales_data: str = Field(..., min_length=1, description="JSON-encoded sales figures")


class GeneratedText(BaseModel):
    text: str
