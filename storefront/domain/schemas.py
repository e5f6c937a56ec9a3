# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional

from storefront.domain.order_status import OrderStatus


class CamelModel(BaseModel):
    """W magazynie i w API pola są camelCase (userId, productId...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_item(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# =====================================================
# ENCJE
# =====================================================
class CartLine(CamelModel):
    user_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    added_at: str
    updated_at: str


class Product(CamelModel):
    product_id: str
    title: str
    description: str = ""
    image_url: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    owner_id: str
    category: str = "General"
    brand: str = "Generic"
    rating: float = 0
    reviews: List[Any] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str
    updated_at: str


class ProductSnapshot(Product):
    """Odłączona kopia produktu z chwili zakupu - późniejsze zmiany produktu jej nie dotykają."""

    model_config = ConfigDict(frozen=True)


class OrderItem(CamelModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int = Field(..., gt=0)
    product: ProductSnapshot


class Order(CamelModel):
    order_id: str
    user_id: str
    items: List[OrderItem] = Field(..., min_length=1)
    status: OrderStatus = OrderStatus.PENDING
    created_at: str
    updated_at: str

    @property
    def total(self) -> float:
        return round(sum(i.product.price * i.quantity for i in self.items), 2)


class Profile(CamelModel):
    model_config = ConfigDict(extra="allow")

    user_id: str
    role: str
    email: Optional[str] = None
    name: Optional[str] = None


# =====================================================
# REQUESTY
# =====================================================
class CartItemIn(CamelModel):
    """Pojedyncza linia - niepoprawne linie są pomijane, nie odrzucane."""

    product_id: Optional[str] = None
    quantity: Optional[int] = None


class CartItemsIn(CamelModel):
    items: List[CartItemIn] = Field(..., min_length=1, description="Items array is required")


class CartItemUpdateIn(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Ilość produktu (musi być > 0)")


class CartItemDeleteIn(CamelModel):
    product_id: str = Field(..., min_length=1)


class ProductIn(CamelModel):
    title: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Price must be non-negative")
    stock: int = Field(..., ge=0, description="Stock must be a non-negative integer")
    category: Optional[str] = None
    brand: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ProductUpdateIn(CamelModel):
    title: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    brand: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class OrderStatusIn(CamelModel):
    status: OrderStatus


class ProfileUpdateIn(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    store_name: Optional[str] = None
    store_description: Optional[str] = None
    store_address: Optional[str] = None
    store_city: Optional[str] = None
    store_state: Optional[str] = None
    store_zip_code: Optional[str] = None
    store_country: Optional[str] = None


# =====================================================
# ODPOWIEDZI
# =====================================================
class MessageOut(BaseModel):
    message: str


class CartOut(CamelModel):
    message: str = "Cart fetched successfully"
    cart: List[CartLine]


class ProductPageOut(CamelModel):
    items: List[Product]
    last_key: Optional[str] = None
    count: int


class OrderPlacedOut(CamelModel):
    message: str = "Order placed successfully"
    order: Order


class OrdersOut(CamelModel):
    message: str = "Orders fetched successfully"
    orders: List[Order]


class ProfileOut(CamelModel):
    success: bool = True
    profile: Profile
