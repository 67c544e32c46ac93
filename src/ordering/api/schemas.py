"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Money travels as decimal strings; no request
schema carries a total, only what the customer chose.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from payments.gateway.port import GatewayKind


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    stock: int = Field(ge=0, default=0)
    category: str | None = None
    image: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Apples (1kg)",
                    "unit_price": "10.00",
                    "stock": 50,
                    "category": "Fruit",
                }
            ]
        }
    }


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)


class RepriceRequest(BaseModel):
    unit_price: Decimal = Field(ge=0, decimal_places=2)


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    stock: int
    category: str | None = None
    image: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class ItemIdResponse(BaseModel):
    item_id: str


class CartLineResponse(BaseModel):
    item_id: str
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    available: int


class CartResponse(BaseModel):
    customer_id: str
    lines: list[CartLineResponse]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class ReviewRequest(BaseModel):
    wallet_amount: Decimal | None = Field(default=None, decimal_places=2)
    points: int | None = None


class CheckoutRequest(ReviewRequest):
    gateway: GatewayKind | None = None


class PayRequest(BaseModel):
    gateway: GatewayKind


class ReviewLineResponse(BaseModel):
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class ReviewResponse(BaseModel):
    customer_id: str
    lines: list[ReviewLineResponse]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    wallet_balance: Decimal
    points_balance: int
    wallet_applied: Decimal
    points_to_redeem: int
    points_discount: Decimal
    points_debited: int
    max_points_redeemable: int
    payable_total: Decimal


class CheckoutResponse(BaseModel):
    checkout_id: str
    status: str
    payable: Decimal
    order_id: str | None = None
    redirect_url: str | None = None
    qr_code: str | None = None
    failure_reason: str | None = None


class ConfigureGatewayRequest(BaseModel):
    outcome: str = Field(default="settled", pattern="^(settled|pending|failed)$")
    failure_reason: str = "Payment declined"
    available: bool = True


class GatewayConfigResponse(BaseModel):
    gateway: str
    kind: GatewayKind
    outcome: str
    available: bool


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------
class TopUpRequest(BaseModel):
    amount: Decimal = Field(gt=0, decimal_places=2)
    method: str = "Card"
    reference: str | None = None


class AwardPointsRequest(BaseModel):
    points: int = Field(ge=1)
    reference: str | None = None


class WalletResponse(BaseModel):
    customer_id: str
    balance: Decimal
    points: int


class TransactionResponse(BaseModel):
    transaction_id: str
    type: str
    method: str
    amount: Decimal
    points: int
    currency: str
    status: str
    reference: str | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class InvoiceLineResponse(BaseModel):
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderSummaryResponse(BaseModel):
    order_id: str
    customer_id: str
    checkout_id: str
    status: str
    total: Decimal
    payment_method: str | None = None
    placed_at: datetime | None = None
    lines: list[InvoiceLineResponse]


class InvoiceResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    placed_at: datetime | None = None
    lines: list[InvoiceLineResponse]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    wallet_applied: Decimal
    points_redeemed: int
    points_discount: Decimal
    amount_paid: Decimal
    payment_method: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    changed_by: str = "Admin"


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------
class ReconciliationResponse(BaseModel):
    entry_id: str
    checkout_id: str
    customer_id: str | None = None
    gateway: str | None = None
    intent_ref: str | None = None
    captured: Decimal
    expected: Decimal
    reason: str
    status: str
    created_at: datetime | None = None


class ResolveReconciliationRequest(BaseModel):
    note: str | None = None


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "accepted"
