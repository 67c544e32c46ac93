"""FastAPI routes for the storefront — products, carts, checkout, wallets and orders."""

import asyncio
import os

from fastapi import APIRouter, HTTPException, Request
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddProductRequest,
    AddToCartRequest,
    AwardPointsRequest,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    InvoiceResponse,
    ItemIdResponse,
    OrderSummaryResponse,
    PayRequest,
    ProductIdResponse,
    ProductResponse,
    ReconciliationResponse,
    RepriceRequest,
    ResolveReconciliationRequest,
    RestockRequest,
    ReviewLineResponse,
    ReviewRequest,
    ReviewResponse,
    StatusResponse,
    TopUpRequest,
    TransactionResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    WalletResponse,
)
from ordering.cart.cart import cart_for
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.catalog.management import AddProduct, RepriceProduct, RestockProduct
from ordering.catalog.product import Product
from ordering.checkout import coordinator
from ordering.checkout.pricing import price_cart
from ordering.checkout.reconciliation import ResolveReconciliation, open_reconciliations
from ordering.checkout.review import checkout_lines, review_checkout
from ordering.config import get_settings
from ordering.order.history import all_orders, invoice_for, order_lines, orders_for
from ordering.order.status import UpdateOrderStatus
from ordering.shared.money import from_cents, to_cents
from ordering.wallet.management import AwardPoints, TopUpWallet
from ordering.wallet.wallet import transactions_for, wallet_for
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayKind

DISCONNECT_CHECK_SECONDS = 0.5


def _checkout_response(result) -> CheckoutResponse:
    return CheckoutResponse(
        checkout_id=result.checkout_id,
        status=result.status,
        payable=result.payable,
        order_id=result.order_id,
        redirect_url=result.redirect_url,
        qr_code=result.qr_code,
        failure_reason=result.failure_reason,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest) -> ProductIdResponse:
    command = AddProduct(
        name=body.name,
        unit_price_cents=to_cents(body.unit_price),
        stock=body.stock,
        category=body.category,
        image=body.image,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get(product_id)
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        unit_price=product.unit_price,
        stock=product.stock,
        category=product.category,
        image=product.image,
    )


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def restock_product(product_id: str, body: RestockRequest) -> StatusResponse:
    current_domain.process(RestockProduct(product_id=product_id, quantity=body.quantity), asynchronous=False)
    return StatusResponse(status="restocked")


@product_router.put("/{product_id}/price", response_model=StatusResponse)
async def reprice_product(product_id: str, body: RepriceRequest) -> StatusResponse:
    command = RepriceProduct(product_id=product_id, unit_price_cents=to_cents(body.unit_price))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="repriced")


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{customer_id}", response_model=CartResponse)
async def get_cart(customer_id: str) -> CartResponse:
    cart = cart_for(customer_id)
    lines = checkout_lines(cart)
    totals = price_cart([(line.unit_price, line.quantity) for line in lines], tax_rate=get_settings().tax_rate)
    return CartResponse(
        customer_id=customer_id,
        lines=[
            CartLineResponse(
                item_id=str(item.id),
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.unit_price * line.quantity,
                available=line.available,
            )
            for item, line in zip(cart.items, lines, strict=True)
        ],
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
    )


@cart_router.post("/{customer_id}/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(customer_id: str, body: AddToCartRequest) -> ItemIdResponse:
    command = AddToCart(customer_id=customer_id, product_id=body.product_id, quantity=body.quantity)
    item_id = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=item_id)


@cart_router.put("/{customer_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(customer_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(customer_id=customer_id, item_id=item_id, new_quantity=body.new_quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@cart_router.delete("/{customer_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(customer_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveFromCart(customer_id=customer_id, item_id=item_id), asynchronous=False)
    return StatusResponse(status="removed")


@cart_router.post("/{customer_id}/clear", response_model=StatusResponse)
async def clear_cart(customer_id: str) -> StatusResponse:
    current_domain.process(ClearCart(customer_id=customer_id), asynchronous=False)
    return StatusResponse(status="cleared")


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/{customer_id}/review", response_model=ReviewResponse)
async def review(customer_id: str, body: ReviewRequest) -> ReviewResponse:
    """Totals and rewards recomputed from the live cart and wallet. Writes nothing."""
    state = review_checkout(customer_id, wallet_amount=body.wallet_amount, points=body.points)
    wallet = wallet_for(customer_id)
    return ReviewResponse(
        customer_id=customer_id,
        lines=[
            ReviewLineResponse(
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.unit_price * line.quantity,
            )
            for line in state.lines
        ],
        subtotal=state.totals.subtotal,
        tax=state.totals.tax,
        total=state.totals.total,
        wallet_balance=wallet.balance,
        points_balance=wallet.points,
        wallet_applied=state.rewards.wallet_applied,
        points_to_redeem=state.rewards.points_to_redeem,
        points_discount=state.rewards.points_discount,
        points_debited=state.rewards.points_debited,
        max_points_redeemable=state.rewards.max_points_redeemable,
        payable_total=state.payable_total,
    )


@checkout_router.post("/{customer_id}", status_code=201, response_model=CheckoutResponse)
async def start_checkout(customer_id: str, body: CheckoutRequest) -> CheckoutResponse:
    result = coordinator.start_checkout(customer_id, wallet_amount=body.wallet_amount, points=body.points)
    if body.gateway is not None and result.status == "Reviewing":
        result = coordinator.begin_payment(result.checkout_id, body.gateway)
    return _checkout_response(result)


@checkout_router.post("/attempts/{checkout_id}/pay", response_model=CheckoutResponse)
async def pay(checkout_id: str, body: PayRequest) -> CheckoutResponse:
    return _checkout_response(coordinator.begin_payment(checkout_id, body.gateway))


@checkout_router.get("/attempts/{checkout_id}/return", response_model=CheckoutResponse)
async def gateway_return(checkout_id: str) -> CheckoutResponse:
    """Redirect target for card and redirect-wallet gateways: resolve once."""
    return _checkout_response(coordinator.resolve_payment(checkout_id))


@checkout_router.get("/attempts/{checkout_id}/status", response_model=CheckoutResponse)
async def payment_status(checkout_id: str, request: Request) -> CheckoutResponse:
    """Wait for a push payment to resolve. Stops polling if the client disconnects."""
    cancel = asyncio.Event()

    async def watch_disconnect():
        while not cancel.is_set():
            if await request.is_disconnected():
                cancel.set()
                return
            await asyncio.sleep(DISCONNECT_CHECK_SECONDS)

    watcher = asyncio.create_task(watch_disconnect())
    try:
        result = await coordinator.await_payment(checkout_id, cancel_event=cancel)
    finally:
        watcher.cancel()
    return _checkout_response(result)


@checkout_router.post("/attempts/{checkout_id}/abandon", response_model=CheckoutResponse)
async def abandon(checkout_id: str) -> CheckoutResponse:
    return _checkout_response(coordinator.abandon_checkout(checkout_id))


@checkout_router.put("/gateways/{kind}/configure", response_model=GatewayConfigResponse)
async def configure_gateway(kind: GatewayKind, body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure a FakeGateway's behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway(kind)
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(outcome=body.outcome, failure_reason=body.failure_reason, available=body.available)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        kind=kind,
        outcome=body.outcome,
        available=gateway.available,
    )


# ---------------------------------------------------------------------------
# Wallet Router
# ---------------------------------------------------------------------------
wallet_router = APIRouter(prefix="/wallets", tags=["wallets"])


@wallet_router.get("/{customer_id}", response_model=WalletResponse)
async def get_wallet(customer_id: str) -> WalletResponse:
    wallet = wallet_for(customer_id)
    return WalletResponse(customer_id=customer_id, balance=wallet.balance, points=wallet.points)


@wallet_router.post("/{customer_id}/top-up", response_model=WalletResponse)
async def top_up(customer_id: str, body: TopUpRequest) -> WalletResponse:
    command = TopUpWallet(
        customer_id=customer_id,
        amount_cents=to_cents(body.amount),
        method=body.method,
        reference=body.reference,
    )
    current_domain.process(command, asynchronous=False)
    return await get_wallet(customer_id)


@wallet_router.post("/{customer_id}/points", response_model=WalletResponse)
async def award_points(customer_id: str, body: AwardPointsRequest) -> WalletResponse:
    command = AwardPoints(customer_id=customer_id, points=body.points, reference=body.reference)
    current_domain.process(command, asynchronous=False)
    return await get_wallet(customer_id)


@wallet_router.get("/{customer_id}/transactions", response_model=list[TransactionResponse])
async def list_transactions(customer_id: str) -> list[TransactionResponse]:
    return [
        TransactionResponse(
            transaction_id=str(txn.id),
            type=txn.type,
            method=txn.method,
            amount=from_cents(txn.amount_cents),
            points=txn.points,
            currency=txn.currency,
            status=txn.status,
            reference=txn.reference,
            created_at=txn.created_at,
        )
        for txn in transactions_for(customer_id)
    ]


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_summary(order) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        checkout_id=str(order.checkout_id),
        status=order.status,
        total=order.total,
        payment_method=order.payment_method,
        placed_at=order.placed_at,
        lines=order_lines(order),
    )


@order_router.get("", response_model=list[OrderSummaryResponse])
async def list_orders(customer_id: str) -> list[OrderSummaryResponse]:
    return [_order_summary(order) for order in orders_for(customer_id)]


@order_router.get("/all", response_model=list[OrderSummaryResponse])
async def list_all_orders() -> list[OrderSummaryResponse]:
    return [_order_summary(order) for order in all_orders()]


@order_router.get("/{order_id}/invoice", response_model=InvoiceResponse)
async def get_invoice(order_id: str, customer_id: str | None = None) -> InvoiceResponse:
    return InvoiceResponse(**invoice_for(order_id, customer_id=customer_id))


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, changed_by=body.changed_by)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.status)


# ---------------------------------------------------------------------------
# Reconciliation Router
# ---------------------------------------------------------------------------
reconciliation_router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@reconciliation_router.get("", response_model=list[ReconciliationResponse])
async def list_open_entries() -> list[ReconciliationResponse]:
    return [
        ReconciliationResponse(
            entry_id=str(entry.id),
            checkout_id=str(entry.checkout_id),
            customer_id=str(entry.customer_id) if entry.customer_id else None,
            gateway=entry.gateway,
            intent_ref=entry.intent_ref,
            captured=from_cents(entry.captured_cents),
            expected=from_cents(entry.expected_cents),
            reason=entry.reason,
            status=entry.status,
            created_at=entry.created_at,
        )
        for entry in open_reconciliations()
    ]


@reconciliation_router.put("/{entry_id}/resolve", response_model=StatusResponse)
async def resolve_entry(entry_id: str, body: ResolveReconciliationRequest) -> StatusResponse:
    current_domain.process(ResolveReconciliation(entry_id=entry_id, note=body.note), asynchronous=False)
    return StatusResponse(status="resolved")
