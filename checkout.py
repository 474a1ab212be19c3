"""
Order placement.

validate -> total -> record -> decrement stock -> notify

Prices, costs and stock are always read fresh from the catalog; nothing
monetary submitted by the client reaches the recorded order. Once the order
is recorded, stock problems are logged instead of failing the request, and
the notification runs detached from the response.
"""
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, NamedTuple, Optional

import structlog
from pymongo.errors import DuplicateKeyError, PyMongoError

from catalog import Catalog
from config import (DELIVERY_FEE, FREE_SHIPPING_THRESHOLD, ORDER_ID_DIGITS,
                    ORDER_ID_MAX_ATTEMPTS, ORDER_ID_PREFIX)
from errors import (EmptyCart, InsufficientStock, PersistenceError,
                    ProductNotFound, StockUpdateFailure)
from orders import OrderStore
from schemas import CartLine, CustomerInfo, Order, OrderItem, PaymentMethod

logger = structlog.get_logger(__name__)


class OrderTotals(NamedTuple):
    subtotal: float
    delivery_fee: float
    total: float


# ----- Validation -----

def validate_cart(catalog: Catalog, lines: List[CartLine]) -> List[OrderItem]:
    """Re-price the cart from the catalog and check stock.

    Repeated lines for one product are merged so the stock check sees the
    full requested quantity.
    """
    if not lines:
        raise EmptyCart()

    requested: Dict[str, int] = {}
    for line in lines:
        requested[line.id] = requested.get(line.id, 0) + line.quantity

    items: List[OrderItem] = []
    for product_id, quantity in requested.items():
        product = catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if product.stock < quantity:
            raise InsufficientStock(product.name, product.stock)

        items.append(OrderItem(
            id=product.id,
            name=product.name,
            category=product.category,
            image_url=product.image_url,
            price=product.price,
            cost_price=product.cost_price,
            quantity=quantity,
        ))
    return items


# ----- Totals -----

def delivery_fee_for(subtotal: float) -> float:
    return 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else DELIVERY_FEE


def compute_totals(items: List[OrderItem]) -> OrderTotals:
    subtotal = round(sum(item.price * item.quantity for item in items), 2)
    fee = delivery_fee_for(subtotal)
    return OrderTotals(subtotal=subtotal, delivery_fee=fee, total=round(subtotal + fee, 2))


# ----- Recording -----

def generate_order_id() -> str:
    suffix = random.randrange(10 ** ORDER_ID_DIGITS)
    return f"{ORDER_ID_PREFIX}-{suffix:0{ORDER_ID_DIGITS}d}"


def status_for(payment_method: PaymentMethod) -> str:
    # QR payments are settled before checkout completes
    return "completed" if payment_method == "qr" else "pending"


def record_order(orders: OrderStore, items: List[OrderItem], totals: OrderTotals,
                 customer: CustomerInfo, payment_method: PaymentMethod) -> Order:
    created_at = datetime.now(timezone.utc)

    for attempt in range(1, ORDER_ID_MAX_ATTEMPTS + 1):
        order = Order(
            id=generate_order_id(),
            customer_info=customer,
            items=items,
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            payment_method=payment_method,
            status=status_for(payment_method),
            created_at=created_at,
        )
        try:
            orders.insert_order(order)
        except DuplicateKeyError:
            logger.warning("order.id_collision", order_id=order.id, attempt=attempt)
            continue
        except PyMongoError as exc:
            logger.error("order.insert_failed", error=str(exc))
            raise PersistenceError(str(exc)) from exc

        logger.info("order.recorded", order_id=order.id, total=order.total,
                    payment_method=payment_method, lines=len(items))
        return order

    raise PersistenceError(f"no free order id after {ORDER_ID_MAX_ATTEMPTS} attempts")


# ----- Stock -----

def fallback_decrement(catalog: Catalog, item: OrderItem) -> int:
    """Read-then-write decrement used when the atomic update is unavailable.

    Not safe under concurrency: two checkouts can read the same stock and
    the later write wins. Clamped at zero. Returns the stock written.
    """
    product = catalog.get_product(item.id)
    if product is None:
        raise StockUpdateFailure(item.id, item.quantity, "product no longer exists")

    new_stock = max(product.stock - item.quantity, 0)
    catalog.set_stock(item.id, new_stock)
    logger.warning("stock.fallback_decrement", product_id=item.id, quantity=item.quantity,
                   before=product.stock, after=new_stock,
                   oversold=max(item.quantity - product.stock, 0))
    return new_stock


def decrement_inventory(catalog: Catalog, items: List[OrderItem]) -> List[StockUpdateFailure]:
    """Take purchased units out of stock. Failures are logged and returned, never raised."""
    failures: List[StockUpdateFailure] = []

    for item in items:
        try:
            applied = catalog.decrement_stock(item.id, item.quantity)
        except PyMongoError as exc:
            logger.warning("stock.atomic_unavailable", product_id=item.id, error=str(exc))
            try:
                fallback_decrement(catalog, item)
            except StockUpdateFailure as failure:
                failures.append(failure)
                logger.error("stock.update_failed", product_id=item.id, reason=failure.reason)
            except PyMongoError as fallback_exc:
                failures.append(StockUpdateFailure(item.id, item.quantity, str(fallback_exc)))
                logger.error("stock.update_failed", product_id=item.id, reason=str(fallback_exc))
            continue

        if not applied:
            if catalog.get_product(item.id) is None:
                reason = "product no longer exists"
            else:
                reason = "stock no longer covers quantity"
            failures.append(StockUpdateFailure(item.id, item.quantity, reason))
            logger.warning("stock.decrement_rejected", product_id=item.id, quantity=item.quantity, reason=reason)

    return failures


# ----- Workflow -----

def place_order(catalog: Catalog, orders: OrderStore, customer: CustomerInfo, lines: List[CartLine],
                payment_method: PaymentMethod, on_placed: Optional[Callable[[Order], None]] = None) -> Order:
    items = validate_cart(catalog, lines)
    totals = compute_totals(items)
    order = record_order(orders, items, totals, customer, payment_method)
    decrement_inventory(catalog, items)
    if on_placed is not None:
        try:
            on_placed(order)
        except Exception as exc:
            # the order is already recorded
            logger.warning("notify.failed", order_id=order.id, error=str(exc))
    return order
