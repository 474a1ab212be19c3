"""
Sales analytics computed from recorded orders.

Only the snapshot prices and costs embedded in each order are used, so the
figures do not move when catalog prices are edited later.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Set

from schemas import (CategorySales, DailySales, DashboardMetrics, FinancialStats,
                     Order, Product, TopProduct)


def financial_stats(orders: List[Order]) -> FinancialStats:
    revenue = sum(order.total for order in orders)
    profit = sum(
        (item.price - (item.cost_price or 0)) * item.quantity
        for order in orders
        for item in order.items
    )
    margin = (profit / revenue) * 100 if revenue > 0 else 0.0
    return FinancialStats(revenue=round(revenue, 2), profit=round(profit, 2),
                          margin=round(margin, 2), growth=0.0)


def sales_by_day(orders: List[Order]) -> List[DailySales]:
    daily: Dict[str, float] = defaultdict(float)
    for order in orders:
        daily[order.created_at.date().isoformat()] += order.total
    return [DailySales(date=day, amount=round(amount, 2)) for day, amount in sorted(daily.items())]


def sales_by_category(orders: List[Order]) -> List[CategorySales]:
    totals: Dict[str, float] = defaultdict(float)
    for order in orders:
        for item in order.items:
            totals[item.category or "Uncategorized"] += item.price * item.quantity
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [CategorySales(name=name, value=round(value, 2)) for name, value in ranked]


def top_products(orders: List[Order], limit: int = 5) -> List[TopProduct]:
    counts: Dict[str, TopProduct] = {}
    for order in orders:
        for item in order.items:
            entry = counts.get(item.id)
            if entry is None:
                counts[item.id] = TopProduct(id=item.id, name=item.name, category=item.category,
                                             price=item.price, count=item.quantity)
            else:
                entry.count += item.quantity
    ranked = sorted(counts.values(), key=lambda p: p.count, reverse=True)
    return ranked[:max(1, limit)]


def returning_customer_rate(orders: List[Order]) -> float:
    """Share of orders placed by a phone number seen on an earlier order, in percent."""
    if not orders:
        return 0.0
    phones = [order.customer_info.phone for order in orders]
    unique = len(set(phones))
    return round((len(phones) - unique) / len(phones) * 100, 2)


def slow_moving(products: Iterable[Product], sold_ids: Set[str]) -> List[Product]:
    return [p for p in products if p.id not in sold_ids]


def dashboard_metrics(orders: List[Order], top_limit: int = 5) -> DashboardMetrics:
    return DashboardMetrics(
        financial_stats=financial_stats(orders),
        sales_data=sales_by_day(orders),
        sales_by_category=sales_by_category(orders),
        top_products=top_products(orders, top_limit),
        returning_customer_rate=returning_customer_rate(orders),
    )
