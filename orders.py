"""
Order storage over the "order" collection.

Orders are insert-only. The order id is the document `_id`, so MongoDB's
primary-key index rejects a duplicate id on insert.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from pymongo import DESCENDING
from pymongo.database import Database

from config import MAX_ORDERS_PER_QUERY
from schemas import Order, OrdersPage

COLLECTION = "order"


def _to_doc(order: Order) -> dict:
    doc = order.model_dump()
    doc["_id"] = doc.pop("id")
    return doc


def _from_doc(doc: dict) -> Order:
    d = dict(doc)
    d["id"] = str(d.pop("_id"))
    return Order(**d)


def date_window(start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
    """Filter on created_at; the end date covers its whole day."""
    created: Dict[str, Any] = {}
    if start_date:
        created["$gte"] = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    if end_date:
        created["$lt"] = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return {"created_at": created} if created else {}


class OrderStore:
    def __init__(self, database: Database):
        self.collection = database[COLLECTION]

    def insert_order(self, order: Order) -> Order:
        # DuplicateKeyError and other PyMongoErrors are left to the caller
        self.collection.insert_one(_to_doc(order))
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        doc = self.collection.find_one({"_id": order_id})
        return _from_doc(doc) if doc else None

    def list_orders(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    limit: int = MAX_ORDERS_PER_QUERY) -> List[Order]:
        cursor = (self.collection.find(date_window(start_date, end_date))
                  .sort("created_at", DESCENDING)
                  .limit(limit))
        return [_from_doc(d) for d in cursor]

    def orders_page(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    search: Optional[str] = None, limit: int = 50, offset: int = 0) -> OrdersPage:
        query = date_window(start_date, end_date)
        term = (search or "").strip()
        if term:
            pattern = {"$regex": re.escape(term), "$options": "i"}
            query["$or"] = [{"_id": pattern}, {"customer_info.name": pattern}]

        offset = max(0, offset)
        limit = max(1, limit)
        total = self.collection.count_documents(query)
        cursor = (self.collection.find(query)
                  .sort("created_at", DESCENDING)
                  .skip(offset)
                  .limit(limit))
        rows = [_from_doc(d) for d in cursor]
        return OrdersPage(
            data=rows,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(rows) < total,
        )

    def sold_product_ids(self, since: datetime) -> Set[str]:
        cursor = self.collection.find({"created_at": {"$gte": since}}, {"items": 1}).limit(MAX_ORDERS_PER_QUERY)
        sold: Set[str] = set()
        for doc in cursor:
            for item in doc.get("items", []):
                sold.add(item["id"])
        return sold
