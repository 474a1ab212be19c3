"""
Product catalog backed by the "product" collection.

Stock is changed only through `decrement_stock` (checkout) and `set_stock`
(admin edits and the checkout fallback path).
"""
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from database import create_document, get_documents, to_str_id
from schemas import Product, ProductIn, ProductPublic, ProductUpdate

COLLECTION = "product"

# Customer-facing reads never ship the unit cost
PUBLIC_PROJECTION = {"cost_price": 0, "created_at": 0, "updated_at": 0}


def parse_object_id(id_str: str) -> Optional[ObjectId]:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        return None


class Catalog:
    def __init__(self, database: Database):
        self.db = database
        self.collection = database[COLLECTION]

    # ----- Reads -----

    def list_products(self) -> List[Product]:
        docs = self.collection.find({}).sort("name", ASCENDING)
        return [Product(**to_str_id(d)) for d in docs]

    def list_public(self) -> List[ProductPublic]:
        docs = self.collection.find({}, PUBLIC_PROJECTION).sort("name", ASCENDING)
        return [ProductPublic(**to_str_id(d)) for d in docs]

    def get_product(self, product_id: str) -> Optional[Product]:
        oid = parse_object_id(product_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        if not doc:
            return None
        return Product(**to_str_id(doc))

    def low_stock(self, threshold: int) -> List[Product]:
        docs = get_documents(COLLECTION, {"stock": {"$lt": threshold}}, database=self.db)
        products = [Product(**to_str_id(d)) for d in docs]
        return sorted(products, key=lambda p: p.stock)

    # ----- Admin writes -----

    def create_product(self, product: ProductIn) -> Product:
        inserted_id = create_document(COLLECTION, product, database=self.db)
        return self.get_product(inserted_id)

    def update_product(self, product_id: str, updates: ProductUpdate) -> Optional[Product]:
        oid = parse_object_id(product_id)
        if oid is None:
            return None
        changes = updates.model_dump(exclude_unset=True)
        changes["updated_at"] = datetime.now(timezone.utc)
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return Product(**to_str_id(doc))

    def delete_product(self, product_id: str) -> bool:
        oid = parse_object_id(product_id)
        if oid is None:
            return False
        return self.collection.delete_one({"_id": oid}).deleted_count > 0

    # ----- Stock -----

    def set_stock(self, product_id: str, stock: int) -> bool:
        oid = parse_object_id(product_id)
        if oid is None:
            return False
        result = self.collection.update_one(
            {"_id": oid},
            {"$set": {"stock": stock, "updated_at": datetime.now(timezone.utc)}},
        )
        return result.matched_count > 0

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically take `quantity` units if at least that many remain.

        Returns False when the product is gone or the stock no longer covers
        the quantity; the row is left untouched in that case.
        """
        oid = parse_object_id(product_id)
        if oid is None:
            return False
        doc = self.collection.find_one_and_update(
            {"_id": oid, "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}, "$set": {"updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return doc is not None
