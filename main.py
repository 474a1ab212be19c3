import os
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import structlog
from bson import ObjectId
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

import analytics
import copywriter
import database
from auth import require_admin
from cache import ALL_PRODUCTS, ORDERS_PREFIX, PUBLIC_PRODUCTS, ReadCache, orders_key
from catalog import Catalog
from checkout import place_order
from config import LOW_STOCK_THRESHOLD, ORDER_CACHE_TTL, PRODUCT_CACHE_TTL
from errors import CheckoutError
from logs import configure_logging
from notifier import send_order_notification
from orders import OrderStore
from schemas import (CreateOrderRequest, DashboardMetrics, DescriptionRequest, GeneratedText, Order,
                     OrdersPage, Product, ProductIn, ProductPublic, ProductUpdate, SalesAnalysisRequest)

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="Storefront Order API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

read_cache = ReadCache()


# ----- Utilities -----

def get_database() -> Database:
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database not available")
    return database.db


def get_catalog(db: Database = Depends(get_database)) -> Catalog:
    return Catalog(db)


def get_order_store(db: Database = Depends(get_database)) -> OrderStore:
    return OrderStore(db)


def ensure_object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid ID format")


def invalidate_products() -> None:
    read_cache.invalidate(PUBLIC_PRODUCTS, ALL_PRODUCTS)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    logger.info("checkout.rejected", kind=type(exc).__name__, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=422, content={"error": message, "detail": jsonable_encoder(errors)})


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError):
    logger.error("storage.error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"error": str(exc)})


# ----- Health -----
@app.get("/")
def read_root():
    return {"message": "Storefront Order API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            try:
                response["collections"] = database.db.list_collection_names()[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
        else:
            response["database"] = "⚠️ Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


# ----- Storefront -----
@app.get("/api/products", response_model=List[ProductPublic])
def list_products(catalog: Catalog = Depends(get_catalog)):
    return read_cache.get_or_fetch(PUBLIC_PRODUCTS, PRODUCT_CACHE_TTL, catalog.list_public)


@app.get("/api/products/{product_id}", response_model=ProductPublic)
def get_product(product_id: str, catalog: Catalog = Depends(get_catalog)):
    ensure_object_id(product_id)
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductPublic(**product.model_dump())


@app.post("/api/orders", response_model=Order, status_code=201)
def create_order(payload: CreateOrderRequest, background_tasks: BackgroundTasks,
                 catalog: Catalog = Depends(get_catalog), store: OrderStore = Depends(get_order_store)):
    order = place_order(
        catalog,
        store,
        payload.customer,
        payload.cart,
        payload.payment_method,
        on_placed=lambda placed: background_tasks.add_task(send_order_notification, placed),
    )
    read_cache.invalidate_prefix(ORDERS_PREFIX)
    invalidate_products()
    return order


# ----- Back office: products -----
@app.get("/api/admin/products", response_model=List[Product])
def admin_list_products(_: str = Depends(require_admin), catalog: Catalog = Depends(get_catalog)):
    return read_cache.get_or_fetch(ALL_PRODUCTS, PRODUCT_CACHE_TTL, catalog.list_products)


@app.get("/api/admin/products/low-stock", response_model=List[Product])
def admin_low_stock(threshold: int = Query(LOW_STOCK_THRESHOLD, ge=1), _: str = Depends(require_admin),
                    catalog: Catalog = Depends(get_catalog)):
    return catalog.low_stock(threshold)


@app.get("/api/admin/products/slow-moving", response_model=List[Product])
def admin_slow_moving(days: int = Query(30, ge=1), _: str = Depends(require_admin),
                      catalog: Catalog = Depends(get_catalog), store: OrderStore = Depends(get_order_store)):
    products = read_cache.get_or_fetch(ALL_PRODUCTS, PRODUCT_CACHE_TTL, catalog.list_products)
    since = datetime.now(timezone.utc) - timedelta(days=days)
    return analytics.slow_moving(products, store.sold_product_ids(since))


@app.post("/api/admin/products", response_model=Product, status_code=201)
def admin_create_product(product: ProductIn, _: str = Depends(require_admin),
                         catalog: Catalog = Depends(get_catalog)):
    created = catalog.create_product(product)
    invalidate_products()
    logger.info("product.created", product_id=created.id, name=created.name)
    return created


@app.patch("/api/admin/products/{product_id}", response_model=Product)
def admin_update_product(product_id: str, updates: ProductUpdate, _: str = Depends(require_admin),
                         catalog: Catalog = Depends(get_catalog)):
    ensure_object_id(product_id)
    updated = catalog.update_product(product_id, updates)
    if not updated:
        raise HTTPException(status_code=404, detail="Product not found")
    invalidate_products()
    logger.info("product.updated", product_id=product_id, fields=sorted(updates.model_fields_set))
    return updated


@app.delete("/api/admin/products/{product_id}", status_code=204)
def admin_delete_product(product_id: str, _: str = Depends(require_admin),
                         catalog: Catalog = Depends(get_catalog)):
    ensure_object_id(product_id)
    if not catalog.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    invalidate_products()
    logger.info("product.deleted", product_id=product_id)


# ----- Back office: orders & analytics -----
@app.get("/api/admin/orders", response_model=OrdersPage)
def admin_orders(start_date: Optional[date] = None, end_date: Optional[date] = None,
                 search: Optional[str] = None, limit: int = Query(50, ge=1, le=500), offset: int = Query(0, ge=0),
                 _: str = Depends(require_admin), store: OrderStore = Depends(get_order_store)):
    return store.orders_page(start_date, end_date, search, limit, offset)


@app.get("/api/admin/orders/{order_id}", response_model=Order)
def admin_get_order(order_id: str, _: str = Depends(require_admin), store: OrderStore = Depends(get_order_store)):
    order = store.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.get("/api/admin/dashboard", response_model=DashboardMetrics)
def admin_dashboard(start_date: Optional[date] = None, end_date: Optional[date] = None,
                    top_limit: int = Query(5, ge=1, le=50), _: str = Depends(require_admin),
                    store: OrderStore = Depends(get_order_store)):
    orders = read_cache.get_or_fetch(
        orders_key(start_date, end_date),
        ORDER_CACHE_TTL,
        lambda: store.list_orders(start_date, end_date),
    )
    return analytics.dashboard_metrics(orders, top_limit)


# ----- Back office: AI copy -----
@app.post("/api/admin/ai/description", response_model=GeneratedText)
def admin_generate_description(req: DescriptionRequest, _: str = Depends(require_admin)):
    return GeneratedText(text=copywriter.generate_description(req.product_name))


@app.post("/api/admin/ai/sales-analysis", response_model=GeneratedText)
def admin_analyze_sales(req: SalesAnalysisRequest, _: str = Depends(require_admin)):
    return GeneratedText(text=copywriter.analyze_sales(req.sales_data))


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
