import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import DESCENDING

from admin import router as admin_router
from cashier_codes import CashierCodeFlow, get_cashier_code_flow
from database import MongoStore, get_client, get_store, serialize_doc
from errors import MissingFieldsError, NotFoundError, StoreError, register_exception_handlers
from logging_utils import get_app_logger, initialize_logging
from schemas import (
    CUSTOMER,
    PRODUCT,
    PURCHASE,
    CashierCodeVerify,
    CashIntentCreate,
    Customer,
    CustomerCreate,
    Purchase,
    PurchaseCreate,
)
from settings import SmartCartConfigs

configs = SmartCartConfigs()
initialize_logging()
logger = get_app_logger("smart_cart.main")


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(f"startup | port={configs.PORT} database={configs.DATABASE_NAME}")
    yield
    logger.info("shutdown")
    if get_client.cache_info().currsize:
        get_client().close()


# ----------------------
# App Setup
# ----------------------
app = FastAPI(title="Smart Cart API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=configs.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(admin_router)


# ----------------------
# Health/Test
# ----------------------
@app.get("/")
def read_root():
    return {"message": "Smart Cart Backend Running"}


@app.get("/test")
def test_database(store: MongoStore = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        response["collections"] = store.collection_names()[:10]
        response["database"] = "✅ Connected"
        response["connection_status"] = "Connected"
    except StoreError as e:
        response["database"] = f"⚠️ {str(e.error)[:60]}"
    return response


# ----------------------
# Products & Customers
# ----------------------
@app.get("/product/{barcode}")
def get_product(barcode: str, store: MongoStore = Depends(get_store)):
    try:
        product = store.find_one(PRODUCT, {"barcode": barcode})
    except StoreError as e:
        raise e.relabel("Server error") from e
    if not product:
        raise NotFoundError("Product not found")
    return {"success": True, "product": serialize_doc(product)}


@app.post("/customer")
def save_customer(payload: CustomerCreate, store: MongoStore = Depends(get_store)):
    if not payload.name or not payload.mobile or not payload.email:
        raise MissingFieldsError()

    now = datetime.now(timezone.utc)
    customer = Customer(name=payload.name, mobile=payload.mobile, email=payload.email, createdAt=now, updatedAt=now)
    fields = customer.model_dump(exclude={"createdAt"})
    try:
        store.upsert(CUSTOMER, {"mobile": customer.mobile}, fields, on_insert={"createdAt": now})
    except StoreError as e:
        raise e.relabel("Database error") from e
    logger.info(f"customer_saved | mobile={customer.mobile}")
    return {"success": True, "message": "Customer saved"}


@app.get("/customers")
def list_customers(store: MongoStore = Depends(get_store)):
    try:
        customers = store.find(CUSTOMER, sort=[("createdAt", DESCENDING)])
    except StoreError as e:
        raise e.relabel("Error fetching customers") from e
    return {"success": True, "customers": [serialize_doc(c) for c in customers]}


# ----------------------
# Purchases
# ----------------------
@app.post("/purchase")
def save_purchase(
    payload: PurchaseCreate,
    store: MongoStore = Depends(get_store),
    flow: CashierCodeFlow = Depends(get_cashier_code_flow),
):
    if not payload.name or not payload.mobile or payload.products is None or not payload.paymentMethod:
        raise MissingFieldsError()

    is_cash = payload.paymentMethod == "cash"
    cashier_code = payload.cashierCode if is_cash else None
    purchase = Purchase(
        name=payload.name,
        mobile=payload.mobile,
        products=payload.products,
        paymentMethod=payload.paymentMethod,
        cashierCode=str(cashier_code) if cashier_code is not None else None,
        date=datetime.now(timezone.utc),
    )
    try:
        if is_cash:
            flow.finalize(purchase.mobile)
        store.insert_one(PURCHASE, purchase.model_dump())
    except StoreError as e:
        raise e.relabel("Error saving purchase") from e
    logger.info(f"purchase_saved | mobile={purchase.mobile} payment_method={purchase.paymentMethod} items={len(purchase.products)}")
    return {"success": True, "message": "Purchase saved"}


def _purchases(store: MongoStore, filter: dict, message: str):
    try:
        return [serialize_doc(p) for p in store.find(PURCHASE, filter, sort=[("date", DESCENDING)])]
    except StoreError as e:
        raise e.relabel(message) from e


@app.get("/purchase-history")
def purchase_history(store: MongoStore = Depends(get_store)):
    return {"success": True, "history": _purchases(store, {}, "Error fetching history")}


@app.get("/purchases/cash")
def cash_purchases(store: MongoStore = Depends(get_store)):
    return {"success": True, "cashPurchases": _purchases(store, {"paymentMethod": "cash"}, "Error fetching cash purchases")}


@app.get("/purchases/online")
def online_purchases(store: MongoStore = Depends(get_store)):
    return {"success": True, "onlinePurchases": _purchases(store, {"paymentMethod": "online"}, "Error fetching online purchases")}


# ----------------------
# Cash intents & cashier codes
# ----------------------
@app.post("/cash-intent")
def create_cash_intent(payload: CashIntentCreate, flow: CashierCodeFlow = Depends(get_cashier_code_flow)):
    try:
        code = flow.request_intent(payload.name, payload.mobile)
    except StoreError as e:
        raise e.relabel("Error saving cash intent") from e
    return {"success": True, "cashierCode": code}


@app.get("/cash-intents")
def list_cash_intents(flow: CashierCodeFlow = Depends(get_cashier_code_flow)):
    try:
        intents = flow.list_intents()
    except StoreError as e:
        raise e.relabel("Error fetching cash intents") from e
    return {"success": True, "intents": [serialize_doc(i) for i in intents]}


@app.post("/verify-cashier-code")
def verify_cashier_code(payload: CashierCodeVerify, flow: CashierCodeFlow = Depends(get_cashier_code_flow)):
    try:
        flow.verify_code(payload.mobile, payload.cashierCode)
    except StoreError as e:
        raise e.relabel("❌ Server error") from e
    return {"success": True, "message": "✅ Code verified"}


@app.get("/cashier-code-history")
def cashier_code_history(flow: CashierCodeFlow = Depends(get_cashier_code_flow)):
    try:
        history = flow.list_history()
    except StoreError as e:
        raise e.relabel("Error fetching code history") from e
    return {"success": True, "history": [serialize_doc(h) for h in history]}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=configs.HOST, port=configs.PORT)
