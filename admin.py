"""Catalogue maintenance and store overview, mounted under /admin."""
from fastapi import APIRouter, Depends
from pymongo import ASCENDING

from cashier_codes import CashierCodeFlow, get_cashier_code_flow
from database import MongoStore, get_store, serialize_doc
from errors import NotFoundError, StoreError
from logging_utils import get_app_logger
from schemas import CASHIER_CODE_HISTORY, CUSTOMER, PRODUCT, PURCHASE, Product, ProductUpsert

logger = get_app_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/products")
def list_products(store: MongoStore = Depends(get_store)):
    try:
        products = store.find(PRODUCT, sort=[("name", ASCENDING)])
    except StoreError as e:
        raise e.relabel("Error fetching products") from e
    return {"success": True, "products": [serialize_doc(p) for p in products]}


@router.post("/product")
def save_product(payload: ProductUpsert, store: MongoStore = Depends(get_store)):
    product = Product(**payload.model_dump())
    try:
        saved = store.upsert(PRODUCT, {"barcode": product.barcode}, product.model_dump())
    except StoreError as e:
        raise e.relabel("Error saving product") from e
    logger.info(f"product_saved | barcode={product.barcode}")
    return {"success": True, "product": serialize_doc(saved)}


@router.delete("/product/{barcode}")
def delete_product(barcode: str, store: MongoStore = Depends(get_store)):
    try:
        deleted = store.delete_one(PRODUCT, {"barcode": barcode})
    except StoreError as e:
        raise e.relabel("Error deleting product") from e
    if not deleted:
        raise NotFoundError("Product not found")
    logger.info(f"product_deleted | barcode={barcode}")
    return {"success": True, "message": "Product deleted"}


@router.get("/stats")
def stats(store: MongoStore = Depends(get_store), flow: CashierCodeFlow = Depends(get_cashier_code_flow)):
    try:
        intents = flow.count_intents()
        return {
            "success": True,
            "stats": {
                "products": store.count(PRODUCT),
                "customers": store.count(CUSTOMER),
                "purchases": {
                    "cash": store.count(PURCHASE, {"paymentMethod": "cash"}),
                    "online": store.count(PURCHASE, {"paymentMethod": "online"}),
                },
                "cashIntents": intents,
                "cashierCodes": {
                    "verified": store.count(CASHIER_CODE_HISTORY, {"verified": True}),
                    "unverified": store.count(CASHIER_CODE_HISTORY, {"verified": False}),
                },
            },
        }
    except StoreError as e:
        raise e.relabel("Error fetching stats") from e
