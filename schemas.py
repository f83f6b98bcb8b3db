"""
Database Schemas for Smart Cart

Each Pydantic model represents a MongoDB collection. Collection name is the
snake_case of the class name (e.g., CashIntent -> "cash_intent").
Request bodies follow the collection models.
"""
from datetime import datetime
from typing import Annotated, List, Optional, Union

from pydantic import AfterValidator, BaseModel, EmailStr, Field

PRODUCT = "product"
CUSTOMER = "customer"
PURCHASE = "purchase"
CASH_INTENT = "cash_intent"
CASHIER_CODE_HISTORY = "cashier_code_history"


class Product(BaseModel):
    """Products collection schema
    Collection name: "product"
    """
    barcode: str = Field(..., description="EAN/UPC barcode, unique")
    name: str = Field(..., description="Display name")
    price: float = Field(..., ge=0, description="Unit price")
    category: Optional[str] = Field(None, description="Shelf category")
    imageUrl: Optional[str] = Field(None, description="Product image URL")


class Customer(BaseModel):
    """Customers collection schema
    Collection name: "customer"
    """
    name: str = Field(..., description="Full name")
    mobile: str = Field(..., description="Mobile number, unique")
    email: EmailStr = Field(..., description="Contact email")
    createdAt: Optional[datetime] = Field(None, description="Set on first save")
    updatedAt: Optional[datetime] = Field(None, description="Set on every save")


class PurchaseItem(BaseModel):
    barcode: Optional[str] = None
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class Purchase(BaseModel):
    """Purchases collection schema
    Collection name: "purchase"
    """
    name: str
    mobile: str
    products: List[PurchaseItem]
    paymentMethod: str = Field(..., description="cash | online")
    cashierCode: Optional[str] = Field(None, description="Code used for cash payments, else null")
    date: Optional[datetime] = None


class CashIntent(BaseModel):
    """Pending cash payments, at most one per mobile
    Collection name: "cash_intent"
    """
    name: str
    mobile: str
    cashierCode: str
    date: datetime = Field(..., description="When the code was issued")
    expiresAt: datetime


class CashierCodeHistory(BaseModel):
    """Issued cashier codes, never deleted
    Collection name: "cashier_code_history"
    """
    cashierCode: str
    mobile: str
    verified: bool = False
    verifiedAt: Optional[datetime] = None
    createdAt: datetime


# ----------------------
# Request bodies
# ----------------------
# All fields optional; handlers check which ones are required.
# Mobile numbers may arrive as JSON numbers and are stored as text.
MobileNumber = Annotated[Union[str, int], AfterValidator(str)]


class CustomerCreate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[MobileNumber] = None
    email: Optional[EmailStr] = None


class PurchaseCreate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[MobileNumber] = None
    email: Optional[str] = None
    products: Optional[List[PurchaseItem]] = None
    paymentMethod: Optional[str] = None
    cashierCode: Optional[Union[str, int]] = None


class CashIntentCreate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[MobileNumber] = None


class CashierCodeVerify(BaseModel):
    mobile: Optional[MobileNumber] = None
    cashierCode: Optional[Union[str, int]] = None


class ProductUpsert(BaseModel):
    barcode: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: Optional[str] = None
    imageUrl: Optional[str] = None
