import os
from dotenv import load_dotenv
load_dotenv()

DEFAULT_ORIGINS = [
    "https://backend-smart-cart.onrender.com",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


class SmartCartConfigs:
    def __init__(self):

        # Database settings
        self.DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "smart_cart")

        # Server settings
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "5000"))

        allowed_origins = os.getenv("ALLOWED_ORIGINS")
        if allowed_origins:
            self.ALLOWED_ORIGINS = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
        else:
            self.ALLOWED_ORIGINS = list(DEFAULT_ORIGINS)

        # Cashier code settings
        self.CASH_INTENT_TTL_MINUTES = int(os.getenv("CASH_INTENT_TTL_MINUTES", "15"))
        self.CASHIER_CODE_LENGTH = int(os.getenv("CASHIER_CODE_LENGTH", "6"))
        if self.CASHIER_CODE_LENGTH < 1:
            raise ValueError(f"CASHIER_CODE_LENGTH must be at least 1, got {self.CASHIER_CODE_LENGTH}")

        # Logging settings
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
