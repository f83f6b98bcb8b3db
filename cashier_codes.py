"""
Cashier-code verification for cash payments.

A customer asks to pay in cash, gets a short numeric code, and a cashier enters
that code to confirm the payment. Per mobile number there is at most one
pending cash intent; every issued code is also appended to the history, which
only ever gains a `verified` flag.

Expiry is checked lazily: an expired intent is only removed when someone tries
to verify it or a new intent overwrites it.
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

from fastapi import Depends
from pymongo import DESCENDING

from database import MongoStore, get_store
from errors import ExpiredCodeError, InvalidCodeError, MissingFieldsError
from logging_utils import get_app_logger
from schemas import CASH_INTENT, CASHIER_CODE_HISTORY, CashierCodeHistory, CashIntent
from settings import SmartCartConfigs

logger = get_app_logger(__name__)
configs = SmartCartConfigs()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_cashier_code(length: int = configs.CASHIER_CODE_LENGTH) -> str:
    """Random numeric code of `length` digits without a leading zero."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class CashierCodeFlow:

    def __init__(
        self,
        store,
        now: Callable[[], datetime] = utc_now,
        code_generator: Callable[[], str] = generate_cashier_code,
        ttl: timedelta = timedelta(minutes=configs.CASH_INTENT_TTL_MINUTES),
    ):
        self.store = store
        self.now = now
        self.code_generator = code_generator
        self.ttl = ttl

    def request_intent(self, name: str, mobile: str) -> str:
        """Issue a fresh code for `mobile`, replacing any pending intent.

        A history row is appended on every call, so repeated requests leave
        several unverified rows behind for the same mobile.
        """
        if not name or not mobile:
            raise MissingFieldsError()
        mobile = str(mobile)

        code = self.code_generator()
        issued_at = self.now()
        intent = CashIntent(
            name=name,
            mobile=mobile,
            cashierCode=code,
            date=issued_at,
            expiresAt=issued_at + self.ttl,
        )
        self.store.upsert(CASH_INTENT, {"mobile": mobile}, intent.model_dump())
        history = CashierCodeHistory(cashierCode=code, mobile=mobile, createdAt=issued_at)
        self.store.insert_one(CASHIER_CODE_HISTORY, history.model_dump())

        logger.info(f"cash_intent_issued | mobile={mobile} expires_at={intent.expiresAt.isoformat()}")
        return code

    def verify_code(self, mobile: str, code) -> None:
        """Consume the pending intent for `mobile` if `code` matches and is live.

        Raises InvalidCodeError when no intent carries this mobile+code pair and
        ExpiredCodeError when it does but is past its expiry; the expired intent
        is deleted first. On success the intent is deleted and the newest
        unverified history row for mobile+code is marked verified.
        """
        if not mobile or not code:
            raise MissingFieldsError("Missing mobile or code")
        mobile, code = str(mobile), str(code)

        intent = self.store.find_one(CASH_INTENT, {"mobile": mobile, "cashierCode": code})
        if not intent:
            logger.warning(f"cashier_code_invalid | mobile={mobile}")
            raise InvalidCodeError()

        if self.now() > intent["expiresAt"]:
            self.store.delete_one(CASH_INTENT, {"mobile": mobile})
            logger.warning(f"cashier_code_expired | mobile={mobile}")
            raise ExpiredCodeError()

        self.store.delete_one(CASH_INTENT, {"mobile": mobile})
        self._mark_verified(mobile, code)
        logger.info(f"cashier_code_verified | mobile={mobile}")

    def _mark_verified(self, mobile: str, code: str) -> None:
        criteria = {"mobile": mobile, "cashierCode": code, "verified": False}
        latest = self.store.find_one(CASHIER_CODE_HISTORY, criteria, sort=[("createdAt", DESCENDING)])
        if latest is None:
            logger.warning(f"cashier_code_history_missing | mobile={mobile}")
            return
        self.store.update_one(
            CASHIER_CODE_HISTORY,
            {"_id": latest["_id"], "verified": False},
            {"verified": True, "verifiedAt": self.now()},
        )

    def finalize(self, mobile: str) -> None:
        """Drop any pending intent for `mobile` once its cash purchase is saved.

        This does not require the code to have been verified.
        """
        if self.store.delete_one(CASH_INTENT, {"mobile": mobile}):
            logger.info(f"cash_intent_finalized | mobile={mobile}")

    def list_intents(self) -> List[dict]:
        return self.store.find(CASH_INTENT, sort=[("date", DESCENDING)])

    def list_history(self) -> List[dict]:
        return self.store.find(CASHIER_CODE_HISTORY, sort=[("createdAt", DESCENDING)])

    def count_intents(self) -> Dict[str, int]:
        """Stored intents split by whether they are still live at `now`."""
        now = self.now()
        intents = self.store.find(CASH_INTENT)
        expired = sum(1 for intent in intents if now > intent["expiresAt"])
        return {"pending": len(intents) - expired, "expired": expired}


def get_cashier_code_flow(store: MongoStore = Depends(get_store)) -> CashierCodeFlow:
    return CashierCodeFlow(store)
