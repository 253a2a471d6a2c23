"""
Subscription Service
Stores one subscriber record per e-mail address
"""
import logging
from typing import List

from pymongo.errors import PyMongoError

from fiscal_calendar.config import _now_utc
from fiscal_calendar.models.subscriber import Subscriber, SubscriptionResult

logger = logging.getLogger(__name__)

INVALID_EMAIL = "Por favor, insira um e-mail válido."
UNAVAILABLE = "Serviço indisponível. Tente novamente mais tarde."
FAILED = "Ocorreu um erro. Tente novamente."
SUBSCRIBED = "Inscrição realizada com sucesso!"


class SubscriptionService:
    """Upserts subscribers keyed by the literal e-mail string."""

    def __init__(self, collection=None):
        self.collection = collection

    async def subscribe(self, email: str) -> SubscriptionResult:
        if not email or "@" not in email:
            return SubscriptionResult(success=False, message=INVALID_EMAIL)
        if self.collection is None:
            return SubscriptionResult(success=False, message=UNAVAILABLE)
        try:
            await self.collection.replace_one(
                {"_id": email},
                {"email": email, "subscribedAt": _now_utc()},
                upsert=True,
            )
        except PyMongoError as exc:
            logger.error(f"Error subscribing {email}: {exc}")
            return SubscriptionResult(success=False, message=FAILED)
        return SubscriptionResult(success=True, message=SUBSCRIBED)

    async def list_subscribers(self) -> List[Subscriber]:
        if self.collection is None:
            return []
        cursor = self.collection.find({})
        docs = await cursor.to_list(length=None)
        return [
            Subscriber(email=doc.get("email") or doc["_id"], subscribedAt=doc.get("subscribedAt"))
            for doc in docs
        ]
