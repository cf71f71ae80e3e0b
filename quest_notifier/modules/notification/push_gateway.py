"""
FCM multicast gateway.

One call sends one notification to every device token of a user. The Admin
SDK call is blocking, so it runs in a worker thread.

APNs payload carries `sound: "default"` and the new badge number; Android
receives the plain notification block.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from quest_notifier.core.exceptions import PushDeliveryError
from quest_notifier.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PushResult:
    success_count: int
    failure_count: int

    @property
    def delivered(self) -> bool:
        return self.success_count > 0


def build_multicast(
    tokens: Sequence[str], title: str, body: str, badge: int
) -> messaging.MulticastMessage:
    return messaging.MulticastMessage(
        tokens=list(tokens),
        notification=messaging.Notification(title=title, body=body),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(sound="default", badge=badge),
            ),
        ),
    )


class FcmPushGateway:
    """Sends multicast pushes through the Firebase Admin SDK on a fixed app."""

    def __init__(self, app: Optional[firebase_admin.App]) -> None:
        self._app = app

    async def send_multicast(
        self, tokens: Sequence[str], title: str, body: str, badge: int
    ) -> PushResult:
        """
        Raises:
            PushDeliveryError: When the batch call itself fails. Per-token
                rejections are reported in the result, not raised.
        """
        message = build_multicast(tokens, title, body, badge)
        try:
            response = await asyncio.to_thread(
                messaging.send_each_for_multicast, message, app=self._app
            )
        except (firebase_exceptions.FirebaseError, ValueError) as exc:
            raise PushDeliveryError(len(tokens), exc) from exc

        failed: List[str] = [
            type(item.exception).__name__
            for item in response.responses
            if not item.success and item.exception is not None
        ]
        if failed:
            logger.info(
                "FCM rejected some tokens",
                extra={
                    "token_count": len(tokens),
                    "failure_count": response.failure_count,
                    "failure_types": sorted(set(failed)),
                },
            )

        return PushResult(
            success_count=response.success_count,
            failure_count=response.failure_count,
        )
