"""User document view used by the notification engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from quest_notifier.modules.shared.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class User:
    id: str
    fcm_tokens: List[str] = field(default_factory=list)
    notification_setting: Dict[str, bool] = field(default_factory=dict)
    badge_count: int = 0
    time_zone: Optional[str] = None

    def allows(self, notification_type: str) -> bool:
        """A type is enabled unless explicitly set to False."""
        return self.notification_setting.get(notification_type) is not False

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "User":
        raw_tokens = data.get("fcmTokens")
        if raw_tokens is None:
            # Documents written before multi-device support carry one token.
            legacy = data.get("fcmToken")
            raw_tokens = [legacy] if legacy else []
        if not isinstance(raw_tokens, list):
            raise ValidationError("fcmTokens", "not a list")
        tokens = [token for token in raw_tokens if isinstance(token, str) and token]

        raw_setting = data.get("notificationSetting") or {}
        if not isinstance(raw_setting, dict):
            raise ValidationError("notificationSetting", "not a map")
        setting = {str(key): value for key, value in raw_setting.items() if isinstance(value, bool)}

        raw_badge = data.get("badgeCount", 0)
        badge = int(raw_badge) if isinstance(raw_badge, (int, float)) else 0

        time_zone = data.get("timeZone")
        return cls(
            id=doc_id,
            fcm_tokens=tokens,
            notification_setting=setting,
            badge_count=badge,
            time_zone=time_zone if isinstance(time_zone, str) and time_zone else None,
        )
