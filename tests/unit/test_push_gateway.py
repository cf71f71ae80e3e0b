"""
Unit tests for the FCM multicast gateway with the Admin SDK call patched out.
"""

import pytest
from firebase_admin.exceptions import UnavailableError

from quest_notifier.core.exceptions import PushDeliveryError
from quest_notifier.modules.notification import push_gateway as gateway_module
from quest_notifier.modules.notification.push_gateway import (
    FcmPushGateway,
    PushResult,
    build_multicast,
)


def batch_response(mocker, outcomes):
    responses = []
    for ok in outcomes:
        item = mocker.MagicMock()
        item.success = ok
        item.exception = None if ok else UnavailableError("token rejected")
        responses.append(item)
    response = mocker.MagicMock()
    response.responses = responses
    response.success_count = sum(1 for ok in outcomes if ok)
    response.failure_count = sum(1 for ok in outcomes if not ok)
    return response


class TestBuildMulticast:
    def test_payload(self):
        message = build_multicast(["a", "b"], "Title", "Body", 4)

        assert message.tokens == ["a", "b"]
        assert message.notification.title == "Title"
        assert message.notification.body == "Body"
        assert message.apns.payload.aps.badge == 4
        assert message.apns.payload.aps.sound == "default"


class TestPushResult:
    def test_any_success_counts_as_delivered(self):
        assert PushResult(success_count=1, failure_count=3).delivered is True
        assert PushResult(success_count=0, failure_count=1).delivered is False


@pytest.mark.asyncio
class TestFcmPushGateway:
    async def test_reports_batch_counts(self, mocker):
        send = mocker.patch.object(
            gateway_module.messaging,
            "send_each_for_multicast",
            return_value=batch_response(mocker, [True, False]),
        )
        app = object()
        gateway = FcmPushGateway(app)

        result = await gateway.send_multicast(["a", "b"], "t", "b", 1)

        assert result == PushResult(success_count=1, failure_count=1)
        assert send.call_args.kwargs["app"] is app

    async def test_sdk_failure_is_wrapped(self, mocker):
        mocker.patch.object(
            gateway_module.messaging,
            "send_each_for_multicast",
            side_effect=UnavailableError("fcm down"),
        )
        gateway = FcmPushGateway(None)

        with pytest.raises(PushDeliveryError) as excinfo:
            await gateway.send_multicast(["a"], "t", "b", 1)

        assert excinfo.value.details["token_count"] == 1
