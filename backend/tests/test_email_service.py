from unittest.mock import MagicMock

import requests

from stockroom.services.email_service import DeliveryResult, EmailCredentials, EmailJSClient
from stockroom.services.notification_service import NotificationDispatcher

API_URL = "https://api.emailjs.com/api/v1.0/email/send"


def _client(status_code=200, text="OK", side_effect=None):
    http = MagicMock()
    if side_effect is not None:
        http.post.side_effect = side_effect
    else:
        http.post.return_value = MagicMock(status_code=status_code, text=text)
    return EmailJSClient(API_URL, timeout=5, http=http), http


def test_send_posts_template_payload():
    client, http = _client()

    result = client.send("service_x", "template_y", {"requester": "Nok"}, EmailCredentials("pub", "priv"))

    assert result == DeliveryResult(ok=True, status_code=200, detail="OK")
    http.post.assert_called_once_with(
        API_URL,
        json={
            "service_id": "service_x",
            "template_id": "template_y",
            "user_id": "pub",
            "template_params": {"requester": "Nok"},
            "accessToken": "priv",
        },
        timeout=5,
    )


def test_public_key_only_omits_access_token():
    client, http = _client()
    client.send("s", "t", {}, EmailCredentials("pub"))
    assert "accessToken" not in http.post.call_args.kwargs["json"]


def test_rejected_send_is_a_failed_result():
    client, _ = _client(status_code=400, text="The public key is required")
    result = client.send("s", "t", {}, EmailCredentials("pub"))
    assert result.ok is False
    assert result.status_code == 400


def test_network_error_is_a_failed_result():
    client, _ = _client(side_effect=requests.ConnectionError("no route"))
    result = client.send("s", "t", {}, EmailCredentials("pub"))
    assert result.ok is False
    assert "no route" in result.detail


def test_dispatcher_delivers_and_notifies_subscribers():
    client, http = _client()
    dispatcher = NotificationDispatcher(client, "s", "t", EmailCredentials("pub"), max_workers=1)
    seen = []
    dispatcher.on_result(lambda request_id, result: seen.append((request_id, result.ok)))

    result = dispatcher.dispatch("req-1", {"requester": "Nok"}).result(timeout=5)
    dispatcher.shutdown()

    assert result.ok is True
    assert seen == [("req-1", True)]
    assert http.post.call_count == 1


def test_disabled_dispatcher_reports_failure_without_raising():
    dispatcher = NotificationDispatcher(None, "", "", None)
    assert dispatcher.enabled is False

    result = dispatcher.dispatch("req-1", {}).result(timeout=5)
    dispatcher.shutdown()

    assert result.ok is False
    assert result.detail == "email not configured"


def test_crashing_client_and_subscriber_do_not_propagate():
    client = MagicMock()
    client.send.side_effect = RuntimeError("boom")
    dispatcher = NotificationDispatcher(client, "s", "t", EmailCredentials("pub"), max_workers=1)
    dispatcher.on_result(MagicMock(side_effect=ValueError("subscriber bug")))

    result = dispatcher.dispatch("req-1", {}).result(timeout=5)
    dispatcher.shutdown()

    assert result.ok is False
    assert "boom" in result.detail
