"""
Fire-and-forget delivery of approval emails.

The budget workflow hands template params to the dispatcher and moves on.
Sending happens on a small worker pool; the returned Future (and any
subscribers registered with on_result) carry the DeliveryResult. A failed
send is logged and audited but never raised back into the workflow.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from stockroom.core.audit import AuditLog
from stockroom.services.email_service import DeliveryResult, EmailCredentials, EmailJSClient

logger = logging.getLogger(__name__)

ResultCallback = Callable[[str, DeliveryResult], None]


class NotificationDispatcher:
    def __init__(
        self,
        client: Optional[EmailJSClient],
        service_id: str,
        template_id: str,
        credentials: Optional[EmailCredentials],
        max_workers: int = 2,
    ):
        self._client = client
        self._service_id = service_id
        self._template_id = template_id
        self._credentials = credentials
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._subscribers: List[ResultCallback] = []

    @classmethod
    def from_settings(cls, settings) -> "NotificationDispatcher":
        if not settings.email_enabled:
            return cls(None, "", "", None, max_workers=1)
        client = EmailJSClient(settings.EMAILJS_API_URL, timeout=settings.EMAIL_TIMEOUT_SECONDS)
        credentials = EmailCredentials(
            public_key=settings.EMAILJS_PUBLIC_KEY,
            private_key=settings.EMAILJS_PRIVATE_KEY or None,
        )
        return cls(
            client,
            settings.EMAILJS_SERVICE_ID,
            settings.EMAILJS_TEMPLATE_ID,
            credentials,
            max_workers=settings.NOTIFICATION_WORKERS,
        )

    @property
    def enabled(self) -> bool:
        return self._client is not None and self._credentials is not None

    def on_result(self, callback: ResultCallback) -> None:
        """Subscribe to delivery outcomes: callback(request_id, result)."""
        self._subscribers.append(callback)

    def dispatch(self, request_id: str, template_params: Dict[str, str]) -> "Future[DeliveryResult]":
        return self._executor.submit(self._deliver, request_id, template_params)

    def _deliver(self, request_id: str, template_params: Dict[str, str]) -> DeliveryResult:
        if not self.enabled:
            result = DeliveryResult(ok=False, detail="email not configured")
        else:
            try:
                result = self._client.send(self._service_id, self._template_id, template_params, self._credentials)
            except Exception as e:
                logger.exception(f"Approval email for request {request_id} crashed")
                result = DeliveryResult(ok=False, detail=str(e))

        if result.ok:
            logger.info(f"Approval email sent for request {request_id}")
        else:
            logger.warning(f"Approval email for request {request_id} not delivered: {result.detail}")
        AuditLog.log_notification(request_id, result.ok, result.detail if not result.ok else "")

        for callback in self._subscribers:
            try:
                callback(request_id, result)
            except Exception:
                logger.exception("Notification subscriber failed")
        return result

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        if self._client is not None:
            self._client.close()
