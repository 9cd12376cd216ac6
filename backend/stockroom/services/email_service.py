"""
EmailJS REST client.

Sends a template email through https://api.emailjs.com. The public key
identifies the account; the private key ("accessToken") is only accepted from
trusted environments and must never reach a browser.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailCredentials:
    public_key: str
    private_key: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status_code: Optional[int] = None
    detail: str = ""


class EmailJSClient:
    def __init__(self, api_url: str, timeout: float = 10.0, http: Optional[requests.Session] = None):
        self.api_url = api_url
        self.timeout = timeout
        self._http = http or requests.Session()

    def send(
        self,
        service_id: str,
        template_id: str,
        template_params: Dict[str, str],
        credentials: EmailCredentials,
    ) -> DeliveryResult:
        """
        Send one email. Never raises: transport errors and non-2xx answers
        come back as a failed DeliveryResult.
        """
        payload = {
            "service_id": service_id,
            "template_id": template_id,
            "user_id": credentials.public_key,
            "template_params": template_params,
        }
        if credentials.private_key:
            payload["accessToken"] = credentials.private_key

        try:
            resp = self._http.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"EmailJS request failed: {e}")
            return DeliveryResult(ok=False, detail=str(e))

        if resp.status_code != 200:
            logger.warning(f"EmailJS rejected email: {resp.status_code} {resp.text}")
            return DeliveryResult(ok=False, status_code=resp.status_code, detail=resp.text)

        return DeliveryResult(ok=True, status_code=resp.status_code, detail=resp.text)

    def close(self) -> None:
        self._http.close()
