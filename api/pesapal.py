"""
Pesapal v3 REST client.

Covers the three calls the checkout needs: token, order submission and
transaction status. Credentials and URLs come from Django settings.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PesapalError(Exception):
    """Gateway unreachable, rejected the call or answered without the expected data."""


@dataclass
class PesapalConfig:
    """Connection settings for the gateway"""
    base_url: str
    consumer_key: str
    consumer_secret: str
    notification_id: str
    timeout: int = 30

    @classmethod
    def from_settings(cls) -> "PesapalConfig":
        return cls(
            base_url=settings.PESAPAL_BASE_URL.rstrip("/"),
            consumer_key=settings.PESAPAL_CONSUMER_KEY,
            consumer_secret=settings.PESAPAL_CONSUMER_SECRET,
            notification_id=settings.PESAPAL_NOTIFICATION_ID,
            timeout=settings.PESAPAL_TIMEOUT,
        )


class PesapalClient:
    """
    Thin wrapper over the Pesapal endpoints.

    Every call goes through `_make_request`, which raises `PesapalError` on
    transport errors, HTTP errors and gateway-level `error` objects.
    """

    def __init__(self, config: Optional[PesapalConfig] = None):
        self.config = config or PesapalConfig.from_settings()
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def _make_request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = self._url(path)
        kwargs.setdefault("timeout", self.config.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Pesapal %s %s failed: %s", method, path, e)
            raise PesapalError(f"Pesapal request failed: {e}") from e
        except ValueError as e:
            logger.error("Pesapal %s %s returned a non-JSON body", method, path)
            raise PesapalError("Pesapal returned an invalid response") from e

        if not isinstance(data, dict):
            raise PesapalError("Pesapal returned an invalid response")
        message = self._error_message(data)
        if message:
            logger.error("Pesapal %s %s rejected: %s", method, path, data.get("error") or data.get("status"))
            raise PesapalError(f"Pesapal error: {message}")
        return data

    @staticmethod
    def _error_message(data: Dict[str, Any]) -> Optional[str]:
        """
        Success bodies also carry an `error` object, with every field null,
        and a "200" status. Only a filled-in error or another status counts.
        """
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error
        if isinstance(error, dict):
            if any(error.get(key) for key in ("code", "error_type", "message")):
                return error.get("message") or error.get("code") or error.get("error_type")
        status = data.get("status")
        if status is not None and str(status) != "200":
            return f"status {status}"
        return None

    def request_token(self) -> str:
        if not self.config.consumer_key or not self.config.consumer_secret:
            raise PesapalError("Pesapal credentials are not configured.")
        data = self._make_request(
            "POST",
            "/api/Auth/RequestToken",
            json={
                "consumer_key": self.config.consumer_key,
                "consumer_secret": self.config.consumer_secret,
            },
        )
        token = data.get("token")
        if not token:
            raise PesapalError("Pesapal did not return an auth token")
        return token

    def submit_order(self, token: str, payload: Dict[str, Any]) -> str:
        """Submit an order request and return the hosted checkout URL."""
        data = self._make_request(
            "POST",
            "/api/Transactions/SubmitOrderRequest",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
        )
        url = data.get("checkout_url") or data.get("redirect_url")
        if not url:
            raise PesapalError("Pesapal did not return a payment URL")
        logger.info(
            "Pesapal order submitted: reference=%s tracking=%s",
            payload.get("id"), data.get("order_tracking_id"),
        )
        return url

    def transaction_status(self, token: str, tracking_id: str) -> Dict[str, Any]:
        return self._make_request(
            "GET",
            "/api/Transactions/GetTransactionStatus",
            params={"orderTrackingId": tracking_id},
            headers={"Authorization": f"Bearer {token}"},
        )
