"""
Paystack REST client and webhook signature check.

Only the calls the order service needs are wrapped: transaction
initialization (redirect checkout), full refunds, and the restaurant
subaccount onboarding (bank list, subaccount creation).
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional

import httpx

from tableside.core import config
from tableside.core.errors import GatewayError

log = logging.getLogger("tableside.gateway")


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Checks ``x-paystack-signature`` against an HMAC-SHA512 of the exact bytes
    received. The body must not be re-serialized before this check.
    """
    if not signature or not secret:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


class PaystackClient:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else config.PAYSTACK_SECRET_KEY
        self.base_url = base_url or config.PAYSTACK_BASE_URL
        self.timeout = timeout or config.GATEWAY_TIMEOUT_SECONDS
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.secret_key:
            raise GatewayError("Server configuration error", details="PAYSTACK_SECRET_KEY is not set")

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(method, path, json=body, params=params, headers=headers)
        except httpx.HTTPError as e:
            log.error(f"Paystack request to {path} failed: {e}")
            raise GatewayError("Payment gateway unreachable", details=str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}

        if response.is_error or data.get("status") is False:
            log.error(f"Paystack API error on {path}: {response.status_code} {data}")
            raise GatewayError(
                f"Payment gateway rejected request to {path}",
                details=data.get("message") or "Unknown error from Paystack",
                upstream_status=response.status_code,
            )
        return data

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", path, body=body)

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        metadata: Dict[str, Any],
        subaccount: Optional[str] = None,
        transaction_charge: Optional[int] = None,
        channels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Starts a redirect checkout. ``amount`` is in minor units (kobo/pesewas)."""
        body: Dict[str, Any] = {
            "email": email,
            "amount": amount,
            "metadata": metadata,
            "channels": channels or config.PAYMENT_CHANNELS,
        }
        if subaccount:
            body["subaccount"] = subaccount
            body["bearer"] = "subaccount"
        if transaction_charge is not None:
            body["transaction_charge"] = transaction_charge

        data = await self._post("/transaction/initialize", body)
        return data["data"]

    async def refund(self, reference: str) -> Dict[str, Any]:
        """Full refund of a settled charge."""
        data = await self._post("/refund", {"transaction": reference})
        return data.get("data") or {}

    async def create_subaccount(
        self,
        business_name: str,
        settlement_bank: str,
        account_number: str,
        country: str,
        percentage_charge: float,
    ) -> Dict[str, Any]:
        """Registers a restaurant's payout account. The response carries ``subaccount_code``."""
        data = await self._post("/subaccount", {
            "business_name": business_name,
            "settlement_bank": settlement_bank,
            "account_number": account_number,
            "country": country,
            "percentage_charge": percentage_charge,
        })
        return data["data"]

    async def list_banks(self, country: str, bank_type: str) -> List[Dict[str, Any]]:
        """Settlement providers of one type (``nuban``, ``mobile_money``) for a country."""
        data = await self._request("GET", "/bank", params={
            "country": country,
            "type": bank_type,
            "use_cursor": "true",
            "perPage": 100,
        })
        return data.get("data") or []


def get_gateway() -> PaystackClient:
    """FastAPI dependency; overridden in tests."""
    return PaystackClient()
