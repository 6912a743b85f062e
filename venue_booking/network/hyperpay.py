"""
Client for the HyperPay (OPPWA) COPYandPAY checkout API, with retries on
rate limiting, timeouts and server errors.

A checkout is prepared server-side, the customer completes it on the hosted
widget, and the result is verified with the resource path returned to the
shopper's redirect URL.
"""

import re
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, cast

import requests
import structlog

from venue_booking.config import (
    CURRENCY,
    HYPERPAY_ACCESS_TOKEN,
    HYPERPAY_BASE_URL,
    HYPERPAY_ENTITY_ID,
)
from venue_booking.domain.money import quantize
from venue_booking.errors import GatewayError
from venue_booking.metrics import gateway_latency, gateway_requests

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 1.0
REQUEST_TIMEOUT = 10

SUCCESS_CHECKOUT_CODE = "000.200.100"
PAYMENT_SUCCESS_PATTERN = re.compile(r"^(000\.000\.|000\.100\.1|000\.[36])")


@dataclass(frozen=True)
class CheckoutSession:
    checkout_id: str
    url: str


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    code: str
    description: str
    amount: Optional[Decimal]
    merchant_transaction_id: Optional[str]
    raw: Dict[str, Any]


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether a gateway request should be retried.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True for 429, 5xx and timeouts.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def _request(
    operation: str,
    method: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    url = f"{HYPERPAY_BASE_URL.rstrip('/')}/{path.lstrip('/')}"
    headers = {"Authorization": f"Bearer {HYPERPAY_ACCESS_TOKEN}"}
    retries = 0

    while True:
        res: Optional[requests.Response] = None
        try:
            start_time = time.time()
            res = requests.request(
                method, url, headers=headers, params=params, data=data, timeout=REQUEST_TIMEOUT
            )
            gateway_requests.labels(operation=operation, status_code=str(res.status_code)).inc()
            gateway_latency.labels(operation=operation).observe(time.time() - start_time)

            if should_retry(res, None) and retries < MAX_RETRIES:
                retries += 1
                logger.warning(
                    "gateway_retry", operation=operation, status_code=res.status_code, attempt=retries
                )
                time.sleep(RETRY_DELAY * retries)
                continue

            # HyperPay reports declines with 4xx and a JSON result body.
            try:
                return cast(Dict[str, Any], res.json())
            except ValueError:
                res.raise_for_status()
                raise GatewayError("GATEWAY_ERROR", f"Non-JSON response from {operation}")

        except requests.RequestException as err:
            retries += 1
            logger.warning("gateway_request_failed", operation=operation, error=str(err))
            if retries > MAX_RETRIES or not should_retry(res, err):
                raise GatewayError("GATEWAY_ERROR", str(err)) from err
            time.sleep(RETRY_DELAY * retries)


def _result_code(payload: Dict[str, Any]) -> tuple[str, str]:
    result = payload.get("result") or {}
    return str(result.get("code", "")), str(result.get("description", ""))


def create_checkout(
    amount: Decimal,
    merchant_transaction_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    given_name: Optional[str] = None,
    surname: Optional[str] = None,
    billing_city: Optional[str] = None,
    billing_country: str = "SA",
) -> CheckoutSession:
    """
    Prepare a debit checkout for ``amount`` in the configured currency.

    Args:
        amount (Decimal): Amount to charge, sent with two decimals.
        merchant_transaction_id (Optional[str]): Our reference, usually the booking ID.
        customer_email (Optional[str]): Shopper e-mail.
        given_name (Optional[str]): Shopper first name.
        surname (Optional[str]): Shopper last name.
        billing_city (Optional[str]): Billing city.
        billing_country (str): ISO country code. Defaults to SA.

    Returns:
        CheckoutSession: Checkout ID and the widget script URL.

    Raises:
        GatewayError: The gateway refused the checkout or could not be reached.
    """
    data: Dict[str, Any] = {
        "entityId": HYPERPAY_ENTITY_ID,
        "amount": f"{quantize(amount):.2f}",
        "currency": CURRENCY,
        "paymentType": "DB",
    }
    optional = {
        "merchantTransactionId": merchant_transaction_id,
        "customer.email": customer_email,
        "customer.givenName": given_name,
        "customer.surname": surname,
        "billing.city": billing_city,
    }
    data.update({key: value for key, value in optional.items() if value})
    data["billing.country"] = billing_country

    payload = _request("create_checkout", "POST", "/v1/checkouts", data=data)
    code, description = _result_code(payload)
    if code != SUCCESS_CHECKOUT_CODE or not payload.get("id"):
        logger.error("checkout_rejected", code=code, description=description)
        raise GatewayError(code or "GATEWAY_ERROR", description)

    checkout_id = str(payload["id"])
    logger.info("checkout_created", checkout_id=checkout_id, amount=data["amount"])
    return CheckoutSession(
        checkout_id=checkout_id,
        url=f"{HYPERPAY_BASE_URL.rstrip('/')}/v1/paymentWidgets.js?checkoutId={checkout_id}",
    )


def verify_payment(resource_path: str) -> PaymentResult:
    """
    Fetch the outcome of a completed checkout.

    Args:
        resource_path (str): Path returned on the shopper redirect,
            e.g. /v1/checkouts/{id}/payment.

    Returns:
        PaymentResult: success is True when the result code is a success code.

    Raises:
        GatewayError: The gateway could not be reached.
    """
    payload = _request(
        "verify_payment", "GET", resource_path, params={"entityId": HYPERPAY_ENTITY_ID}
    )
    code, description = _result_code(payload)
    amount = payload.get("amount")
    result = PaymentResult(
        success=bool(PAYMENT_SUCCESS_PATTERN.match(code)),
        code=code,
        description=description,
        amount=Decimal(str(amount)) if amount is not None else None,
        merchant_transaction_id=payload.get("merchantTransactionId"),
        raw=payload,
    )
    logger.info("payment_verified", code=code, success=result.success)
    return result
