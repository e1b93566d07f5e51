"""HTTP payment gateway adapter.

Talks to a Razorpay-compatible REST API: `POST {base_url}/orders` with basic
auth (key id / key secret) and a JSON body of amount in minor units, currency
and receipt. The response carries the gateway's order id.
"""

import httpx
import structlog

from checkout.errors import GatewayError
from checkout.payments.gateway.port import PaymentGateway, RemotePayment

logger = structlog.get_logger(__name__)


class HttpGateway(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        key_id: str,
        key_secret: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def create_remote_payment(self, amount_minor: int, currency: str, receipt: str) -> RemotePayment:
        try:
            response = self._client.post(
                "/orders",
                json={"amount": amount_minor, "currency": currency, "receipt": receipt},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Gateway request timed out", receipt=receipt)
            raise GatewayError("Payment gateway timed out", receipt=receipt) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Gateway rejected payment request",
                receipt=receipt,
                status_code=exc.response.status_code,
            )
            raise GatewayError(
                "Payment gateway rejected the request",
                receipt=receipt,
                status_code=exc.response.status_code,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Gateway request failed", receipt=receipt, error=str(exc))
            raise GatewayError("Payment gateway is unreachable", receipt=receipt) from exc

        gateway_order_ref = body.get("id") if isinstance(body, dict) else None
        if not gateway_order_ref:
            raise GatewayError("Payment gateway response has no order id", receipt=receipt)

        return RemotePayment(
            gateway_order_ref=gateway_order_ref,
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
            gateway_status=body.get("status"),
        )
