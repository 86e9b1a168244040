"""Payment Gateway Descriptors — transaction ids, gateway names and simulated pay links.

Invariants:
    - Transaction ids are TXN_<epoch millis>_<8 upper hex chars>, unique per payment
    - Pay links and QR payloads are only meaningful while a payment is PENDING
    - Pure apart from generate_transaction_id (takes clock and entropy as parameters)

Design Decisions:
    - Gateway name is derived from the method, stored once on the payment
    - Links are simulated: no real gateway integration (ADR: callback endpoint is the contract)
"""

import uuid
from decimal import Decimal

from bookstore.core.domain_types import PaymentMethod, TransactionId


GATEWAY_NAMES: dict[PaymentMethod, str] = {
    PaymentMethod.ALIPAY: "Alipay Gateway",
    PaymentMethod.WECHAT_PAY: "WeChat Pay Gateway",
    PaymentMethod.BANK_CARD: "Bank Gateway",
    PaymentMethod.CREDIT_CARD: "Credit Card Gateway",
}

MANUAL_CONFIRMATION_RESPONSE = "Manual confirmation"


def generate_transaction_id(
    epoch_ms: int, entropy: uuid.UUID | None = None,
) -> TransactionId:
    suffix = (entropy or uuid.uuid4()).hex[:8].upper()
    return TransactionId(f"TXN_{epoch_ms}_{suffix}")


def gateway_for(method: PaymentMethod) -> str:
    return GATEWAY_NAMES.get(method, "Unknown Gateway")


def build_payment_url(
    base_url: str, transaction_id: str, amount: Decimal, method: PaymentMethod,
) -> str:
    return f"{base_url}?txn={transaction_id}&amount={amount}&method={method.value}"


def build_qr_code_data(transaction_id: str, amount: Decimal) -> str:
    return f"payment://pay?txn={transaction_id}&amount={amount}"
