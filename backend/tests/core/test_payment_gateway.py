"""Payment Gateway Descriptors — transaction ids, gateway names, simulated links.

Tests:
    - Transaction id format TXN_<millis>_<8 upper hex>
    - Every method maps to a gateway name
    - Pay link and QR payload carry txn, amount (and method for the link)
"""

import re
import uuid
from decimal import Decimal

from bookstore.core.domain_types import PaymentMethod
from bookstore.core.payment_gateway import (
    GATEWAY_NAMES,
    build_payment_url,
    build_qr_code_data,
    gateway_for,
    generate_transaction_id,
)


def test_transaction_id_format():
    entropy = uuid.UUID("0123456789abcdef0123456789abcdef")
    assert generate_transaction_id(1700000000000, entropy) == "TXN_1700000000000_01234567"


def test_transaction_ids_are_distinct():
    ids = {generate_transaction_id(1) for _ in range(50)}
    assert len(ids) == 50
    assert all(re.fullmatch(r"TXN_1_[0-9A-F]{8}", txn) for txn in ids)


def test_every_method_has_a_gateway():
    assert set(GATEWAY_NAMES) == set(PaymentMethod)
    assert gateway_for(PaymentMethod.WECHAT_PAY) == "WeChat Pay Gateway"


def test_payment_url():
    url = build_payment_url(
        "https://pay.example/pay", "TXN_1_ABCDEF01", Decimal("37.50"),
        PaymentMethod.ALIPAY,
    )
    assert url == "https://pay.example/pay?txn=TXN_1_ABCDEF01&amount=37.50&method=ALIPAY"


def test_qr_code_data():
    assert build_qr_code_data("TXN_1_ABCDEF01", Decimal("5.00")) == (
        "payment://pay?txn=TXN_1_ABCDEF01&amount=5.00"
    )
