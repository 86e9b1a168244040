"""Domain Types — verifies identity wrappers, enums, money helpers and labels.

Tests:
    - NewType wrappers exist and are callable
    - Status enums carry exactly the lifecycle tags
    - to_money quantizes to cents
    - Every PaymentMethod and PaymentStatus has a display label
    - Principal.is_admin follows the role
"""

from decimal import Decimal
from uuid import uuid4

from bookstore.core.domain_types import (
    BookId, OrderId, PaymentId, TransactionId, UserId,
    CancelRequestStatus, OrderStatus, PaymentMethod, PaymentStatus, UserRole,
    PAYMENT_METHOD_LABELS, PAYMENT_STATUS_LABELS,
    Principal, display_label, to_money,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert OrderId(uid) == uid
    assert PaymentId(uid) == uid
    assert BookId(uid) == uid
    assert UserId(uid) == uid


def test_transaction_id_wraps_str():
    assert TransactionId("TXN_1700000000000_ABCDEF12") == "TXN_1700000000000_ABCDEF12"


def test_order_status_has_four_states():
    assert set(OrderStatus) == {
        OrderStatus.PENDING, OrderStatus.PAID,
        OrderStatus.SHIPPED, OrderStatus.CANCELLED,
    }


def test_payment_status_has_seven_states():
    assert len(PaymentStatus) == 7
    assert PaymentStatus("PARTIAL_REFUNDED") == PaymentStatus.PARTIAL_REFUNDED


def test_cancel_request_status_values():
    assert [s.value for s in CancelRequestStatus] == ["PENDING", "APPROVED", "REJECTED"]


def test_enums_compare_equal_to_their_tag():
    assert OrderStatus.PAID == "PAID"
    assert PaymentMethod.WECHAT_PAY.value == "WECHAT_PAY"


def test_to_money_quantizes_to_cents():
    assert to_money(Decimal("12.5")) == Decimal("12.50")
    assert str(to_money(3)) == "3.00"


def test_every_method_and_status_has_a_label():
    assert set(PAYMENT_METHOD_LABELS) == set(PaymentMethod)
    assert set(PAYMENT_STATUS_LABELS) == set(PaymentStatus)


def test_display_label_dispatches_on_tag_type():
    assert display_label(PaymentMethod.ALIPAY) == "Alipay"
    assert display_label(PaymentStatus.PARTIAL_REFUNDED) == "Partially refunded"


def test_principal_is_admin():
    assert Principal(UserId(uuid4()), UserRole.ADMIN).is_admin
    assert not Principal(UserId(uuid4()), UserRole.USER).is_admin
