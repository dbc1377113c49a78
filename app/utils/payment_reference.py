"""
Khet Mitra - Payment Reference Utility
Derives payee addresses and UPI payment-intent payloads for bookings.

Pure functions: nothing here talks to a payment network or checks that an
address really exists.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Type
from urllib.parse import quote


class PaymentMethod:
    """Base of the payment-method variant. One subclass per method."""
    code: str = ""
    label: str = ""
    address_suffix: Optional[str] = None
    shows_qr: bool = False

    @property
    def is_cash(self) -> bool:
        return self.address_suffix is None

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(self.code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CashPayment(PaymentMethod):
    code = "cash"
    label = "Cash at work location"


class UpiPayment(PaymentMethod):
    code = "upi"
    label = "UPI Payment"
    address_suffix = "upi"


class PhonePePayment(PaymentMethod):
    code = "phonepe"
    label = "PhonePe"
    address_suffix = "ybl"
    shows_qr = True


class GooglePayPayment(PaymentMethod):
    code = "gpay"
    label = "Google Pay"
    address_suffix = "okaxis"
    shows_qr = True


PAYMENT_METHODS: Dict[str, Type[PaymentMethod]] = {
    cls.code: cls for cls in (CashPayment, UpiPayment, PhonePePayment, GooglePayPayment)
}


def payment_method_from_code(code: str) -> PaymentMethod:
    """Parse a wire code ("cash", "upi", "phonepe", "gpay")."""
    try:
        return PAYMENT_METHODS[(code or "").strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown payment method: {code!r}")


def build_payment_address(contact_handle: str, method: PaymentMethod) -> Optional[str]:
    """
    Synthetic UPI address for a worker, e.g. "+91 98765 43210" + PhonePe
    -> "+919876543210@ybl". Cash has no address.
    """
    if method.is_cash:
        return None
    handle = "".join((contact_handle or "").split())
    return f"{handle}@{method.address_suffix}"


@dataclass(frozen=True)
class PaymentIntent:
    payee_address: str
    payee_name: str
    amount: float
    currency: str
    note: str

    def to_uri(self) -> str:
        """Render as a upi://pay deep link (what the QR code encodes)."""
        return (
            f"upi://pay?pa={self.payee_address}"
            f"&pn={quote(self.payee_name)}"
            f"&am={_format_amount(self.amount)}"
            f"&cu={self.currency}"
            f"&tn={quote(self.note)}"
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "payee_address": self.payee_address,
            "payee_name": self.payee_name,
            "amount": self.amount,
            "currency": self.currency,
            "note": self.note,
        }


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}"


def build_payment_intent(
    address: str,
    payee_name: str,
    amount: float,
    note: Optional[str] = None,
    currency: str = "INR"
) -> PaymentIntent:
    if note is None:
        note = f"Payment for agricultural work - {payee_name}"
    return PaymentIntent(
        payee_address=address,
        payee_name=payee_name,
        amount=amount,
        currency=currency,
        note=note,
    )
