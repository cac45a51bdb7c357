"""
Инфраструктурный слой платежного контекста.

Настоящего шлюза нет: симулятор повторяет поведение демонстрационной
программы, а заглушка используется в тестах.
"""

import random
import string
from decimal import Decimal
from typing import List, Optional, Tuple

from .interfaces import IPaymentGateway, PaymentResult

MIN_CARD_DIGITS = 8


class PaymentSimulator(IPaymentGateway):
    """Симулятор платежей со случайными отказами."""

    def __init__(
        self,
        failure_rate: float = 0.0,
        refund_failure_rate: float = 0.0,
        rng: Optional[random.Random] = None,
    ):
        for name, rate in (
            ("failure_rate", failure_rate),
            ("refund_failure_rate", refund_failure_rate),
        ):
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {rate}")
        self.failure_rate = failure_rate
        self.refund_failure_rate = refund_failure_rate
        self._rng = rng or random.Random()

    def charge(self, amount: Decimal, payment_token: str = "") -> PaymentResult:
        if amount <= 0:
            return PaymentResult(accepted=False, reason="Invalid amount.")
        if not payment_token:
            return PaymentResult(accepted=True, reason="Dummy payment accepted.")

        digits = "".join(ch for ch in payment_token if ch in string.digits)
        if len(digits) < MIN_CARD_DIGITS:
            return PaymentResult(accepted=False, reason="Card number too short.")
        if self._rng.random() < self.failure_rate:
            return PaymentResult(accepted=False, reason="Network/decline (simulated).")
        return PaymentResult(accepted=True, reason="Payment accepted.")

    def refund(self, amount: Decimal) -> PaymentResult:
        if amount <= 0:
            return PaymentResult(accepted=False, reason="Invalid refund amount.")
        if self._rng.random() < self.refund_failure_rate:
            return PaymentResult(accepted=False, reason="Refund failed (simulated).")
        return PaymentResult(accepted=True, reason="Refund completed (simulated).")


class DummyPaymentGateway(IPaymentGateway):
    """Заглушка платежного шлюза для тестирования."""

    def __init__(self, accept_charges: bool = True, accept_refunds: bool = True):
        self.accept_charges = accept_charges
        self.accept_refunds = accept_refunds
        self.charges: List[Tuple[Decimal, str]] = []
        self.refunds: List[Decimal] = []

    def charge(self, amount: Decimal, payment_token: str = "") -> PaymentResult:
        self.charges.append((amount, payment_token))
        if amount <= 0:
            return PaymentResult(accepted=False, reason="Invalid amount.")
        if not self.accept_charges:
            return PaymentResult(accepted=False, reason="Declined by test gateway.")
        return PaymentResult(accepted=True, reason="Accepted by test gateway.")

    def refund(self, amount: Decimal) -> PaymentResult:
        self.refunds.append(amount)
        if amount <= 0:
            return PaymentResult(accepted=False, reason="Invalid refund amount.")
        if not self.accept_refunds:
            return PaymentResult(accepted=False, reason="Refund declined by test gateway.")
        return PaymentResult(accepted=True, reason="Refunded by test gateway.")
