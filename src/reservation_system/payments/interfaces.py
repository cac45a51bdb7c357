"""
Интерфейсы (порты) платежного контекста.
"""

from decimal import Decimal
from typing import Protocol

from pydantic import BaseModel, ConfigDict


class PaymentResult(BaseModel):
    """Ответ платежного шлюза."""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    reason: str = ""


class IPaymentGateway(Protocol):
    """Интерфейс для взаимодействия с платежным шлюзом."""

    def charge(self, amount: Decimal, payment_token: str = "") -> PaymentResult: ...
    def refund(self, amount: Decimal) -> PaymentResult: ...
