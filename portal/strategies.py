import secrets
import string
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any

_BASE36 = string.digits + string.ascii_uppercase


def _random_code(length: int) -> str:
    return ''.join(secrets.choice(_BASE36) for _ in range(length))


def new_transaction_id() -> str:
    return f"TXN_{int(time.time() * 1000)}_{_random_code(9)}"


class PaymentGateway(ABC):
    method = 'credit_card'

    @abstractmethod
    def authorize(self, card_number: str) -> Dict[str, Any]:
        pass


class MockCardGateway(PaymentGateway):
    """Approves every card; no money moves anywhere."""

    card_type = 'visa'

    def authorize(self, card_number: str) -> Dict[str, Any]:
        digits = ''.join(ch for ch in str(card_number or '') if ch.isdigit())
        return {
            'cardLast4': digits[-4:],
            'cardType': self.card_type,
            'authCode': 'AUTH_' + _random_code(6),
            'processingTime': datetime.now(timezone.utc).isoformat(),
        }


def get_payment_gateway(method: str = 'credit_card') -> PaymentGateway:
    return MockCardGateway()
