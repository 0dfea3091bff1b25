import enum
from typing import Optional


class DeliveryOutcome(str, enum.Enum):
    DELIVERED = "DELIVERED"
    # O provedor garante que o endpoint nunca mais vai aceitar entregas
    GONE = "GONE"
    TRANSIENT = "TRANSIENT"


def classify(status_code: Optional[int]) -> DeliveryOutcome:
    """
    2xx -> DELIVERED, 410 -> GONE, resto (inclusive None = erro de rede/timeout) -> TRANSIENT.
    Só GONE apaga a inscrição: uma instabilidade do provedor não pode desinscrever ninguém.
    """
    if status_code is None:
        return DeliveryOutcome.TRANSIENT
    if 200 <= status_code < 300:
        return DeliveryOutcome.DELIVERED
    if status_code == 410:
        return DeliveryOutcome.GONE
    return DeliveryOutcome.TRANSIENT
