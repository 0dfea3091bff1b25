import pytest

from app.services.classifier import DeliveryOutcome, classify


@pytest.mark.parametrize("status, expected", [
    (200, DeliveryOutcome.DELIVERED),
    (201, DeliveryOutcome.DELIVERED),
    (202, DeliveryOutcome.DELIVERED),
    (410, DeliveryOutcome.GONE),
    (404, DeliveryOutcome.TRANSIENT),
    (400, DeliveryOutcome.TRANSIENT),
    (403, DeliveryOutcome.TRANSIENT),
    (413, DeliveryOutcome.TRANSIENT),
    (429, DeliveryOutcome.TRANSIENT),
    (500, DeliveryOutcome.TRANSIENT),
    (503, DeliveryOutcome.TRANSIENT),
    (None, DeliveryOutcome.TRANSIENT),
])
def test_classify(status, expected):
    assert classify(status) == expected
