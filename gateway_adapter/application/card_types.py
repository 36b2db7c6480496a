from __future__ import annotations

from typing import Final, Optional


class _Unmapped:
    _instance: Optional["_Unmapped"] = None

    def __new__(cls) -> "_Unmapped":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNMAPPED"

    def __bool__(self) -> bool:
        return False


UNMAPPED: Final = _Unmapped()

# Braintree brand names -> card type tags stored on the payment method.
CARD_TYPE_MAPPING: Final[dict[str, str]] = {
    "American Express": "american_express",
    "Diners Club": "diners_club",
    "Discover": "discover",
    "JCB": "jcb",
    "Laser": "laser",
    "Maestro": "maestro",
    "MasterCard": "master",
    "Solo": "solo",
    "Switch": "switch",
    "Visa": "visa",
}


def map_card_type(brand: Optional[str]) -> str | _Unmapped:
    if not brand:
        return UNMAPPED
    return CARD_TYPE_MAPPING.get(brand, UNMAPPED)
