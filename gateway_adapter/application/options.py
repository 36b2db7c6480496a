"""Request option assembly for authorize and vaulting calls."""

from __future__ import annotations

from typing import Any


def _first_payment(payment_method: Any) -> Any:
    payments = getattr(payment_method, "payments", None) or []
    return payments[0] if payments else None


def adjust_billing_address(payment_method: Any, options: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``options`` ready for an authorize call.

    The processor already holds a billing address for an existing customer
    profile, so it is dropped. Names come from the order's billing address,
    not from the card.
    """
    adjusted = dict(options)

    if payment_method.gateway_customer_profile_id:
        adjusted.pop("billing_address", None)

    payment = _first_payment(payment_method)
    if payment is not None and payment.order.bill_address is not None:
        adjusted["first_name"] = payment.order.bill_address.firstname
        adjusted["last_name"] = payment.order.bill_address.lastname

    adjusted["store"] = True

    # Discover cards do not support 3DSv2.
    if "discover" in (payment_method.cc_type or "").lower():
        adjusted["three_d_secure"] = {"required": False}

    return adjusted


def _state_name(address: Any) -> str | None:
    if address.state is not None:
        return address.state.name
    return address.state_name


def options_for_payment(payment: Any) -> dict[str, Any]:
    order = payment.order
    o: dict[str, Any] = {"email": order.email}

    bill_addr = order.bill_address
    if bill_addr is not None:
        o["first_name"] = bill_addr.firstname
        o["last_name"] = bill_addr.lastname

        o["billing_address"] = {
            "address1": bill_addr.address1,
            "address2": bill_addr.address2,
            "company": bill_addr.company,
            "city": bill_addr.city,
            "state": _state_name(bill_addr),
            "country_code_alpha3": bill_addr.country.iso3 if bill_addr.country else None,
            "zip": bill_addr.zipcode,
        }

        o["customer"] = {
            "first_name": bill_addr.firstname,
            "last_name": bill_addr.lastname,
            "email": order.email,
        }

    o["options"] = {
        "verify_card": "true",
        "store_in_vault": "true",
    }

    o["verify_card"] = "true"
    o["store"] = "true"

    return o
