from __future__ import annotations

import contextvars
import uuid

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
payment_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("payment_id", default="")


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(value: str) -> None:
    correlation_id_var.set(value)


def get_correlation_id() -> str:
    v = correlation_id_var.get()
    return v or ""


def set_payment_id(value: str) -> contextvars.Token[str]:
    return payment_id_var.set(value)


def reset_payment_id(token: contextvars.Token[str]) -> None:
    payment_id_var.reset(token)


def get_payment_id() -> str:
    v = payment_id_var.get()
    return v or ""
