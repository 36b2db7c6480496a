from __future__ import annotations

from collections.abc import Generator
from fastapi import Request
from sqlalchemy.orm import Session

from gateway_adapter.infrastructure.db.session import session_scope


def get_db(_: Request) -> Generator[Session, None, None]:
    with session_scope() as session:
        yield session
