"""Customer registration and lookup."""

from __future__ import annotations

import re
from typing import List

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from order_tracking.core.errors import DuplicateEmailError, NotFoundError, ValidationError
from order_tracking.db.models import Customer
from order_tracking.db.session import Database

logger = structlog.get_logger(__name__)

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CustomerDirectory:
    def __init__(self, database: Database) -> None:
        self.database = database

    # PUBLIC_INTERFACE
    def register(self, name: str, email: str) -> Customer:
        """
        Create a customer with a unique email.

        Raises:
            ValidationError: name or email blank, or email malformed.
            DuplicateEmailError: a customer already uses this email (case-insensitive).
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Customer name is required")
        email = normalize_email(email or "")
        if not EMAIL_REGEX.match(email):
            raise ValidationError(f"Invalid email format: {email!r}")

        try:
            with self.database.transaction() as session:
                exists = session.scalar(select(func.count()).select_from(Customer).where(Customer.email == email))
                if exists:
                    raise DuplicateEmailError(email)
                customer = Customer(name=name, email=email)
                session.add(customer)
                session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same address.
            if self._email_taken(email):
                raise DuplicateEmailError(email) from exc
            raise

        logger.info("customer_registered", customer_id=customer.id, email=email)
        return customer

    def _email_taken(self, email: str) -> bool:
        with self.database.transaction() as session:
            return session.scalar(select(Customer.id).where(Customer.email == email)) is not None

    # PUBLIC_INTERFACE
    def find(self, customer_id: int) -> Customer:
        with self.database.transaction() as session:
            customer = session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(customer_id, "Customer")
        return customer

    def find_by_email(self, email: str) -> Customer:
        email = normalize_email(email)
        with self.database.transaction() as session:
            customer = session.scalar(select(Customer).where(Customer.email == email))
        if customer is None:
            raise NotFoundError(email, "Customer")
        return customer

    # PUBLIC_INTERFACE
    def list(self) -> List[Customer]:
        with self.database.transaction() as session:
            return list(session.scalars(select(Customer).order_by(Customer.id)))

    def count(self) -> int:
        with self.database.transaction() as session:
            return session.scalar(select(func.count()).select_from(Customer))
