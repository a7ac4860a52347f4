"""
Persistence for accounts
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import Session, select

from bid_accounts.core.errors import DuplicateEmailError, NotFoundError
from bid_accounts.core.security import utcnow
from bid_accounts.models.account import Account

logger = logging.getLogger(__name__)


class AccountStore:
    """Account lookups and writes over a single database session"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, account_id: str) -> Optional[Account]:
        return self.session.get(Account, account_id)

    def find_by_email(self, email: str) -> Optional[Account]:
        """Exact-match lookup by email"""
        statement = select(Account).where(Account.email == email)
        return self.session.exec(statement).first()

    def find_by_valid_token(self, token: str, now: datetime) -> Optional[Account]:
        """
        Find the account holding an unexpired verification token

        Unknown and expired tokens both return None so callers cannot tell
        which one they hit.
        """
        statement = select(Account).where(
            Account.verification_token == token,
            Account.verification_expires_at > now,
        )
        return self.session.exec(statement).first()

    def create(self, account: Account) -> Account:
        """
        Insert a new account

        Uniqueness of the email is left to the database constraint: of two
        concurrent inserts for the same email exactly one commits.

        Raises:
            DuplicateEmailError: another account already uses the email
        """
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Rejected duplicate registration for %s", account.email)
            raise DuplicateEmailError()
        self.session.refresh(account)
        return account

    def save(self, account: Account) -> Account:
        """
        Persist changes to an existing account

        Raises:
            NotFoundError: the row was deleted since it was loaded
        """
        # The rollback below expires the instance, so its id is read first
        account_id = account.id
        account.updated_at = utcnow()
        self.session.add(account)
        try:
            self.session.commit()
        except StaleDataError:
            self.session.rollback()
            logger.warning("Account %s disappeared before it could be saved", account_id)
            raise NotFoundError()
        self.session.refresh(account)
        return account
