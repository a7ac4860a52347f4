"""
Email verification state machine

An account is in exactly one of four states, derived from its stored fields
and the current time:

    UNVERIFIED  no token issued, not verified
    PENDING     token issued and not yet expired
    EXPIRED     token issued, expiry passed, not reissued
    VERIFIED    email confirmed; terminal, holds no token

Expired tokens are never purged in the background, the expiry is only
compared when a token is looked up or the state is read.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from bid_accounts.core.errors import (
    AlreadyVerifiedError,
    InternalError,
    InvalidOrExpiredTokenError,
)
from bid_accounts.core.security import IssuedToken, TokenGenerator, mask_token
from bid_accounts.models.account import Account

logger = logging.getLogger(__name__)


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    EXPIRED = "expired"
    VERIFIED = "verified"


class InvalidTransitionError(InternalError):
    code = "INVALID_VERIFICATION_TRANSITION"


class VerificationLifecycle:
    """Issues, reissues and consumes verification tokens on an account"""

    def __init__(self, token_generator: TokenGenerator):
        self.token_generator = token_generator

    def now(self) -> datetime:
        return self.token_generator.clock()

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or self.now()

    def state_of(self, account: Account, now: Optional[datetime] = None) -> VerificationState:
        if account.is_email_verified:
            return VerificationState.VERIFIED
        if account.verification_token is None:
            return VerificationState.UNVERIFIED
        if account.verification_expires_at is None or account.verification_expires_at <= self._now(now):
            return VerificationState.EXPIRED
        return VerificationState.PENDING

    def _set_new_token(self, account: Account, now: datetime) -> IssuedToken:
        issued = self.token_generator.generate(now)
        account.set_verification(issued.token, issued.expires_at)
        return issued

    def issue(self, account: Account, now: Optional[datetime] = None) -> IssuedToken:
        """UNVERIFIED or EXPIRED -> PENDING"""
        now = self._now(now)
        state = self.state_of(account, now)
        if state == VerificationState.VERIFIED:
            raise AlreadyVerifiedError()
        if state == VerificationState.PENDING:
            raise InvalidTransitionError("A verification token is already pending")
        issued = self._set_new_token(account, now)
        logger.debug("Issued verification token %s for %s", mask_token(issued.token), account.email)
        return issued

    def resend(self, account: Account, now: Optional[datetime] = None) -> IssuedToken:
        """Any state but VERIFIED -> PENDING, always with a brand-new token"""
        now = self._now(now)
        if self.state_of(account, now) == VerificationState.VERIFIED:
            raise AlreadyVerifiedError()
        previous = account.verification_token
        issued = self._set_new_token(account, now)
        while issued.token == previous:
            issued = self._set_new_token(account, now)
        logger.debug("Reissued verification token %s for %s", mask_token(issued.token), account.email)
        return issued

    def consume(self, account: Account, token: str, now: Optional[datetime] = None) -> None:
        """PENDING with a matching token -> VERIFIED; anything else leaves the account untouched"""
        now = self._now(now)
        if self.state_of(account, now) != VerificationState.PENDING or account.verification_token != token:
            raise InvalidOrExpiredTokenError()
        account.is_email_verified = True
        account.clear_verification()

    def auto_verify(self, account: Account) -> None:
        """Mark verified without issuing a token"""
        account.is_email_verified = True
        account.clear_verification()
