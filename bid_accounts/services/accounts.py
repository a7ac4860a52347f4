"""
Account registration, verification and login
"""
import logging
from typing import Any, Callable, Optional

from bid_accounts.core.config import VerificationPolicy
from bid_accounts.core.errors import (
    AlreadyVerifiedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    ValidationError,
)
from bid_accounts.core.security import PasswordHasher, mask_token
from bid_accounts.models.account import Account, FULL_NAME_MAX_LENGTH, FULL_NAME_MIN_LENGTH
from bid_accounts.services.account_store import AccountStore
from bid_accounts.services.email_service import EmailService, NotificationResult, build_verification_link
from bid_accounts.services.email_verification import VerificationLifecycle, VerificationState

logger = logging.getLogger(__name__)

Scheduler = Callable[..., Any]


def _run_now(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    func(*args, **kwargs)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class AccountService:
    """
    Orchestrates the account lifecycle for one request

    Args:
        store: Account persistence bound to the request session
        hasher: Password hashing
        lifecycle: Verification token state machine
        notifier: Email sender, called best-effort
        policy: Whether login is gated on email verification
        frontend_url: Base URL used to build verification links
        schedule: Runs a notification; defaults to calling it inline
    """

    def __init__(
        self,
        *,
        store: AccountStore,
        hasher: PasswordHasher,
        lifecycle: VerificationLifecycle,
        notifier: EmailService,
        policy: VerificationPolicy = VerificationPolicy.GATED,
        frontend_url: str = "http://localhost:3000",
        schedule: Optional[Scheduler] = None,
    ):
        self.store = store
        self.hasher = hasher
        self.lifecycle = lifecycle
        self.notifier = notifier
        self.policy = policy
        self.frontend_url = frontend_url
        self.schedule = schedule or _run_now

    @property
    def is_gated(self) -> bool:
        return self.policy == VerificationPolicy.GATED

    # Notifications

    @staticmethod
    def _deliver(kind: str, email: str, send: Callable[..., NotificationResult], *args: Any) -> None:
        """Send one email; failures are logged and never reach the caller"""
        try:
            result = send(*args)
        except Exception:
            logger.exception("Failed to send %s email to %s", kind, email)
            return
        if result.success:
            logger.info("%s email sent to %s", kind.capitalize(), email)
        else:
            logger.error("Failed to send %s email to %s: %s", kind, email, result.error)

    def _notify_welcome(self, account: Account) -> None:
        self.schedule(
            self._deliver, "welcome", account.email,
            self.notifier.send_welcome, account.email, account.full_name,
        )

    def _notify_verification(self, account: Account, token: str) -> None:
        link = build_verification_link(self.frontend_url, token)
        self.schedule(
            self._deliver, "verification", account.email,
            self.notifier.send_verification, account.email, account.full_name, link,
        )

    # Operations

    def register(self, full_name: Optional[str], email: Optional[str], password: Optional[str], role: Optional[str]) -> Account:
        """
        Create an account

        Under the gated policy the account starts with a pending verification
        token; under the auto-verified policy it is verified straight away.

        Raises:
            ValidationError: a field is missing or the name length is out of range
            DuplicateEmailError: the email is already registered
        """
        full_name, email, role = _clean(full_name), _clean(email), _clean(role)
        if not full_name or not email or not password or not role:
            raise ValidationError("All fields are required")
        if not FULL_NAME_MIN_LENGTH <= len(full_name) <= FULL_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Full name must be between {FULL_NAME_MIN_LENGTH} and {FULL_NAME_MAX_LENGTH} characters"
            )

        account = Account(
            full_name=full_name,
            email=email,
            role=role,
            password_hash=self.hasher.hash(password),
        )
        if self.is_gated:
            self.lifecycle.issue(account)
        else:
            self.lifecycle.auto_verify(account)

        account = self.store.create(account)
        logger.info("Account %s created (%s)", account.id, self.policy.value)

        if self.is_gated:
            self._notify_verification(account, account.verification_token)
        else:
            self._notify_welcome(account)
        return account

    def verify_email(self, token: Optional[str]) -> Account:
        """
        Consume a verification token

        Raises:
            ValidationError: no token given
            InvalidOrExpiredTokenError: the token is unknown, expired or already used
        """
        token = _clean(token)
        if not token:
            raise ValidationError("Verification token is required")

        now = self.lifecycle.now()
        account = self.store.find_by_valid_token(token, now)
        if account is None:
            logger.info("Rejected verification token %s", mask_token(token))
            raise InvalidOrExpiredTokenError()

        self.lifecycle.consume(account, token, now)
        account = self.store.save(account)
        logger.info("Email verified for account %s", account.id)

        self._notify_welcome(account)
        return account

    def login(self, email: Optional[str], password: Optional[str]) -> Account:
        """
        Check credentials

        Unknown emails and wrong passwords fail identically. The verification
        gate is only checked once the password is known to be right.

        Raises:
            ValidationError: email or password missing
            InvalidCredentialsError: unknown email or wrong password
            EmailNotVerifiedError: gated policy and the email is not verified
        """
        email = _clean(email)
        if not email or not password:
            raise ValidationError("Email and password are required")

        account = self.store.find_by_email(email)
        if account is None:
            self.hasher.dummy_verify(password)
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, account.password_hash):
            raise InvalidCredentialsError()

        if self.is_gated and not account.is_email_verified:
            raise EmailNotVerifiedError(emailVerified=False)
        return account

    def resend_verification(self, email: Optional[str]) -> Optional[str]:
        """
        Send a fresh verification email, or a welcome email under the auto-verified policy

        Returns:
            The newly issued token (gated policy), otherwise None

        Raises:
            ValidationError: no email given
            NotFoundError: no account uses the email
            AlreadyVerifiedError: gated policy and the email is already verified
        """
        email = _clean(email)
        if not email:
            raise ValidationError("Email is required")

        account = self.store.find_by_email(email)
        if account is None:
            raise NotFoundError()

        if not self.is_gated:
            self._notify_welcome(account)
            return None

        if self.lifecycle.state_of(account) == VerificationState.VERIFIED:
            raise AlreadyVerifiedError()
        issued = self.lifecycle.resend(account)
        account = self.store.save(account)
        logger.info("Verification token reissued for account %s", account.id)

        self._notify_verification(account, issued.token)
        return issued.token
