import pytest

from bid_accounts.core.errors import AlreadyVerifiedError, InvalidOrExpiredTokenError
from bid_accounts.models.account import Account
from bid_accounts.services.email_verification import (
    InvalidTransitionError,
    VerificationLifecycle,
    VerificationState,
)


def _account() -> Account:
    return Account(full_name="Jane Doe", email="jane@x.com", role="player", password_hash="hash")


def test_new_account_is_unverified(lifecycle: VerificationLifecycle):
    assert lifecycle.state_of(_account()) == VerificationState.UNVERIFIED


def test_issue_moves_to_pending(lifecycle: VerificationLifecycle, clock):
    account = _account()
    issued = lifecycle.issue(account)

    assert lifecycle.state_of(account) == VerificationState.PENDING
    assert account.verification_token == issued.token
    assert account.verification_expires_at == clock.now + lifecycle.token_generator.ttl


def test_issue_refuses_pending_and_verified(lifecycle: VerificationLifecycle):
    account = _account()
    lifecycle.issue(account)
    with pytest.raises(InvalidTransitionError):
        lifecycle.issue(account)

    lifecycle.auto_verify(account)
    with pytest.raises(AlreadyVerifiedError):
        lifecycle.issue(account)


def test_token_expires_after_ttl(lifecycle: VerificationLifecycle, clock):
    account = _account()
    lifecycle.issue(account)

    clock.advance(hours=23, minutes=59)
    assert lifecycle.state_of(account) == VerificationState.PENDING
    clock.advance(minutes=1)
    assert lifecycle.state_of(account) == VerificationState.EXPIRED


def test_issue_from_expired(lifecycle: VerificationLifecycle, clock):
    account = _account()
    first = lifecycle.issue(account)
    clock.advance(hours=25)

    second = lifecycle.issue(account)
    assert second.token != first.token
    assert lifecycle.state_of(account) == VerificationState.PENDING


def test_consume_verifies_and_clears_token(lifecycle: VerificationLifecycle):
    account = _account()
    issued = lifecycle.issue(account)

    lifecycle.consume(account, issued.token)

    assert lifecycle.state_of(account) == VerificationState.VERIFIED
    assert account.is_email_verified is True
    assert account.verification_token is None
    assert account.verification_expires_at is None


def test_token_is_accepted_only_once(lifecycle: VerificationLifecycle):
    account = _account()
    issued = lifecycle.issue(account)
    lifecycle.consume(account, issued.token)

    with pytest.raises(InvalidOrExpiredTokenError):
        lifecycle.consume(account, issued.token)


def test_consume_rejects_expired_token_without_change(lifecycle: VerificationLifecycle, clock):
    account = _account()
    issued = lifecycle.issue(account)
    clock.advance(hours=24)

    with pytest.raises(InvalidOrExpiredTokenError):
        lifecycle.consume(account, issued.token)
    assert account.is_email_verified is False
    assert account.verification_token == issued.token


def test_consume_rejects_wrong_token(lifecycle: VerificationLifecycle):
    account = _account()
    lifecycle.issue(account)

    with pytest.raises(InvalidOrExpiredTokenError):
        lifecycle.consume(account, "0" * 64)
    assert lifecycle.state_of(account) == VerificationState.PENDING


def test_resend_always_issues_a_new_token(lifecycle: VerificationLifecycle, clock):
    account = _account()
    first = lifecycle.resend(account)
    second = lifecycle.resend(account)
    assert first.token != second.token
    assert account.verification_token == second.token

    with pytest.raises(InvalidOrExpiredTokenError):
        lifecycle.consume(account, first.token)

    clock.advance(hours=30)
    third = lifecycle.resend(account)
    assert lifecycle.state_of(account) == VerificationState.PENDING
    lifecycle.consume(account, third.token)
    assert lifecycle.state_of(account) == VerificationState.VERIFIED


def test_resend_refuses_verified(lifecycle: VerificationLifecycle):
    account = _account()
    lifecycle.auto_verify(account)
    with pytest.raises(AlreadyVerifiedError):
        lifecycle.resend(account)


def test_auto_verify_holds_no_token(lifecycle: VerificationLifecycle):
    account = _account()
    lifecycle.issue(account)
    lifecycle.auto_verify(account)
    assert lifecycle.state_of(account) == VerificationState.VERIFIED
    assert account.verification_token is None
    assert account.verification_expires_at is None
