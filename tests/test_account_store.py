from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from bid_accounts.core.errors import DuplicateEmailError, NotFoundError
from bid_accounts.models.account import Account
from bid_accounts.services.account_store import AccountStore


def _account(email: str = "jane@x.com", **fields) -> Account:
    values = {
        "full_name": "Jane Doe",
        "email": email,
        "role": "player",
        "password_hash": "$2b$04$notarealhashbutnotemptyeither",
    }
    values.update(fields)
    return Account(**values)


def test_create_assigns_id_and_timestamps(store: AccountStore):
    account = store.create(_account())
    assert account.id
    assert account.created_at is not None
    assert account.updated_at is not None
    assert account.is_email_verified is False
    assert account.verification_token is None


def test_find_by_email_is_exact_match(store: AccountStore):
    store.create(_account())
    assert store.find_by_email("jane@x.com") is not None
    assert store.find_by_email("JANE@x.com") is None
    assert store.find_by_email("nobody@x.com") is None


def test_duplicate_email_is_rejected_and_only_one_row_exists(store: AccountStore, db_session):
    store.create(_account())
    with pytest.raises(DuplicateEmailError):
        store.create(_account(full_name="Jane Again"))

    rows = db_session.exec(select(Account).where(Account.email == "jane@x.com")).all()
    assert len(rows) == 1
    assert rows[0].full_name == "Jane Doe"


def test_racing_registrations_are_settled_by_the_constraint(database):
    # Both requests look the email up before either inserts
    with database.session() as first_session, database.session() as second_session:
        first, second = AccountStore(first_session), AccountStore(second_session)
        assert first.find_by_email("race@x.com") is None
        assert second.find_by_email("race@x.com") is None

        first.create(_account("race@x.com"))
        with pytest.raises(DuplicateEmailError):
            second.create(_account("race@x.com", full_name="Other"))

    with database.session() as session:
        rows = session.exec(select(Account).where(Account.email == "race@x.com")).all()
    assert len(rows) == 1


def test_save_persists_changes_and_bumps_updated_at(store: AccountStore):
    account = store.create(_account())
    created_updated_at = account.updated_at

    account.role = "coach"
    store.save(account)

    reloaded = store.get(account.id)
    assert reloaded.role == "coach"
    assert reloaded.updated_at >= created_updated_at


def test_save_fails_when_account_was_deleted(database):
    with database.session() as session:
        account_id = AccountStore(session).create(_account()).id

    with database.session() as session, database.session() as other:
        store = AccountStore(session)
        account = store.get(account_id)

        other.delete(other.get(Account, account_id))
        other.commit()

        account.role = "coach"
        with pytest.raises(NotFoundError):
            store.save(account)


def test_find_by_valid_token_honours_expiry(store: AccountStore):
    expires_at = datetime(2026, 1, 2, 12, 0, 0, tzinfo=timezone.utc)
    store.create(_account(verification_token="a" * 64, verification_expires_at=expires_at))

    assert store.find_by_valid_token("a" * 64, expires_at - timedelta(seconds=1)) is not None
    assert store.find_by_valid_token("a" * 64, expires_at) is None
    assert store.find_by_valid_token("a" * 64, expires_at + timedelta(hours=1)) is None
    assert store.find_by_valid_token("b" * 64, expires_at - timedelta(hours=1)) is None


def test_timestamps_are_stored_and_read_back_as_utc(database):
    expires_at = datetime(2026, 1, 2, 12, 0, 0, tzinfo=timezone.utc)
    with database.session() as session:
        account_id = AccountStore(session).create(
            _account(verification_token="c" * 64, verification_expires_at=expires_at)
        ).id

    with database.session() as session:
        account = AccountStore(session).get(account_id)
    assert account.created_at.tzinfo is not None
    assert account.updated_at.utcoffset() == timedelta(0)
    assert account.verification_expires_at == expires_at
    assert account.verification_expires_at.tzinfo is not None
