"""
Request dependencies wiring the account service together
"""
from fastapi import BackgroundTasks, Depends, Request
from sqlmodel import Session

from bid_accounts.core.config import Settings
from bid_accounts.core.database import get_session
from bid_accounts.core.security import PasswordHasher, TokenGenerator
from bid_accounts.services.account_store import AccountStore
from bid_accounts.services.accounts import AccountService
from bid_accounts.services.email_service import EmailService
from bid_accounts.services.email_verification import VerificationLifecycle


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> EmailService:
    return request.app.state.notifier


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_generator(request: Request) -> TokenGenerator:
    return request.app.state.token_generator


def get_account_service(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    notifier: EmailService = Depends(get_notifier),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_generator: TokenGenerator = Depends(get_token_generator),
) -> AccountService:
    # Emails go out after the response, once the state change is committed
    return AccountService(
        store=AccountStore(session),
        hasher=hasher,
        lifecycle=VerificationLifecycle(token_generator),
        notifier=notifier,
        policy=settings.verification_policy,
        frontend_url=settings.frontend_url,
        schedule=background_tasks.add_task,
    )
