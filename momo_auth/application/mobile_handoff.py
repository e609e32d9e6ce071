from datetime import datetime
from typing import Callable, Iterable

import momo_auth.domain.services as domain_services
from momo_auth.application.issue_auth_code import issue_auth_code
from momo_auth.application.redeem_auth_code import redeem_auth_code
from momo_auth.application.session_manager import SessionManager
from momo_auth.domain.entities import AuthCode, Session, User
from momo_auth.domain.errors import InvalidRedirectUri, MissingFirebaseUid, UserNotFound
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort
from momo_auth.domain.ports.unit_of_work import UnitOfWorkPort


async def start_mobile_handoff(
    uow: UnitOfWorkPort,
    code_store: AuthCodeStorePort,
    firebase_uid: str,
    redirect_uri: str,
    allowed_schemes: Iterable[str],
    email: str | None = None,
    name: str | None = None,
    code_ttl_seconds: int = 300,
    max_attempts: int = 5,
    time_budget_seconds: float = 2.0,
    clock: Callable[[], datetime] = domain_services.utcnow,
) -> tuple[AuthCode, str]:
    """
    Called by the web app once the identity provider has signed the user in.
    Returns the issued code and the trimmed redirect URI to hand it to.
    """
    if not domain_services.is_allowed_redirect_uri(redirect_uri, allowed_schemes):
        raise InvalidRedirectUri()
    if not firebase_uid or not firebase_uid.strip():
        raise MissingFirebaseUid()

    async with uow as transaction:
        user = await transaction.db_users.get_or_create_by_firebase_uid(
            firebase_uid.strip(), email, name
        )
        await transaction.commit()

    record = await issue_auth_code(
        code_store,
        user.id,
        ttl_seconds=code_ttl_seconds,
        clock=clock,
        max_attempts=max_attempts,
        time_budget_seconds=time_budget_seconds,
    )
    return record, redirect_uri.strip()


async def complete_mobile_handoff(
    uow: UnitOfWorkPort,
    code_store: AuthCodeStorePort,
    sessions: SessionManager,
    code: str,
    clock: Callable[[], datetime] = domain_services.utcnow,
) -> tuple[User, Session]:
    """Called by the mobile app: exchange the one-time code for a session."""
    user_id = await redeem_auth_code(code_store, code, clock=clock)

    async with uow as transaction:
        user = await transaction.db_users.get_by_id(user_id)
    if user is None:
        raise UserNotFound()

    session = await sessions.open(user.id, "mobile_code")
    return user, session
