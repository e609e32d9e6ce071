from datetime import datetime
from typing import Annotated, Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from momo_auth.application.mobile_handoff import (
    complete_mobile_handoff,
    start_mobile_handoff,
)
from momo_auth.application.phone_sign_in import request_phone_code, verify_phone_code
from momo_auth.application.session_manager import SessionManager
from momo_auth.domain.entities import Session
from momo_auth.domain.errors import (
    GenerationFailed,
    InvalidOrExpiredCode,
    InvalidPhoneNumber,
    InvalidRedirectUri,
    InvalidVerificationCode,
    MissingFirebaseUid,
    TooManyAttempts,
    UserNotFound,
    VerificationCodeExpired,
)
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort
from momo_auth.domain.ports.phone_verification_cache import PhoneVerificationCachePort
from momo_auth.domain.ports.unit_of_work import UnitOfWorkPort
from momo_auth.presentation.dependencies import (
    get_app_settings,
    get_auth_code_store,
    get_clock,
    get_phone_verification_cache,
    get_session_manager,
    get_uow,
)
from momo_auth.presentation.rate_limiting import (
    limiter,
    mobile_code_limit,
    phone_request_limit,
    phone_verify_limit,
)
from momo_auth.schemas.requests import (
    MobileCallbackIn,
    MobileCodeIn,
    PhoneRequestIn,
    PhoneVerifyIn,
)
from momo_auth.schemas.responses import (
    AuthStatusOut,
    MobileCodeOut,
    OkOut,
    PhoneCodeSentOut,
    SignedInOut,
    UserOut,
)
from momo_auth.settings import Settings

router = APIRouter(prefix="/auth", tags=["Auth"])
bearer_scheme = HTTPBearer(auto_error=False)


async def current_session(
    auth: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
) -> Session:
    if auth is None or not auth.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token"
        )
    session = await sessions.resolve(auth.credentials)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid or expired token"
        )
    return session


@router.post("/mobile-code", response_model=MobileCodeOut)
@limiter.shared_limit(
    mobile_code_limit, scope="mobile_handoff", error_message="too many requests"
)
async def post_mobile_code(
    request: Request,
    body: MobileCodeIn,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    code_store: Annotated[AuthCodeStorePort, Depends(get_auth_code_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
):
    try:
        record, redirect_uri = await start_mobile_handoff(
            uow=uow,
            code_store=code_store,
            firebase_uid=body.firebase_uid,
            redirect_uri=body.redirect_uri,
            allowed_schemes=settings.mobile_redirect_schemes,
            email=body.email,
            name=body.name,
            code_ttl_seconds=settings.auth_code_ttl_seconds,
            max_attempts=settings.auth_code_max_attempts,
            time_budget_seconds=settings.auth_code_issue_budget_seconds,
            clock=clock,
        )
    except InvalidRedirectUri:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="redirect_uri must start with one of: "
            + ", ".join(settings.mobile_redirect_schemes),
        )
    except MissingFirebaseUid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="firebase_uid is required"
        )
    except GenerationFailed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="could not issue a code, try again",
        )

    return MobileCodeOut(
        code=record.code, redirect_uri=redirect_uri, expires_at=record.expires_at
    )


@router.post("/mobile/callback", response_model=SignedInOut)
@limiter.shared_limit(
    mobile_code_limit, scope="mobile_handoff", error_message="too many requests"
)
async def post_mobile_callback(
    request: Request,
    body: MobileCallbackIn,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    code_store: Annotated[AuthCodeStorePort, Depends(get_auth_code_store)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
):
    try:
        user, session = await complete_mobile_handoff(
            uow=uow,
            code_store=code_store,
            sessions=sessions,
            code=body.code,
            clock=clock,
        )
    except InvalidOrExpiredCode:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid or expired code"
        )
    except UserNotFound:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="user not found"
        )

    return SignedInOut(token=session.token, user=UserOut.from_user(user))


@router.post("/phone/request", response_model=PhoneCodeSentOut)
@limiter.limit(
    phone_request_limit, error_message="too many requests, wait a minute"
)
async def post_phone_request(
    request: Request,
    body: PhoneRequestIn,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    verification_cache: Annotated[
        PhoneVerificationCachePort, Depends(get_phone_verification_cache)
    ],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    try:
        code = await request_phone_code(
            uow=uow,
            verification_cache=verification_cache,
            raw_phone=body.phone,
            code_ttl_seconds=settings.phone_code_ttl_seconds,
        )
    except InvalidPhoneNumber:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid Canadian phone number",
        )

    return PhoneCodeSentOut(dev_code=code if settings.app_env == "dev" else None)


@router.post("/phone/verify", response_model=SignedInOut)
@limiter.limit(
    phone_verify_limit, error_message="too many verification attempts, wait and retry"
)
async def post_phone_verify(
    request: Request,
    body: PhoneVerifyIn,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    verification_cache: Annotated[
        PhoneVerificationCachePort, Depends(get_phone_verification_cache)
    ],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    try:
        user, session = await verify_phone_code(
            uow=uow,
            verification_cache=verification_cache,
            sessions=sessions,
            raw_phone=body.phone,
            code=body.code,
            max_attempts=settings.phone_code_max_attempts,
        )
    except InvalidPhoneNumber:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid phone number"
        )
    except VerificationCodeExpired:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="code expired or not found, request a new code",
        )
    except TooManyAttempts:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="too many attempts, request a new code",
        )
    except InvalidVerificationCode:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid code"
        )

    return SignedInOut(token=session.token, user=UserOut.from_user(user))


@router.get("/me", response_model=UserOut)
async def get_me(
    session: Annotated[Session, Depends(current_session)],
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
):
    async with uow as tx:
        user = await tx.db_users.get_by_id(session.user_id)
        # no state change; no commit needed
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="unknown user"
        )
    return UserOut.from_user(user)


@router.post("/logout", response_model=OkOut)
async def post_logout(
    session: Annotated[Session, Depends(current_session)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    await sessions.close(session.token)
    return OkOut()


@router.get("/status", response_model=AuthStatusOut)
async def get_status():
    return AuthStatusOut(auth_methods=["phone", "mobile_code"])
