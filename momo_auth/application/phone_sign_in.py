import momo_auth.domain.services as domain_services
from momo_auth.application.session_manager import SessionManager
from momo_auth.domain.entities import Session, User
from momo_auth.domain.errors import (
    InvalidPhoneNumber,
    InvalidVerificationCode,
    TooManyAttempts,
    VerificationCodeExpired,
)
from momo_auth.domain.ports.phone_verification_cache import (
    PhoneVerificationCachePort,
    VerifyOutcome,
)
from momo_auth.domain.ports.unit_of_work import UnitOfWorkPort


async def request_phone_code(
    uow: UnitOfWorkPort,
    verification_cache: PhoneVerificationCachePort,
    raw_phone: str,
    code_ttl_seconds: int = 300,
) -> str:
    """
    Store a fresh hashed code for the phone (replacing any pending one) and
    queue the SMS. Returns the plain code; the caller decides whether to
    expose it (dev only).
    """
    phone = domain_services.normalize_canadian_phone(raw_phone)
    if phone is None:
        raise InvalidPhoneNumber()

    generated_code = domain_services.generate_6digit_code()
    salt_b64, digest_b64 = domain_services.make_code_digest(generated_code)

    async with uow as transaction:
        await verification_cache.store_hashed_code(
            phone, salt_b64, digest_b64, code_ttl_seconds
        )
        await transaction.outbox.enqueue(
            topic="user.phone_code",
            payload={
                "to": phone,
                "body": "Your Sherpa Momo code is " + generated_code,
            },
        )
        await transaction.commit()
    return generated_code


async def verify_phone_code(
    uow: UnitOfWorkPort,
    verification_cache: PhoneVerificationCachePort,
    sessions: SessionManager,
    raw_phone: str,
    code: str,
    max_attempts: int = 5,
) -> tuple[User, Session]:
    phone = domain_services.normalize_canadian_phone(raw_phone)
    if phone is None:
        raise InvalidPhoneNumber()

    outcome = await verification_cache.verify_and_consume(phone, code, max_attempts)
    if outcome is VerifyOutcome.MISSING:
        raise VerificationCodeExpired()
    if outcome is VerifyOutcome.TOO_MANY_ATTEMPTS:
        raise TooManyAttempts()
    if outcome is not VerifyOutcome.OK:
        raise InvalidVerificationCode()

    async with uow as transaction:
        user = await transaction.db_users.get_or_create_by_phone(phone)
        await transaction.commit()

    session = await sessions.open(user.id, "phone")
    return user, session
