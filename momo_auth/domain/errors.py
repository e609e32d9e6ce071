class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class DuplicateCode(DomainError):
    """A live auth code with the same value is already stored."""

    pass


class GenerationFailed(DomainError):
    """Could not generate a unique auth code within the retry limits."""

    pass


class AuthCodeNotFound(DomainError):
    """No live auth code matches the lookup (store-level)."""

    pass


class InvalidOrExpiredCode(DomainError):
    """The presented auth code is unknown, expired or already redeemed."""

    pass


class UserNotFound(DomainError):
    """No user matches the lookup criteria (e.g., id)."""

    pass


class InvalidRedirectUri(DomainError):
    """Redirect URI is missing or does not use an allowed app scheme."""

    pass


class InvalidPhoneNumber(DomainError):
    """Phone number cannot be normalized to a Canadian E.164 number."""

    pass


class VerificationCodeExpired(DomainError):
    """No pending phone verification (never requested, consumed or expired)."""

    pass


class InvalidVerificationCode(DomainError):
    """The phone verification code does not match."""

    pass


class TooManyAttempts(DomainError):
    """Too many wrong codes; the pending verification was dropped."""

    pass


class MissingFirebaseUid(DomainError):
    """The mobile handoff was started without a Firebase uid."""

    pass
