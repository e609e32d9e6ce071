from datetime import datetime
from typing import Callable

from fastapi import Depends, Request

import momo_auth.domain.services as domain_services
from momo_auth.application.session_manager import SessionManager
from momo_auth.domain.events import IdentityEvents
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort
from momo_auth.domain.ports.phone_verification_cache import PhoneVerificationCachePort
from momo_auth.domain.ports.session_store import SessionStorePort
from momo_auth.domain.ports.unit_of_work import UnitOfWorkPort
from momo_auth.infrastructure.db.auth_code_store import PgAuthCodeStore
from momo_auth.infrastructure.db.pool import get_pool
from momo_auth.infrastructure.db.uow import PgUnitOfWork
from momo_auth.infrastructure.redis_cache.auth_code_store import RedisAuthCodeStore
from momo_auth.infrastructure.redis_cache.phone_verification_cache import (
    RedisPhoneVerificationCache,
)
from momo_auth.infrastructure.redis_cache.pool import get_redis
from momo_auth.infrastructure.redis_cache.sessions import RedisSessions
from momo_auth.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


def get_auth_code_store() -> AuthCodeStorePort:
    if get_settings().auth_code_backend == "postgres":
        return PgAuthCodeStore(get_pool())
    return RedisAuthCodeStore(get_redis())


def get_phone_verification_cache() -> PhoneVerificationCachePort:
    return RedisPhoneVerificationCache(get_redis())


def get_clock() -> Callable[[], datetime]:
    return domain_services.utcnow


def get_session_store() -> SessionStorePort:
    return RedisSessions(get_redis(), ttl_seconds=get_settings().session_ttl_seconds)


def get_identity_events(request: Request) -> IdentityEvents:
    # Built once in momo_auth.main.create_app()
    return request.app.state.identity_events


def get_session_manager(
    request: Request, store: SessionStorePort = Depends(get_session_store)
) -> SessionManager:
    return SessionManager(store, get_identity_events(request))
