"""
Service Layer Package.

Contains the Token Store, the API client and every auth-related service.

The ``create_services()`` factory wires them together, returning a typed
dict that the application layer (shell / views) can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

import httpx

from civicportal.auth import AuthStore
from civicportal.config import AppConfig
from civicportal.database import DatabaseManager
from civicportal.logger import get_logger
from civicportal.services.api_client import ApiClient
from civicportal.services.auth_service import AuthService
from civicportal.services.otp_flow import OTPRegistration
from civicportal.services.session_bootstrap import SessionBootstrap
from civicportal.services.token_store import TokenStore


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    token_store: TokenStore
    api_client: ApiClient
    auth_store: AuthStore
    auth_service: AuthService
    session_bootstrap: SessionBootstrap
    otp_registration: OTPRegistration


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> ServiceContainer:
    """Wire all services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup.

    Args:
        db: Initialised DatabaseManager with the schema applied.
        config: Application configuration.
        transport: Optional ``httpx`` transport (tests use a mock).

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("civicportal.services")

    token_store = TokenStore(
        db=db,
        logger=logger,
        salt_path=config.token_salt_path,
        iterations=config.TOKEN_KDF_ITERATIONS,
    )
    api_client = ApiClient(
        base_url=config.API_BASE_URL,
        token_store=token_store,
        logger=logger,
        timeout=config.API_TIMEOUT_S,
        transport=transport,
    )
    auth_store = AuthStore(token_store=token_store, logger=logger)
    auth_service = AuthService(
        api=api_client,
        store=auth_store,
        token_store=token_store,
        logger=logger,
        login_path=config.LOGIN_PATH,
        otp_length=config.OTP_LENGTH,
    )
    session_bootstrap = SessionBootstrap(
        auth_service=auth_service,
        store=auth_store,
        token_store=token_store,
        logger=logger,
    )
    otp_registration = OTPRegistration(
        auth_service=auth_service,
        logger=logger,
        otp_length=config.OTP_LENGTH,
        ttl_seconds=config.OTP_TTL_SECONDS,
        profile_path=config.PROFILE_PATH,
        admin_path=config.ADMIN_PATH,
    )

    logger.info("All services initialised successfully.")

    return ServiceContainer(
        token_store=token_store,
        api_client=api_client,
        auth_store=auth_store,
        auth_service=auth_service,
        session_bootstrap=session_bootstrap,
        otp_registration=otp_registration,
    )
