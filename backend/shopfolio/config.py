"""
shopfolio/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class that loads configuration from the
environment (and `.env`), shared by the storefront client core and the checkout backend.
Firebase Admin is initialized lazily through `init_firebase()` so that the cart and the
checkout client keep working on machines without service-account credentials.
"""
import logging
import os
from functools import lru_cache
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shopfolio.core.errors import FirebaseNotConfigured

logger = logging.getLogger("shopfolio.config")

CART_STORAGE_KEY = "@shopfolio_cart"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Checkout session backend (the mobile app used EXPO_PUBLIC_STRIPE_BACKEND_URL)
    backend_url: str = Field(
        "",
        validation_alias=AliasChoices("STOREFRONT_BACKEND_URL", "EXPO_PUBLIC_STRIPE_BACKEND_URL", "backend_url"),
    )
    checkout_timeout: float = 10.0
    verify_payment_status: bool = True

    # Cart persistence
    cart_storage_key: str = CART_STORAGE_KEY
    cart_storage_path: str = ".shopfolio/storage.json"

    # Shipping rule: free above the threshold, flat fee otherwise
    free_shipping_threshold: float = 50.0
    shipping_fee: float = 5.99

    # Product catalog
    catalog_base_url: str = "https://fakestoreapi.com"
    catalog_timeout: float = 10.0

    # Payment provider (backend side). Empty key -> simulation mode.
    stripe_secret_key: str = ""
    payment_currency: str = "usd"
    default_success_url: str = "https://shopfolio.app/success?session_id={CHECKOUT_SESSION_ID}"
    default_cancel_url: str = "https://shopfolio.app/cancel"

    backend_host: str = "0.0.0.0"
    backend_port: int = 4242
    allowed_origins: str = "*"  # Comma-separated list or '*' for all

    # Firebase (order recording)
    firebase_cred_file: str = "firebase_service_account.json"
    firebase_project_id: Optional[str] = None
    firebase_private_key_id: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_client_id: Optional[str] = None
    firebase_auth_uri: Optional[str] = None
    firebase_token_uri: Optional[str] = None
    firebase_auth_provider_x509_cert_url: Optional[str] = None
    firebase_client_x509_cert_url: Optional[str] = None

    debug: bool = False
    log_level: str = "INFO"

    @property
    def has_firebase_env_credentials(self) -> bool:
        return all([
            self.firebase_private_key_id,
            self.firebase_private_key,
            self.firebase_client_email,
            self.firebase_client_id,
            self.firebase_auth_uri,
            self.firebase_token_uri,
            self.firebase_auth_provider_x509_cert_url,
            self.firebase_client_x509_cert_url,
        ])


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def missing_firebase_settings(settings: Settings) -> List[str]:
    """Names of the environment variables that keep Firebase from starting."""
    missing = []
    if not settings.firebase_project_id:
        missing.append("FIREBASE_PROJECT_ID")
    if not settings.has_firebase_env_credentials and not os.path.exists(settings.firebase_cred_file):
        missing.append("FIREBASE_CRED_FILE")
    return missing


def init_firebase(settings: Optional[Settings] = None):
    """
    Initialize the Firebase Admin SDK (once) and return a Firestore client.

    Service-account fields from the environment win (Cloud Run); otherwise the
    credential file is used (local development).
    """
    settings = settings or get_settings()
    missing = missing_firebase_settings(settings)
    if missing:
        raise FirebaseNotConfigured(missing)

    try:
        firebase_app = firebase_admin.get_app()
    except ValueError:
        if settings.has_firebase_env_credentials:
            cred = credentials.Certificate({
                "type": "service_account",
                "project_id": settings.firebase_project_id,
                "private_key_id": settings.firebase_private_key_id,
                "private_key": settings.firebase_private_key.replace("\\n", "\n"),
                "client_email": settings.firebase_client_email,
                "client_id": settings.firebase_client_id,
                "auth_uri": settings.firebase_auth_uri,
                "token_uri": settings.firebase_token_uri,
                "auth_provider_x509_cert_url": settings.firebase_auth_provider_x509_cert_url,
                "client_x509_cert_url": settings.firebase_client_x509_cert_url,
            })
        else:
            cred = credentials.Certificate(settings.firebase_cred_file)
        firebase_app = firebase_admin.initialize_app(cred, {"projectId": settings.firebase_project_id})
        logger.info("Firebase initialized for project %s", settings.firebase_project_id)
    return firestore.client(firebase_app)
