"""
Firebase Push Service

Production implementation using Firebase Cloud Messaging through the
firebase-admin SDK.

Credentials are resolved in order:
    1. FIREBASE_CREDENTIALS_PATH (service-account JSON file)
    2. FIREBASE_PROJECT_ID + FIREBASE_CLIENT_EMAIL + FIREBASE_PRIVATE_KEY
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from delivery_app.core.config import Settings
from delivery_app.services.push.base import BasePushService, PushResult

logger = logging.getLogger(__name__)

ANDROID_CHANNEL_ID = "orders_channel"
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


def _load_credentials(settings: Settings) -> Optional[credentials.Certificate]:
    if settings.firebase_credentials_path:
        logger.info(f"Using Firebase service account file: {settings.firebase_credentials_path}")
        return credentials.Certificate(settings.firebase_credentials_path)

    if settings.firebase_project_id and settings.firebase_client_email and settings.firebase_private_key:
        logger.info("Using Firebase credentials from environment")
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "client_email": settings.firebase_client_email,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        })

    return None


class FirebasePushService(BasePushService):
    """Production push service using Firebase Cloud Messaging."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.app: Optional[firebase_admin.App] = None
        self._initialize()

    def _initialize(self) -> None:
        """Initialize the default Firebase app once per process."""
        try:
            self.app = firebase_admin.get_app()
            return
        except ValueError:
            pass

        try:
            cred = _load_credentials(self.settings)
            if cred is None:
                logger.error("Firebase credentials not configured, push notifications disabled")
                return
            self.app = firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin initialized")
        except (ValueError, OSError) as e:
            logger.error(f"Firebase Admin initialization failed: {e}")
            self.app = None

    @property
    def provider_name(self) -> str:
        return "firebase"

    def _build_message(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]],
    ) -> messaging.Message:
        payload = {str(k): str(v) for k, v in (data or {}).items()}
        payload["click_action"] = CLICK_ACTION
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()

        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=payload,
            android=messaging.AndroidConfig(
                priority="high",
                ttl=3600,
                notification=messaging.AndroidNotification(
                    sound="default",
                    channel_id=ANDROID_CHANNEL_ID,
                    click_action=CLICK_ACTION,
                ),
            ),
            apns=messaging.APNSConfig(
                headers={"apns-priority": "10"},
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        alert=messaging.ApsAlert(title=title, body=body),
                        sound="default",
                        content_available=True,
                    )
                ),
            ),
        )

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> PushResult:
        """Send a notification through FCM."""
        if self.app is None:
            self._initialize()
            if self.app is None:
                return PushResult(
                    success=False,
                    error_message="Firebase not initialized",
                    provider="firebase"
                )

        message = self._build_message(token, title, body, data)

        try:
            # The SDK call is blocking HTTP
            message_id = await asyncio.to_thread(messaging.send, message, app=self.app)
            logger.info(f"Push sent to {token[:20]}...: {message_id}")
            return PushResult(success=True, message_id=message_id, provider="firebase")

        except FirebaseError as e:
            logger.error(f"FCM error for {token[:20]}...: {e}")
            return PushResult(success=False, error_message=str(e), provider="firebase")
        except ValueError as e:
            logger.error(f"Invalid push message for {token[:20]}...: {e}")
            return PushResult(success=False, error_message=str(e), provider="firebase")

    async def health_check(self) -> bool:
        return self.app is not None
