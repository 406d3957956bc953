"""
Firebase Cloud Messaging (FCM) over the HTTP v1 REST API.

Two kinds of notification messages are sent to clients subscribed to a
topic: one using only the common notification fields, and one that adds
platform specific overrides (an Android click action and an APNs badge).
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from django.conf import settings

from .errors import CredentialError
from .firebase_service import MESSAGING_SCOPE, get_access_token, get_project_id

logger = logging.getLogger("quickstart")

TITLE = "FCM Notification"
BODY = "Notification from FCM"
MESSAGE_KEY = "message"


@dataclass
class PushResult:
    """Result of a send attempt"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    response: Optional[str] = None


def build_notification_message(
    title: str = TITLE,
    body: str = BODY,
    topic: Optional[str] = None,
) -> Dict[str, Any]:
    """Request body for a notification delivered to all platforms alike"""
    return {
        MESSAGE_KEY: {
            "notification": {
                "title": title,
                "body": body,
            },
            "topic": topic or settings.FCM_DEFAULT_TOPIC,
        }
    }


def build_android_override_payload() -> Dict[str, Any]:
    return {
        "notification": {
            "click_action": "android.intent.action.MAIN",
        }
    }


def build_apns_override_payload() -> Dict[str, Any]:
    """APNs block: immediate delivery priority plus a badge on the app icon"""
    return {
        "headers": {
            "apns-priority": "10",
        },
        "payload": {
            "aps": {
                "badge": 1,
            }
        },
    }


def build_override_message(
    title: str = TITLE,
    body: str = BODY,
    topic: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Request body combining the common notification object with Android and
    APNs overrides.
    """
    message = build_notification_message(title, body, topic)
    message[MESSAGE_KEY]["android"] = build_android_override_payload()
    message[MESSAGE_KEY]["apns"] = build_apns_override_payload()
    return message


class FCMService:
    """
    Sends messages to the FCM v1 endpoint with a bearer token minted from
    the service account.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self._project_id = project_id
        self.base_url = (base_url or settings.FCM_BASE_URL).rstrip("/")
        self.token_provider = token_provider or (lambda: get_access_token([MESSAGING_SCOPE]))
        self.transport = transport
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    @property
    def project_id(self) -> str:
        if self._project_id is None:
            self._project_id = get_project_id()
        return self._project_id

    @property
    def send_endpoint(self) -> str:
        return f"{self.base_url}/v1/projects/{self.project_id}/messages:send"

    async def send_message(self, fcm_message: Dict[str, Any]) -> PushResult:
        """
        Send one message to FCM for delivery.

        Args:
            fcm_message: Request body, {"message": {...}}

        Returns:
            PushResult with the raw response body either way
        """
        try:
            url = self.send_endpoint
            headers = {
                "Authorization": f"Bearer {self.token_provider()}",
                "Content-Type": "application/json; UTF-8",
            }
        except CredentialError as e:
            logger.error(f"[FCM] No access token: {e}")
            return PushResult(success=False, error=str(e), error_code="credentials")

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    url,
                    headers=headers,
                    json=fcm_message,
                    timeout=self.timeout,
                )
        except httpx.TimeoutException:
            logger.error("[FCM] Send timeout")
            return PushResult(success=False, error="Request timeout", error_code="timeout")
        except httpx.HTTPError as e:
            logger.error(f"[FCM] Send exception: {e}")
            return PushResult(success=False, error=str(e), error_code="exception")

        if response.status_code == 200:
            try:
                message_id = response.json().get("name")
            except ValueError:
                message_id = None
            logger.info(f"[FCM] Message sent successfully: {message_id}")
            return PushResult(success=True, message_id=message_id, response=response.text)

        try:
            error_body = response.json().get("error", {})
            reason = error_body.get("message") or response.text
            status = error_body.get("status")
        except (ValueError, AttributeError):
            reason = response.text or "Unknown error"
            status = None

        logger.error(f"[FCM] Send failed: {response.status_code} - {reason}")
        return PushResult(
            success=False,
            error=reason,
            error_code=status or str(response.status_code),
            response=response.text,
        )


# Singleton instance
fcm_service = FCMService()
