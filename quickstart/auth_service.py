"""
User management through the Firebase Admin Auth API.

Each method performs exactly one SDK call and returns the resulting
UserRecord. SDK failures are re-raised as SdkError.
"""
import logging
from functools import wraps
from typing import Optional

from firebase_admin import auth, exceptions as firebase_exceptions

from .errors import SdkError
from .firebase_service import get_firebase_app

logger = logging.getLogger("quickstart")

SAMPLE_EMAIL = "user@example.com"
SAMPLE_PHONE = "+11234567890"
SAMPLE_PHOTO_URL = "http://www.example.com/12345678/photo.png"


def _wrap_sdk_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"[AUTH] {func.__name__} failed: {e.code} {e}")
            raise SdkError.from_exception(e) from e
        except ValueError as e:
            logger.error(f"[AUTH] {func.__name__} rejected arguments: {e}")
            raise SdkError("invalid-argument", str(e)) from e
    return wrapper


class UserService:
    """Service class for user record operations"""

    def __init__(self, app=None):
        self._app = app

    @property
    def app(self):
        """Lazy initialization of the Firebase app"""
        if self._app is None:
            self._app = get_firebase_app()
        return self._app

    # =========================================================================
    # Lookups
    # =========================================================================

    @_wrap_sdk_errors
    def get_user(self, uid: str) -> auth.UserRecord:
        return auth.get_user(uid, app=self.app)

    @_wrap_sdk_errors
    def get_user_by_email(self, email: str) -> auth.UserRecord:
        return auth.get_user_by_email(email, app=self.app)

    @_wrap_sdk_errors
    def get_user_by_phone_number(self, phone_number: str) -> auth.UserRecord:
        return auth.get_user_by_phone_number(phone_number, app=self.app)

    # =========================================================================
    # Mutations
    # =========================================================================

    @_wrap_sdk_errors
    def create_user(
        self,
        email: str = SAMPLE_EMAIL,
        email_verified: bool = False,
        password: str = "secretPassword",
        phone_number: str = SAMPLE_PHONE,
        display_name: str = "John Doe",
        photo_url: str = SAMPLE_PHOTO_URL,
        disabled: bool = False,
    ) -> auth.UserRecord:
        """Create a user and let the backend assign its uid"""
        user = auth.create_user(
            email=email,
            email_verified=email_verified,
            password=password,
            phone_number=phone_number,
            display_name=display_name,
            photo_url=photo_url,
            disabled=disabled,
            app=self.app,
        )
        logger.info(f"[AUTH] Created user: {user.uid}")
        return user

    @_wrap_sdk_errors
    def create_user_with_uid(
        self,
        uid: str,
        email: str = SAMPLE_EMAIL,
        phone_number: str = SAMPLE_PHONE,
    ) -> auth.UserRecord:
        """Create a user with an explicit uid"""
        user = auth.create_user(uid=uid, email=email, phone_number=phone_number, app=self.app)
        logger.info(f"[AUTH] Created user: {user.uid}")
        return user

    @_wrap_sdk_errors
    def update_user(
        self,
        uid: str,
        email: Optional[str] = SAMPLE_EMAIL,
        phone_number: Optional[str] = SAMPLE_PHONE,
        email_verified: Optional[bool] = True,
        password: Optional[str] = "newPassword",
        display_name: Optional[str] = "Jane Doe",
        photo_url: Optional[str] = SAMPLE_PHOTO_URL,
        disabled: Optional[bool] = True,
    ) -> auth.UserRecord:
        """
        Update a user record. Fields passed as None are left unchanged.
        """
        fields = {
            "email": email,
            "phone_number": phone_number,
            "email_verified": email_verified,
            "password": password,
            "display_name": display_name,
            "photo_url": photo_url,
            "disabled": disabled,
        }
        fields = {key: value for key, value in fields.items() if value is not None}
        user = auth.update_user(uid, app=self.app, **fields)
        logger.info(f"[AUTH] Updated user: {user.uid}")
        return user

    @_wrap_sdk_errors
    def delete_user(self, uid: str) -> str:
        auth.delete_user(uid, app=self.app)
        logger.info(f"[AUTH] Deleted user: {uid}")
        return uid


# Singleton instance
user_service = UserService()
