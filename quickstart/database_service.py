"""
Realtime Database listeners that keep post star counts in sync and notify
authors of new stars.

Database paths:
- users/{uid}: profile with email
- posts/{postId}: post with stars map and starCount
- user-posts/{uid}/{postId}: the author's copy of the post
"""
import logging
import threading
from typing import Any, List, Optional

from firebase_admin import db, exceptions as firebase_exceptions

from .emailer import Emailer
from .errors import SdkError
from .firebase_service import get_firebase_app
from .listeners import ChildEventTracker, ErrorCallback, Subscription, ValueTracker
from .models import Post, User

logger = logging.getLogger("quickstart")


def recount_stars(current: Any) -> Any:
    """
    Transaction update function: set starCount to the size of the stars map.

    Must stay pure, the database may call it several times with different
    pre-images before one of them commits.
    """
    if not isinstance(current, dict):
        return current
    updated = dict(current)
    updated["starCount"] = len(current.get("stars") or {})
    return updated


class DatabaseService:
    """Service class for the post/star listeners"""

    USERS = "users"
    POSTS = "posts"
    USER_POSTS = "user-posts"

    def __init__(self, root=None, emailer: Optional[Emailer] = None):
        self._root = root
        self._emailer = emailer
        self.subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    @property
    def root(self):
        """Lazy shared reference to the database root"""
        if self._root is None:
            self._root = db.reference("/", app=get_firebase_app())
        return self._root

    @property
    def emailer(self) -> Emailer:
        if self._emailer is None:
            self._emailer = Emailer(self.root)
        return self._emailer

    def _subscribe(self, ref, handler, on_error: Optional[ErrorCallback]) -> Subscription:
        subscription = Subscription(ref, handler, on_error=on_error).start()
        with self._lock:
            self.subscriptions.append(subscription)
        return subscription

    # =========================================================================
    # Reads and transactions
    # =========================================================================

    def send_notification_to_user(self, uid: str, post_id: str) -> bool:
        """
        Notify a user of a new star on one of their posts.

        Returns True if an email was sent.
        """
        user_ref = self.root.child(self.USERS).child(uid)
        try:
            user = User.from_dict(user_ref.get())
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"[DB] Unable to get user data from {user_ref.key}: {e}")
            return False

        if user is None or not user.email:
            logger.info(f"[DB] No email on file for user {uid}")
            return False

        self.emailer.send_notification_email(user.email, uid, post_id)
        return True

    def update_star_count(self, post_ref) -> bool:
        """Recount stars on a post inside a transaction; returns whether it committed"""
        try:
            post_ref.transaction(recount_stars)
            committed = True
        except db.TransactionAbortedError as e:
            logger.warning(f"[DB] Star count transaction on {post_ref.path} aborted: {e}")
            committed = False
        except firebase_exceptions.FirebaseError as e:
            raise SdkError.from_exception(e) from e

        logger.info(f"[DB] updateStarCount:onComplete:{str(committed).lower()}")
        return committed

    # =========================================================================
    # Listeners
    # =========================================================================

    def start_listeners(self, on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Start the global listener for all posts"""

        def _on_post_added(post_id: str, value: Any):
            post = Post.from_dict(value)
            if post is None or not post.uid:
                logger.warning(f"[DB] Ignoring malformed post {post_id}")
                return
            post_ref = self.root.child(self.POSTS).child(post_id)

            # Keep starCount in sync with the stars map
            self.add_stars_changed_listener(post, post_id, on_error)
            # Tell the author about new stars
            self.add_new_stars_listener(post_ref, post, on_error)

        return self._subscribe(
            self.root.child(self.POSTS),
            ChildEventTracker(on_child_added=_on_post_added),
            on_error or self._log_error("startListeners: unable to attach listener to posts"),
        )

    def add_stars_changed_listener(
        self,
        post: Post,
        post_id: str,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Recount both copies of the post whenever its stars change"""
        post_ref = self.root.child(self.POSTS).child(post_id)
        user_post_ref = self.root.child(self.USER_POSTS).child(post.uid).child(post_id)

        def _on_stars(_value):
            self.update_star_count(post_ref)
            self.update_star_count(user_post_ref)

        return self._subscribe(
            post_ref.child("stars"),
            ValueTracker(_on_stars),
            on_error or self._log_error(f"Unable to attach listener to stars for post: {post_id}"),
        )

    def add_new_stars_listener(
        self,
        post_ref,
        post: Post,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Email the author when a new star is received"""

        def _on_star_added(_starrer_uid, _value):
            self.send_notification_to_user(post.uid, post_ref.key)

        return self._subscribe(
            post_ref.child("stars"),
            ChildEventTracker(on_child_added=_on_star_added),
            on_error or self._log_error(f"Unable to attach new star listener to: {post_ref.key}"),
        )

    @staticmethod
    def _log_error(context: str) -> ErrorCallback:
        def _on_error(error: SdkError):
            logger.error(f"[DB] {context}: {error}")
        return _on_error

    def close(self):
        """Detach every listener started by this service"""
        with self._lock:
            subscriptions, self.subscriptions = self.subscriptions, []
        for subscription in subscriptions:
            subscription.close()
