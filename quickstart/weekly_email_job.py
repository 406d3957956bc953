"""
Weekly top posts email, sent Sundays at 14:30.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from django.conf import settings
from django.utils import timezone
from firebase_admin import exceptions as firebase_exceptions

from .emailer import Emailer
from .errors import QuickstartError, SdkError
from .models import Post, User

logger = logging.getLogger("quickstart")


class WeeklyEmailJob:
    """
    Cron-style job. The clock is injectable so the schedule can be tested
    without waiting for Sunday.
    """

    def __init__(
        self,
        root,
        emailer: Optional[Emailer] = None,
        clock: Callable[[], datetime] = timezone.now,
        weekday: Optional[int] = None,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        self.root = root
        self.emailer = emailer or Emailer(root)
        self.clock = clock
        self.weekday = settings.WEEKLY_EMAIL_WEEKDAY if weekday is None else weekday
        self.hour = settings.WEEKLY_EMAIL_HOUR if hour is None else hour
        self.minute = settings.WEEKLY_EMAIL_MINUTE if minute is None else minute
        self.limit = limit or settings.TOP_POSTS_LIMIT
        self._timer = None
        self._cancelled = False
        self._lock = threading.Lock()

    def next_run(self, now: Optional[datetime] = None) -> datetime:
        """First scheduled time strictly after now, in the current time zone"""
        now = timezone.localtime(now or self.clock())
        days_ahead = (self.weekday - now.weekday()) % 7
        candidate = (now + timedelta(days=days_ahead)).replace(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= now:
            candidate += timedelta(days=7)
        return candidate

    def fetch_top_posts(self) -> List[Post]:
        """Top posts ordered by starCount, most starred first"""
        query = self.root.child("posts").order_by_child("starCount").limit_to_last(self.limit)
        try:
            snapshot = query.get() or {}
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"[CRON] WeeklyEmailJob: could not get top posts: {e}")
            raise SdkError.from_exception(e) from e

        posts = [Post.from_dict(value) for value in snapshot.values()]
        posts = [post for post in posts if post is not None]
        return sorted(posts, key=lambda post: post.star_count, reverse=True)

    def fetch_users(self) -> Dict[str, User]:
        try:
            snapshot = self.root.child("users").get() or {}
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"[CRON] WeeklyEmailJob: could not get all users: {e}")
            raise SdkError.from_exception(e) from e
        return {uid: User.from_dict(value) for uid, value in snapshot.items()}

    def run(self) -> int:
        """Send the weekly email to all users; returns the number of emails sent"""
        top_posts = self.fetch_top_posts()
        users = self.fetch_users()
        return self.emailer.send_weekly_email(users, top_posts)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule(self) -> datetime:
        """Arm a timer for the next run. Each run re-arms the timer."""
        run_at = self.next_run()
        delay = max((run_at - self.clock()).total_seconds(), 0)

        with self._lock:
            self._cancelled = False
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

        logger.info(f"[CRON] Weekly email scheduled for {run_at.isoformat()}")
        return run_at

    def _fire(self):
        try:
            sent = self.run()
            logger.info(f"[CRON] Weekly email sent to {sent} users")
        except QuickstartError as e:
            logger.error(f"[CRON] Weekly email failed: {e}")
        finally:
            with self._lock:
                cancelled = self._cancelled
            if not cancelled:
                self.schedule()

    def cancel(self):
        with self._lock:
            self._cancelled = True
            if self._timer:
                self._timer.cancel()
                self._timer = None
