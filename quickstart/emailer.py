"""
Email notifications sent from the server, with their bookkeeping writes.
"""
import logging
from typing import Dict, List

from django.core.mail import send_mail
from firebase_admin import exceptions as firebase_exceptions

from .errors import SdkError
from .models import Post, User

logger = logging.getLogger("quickstart")

# Resolved by the database to its own clock at write time
SERVER_TIMESTAMP = {".sv": "timestamp"}


class Emailer:
    """Sends emails through Django's mail backend and records when they went out"""

    def __init__(self, root):
        self.root = root

    def send_notification_email(self, email: str, uid: str, post_id: str) -> None:
        """Tell an author that one of their posts got a new star"""
        logger.info(f"[EMAIL] sendNotificationEmail: {email}")
        send_mail(
            subject="Your post got a new star",
            message=f"Someone starred your post {post_id}.",
            from_email=None,
            recipient_list=[email],
        )

        # Fan-out write of the last notification time to both copies of the post
        update = {
            f"posts/{post_id}/lastNotificationTimestamp": SERVER_TIMESTAMP,
            f"user-posts/{uid}/{post_id}/lastNotificationTimestamp": SERVER_TIMESTAMP,
        }
        try:
            self.root.update(update)
        except firebase_exceptions.FirebaseError as e:
            raise SdkError.from_exception(e) from e

    def send_weekly_email(self, users: Dict[str, User], top_posts: List[Post]) -> int:
        """
        Email every user the current top posts and stamp lastSentWeeklyTimestamp.

        Returns the number of emails sent.
        """
        logger.info(f"[EMAIL] sendWeeklyEmail: there are {len(users)} total users.")
        if not top_posts:
            logger.info("[EMAIL] sendWeeklyEmail: no posts to report")
            return 0

        top = top_posts[0]
        logger.info(f"[EMAIL] sendWeeklyEmail: the top post is {top.title} by {top.author}")
        lines = [f"{post.title} by {post.author} ({post.star_count} stars)" for post in top_posts]

        sent = 0
        for user_id, user in users.items():
            if user is not None and user.email:
                send_mail(
                    subject="This week's top posts",
                    message="\n".join(lines),
                    from_email=None,
                    recipient_list=[user.email],
                )
                sent += 1

            try:
                self.root.child("users").child(user_id).child("lastSentWeeklyTimestamp").set(
                    SERVER_TIMESTAMP
                )
            except firebase_exceptions.FirebaseError as e:
                raise SdkError.from_exception(e) from e

        return sent
