"""
Send notification messages to clients subscribed to a topic with FCM.

    python manage.py messaging common-message
    python manage.py messaging override-message
"""
from django.core.management.base import CommandError

from ...push_service import BODY, TITLE, build_notification_message, build_override_message, fcm_service
from ...utils import pretty_json, run_async
from ..base import INVALID_CREDENTIALS, FirebaseCommand

COMMON_MESSAGE = "common-message"
OVERRIDE_MESSAGE = "override-message"


class Command(FirebaseCommand):
    help = "Send an FCM notification message to a topic."

    def add_arguments(self, parser):
        parser.add_argument("message_type", nargs="?", help=f"{COMMON_MESSAGE} or {OVERRIDE_MESSAGE}")
        parser.add_argument("--topic", default=None, help="Topic to send to (default: FCM_DEFAULT_TOPIC)")
        parser.add_argument("--title", default=TITLE)
        parser.add_argument("--body", default=BODY)

    def handle(self, *args, **options):
        message_type = options["message_type"]
        builders = {
            COMMON_MESSAGE: build_notification_message,
            OVERRIDE_MESSAGE: build_override_message,
        }
        if message_type not in builders:
            self.print_usage()
            return

        self.require_credentials(lambda: fcm_service.project_id)

        fcm_message = builders[message_type](options["title"], options["body"], options["topic"])
        if message_type == COMMON_MESSAGE:
            self.stdout.write("FCM request body for message using common notification object:")
        else:
            self.stdout.write("FCM request body for override message:")
        self.stdout.write(pretty_json(fcm_message) + "\n")

        self.send_message(fcm_message)

    def send_message(self, fcm_message):
        result = run_async(fcm_service.send_message(fcm_message))

        if result.error_code == "credentials":
            raise CommandError(f"{INVALID_CREDENTIALS}\n{result.error}", returncode=1)

        if result.success:
            self.success("Message sent to Firebase for delivery, response:")
            self.stdout.write(result.response or "")
        else:
            self.failure("Unable to send message to Firebase:")
            self.stdout.write(result.response or result.error or "")
        return result

    def print_usage(self):
        self.stderr.write("Invalid command. Please use one of the following commands:")
        # Simple notification message sent to all platforms using the common fields
        self.stderr.write(f"python manage.py messaging {COMMON_MESSAGE}")
        # Same message with Android and APNs specific overrides applied
        self.stderr.write(f"python manage.py messaging {OVERRIDE_MESSAGE}")
