"""
Realtime Database listeners plus the weekly top posts email.

    python manage.py database_listeners
    python manage.py database_listeners --send-weekly-email
"""
import threading

from firebase_admin import db

from ...database_service import DatabaseService
from ...errors import QuickstartError
from ...firebase_service import get_firebase_app
from ...weekly_email_job import WeeklyEmailJob
from ..base import FirebaseCommand


class Command(FirebaseCommand):
    help = "Keep post star counts in sync, notify authors and send the weekly email."

    def add_arguments(self, parser):
        parser.add_argument("--database-url", default=None, help="Override FIREBASE_DATABASE_URL")
        parser.add_argument(
            "--send-weekly-email",
            action="store_true",
            help="Send the weekly top posts email once and exit",
        )

    def handle(self, *args, **options):
        app = self.require_credentials(get_firebase_app, options["database_url"])

        # Shared database reference
        root = db.reference("/", app=app)
        service = DatabaseService(root)
        job = WeeklyEmailJob(root, emailer=service.emailer)

        if options["send_weekly_email"]:
            try:
                sent = job.run()
            except QuickstartError as e:
                self.failure(f"Weekly email failed: {e}")
                return
            self.success(f"Weekly email sent to {sent} users")
            return

        try:
            service.start_listeners()
        except QuickstartError as e:
            self.failure(f"startListeners: unable to attach listener to posts\n{e}")
            return

        run_at = job.schedule()
        self.stdout.write(f"Listening for posts. Next weekly email at {run_at.isoformat()}")

        stopped = threading.Event()
        try:
            stopped.wait()
        except KeyboardInterrupt:
            self.stdout.write("Stopping listeners...")
        finally:
            job.cancel()
            service.close()
