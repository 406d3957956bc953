"""
User management snippets.

    python manage.py auth_users get <uid>
    python manage.py auth_users smoke-test
"""
from ...auth_service import SAMPLE_EMAIL, SAMPLE_PHONE, user_service
from ...errors import QuickstartError
from ...firebase_service import get_firebase_app
from ..base import FirebaseCommand


class Command(FirebaseCommand):
    help = "Fetch, create, update and delete Firebase Auth users."

    def add_arguments(self, parser):
        actions = parser.add_subparsers(dest="action", required=True)

        actions.add_parser("get", help="Fetch a user by uid").add_argument("uid")
        actions.add_parser("get-by-email", help="Fetch a user by email").add_argument("email")
        actions.add_parser("get-by-phone", help="Fetch a user by phone number").add_argument("phone")
        actions.add_parser("create", help="Create the sample user with a generated uid")
        actions.add_parser("create-with-uid", help="Create the sample user with a uid").add_argument("uid")
        actions.add_parser("update", help="Apply the sample update to a user").add_argument("uid")
        actions.add_parser("delete", help="Delete a user").add_argument("uid")

        smoke = actions.add_parser("smoke-test", help="Create, read, update and delete one user")
        smoke.add_argument("--uid", default="some-uid")

    def handle(self, *args, **options):
        self.require_credentials(get_firebase_app)

        action = options["action"]
        if action == "smoke-test":
            self.smoke_test(options["uid"])
            return

        handlers = {
            "get": lambda: self.get_user(options["uid"]),
            "get-by-email": lambda: self.get_user_by_email(options["email"]),
            "get-by-phone": lambda: self.get_user_by_phone_number(options["phone"]),
            "create": self.create_user,
            "create-with-uid": lambda: self.create_user_with_uid(options["uid"]),
            "update": lambda: self.update_user(options["uid"]),
            "delete": lambda: self.delete_user(options["uid"]),
        }
        handlers[action]()

    def _run(self, step):
        """Print an error and keep going; a failed step never stops the run"""
        try:
            step()
            return True
        except QuickstartError as e:
            self.failure(f"Error: {e}")
            return False

    def get_user(self, uid):
        def step():
            user = user_service.get_user(uid)
            # See the UserRecord reference doc for the contents of user
            self.success(f"Successfully fetched user data: {user.uid}")
        return self._run(step)

    def get_user_by_email(self, email):
        def step():
            user = user_service.get_user_by_email(email)
            self.success(f"Successfully fetched user data: {user.email}")
        return self._run(step)

    def get_user_by_phone_number(self, phone_number):
        def step():
            user = user_service.get_user_by_phone_number(phone_number)
            self.success(f"Successfully fetched user data: {user.phone_number}")
        return self._run(step)

    def create_user(self):
        def step():
            user = user_service.create_user()
            self.success(f"Successfully created new user: {user.uid}")
        return self._run(step)

    def create_user_with_uid(self, uid):
        def step():
            user = user_service.create_user_with_uid(uid)
            self.success(f"Successfully created new user: {user.uid}")
        return self._run(step)

    def update_user(self, uid):
        def step():
            user = user_service.update_user(uid)
            self.success(f"Successfully updated user: {user.uid}")
        return self._run(step)

    def delete_user(self, uid):
        def step():
            user_service.delete_user(uid)
            self.success(f"Successfully deleted user: {uid}")
        return self._run(step)

    def smoke_test(self, uid):
        self.stdout.write("Hello, AuthSnippets!")
        self.create_user_with_uid(uid)
        self.get_user(uid)
        self.get_user_by_email(SAMPLE_EMAIL)
        self.get_user_by_phone_number(SAMPLE_PHONE)
        self.update_user(uid)
        self.delete_user(uid)
        self.stdout.write("Done!")
