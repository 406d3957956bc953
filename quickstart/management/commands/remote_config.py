"""
Retrieve and publish Remote Config templates using the REST API.

    python manage.py remote_config get
    python manage.py remote_config publish '<LATEST_ETAG>'
    python manage.py remote_config versions
    python manage.py remote_config rollback <TEMPLATE_VERSION_NUMBER>
    python manage.py remote_config snippets
"""
from django.conf import settings

from ...errors import ConcurrencyConflict, CredentialError, HttpError, QuickstartError
from ...remote_config import (
    FORCE_ETAG,
    add_condition,
    add_parameter_to_group,
    load_template,
    remote_config_client,
    save_template,
)
from ...utils import pretty_json
from ..base import FirebaseCommand

CONFIRM_PROMPT = "Are you sure you would like to force replace the template? Yes (y), No (n)"


class Command(FirebaseCommand):
    help = "Manage the Firebase Remote Config template."

    def add_arguments(self, parser):
        actions = parser.add_subparsers(dest="action", required=True)

        get = actions.add_parser("get", help="Download the current template to config.json")
        get.add_argument("--template-version", type=int, dest="version_number", help="Fetch a stored version instead")

        publish = actions.add_parser("publish", help="Publish config.json guarded by an ETag")
        publish.add_argument("etag", help="ETag of the template config.json was based on, or '*'")

        validate = actions.add_parser("validate", help="Check config.json without publishing it")
        validate.add_argument("etag")

        versions = actions.add_parser("versions", help="List the most recent template versions")
        versions.add_argument("--all", action="store_true", dest="all_versions", help="Page through every version")

        rollback = actions.add_parser("rollback", help="Roll back to a stored version")
        rollback.add_argument("version_number", type=int)

        snippets = actions.add_parser("snippets", help="Run the template edit, publish and rollback flow end to end")
        snippets.add_argument("--template-version", type=int, default=6, dest="version_number",
                              help="Stored version to fetch and roll back to")

    def handle(self, *args, **options):
        self.client = remote_config_client
        self.template_path = settings.REMOTE_CONFIG_TEMPLATE_PATH
        self.require_credentials(self.dispatch, options)

    def dispatch(self, options):
        action = options["action"]
        try:
            if action == "get":
                self.get_template(options.get("version_number"))
            elif action == "publish":
                self.publish_template(options["etag"])
            elif action == "validate":
                self.validate_template(options["etag"])
            elif action == "versions":
                self.get_versions(options["all_versions"])
            elif action == "rollback":
                self.rollback(options["version_number"])
            elif action == "snippets":
                self.snippets(options["version_number"])
        except CredentialError:
            raise
        except ConcurrencyConflict as e:
            self.failure("The template changed on the server since it was retrieved. Get it again and retry.")
            self.stdout.write(e.body)
        except HttpError as e:
            self.stdout.write(e.body)
        except QuickstartError as e:
            self.failure(f"Error: {e}")

    def get_template(self, version_number=None):
        """Get the template from the server and store it locally"""
        result = self.client.get_template(version_number=version_number)
        save_template(result.template, self.template_path)
        self.stdout.write(f"Template retrieved and has been written to {self.template_path}")
        self.stdout.write(f"ETag from server: {result.etag}")

    def confirm_force(self) -> bool:
        self.stdout.write(CONFIRM_PROMPT)
        try:
            answer = input()
        except EOFError:
            return False
        return answer.lower() == "y"

    def publish_template(self, etag):
        """Publish the local template to the server"""
        if etag == FORCE_ETAG and not self.confirm_force():
            self.stdout.write("Publish canceled.")
            return

        try:
            template = load_template(self.template_path)
        except (OSError, ValueError) as e:
            self.failure(f"Unable to read {self.template_path}: {e}")
            return

        self.stdout.write("Publishing template...")
        published = self.client.publish_template(template, etag)
        self.success("Template has been published.")
        self.stdout.write(f"ETag from server: {published.etag}")

    def validate_template(self, etag):
        try:
            template = load_template(self.template_path)
        except (OSError, ValueError) as e:
            self.failure(f"Unable to read {self.template_path}: {e}")
            return

        try:
            self.client.validate_template(template, etag)
        except HttpError as e:
            self.stdout.write("Template is invalid and cannot be published")
            self.stdout.write(e.body)
            return
        self.success("Template was valid and safe to use")

    def get_versions(self, all_versions=False):
        """Print the last 5 template versions, or every version with --all"""
        if all_versions:
            for version in self.client.iter_versions():
                self.stdout.write(f"Version: {version.get('versionNumber')}")
            return

        page = self.client.list_versions(page_size=5)
        self.stdout.write("Versions:")
        self.stdout.write(pretty_json(page))

    def rollback(self, version_number):
        try:
            result = self.client.rollback(version_number)
        except HttpError as e:
            self.failure("Error:")
            self.stdout.write(e.body)
            return
        self.stdout.write(f"Rolled back to: {version_number}")
        self.stdout.write(pretty_json(result.template))
        self.stdout.write(f"ETag from server: {result.etag}")

    # =========================================================================
    # Snippets
    # =========================================================================

    def snippets(self, version_number):
        """Edit, validate, publish and roll back the live template in one run"""
        self.stdout.write("Hello, RemoteConfigSnippets!")

        fetched = self.client.get_template()
        self.stdout.write(f"ETag from server: {fetched.etag}")

        template = fetched.template
        template.setdefault("parameterGroups", {})["new_menu"] = {}
        add_parameter_to_group(template, "new_menu", "spring_season", "spring season menu visibility.")
        add_condition(
            template,
            "android_en",
            "device.os == 'android' && device.country in ['us', 'uk']",
            "BLUE",
        )

        try:
            self.client.validate_template(template, fetched.etag)
            self.stdout.write("Template was valid and safe to use")
        except HttpError as e:
            self.stdout.write("Template is invalid and cannot be published")
            self.stdout.write(e.body)

        try:
            published = self.client.publish_template(template, fetched.etag)
            self.stdout.write("Template has been published")
            self.stdout.write(f"ETag from server: {published.etag}")
        except HttpError as e:
            self.stdout.write("Unable to publish template.")
            self.stdout.write(e.body)

        for version in self.client.iter_versions():
            self.stdout.write(f"Version: {version.get('versionNumber')}")

        at_version = self.client.get_template(version_number=version_number)
        self.stdout.write(f"Successfully fetched the template with ETag: {at_version.etag}")

        try:
            rolled_back = self.client.rollback(version_number)
            self.stdout.write(f"Successfully rolled back to template version: {version_number}")
            self.stdout.write(f"New ETag: {rolled_back.etag}")
        except HttpError as e:
            self.stdout.write("Error trying to rollback template.")
            self.stdout.write(e.body)

        self.stdout.write("Done!")
