import logging

from django.core.management.base import BaseCommand, CommandError

from ..errors import CredentialError

logger = logging.getLogger("quickstart")

INVALID_CREDENTIALS = "ERROR: invalid service account credentials. See README."


class FirebaseCommand(BaseCommand):
    """Base for commands that need the service account before doing anything"""

    requires_system_checks = []

    def require_credentials(self, func, *args, **kwargs):
        """Run a startup step, turning a credential failure into exit status 1"""
        try:
            return func(*args, **kwargs)
        except CredentialError as e:
            logger.error(f"[CRED] {e}")
            raise CommandError(f"{INVALID_CREDENTIALS}\n{e}", returncode=1) from e

    def success(self, message: str):
        self.stdout.write(self.style.SUCCESS(message))

    def failure(self, message: str):
        self.stderr.write(self.style.ERROR(message))
