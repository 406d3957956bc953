"""
Remote Config template management over the REST API.

Templates are ETag-versioned. A publish must send the ETag of the template
it was derived from in If-Match; the server answers 412 when that ETag is
stale. The ETag "*" forces an unconditional overwrite.
"""
import gzip
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

import requests
from django.conf import settings

from .errors import ConcurrencyConflict, HttpError
from .firebase_service import REMOTE_CONFIG_SCOPE, get_access_token, get_project_id

logger = logging.getLogger("quickstart")

FORCE_ETAG = "*"


@dataclass
class ConfigTemplate:
    """A Remote Config template and the ETag it was served with"""
    template: Dict[str, Any]
    etag: Optional[str] = None

    @property
    def version_number(self) -> Optional[str]:
        return (self.template.get("version") or {}).get("versionNumber")


def save_template(template: Dict[str, Any], path=None) -> Path:
    """Write a template as pretty-printed UTF-8 JSON"""
    path = Path(path or settings.REMOTE_CONFIG_TEMPLATE_PATH)
    path.write_text(json.dumps(template, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def load_template(path=None) -> Dict[str, Any]:
    path = Path(path or settings.REMOTE_CONFIG_TEMPLATE_PATH)
    return json.loads(path.read_text(encoding="utf-8"))


def add_parameter_to_group(
    template: Dict[str, Any],
    group: str,
    key: str,
    description: str = "",
) -> Dict[str, Any]:
    """Add a parameter using the in-app default value to a parameter group"""
    groups = template.setdefault("parameterGroups", {})
    parameters = groups.setdefault(group, {}).setdefault("parameters", {})
    parameter = {"defaultValue": {"useInAppDefault": True}}
    if description:
        parameter["description"] = description
    parameters[key] = parameter
    return template


def add_condition(
    template: Dict[str, Any],
    name: str,
    expression: str,
    tag_color: Optional[str] = None,
) -> Dict[str, Any]:
    condition = {"name": name, "expression": expression}
    if tag_color:
        condition["tagColor"] = tag_color
    template.setdefault("conditions", []).append(condition)
    return template


class RemoteConfigClient:
    """
    Thin client for the firebaseremoteconfig.googleapis.com v1 API.

    Every request fetches a fresh bearer token through token_provider.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], str]] = None,
        timeout: Optional[float] = None,
    ):
        self._project_id = project_id
        self.base_url = (base_url or settings.REMOTE_CONFIG_BASE_URL).rstrip("/")
        self.token_provider = token_provider or (lambda: get_access_token([REMOTE_CONFIG_SCOPE]))
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    @property
    def project_id(self) -> str:
        if self._project_id is None:
            self._project_id = get_project_id()
        return self._project_id

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1/projects/{self.project_id}/remoteConfig"

    def _headers(self, **extra) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.token_provider()}",
            "Content-Type": "application/json; UTF-8",
        }
        headers.update(extra)
        return headers

    def _call(self, method: str, url: str, headers: Dict[str, str], **kwargs) -> requests.Response:
        logger.debug(f"[RC] {method} {url}")
        try:
            response = requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.ConnectionError as e:
            raise HttpError(503, f"remote_config_unavailable: {e}") from e
        except requests.exceptions.Timeout as e:
            raise HttpError(504, f"remote_config_timeout: {e}") from e
        if response.status_code != 200:
            logger.error(f"[RC] {method} {url} failed: {response.status_code}")
            if response.status_code == 412:
                raise ConcurrencyConflict(response.status_code, response.text)
            raise HttpError(response.status_code, response.text)
        return response

    # =========================================================================
    # Templates
    # =========================================================================

    def get_template(self, version_number: Optional[int] = None) -> ConfigTemplate:
        """Fetch the current template, or a stored version of it"""
        params = {"versionNumber": version_number} if version_number is not None else None
        response = self._call(
            "GET",
            self.endpoint,
            self._headers(**{"Accept-Encoding": "gzip"}),
            params=params,
        )
        return ConfigTemplate(template=response.json(), etag=response.headers.get("ETag"))

    def publish_template(
        self,
        template: Dict[str, Any],
        etag: str,
        validate_only: bool = False,
    ) -> ConfigTemplate:
        """
        Publish a template guarded by If-Match.

        Raises:
            ConcurrencyConflict: etag no longer matches the server template
            HttpError: any other non-200 response
        """
        body = gzip.compress(json.dumps(template, ensure_ascii=False).encode("utf-8"))
        params = {"validateOnly": "true"} if validate_only else None
        response = self._call(
            "PUT",
            self.endpoint,
            self._headers(**{"If-Match": etag, "Content-Encoding": "gzip"}),
            params=params,
            data=body,
        )
        published = ConfigTemplate(template=response.json(), etag=response.headers.get("ETag"))
        logger.info(f"[RC] {'Validated' if validate_only else 'Published'} template, etag={published.etag}")
        return published

    def validate_template(self, template: Dict[str, Any], etag: str) -> ConfigTemplate:
        return self.publish_template(template, etag, validate_only=True)

    # =========================================================================
    # Versions
    # =========================================================================

    def list_versions(self, page_size: int = 5, page_token: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of template version metadata, newest first"""
        params = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token
        response = self._call(
            "GET",
            f"{self.endpoint}:listVersions",
            self._headers(),
            params=params,
        )
        return response.json()

    def iter_versions(self, page_size: int = 5) -> Iterator[Dict[str, Any]]:
        """Iterate over every stored version, fetching pages as needed"""
        page_token = None
        while True:
            page = self.list_versions(page_size=page_size, page_token=page_token)
            yield from page.get("versions", [])
            page_token = page.get("nextPageToken")
            if not page_token:
                return

    def rollback(self, version_number: int) -> ConfigTemplate:
        response = self._call(
            "POST",
            f"{self.endpoint}:rollback",
            self._headers(**{"Accept-Encoding": "gzip"}),
            json={"version_number": version_number},
        )
        logger.info(f"[RC] Rolled back to version {version_number}")
        return ConfigTemplate(template=response.json(), etag=response.headers.get("ETag"))


# Singleton instance
remote_config_client = RemoteConfigClient()
