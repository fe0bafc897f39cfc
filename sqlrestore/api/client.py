"""Client REST minimal pour l'API Cloud SQL Admin.

`RestClient` porte le transport (urllib, en-tête bearer, JSON) ; `SqlAdminApi`
connaît les quatre endpoints utilisés par la ressource.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from sqlrestore.config import DEFAULT_API_BASE, DEFAULT_HTTP_TIMEOUT
from sqlrestore.errors import DecodeError, TransportError
from sqlrestore.models.operation import BackupItem, Operation

_ERROR_BODY_LIMIT = 500


class TokenProvider(Protocol):
    def get_token(self) -> str:
        """Retourne un access token OAuth2 valide (sans le préfixe `Bearer`)."""


class RestClient:
    def __init__(self, token_provider: TokenProvider, timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self.token_provider = token_provider
        self.timeout = timeout

    def get(self, url: str) -> Any:
        return self._send("GET", url)

    def post(self, url: str, body: Mapping[str, Any]) -> Any:
        return self._send("POST", url, body)

    def _send(self, method: str, url: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        headers = {
            "Authorization": f"Bearer {self.token_provider.get_token()}",
            "Accept": "application/json",
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = Request(url, data=data, headers=headers, method=method)
        try:
            with urlopen(req, timeout=self.timeout) as resp:  # nosec - URL construite depuis la config
                raw = resp.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")[:_ERROR_BODY_LIMIT]
            raise TransportError(f"{method} {url} -> HTTP {exc.code}: {detail}", status=exc.code) from exc
        except (URLError, OSError) as exc:
            raise TransportError(f"{method} {url} échoué: {exc}") from exc

        try:
            return json.loads(raw.decode("utf-8")) if raw else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"Réponse JSON invalide pour {method} {url}: {exc}") from exc


class SqlAdminApi:
    """Surface de l'API Cloud SQL Admin v1 utilisée par check/in/out."""

    def __init__(self, rest: RestClient, api_base: str = DEFAULT_API_BASE) -> None:
        self.rest = rest
        self.api_base = api_base.rstrip("/")

    def list_operations(self, project: str, instance: str) -> List[Operation]:
        url = self._url(f"projects/{_seg(project)}/operations", instance=instance)
        return [Operation.from_api(item) for item in self._iter_items(url)]

    def get_operation(self, project: str, instance: str, operation_id: str) -> Operation:
        url = self._url(f"projects/{_seg(project)}/operations/{_seg(operation_id)}", instance=instance)
        return Operation.from_api(self.rest.get(url))

    def list_backup_runs(self, project: str, instance: str) -> List[BackupItem]:
        url = self._url(f"projects/{_seg(project)}/instances/{_seg(instance)}/backupRuns")
        return [BackupItem.from_api(item) for item in self._iter_items(url)]

    def restore_backup(
        self,
        project: str,
        instance: str,
        backup_id: str,
        source_project: str,
        source_instance: str,
    ) -> Operation:
        url = self._url(f"projects/{_seg(project)}/instances/{_seg(instance)}/restoreBackup")
        body = {
            "restoreBackupContext": {
                "backupRunId": backup_id,
                "project": source_project,
                "instanceId": source_instance,
            }
        }
        return Operation.from_api(self.rest.post(url, body))

    def _iter_items(self, url: str) -> Iterator[Any]:
        page_token: Optional[str] = None
        while True:
            page_url = url
            if page_token:
                separator = "&" if "?" in url else "?"
                page_url = f"{url}{separator}{urlencode({'pageToken': page_token})}"

            payload = self.rest.get(page_url)
            if not isinstance(payload, dict):
                raise DecodeError(f"Objet JSON attendu pour {page_url}")
            items = payload.get("items") or []
            if not isinstance(items, list):
                raise DecodeError(f"Champ 'items' invalide pour {page_url}")
            yield from items

            page_token = payload.get("nextPageToken")
            if not page_token:
                return

    def _url(self, path: str, **query: str) -> str:
        url = f"{self.api_base}/{path}"
        params: Dict[str, str] = {key: value for key, value in query.items() if value}
        if params:
            url = f"{url}?{urlencode(params)}"
        return url


def _seg(value: str) -> str:
    return quote(value, safe="")
