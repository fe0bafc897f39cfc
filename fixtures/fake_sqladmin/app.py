"""Faux serveur Cloud SQL Admin v1 pour les tests d'intégration.

Les opérations sont scriptées : chaque GET sur une opération avance d'un cran
dans sa liste d'instantanés, le dernier restant figé.
"""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Tuple
from urllib.parse import parse_qs, urlparse

PAGE_SIZE = 2


@dataclass
class FakeSqlAdminState:
    operations: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    backup_runs: List[Dict[str, Any]] = field(default_factory=list)
    restore_response: Dict[str, Any] = field(default_factory=dict)
    restore_requests: List[Dict[str, Any]] = field(default_factory=list)
    authorizations: List[str] = field(default_factory=list)
    cursor: Dict[str, int] = field(default_factory=dict)

    def current(self, operation_id: str) -> Dict[str, Any]:
        snapshots = self.operations[operation_id]
        return snapshots[min(self.cursor.get(operation_id, 0), len(snapshots) - 1)]

    def advance(self, operation_id: str) -> Dict[str, Any]:
        snapshot = self.current(operation_id)
        self.cursor[operation_id] = self.cursor.get(operation_id, 0) + 1
        return snapshot


def make_handler(state: FakeSqlAdminState) -> type:
    class FakeSqlAdminHandler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002 - signature imposée
            return

        def do_GET(self) -> None:
            state.authorizations.append(self.headers.get("Authorization", ""))
            url = urlparse(self.path)
            query = parse_qs(url.query)
            parts = url.path.strip("/").split("/")

            # /v1/projects/<p>/operations[/<id>]
            if parts[1:2] == ["projects"] and parts[3:4] == ["operations"]:
                if len(parts) == 4:
                    instance = query.get("instance", [""])[0]
                    items = [
                        state.current(op_id)
                        for op_id in state.operations
                        if not instance or state.current(op_id).get("targetId") == instance
                    ]
                    self._send_page(items, query)
                    return
                operation_id = parts[4]
                if operation_id not in state.operations:
                    self._send(404, {"error": {"code": 404, "message": "operation not found"}})
                    return
                self._send(200, state.advance(operation_id))
                return

            # /v1/projects/<p>/instances/<i>/backupRuns
            if parts[5:6] == ["backupRuns"]:
                self._send_page(state.backup_runs, query)
                return

            self._send(404, {"error": {"code": 404, "message": "unknown path"}})

        def do_POST(self) -> None:
            state.authorizations.append(self.headers.get("Authorization", ""))
            parts = urlparse(self.path).path.strip("/").split("/")
            if parts[5:6] != ["restoreBackup"]:
                self._send(404, {"error": {"code": 404, "message": "unknown path"}})
                return

            length = int(self.headers.get("Content-Length", "0"))
            state.restore_requests.append(json.loads(self.rfile.read(length) or b"{}"))
            self._send(200, state.restore_response)

        def _send_page(self, items: List[Dict[str, Any]], query: Dict[str, List[str]]) -> None:
            start = int(query.get("pageToken", ["0"])[0])
            body: Dict[str, Any] = {"kind": "sql#list", "items": items[start : start + PAGE_SIZE]}
            if start + PAGE_SIZE < len(items):
                body["nextPageToken"] = str(start + PAGE_SIZE)
            self._send(200, body)

        def _send(self, status: int, payload: Dict[str, Any]) -> None:
            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return FakeSqlAdminHandler


def serve(state: FakeSqlAdminState, host: str = "127.0.0.1", port: int = 0) -> Tuple[ThreadingHTTPServer, str]:
    """Démarre le serveur dans un thread ; retourne le serveur et sa base d'API."""

    server = ThreadingHTTPServer((host, port), make_handler(state))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, f"http://{host}:{server.server_address[1]}/v1"


def run() -> None:
    state = FakeSqlAdminState(
        operations={
            "op-1": [
                {
                    "name": "op-1",
                    "status": "DONE",
                    "operationType": "RESTORE_VOLUME",
                    "targetId": "db1",
                    "insertTime": "2024-01-01T00:00:00Z",
                    "endTime": "2024-01-01T00:10:00Z",
                    "backupContext": {"backupId": "bk-1", "kind": "sql#backupContext"},
                }
            ]
        },
        backup_runs=[{"id": "bk-1", "enqueuedTime": "2023-12-31T23:00:00Z", "status": "SUCCESSFUL"}],
    )
    server = ThreadingHTTPServer(("0.0.0.0", 8000), make_handler(state))
    print("Faux Cloud SQL Admin sur :8000/v1")
    server.serve_forever()


if __name__ == "__main__":
    run()
