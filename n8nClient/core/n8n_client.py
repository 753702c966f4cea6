"""Async REST-Client fuer die n8n API v1."""
import json
import logging
from typing import Any, Optional
from urllib.parse import quote, urlencode

import httpx

from n8nClient.core.errors import N8nApiError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _seg(value) -> str:
    """Pfadsegment kodieren (wie encodeURIComponent)."""
    return quote(str(value), safe="!~*'()")


def unwrap_envelope(payload: Any) -> Any:
    """Gibt payload["data"] zurueck falls vorhanden und nicht None, sonst payload."""
    if isinstance(payload, dict) and payload.get("data") is not None:
        return payload["data"]
    return payload


class N8nClient:
    """Asynchroner httpx-Client fuer n8n REST API v1.

    Jeder Aufruf oeffnet einen eigenen ``httpx.AsyncClient``; die Instanz
    haelt ausser ``base_url`` und ``api_key`` keinen Zustand.
    """

    def __init__(self, base_url: str, api_key: str, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, extra: Optional[dict] = None) -> httpx.Headers:
        headers = httpx.Headers({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-N8N-API-KEY": self.api_key,
        })
        if extra:
            headers.update(extra)
        return headers

    async def request(self, path: str, method: str = "GET",
                      headers: Optional[dict] = None, body: Any = None) -> Any:
        """Fuehrt genau einen HTTP-Request aus.

        Raises:
            N8nApiError: Status ausserhalb 2xx.
            httpx.RequestError: Netzwerkfehler (unveraendert durchgereicht).
        """
        url = f"{self.base_url}{path}"
        content = json.dumps(body) if body is not None else None
        logger.debug("%s %s", method, url)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            req = client.build_request(method, url, headers=self._headers(headers), content=content)
            # stream=True: Body erst nach der Statuspruefung lesen
            resp = await client.send(req, stream=True)
            try:
                if not resp.is_success:
                    try:
                        await resp.aread()
                        text = resp.text
                    except httpx.HTTPError:
                        text = ""
                    logger.warning("n8n API %s %s -> %s", method, path, resp.status_code)
                    raise N8nApiError(resp.status_code, resp.reason_phrase, text)

                await resp.aread()
                if "application/json" in resp.headers.get("content-type", ""):
                    return unwrap_envelope(resp.json())
                return resp.text
            finally:
                await resp.aclose()

    # ── Instanz ──────────────────────────────────────────────────────

    async def get_instance_info(self):
        return await self.request(f"{API_PREFIX}/health")

    async def get_instance_version(self):
        return await self.request(f"{API_PREFIX}/settings")

    # ── Workflows ────────────────────────────────────────────────────

    async def list_workflows(self):
        return await self.request(f"{API_PREFIX}/workflows")

    async def get_workflow(self, workflow_id: str):
        return await self.request(f"{API_PREFIX}/workflows/{_seg(workflow_id)}")

    async def create_workflow(self, data: dict):
        return await self.request(f"{API_PREFIX}/workflows", method="POST", body=data)

    async def update_workflow(self, workflow_id: str, data: dict):
        return await self.request(f"{API_PREFIX}/workflows/{_seg(workflow_id)}",
                                  method="PATCH", body=data)

    async def delete_workflow(self, workflow_id: str):
        return await self.request(f"{API_PREFIX}/workflows/{_seg(workflow_id)}", method="DELETE")

    async def execute_workflow(self, workflow_id: str, data: Optional[dict] = None):
        return await self.request(f"{API_PREFIX}/workflows/{_seg(workflow_id)}/execute",
                                  method="POST", body={"data": data if data is not None else {}})

    async def activate_workflow(self, workflow_id: str):
        return await self.update_workflow(workflow_id, {"active": True})

    async def deactivate_workflow(self, workflow_id: str):
        return await self.update_workflow(workflow_id, {"active": False})

    # ── Executions ───────────────────────────────────────────────────

    async def get_executions(self, limit: Optional[int] = None, last_id: Optional[str] = None):
        query = {}
        if limit is not None:
            query["limit"] = str(limit)
        if last_id is not None:
            query["lastId"] = last_id
        suffix = f"?{urlencode(query)}" if query else ""
        return await self.request(f"{API_PREFIX}/executions{suffix}")

    async def get_execution(self, execution_id: str):
        return await self.request(f"{API_PREFIX}/executions/{_seg(execution_id)}")

    async def stop_execution(self, execution_id: str):
        return await self.request(f"{API_PREFIX}/executions/{_seg(execution_id)}",
                                  method="POST", body={"stop": True})

    # ── Tags ─────────────────────────────────────────────────────────

    async def list_tags(self):
        return await self.request(f"{API_PREFIX}/tags")

    async def create_tag(self, data: dict):
        return await self.request(f"{API_PREFIX}/tags", method="POST", body=data)

    # ── Credentials ──────────────────────────────────────────────────

    async def list_credentials(self):
        return await self.request(f"{API_PREFIX}/credentials")

    async def get_credential(self, credential_id: str):
        return await self.request(f"{API_PREFIX}/credentials/{_seg(credential_id)}")

    async def create_credential(self, data: dict):
        return await self.request(f"{API_PREFIX}/credentials", method="POST", body=data)

    async def update_credential(self, credential_id: str, data: dict):
        return await self.request(f"{API_PREFIX}/credentials/{_seg(credential_id)}",
                                  method="PATCH", body=data)

    async def delete_credential(self, credential_id: str):
        return await self.request(f"{API_PREFIX}/credentials/{_seg(credential_id)}", method="DELETE")

    # ── Node-Typen ───────────────────────────────────────────────────

    async def list_node_types(self):
        return await self.request(f"{API_PREFIX}/node-types")

    async def get_node_type(self, name: str):
        """Laedt die komplette Liste und sucht clientseitig nach exaktem Namen."""
        types = await self.request(f"{API_PREFIX}/node-types")
        if not isinstance(types, list):
            return None
        for node_type in types:
            if isinstance(node_type, dict) and node_type.get("name") == name:
                return node_type
        return None

    # ── Variablen ────────────────────────────────────────────────────

    async def list_variables(self):
        return await self.request(f"{API_PREFIX}/variables")

    async def get_variable(self, variable_id: str):
        return await self.request(f"{API_PREFIX}/variables/{_seg(variable_id)}")

    async def create_variable(self, data: dict):
        return await self.request(f"{API_PREFIX}/variables", method="POST", body=data)

    async def update_variable(self, variable_id: str, data: dict):
        return await self.request(f"{API_PREFIX}/variables/{_seg(variable_id)}",
                                  method="PATCH", body=data)

    async def delete_variable(self, variable_id: str):
        return await self.request(f"{API_PREFIX}/variables/{_seg(variable_id)}", method="DELETE")

    # ── Diagnose ─────────────────────────────────────────────────────

    async def test_connection(self) -> bool:
        try:
            await self.list_workflows()
            return True
        except Exception as e:
            logger.debug("Verbindungstest fehlgeschlagen: %s", e)
            return False

    async def self_test(self) -> dict:
        """Statusbericht statt Exception: {"status", "message", "details"}."""
        try:
            workflows = await self.list_workflows()
        except Exception as e:
            logger.debug("Selbsttest fehlgeschlagen: %s", e)
            return {
                "status": "error",
                "message": str(e) or "Verbindung fehlgeschlagen",
                "details": {"error": f"{type(e).__name__}: {e}"},
            }
        return {
            "status": "ok",
            "message": "Verbindung erfolgreich",
            "details": {
                "workflowCount": len(workflows) if isinstance(workflows, list) else 0,
            },
        }
