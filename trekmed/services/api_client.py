import os
import logging
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
TIMEOUT_SECONDS = 10

logger = logging.getLogger("ApiClient")

class BackendError(Exception):
    """Erro devolvido pelo servidor central (status 0 = sem conexão)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def offline(self) -> bool:
        return self.status_code == 0

def _encode_filter(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return "in.(" + ",".join(str(v) for v in value) + ")"
    return str(value)

class ApiClient:
    """
    Cliente HTTP do servidor central: tabelas, autenticação,
    armazenamento de arquivos e feed de mudanças.
    """

    def __init__(self, base_url: str = API_BASE_URL, http: Optional[httpx.Client] = None):
        self.client = http or httpx.Client(base_url=base_url, timeout=TIMEOUT_SECONDS)
        self.token: Optional[str] = None

    def set_token(self, token: Optional[str]):
        self.token = token

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            response = self.client.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Falha de conexão em %s %s: %s", method, path, e)
            raise BackendError(0, "Servidor indisponível. Verifique a conexão.") from e

        if response.is_error:
            try:
                body = response.json()
                detail = body.get("detail") if isinstance(body, dict) else body
            except ValueError:
                detail = response.text
            raise BackendError(response.status_code, str(detail or response.reason_phrase))

        return response.json() if response.content else None

    # --- Autenticação ---
    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def logout(self):
        return self._request("POST", "/auth/logout")

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    def signup(self, **fields) -> Dict[str, Any]:
        return self._request("POST", "/auth/signup", json=fields)

    # --- Tabelas ---
    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {k: _encode_filter(v) for k, v in (filters or {}).items()}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", f"/rest/{table}", params=params)["data"]

    def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        params = {k: _encode_filter(v) for k, v in (filters or {}).items()}
        params.update({"count": "exact", "head": "true"})
        return self._request("GET", f"/rest/{table}", params=params)["count"] or 0

    def insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/rest/{table}", json=payload)

    def update(self, table: str, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/rest/{table}/{record_id}", json=payload)

    def delete(self, table: str, record_id: str):
        return self._request("DELETE", f"/rest/{table}/{record_id}")

    def detailed_atendimentos(
        self, evento_id: Optional[str] = None, atendimento_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params = {}
        if evento_id:
            params["evento_id"] = evento_id
        if atendimento_id:
            params["id"] = atendimento_id
        return self._request("GET", "/atendimentos/detalhados", params=params)["data"]

    def public_eventos(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/public/eventos")["data"]

    # --- Armazenamento ---
    def upload(self, bucket: str, path: str, content: bytes, content_type: str = "image/jpeg") -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/storage/{bucket}/{path}",
            content=content,
            headers={"Content-Type": content_type},
        )

    def public_url(self, bucket: str, path: str) -> str:
        return f"{str(self.client.base_url).rstrip('/')}/storage/{bucket}/{path}"

    # --- Feed de mudanças ---
    def changes(self, table: str, since: Optional[int] = None, evento_id: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if since is not None:
            params["since"] = since
        if evento_id:
            params["evento_id"] = evento_id
        return self._request("GET", f"/changes/{table}", params=params)
