"""
Client HTTP partagé vers l'API billetterie distante.
- Une seule instance httpx.AsyncClient par processus (fermée par le lifespan).
- Helpers d'en-têtes (Bearer) et de lecture des messages d'erreur de l'API.
"""
from typing import Any, Dict, Optional
import httpx
from checkout_service.config import API_BASE_URL, API_TIMEOUT_SECONDS

_client: Optional[httpx.AsyncClient] = None

def get_api_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            base_url=API_BASE_URL,
            timeout=API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )
    return _client

async def close_api_client() -> None:
    """Ferme le client partagé (appelé à l'arrêt de l'application)."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None

def auth_headers(access_token: Optional[str]) -> Dict[str, str]:
    """
    En-têtes d'authentification pour agir au nom de l'acheteur.
    - Retourne {} pour un achat invité (pas de token).
    """
    if not access_token:
        return {}
    return {"Authorization": f"Bearer {access_token}"}

def error_detail(response: httpx.Response, fallback: str) -> str:
    """
    Extrait le message lisible d'une réponse d'erreur de l'API.
    - Format FastAPI attendu: {"detail": "..."}; sinon {"message": "..."}.
    - detail peut être une liste (erreurs 422): on prend le premier "msg".
    """
    try:
        body: Any = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    detail = body.get("detail") or body.get("message")
    if isinstance(detail, list) and detail:
        first = detail[0]
        detail = first.get("msg") if isinstance(first, dict) else str(first)
    return str(detail) if detail else fallback
