from typing import Optional
from fastapi import Request

ACCESS_COOKIE_NAME = "access_token"

def extract_access_token(request: Request) -> Optional[str]:
    """
    Jeton de l'acheteur à transmettre à l'API billetterie.
    - Hybride: priorité au Bearer, fallback cookie.
    - None: achat invité (l'API décide si c'est autorisé).
    """
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(ACCESS_COOKIE_NAME)
    return token or None
