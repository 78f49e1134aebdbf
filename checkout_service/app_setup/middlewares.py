"""
Middlewares transverses de l'application.
- SessionMiddleware: cookie signé portant l'identifiant du checkout (équivalent du sessionStorage de l'onglet).
- CORS et TrustedHost pour le front.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.sessions import SessionMiddleware
from checkout_service.config import (
    ALLOWED_HOSTS,
    COOKIE_SECURE,
    CORS_ORIGINS,
    SESSION_COOKIE_NAME,
    SESSION_SECRET_KEY,
)

def register_basic_middlewares(app: FastAPI) -> None:
    """
    Ajoute les middlewares « de base »: session, CORS, TrustedHost.
    - Session sans max_age: le cookie disparaît à la fermeture du navigateur.
    """
    app.add_middleware(
        SessionMiddleware,
        secret_key=SESSION_SECRET_KEY,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=None,
        same_site="lax",
        https_only=COOKIE_SECURE,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )
