"""
Gestionnaires d'exceptions.
- CheckoutError: réponse JSON {detail, code} avec le statut porté par l'erreur.
- HTTPException: réponse JSON FastAPI standard.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from checkout_service.errors import CheckoutError

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers d'erreurs métier et HTTP.
    - Message toujours affichable tel quel par le front.
    """
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code.value},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
