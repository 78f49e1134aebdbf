from fastapi import APIRouter, Request
from checkout_service.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    store = getattr(request.app.state, "checkouts", None)
    return {"ok": True, "active_checkouts": store.active_count() if store is not None else 0}

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
