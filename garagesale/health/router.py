from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from garagesale.health.service import health_reservations_info, health_supabase_info
from garagesale.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/supabase")
def health_supabase():
    info = health_supabase_info()
    return JSONResponse(info, status_code=200 if info["connect_ok"] else 503)

@router.get("/reservations")
def health_reservations():
    return health_reservations_info()

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
