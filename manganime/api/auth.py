import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from manganime.api.deps import get_remote

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/status")
async def auth_status(remote=Depends(get_remote)):
    try:
        user = await remote.current_user()
    except Exception:
        logger.exception("Auth status error")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    if not user:
        return {"authenticated": False}
    return {"authenticated": True, "user": user}
