from fastapi import APIRouter, Depends

from api.deps import get_bearer_token, get_session_verifier, require_session
from services.session import SessionUser, SessionVerifier

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("", response_model=SessionUser)
async def current_session(user: SessionUser = Depends(require_session)):
    return user


@router.post("/sign-out", status_code=204)
async def sign_out(
    token: str = Depends(get_bearer_token),
    verifier: SessionVerifier = Depends(get_session_verifier),
):
    verifier.sign_out(token)
    return None
