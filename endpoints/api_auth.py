# endpoints/api_auth.py
from fastapi import APIRouter, Depends, Request

from dtos import SessionResponse, SessionUserDTO
from repositories.user_repo import UserRepository
from .utils import get_session_claims, get_user_repo, logout_session

router = APIRouter(prefix="/api/auth")


@router.get("/session", response_model=SessionResponse)
async def current_session(
    request: Request,
    ur: UserRepository = Depends(get_user_repo),
):
    claims = get_session_claims(request)
    if claims is None:
        return SessionResponse(user=None)
    user = await ur.get_by_id(claims.user_id)
    if user is None:
        # Пользователь удалён из базы, а cookie осталась
        logout_session(request)
        return SessionResponse(user=None)
    return SessionResponse(user=SessionUserDTO.model_validate(user))
