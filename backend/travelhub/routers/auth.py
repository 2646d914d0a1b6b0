"""
Identity routes
Tokens are issued elsewhere; this service only reports who a token belongs to
"""
from fastapi import APIRouter, Depends

from travelhub.models.ontology import User
from travelhub.models.schemas import UserResponse
from travelhub.security.auth import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current user"""
    return current_user
