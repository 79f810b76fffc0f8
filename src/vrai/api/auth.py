"""
vrai/api/auth.py — Registration and login.
"""

from fastapi import APIRouter, Depends, status

from vrai.context import AppContext
from vrai.dependencies import get_context
from vrai.models.profile import LoginBody, LoginResult, RegisterBody, RegisterResult
from vrai.services import auth_service

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResult,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(body: RegisterBody, context: AppContext = Depends(get_context)):
    """Creates the account with the auth provider and writes the profile."""
    return await auth_service.register_user(context.remote, body)


@router.post("/login", response_model=LoginResult, summary="Email + password login")
async def login(body: LoginBody, context: AppContext = Depends(get_context)):
    return await auth_service.authenticate(context.remote, body)
