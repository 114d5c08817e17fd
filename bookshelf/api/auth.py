# bookshelf/api/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, database, schemas

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=schemas.MessageResponse,
    summary="Register a new user",
    description="""
    Creates a new account.

    **Required fields:** `username` (unique), `password`, `full_name`.

    **Response:** `{"message": "User has been created successfully"}`.
    """,
    responses={400: {"description": "Missing fields or username already taken"}},
)
async def register(
    user: schemas.UserCreate,
    db: AsyncSession = Depends(database.get_db),
    hasher: auth.PasswordHasher = Depends(auth.get_password_hasher),
):
    await auth.register_user(db, hasher, user.username, user.password, user.full_name)
    return {"message": "User has been created successfully"}


@router.post(
    "/login",
    response_model=schemas.LoginResponse,
    summary="Log in and receive a bearer token",
    description="""
    Checks `username` and `password` and returns a signed token.

    **Using the token:** send it as `Authorization: Bearer <token>`.

    **Token lifetime:** one hour by default. There is no server-side session.
    """,
    responses={400: {"description": "Invalid username or password"}},
)
async def login(
    user: schemas.UserLogin,
    db: AsyncSession = Depends(database.get_db),
    hasher: auth.PasswordHasher = Depends(auth.get_password_hasher),
    tokens: auth.TokenService = Depends(auth.get_token_service),
):
    authenticated_user = await auth.authenticate_user(db, hasher, user.username, user.password)
    token = tokens.issue(authenticated_user.id, authenticated_user.full_name)
    return {"message": "Login successfully", "token": token}


@router.post(
    "/logout",
    response_model=schemas.MessageResponse,
    summary="Log out",
    description="""
    Acknowledges the logout. Tokens are stateless, so the client simply discards its token;
    it stays valid until it expires.
    """,
)
async def logout():
    return {"message": "Logged out successfully"}
