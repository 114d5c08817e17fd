# bookshelf/auth.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, models
from .errors import AuthenticationError, InternalError, InvalidCredentials, MissingFields, UsernameTaken

BEARER_PREFIX = "Bearer "
BCRYPT_MAX_BYTES = 72
WWW_AUTHENTICATE = {"WWW-Authenticate": "Bearer"}


class PasswordHasher:
    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        # bcrypt only looks at the first 72 bytes; cut explicitly so hash and verify agree
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(self._encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False


class TokenError(AuthenticationError):
    """A bearer token was rejected. Always answered with 401, whatever the kind."""

    def __init__(self, error_code: str):
        super().__init__("Token is invalid or expired", error_code=error_code, headers=WWW_AUTHENTICATE)


class TokenMalformed(TokenError):
    def __init__(self):
        super().__init__("TOKEN_MALFORMED")


class TokenSignatureInvalid(TokenError):
    def __init__(self):
        super().__init__("TOKEN_SIGNATURE_INVALID")


class TokenExpired(TokenError):
    def __init__(self):
        super().__init__("TOKEN_EXPIRED")


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    full_name: str
    issued_at: Optional[datetime]
    expires_at: datetime


def _from_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


class TokenService:
    """Issues and verifies HMAC-signed JWTs carrying the caller's identity."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=1)):
        if not secret_key:
            raise ValueError("A signing secret must be provided")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: int, full_name: str, ttl: timedelta = None, now: datetime = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        expire = issued_at + (ttl if ttl is not None else self.ttl)
        to_encode = {
            "sub": str(user_id),
            "full_name": full_name,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenMalformed()

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTClaimsError:
            raise TokenMalformed()
        except JWTError:
            raise TokenSignatureInvalid()

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                full_name=payload.get("full_name", ""),
                issued_at=_from_timestamp(payload.get("iat")),
                expires_at=_from_timestamp(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            raise TokenMalformed()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


async def register_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    username: Optional[str],
    password: Optional[str],
    full_name: Optional[str],
) -> models.User:
    if _blank(username) or _blank(password) or _blank(full_name):
        raise MissingFields()

    try:
        if await crud.get_user_by_username(db, username) is not None:
            raise UsernameTaken(username)
        password_hash = await run_in_threadpool(hasher.hash, password)
        user = await crud.create_user(db, username, password_hash, full_name)
    except IntegrityError:
        # lost a race with a concurrent registration of the same name
        await db.rollback()
        raise UsernameTaken(username)
    except crud.STORE_ERRORS as exc:
        logger.error(f"Could not register user {username!r}: {type(exc).__name__}: {exc}")
        raise InternalError("Internal server error") from exc

    logger.info(f"Registered user {username!r} (id={user.id})")
    return user


async def authenticate_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    username: Optional[str],
    password: Optional[str],
) -> models.User:
    if _blank(username) or _blank(password):
        raise MissingFields()

    try:
        user = await crud.get_user_by_username(db, username)
        if user is None:
            raise InvalidCredentials(reason="user_not_found")
        if not await run_in_threadpool(hasher.verify, password, user.password_hash):
            raise InvalidCredentials(reason="password_mismatch")
        await crud.touch_last_login(db, user)
    except InvalidCredentials as exc:
        logger.info(f"Login failed for {username!r}: {exc.reason}")
        raise
    except crud.STORE_ERRORS as exc:
        logger.error(f"Could not authenticate {username!r}: {type(exc).__name__}: {exc}")
        raise InternalError("Internal server error") from exc

    logger.info(f"User {username!r} (id={user.id}) logged in")
    return user


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_token_from_header(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def get_current_user(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    token = get_token_from_header(request)
    if token is None:
        raise AuthenticationError(
            "No token provided or invalid format",
            error_code="MISSING_TOKEN",
            headers=WWW_AUTHENTICATE,
        )
    try:
        claims = tokens.verify(token)
    except TokenError as exc:
        logger.info(f"Rejected bearer token on {request.method} {request.url.path}: {exc.error_code}")
        raise
    request.state.user = claims
    return claims


def current_user_id(claims: TokenClaims = Depends(get_current_user)) -> int:
    return claims.user_id
