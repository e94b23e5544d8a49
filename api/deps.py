from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from exceptions import AuthenticationError
from repositories.entries import EntryRepository, SqlEntryRepository
from services.entries import EntryService
from services.session import SessionUser, SessionVerifier, session_verifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_verifier() -> SessionVerifier:
    return session_verifier


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return credentials.credentials


def require_session(
    token: str = Depends(get_bearer_token),
    verifier: SessionVerifier = Depends(get_session_verifier),
) -> SessionUser:
    return verifier.verify(token)


def get_entry_repository(db: AsyncSession = Depends(get_db)) -> EntryRepository:
    return SqlEntryRepository(db)


def get_entry_service(repository: EntryRepository = Depends(get_entry_repository)) -> EntryService:
    return EntryService(repository)
