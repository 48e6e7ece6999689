from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tasktracker.auth.jwt_handler import TokenService
from tasktracker.core.errors import UnauthorizedError

# auto_error=False: a missing or non-bearer header resolves to an anonymous caller.
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    user_id: int | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = RequestContext()


@lru_cache(maxsize=1)
def get_token_service() -> TokenService:
    return TokenService.from_config()


def resolve_request_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> RequestContext:
    if credentials is None or not credentials.credentials:
        return ANONYMOUS

    claims = token_service.verify(credentials.credentials)
    if claims is None:
        return ANONYMOUS
    return RequestContext(user_id=claims.user_id)


def require_user_id(context: RequestContext = Depends(resolve_request_context)) -> int:
    if not context.is_authenticated:
        raise UnauthorizedError()
    return context.user_id
