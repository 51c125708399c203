from authx import AuthX, AuthXConfig, TokenPayload
from fastapi import Depends

from core.config import settings

# Tokens are issued by the external identity provider; this service only verifies them.
config = AuthXConfig(
    JWT_SECRET_KEY=settings.SECRET_KEY,
    JWT_ALGORITHM=settings.JWT_ALG,
    JWT_TOKEN_LOCATION=settings.JWT_TOKEN_LOCATION,
)

security = AuthX(config=config)


def get_owner_id(payload: TokenPayload = Depends(security.access_token_required)) -> str:
    return str(payload.sub)
