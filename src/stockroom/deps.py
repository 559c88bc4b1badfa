"""Dependencies for FastAPI endpoints."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stockroom.services.alerts import slack_client_from_settings
from stockroom.services.notifications.slack import SlackClient
from stockroom.settings import Settings, get_settings

security = HTTPBearer(auto_error=False)


def get_now() -> datetime:
    """Current instant, read once per request."""
    return datetime.now(timezone.utc)


def get_slack_client(settings: Settings = Depends(get_settings)) -> SlackClient:
    return slack_client_from_settings(settings)


async def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>` when a secret is configured."""
    if not settings.cron_secret:
        return
    if credentials is None or credentials.credentials != settings.cron_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
