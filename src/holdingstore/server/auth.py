"""API credential checks for mutating requests."""

import secrets

from fastapi.security import HTTPBasic, HTTPBasicCredentials

from holdingstore.config import ServerConfig

# Missing credentials arrive as None instead of raising
basic_auth = HTTPBasic(auto_error=False)


def credentials_match(
    credentials: HTTPBasicCredentials | None,
    config: ServerConfig,
) -> bool:
    """Compare basic auth credentials against the configured API user and key.

    Both fields are always compared, in constant time, so the response time
    does not reveal which of the two was wrong.
    """
    if credentials is None:
        return False
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"),
        config.api_user.encode("utf-8"),
    )
    key_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"),
        config.api_key.encode("utf-8"),
    )
    return user_ok and key_ok
