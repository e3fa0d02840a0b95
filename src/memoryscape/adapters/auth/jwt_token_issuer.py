"""Bearer tokens signed with PyJWT."""

from collections.abc import Callable
from datetime import datetime, timedelta

import jwt

from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.errors import Unauthorized


class JwtTokenIssuer:
    """Issues HS256 tokens carrying the user id in ``sub``."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in
        self._clock = clock

    def issue(self, user_id: str) -> str:
        now = self._clock()
        payload = {"sub": user_id, "iat": now, "exp": now + self._expires_in}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise Unauthorized("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise Unauthorized("Invalid token") from e
        return str(payload["sub"])
