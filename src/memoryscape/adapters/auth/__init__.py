"""Identity adapters: bearer tokens and password hashing."""

from memoryscape.adapters.auth.argon2_password_hasher import Argon2PasswordHasher
from memoryscape.adapters.auth.jwt_token_issuer import JwtTokenIssuer

__all__ = ["Argon2PasswordHasher", "JwtTokenIssuer"]
