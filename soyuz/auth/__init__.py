__all__ = [
    "JWTManager",
    "TokenData",
]

from .jwt import JWTManager, TokenData
