__all__ = [
    "BootConfiguration",
    "BootVariable",
    "di",
    "SoyuzContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, BootVariable, SoyuzContainer
from .provider import LoggingProvider, TimestampProvider
