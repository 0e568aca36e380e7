__all__ = [
    "AuthSettings",
    "AutosaveSettings",
    "LoggingSettings",
    "RetrySettings",
    "Secrets",
    "Settings",
    "SoyuzWebSettings",
    "StorageSettings",
    "WebSettings",
]


from .autosave import AutosaveSettings, RetrySettings
from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .web import AuthSettings, SoyuzWebSettings, WebSettings
