__all__ = [
    "AuthContainer",
    "AutosaveContainer",
    "BootConfiguration",
    "BootVariable",
    "SoyuzContainer",
    "StorageContainer",
]

from .auth import AuthContainer
from .autosave import AutosaveContainer
from .soyuz import BootConfiguration, BootVariable, SoyuzContainer
from .storage import StorageContainer
