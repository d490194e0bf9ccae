from .credentials import CredentialGate
from .storage_service import StorageService

__all__ = [
    "CredentialGate",
    "StorageService",
]
