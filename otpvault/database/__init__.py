"""
Storage adapters: the encrypted sqlite secret store and the JSON list of
secret references that fixes display order.
"""

from .db_manager import SecretStore
from .keyfile import load_or_create_key
from .refs import ReferenceList

__all__ = ["SecretStore", "ReferenceList", "load_or_create_key"]
