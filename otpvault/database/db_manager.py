"""
db_manager.py — sqlite-backed secret store.

Each secret (an otpauth URI) is encrypted with Fernet and stored under a fresh
opaque reference. All methods return ``Validated`` results; sqlite and
decryption failures come back as ``StoreError`` values.
"""

import logging
import sqlite3
import uuid

from cryptography.fernet import Fernet, InvalidToken

from .. import config
from ..core.errors import StoreError
from ..core.validated import Validated
from .setup_database import setup_database

logger = logging.getLogger(__name__)


class SecretStore:

    def __init__(self, key: bytes, path: str = config.DATABASE_FILE) -> None:
        self.path = path
        self._fernet = Fernet(key)
        setup_database(path)

    def get_db_connection(self) -> sqlite3.Connection:
        """Connect to the database"""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row  # rows behave like dicts
        return conn

    @staticmethod
    def _label(account: str, service: str) -> str:
        return f"{service} ({account})"

    def _insert(self, cursor, account: str, service: str, value: str) -> str:
        ref = uuid.uuid4().hex
        cursor.execute(
            """INSERT INTO secrets (ref, account, service, label, value)
               VALUES (?, ?, ?, ?, ?)""",
            (ref, account, service, self._label(account, service), self._fernet.encrypt(value.encode("utf-8"))),
        )
        return ref

    def create(self, account: str, service: str, value: str) -> Validated[str]:
        conn = self.get_db_connection()
        try:
            with conn:
                ref = self._insert(conn.cursor(), account, service, value)
            logger.debug("Stored secret %s for %s", ref, self._label(account, service))
            return Validated.valid(ref)
        except sqlite3.Error as e:
            return Validated.invalid(StoreError(f"create failed: {e}"))
        finally:
            conn.close()

    def read(self, ref: str) -> Validated[str]:
        conn = self.get_db_connection()
        try:
            row = conn.execute("SELECT ref, value FROM secrets WHERE ref = ?", (ref,)).fetchone()
        except sqlite3.Error as e:
            return Validated.invalid(StoreError(f"read failed: {e}"))
        finally:
            conn.close()

        if row is None:
            return Validated.invalid(StoreError(f"no secret for reference {ref}"))
        try:
            return Validated.valid(self._fernet.decrypt(row["value"]).decode("utf-8"))
        except InvalidToken:
            return Validated.invalid(StoreError(f"secret {ref} cannot be decrypted with this key"))
        except UnicodeDecodeError:
            return Validated.invalid(StoreError(f"secret {ref} is not valid text"))

    def update(self, ref: str, account: str, service: str, new_value: str) -> Validated[str]:
        """
        Replace a secret, returning its NEW reference.

        The old row is deleted and the new row inserted in one transaction:
        if either step fails, the old secret is still there.
        """
        conn = self.get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM secrets WHERE ref = ?", (ref,))
                if cursor.rowcount == 0:
                    raise LookupError(ref)
                new_ref = self._insert(cursor, account, service, new_value)
            return Validated.valid(new_ref)
        except LookupError:
            return Validated.invalid(StoreError(f"no secret for reference {ref}"))
        except sqlite3.Error as e:
            return Validated.invalid(StoreError(f"update failed: {e}"))
        finally:
            conn.close()

    def delete(self, ref: str) -> Validated[None]:
        conn = self.get_db_connection()
        try:
            with conn:
                cursor = conn.execute("DELETE FROM secrets WHERE ref = ?", (ref,))
            if cursor.rowcount == 0:
                return Validated.invalid(StoreError(f"no secret for reference {ref}"))
            return Validated.valid(None)
        except sqlite3.Error as e:
            return Validated.invalid(StoreError(f"delete failed: {e}"))
        finally:
            conn.close()
