import logging
import os
import sqlite3

from .. import config

logger = logging.getLogger(__name__)


def setup_database(path: str = config.DATABASE_FILE) -> None:
    """Create the secret store schema (safe to call on an existing database)."""

    # Make sure the parent directory exists
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(path)
    cursor = conn.cursor()

    # One row per secret; value holds the encrypted otpauth URI
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS secrets (
        ref TEXT PRIMARY KEY,
        account TEXT NOT NULL,
        service TEXT NOT NULL,
        label TEXT NOT NULL,
        value BLOB NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')

    conn.commit()
    conn.close()
    logger.debug("Secret store schema ready at %s", path)


if __name__ == "__main__":
    setup_database()
