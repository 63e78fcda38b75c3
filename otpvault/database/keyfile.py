"""
The Fernet key that encrypts secrets at rest.

Keep the key file somewhere safe (mode 600) and out of version control.
"""

import logging
import os
import shutil

from cryptography.fernet import Fernet

from .. import config

logger = logging.getLogger(__name__)


def load_or_create_key(path: str = config.KEY_FILE) -> bytes:
    """
    Return the key stored at ``path``, creating it on first use.

    - A readable, well-formed key is returned as-is.
    - Otherwise a new key is generated; a previous unusable file is kept as
      ``path + ".bak"``.
    - The new file's permission is restricted to 0o600 where the filesystem
      allows it.
    """
    if os.path.exists(path):
        with open(path, "rb") as f:
            key = f.read().strip()
        try:
            Fernet(key)
            return key
        except ValueError:
            logger.warning("Key file %s is not a valid Fernet key; keeping a backup at %s.bak", path, path)
            shutil.copy2(path, path + ".bak")

    key = Fernet.generate_key()
    with open(path, "wb") as f:
        f.write(key + b"\n")
    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.warning("Unable to chmod key file %s to 600", path)
    logger.info("Generated new secret store key at %s", path)
    return key
