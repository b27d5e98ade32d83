"""
This module manages encryption of the OrthoCompanion records file.

Patient assessments and pain scores are health data, so the records file is
encrypted at rest with `cryptography` Fernet symmetric encryption. The module:
- Generates a secret key the first time one is requested.
- Stores and loads the key from `KEY_FILE` (see `orthocompanion.config`).
- Builds `Fernet` encryptors for the storage layer.

Security Note: the key file must be kept secure and should not be committed to
version control.
"""
# orthocompanion/encryption.py

import logging
from pathlib import Path

from cryptography.fernet import Fernet

from orthocompanion.config import KEY_FILE

logger = logging.getLogger(__name__)


def write_key(key_file: str = KEY_FILE) -> bytes:
    """Generates a new Fernet key and saves it to `key_file`.

    Returns:
        bytes: The generated key.
    """
    key = Fernet.generate_key()
    with open(key_file, "wb") as handle:
        handle.write(key)
    return key


def load_key(key_file: str = KEY_FILE) -> bytes:
    """Loads the Fernet key from `key_file`.

    Raises:
        FileNotFoundError: If the key file does not exist.
    """
    return Path(key_file).read_bytes().strip()


def get_encryptor(key_file: str = KEY_FILE) -> Fernet:
    """Returns a Fernet instance, generating a key on first run."""
    try:
        key = load_key(key_file)
    except FileNotFoundError:
        logger.warning("Encryption key %s not found, generating a new one", key_file)
        key = write_key(key_file)
    return Fernet(key)


if __name__ == '__main__':
    get_encryptor()
    print(f"Encryption key ready at '{KEY_FILE}'.")
