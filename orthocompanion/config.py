"""
This module holds the runtime configuration for the OrthoCompanion application.

Settings are read once from environment variables so that the Streamlit app, the
tests and any scripts share the same defaults:
- `ORTHOCOMPANION_DATA_FILE`: path of the encrypted records file.
- `ORTHOCOMPANION_KEY_FILE`: path of the Fernet key used to encrypt it.
- `ORTHOCOMPANION_LOG_LEVEL`: logging level name (e.g. DEBUG, INFO).
- `ORTHOCOMPANION_GEMINI_MODEL`: model name used for assistant fallback answers.
- `GEMINI_API_KEY`: optional, may also be provided through Streamlit secrets.
"""
# orthocompanion/config.py

import logging
import os

DATA_FILE = os.environ.get("ORTHOCOMPANION_DATA_FILE", "records.json")
KEY_FILE = os.environ.get("ORTHOCOMPANION_KEY_FILE", "secret.key")
LOG_LEVEL = os.environ.get("ORTHOCOMPANION_LOG_LEVEL", "INFO")
GEMINI_MODEL = os.environ.get("ORTHOCOMPANION_GEMINI_MODEL", "gemma-3-27b-it")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configures the root logger for the application.

    Args:
        level: A logging level name. Defaults to `LOG_LEVEL`.
    """
    level_name = (level or LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def get_gemini_api_key() -> str | None:
    """Returns the Gemini API key from the environment or Streamlit secrets, if any."""
    key = os.environ.get("GEMINI_API_KEY")
    if key:
        return key
    import streamlit as st

    try:
        return st.secrets["GEMINI_API_KEY"]
    except (FileNotFoundError, KeyError):
        return None
