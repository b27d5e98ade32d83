"""
This is the main entry point for the OrthoCompanion Streamlit application.

This script handles the following key responsibilities:
- Configures logging and the Streamlit page.
- Initializes the `RecoveryStore`, which manages all persisted data.
- Manages the session state to track the signed-in patient and the auth flow.
- Routes the user to the authentication pages or the main app.

Run with `streamlit run main.py`.
"""
# main.py

import streamlit as st

from orthocompanion.config import configure_logging
from orthocompanion.storage import RecoveryStore
import gui

configure_logging()

st.set_page_config(
    page_title="OrthoCompanion",
    layout="wide"
)


@st.cache_resource
def get_store():
    """
    Initializes and returns the application's `RecoveryStore`.

    Decorated with `@st.cache_resource` so the store is created once and shared
    across reruns.

    Returns:
        RecoveryStore: The store instance.
    """
    return RecoveryStore()


store = get_store()

if 'current_patient' not in st.session_state:
    st.session_state.current_patient = None
if 'auth_page' not in st.session_state:
    st.session_state.auth_page = 'welcome'

if st.session_state.current_patient:
    # The cached store is shared, so re-establish this browser session's patient.
    store.sign_in(st.session_state.current_patient.patient_id)
    gui.show_main_app(store)
else:
    if st.session_state.auth_page == 'welcome':
        gui.show_welcome_page()
    elif st.session_state.auth_page == 'sign_in':
        gui.show_sign_in_form(store)
    elif st.session_state.auth_page == 'register':
        gui.show_register_form(store)
