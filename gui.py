"""
This module defines the graphical user interface (GUI) for OrthoCompanion using Streamlit.

It includes functions for rendering the sign-in and enrolment pages, the patient
hub menu, and the feature pages: the progress dashboard with outcomes analytics,
the daily check-in, the ODI questionnaire, the VAS pain log, the recovery
assistant chat and the profile editor.

The main entry point for the UI is `show_main_app`, which routes the signed-in
patient to the selected page.
"""
# gui.py

import datetime
import logging

import pandas as pd
import streamlit as st

from orthocompanion import analytics, odi
from orthocompanion.assistant import QUICK_REPLIES, RecoveryAssistant
from orthocompanion.insights import build_insights
from orthocompanion.models import (
    FUNCTIONAL_ACTIVITIES,
    PAIN_CHARACTERS,
    PAIN_LOCATIONS,
    TREATMENT_TYPES,
    CheckIn,
    PainScore,
)
from orthocompanion.storage import DataAccessError

logger = logging.getLogger(__name__)

TREATMENT_LABELS = {
    'surgery_planned': "Surgery Planned",
    'post_surgery': "Post-Surgery",
    'injury_recovery': "Injury Recovery",
    'chronic': "Chronic Condition",
}

TIME_RANGES = {
    "Last week": 7,
    "Last month": 30,
    "Last 3 months": 90,
    "All time": None,
}

INSIGHT_RENDERERS = {
    "success": st.success,
    "info": st.info,
    "warning": st.warning,
}


def _format_timestamp(timestamp_str):
    """Converts an ISO 8601 timestamp string into a human-readable local time format.

    Args:
        timestamp_str (str): The ISO-formatted timestamp string.

    Returns:
        str: A formatted string (e.g., "Jan 01, 2025 • 14:30") or the original
             string if conversion fails.
    """
    if not timestamp_str:
        return "Unknown time"
    try:
        timestamp = datetime.datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
        return timestamp.astimezone().strftime("%b %d, %Y • %H:%M")
    except ValueError:
        return timestamp_str


def filter_by_range(assessments, days, today=None):
    """Keeps assessments from the last `days` days. `None` keeps everything."""
    if days is None:
        return list(assessments)
    today = today or datetime.date.today()
    return [a for a in assessments if (today - a.assessment_date).days <= days]


def assessments_frame(assessments):
    """Builds the chart data for ODI history, indexed by assessment date."""
    frame = pd.DataFrame(
        [{"Date": a.assessment_date, "ODI %": a.percentage_score} for a in assessments],
        columns=["Date", "ODI %"],
    )
    return frame.set_index("Date")


# Page navigation helpers
def set_page_welcome():
    """Sets the session state to display the welcome page."""
    st.session_state.auth_page = 'welcome'

def set_page_sign_in():
    """Sets the session state to display the sign-in page."""
    st.session_state.auth_page = 'sign_in'

def set_page_register():
    """Sets the session state to display the enrolment page."""
    st.session_state.auth_page = 'register'


# Authentication Pages
def show_welcome_page():
    """Displays the welcome screen with sign-in and enrolment options."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h1 style='text-align: center;'>Welcome to OrthoCompanion</h1>", unsafe_allow_html=True)
        st.markdown("<p style='text-align: center;'>Track your recovery, one check-in at a time.</p>",
                    unsafe_allow_html=True)
        st.button("Sign In", on_click=set_page_sign_in, use_container_width=True, type="primary")
        st.button("Start Tracking My Recovery", on_click=set_page_register, use_container_width=True)


def show_sign_in_form(store):
    """Displays the sign-in form.

    Args:
        store: The application's `RecoveryStore`.
    """
    st.button("← Back to Welcome", on_click=set_page_welcome)
    with st.form("sign_in_form"):
        patient_id = st.text_input("Patient ID")
        submitted = st.form_submit_button("Sign In", use_container_width=True)
        if submitted:
            if not patient_id:
                st.error("Patient ID is required.")
            else:
                profile = store.sign_in(patient_id.strip())
                if profile:
                    st.session_state.current_patient = profile
                    st.session_state.auth_page = 'welcome'
                    st.rerun()
                else:
                    st.error("No patient found with that ID.")


def show_register_form(store):
    """Displays the enrolment form for new patients.

    Args:
        store: The application's `RecoveryStore`.
    """
    st.button("← Back to Welcome", on_click=set_page_welcome)
    with st.form("register_form"):
        full_name = st.text_input("Full Name")
        patient_id = st.text_input("Choose a Patient ID")
        treatment_type = st.selectbox("Treatment", TREATMENT_TYPES, format_func=TREATMENT_LABELS.get)
        condition = st.text_input("Condition", help="e.g. L4-L5 disc herniation")
        surgery_date = st.date_input("Surgery date (if applicable)", value=None)
        submitted = st.form_submit_button("Create Profile", use_container_width=True)

        if submitted:
            if not full_name or not patient_id:
                st.error("Full name and Patient ID are required.")
                return
            result = store.register_patient(
                patient_id.strip(),
                full_name.strip(),
                treatment_type,
                condition=condition.strip(),
                surgery_date=surgery_date.isoformat() if surgery_date else None,
            )
            if result is True:
                st.success("Profile created! You can now sign in.")
                st.session_state.auth_page = 'sign_in'
            elif result == 'invalid_treatment':
                st.error("Please choose a valid treatment type.")
            else:
                st.error("That Patient ID is already taken.")


def show_main_app(store):
    """
    The main application router for a signed-in patient.

    Args:
        store: The application's `RecoveryStore`.
    """
    profile = st.session_state.current_patient

    if 'page' not in st.session_state:
        st.session_state.page = None

    menu_items = [
        ("My Progress", "progress", "See your ODI trend, recovery analytics and how you compare."),
        ("Daily Check-In", "check_in", "Tell us how today went: pain, mobility, mood and sleep."),
        ("ODI Assessment", "odi", "Complete the 10-section Oswestry Disability Index questionnaire."),
        ("Log Pain", "pain", "Record today's pain on the 0-10 visual analog scale."),
        ("Ask OrthoAI", "assistant", "Get quick answers about pain, exercise and getting back to driving."),
        ("My Profile", "profile", "Update your treatment details."),
    ]

    if st.session_state.page is None:
        st.markdown(f"## Recovery Hub: {profile.full_name or profile.patient_id}")
        st.caption(f"Patient ID: {profile.patient_id}")
        st.divider()
        for idx, (label, value, description) in enumerate(menu_items):
            if st.button(label, key=f"menu_btn_{idx}", use_container_width=True):
                st.session_state.page = value
                st.rerun()
            st.caption(description)
        st.divider()
        if st.button("Sign Out", key="sign_out_btn", use_container_width=True):
            store.sign_out()
            st.session_state.current_patient = None
            st.session_state.auth_page = 'welcome'
            st.rerun()
        return

    if st.button("← Back to Main Menu"):
        st.session_state.page = None
        st.rerun()

    pages = {
        "progress": _render_progress_page,
        "check_in": _render_check_in_page,
        "odi": _render_odi_page,
        "pain": _render_pain_page,
        "assistant": _render_assistant_page,
        "profile": _render_profile_page,
    }
    renderer = pages.get(st.session_state.page)
    if renderer is None:
        st.session_state.page = None
        st.rerun()
    try:
        renderer(store, profile)
    except DataAccessError as e:
        logger.warning("Data access failed on page %s: %s", st.session_state.page, e)
        st.error("We couldn't load your data. Please sign in again.")


def _render_progress_page(store, profile):
    """Renders the progress dashboard: ODI history chart, analytics and benchmark."""
    st.markdown("<h2 style='text-align: center;'>My Progress</h2>", unsafe_allow_html=True)
    assessments = store.fetch_assessments(profile.patient_id)
    if not assessments:
        st.info("Complete your first ODI assessment to start tracking your progress.")
        return

    latest = assessments[-1]
    previous = assessments[-2] if len(assessments) > 1 else None
    delta = latest.percentage_score - previous.percentage_score if previous else None
    st.metric("Latest ODI", f"{latest.percentage_score:.0f}%",
              delta=f"{delta:+.0f}" if delta is not None else None, delta_color="inverse")
    st.caption(f"Disability level: {latest.disability_level or odi.disability_level(latest.percentage_score)}")

    range_label = st.selectbox("Time range", list(TIME_RANGES), index=2)
    filtered = filter_by_range(assessments, TIME_RANGES[range_label])
    if filtered:
        st.line_chart(assessments_frame(filtered))
    else:
        st.info("No assessments in selected time range.")

    snapshot = analytics.compute_analytics(store, profile.patient_id)
    comparison = analytics.get_benchmark_comparison(
        store,
        latest.percentage_score,
        analytics.benchmark_treatment_for(profile.treatment_type),
        snapshot.weeks_since_baseline,
    )

    st.subheader("Recovery Analytics")
    c1, c2, c3 = st.columns(3)
    c1.metric("Weeks since baseline", snapshot.weeks_since_baseline)
    c2.metric("Days to MCID", snapshot.time_to_mcid_days if snapshot.time_to_mcid_days is not None else "—")
    slope = snapshot.trajectory_slope_per_week
    c3.metric("Change per week", f"{slope:+.1f}%" if slope is not None else "—")

    for insight in build_insights(snapshot, comparison):
        INSIGHT_RENDERERS[insight.kind](f"**{insight.title}** {insight.message}")

    if comparison is not None:
        st.subheader("Population Comparison")
        comparison_frame = pd.DataFrame(
            {"ODI %": [latest.percentage_score, comparison.mean]},
            index=["Your score", "Average score"],
        )
        st.bar_chart(comparison_frame)

    with st.expander("Latest Assessment Breakdown"):
        for key, title, _ in odi.ODI_SECTIONS:
            value = latest.section_scores.get(key)
            if value is None:
                continue
            st.write(f"{title}: {value}/{odi.MAX_SECTION_SCORE}")
            st.progress(value / odi.MAX_SECTION_SCORE)


def _render_check_in_page(store, profile):
    """Renders the daily check-in form and the mobility and pain trend."""
    st.markdown("<h2 style='text-align: center;'>Daily Check-In</h2>", unsafe_allow_html=True)
    today = datetime.date.today()
    if store.has_checked_in(profile.patient_id, today):
        st.info("You've already checked in today. You can add another entry if things have changed.")

    with st.form("check_in_form"):
        st.subheader("Pain Assessment")
        pain_level = st.slider("Pain today (0 = no pain, 10 = worst pain)", 0, 10, 5)
        location_cols = st.columns(len(PAIN_LOCATIONS))
        pain_location = {
            area: col.checkbox(area.capitalize(), key=f"check_in_loc_{area}")
            for col, area in zip(location_cols, PAIN_LOCATIONS)
        }
        pain_character = st.multiselect("Pain character", PAIN_CHARACTERS)

        st.subheader("Mobility Assessment")
        mobility_score = st.slider("Overall mobility", 0, 100, 50)
        activities = {
            key: st.checkbox(label, key=f"check_in_activity_{key}")
            for key, label in FUNCTIONAL_ACTIVITIES.items()
        }

        st.subheader("Wellbeing")
        mood_rating = st.slider("Mood (1 = very low, 5 = very good)", 1, 5, 3)
        sleep_quality = st.slider("Sleep quality", 1, 5, 3)
        sleep_duration = st.number_input("Hours slept", min_value=0.0, max_value=24.0, value=7.0, step=0.5)
        notes = st.text_area("Additional notes (optional)",
                             placeholder="Anything else you'd like to share about today?")
        submitted = st.form_submit_button("Save Today's Check-In", use_container_width=True)

    if submitted:
        check_in = CheckIn(
            profile.patient_id, today, pain_level,
            pain_location=pain_location,
            pain_character=pain_character,
            mobility_score=mobility_score,
            functional_activities=activities,
            mood_rating=mood_rating,
            sleep_quality=sleep_quality,
            sleep_duration=sleep_duration,
            notes=notes,
        )
        try:
            store.add_check_in(check_in)
        except ValueError as e:
            st.error(str(e))
            return
        st.success(f"Check-in saved. You completed {check_in.activities_completed} of "
                   f"{len(FUNCTIONAL_ACTIVITIES)} daily activities.")

    check_ins = store.fetch_check_ins(profile.patient_id)
    if check_ins:
        frame = pd.DataFrame(
            [{"Date": c.check_in_date, "Mobility": c.mobility_score, "Pain x10": c.pain_level * 10}
             for c in check_ins],
        ).set_index("Date")
        st.line_chart(frame)


def _render_odi_page(store, profile):
    """Renders the ODI questionnaire form and stores the scored assessment."""
    st.markdown("<h2 style='text-align: center;'>Oswestry Disability Index</h2>", unsafe_allow_html=True)
    st.caption("For each section, choose the one statement that best describes you today.")
    with st.form("odi_form"):
        responses = {}
        for key, title, options in odi.ODI_SECTIONS:
            choice = st.radio(title, options, index=None, key=f"odi_{key}")
            responses[key] = options.index(choice) if choice is not None else None
        submitted = st.form_submit_button("Submit Assessment", use_container_width=True)

    if submitted:
        try:
            assessment = odi.build_assessment(profile.patient_id, responses)
        except ValueError as e:
            st.error(str(e))
            return
        store.add_assessment(assessment)
        st.success(f"Assessment saved. Your ODI score is {assessment.percentage_score:.0f}% "
                   f"({assessment.disability_level}).")


def _render_pain_page(store, profile):
    """Renders the VAS pain log form and recent readings."""
    st.markdown("<h2 style='text-align: center;'>Log Pain</h2>", unsafe_allow_html=True)
    with st.form("pain_form"):
        score = st.slider("Pain (0 = no pain, 10 = worst imaginable)", 0, 10, 5)
        location = st.text_input("Where is the pain?", value="lower_back")
        description = st.text_area("Describe the pain (optional)")
        recorded_date = st.date_input("Date", value=datetime.date.today())
        submitted = st.form_submit_button("Save", use_container_width=True)

    if submitted:
        store.add_pain_score(PainScore(profile.patient_id, recorded_date, score,
                                       pain_location=location, pain_description=description))
        st.success("Pain score saved.")

    readings = store.fetch_pain_scores(profile.patient_id)
    if readings:
        frame = pd.DataFrame(
            [{"Date": r.recorded_date, "Pain": r.pain_score} for r in readings],
        ).set_index("Date")
        st.line_chart(frame)


def _render_assistant_page(store, profile):
    """Renders the OrthoAI assistant conversation."""
    st.markdown("<h2 style='text-align: center;'>OrthoAI Assistant</h2>", unsafe_allow_html=True)
    assistant = RecoveryAssistant(store)
    messages = assistant.start_conversation(profile)

    for message in messages:
        role = "user" if message.get('sender') == 'patient' else "assistant"
        with st.chat_message(role, avatar="🙂" if role == "user" else "🩺"):
            st.write(message.get('text', ''))
            st.caption(_format_timestamp(message.get('timestamp')))

    prompt = None
    if len(messages) == 1:
        cols = st.columns(len(QUICK_REPLIES))
        for col, quick_reply in zip(cols, QUICK_REPLIES):
            if col.button(quick_reply, key=f"quick_{quick_reply}"):
                prompt = quick_reply

    typed = st.chat_input("Ask me anything...")
    prompt = typed or prompt
    if prompt:
        assistant.send_message(profile, prompt)
        st.rerun()

    if len(messages) > 1 and st.button("Clear conversation"):
        store.clear_chat_messages(profile.patient_id)
        st.rerun()


def _render_profile_page(store, profile):
    """Renders the profile editor."""
    st.markdown("<h2 style='text-align: center;'>My Profile</h2>", unsafe_allow_html=True)
    with st.form("profile_form"):
        full_name = st.text_input("Full Name", value=profile.full_name)
        treatment_type = st.selectbox("Treatment", TREATMENT_TYPES,
                                      index=TREATMENT_TYPES.index(profile.treatment_type),
                                      format_func=TREATMENT_LABELS.get)
        condition = st.text_input("Condition", value=profile.condition or "")
        submitted = st.form_submit_button("Save Changes", use_container_width=True)

    if submitted:
        if store.update_patient(profile.patient_id, {
            'full_name': full_name,
            'treatment_type': treatment_type,
            'condition': condition,
        }):
            st.session_state.current_patient = store.get_patient(profile.patient_id)
            st.success("Profile updated.")
        else:
            st.error("Could not update your profile.")
