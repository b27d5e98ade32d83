"""
This module defines the `RecoveryAssistant`, the scripted chat helper shown to patients.

It provides functionalities for:
- Answering common recovery questions (pain and swelling, exercise, driving) with
  keyword-matched canned replies.
- Passing any other question to the optional Gemini model, with a canned fallback
  when no model is configured.
- Greeting new conversations and persisting the conversation through the store.
"""
# orthocompanion/assistant.py

from __future__ import annotations

from datetime import date, datetime, timezone
import uuid
from typing import Dict, List, Optional

from orthocompanion import gemini
from orthocompanion.models import PatientProfile, parse_date

QUICK_REPLIES = [
    "Pain management tips",
    "Exercises for today",
    "When can I drive?",
    "Managing swelling",
]

PAIN_REPLY = (
    "Pain and swelling are common after orthopaedic surgery. Here are some tips:\n\n"
    "• Elevate your leg above heart level for 20 minutes every hour\n"
    "• Apply ice for 15-20 minutes, 3-4 times daily\n"
    "• Take your prescribed medication as directed\n"
    "• If pain suddenly worsens or you notice warmth and redness, contact your doctor immediately\n\n"
    "Would you like to log your current pain level or see some gentle exercises?"
)

EXERCISE_REPLY = (
    "Exercise is crucial for recovery! Based on your current stage ({days} days post-op), here's what I "
    "recommend:\n\n"
    "• Start with gentle range-of-motion exercises\n"
    "• Gradually increase intensity as tolerated\n"
    "• Listen to your body - some discomfort is normal, but stop if you feel sharp pain"
)

DRIVING_REPLY = (
    "When you can return to driving depends on several factors:\n\n"
    "• Type of surgery you had\n"
    "• Which leg was operated on (if applicable)\n"
    "• Whether you can safely brake and control the vehicle\n"
    "• Your pain medication use\n\n"
    "Typically, patients can drive 4-6 weeks after major surgery, but always check with your surgeon first."
)

DEFAULT_REPLY = (
    "Thank you for your question. Based on your recovery profile ({condition}, Day {days}), I'm here to "
    "help. Could you provide more details about what you'd like to know?"
)

# Checked in order; the first keyword group found in the question wins.
SCRIPTED_REPLIES = [
    (("pain", "swelling"), PAIN_REPLY),
    (("exercise", "physical therapy"), EXERCISE_REPLY),
    (("drive", "driving"), DRIVING_REPLY),
]


def days_post_op(profile: PatientProfile, today: Optional[date] = None) -> Optional[int]:
    """Days since the profile's surgery date, or None if no surgery is recorded."""
    if not profile.surgery_date:
        return None
    today = today or date.today()
    return max(0, (today - parse_date(profile.surgery_date)).days)


class RecoveryAssistant:
    """Answers patient questions and keeps the conversation history in the store."""

    def __init__(self, store) -> None:
        """Initializes the assistant.

        Args:
            store: The `RecoveryStore` used to persist chat messages.
        """
        self._store = store

    def welcome_message(self, profile: PatientProfile) -> str:
        return (
            f"Hello {profile.first_name}! I'm OrthoAI, your personal orthopaedic recovery assistant. "
            "I'm here to answer your questions about your recovery, provide guidance, and help you stay "
            "on track. How can I help you today?"
        )

    def reply(self, question: str, profile: PatientProfile) -> str:
        """Builds the assistant's reply to `question`."""
        lowered = question.lower()
        days = days_post_op(profile)
        for keywords, template in SCRIPTED_REPLIES:
            if any(keyword in lowered for keyword in keywords):
                return template.format(days=days or 0)

        generated = gemini.generate_answer(question, profile.condition, days)
        if generated:
            return generated.strip()
        return DEFAULT_REPLY.format(condition=profile.condition or "your condition", days=days or 0)

    def start_conversation(self, profile: PatientProfile) -> List[Dict]:
        """Returns the conversation, seeding it with a welcome message if it is empty."""
        history = self._store.get_chat_messages(profile.patient_id)
        if history:
            return history
        self._store.add_chat_message(profile.patient_id, self._build_message("assistant", self.welcome_message(profile)))
        return self._store.get_chat_messages(profile.patient_id)

    def send_message(self, profile: PatientProfile, message: str) -> Optional[Dict]:
        """Stores the patient's message and the assistant's reply.

        Returns:
            The assistant's reply message, or None if the message was empty.
        """
        text = (message or "").strip()
        if not text:
            return None
        self._store.add_chat_message(profile.patient_id, self._build_message("patient", text))
        answer = self._build_message("assistant", self.reply(text, profile))
        return self._store.add_chat_message(profile.patient_id, answer)

    def _build_message(self, sender: str, text: str) -> Dict:
        """Constructs a standardized chat message dictionary."""
        timestamp = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        return {
            "message_id": str(uuid.uuid4()),
            "timestamp": timestamp,
            "sender": sender,
            "text": text,
        }
