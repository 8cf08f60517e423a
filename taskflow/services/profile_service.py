"""
profile_service.py — The single user profile
Goals, plans and principles the scorer should weigh, plus an AI-written summary
of them. The summary goes stale whenever the profile is edited after it was
generated.
"""

import logging

from sqlalchemy.orm import Session

from taskflow.models.user_profile import UserProfile, PROFILE_FIELDS
from taskflow.providers.base import BaseProvider
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.utils import utcnow

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You condense a person's goals and working principles into a short briefing "
    "that another assistant will use when prioritizing their tasks."
)

_FIELD_LABELS = {
    "long_term_goals": "Long-term goals",
    "medium_term_goals": "Medium-term goals (3-6 months)",
    "short_term_focus": "Short-term focus (1-4 weeks)",
    "business_plan": "Business plan",
    "life_plan": "Life plan",
    "priority_principles": "Prioritization principles",
    "preferences": "Working preferences",
}


def build_summary_prompt(profile: UserProfile) -> str | None:
    sections = [
        f"{_FIELD_LABELS[name]}:\n{getattr(profile, name).strip()}"
        for name in PROFILE_FIELDS
        if getattr(profile, name) and getattr(profile, name).strip()
    ]
    if not sections:
        return None
    return (
        "Summarize the following profile in at most 200 words. Keep concrete goals, "
        "deadlines and principles; drop filler.\n\n" + "\n\n".join(sections)
    )


class ProfileService:
    @staticmethod
    def get(db: Session) -> UserProfile:
        """Return the profile, creating the empty singleton on first read."""
        profile = db.query(UserProfile).order_by(UserProfile.id).first()
        if profile is None:
            profile = UserProfile()
            db.add(profile)
            db.commit()
            db.refresh(profile)
        return profile

    @staticmethod
    def load(db: Session) -> ActionResult:
        try:
            return ActionResult.ok(ProfileService.get(db).to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error loading user profile")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load profile")

    @staticmethod
    def update(db: Session, data: dict) -> ActionResult:
        try:
            profile = ProfileService.get(db)
            changed = False
            for name in PROFILE_FIELDS:
                if name in data and data[name] != getattr(profile, name):
                    setattr(profile, name, data[name])
                    changed = True
            if changed:
                profile.profile_updated_at = utcnow()
            db.commit()
            return ActionResult.ok(profile.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error updating user profile")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update profile")

    @staticmethod
    def save_summary(db: Session, summary: str) -> ActionResult:
        try:
            profile = ProfileService.get(db)
            profile.summary = summary.strip()
            profile.summary_generated_at = utcnow()
            db.commit()
            return ActionResult.ok(profile.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error saving profile summary")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to save summary")

    @staticmethod
    def is_summary_stale(db: Session) -> bool:
        return ProfileService.get(db).is_summary_stale

    @staticmethod
    async def generate_summary(db: Session, provider: BaseProvider, model: str | None = None) -> ActionResult:
        try:
            prompt = build_summary_prompt(ProfileService.get(db))
        except Exception:
            db.rollback()
            logger.exception("Error loading user profile")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load profile")
        if prompt is None:
            return ActionResult.invalid(["Profile is empty; add goals or principles first"])

        result = await provider.chat(
            [
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            model,
            max_tokens=512,
        )
        text = (result.get("text") or "").strip()
        if result.get("status") != "success" or not text:
            logger.warning("Profile summary generation failed: %s", result.get("error"))
            return ActionResult.fail(
                ErrorKind.EXTERNAL, f"{provider.name} request failed: {result.get('error') or 'empty response'}"
            )
        return ProfileService.save_summary(db, text)
