from __future__ import annotations

import logging

from weekplan.core.config import get_settings
from weekplan.services.email import EmailDeliveryError, send_email
from weekplan.services.schedule_types import WeeklySubmission

logger = logging.getLogger(__name__)


def build_save_summary(submission: WeeklySubmission, *, student_name: str | None = None, footer: str = "") -> str:
    who = f"{student_name} ({submission.student_id})" if student_name else submission.student_id
    week = submission.week_start.isoformat() if submission.week_start else "unknown week"
    lines = [f"Student {who} saved a schedule for the week of {week}."]
    for day in submission.days:
        if day.absent:
            lines.append(f"{day.day.value}: absent")
        elif day.busy:
            lines.append(f"{day.day.value}: " + ", ".join(interval.label for interval in day.busy))
    if footer.strip():
        lines.extend(["", footer.strip()])
    return "\n".join(lines)


def notify_admins_of_save(
    submission: WeeklySubmission,
    *,
    student_name: str | None = None,
    footer: str = "",
) -> bool | None:
    """Email the save summary to configured admins.

    Returns None when nobody is configured to receive it, otherwise whether every
    delivery succeeded. Delivery problems are logged and never propagate.
    """
    settings = get_settings()
    recipients = settings.admin_notification_emails
    if not recipients or not settings.smtp_configured:
        return None

    text_content = build_save_summary(submission, student_name=student_name, footer=footer)
    subject = f"Weekplan notification: schedule saved by {student_name or submission.student_id}"
    delivered = True
    for recipient in recipients:
        try:
            send_email(to_email=recipient, subject=subject, text_content=text_content)
        except EmailDeliveryError as exc:
            delivered = False
            logger.warning("Save notification to %s failed: %s", recipient, exc)
    return delivered
