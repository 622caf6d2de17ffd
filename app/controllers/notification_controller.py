import logging
from dataclasses import dataclass
from datetime import date, datetime
from html import escape
from app.core.config import get_settings
from app.core.email import send_email
from app.models.enums import SubmissionStatus

logger = logging.getLogger("license.email")

STATUS_TEXTS = {
    SubmissionStatus.APPROVED: "Approved",
    SubmissionStatus.REJECTED: "Rejected",
    SubmissionStatus.PENDING: "Under Review",
}


@dataclass(frozen=True)
class NotificationResult:
    channel: str
    recipient: str
    delivered: bool
    error: str | None = None


def _fmt(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d %b %Y, %H:%M UTC")
    if isinstance(value, date):
        return value.strftime("%d %b %Y")
    return "" if value is None else str(value)


def _row(label: str, value) -> str:
    return f'<p><strong>{escape(label)}:</strong> {escape(_fmt(value))}</p>'


def _admin_notification_html(submission: dict) -> str:
    address = submission["address"]
    full_address = f"{address['street']}, {address['city']}, {address['state']} - {address['pincode']}"
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      <h2>New Learner's License Application</h2>
      <p>A new learner's license application has been submitted and requires your review.</p>
      {_row("Submission ID", submission["submission_id"])}
      {_row("Applicant Name", submission["full_name"])}
      {_row("Email", submission["email"])}
      {_row("Phone", submission["phone_number"])}
      {_row("Date of Birth", submission["date_of_birth"])}
      {_row("Submitted At", submission["submitted_at"])}
      {_row("Address", full_address)}
      <p>Please log in to the admin dashboard to review this application.</p>
    </div>
    """


def _applicant_confirmation_html(submission: dict, status_link: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      <h2>Application received</h2>
      <p>Hello {escape(submission["full_name"])},</p>
      <p>We have received your learner's license application. Our team will review your documents and get back to you soon.</p>
      {_row("Submission ID", submission["submission_id"])}
      {_row("Submitted At", submission["submitted_at"])}
      <p>Keep your submission ID to check the status of your application:
         <a href="{escape(status_link)}">{escape(status_link)}</a></p>
      <p>Thank you,<br/>Learner's License Team</p>
    </div>
    """


def _status_update_html(submission: dict, new_status: SubmissionStatus, notes: str | None) -> str:
    if new_status == SubmissionStatus.APPROVED:
        message = "Congratulations! Your learner's license application has been approved."
    elif new_status == SubmissionStatus.REJECTED:
        message = "We reviewed your application and unfortunately cannot approve it at this time."
    else:
        message = "Your application is under review."
    notes_html = _row("Notes", notes) if notes else ""
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      <h2>Application {escape(STATUS_TEXTS[new_status])}</h2>
      <p>Hello {escape(submission["full_name"])},</p>
      <p>{escape(message)}</p>
      {_row("Submission ID", submission["submission_id"])}
      {notes_html}
      <p>Thank you,<br/>Learner's License Team</p>
    </div>
    """


class EmailNotifier:
    """Sends applicant and staff emails. Never raises; every call reports a NotificationResult."""

    def __init__(self, admin_email: str, frontend_base_url: str):
        self.admin_email = admin_email
        self.frontend_base_url = frontend_base_url.rstrip("/")

    def _deliver(self, channel: str, to_email: str, subject: str, html: str) -> NotificationResult:
        try:
            send_email(to_email, subject, html)
        except Exception as exc:
            logger.warning("notification failed channel=%s to=%s error=%s", channel, to_email, exc)
            return NotificationResult(channel, to_email, False, str(exc))
        logger.info("notification sent channel=%s to=%s", channel, to_email)
        return NotificationResult(channel, to_email, True)

    def notify_admin_of_new_submission(self, submission: dict) -> NotificationResult:
        subject = f"New Learner's License Application - {submission['submission_id']}"
        return self._deliver("admin_new_submission", self.admin_email, subject, _admin_notification_html(submission))

    def notify_applicant_of_submission(self, submission: dict) -> NotificationResult:
        subject = f"Application Confirmation - {submission['submission_id']}"
        link = f"{self.frontend_base_url}/status?id={submission['submission_id']}"
        return self._deliver(
            "applicant_confirmation",
            submission["email"],
            subject,
            _applicant_confirmation_html(submission, link),
        )

    def notify_applicant_of_status_change(
        self,
        submission: dict,
        new_status: SubmissionStatus,
        notes: str | None = None,
    ) -> NotificationResult:
        subject = f"Application {STATUS_TEXTS[new_status]} - {submission['submission_id']}"
        return self._deliver(
            "applicant_status_update",
            submission["email"],
            subject,
            _status_update_html(submission, new_status, notes),
        )


def get_notifier() -> EmailNotifier:
    settings = get_settings()
    return EmailNotifier(settings.admin_email, settings.frontend_base_url)
