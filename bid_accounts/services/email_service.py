import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from bid_accounts.core.config import Settings
from bid_accounts.core.security import mask_token

logger = logging.getLogger(__name__)

EMAIL_BACKENDS = ("console", "smtp", "disabled")


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: Optional[str] = None


def build_verification_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/verify-email?token={token}"


class EmailService:
    """Outgoing account emails over the configured backend"""

    def __init__(self, settings: Settings):
        self.settings = settings
        if settings.email_backend not in EMAIL_BACKENDS:
            logger.warning("Unknown EMAIL_BACKEND %r, emails will not be sent", settings.email_backend)

    def _from_header(self) -> Optional[str]:
        if self.settings.smtp_from:
            return self.settings.smtp_from
        if self.settings.smtp_from_email and self.settings.smtp_from_name:
            return f"{self.settings.smtp_from_name} <{self.settings.smtp_from_email}>"
        if self.settings.smtp_from_email:
            return self.settings.smtp_from_email
        return None

    def _subject(self, title: str) -> str:
        prefix = self.settings.email_subject_prefix
        return f"{title} - {prefix}" if prefix else title

    @staticmethod
    def _render_html_template(
        *,
        title: str,
        message_html: str,
        cta_text: Optional[str] = None,
        cta_link: Optional[str] = None,
        footer_note: str = "",
    ) -> str:
        title_esc = html.escape(title)
        footer_note_esc = html.escape(footer_note)
        button = ""
        if cta_text and cta_link:
            cta_link_esc = html.escape(cta_link, quote=True)
            button = (
                f'<p style="margin:18px 0;"><a href="{cta_link_esc}" '
                'style="display:inline-block; padding:12px 18px; background:#1f6feb; color:#ffffff; '
                f'border-radius:8px; text-decoration:none; font-weight:700;">{html.escape(cta_text)}</a></p>'
                '<p style="font-size:12px; color:#666666;">If the button does not work, paste this link '
                f'into your browser:<br /><a href="{cta_link_esc}">{cta_link_esc}</a></p>'
            )

        return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{title_esc}</title>
  </head>
  <body style="margin:0; padding:24px; font-family:Arial, Helvetica, sans-serif; color:#222222;">
    <h1 style="font-size:20px;">{title_esc}</h1>
    <div style="font-size:14px; line-height:20px;">{message_html}</div>
    {button}
    <p style="margin-top:24px; font-size:12px; color:#888888;">{footer_note_esc}</p>
  </body>
</html>"""

    def _log_simulation(self, *, to_email: str, subject: str, text_body: str) -> None:
        logger.info(
            "\n===== EMAIL SIMULATION =====\nTo: %s\nSubject: %s\n\n%s\n============================",
            to_email,
            subject,
            text_body,
        )

    def _send_smtp(self, msg: EmailMessage) -> None:
        s = self.settings
        if s.smtp_use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=context, timeout=10) as server:
                if s.smtp_username and s.smtp_password:
                    server.login(s.smtp_username, s.smtp_password)
                server.send_message(msg)
            return

        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=10) as server:
            server.ehlo()
            if s.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            if s.smtp_username and s.smtp_password:
                server.login(s.smtp_username, s.smtp_password)
            server.send_message(msg)

    def send_email(
        self,
        *,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None,
    ) -> NotificationResult:
        backend = self.settings.email_backend
        if backend == "console":
            self._log_simulation(to_email=to_email, subject=subject, text_body=text_body)
            return NotificationResult(success=True)
        if backend != "smtp":
            return NotificationResult(success=False, error=f"Email backend '{backend}' does not send mail")

        from_header = self._from_header()
        if not self.settings.smtp_host or not from_header:
            logger.error("SMTP is misconfigured (host/from), email to %s not sent", to_email)
            return NotificationResult(success=False, error="SMTP is not configured")

        msg = EmailMessage()
        msg["From"] = from_header
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text_body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        try:
            self._send_smtp(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("Could not send email to %s", to_email)
            return NotificationResult(success=False, error=str(exc) or exc.__class__.__name__)
        return NotificationResult(success=True)

    def send_welcome(self, email: str, full_name: str) -> NotificationResult:
        subject = self._subject("Welcome")
        text_body = (
            f"Hi {full_name},\n\n"
            "Your account is ready. You can now log in.\n\n"
            "If you did not create this account, you can ignore this email."
        )
        html_body = self._render_html_template(
            title=f"Welcome, {full_name}",
            message_html="<p>Your account is ready. You can now log in.</p>",
            footer_note="If you did not create this account, you can ignore this email.",
        )
        return self.send_email(to_email=email, subject=subject, text_body=text_body, html_body=html_body)

    def send_verification(self, email: str, full_name: str, verification_link: str) -> NotificationResult:
        subject = self._subject("Email Verification")
        hours = self.settings.verification_token_ttl_hours
        text_body = (
            f"Hi {full_name},\n\n"
            f"Confirm your email to activate your account: {verification_link}\n\n"
            f"This link expires in {hours} hours. "
            "If you did not create this account, you can ignore this email."
        )
        html_body = self._render_html_template(
            title="Confirm your email",
            message_html=f"<p>Hi {html.escape(full_name)}, confirm your email to activate your account.</p>",
            cta_text="Verify my email",
            cta_link=verification_link,
            footer_note=f"This link expires in {hours} hours.",
        )
        logger.info("Sending verification link (token %s) to %s", mask_token(verification_link.rsplit("=", 1)[-1]), email)
        return self.send_email(to_email=email, subject=subject, text_body=text_body, html_body=html_body)
