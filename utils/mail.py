# utils/mail.py
import logging
import smtplib
import socket
import ssl
from datetime import datetime
from email.message import EmailMessage
from typing import Optional

__all__ = ["Mailer", "render_verification_email"]

_PORT_PLAN = [("STARTTLS", 587), ("STARTTLS", 2525), ("SSL", 465)]


def _mask(s: Optional[str]) -> str:
    if not s:
        return ""
    if "@" in s:
        user, dom = s.split("@", 1)
        return f"{user[:1]}***@{dom[:1]}***"
    return (s[:6] + "…") if len(s) > 6 else s


def render_verification_email(*, code: str, name: str, app_name: str, ttl_minutes: int) -> tuple[str, str]:
    """(html, text) bodies for a one-time code."""
    year = datetime.now().year
    html = f"""
      <div style="font-family:system-ui,Segoe UI,Roboto,Arial;max-width:600px;margin:0 auto">
        <h2>{app_name}</h2>
        <p>Hello {name}!</p>
        <p>Your verification code is:</p>
        <div style="font-size:40px;font-weight:700;letter-spacing:10px;color:#dc2626">{code}</div>
        <p>This code will expire in <strong>{ttl_minutes} minutes</strong>.<br>
           If you didn't request this code, please ignore this email.</p>
        <p style="color:#888;font-size:12px">&copy; {year} {app_name}. All rights reserved.</p>
      </div>
    """
    text = (
        f"Hello {name}!\n\n"
        f"Your verification code for {app_name} is: {code}\n\n"
        f"This code will expire in {ttl_minutes} minutes.\n"
        "If you didn't request this code, please ignore this email.\n"
    )
    return html, text


class Mailer:
    """
    SMTP sender (STARTTLS on 587/2525, then SSL on 465).

    Without SMTP credentials the message is only logged, which keeps local
    development working without a mail account.
    """

    def __init__(self, *, host: str, login: Optional[str], password: Optional[str],
                 mail_from: str, app_name: str, code_ttl_minutes: int = 30,
                 logger: Optional[logging.Logger] = None):
        self.host = host
        self.login = login
        self.password = password
        self.mail_from = mail_from
        self.app_name = app_name
        self.code_ttl_minutes = code_ttl_minutes
        self.log = logger or logging.getLogger("mail")

    @classmethod
    def from_config(cls, cfg, logger=None) -> "Mailer":
        return cls(
            host=cfg.get("SMTP_HOST", "smtp.gmail.com"),
            login=cfg.get("SMTP_USER"),
            password=cfg.get("SMTP_PASS"),
            mail_from=cfg.get("MAIL_FROM") or "no-reply@example.com",
            app_name=cfg.get("APP_NAME", "Selective Trading"),
            code_ttl_minutes=int(cfg.get("VERIFICATION_CODE_TTL_MINUTES", 30)),
            logger=logger,
        )

    @property
    def is_fallback(self) -> bool:
        return not (self.login and self.password)

    def send_email(self, *, to: str, subject: str, html: str = "", text: str = "") -> None:
        msg = EmailMessage()
        msg["From"] = self.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")

        if self.is_fallback:
            self.log.warning("[mail] SMTP_USER/SMTP_PASS missing; not sending to %s (subject=%r)", _mask(to), subject)
            return

        last_err: Optional[Exception] = None

        for mode, port in _PORT_PLAN:
            try:
                ctx = ssl.create_default_context()
                if mode == "SSL":
                    with smtplib.SMTP_SSL(self.host, port, context=ctx, timeout=20) as s:
                        s.login(self.login, self.password)
                        s.send_message(msg)
                else:
                    with smtplib.SMTP(self.host, port, timeout=20) as s:
                        s.ehlo()
                        s.starttls(context=ctx)
                        s.ehlo()
                        s.login(self.login, self.password)
                        s.send_message(msg)

                self.log.info("[mail] sent via %s:%s as %s to %s", self.host, port, _mask(self.login), _mask(to))
                return
            except (smtplib.SMTPException, OSError, socket.error) as e:
                last_err = e
                self.log.warning("[mail] attempt %s %s:%s failed: %r", mode, self.host, port, e)

        raise RuntimeError(f"All SMTP attempts failed; last error: {last_err!r}")

    def send_verification_email(self, to: str, code: str, name: str) -> None:
        html, text = render_verification_email(
            code=code, name=name, app_name=self.app_name, ttl_minutes=self.code_ttl_minutes,
        )
        self.send_email(to=to, subject=f"Your Verification Code - {self.app_name}", html=html, text=text)
