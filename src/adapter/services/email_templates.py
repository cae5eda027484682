"""Identity-change email templates rendered with a sandboxed, autoescaping Jinja2 environment."""

import logging
from urllib.parse import urlencode

from jinja2.sandbox import SandboxedEnvironment

from src.app.services.email_sender import EmailMessage, IEmailComposer

logger = logging.getLogger(__name__)

_LAYOUT = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
    <style>
      .container { max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif; }
      .header { background: #3b82f6; color: white; padding: 20px; text-align: center; }
      .content { padding: 30px; background: #f8fafc; }
      .button { display: inline-block; background: #3b82f6; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; margin: 20px 0; }
      .footer { padding: 20px; text-align: center; color: #64748b; font-size: 14px; }
      .security-note { background: #fef3c7; border: 1px solid #f59e0b; padding: 15px; border-radius: 6px; margin: 20px 0; }
    </style>
  </head>
  <body>
    <div class="container">
      <div class="header"><h1>{{ site_name }}</h1></div>
      <div class="content">
        <h2>{{ title }}</h2>
        {% block body %}{% endblock %}
      </div>
      <div class="footer">
        <p>This email was sent by {{ site_name }}. If you have questions, contact our support team.</p>
      </div>
    </div>
  </body>
</html>
"""

_VERIFY_HTML = (
    "{% extends layout %}"
    "{% block body %}"
    "<p>Hello!</p>"
    "<p>You've requested to change your {{ field }} to: <strong>{{ value }}</strong></p>"
    "<p>To confirm this change, please click the button below:</p>"
    '<a href="{{ link }}" class="button">Verify {{ field|title }} Change</a>'
    '<div class="security-note"><strong>Security Note:</strong><ul>'
    "<li>This link will expire in {{ ttl_minutes }} minutes</li>"
    "<li>{{ warning }}</li>"
    "</ul></div>"
    "<p>If the button doesn't work, copy and paste this link:</p>"
    '<p style="word-break: break-all;">{{ link }}</p>'
    "{% endblock %}"
)

_VERIFY_TEXT = """{{ site_name }} - {{ field|title }} Change Verification

You've requested to change your {{ field }} to: {{ value }}

To confirm this change, visit: {{ link }}

This link will expire in {{ ttl_minutes }} minutes.

{{ warning }}
"""

_ALERT_HTML = (
    "{% extends layout %}"
    "{% block body %}"
    "<p>A security-related change was requested on your account.</p>"
    "<p><strong>Action:</strong> {{ action }}<br><strong>From IP:</strong> {{ ip_address }}</p>"
    '<div class="security-note">If this wasn\'t you, please secure your account immediately.</div>'
    "{% endblock %}"
)

_ALERT_TEXT = """{{ site_name }} - Security Alert

A security-related change was requested on your account.

Action: {{ action }}
From IP: {{ ip_address }}

If this wasn't you, please secure your account immediately.
"""


class JinjaEmailComposer(IEmailComposer):
    def __init__(
        self,
        base_url: str,
        site_name: str = "TradeMySkills",
        username_ttl_minutes: int = 15,
        email_ttl_minutes: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.site_name = site_name
        self.username_ttl_minutes = username_ttl_minutes
        self.email_ttl_minutes = email_ttl_minutes
        self.env = SandboxedEnvironment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self.text_env = SandboxedEnvironment(autoescape=False, trim_blocks=True, lstrip_blocks=True)
        self.layout = self.env.from_string(_LAYOUT)

    def _link(self, path: str, token: str) -> str:
        return f"{self.base_url}{path}?{urlencode({'token': token})}"

    def _render(self, html: str, text: str, **variables) -> tuple:
        variables.setdefault("site_name", self.site_name)
        rendered_html = self.env.from_string(html).render(layout=self.layout, **variables)
        rendered_text = self.text_env.from_string(text).render(**variables)
        return rendered_html, rendered_text

    def username_change_verification(self, new_username: str, token: str) -> EmailMessage:
        html, text = self._render(
            _VERIFY_HTML,
            _VERIFY_TEXT,
            title="Username Change Request",
            field="username",
            value=f"@{new_username}",
            link=self._link("/verify/username", token),
            ttl_minutes=self.username_ttl_minutes,
            warning="If you didn't request this change, please ignore this email.",
        )
        return EmailMessage(
            subject=f"Verify Your Username Change - {self.site_name}", html=html, text=text
        )

    def email_change_verification(self, new_email: str, token: str) -> EmailMessage:
        html, text = self._render(
            _VERIFY_HTML,
            _VERIFY_TEXT,
            title="Email Change Request",
            field="email address",
            value=new_email,
            link=self._link("/verify/email", token),
            ttl_minutes=self.email_ttl_minutes,
            warning="If you didn't request this change, please secure your account immediately.",
        )
        return EmailMessage(
            subject=f"Verify Your Email Change - {self.site_name}", html=html, text=text
        )

    def security_alert(self, action: str, ip_address: str) -> EmailMessage:
        html, text = self._render(
            _ALERT_HTML,
            _ALERT_TEXT,
            title="Security Alert",
            action=action,
            ip_address=ip_address,
        )
        return EmailMessage(subject=f"Security Alert - {self.site_name}", html=html, text=text)
