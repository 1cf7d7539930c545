"""
Branded email templates.

Every outgoing message shares one layout with the Treenitaastu logo block and
footer. User-supplied values are HTML-escaped before they are interpolated.
"""

from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Optional

from fitcoach.core.workweek import to_local

BRAND = "Treenitaastu"
ACCENT = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"


def branded_layout(title: str, body_html: str, *, cta_text: Optional[str] = None, cta_url: Optional[str] = None) -> str:
    """Wrap ``body_html`` in the branded layout.

    ``body_html`` is trusted markup; callers escape any user input in it.
    """
    button = ""
    if cta_text and cta_url:
        url = escape(cta_url, quote=True)
        button = f"""
          <div style="text-align: center; margin: 30px 0;">
            <a href="{url}" style="display: inline-block; background: {ACCENT}; color: white; padding: 16px 32px; text-decoration: none; border-radius: 8px; font-weight: 600; font-size: 16px;">{escape(cta_text)}</a>
          </div>
          <p style="color: #718096; font-size: 14px; margin: 20px 0 0;">
            Kui nupp ei tööta, kopeeri ja kleebi see link oma brauserisse:<br>
            <span style="word-break: break-all; color: #4299e1;">{url}</span>
          </p>"""
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f8fafc;">
  <div style="max-width: 600px; margin: 0 auto; background: white; padding: 40px 20px;">
    <div style="text-align: center; margin-bottom: 40px;">
      <div style="display: inline-block; width: 60px; height: 60px; background: {ACCENT}; border-radius: 12px; color: white; line-height: 60px; font-size: 24px; font-weight: bold;">T</div>
      <h1 style="color: #1a202c; margin: 20px 0 10px; font-size: 28px;">{BRAND}</h1>
    </div>
    <div style="background: #f7fafc; border-radius: 12px; padding: 30px; margin: 30px 0;">
      {body_html}{button}
    </div>
    <div style="border-top: 1px solid #e2e8f0; padding-top: 30px; text-align: center;">
      <p style="color: #a0aec0; font-size: 12px; margin: 20px 0 0;">© {datetime.now().year} {BRAND}. Kõik õigused kaitstud.</p>
    </div>
  </div>
</body>
</html>"""


def recovery_email(action_link: str) -> tuple[str, str, str]:
    """Subject, HTML and plain text of the password reset email."""
    subject = f"Lähtesta oma {BRAND} parool"
    body = (
        '<h2 style="color: #2d3748; margin: 0 0 20px; font-size: 24px;">Parooli lähtestamine</h2>'
        '<p style="color: #4a5568; margin: 0 0 20px; font-size: 16px;">'
        "Saime taotluse sinu parooli lähtestamiseks. Vajuta allolevale nupule, et valida uus parool."
        "</p>"
        '<p style="color: #718096; font-size: 14px;">Kui sa parooli lähtestamist ei taotlenud, võid selle e-kirja ignoreerida.</p>'
    )
    html = branded_layout("Lähtesta parool", body, cta_text="Lähtesta parool", cta_url=action_link)
    text = f"Parooli lähtestamiseks ava link: {action_link}"
    return subject, html, text


def _format_local(start: datetime, tz_name: Optional[str]) -> str:
    return to_local(start, tz_name).strftime("%d.%m.%Y %H:%M")


def booking_confirmation_email(
    client_name: str, service_name: str, start: datetime, duration_minutes: int, tz_name: Optional[str] = None
) -> tuple[str, str]:
    """Subject and HTML of the client's booking confirmation."""
    body = (
        f"<h2>Tere {escape(client_name)}!</h2>"
        "<p>Teie broneering on kinnitatud:</p>"
        "<ul>"
        f"<li><strong>Teenus:</strong> {escape(service_name)}</li>"
        f"<li><strong>Kuupäev:</strong> {_format_local(start, tz_name)}</li>"
        f"<li><strong>Kestus:</strong> {duration_minutes} minutit</li>"
        "</ul>"
        "<p>Näeme kohtamisel!</p>"
    )
    return "Broneerimise kinnitus - Personal Training", branded_layout("Broneerimise kinnitus", body)


def booking_admin_email(
    *,
    client_name: str,
    client_email: str,
    client_phone: Optional[str],
    service_name: str,
    start: datetime,
    duration_minutes: int,
    amount_cents: int,
    tz_name: Optional[str] = None,
) -> tuple[str, str]:
    """Subject and HTML of the new-booking notification sent to the coach."""
    body = (
        "<h2>Uus broneering!</h2>"
        f"<p>Klient: <strong>{escape(client_name)}</strong></p>"
        f"<p>Email: <strong>{escape(client_email)}</strong></p>"
        f"<p>Telefon: <strong>{escape(client_phone or '-')}</strong></p>"
        f"<p>Teenus: <strong>{escape(service_name)}</strong></p>"
        f"<p>Kuupäev: <strong>{_format_local(start, tz_name)}</strong></p>"
        f"<p>Kestus: <strong>{duration_minutes} minutit</strong></p>"
        f"<p>Makstud summa: <strong>€{amount_cents / 100:.2f}</strong></p>"
    )
    return "Uus broneering - Personal Training", branded_layout("Uus broneering", body)
