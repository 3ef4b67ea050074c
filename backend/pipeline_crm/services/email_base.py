"""
============================================================================
SHARED EMAIL BASE - Layout for ALL transactional emails
============================================================================

Single source of truth for the email frame: header bar, body, footer.
Every template in email_templates.py renders its body rows and passes
them through wrap_in_email_layout().

Design system:
- Dark header bar (#1F2937) with the workspace name and title
- White body with 30px horizontal padding
- Footer with the sending workspace and copyright line
- Arial/Helvetica font stack
============================================================================
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from jinja2 import Environment, select_autoescape

from ..core.config import settings

logger = logging.getLogger(__name__)

HEADER_BG_COLOR = "#1F2937"
ACCENT_COLOR = "#2563EB"

# Autoescape is on for every template; trusted HTML is passed with |safe
jinja_env = Environment(autoescape=select_autoescape(default_for_string=True, default=True))


_LAYOUT = jinja_env.from_string("""<!DOCTYPE html>
<html lang="en" xmlns="http://www.w3.org/1999/xhtml">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }} &mdash; {{ sender }}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #F5F5F7;">
    <table width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: #F5F5F7;">
        <tr>
            <td align="center" style="padding: 30px 20px;">
                <table width="600" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; width: 100%; background-color: #FFFFFF; border-radius: 8px; overflow: hidden;">

                    <!-- HEADER -->
                    <tr>
                        <td align="center" style="background-color: {{ header_color }}; padding: 24px 30px 6px 30px;">
                            <h1 style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 22px; font-weight: bold; color: #FFFFFF; line-height: 1.3;">
                                {{ title }}
                            </h1>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="background-color: {{ header_color }}; padding: 0 30px 24px 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 14px; color: #FFFFFF; line-height: 1.4;">
                                {{ subtitle or sender }}
                            </p>
                        </td>
                    </tr>

                    <!-- BODY -->
{{ body_html|safe }}

                    <!-- FOOTER -->
                    <tr>
                        <td align="center" style="padding: 24px 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 11px; color: #999999; line-height: 1.4;">
                                Sent by {{ sender }} &middot; &copy; {{ year }}
                            </p>
                        </td>
                    </tr>

                </table>
            </td>
        </tr>
    </table>
</body>
</html>""")


def email_paragraph(text_html: str) -> str:
    """One padded body paragraph. The argument must already be escaped."""
    return f"""                    <tr>
                        <td style="padding: 16px 30px 0 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 15px; color: #444444; line-height: 1.6;">
                                {text_html}
                            </p>
                        </td>
                    </tr>"""


def email_button(url: str, label: str) -> str:
    """Call-to-action button row."""
    return f"""                    <tr>
                        <td align="center" style="padding: 24px 30px 0 30px;">
                            <a href="{url}" style="display: inline-block; padding: 12px 28px; background-color: {ACCENT_COLOR}; color: #FFFFFF; font-family: Arial, Helvetica, sans-serif; font-size: 15px; font-weight: bold; text-decoration: none; border-radius: 6px;">
                                {label}
                            </a>
                        </td>
                    </tr>"""


def wrap_in_email_layout(
    title: str,
    body_html: str,
    subtitle: Optional[str] = None,
    sender: Optional[str] = None,
) -> str:
    """
    Wrap body rows in the full email layout (header + body + footer).

    Args:
        title: Header title text
        body_html: Inner HTML for the body section (table rows)
        subtitle: Optional subtitle (defaults to the sender name)
        sender: Workspace name shown in header and footer

    Returns:
        Complete HTML email string
    """
    return _LAYOUT.render(
        title=title,
        subtitle=subtitle,
        body_html=body_html,
        sender=sender or settings.from_name,
        header_color=HEADER_BG_COLOR,
        year=datetime.now(timezone.utc).year,
    )
