"""
Transactional email templates.

Each builder returns (subject, html) ready for EmailQuotaGate.send().
Body rows are rendered with Jinja2 (autoescaped) and framed by the
shared layout in email_base.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Tuple

from ..core.config import settings
from .email_base import jinja_env, wrap_in_email_layout, email_paragraph, email_button

logger = logging.getLogger(__name__)


_PROPOSAL_ITEMS = jinja_env.from_string("""
                    <tr>
                        <td style="padding: 20px 30px 0 30px;">
                            <table width="100%" cellpadding="6" cellspacing="0" border="0" style="font-family: Arial, Helvetica, sans-serif; font-size: 14px; color: #444444;">
                                <tr style="border-bottom: 1px solid #EEEEEE;">
                                    <th align="left">Item</th><th align="right">Qty</th><th align="right">Price</th><th align="right">Total</th>
                                </tr>
{% for item in items %}
                                <tr>
                                    <td>{{ item.description }}</td>
                                    <td align="right">{{ item.quantity }}</td>
                                    <td align="right">{{ "%.2f"|format(item.unit_price) }}</td>
                                    <td align="right">{{ "%.2f"|format(item.total_price) }}</td>
                                </tr>
{% endfor %}
                                <tr>
                                    <td colspan="3" align="right"><strong>Total</strong></td>
                                    <td align="right"><strong>{{ "%.2f"|format(total) }}</strong></td>
                                </tr>
                            </table>
                        </td>
                    </tr>""")

_GREETING = jinja_env.from_string("Hello {{ name }},")
_PROPOSAL_INTRO = jinja_env.from_string(
    "{{ sender }} sent you the proposal <strong>{{ title }}</strong>. "
    "Review the items below and let us know if you accept."
)
_DEAL_WON = jinja_env.from_string(
    "Thank you for closing <strong>{{ title }}</strong> with {{ sender }}. "
    "We are excited to get started and will be in touch with the next steps shortly."
)


def proposal_link(proposal_id: Any) -> str:
    return f"{settings.app_base_url.rstrip('/')}/proposal/{proposal_id}"


def build_proposal_email(
    contact_name: str,
    title: str,
    items: Iterable[Any],
    total: Decimal,
    proposal_id: Any,
) -> Tuple[str, str]:
    """
    Email carrying a proposal to the contact, with a link to respond.

    Args:
        contact_name: Recipient name for the greeting
        title: Proposal title
        items: ProposalItem rows (description, quantity, unit_price, total_price)
        total: Proposal total amount
        proposal_id: Used to build the public response link
    """
    sender = settings.from_name
    body_html = "\n".join([
        email_paragraph(_GREETING.render(name=contact_name or "there")),
        email_paragraph(_PROPOSAL_INTRO.render(sender=sender, title=title)),
        _PROPOSAL_ITEMS.render(items=list(items), total=total),
        email_button(proposal_link(proposal_id), "View and respond"),
    ])
    subject = f"Proposal: {title}"
    return subject, wrap_in_email_layout(title="New proposal", body_html=body_html, subtitle=title)


def build_deal_won_email(contact_name: str, deal_title: str) -> Tuple[str, str]:
    """Thank-you email sent to the contact when their deal is won."""
    sender = settings.from_name
    body_html = "\n".join([
        email_paragraph(_GREETING.render(name=contact_name or "there")),
        email_paragraph(_DEAL_WON.render(sender=sender, title=deal_title)),
    ])
    subject = f"Welcome aboard: {deal_title}"
    return subject, wrap_in_email_layout(title="Thank you!", body_html=body_html)
