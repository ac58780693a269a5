"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    payment_reminder_template,
    reservation_confirmation_template,
    selection_turn_template,
    trade_request_template,
    trade_response_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    """Raised when no email provider key is available"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml-python returns an object/dict carrying 'html' and 'errors'
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    html = getattr(result, "html", None)
    if html is not None:
        if getattr(result, "errors", None):
            logger.warning(f"MJML compilation warnings: {result.errors}")
        return html
    return str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    logger.info(f"📧 Sending email via Resend to: {recipients}")
    response = resend.Emails.send(
        {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
    )
    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


# ============================================
# Pre-built emails for CabinBuddy events
# ============================================


async def send_selection_turn_email(
    to: str,
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    rotation_year: int,
    phase: str,
    periods_remaining: int,
    periods_allowed: int,
    selection_days: int,
    deadline_text: Optional[str] = None,
) -> dict:
    mjml_content = selection_turn_template(
        organization_name=organization_name,
        family_group=family_group,
        lead_name=lead_name,
        rotation_year=rotation_year,
        phase=phase,
        periods_remaining=periods_remaining,
        periods_allowed=periods_allowed,
        selection_days=selection_days,
        deadline_text=deadline_text,
    )
    return await send_email(
        to=to,
        subject=f"{organization_name}: it's your turn to select {rotation_year} time periods",
        mjml_content=mjml_content,
    )


async def send_payment_reminder_email(
    to: str,
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    outstanding_balance: float,
    year: Optional[int] = None,
) -> dict:
    mjml_content = payment_reminder_template(
        organization_name, family_group, lead_name, outstanding_balance, year
    )
    return await send_email(
        to=to,
        subject=f"{organization_name}: payment reminder for {family_group}",
        mjml_content=mjml_content,
    )


async def send_reservation_confirmation_email(
    to: str,
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    property_name: Optional[str],
    start_date: str,
    end_date: str,
    nights: int,
    total_cost: Optional[float] = None,
) -> dict:
    mjml_content = reservation_confirmation_template(
        organization_name,
        family_group,
        lead_name,
        property_name,
        start_date,
        end_date,
        nights,
        total_cost,
    )
    return await send_email(
        to=to,
        subject=f"{organization_name}: reservation confirmed {start_date} - {end_date}",
        mjml_content=mjml_content,
    )


async def send_trade_request_email(
    to: str,
    organization_name: str,
    target_family_group: str,
    requester_family_group: str,
    requested_dates: str,
    offered_dates: Optional[str] = None,
    message: Optional[str] = None,
) -> dict:
    mjml_content = trade_request_template(
        organization_name,
        target_family_group,
        requester_family_group,
        requested_dates,
        offered_dates,
        message,
    )
    return await send_email(
        to=to,
        subject=f"{organization_name}: trade request from {requester_family_group}",
        mjml_content=mjml_content,
    )


async def send_trade_response_email(
    to: str,
    organization_name: str,
    requester_family_group: str,
    target_family_group: str,
    requested_dates: str,
    approved: bool,
    message: Optional[str] = None,
) -> dict:
    mjml_content = trade_response_template(
        organization_name,
        requester_family_group,
        target_family_group,
        requested_dates,
        approved,
        message,
    )
    return await send_email(
        to=to,
        subject=f"{organization_name}: your trade request was {'approved' if approved else 'declined'}",
        mjml_content=mjml_content,
    )
