"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Forest/Stone color scheme
THEME = {
    "primary": "#166534",
    "primary_dark": "#14532d",
    "primary_light": "#dcfce7",
    "background": "#fafaf9",
    "card_bg": "#ffffff",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    organization_name: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if organization_name:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#a8a29e" padding="12px 0 0 0">
          You're receiving this because you belong to {organization_name} on CabinBuddy.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary']}" padding="0">
              CabinBuddy
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="24px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#a8a29e" padding="0">
              CabinBuddy - shared cabin scheduling for families
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def selection_turn_template(
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    rotation_year: int,
    phase: str,
    periods_remaining: int,
    periods_allowed: int,
    selection_days: int,
    deadline_text: Optional[str] = None,
) -> str:
    """Notify a family group lead that it is their turn to pick time periods"""
    round_label = "secondary selection" if phase == "secondary" else "selection"
    deadline_line = ""
    if deadline_text:
        deadline_line = f"""
    <mj-text>
      Please make your picks by <strong>{deadline_text}</strong>.
    </mj-text>
    """

    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      {organization_name} - {rotation_year} {round_label}
    </mj-text>

    <mj-text>
      Hi {lead_name or family_group},
    </mj-text>

    <mj-text>
      It's the <strong>{family_group}</strong> family's turn to select time periods for {rotation_year}.
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • Periods remaining: <strong>{periods_remaining} of {periods_allowed}</strong><br/>
      • Selection window: {selection_days} days
    </mj-text>
    {deadline_line}
    <mj-text>
      When you're done, mark your selection complete so the next family can choose.
    </mj-text>
    """

    return get_base_template(
        title="It's your turn to select",
        preview_text=f"{family_group}: {periods_remaining} of {periods_allowed} periods remaining",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/calendar",
        cta_label="Open the Calendar",
        organization_name=organization_name,
    )


def payment_reminder_template(
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    outstanding_balance: float,
    year: Optional[int] = None,
) -> str:
    """Remind a family group lead of an outstanding balance"""
    period = f" for {year}" if year else ""
    content = f"""
    <mj-text>
      Hi {lead_name or family_group},
    </mj-text>

    <mj-text>
      This is a friendly reminder that the <strong>{family_group}</strong> family has an
      outstanding balance{period} with {organization_name}.
    </mj-text>

    <mj-text font-size="28px" font-weight="700" color="{THEME['text_primary']}" align="center" padding="16px 0">
      ${outstanding_balance:,.2f}
    </mj-text>

    <mj-text>
      Please contact your treasurer if you have already paid or have questions about the charges.
    </mj-text>
    """

    return get_base_template(
        title="Payment reminder",
        preview_text=f"Outstanding balance: ${outstanding_balance:,.2f}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/finances",
        cta_label="View Balance",
        organization_name=organization_name,
    )


def reservation_confirmation_template(
    organization_name: str,
    family_group: str,
    lead_name: Optional[str],
    property_name: Optional[str],
    start_date: str,
    end_date: str,
    nights: int,
    total_cost: Optional[float] = None,
) -> str:
    """Confirm a new reservation to the family group lead"""
    cost_line = ""
    if total_cost:
        cost_line = f"• Estimated cost: <strong>${total_cost:,.2f}</strong><br/>"

    content = f"""
    <mj-text>
      Hi {lead_name or family_group},
    </mj-text>

    <mj-text>
      A stay has been booked for the <strong>{family_group}</strong> family
      {f"at {property_name}" if property_name else ""}.
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • Check-in: <strong>{start_date}</strong> at noon<br/>
      • Check-out: <strong>{end_date}</strong> at noon<br/>
      • Nights: {nights}<br/>
      {cost_line}
    </mj-text>
    """

    return get_base_template(
        title="Reservation confirmed",
        preview_text=f"{start_date} to {end_date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/calendar",
        cta_label="View Reservation",
        organization_name=organization_name,
    )


def trade_request_template(
    organization_name: str,
    target_family_group: str,
    requester_family_group: str,
    requested_dates: str,
    offered_dates: Optional[str] = None,
    message: Optional[str] = None,
) -> str:
    """Tell a family group another group wants some of its dates"""
    offer_line = ""
    if offered_dates:
        offer_line = f"""
    <mj-text>
      In exchange they are offering <strong>{offered_dates}</strong>.
    </mj-text>
    """
    message_line = ""
    if message:
        message_line = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 0 20px">
      "{message}"
    </mj-text>
    """

    content = f"""
    <mj-text>
      The <strong>{requester_family_group}</strong> family has asked the
      {target_family_group} family for <strong>{requested_dates}</strong>.
    </mj-text>
    {offer_line}
    {message_line}
    """

    return get_base_template(
        title="New trade request",
        preview_text=f"{requester_family_group} requested {requested_dates}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/trades",
        cta_label="Review Request",
        organization_name=organization_name,
    )


def trade_response_template(
    organization_name: str,
    requester_family_group: str,
    target_family_group: str,
    requested_dates: str,
    approved: bool,
    message: Optional[str] = None,
) -> str:
    outcome = "approved" if approved else "declined"
    content = f"""
    <mj-text>
      The {target_family_group} family has <strong>{outcome}</strong> your request for
      {requested_dates}.
    </mj-text>
    """
    if message:
        content += f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 0 20px">
      "{message}"
    </mj-text>
    """

    return get_base_template(
        title=f"Trade request {outcome}",
        preview_text=f"{target_family_group} {outcome} your request",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/trades",
        cta_label="View Trades",
        organization_name=organization_name,
    )
