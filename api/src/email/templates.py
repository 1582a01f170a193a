"""Default email templates for Electrofun.

Templates are stored in the ``email_templates`` table; the defaults below are
written there the first time a template is needed. Variables use ``{name}``
tokens and are substituted with plain string replacement, so CSS braces in the
HTML are left untouched.

Palette:
- Navy (purchases): #012d58
- Green (redemptions): #4CAF50
"""

from datetime import datetime
from decimal import Decimal

from src.email.models import EmailTemplate


PURCHASE_CONFIRMATION = "purchase_confirmation"
CODE_REDEMPTION = "code_redemption"


_LAYOUT = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: __ACCENT__; color: white; padding: 20px; text-align: center; }
    .content { padding: 20px; background: #f9f9f9; }
    .button { display: inline-block; padding: 12px 24px; background: __ACCENT__; color: white; text-decoration: none; border-radius: 6px; }
    .footer { text-align: center; padding: 20px; color: #666; font-size: 14px; }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>__HEADING__</h1>
    </div>
    <div class="content">
__BODY__
      <div style="text-align: center; margin: 30px 0;">
        <a href="{coursesUrl}" class="button">Start Learning</a>
      </div>
      <p>Happy building!</p>
      <p>- The Electrofun Team</p>
    </div>
    <div class="footer">
      <p>&copy; Electrofun. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""


def _layout(heading: str, accent: str, body: str) -> str:
    return (
        _LAYOUT.replace("__ACCENT__", accent)
        .replace("__HEADING__", heading)
        .replace("__BODY__", body)
    )


_PURCHASE_HTML_BODY = """      <h2>Hi {userName},</h2>
      <p>Thank you for purchasing <strong>{kitName}</strong>! You now have access to all the courses and content for this kit.</p>
      <h3>Kit Details:</h3>
      <ul>
        <li><strong>Kit:</strong> {kitName}</li>
        <li><strong>Theme:</strong> {kitTheme}</li>
        <li><strong>Level:</strong> {kitLevel}</li>
        <li><strong>Purchase Date:</strong> {purchaseDate}</li>
        <li><strong>Amount:</strong> {amount}</li>
      </ul>
      <p>Ready to start learning? Click the button below to access your courses:</p>"""

_PURCHASE_TEXT = """Welcome to Electrofun!

Hi {userName},

Thank you for purchasing {kitName}! You now have access to all the courses and content for this kit.

Kit Details:
- Kit: {kitName}
- Theme: {kitTheme}
- Level: {kitLevel}
- Purchase Date: {purchaseDate}
- Amount: {amount}

Ready to start learning? Visit: {coursesUrl}

Happy building!
- The Electrofun Team
"""

_REDEMPTION_HTML_BODY = """      <h2>Hi {userName},</h2>
      <p>Great news! You've successfully redeemed your code and unlocked <strong>{kitName}</strong>!</p>
      <h3>Kit Details:</h3>
      <ul>
        <li><strong>Kit:</strong> {kitName}</li>
        <li><strong>Theme:</strong> {kitTheme}</li>
        <li><strong>Level:</strong> {kitLevel}</li>
        <li><strong>Redemption Date:</strong> {redemptionDate}</li>
      </ul>
      <p>You now have full access to all courses and content for this kit. Ready to start learning?</p>"""

_REDEMPTION_TEXT = """Kit Unlocked!

Hi {userName},

Great news! You've successfully redeemed your code and unlocked {kitName}!

Kit Details:
- Kit: {kitName}
- Theme: {kitTheme}
- Level: {kitLevel}
- Redemption Date: {redemptionDate}

You now have full access to all courses and content for this kit.
Ready to start learning? Visit: {coursesUrl}

Happy building!
- The Electrofun Team
"""


def default_template(name: str) -> EmailTemplate | None:
    """Built-in template for ``name``, or None if there is no default."""
    if name == PURCHASE_CONFIRMATION:
        return EmailTemplate(
            name=PURCHASE_CONFIRMATION,
            subject="Welcome to {kitName} - Your Electrofun Kit is Ready!",
            html_content=_layout("Welcome to Electrofun!", "#012d58", _PURCHASE_HTML_BODY),
            text_content=_PURCHASE_TEXT,
            variables=[
                "kitName",
                "kitTheme",
                "kitLevel",
                "userName",
                "purchaseDate",
                "amount",
                "coursesUrl",
            ],
        )
    if name == CODE_REDEMPTION:
        return EmailTemplate(
            name=CODE_REDEMPTION,
            subject="Kit Unlocked: {kitName} - Welcome to Electrofun!",
            html_content=_layout("Kit Unlocked!", "#4CAF50", _REDEMPTION_HTML_BODY),
            text_content=_REDEMPTION_TEXT,
            variables=[
                "kitName",
                "kitTheme",
                "kitLevel",
                "userName",
                "redemptionDate",
                "coursesUrl",
            ],
        )
    return None


def render(content: str, variables: dict[str, str]) -> str:
    """Replace every ``{key}`` token with its value."""
    for key, value in variables.items():
        content = content.replace("{" + key + "}", value)
    return content


def format_amount(amount: Decimal) -> str:
    """Display amount: FREE for zero, otherwise dollars."""
    if amount == 0:
        return "FREE"
    return f"${amount}"


def format_date(value: datetime) -> str:
    """Short US date, e.g. 3/7/2025."""
    return f"{value.month}/{value.day}/{value.year}"
