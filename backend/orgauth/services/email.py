"""
Transactional email: named Jinja2 templates rendered with a context mapping
and delivered through Resend.

Sends are best-effort. Callers hand the send coroutine to dispatch(), which
runs it as a detached task; a failure is logged by the task's done-callback
and never reaches the request that triggered it.
"""
import asyncio
import logging
from datetime import datetime, timezone
import resend
from jinja2 import DictLoader, Environment, TemplateNotFound, select_autoescape
from orgauth.core.config import RESEND_API_KEY, SENDER_EMAIL, APP_URL

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

_LAYOUT = """
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 560px; margin: 0 auto; padding: 32px 24px; color: #334155;">
  {% block body %}{% endblock %}
  <hr style="border: none; border-top: 1px solid #e2e8f0; margin: 24px 0;" />
  <p style="color: #94a3b8; font-size: 12px; text-align: center;">&copy; {{ year }} OrgAuth. All rights reserved.</p>
</div>
"""

_BUTTON = (
    'style="display: inline-block; background-color: #0f172a; color: #ffffff; text-decoration: none; '
    'padding: 12px 32px; border-radius: 24px; font-size: 14px; font-weight: 600;"'
)

TEMPLATES = {
    "layout.html": _LAYOUT,
    "welcome": """{% extends "layout.html" %}{% block body %}
  <h2 style="color: #0f172a;">Welcome aboard!</h2>
  <p>Hello {{ user_name }},</p>
  <p>Thank you for joining. Your account is ready to use.</p>
  <p style="text-align: center; margin: 28px 0;"><a href="{{ login_link }}" """ + _BUTTON + """>Log in to your account</a></p>
{% endblock %}""",
    "verify-email": """{% extends "layout.html" %}{% block body %}
  <h2 style="color: #0f172a;">Confirm your email</h2>
  <p>Hello {{ user_name }},</p>
  <p>Please confirm that this address belongs to you.</p>
  <p style="text-align: center; margin: 28px 0;"><a href="{{ verify_link }}" """ + _BUTTON + """>Verify email</a></p>
{% endblock %}""",
    "reset-password": """{% extends "layout.html" %}{% block body %}
  <h2 style="color: #0f172a;">Password reset request</h2>
  <p>Hello {{ user_name }},</p>
  <p>We received a request to reset your password. Click the button below to choose a new one:</p>
  <p style="text-align: center; margin: 28px 0;"><a href="{{ reset_link }}" """ + _BUTTON + """>Reset password</a></p>
  <p style="color: #94a3b8; font-size: 13px;">This link expires in {{ expires_hours }} hour(s). If you didn't request a reset, ignore this email.</p>
{% endblock %}""",
    "organization-invite": """{% extends "layout.html" %}{% block body %}
  <h2 style="color: #0f172a;">You've been invited</h2>
  <p>Hello!</p>
  <p>{{ inviter_name }} added you to <strong>{{ organization_name }}</strong>.</p>
  <p style="text-align: center; margin: 28px 0;"><a href="{{ invite_link }}" """ + _BUTTON + """>Open organization</a></p>
  <p style="color: #94a3b8; font-size: 13px;">If the button doesn't work, copy this link into your browser: {{ invite_link }}</p>
{% endblock %}""",
}

_env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(default=True))

# Keeps detached send tasks alive until they finish.
_pending = set()


def email_enabled() -> bool:
    return bool(resend.api_key)


def render_template(template_name: str, context: dict) -> str:
    try:
        template = _env.get_template(template_name)
    except TemplateNotFound:
        raise ValueError(f"Email template {template_name} not found")
    return template.render(year=datetime.now(timezone.utc).year, **context)


async def send_email(to: str, subject: str, template_name: str, context: dict) -> bool:
    """Render a named template and send it. Raises if the transport fails."""
    html = render_template(template_name, context)
    if not email_enabled():
        logger.warning(f"RESEND_API_KEY not set, skipping '{template_name}' email to {to}")
        return False
    params = {
        "from": SENDER_EMAIL,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    await asyncio.to_thread(resend.Emails.send, params)
    logger.info(f"Email '{template_name}' sent to {to}")
    return True


def _log_failure(description: str, task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.warning(f"{description} was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Failed to send {description}: {exc}")


def dispatch(coro, description: str) -> asyncio.Task:
    """Run a send in the background. Its result is discarded and failures are only logged."""
    task = asyncio.create_task(coro)
    _pending.add(task)
    task.add_done_callback(lambda t: _log_failure(description, t))
    return task


def send_welcome_email(to: str, user_name: str) -> asyncio.Task:
    context = {
        "user_name": user_name,
        "login_link": f"{APP_URL}/login",
    }
    return dispatch(
        send_email(to, "Welcome to our platform!", "welcome", context),
        f"welcome email to {to}",
    )


def send_verification_email(to: str, user_name: str, token: str) -> asyncio.Task:
    context = {
        "user_name": user_name,
        "verify_link": f"{APP_URL}/verify-email/{token}",
    }
    return dispatch(
        send_email(to, "Confirm your email address", "verify-email", context),
        f"verification email to {to}",
    )


def send_password_reset_email(to: str, user_name: str, token: str, expires_hours: int = 1) -> asyncio.Task:
    context = {
        "user_name": user_name,
        "reset_link": f"{APP_URL}/reset-password?token={token}",
        "expires_hours": expires_hours,
    }
    return dispatch(
        send_email(to, "Password Reset Request", "reset-password", context),
        f"password reset email to {to}",
    )


def send_organization_invite(to: str, organization_name: str, inviter_name: str, organization_id: str) -> asyncio.Task:
    context = {
        "organization_name": organization_name,
        "inviter_name": inviter_name,
        "invite_link": f"{APP_URL}/organizations/{organization_id}",
    }
    return dispatch(
        send_email(to, f"Invitation to join {organization_name}", "organization-invite", context),
        f"organization invite to {to}",
    )
