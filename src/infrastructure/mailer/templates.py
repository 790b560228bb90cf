"""Transactional email templates rendered with Jinja2."""

from datetime import datetime

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, select_autoescape

from core.exceptions import MailerError

_LAYOUT = """\
<!DOCTYPE html>
<html>
  <body style="font-family: sans-serif; color: #1f2937;">
    {% block content %}{% endblock %}
    <p style="color: #6b7280; font-size: 12px;">&copy; {{ year }} {{ app_name }}</p>
  </body>
</html>
"""

_SUBSCRIPTION_ACTIVATED = """\
{% extends "layout.html" %}
{% block content %}
<h1>Your {{ plan_name }} subscription is active</h1>
<p>Hi {{ name }},</p>
<p>Thanks for subscribing. Your {{ plan_name }} plan is now active.</p>
<p><a href="{{ dashboard_link }}">Go to your dashboard</a></p>
{% endblock %}
"""

_PAYMENT_FAILED = """\
{% extends "layout.html" %}
{% block content %}
<h1>We couldn't process your payment</h1>
<p>Hi {{ name }},</p>
<p>Your latest payment failed. We will retry on {{ retry_date }}.</p>
<p><a href="{{ update_payment_url }}">Update your payment method</a></p>
{% endblock %}
"""

_TRIAL_ENDING = """\
{% extends "layout.html" %}
{% block content %}
<h1>Your trial ends soon</h1>
<p>Hi {{ name }},</p>
<p>Your {{ plan_name }} trial ends on {{ trial_end_date }}.</p>
<p><a href="{{ upgrade_url }}">Upgrade to keep premium features</a></p>
{% endblock %}
"""

SUBJECTS: dict[str, str] = {
    "subscription_activated": "Your {{ plan_name }} subscription is active",
    "payment_failed": "Action required: payment failed",
    "trial_ending": "Your trial is ending soon",
}

_env = Environment(
    loader=DictLoader(
        {
            "layout.html": _LAYOUT,
            "subscription_activated.html": _SUBSCRIPTION_ACTIVATED,
            "payment_failed.html": _PAYMENT_FAILED,
            "trial_ending.html": _TRIAL_ENDING,
        }
    ),
    autoescape=select_autoescape(["html"], default_for_string=False),
    undefined=StrictUndefined,
)


def render_email(template: str, data: dict[str, str], app_name: str = "App") -> tuple[str, str]:
    """Render a template to ``(subject, html)``.

    Raises:
        MailerError: If the template is unknown or ``data`` lacks a field.
    """
    subject_source = SUBJECTS.get(template)
    if subject_source is None:
        raise MailerError("templates", f"unknown template: {template}")

    context = {"app_name": app_name, "year": datetime.utcnow().year, **data}
    try:
        subject = _env.from_string(subject_source).render(**context)
        html = _env.get_template(f"{template}.html").render(**context)
    except TemplateError as e:
        raise MailerError("templates", f"failed to render {template}: {e}") from e
    return subject, html
