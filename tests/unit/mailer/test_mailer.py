"""Unit tests for email templates and mailers."""

import json

import httpx
import pytest

from core.config import Settings
from core.exceptions import MailerError
from infrastructure.mailer.factory import create_mailer
from infrastructure.mailer.noop import NoOpMailer
from infrastructure.mailer.resend import ResendMailer
from infrastructure.mailer.templates import render_email

ACTIVATED_DATA = {
    "name": "Ada",
    "plan_name": "Pro",
    "dashboard_link": "https://app.test/dashboard",
}


class TestRenderEmail:
    def test_subject_and_body(self):
        subject, html = render_email("subscription_activated", ACTIVATED_DATA, app_name="Nest")

        assert subject == "Your Pro subscription is active"
        assert "Hi Ada" in html
        assert 'href="https://app.test/dashboard"' in html
        assert "Nest" in html

    def test_body_is_escaped(self):
        data = dict(ACTIVATED_DATA, name="<script>alert(1)</script>")

        _, html = render_email("subscription_activated", data)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_unknown_template(self):
        with pytest.raises(MailerError):
            render_email("newsletter", {})

    def test_missing_variable(self):
        with pytest.raises(MailerError):
            render_email("payment_failed", {"name": "Ada"})


class TestResendMailer:
    @pytest.mark.asyncio
    async def test_posts_rendered_email(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email-1"})

        client = httpx.AsyncClient(
            base_url="https://resend.test", transport=httpx.MockTransport(handler)
        )
        mailer = ResendMailer(
            api_key="re-test",
            from_name="Nest",
            from_email="noreply@nest.test",
            reply_to="help@nest.test",
            client=client,
        )

        message_id = await mailer.send_template_email(
            "subscription_activated", "ada@example.com", ACTIVATED_DATA
        )

        assert message_id == "email-1"
        request = requests[0]
        assert request.url.path == "/emails"
        assert request.headers["Authorization"] == "Bearer re-test"
        body = json.loads(request.content)
        assert body["from"] == "Nest <noreply@nest.test>"
        assert body["to"] == ["ada@example.com"]
        assert body["subject"] == "Your Pro subscription is active"
        assert body["reply_to"] == "help@nest.test"
        assert {"name": "template", "value": "subscription_activated"} in body["tags"]

    @pytest.mark.asyncio
    async def test_api_error_raises(self):
        client = httpx.AsyncClient(
            base_url="https://resend.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(422, text="bad from")),
        )
        mailer = ResendMailer(
            api_key="re-test", from_name="Nest", from_email="noreply@nest.test", client=client
        )

        with pytest.raises(MailerError, match="422"):
            await mailer.send_template_email(
                "subscription_activated", "ada@example.com", ACTIVATED_DATA
            )


class TestNoOpMailer:
    @pytest.mark.asyncio
    async def test_renders_without_sending(self):
        assert await NoOpMailer().send_template_email(
            "subscription_activated", "ada@example.com", ACTIVATED_DATA
        ) is None

    @pytest.mark.asyncio
    async def test_surfaces_template_errors(self):
        with pytest.raises(MailerError):
            await NoOpMailer().send_template_email("trial_ending", "ada@example.com", {})


class TestCreateMailer:
    def test_resend_when_key_present(self):
        assert isinstance(create_mailer(Settings(resend_api_key="re-test")), ResendMailer)

    def test_noop_without_key(self):
        assert isinstance(create_mailer(Settings(resend_api_key="")), NoOpMailer)
