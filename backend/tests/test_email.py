"""Email templates, the Resend sender and the /api/send endpoint."""

import json

import httpx
import pytest

from bloomrent.emails.templates import TEMPLATE_NAMES, TemplateError, render
from bloomrent.services.email import EmailMessage, ResendEmailSender

RESEND_URL = "https://api.resend.test/emails"


@pytest.mark.unit
class TestTemplates:

    def test_invitation_escapes_values(self):
        rendered = render(
            "tenant-invitation",
            invite_url="https://app.test/invite/accept?token=abc",
            invitee_name="<Tina>",
            property_name="Maple House",
            unit_number="2B",
            owner_name="Olivia Owner",
        )
        assert "&lt;Tina&gt;" in rendered.html
        assert "<Tina>" not in rendered.html
        assert "Maple House (Unit 2B)" in rendered.text
        assert "Olivia Owner" in rendered.text
        assert "https://app.test/invite/accept?token=abc" in rendered.text

    def test_every_template_renders(self):
        context = {
            "invite_url": "u",
            "login_url": "u",
            "tenants_url": "u",
            "reset_url": "u",
            "verification_url": "u",
        }
        for name in TEMPLATE_NAMES:
            rendered = render(name, **context)
            assert rendered.html.startswith("<!DOCTYPE html>")
            assert "Hi there" in rendered.text or "Good news" in rendered.text

    def test_unknown_template(self):
        with pytest.raises(TemplateError, match="Unsupported email template"):
            render("newsletter")

    def test_missing_required_context(self):
        with pytest.raises(TemplateError, match="invite_url"):
            render("tenant-invitation", invitee_name="Tina")


@pytest.mark.unit
class TestResendEmailSender:

    def _sender(self, handler):
        return ResendEmailSender(
            "re_test",
            api_url=RESEND_URL,
            sender="Bloom Rent <hello@bloomrent.test>",
            transport=httpx.MockTransport(handler),
        )

    def _message(self):
        return EmailMessage(
            to=["tina@example.com"],
            subject="Hello",
            html="<p>Hi</p>",
            text="Hi",
            tags={"template": "tenant-invitation"},
        )

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg_123"})

        result = await self._sender(handler).send(self._message())

        assert result.success is True
        assert result.id == "msg_123"
        assert seen["auth"] == "Bearer re_test"
        assert seen["body"]["to"] == ["tina@example.com"]
        assert seen["body"]["text"] == "Hi"
        assert seen["body"]["tags"] == [{"name": "template", "value": "tenant-invitation"}]

    @pytest.mark.asyncio
    async def test_provider_rejection(self):
        def handler(request):
            return httpx.Response(422, json={"message": "Invalid `to` field"})

        result = await self._sender(handler).send(self._message())
        assert result.success is False
        assert result.error == "Invalid `to` field"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await self._sender(handler).send(self._message())
        assert result.success is False
        assert "connection refused" in result.error


@pytest.mark.api
class TestSendEndpoint:

    @pytest.mark.asyncio
    async def test_requires_auth(self, client):
        response = await client.post("/api/send", json={})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_fields(self, client, auth_headers):
        response = await client.post("/api/send", json={"to": "x@example.com"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == (
            "Missing required fields 'to', 'subject', and 'template'."
        )

    @pytest.mark.asyncio
    async def test_unknown_template(self, client, auth_headers):
        response = await client.post(
            "/api/send",
            json={"to": "x@example.com", "subject": "Hi", "template": "newsletter"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sends_template(self, client, auth_headers, email_sender):
        response = await client.post(
            "/api/send",
            json={
                "to": "x@example.com",
                "subject": "Reset",
                "template": "reset",
                "firstName": "Xavier",
                "resetUrl": "https://app.test/reset?token=1",
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "email-1"}
        assert email_sender.templates() == ["reset"]
        assert "Hi Xavier" in email_sender.messages[0].text

    @pytest.mark.asyncio
    async def test_provider_failure(self, client, auth_headers, email_sender):
        email_sender.fail = True
        response = await client.post(
            "/api/send",
            json={
                "to": "x@example.com",
                "subject": "Welcome",
                "template": "reset-confirmation",
            },
            headers=auth_headers,
        )
        assert response.status_code == 500
