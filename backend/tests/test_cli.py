"""Management CLI argument handling."""

import pytest

from bloomrent import cli


@pytest.mark.unit
class TestCli:

    def test_create_user_dispatch(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "create_user", lambda *args: calls.append(args) or 0)

        assert cli.main(["create-user", "a@example.com", "Ann", "password1", "--role", "tenant"]) == 0
        assert calls == [("a@example.com", "Ann", "password1", "tenant")]

    def test_create_user_defaults_to_owner(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "create_user", lambda *args: calls.append(args) or 0)

        cli.main(["create-user", "a@example.com", "Ann", "password1"])
        assert calls[0][3] == "owner"

    def test_short_password_is_rejected(self, capsys):
        assert cli.create_user("a@example.com", "Ann", "short", "owner") == 1
        assert "at least 8 characters" in capsys.readouterr().out

    def test_expire_invites_dispatch(self, monkeypatch):
        monkeypatch.setattr(cli, "expire_invites", lambda: 0)
        assert cli.main(["expire-invites"]) == 0

    def test_unknown_role(self):
        with pytest.raises(SystemExit):
            cli.main(["create-user", "a@example.com", "Ann", "password1", "--role", "landlord"])

    def test_serve_dispatch(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

        assert cli.main(["serve", "--port", "9000"]) == 0
        assert calls == [("bloomrent.main:app", {"host": "127.0.0.1", "port": 9000, "reload": False})]
