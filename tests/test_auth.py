"""Unit tests for the access gate and the Basic auth dependencies."""

import base64
import logging
from types import SimpleNamespace

import pytest
from fastapi.security import HTTPBasicCredentials
from fastapi.testclient import TestClient

from llm_meter.core.auth import (
    AccessGate,
    authenticate,
    require_credentials,
    require_credentials_for_counter_read,
)
from llm_meter.core.app_factory import create_app
from llm_meter.core.config import AuthSettings, Settings
from llm_meter.core.errors import AuthenticationAppError


@pytest.fixture
def gate() -> AccessGate:
    return AccessGate("eventing", "eventing123")


def _request(counter_read_requires_auth: bool) -> SimpleNamespace:
    """Minimal stand-in exposing request.app.state.settings.auth."""
    auth_settings = SimpleNamespace(counter_read_requires_auth=counter_read_requires_auth)
    state = SimpleNamespace(settings=SimpleNamespace(auth=auth_settings))
    return SimpleNamespace(app=SimpleNamespace(state=state))


class TestAccessGate:
    def test_accepts_exact_credential(self, gate: AccessGate) -> None:
        assert gate.check("eventing", "eventing123") is True

    @pytest.mark.parametrize(
        "username,password",
        [
            ("eventing", "wrong"),
            ("wrong", "eventing123"),
            ("Eventing", "eventing123"),
            ("eventing", "eventing123 "),
            (" eventing", "eventing123"),
            ("", ""),
            ("eventing", ""),
        ],
    )
    def test_rejects_anything_else(self, gate: AccessGate, username: str, password: str) -> None:
        assert gate.check(username, password) is False

    @pytest.mark.parametrize("username,password", [(None, "eventing123"), ("eventing", None), (None, None)])
    def test_rejects_missing_values(self, gate: AccessGate, username, password) -> None:
        assert gate.check(username, password) is False

class TestAuthenticate:
    def test_valid_credentials_pass(self, gate: AccessGate) -> None:
        authenticate(gate, HTTPBasicCredentials(username="eventing", password="eventing123"))

    def test_missing_credentials_raise(self, gate: AccessGate) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticate(gate, None)

        assert exc_info.value.code == "unauthorized"

    def test_wrong_credentials_raise(self, gate: AccessGate) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticate(gate, HTTPBasicCredentials(username="eventing", password="nope"))

        assert exc_info.value.message == "Unauthorized"

    def test_denial_log_never_contains_password(
        self, gate: AccessGate, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="llm_meter.core.auth"):
            with pytest.raises(AuthenticationAppError):
                authenticate(
                    gate, HTTPBasicCredentials(username="eventing", password="hunter2-secret")
                )

        assert caplog.records
        for record in caplog.records:
            assert "hunter2-secret" not in str(record.__dict__)
            assert getattr(record, "reason", None) == "invalid_credentials"


class TestDependencies:
    @pytest.mark.asyncio
    async def test_require_credentials_accepts_valid(self, gate: AccessGate) -> None:
        await require_credentials(
            gate=gate,
            credentials=HTTPBasicCredentials(username="eventing", password="eventing123"),
        )

    @pytest.mark.asyncio
    async def test_require_credentials_rejects_missing(self, gate: AccessGate) -> None:
        with pytest.raises(AuthenticationAppError):
            await require_credentials(gate=gate, credentials=None)

    @pytest.mark.asyncio
    async def test_counter_read_open_by_default(self, gate: AccessGate) -> None:
        await require_credentials_for_counter_read(
            request=_request(False), gate=gate, credentials=None
        )

    @pytest.mark.asyncio
    async def test_counter_read_gated_when_configured(self, gate: AccessGate) -> None:
        with pytest.raises(AuthenticationAppError):
            await require_credentials_for_counter_read(
                request=_request(True), gate=gate, credentials=None
            )

        await require_credentials_for_counter_read(
            request=_request(True),
            gate=gate,
            credentials=HTTPBasicCredentials(username="eventing", password="eventing123"),
        )


def _basic_header(raw: bytes) -> dict[str, str]:
    return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}


class TestUtf8Credentials:
    """Non-ASCII credentials must work end to end over HTTP."""

    @pytest.fixture
    def utf8_client(self, test_settings: Settings) -> TestClient:
        cfg = test_settings.model_copy(
            update={"auth": AuthSettings(username="usuário", password="senha-ç")}
        )
        return TestClient(create_app(cfg))

    def test_utf8_credential_authenticates(self, utf8_client: TestClient) -> None:
        resp = utf8_client.post(
            "/my-llm", headers=_basic_header("usuário:senha-ç".encode("utf-8"))
        )

        assert resp.status_code == 200
        assert utf8_client.get("/my-llm").json() == {"counter": 1}

    def test_ascii_lookalike_rejected(self, utf8_client: TestClient) -> None:
        resp = utf8_client.post(
            "/my-llm", headers=_basic_header("usuario:senha-c".encode("utf-8"))
        )

        assert resp.status_code == 401
        assert utf8_client.get("/my-llm").json() == {"counter": 0}

    def test_latin1_encoded_header_rejected(self, utf8_client: TestClient) -> None:
        resp = utf8_client.post(
            "/my-llm", headers=_basic_header("usuário:senha-ç".encode("latin-1"))
        )

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_password_may_contain_colon(self, test_settings: Settings) -> None:
        cfg = test_settings.model_copy(
            update={"auth": AuthSettings(username="ops", password="a:b:c")}
        )
        client = TestClient(create_app(cfg))

        resp = client.post("/my-llm", headers=_basic_header(b"ops:a:b:c"))

        assert resp.status_code == 200


class TestBasicHeaderParsing:
    @pytest.mark.parametrize(
        "header",
        [
            "Basic %%%not-base64",
            "Basic " + base64.b64encode(b"no-separator").decode("ascii"),
            "Basic " + base64.b64encode(b"\xff\xfe:\xff").decode("ascii"),
            "Bearer abc",
            "Basic",
        ],
    )
    def test_unreadable_header_treated_as_missing(
        self, client: TestClient, header: str
    ) -> None:
        resp = client.post("/my-llm", headers={"Authorization": header})

        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"].startswith("Basic")
        assert client.get("/my-llm").json() == {"counter": 0}
