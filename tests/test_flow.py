"""ThreeLeggedFlow with a scripted transport, listener and browser."""

import asyncio
import io
import socket
import webbrowser

import pytest

from xauth.callback import CallbackListener, CallbackResult
from xauth.config import DEFAULT_ENDPOINTS
from xauth.errors import (
    BrowserLaunchFailure,
    MalformedResponse,
    NetworkError,
    ProtocolError,
    TokenMismatch,
)
from xauth.flow import Credentials, FlowState, ThreeLeggedFlow, login_async, open_browser

REQUEST_BODY = "oauth_token=reqtok&oauth_token_secret=reqsec&oauth_callback_confirmed=true"
ACCESS_BODY = "oauth_token=acctok&oauth_token_secret=accsec&user_id=42&screen_name=someone"


class ScriptedTransport:
    """Answers POSTs from a list of (status, body) and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, authorization):
        self.calls.append((url, authorization))
        return self.responses.pop(0)


class FakeListener:
    def __init__(self, result):
        self.result = result
        self.timeout = None
        self.closed = False

    def __call__(self, timeout=None):
        self.timeout = timeout
        return self

    def wait(self):
        return self.result

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


def make_flow(transport, listener, browser=None, **kwargs):
    opened = []
    if browser is None:
        browser = opened.append
    flow = ThreeLeggedFlow(
        "ck", "cs",
        transport=transport,
        listener_factory=listener,
        browser=browser,
        nonce_source=lambda: "n" * 32,
        clock=lambda: "1700000000",
        out=io.StringIO(),
        **kwargs,
    )
    return flow, opened


def test_successful_login() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    listener = FakeListener(CallbackResult("reqtok", "ver"))
    flow, opened = make_flow(transport, listener)

    creds = flow.run()

    assert creds == Credentials("acctok", "accsec", "someone")
    assert flow.state is FlowState.COMPLETE
    assert flow.error is None
    assert listener.closed
    assert opened == [f"{DEFAULT_ENDPOINTS.authorize_url}?oauth_token=reqtok"]


def test_signed_requests_carry_expected_parameters() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))
    flow.run()

    (req_url, req_auth), (acc_url, acc_auth) = transport.calls
    assert req_url == DEFAULT_ENDPOINTS.request_token_url
    assert 'oauth_callback="http%3A%2F%2F127.0.0.1%3A18923%2Fcallback"' in req_auth
    assert "oauth_token=" not in req_auth
    assert acc_url == DEFAULT_ENDPOINTS.access_token_url
    assert 'oauth_token="reqtok"' in acc_auth
    assert 'oauth_verifier="ver"' in acc_auth


def test_token_mismatch_skips_exchange() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("stale", "ver")))

    with pytest.raises(TokenMismatch):
        flow.run()

    assert len(transport.calls) == 1
    assert flow.state is FlowState.FAILED
    assert flow.error == "OAuth token mismatch"


def test_request_token_error_status() -> None:
    transport = ScriptedTransport((401, "Could not authenticate you."))
    flow, opened = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))

    with pytest.raises(ProtocolError) as excinfo:
        flow.run()

    assert excinfo.value.status == 401
    assert "Could not authenticate you." in str(excinfo.value)
    assert opened == []
    assert flow.state is FlowState.FAILED


def test_request_token_missing_secret() -> None:
    transport = ScriptedTransport((200, "oauth_token=reqtok"))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))

    with pytest.raises(MalformedResponse) as excinfo:
        flow.run()
    assert excinfo.value.field == "oauth_token_secret"


def test_access_token_error_status() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (403, "denied"))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))

    with pytest.raises(ProtocolError) as excinfo:
        flow.run()
    assert excinfo.value.status == 403
    assert flow.state is FlowState.FAILED


def test_access_token_missing_screen_name() -> None:
    transport = ScriptedTransport(
        (200, REQUEST_BODY), (200, "oauth_token=acctok&oauth_token_secret=accsec")
    )
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))

    with pytest.raises(MalformedResponse) as excinfo:
        flow.run()
    assert excinfo.value.field == "screen_name"


def test_browser_failure_is_not_fatal() -> None:
    def no_browser(url):
        raise BrowserLaunchFailure("No runnable browser found")

    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")),
                        browser=no_browser)

    creds = flow.run()

    assert creds.screen_name == "someone"
    output = flow._out.getvalue()
    assert f"OAUTH_URL={DEFAULT_ENDPOINTS.authorize_url}?oauth_token=reqtok" in output
    assert "WARNING=" in output


def test_port_in_use_fails_before_any_request() -> None:
    holder = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    holder.bind(("127.0.0.1", 0))
    holder.listen(1)
    port = holder.getsockname()[1]
    transport = ScriptedTransport()
    try:
        flow, _ = make_flow(
            transport,
            lambda timeout=None: CallbackListener(port=port, timeout=timeout),
        )
        with pytest.raises(NetworkError):
            flow.run()
    finally:
        holder.close()

    assert transport.calls == []
    assert flow.state is FlowState.FAILED


def test_flow_is_single_use() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("reqtok", "ver")))
    flow.run()

    with pytest.raises(RuntimeError):
        flow.run()


def test_consumer_secret_dropped_after_run() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    flow, _ = make_flow(transport, FakeListener(CallbackResult("stale", "ver")))
    with pytest.raises(TokenMismatch):
        flow.run()
    assert flow._consumer_secret is None


def test_callback_timeout_passed_to_listener() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    listener = FakeListener(CallbackResult("reqtok", "ver"))
    flow, _ = make_flow(transport, listener, callback_timeout=120)
    flow.run()
    assert listener.timeout == 120


def test_credentials_repr_hides_secret() -> None:
    assert "accsec" not in repr(Credentials("acctok", "accsec", "someone"))


def test_login_async() -> None:
    transport = ScriptedTransport((200, REQUEST_BODY), (200, ACCESS_BODY))
    creds = asyncio.run(login_async(
        "ck", "cs",
        transport=transport,
        listener_factory=FakeListener(CallbackResult("reqtok", "ver")),
        browser=lambda url: None,
        out=io.StringIO(),
    ))
    assert creds.access_token == "acctok"


def test_open_browser_without_runnable_browser(monkeypatch) -> None:
    monkeypatch.setattr(webbrowser, "open", lambda url: False)
    with pytest.raises(BrowserLaunchFailure):
        open_browser("https://api.x.com/oauth/authorize?oauth_token=reqtok")


def test_open_browser_error(monkeypatch) -> None:
    def broken(url):
        raise webbrowser.Error("could not locate runnable browser")

    monkeypatch.setattr(webbrowser, "open", broken)
    with pytest.raises(BrowserLaunchFailure) as excinfo:
        open_browser("https://api.x.com/oauth/authorize?oauth_token=reqtok")
    assert "could not locate runnable browser" in str(excinfo.value)


def test_open_browser_success(monkeypatch) -> None:
    opened = []
    monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)
    open_browser("https://api.x.com/oauth/authorize?oauth_token=reqtok")
    assert opened == ["https://api.x.com/oauth/authorize?oauth_token=reqtok"]
