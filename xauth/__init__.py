"""OAuth 1.0a signing and three-legged login for the X (Twitter) API."""

from xauth.callback import CallbackListener, CallbackResult
from xauth.config import ApiConfig, Endpoints, load_config, load_consumer_keys
from xauth.encoding import parse_form_body, percent_encode
from xauth.errors import (
    BrowserLaunchFailure,
    ConfigError,
    MalformedResponse,
    NetworkError,
    OAuthError,
    ParameterCollision,
    ProtocolError,
    TokenMismatch,
)
from xauth.flow import Credentials, FlowState, ThreeLeggedFlow, login, login_async
from xauth.signing import build_header, sign, sign_with_config

__version__ = "0.1.0"
