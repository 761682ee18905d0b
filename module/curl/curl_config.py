import threading
import warnings
from http.cookiejar import DefaultCookiePolicy
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote_plus

import requests

from module.config.config import FuzzConfig
from module.curl.rate_limiter import TokenBucketLimiter
from utils.errors import ConfigError, PayloadError, TransportError, ValidationWarning


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)

VALIDATE_SIZE = "size"
VALIDATE_CODE = "code"


def parse_cookies(cookie_strings: List[str]) -> List[Tuple[str, str]]:
    """Turn ["name=value", ...] into (name, value) pairs"""
    cookies = []
    for cookie_str in cookie_strings:
        name, sep, value = cookie_str.partition("=")
        if not sep:
            raise ConfigError(f"invalid cookie format: {cookie_str}")
        cookies.append((name, value))
    return cookies


def construct_payload(fields: List[str], permutation: List[str], static_values: List[str]) -> str:
    """
    Build a form-encoded body.
    The first len(permutation) fields take the permutation values in order,
    the rest take the static values in order.
    """
    if len(fields) != len(permutation) + len(static_values):
        raise PayloadError(
            f"length of fields ({len(fields)}) does not match permutation ({len(permutation)}) "
            f"+ static values ({len(static_values)})"
        )

    pairs = []
    for i, f in enumerate(fields):
        if i < len(permutation):
            value = permutation[i]
        else:
            value = static_values[i - len(permutation)]
        pairs.append(quote_plus(f) + "=" + quote_plus(value))

    return "&".join(pairs)


def declared_content_length(res) -> int:
    """Content-Length header as an int, -1 when absent or garbage"""
    raw = res.headers.get("Content-Length")
    if raw is None:
        return -1
    try:
        return int(raw)
    except ValueError:
        return -1


class CurlConfig:
    """
    Everything a worker needs to fire one request: target, payload layout,
    cookies, shared rate limiter and the baseline used to spot anomalies.
    Read-only once the pipeline is running.
    """

    def __init__(self, url, fields, static_values=None, cookies=None, validate_type="",
                 size_default=0, code_default=404, rate_limit=None, timeout=5.0,
                 user_agent=DEFAULT_USER_AGENT, num_wordlists=None):
        self.url = url
        self.fields = list(fields)
        self.static_values = list(static_values or [])
        self.cookies = parse_cookies(cookies or [])
        self.validate_type = validate_type
        self.size_default = size_default
        self.code_default = code_default
        # 0 or less means wait forever
        self.timeout = timeout if timeout and timeout > 0 else None
        self.user_agent = user_agent
        self.rate_limiter = TokenBucketLimiter(rate_limit) if rate_limit and rate_limit > 0 else None

        if num_wordlists is not None and len(self.fields) != num_wordlists + len(self.static_values):
            raise ConfigError("number of fields must equal number of wordlists + staticValues")

        self._local = threading.local()
        self._warn_lock = threading.Lock()
        self._warned = False

    @classmethod
    def from_config(cls, config: FuzzConfig) -> "CurlConfig":
        return cls(
            url=config.endpoint,
            fields=config.fields,
            static_values=config.static_values,
            cookies=config.cookies,
            validate_type=config.validate_type,
            size_default=config.size_default,
            code_default=config.code_default,
            rate_limit=config.rate_limit,
            timeout=config.timeout,
            num_wordlists=len(config.wordlists),
        )

    @property
    def session(self) -> requests.Session:
        # one session per worker thread, connections get reused
        s = getattr(self._local, "session", None)
        if s is None:
            s = requests.Session()
            # only the configured cookies are ever sent, never ones the target sets
            s.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
            self._local.session = s
        return s

    def construct_payload(self, permutation: List[str]) -> str:
        return construct_payload(self.fields, permutation, self.static_values)

    def send_curl(self, body: str, cancel_event: Optional[threading.Event] = None) -> requests.Response:
        """
        POST body to the endpoint once. The response is streamed; the caller
        owns it and must close it.
        """
        headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        if self.cookies:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in self.cookies)

        try:
            prepared = self.session.prepare_request(
                requests.Request("POST", self.url, data=body, headers=headers)
            )
        except (requests.RequestException, ValueError) as e:
            raise TransportError(f"error creating request: {e}") from e

        if self.rate_limiter is not None:
            self.rate_limiter.acquire(cancel_event=cancel_event)

        try:
            return self.session.send(prepared, timeout=self.timeout, stream=True)
        except (requests.RequestException, ValueError) as e:
            raise TransportError(f"error from response: {e}") from e

    def validate_response(self, res, warn: Optional[Callable[[ValidationWarning], None]] = None) -> bool:
        """
        True when res matches the baseline.
        Unknown validation types always pass and warn once.
        """
        if self.validate_type == VALIDATE_SIZE:
            return declared_content_length(res) == self.size_default
        if self.validate_type == VALIDATE_CODE:
            return res.status_code == self.code_default

        with self._warn_lock:
            first = not self._warned
            self._warned = True
        if first:
            w = ValidationWarning(
                f"invalid validate type '{self.validate_type}', every response is treated as expected"
            )
            if warn is not None:
                warn(w)
            else:
                warnings.warn(w)
        return True

    def is_anomalous(self, res, warn=None) -> bool:
        return not self.validate_response(res, warn)
