"""RequestGateway — every authenticated HTTP exchange goes through here.

The gateway encodes the payload variant it is given, stamps the current
session onto the request and sends it exactly once. It hands back the raw
``requests.Response``; decoding the body is the caller's business.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from http.cookiejar import DefaultCookiePolicy

import requests
import structlog
from requests.structures import CaseInsensitiveDict
from urllib3 import encode_multipart_formdata

from hudori_desktop.services.errors import EncodingFailed, InvalidPayload, TransportFailed
from hudori_desktop.services.payloads import JsonBody, MultipartBody, NoBody, Payload
from hudori_desktop.services.session import SessionState

logger = structlog.get_logger(__name__)

METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
AUTH_HEADERS = frozenset({"authorization", "x-user-id"})


class RequestGateway:
    """Builds, authenticates and sends one request per call."""

    def __init__(
        self,
        session_state: SessionState,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ):
        self.session_state = session_state
        self.timeout = timeout
        self.http = http or requests.Session()
        # SessionState is the only credential store; the jar must stay empty.
        self.http.cookies.clear()
        self.http.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    # ── Encoding ─────────────────────────────────────────────────────

    @staticmethod
    def encode(payload: Payload) -> tuple[bytes | None, str | None]:
        """Return ``(body, content_type)`` for a payload variant."""
        if isinstance(payload, NoBody):
            return None, None

        if isinstance(payload, JsonBody):
            try:
                body = json.dumps(payload.value, separators=(",", ":"), allow_nan=False)
            except (TypeError, ValueError) as exc:
                raise EncodingFailed(f"error marshaling body: {exc}") from exc
            return body.encode("utf-8"), "application/json"

        if isinstance(payload, MultipartBody):
            return _encode_multipart(payload)

        raise InvalidPayload(f"unsupported payload variant: {type(payload).__name__}")

    # ── Execution ────────────────────────────────────────────────────

    def execute(
        self,
        method: str,
        url: str,
        payload: Payload | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        """Send ``method url`` with *payload* and the current credentials.

        Raises:
            InvalidPayload: unknown method or duplicate multipart keys.
            EncodingFailed: the payload could not be serialized.
            TransportFailed: the request never produced a response.
        """
        method = method.upper()
        if method not in METHODS:
            raise InvalidPayload(f"unsupported method: {method}")

        body, content_type = self.encode(payload if payload is not None else NoBody())

        request_headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
        if content_type is not None:
            request_headers["Content-Type"] = content_type

        token, user_id = self.session_state.snapshot()
        request_headers["Authorization"] = f"Bearer {token}"
        request_headers["X-User-ID"] = user_id

        for key, value in (headers or {}).items():
            if key.lower() in AUTH_HEADERS:
                logger.warning("ignoring credential header override", header=key)
                continue
            request_headers[key] = value

        prepared = self.http.prepare_request(
            requests.Request(method, url, data=body, headers=request_headers)
        )
        settings = self.http.merge_environment_settings(prepared.url, {}, None, None, None)

        logger.debug("dispatching request", method=method, url=url)
        try:
            return self.http.send(prepared, timeout=self.timeout, **settings)
        except requests.RequestException as exc:
            logger.warning("request failed", method=method, url=url, error=str(exc))
            raise TransportFailed(exc) from exc


def _encode_multipart(payload: MultipartBody) -> tuple[bytes, str]:
    parts: list[tuple[str, object]] = []
    seen: set[str] = set()

    for key, value in payload.field_items():
        if key in seen:
            raise InvalidPayload(f"duplicate multipart key: {key}")
        seen.add(key)
        parts.append((key, value))

    for key, attachment in payload.file_items():
        if key in seen:
            raise InvalidPayload(f"duplicate multipart key: {key}")
        seen.add(key)
        parts.append((key, (attachment.name, attachment.data)))

    try:
        return encode_multipart_formdata(parts)
    except (TypeError, ValueError, AttributeError) as exc:
        raise EncodingFailed(f"error writing multipart body: {exc}") from exc
