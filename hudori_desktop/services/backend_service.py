"""
BackendService — the operations the desktop frontend calls on the backend.

Every backend endpoint goes through the RequestGateway. The frontend never
touches the network directly, and no operation raises to the host: failures
come back as result maps carrying a ``status`` and a ``message``.
"""

from __future__ import annotations

import functools
import json
from collections.abc import Sequence
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import requests
import structlog
from pydantic import ValidationError

from hudori_desktop.config import HudoriSettings
from hudori_desktop.services.endpoints import (
    BY_NAME,
    CHANGE_AVATAR_PATH,
    CHANGE_BANNER_PATH,
    CREATE_MESSAGE_PATH,
    LOGOUT_PATH,
    ROOM_TOKEN_PATH,
    SIGN_IN_PATH,
    VERIFY_PATH,
    AvatarChangeRequest,
    Endpoint,
    Envelope,
    SignInRequest,
)
from hudori_desktop.services.errors import DecodeError, EncodingFailed, GatewayError
from hudori_desktop.services.gateway import RequestGateway
from hudori_desktop.services.payloads import FileAttachment, JsonBody, MultipartBody, NoBody
from hudori_desktop.services.session import SessionState

logger = structlog.get_logger(__name__)

INVALID_REQUEST = "Invalid request format"
PARSE_FAILURE = "Failed to parse response"

E = TypeVar("E", bound=Envelope)


def decode_envelope(model: type[E], request: str | bytes) -> E:
    """Decode a JSON request envelope, raising DecodeError on any fault."""
    try:
        return model.model_validate_json(request)
    except ValidationError as exc:
        raise DecodeError(INVALID_REQUEST) from exc


def decode_response(response: requests.Response) -> dict[str, Any]:
    """Decode a JSON object body; anything else becomes a parse-failure map."""
    try:
        result = response.json()
    except ValueError:
        logger.warning("unparsable response body", url=response.url, status=response.status_code)
        return {"error": PARSE_FAILURE}
    if not isinstance(result, dict):
        logger.warning("response body is not an object", url=response.url, status=response.status_code)
        return {"error": PARSE_FAILURE}
    return result


def failure(exc: GatewayError, message: str, **extra: Any) -> dict[str, Any]:
    """Result map reported to the host for a gateway failure."""
    return {"status": exc.status, "message": message, **extra}


def _user_id(result: dict[str, Any]) -> str:
    user = result.get("user")
    if isinstance(user, dict) and isinstance(user.get("id"), str):
        return user["id"]
    return ""


def _session_cookie(response: requests.Response) -> str:
    """Value of the first cookie the backend set, in header order."""
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        for header in raw_headers.getlist("Set-Cookie"):
            value = response.cookies.get(header.split("=", 1)[0].strip())
            if value:
                return value
    return next(iter(response.cookies.values()), "")


class BackendService:
    """Generic dispatch over the endpoint catalogue plus the bespoke calls.

    Catalogue operations are reachable as attributes, e.g.
    ``service.get_friends('{"user_id": "42"}')``.
    """

    def __init__(
        self,
        base_url: str = "https://localhost:8080",
        session_state: Optional[SessionState] = None,
        gateway: Optional[RequestGateway] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_state = session_state or SessionState()
        self.gateway = gateway or RequestGateway(self.session_state)

    @classmethod
    def from_settings(cls, settings: HudoriSettings) -> BackendService:
        session_state = SessionState()
        gateway = RequestGateway(session_state, timeout=settings.timeout)
        return cls(settings.api_url, session_state, gateway)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ── Catalogue dispatch ────────────────────────────────────────────

    def dispatch(self, endpoint: Endpoint, request: str | bytes) -> dict[str, Any]:
        """Decode *request*, call *endpoint* and return the decoded body."""
        try:
            envelope = decode_envelope(endpoint.envelope, request)
        except DecodeError as exc:
            logger.debug("rejected request envelope", operation=endpoint.name)
            return failure(exc, INVALID_REQUEST)

        payload = NoBody()
        if endpoint.sends_body:
            payload = JsonBody(envelope.model_dump(mode="json", by_alias=True))
        try:
            response = self.gateway.execute(
                endpoint.method, self._url(endpoint.path_for(envelope)), payload
            )
        except GatewayError as exc:
            return failure(exc, endpoint.failure)

        with response:
            return decode_response(response)

    def call(self, name: str, request: str | bytes) -> dict[str, Any]:
        """Dispatch the catalogue operation called *name*."""
        return self.dispatch(BY_NAME[name], request)

    def __getattr__(self, name: str):
        endpoint = BY_NAME.get(name)
        if endpoint is None:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return functools.partial(self.dispatch, endpoint)

    # ── Authentication ────────────────────────────────────────────────

    def sign_in(self, request: str | bytes) -> dict[str, Any]:
        """POST /auth/signin — on success, store the session cookie and user id."""
        try:
            envelope = decode_envelope(SignInRequest, request)
        except DecodeError as exc:
            return failure(exc, INVALID_REQUEST)

        try:
            response = self.gateway.execute(
                "POST", self._url(SIGN_IN_PATH), JsonBody(envelope.model_dump())
            )
        except GatewayError as exc:
            return failure(
                exc,
                "Please check your login information and try again.",
                name="unexpected",
            )

        with response:
            result = decode_response(response)
            token = _session_cookie(response)
            status = response.status_code

        if status != 200:
            return result

        user_id = _user_id(result)
        if token and user_id:
            self.session_state.set(token, user_id)
        else:
            # TODO: confirm with the backend whether a 200 without a user or cookie can happen
            logger.warning(
                "sign-in succeeded without credentials",
                has_user=bool(user_id),
                has_cookie=bool(token),
            )
        return result

    def auth_verify(self) -> dict[str, Any]:
        """GET /auth/verify — refresh the cached user id when still valid."""
        try:
            response = self.gateway.execute("GET", self._url(VERIFY_PATH))
        except GatewayError as exc:
            return failure(exc, "Failed to signin")

        with response:
            result = decode_response(response)

        if result.get("message") == "success":
            user_id = _user_id(result)
            if user_id:
                self.session_state.refresh_user_id(user_id)
        return result

    def logout(self) -> dict[str, Any]:
        """POST /api/v1/user/logout — the session is cleared whatever happens."""
        try:
            response = self.gateway.execute("POST", self._url(LOGOUT_PATH))
            with response:
                return decode_response(response)
        except GatewayError as exc:
            return failure(exc, "Failed to logout")
        finally:
            self.session_state.clear()

    def is_authenticated(self) -> dict[str, str]:
        return {"status": "200" if self.session_state.is_authenticated() else "401"}

    # ── Messages with attachments ─────────────────────────────────────

    def create_message(
        self,
        author: Any,
        channel_id: str,
        content: str,
        mentions: Optional[Sequence[str]],
        reply_to: str,
        private_message: bool,
        server_id: str,
        files: Sequence[FileAttachment] = (),
    ) -> Optional[dict[str, Any]]:
        """POST /api/v1/messages/create as multipart.

        Returns None when the backend accepts the message; there is no body
        to inspect in that case. Failures still come back as result maps.
        """
        document = {
            "author": author,
            "channel_id": channel_id,
            "content": content,
            "mentions": list(mentions) if mentions is not None else None,
            "reply": reply_to,
            "private_message": private_message,
        }
        try:
            body, _ = RequestGateway.encode(JsonBody(document))
        except EncodingFailed as exc:
            return failure(exc, "Failed to marshal JSON body")

        payload = MultipartBody(
            fields=[("body", body.decode("utf-8"))],
            files=[(f"file-{index}", attachment) for index, attachment in enumerate(files)],
        )
        try:
            response = self.gateway.execute("POST", self._url(CREATE_MESSAGE_PATH), payload)
        except GatewayError as exc:
            return failure(exc, "Failed to send request")

        with response:
            if response.ok:
                return None
            logger.warning(
                "message rejected",
                channel_id=channel_id,
                server_id=server_id,
                status=response.status_code,
            )
            return decode_response(response)

    # ── Media upload ──────────────────────────────────────────────────

    def change_banner(
        self,
        file_data: bytes,
        file_name: str,
        crop_y: int,
        crop_x: int,
        crop_width: int,
        crop_height: int,
        old_banner: str,
    ) -> dict[str, Any]:
        """POST /api/v1/user/change_banner with the cropped image."""
        payload = MultipartBody(
            fields=[
                ("cropY", str(crop_y)),
                ("cropX", str(crop_x)),
                ("cropWidth", str(crop_width)),
                ("cropHeight", str(crop_height)),
                ("old_banner", old_banner),
            ],
            files=[("banner", FileAttachment(file_name, file_data))],
        )
        return self._upload(CHANGE_BANNER_PATH, payload, "Failed to change banner")

    def change_avatar(self, request: str | bytes) -> dict[str, Any]:
        """POST /api/v1/user/change_avatar from a JSON envelope."""
        try:
            envelope = decode_envelope(AvatarChangeRequest, request)
        except DecodeError as exc:
            return failure(exc, INVALID_REQUEST)

        fields = [
            ("cropY", str(envelope.crop_y)),
            ("cropX", str(envelope.crop_x)),
            ("cropWidth", str(envelope.crop_width)),
            ("cropHeight", str(envelope.crop_height)),
            ("old_avatar", envelope.old_avatar),
        ]
        if envelope.server_id:
            fields.append(("server_id", envelope.server_id))
        if envelope.friends:
            fields.append(("friends", json.dumps(envelope.friends, separators=(",", ":"))))

        payload = MultipartBody(
            fields=fields,
            files=[("avatar", FileAttachment(envelope.file_name, envelope.file_data))],
        )
        return self._upload(CHANGE_AVATAR_PATH, payload, "Failed to change avatar")

    def _upload(self, path: str, payload: MultipartBody, message: str) -> dict[str, Any]:
        try:
            response = self.gateway.execute("POST", self._url(path), payload)
        except GatewayError as exc:
            return failure(exc, message)
        with response:
            return decode_response(response)

    # ── Voice rooms ───────────────────────────────────────────────────

    def generate_room_token(self, channel_id: str, user_id: str) -> dict[str, Any]:
        """POST /api/v1/rtc/<channel>/<user> — token for joining a voice room."""
        path = ROOM_TOKEN_PATH.format(
            channel_id=quote(channel_id, safe=":"), user_id=quote(user_id, safe=":")
        )
        try:
            response = self.gateway.execute("POST", self._url(path))
        except GatewayError as exc:
            return failure(exc, "Failed to create room token")
        with response:
            return decode_response(response)
