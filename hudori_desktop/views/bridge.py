"""
Bridge — the QObject the web frontend calls through QWebChannel.

Slot names are the ones the frontend already uses (``SignIn``,
``GetFriends``, ...). JSON-envelope slots are generated from the endpoint
catalogue; the rest forward to the matching BackendService method.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

import structlog
from PySide6.QtCore import QObject, Slot

from hudori_desktop.services.backend_service import INVALID_REQUEST, BackendService, failure
from hudori_desktop.services.endpoints import ENDPOINTS, Endpoint
from hudori_desktop.services.errors import DecodeError
from hudori_desktop.services.payloads import FileAttachment


logger = structlog.get_logger(__name__)

# What to_bytes and to_attachment raise on arguments of the wrong shape.
CONVERSION_ERRORS = (binascii.Error, TypeError, ValueError, AttributeError)


def _invalid(slot: str) -> dict[str, Any]:
    logger.debug("rejected slot arguments", slot=slot)
    return failure(DecodeError(INVALID_REQUEST), INVALID_REQUEST)


def to_bytes(value: Any) -> bytes:
    """Accept bytes as the frontend sends them: base64 text, raw bytes or ints."""
    if value is None:
        return b""
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return bytes(value)


def to_attachment(item: Any) -> FileAttachment:
    if isinstance(item, FileAttachment):
        return item
    return FileAttachment(name=str(item.get("name", "")), data=to_bytes(item.get("data")))


class _BridgeBase(QObject):
    """Hand-written slots; catalogue slots are attached by the Bridge factory.

    QWebChannel runs every slot on the GUI thread and the slot blocks until
    the backend answers, so the window stays frozen for at most
    ``HUDORI_TIMEOUT`` seconds per call.
    """

    def __init__(self, service: BackendService, parent: QObject | None = None):
        super().__init__(parent)
        self._service = service

    # ── Authentication ────────────────────────────────────────────────

    @Slot(str, result="QVariant")
    def SignIn(self, request: str):
        return self._service.sign_in(request)

    @Slot(result="QVariant")
    def AuthVerify(self):
        return self._service.auth_verify()

    @Slot(result="QVariant")
    def LogoutHudori(self):
        return self._service.logout()

    @Slot(result="QVariant")
    def IsAuthenticated(self):
        return self._service.is_authenticated()

    # ── Messages, media, voice ────────────────────────────────────────

    @Slot("QVariant", str, str, "QVariantList", str, bool, str, "QVariantList", result="QVariant")
    def CreateMessage(
        self,
        author,
        channel_id: str,
        content: str,
        mentions,
        reply_to: str,
        private_message: bool,
        server_id: str,
        files,
    ):
        try:
            attachments = [to_attachment(item) for item in files or ()]
        except CONVERSION_ERRORS:
            return _invalid("CreateMessage")
        return self._service.create_message(
            author,
            channel_id,
            content,
            mentions,
            reply_to,
            private_message,
            server_id,
            attachments,
        )

    @Slot("QVariant", str, int, int, int, int, str, result="QVariant")
    def ChangeBanner(
        self,
        file_data,
        file_name: str,
        crop_y: int,
        crop_x: int,
        crop_width: int,
        crop_height: int,
        old_banner: str,
    ):
        try:
            data = to_bytes(file_data)
        except CONVERSION_ERRORS:
            return _invalid("ChangeBanner")
        return self._service.change_banner(
            data, file_name, crop_y, crop_x, crop_width, crop_height, old_banner
        )

    @Slot(str, result="QVariant")
    def ChangeAvatar(self, request: str):
        return self._service.change_avatar(request)

    @Slot(str, str, result="QVariant")
    def GenerateRoomToken(self, channel_id: str, user_id: str):
        return self._service.generate_room_token(channel_id, user_id)


def _endpoint_slot(endpoint: Endpoint):
    @Slot(str, result="QVariant", name=endpoint.slot)
    def slot(self, request: str):
        return self._service.dispatch(endpoint, request)

    slot.__name__ = endpoint.slot
    slot.__doc__ = f"{endpoint.method} {endpoint.paths[0]}"
    return slot


def _build_bridge() -> type[_BridgeBase]:
    namespace: dict[str, Any] = {"__module__": __name__, "__qualname__": "Bridge"}
    namespace.update({endpoint.slot: _endpoint_slot(endpoint) for endpoint in ENDPOINTS})
    return type(_BridgeBase)("Bridge", (_BridgeBase,), namespace)


Bridge = _build_bridge()
