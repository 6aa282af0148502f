"""Endpoint catalogue — one descriptor per backend endpoint.

A descriptor says which envelope the host sends, where the request goes and
whether the decoded envelope travels as the JSON body. The backend service
dispatches every descriptor through the same code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import Formatter
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, Base64Bytes, ConfigDict, Field, ValidationInfo, field_validator


# ── Request envelopes ───────────────────────────────────────────────


class Envelope(BaseModel):
    """Inbound JSON envelope; absent or null fields take their zero value."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_zero(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class SignInRequest(Envelope):
    username: str = ""
    password: str = ""


class UserRequest(Envelope):
    user_id: str = ""


class MessagesRequest(Envelope):
    channel_id: str = ""
    user_id: str = ""


class ServerRequest(Envelope):
    user_id: str = ""
    server_id: str = ""


class TypingRequest(Envelope):
    user_id: str = ""
    channel_id: str = ""
    display_name: str = ""
    status: str = ""


class SyncNotificationsRequest(Envelope):
    user_id: str = ""
    channels: Any = None


class JoinServerRequest(Envelope):
    user: Any = None
    invite_id: str = ""


class CreateServerRequest(Envelope):
    user_id: str = ""
    name: str = ""


class CategoryRequest(Envelope):
    server_id: str = ""
    category_name: str = ""


class DeleteFriendRequest(Envelope):
    user_id: str = ""
    friend_id: str = ""


class FriendRequest(Envelope):
    id: str = ""
    request_id: str = ""


class AddFriendRequest(Envelope):
    initiator_id: str = ""
    initiator_username: str = ""
    receiver_username: str = ""


class DeleteMessageRequest(Envelope):
    channel_id: str = ""
    message_id: str = ""
    private_message: bool = False
    author_id: str = ""


class EditMessageRequest(DeleteMessageRequest):
    content: str = ""
    mentions: list[str] | None = None


class NameColorRequest(Envelope):
    user_id: str = ""
    username_color: str = ""


class DeleteChannelRequest(Envelope):
    channel_id: str = ""
    category_name: str = ""
    server_id: str = ""


class CreateChannelRequest(Envelope):
    name: str = ""
    channel_type: str = ""
    category_name: str = ""
    server_id: str = ""


class DisplayNameRequest(Envelope):
    user_id: str = ""
    display_name: str = ""


class UsernameRequest(Envelope):
    user_id: str = ""
    username: str = ""


class ChangeEmailRequest(Envelope):
    user_id: str = ""
    email: str = ""


class AvatarChangeRequest(Envelope):
    """Avatar upload; ``fileData`` arrives base64-encoded."""

    file_data: Base64Bytes = Field(default=b"", alias="fileData")
    file_name: str = Field(default="", alias="fileName")
    crop_y: int = Field(default=0, alias="cropY")
    crop_x: int = Field(default=0, alias="cropX")
    crop_width: int = Field(default=0, alias="cropWidth")
    crop_height: int = Field(default=0, alias="cropHeight")
    old_avatar: str = Field(default="", alias="oldAvatar")
    server_id: str = Field(default="", alias="serverId")
    friends: list[str] = Field(default_factory=list)


# ── Descriptors ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Endpoint:
    """How one host operation maps onto one backend call.

    Attributes:
        name: Python operation name on the backend service.
        slot: Name the host frontend calls.
        method: HTTP method.
        paths: Path templates, most specific first. The first template whose
            placeholders are all non-empty in the envelope wins; the last one
            is the fallback.
        envelope: Model the inbound JSON string is decoded into.
        sends_body: Send the decoded envelope as the JSON body.
        failure: Message reported when the backend cannot be reached.
    """

    name: str
    slot: str
    method: str
    paths: tuple[str, ...]
    envelope: type[Envelope]
    sends_body: bool
    failure: str

    def path_for(self, envelope: Envelope) -> str:
        values = envelope.model_dump()
        for template in self.paths:
            keys = _placeholders(template)
            if all(values.get(key) for key in keys):
                break
        return template.format(
            **{key: quote(str(values.get(key) or ""), safe=":") for key in keys}
        )


def _placeholders(template: str) -> list[str]:
    return [name for _, name, _, _ in Formatter().parse(template) if name]


def _get(name: str, slot: str, paths: str | tuple[str, ...], envelope: type[Envelope], failure: str) -> Endpoint:
    paths = (paths,) if isinstance(paths, str) else paths
    return Endpoint(name, slot, "GET", paths, envelope, False, failure)


def _send(name: str, slot: str, method: str, path: str, envelope: type[Envelope], failure: str) -> Endpoint:
    return Endpoint(name, slot, method, (path,), envelope, True, failure)


SIGN_IN_PATH = "/auth/signin"
VERIFY_PATH = "/auth/verify"
LOGOUT_PATH = "/api/v1/user/logout"
CREATE_MESSAGE_PATH = "/api/v1/messages/create"
CHANGE_BANNER_PATH = "/api/v1/user/change_banner"
CHANGE_AVATAR_PATH = "/api/v1/user/change_avatar"
ROOM_TOKEN_PATH = "/api/v1/rtc/{channel_id}/{user_id}"

ENDPOINTS: tuple[Endpoint, ...] = (
    # Friends
    _get("get_friends", "GetFriends", "/api/v1/friends/{user_id}", UserRequest, "Failed to fetch friends"),
    _send("add_friend", "AddFriend", "POST", "/api/v1/friends/add", AddFriendRequest, "Failed to add friend"),
    _send("accept_friend", "AcceptFriend", "POST", "/api/v1/friends/accept", FriendRequest, "Failed to accept friend request"),
    _send("refuse_friend", "RefuseFriend", "POST", "/api/v1/friends/refuse", FriendRequest, "Failed to refuse friend request"),
    _send("delete_friend", "DeleteFriend", "POST", "/api/v1/friends/delete", DeleteFriendRequest, "Failed to delete friend"),
    # Servers
    _get("get_servers", "GetServers", "/api/v1/servers/{user_id}", UserRequest, "Failed to fetch servers"),
    _get("get_server", "GetServer", "/api/v1/server/{user_id}/{server_id}", ServerRequest, "Failed to fetch server"),
    _send("create_server", "CreateServer", "POST", "/api/v1/server/create", CreateServerRequest, "Failed to create server"),
    _send("delete_server", "DeleteServer", "POST", "/api/v1/server/delete", ServerRequest, "Failed to delete server"),
    _send("quit_server", "QuitServer", "POST", "/api/v1/server/leave", ServerRequest, "Failed to quit server"),
    _send("join_server", "JoinServer", "POST", "/api/v1/server/join", JoinServerRequest, "Failed to join server"),
    _send("create_invitation", "CreateInvitation", "POST", "/api/v1/invites/create", ServerRequest, "Failed to create invitation"),
    # Categories and channels
    _send("create_category", "CreateCategory", "POST", "/api/v1/category/create", CategoryRequest, "Failed to create category"),
    _send("delete_category", "DeleteCategory", "POST", "/api/v1/category/delete", CategoryRequest, "Failed to delete category"),
    _send("create_channel", "CreateChannel", "POST", "/api/v1/channels/create", CreateChannelRequest, "Failed to create channel"),
    _send("delete_channel", "DeleteChannel", "POST", "/api/v1/channels/delete", DeleteChannelRequest, "Failed to delete channel"),
    _send("indicate_typing", "IndicateTyping", "POST", "/api/v1/channels/typing", TypingRequest, "Failed to indicate typing"),
    # Messages
    _get(
        "get_messages",
        "GetMessages",
        ("/api/v1/messages/{channel_id}/private/{user_id}", "/api/v1/messages/{channel_id}"),
        MessagesRequest,
        "Failed to fetch messages",
    ),
    _send("delete_message", "DeleteMessage", "DELETE", "/api/v1/messages/delete", DeleteMessageRequest, "Failed to delete message"),
    _send("edit_message", "EditMessage", "PUT", "/api/v1/messages/edit", EditMessageRequest, "Failed to edit message"),
    # Notifications
    _get("get_notifications", "GetNotifications", "/api/v1/notifications/{user_id}", UserRequest, "Failed to fetch notifications"),
    _send(
        "sync_notifications",
        "SyncNotifications",
        "POST",
        "/api/v1/notifications/message_update",
        SyncNotificationsRequest,
        "Failed to sync notifications",
    ),
    # User profile
    _get("get_profile", "GetProfile", "/api/v1/user/{user_id}", UserRequest, "Failed to get profile"),
    _send("change_name_color", "ChangeNameColor", "POST", "/api/v1/user/change_name_color", NameColorRequest, "Failed to change name color"),
    _send("change_display_name", "ChangeDPName", "POST", "/api/v1/user/change_name", DisplayNameRequest, "Failed to change dp name"),
    _send("change_username", "ChangeUsername", "POST", "/api/v1/user/change_username", UsernameRequest, "Failed to change username"),
    _send("change_email", "ChangeEmail", "POST", "/api/v1/user/change_email", ChangeEmailRequest, "Failed to change email"),
)

BY_NAME: dict[str, Endpoint] = {endpoint.name: endpoint for endpoint in ENDPOINTS}
