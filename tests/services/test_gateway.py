"""Tests for RequestGateway encoding, authentication and transport handling."""

from __future__ import annotations

import math
import threading

import pytest
import requests

from hudori_desktop.services.errors import EncodingFailed, InvalidPayload, TransportFailed
from hudori_desktop.services.gateway import RequestGateway
from hudori_desktop.services.payloads import FileAttachment, JsonBody, MultipartBody, NoBody
from hudori_desktop.services.session import SessionState
from tests.conftest import API_URL, RecordingSession, make_response, parse_multipart

PROFILE_URL = f"{API_URL}/api/v1/user/u1"


class TestAuthentication:
    def test_session_credentials_are_sent(
        self, session_state: SessionState, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        session_state.set("tok123", "u1")
        gateway.execute("GET", PROFILE_URL, NoBody())
        assert http.last.headers["Authorization"] == "Bearer tok123"
        assert http.last.headers["X-User-ID"] == "u1"

    def test_empty_session_still_sends_headers(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        gateway.execute("GET", PROFILE_URL)
        assert http.last.headers["Authorization"] == "Bearer "
        assert http.last.headers["X-User-ID"] == ""

    def test_overrides_cannot_replace_credentials(
        self, session_state: SessionState, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        session_state.set("tok123", "u1")
        gateway.execute(
            "GET",
            PROFILE_URL,
            headers={"authorization": "Bearer forged", "X-USER-ID": "u9", "Accept": "text/plain"},
        )
        assert http.last.headers["Authorization"] == "Bearer tok123"
        assert http.last.headers["X-User-ID"] == "u1"
        assert http.last.headers["Accept"] == "text/plain"

    def test_override_replaces_content_type(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        gateway.execute(
            "POST",
            PROFILE_URL,
            JsonBody({"a": 1}),
            headers={"content-type": "application/vnd.hudori+json"},
        )
        assert http.last.headers["Content-Type"] == "application/vnd.hudori+json"

    def test_session_is_read_not_written(
        self, session_state: SessionState, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        session_state.set("tok123", "u1")
        http.queue(make_response(200, {"ok": True}, cookies={"session": "other"}))
        gateway.execute("POST", PROFILE_URL)
        assert session_state.snapshot() == ("tok123", "u1")

    def test_concurrent_set_never_mixes_headers(
        self, session_state: SessionState, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        stop = threading.Event()

        def flip() -> None:
            while not stop.is_set():
                session_state.set("t1", "u1")
                session_state.set("t2", "u2")

        writer = threading.Thread(target=flip)
        writer.start()
        try:
            for _ in range(300):
                gateway.execute("GET", PROFILE_URL)
        finally:
            stop.set()
            writer.join()

        allowed = {("Bearer ", ""), ("Bearer t1", "u1"), ("Bearer t2", "u2")}
        for sent in http.sent:
            assert (sent.headers["Authorization"], sent.headers["X-User-ID"]) in allowed


class TestEncoding:
    def test_no_body_sets_no_content_type(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        gateway.execute("POST", PROFILE_URL, NoBody())
        assert "Content-Type" not in http.last.headers
        assert not http.last.body

    def test_json_body_is_compact(self, gateway: RequestGateway, http: RecordingSession) -> None:
        gateway.execute("POST", PROFILE_URL, JsonBody({"name": "alice"}))
        assert http.last.body == b'{"name":"alice"}'
        assert http.last.headers["Content-Type"] == "application/json"

    @pytest.mark.parametrize("value", [{"when": object()}, {"ratio": math.nan}])
    def test_unserializable_json_is_not_sent(
        self, gateway: RequestGateway, http: RecordingSession, value: object
    ) -> None:
        with pytest.raises(EncodingFailed):
            gateway.execute("POST", PROFILE_URL, JsonBody(value))
        assert http.sent == []

    def test_multipart_round_trip(self, gateway: RequestGateway, http: RecordingSession) -> None:
        banner = b"\x89PNG\x00\x01\x02\xfe\xff"
        notes = b"plain text attachment"
        payload = MultipartBody(
            fields={"cropY": "10", "cropX": "0", "old_banner": "banners/old.png"},
            files={
                "banner": FileAttachment("banner.png", banner),
                "notes": FileAttachment("notes.txt", notes),
            },
        )
        gateway.execute("POST", PROFILE_URL, payload)

        content_type = http.last.headers["Content-Type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        parts = parse_multipart(content_type, http.last.body)
        assert parts == [
            ("cropY", None, b"10"),
            ("cropX", None, b"0"),
            ("old_banner", None, b"banners/old.png"),
            ("banner", "banner.png", banner),
            ("notes", "notes.txt", notes),
        ]

    def test_multipart_duplicate_field_is_rejected(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        payload = MultipartBody(fields=[("cropY", "1"), ("cropY", "2")])
        with pytest.raises(InvalidPayload):
            gateway.execute("POST", PROFILE_URL, payload)
        assert http.sent == []

    def test_multipart_field_and_file_share_key(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        payload = MultipartBody(
            fields={"avatar": "x"}, files={"avatar": FileAttachment("a.png", b"\x00")}
        )
        with pytest.raises(InvalidPayload):
            gateway.execute("POST", PROFILE_URL, payload)
        assert http.sent == []

    def test_multipart_encoder_failure_aborts(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        payload = MultipartBody(fields={"cropY": None})  # type: ignore[dict-item]
        with pytest.raises(EncodingFailed):
            gateway.execute("POST", PROFILE_URL, payload)
        assert http.sent == []

    def test_content_type_family_matches_variant(self) -> None:
        assert RequestGateway.encode(NoBody()) == (None, None)
        assert RequestGateway.encode(JsonBody([]))[1] == "application/json"
        _, content_type = RequestGateway.encode(MultipartBody(fields={"a": "b"}))
        assert content_type.startswith("multipart/form-data")


class TestExecution:
    def test_unknown_method_is_rejected(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        with pytest.raises(InvalidPayload):
            gateway.execute("PATCH", PROFILE_URL)
        assert http.sent == []

    def test_method_is_normalized(self, gateway: RequestGateway, http: RecordingSession) -> None:
        gateway.execute("delete", PROFILE_URL)
        assert http.last.method == "DELETE"

    def test_transport_failure_is_typed(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        cause = requests.ConnectionError("connection refused")
        http.error = cause
        with pytest.raises(TransportFailed) as excinfo:
            gateway.execute("GET", PROFILE_URL)
        assert excinfo.value.cause is cause
        assert excinfo.value.status == 500

    def test_raw_response_is_returned(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        response = make_response(404, {"message": "not found"})
        http.queue(response)
        assert gateway.execute("GET", PROFILE_URL) is response

    def test_timeout_is_forwarded(self, session_state: SessionState, http: RecordingSession) -> None:
        gateway = RequestGateway(session_state, timeout=2.5, http=http)
        gateway.execute("GET", PROFILE_URL)
        assert http.send_kwargs[-1]["timeout"] == 2.5

    def test_default_timeout_is_unbounded(
        self, gateway: RequestGateway, http: RecordingSession
    ) -> None:
        gateway.execute("GET", PROFILE_URL)
        assert http.send_kwargs[-1]["timeout"] is None
