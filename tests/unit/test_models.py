"""Unit tests for content parts, observations and retention policies."""

from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from contextmem.errors import CodecError
from contextmem.errors import MalformedObservationError
from contextmem.models import as_part
from contextmem.models import MediaPart
from contextmem.models import Observation
from contextmem.models import Role
from contextmem.models import ScreenshotRetention
from contextmem.models import sniff_format
from contextmem.models import SourceClass
from contextmem.models import TextPart
from contextmem.models import ThoughtRetention

# ---------------------------------------------------------------------------
# Content parts
# ---------------------------------------------------------------------------


class TestMediaPart:
    def test_sniffs_png(self, png_bytes):
        part = MediaPart.from_bytes(png_bytes)
        assert part.format == "png"
        assert part.media_type == "image/png"

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b"\xff\xd8\xff\xe0rest", "jpeg"),
            (b"GIF89a....", "gif"),
            (b"GIF87a....", "gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "webp"),
        ],
    )
    def test_sniff_format(self, data, expected):
        assert sniff_format(data) == expected

    def test_unknown_bytes_need_explicit_format(self):
        with pytest.raises(CodecError, match="media format"):
            MediaPart.from_bytes(b"not an image")
        assert MediaPart.from_bytes(b"not an image", "PNG").format == "png"

    def test_base64_round_trip_is_byte_identical(self, png_bytes):
        part = MediaPart.from_bytes(png_bytes)
        restored = MediaPart.from_base64(part.to_base64(), part.format)
        assert restored.data == png_bytes
        assert restored == part

    def test_from_base64_accepts_data_url(self, png_bytes):
        payload = "data:image/png;base64," + base64.b64encode(png_bytes).decode()
        assert MediaPart.from_base64(payload).data == png_bytes

    def test_from_base64_rejects_garbage(self):
        with pytest.raises(CodecError, match="invalid base64"):
            MediaPart.from_base64("***not base64***", "png")

    def test_constructor_normalizes_format(self):
        assert MediaPart(format=" JPEG ", data=b"x").format == "jpeg"

    @pytest.mark.parametrize("fmt", ["", "   "])
    def test_empty_format_rejected(self, fmt):
        with pytest.raises(ValidationError, match="must not be empty"):
            MediaPart(format=fmt, data=b"rawbytes")

    def test_parts_are_frozen(self, png_part):
        with pytest.raises(ValidationError):
            png_part.format = "jpeg"


class TestAsPart:
    def test_promotes_strings(self):
        assert as_part("hello") == TextPart(text="hello")

    def test_passes_parts_through(self, png_part):
        assert as_part(png_part) is png_part

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            as_part(42)


# ---------------------------------------------------------------------------
# Source classification
# ---------------------------------------------------------------------------


class TestSourceClass:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("thought", SourceClass.thought),
            ("action:taken", SourceClass.action_taken),
            ("action:taken:click", SourceClass.action_taken),
            ("action:result", SourceClass.action_result),
            ("connector:browser", SourceClass.connector),
        ],
    )
    def test_from_source(self, source, expected):
        assert SourceClass.from_source(source) is expected

    @pytest.mark.parametrize("source", ["", "thoughts", "action", "tool:result"])
    def test_unknown_source_rejected(self, source):
        with pytest.raises(MalformedObservationError):
            SourceClass.from_source(source)

    def test_authored_classes(self):
        authored = {member for member in SourceClass if member.is_authored}
        assert authored == {SourceClass.action_taken, SourceClass.thought}


# ---------------------------------------------------------------------------
# Observation
# ---------------------------------------------------------------------------


class TestObservation:
    def test_create_classifies_source_once(self):
        obs = Observation.create("action:taken:type", "assistant", ["typed 'abc'"])
        assert obs.source_class is SourceClass.action_taken
        assert obs.role is Role.assistant
        assert obs.content == (TextPart(text="typed 'abc'"),)
        assert obs.retention is None

    def test_create_defaults_timestamp_to_now_ms(self):
        obs = Observation.create("thought", Role.assistant, ["x"])
        assert obs.timestamp > 1_600_000_000_000

    def test_create_rejects_unknown_source(self):
        with pytest.raises(MalformedObservationError):
            Observation.create("mystery", Role.user, ["x"])

    def test_create_rejects_unknown_role(self):
        with pytest.raises(MalformedObservationError):
            Observation.create("thought", "system", ["x"])

    def test_direct_construction_resolves_class(self):
        obs = Observation(source="connector:browser", role="user", content=())
        assert obs.source_class is SourceClass.connector

    def test_mismatched_source_class_rejected(self):
        with pytest.raises(ValidationError):
            Observation(
                source="thought",
                source_class=SourceClass.connector,
                role="assistant",
            )

    def test_observation_is_immutable(self):
        obs = Observation.from_thought("plan", timestamp=1)
        with pytest.raises(ValidationError):
            obs.timestamp = 2

    def test_from_thought(self):
        obs = Observation.from_thought("plan", limit=4, timestamp=5)
        assert obs.source == "thought"
        assert obs.retention == ThoughtRetention(limit=4)
        assert obs.retention_kind == "thought"
        assert obs.timestamp == 5

    def test_from_action_taken(self):
        obs = Observation.from_action_taken("click", "clicked Save")
        assert obs.source == "action:taken:click"
        assert obs.role is Role.assistant

    def test_from_connector_screenshot(self, png_part):
        obs = Observation.from_connector("browser", [png_part], screenshot=True)
        assert obs.source == "connector:browser"
        assert obs.role is Role.user
        assert obs.retention == ScreenshotRetention()

    def test_from_action_result_without_screenshot(self):
        obs = Observation.from_action_result(["done"])
        assert obs.retention is None
        assert obs.retention_kind is None

    def test_to_text_includes_media_placeholder(self, png_part):
        obs = Observation.from_action_result(["before ", png_part, " after"])
        assert obs.to_text() == "before [image/png] after"

    def test_negative_thought_limit_rejected(self):
        with pytest.raises(ValidationError):
            ThoughtRetention(limit=-1)
