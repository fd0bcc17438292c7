"""
Tests for the cursor record schema, parsing and legacy migration.
"""

import pytest

from cursor_gallery.storage.schema import (
    AnimationSpeed,
    AnimationType,
    BlendMode,
    CursorRecord,
    CursorSize,
    ImageRef,
    apply_form_fields,
    from_legacy,
    parse_color,
    parse_flag,
    to_form_fields,
)


class TestEnumerations:
    """Tests for the closed option sets."""

    def test_size_parse(self):
        """Test parsing sizes from form strings."""
        assert CursorSize.parse("48") is CursorSize.PX48
        assert CursorSize.parse(16) is CursorSize.PX16

    def test_size_outside_set(self):
        """Test that sizes outside the set are rejected."""
        with pytest.raises(ValueError, match="Invalid CursorSize"):
            CursorSize.parse("99")

    def test_speed_parse(self):
        """Test that speeds accept both integer and decimal spellings."""
        assert AnimationSpeed.parse("1.5") is AnimationSpeed.MEDIUM
        assert AnimationSpeed.parse("1") is AnimationSpeed.NORMAL
        assert AnimationSpeed.parse("0.5") is AnimationSpeed.FAST

    def test_animation_type_case_insensitive(self):
        """Test animation type parsing ignores case and whitespace."""
        assert AnimationType.parse(" SPIN ") is AnimationType.SPIN

    def test_unknown_blend_mode(self):
        """Test that an unknown blend mode does not fall through."""
        with pytest.raises(ValueError, match="Invalid BlendMode"):
            BlendMode.parse("luminosity")


class TestFieldParsers:
    """Tests for flag and colour parsing."""

    def test_flag_values(self):
        """Test recognised checkbox values."""
        assert parse_flag("1") is True
        assert parse_flag("on") is True
        assert parse_flag(True) is True
        assert parse_flag("0") is False
        assert parse_flag("") is False
        assert parse_flag(None) is False

    def test_flag_garbage(self):
        """Test that unrecognised flags raise."""
        with pytest.raises(ValueError, match="Invalid flag"):
            parse_flag("maybe")

    def test_color_normalized(self):
        """Test that valid colours are lower-cased."""
        assert parse_color("#FF0000") == "#ff0000"

    @pytest.mark.parametrize("value", ["red", "#fff", "ff0000", "#12345g", "#1234567"])
    def test_color_malformed(self, value):
        """Test that anything but #RRGGBB is rejected."""
        with pytest.raises(ValueError, match="Invalid colour"):
            parse_color(value)


class TestCursorRecord:
    """Tests for CursorRecord."""

    def test_defaults(self):
        """Test default values of a new record."""
        record = CursorRecord(id=3)

        assert record.name == "Cursor 3"
        assert record.enabled is False
        assert record.image is None
        assert record.size is CursorSize.PX32
        assert record.animation_type is AnimationType.NONE
        assert record.animation_loop is True
        assert record.animation_speed is AnimationSpeed.NORMAL
        assert record.click_animation is False
        assert record.blend_mode is BlendMode.NORMAL
        assert record.shadow_enabled is False
        assert record.shadow_color == "#000000"
        assert record.validate() is True

    def test_invalid_id(self):
        """Test that non-positive ids are invalid."""
        with pytest.raises(ValueError, match="positive integer"):
            CursorRecord(id=0).validate()

    def test_invalid_shadow_color(self):
        """Test that validate rejects malformed colours."""
        record = CursorRecord(id=1, shadow_color="blue")

        with pytest.raises(ValueError, match="Invalid shadow colour"):
            record.validate()

    def test_to_dict_and_back(self):
        """Test serialization roundtrip."""
        record = CursorRecord(
            id=4,
            name="Sparkle",
            enabled=True,
            image=ImageRef(attachment_id=12, url="/media/12-star.png"),
            size=CursorSize.PX48,
            animation_type=AnimationType.GLOW,
            animation_loop=False,
            animation_speed=AnimationSpeed.SLOW,
            click_animation=True,
            blend_mode=BlendMode.SCREEN,
            shadow_enabled=True,
            shadow_color="#336699",
        )

        restored = CursorRecord.from_dict(record.to_dict())

        assert restored == record

    def test_from_dict_missing_id(self):
        """Test that a persisted entry without id is rejected."""
        with pytest.raises(ValueError, match="Missing cursor id"):
            CursorRecord.from_dict({"name": "orphan"})

    def test_from_dict_fills_defaults(self):
        """Test that missing optional keys take defaults."""
        record = CursorRecord.from_dict({"id": 2})

        assert record == CursorRecord(id=2)

    def test_from_dict_invalid_value(self):
        """Test that invalid persisted values raise."""
        with pytest.raises(ValueError):
            CursorRecord.from_dict({"id": 2, "animation_type": "wobble"})


class TestLegacyMigration:
    """Tests for building a record from legacy single-cursor options."""

    def test_full_legacy_set(self):
        """Test migration of every legacy field."""
        record = from_legacy({
            "enabled": "1",
            "image_id": "7",
            "image_url": "https://example.com/c.png",
            "size": "48",
            "animation_type": "pulse",
            "animation_loop": "0",
            "animation_speed": "2",
            "click_animation": "1",
            "blend_mode": "screen",
            "shadow_enabled": "1",
            "shadow_color": "#FF0000",
        })

        assert record.id == 1
        assert record.name == "Cursor 1"
        assert record.enabled is True
        assert record.image == ImageRef(attachment_id=7, url="https://example.com/c.png")
        assert record.size is CursorSize.PX48
        assert record.animation_type is AnimationType.PULSE
        assert record.animation_loop is False
        assert record.animation_speed is AnimationSpeed.SLOW
        assert record.click_animation is True
        assert record.blend_mode is BlendMode.SCREEN
        assert record.shadow_enabled is True
        assert record.shadow_color == "#ff0000"

    def test_invalid_legacy_values_fall_back(self):
        """Test that unparseable legacy values use defaults."""
        record = from_legacy({"size": "100", "shadow_color": "red", "enabled": "1"})

        assert record.size is CursorSize.PX32
        assert record.shadow_color == "#000000"
        assert record.enabled is True

    def test_empty_image_url_means_no_image(self):
        """Test that an empty legacy URL leaves the image unset."""
        record = from_legacy({"image_id": "3", "image_url": ""})

        assert record.image is None


class TestFormFields:
    """Tests for applying form submissions to a record."""

    @pytest.fixture
    def stored(self):
        """A record with non-default values and an image."""
        return CursorRecord(
            id=5,
            name="Old",
            enabled=True,
            image=ImageRef(attachment_id=1, url="/media/1-a.png"),
            size=CursorSize.PX64,
            animation_type=AnimationType.SPIN,
            animation_loop=True,
            shadow_enabled=True,
            shadow_color="#123456",
        )

    def test_unticked_checkboxes_mean_off(self, stored):
        """Test that absent checkbox fields turn flags off."""
        updated, warnings = apply_form_fields(stored, {"name": "New", "size": "64"})

        assert warnings == []
        assert updated.enabled is False
        assert updated.animation_loop is False
        assert updated.shadow_enabled is False

    def test_absent_selects_use_defaults(self, stored):
        """Test that absent select fields fall back to defaults."""
        updated, _ = apply_form_fields(stored, {})

        assert updated.size is CursorSize.PX32
        assert updated.animation_type is AnimationType.NONE
        assert updated.shadow_color == "#000000"
        assert updated.name == "Cursor 5"

    def test_invalid_value_keeps_previous(self, stored):
        """Test that an invalid field keeps its old value and warns."""
        fields = to_form_fields(stored)
        fields["size"] = "1000"
        fields["shadow_color"] = "not-a-colour"
        fields["name"] = "Renamed"

        updated, warnings = apply_form_fields(stored, fields)

        assert sorted(w.field for w in warnings) == ["shadow_color", "size"]
        assert updated.size is CursorSize.PX64
        assert updated.shadow_color == "#123456"
        assert updated.name == "Renamed"

    def test_image_untouched(self, stored):
        """Test that form fields never change the image."""
        updated, _ = apply_form_fields(stored, {"image_url": "/elsewhere.png"})

        assert updated.image == stored.image
        assert updated.id == stored.id

    def test_resubmitting_form_fields_is_a_no_op(self, stored):
        """Test that to_form_fields reproduces the record."""
        updated, warnings = apply_form_fields(stored, to_form_fields(stored))

        assert warnings == []
        assert updated == stored
