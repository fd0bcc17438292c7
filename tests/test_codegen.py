"""
Tests for CSS/JS generation.
"""

import pytest

from cursor_gallery.core.config import RenderConfig
from cursor_gallery.render.codegen import (
    EMPTY_BUNDLE,
    OutputBundle,
    css_url,
    hex_to_rgb,
    render,
)
from cursor_gallery.storage.schema import (
    AnimationSpeed,
    AnimationType,
    BlendMode,
    CursorRecord,
    CursorSize,
    ImageRef,
)


def make_record(**overrides):
    """Enabled spin cursor with an image, as in the reference scenario."""
    values = dict(
        id=2,
        enabled=True,
        image=ImageRef(attachment_id=1, url="cursor.png"),
        size=CursorSize.PX32,
        animation_type=AnimationType.SPIN,
        animation_loop=True,
        animation_speed=AnimationSpeed.NORMAL,
        click_animation=False,
        blend_mode=BlendMode.NORMAL,
        shadow_enabled=False,
    )
    values.update(overrides)
    return CursorRecord(**values)


class TestEarlyExit:
    """Tests for the cases that render nothing."""

    def test_disabled(self):
        """Test that a disabled record renders nothing."""
        assert render(make_record(enabled=False)) == EMPTY_BUNDLE

    def test_no_image(self):
        """Test that a record without image renders nothing."""
        assert render(make_record(image=None)) == EMPTY_BUNDLE

    def test_empty_url(self):
        """Test that an image without URL renders nothing."""
        assert render(make_record(image=ImageRef(attachment_id=1, url=""))) == EMPTY_BUNDLE

    def test_missing_record(self):
        """Test that None renders nothing."""
        assert render(None) == EMPTY_BUNDLE

    def test_unsafe_scheme(self):
        """Test that non-http schemes are treated as unresolved."""
        record = make_record(image=ImageRef(attachment_id=1, url="javascript:alert(1)"))

        assert render(record).is_empty

    def test_empty_bundle_html(self):
        """Test that an empty bundle produces no markup."""
        assert EMPTY_BUNDLE.style_text == ""
        assert EMPTY_BUNDLE.script_text == ""
        assert EMPTY_BUNDLE.to_html() == ""


class TestStyle:
    """Tests for the generated style rules."""

    def test_spin_scenario(self):
        """Test the reference spin cursor."""
        style = render(make_record()).style_text

        assert "@keyframes custom-cursor-spin {" in style
        assert "rotate(0deg)" in style
        assert "rotate(360deg)" in style
        assert '.custom-cursor-area { cursor: url("cursor.png"), auto !important; }' in style
        assert '.custom-cursor-area * { cursor: url("cursor.png"), auto !important; }' in style
        assert "animation-iteration-count: infinite;" in style
        assert "animation-duration: 1s;" in style
        assert "mix-blend-mode" not in style
        assert "filter: drop-shadow" not in style

    def test_shadow_color(self):
        """Test that the shadow colour is converted to rgba."""
        style = render(make_record(shadow_enabled=True, shadow_color="#ff0000")).style_text

        assert "filter: drop-shadow(0 2px 4px rgba(255,0,0,0.5));" in style

    def test_blend_mode(self):
        """Test that non-normal blend modes are emitted."""
        style = render(make_record(blend_mode=BlendMode.MULTIPLY)).style_text

        assert "mix-blend-mode: multiply;" in style

    def test_size_and_speed(self):
        """Test that size and speed are emitted as plain numbers."""
        style = render(
            make_record(size=CursorSize.PX64, animation_speed=AnimationSpeed.MEDIUM)
        ).style_text

        assert "width: 64px;" in style
        assert "height: 64px;" in style
        assert "animation-duration: 1.5s;" in style

    def test_single_iteration(self):
        """Test that a non-looping animation runs once."""
        style = render(make_record(animation_loop=False)).style_text

        assert "animation-iteration-count: 1;" in style

    @pytest.mark.parametrize(
        "animation_type",
        [t for t in AnimationType if t is not AnimationType.NONE],
    )
    def test_every_animation_has_keyframes(self, animation_type):
        """Test that each animation type emits its own keyframes."""
        style = render(make_record(animation_type=animation_type)).style_text

        assert f"@keyframes custom-cursor-{animation_type.value} {{" in style
        assert f"animation-name: custom-cursor-{animation_type.value};" in style

    def test_static_cursor(self):
        """Test that no animation means only the cursor override."""
        bundle = render(make_record(animation_type=AnimationType.NONE))

        assert "@keyframes" not in bundle.style_text
        assert ".custom-cursor-animated" not in bundle.style_text
        assert "cursor: url(" in bundle.style_text

    def test_click_keyframes_without_animation(self):
        """Test that click keyframes are emitted even for static cursors."""
        bundle = render(
            make_record(animation_type=AnimationType.NONE, click_animation=True)
        )

        assert "@keyframes custom-cursor-click {" in bundle.style_text
        assert ".clicking" not in bundle.style_text
        assert "mousedown" not in bundle.script_text

    def test_click_rule(self):
        """Test the click override rule for animated cursors."""
        style = render(make_record(click_animation=True)).style_text

        assert "@keyframes custom-cursor-click {" in style
        assert "scale(0.8)" in style
        assert ".custom-cursor-animated.clicking {" in style
        assert "animation: custom-cursor-click 0.3s ease-in-out !important;" in style

    def test_custom_class_names(self):
        """Test that class names come from the render config."""
        config = RenderConfig(marker_class="my-area", animated_class="my-follower")

        bundle = render(make_record(), config)

        assert ".my-area {" in bundle.style_text
        assert ".my-follower {" in bundle.style_text
        assert 'classList.add("my-area")' in bundle.script_text


class TestScript:
    """Tests for the behaviour script."""

    def test_static_script(self):
        """Test that a static cursor only adds the marker class."""
        script = render(make_record(animation_type=AnimationType.NONE)).script_text

        assert 'document.addEventListener("DOMContentLoaded"' in script
        assert 'document.body.classList.add("custom-cursor-area");' in script
        assert "createElement" not in script
        assert "mousemove" not in script

    def test_animated_script(self):
        """Test that an animated cursor creates a tracking element."""
        script = render(make_record()).script_text

        assert 'cursorDiv.className = "custom-cursor-animated";' in script
        assert "mousemove" in script
        assert "e.clientX" in script
        assert "mousedown" not in script

    def test_click_script(self):
        """Test the click class toggling and release delay."""
        script = render(make_record(click_animation=True)).script_text

        assert 'cursorDiv.classList.add("clicking");' in script
        assert 'cursorDiv.classList.remove("clicking");' in script
        assert "}, 300);" in script


class TestHelpers:
    """Tests for the small conversion helpers."""

    def test_deterministic(self):
        """Test that rendering twice gives identical output."""
        record = make_record(click_animation=True, shadow_enabled=True)

        assert render(record) == render(record)

    def test_hex_to_rgb(self):
        """Test hex colour conversion."""
        assert hex_to_rgb("#ff0000") == (255, 0, 0)
        assert hex_to_rgb("00ff7f") == (0, 255, 127)

    def test_hex_to_rgb_malformed(self):
        """Test that malformed colours do not raise."""
        assert len(hex_to_rgb("#zz")) == 3

    def test_css_url_quoting(self):
        """Test that characters that could close url() are encoded."""
        assert css_url("a b(1).png") == 'url("a%20b%281%29.png")'
        assert css_url('x.png");}body{') == 'url("x.png%22%29;%7Dbody%7B")'

    def test_css_url_schemes(self):
        """Test which URLs are accepted."""
        assert css_url("https://cdn.example.com/c.png") == 'url("https://cdn.example.com/c.png")'
        assert css_url("/media/1-c.png") == 'url("/media/1-c.png")'
        assert css_url("data:image/png;base64,AAAA") is None
        assert css_url("") is None

    def test_to_html(self):
        """Test wrapping in style and script tags."""
        bundle = OutputBundle(style_text="a{}", script_text="b();")

        assert bundle.to_html() == "<style>a{}</style><script>b();</script>"
