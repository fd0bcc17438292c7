"""
CSS/JS generation for a cursor record.

``render`` is a pure function of the record and the render configuration.
It touches no shared state and is safe to call from any number of
threads.

The CSS swaps the native pointer for the image via ``cursor: url(...)``.
Browsers cannot animate that image, so animated cursors additionally get
a fixed-position element that follows the mouse and carries the
animation.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, urlsplit
import json
import string

from cursor_gallery.core.config import RenderConfig
from cursor_gallery.storage.schema import AnimationType, BlendMode, CursorRecord
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


_DEFAULT_CONFIG = RenderConfig()

_ALLOWED_URL_SCHEMES = ("", "http", "https")

# Characters left as-is inside url("..."); quotes, parens, backslashes,
# whitespace and angle brackets get percent-encoded
_URL_SAFE_CHARS = "/:?#[]@!$&*+,;=%-._~"

# Keyframe bodies per animation type. NONE has no keyframes.
_KEYFRAME_BODIES: Dict[AnimationType, Optional[Tuple[str, ...]]] = {
    AnimationType.NONE: None,
    AnimationType.PULSE: (
        "0%, 100% { transform: scale(1); }",
        "50% { transform: scale(1.2); }",
    ),
    AnimationType.SPIN: (
        "from { transform: rotate(0deg); }",
        "to { transform: rotate(360deg); }",
    ),
    AnimationType.BOUNCE: (
        "0%, 100% { transform: translateY(0); }",
        "50% { transform: translateY(-5px); }",
    ),
    AnimationType.SHAKE: (
        "0%, 100% { transform: translateX(0); }",
        "25% { transform: translateX(-3px); }",
        "75% { transform: translateX(3px); }",
    ),
    AnimationType.GLOW: (
        "0%, 100% { opacity: 1; filter: drop-shadow(0 0 0px rgba(255,255,255,0)); }",
        "50% { opacity: 0.7; filter: drop-shadow(0 0 8px rgba(255,255,255,0.8)); }",
    ),
}

_CLICK_KEYFRAME_BODY = (
    "0% { transform: translate(-50%, -50%) scale(1); }",
    "50% { transform: translate(-50%, -50%) scale(0.8); }",
    "100% { transform: translate(-50%, -50%) scale(1); }",
)


@dataclass(frozen=True)
class OutputBundle:
    """Generated style rules and behaviour script for one cursor."""

    style_text: str = ""
    script_text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.style_text and not self.script_text

    def to_html(self) -> str:
        """Wrap the bundle in <style>/<script> tags for page output."""
        if self.is_empty:
            return ""
        return f"<style>{self.style_text}</style><script>{self.script_text}</script>"


EMPTY_BUNDLE = OutputBundle()


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """
    Convert ``#RRGGBB`` to an (r, g, b) tuple.

    Colours are validated before they reach the renderer. For anything
    malformed the result is meaningless but no exception is raised:
    non-hex characters in a pair are ignored and an empty pair is 0.

    Args:
        color: Colour string, leading '#' optional

    Returns:
        Red, green and blue components (0-255)
    """
    digits = color.lstrip("#")
    return tuple(_hex_pair(digits[offset:offset + 2]) for offset in (0, 2, 4))


def _hex_pair(pair: str) -> int:
    cleaned = "".join(c for c in pair if c in string.hexdigits)
    return int(cleaned, 16) if cleaned else 0


def css_url(url: str) -> Optional[str]:
    """
    Quote an image URL for use inside CSS ``url()``.

    Returns:
        ``url("...")`` text, or None if the URL is empty or uses a scheme
        other than http/https
    """
    url = (url or "").strip()
    if not url:
        return None

    try:
        scheme = urlsplit(url).scheme.lower()
    except ValueError:
        return None
    if scheme not in _ALLOWED_URL_SCHEMES:
        return None

    return f'url("{quote(url, safe=_URL_SAFE_CHARS)}")'


def _css_number(value: float) -> str:
    """Format a number for CSS without trailing zeros (1.0 -> "1")."""
    return f"{float(value):g}"


def _keyframes(name: str, body: Tuple[str, ...]) -> List[str]:
    return [f"@keyframes {name} {{", *(f"  {line}" for line in body), "}"]


def render_style(record: CursorRecord, image_css: str, config: RenderConfig) -> str:
    """Style rules for an enabled record with a resolved image."""
    animated = record.animation_type is not AnimationType.NONE
    animation_name = f"{config.keyframe_prefix}{record.animation_type.value}"
    click_name = f"{config.keyframe_prefix}click"

    lines: List[str] = []

    body = _KEYFRAME_BODIES[record.animation_type]
    if body is not None:
        lines.extend(_keyframes(animation_name, body))

    if record.click_animation:
        lines.extend(_keyframes(click_name, _CLICK_KEYFRAME_BODY))

    cursor_rule = f"cursor: {image_css}, auto !important;"
    lines.append(f".{config.marker_class} {{ {cursor_rule} }}")
    lines.append(f".{config.marker_class} * {{ {cursor_rule} }}")

    if animated:
        size = int(record.size)
        iterations = "infinite" if record.animation_loop else "1"

        lines.extend([
            f".{config.animated_class} {{",
            "  position: fixed;",
            "  pointer-events: none;",
            f"  z-index: {int(config.z_index)};",
            f"  width: {size}px;",
            f"  height: {size}px;",
            f"  background-image: {image_css};",
            "  background-size: contain;",
            "  background-repeat: no-repeat;",
            "  transform: translate(-50%, -50%);",
            f"  animation-name: {animation_name};",
            f"  animation-duration: {_css_number(record.animation_speed.value)}s;",
            "  animation-timing-function: ease-in-out;",
            f"  animation-iteration-count: {iterations};",
        ])

        if record.blend_mode is not BlendMode.NORMAL:
            lines.append(f"  mix-blend-mode: {record.blend_mode.value};")

        if record.shadow_enabled:
            r, g, b = hex_to_rgb(record.shadow_color)
            lines.append(f"  filter: drop-shadow(0 2px 4px rgba({r},{g},{b},0.5));")

        lines.append("}")

        if record.click_animation:
            lines.extend([
                f".{config.animated_class}.{config.clicking_class} {{",
                f"  animation: {click_name} "
                f"{_css_number(config.click_duration_sec)}s ease-in-out !important;",
                "}",
            ])

    return "\n".join(lines)


def render_script(record: CursorRecord, config: RenderConfig) -> str:
    """Behaviour script for an enabled record with a resolved image."""
    marker = json.dumps(config.marker_class)
    lines = [
        'document.addEventListener("DOMContentLoaded", function() {',
        f"  document.body.classList.add({marker});",
    ]

    if record.animation_type is not AnimationType.NONE:
        lines.extend([
            '  var cursorDiv = document.createElement("div");',
            f"  cursorDiv.className = {json.dumps(config.animated_class)};",
            "  document.body.appendChild(cursorDiv);",
            '  document.addEventListener("mousemove", function(e) {',
            '    cursorDiv.style.left = e.clientX + "px";',
            '    cursorDiv.style.top = e.clientY + "px";',
            "  });",
        ])

        if record.click_animation:
            clicking = json.dumps(config.clicking_class)
            lines.extend([
                '  document.addEventListener("mousedown", function() {',
                f"    cursorDiv.classList.add({clicking});",
                "  });",
                '  document.addEventListener("mouseup", function() {',
                "    setTimeout(function() {",
                f"      cursorDiv.classList.remove({clicking});",
                f"    }}, {int(config.click_release_delay_ms)});",
                "  });",
            ])

    lines.append("});")
    return "\n".join(lines)


def render(record: Optional[CursorRecord], config: Optional[RenderConfig] = None) -> OutputBundle:
    """
    Generate the output bundle for a cursor record.

    Args:
        record: Cursor record (None renders nothing)
        config: Class names and timings (defaults to RenderConfig())

    Returns:
        OutputBundle; empty if the record is missing, disabled or has no
        usable image
    """
    if record is None or not record.enabled or record.image is None:
        return EMPTY_BUNDLE

    image_css = css_url(record.image.url)
    if image_css is None:
        logger.debug(f"Cursor {record.id}: image URL unusable, rendering nothing")
        return EMPTY_BUNDLE

    config = config or _DEFAULT_CONFIG
    return OutputBundle(
        style_text=render_style(record, image_css, config),
        script_text=render_script(record, config),
    )
