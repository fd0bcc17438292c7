"""
Cursor record schema and validation.

A cursor record is one configured pointer-replacement profile. All the
closed option sets (size, animation, speed, blend mode) are enumerations
so that an unknown value is rejected at the edge instead of silently
rendering nothing.
"""

from dataclasses import dataclass, asdict, replace
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import re

from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

DEFAULT_SHADOW_COLOR = "#000000"

# Suffixes of the legacy single-cursor option keys (prefixed in the store)
LEGACY_FIELDS: Tuple[str, ...] = (
    "enabled",
    "image_id",
    "image_url",
    "size",
    "animation_type",
    "animation_loop",
    "animation_speed",
    "click_animation",
    "blend_mode",
    "shadow_enabled",
    "shadow_color",
)

_TRUE_STRINGS = {"1", "true", "on", "yes"}
_FALSE_STRINGS = {"0", "", "false", "off", "no"}


def _parse_enum(enum_cls, value: Any, convert: Callable[[Any], Any]):
    """Look up ``value`` in ``enum_cls`` after ``convert``, or raise ValueError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(convert(value))
    except (TypeError, ValueError):
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise ValueError(
            f"Invalid {enum_cls.__name__} {value!r} (allowed: {allowed})"
        ) from None


class CursorSize(IntEnum):
    """Rendered cursor edge length in pixels."""

    PX16 = 16
    PX24 = 24
    PX32 = 32
    PX48 = 48
    PX64 = 64

    @classmethod
    def parse(cls, value: Any) -> "CursorSize":
        """Parse a form or legacy value such as ``"32"``."""
        return _parse_enum(cls, value, lambda v: int(str(v).strip()))


class AnimationType(Enum):
    """Animation applied to the pointer-following element."""

    NONE = "none"
    PULSE = "pulse"
    SPIN = "spin"
    BOUNCE = "bounce"
    SHAKE = "shake"
    GLOW = "glow"

    @classmethod
    def parse(cls, value: Any) -> "AnimationType":
        return _parse_enum(cls, value, lambda v: str(v).strip().lower())


class AnimationSpeed(Enum):
    """Duration of one animation cycle in seconds."""

    FAST = 0.5
    NORMAL = 1.0
    MEDIUM = 1.5
    SLOW = 2.0
    VERY_SLOW = 3.0

    @classmethod
    def parse(cls, value: Any) -> "AnimationSpeed":
        return _parse_enum(cls, value, lambda v: float(str(v).strip()))


class BlendMode(Enum):
    """CSS mix-blend-mode of the animated element."""

    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"

    @classmethod
    def parse(cls, value: Any) -> "BlendMode":
        return _parse_enum(cls, value, lambda v: str(v).strip().lower())


def parse_flag(value: Any) -> bool:
    """
    Parse a checkbox-style flag.

    Args:
        value: bool, None, or one of "1"/"0", "true"/"false", "on"/"off"

    Returns:
        Parsed boolean

    Raises:
        ValueError: If the value is not recognisable as a flag
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0

    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid flag value {value!r}")


def parse_color(value: Any) -> str:
    """Validate a ``#RRGGBB`` colour string and return it lower-cased."""
    text = str(value).strip()
    if not HEX_COLOR_PATTERN.match(text):
        raise ValueError(f"Invalid colour {value!r}, expected #RRGGBB")
    return text.lower()


@dataclass(frozen=True)
class ImageRef:
    """Handle to an uploaded image asset."""

    attachment_id: Optional[int]
    url: str

    @property
    def resolved(self) -> bool:
        """True if the asset has a usable URL."""
        return bool(self.url)


@dataclass
class FieldWarning:
    """A field that could not be applied during a save."""

    field: str
    message: str


@dataclass
class CursorRecord:
    """
    One configured cursor profile.

    ``id`` is assigned by the gallery and never changes. Everything else is
    overwritten by a save, except ``image`` which only changes when a new
    upload succeeds.
    """

    id: int
    name: str = ""
    enabled: bool = False
    image: Optional[ImageRef] = None
    size: CursorSize = CursorSize.PX32
    animation_type: AnimationType = AnimationType.NONE
    animation_loop: bool = True
    animation_speed: AnimationSpeed = AnimationSpeed.NORMAL
    click_animation: bool = False
    blend_mode: BlendMode = BlendMode.NORMAL
    shadow_enabled: bool = False
    shadow_color: str = DEFAULT_SHADOW_COLOR

    def __post_init__(self):
        """Fill in the default display name."""
        if not self.name:
            self.name = default_name(self.id)

    @property
    def image_url(self) -> str:
        """URL of the cursor image, or an empty string."""
        return self.image.url if self.image else ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "image_id": self.image.attachment_id if self.image else None,
            "image_url": self.image_url,
            "size": int(self.size),
            "animation_type": self.animation_type.value,
            "animation_loop": self.animation_loop,
            "animation_speed": self.animation_speed.value,
            "click_animation": self.click_animation,
            "blend_mode": self.blend_mode.value,
            "shadow_enabled": self.shadow_enabled,
            "shadow_color": self.shadow_color,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CursorRecord":
        """
        Create from a persisted dictionary.

        Missing optional keys take their defaults. Present but invalid
        values raise ValueError.
        """
        if "id" not in data:
            raise ValueError("Missing cursor id")

        record = cls(
            id=_parse_id(data["id"]),
            name=str(data.get("name") or ""),
            enabled=parse_flag(data.get("enabled", False)),
            image=_image_from_fields(data.get("image_id"), data.get("image_url")),
            size=CursorSize.parse(data.get("size", CursorSize.PX32)),
            animation_type=AnimationType.parse(
                data.get("animation_type", AnimationType.NONE)
            ),
            animation_loop=parse_flag(data.get("animation_loop", True)),
            animation_speed=AnimationSpeed.parse(
                data.get("animation_speed", AnimationSpeed.NORMAL.value)
            ),
            click_animation=parse_flag(data.get("click_animation", False)),
            blend_mode=BlendMode.parse(data.get("blend_mode", BlendMode.NORMAL)),
            shadow_enabled=parse_flag(data.get("shadow_enabled", False)),
            shadow_color=parse_color(data.get("shadow_color", DEFAULT_SHADOW_COLOR)),
        )
        record.validate()
        return record

    def validate(self) -> bool:
        """
        Validate record data.

        Returns:
            True if valid, raises ValueError if invalid
        """
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise ValueError("Cursor id must be a positive integer")

        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Cursor name must be a non-empty string")

        for attr, enum_cls in (
            ("size", CursorSize),
            ("animation_type", AnimationType),
            ("animation_speed", AnimationSpeed),
            ("blend_mode", BlendMode),
        ):
            if not isinstance(getattr(self, attr), enum_cls):
                raise ValueError(f"{attr} must be a {enum_cls.__name__}")

        if not HEX_COLOR_PATTERN.match(self.shadow_color or ""):
            raise ValueError(f"Invalid shadow colour {self.shadow_color!r}")

        return True


def default_name(cursor_id: int) -> str:
    """Display name given to a cursor that has none."""
    return f"Cursor {cursor_id}"


def new_record(cursor_id: int) -> CursorRecord:
    """Build a record with every field at its default."""
    return CursorRecord(id=cursor_id)


def _parse_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid cursor id {value!r}")
    try:
        cursor_id = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid cursor id {value!r}") from None
    if cursor_id <= 0:
        raise ValueError(f"Invalid cursor id {value!r}")
    return cursor_id


def _image_from_fields(image_id: Any, image_url: Any) -> Optional[ImageRef]:
    url = str(image_url or "").strip()
    if not url:
        return None

    attachment_id = None
    if image_id not in (None, ""):
        try:
            attachment_id = int(image_id)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid image id {image_id!r}")
    return ImageRef(attachment_id=attachment_id, url=url)


def from_legacy(options: Mapping[str, Any], cursor_id: int = 1) -> CursorRecord:
    """
    Build a record from the legacy single-cursor option values.

    ``options`` is keyed by the bare field names in LEGACY_FIELDS. Legacy
    values were stored as strings; anything unparseable falls back to the
    default for that field.

    Args:
        options: Legacy field values
        cursor_id: Id for the migrated record

    Returns:
        Migrated CursorRecord
    """
    defaults = new_record(cursor_id)

    def lenient(key: str, parser: Callable[[Any], Any], default: Any) -> Any:
        if key not in options or options[key] is None:
            return default
        try:
            return parser(options[key])
        except ValueError as e:
            logger.warning(f"Legacy {key} ignored: {e}")
            return default

    return CursorRecord(
        id=cursor_id,
        enabled=lenient("enabled", parse_flag, defaults.enabled),
        image=_image_from_fields(options.get("image_id"), options.get("image_url")),
        size=lenient("size", CursorSize.parse, defaults.size),
        animation_type=lenient(
            "animation_type", AnimationType.parse, defaults.animation_type
        ),
        animation_loop=lenient("animation_loop", parse_flag, defaults.animation_loop),
        animation_speed=lenient(
            "animation_speed", AnimationSpeed.parse, defaults.animation_speed
        ),
        click_animation=lenient(
            "click_animation", parse_flag, defaults.click_animation
        ),
        blend_mode=lenient("blend_mode", BlendMode.parse, defaults.blend_mode),
        shadow_enabled=lenient("shadow_enabled", parse_flag, defaults.shadow_enabled),
        shadow_color=lenient("shadow_color", parse_color, defaults.shadow_color),
    )


def apply_form_fields(
    previous: CursorRecord, fields: Mapping[str, Any]
) -> Tuple[CursorRecord, List[FieldWarning]]:
    """
    Overwrite a record with submitted form values.

    Checkbox fields that are absent mean "off". Other absent fields take
    their documented default. A present but invalid value keeps the
    previous value and produces a warning. The image is left untouched;
    uploads are handled separately.

    Args:
        previous: Record as stored before the submission
        fields: Submitted field values

    Returns:
        (updated record, warnings)
    """
    defaults = new_record(previous.id)
    warnings: List[FieldWarning] = []

    def pick(key: str, parser: Callable[[Any], Any]) -> Any:
        if key not in fields:
            return getattr(defaults, key)
        return checked(key, parser)

    def checkbox(key: str) -> bool:
        # Unticked checkboxes are simply not submitted
        if key not in fields:
            return False
        return checked(key, parse_flag)

    def checked(key: str, parser: Callable[[Any], Any]) -> Any:
        try:
            return parser(fields[key])
        except ValueError as e:
            warnings.append(FieldWarning(field=key, message=str(e)))
            return getattr(previous, key)

    name = str(fields.get("name") or "").strip() or default_name(previous.id)

    updated = replace(
        previous,
        name=name,
        enabled=checkbox("enabled"),
        size=pick("size", CursorSize.parse),
        animation_type=pick("animation_type", AnimationType.parse),
        animation_loop=checkbox("animation_loop"),
        animation_speed=pick("animation_speed", AnimationSpeed.parse),
        click_animation=checkbox("click_animation"),
        blend_mode=pick("blend_mode", BlendMode.parse),
        shadow_enabled=checkbox("shadow_enabled"),
        shadow_color=pick("shadow_color", parse_color),
    )

    for warning in warnings:
        logger.warning(f"Cursor {previous.id} field {warning.field}: {warning.message}")

    return updated, warnings


def to_form_fields(record: CursorRecord) -> Dict[str, str]:
    """
    Form values that would resubmit ``record`` unchanged.

    Checkboxes that are off are omitted, as a browser would omit them.
    """
    fields = {
        "name": record.name,
        "size": str(int(record.size)),
        "animation_type": record.animation_type.value,
        "animation_speed": f"{record.animation_speed.value:g}",
        "blend_mode": record.blend_mode.value,
        "shadow_color": record.shadow_color,
    }
    for flag in ("enabled", "animation_loop", "click_animation", "shadow_enabled"):
        if getattr(record, flag):
            fields[flag] = "1"
    return fields


def warnings_as_dicts(warnings: List[FieldWarning]) -> List[Dict[str, str]]:
    """Serialize warnings for display or JSON output."""
    return [asdict(w) for w in warnings]
