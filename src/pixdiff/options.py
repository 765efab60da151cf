"""Comparison configuration: tolerances, ignore presets, boxes and output settings.

Every field has a documented default; :func:`resolve_options` validates the
whole value once and expands presets before any pixel is touched.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pixdiff.errors import InvalidBox, InvalidOutputSettings, InvalidToleranceConfig

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

DEFAULT_ERROR_COLOR: RGB = (255, 0, 255)
DEFAULT_TRANSPARENCY = 0.3
DEFAULT_LARGE_IMAGE_THRESHOLD = 1200


@dataclass(frozen=True)
class Tolerance:
    """Per-channel and brightness thresholds (inclusive: a delta equal to the value matches)."""

    red: int = 16
    green: int = 16
    blue: int = 16
    alpha: int = 16
    min_brightness: int = 16
    max_brightness: int = 240

    @classmethod
    def exact(cls) -> Tolerance:
        return cls(0, 0, 0, 0, 0, 255)

    def validate(self) -> None:
        for name in ("red", "green", "blue", "alpha", "min_brightness", "max_brightness"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidToleranceConfig(f"tolerance {name}={value!r} is not an integer")
            if not 0 <= value <= 255:
                raise InvalidToleranceConfig(f"tolerance {name}={value!r} outside [0, 255]")
        if self.min_brightness > self.max_brightness:
            raise InvalidToleranceConfig(
                f"brightness band inverted: min {self.min_brightness} > max {self.max_brightness}"
            )


@dataclass(frozen=True)
class Box:
    """Pixel rectangle; ``right`` and ``bottom`` are exclusive."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def validate(self, width: int, height: int) -> None:
        if self.left > self.right or self.top > self.bottom:
            raise InvalidBox(f"inverted box {self}")
        if self.left < 0 or self.top < 0 or self.right > width or self.bottom > height:
            raise InvalidBox(f"box {self} outside image {width}x{height}")

    def as_dict(self) -> dict[str, int]:
        return {"left": self.left, "top": self.top, "right": self.right, "bottom": self.bottom}


ZERO_BOX = Box(0, 0, 0, 0)


class IgnoreMode(str, Enum):
    """Named ignore presets."""

    NOTHING = "nothing"
    LESS = "less"
    ANTIALIASING = "antialiasing"
    COLORS = "colors"
    ALPHA = "alpha"


@dataclass(frozen=True)
class IgnoreFlags:
    ignore_antialiasing: bool = False
    ignore_colors: bool = False
    ignore_alpha: bool = False


_PRESET_FLAGS: dict[IgnoreMode, IgnoreFlags] = {
    IgnoreMode.NOTHING: IgnoreFlags(),
    IgnoreMode.LESS: IgnoreFlags(),
    IgnoreMode.ANTIALIASING: IgnoreFlags(ignore_antialiasing=True),
    # brightness-only comparison still needs antialiasing detection
    IgnoreMode.COLORS: IgnoreFlags(ignore_antialiasing=True, ignore_colors=True),
    IgnoreMode.ALPHA: IgnoreFlags(ignore_alpha=True),
}


class ErrorType(str, Enum):
    """Diff image rendering modes."""

    FLAT = "flat"
    MOVEMENT = "movement"
    FLAT_DIFFERENCE_INTENSITY = "flatDifferenceIntensity"
    MOVEMENT_DIFFERENCE_INTENSITY = "movementDifferenceIntensity"
    DIFF_ONLY = "diffOnly"

    @property
    def is_movement(self) -> bool:
        return self in (ErrorType.MOVEMENT, ErrorType.MOVEMENT_DIFFERENCE_INTENSITY)

    @property
    def is_intensity(self) -> bool:
        return self in (
            ErrorType.FLAT_DIFFERENCE_INTENSITY,
            ErrorType.MOVEMENT_DIFFERENCE_INTENSITY,
        )


@dataclass(frozen=True)
class OutputSettings:
    """How the diff image is drawn and which regions are scored."""

    error_color: RGB = DEFAULT_ERROR_COLOR
    error_type: ErrorType = ErrorType.FLAT
    transparency: float = DEFAULT_TRANSPARENCY
    large_image_threshold: int = DEFAULT_LARGE_IMAGE_THRESHOLD
    bounding_boxes: tuple[Box, ...] = ()
    ignored_boxes: tuple[Box, ...] = ()
    ignore_areas_colored_with: RGBA | None = None
    output_diff: bool = True

    def validate(self) -> None:
        if len(self.error_color) != 3 or not all(0 <= c <= 255 for c in self.error_color):
            raise InvalidOutputSettings(
                f"error color {self.error_color!r} must be 3 values in [0, 255]"
            )
        if not isinstance(self.error_type, ErrorType):
            raise InvalidOutputSettings(f"unknown error type {self.error_type!r}")
        if math.isnan(self.transparency) or not 0.0 <= self.transparency <= 1.0:
            raise InvalidOutputSettings(f"transparency {self.transparency} outside [0, 1]")
        if self.large_image_threshold < 0:
            raise InvalidOutputSettings(
                f"large image threshold {self.large_image_threshold} must be >= 0"
            )
        color = self.ignore_areas_colored_with
        if color is not None and (len(color) != 4 or not all(0 <= c <= 255 for c in color)):
            raise InvalidOutputSettings(f"ignore color {color!r} must be 4 values in [0, 255]")


@dataclass(frozen=True)
class ComparisonOptions:
    """Single immutable configuration value for :func:`pixdiff.compare`.

    ``tolerance=None`` takes the tolerance of the ignore preset
    (:meth:`Tolerance.exact` for ``nothing``, the defaults otherwise).
    ``ignore`` accepts one mode (an :class:`IgnoreMode` or its name) or a
    sequence applied in order; the last wins.
    """

    tolerance: Tolerance | None = None
    ignore: str | IgnoreMode | tuple[str | IgnoreMode, ...] | None = None
    scale_to_same_size: bool = False
    return_early_threshold: float | None = None
    output: OutputSettings = field(default_factory=OutputSettings)
    max_workers: int | None = None
    band_rows: int = 256

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ComparisonOptions:
        """Build options from the camelCase option object used by browser tooling.

        Unknown keys (``useCrossOrigin`` and friends) are ignored.

        Raises:
            InvalidToleranceConfig, InvalidBox, InvalidOutputSettings: On malformed values.
        """
        out = data.get("output") or {}
        output_kwargs: dict[str, Any] = {}
        if "errorColor" in out:
            output_kwargs["error_color"] = _parse_color(out["errorColor"], alpha=False)
        if "errorType" in out:
            output_kwargs["error_type"] = parse_error_type(out["errorType"])
        if "transparency" in out:
            output_kwargs["transparency"] = float(out["transparency"])
        if "largeImageThreshold" in out:
            output_kwargs["large_image_threshold"] = int(out["largeImageThreshold"])
        if "boundingBoxes" in out:
            output_kwargs["bounding_boxes"] = _parse_boxes(out["boundingBoxes"])
        if "ignoredBoxes" in out:
            output_kwargs["ignored_boxes"] = _parse_boxes(out["ignoredBoxes"])
        if out.get("ignoreAreasColoredWith") is not None:
            output_kwargs["ignore_areas_colored_with"] = _parse_color(
                out["ignoreAreasColoredWith"], alpha=True
            )
        if "outputDiff" in out:
            output_kwargs["output_diff"] = bool(out["outputDiff"])

        tolerance = None
        if data.get("tolerance") is not None:
            tolerance = _parse_tolerance(data["tolerance"])

        ignore: IgnoreMode | tuple[IgnoreMode, ...] | None = None
        raw_ignore = data.get("ignore")
        if isinstance(raw_ignore, str):
            ignore = parse_ignore_mode(raw_ignore)
        elif raw_ignore:
            ignore = tuple(parse_ignore_mode(m) for m in raw_ignore)

        threshold = data.get("returnEarlyThreshold")
        return cls(
            tolerance=tolerance,
            ignore=ignore,
            scale_to_same_size=bool(data.get("scaleToSameSize", False)),
            return_early_threshold=float(threshold) if threshold is not None else None,
            output=OutputSettings(**output_kwargs),
        )


@dataclass(frozen=True)
class ResolvedOptions:
    """Options after preset expansion and validation."""

    tolerance: Tolerance
    flags: IgnoreFlags
    output: OutputSettings
    scale_to_same_size: bool
    return_early_threshold: float | None
    max_workers: int | None
    band_rows: int


def effective_ignore_mode(
    ignore: str | IgnoreMode | Sequence[str | IgnoreMode] | None,
) -> IgnoreMode | None:
    """Return the mode that wins when several presets are given.

    A plain string is one preset name, not a sequence of them.
    """
    if ignore is None:
        return None
    if isinstance(ignore, str):
        return parse_ignore_mode(ignore)
    modes = [parse_ignore_mode(m) for m in ignore]
    return modes[-1] if modes else None


def resolve_options(options: ComparisonOptions | None) -> ResolvedOptions:
    """Validate *options* and expand the ignore preset.

    Raises:
        InvalidToleranceConfig: Tolerance outside [0, 255] or inverted band.
        InvalidOutputSettings: Bad color, transparency, threshold or worker count.
    """
    opts = options or ComparisonOptions()
    mode = effective_ignore_mode(opts.ignore)

    tolerance = opts.tolerance
    if tolerance is None:
        tolerance = Tolerance.exact() if mode is IgnoreMode.NOTHING else Tolerance()
    tolerance.validate()
    opts.output.validate()

    threshold = opts.return_early_threshold
    if threshold is not None and (math.isnan(threshold) or threshold < 0):
        raise InvalidOutputSettings(f"return early threshold {threshold} must be >= 0")
    if opts.max_workers is not None and opts.max_workers < 1:
        raise InvalidOutputSettings(f"max_workers {opts.max_workers} must be >= 1")
    if opts.band_rows < 1:
        raise InvalidOutputSettings(f"band_rows {opts.band_rows} must be >= 1")

    return ResolvedOptions(
        tolerance=tolerance,
        flags=_PRESET_FLAGS[mode] if mode is not None else IgnoreFlags(),
        output=opts.output,
        scale_to_same_size=opts.scale_to_same_size,
        return_early_threshold=threshold,
        max_workers=opts.max_workers,
        band_rows=opts.band_rows,
    )


def validate_boxes(output: OutputSettings, width: int, height: int) -> None:
    """Check every configured box against the common comparison dimensions."""
    for box in (*output.bounding_boxes, *output.ignored_boxes):
        box.validate(width, height)


def parse_ignore_mode(value: str | IgnoreMode) -> IgnoreMode:
    try:
        return IgnoreMode(value)
    except ValueError:
        choices = ", ".join(m.value for m in IgnoreMode)
        raise InvalidOutputSettings(
            f"unknown ignore mode {value!r} (choose from {choices})"
        ) from None


def parse_error_type(value: str | ErrorType) -> ErrorType:
    try:
        return ErrorType(value)
    except ValueError:
        choices = ", ".join(t.value for t in ErrorType)
        raise InvalidOutputSettings(
            f"unknown error type {value!r} (choose from {choices})"
        ) from None


def _parse_color(value: Any, *, alpha: bool) -> Any:
    keys = ("red", "green", "blue", "alpha") if alpha else ("red", "green", "blue")
    if isinstance(value, Mapping):
        # alpha defaults to opaque when the mapping omits it
        defaults = {"alpha": 255}
        try:
            return tuple(int(value.get(k, defaults.get(k))) for k in keys)  # type: ignore[arg-type]
        except TypeError:
            raise InvalidOutputSettings(f"color {dict(value)!r} is missing a channel") from None
    channels = tuple(int(c) for c in value)
    if len(channels) != len(keys):
        raise InvalidOutputSettings(f"color {value!r} needs {len(keys)} channels")
    return channels


def _parse_boxes(values: Iterable[Any]) -> tuple[Box, ...]:
    boxes: list[Box] = []
    for raw in values:
        if isinstance(raw, Mapping):
            try:
                boxes.append(
                    Box(int(raw["left"]), int(raw["top"]), int(raw["right"]), int(raw["bottom"]))
                )
            except KeyError as exc:
                raise InvalidBox(f"box {dict(raw)!r} missing {exc.args[0]!r}") from None
        else:
            left, top, right, bottom = (int(v) for v in raw)
            boxes.append(Box(left, top, right, bottom))
    return tuple(boxes)


def _parse_tolerance(raw: Mapping[str, Any]) -> Tolerance:
    names = {
        "red": "red",
        "green": "green",
        "blue": "blue",
        "alpha": "alpha",
        "minBrightness": "min_brightness",
        "maxBrightness": "max_brightness",
    }
    return Tolerance(**{names[k]: int(v) for k, v in raw.items() if k in names})
