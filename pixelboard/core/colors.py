"""
Session color allocation.

Colors are sampled in HSL space with saturation/lightness ranges that stay vivid on
both light and dark backgrounds. Uniqueness is best-effort: after `max_attempts`
collisions the last candidate is handed out anyway.
"""

# -------------------- Standard library imports --------------------
import colorsys
import logging
import random
from typing import Iterable

logger = logging.getLogger(__name__)

HUE_RANGE = (0.0, 360.0)
SATURATION_RANGE = (0.65, 0.95)
LIGHTNESS_RANGE = (0.45, 0.65)


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """Convert HSL (hue in degrees, s/l in [0, 1]) to a `#rrggbb` string."""
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness, saturation)
    return "#{:02X}{:02X}{:02X}".format(round(r * 255), round(g * 255), round(b * 255))


class ColorAllocator:
    def __init__(self, max_attempts: int = 20, rng: random.Random | None = None):
        self.max_attempts = max(1, max_attempts)
        self._rng = rng or random.Random()
        self._in_use: set[str] = set()

    @property
    def in_use(self) -> set[str]:
        return set(self._in_use)

    def _candidate(self) -> str:
        hue = self._rng.uniform(*HUE_RANGE)
        saturation = self._rng.uniform(*SATURATION_RANGE)
        lightness = self._rng.uniform(*LIGHTNESS_RANGE)
        return hsl_to_hex(hue, saturation, lightness)

    def allocate(self, exclude: Iterable[str] | None = None) -> str:
        """
        Pick a color not in `exclude` nor currently in use.

        The color is recorded as in use; call `release` when the session ends.
        """
        taken = self._in_use | set(exclude or ())
        color = self._candidate()
        attempts = 1
        while color in taken and attempts < self.max_attempts:
            color = self._candidate()
            attempts += 1
        if color in taken:
            logger.debug("Color %s reused after %s attempts", color, attempts)
        self._in_use.add(color)
        return color

    def release(self, color: str | None) -> None:
        if color:
            self._in_use.discard(color)
