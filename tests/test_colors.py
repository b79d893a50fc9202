import random
import re
import unittest

from pixelboard.core.colors import ColorAllocator, hsl_to_hex

HEX = re.compile(r"^#[0-9A-F]{6}$")


class _StuckRandom:
    """Always returns the lower bound, so every candidate is the same color."""

    def uniform(self, a, b):
        return a


class HslToHexTest(unittest.TestCase):
    def test_primary_colors(self):
        self.assertEqual(hsl_to_hex(0, 1.0, 0.5), "#FF0000")
        self.assertEqual(hsl_to_hex(120, 1.0, 0.5), "#00FF00")
        self.assertEqual(hsl_to_hex(240, 1.0, 0.5), "#0000FF")

    def test_hue_wraps(self):
        self.assertEqual(hsl_to_hex(360, 1.0, 0.5), hsl_to_hex(0, 1.0, 0.5))


class ColorAllocatorTest(unittest.TestCase):
    def test_allocate_returns_hex_and_tracks_usage(self):
        colors = ColorAllocator(rng=random.Random(1))
        color = colors.allocate()
        self.assertRegex(color, HEX)
        self.assertIn(color, colors.in_use)

    def test_release_frees_color(self):
        colors = ColorAllocator(rng=random.Random(2))
        color = colors.allocate()
        colors.release(color)
        self.assertNotIn(color, colors.in_use)
        # Releasing twice or releasing None is harmless
        colors.release(color)
        colors.release(None)

    def test_excluded_color_is_avoided(self):
        first = ColorAllocator(rng=random.Random(7)).allocate()
        second = ColorAllocator(rng=random.Random(7)).allocate(exclude={first})
        self.assertNotEqual(first, second)

    def test_many_sessions_get_distinct_colors(self):
        colors = ColorAllocator(rng=random.Random(3))
        allocated = [colors.allocate() for _ in range(50)]
        self.assertEqual(len(set(allocated)), 50)

    def test_collision_tolerated_after_retry_bound(self):
        colors = ColorAllocator(max_attempts=5, rng=_StuckRandom())
        first = colors.allocate()
        second = colors.allocate()
        self.assertEqual(first, second)

    def test_max_attempts_never_below_one(self):
        colors = ColorAllocator(max_attempts=0, rng=random.Random(4))
        self.assertEqual(colors.max_attempts, 1)
        self.assertRegex(colors.allocate(), HEX)


if __name__ == "__main__":
    unittest.main()
