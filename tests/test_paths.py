"""Tests for path helpers."""

import os
import unittest

from AssetSync.core.paths import (
    collapse_segments,
    glob_literal_prefix,
    glob_to_regex,
    normalize_rel_asset_path,
    split_dpi_scale,
)


class TestCollapseSegments(unittest.TestCase):
    def test_parent_after_segment_collapses(self):
        self.assertEqual(collapse_segments(["a", "..", "b"]), ["b"])

    def test_current_dir_dropped(self):
        self.assertEqual(collapse_segments([".", "a", ".", "b"]), ["a", "b"])

    def test_leading_parent_raises(self):
        with self.assertRaises(ValueError):
            collapse_segments(["..", "a"])

    def test_accepts_generator(self):
        self.assertEqual(collapse_segments(p for p in "a/b/../c".split("/")), ["a", "c"])


class TestNormalizeRelAssetPath(unittest.TestCase):
    def test_backslashes_normalized(self):
        self.assertEqual(normalize_rel_asset_path("ui\\icons\\a.png").as_posix(), "ui/icons/a.png")

    def test_absolute_rejected(self):
        with self.assertRaises(ValueError):
            normalize_rel_asset_path("/etc/passwd")

    def test_empty_rejected(self):
        with self.assertRaises(ValueError):
            normalize_rel_asset_path("a/..")


class TestSplitDpiScale(unittest.TestCase):
    def test_no_suffix_defaults_to_100(self):
        self.assertEqual(split_dpi_scale("ui/icon.png"), ("ui/icon.png", 100))

    def test_integer_suffix(self):
        self.assertEqual(
            split_dpi_scale("ui/icon@2x.png"), (os.path.join("ui", "icon.png"), 200)
        )

    def test_fractional_suffix(self):
        self.assertEqual(split_dpi_scale("icon@1.5x.png"), ("icon.png", 150))

    def test_at_sign_without_scale_is_kept(self):
        self.assertEqual(split_dpi_scale("user@home.png"), ("user@home.png", 100))

    def test_zero_scale_rejected(self):
        with self.assertRaises(ValueError):
            split_dpi_scale("icon@0x.png")


class TestGlobToRegex(unittest.TestCase):
    def test_star_does_not_cross_folders(self):
        pattern = glob_to_regex("*.png")
        self.assertTrue(pattern.match("a.png"))
        self.assertFalse(pattern.match("ui/a.png"))

    def test_double_star_spans_folders(self):
        pattern = glob_to_regex("assets/**/*.png")
        self.assertTrue(pattern.match("assets/a.png"))
        self.assertTrue(pattern.match("assets/ui/deep/a.png"))
        self.assertFalse(pattern.match("other/a.png"))

    def test_question_mark_and_class(self):
        pattern = glob_to_regex("tile_?[0-9].png")
        self.assertTrue(pattern.match("tile_a1.png"))
        self.assertFalse(pattern.match("tile_ab.png"))

    def test_negated_class(self):
        pattern = glob_to_regex("[!x]*.png")
        self.assertTrue(pattern.match("a.png"))
        self.assertFalse(pattern.match("x.png"))

    def test_leading_dot_slash_ignored(self):
        self.assertTrue(glob_to_regex("./ui/*.png").match("ui/a.png"))

    def test_literal_dots_escaped(self):
        self.assertFalse(glob_to_regex("a.png").match("axpng"))


class TestGlobLiteralPrefix(unittest.TestCase):
    def test_prefix_stops_at_wildcard(self):
        self.assertEqual(glob_literal_prefix("assets/ui/**/*.png"), "assets/ui")
        self.assertEqual(glob_literal_prefix("**/*.png"), "")
        self.assertEqual(glob_literal_prefix("./ui/*.png"), "ui")


if __name__ == "__main__":
    unittest.main(verbosity=2)
