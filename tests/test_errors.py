"""
Tests for Web API error classification.
"""

import unittest
import sys
from pathlib import Path

from spotipy.exceptions import SpotifyException

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spotify_mcp.errors import (
    MissingPermission,
    NoActiveDevice,
    NotPremium,
    classify_spotify_error,
    describe_error,
)


class TestClassifySpotifyError(unittest.TestCase):
    """Test suite for classify_spotify_error."""

    def test_structured_reasons(self):
        cases = {
            "NO_ACTIVE_DEVICE": NoActiveDevice,
            "PREMIUM_REQUIRED": NotPremium,
            "NOT_PREMIUM": NotPremium,
        }
        for reason, expected in cases.items():
            with self.subTest(reason=reason):
                error = SpotifyException(403, -1, "Player command failed", reason=reason)
                self.assertIsInstance(classify_spotify_error(error), expected)

    def test_insufficient_scope(self):
        error = SpotifyException(403, -1, "Insufficient client scope")
        self.assertIsInstance(classify_spotify_error(error), MissingPermission)

    def test_text_fallback(self):
        self.assertIsInstance(classify_spotify_error(Exception("NOT_PREMIUM")), NotPremium)
        self.assertIsInstance(classify_spotify_error(Exception("missing PERMISSION")), MissingPermission)
        self.assertIsInstance(classify_spotify_error(Exception("NO_ACTIVE_DEVICE")), NoActiveDevice)

    def test_text_markers_are_case_sensitive(self):
        self.assertIsNone(classify_spotify_error(Exception("permission denied by proxy")))
        self.assertIsNone(classify_spotify_error(Exception("no_active_device")))

    def test_unrecognised(self):
        self.assertIsNone(classify_spotify_error(SpotifyException(404, -1, "Not found")))
        self.assertIsNone(classify_spotify_error(ValueError("bad value")))

    def test_classified_error_keeps_original(self):
        original = Exception("NO_ACTIVE_DEVICE")
        self.assertIs(classify_spotify_error(original).original_error, original)

    def test_describe_error_fallback(self):
        self.assertEqual(describe_error(ValueError("boom"), "getting devices"), "Error getting devices: boom")


if __name__ == "__main__":
    unittest.main(verbosity=2)
