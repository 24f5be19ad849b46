"""Unit tests for app.services.avatars: data URI parsing and file storage."""

import re
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from app.core.exceptions import AvatarError, NotFoundError
from app.models.user import AVATAR_DATA_URI_PATTERN
from app.services.avatars import AvatarStorage, parse_data_uri
from tests.helpers import png_data_uri


class TestParseDataUri(unittest.TestCase):
    def test_valid(self) -> None:
        image_type, payload = parse_data_uri("data:image/PNG;base64,aGVsbG8=")
        self.assertEqual(image_type, "png")
        self.assertEqual(payload, b"hello")

    def test_not_a_data_uri(self) -> None:
        with self.assertRaises(AvatarError):
            parse_data_uri("https://example.com/a.png")

    def test_bad_base64(self) -> None:
        with self.assertRaises(AvatarError):
            parse_data_uri("data:image/png;base64,@@@")

    def test_quote_in_payload_rejected_like_validation(self) -> None:
        value = 'data:image/png;base64,aGVs"bG8='
        with self.assertRaises(AvatarError):
            parse_data_uri(value)
        self.assertIsNone(re.search(AVATAR_DATA_URI_PATTERN, value))


class TestAvatarStorage(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.storage = AvatarStorage(self.root, thumbnail_size=64)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_store_writes_original_and_thumbnail(self) -> None:
        filename = self.storage.store("u1", png_data_uri((300, 200)))
        self.assertTrue(filename.endswith(".png"))
        original = self.root / "u1" / f"original@{filename}"
        thumbnail = self.root / "u1" / f"thumbnail@{filename}"
        self.assertTrue(original.is_file())
        with Image.open(original) as image:
            self.assertEqual(image.size, (300, 200))
        with Image.open(thumbnail) as image:
            self.assertEqual(image.size, (64, 43))

    def test_store_rejects_non_image(self) -> None:
        with self.assertRaises(AvatarError):
            self.storage.store("u1", "data:image/png;base64,aGVsbG8=")

    def test_path_for(self) -> None:
        path = self.storage.path_for("u1", "thumbnail", "abc.png")
        self.assertEqual(path, self.root / "u1" / "thumbnail@abc.png")

    def test_path_for_rejects_unknown_variant_and_traversal(self) -> None:
        with self.assertRaises(NotFoundError):
            self.storage.path_for("u1", "large", "abc.png")
        with self.assertRaises(NotFoundError):
            self.storage.path_for("u1", "original", "../secret")
        with self.assertRaises(NotFoundError):
            self.storage.path_for("..", "original", "abc.png")

    def test_delete_removes_both_variants(self) -> None:
        filename = self.storage.store("u1", png_data_uri())
        self.storage.delete("u1", filename)
        self.assertEqual(list((self.root / "u1").iterdir()), [])


if __name__ == "__main__":
    unittest.main()
