import tempfile
import unittest
from pathlib import Path

from anni_workspace.directory_identity import (
    canonical_track_name,
    disc_directories,
    disc_number,
    looks_like_disc_folder,
    safe_label,
)


class TestDirectoryIdentity(unittest.TestCase):
    def test_looks_like_disc_folder(self) -> None:
        self.assertTrue(looks_like_disc_folder("CD1"))
        self.assertTrue(looks_like_disc_folder("Disc 2"))
        self.assertTrue(looks_like_disc_folder("disk03"))
        self.assertTrue(looks_like_disc_folder("Disc 1 - Bonus"))
        self.assertTrue(looks_like_disc_folder("cd_4"))
        self.assertFalse(looks_like_disc_folder("Discography"))
        self.assertFalse(looks_like_disc_folder("Album"))
        self.assertFalse(looks_like_disc_folder("1"))
        self.assertFalse(looks_like_disc_folder("Disc 1a"))

    def test_disc_number(self) -> None:
        self.assertEqual(disc_number("CD12"), 12)
        self.assertEqual(disc_number("ＣＤ２"), 2)
        self.assertIsNone(disc_number("Scans"))

    def test_disc_directories_order_by_number(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            album = Path(tmp)
            for name in ["Disc 10", "Disc 2", "Disc 1", "Scans", ".Disc 3"]:
                (album / name).mkdir()
            (album / "CD4").write_text("not a directory", encoding="utf-8")
            self.assertEqual(
                [p.name for p in disc_directories(album)], ["Disc 1", "Disc 2", "Disc 10"]
            )

    def test_canonical_track_name(self) -> None:
        self.assertEqual(canonical_track_name(3, ".FLAC"), "03.flac")
        self.assertEqual(canonical_track_name(7, ".mp3", width=3), "007.mp3")

    def test_safe_label(self) -> None:
        self.assertEqual(safe_label(" ABCD/1234: x "), "ABCD-1234- x")
        self.assertEqual(safe_label("a   b."), "a b")


if __name__ == "__main__":
    unittest.main()
