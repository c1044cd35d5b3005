import errno
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from anni_workspace.fs_utils import (
    atomic_write_text,
    copy_file_atomic,
    files_identical,
    is_temp_file,
    move_file,
    path_exists,
    remove_empty_dirs,
)


class TestFsUtils(unittest.TestCase):
    def test_path_exists_true_false(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            p = tmp / "file.txt"
            self.assertEqual(path_exists(p), False)
            p.write_text("x", encoding="utf-8")
            self.assertEqual(path_exists(p), True)

    def test_path_exists_returns_none_when_parent_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            p = Path(tmpdir) / "missing" / "file.txt"
            self.assertIsNone(path_exists(p))

    def test_move_file_creates_parent(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            src = tmp / "a.flac"
            src.write_bytes(b"audio")
            dst = tmp / "1" / "01.flac"
            move_file(src, dst)
            self.assertFalse(src.exists())
            self.assertEqual(dst.read_bytes(), b"audio")

    def test_move_file_falls_back_to_copy_on_exdev(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            src = tmp / "src" / "01.mp3"
            src.parent.mkdir()
            src.write_bytes(b"hello")
            dst = tmp / "dst" / "01.mp3"

            orig_rename = Path.rename

            def rename_side_effect(self: Path, target: Path):
                if self == src:
                    raise OSError(errno.EXDEV, "Cross-device link")
                return orig_rename(self, target)

            with patch("pathlib.Path.rename", rename_side_effect):
                move_file(src, dst)

            self.assertFalse(src.exists())
            self.assertEqual(dst.read_bytes(), b"hello")
            self.assertEqual([p.name for p in dst.parent.iterdir()], ["01.mp3"])

    def test_move_file_propagates_other_errors(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            src = tmp / "01.mp3"
            src.write_bytes(b"hello")

            def rename_side_effect(self: Path, target: Path):
                raise PermissionError(errno.EACCES, "denied")

            with patch("pathlib.Path.rename", rename_side_effect):
                with self.assertRaises(PermissionError):
                    move_file(src, tmp / "out" / "01.mp3")
            self.assertTrue(src.exists())

    def test_copy_file_atomic_cleans_temp_on_failure(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            src = tmp / "src.bin"
            src.write_bytes(b"data")
            dst_dir = tmp / "dst"
            with patch("anni_workspace.fs_utils.shutil.copy2", side_effect=OSError(errno.ENOSPC, "full")):
                with self.assertRaises(OSError):
                    copy_file_atomic(src, dst_dir / "dst.bin")
            self.assertEqual(list(dst_dir.iterdir()), [])

    def test_atomic_write_text_replaces_content(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "album.yaml"
            atomic_write_text(target, "first\n")
            atomic_write_text(target, "second\n")
            self.assertEqual(target.read_text(encoding="utf-8"), "second\n")
            self.assertFalse(any(is_temp_file(p) for p in Path(tmpdir).iterdir()))

    def test_files_identical_compares_content(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            a, b, c = tmp / "a", tmp / "b", tmp / "c"
            a.write_bytes(b"same")
            b.write_bytes(b"same")
            c.write_bytes(b"diff")
            self.assertTrue(files_identical(a, b))
            self.assertFalse(files_identical(a, c))

    def test_remove_empty_dirs_stops_at_boundary(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "album"
            deep = root / "Disc 1" / "nested"
            deep.mkdir(parents=True)
            (root / "keep.txt").write_text("x", encoding="utf-8")
            remove_empty_dirs(deep, root)
            self.assertFalse((root / "Disc 1").exists())
            self.assertTrue(root.is_dir())

    def test_remove_empty_dirs_keeps_non_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            disc = root / "Disc 1"
            disc.mkdir()
            (disc / "scan.png").write_bytes(b"x")
            remove_empty_dirs(disc, root)
            self.assertTrue(disc.is_dir())


if __name__ == "__main__":
    unittest.main()
