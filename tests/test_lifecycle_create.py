import tempfile
import unittest
from pathlib import Path

from anni_workspace.descriptor import DESCRIPTOR_FILE, read_descriptor, write_descriptor
from anni_workspace.errors import AlreadyExists, ValidationRejected
from anni_workspace.lifecycle import AlbumLifecycle
from anni_workspace.workspace import ALBUM_ID_FILE

from workspace_fixtures import make_album, make_workspace, tree


class TestCreate(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.ws = make_workspace(Path(self._tmp.name))
        self.lifecycle = AlbumLifecycle(self.ws)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_creates_disc_directories_and_skeleton(self) -> None:
        descriptor = self.lifecycle.create("New Album", 3)
        album = self.ws.root / "New Album"
        self.assertEqual(tree(album), ["Disc 1", "Disc 2", "Disc 3", DESCRIPTOR_FILE])
        self.assertFalse((album / ALBUM_ID_FILE).exists())
        self.assertEqual(len(descriptor.discs), 3)
        self.assertEqual(read_descriptor(album / DESCRIPTOR_FILE), descriptor)
        self.assertIsNone(self.ws.tracked_descriptor(album))

    def test_disc_count_is_at_least_one(self) -> None:
        descriptor = self.lifecycle.create("Album", 0)
        self.assertEqual(len(descriptor.discs), 1)
        self.assertTrue((self.ws.root / "Album" / "Disc 1").is_dir())

    def test_creates_missing_parents(self) -> None:
        self.lifecycle.create(self.ws.root / "Label" / "Album", 1)
        self.assertTrue((self.ws.root / "Label" / "Album" / "Disc 1").is_dir())

    def test_recreate_keeps_id_and_adds_discs(self) -> None:
        first = self.lifecycle.create("Album", 1)
        first.title = "Kept"
        write_descriptor(self.ws.root / "Album" / DESCRIPTOR_FILE, first)
        second = self.lifecycle.create("Album", 2)
        self.assertEqual(second.album_id, first.album_id)
        self.assertEqual(second.title, "Kept")
        self.assertEqual(len(second.discs), 2)
        self.assertTrue((self.ws.root / "Album" / "Disc 2").is_dir())

    def test_existing_files_are_left_alone(self) -> None:
        album = make_album(self.ws.root, "Album", {"Disc 1": ["01.flac"]})
        self.lifecycle.create("Album", 1)
        self.assertEqual((album / "Disc 1" / "01.flac").read_bytes(), b"Disc 1/01.flac")

    def test_tracked_album_cannot_be_created(self) -> None:
        make_album(self.ws.root, "Album", {"": ["01.flac"]})
        committed = self.lifecycle.commit("Album")
        with self.assertRaises(AlreadyExists) as ctx:
            self.lifecycle.create("Album", 1)
        self.assertEqual(ctx.exception.album_id, committed.album_id)

    def test_rejects_locations_outside_albums(self) -> None:
        for target in [self.ws.root, self.ws.root.parent / "elsewhere", self.ws.marker_dir / "x"]:
            with self.subTest(target=target):
                with self.assertRaises(ValidationRejected):
                    self.lifecycle.create(target, 1)
        self.assertFalse((self.ws.root.parent / "elsewhere").exists())


if __name__ == "__main__":
    unittest.main()
