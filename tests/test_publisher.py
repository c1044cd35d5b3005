import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from anni_workspace.descriptor import DESCRIPTOR_FILE, AlbumDescriptor, read_descriptor, write_descriptor
from anni_workspace.errors import NotTracked, ValidationRejected
from anni_workspace.lifecycle import AlbumLifecycle
from anni_workspace.publisher import publish_destination
from anni_workspace.scanner import WorkspaceScanner
from anni_workspace.tagging import TagWriter

from workspace_fixtures import make_album, make_workspace, snapshot

LAYOUT = {"Disc 1": ["a.flac", "b.flac", "front.jpg"], "Disc 2": ["c.flac"]}


class TestPublish(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.ws = make_workspace(Path(self._tmp.name))
        self.lifecycle = AlbumLifecycle(self.ws)
        self.album = make_album(self.ws.root, "Album", LAYOUT)
        self.descriptor = self.lifecycle.commit("Album")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_destination_uses_id_shards(self) -> None:
        album_id = self.descriptor.album_id
        expected = self.ws.publish_root / album_id[0:2] / album_id[2:4] / album_id
        self.assertEqual(publish_destination(self.ws, self.descriptor), expected)

    def test_publish_copies_album_tree(self) -> None:
        report = self.lifecycle.publish("Album")
        destination = publish_destination(self.ws, self.descriptor)
        self.assertEqual(report.destination, destination)
        self.assertFalse(report.dry_run)
        self.assertEqual(snapshot(destination), snapshot(self.album))
        self.assertIn(Path("1/01.flac"), report.copied)
        self.assertEqual(report.skipped, [])
        self.assertTrue(WorkspaceScanner(self.ws).scan()[0].published)

    def test_republish_skips_unchanged_and_refreshes_changed(self) -> None:
        self.lifecycle.publish("Album")
        (self.album / "2" / "01.flac").write_bytes(b"remastered")

        report = self.lifecycle.publish("Album")

        self.assertEqual(report.copied, [Path("2/01.flac")])
        self.assertIn(Path("1/01.flac"), report.skipped)
        destination = publish_destination(self.ws, self.descriptor)
        self.assertEqual((destination / "2" / "01.flac").read_bytes(), b"remastered")

    def test_stale_files_are_removed(self) -> None:
        self.lifecycle.publish("Album")
        destination = publish_destination(self.ws, self.descriptor)
        (self.album / "1" / "02.flac").unlink()
        (destination / "extra").mkdir()
        (destination / "extra" / "old.txt").write_text("x", encoding="utf-8")

        report = self.lifecycle.publish("Album")

        self.assertEqual(sorted(report.removed), [Path("1/02.flac"), Path("extra/old.txt")])
        self.assertFalse((destination / "1" / "02.flac").exists())
        self.assertFalse((destination / "extra").exists())
        self.assertEqual(snapshot(destination), snapshot(self.album))

    def test_dry_run_writes_nothing(self) -> None:
        report = self.lifecycle.publish("Album", dry_run=True)
        self.assertTrue(report.dry_run)
        self.assertIn(Path("1/cover.jpg"), report.copied)
        self.assertFalse(self.ws.publish_root.exists())

    def test_dry_run_still_applies_staged_tags(self) -> None:
        staged = AlbumDescriptor.from_json(self.descriptor.to_json())
        staged.title = "Staged"
        write_descriptor(self.ws.staged_tags_path(self.descriptor.album_id), staged)

        self.lifecycle.publish("Album", dry_run=True)

        self.assertEqual(read_descriptor(self.album / DESCRIPTOR_FILE).title, "Staged")
        self.assertFalse(self.ws.publish_root.exists())

    def test_untracked_album_cannot_be_published(self) -> None:
        make_album(self.ws.root, "Loose", {"": ["01.flac"]})
        with self.assertRaises(NotTracked):
            self.lifecycle.publish("Loose")


class TestPublishSettings(unittest.TestCase):
    def test_catalog_layout(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ws = make_workspace(Path(tmp), {"publish_layout": "catalog", "publish_root": "../library"})
            lifecycle = AlbumLifecycle(ws)
            make_album(ws.root, "Album", {"": ["01.flac"]})
            descriptor = lifecycle.commit("Album")

            with self.assertRaises(ValidationRejected):
                lifecycle.publish("Album")

            descriptor.catalog = "ABCD/1234"
            write_descriptor(ws.root / "Album" / DESCRIPTOR_FILE, descriptor)
            report = lifecycle.publish("Album")
            self.assertEqual(report.destination, ws.root / ".." / "library" / "ABCD-1234")
            self.assertTrue((report.destination / "1" / "01.flac").is_file())

    def test_audio_tags_are_written_per_track(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ws = make_workspace(Path(tmp), {"write_audio_tags": True})
            writer = MagicMock(spec=TagWriter)
            lifecycle = AlbumLifecycle(ws, tag_writer=writer)
            make_album(ws.root, "Album", {"Disc 1": ["a.flac", "b.flac"], "Disc 2": ["c.flac"]})
            descriptor = lifecycle.commit("Album")
            descriptor.title = "Title"
            descriptor.artist = "Artist"
            descriptor.discs[0].tracks[1].title = "Second"
            write_descriptor(ws.root / "Album" / DESCRIPTOR_FILE, descriptor)

            lifecycle.publish("Album", dry_run=True)

            calls = writer.apply.call_args_list
            self.assertEqual([c.args[0].relative_to(ws.root / "Album").as_posix() for c in calls],
                             ["1/01.flac", "1/02.flac", "2/01.flac"])
            second = calls[1].args[1]
            self.assertEqual(second.title, "Second")
            self.assertEqual(second.artist, "Artist")
            self.assertEqual(second.album, "Title")
            self.assertEqual((second.track_number, second.track_total), (2, 2))
            self.assertEqual((second.disc_number, second.disc_total), (1, 2))


if __name__ == "__main__":
    unittest.main()
