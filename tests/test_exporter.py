from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from butano_export.exporter import (
    ExportResult, MissingLayerError, export_collisions,
    locate_collision_layer, output_path_for, write,
)
from butano_export.host import TiledMapSource
from tests.helpers import FakeLayer, FakeMap, csv_layer, tmx_text, write_tmx
from tests.test_header import LEVEL1_HEADER
from tmx_manager import TiledMap, Tileset, create_empty_map, create_layer


MISSING_MESSAGE = "Export failed: Could not find a tile layer called 'Collisions'"


class LocateCollisionLayerTest(unittest.TestCase):
    def test_first_matching_tile_layer_wins(self):
        first = FakeLayer("Collisions", [[0]])
        second = FakeLayer("Collisions", [[1]])
        found = locate_collision_layer(FakeMap([FakeLayer("Ground", [[0]]), first, second]))
        self.assertIs(found, first)

    def test_name_match_is_exact(self):
        layers = [FakeLayer("collisions", [[0]]), FakeLayer("Collisions ", [[0]])]
        self.assertIsNone(locate_collision_layer(FakeMap(layers)))

    def test_skips_non_tile_layers(self):
        objects = FakeLayer("Collisions", is_tile_layer=False)
        tiles = FakeLayer("Collisions", [[0]])
        self.assertIs(locate_collision_layer(FakeMap([objects, tiles])), tiles)


class OutputPathTest(unittest.TestCase):
    def test_forces_hh_extension_in_same_directory(self):
        self.assertEqual(output_path_for("maps/level1.tmx"), Path("maps/level1.hh"))
        self.assertEqual(output_path_for("level1.hh"), Path("level1.hh"))
        self.assertEqual(output_path_for("level1"), Path("level1.hh"))

    def test_base_name_stops_at_first_dot(self):
        self.assertEqual(output_path_for("out/level1.final.tmx"), Path("out/level1.hh"))


class ExportCollisionsTest(unittest.TestCase):
    def test_level1_scenario(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            # Local ids [[0, 1], [1, 0]] with firstgid=1
            tmx = write_tmx(root, "level1.tmx", tmx_text(csv_layer("Collisions", [[1, 2], [2, 1]])))

            result = export_collisions(TiledMap.load(tmx), tmx)

            self.assertIsInstance(result, ExportResult)
            self.assertEqual(result.path, root / "level1.hh")
            self.assertEqual(result.path.read_text(encoding="utf-8"), LEVEL1_HEADER)
            self.assertEqual(list(result.grid), [[1, 0], [0, 1]])

    def test_missing_layer_writes_nothing(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            layers = csv_layer("Background", [[1, 1], [1, 1]], 1) + csv_layer("Foreground", [[2, 2], [2, 2]], 2)
            tmx = write_tmx(root, "level1.tmx", tmx_text(layers))

            with self.assertRaises(MissingLayerError) as ctx:
                export_collisions(TiledMap.load(tmx), tmx)

            self.assertEqual(str(ctx.exception), MISSING_MESSAGE)
            self.assertEqual(ctx.exception.layer_name, "Collisions")
            self.assertEqual(sorted(p.name for p in root.iterdir()), ["level1.tmx"])

    def test_object_group_named_collisions_is_not_enough(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            layers = '<objectgroup id="1" name="Collisions"><object id="1" x="0" y="0" width="8" height="8"/></objectgroup>'
            tmx = write_tmx(root, "level1.tmx", tmx_text(layers))
            with self.assertRaises(MissingLayerError):
                export_collisions(TiledMap.load(tmx), tmx)

    def test_collisions_inside_group_is_not_found(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            layers = '<group id="3" name="Gameplay">' + csv_layer("Collisions", [[1, 1], [1, 1]]) + '</group>'
            tmx = write_tmx(root, "level1.tmx", tmx_text(layers))
            with self.assertRaises(MissingLayerError):
                export_collisions(TiledMap.load(tmx), tmx)

    def test_constants_follow_layer_not_map(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            layer = csv_layer("Collisions", [[1, 1, 1], [2, 2, 2]])
            tmx = write_tmx(root, "room.tmx", tmx_text(layer, width=10, height=8))

            text = export_collisions(TiledMap.load(tmx), tmx).path.read_text(encoding="utf-8")

            self.assertIn("SPRITES_PER_ROW = 3;", text)
            self.assertIn("SPRITES_PER_COLUMN = 2;", text)

    def test_unknown_and_empty_tiles_are_blocked(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            tilesets = (
                '<tileset firstgid="1" name="collisions" tilewidth="8" tileheight="8" tilecount="8" columns="8"/>'
            )
            # gid 8 -> local id 7, gid 0 -> empty, gid 2 -> local id 1
            layer = csv_layer("Collisions", [[8, 0, 2, 1]])
            tmx = write_tmx(root, "room.tmx", tmx_text(layer, width=4, height=1, tilesets_xml=tilesets))

            text = export_collisions(TiledMap.load(tmx), tmx).path.read_text(encoding="utf-8")

            self.assertIn("\t0, 0, 0, 1,\n", text)

    def test_export_is_idempotent(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            tmx = write_tmx(root, "level1.tmx", tmx_text(csv_layer("Collisions", [[1, 2], [2, 1]])))
            tiled_map = TiledMap.load(tmx)

            first = export_collisions(tiled_map, tmx).path.read_bytes()
            second = export_collisions(tiled_map, tmx).path.read_bytes()

            self.assertEqual(first, second)
            self.assertEqual(sorted(p.name for p in root.iterdir()), ["level1.hh", "level1.tmx"])

    def test_accepts_any_map_source(self):
        with tempfile.TemporaryDirectory() as tmp:
            fake = FakeMap([FakeLayer("Collisions", [[0, 1], [1, 0]])], width=2, height=2)
            path = export_collisions(fake, Path(tmp) / "level1.tmx").path
            self.assertEqual(path.read_text(encoding="utf-8"), LEVEL1_HEADER)

    def test_map_built_in_code(self):
        tiled_map = create_empty_map(2, 2, 8, 8)
        tiled_map.tilesets.append(Tileset(firstgid=1, name="collisions", tilewidth=8, tileheight=8, tilecount=2))
        layer = create_layer("Collisions", 2, 2)
        for (x, y), gid in {(0, 0): 1, (1, 0): 2, (0, 1): 2, (1, 1): 1}.items():
            layer.set_tile_gid(x, y, gid)
        tiled_map.layers.append(layer)

        self.assertEqual((tiled_map.width, tiled_map.height, tiled_map.orientation), (2, 2, "orthogonal"))
        with tempfile.TemporaryDirectory() as tmp:
            path = export_collisions(tiled_map, Path(tmp) / "level1.tmx").path
            self.assertEqual(path.read_text(encoding="utf-8"), LEVEL1_HEADER)

    def test_accepts_wrapped_tiled_map(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            tmx = write_tmx(root, "level1.tmx", tmx_text(csv_layer("Collisions", [[1, 2], [2, 1]])))
            source = TiledMapSource(TiledMap.load(tmx))
            path = export_collisions(source, tmx).path
            self.assertEqual(path.read_text(encoding="utf-8"), LEVEL1_HEADER)

    def test_missing_directory_raises_oserror(self):
        with tempfile.TemporaryDirectory() as tmp:
            fake = FakeMap([FakeLayer("Collisions", [[0]])])
            with self.assertRaises(OSError):
                export_collisions(fake, Path(tmp) / "nope" / "level1.tmx")

    def test_failed_commit_leaves_no_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            fake = FakeMap([FakeLayer("Collisions", [[0]])])
            with mock.patch("butano_export.exporter.os.replace", side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    export_collisions(fake, root / "level1.tmx")
            self.assertEqual(list(root.iterdir()), [])

    def test_failed_commit_keeps_previous_header(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "level1.hh").write_text("old", encoding="utf-8")
            fake = FakeMap([FakeLayer("Collisions", [[0]])])
            with mock.patch("butano_export.exporter.os.replace", side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    export_collisions(fake, root / "level1.tmx")
            self.assertEqual((root / "level1.hh").read_text(encoding="utf-8"), "old")
            self.assertEqual([p.name for p in root.iterdir()], ["level1.hh"])


class WriteTest(unittest.TestCase):
    def test_returns_none_on_success(self):
        with tempfile.TemporaryDirectory() as tmp:
            fake = FakeMap([FakeLayer("Collisions", [[0, 1], [1, 0]])])
            self.assertIsNone(write(fake, str(Path(tmp) / "level1.tmx")))
            self.assertTrue((Path(tmp) / "level1.hh").exists())

    def test_returns_message_for_missing_layer(self):
        with tempfile.TemporaryDirectory() as tmp:
            fake = FakeMap([FakeLayer("Background", [[0]]), FakeLayer("Foreground", [[0]])])
            self.assertEqual(write(fake, str(Path(tmp) / "level1.tmx")), MISSING_MESSAGE)
            self.assertEqual(list(Path(tmp).iterdir()), [])

    def test_oserror_is_not_swallowed(self):
        with tempfile.TemporaryDirectory() as tmp:
            fake = FakeMap([FakeLayer("Collisions", [[0]])])
            with self.assertRaises(OSError):
                write(fake, str(Path(tmp) / "nope" / "level1.tmx"))


if __name__ == "__main__":
    unittest.main()
