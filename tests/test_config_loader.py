import tempfile
import unittest
from pathlib import Path

from pvpstats.infrastructure.config_loader import load_settings_from_yaml


def _write_yaml(path: Path, content: str):
    path.write_text(content, encoding="utf-8")


class LoadSettingsTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.base = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_means_defaults(self):
        self.assertEqual(load_settings_from_yaml(str(self.base / "missing.yml")), {})

    def test_empty_file_means_defaults(self):
        path = self.base / "config.yml"
        _write_yaml(path, "")

        self.assertEqual(load_settings_from_yaml(str(path)), {})

    def test_invalid_structure_raises(self):
        path = self.base / "bad.yml"
        _write_yaml(path, "[]")
        with self.assertRaisesRegex(RuntimeError, "top level must be a mapping"):
            load_settings_from_yaml(str(path))

    def test_section_must_be_mapping(self):
        path = self.base / "bad.yml"
        _write_yaml(path, "cache: 60\n")
        with self.assertRaisesRegex(RuntimeError, "Section 'cache'"):
            load_settings_from_yaml(str(path))

    def test_wrong_value_type_raises(self):
        path = self.base / "bad.yml"
        _write_yaml(
            path,
            """
sync:
  update_name_if_stable_id_matches: maybe
""",
        )
        with self.assertRaisesRegex(RuntimeError, "sync.update_name_if_stable_id_matches"):
            load_settings_from_yaml(str(path))

    def test_loads_known_settings(self):
        path = self.base / "config.yml"
        _write_yaml(
            path,
            """
database:
  path: /data/stats.db
  max_connections: 8
cache:
  expire_seconds: 30
sync:
  update_stable_id_if_name_matches: false
  update_name_if_stable_id_matches: "yes"
workers:
  size: 3
leaderboard:
  min_fetch: 20
unrelated:
  key: value
""",
        )

        settings = load_settings_from_yaml(str(path))

        self.assertEqual(
            settings,
            {
                "db_path": "/data/stats.db",
                "db_max_connections": 8,
                "cache_ttl_seconds": 30.0,
                "overwrite_id_on_name_collision": False,
                "rename_on_id_match": True,
                "worker_count": 3,
                "leaderboard_min_fetch": 20,
            },
        )
