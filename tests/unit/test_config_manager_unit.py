from __future__ import annotations


def test_defaults_without_config(tmp_path, monkeypatch):
    # Point to a non-existing config file
    cfg_path = tmp_path / "missing_config.yaml"
    monkeypatch.chdir(tmp_path)

    from config_manager import ConfigManager

    cm = ConfigManager(str(cfg_path))
    # Ensure defaults exist for key sections
    ps = cm.get_plate_solve_config()
    t = cm.get_telescope_config()
    cam = cm.get_camera_config()
    w = cm.get_watch_config()
    m = cm.get_mount_config()

    assert isinstance(ps, dict) and ps["default_solver"] == "platesolve2"
    assert "platesolve2" in ps and "astap" in ps
    assert isinstance(t, dict) and "focal_length" in t
    assert isinstance(cam, dict) and "sensor_width" in cam
    assert w["file_write_delay_ms"] == 5000
    assert m["ra_seconds_per_press"] == 12.0
    assert cm.get_target_config() == {"ra": None, "dec": None}
    assert cm.get_logging_config()["level"] == "INFO"


def test_get_dot_path_and_reload(tmp_path):
    # Write a minimal config file overriding some defaults
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        """
plate_solve:
  astap:
    search_radius: 10
target:
  ra: "19:03:07"
        """,
        encoding="utf-8",
    )

    from config_manager import ConfigManager

    cm = ConfigManager(str(cfg))
    assert cm.get("plate_solve.astap.search_radius") == 10
    assert cm.get("target.ra") == "19:03:07"
    # Sibling keys keep their defaults after the deep merge
    assert cm.get("plate_solve.astap.executable_path")
    assert cm.get("plate_solve.platesolve2.number_of_regions") == 200

    # Modify on disk, then reload
    cfg.write_text(
        """
plate_solve:
  astap:
    search_radius: 30
        """,
        encoding="utf-8",
    )
    cm.reload()
    assert cm.get("plate_solve.astap.search_radius") == 30
    assert cm.get("target.ra") is None


def test_missing_keys_and_safe_defaults(tmp_path):
    from config_manager import ConfigManager

    cm = ConfigManager(str(tmp_path / "none.yaml"))
    assert cm.get("does.not.exist") is None
    assert cm.get("does.not.exist", 42) == 42
    assert cm.get("watch.directory.deeper", "x") == "x"


def test_has_user_value_ignores_defaults_and_nulls(tmp_path):
    from config_manager import ConfigManager

    cfg = tmp_path / "config.yaml"
    cfg.write_text("camera:\n  sensor_width: 22.3\n  sensor_height: null\ntelescope: null\n", encoding="utf-8")
    cm = ConfigManager(str(cfg))

    assert cm.has_user_value("camera.sensor_width")
    assert not cm.has_user_value("camera.sensor_height")
    assert not cm.has_user_value("camera.crop_factor")
    assert not cm.has_user_value("telescope.focal_length")
    assert cm.get("camera.crop_factor") == 1.0


def test_invalid_yaml_falls_back_to_defaults(tmp_path, caplog):
    from config_manager import ConfigManager

    cfg = tmp_path / "broken.yaml"
    cfg.write_text("target: [unclosed\n", encoding="utf-8")
    cm = ConfigManager(str(cfg))

    assert cm.get("plate_solve.default_solver") == "platesolve2"
    assert "Failed to load configuration" in caplog.text


def test_non_mapping_yaml_is_ignored(tmp_path, caplog):
    from config_manager import ConfigManager

    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n", encoding="utf-8")
    cm = ConfigManager(str(cfg))

    assert cm.get("watch.file_write_delay_ms") == 5000
    assert "not a mapping" in caplog.text


def test_defaults_are_not_shared_between_instances(tmp_path):
    from config_manager import ConfigManager

    a = ConfigManager(str(tmp_path / "a.yaml"))
    a.get_watch_config()["extensions"].append(".tif")
    b = ConfigManager(str(tmp_path / "b.yaml"))
    assert ".tif" not in b.get_watch_config()["extensions"]


def test_save_default_config_round_trips(tmp_path):
    import yaml

    from config_manager import ConfigManager

    cm = ConfigManager(str(tmp_path / "config.yaml"))
    cm.save_default_config()
    saved = tmp_path / "config.yaml.default"
    assert saved.exists()
    data = yaml.safe_load(saved.read_text(encoding="utf-8"))
    assert data["plate_solve"]["astap"]["search_radius"] == 20.0
    assert data["mount"]["dec_degrees_per_turn"] == 3.0
