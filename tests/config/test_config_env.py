import importlib

import pytest

from ark_backend import config as config_mod
from ark_backend import utils as utils_mod


def test_env_int_parses_and_clamps(monkeypatch):
    monkeypatch.setenv("ARK_TEST_INT", "500")
    assert config_mod._env_int(10, "ARK_TEST_INT", min_value=1, max_value=64) == 64

    monkeypatch.setenv("ARK_TEST_INT", "0")
    assert config_mod._env_int(10, "ARK_TEST_INT", min_value=1) == 1

    monkeypatch.setenv("ARK_TEST_INT", "abc")
    assert config_mod._env_int(10, "ARK_TEST_INT") == 10

    monkeypatch.delenv("ARK_TEST_INT")
    assert config_mod._env_int(10, "ARK_TEST_INT") == 10


def test_env_float_and_first_name_wins(monkeypatch):
    monkeypatch.setenv("ARK_TEST_B", "0.5")
    monkeypatch.setenv("ARK_TEST_A", "  ")
    assert config_mod._env_float(0.8, "ARK_TEST_A", "ARK_TEST_B") == 0.5

    monkeypatch.setenv("ARK_TEST_A", "2.5")
    assert config_mod._env_float(0.8, "ARK_TEST_A", "ARK_TEST_B", max_value=1.0) == 1.0


def test_env_bool_and_list(monkeypatch):
    monkeypatch.setenv("ARK_TEST_FLAG", "off")
    assert config_mod._env_bool(True, "ARK_TEST_FLAG") is False
    assert config_mod._env_bool(True, "ARK_TEST_UNSET_FLAG") is True

    monkeypatch.setenv("ARK_TEST_LIST", "assets, tokens ,,maps")
    assert config_mod._env_list(("x",), "ARK_TEST_LIST") == ("assets", "tokens", "maps")

    monkeypatch.setenv("ARK_TEST_LIST", " , ")
    assert config_mod._env_list(("x",), "ARK_TEST_LIST") == ("x",)


def test_env_json(monkeypatch):
    monkeypatch.setenv("ARK_TEST_JSON", '{"old/": "assets/old/"}')
    assert config_mod._env_json(None, "ARK_TEST_JSON") == {"old/": "assets/old/"}

    monkeypatch.setenv("ARK_TEST_JSON", "{broken")
    assert config_mod._env_json({}, "ARK_TEST_JSON") == {}


@pytest.mark.parametrize(
    "value,expected",
    [("yes", True), ("Enabled", True), ("0", False), ("no", False), ("2", True), ("maybe", False), (1, True)],
)
def test_parse_bool(value, expected):
    assert utils_mod.parse_bool(value) is expected


def test_store_path_helpers():
    assert utils_mod.parent_dir("assets/maps/town.png") == "assets/maps"
    assert utils_mod.parent_dir("town.png") == ""
    assert utils_mod.join_store_path("assets/maps", "town.webp") == "assets/maps/town.webp"
    assert utils_mod.join_store_path("", "town.webp") == "town.webp"


def test_module_reads_overrides_on_import(monkeypatch):
    monkeypatch.setenv("ARK_PATH_SHIFT_RULES", '{"legacy/": "assets/legacy/"}')
    monkeypatch.setenv("ARK_ORPHAN_ROOTS", "assets,tokens")
    monkeypatch.setenv("ARK_REWRITE_COMPENDIUMS", "false")
    try:
        reloaded = importlib.reload(config_mod)
        assert reloaded.PATH_SHIFT_RULES == {"legacy/": "assets/legacy/"}
        assert reloaded.ORPHAN_ROOTS == ("assets", "tokens")
        assert reloaded.REWRITE_COMPENDIUMS is False
    finally:
        monkeypatch.undo()
        importlib.reload(config_mod)

    assert config_mod.PATH_SHIFT_RULES == {"deadlands/": "assets/deadlands/"}
