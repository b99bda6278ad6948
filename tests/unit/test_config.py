import pytest

from gitvision.config import Settings
from gitvision.domain import ConfigurationError


def test_defaults():
    s = Settings()
    assert s.max_workers == 10
    assert s.large_batch_threshold == 100
    assert s.rename_similarity == 70
    assert s.always_show_uncommitted is False


def test_from_env_parses_booleans_lists_and_numbers():
    env = {
        "GITVISION_ALWAYS_SHOW_UNCOMMITTED": "yes",
        "GITVISION_IGNORE_PATTERNS": "*.lock, dist/**",
        "GITVISION_MAX_WORKERS": "4",
        "GITVISION_QUERY_TIMEOUT": "none",
    }
    s = Settings.from_env(env)
    assert s.always_show_uncommitted is True
    assert s.ignore_patterns == ("*.lock", "dist/**")
    assert s.max_workers == 4
    assert s.query_timeout is None


def test_with_value_accepts_editor_keys():
    s = Settings().with_value("findRenamedFiles", True)
    assert s.find_renamed_files is True
    s = s.with_value("ignorePatterns", ["**/*.min.js"])
    assert s.ignore_patterns == ("**/*.min.js",)


def test_unknown_key_and_bad_values_raise():
    with pytest.raises(ConfigurationError):
        Settings().with_value("noSuchSetting", True)
    with pytest.raises(ConfigurationError):
        Settings().with_value("showAllCommits", "maybe")
    with pytest.raises(ConfigurationError):
        Settings().with_value("maxWorkers", "0")


def test_rename_similarity_is_a_percentage():
    s = Settings()
    assert s.with_value("rename_similarity", "100").rename_similarity == 100
    assert s.with_value("rename_similarity", 1).rename_similarity == 1
    with pytest.raises(ConfigurationError):
        s.with_value("rename_similarity", 150)
    with pytest.raises(ConfigurationError):
        Settings.from_env({"GITVISION_RENAME_SIMILARITY": "101"})
