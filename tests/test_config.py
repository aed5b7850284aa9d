import pytest

from bookstats.config import (
    DEFAULT_SKIP_PATTERNS,
    AnalyzerConfig,
    OutputMode,
    TitleStrategy,
    apply_overrides,
    load_config,
)


def test_defaults_match_documented_values():
    config = AnalyzerConfig.from_dict({})
    assert config.retry.attempts == 10
    assert config.retry.delay_ms == 1000
    assert config.retry.delay_seconds == 1.0
    assert config.analysis.skip_patterns == DEFAULT_SKIP_PATTERNS
    assert config.analysis.title_strategy is TitleStrategy.HEADER
    assert config.pipeline.output_mode is OutputMode.SUBDIR
    assert config.pipeline.max_workers == 0
    assert config.progress.completed_window == 5
    assert config.progress.in_progress_window == 8
    assert config.log_level == "INFO"


def test_load_yaml_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "analysis:\n"
        "  skip_patterns: [LICENSE]\n"
        "  title_strategy: filename\n"
        "retry:\n"
        "  attempts: 2\n"
        "  delay_ms: 50\n"
        "pipeline:\n"
        "  max_workers: 4\n"
        "  output_mode: suffix\n"
        "runtime:\n"
        "  log_level: DEBUG\n",
        encoding="utf-8",
    )
    config = AnalyzerConfig.from_dict(load_config(path))
    assert config.analysis.skip_patterns == ("LICENSE",)
    assert config.analysis.title_strategy is TitleStrategy.FILENAME
    assert config.retry.attempts == 2
    assert config.retry.delay_seconds == 0.05
    assert config.pipeline.max_workers == 4
    assert config.pipeline.output_mode is OutputMode.SUFFIX
    assert config.log_level == "DEBUG"


def test_missing_config_file_means_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml") == {}


def test_non_mapping_config_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


@pytest.mark.parametrize(
    "raw",
    [
        {"analysis": {"title_strategy": "guess"}},
        {"pipeline": {"output_mode": "cloud"}},
        {"retry": {"attempts": 0}},
        {"retry": {"delay_ms": -1}},
        {"pipeline": {"max_workers": -2}},
    ],
)
def test_invalid_values_raise(raw):
    with pytest.raises(ValueError):
        AnalyzerConfig.from_dict(raw)


def test_overrides_skip_none_and_keep_existing_sections():
    raw = {"retry": {"attempts": 5, "delay_ms": 10}}
    merged = apply_overrides(raw, {"retry": {"attempts": None, "delay_ms": 0}, "pipeline": {"max_workers": 2}})
    assert merged == {"retry": {"attempts": 5, "delay_ms": 0}, "pipeline": {"max_workers": 2}}
    assert raw == {"retry": {"attempts": 5, "delay_ms": 10}}
