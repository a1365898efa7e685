import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from excelflow.core.config import DEFAULT_CORS_ORIGINS, Settings, load_settings
from excelflow.core.workflow import MachineOptions


def test_defaults():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.progress_step == 10
    assert settings.tick_interval == 0.15
    assert settings.processing_delay == 3.0
    assert settings.table_shape == "rows"
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS


def test_environment_overrides():
    settings = load_settings(
        {
            "EXCELFLOW_PROGRESS_STEP": "25",
            "EXCELFLOW_TABLE_SHAPE": "Records",
            "EXCELFLOW_ACCEPT_CSV": "no",
            "EXCELFLOW_LOG_LEVEL": "debug",
            "API_CORS_ORIGINS": "https://a.example, https://b.example,",
        }
    )
    assert settings.progress_step == 25
    assert settings.table_shape == "records"
    assert settings.accept_csv is False
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]

    options = MachineOptions.from_settings(settings)
    assert options.progress_step == 25
    assert options.table_shape == "records"
    assert options.accept_csv is False


def test_yaml_file_is_overridden_by_environment(tmp_path):
    config = tmp_path / "excelflow.yaml"
    config.write_text(
        "progress_step: 20\nprocessing_delay: 1.5\ncors_origins:\n  - https://ui.example\nunknown_key: 1\n",
        encoding="utf-8",
    )
    settings = load_settings({"EXCELFLOW_CONFIG": str(config), "EXCELFLOW_PROGRESS_STEP": "5"})
    assert settings.progress_step == 5
    assert settings.processing_delay == 1.5
    assert settings.cors_origins == ["https://ui.example"]


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings({"EXCELFLOW_CONFIG": str(tmp_path / "missing.yaml")})


@pytest.mark.parametrize(
    "env",
    [
        {"EXCELFLOW_PROGRESS_STEP": "0"},
        {"EXCELFLOW_TABLE_SHAPE": "columns"},
        {"EXCELFLOW_TICK_INTERVAL": "-1"},
    ],
)
def test_invalid_settings(env):
    with pytest.raises(ValueError):
        load_settings(env)
