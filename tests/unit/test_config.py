import pytest
from pydantic import ValidationError

from jobfilter.config import Settings
from jobfilter.core.debug_report import BuildInfo
from jobfilter.core.selector import SelectionConfig
from jobfilter.ledger.ledger import LedgerConfig
from jobfilter.types import SegmentationMode


def test_selection_config_follows_settings() -> None:
    settings = Settings(
        import_strategy_priority="newlines, bullets,headings,default",
        import_low_quality_item_floor=5,
        import_preview_max_lines=10,
    )

    config = SelectionConfig.from_settings(settings)

    assert config.strategy_priority[0] == SegmentationMode.NEWLINES
    assert config.low_quality_item_floor == 5
    assert config.preview_max_lines == 10


def test_strategy_priority_must_name_every_mode_once() -> None:
    with pytest.raises(ValidationError):
        Settings(import_strategy_priority="default,default,bullets,newlines")


def test_unknown_environment_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(app_env="qa")


def test_ledger_and_build_config_read_settings() -> None:
    settings = Settings(claim_auto_approve_confidence=0.8, build_sha="deadbeef", app_env="staging")
    assert LedgerConfig.from_settings(settings).auto_approve_confidence == 0.8
    assert BuildInfo.from_settings(settings).label == "build:deadbeef env:staging schema:v1"
