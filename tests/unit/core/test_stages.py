"""Tests for pipeline stage labels, colors and board order."""

import pytest

from core.stages import (
    STAGE_ORDER,
    get_stage_color,
    get_stage_config,
    get_stage_css_vars,
    get_stage_label,
    get_stage_order,
)
from database.models.candidates import CandidateStage


@pytest.fixture(autouse=True)
def clean_stage_env(monkeypatch):
    for stage in CandidateStage:
        monkeypatch.delenv(f"STAGE_{stage.value.upper()}_BG", raising=False)
        monkeypatch.delenv(f"STAGE_{stage.value.upper()}_TEXT", raising=False)
    monkeypatch.delenv("STAGE_ORDER", raising=False)


class TestStageLabels:
    @pytest.mark.parametrize("stage,label", [
        (CandidateStage.APPLIED, "New Applied"),
        (CandidateStage.SCREENING, "Screening"),
        (CandidateStage.INTERVIEW, "Interviews"),
        (CandidateStage.OFFER, "Offer Phase"),
        (CandidateStage.HIRED, "Onboarded"),
        (CandidateStage.REJECTED, "Archived"),
    ])
    def test_labels(self, stage, label):
        assert get_stage_label(stage) == label

    def test_label_from_string(self):
        assert get_stage_label("offer") == "Offer Phase"

    def test_unknown_stage_echoed(self):
        assert get_stage_label("sourcing") == "sourcing"


class TestStageColors:
    def test_defaults(self):
        assert get_stage_color(CandidateStage.APPLIED) == {"bg": "bg-blue-500", "text": "text-white"}

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STAGE_OFFER_BG", "bg-lime-600")

        color = get_stage_color(CandidateStage.OFFER)

        assert color == {"bg": "bg-lime-600", "text": "text-white"}

    def test_empty_override_ignored(self, monkeypatch):
        monkeypatch.setenv("STAGE_HIRED_TEXT", "")
        assert get_stage_color(CandidateStage.HIRED)["text"] == "text-white"

    def test_css_vars(self, monkeypatch):
        monkeypatch.setenv("STAGE_SCREENING_BG", "#000000")

        css = get_stage_css_vars()

        assert css["--stage-applied-bg"] == "#3b82f6"
        assert css["--stage-screening-bg"] == "#000000"
        assert len(css) == len(CandidateStage)


class TestStageOrder:
    def test_default_excludes_rejected(self):
        assert CandidateStage.REJECTED not in get_stage_order()
        assert get_stage_order() == STAGE_ORDER

    def test_env_order(self, monkeypatch):
        monkeypatch.setenv("STAGE_ORDER", "screening, applied,offer")

        assert get_stage_order() == [
            CandidateStage.SCREENING, CandidateStage.APPLIED, CandidateStage.OFFER,
        ]

    def test_unknown_names_ignored(self, monkeypatch):
        monkeypatch.setenv("STAGE_ORDER", "applied,rejected,sourcing")
        assert get_stage_order() == [CandidateStage.APPLIED]

    def test_repeated_names_collapsed(self, monkeypatch):
        monkeypatch.setenv("STAGE_ORDER", "applied,applied,screening,applied")

        assert get_stage_order() == [CandidateStage.APPLIED, CandidateStage.SCREENING]

    def test_invalid_override_falls_back(self, monkeypatch):
        monkeypatch.setenv("STAGE_ORDER", "sourcing")
        assert get_stage_order() == STAGE_ORDER

    def test_returns_copy(self):
        get_stage_order().clear()
        assert len(STAGE_ORDER) == 5


class TestStageConfig:
    def test_board_stages_first(self):
        config = get_stage_config()

        assert [entry["stage"] for entry in config] == [
            "applied", "screening", "interview", "offer", "hired", "rejected",
        ]
        assert config[-1] == {
            "stage": "rejected",
            "label": "Archived",
            "color": {"bg": "bg-rose-500", "text": "text-white"},
            "on_board": False,
        }

    def test_follows_env_order(self, monkeypatch):
        monkeypatch.setenv("STAGE_ORDER", "hired,applied")

        config = get_stage_config()

        assert [entry["stage"] for entry in config[:2]] == ["hired", "applied"]
        assert all(not entry["on_board"] for entry in config[2:])
