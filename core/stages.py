"""
Pipeline stage presentation config.

Labels, colors and board order for candidate stages. Colors and order can be
overridden from the environment (STAGE_<STAGE>_BG, STAGE_<STAGE>_TEXT,
STAGE_ORDER).
"""

import os
from typing import Dict, List

from database.models.candidates import CandidateStage

# Board columns; rejected candidates are archived, not shown
STAGE_ORDER: List[CandidateStage] = [
    CandidateStage.APPLIED,
    CandidateStage.SCREENING,
    CandidateStage.INTERVIEW,
    CandidateStage.OFFER,
    CandidateStage.HIRED,
]

STAGE_LABELS: Dict[CandidateStage, str] = {
    CandidateStage.APPLIED: "New Applied",
    CandidateStage.SCREENING: "Screening",
    CandidateStage.INTERVIEW: "Interviews",
    CandidateStage.OFFER: "Offer Phase",
    CandidateStage.HIRED: "Onboarded",
    CandidateStage.REJECTED: "Archived",
}

DEFAULT_STAGE_COLORS: Dict[CandidateStage, Dict[str, str]] = {
    CandidateStage.APPLIED: {"bg": "bg-blue-500", "text": "text-white"},
    CandidateStage.SCREENING: {"bg": "bg-purple-500", "text": "text-white"},
    CandidateStage.INTERVIEW: {"bg": "bg-amber-500", "text": "text-white"},
    CandidateStage.OFFER: {"bg": "bg-pink-500", "text": "text-white"},
    CandidateStage.HIRED: {"bg": "bg-emerald-500", "text": "text-white"},
    CandidateStage.REJECTED: {"bg": "bg-rose-500", "text": "text-white"},
}

DEFAULT_STAGE_HEX: Dict[CandidateStage, str] = {
    CandidateStage.APPLIED: "#3b82f6",
    CandidateStage.SCREENING: "#8b5cf6",
    CandidateStage.INTERVIEW: "#f59e0b",
    CandidateStage.OFFER: "#ec4899",
    CandidateStage.HIRED: "#10b981",
    CandidateStage.REJECTED: "#f43f5e",
}


def _env_key(stage: CandidateStage, part: str) -> str:
    return f"STAGE_{stage.value.upper()}_{part}"


def get_stage_color(stage: CandidateStage) -> Dict[str, str]:
    """Return {bg, text} classes for a stage, honoring env overrides."""
    stage = CandidateStage(stage)
    defaults = DEFAULT_STAGE_COLORS[stage]
    return {
        "bg": os.getenv(_env_key(stage, "BG")) or defaults["bg"],
        "text": os.getenv(_env_key(stage, "TEXT")) or defaults["text"],
    }


def get_stage_label(stage: CandidateStage | str) -> str:
    try:
        return STAGE_LABELS[CandidateStage(stage)]
    except ValueError:
        return str(stage)


def get_stage_css_vars() -> Dict[str, str]:
    """CSS custom properties (--stage-<stage>-bg) for every stage."""
    return {
        f"--stage-{stage.value}-bg": os.getenv(_env_key(stage, "BG")) or hex_value
        for stage, hex_value in DEFAULT_STAGE_HEX.items()
    }


def get_stage_order() -> List[CandidateStage]:
    """
    Board column order.

    STAGE_ORDER may list a subset of the default columns, comma separated.
    Unknown names are ignored and repeats keep their first position; an
    override with no valid names falls back to the default order.
    """
    env_order = os.getenv("STAGE_ORDER")
    if env_order:
        known = {s.value for s in STAGE_ORDER}
        valid: List[CandidateStage] = []
        for name in env_order.split(","):
            name = name.strip()
            if name in known and CandidateStage(name) not in valid:
                valid.append(CandidateStage(name))
        if valid:
            return valid
    return list(STAGE_ORDER)


def get_stage_config() -> List[Dict[str, object]]:
    """Full presentation config for every stage, board stages first."""
    order = get_stage_order()
    stages = order + [s for s in CandidateStage if s not in order]
    return [
        {
            "stage": stage.value,
            "label": get_stage_label(stage),
            "color": get_stage_color(stage),
            "on_board": stage in order,
        }
        for stage in stages
    ]
