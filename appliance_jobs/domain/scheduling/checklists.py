"""Checklist templates per job configuration"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .time_calculator import JobType


@dataclass(frozen=True)
class ChecklistTemplate:
    name: str
    items: Tuple[str, ...]


DELIVERY = ChecklistTemplate(
    name="Delivery Checklist",
    items=(
        "Ramp",
        "Dolly",
        "Two Heavy Duty Straps",
        "Couple of Rags",
        "Runners",
        "Washer Hot and Cold Connections",
        "Washer Drain Pipe",
        "Dryer plug INSTALLED",
        "The opposite dryer cord",
        "Check Gas",
    ),
)

INSTALLATION = ChecklistTemplate(
    name="Installation Checklist",
    items=(
        "Screwdriver",
        "Impact with drills bit",
        "Channel Lock Pliers",
    ),
)

PICKUP = ChecklistTemplate(
    name="Pickup Checklist",
    items=(
        "Dolly",
        "Two Heavy Duty Straps",
        "Dolly Strap",
        "Ramp",
        "Runner / Rags",
        "Cash",
        "Check Gas",
    ),
)

POST_TINKERING = ChecklistTemplate(
    name="Post-Tinkering",
    items=("ALWAYS Test after you fix/change something",),
)

BASE_TEMPLATES = {
    JobType.DELIVERY: DELIVERY,
    JobType.INSTALLATION: INSTALLATION,
    JobType.PICKUP: PICKUP,
}


def templates_for(
    job_type: JobType,
    includes_installation: bool = False,
    is_post_tinkering: bool = False,
) -> List[ChecklistTemplate]:
    """Templates that apply to a job, in display order"""
    job_type = JobType(job_type)
    result = [BASE_TEMPLATES[job_type]]

    if job_type == JobType.DELIVERY and includes_installation:
        result.append(INSTALLATION)

    if is_post_tinkering:
        result.append(POST_TINKERING)

    return result


def all_items(
    job_type: JobType,
    includes_installation: bool = False,
    is_post_tinkering: bool = False,
) -> List[str]:
    """
    Flat list of item names for a job configuration.

    A name that appears in two templates is listed twice; both occurrences
    share one checked state since membership is by name.
    """
    return [
        item
        for template in templates_for(job_type, includes_installation, is_post_tinkering)
        for item in template.items
    ]


def toggled(checked_items: Iterable[str], item: str) -> List[str]:
    """Return a copy of checked_items with item added if absent, removed if present"""
    current = list(checked_items)
    if item in current:
        return [name for name in current if name != item]
    return current + [item]


def checklist_progress(checked_items: Iterable[str], items: List[str]) -> float:
    """Fraction of items checked; an empty checklist counts as complete"""
    if not items:
        return 1.0
    checked = set(checked_items)
    done = sum(1 for item in items if item in checked)
    return done / len(items)
