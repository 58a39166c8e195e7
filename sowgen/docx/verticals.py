from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

"""Site-requirement notes per customer vertical (K12, HEW, MED, BIZ, GOV)."""

__all__ = [
    "DEFAULT_VERTICAL_NOTES",
    "VerticalNotes",
    "all_vertical_notes",
    "get_vertical_notes",
]


@dataclass(frozen=True)
class VerticalNotes:
    title: str
    bullets: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> VerticalNotes:
        return cls(title=str(data.get("title", "")), bullets=tuple(str(b) for b in data.get("bullets", ()) or ()))


DEFAULT_VERTICAL_NOTES: dict[str, VerticalNotes] = {
    "K12": VerticalNotes(
        title="K-12 / SCHOOL CAMPUSES",
        bullets=(
            "Comply with district badging and background check requirements before starting work.",
            "Coordinate work to avoid instructional disruption; comply with bell/testing schedules and restricted areas.",
            "No photos/video of students; protect privacy.",
            "Tools/materials secured at all times; do not leave ladders/tools unattended in occupied areas.",
            "Maintain safe egress; do not block corridors/exits or prop doors.",
            "Replace/secure ceiling tiles same-day where possible.",
        ),
    ),
    "HEW": VerticalNotes(
        title="HIGHER EDUCATION / UNIVERSITY",
        bullets=(
            "Coordinate access/escort rules and after-hours work with campus facilities/security.",
            "Observe campus access requirements for elevated work, ceiling access, and restricted areas when applicable.",
            "Use signage/barricades where needed in high-traffic areas.",
            "Coordinate network cutovers/testing with campus IT change windows.",
        ),
    ),
    "MED": VerticalNotes(
        title="HEALTHCARE / CLINICS / HOSPITALS",
        bullets=(
            "Follow facility dust-control and cleanliness requirements as directed by site rules.",
            "Coordinate to avoid patient-care disruption; observe restricted zones and quiet hours where applicable.",
            "Do not capture patient information in photos; comply with facility confidentiality rules.",
            "Remove debris daily; restore ceiling tiles immediately when required by facility.",
        ),
    ),
    "BIZ": VerticalNotes(
        title="COMMERCIAL BUSINESS",
        bullets=(
            "Coordinate daily start/stop, access, staging, and work areas with the site Point of Contact; "
            "minimize disruption to normal operations.",
            "In public or high-traffic areas, control the work zone with signage/barricades as required by site rules; "
            "keep pathways clear and safe.",
            "Coordinate with site operations for loading zones, equipment traffic (including powered equipment routes), "
            "and restricted areas; do not obstruct operational lanes.",
        ),
    ),
    "GOV": VerticalNotes(
        title="GOVERNMENT / PUBLIC SAFETY / SECURE SITES",
        bullets=(
            "Comply with access/badging/escort rules and restricted-area requirements.",
            "Follow facility rules on devices, photography, and secure areas.",
            "Escalate any scope questions/field changes to HTS PM before action.",
            "Handle devices/media per HTS direction where chain-of-custody is required.",
        ),
    ),
}


def get_vertical_notes(vertical: str, overrides: Mapping[str, VerticalNotes] | None = None) -> VerticalNotes | None:
    """Configured override for ``vertical``, else the default, else None."""
    overrides = overrides or {}
    return overrides.get(vertical) or DEFAULT_VERTICAL_NOTES.get(vertical)


def all_vertical_notes(overrides: Mapping[str, VerticalNotes] | None = None) -> dict[str, VerticalNotes]:
    return {key: get_vertical_notes(key, overrides) for key in DEFAULT_VERTICAL_NOTES}
