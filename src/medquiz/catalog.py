"""Subject catalog: subjects and their ordered sub-topics."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

__all__ = [
    "CatalogError",
    "SubjectCatalog",
    "DEFAULT_SUBJECTS",
    "default_catalog",
]


class CatalogError(ValueError):
    """Raised when a catalog definition is malformed."""


DEFAULT_SUBJECTS: Mapping[str, Sequence[str]] = MappingProxyType(
    {
        "Anatomy": (
            "Upper Limb",
            "Lower Limb",
            "Thorax",
            "Abdomen",
            "Head and Neck",
            "Neuroanatomy",
            "Embryology",
            "Histology",
        ),
        "Physiology": (
            "General Physiology",
            "Nerve and Muscle",
            "Cardiovascular System",
            "Respiratory System",
            "Renal Physiology",
            "Endocrinology",
        ),
        "Biochemistry": (
            "Enzymes",
            "Carbohydrate Metabolism",
            "Lipid Metabolism",
            "Vitamins",
            "Molecular Biology",
        ),
        "Pathology": (
            "Cell Injury",
            "Inflammation",
            "Neoplasia",
            "Hematology",
            "Systemic Pathology",
        ),
        "Pharmacology": (
            "General Pharmacology",
            "Autonomic Drugs",
            "Antimicrobials",
            "Cardiovascular Drugs",
            "CNS Drugs",
        ),
        "Microbiology": (
            "Bacteriology",
            "Virology",
            "Mycology",
            "Parasitology",
            "Immunology",
        ),
        "Cardiology": (
            "Arrhythmias",
            "Heart Failure",
            "Ischemic Heart Disease",
            "Valvular Heart Disease",
            "Hypertension",
        ),
        "Obstetrics and Gynecology": (
            "Antenatal Care",
            "Labour",
            "Contraception",
            "Gynecological Oncology",
        ),
    }
)


@dataclass(frozen=True)
class SubjectCatalog:
    """Immutable subject to sub-topic mapping in display order."""

    entries: Mapping[str, tuple[str, ...]]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SubjectCatalog":
        """Validate ``raw`` (as read from TOML) into a catalog."""

        if not isinstance(raw, Mapping) or not raw:
            raise CatalogError("Catalog must define at least one subject.")
        entries: dict[str, tuple[str, ...]] = {}
        for subject, topics in raw.items():
            name = str(subject).strip()
            if not name:
                raise CatalogError("Subject names must be non-empty.")
            if isinstance(topics, (str, bytes)) or not isinstance(
                topics, Sequence
            ):
                raise CatalogError(
                    f"Sub-topics for '{name}' must be a list of strings."
                )
            cleaned = tuple(str(topic).strip() for topic in topics)
            if not cleaned or any(not topic for topic in cleaned):
                raise CatalogError(
                    f"Subject '{name}' needs at least one non-empty "
                    "sub-topic."
                )
            if len(set(cleaned)) != len(cleaned):
                raise CatalogError(f"Subject '{name}' repeats a sub-topic.")
            entries[name] = cleaned
        return cls(entries=MappingProxyType(entries))

    def subjects(self) -> list[str]:
        return list(self.entries)

    def sub_topics(self, subject: str | None) -> list[str]:
        if not subject:
            return []
        return list(self.entries.get(subject, ()))

    def contains(self, subject: str, sub_topic: str) -> bool:
        return sub_topic in self.entries.get(subject, ())


def default_catalog() -> SubjectCatalog:
    return SubjectCatalog.from_mapping(DEFAULT_SUBJECTS)
