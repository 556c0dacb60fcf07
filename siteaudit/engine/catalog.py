# siteaudit/engine/catalog.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Tuple

MAX_ANSWER_SCORE = 5


@dataclass(frozen=True)
class SafetyQuestion:
    id: str
    category: str
    question: str
    weight: int


@dataclass(frozen=True)
class QuestionCatalog:
    """
    Ordered, immutable checklist.

    `categories` is an ordered tuple of (key, display name); its order is the
    report section order. `questions` order is the presentation order.
    """
    questions: Tuple[SafetyQuestion, ...]
    categories: Tuple[Tuple[str, str], ...]
    version: str = "custom"

    def __post_init__(self):
        seen: set[str] = set()
        for q in self.questions:
            if q.id in seen:
                raise ValueError(f"Duplicate question id: {q.id}")
            if q.weight <= 0:
                raise ValueError(f"Question {q.id} must have a positive weight")
            seen.add(q.id)

    @classmethod
    def build(
        cls,
        questions: Iterable[Mapping],
        categories: Iterable[Tuple[str, str]] | Mapping[str, str],
        version: str = "custom",
    ) -> "QuestionCatalog":
        if isinstance(categories, Mapping):
            categories = categories.items()
        return cls(
            questions=tuple(
                SafetyQuestion(
                    id=q["id"],
                    category=q["category"],
                    question=q["question"],
                    weight=int(q["weight"]),
                )
                for q in questions
            ),
            categories=tuple((k, v) for k, v in categories),
            version=version,
        )

    def get(self, question_id: str) -> SafetyQuestion | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def in_category(self, category: str) -> list[SafetyQuestion]:
        return [q for q in self.questions if q.category == category]

    def category_name(self, category: str) -> str | None:
        for key, name in self.categories:
            if key == category:
                return name
        return None

    def category_index(self, category: str) -> int | None:
        """1-based section number used in the report."""
        for i, (key, _) in enumerate(self.categories):
            if key == category:
                return i + 1
        return None


CATEGORY_NAMES = {
    "documentation": "Documentation and Training",
    "ppe": "Personal Protective Equipment",
    "fall_protection": "Fall Protection",
    "scaffolding": "Scaffolding and Ladders",
    "electrical": "Electrical Installations",
    "machinery": "Machinery and Equipment",
    "excavation": "Excavations and Earthworks",
    "fire": "Fire Prevention",
    "housekeeping": "Housekeeping and Signage",
    "amenities": "Worker Amenities",
}

SAFETY_QUESTIONS = [
    # documentation
    {"id": "doc_01", "category": "documentation", "weight": 3,
     "question": "Site risk management program is available and up to date"},
    {"id": "doc_02", "category": "documentation", "weight": 2,
     "question": "Workers have induction training records on file"},
    {"id": "doc_03", "category": "documentation", "weight": 2,
     "question": "Work permits are issued for high-risk activities"},
    {"id": "doc_04", "category": "documentation", "weight": 1,
     "question": "Emergency contact list is posted at the site office"},

    # ppe
    {"id": "ppe_01", "category": "ppe", "weight": 3,
     "question": "All workers wear helmets with chin straps"},
    {"id": "ppe_02", "category": "ppe", "weight": 2,
     "question": "Safety footwear is worn in all work areas"},
    {"id": "ppe_03", "category": "ppe", "weight": 2,
     "question": "Eye and hearing protection is used where required"},
    {"id": "ppe_04", "category": "ppe", "weight": 1,
     "question": "PPE delivery records are signed by workers"},

    # fall_protection
    {"id": "fall_01", "category": "fall_protection", "weight": 5,
     "question": "Guardrails are installed on all open edges and slabs"},
    {"id": "fall_02", "category": "fall_protection", "weight": 5,
     "question": "Harnesses are used and anchored when working at height"},
    {"id": "fall_03", "category": "fall_protection", "weight": 4,
     "question": "Floor openings are covered and secured"},
    {"id": "fall_04", "category": "fall_protection", "weight": 3,
     "question": "Lifelines are inspected and in good condition"},

    # scaffolding
    {"id": "scaf_01", "category": "scaffolding", "weight": 4,
     "question": "Scaffolds are erected on firm, level bases"},
    {"id": "scaf_02", "category": "scaffolding", "weight": 4,
     "question": "Scaffold platforms are fully planked with toe boards"},
    {"id": "scaf_03", "category": "scaffolding", "weight": 3,
     "question": "Scaffolds are tied to the structure at regular intervals"},
    {"id": "scaf_04", "category": "scaffolding", "weight": 2,
     "question": "Ladders are secured and extend above the landing"},

    # electrical
    {"id": "elec_01", "category": "electrical", "weight": 5,
     "question": "Temporary panels are closed, grounded and labelled"},
    {"id": "elec_02", "category": "electrical", "weight": 4,
     "question": "Residual current devices protect all circuits"},
    {"id": "elec_03", "category": "electrical", "weight": 3,
     "question": "Cables are routed overhead or protected from damage"},
    {"id": "elec_04", "category": "electrical", "weight": 2,
     "question": "Only authorized workers operate electrical installations"},

    # machinery
    {"id": "mach_01", "category": "machinery", "weight": 4,
     "question": "Moving parts of machines have fixed guards"},
    {"id": "mach_02", "category": "machinery", "weight": 4,
     "question": "Emergency stop devices are accessible and working"},
    {"id": "mach_03", "category": "machinery", "weight": 3,
     "question": "Operators are qualified for the equipment they use"},
    {"id": "mach_04", "category": "machinery", "weight": 2,
     "question": "Maintenance logs are kept for cranes and hoists"},

    # excavation
    {"id": "exc_01", "category": "excavation", "weight": 5,
     "question": "Excavations deeper than 1.25 m are shored or sloped"},
    {"id": "exc_02", "category": "excavation", "weight": 3,
     "question": "Spoil is kept at a safe distance from trench edges"},
    {"id": "exc_03", "category": "excavation", "weight": 3,
     "question": "Safe access and egress ladders are provided in trenches"},
    {"id": "exc_04", "category": "excavation", "weight": 2,
     "question": "Underground utilities were located before digging"},

    # fire
    {"id": "fire_01", "category": "fire", "weight": 4,
     "question": "Fire extinguishers are charged, signed and unobstructed"},
    {"id": "fire_02", "category": "fire", "weight": 3,
     "question": "Flammable materials are stored in ventilated areas"},
    {"id": "fire_03", "category": "fire", "weight": 3,
     "question": "Hot work is controlled by permit and fire watch"},
    {"id": "fire_04", "category": "fire", "weight": 2,
     "question": "Escape routes are marked and kept clear"},

    # housekeeping
    {"id": "house_01", "category": "housekeeping", "weight": 2,
     "question": "Walkways are free of debris and protruding nails"},
    {"id": "house_02", "category": "housekeeping", "weight": 2,
     "question": "Materials are stacked in a stable and orderly way"},
    {"id": "house_03", "category": "housekeeping", "weight": 2,
     "question": "Safety signage is visible at hazardous areas"},
    {"id": "house_04", "category": "housekeeping", "weight": 1,
     "question": "Waste is segregated and removed regularly"},

    # amenities
    {"id": "amen_01", "category": "amenities", "weight": 2,
     "question": "Toilets and washbasins are clean and sufficient"},
    {"id": "amen_02", "category": "amenities", "weight": 2,
     "question": "Drinking water is available to all workers"},
    {"id": "amen_03", "category": "amenities", "weight": 1,
     "question": "Changing rooms with lockers are provided"},
    {"id": "amen_04", "category": "amenities", "weight": 1,
     "question": "A clean area is provided for meals"},
]

DEFAULT_CATALOG = QuestionCatalog.build(SAFETY_QUESTIONS, CATEGORY_NAMES, version="nr18-v1")


def get_catalog() -> QuestionCatalog:
    return DEFAULT_CATALOG
