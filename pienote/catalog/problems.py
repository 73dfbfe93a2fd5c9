from __future__ import annotations

"""
Problem catalog: per-category intervention/evaluation field schemas.

Design intent:
- One immutable ProblemDefinition per encounter category.
- Field ids are unique within a category and double as state keys.
- Select fields offering "Other (specify)" own a `<id>-other` companion key;
  time-bearing checkboxes own a `<id>-time` companion key.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional


ProblemKey = Literal["diabetes", "medication", "first-aid", "other"]
FieldKind = Literal["checkbox", "select", "free_text", "numeric"]

OTHER_SPECIFY = "Other (specify)"
OTHER_SUFFIX = "-other"
TIME_SUFFIX = "-time"

STANDARD_EVAL_TEXT = "Tolerated well. No adverse effects noted. Student returned to class."


class UnknownProblemError(ValueError):
    """Raised when a problem key is not part of the catalog."""


@dataclass(frozen=True)
class NumericConstraints:
    min: float
    max: float
    step: Optional[float] = None


@dataclass(frozen=True)
class FieldSpec:
    id: str
    label: str
    kind: FieldKind
    options: tuple[str, ...] = ()
    constraints: Optional[NumericConstraints] = None
    default_text: Optional[str] = None
    default_checked: bool = False
    has_time_input: bool = False
    textarea: bool = False
    input_label: Optional[str] = None
    group: Optional[str] = None

    @property
    def has_other_option(self) -> bool:
        return self.kind == "select" and any(OTHER_SPECIFY in item for item in self.options)

    def companion_keys(self) -> tuple[str, ...]:
        keys: list[str] = []
        if self.has_other_option:
            keys.append(self.id + OTHER_SUFFIX)
        if self.has_time_input:
            keys.append(self.id + TIME_SUFFIX)
        return tuple(keys)


@dataclass(frozen=True)
class ProblemDefinition:
    key: ProblemKey
    display_name: str
    intervention_fields: tuple[FieldSpec, ...]
    evaluation_fields: tuple[FieldSpec, ...]
    _index: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, FieldSpec] = {}
        for spec in (*self.intervention_fields, *self.evaluation_fields):
            if spec.id in index:
                raise ValueError(f"Duplicate field id {spec.id!r} in problem {self.key!r}")
            index[spec.id] = spec
        object.__setattr__(self, "_index", index)

    def get_field(self, field_id: str) -> FieldSpec | None:
        return self._index.get(field_id)

    def intervention_keys(self) -> frozenset[str]:
        return _keys_with_companions(self.intervention_fields)

    def evaluation_keys(self) -> frozenset[str]:
        return _keys_with_companions(self.evaluation_fields)

    def numeric_field_ids(self) -> frozenset[str]:
        return frozenset(spec.id for spec in self._index.values() if spec.kind == "numeric")

    def default_evaluation_text(self, field_id: str = "standard-eval") -> str | None:
        spec = self.get_field(field_id)
        if spec is None:
            return None
        return spec.default_text

    def default_evaluation_values(self) -> dict[str, bool]:
        return {spec.id: True for spec in self.evaluation_fields if spec.default_checked}


def _keys_with_companions(fields: tuple[FieldSpec, ...]) -> frozenset[str]:
    keys: set[str] = set()
    for spec in fields:
        keys.add(spec.id)
        keys.update(spec.companion_keys())
    return frozenset(keys)


def _checkbox(field_id: str, label: str, **kwargs) -> FieldSpec:
    return FieldSpec(id=field_id, label=label, kind="checkbox", **kwargs)


def _select(field_id: str, label: str, options: list[str]) -> FieldSpec:
    return FieldSpec(id=field_id, label=label, kind="select", options=tuple(options))


def _text(field_id: str, label: str, input_label: str, *, textarea: bool = False) -> FieldSpec:
    return FieldSpec(
        id=field_id,
        label=label,
        kind="free_text",
        input_label=input_label,
        textarea=textarea,
    )


def _numeric(
    field_id: str,
    label: str,
    input_label: str,
    *,
    min_value: float,
    max_value: float,
    step: float | None = None,
) -> FieldSpec:
    return FieldSpec(
        id=field_id,
        label=label,
        kind="numeric",
        input_label=input_label,
        constraints=NumericConstraints(min=min_value, max=max_value, step=step),
    )


_PARENT_CONTACT_OPTIONS = [
    "Not contacted",
    "Critical BG reading",
    "Hypoglycemia intervention",
    "Hyperglycemia concern",
    "Insulin administration issue",
    "Student request",
    "Medication side effects",
    "Injury requiring follow-up",
    "Illness symptoms",
    OTHER_SPECIFY,
]


def _parent_contact() -> FieldSpec:
    return _select("parent-contact", "Parent/guardian contacted", _PARENT_CONTACT_OPTIONS)


def _standard_evaluations() -> tuple[FieldSpec, ...]:
    return (
        _checkbox(
            "standard-eval",
            "Standard evaluation",
            default_text=STANDARD_EVAL_TEXT,
            default_checked=True,
        ),
        _checkbox("parent-notified", "Parent notified", has_time_input=True),
        _checkbox("ems-notified", "Emergency Services notified", has_time_input=True),
        _text("additional-eval", "Additional evaluation notes", "Additional details", textarea=True),
    )


_DIABETES = ProblemDefinition(
    key="diabetes",
    display_name="Diabetes Management",
    intervention_fields=(
        _select(
            "visit-reason",
            "Reason for visit",
            [
                "Routine scheduled check",
                "Student requested check",
                "Symptoms of low BG",
                "Symptoms of high BG",
                "Pre-meal coverage",
                "Post-activity check",
                "Teacher concern",
                "Other",
            ],
        ),
        _select(
            "student-symptoms",
            "Student reports",
            [
                "No symptoms",
                "Feeling shaky/tremulous",
                "Sweating",
                "Headache",
                "Dizziness",
                "Confusion",
                "Nausea",
                "Increased thirst",
                "Increased urination",
                "Fatigue/weakness",
                "Blurred vision",
                "Multiple symptoms",
            ],
        ),
        _numeric(
            "bg-check",
            "Current blood glucose level",
            "BG reading (mg/dL)",
            min_value=0,
            max_value=999,
        ),
        _checkbox("bg-source-cgm", "Dexcom (CGM)", group="bg-source"),
        _checkbox("bg-source-fingerstick", "Manual fingerstick", group="bg-source"),
        _numeric(
            "carbs-consumed",
            "Carbohydrates consumed",
            "Grams of carbs",
            min_value=0,
            max_value=500,
            step=1,
        ),
        _numeric(
            "insulin-admin",
            "Insulin administered",
            "Units given",
            min_value=0,
            max_value=100,
            step=0.5,
        ),
        _select(
            "insulin-type",
            "Type of insulin",
            [
                "Rapid-acting (Humalog/Novolog)",
                "Short-acting (Regular)",
                "Intermediate-acting (NPH)",
                "Long-acting (Lantus/Levemir)",
                "Per student's orders",
                "Other",
            ],
        ),
        _select(
            "insulin-delivery",
            "Insulin delivery method",
            ["Insulin pump", "Insulin pen", "Syringe", "Pre-filled syringe from parent"],
        ),
        _select(
            "injection-site",
            "Injection site (if applicable)",
            [
                "Abdomen",
                "Right upper arm",
                "Left upper arm",
                "Right thigh",
                "Left thigh",
                "Buttocks",
                "Via pump",
                "N/A",
            ],
        ),
        _select(
            "insulin-reason",
            "Reason for insulin",
            ["Lunch coverage", "Correction dose", "Snack coverage", "High BG"],
        ),
        _select(
            "snack-provided",
            "Snack/glucose provided for hypoglycemia",
            [
                "None needed",
                "15g glucose tablets",
                "4 oz juice (15g carbs)",
                "4 oz regular soda (15g carbs)",
                "Graham crackers (3 squares)",
                "8 oz milk (12g carbs)",
                "Small fruit (15g carbs)",
                "Honey/sugar packet",
                OTHER_SPECIFY,
            ],
        ),
        _checkbox("orders-checked", "Medical orders reviewed and followed"),
        _parent_contact(),
    ),
    evaluation_fields=_standard_evaluations(),
)


_MEDICATION = ProblemDefinition(
    key="medication",
    display_name="Medication Administration",
    intervention_fields=(
        _text("med-name", "Medication name", "Medication"),
        _select(
            "med-class",
            "Medication class",
            [
                "Stimulant (ADHD)",
                "Non-stimulant (ADHD)",
                "Antibiotic",
                "Bronchodilator/Inhaled steroid",
                "Antihistamine",
                "Antiepileptic/Anticonvulsant",
                "Analgesic (pain)",
                "Antiemetic/GI medication",
                "Antidepressant",
                "Antianxiety",
                "Antipsychotic",
                "Emergency epinephrine",
                "Antiinflammatory (NSAID)",
                "Antacid/Reflux medication",
                "Other",
            ],
        ),
        _text("dose", "Dose administered", "Amount"),
        _select(
            "dose-unit",
            "Dose unit",
            ["mg", "mcg", "mL", "g", "units", "puffs", "sprays", "tablets", "capsules"],
        ),
        _select(
            "route",
            "Route",
            ["PO (by mouth)", "Inhaled", "Topical", "Sublingual", "Subcutaneous", "Nasal", "Other"],
        ),
        _select(
            "reason",
            "Reason for medication",
            [
                "ADHD symptom management",
                "Seizure prevention",
                "Asthma/breathing support",
                "Allergy symptoms",
                "Pain relief",
                "Infection treatment",
                "Nausea/GI symptoms",
                "Anxiety management",
                "Blood pressure control",
                "Diabetes management",
                "Per medical orders",
                OTHER_SPECIFY,
            ],
        ),
        _select(
            "prn-reason",
            "PRN reason (if applicable)",
            [
                "N/A - Scheduled dose",
                "Pain",
                "Fever",
                "Asthma symptoms/wheezing",
                "Anxiety",
                "Nausea",
                "Allergic reaction",
                "Breakthrough symptoms",
                "Other",
            ],
        ),
        _select(
            "time-since-last",
            "Time since last dose",
            [
                "Unknown/Not applicable",
                "Less than 2 hours",
                "2-4 hours",
                "4-6 hours",
                "6-8 hours",
                "8-12 hours",
                "More than 12 hours",
                "First dose of day",
            ],
        ),
        _checkbox("dose-verification", "Dose calculation verified"),
        _checkbox("witnessed-admin", "Witnessed student take medication"),
        _checkbox("orders-checked", "Medical orders reviewed and verified"),
        _parent_contact(),
    ),
    evaluation_fields=_standard_evaluations(),
)


_FIRST_AID = ProblemDefinition(
    key="first-aid",
    display_name="First Aid / Minor Injury",
    intervention_fields=(
        _select(
            "injury-type",
            "Type of injury/complaint",
            [
                "Abrasion/scrape",
                "Bump/contusion",
                "Minor cut/laceration",
                "Headache",
                "Stomachache",
                "Nosebleed",
                "Dental injury",
                "Sprain/strain",
                "Insect bite/sting",
                "Rash/skin irritation",
                "Other",
            ],
        ),
        _select(
            "location",
            "Location of injury",
            [
                "Head",
                "Forehead",
                "Face",
                "Eye",
                "Ear",
                "Nose",
                "Mouth/lips",
                "Teeth/jaw",
                "Neck",
                "Shoulder",
                "Upper arm",
                "Elbow",
                "Forearm",
                "Wrist",
                "Hand",
                "Finger(s)",
                "Chest",
                "Abdomen",
                "Back",
                "Hip",
                "Thigh",
                "Knee",
                "Lower leg",
                "Ankle",
                "Foot",
                "Toe(s)",
                "Multiple locations",
                OTHER_SPECIFY,
            ],
        ),
        _select(
            "injury-occurred",
            "How injury occurred",
            [
                "Playground",
                "PE class",
                "Classroom",
                "Hallway",
                "Cafeteria",
                "Recess",
                "Sports/athletics",
                "Stairs",
                "Bathroom",
                "Bus area",
                "Student reports unknown",
                "Other",
            ],
        ),
        _select(
            "injury-mechanism",
            "Mechanism of injury",
            [
                "Fall from height",
                "Fall on same level",
                "Collision with person",
                "Collision with object",
                "Struck by object",
                "Contact with sharp object",
                "Twisting motion",
                "Non-traumatic/spontaneous",
                "Unknown",
                "Other",
            ],
        ),
        _select(
            "initial-assessment",
            "Initial assessment",
            [
                "Alert and oriented",
                "No visible distress",
                "Mild distress",
                "Moderate distress",
                "Denies loss of consciousness",
                "Brief LOC reported",
                "Other",
            ],
        ),
        _checkbox("ice-applied", "Ice pack applied"),
        _select(
            "ice-duration",
            "Ice application duration",
            ["N/A", "5 minutes", "10 minutes", "15 minutes", "20 minutes", "30 minutes"],
        ),
        _checkbox("bandaid-applied", "Band-aid/dressing applied"),
        _select(
            "wound-care",
            "Wound care performed",
            [
                "N/A",
                "Cleaned with soap and water",
                "Cleaned with saline",
                "Antiseptic applied",
                "Pressure applied for bleeding control",
                "Gauze dressing applied",
                "Other",
            ],
        ),
        _select(
            "rest-provided",
            "Rest period provided",
            [
                "N/A",
                "5 minutes",
                "10 minutes",
                "15 minutes",
                "20 minutes",
                "30 minutes",
                "Remained until dismissal",
            ],
        ),
        _text("vital-signs", "Vital signs assessed", "Results (if applicable)"),
        _select(
            "head-injury-screen",
            "Head injury screening",
            [
                "N/A - Not head injury",
                "No signs of concussion",
                "Concussion symptoms present",
                "LOC reported",
                "Vomiting present",
                "Confusion noted",
                "Headache persists",
                "Refer for evaluation",
            ],
        ),
        _select(
            "return-to-activity",
            "Return to activity status",
            [
                "Returned to class immediately",
                "Returned to class after rest",
                "Returned to class with restrictions",
                "Unable to return to activity",
                "Parent pickup arranged",
                "Referred for further evaluation",
            ],
        ),
        _parent_contact(),
    ),
    evaluation_fields=_standard_evaluations(),
)


_OTHER = ProblemDefinition(
    key="other",
    display_name="Other",
    intervention_fields=(
        _text(
            "custom-intervention",
            "Describe intervention",
            "Intervention provided",
            textarea=True,
        ),
    ),
    evaluation_fields=(
        _text("custom-evaluation", "Describe evaluation", "Outcome/evaluation", textarea=True),
    ),
)


PROBLEM_CATALOG: dict[str, ProblemDefinition] = {
    item.key: item for item in (_DIABETES, _MEDICATION, _FIRST_AID, _OTHER)
}


def get_problem(key: str, catalog: dict[str, ProblemDefinition] | None = None) -> ProblemDefinition:
    resolved = PROBLEM_CATALOG if catalog is None else catalog
    problem = resolved.get(str(key or "").strip())
    if problem is None:
        raise UnknownProblemError(f"Unsupported problem: {key!r}")
    return problem


def list_problems(catalog: dict[str, ProblemDefinition] | None = None) -> list[ProblemDefinition]:
    resolved = PROBLEM_CATALOG if catalog is None else catalog
    return list(resolved.values())


def all_numeric_field_ids(catalog: dict[str, ProblemDefinition] | None = None) -> frozenset[str]:
    ids: set[str] = set()
    for problem in list_problems(catalog):
        ids.update(problem.numeric_field_ids())
    return frozenset(ids)
