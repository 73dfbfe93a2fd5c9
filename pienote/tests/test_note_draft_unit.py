import pytest

from pienote.encounter.state import EncounterState
from pienote.note.draft import build_note_draft, compose_note
from pienote.note.formatting import (
    format_time,
    join_sentences,
    normalize_narrative,
    resolve_display_value,
)


def _with_values(problem: str, interventions: dict, evaluations: dict | None = None) -> EncounterState:
    state = EncounterState.empty().select_problem(problem)
    for field_id, value in interventions.items():
        state = state.with_intervention_value(field_id, value)
    for field_id, value in (evaluations or {}).items():
        state = state.with_evaluation_value(field_id, value)
    return state


def test_diabetes_note_end_to_end() -> None:
    state = _with_values(
        "diabetes",
        {
            "bg-check": "55",
            "bg-source-fingerstick": True,
            "carbs-consumed": "30",
            "insulin-admin": "2",
            "orders-checked": True,
        },
    )
    assert compose_note(state) == (
        "P: Student with diabetes presented to health office. Blood glucose measured at 55 mg/dL "
        "via fingerstick glucometer. Carbohydrates consumed: 30g.\n\n"
        "I: Administered 2 units of insulin. Medical orders reviewed and followed.\n\n"
        "E: Tolerated well. No adverse effects noted. Student returned to class."
    )


def test_diabetes_problem_paragraph_variants() -> None:
    state = _with_values(
        "diabetes",
        {
            "visit-reason": "Symptoms of low BG",
            "student-symptoms": "Feeling shaky/tremulous",
            "bg-check": "62",
            "bg-source-cgm": True,
            "bg-source-fingerstick": True,
        },
    )
    draft = build_note_draft(state)
    assert draft.paragraphs.problem == (
        "Student with diabetes presented to health office for symptoms of low bg. "
        "Student reports feeling shaky/tremulous. Blood glucose measured at 62 mg/dL via Dexcom sensors "
        "and verified by fingerstick test via glucometer."
    )

    no_source = _with_values("diabetes", {"bg-check": "120", "student-symptoms": "No symptoms"})
    assert build_note_draft(no_source).paragraphs.problem == (
        "Student with diabetes presented to health office. Blood glucose check: 120 mg/dL."
    )


def test_diabetes_intervention_details() -> None:
    state = _with_values(
        "diabetes",
        {
            "insulin-admin": "3.5",
            "insulin-type": "Rapid-acting (Humalog/Novolog)",
            "insulin-delivery": "Insulin pen",
            "injection-site": "Abdomen",
            "insulin-reason": "Lunch coverage",
            "snack-provided": "None needed",
            "parent-contact": "Not contacted",
        },
    )
    assert build_note_draft(state).paragraphs.intervention == (
        "Administered 3.5 units of insulin (Rapid-acting (Humalog/Novolog)) via insulin pen "
        "to abdomen for lunch coverage."
    )

    pump = _with_values("diabetes", {"insulin-admin": "1", "injection-site": "Via pump"})
    assert build_note_draft(pump).paragraphs.intervention == "Administered 1 units of insulin."


def test_other_specify_uses_companion_text() -> None:
    state = _with_values(
        "diabetes",
        {
            "parent-contact-other": "Field trip permission",
            "parent-contact": "Other (specify)",
        },
    )
    note = compose_note(state)
    assert "Parent/guardian contacted regarding Field trip permission." in note
    assert "Other (specify)" not in note


def test_medication_note() -> None:
    state = _with_values(
        "medication",
        {
            "med-name": "Ibuprofen",
            "reason": "Pain relief",
            "med-class": "Analgesic (pain)",
            "prn-reason": "Pain",
            "dose": "200",
            "dose-unit": "mg",
            "route": "PO (by mouth)",
            "time-since-last": "4-6 hours",
            "dose-verification": True,
            "witnessed-admin": True,
        },
    )
    draft = build_note_draft(state)
    assert draft.paragraphs.problem == (
        "Student presented for medication administration. Ibuprofen needed for pain relief "
        "(analgesic (pain)). PRN administration indicated for pain."
    )
    assert draft.paragraphs.intervention == (
        "Administered dose of 200 mg PO (by mouth). Time since last dose: 4-6 hours. "
        "Dose calculation verified, witnessed student take medication."
    )


def test_medication_without_reason_uses_administration_sentence() -> None:
    state = _with_values("medication", {"med-name": "Cetirizine", "prn-reason": "Fever"})
    assert build_note_draft(state).paragraphs.problem == (
        "Student presented for medication administration. Cetirizine administration."
    )


def test_first_aid_note() -> None:
    state = _with_values(
        "first-aid",
        {
            "injury-type": "Abrasion/scrape",
            "location": "Knee",
            "injury-occurred": "Playground",
            "injury-mechanism": "Fall on same level",
            "initial-assessment": "Alert and oriented",
            "ice-applied": True,
            "ice-duration": "10 minutes",
            "wound-care": "Cleaned with soap and water",
            "bandaid-applied": True,
            "rest-provided": "10 minutes",
            "return-to-activity": "Returned to class after rest",
        },
    )
    draft = build_note_draft(state)
    assert draft.paragraphs.problem == (
        "Student presented to health office with abrasion/scrape to knee sustained during playground "
        "from fall on same level. Initial assessment: alert and oriented."
    )
    assert draft.paragraphs.intervention == (
        "Applied ice pack for 10 minutes, then cleaned with soap and water, then applied bandage/dressing. "
        "Provided 10 minutes of rest. Returned to class after rest."
    )


def test_first_aid_fallback_and_other_mechanism() -> None:
    state = _with_values("first-aid", {"injury-mechanism": "Other"})
    assert build_note_draft(state).paragraphs.problem == (
        "Student presented to health office with minor injury/discomfort."
    )


def test_other_category_uses_free_text() -> None:
    state = _with_values(
        "other",
        {"custom-intervention": "Provided a quiet space to rest"},
        {"custom-evaluation": "Student calmer after 10 minutes"},
    )
    assert compose_note(state) == (
        "P: Provided a quiet space to rest\n\n"
        "I: Provided a quiet space to rest.\n\n"
        "E: Student calmer after 10 minutes."
    )


def test_no_problem_selected_uses_placeholders() -> None:
    assert compose_note(EncounterState.empty()) == (
        "P: Student presented to health office.\n\n"
        "I: (Complete intervention details)\n\n"
        "E: (Complete evaluation details)"
    )


def test_structured_prefix_can_be_disabled() -> None:
    state = EncounterState.empty(use_structured_prefix=False).select_problem("other")
    assert compose_note(state) == (
        "Student presented to health office.\n\n"
        "(Complete intervention details)\n\n"
        "(Complete evaluation details)"
    )


def test_evaluation_notifications_with_times() -> None:
    state = _with_values(
        "first-aid",
        {},
        {
            "standard-eval": False,
            "parent-notified": True,
            "parent-notified-time": "13:05",
            "ems-notified": True,
            "ems-notified-time": "00:15",
            "additional-eval": "Ice reapplied before dismissal",
        },
    )
    assert build_note_draft(state).paragraphs.evaluation == (
        "Parent notified at 1:05 PM via phone. Emergency Services notified at 12:15 AM. "
        "Ice reapplied before dismissal."
    )


def test_malformed_time_uses_time_omitted_sentence() -> None:
    state = _with_values(
        "diabetes",
        {},
        {"standard-eval": False, "parent-notified": True, "parent-notified-time": "25:99"},
    )
    assert build_note_draft(state).paragraphs.evaluation == "Parent notified via phone."


def test_compose_is_idempotent_and_never_empty() -> None:
    state = _with_values("diabetes", {"bg-check": "140", "orders-checked": True})
    first = compose_note(state)
    assert first
    assert compose_note(state) == first


def test_composer_ignores_unknown_keys() -> None:
    state = EncounterState(
        selected_problem="diabetes",
        intervention_values={"not-a-field": "x", "bg-check": "100"},
        evaluation_values={"also-unknown": True},
    )
    note = compose_note(state)
    assert "Blood glucose check: 100 mg/dL." in note
    assert "E: (Complete evaluation details)" in note


def test_format_time_conversions() -> None:
    assert format_time("00:15") == "12:15 AM"
    assert format_time("09:30") == "9:30 AM"
    assert format_time("12:00") == "12:00 PM"
    assert format_time("13:05") == "1:05 PM"
    assert format_time("23:59") == "11:59 PM"
    assert format_time("") == ""


def test_format_time_rejects_malformed_values() -> None:
    for raw in ("noon", "24:00", "7", "12:60"):
        with pytest.raises(ValueError):
            format_time(raw)


def test_resolve_display_value() -> None:
    values = {"location-other": "Left pinky toe"}
    assert resolve_display_value("location", "Other (specify)", values) == "Left pinky toe"
    assert resolve_display_value("location", "Other (specify)", {}) == "Other (specify)"
    assert resolve_display_value("location", "Knee", values) == "Knee"


def test_sentence_helpers() -> None:
    assert join_sentences(["First", "Second!", "", "Third?"]) == "First. Second! Third?"
    assert normalize_narrative("Student  presented.  . Then\nleft.") == "Student presented. Then left."


def test_medication_problem_paragraph_normalizes_free_text_name() -> None:
    state = _with_values("medication", {"med-name": "Vitamin   D.."})
    assert build_note_draft(state).paragraphs.problem == (
        "Student presented for medication administration. Vitamin D. administration."
    )
