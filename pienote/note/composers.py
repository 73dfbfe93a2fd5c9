from __future__ import annotations

"""
Per-category PIE paragraph composers.

Design intent:
- One composer per problem category behind a shared interface.
- Selection is a registry lookup on the problem key; adding a category is additive.
- Composers read field values only; they never mutate state.
"""

from typing import Mapping

from pienote.catalog.problems import ProblemDefinition
from pienote.note.formatting import (
    as_text,
    capitalize_first,
    embedded_value,
    format_time,
    is_checked,
    join_sentences,
    normalize_narrative,
    resolve_display_value,
)

Values = Mapping[str, object]

GENERIC_PROBLEM_TEXT = "Student presented to health office."


class CategoryComposer:
    """Fallback composer, also used when no category is selected."""

    notes_field_id = "additional-eval"

    def problem_paragraph(self, interventions: Values) -> str:
        return GENERIC_PROBLEM_TEXT

    def intervention_sentences(self, interventions: Values) -> list[str]:
        return []

    def evaluation_sentences(
        self,
        evaluations: Values,
        problem: ProblemDefinition | None,
    ) -> list[str]:
        parts: list[str] = []

        if is_checked(evaluations.get("standard-eval")) and problem is not None:
            standard_text = problem.default_evaluation_text()
            if standard_text:
                parts.append(standard_text)

        if is_checked(evaluations.get("parent-notified")):
            time_text = _formatted_time(evaluations.get("parent-notified-time"))
            if time_text:
                parts.append(f"Parent notified at {time_text} via phone")
            else:
                parts.append("Parent notified via phone")

        if is_checked(evaluations.get("ems-notified")):
            time_text = _formatted_time(evaluations.get("ems-notified-time"))
            if time_text:
                parts.append(f"Emergency Services notified at {time_text}")
            else:
                parts.append("Emergency Services notified")

        notes = self.evaluation_notes(evaluations)
        if notes:
            parts.append(notes)
        return parts

    def evaluation_notes(self, evaluations: Values) -> str:
        return as_text(evaluations.get(self.notes_field_id))


class DiabetesComposer(CategoryComposer):
    def problem_paragraph(self, interventions: Values) -> str:
        visit_reason = embedded_value("visit-reason", interventions)
        symptoms = as_text(interventions.get("student-symptoms"))
        bg_value = as_text(interventions.get("bg-check"))
        carbs_value = as_text(interventions.get("carbs-consumed"))

        opening = "Student with diabetes presented to health office"
        if visit_reason:
            opening += f" for {visit_reason}"
        sentences = [opening]

        if symptoms and symptoms != "No symptoms":
            sentences.append(f"Student reports {embedded_value('student-symptoms', interventions)}")

        if bg_value:
            sentences.append(_bg_source_text(bg_value, interventions))

        if carbs_value:
            sentences.append(f"Carbohydrates consumed: {carbs_value}g")

        return normalize_narrative(join_sentences(sentences))

    def intervention_sentences(self, interventions: Values) -> list[str]:
        sentences: list[str] = []

        insulin_amount = as_text(interventions.get("insulin-admin"))
        if insulin_amount:
            insulin_type = resolve_display_value("insulin-type", interventions.get("insulin-type"), interventions)
            delivery = embedded_value("insulin-delivery", interventions)
            injection_site = as_text(interventions.get("injection-site"))
            insulin_reason = embedded_value("insulin-reason", interventions)

            sentence = f"Administered {insulin_amount} units of insulin"
            if insulin_type:
                sentence += f" ({insulin_type})"
            if delivery:
                sentence += f" via {delivery}"
            if injection_site and injection_site not in {"N/A", "Via pump"}:
                sentence += f" to {embedded_value('injection-site', interventions)}"
            if insulin_reason:
                sentence += f" for {insulin_reason}"
            sentences.append(sentence)

        snack = as_text(interventions.get("snack-provided"))
        if snack and snack != "None needed":
            sentences.append(
                f"Provided {embedded_value('snack-provided', interventions)} for hypoglycemia management"
            )

        if is_checked(interventions.get("orders-checked")):
            sentences.append("Medical orders reviewed and followed")

        sentences.extend(_parent_contact_sentences(interventions))
        return sentences


class MedicationComposer(CategoryComposer):
    def problem_paragraph(self, interventions: Values) -> str:
        med_name = as_text(interventions.get("med-name"))
        reason = embedded_value("reason", interventions)
        med_class = embedded_value("med-class", interventions)
        prn_reason = as_text(interventions.get("prn-reason"))

        sentences = ["Student presented for medication administration"]
        if med_name and reason:
            detail = f"{med_name} needed for {reason}"
            if med_class:
                detail += f" ({med_class})"
            sentences.append(detail)
            if prn_reason and prn_reason != "N/A - Scheduled dose":
                sentences.append(
                    f"PRN administration indicated for {embedded_value('prn-reason', interventions)}"
                )
        elif med_name:
            detail = f"{med_name} administration"
            if med_class:
                detail += f" ({med_class})"
            sentences.append(detail)

        return normalize_narrative(join_sentences(sentences))

    def intervention_sentences(self, interventions: Values) -> list[str]:
        sentences: list[str] = []

        dose = as_text(interventions.get("dose"))
        if dose:
            dose_unit = resolve_display_value("dose-unit", interventions.get("dose-unit"), interventions)
            route = resolve_display_value("route", interventions.get("route"), interventions)
            time_since_last = as_text(interventions.get("time-since-last"))

            sentence = f"Administered dose of {dose}"
            if dose_unit:
                sentence += f" {dose_unit}"
            if route:
                sentence += f" {route}"
            if time_since_last and time_since_last != "Unknown/Not applicable":
                sentence += f". Time since last dose: {embedded_value('time-since-last', interventions)}"
            sentences.append(sentence)

        verifications: list[str] = []
        if is_checked(interventions.get("dose-verification")):
            verifications.append("dose calculation verified")
        if is_checked(interventions.get("witnessed-admin")):
            verifications.append("witnessed student take medication")
        if is_checked(interventions.get("orders-checked")):
            verifications.append("medical orders reviewed and verified")
        if verifications:
            sentences.append(capitalize_first(", ".join(verifications)))

        sentences.extend(_parent_contact_sentences(interventions))
        return sentences


class FirstAidComposer(CategoryComposer):
    def problem_paragraph(self, interventions: Values) -> str:
        injury_type = embedded_value("injury-type", interventions)
        location = embedded_value("location", interventions)
        occurred = embedded_value("injury-occurred", interventions)
        mechanism = as_text(interventions.get("injury-mechanism"))
        assessment = embedded_value("initial-assessment", interventions)

        opening = "Student presented to health office"
        if injury_type and location:
            narrative = f"{opening} with {injury_type} to {location}"
        elif injury_type:
            narrative = f"{opening} with {injury_type}"
        else:
            narrative = f"{opening} with minor injury/discomfort"

        if occurred:
            narrative += f" sustained during {occurred}"
        if mechanism and mechanism != "Other":
            narrative += f" from {embedded_value('injury-mechanism', interventions)}"

        sentences = [narrative]
        if assessment:
            sentences.append(f"Initial assessment: {assessment}")
        return normalize_narrative(join_sentences(sentences))

    def intervention_sentences(self, interventions: Values) -> list[str]:
        sentences: list[str] = []
        treatments: list[str] = []

        ice_duration = as_text(interventions.get("ice-duration"))
        has_duration = bool(ice_duration) and ice_duration != "N/A"
        if is_checked(interventions.get("ice-applied")) or has_duration:
            if has_duration:
                treatments.append(f"applied ice pack for {embedded_value('ice-duration', interventions)}")
            else:
                treatments.append("applied ice pack")

        wound_care = as_text(interventions.get("wound-care"))
        if wound_care and wound_care != "N/A":
            treatments.append(embedded_value("wound-care", interventions))

        if is_checked(interventions.get("bandaid-applied")):
            treatments.append("applied bandage/dressing")

        if treatments:
            sentences.append(capitalize_first(", then ".join(treatments)))

        rest = as_text(interventions.get("rest-provided"))
        if rest and rest != "N/A":
            sentences.append(f"Provided {embedded_value('rest-provided', interventions)} of rest")

        vital_signs = as_text(interventions.get("vital-signs"))
        if vital_signs:
            sentences.append(f"Vital signs assessed: {vital_signs}")

        head_injury = as_text(interventions.get("head-injury-screen"))
        if head_injury and head_injury != "N/A - Not head injury":
            sentences.append(
                f"Head injury screening performed: {embedded_value('head-injury-screen', interventions)}"
            )

        return_status = as_text(interventions.get("return-to-activity"))
        if return_status:
            sentences.append(return_status)

        sentences.extend(_parent_contact_sentences(interventions))
        return sentences


class OtherComposer(CategoryComposer):
    notes_field_id = "custom-evaluation"

    def problem_paragraph(self, interventions: Values) -> str:
        return as_text(interventions.get("custom-intervention")) or GENERIC_PROBLEM_TEXT

    def intervention_sentences(self, interventions: Values) -> list[str]:
        custom = as_text(interventions.get("custom-intervention"))
        return [custom] if custom else []


COMPOSERS: dict[str, CategoryComposer] = {
    "diabetes": DiabetesComposer(),
    "medication": MedicationComposer(),
    "first-aid": FirstAidComposer(),
    "other": OtherComposer(),
}

_FALLBACK_COMPOSER = CategoryComposer()


def get_composer(problem_key: str | None) -> CategoryComposer:
    if not problem_key:
        return _FALLBACK_COMPOSER
    return COMPOSERS.get(problem_key, _FALLBACK_COMPOSER)


def _bg_source_text(bg_value: str, interventions: Values) -> str:
    cgm = is_checked(interventions.get("bg-source-cgm"))
    fingerstick = is_checked(interventions.get("bg-source-fingerstick"))
    if cgm and fingerstick:
        return (
            f"Blood glucose measured at {bg_value} mg/dL via Dexcom sensors "
            "and verified by fingerstick test via glucometer"
        )
    if cgm:
        return f"Blood glucose measured at {bg_value} mg/dL via Dexcom CGM"
    if fingerstick:
        return f"Blood glucose measured at {bg_value} mg/dL via fingerstick glucometer"
    return f"Blood glucose check: {bg_value} mg/dL"


def _parent_contact_sentences(interventions: Values) -> list[str]:
    contact = as_text(interventions.get("parent-contact"))
    if not contact or contact == "Not contacted":
        return []
    return [f"Parent/guardian contacted regarding {embedded_value('parent-contact', interventions)}"]


def _formatted_time(value: object) -> str:
    try:
        return format_time(as_text(value))
    except ValueError:
        # Malformed times fall back to the time-omitted sentence.
        return ""
