from __future__ import annotations

"""
Compose PIE narrative notes from encounter state.

Design intent:
- Pure and deterministic: the same state always yields the same text.
- Never empty: missing sections fall back to placeholder text.
- Category wording lives in composers; this module only assembles paragraphs.
"""

from dataclasses import dataclass

from pienote.catalog.problems import (
    PROBLEM_CATALOG,
    ProblemDefinition,
    UnknownProblemError,
    get_problem,
)
from pienote.encounter.state import EncounterState
from pienote.note.composers import get_composer
from pienote.note.formatting import join_sentences

PARAGRAPH_SEPARATOR = "\n\n"
PROBLEM_PREFIX = "P: "
INTERVENTION_PREFIX = "I: "
EVALUATION_PREFIX = "E: "
INTERVENTION_PLACEHOLDER = "(Complete intervention details)"
EVALUATION_PLACEHOLDER = "(Complete evaluation details)"


@dataclass(frozen=True)
class NoteParagraphs:
    problem: str
    intervention: str
    evaluation: str


@dataclass(frozen=True)
class DraftNote:
    problem_key: str | None
    note_text: str
    paragraphs: NoteParagraphs


def build_note_draft(
    state: EncounterState,
    catalog: dict[str, ProblemDefinition] | None = None,
) -> DraftNote:
    problem = _lookup_problem(state.selected_problem, catalog)
    composer = get_composer(problem.key if problem is not None else None)
    interventions = state.intervention_values
    evaluations = state.evaluation_values

    problem_text = composer.problem_paragraph(interventions)
    intervention_text = join_sentences(composer.intervention_sentences(interventions))
    evaluation_text = join_sentences(composer.evaluation_sentences(evaluations, problem))

    paragraphs = NoteParagraphs(
        problem=problem_text,
        intervention=intervention_text or INTERVENTION_PLACEHOLDER,
        evaluation=evaluation_text or EVALUATION_PLACEHOLDER,
    )
    return DraftNote(
        problem_key=problem.key if problem is not None else None,
        note_text=_render(paragraphs, use_structured_prefix=state.use_structured_prefix),
        paragraphs=paragraphs,
    )


def compose_note(
    state: EncounterState,
    catalog: dict[str, ProblemDefinition] | None = None,
) -> str:
    return build_note_draft(state, catalog).note_text


def _render(paragraphs: NoteParagraphs, *, use_structured_prefix: bool) -> str:
    if use_structured_prefix:
        parts = [
            f"{PROBLEM_PREFIX}{paragraphs.problem}",
            f"{INTERVENTION_PREFIX}{paragraphs.intervention}",
            f"{EVALUATION_PREFIX}{paragraphs.evaluation}",
        ]
    else:
        parts = [paragraphs.problem, paragraphs.intervention, paragraphs.evaluation]
    return PARAGRAPH_SEPARATOR.join(parts)


def _lookup_problem(
    key: str | None,
    catalog: dict[str, ProblemDefinition] | None,
) -> ProblemDefinition | None:
    if not key:
        return None
    try:
        return get_problem(key, catalog if catalog is not None else PROBLEM_CATALOG)
    except UnknownProblemError:
        return None
