from __future__ import annotations

"""
HTTP surface for the PIE note builder.

Design intent:
- Keep API orchestration thin and typed.
- Delegate domain logic to catalog/validation/encounter/note/patterns modules.
- Critical values use a two-phase acknowledgment: the UI re-submits with the decision.
"""

import logging
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from pienote.catalog.limits import bg_range_hint
from pienote.catalog.medications import check_medication_name
from pienote.catalog.problems import (
    OTHER_SUFFIX,
    TIME_SUFFIX,
    FieldSpec,
    ProblemDefinition,
    UnknownProblemError,
    all_numeric_field_ids,
    get_problem,
    list_problems,
)
from pienote.encounter.state import EncounterState, UnknownFieldError
from pienote.internal_core.config import NoteBuilderConfig, load_config
from pienote.internal_core.contracts import StorageNotice, UsagePatterns
from pienote.internal_core.store import open_usage_store
from pienote.note.draft import build_note_draft
from pienote.patterns.decision_support import DecisionSupportAlert
from pienote.patterns.tracker import UsageTracker
from pienote.validation.signals import SafetySignal
from pienote.validation.validator import coerce_numeric, validate_field

FieldValueInput = str | bool


class EncounterPayload(BaseModel):
    selected_problem: str | None = Field(default=None, max_length=64)
    intervention_values: dict[str, FieldValueInput] = Field(default_factory=dict)
    evaluation_values: dict[str, FieldValueInput] = Field(default_factory=dict)
    use_structured_prefix: bool | None = None


class NumericConstraintsItem(BaseModel):
    min: float
    max: float
    step: float | None = None


class FieldSpecItem(BaseModel):
    id: str
    label: str
    kind: Literal["checkbox", "select", "free_text", "numeric"]
    options: list[str] = Field(default_factory=list)
    constraints: NumericConstraintsItem | None = None
    default_text: str | None = None
    default_checked: bool = False
    has_time_input: bool = False
    textarea: bool = False
    input_label: str | None = None
    group: str | None = None
    companion_keys: list[str] = Field(default_factory=list)


class ProblemSummaryItem(BaseModel):
    key: str
    display_name: str


class CatalogResponse(BaseModel):
    problems: list[ProblemSummaryItem]


class ProblemDetailResponse(BaseModel):
    key: str
    display_name: str
    intervention_fields: list[FieldSpecItem]
    evaluation_fields: list[FieldSpecItem]


class SafetySignalItem(BaseModel):
    severity: Literal["info", "warning", "critical"]
    field: str
    code: str
    message: str
    requires_acknowledgment: bool = False


class ValidateFieldRequest(BaseModel):
    field_id: str = Field(min_length=1, max_length=128)
    raw_value: str | bool | int | float | None = None
    acknowledged: bool | None = None
    encounter: EncounterPayload | None = None


class ValidateFieldResponse(BaseModel):
    field_id: str
    accepted_value: FieldValueInput | None = None
    signals: list[SafetySignalItem] = Field(default_factory=list)
    blocked: bool = False
    acknowledged: bool | None = None
    pending_acknowledgment: bool = False
    prompt: str | None = None
    bg_range: str | None = None
    encounter: EncounterPayload | None = None
    note_text: str | None = None


class NoteParagraphsItem(BaseModel):
    problem: str
    intervention: str
    evaluation: str


class NoteComposeRequest(BaseModel):
    encounter: EncounterPayload


class NoteComposeResponse(BaseModel):
    problem_key: str | None = None
    note_text: str
    paragraphs: NoteParagraphsItem


class DecisionSupportAlertItem(BaseModel):
    level: Literal["info", "warning"]
    code: str
    title: str
    message: str


class NoteFinalizeResponse(BaseModel):
    problem_key: str
    note_text: str
    patterns: UsagePatterns
    history_size: int
    alerts: list[DecisionSupportAlertItem] = Field(default_factory=list)
    notices: list[StorageNotice] = Field(default_factory=list)


class ProblemUsageItem(BaseModel):
    key: str
    display_name: str
    count: int
    percent: int


class UsageStatisticsResponse(BaseModel):
    total_notes: int
    problems: list[ProblemUsageItem] = Field(default_factory=list)
    orders_verification_percent: int
    notices: list[StorageNotice] = Field(default_factory=list)


class DecisionSupportResponse(BaseModel):
    alerts: list[DecisionSupportAlertItem] = Field(default_factory=list)
    notices: list[StorageNotice] = Field(default_factory=list)


class MedicationCheckRequest(BaseModel):
    name: str = Field(default="", max_length=256)


class MedicationCheckResponse(BaseModel):
    name: str
    known: bool
    signal: SafetySignalItem | None = None


app = FastAPI(title="pienote service")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_config() -> NoteBuilderConfig:
    existing = getattr(app.state, "config", None)
    if isinstance(existing, NoteBuilderConfig):
        return existing
    created = load_config()
    _apply_log_level(created.PIE_LOG_LEVEL)
    setattr(app.state, "config", created)
    return created


def _get_tracker() -> UsageTracker:
    existing = getattr(app.state, "usage_tracker", None)
    if isinstance(existing, UsageTracker):
        return existing
    config = _get_config()
    created = UsageTracker(open_usage_store(config), config)
    setattr(app.state, "usage_tracker", created)
    return created


def _apply_log_level(level_name: str) -> None:
    level = logging.getLevelName(str(level_name or "").strip().upper())
    if not isinstance(level, int):
        logger.warning("ignoring unknown log level=%s", level_name)
        return
    logging.getLogger("pienote").setLevel(level)


def _field_item(spec: FieldSpec) -> FieldSpecItem:
    constraints = None
    if spec.constraints is not None:
        constraints = NumericConstraintsItem(
            min=spec.constraints.min,
            max=spec.constraints.max,
            step=spec.constraints.step,
        )
    return FieldSpecItem(
        id=spec.id,
        label=spec.label,
        kind=spec.kind,
        options=list(spec.options),
        constraints=constraints,
        default_text=spec.default_text,
        default_checked=spec.default_checked,
        has_time_input=spec.has_time_input,
        textarea=spec.textarea,
        input_label=spec.input_label,
        group=spec.group,
        companion_keys=list(spec.companion_keys()),
    )


def _signal_item(signal: SafetySignal) -> SafetySignalItem:
    return SafetySignalItem(
        severity=signal.severity,
        field=signal.field,
        code=signal.code,
        message=signal.message,
        requires_acknowledgment=signal.requires_acknowledgment,
    )


def _alert_item(alert: DecisionSupportAlert) -> DecisionSupportAlertItem:
    return DecisionSupportAlertItem(
        level=alert.level,
        code=alert.code,
        title=alert.title,
        message=alert.message,
    )


def _state_from_payload(payload: EncounterPayload) -> EncounterState:
    use_prefix = payload.use_structured_prefix
    if use_prefix is None:
        use_prefix = _get_config().PIE_USE_STRUCTURED_PREFIX
    state = EncounterState.empty(use_structured_prefix=use_prefix)
    if not payload.selected_problem:
        if payload.intervention_values or payload.evaluation_values:
            raise HTTPException(status_code=400, detail="Field values require a selected problem.")
        return state

    try:
        state = state.select_problem(payload.selected_problem)
        numeric_ids = get_problem(payload.selected_problem).numeric_field_ids()
        # Companion keys first so a later "Other (specify)" choice keeps its text.
        for field_id, value in _companions_first(payload.intervention_values):
            if field_id in numeric_ids:
                value = coerce_numeric(value)
            state = state.with_intervention_value(field_id, value)
        for field_id, value in _companions_first(payload.evaluation_values):
            state = state.with_evaluation_value(field_id, value)
    except UnknownProblemError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnknownFieldError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return state


def _bg_range(field_id: str, accepted_value: FieldValueInput | None, numeric_ids: frozenset[str]) -> str | None:
    if field_id != "bg-check" or field_id not in numeric_ids or not isinstance(accepted_value, str):
        return None
    return bg_range_hint(float(accepted_value))


def _companions_first(values: dict[str, FieldValueInput]) -> list[tuple[str, FieldValueInput]]:
    return sorted(values.items(), key=lambda item: 0 if item[0].endswith((OTHER_SUFFIX, TIME_SUFFIX)) else 1)


def _payload_from_state(state: EncounterState) -> EncounterPayload:
    return EncounterPayload(
        selected_problem=state.selected_problem,
        intervention_values=dict(state.intervention_values),
        evaluation_values=dict(state.evaluation_values),
        use_structured_prefix=state.use_structured_prefix,
    )


def _problem_or_404(problem_key: str) -> ProblemDefinition:
    try:
        return get_problem(problem_key)
    except UnknownProblemError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/catalog", response_model=CatalogResponse)
async def catalog() -> CatalogResponse:
    return CatalogResponse(
        problems=[
            ProblemSummaryItem(key=item.key, display_name=item.display_name)
            for item in list_problems()
        ]
    )


@app.get("/catalog/{problem_key}", response_model=ProblemDetailResponse)
async def catalog_problem(problem_key: str) -> ProblemDetailResponse:
    problem = _problem_or_404(problem_key)
    return ProblemDetailResponse(
        key=problem.key,
        display_name=problem.display_name,
        intervention_fields=[_field_item(item) for item in problem.intervention_fields],
        evaluation_fields=[_field_item(item) for item in problem.evaluation_fields],
    )


@app.post("/encounter/validate", response_model=ValidateFieldResponse)
async def encounter_validate(payload: ValidateFieldRequest) -> ValidateFieldResponse:
    state = _state_from_payload(payload.encounter) if payload.encounter is not None else None
    prompts: list[str] = []

    def _confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return bool(payload.acknowledged)

    result = validate_field(payload.field_id, payload.raw_value, state, confirm=_confirm)
    pending = bool(prompts) and payload.acknowledged is None

    response = ValidateFieldResponse(
        field_id=payload.field_id,
        accepted_value=result.accepted_value,
        signals=[_signal_item(item) for item in result.signals],
        blocked=result.blocked and not pending,
        acknowledged=None if pending else result.acknowledged,
        pending_acknowledgment=pending,
        prompt=prompts[0] if pending else None,
    )
    if state is None:
        response.bg_range = _bg_range(payload.field_id, result.accepted_value, all_numeric_field_ids())
        return response

    try:
        updated = state.apply_validation(payload.field_id, result)
    except UnknownFieldError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    numeric_ids = get_problem(updated.selected_problem).numeric_field_ids()
    response.bg_range = _bg_range(payload.field_id, result.accepted_value, numeric_ids)
    response.encounter = _payload_from_state(updated)
    response.note_text = build_note_draft(updated).note_text
    return response


@app.post("/note/compose", response_model=NoteComposeResponse)
async def note_compose(payload: NoteComposeRequest) -> NoteComposeResponse:
    state = _state_from_payload(payload.encounter)
    draft = build_note_draft(state)
    return NoteComposeResponse(
        problem_key=draft.problem_key,
        note_text=draft.note_text,
        paragraphs=NoteParagraphsItem(
            problem=draft.paragraphs.problem,
            intervention=draft.paragraphs.intervention,
            evaluation=draft.paragraphs.evaluation,
        ),
    )


@app.post("/note/finalize", response_model=NoteFinalizeResponse)
async def note_finalize(payload: NoteComposeRequest) -> NoteFinalizeResponse:
    state = _state_from_payload(payload.encounter)
    if not state.selected_problem:
        raise HTTPException(status_code=400, detail="Select a problem before finalizing a note.")
    draft = build_note_draft(state)
    try:
        outcome = _get_tracker().finalize(state)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return NoteFinalizeResponse(
        problem_key=state.selected_problem,
        note_text=draft.note_text,
        patterns=outcome.patterns,
        history_size=outcome.history_size,
        alerts=[_alert_item(item) for item in outcome.alerts],
        notices=outcome.notices,
    )


@app.get("/patterns/stats", response_model=UsageStatisticsResponse)
async def patterns_stats() -> UsageStatisticsResponse:
    tracker = _get_tracker()
    stats = tracker.statistics()
    return UsageStatisticsResponse(
        total_notes=stats.total_notes,
        problems=[
            ProblemUsageItem(
                key=item.key,
                display_name=item.display_name,
                count=item.count,
                percent=item.percent,
            )
            for item in stats.problems
        ],
        orders_verification_percent=stats.orders_verification_percent,
        notices=tracker.store.drain_notices(),
    )


@app.get("/decision_support", response_model=DecisionSupportResponse)
async def decision_support() -> DecisionSupportResponse:
    tracker = _get_tracker()
    alerts = tracker.alerts()
    return DecisionSupportResponse(
        alerts=[_alert_item(item) for item in alerts],
        notices=tracker.store.drain_notices(),
    )


@app.post("/medications/check", response_model=MedicationCheckResponse)
async def medications_check(payload: MedicationCheckRequest) -> MedicationCheckResponse:
    signal = check_medication_name(payload.name)
    return MedicationCheckResponse(
        name=payload.name,
        known=signal is None,
        signal=_signal_item(signal) if signal is not None else None,
    )
