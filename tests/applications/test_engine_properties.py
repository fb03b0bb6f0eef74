"""Property-based tests for the stage transition engine.

Feature: application-pipeline

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

import pytest
from hypothesis import given, settings, strategies as st

from src.applications.stages import (
    ApplicationStage,
    ConfirmationKind,
    ConfirmationNotPendingError,
    NoOpDecision,
    PendingConfirmation,
    StageTransitionEngine,
    TransitionIntent,
    TransitionKind,
    UnknownStageError,
    classify,
)


stages = st.sampled_from(list(ApplicationStage))
gated = st.sampled_from([ApplicationStage.ACCEPTED, ApplicationStage.REJECTED])
application_ids = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz0123456789-",
    min_size=1,
    max_size=12,
)


class TestClassification:
    """Property: gated targets always need confirmation."""

    @settings(max_examples=100)
    @given(current=stages, target=stages)
    def test_classification_is_total_and_gates_outcomes(self, current, target):
        result = classify(current, target)

        if current == target:
            assert result.kind == TransitionKind.NO_OP
        elif target in (ApplicationStage.ACCEPTED, ApplicationStage.REJECTED):
            assert result.kind == TransitionKind.REQUIRES_CONFIRMATION
            assert result.confirmation == ConfirmationKind(target.value.lower())
        else:
            assert result.kind == TransitionKind.IMMEDIATE
            assert result.confirmation is None

    @settings(max_examples=100)
    @given(current=stages, target=stages)
    def test_requires_confirmation_only_for_gated_targets(self, current, target):
        result = classify(current, target)
        assert result.requires_confirmation == (
            current != target
            and target in (ApplicationStage.ACCEPTED, ApplicationStage.REJECTED)
        )

    def test_withdrawn_is_immediate(self):
        assert (
            classify(ApplicationStage.INTERVIEW, ApplicationStage.WITHDRAWN).kind
            == TransitionKind.IMMEDIATE
        )

    def test_backward_moves_are_allowed(self):
        assert (
            classify(ApplicationStage.INTERVIEW, ApplicationStage.SAVED).kind
            == TransitionKind.IMMEDIATE
        )


class TestConfirmationState:
    """Property: a gated request is held until confirmed or cancelled."""

    @settings(max_examples=100)
    @given(application_id=application_ids, current=stages, target=gated)
    def test_gated_request_records_pending(self, application_id, current, target):
        engine = StageTransitionEngine()
        decision = engine.request(application_id, current, target)

        if current == target:
            assert isinstance(decision, NoOpDecision)
            assert engine.pending(application_id) is None
            return

        assert isinstance(decision, PendingConfirmation)
        assert decision.from_stage == current
        assert decision.kind == classify(current, target).confirmation
        assert decision.kind == ConfirmationKind(target.value.lower())
        assert engine.pending(application_id) == decision

        confirmed = engine.confirm(application_id)
        assert confirmed.to_intent() == TransitionIntent(application_id, target)
        assert engine.pending(application_id) is None

    @settings(max_examples=100)
    @given(application_id=application_ids, current=stages, target=gated)
    def test_cancel_drops_pending(self, application_id, current, target):
        engine = StageTransitionEngine()
        engine.request(application_id, current, target)
        engine.cancel(application_id)

        with pytest.raises(ConfirmationNotPendingError):
            engine.confirm(application_id)

    @settings(max_examples=100)
    @given(application_id=application_ids, current=stages, target=stages)
    def test_new_request_replaces_pending(self, application_id, current, target):
        engine = StageTransitionEngine()
        engine.request(application_id, ApplicationStage.SAVED, ApplicationStage.REJECTED)

        decision = engine.request(application_id, current, target)

        if isinstance(decision, PendingConfirmation):
            assert engine.pending(application_id) == decision
        else:
            assert engine.pending(application_id) is None


class TestBoundaryParsing:

    @settings(max_examples=100)
    @given(stage=stages)
    def test_parse_accepts_value_name_and_compact_form(self, stage):
        assert ApplicationStage.parse(stage.value) == stage
        assert ApplicationStage.parse(stage.name) == stage
        assert ApplicationStage.parse(stage.value.replace(" ", "")) == stage
        assert ApplicationStage.parse(stage) == stage

    @settings(max_examples=100)
    @given(value=st.text(max_size=20))
    def test_parse_rejects_unknown_values(self, value):
        compact = value.replace(" ", "").replace("_", "").lower()
        known = {s.name.replace("_", "").lower() for s in ApplicationStage}
        if value in {s.value for s in ApplicationStage} or compact in known:
            return
        with pytest.raises(UnknownStageError):
            ApplicationStage.parse(value)

    @pytest.mark.parametrize("value", [None, 3, ["Saved"]])
    def test_parse_rejects_non_strings(self, value):
        with pytest.raises(UnknownStageError):
            ApplicationStage.parse(value)
