"""
test_orchestrator.py - 세션 오케스트레이터 테스트

DoD:
- 워크플로우 전이표, confidence → 대화 단계
- question 턴 → display_question, 파싱 실패도 질문으로
- spec_update → 스펙 교체 + history + 재검증
- 빌드 거부: NO_SPEC, VALIDATION_FAILED (앞쪽 N개 메시지), BUILD_IN_FLIGHT
- 빌드 성공 → update_ui + 빌드 로그 저장
- reset → 세션 상태 초기화
"""

import json
from pathlib import Path

import pytest

from src.app.services.orchestrator import (
    DEFAULT_QUESTION,
    Orchestrator,
    compile_spec,
    conversation_phase_for,
    get_next_phase,
)
from src.core.logging import list_build_logs, load_build_log
from src.domain.constants import DEFAULT_MAX_ERROR_MESSAGES, FALLBACK_QUESTION
from src.domain.schemas import Specification


@pytest.fixture
def orchestrator(test_config) -> Orchestrator:
    return Orchestrator(config=test_config, session_id="s1")


def _envelope(turn_type: str, spec: dict | None = None, confidence: float = 0.7, **extra) -> str:
    data = {"type": turn_type, "confidence": confidence, **extra}
    if spec is not None:
        data["spec"] = spec
    return json.dumps(data)


class TestWorkflow:
    """워크플로우 전이 테스트."""

    @pytest.mark.parametrize(
        "phase,event,expected",
        [
            ("idle", "message_received", "gathering"),
            ("gathering", "spec_complete", "validating"),
            ("refining", "spec_complete", "validating"),
            ("validating", "build_started", "building"),
            ("building", "build_complete", "complete"),
            ("building", "error", "error"),
            ("complete", "message_received", "refining"),
            ("error", "message_received", "gathering"),
        ],
    )
    def test_transitions(self, phase, event, expected):
        """정의된 전이."""
        assert get_next_phase(phase, event) == expected

    def test_undefined_transition_keeps_phase(self):
        """정의되지 않은 조합 → 현재 phase 유지."""
        assert get_next_phase("idle", "build_complete") == "idle"
        assert get_next_phase("unknown", "message_received") == "unknown"

    @pytest.mark.parametrize(
        "confidence,expected",
        [(0.95, "complete"), (0.9, "complete"), (0.5, "refining"), (0.49, "gathering"), (0.0, "gathering")],
    )
    def test_conversation_phase(self, confidence, expected):
        """confidence 임계값."""
        assert conversation_phase_for(confidence) == expected


class TestConfig:
    """설정 읽기 테스트."""

    def test_defaults(self):
        """설정 없음 → 기본값."""
        orchestrator = Orchestrator()

        assert orchestrator.max_error_messages == DEFAULT_MAX_ERROR_MESSAGES
        assert orchestrator.logs_dir is None

    def test_null_values(self):
        """YAML null → 기본값."""
        orchestrator = Orchestrator(
            config={"compiler": {"max_error_messages": None, "logs_dir": None}}
        )

        assert orchestrator.max_error_messages == DEFAULT_MAX_ERROR_MESSAGES
        assert orchestrator.logs_dir is None


class TestAssistantText:
    """handle_assistant_text 테스트."""

    def test_question_turn(self, orchestrator):
        """question → display_question, 스펙 변경 없음."""
        outcome = orchestrator.handle_assistant_text(
            _envelope("question", question="Which fields does a task have?", confidence=0.1)
        )

        assert outcome.action == "display_question"
        assert outcome.question == "Which fields does a task have?"
        assert outcome.phase == "gathering"
        assert orchestrator.state.spec is None
        assert orchestrator.state.workflow_phase == "gathering"

    def test_question_without_text(self, orchestrator):
        """질문 문구 없으면 기본 질문."""
        outcome = orchestrator.handle_assistant_text('{"type": "question"}')

        assert outcome.question == DEFAULT_QUESTION

    def test_unparseable_falls_back_to_question(self, orchestrator):
        """파싱 실패 → 대체 질문."""
        outcome = orchestrator.handle_assistant_text("I'd love to help!")

        assert outcome.action == "display_question"
        assert outcome.question == FALLBACK_QUESTION

    def test_spec_update(self, orchestrator, todo_llm_text):
        """spec_update → 스펙 교체 + 재검증."""
        outcome = orchestrator.handle_assistant_text(todo_llm_text)

        assert outcome.action == "update_ui"
        assert outcome.phase == "refining"
        assert outcome.spec.meta.name == "Todo"
        assert orchestrator.state.validation.valid is True
        assert orchestrator.state.conversation_phase == "refining"

    def test_spec_history(self, orchestrator, todo_spec_dict):
        """새 스펙이 오면 이전 스펙은 history 로."""
        orchestrator.handle_assistant_text(_envelope("spec_update", todo_spec_dict))
        renamed = {**todo_spec_dict, "meta": {**todo_spec_dict["meta"], "name": "Chores"}}
        orchestrator.handle_assistant_text(_envelope("spec_update", renamed))

        assert orchestrator.state.spec.meta.name == "Chores"
        assert [s.meta.name for s in orchestrator.state.spec_history] == ["Todo"]

    def test_update_without_spec_keeps_current(self, orchestrator, todo_spec_dict):
        """spec 없는 spec_update → 현재 스펙 유지, history 증가 없음."""
        orchestrator.handle_assistant_text(_envelope("spec_update", todo_spec_dict))

        outcome = orchestrator.handle_assistant_text(_envelope("spec_update", confidence=0.3))

        assert outcome.spec.meta.name == "Todo"
        assert outcome.phase == "gathering"
        assert orchestrator.state.spec_history == []

    def test_spec_complete(self, orchestrator, todo_spec_dict):
        """spec_complete → 완료 단계 + validating."""
        outcome = orchestrator.handle_assistant_text(
            _envelope("spec_complete", todo_spec_dict, confidence=0.95)
        )

        assert outcome.phase == "complete"
        assert orchestrator.state.workflow_phase == "validating"


class TestSpecUpdate:
    """handle_spec_update 테스트."""

    def test_direct_edit(self, orchestrator, todo_spec, invalid_spec):
        """직접 편집 → 재검증."""
        orchestrator.handle_spec_update(todo_spec)
        outcome = orchestrator.handle_spec_update(invalid_spec)

        assert outcome.action == "update_ui"
        assert orchestrator.state.validation.valid is False
        assert orchestrator.state.spec_history == [todo_spec]


class TestBuildRequest:
    """handle_build_request 테스트."""

    def test_no_spec(self, orchestrator):
        """스펙 없음 → NO_SPEC."""
        outcome = orchestrator.handle_build_request()

        assert outcome.action == "display_error"
        assert outcome.error.code == "NO_SPEC"
        assert outcome.error.message == "No specification available to build"
        assert orchestrator.state.errors == [outcome.error]

    def test_validation_failed(self, orchestrator):
        """검증 실패 → 앞쪽 max_error_messages 개 메시지."""
        orchestrator.handle_spec_update(Specification.from_dict({"meta": {"name": ""}}))

        outcome = orchestrator.handle_build_request()

        assert outcome.error.code == "VALIDATION_FAILED"
        assert outcome.error.message == (
            "Spec validation failed: App name is required; At least one entity is required"
        )
        assert orchestrator.state.build_status == "idle"

    def test_success(self, orchestrator, todo_llm_text):
        """빌드 성공 → update_ui, 상태 complete."""
        orchestrator.handle_assistant_text(todo_llm_text)

        outcome = orchestrator.handle_build_request()

        assert outcome.action == "update_ui"
        assert outcome.phase == "complete"
        assert outcome.build_result.success is True
        assert "<title>Todo</title>" in outcome.build_result.html
        assert orchestrator.state.build_status == "success"
        assert orchestrator.state.workflow_phase == "complete"

    def test_build_log_saved(self, orchestrator, todo_spec, test_config):
        """logs_dir 설정 시 빌드 로그 저장."""
        orchestrator.handle_spec_update(todo_spec)
        outcome = orchestrator.handle_build_request()

        logs = list_build_logs(Path(test_config["compiler"]["logs_dir"]))
        assert len(logs) == 1
        saved = load_build_log(logs[0])
        assert saved["result"] == "success"
        assert saved["spec_id"] == outcome.build_result.manifest.spec_id

    def test_direct_edit_build_completes(self, orchestrator, todo_spec):
        """직접 편집 → 빌드 → workflow complete."""
        orchestrator.handle_spec_update(todo_spec)
        assert orchestrator.state.workflow_phase == "gathering"

        orchestrator.handle_build_request()

        assert orchestrator.state.build_status == "success"
        assert orchestrator.state.workflow_phase == "complete"

    def test_rebuild_failure_reaches_error(self, orchestrator, todo_spec, invalid_spec):
        """complete 이후 재빌드 실패 → workflow error."""
        orchestrator.handle_spec_update(todo_spec)
        orchestrator.handle_build_request()
        orchestrator.handle_build_request()
        assert orchestrator.state.workflow_phase == "complete"

        orchestrator.handle_spec_update(invalid_spec)
        assert orchestrator.state.workflow_phase == "refining"
        outcome = orchestrator.handle_build_request()

        assert outcome.error.code == "VALIDATION_FAILED"
        assert orchestrator.state.workflow_phase == "error"

    def test_no_spec_reaches_error(self, orchestrator):
        """스펙 없는 빌드 요청 → workflow error."""
        orchestrator.handle_build_request()

        assert orchestrator.state.workflow_phase == "error"

    def test_build_in_flight(self, orchestrator, todo_spec):
        """빌드 진행 중 → BUILD_IN_FLIGHT."""
        orchestrator.handle_spec_update(todo_spec)
        orchestrator._build_lock.acquire()
        try:
            outcome = orchestrator.handle_build_request()
        finally:
            orchestrator._build_lock.release()

        assert outcome.error.code == "BUILD_IN_FLIGHT"
        assert orchestrator.state.build_result is None

    def test_lock_released_after_build(self, orchestrator, todo_spec):
        """빌드 후 다시 빌드 가능."""
        orchestrator.handle_spec_update(todo_spec)

        first = orchestrator.handle_build_request()
        second = orchestrator.handle_build_request()

        assert first.build_result.html == second.build_result.html


class TestReset:
    """reset 테스트."""

    def test_reset(self, orchestrator, todo_llm_text):
        """스펙/에러/빌드 결과 폐기, 세션 ID 유지."""
        created_at = orchestrator.state.created_at
        orchestrator.handle_assistant_text(todo_llm_text)
        orchestrator.handle_build_request()

        state = orchestrator.reset()

        assert state.session_id == "s1"
        assert state.created_at == created_at
        assert state.spec is None
        assert state.build_result is None
        assert state.errors == []
        assert state.workflow_phase == "idle"


class TestCompileSpec:
    """compile_spec 테스트."""

    def test_compile(self, full_spec):
        """validate → match → build."""
        result = compile_spec(full_spec, "light")

        assert result.success is True
        assert "color-scheme: light;" in result.css

    def test_invalid(self, invalid_spec):
        """검증 실패 → 실패 결과."""
        result = compile_spec(invalid_spec)

        assert result.success is False
        assert result.errors[0].code == "NO_PROPERTIES"

    def test_none(self):
        """None → NO_SPEC."""
        assert compile_spec(None).errors[0].code == "NO_SPEC"
