"""
Orchestrator Service: 세션 단위 대화 → 스펙 → 빌드 흐름 조정.

규칙:
- 스펙은 턴마다 교체 (deep merge 없음), 이전 스펙은 history 에 보관
- 세션당 빌드는 한 번에 하나 (진행 중이면 BUILD_IN_FLIGHT 로 거부)
- 검증 실패 스펙은 빌드하지 않음 (앞쪽 N개 메시지만 노출)
- 모든 핸들러는 OrchestratorOutcome 반환 (예외를 호출자에게 던지지 않음)
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.ids import generate_spec_id
from src.core.logging import create_build_log, save_build_log
from src.core.validate import is_valid_for_build, validate_spec
from src.domain.constants import DEFAULT_MAX_ERROR_MESSAGES, DEFAULT_THEME
from src.domain.errors import ErrorCodes
from src.domain.schemas import BuildLog, BuildResult, Specification, ValidationResult
from src.app.services.normalize import parse_assistant_turn
from src.app.services.router import match_patterns, sort_patterns_by_dependency
from src.patterns.registry import PatternRegistry
from src.render.builder import build

logger = logging.getLogger(__name__)

DEFAULT_QUESTION = "Could you provide more details?"

# =============================================================================
# Workflow State Machine
# =============================================================================

WORKFLOW_PHASES = ("idle", "gathering", "refining", "validating", "building", "complete", "error")

WORKFLOW_TRANSITIONS: dict[str, dict[str, str]] = {
    "idle": {"message_received": "gathering"},
    "gathering": {"message_received": "gathering", "spec_complete": "validating"},
    "refining": {"message_received": "refining", "spec_complete": "validating"},
    "validating": {"build_started": "building", "error": "error"},
    "building": {"build_complete": "complete", "error": "error"},
    "complete": {"message_received": "refining"},
    "error": {"message_received": "gathering"},
}


def get_next_phase(phase: str, event: str) -> str:
    """
    워크플로우 전이.

    정의되지 않은 (phase, event) 조합은 현재 phase 유지.
    """
    return WORKFLOW_TRANSITIONS.get(phase, {}).get(event, phase)


def conversation_phase_for(confidence: float) -> str:
    """confidence → 대화 단계 (≥0.9 complete, ≥0.5 refining, 그 외 gathering)."""
    if confidence >= 0.9:
        return "complete"
    if confidence >= 0.5:
        return "refining"
    return "gathering"


# =============================================================================
# Outcome / State
# =============================================================================

def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class AppError:
    """사용자에게 노출되는 에러."""
    code: str
    message: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: str = field(default_factory=_now)
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp,
            "recoverable": self.recoverable,
        }


@dataclass
class OrchestratorOutcome:
    """
    핸들러 결과: UI 가 수행할 동작.

    action: display_question | update_ui | display_error
    """
    action: str
    question: str | None = None
    spec: Specification | None = None
    phase: str | None = None
    build_result: BuildResult | None = None
    error: AppError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "question": self.question,
            "spec": self.spec.to_dict() if self.spec else None,
            "phase": self.phase,
            "build_result": self.build_result.to_dict() if self.build_result else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class SessionState:
    """세션 상태 (메모리 전용)."""
    session_id: str
    created_at: str
    spec: Specification | None = None
    spec_history: list[Specification] = field(default_factory=list)
    validation: ValidationResult | None = None
    conversation_phase: str = "gathering"  # gathering, refining, complete
    build_status: str = "idle"  # idle, building, success, error
    build_result: BuildResult | None = None
    errors: list[AppError] = field(default_factory=list)
    workflow_phase: str = "idle"

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "spec": self.spec.to_dict() if self.spec else None,
            "spec_history_size": len(self.spec_history),
            "validation": self.validation.to_dict() if self.validation else None,
            "conversation_phase": self.conversation_phase,
            "build_status": self.build_status,
            "build_result": self.build_result.to_dict() if self.build_result else None,
            "errors": [e.to_dict() for e in self.errors],
            "workflow_phase": self.workflow_phase,
        }


# =============================================================================
# Compile
# =============================================================================

def compile_spec(
    spec: Specification | None,
    theme: str = DEFAULT_THEME,
    *,
    registry: PatternRegistry | None = None,
    build_log: BuildLog | None = None,
) -> BuildResult:
    """
    validate → match → sort → build 한 번에 실행.

    검증 실패 스펙은 build() 의 게이트가 실패 결과로 변환.
    """
    refs = []
    if is_valid_for_build(spec):
        refs = sort_patterns_by_dependency(match_patterns(spec, theme=theme))
    spec_id = generate_spec_id(spec) if spec is not None else None
    return build(spec, refs, spec_id=spec_id, registry=registry, build_log=build_log)


# =============================================================================
# Orchestrator
# =============================================================================

class Orchestrator:
    """
    세션 오케스트레이터.

    config 키 (compiler.*): theme, max_error_messages, logs_dir
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        session_id: str | None = None,
        registry: PatternRegistry | None = None,
    ):
        compiler = (config or {}).get("compiler") or {}
        self.theme = compiler.get("theme", DEFAULT_THEME)
        self.max_error_messages = int(
            compiler.get("max_error_messages") or DEFAULT_MAX_ERROR_MESSAGES
        )
        logs_dir = compiler.get("logs_dir")
        self.logs_dir = Path(logs_dir) if logs_dir else None
        self.registry = registry

        self.state = SessionState(
            session_id=session_id or uuid.uuid4().hex,
            created_at=_now(),
        )
        self._build_lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self.state.session_id

    def _advance(self, *events: str) -> None:
        for event in events:
            self.state.workflow_phase = get_next_phase(self.state.workflow_phase, event)

    def _enter_validating(self) -> None:
        """빌드 요청은 어느 phase 에서든 validating 으로 진입 (idle/complete/error 포함)."""
        if self.state.workflow_phase != "validating":
            self._advance("message_received", "spec_complete")

    def _error(self, code: str, message: str, **updates: Any) -> OrchestratorOutcome:
        error = AppError(code=code, message=message)
        self.state.errors.append(error)
        logger.warning(f"[{self.session_id}] {code}: {message}")
        return OrchestratorOutcome(action="display_error", error=error, **updates)

    def _replace_spec(self, spec: Specification | None) -> None:
        if self.state.spec is not None and spec is not self.state.spec:
            self.state.spec_history.append(self.state.spec)
        self.state.spec = spec
        self.state.validation = validate_spec(spec)

    # =========================================================================
    # Handlers
    # =========================================================================

    def handle_assistant_text(self, text: str) -> OrchestratorOutcome:
        """
        LLM 응답 텍스트 한 턴 처리.

        - question (파싱 실패 포함) → display_question
        - spec_update / spec_complete → 스펙 교체 + 재검증 → update_ui
        """
        turn = parse_assistant_turn(text)
        self._advance("message_received")

        if turn.is_question:
            if turn.error_message:
                logger.info(f"[{self.session_id}] Falling back to question: {turn.error_message}")
            self.state.conversation_phase = "gathering"
            return OrchestratorOutcome(
                action="display_question",
                question=turn.question or DEFAULT_QUESTION,
                phase="gathering",
            )

        self._replace_spec(turn.spec or self.state.spec)
        phase = conversation_phase_for(turn.confidence)
        self.state.conversation_phase = phase
        if turn.type == "spec_complete":
            self._advance("spec_complete")

        return OrchestratorOutcome(action="update_ui", spec=self.state.spec, phase=phase)

    def handle_spec_update(self, spec: Specification | None) -> OrchestratorOutcome:
        """직접 편집된 스펙 반영 (재검증). 편집도 한 턴으로 취급."""
        self._advance("message_received")
        self._replace_spec(spec)
        return OrchestratorOutcome(action="update_ui", spec=self.state.spec)

    def handle_build_request(self) -> OrchestratorOutcome:
        """
        현재 스펙 빌드.

        거부 사유:
        - BUILD_IN_FLIGHT: 같은 세션에서 빌드 진행 중
        - NO_SPEC: 스펙 없음
        - VALIDATION_FAILED: 검증 실패 (앞쪽 max_error_messages 개 메시지)
        - BUILD_FAILED: 빌드 구조적 실패
        """
        if not self._build_lock.acquire(blocking=False):
            return self._error(
                ErrorCodes.BUILD_IN_FLIGHT, "A build is already in progress for this session"
            )

        try:
            self._enter_validating()
            spec = self.state.spec
            if spec is None:
                self._advance("error")
                return self._error(ErrorCodes.NO_SPEC, "No specification available to build")

            validation = validate_spec(spec)
            self.state.validation = validation
            if not validation.valid:
                messages = [e.message for e in validation.errors[: self.max_error_messages]]
                self._advance("error")
                return self._error(
                    ErrorCodes.VALIDATION_FAILED,
                    f"Spec validation failed: {'; '.join(messages)}",
                )

            self._advance("build_started")
            self.state.build_status = "building"
            result = self._run_build(spec)
            self.state.build_result = result

            if not result.success:
                self.state.build_status = "error"
                self._advance("error")
                return self._error(
                    ErrorCodes.BUILD_FAILED,
                    "; ".join(result.error_messages) or "Build failed",
                    build_result=result,
                )

            self.state.build_status = "success"
            self._advance("build_complete")
            return OrchestratorOutcome(action="update_ui", build_result=result, phase="complete")

        except Exception as e:
            logger.error(f"[{self.session_id}] Unexpected build failure: {e}", exc_info=True)
            self.state.build_status = "error"
            self._advance("error")
            return self._error(ErrorCodes.BUILD_FAILED, str(e) or "Build failed")
        finally:
            self._build_lock.release()

    def _run_build(self, spec: Specification) -> BuildResult:
        build_log = create_build_log(generate_spec_id(spec)) if self.logs_dir else None
        result = compile_spec(spec, self.theme, registry=self.registry, build_log=build_log)

        if build_log is not None:
            try:
                save_build_log(build_log, self.logs_dir)
            except OSError as e:
                logger.error(f"Failed to save build log {build_log.build_id}: {e}", exc_info=True)

        return result

    def reset(self) -> SessionState:
        """스펙/히스토리/빌드 결과/에러 폐기."""
        self.state = SessionState(session_id=self.session_id, created_at=self.state.created_at)
        logger.info(f"[{self.session_id}] Session reset")
        return self.state
