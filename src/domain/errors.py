"""
Error definitions for the compiler.

규칙:
- 데이터 형태 문제로 public entry point가 예외를 던지지 않음 → 결과 객체로 변환
- 컴포넌트 내부에서만 CompilerError 사용, 경계에서 catch 후 결과로 변환
- 새 코드 추가 시 ErrorCodes에 상수로 등록
"""

from typing import Any


class CompilerError(Exception):
    """
    컴파일러 파이프라인 내부 에러.

    컴포넌트 경계를 넘기 전에 ValidationResult / BuildResult 등으로 변환됨.

    Usage:
        raise CompilerError("SHELL_NOT_FOUND", pattern_id="app-shell")
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **self.context,
        }


class SpecParseError(CompilerError):
    """LLM 출력 → JSON 파싱 실패."""
    pass


class PatternError(CompilerError):
    """패턴 라이브러리 로드/조회 에러."""
    pass


class TemplateRenderError(CompilerError):
    """템플릿 파싱/평가 에러."""
    pass


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러/경고 코드 상수."""

    # === Validation (errors) ===
    NO_SPEC = "NO_SPEC"
    MISSING_NAME = "MISSING_NAME"
    NO_ENTITIES = "NO_ENTITIES"
    NO_VIEWS = "NO_VIEWS"
    MISSING_ENTITY_NAME = "MISSING_ENTITY_NAME"
    NO_PROPERTIES = "NO_PROPERTIES"
    MISSING_VIEW_NAME = "MISSING_VIEW_NAME"
    MISSING_ACTION_NAME = "MISSING_ACTION_NAME"
    MISSING_TRIGGER = "MISSING_TRIGGER"

    # === Validation (warnings) ===
    DUPLICATE_PROPERTY = "DUPLICATE_PROPERTY"
    INVALID_RELATIONSHIP = "INVALID_RELATIONSHIP"
    INVALID_VIEW_ENTITY = "INVALID_VIEW_ENTITY"
    MISSING_DESCRIPTION = "MISSING_DESCRIPTION"
    NO_PATTERNS = "NO_PATTERNS"

    # === Parse ===
    PARSE_ERROR = "PARSE_ERROR"
    NO_JSON_FOUND = "NO_JSON_FOUND"
    INVALID_RESPONSE_TYPE = "INVALID_RESPONSE_TYPE"

    # === Pattern library ===
    PATTERN_NOT_FOUND = "PATTERN_NOT_FOUND"
    PATTERN_FILE_MISSING = "PATTERN_FILE_MISSING"
    PATTERN_INVALID = "PATTERN_INVALID"
    DEPENDENCY_CYCLE = "DEPENDENCY_CYCLE"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"

    # === Render ===
    TEMPLATE_SYNTAX_ERROR = "TEMPLATE_SYNTAX_ERROR"
    TEMPLATE_RENDER_FAILED = "TEMPLATE_RENDER_FAILED"
    MISSING_HELPER = "MISSING_HELPER"
    DUPLICATE_REFERENCE_SKIPPED = "DUPLICATE_REFERENCE_SKIPPED"

    # === Build ===
    BUILD_ERROR = "BUILD_ERROR"
    BUILD_FAILED = "BUILD_FAILED"
    BUILD_IN_FLIGHT = "BUILD_IN_FLIGHT"
    SHELL_NOT_FOUND = "SHELL_NOT_FOUND"
    SHELL_RENDER_FAILED = "SHELL_RENDER_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # === Export ===
    EXPORT_FAILED = "EXPORT_FAILED"
    EXPORT_LOCK_TIMEOUT = "EXPORT_LOCK_TIMEOUT"
