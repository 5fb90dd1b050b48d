"""
Builder: 컴파일러 entry point.

build(spec, refs) → BuildResult

규칙:
- 검증 실패 스펙은 빌드하지 않음 (빌드 게이트)
- 템플릿 렌더 에러는 success 를 뒤집지 않음 (warnings 에 기록)
- shell 패턴 해석/렌더 실패만 구조적 실패 (success=False)
- 같은 스펙 + 같은 라이브러리 → html/css/javascript 바이트 동일
- 예외는 경계에서 BuildResult 로 변환 (호출자에게 던지지 않음)
"""

import logging
from datetime import UTC, datetime

from src.core.hashing import compute_artifact_hash
from src.core.ids import generate_spec_id
from src.core.logging import complete_build_log, create_build_log
from src.core.validate import validate_spec
from src.domain.constants import SHELL_PATTERN_ID
from src.domain.errors import CompilerError, ErrorCodes, TemplateRenderError
from src.domain.schemas import (
    BuildError,
    BuildLog,
    BuildManifest,
    BuildResult,
    PatternReference,
    Specification,
)
from src.patterns.registry import PatternRegistry, get_default_registry
from src.render.assembler import assemble_patterns
from src.render.template import render_template

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _failure(
    errors: list[BuildError],
    spec_id: str = "",
    build_log: BuildLog | None = None,
    warnings: list[str] | None = None,
) -> BuildResult:
    if build_log is not None:
        complete_build_log(
            build_log,
            success=False,
            error_code=errors[0].code if errors else ErrorCodes.BUILD_ERROR,
            error_context={"errors": [e.to_dict() for e in errors]},
        )
    return BuildResult(
        success=False,
        manifest=BuildManifest(spec_id=spec_id, built_at=_now()),
        errors=errors,
        warnings=warnings or [],
    )


def build(
    spec: Specification | None,
    refs: list[PatternReference],
    *,
    spec_id: str | None = None,
    registry: PatternRegistry | None = None,
    build_log: BuildLog | None = None,
) -> BuildResult:
    """
    스펙 + 패턴 레퍼런스 → 단일 HTML 문서.

    Args:
        spec: 검증 대상 Specification
        refs: Router 가 만든 PatternReference 목록
        spec_id: 매니페스트용 spec ID (기본: 스펙 내용 기반 결정론적 ID)
        registry: 패턴 레지스트리 (기본: 전역 레지스트리)
        build_log: 경고/결과 기록 대상 (선택)

    Returns:
        BuildResult (예외 없음)
    """
    validation = validate_spec(spec)
    if spec is None or not validation.valid:
        return _failure(
            [BuildError(code=e.code, message=e.message) for e in validation.errors],
            spec_id=spec_id or "",
            build_log=build_log,
        )

    spec_id = spec_id or generate_spec_id(spec)
    registry = registry or get_default_registry()
    warnings: list[str] = []

    try:
        assembled = assemble_patterns(refs, spec, registry=registry, build_log=build_log)
        warnings = assembled.warnings

        shell = registry.get(SHELL_PATTERN_ID)
        if shell is None:
            return _failure(
                [BuildError(
                    code=ErrorCodes.SHELL_NOT_FOUND,
                    message="App shell pattern not found",
                    pattern_id=SHELL_PATTERN_ID,
                )],
                spec_id=spec_id,
                build_log=build_log,
                warnings=warnings,
            )

        try:
            html = render_template(shell.template.html, {
                "appName": spec.meta.name,
                "description": spec.meta.description,
                "styles": assembled.css,
                "content": assembled.html,
                "scripts": assembled.js,
            })
        except TemplateRenderError as e:
            logger.warning(f"Shell render failed: {e}")
            return _failure(
                [BuildError(
                    code=ErrorCodes.SHELL_RENDER_FAILED,
                    message=f"App shell could not be rendered: {e}",
                    pattern_id=SHELL_PATTERN_ID,
                )],
                spec_id=spec_id,
                build_log=build_log,
                warnings=warnings,
            )

        patterns_used = list(assembled.patterns_used)
        if SHELL_PATTERN_ID not in patterns_used:
            patterns_used.append(SHELL_PATTERN_ID)

        if build_log is not None:
            build_log.patterns_rendered = list(patterns_used)
            complete_build_log(build_log, success=True, artifact_hash=compute_artifact_hash(html))

        logger.info(
            f"Build complete: spec={spec_id} patterns={len(patterns_used)} "
            f"warnings={len(warnings)}"
        )

        return BuildResult(
            success=True,
            html=html,
            css=assembled.css,
            javascript=assembled.js,
            manifest=BuildManifest(
                spec_id=spec_id,
                built_at=_now(),
                patterns_used=patterns_used,
                deltas_generated=[],
            ),
            warnings=warnings,
        )

    except CompilerError as e:
        logger.error(f"Build failed: {e}", exc_info=True)
        return _failure(
            [BuildError(code=e.code, message=str(e))],
            spec_id=spec_id,
            build_log=build_log,
            warnings=warnings,
        )
    except Exception as e:
        logger.error(f"Unexpected build error: {e}", exc_info=True)
        return _failure(
            [BuildError(code=ErrorCodes.BUILD_ERROR, message=str(e) or "Build failed")],
            spec_id=spec_id,
            build_log=build_log,
            warnings=warnings,
        )


def build_with_log(
    spec: Specification,
    refs: list[PatternReference],
    *,
    registry: PatternRegistry | None = None,
) -> tuple[BuildResult, BuildLog]:
    """build() + 새 BuildLog 생성."""
    spec_id = generate_spec_id(spec)
    build_log = create_build_log(spec_id)
    result = build(spec, refs, spec_id=spec_id, registry=registry, build_log=build_log)
    return result, build_log


def get_preview_html(html: str, css: str, js: str) -> str:
    """
    조각(html/css/js)만으로 최소 미리보기 문서 생성.

    shell 패턴을 거치지 않음: 부분 빌드 확인용.
    """
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "  <title>Preview</title>\n"
        f"  <style>{css}</style>\n"
        "</head>\n"
        "<body>\n"
        f'  <div id="app">{html}</div>\n'
        f"  <script>{js}</script>\n"
        "</body>\n"
        "</html>"
    )
