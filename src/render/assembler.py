"""
Assembler: PatternReference 목록 → HTML/CSS/JS 조각 결합.

처리 순서:
1. 우선순위 stable sort
2. (patternId, targetId) 중복 제거
3. 레퍼런스별 컨텍스트 구성: 스펙 전역값 ← config ← 해석된 entity/properties
4. html/css/js 템플릿 각각 렌더 (실패 시 인라인 마커 + 경고, 빌드는 계속)
5. 결합: html "\n", css 중복 제거 후 "\n\n", js "\n\n"

app-shell 은 조각으로 렌더하지 않음 (builder 가 최종 문서 래핑에 사용).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.core.logging import emit_warning
from src.domain.constants import SHELL_PATTERN_ID
from src.domain.errors import ErrorCodes, TemplateRenderError
from src.domain.schemas import BuildLog, PatternReference, Specification
from src.patterns.ordering import sort_by_priority
from src.patterns.registry import PatternRegistry, get_default_registry
from src.render.template import render_template

logger = logging.getLogger(__name__)


@dataclass
class AssembledCode:
    """결합된 조각 + 렌더 메타데이터."""
    html: str = ""
    css: str = ""
    js: str = ""
    patterns_used: list[str] = field(default_factory=list)  # 렌더 순서, 중복 없음
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Context
# =============================================================================

def spec_globals(spec: Specification) -> dict[str, Any]:
    """모든 레퍼런스 컨텍스트의 기본값."""
    return {
        "appName": spec.meta.name,
        "appDescription": spec.meta.description,
        "entities": [e.to_dict() for e in spec.entities],
        "views": [v.to_dict() for v in spec.views],
        "actions": [a.to_dict() for a in spec.actions],
    }


def _referenced_entity_id(config: dict[str, Any]) -> str | None:
    entity_id = config.get("entityId")
    if isinstance(entity_id, str) and entity_id:
        return entity_id
    entity = config.get("entity")
    if isinstance(entity, dict) and isinstance(entity.get("id"), str):
        return entity["id"]
    return None


def build_context(
    ref: PatternReference,
    spec: Specification,
    base: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    레퍼런스 렌더 컨텍스트 구성.

    우선순위 (뒤가 이김): 스펙 전역값 ← ref.config ← 해석된 entity/properties.
    properties 는 이름 중복 제거 (첫 번째 유지).
    """
    context = dict(base if base is not None else spec_globals(spec))
    context.update(ref.config)

    entity = spec.find_entity(_referenced_entity_id(ref.config))
    if entity is not None:
        properties = [p.to_dict() for p in entity.unique_properties()]
        context["entity"] = {**entity.to_dict(), "properties": properties}
        context["properties"] = properties

    return context


# =============================================================================
# Render
# =============================================================================

def _error_marker(part: str, message: str) -> str:
    """렌더 실패 위치에 남기는 주석 (주석 종료 토큰은 무력화)."""
    if part == "html":
        return f"<!-- Template error: {message.replace('--', '- -')} -->"
    return f"/* Template error: {message.replace('*/', '* /')} */"


def _deduplicate_css(parts: list[str]) -> str:
    """trim 후 완전히 같은 CSS 조각 제거."""
    seen: set[str] = set()
    unique: list[str] = []
    for part in parts:
        normalized = part.strip()
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)
    return "\n\n".join(unique)


def assemble_patterns(
    refs: list[PatternReference],
    spec: Specification,
    registry: PatternRegistry | None = None,
    build_log: BuildLog | None = None,
) -> AssembledCode:
    """
    패턴 조각 렌더 및 결합.

    Args:
        refs: PatternReference 목록 (순서 무관, 내부에서 정렬)
        spec: Specification
        registry: 패턴 레지스트리 (기본: 전역 레지스트리)
        build_log: 경고 기록 대상 (선택)

    Returns:
        AssembledCode
    """
    registry = registry or get_default_registry()
    result = AssembledCode()
    html_parts: list[str] = []
    css_parts: list[str] = []
    js_parts: list[str] = []
    rendered: set[tuple[str, str]] = set()
    base = spec_globals(spec)

    def warn(code: str, ref: PatternReference, message: str) -> None:
        logger.warning(message)
        result.warnings.append(message)
        if build_log is not None:
            emit_warning(build_log, code, ref.pattern_id, ref.target_id, message)

    for ref in sort_by_priority(refs):
        if ref.key in rendered:
            warn(
                ErrorCodes.DUPLICATE_REFERENCE_SKIPPED,
                ref,
                f"Duplicate reference skipped: {ref.pattern_id}:{ref.target_id}",
            )
            continue

        pattern = registry.get(ref.pattern_id)
        if pattern is None:
            warn(ErrorCodes.PATTERN_NOT_FOUND, ref, f"Pattern not found: {ref.pattern_id}")
            continue

        rendered.add(ref.key)
        if pattern.id not in result.patterns_used:
            result.patterns_used.append(pattern.id)

        if pattern.id == SHELL_PATTERN_ID:
            continue

        context = build_context(ref, spec, base)
        for part, source, parts in (
            ("html", pattern.template.html, html_parts),
            ("css", pattern.template.css, css_parts),
            ("js", pattern.template.js, js_parts),
        ):
            if not source:
                continue
            try:
                output = render_template(source, context)
            except TemplateRenderError as e:
                message = (
                    f"Template render failed: {ref.pattern_id}:{ref.target_id} "
                    f"({part}) {e}"
                )
                warn(ErrorCodes.TEMPLATE_RENDER_FAILED, ref, message)
                output = _error_marker(part, message)
            if output:
                parts.append(output)

    result.html = "\n".join(html_parts)
    result.css = _deduplicate_css(css_parts)
    result.js = "\n\n".join(js_parts)
    return result
