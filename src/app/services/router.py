"""
Router Service: Specification → PatternReference 목록.

출력 순서 (렌더 순서 아님, assembler 가 우선순위로 재정렬):
1. style-base, app-core (전역 선행 조건)
2. app-shell, navigation
3. entity 별 entity-card
4. view 별 view-list / view-form (+ 입력 위젯) / view-detail

액션은 app-core 컨트롤러가 담당: action-* 레퍼런스는 만들지 않음.
"""

import logging
from typing import Any

from src.domain.constants import (
    DEFAULT_INPUT_PATTERN,
    DEFAULT_THEME,
    GLOBAL_TARGET_ID,
    INPUT_PATTERN_BY_TYPE,
    SHELL_PATTERN_ID,
    THEMES,
)
from src.domain.schemas import Entity, PatternReference, Specification, View
from src.patterns.ordering import sort_by_priority

logger = logging.getLogger(__name__)


def _entity_config(entity: Entity | None) -> tuple[dict[str, Any] | None, list[dict[str, Any]]]:
    """view 에 바인딩할 entity dict + properties (없으면 None, [])."""
    if entity is None:
        return None, []
    properties = [p.to_dict() for p in entity.unique_properties()]
    return {**entity.to_dict(), "properties": properties}, properties


def _input_refs(view: View, entity: Entity) -> list[PatternReference]:
    """form view 의 속성별 입력 위젯 레퍼런스."""
    refs = []
    for prop in entity.unique_properties():
        refs.append(PatternReference(
            pattern_id=INPUT_PATTERN_BY_TYPE.get(prop.type, DEFAULT_INPUT_PATTERN),
            target_id=f"{view.id}-{prop.name}",
            config={
                "viewId": view.id,
                "entityId": entity.id,
                "fieldName": prop.name,
                "fieldType": prop.type,
                "required": prop.required,
                "options": list(prop.options or []),
            },
        ))
    return refs


def _view_refs(view: View, spec: Specification) -> list[PatternReference]:
    entity = spec.find_entity(view.entity)
    if entity is None and view.entity:
        logger.warning(f"View {view.id} references unknown entity: {view.entity}")

    entity_dict, properties = _entity_config(entity)
    config: dict[str, Any] = {
        "viewId": view.id,
        "viewName": view.name,
        "entity": entity_dict,
        "properties": properties,
    }

    if view.type in ("list", "dashboard"):
        if view.type == "dashboard":
            config["isDashboard"] = True
        return [PatternReference(pattern_id="view-list", target_id=view.id, config=config)]

    if view.type == "form":
        refs = [PatternReference(pattern_id="view-form", target_id=view.id, config=config)]
        if entity is not None:
            refs.extend(_input_refs(view, entity))
        return refs

    return [PatternReference(pattern_id="view-detail", target_id=view.id, config=config)]


def match_patterns(spec: Specification, theme: str = DEFAULT_THEME) -> list[PatternReference]:
    """
    스펙에 필요한 패턴 레퍼런스 계산.

    Args:
        spec: 검증된 Specification (dangling entity 참조는 허용)
        theme: "dark" | "light" (그 외 값은 dark)

    Returns:
        PatternReference 목록 (결정론적)
    """
    if theme not in THEMES:
        logger.warning(f"Unknown theme {theme!r}, using {DEFAULT_THEME}")
        theme = DEFAULT_THEME

    refs = [
        PatternReference("style-base", GLOBAL_TARGET_ID, {"theme": theme}),
        PatternReference("app-core", GLOBAL_TARGET_ID, {
            "appName": spec.meta.name,
            "entities": [e.to_dict() for e in spec.entities],
            "views": [v.to_dict() for v in spec.views],
        }),
        PatternReference(SHELL_PATTERN_ID, "root", {
            "appName": spec.meta.name,
            "description": spec.meta.description,
        }),
        PatternReference("navigation", "nav", {
            "appName": spec.meta.name,
            "views": [{"id": v.id, "name": v.name} for v in spec.views],
        }),
    ]

    for entity in spec.entities:
        refs.append(PatternReference("entity-card", entity.id, {
            "entityId": entity.id,
            "entityName": entity.name,
            "properties": [p.to_dict() for p in entity.unique_properties()],
        }))

    for view in spec.views:
        refs.extend(_view_refs(view, spec))

    logger.debug(f"Matched {len(refs)} pattern references for {spec.meta.name!r}")
    return refs


def get_unique_pattern_ids(refs: list[PatternReference]) -> list[str]:
    """레퍼런스의 patternId 목록 (첫 등장 순서, 중복 없음)."""
    return list(dict.fromkeys(ref.pattern_id for ref in refs))


def sort_patterns_by_dependency(refs: list[PatternReference]) -> list[PatternReference]:
    """우선순위 stable sort (assembler 와 같은 순서)."""
    return sort_by_priority(refs)
