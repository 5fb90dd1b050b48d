"""
Specification Validator: 구조/참조 검증 + completeness 점수.

규칙:
- validate_spec()은 total function: 어떤 입력에도 예외 없이 ValidationResult 반환
- errors가 하나라도 있으면 valid=False (빌드 게이트)
- warnings는 빌드를 막지 않음
- completeness는 같은 스펙에 대해 비트 단위로 재현 가능해야 함 (연산 순서 고정)
"""

from src.domain.constants import (
    ENTITY_POINTS_NAME,
    ENTITY_POINTS_PROPERTIES,
    ENTITY_POINTS_REQUIRED,
    ENTITY_POINTS_TWO_PROPERTIES,
    PATTERN_HINTS_SATURATION,
    VIEW_POINTS_ENTITY,
    VIEW_POINTS_NAME,
    WEIGHT_ACTIONS,
    WEIGHT_DESCRIPTION,
    WEIGHT_ENTITIES,
    WEIGHT_ENTITY_QUALITY,
    WEIGHT_NAME,
    WEIGHT_PATTERN_HINTS,
    WEIGHT_VIEW_QUALITY,
    WEIGHT_VIEWS,
)
from src.domain.errors import ErrorCodes
from src.domain.schemas import Specification, ValidationIssue, ValidationResult


def _is_blank(value: str | None) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def _key(value: str | None) -> str:
    """참조/중복 비교용 키 (비문자열은 빈 문자열)."""
    return value if isinstance(value, str) else ""


# =============================================================================
# Validation
# =============================================================================

def validate_spec(spec: Specification | None) -> ValidationResult:
    """
    스펙 검증.

    Args:
        spec: 검증할 Specification (None 허용)

    Returns:
        ValidationResult (valid, errors, warnings, completeness)
    """
    if spec is None:
        return ValidationResult(
            valid=False,
            errors=[ValidationIssue(ErrorCodes.NO_SPEC, "No specification provided")],
            warnings=[],
            completeness=0.0,
        )

    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    # 필수 항목
    if _is_blank(spec.meta.name):
        errors.append(ValidationIssue(
            ErrorCodes.MISSING_NAME, "App name is required", "meta.name",
        ))

    if not spec.entities:
        errors.append(ValidationIssue(
            ErrorCodes.NO_ENTITIES, "At least one entity is required", "entities",
        ))

    if not spec.views:
        errors.append(ValidationIssue(
            ErrorCodes.NO_VIEWS, "At least one view is required", "views",
        ))

    entity_ids = {_key(entity.id) for entity in spec.entities}

    # 엔티티
    for index, entity in enumerate(spec.entities):
        if _is_blank(entity.name):
            errors.append(ValidationIssue(
                ErrorCodes.MISSING_ENTITY_NAME,
                f"Entity at index {index} has no name",
                f"entities[{index}].name",
            ))

        if not entity.properties:
            label = entity.name or index
            errors.append(ValidationIssue(
                ErrorCodes.NO_PROPERTIES,
                f'Entity "{label}" has no properties',
                f"entities[{index}].properties",
            ))

        seen_names: set[str] = set()
        for prop_index, prop in enumerate(entity.properties):
            if _key(prop.name) in seen_names:
                warnings.append(ValidationIssue(
                    ErrorCodes.DUPLICATE_PROPERTY,
                    f'Duplicate property name "{prop.name}" in entity "{entity.name}"',
                    f"entities[{index}].properties[{prop_index}]",
                ))
            seen_names.add(_key(prop.name))

        for rel_index, rel in enumerate(entity.relationships):
            if _key(rel.target_entity) and rel.target_entity not in entity_ids:
                warnings.append(ValidationIssue(
                    ErrorCodes.INVALID_RELATIONSHIP,
                    f'Relationship in "{entity.name}" references unknown '
                    f'entity "{rel.target_entity}"',
                    f"entities[{index}].relationships[{rel_index}]",
                ))

    # 뷰
    for index, view in enumerate(spec.views):
        if _is_blank(view.name):
            errors.append(ValidationIssue(
                ErrorCodes.MISSING_VIEW_NAME,
                f"View at index {index} has no name",
                f"views[{index}].name",
            ))

        # 빈 entity는 허용 (데이터 바인딩 없는 뷰)
        if _key(view.entity) and view.entity not in entity_ids:
            warnings.append(ValidationIssue(
                ErrorCodes.INVALID_VIEW_ENTITY,
                f'View "{view.name}" references unknown entity "{view.entity}"',
                f"views[{index}].entity",
            ))

    # 액션
    for index, action in enumerate(spec.actions):
        if _is_blank(action.name):
            errors.append(ValidationIssue(
                ErrorCodes.MISSING_ACTION_NAME,
                f"Action at index {index} has no name",
                f"actions[{index}].name",
            ))

        if not action.trigger:
            label = action.name or index
            errors.append(ValidationIssue(
                ErrorCodes.MISSING_TRIGGER,
                f'Action "{label}" has no trigger defined',
                f"actions[{index}].trigger",
            ))

    # 권장 항목
    if _is_blank(spec.meta.description):
        warnings.append(ValidationIssue(
            ErrorCodes.MISSING_DESCRIPTION,
            "App description is recommended",
            "meta.description",
        ))

    if not spec.patterns:
        warnings.append(ValidationIssue(
            ErrorCodes.NO_PATTERNS,
            "No patterns specified, defaults will be used",
            "patterns",
        ))

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        completeness=calculate_completeness(spec),
    )


# =============================================================================
# Completeness
# =============================================================================

def calculate_completeness(spec: Specification | None) -> float:
    """
    completeness 점수 계산 (0.0 ~ 1.0).

    가중치:
    - 기본 항목 50%: name, description, entities, views, actions 존재 여부
    - 엔티티 품질 30%: 엔티티별 점수 평균
    - 뷰 품질 10%: 뷰별 점수 평균
    - 패턴 힌트 10%: min(len(patterns) / 5, 1)

    UI 진행률 표시 및 대화 단계 추정용 (판정에는 사용하지 않음).
    """
    if spec is None:
        return 0.0

    score = 0.0

    if spec.meta.name:
        score += WEIGHT_NAME
    if spec.meta.description:
        score += WEIGHT_DESCRIPTION
    if spec.entities:
        score += WEIGHT_ENTITIES
    if spec.views:
        score += WEIGHT_VIEWS
    if spec.actions:
        score += WEIGHT_ACTIONS

    if spec.entities:
        total = 0.0
        for entity in spec.entities:
            points = 0.0
            if entity.name:
                points += ENTITY_POINTS_NAME
            if len(entity.properties) > 0:
                points += ENTITY_POINTS_PROPERTIES
            if len(entity.properties) >= 2:
                points += ENTITY_POINTS_TWO_PROPERTIES
            if any(p.required for p in entity.properties):
                points += ENTITY_POINTS_REQUIRED
            total += points
        score += (total / len(spec.entities)) * WEIGHT_ENTITY_QUALITY

    if spec.views:
        total = 0.0
        for view in spec.views:
            points = 0.0
            if view.name:
                points += VIEW_POINTS_NAME
            if view.entity:
                points += VIEW_POINTS_ENTITY
            total += points
        score += (total / len(spec.views)) * WEIGHT_VIEW_QUALITY

    if spec.patterns:
        score += min(len(spec.patterns) / PATTERN_HINTS_SATURATION, 1) * WEIGHT_PATTERN_HINTS

    return max(0.0, min(1.0, score))


# =============================================================================
# Helpers
# =============================================================================

def is_valid_for_build(spec: Specification | None) -> bool:
    """빌드 게이트: validate_spec(spec).valid 와 동일."""
    if spec is None:
        return False
    return validate_spec(spec).valid


def get_validation_summary(result: ValidationResult) -> str:
    """
    검증 결과 한 줄 요약.

    Returns:
        "Spec is valid with N warning(s)" 또는 "Spec has N error(s): m1, m2"
    """
    if result.valid:
        return f"Spec is valid with {len(result.warnings)} warning(s)"
    messages = ", ".join(e.message for e in result.errors)
    return f"Spec has {len(result.errors)} error(s): {messages}"
