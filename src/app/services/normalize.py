"""
Normalize Service: LLM 출력 텍스트 → Specification.

규칙:
- 코드 펜스(```json ... ```) 제거 후 JSON 파싱
- 실패 시 첫 '{' ~ 마지막 '}' 구간으로 재시도
- 필드별 기본값 정책: 누락/형식 오류에도 예외 없이 완전한 Specification 생성
- 파싱 자체가 불가능하면 실패 신호만 반환 (질문으로 대체하는 판단은 호출자 몫)
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from src.domain.constants import (
    ACTION_TRIGGERS,
    ASSISTANT_TURN_TYPES,
    DEFAULT_ACTION_TRIGGER,
    DEFAULT_APP_NAME,
    DEFAULT_CONFIDENCE,
    DEFAULT_PROPERTY_NAME,
    DEFAULT_PROPERTY_TYPE,
    DEFAULT_RELATIONSHIP_TYPE,
    DEFAULT_SPEC_VERSION,
    DEFAULT_VIEW_TYPE,
    FALLBACK_QUESTION,
    PROPERTY_TYPES,
    RELATIONSHIP_TYPES,
    VIEW_TYPES,
)
from src.domain.errors import ErrorCodes, SpecParseError
from src.domain.schemas import (
    Action,
    AssistantTurn,
    Entity,
    NormalizationResult,
    Property,
    Relationship,
    SpecMeta,
    Specification,
    View,
)

logger = logging.getLogger(__name__)

# bare spec 판별 키 (type 없는 응답)
_SPEC_KEYS = ("meta", "entities", "views")

# =============================================================================
# JSON 추출
# =============================================================================


def strip_code_fences(text: str) -> str:
    """
    마크다운 코드 펜스 제거.

    "```json\\n{...}\\n```" → "{...}"
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        first_newline = cleaned.find("\n")
        cleaned = cleaned[first_newline + 1:] if first_newline != -1 else cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def load_json_object(text: str) -> dict[str, Any]:
    """
    LLM 응답 텍스트에서 JSON 객체 추출.

    Args:
        text: 원본 응답 텍스트

    Returns:
        파싱된 dict

    Raises:
        SpecParseError: NO_JSON_FOUND, PARSE_ERROR
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        # 설명 문장 + JSON 형태 응답
        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end <= start:
            raise SpecParseError(ErrorCodes.NO_JSON_FOUND, length=len(text))
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError as e:
            raise SpecParseError(ErrorCodes.PARSE_ERROR, error=str(e)) from e

    if not isinstance(data, dict):
        raise SpecParseError(ErrorCodes.PARSE_ERROR, error=f"expected object, got {type(data).__name__}")
    return data


# =============================================================================
# Spec Normalization
# =============================================================================


def _text(value: Any, default: str = "") -> str:
    """문자열 필드 읽기: 빈 값/비문자열은 default (숫자는 문자열로)."""
    if isinstance(value, str) and value:
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _items(value: Any) -> list[dict[str, Any]]:
    """배열 필드 읽기: 배열이 아니면 빈 목록, dict 아닌 원소는 {}."""
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, dict) else {} for item in value]


def _choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    return value if value in allowed else default


def _normalize_property(raw: dict[str, Any]) -> Property:
    options = raw.get("options")
    return Property(
        name=_text(raw.get("name"), DEFAULT_PROPERTY_NAME),
        type=_choice(raw.get("type"), PROPERTY_TYPES, DEFAULT_PROPERTY_TYPE),
        required=bool(raw.get("required")),
        options=[str(o) for o in options] if isinstance(options, list) else None,
    )


def _normalize_entity(raw: dict[str, Any], index: int) -> Entity:
    return Entity(
        id=_text(raw.get("id"), f"entity_{index}"),
        name=_text(raw.get("name"), f"Entity {index + 1}"),
        properties=[_normalize_property(p) for p in _items(raw.get("properties"))],
        relationships=[
            Relationship(
                target_entity=_text(r.get("targetEntity")),
                type=_choice(r.get("type"), RELATIONSHIP_TYPES, DEFAULT_RELATIONSHIP_TYPE),
            )
            for r in _items(raw.get("relationships"))
        ],
    )


def _unique_id(candidate: str, taken: set[str]) -> str:
    unique = candidate
    suffix = 2
    while unique in taken:
        unique = f"{candidate}_{suffix}"
        suffix += 1
    return unique


def _normalize_entities(raws: list[dict[str, Any]]) -> list[Entity]:
    """
    엔티티 목록 정규화.

    id 는 목록 안에서 유일: 주어진 id 는 첫 등장이 유지되고,
    생성 id (entity_<i>) 나 중복 id 는 _2, _3 ... 접미사로 피해감.
    """
    reserved = {_text(raw.get("id")) for raw in raws} - {""}
    claimed: set[str] = set()
    entities = []
    for index, raw in enumerate(raws):
        entity = _normalize_entity(raw, index)
        given = _text(raw.get("id"))
        if given and given not in claimed:
            claimed.add(given)
        else:
            entity.id = _unique_id(entity.id, reserved | claimed)
            claimed.add(entity.id)
            if given:
                logger.info(f"Duplicate entity id {given!r} renamed to {entity.id!r}")
        entities.append(entity)
    return entities


def normalize_spec(raw: Any, now: str | None = None) -> Specification:
    """
    임의 형태의 dict → 완전한 Specification.

    기본값:
    - version "1.0.0", meta.name "Untitled App", createdAt = now
    - entity/view/action id 누락 → entity_<i> / view_<i> / action_<i>
    - 엔티티 id 중복 (생성 id 충돌 포함) → _2, _3 ... 접미사
    - 이름 누락 → "Entity N" / "View N" / "Action N", 속성 이름 → "unnamed"
    - 알 수 없는 enum 값 → string / one-to-many / list / button

    Args:
        raw: 파싱된 JSON (dict 아니면 빈 dict 취급)
        now: createdAt 기본값 (ISO 8601, 기본: 현재 UTC)

    Returns:
        Specification (예외 없음)
    """
    if not isinstance(raw, dict):
        raw = {}
    meta = raw.get("meta") if isinstance(raw.get("meta"), dict) else {}
    now = now or datetime.now(UTC).isoformat()
    patterns = raw.get("patterns")

    return Specification(
        version=_text(raw.get("version"), DEFAULT_SPEC_VERSION),
        meta=SpecMeta(
            name=_text(meta.get("name"), DEFAULT_APP_NAME),
            description=_text(meta.get("description")),
            created_at=_text(meta.get("createdAt"), now),
        ),
        entities=_normalize_entities(_items(raw.get("entities"))),
        views=[
            View(
                id=_text(v.get("id"), f"view_{i}"),
                name=_text(v.get("name"), f"View {i + 1}"),
                type=_choice(v.get("type"), VIEW_TYPES, DEFAULT_VIEW_TYPE),
                entity=_text(v.get("entity")),
            )
            for i, v in enumerate(_items(raw.get("views")))
        ],
        actions=[
            Action(
                id=_text(a.get("id"), f"action_{i}"),
                name=_text(a.get("name"), f"Action {i + 1}"),
                trigger=_choice(a.get("trigger"), ACTION_TRIGGERS, DEFAULT_ACTION_TRIGGER),
                logic=_text(a.get("logic")),
            )
            for i, a in enumerate(_items(raw.get("actions")))
        ],
        patterns=[p for p in patterns if isinstance(p, str)] if isinstance(patterns, list) else [],
    )


def parse_spec_text(text: str, now: str | None = None) -> NormalizationResult:
    """
    bare spec 텍스트 → Specification.

    Returns:
        NormalizationResult (파싱 실패 시 success=False)
    """
    try:
        data = load_json_object(text)
    except SpecParseError as e:
        logger.warning(f"Spec text could not be parsed: {e}")
        return NormalizationResult(success=False, error_message=str(e))

    # {"spec": {...}} 형태도 허용
    if "spec" in data and isinstance(data["spec"], dict):
        data = data["spec"]

    return NormalizationResult(success=True, spec=normalize_spec(data, now=now))


# =============================================================================
# Assistant Turn
# =============================================================================


def _clamp_confidence(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(0.0, min(1.0, float(value)))
    return DEFAULT_CONFIDENCE


def _fallback_turn(error: str) -> AssistantTurn:
    return AssistantTurn(
        type="question",
        question=FALLBACK_QUESTION,
        confidence=0.0,
        error_message=error,
    )


def parse_assistant_turn(text: str, now: str | None = None) -> AssistantTurn:
    """
    LLM 한 턴 응답 해석.

    지원 형식:
    1. envelope: {"type": "question"|"spec_update"|"spec_complete",
                  "question": ..., "spec": {...}, "confidence": 0.0~1.0}
    2. bare spec: {"meta": ..., "entities": ..., "views": ...} → spec_update (confidence 0.5)

    파싱 실패/알 수 없는 type → 명확화 질문 턴 (confidence 0, error_message 설정).

    Args:
        text: LLM 응답 원문
        now: createdAt 기본값

    Returns:
        AssistantTurn (예외 없음)
    """
    try:
        data = load_json_object(text)
    except SpecParseError as e:
        logger.warning(f"Assistant turn could not be parsed: {e}")
        return _fallback_turn(str(e))

    turn_type = data.get("type")

    if turn_type is None and any(key in data for key in _SPEC_KEYS):
        return AssistantTurn(
            type="spec_update",
            spec=normalize_spec(data, now=now),
            confidence=DEFAULT_CONFIDENCE,
        )

    if turn_type not in ASSISTANT_TURN_TYPES:
        error = str(SpecParseError(ErrorCodes.INVALID_RESPONSE_TYPE, type=turn_type))
        logger.warning(f"Assistant turn rejected: {error}")
        return _fallback_turn(error)

    raw_spec = data.get("spec")
    question = data.get("question")

    return AssistantTurn(
        type=turn_type,
        question=question if isinstance(question, str) else None,
        spec=normalize_spec(raw_spec, now=now) if isinstance(raw_spec, dict) else None,
        confidence=_clamp_confidence(data.get("confidence")),
    )
