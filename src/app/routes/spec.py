"""
Spec Routes: 스펙 파싱/검증/패턴 매칭.

- POST /api/spec/parse → LLM 응답 텍스트 해석 (+ 검증)
- POST /api/spec/validate → 검증 결과 + 요약
- POST /api/spec/patterns → PatternReference 목록
- GET /api/patterns → 패턴 라이브러리 목록
- GET /api/patterns/check → 라이브러리 의존성 점검
"""

from typing import Any

from fastapi import APIRouter, Body, Form, HTTPException, Request

from src.app.services.normalize import parse_assistant_turn
from src.app.services.router import get_unique_pattern_ids, match_patterns, sort_patterns_by_dependency
from src.core.validate import get_validation_summary, validate_spec
from src.domain.constants import DEFAULT_THEME
from src.domain.errors import ErrorCodes
from src.domain.schemas import Specification
from src.patterns.registry import check_library, get_all_patterns

api_router = APIRouter()  # /api/spec
patterns_router = APIRouter()  # /api/patterns


def parse_spec_payload(data: Any) -> Specification:
    """
    요청 본문의 스펙 dict → Specification.

    Raises:
        HTTPException: 400 PARSE_ERROR (형태 오류)
    """
    if not isinstance(data, dict):
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.PARSE_ERROR, "message": "spec must be a JSON object"},
        )
    try:
        return Specification.from_dict(data)
    except (AttributeError, TypeError) as e:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.PARSE_ERROR, "message": f"Malformed spec: {e}"},
        ) from e


def get_theme(request: Request, theme: str | None = None) -> str:
    """요청 theme → 설정 compiler.theme → dark."""
    if theme:
        return theme
    compiler = request.app.state.config.get("compiler") or {}
    return compiler.get("theme", DEFAULT_THEME)


# =============================================================================
# Spec API
# =============================================================================

@api_router.post("/parse")
async def parse_text(text: str = Form(...)) -> dict[str, Any]:
    """
    LLM 응답 텍스트 한 턴 해석.

    파싱 실패도 200 (question 턴 + error_message).
    """
    turn = parse_assistant_turn(text)
    data = turn.to_dict()
    data["validation"] = validate_spec(turn.spec).to_dict() if turn.spec else None
    return data


@api_router.post("/validate")
async def validate(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """스펙 검증 (본문: {"spec": {...}})."""
    spec = parse_spec_payload(payload.get("spec"))
    result = validate_spec(spec)
    return {**result.to_dict(), "summary": get_validation_summary(result)}


@api_router.post("/patterns")
async def patterns_for_spec(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """
    스펙 → 정렬된 PatternReference 목록.

    본문: {"spec": {...}, "theme": "dark"|"light"}
    """
    spec = parse_spec_payload(payload.get("spec"))
    validation = validate_spec(spec)
    if not validation.valid:
        raise HTTPException(
            status_code=400,
            detail={
                "code": ErrorCodes.VALIDATION_FAILED,
                "message": get_validation_summary(validation),
            },
        )

    refs = sort_patterns_by_dependency(match_patterns(spec, theme=get_theme(request, payload.get("theme"))))
    return {
        "pattern_ids": get_unique_pattern_ids(refs),
        "references": [ref.to_dict() for ref in refs],
    }


# =============================================================================
# Pattern Library API
# =============================================================================

@patterns_router.get("")
async def list_patterns() -> dict[str, Any]:
    """패턴 라이브러리 목록 (템플릿 본문 제외)."""
    return {
        "patterns": [
            {
                "id": p.id,
                "name": p.name,
                "category": p.category,
                "description": p.description,
                "dependencies": list(p.dependencies),
            }
            for p in get_all_patterns()
        ]
    }


@patterns_router.get("/check")
async def check_patterns() -> dict[str, Any]:
    """라이브러리 의존성 점검 (순환/누락)."""
    return check_library()
