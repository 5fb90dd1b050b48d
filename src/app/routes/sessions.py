"""
Session Routes: 세션 오케스트레이터 API.

- POST /api/sessions → 세션 생성
- GET /api/sessions/{id} → 세션 상태
- POST /api/sessions/{id}/assistant → LLM 응답 텍스트 한 턴
- POST /api/sessions/{id}/spec → 스펙 직접 편집
- POST /api/sessions/{id}/build → 빌드
- POST /api/sessions/{id}/reset → 초기화

세션은 프로세스 메모리에만 보관 (app.state.sessions).
"""

from typing import Any

from fastapi import APIRouter, Body, Form, HTTPException, Request

from src.app.routes.spec import parse_spec_payload
from src.app.services.orchestrator import Orchestrator

api_router = APIRouter()


def get_session(request: Request, session_id: str) -> Orchestrator:
    """세션 조회 (없으면 404)."""
    sessions: dict[str, Orchestrator] = request.app.state.sessions
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return orchestrator


@api_router.post("")
async def create_session(request: Request) -> dict[str, Any]:
    orchestrator = Orchestrator(config=request.app.state.config)
    request.app.state.sessions[orchestrator.session_id] = orchestrator
    return orchestrator.state.to_dict()


@api_router.get("/{session_id}")
async def get_session_state(request: Request, session_id: str) -> dict[str, Any]:
    return get_session(request, session_id).state.to_dict()


@api_router.post("/{session_id}/assistant")
async def assistant_turn(
    request: Request,
    session_id: str,
    text: str = Form(...),
) -> dict[str, Any]:
    """LLM 응답 원문 처리 → display_question | update_ui."""
    orchestrator = get_session(request, session_id)
    outcome = orchestrator.handle_assistant_text(text)
    return {"outcome": outcome.to_dict(), "state": orchestrator.state.to_dict()}


@api_router.post("/{session_id}/spec")
async def update_spec(
    request: Request,
    session_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """스펙 교체 (본문: {"spec": {...}})."""
    orchestrator = get_session(request, session_id)
    outcome = orchestrator.handle_spec_update(parse_spec_payload(payload.get("spec")))
    return {"outcome": outcome.to_dict(), "state": orchestrator.state.to_dict()}


@api_router.post("/{session_id}/build")
def build_session(request: Request, session_id: str) -> dict[str, Any]:
    """
    현재 스펙 빌드.

    동기 핸들러 (threadpool): 같은 세션 동시 요청은 BUILD_IN_FLIGHT 로 거부.
    """
    orchestrator = get_session(request, session_id)
    outcome = orchestrator.handle_build_request()
    return {"outcome": outcome.to_dict(), "state": orchestrator.state.to_dict()}


@api_router.post("/{session_id}/reset")
async def reset_session(request: Request, session_id: str) -> dict[str, Any]:
    return get_session(request, session_id).reset().to_dict()
