"""
Build Routes: 스펙 → standalone HTML.

- POST /api/build → BuildResult (본문: {"spec", "theme"?, "references"?})
- POST /api/build/export → 최종 html 첨부 파일 (export_dir 설정 시 디스크에도 저장)
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import Response

from src.app.routes.spec import get_theme, parse_spec_payload
from src.app.services.orchestrator import compile_spec
from src.core.artifacts import export_build
from src.core.ids import sanitize_for_id
from src.domain.constants import EXPORT_HTML_SUFFIX, get_mime_type
from src.domain.errors import CompilerError, ErrorCodes
from src.domain.schemas import BuildResult, PatternReference, Specification
from src.render.builder import build

logger = logging.getLogger(__name__)

api_router = APIRouter()


def _run_build(request: Request, payload: dict[str, Any], spec: Specification) -> BuildResult:
    references = payload.get("references")

    # 명시적 레퍼런스가 있으면 라우터를 거치지 않음
    if isinstance(references, list):
        try:
            refs = [PatternReference.from_dict(r) for r in references]
        except (AttributeError, TypeError, ValueError) as e:
            raise HTTPException(
                status_code=400,
                detail={"code": ErrorCodes.PARSE_ERROR, "message": f"Malformed references: {e}"},
            ) from e
        return build(spec, refs)

    return compile_spec(spec, get_theme(request, payload.get("theme")))


@api_router.post("")
async def build_app(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """
    빌드 실행.

    검증 실패/구조적 실패도 200 (success=False + errors).
    """
    spec = parse_spec_payload(payload.get("spec"))
    return _run_build(request, payload, spec).to_dict()


@api_router.post("/export")
async def export_app(request: Request, payload: dict[str, Any] = Body(...)) -> Response:
    """
    빌드 후 html 다운로드.

    Raises:
        HTTPException: 400 BUILD_FAILED, 409 EXPORT_LOCK_TIMEOUT
    """
    spec = parse_spec_payload(payload.get("spec"))
    result = _run_build(request, payload, spec)
    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={
                "code": ErrorCodes.BUILD_FAILED,
                "message": "; ".join(result.error_messages) or "Build failed",
            },
        )

    name = spec.meta.name or "app"
    filename = f"{sanitize_for_id(name, max_length=40)}{EXPORT_HTML_SUFFIX}"

    compiler = request.app.state.config.get("compiler") or {}
    export_dir = compiler.get("export_dir")
    if export_dir:
        try:
            export_build(result, Path(export_dir), name)
            logger.info(f"Exported {filename} to {export_dir}")
        except CompilerError as e:
            status = 409 if e.code == ErrorCodes.EXPORT_LOCK_TIMEOUT else 400
            raise HTTPException(status_code=status, detail={"code": e.code, "message": str(e)}) from e

    return Response(
        content=result.html,
        media_type=get_mime_type(filename),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
