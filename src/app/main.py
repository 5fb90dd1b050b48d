"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from fastapi import FastAPI

# Routes
from src.app.routes import build, sessions, spec
from src.patterns.registry import get_default_registry

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = Path(__file__).parent.parent.parent / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 패턴 라이브러리 1회 로드, 세션 저장소 초기화
    종료 시: 세션 폐기
    """
    # Startup
    app.state.config = load_config()
    level = (app.state.config.get("logging") or {}).get("level", "INFO")
    logging.getLogger("src").setLevel(level)

    registry = get_default_registry()
    logger.info(f"Pattern library loaded: {len(registry.ids())} patterns")

    app.state.sessions = {}

    yield

    # Shutdown
    app.state.sessions.clear()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="App Spec Compiler",
    description="대화로 만든 앱 스펙 → 단일 HTML 앱",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(spec.api_router, prefix="/api/spec", tags=["Spec API"])
app.include_router(spec.patterns_router, prefix="/api/patterns", tags=["Patterns API"])
app.include_router(build.api_router, prefix="/api/build", tags=["Build API"])
app.include_router(sessions.api_router, prefix="/api/sessions", tags=["Sessions API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    """엔드포인트 안내."""
    return {
        "message": "App Spec Compiler",
        "endpoints": {
            "spec": "/api/spec",
            "patterns": "/api/patterns",
            "build": "/api/build",
            "sessions": "/api/sessions",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
