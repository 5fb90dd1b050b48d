"""
Build logging: build log schema, warnings

규칙:
- 경고 필수 컨텍스트: level, code, pattern_id, target_id, message
- 빌드 로그는 logs_dir가 설정된 경우에만 파일로 저장
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.artifacts import atomic_write_json
from src.core.ids import generate_build_id
from src.domain.schemas import BuildLog, BuildWarning

# =============================================================================
# Build Log Management
# =============================================================================


def create_build_log(spec_id: str) -> BuildLog:
    """
    새 BuildLog 생성.

    Args:
        spec_id: Spec ID

    Returns:
        초기화된 BuildLog
    """
    now = datetime.now(UTC).isoformat()

    return BuildLog(
        build_id=generate_build_id(),
        spec_id=spec_id,
        started_at=now,
        result="pending",
    )


def emit_warning(
    build_log: BuildLog,
    code: str,
    pattern_id: str,
    target_id: str,
    message: str,
) -> None:
    """
    경고 이벤트 기록.

    Args:
        build_log: BuildLog 인스턴스
        code: 경고 코드 (PATTERN_NOT_FOUND, TEMPLATE_RENDER_FAILED 등)
        pattern_id: 패턴 ID
        target_id: 레퍼런스 target ID
        message: 경고 메시지
    """
    build_log.warnings.append(BuildWarning(
        level="warning",
        code=code,
        pattern_id=pattern_id,
        target_id=target_id,
        message=message,
    ))


def complete_build_log(
    build_log: BuildLog,
    success: bool,
    artifact_hash: str | None = None,
    error_code: str | None = None,
    error_context: dict[str, Any] | None = None,
) -> None:
    """
    BuildLog 완료 처리.

    Args:
        build_log: BuildLog 인스턴스
        success: 성공 여부
        artifact_hash: 최종 문서 해시
        error_code: 에러 코드 (실패 시)
        error_context: 에러 컨텍스트 (실패 시)
    """
    build_log.finished_at = datetime.now(UTC).isoformat()
    build_log.result = "success" if success else "failed"
    build_log.artifact_hash = artifact_hash

    if not success:
        build_log.error_code = error_code
        build_log.error_context = error_context


def save_build_log(build_log: BuildLog, logs_dir: Path) -> Path:
    """
    BuildLog를 파일로 저장.

    Args:
        build_log: BuildLog 인스턴스
        logs_dir: logs/ 디렉터리 경로

    Returns:
        저장된 파일 경로
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"build_{build_log.build_id}.json"
    atomic_write_json(log_path, build_log.to_dict())
    return log_path


def load_build_log(log_path: Path) -> dict[str, Any]:
    """
    BuildLog 파일 로드.

    Args:
        log_path: 로그 파일 경로

    Returns:
        BuildLog 데이터 (dict)
    """
    data: dict[str, Any] = json.loads(log_path.read_text(encoding="utf-8"))
    return data


def list_build_logs(logs_dir: Path) -> list[Path]:
    """
    logs/ 디렉터리의 모든 build log 파일 목록 (최신순).
    """
    if not logs_dir.exists():
        return []

    logs = list(logs_dir.glob("build_*.json"))
    logs.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    return logs
