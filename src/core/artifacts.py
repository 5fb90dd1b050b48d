"""
Artifact 저장: 원자적 쓰기 + 빌드 결과 export

규칙:
- 원자적 쓰기: temp → rename + fsync
- export는 출력 디렉터리 단위 파일 락 (filelock) 안에서 수행
- 외부로 내보내는 산출물은 최종 html 하나 + manifest.json
"""

import json
import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from src.core.hashing import compute_artifact_hash
from src.core.ids import sanitize_for_id
from src.domain.constants import (
    EXPORT_HTML_SUFFIX,
    EXPORT_LOCK_TIMEOUT,
    EXPORT_MANIFEST_FILENAME,
)
from src.domain.errors import CompilerError, ErrorCodes
from src.domain.schemas import BuildResult

logger = logging.getLogger(__name__)

EXPORT_LOCK_FILENAME = ".export.lock"

# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    Args:
        dir_path: fsync할 디렉토리 경로
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_text(path: Path, content: str) -> None:
    """
    원자적 텍스트 쓰기.

    동작:
    - 중간 상태 없음: temp → rename
    - fsync 실패 시 경고 남기고 계속 진행
    - 실패 시 temp 파일 삭제, 기존 파일 보존

    Args:
        path: 저장할 파일 경로
        content: 파일 내용
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            f.write(content)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


def atomic_write_json(path: Path, data: dict) -> None:
    """
    원자적 JSON 쓰기 (indent=2, ensure_ascii=False).

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False))


# =============================================================================
# Export
# =============================================================================


@contextmanager
def export_lock(out_dir: Path, timeout: float = EXPORT_LOCK_TIMEOUT) -> Generator[None, None, None]:
    """
    출력 디렉터리 락.

    Raises:
        CompilerError: EXPORT_LOCK_TIMEOUT
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    lock = FileLock(out_dir / EXPORT_LOCK_FILENAME, timeout=timeout)

    try:
        lock.acquire()
    except Timeout as e:
        raise CompilerError(
            ErrorCodes.EXPORT_LOCK_TIMEOUT,
            out_dir=str(out_dir),
            timeout=timeout,
        ) from e

    try:
        yield
    finally:
        lock.release()


def export_build(
    result: BuildResult,
    out_dir: Path,
    name: str,
    timeout: float = EXPORT_LOCK_TIMEOUT,
) -> Path:
    """
    빌드 결과를 standalone .html 파일로 내보내기.

    생성 파일:
    - {slug}.html: 최종 문서
    - manifest.json: 빌드 매니페스트 + artifact_hash

    Args:
        result: 성공한 BuildResult
        out_dir: 출력 디렉터리
        name: 앱 이름 (파일명 slug 생성용)
        timeout: 락 대기 시간 (초)

    Returns:
        생성된 html 파일 경로

    Raises:
        CompilerError: EXPORT_FAILED (실패한 빌드), EXPORT_LOCK_TIMEOUT
    """
    if not result.success or not result.html:
        raise CompilerError(
            ErrorCodes.EXPORT_FAILED,
            reason="build did not succeed",
            errors=result.error_messages,
        )

    slug = sanitize_for_id(name, max_length=40)
    html_path = out_dir / f"{slug}{EXPORT_HTML_SUFFIX}"

    manifest = result.manifest.to_dict() if result.manifest else {}
    manifest["file"] = html_path.name
    manifest["artifactHash"] = compute_artifact_hash(result.html)

    with export_lock(out_dir, timeout=timeout):
        atomic_write_text(html_path, result.html)
        atomic_write_json(out_dir / EXPORT_MANIFEST_FILENAME, manifest)

    logger.info(f"Exported build to {html_path}")
    return html_path
