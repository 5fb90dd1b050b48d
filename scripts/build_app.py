#!/usr/bin/env python3
"""
build_app.py - 스펙 파일 → standalone .html

입력 파일 형식:
- spec JSON ({"meta": ..., "entities": ..., "views": ...})
- LLM 응답 원문 (코드 펜스, 설명 문장 포함 가능)

둘 다 정규화를 거친 뒤 validate → match → build → export.

사용법:
    # 기본 (default.yaml 의 compiler.export_dir, 없으면 ./dist)
    uv run python scripts/build_app.py specs/todo.json

    # 출력 위치/테마 지정
    uv run python scripts/build_app.py specs/todo.json --out build --theme light

    # 빌드 로그 저장
    uv run python scripts/build_app.py specs/todo.json --logs-dir logs
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.app.main import load_config  # noqa: E402
from src.app.services.normalize import parse_spec_text  # noqa: E402
from src.app.services.orchestrator import compile_spec  # noqa: E402
from src.core.artifacts import export_build  # noqa: E402
from src.core.ids import generate_spec_id  # noqa: E402
from src.core.logging import create_build_log, save_build_log  # noqa: E402
from src.core.validate import get_validation_summary, validate_spec  # noqa: E402
from src.domain.errors import CompilerError  # noqa: E402

logger = logging.getLogger("build_app")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="스펙 파일 → standalone .html",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("spec_file", type=str, help="spec JSON 또는 LLM 응답 텍스트 파일")
    parser.add_argument("--out", type=str, default=None, help="출력 디렉터리 (기본: compiler.export_dir 또는 dist)")
    parser.add_argument("--theme", type=str, default=None, help="dark | light (기본: compiler.theme)")
    parser.add_argument("--logs-dir", type=str, default=None, help="빌드 로그 저장 디렉터리")
    parser.add_argument("--config", type=str, default=None, help="설정 파일 경로 (기본: default.yaml)")

    args = parser.parse_args()

    config = load_config(Path(args.config) if args.config else None)
    compiler = config.get("compiler") or {}

    logging.basicConfig(
        level=(config.get("logging") or {}).get("level", "INFO"),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    spec_path = Path(args.spec_file)
    if not spec_path.exists():
        logger.error(f"Spec file not found: {spec_path}")
        return 1

    normalized = parse_spec_text(spec_path.read_text(encoding="utf-8"))
    if not normalized.success or normalized.spec is None:
        logger.error(f"Spec could not be parsed: {normalized.error_message}")
        return 1
    spec = normalized.spec

    validation = validate_spec(spec)
    logger.info(f"{get_validation_summary(validation)} (completeness {validation.completeness:.0%})")
    for warning in validation.warnings:
        logger.warning(f"  - [{warning.code}] {warning.message}")
    if not validation.valid:
        for error in validation.errors:
            logger.error(f"  - [{error.code}] {error.message}")
        return 1

    logs_dir = args.logs_dir or compiler.get("logs_dir")
    build_log = create_build_log(generate_spec_id(spec)) if logs_dir else None

    result = compile_spec(spec, args.theme or compiler.get("theme", "dark"), build_log=build_log)

    if build_log is not None:
        log_path = save_build_log(build_log, Path(logs_dir))
        logger.info(f"Build log: {log_path}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")
    if not result.success:
        for message in result.error_messages:
            logger.error(f"  - {message}")
        return 1

    out_dir = Path(args.out or compiler.get("export_dir") or "dist")
    try:
        html_path = export_build(result, out_dir, spec.meta.name)
    except CompilerError as e:
        logger.error(f"Export failed: {e}")
        return 1

    logger.info(f"Built {html_path} ({len(result.html)} bytes)")
    return 0


if __name__ == "__main__":
    exit(main())
