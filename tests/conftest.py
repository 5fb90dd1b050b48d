"""
Pytest fixtures for the compiler tests.

테스트 구성:
- 최소 유효 스펙 (Todo), 여러 뷰 타입을 쓰는 전체 스펙, 검증 실패 스펙 분리
"""

import json
from pathlib import Path

import pytest
import yaml

from src.app.services.normalize import normalize_spec
from src.domain.schemas import Specification

FIXED_NOW = "2026-01-15T09:00:00+00:00"

# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config(tmp_path: Path) -> dict:
    """테스트용 설정 (빌드 로그 저장 포함)."""
    return {
        "compiler": {
            "theme": "dark",
            "max_error_messages": 2,
            "logs_dir": str(tmp_path / "logs"),
            "export_dir": str(tmp_path / "dist"),
        },
    }


# =============================================================================
# Spec Fixtures
# =============================================================================

@pytest.fixture
def todo_spec_dict() -> dict:
    """최소 유효 스펙: 엔티티 1, 리스트 뷰 1."""
    return {
        "version": "1.0.0",
        "meta": {"name": "Todo", "description": "", "createdAt": FIXED_NOW},
        "entities": [
            {
                "id": "task",
                "name": "Task",
                "properties": [{"name": "title", "type": "string", "required": True}],
                "relationships": [],
            }
        ],
        "views": [{"id": "task-list", "name": "Tasks", "type": "list", "entity": "task"}],
        "actions": [],
        "patterns": [],
    }


@pytest.fixture
def todo_spec(todo_spec_dict: dict) -> Specification:
    return Specification.from_dict(todo_spec_dict)


@pytest.fixture
def full_spec_dict() -> dict:
    """모든 뷰 타입 + 입력 위젯 타입 + 액션을 포함한 스펙."""
    return {
        "version": "1.0.0",
        "meta": {
            "name": "Recipe Box",
            "description": "Keep track of recipes and ingredients",
            "createdAt": FIXED_NOW,
        },
        "entities": [
            {
                "id": "recipe",
                "name": "Recipe",
                "properties": [
                    {"name": "title", "type": "string", "required": True},
                    {"name": "servings", "type": "number"},
                    {"name": "vegan", "type": "boolean"},
                    {"name": "cookedOn", "type": "date"},
                    {"name": "course", "type": "enum", "options": ["Starter", "Main", "Dessert"]},
                ],
                "relationships": [{"targetEntity": "ingredient", "type": "one-to-many"}],
            },
            {
                "id": "ingredient",
                "name": "Ingredient",
                "properties": [
                    {"name": "name", "type": "string", "required": True},
                    {"name": "quantity", "type": "string"},
                ],
                "relationships": [],
            },
        ],
        "views": [
            {"id": "recipe-list", "name": "Recipes", "type": "list", "entity": "recipe"},
            {"id": "recipe-form", "name": "New Recipe", "type": "form", "entity": "recipe"},
            {"id": "recipe-detail", "name": "Recipe", "type": "detail", "entity": "recipe"},
            {"id": "overview", "name": "Overview", "type": "dashboard", "entity": "ingredient"},
        ],
        "actions": [
            {"id": "clear", "name": "Clear Recipes", "trigger": "button", "logic": "remove all"},
        ],
        "patterns": ["view-list", "view-form"],
    }


@pytest.fixture
def full_spec(full_spec_dict: dict) -> Specification:
    return Specification.from_dict(full_spec_dict)


@pytest.fixture
def invalid_spec() -> Specification:
    """속성 없는 엔티티 (NO_PROPERTIES)."""
    return Specification.from_dict({
        "meta": {"name": "Broken"},
        "entities": [{"id": "e1", "name": "E", "properties": []}],
        "views": [{"id": "v1", "name": "V", "type": "list", "entity": "e1"}],
        "actions": [],
    })


@pytest.fixture
def todo_llm_text(todo_spec_dict: dict) -> str:
    """코드 펜스로 감싼 LLM spec_update 응답."""
    envelope = {"type": "spec_update", "spec": todo_spec_dict, "confidence": 0.7}
    return "```json\n" + json.dumps(envelope, indent=2) + "\n```"


@pytest.fixture
def normalize():
    """createdAt 고정 normalize_spec."""
    def _normalize(raw):
        return normalize_spec(raw, now=FIXED_NOW)
    return _normalize
