"""
Domain Constants: 컴파일러 전역 상수.

스펙 데이터 모델의 허용 값, 정규화 기본값, 패턴 우선순위 테이블,
completeness 가중치 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Specification Enums (허용 값 - 순서 고정)
# =============================================================================

PROPERTY_TYPES = ("string", "number", "boolean", "date", "enum")
RELATIONSHIP_TYPES = ("one-to-one", "one-to-many", "many-to-many")
VIEW_TYPES = ("list", "form", "detail", "dashboard")
ACTION_TRIGGERS = ("button", "form_submit", "auto")

# 알 수 없는 값 → 강제 변환 대상
DEFAULT_PROPERTY_TYPE = "string"
DEFAULT_RELATIONSHIP_TYPE = "one-to-many"
DEFAULT_VIEW_TYPE = "list"
DEFAULT_ACTION_TRIGGER = "button"

# =============================================================================
# Normalization Defaults (누락 시 기본값)
# =============================================================================

DEFAULT_SPEC_VERSION = "1.0.0"
DEFAULT_APP_NAME = "Untitled App"
DEFAULT_PROPERTY_NAME = "unnamed"

# 어시스턴트 응답 타입
ASSISTANT_TURN_TYPES = ("question", "spec_update", "spec_complete")
DEFAULT_CONFIDENCE = 0.5
FALLBACK_QUESTION = (
    "I need more information. What kind of app would you like to build?"
)

# =============================================================================
# Pattern Library (닫힌 집합 - 런타임 추가 불가)
# =============================================================================

PATTERN_IDS = (
    "style-base",
    "app-core",
    "app-shell",
    "navigation",
    "entity-card",
    "input-text",
    "input-checkbox",
    "input-date",
    "input-select",
    "view-list",
    "view-form",
    "view-detail",
    "action-button",
    "action-delete",
)

PATTERN_CATEGORIES = ("layout", "entity", "view", "action", "utility")

SHELL_PATTERN_ID = "app-shell"
GLOBAL_TARGET_ID = "global"

# 의존성 우선순위 (낮을수록 먼저 렌더)
PATTERN_PRIORITY = {
    "style-base": 0,
    "state-manager": 1,
    "app-core": 1,
    "app-shell": 2,
    "navigation": 3,
    "entity-card": 4,
    "input-text": 5,
    "input-checkbox": 5,
    "input-date": 5,
    "input-select": 5,
    "view-list": 6,
    "view-form": 6,
    "view-detail": 6,
    "action-button": 7,
    "action-delete": 7,
}
UNLISTED_PATTERN_PRIORITY = 10

# property.type → 입력 위젯 패턴
INPUT_PATTERN_BY_TYPE = {
    "boolean": "input-checkbox",
    "date": "input-date",
    "enum": "input-select",
}
DEFAULT_INPUT_PATTERN = "input-text"

THEMES = ("dark", "light")
DEFAULT_THEME = "dark"

# =============================================================================
# Completeness Weights
# =============================================================================
# base 50% + entity quality 30% + view quality 10% + pattern hints 10%

WEIGHT_NAME = 0.1
WEIGHT_DESCRIPTION = 0.05
WEIGHT_ENTITIES = 0.15
WEIGHT_VIEWS = 0.1
WEIGHT_ACTIONS = 0.1

WEIGHT_ENTITY_QUALITY = 0.3
ENTITY_POINTS_NAME = 0.3
ENTITY_POINTS_PROPERTIES = 0.4
ENTITY_POINTS_TWO_PROPERTIES = 0.2
ENTITY_POINTS_REQUIRED = 0.1

WEIGHT_VIEW_QUALITY = 0.1
VIEW_POINTS_NAME = 0.5
VIEW_POINTS_ENTITY = 0.5

WEIGHT_PATTERN_HINTS = 0.1
PATTERN_HINTS_SATURATION = 5

# =============================================================================
# Build / Export
# =============================================================================

SPEC_ID_PREFIX = "SPEC-"
BUILD_ID_PREFIX = "BUILD-"

DEFAULT_MAX_ERROR_MESSAGES = 3

EXPORT_MANIFEST_FILENAME = "manifest.json"
EXPORT_HTML_SUFFIX = ".html"
EXPORT_LOCK_TIMEOUT = 10.0

MIME_TYPES = {
    ".html": "text/html",
    ".json": "application/json",
    ".yaml": "application/x-yaml",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    import os

    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")
