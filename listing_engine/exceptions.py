"""
Listing Engine Exception Classes

상품 등록 payload 조립 과정의 구조화된 에러 정의
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """에러 심각도 레벨"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ListingError(Exception):
    """
    Base exception for all listing engine errors

    Attributes:
        message: 에러 메시지
        error_code: 에러 코드
        severity: 에러 심각도
        context: 추가 컨텍스트 정보
        recoverable: 복구(재시도) 가능 여부
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.severity = severity
        self.context = context or {}
        self.recoverable = recoverable
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """에러 정보를 딕셔너리로 변환"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "recoverable": self.recoverable
        }


@dataclass(frozen=True)
class FieldError:
    """필드 단위 검증 실패 정보"""
    field: str
    message: str


class ListingValidationError(ListingError):
    """
    사용자가 수정해야 하는 입력 검증 실패 (재시도하지 않음)

    Attributes:
        errors: 필드별 에러 목록
        field: 첫 번째 실패 필드
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[List[FieldError]] = None,
        row_number: Optional[int] = None,
        **kwargs
    ):
        errors = list(errors or [])
        if not errors and field:
            errors = [FieldError(field=field, message=message)]
        context = {
            "errors": [{"field": e.field, "message": e.message} for e in errors],
            "row_number": row_number,
        }
        context.update(kwargs)
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            context=context,
            recoverable=False
        )
        self.errors = errors
        self.field = errors[0].field if errors else field
        self.row_number = row_number

    @classmethod
    def from_errors(cls, errors: List[FieldError], row_number: Optional[int] = None) -> "ListingValidationError":
        message = "; ".join(f"{e.field}: {e.message}" for e in errors)
        if row_number is not None:
            message = f"행 {row_number}: {message}"
        return cls(message, errors=errors, row_number=row_number)


class CategoryNotFoundError(ListingValidationError):
    """카테고리 경로를 리프 카테고리 ID로 변환하지 못한 경우"""

    def __init__(self, category: str, index_size: int = 0):
        super().__init__(
            f"카테고리 매핑을 찾을 수 없습니다: '{category}'. "
            "카테고리 컬럼을 숫자 ID로 변경하거나 스마트스토어의 정확한 카테고리 경로를 사용하세요.",
            field="category",
            category=category,
            index_size=index_size,
        )
        self.category = category


class CollaboratorError(ListingError):
    """
    외부 협력 시스템(카테고리/원산지 조회, 이미지 호스팅) 실패

    Attributes:
        operation: 실패한 작업 이름
        status_code: HTTP 상태 코드
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        **kwargs
    ):
        context = {
            "operation": operation,
            "status_code": status_code,
            "response_body": response_body
        }
        context.update(kwargs)
        super().__init__(
            message=message,
            error_code="COLLABORATOR_ERROR",
            severity=severity,
            context=context,
            recoverable=True
        )
        self.operation = operation
        self.status_code = status_code
        self.response_body = response_body


class TransportError(CollaboratorError):
    """마켓 상품 등록 요청 전송 실패"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)
        self.error_code = "TRANSPORT_ERROR"


class UnsupportedPlatformError(ListingError):
    """등록되지 않았거나 아직 구현되지 않은 플랫폼"""

    def __init__(self, platform: Optional[str], supported: Optional[List[str]] = None):
        supported = supported or []
        super().__init__(
            message=f"지원하지 않는 플랫폼입니다: {platform} ({', '.join(supported)})",
            error_code="UNSUPPORTED_PLATFORM",
            severity=ErrorSeverity.LOW,
            context={"platform": platform, "supported": supported},
        )
        self.platform = platform


@dataclass(frozen=True)
class DegradedModeWarning:
    """
    치명적이지 않은 품질 저하 기록

    kind 값: category_seed, category_weak_match, category_low_confidence,
    origin_heuristic, origin_placeholder_importer, enum_coerced
    """
    kind: str
    detail: str
