# app/core/exceptions.py

"""
도메인 전반에서 사용하는 예외 계층을 정의하는 모듈입니다.

각 예외는 경계 계층(main.py의 예외 핸들러)이 메시지 문자열이 아닌 타입으로
구분할 수 있도록 고정된 `code`와 HTTP `status_code`를 가집니다.
"""

from typing import Any, Dict, Optional

from fastapi import status


class WarehouseError(Exception):
    """모든 도메인 예외의 기반 클래스입니다."""

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(detail)
        self.detail = detail

    def extra(self) -> Dict[str, Any]:
        """응답 본문에 함께 실을 구조화된 필드 (기본값은 없음)"""
        return {}


class ValidationError(WarehouseError):
    """요청 값이 유효하지 않음 (빈 라인 목록, 필수 필드 누락 등). 저장소 접근 전에 발생합니다."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(WarehouseError):
    """참조한 엔티티가 존재하지 않음"""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any, detail: Optional[str] = None):
        super().__init__(detail or f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def extra(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class InsufficientStockError(WarehouseError):
    """판매 수량이 현재 재고를 초과함"""

    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, item_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for item {item_id}: requested {requested}, available {available}"
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available

    def extra(self) -> Dict[str, Any]:
        return {"item_id": self.item_id, "requested": self.requested, "available": self.available}


class ConflictError(WarehouseError):
    """중복된 코드/문서번호, 또는 참조 중인 레코드의 삭제 시도"""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(WarehouseError):
    """
    저장소 I/O 실패. 트랜잭션 전체가 롤백된 뒤 발생하며,
    클라이언트에는 내부 오류로만 노출됩니다. (원인은 __cause__ 로 보존)
    """

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(detail)
