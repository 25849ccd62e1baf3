# app/domains/shared/__init__.py

"""
FastAPI 애플리케이션의 'shared' 도메인 패키지입니다.

여러 도메인이 공통으로 사용하는 채번 카운터(document_sequences)를 관리합니다.
품목 코드(BRG001)와 입고/출고 문서번호(BL/YYYYMMDD/001, JL/YYYYMMDD/001)는
모두 이 카운터 행을 잠근 상태에서 발급됩니다.

주요 서브모듈:
- `models.py`: document_sequences 테이블에 매핑되는 SQLModel 정의.
- `crud.py`: 잠금 기반 채번(next_value) 로직.
"""

__title__ = "Warehouse Shared Domain"
__description__ = "Locked counter rows used for item codes and document numbers."
__version__ = "0.1.0"
__all__ = []
