# app/domains/trx/__init__.py

"""
FastAPI 애플리케이션의 'trx' 도메인 패키지입니다.

'trx' 도메인은 입고(매입, Purchase)와 출고(판매, Sale) 거래 문서를 관리합니다.
거래 1건(헤더 + N개 라인)의 생성은 재고 증감 및 재고 이력 기록과 함께
하나의 트랜잭션으로 처리되며, 중간에 실패하면 전부 롤백됩니다.

주요 서브모듈:
- `models.py`: purchases, purchase_lines, sales, sale_lines 테이블 SQLModel 정의.
- `schemas.py`: 거래 생성 요청 및 헤더 집계(라인 포함) 응답 스키마.
- `crud.py`: 거래 생성 오케스트레이션, 문서번호 채번, 조회.
- `routers.py`: 입고/출고 엔드포인트.
"""

__title__ = "Warehouse Transaction Domain"
__description__ = "Purchases and sales that move stock atomically."
__version__ = "0.1.0"
__all__ = []
