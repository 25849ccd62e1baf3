# app/domains/inv/__init__.py

"""
FastAPI 애플리케이션의 'inv' 도메인 패키지입니다.

'inv' 도메인은 품목 마스터(Item)와 재고 원장(StockRecord, HistoryEntry)을 관리합니다.
재고 수량은 원장 모듈(ledger.py)의 가드된 UPDATE 를 통해서만 변경되며,
모든 변경은 변경 전/후 수량을 담은 이력 행으로 남습니다.

주요 서브모듈:
- `models.py`: items, stocks, stock_histories 테이블 SQLModel 정의.
- `schemas.py`: 요청/응답 스키마.
- `crud.py`: 품목 CRUD, 품목 코드 채번, 검색/페이지 조회.
- `ledger.py`: 재고 조회/생성/증감/이력 기록 및 정합성 검증.
- `routers.py`: 품목, 재고, 재고 이력 엔드포인트.
- `tasks.py`: 재고 원장 정합성 점검 ARQ 작업.
"""

__title__ = "Warehouse Inventory Domain"
__description__ = "Manages the item catalog and the stock ledger."
__version__ = "0.1.0"
__all__ = []
