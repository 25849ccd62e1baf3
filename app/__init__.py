# app/__init__.py

"""
창고 재고 관리(Warehouse Inventory) FastAPI 애플리케이션의 메인 패키지입니다.

FastAPI 애플리케이션의 진입점 (main.py)과
공통 설정, 데이터베이스 연결, 보안, 예외 정의를 담는 core 서브패키지,
그리고 각 비즈니스 도메인(usr, shared, inv, trx)을 대표하는 domains 서브패키지로 구성됩니다.
"""

APP_NAME = "Warehouse Inventory API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # API 라우트의 공통 접두사 (main.py에서 적용)


# PEP 440 버전 정보 (pyproject.toml의 version과 일치시킵니다)
__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Warehouse inventory API: item catalog, stock ledger, purchases and sales."
__all__ = []
