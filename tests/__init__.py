# tests/__init__.py

"""
FastAPI 애플리케이션의 테스트 스위트 패키지입니다.

테스트 코드는 `pytest`(+ pytest-asyncio) 를 기반으로 작성되며,
각 비즈니스 도메인에 따라 `domains/` 아래에 모듈별로 구성됩니다.

- `conftest.py`: 테스트용 DB 엔진/세션, 역할별 사용자, 인증 클라이언트, 품목 픽스처.
- `test_main.py`: 루트, 헬스 체크, 공통 오류 응답.
- `domains/`: usr, shared, inv, trx 도메인 테스트.
"""

__title__ = "Warehouse API Tests"
__description__ = "Test suite for the warehouse inventory FastAPI application."
__version__ = "0.1.0"
__all__ = []
