# app/core/__init__.py

"""
FastAPI 애플리케이션의 핵심 구성 요소 패키지입니다.

주요 서브모듈은 다음과 같습니다:

- `config.py`: 애플리케이션의 설정 및 환경 변수 관리 (Pydantic Settings).
- `database.py`: 데이터베이스 엔진, 세션 관리 (SQLModel 및 AsyncSQLAlchemy).
- `crud_base.py`: 공통 CRUD 기본 클래스와 커밋 오류 변환.
- `exceptions.py`: 도메인 예외 계층 (코드와 HTTP 상태 포함).
- `security.py`: 사용자 인증, 권한 부여, 비밀번호 해싱 등 보안 관련 유틸리티.
- `dependencies.py`: FastAPI 의존성 주입에서 사용하는 공통 의존성과 페이지 파라미터.
- `tasks.py`: 공통 ARQ 작업 (DB 헬스 체크).
"""

# 패키지 메타데이터 (선택 사항)
__title__ = "Warehouse Core"
__description__ = "Core components for the warehouse inventory FastAPI application."
__version__ = "0.1.0"
__all__ = []  # 'from app.core import *' 시 내보낼 이름 목록. 일반적으로 비워둡니다.
