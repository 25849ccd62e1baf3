# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

'usr' 도메인은 로그인 계정, 역할(UserRole), 그리고 인증(JWT 발급)을 담당합니다.

주요 서브모듈:
- `models.py`: users 테이블에 매핑되는 SQLModel 정의.
- `schemas.py`: 사용자/토큰 요청 및 응답 스키마.
- `crud.py`: 사용자 생성 및 인증 로직.
- `routers.py`: 로그인, 내 정보, 사용자 관리 엔드포인트.
"""

__title__ = "Warehouse User Domain"
__description__ = "Manages user accounts and handles authentication."
__version__ = "0.1.0"
__all__ = []
