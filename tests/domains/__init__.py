# tests/domains/__init__.py

"""
FastAPI 애플리케이션의 도메인별 테스트 스위트 패키지입니다.

- `test_usr_n.py`: 'usr' 도메인 (로그인, 사용자 관리)
- `test_shared_n.py`: 'shared' 도메인 (채번 카운터)
- `test_inv_n.py`: 'inv' 도메인 (품목, 재고 원장, 재고 조회)
- `test_trx_n.py`: 'trx' 도메인 (입고/출고 거래의 원자성, 문서번호)
"""

__all__ = []
