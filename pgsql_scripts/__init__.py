# pgsql_scripts/__init__.py
"""
alembic_utils 로 관리하는 PostgreSQL 전용 객체(함수, 트리거) 패키지입니다.

주요 파일:
- `functions.py`: pgsql 함수 정의
- `triggers.py`: pgsql trigger 정의

migrations/env.py 가 all_db_objects 를 register_entities() 에 넘겨
autogenerate 비교 대상에 포함시킵니다. SQLite 에는 적용되지 않습니다.
"""

__title__ = "Warehouse PostgreSQL scripts"
__description__ = "PostgreSQL functions and triggers managed by alembic_utils."
__version__ = "0.1.0"
__all__ = ["all_db_objects"]

import pkgutil
import importlib
import inspect

from alembic_utils.replaceable_entity import ReplaceableEntity

# Alembic과 Pytest에서 공통으로 사용할 객체 리스트 (아래 자동 탐색으로 채워짐)
all_db_objects = []

# --- 자동 탐색 로직 ---
# 패키지 안의 모든 모듈을 임포트하고, ReplaceableEntity(PGFunction, PGTrigger 등)
# 인스턴스를 찾아 all_db_objects 에 추가합니다.
for loader, module_name, is_pkg in pkgutil.iter_modules(__path__):
    module = importlib.import_module(f".{module_name}", __package__)
    for name, obj in inspect.getmembers(module):
        if isinstance(obj, ReplaceableEntity):
            all_db_objects.append(obj)
