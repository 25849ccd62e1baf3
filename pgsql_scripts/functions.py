# pgsql_scripts/functions.py
from alembic_utils.pg_function import PGFunction

# 재고 이력(stock_histories)은 추가 전용입니다. 수정/삭제 시도를 DB 수준에서 거부합니다.
reject_stock_history_change_func = PGFunction(
    schema="public",
    signature="reject_stock_history_change()",
    definition="""
    RETURNS TRIGGER AS $$
    BEGIN
        RAISE EXCEPTION 'stock_histories is append-only (% on id %)', TG_OP, OLD.id
            USING ERRCODE = 'restrict_violation';
    END;
    $$ LANGUAGE plpgsql;
    """
)
