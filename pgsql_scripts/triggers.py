# pgsql_scripts/triggers.py
from alembic_utils.pg_trigger import PGTrigger
from . import functions as pg_func

db_schema = pg_func.reject_stock_history_change_func.schema
db_func = pg_func.reject_stock_history_change_func.signature
trg_stock_histories_append_only = PGTrigger(
    schema="public",
    signature="trg_stock_histories_append_only",
    on_entity="public.stock_histories",
    is_constraint=False,
    definition=f"""
    BEFORE UPDATE OR DELETE
    ON public.stock_histories
    FOR EACH ROW
    EXECUTE FUNCTION {db_schema}.{db_func}
    """
)
