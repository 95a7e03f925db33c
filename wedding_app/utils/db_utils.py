"""
Database helpers.
"""
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from ..extensions import db

_INSERT_BY_DIALECT = {
    'sqlite': sqlite_insert,
    'postgresql': postgresql_insert,
}


def dialect_insert(model):
    """
    INSERT construct supporting ``on_conflict_do_*`` for the bound database,
    or None when the dialect has no ON CONFLICT clause.
    """
    insert = _INSERT_BY_DIALECT.get(db.session.get_bind().dialect.name)
    return insert(model) if insert is not None else None
