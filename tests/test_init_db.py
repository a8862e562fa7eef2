import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from studyhub.db import init_db
from studyhub.db.database import Base, engine

TABLES = {"users", "groups", "group_members", "join_requests", "group_messages", "group_files"}


def test_init_creates_missing_tables_once():
    Base.metadata.drop_all(bind=engine)

    assert set(init_db.init()) == TABLES
    assert TABLES <= set(inspect(engine).get_table_names())
    assert init_db.init() == []


def test_init_retries_concurrent_ddl(monkeypatch):
    real_create_all = Base.metadata.create_all
    calls = []
    sleeps = []

    def flaky_create_all(**kwargs):
        calls.append(kwargs)
        if len(calls) == 1:
            raise OperationalError("CREATE TABLE", {}, Exception(1684, "concurrent DDL"))
        real_create_all(**kwargs)

    monkeypatch.setattr(Base.metadata, "create_all", flaky_create_all)
    monkeypatch.setattr(init_db.time, "sleep", sleeps.append)

    init_db.init(attempts=3, backoff=0.5)

    assert len(calls) == 2
    assert sleeps == [0.5]


def test_init_gives_up_after_last_attempt(monkeypatch):
    def always_busy(**kwargs):
        raise OperationalError("CREATE TABLE", {}, Exception(1684, "concurrent DDL"))

    sleeps = []
    monkeypatch.setattr(Base.metadata, "create_all", always_busy)
    monkeypatch.setattr(init_db.time, "sleep", sleeps.append)

    with pytest.raises(OperationalError):
        init_db.init(attempts=3, backoff=1)

    assert sleeps == [1, 2]


def test_other_errors_are_not_retried(monkeypatch):
    calls = []

    def broken(**kwargs):
        calls.append(kwargs)
        raise OperationalError("CREATE TABLE", {}, Exception(1045, "Access denied"))

    monkeypatch.setattr(Base.metadata, "create_all", broken)
    monkeypatch.setattr(init_db.time, "sleep", lambda _: pytest.fail("should not sleep"))

    with pytest.raises(OperationalError):
        init_db.init()

    assert len(calls) == 1
