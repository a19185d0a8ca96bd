"""Tests for the ORM DAO support over the Flask-SQLAlchemy session."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import bindparam, func, select, text, union, update

from daosupport.exceptions import DaoArgumentError, QueryRewriteError
from daosupport.extensions import db
from daosupport.schemas.page import Page

from entities import Author, Book


def _count_authors():
    return db.session.execute(select(func.count()).select_from(Author)).scalar()


class TestSingleWrites:
    def test_save_assigns_id(self, generic_dao):
        author = Author(name="ann", email="ann@example.com")
        generic_dao.save(author)
        assert author.id is not None
        assert generic_dao.get_by_id(Author, author.id) is author

    def test_none_is_ignored(self, generic_dao):
        generic_dao.save(None)
        generic_dao.update(None)
        generic_dao.delete(None)
        assert _count_authors() == 0

    def test_update_detached_entity(self, generic_dao, authors):
        author = authors[0]
        generic_dao.evict(author)
        author.name = "alicia"

        generic_dao.update(author)

        assert generic_dao.get_by_id(Author, author.id).name == "alicia"

    def test_update_transient_entity_with_existing_id(self, generic_dao, authors):
        author_id = authors[1].id
        db.session.expunge_all()

        generic_dao.update(Author(id=author_id, name="robert", email="bob@example.com"))

        assert generic_dao.get_by_id(Author, author_id).name == "robert"

    def test_delete_persistent_and_detached(self, generic_dao, authors):
        generic_dao.delete(authors[0])
        generic_dao.evict(authors[1])
        generic_dao.delete(authors[1])
        assert _count_authors() == 3


class TestBatchWrites:
    def test_save_by_batch(self, generic_dao):
        generic_dao.save_by_batch([Author(name=f"a{i}") for i in range(120)])
        assert _count_authors() == 120
        assert list(db.session) == []

    def test_flushes_every_interval(self, app, generic_dao, monkeypatch):
        monkeypatch.setitem(app.config, "DAO_FLUSH_INTERVAL", 2)
        session = MagicMock(wraps=db.session)
        monkeypatch.setattr(generic_dao, "get_session", lambda: session)

        generic_dao.save_by_batch([Author(name=f"a{i}") for i in range(5)])

        assert session.add.call_count == 5
        assert session.flush.call_count == 3
        assert session.expunge_all.call_count == 3

    def test_empty_batches_are_noops(self, generic_dao):
        session = MagicMock()
        generic_dao.get_session = lambda: session
        for operation in (
            generic_dao.save_by_batch,
            generic_dao.update_by_batch,
            generic_dao.delete_by_batch,
            generic_dao.evict_by_batch,
        ):
            operation([])
            operation(None)
        session.flush.assert_not_called()

    def test_update_by_batch(self, generic_dao, authors):
        generic_dao.evict(*authors)
        for author in authors:
            author.name = author.name.upper()

        generic_dao.update_by_batch(authors)

        names = generic_dao.get_list_result(select(Author.name).order_by(Author.id))
        assert names == ["ALICE", "BOB", "CAROL", "DAVE", "ERIN"]

    def test_delete_by_batch(self, generic_dao, authors):
        generic_dao.delete_by_batch(authors[:3])
        assert _count_authors() == 2

    def test_evict_detaches(self, generic_dao, authors):
        generic_dao.evict(authors[0])
        assert authors[0] not in db.session


class TestStatements:
    def test_exec_statement_text_with_collection(self, generic_dao, authors):
        ids = [authors[0].id, authors[2].id]
        count = generic_dao.exec_statement(
            "update author set name = :name where id in :ids", {"name": "x", "ids": ids},
        )
        assert count == 2
        assert generic_dao.get_list_result("select name from author where name = 'x'") == ["x", "x"]

    def test_exec_statement_constructed(self, generic_dao, authors):
        statement = (
            update(Author)
            .where(Author.id.in_(bindparam("ids", expanding=True)))
            .values(name="y")
            .execution_options(synchronize_session=False)
        )
        assert generic_dao.exec_statement(statement, {"ids": {authors[1].id}}) == 1

    def test_exec_statement_none(self, generic_dao):
        assert generic_dao.exec_statement(None) == 0

    def test_unique_result_entity(self, generic_dao, authors):
        author = generic_dao.get_unique_result(select(Author).where(Author.name == "bob"))
        assert author is authors[1]

    def test_unique_result_scalar_and_none(self, generic_dao, authors):
        assert generic_dao.get_unique_result("select count(*) from author") == 5
        assert generic_dao.get_unique_result(select(Author).where(Author.name == "zed")) is None
        assert generic_dao.get_unique_result(None) is None

    def test_unique_result_first_of_many(self, generic_dao, authors):
        author = generic_dao.get_unique_result(select(Author).order_by(Author.name.desc()))
        assert author.name == "erin"

    def test_text_mapped_to_entity_class(self, generic_dao, authors):
        author = generic_dao.get_unique_result(
            "select * from author where name = :n", {"n": "carol"}, clazz=Author,
        )
        assert author is authors[2]

    def test_multi_column_rows_stay_tuples(self, generic_dao, authors):
        rows = generic_dao.get_list_result(select(Author.id, Author.name).order_by(Author.id))
        assert rows[0] == (authors[0].id, "alice")

    def test_page_list_result(self, generic_dao, authors):
        page = generic_dao.get_page_list_result(select(Author).order_by(Author.id), 2, 2)
        assert page == authors[2:4]

    def test_page_list_result_from_string(self, generic_dao, authors):
        names = generic_dao.get_page_list_result("select name from author order by id", 1, 3)
        assert names == ["bob", "carol", "dave"]

    def test_list_result_none(self, generic_dao):
        assert generic_dao.get_list_result(None) == []

    def test_session_and_sql_share_transaction(self, generic_dao):
        generic_dao.save(Author(name="pending"))
        assert generic_dao.get_unique_result_by_sql("select count(*) from author") == 1


class TestNativeSql:
    def test_paged(self, generic_dao, authors):
        rows = generic_dao.get_page_list_result_by_sql("select name from author order by name", 1, 2)
        assert rows == ["bob", "carol"]

    def test_unpaged_with_params(self, generic_dao, authors):
        rows = generic_dao.get_page_list_result_by_sql(
            "select id, name from author where name in :names order by id",
            0,
            0,
            {"names": ["dave", "alice"]},
        )
        assert [name for _, name in rows] == ["alice", "dave"]

    def test_none(self, generic_dao):
        assert generic_dao.get_page_list_result_by_sql(None, 0, 10) == []


class TestPages:
    def test_page_result_from_select(self, generic_dao, authors):
        page = generic_dao.get_page_result(select(Author).order_by(Author.id), 0, 2)
        assert isinstance(page, Page)
        assert page.data_list == authors[:2]
        assert page.total_count == 5
        assert page.total_page == 3
        assert page.current_page == 1

    def test_page_result_grouped_select(self, generic_dao, authors):
        db.session.add_all([
            Book(title="t1", author_id=authors[0].id),
            Book(title="t2", author_id=authors[0].id),
            Book(title="t3", author_id=authors[3].id),
        ])
        db.session.flush()

        statement = (
            select(Book.author_id, func.count().label("books"))
            .group_by(Book.author_id)
            .order_by(Book.author_id)
        )
        page = generic_dao.get_page_result(statement, 0, 1)

        assert page.total_count == 2
        assert page.data_list == [(authors[0].id, 2)]

    def test_page_result_map_from_string(self, generic_dao, authors):
        result = generic_dao.get_page_result_map(
            "select name from author where name <> :n order by name", 2, 2, {"n": "bob"},
        )
        assert result[Page.DATA_LIST] == ["dave", "erin"]
        assert result[Page.TOTAL_COUNT] == 4
        assert result[Page.CURRENT_PAGE] == 2
        assert result[Page.TOTAL_PAGE] == 2

    def test_page_result_unpaged_uses_default_limit(self, generic_dao, authors):
        page = generic_dao.get_page_result(select(Author), 0, 0)
        assert len(page.data_list) == 5
        assert page.limit == 20
        assert page.total_page == 1

    def test_none_statement(self, generic_dao):
        assert generic_dao.get_page_result_map(None, 0, 10) == {}
        assert generic_dao.get_page_result(None, 0, 10) == Page()

    def test_string_without_from_cannot_be_counted(self, generic_dao):
        with pytest.raises(QueryRewriteError):
            generic_dao.fill_page_info({}, 0, 10, "select 1")

    def test_page_result_from_text_clause(self, generic_dao, authors):
        page = generic_dao.get_page_result(text("select name from author order by id"), 0, 2)
        assert page.data_list == ["alice", "bob"]
        assert page.total_count == 5
        assert page.limit == 2

    def test_page_result_from_text_clause_with_params(self, generic_dao, authors):
        statement = text("select name from author where id in :ids order by id").bindparams(
            bindparam("ids", expanding=True),
        )
        ids = [a.id for a in authors[1:]]
        page = generic_dao.get_page_result(statement, 1, 2, {"ids": ids})
        assert page.data_list == ["carol", "dave"]
        assert page.total_count == 4
        assert page.current_page == 1

    def test_page_result_from_union(self, generic_dao, authors):
        statement = union(
            select(Author.name).where(Author.id < authors[2].id),
            select(Author.name).where(Author.id > authors[2].id),
        )
        page = generic_dao.get_page_result(statement, 0, 2)
        assert page.total_count == 4
        assert len(page.data_list) == 2
        assert set(page.data_list) <= {"alice", "bob", "dave", "erin"}

    def test_unique_result_from_union(self, generic_dao, authors):
        statement = union(select(Author.name).where(Author.name == "bob"), select(Author.name))
        assert generic_dao.get_unique_result(statement) in {"alice", "bob", "carol", "dave", "erin"}

    def test_unpageable_statement_raises(self, generic_dao, authors):
        with pytest.raises(DaoArgumentError):
            generic_dao.get_page_result(update(Author).values(name="x"), 0, 2)
        with pytest.raises(DaoArgumentError):
            generic_dao.fill_page_info({}, 0, 2, update(Author).values(name="x"))

    def test_negative_start_rejected_before_querying(self, generic_dao):
        session = MagicMock()
        generic_dao.get_session = lambda: session
        with pytest.raises(DaoArgumentError, match="start must not be negative"):
            generic_dao.get_page_result(select(Author), -1, 2)
        with pytest.raises(DaoArgumentError):
            generic_dao.get_page_list_result_by_sql("select name from author", -2, 2)
        session.execute.assert_not_called()
