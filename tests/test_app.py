"""Tests for the application factory, settings and error handlers."""

from daosupport import create_app
from daosupport.config.settings import BaseConfig, get_setting
from daosupport.exceptions import DaoArgumentError, QueryRewriteError


class TestCreateApp:
    def test_testing_config(self, app):
        assert app.config["TESTING"] is True
        assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
        assert app.config["DAO_FLUSH_INTERVAL"] == 50
        assert app.config["DAO_DELETE_CHUNK_SIZE"] == 980

    def test_get_setting_reads_app_config(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "DAO_FLUSH_INTERVAL", 5)
        assert get_setting("DAO_FLUSH_INTERVAL") == 5

    def test_get_setting_falls_back_to_defaults(self, app, monkeypatch):
        monkeypatch.delitem(app.config, "DAO_DEFAULT_PAGE_LIMIT")
        assert get_setting("DAO_DEFAULT_PAGE_LIMIT") == BaseConfig.DAO_DEFAULT_PAGE_LIMIT

    def test_dao_errors_become_json(self):
        test_app = create_app("testing")

        @test_app.route("/bad-argument")
        def bad_argument():
            raise DaoArgumentError("data_list is empty")

        @test_app.route("/bad-query")
        def bad_query():
            raise QueryRewriteError("select 1")

        client = test_app.test_client()

        resp = client.get("/bad-argument")
        assert resp.status_code == 400
        assert resp.get_json()["error_code"] == "INVALID_ARGUMENT"

        resp = client.get("/bad-query")
        assert resp.status_code == 500
        assert resp.get_json()["error_code"] == "QUERY_REWRITE_ERROR"
