"""Unit tests for the search index client."""

from unittest.mock import Mock

import pytest
import requests
from markdown_index_sync.config import SyncConfig
from markdown_index_sync.models import (
    DropAllOperation,
    IndexOperation,
    RemoveOperation,
    SearchError,
    SearchQuery,
    SyncStatus,
)
from markdown_index_sync.sync import SearchIndexClient, classify_status

BASE_URL = "http://search.local:5678/api"


def make_response(status_code=200, text="", payload=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


@pytest.fixture
def config():
    return SyncConfig(_env_file=None, search_url=BASE_URL, search_database="blog", request_timeout_seconds=3)


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response()
    return session


@pytest.fixture
def client(config, session):
    return SearchIndexClient(config, session=session)


class TestClassifyStatus:
    """Test cases for status classification."""

    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (200, SyncStatus.OK),
            (404, SyncStatus.NOT_FOUND),
            (408, SyncStatus.TRANSIENT_FAILURE),
            (429, SyncStatus.TRANSIENT_FAILURE),
            (500, SyncStatus.TRANSIENT_FAILURE),
            (503, SyncStatus.TRANSIENT_FAILURE),
            (400, SyncStatus.FATAL_FAILURE),
            (401, SyncStatus.FATAL_FAILURE),
            (201, SyncStatus.FATAL_FAILURE),
        ],
    )
    def test_classify(self, status_code, expected):
        assert classify_status(status_code) == expected


class TestPushOperations:
    """Test cases for index, remove and drop calls."""

    def test_index_request(self, client, session):
        result = client.push_index(3, "# Hello", "notes/hello", "hello", "5d41402abc4b2a76b9719d911017c592")

        assert result.ok
        assert result.status_code == 200
        session.request.assert_called_once_with(
            "POST",
            f"{BASE_URL}/index",
            params={"database": "blog"},
            json={
                "id": 3,
                "text": "# Hello",
                "document": {
                    "path": "notes/hello",
                    "title": "hello",
                    "fingerprint": "5d41402abc4b2a76b9719d911017c592",
                },
            },
            timeout=3,
        )

    def test_remove_request(self, client, session):
        result = client.push_remove(3)

        assert result.ok
        assert result.operation == "remove"
        session.request.assert_called_once_with(
            "POST", f"{BASE_URL}/index/remove", params={"database": "blog"}, json={"id": 3}, timeout=3
        )

    def test_drop_request(self, client, session):
        result = client.drop_database()

        assert result.ok
        assert result.operation == "drop"
        session.request.assert_called_once_with(
            "GET", f"{BASE_URL}/db/drop", params={"database": "blog"}, json=None, timeout=3
        )

    def test_dispatch_routes_operations(self, client, session):
        client.dispatch(IndexOperation(record_id=1, text="t", path="p", title="p", fingerprint="f"))
        client.dispatch(RemoveOperation(record_id=1))
        client.dispatch(DropAllOperation())

        urls = [call.args[1] for call in session.request.call_args_list]
        assert urls == [f"{BASE_URL}/index", f"{BASE_URL}/index/remove", f"{BASE_URL}/db/drop"]

    def test_error_status_is_reported(self, client, session):
        session.request.return_value = make_response(status_code=400, text="bad payload")

        result = client.push_remove(1)

        assert result.status == SyncStatus.FATAL_FAILURE
        assert result.status_code == 400
        assert result.message == "bad payload"
        assert not result.ok

    def test_not_found_is_reported(self, client, session):
        session.request.return_value = make_response(status_code=404)

        assert client.push_remove(1).status == SyncStatus.NOT_FOUND

    def test_connection_error_is_transient(self, client, session):
        session.request.side_effect = requests.ConnectionError("connection refused")

        result = client.push_remove(1)

        assert result.status == SyncStatus.TRANSIENT_FAILURE
        assert result.status_code is None
        assert "connection refused" in result.message

    def test_timeout_is_transient(self, client, session):
        session.request.side_effect = requests.Timeout("read timed out")

        assert client.drop_database().status == SyncStatus.TRANSIENT_FAILURE

    def test_other_request_error_is_fatal(self, client, session):
        session.request.side_effect = requests.exceptions.InvalidURL("bad url")

        assert client.push_remove(1).status == SyncStatus.FATAL_FAILURE

    def test_dry_run_skips_network(self, config, session):
        client = SearchIndexClient(config.model_copy(update={"dry_run": True}), session=session)

        result = client.push_remove(1)

        assert result.ok
        session.request.assert_not_called()

    def test_unsupported_operation(self, client):
        with pytest.raises(TypeError):
            client.dispatch(object())

    def test_close_closes_session(self, client, session):
        client.close()

        session.close.assert_called_once()


class TestQuery:
    """Test cases for full-text queries."""

    def test_query_success(self, client, session):
        session.post.return_value = make_response(
            payload={
                "state": True,
                "message": "success",
                "data": {
                    "time": 0.5,
                    "total": 1,
                    "pageCount": 1,
                    "page": 1,
                    "limit": 10,
                    "words": ["hello"],
                    "documents": [
                        {
                            "id": 1,
                            "text": "# Hello",
                            "document": {"path": "hello", "title": "hello", "fingerprint": "abc"},
                            "score": 2,
                        }
                    ],
                },
            }
        )

        response = client.query(SearchQuery(query="hello"))

        assert response.is_success()
        assert [hit.document.path for hit in response.hits] == ["hello"]
        session.post.assert_called_once_with(
            f"{BASE_URL}/query",
            params={"database": "blog"},
            json={"query": "hello", "page": 1, "limit": 10, "order": "desc"},
            timeout=3,
        )

    def test_query_error_status(self, client, session):
        session.post.return_value = make_response(status_code=500)

        with pytest.raises(SearchError) as exc_info:
            client.query(SearchQuery(query="hello"))

        assert exc_info.value.context["status_code"] == 500

    def test_query_transport_error(self, client, session):
        session.post.side_effect = requests.ConnectionError("down")

        with pytest.raises(SearchError):
            client.query(SearchQuery(query="hello"))

    def test_query_malformed_body(self, client, session):
        session.post.return_value = make_response(payload={"unexpected": True})

        with pytest.raises(SearchError):
            client.query(SearchQuery(query="hello"))

    def test_query_non_json_body(self, client, session):
        response = make_response()
        response.json.side_effect = ValueError("not json")
        session.post.return_value = response

        with pytest.raises(SearchError):
            client.query(SearchQuery(query="hello"))
