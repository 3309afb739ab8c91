"""Tests for the error hierarchy and its HTTP rendering."""

import pytest

from socialfeed import errors
from socialfeed.errors import (
    BlankFieldError,
    CommentNotFoundError,
    EmailAlreadyRegisteredError,
    InvalidPaginationError,
    InvalidRatingError,
    IterationError,
    PostNotFoundError,
    SelfRatingError,
    SocialFeedError,
    UserNotFoundError,
)


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "exc,status,code",
        [
            (InvalidRatingError(6), 400, "INVALID_RATING"),
            (BlankFieldError("title"), 400, "BLANK_FIELD"),
            (InvalidPaginationError(-1, 10), 400, "INVALID_PAGINATION"),
            (SelfRatingError(1), 403, "SELF_RATING"),
            (UserNotFoundError(1), 404, "USER_NOT_FOUND"),
            (PostNotFoundError(1), 404, "POST_NOT_FOUND"),
            (CommentNotFoundError(1), 404, "COMMENT_NOT_FOUND"),
            (EmailAlreadyRegisteredError("a@b.c"), 409, "EMAIL_ALREADY_REGISTERED"),
            (IterationError("stream broke"), 500, "ITERATION_ERROR"),
        ],
    )
    def test_status_and_code(self, exc, status, code):
        assert isinstance(exc, SocialFeedError)
        assert exc.http_status == status
        assert exc.code == code

    def test_to_dict_includes_details(self):
        payload = BlankFieldError("message").to_dict()
        assert payload == {
            "code": "BLANK_FIELD",
            "message": "message must not be blank.",
            "details": {"field": "message"},
        }

    def test_to_dict_omits_empty_details(self):
        assert "details" not in IterationError("x").to_dict()


class TestServerErrors:
    async def test_unexpected_exception_is_generic_500(self, client, monkeypatch):
        async def boom(db, user_id):
            raise RuntimeError("connection string postgres://secret")

        monkeypatch.setattr("socialfeed.routers.users.get_user", boom)

        response = await client.get("/api/v1/users/1/rating")

        assert response.status_code == 500
        body = response.json()
        assert body == {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."}
        assert "secret" not in response.text

    async def test_application_500_keeps_its_code(self, client, monkeypatch):
        async def broken_stream(db, user_id, start, limit):
            raise IterationError("result iteration failed")

        monkeypatch.setattr("socialfeed.routers.timeline.get_timeline", broken_stream)

        response = await client.get("/api/v1/timeline", params={"user_id": 1})

        assert response.status_code == 500
        assert response.json()["code"] == "ITERATION_ERROR"

    async def test_server_side_errors_are_logged(self, client, monkeypatch):
        logged = []

        class RecordingLogger:
            def error(self, event, **kw):
                logged.append(event)

        async def broken_stream(db, user_id, start, limit):
            raise IterationError("result iteration failed")

        monkeypatch.setattr(errors, "log", RecordingLogger())
        monkeypatch.setattr("socialfeed.routers.timeline.get_timeline", broken_stream)

        await client.get("/api/v1/timeline", params={"user_id": 1})

        assert logged == ["request_error"]


class TestOpenApiEnvelope:
    @pytest.fixture
    async def paths(self, client):
        response = await client.get("/openapi.json")
        assert response.status_code == 200
        return response.json()["paths"]

    @staticmethod
    def _schema_ref(operation, status):
        return operation["responses"][status]["content"]["application/json"]["schema"]["$ref"]

    @pytest.mark.parametrize(
        "path,method,status",
        [
            ("/api/v1/ratings", "post", "403"),
            ("/api/v1/ratings", "post", "400"),
            ("/api/v1/users", "post", "409"),
            ("/api/v1/timeline", "get", "429"),
            ("/api/v1/posts/{post_id}", "get", "404"),
        ],
    )
    async def test_error_statuses_document_envelope(self, paths, path, method, status):
        assert self._schema_ref(paths[path][method], status).endswith("/ErrorResponse")

    async def test_validation_error_replaces_default_schema(self, paths):
        operation = paths["/api/v1/users"]["post"]

        assert self._schema_ref(operation, "422").endswith("/ErrorResponse")
