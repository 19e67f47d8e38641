"""Tests for DataSourceResolver: lookup paths, status, permission and publish checks."""

import pytest

from metaquery.datasources.exceptions import (
    DataSourceNotPublished,
    PermissionDenied,
    RemoteServiceError,
    SourceStatusError,
)
from metaquery.datasources.models import DataSourceReference, DsInfoResponse

from conftest import MYSQL_PARAMS


class TestLookupPaths:
    def test_by_name_queries_directory_with_system_and_env(self, resolver, directory):
        directory.add("mysql_demo@env-7", "mysql", "alice", {"host": "env7-host"})

        resolved = resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE", "env-7"), "alice")

        assert resolved.parameters == {"host": "env7-host"}
        request = directory.requests[-1]
        assert (request.id, request.name, request.system, request.env_id) == (None, "mysql_demo", "IDE", "env-7")

    def test_by_id_sends_null_name(self, resolver, directory):
        resolved = resolver.resolve(DataSourceReference.by_id("42", "IDE"), "alice")

        assert resolved.type == "mysql"
        request = directory.requests[-1]
        assert (request.id, request.name, request.system) == ("42", None, "IDE")

    def test_parameters_are_passed_through_unchanged(self, resolver):
        resolved = resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE"), "alice")

        assert resolved.parameters == MYSQL_PARAMS
        assert resolved.creator == "alice"
        assert resolved.use_default is False

    def test_default_source_short_circuits_directory(self, resolver, directory):
        resolved = resolver.resolve(DataSourceReference.by_name("sandbox_hive", "IDE"), "alice")

        assert resolved.use_default is True
        assert resolved.type == "hive"
        assert resolved.parameters == {}
        assert directory.requests == []

    def test_default_source_still_requires_permission(self, resolver):
        with pytest.raises(PermissionDenied):
            resolver.resolve(DataSourceReference.by_name("sandbox_hive", "IDE"), "bob")


class TestRemoteFailures:
    def test_directory_exception_becomes_remote_service_error(self, resolver, directory):
        directory.error = ConnectionError("connection refused")

        with pytest.raises(RemoteServiceError) as exc_info:
            resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE"), "alice")

        assert exc_info.value.status_code == 502
        assert exc_info.value.code == "REMOTE_SERVICE_ERROR"

    @pytest.mark.parametrize("raw", [None, "ok", ["mysql"], {"dsType": "mysql"}, {"status": "maybe"}])
    def test_unexpected_shape_becomes_remote_service_error(self, resolver, directory, raw):
        directory.records["weird"] = raw

        with pytest.raises(RemoteServiceError) as exc_info:
            resolver.resolve(DataSourceReference.by_name("weird", "IDE"), "alice")

        assert not isinstance(exc_info.value, SourceStatusError)

    def test_failed_status_carries_remote_message(self, resolver):
        with pytest.raises(SourceStatusError) as exc_info:
            resolver.resolve(DataSourceReference.by_name("missing", "IDE"), "alice")

        assert exc_info.value.remote_message == "data source missing not found"
        assert "data source missing not found" in exc_info.value.message
        assert isinstance(exc_info.value, RemoteServiceError)

    def test_typed_response_is_accepted(self, resolver, directory):
        directory.records["typed"] = DsInfoResponse(status=True, ds_type="kafka", creator="alice", params={"uris": "k:1"})

        resolved = resolver.resolve(DataSourceReference.by_name("typed", "IDE"), "alice")

        assert resolved.type == "kafka"


class TestAuthorization:
    def test_other_user_is_denied_even_with_params(self, resolver):
        with pytest.raises(PermissionDenied) as exc_info:
            resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE"), "bob")

        assert exc_info.value.status_code == 403

    def test_creator_match_is_case_sensitive(self, resolver):
        with pytest.raises(PermissionDenied):
            resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE"), "Alice")

    def test_administrator_may_read_any_source(self, resolver):
        resolved = resolver.resolve(DataSourceReference.by_name("mysql_demo", "IDE"), "hadoop")

        assert resolved.creator == "alice"

    def test_blank_creator_only_admin(self, resolver, directory):
        directory.add("orphan", "mysql", "", dict(MYSQL_PARAMS))

        with pytest.raises(PermissionDenied):
            resolver.resolve(DataSourceReference.by_name("orphan", "IDE"), "")
        assert resolver.resolve(DataSourceReference.by_name("orphan", "IDE"), "hadoop").type == "mysql"

    def test_permission_checked_before_publish_state(self, resolver):
        with pytest.raises(PermissionDenied):
            resolver.resolve(DataSourceReference.by_name("draft", "IDE"), "bob")


class TestPublished:
    def test_empty_params_not_published(self, resolver):
        with pytest.raises(DataSourceNotPublished) as exc_info:
            resolver.resolve(DataSourceReference.by_name("draft", "IDE"), "alice")

        assert exc_info.value.code == "DS_NOT_PUBLISHED"

    def test_empty_params_not_published_by_id(self, resolver, directory):
        directory.add("7", "mysql", "alice", {})

        with pytest.raises(DataSourceNotPublished):
            resolver.resolve(DataSourceReference.by_id("7", "IDE"), "hadoop")

    def test_null_params_treated_as_empty(self, resolver, directory):
        directory.records["nulls"] = {"status": True, "dsType": "mysql", "creator": "alice", "params": None}

        with pytest.raises(DataSourceNotPublished):
            resolver.resolve(DataSourceReference.by_name("nulls", "IDE"), "alice")


class TestReference:
    def test_requires_exactly_one_identity(self):
        with pytest.raises(ValueError):
            DataSourceReference(system="IDE")
        with pytest.raises(ValueError):
            DataSourceReference(system="IDE", id="1", name="x")

    def test_is_immutable(self):
        ref = DataSourceReference.by_name("x", "IDE")
        with pytest.raises(AttributeError):
            ref.name = "y"
