"""Tests for configuration resolution."""

from __future__ import annotations

import pytest

from unified_store._config import BackendDescriptor, bool_option, require_option, resolve_config
from unified_store._errors import BackendInitError, ConfigError


class TestResolveConfig:
    def test_flat_string_object(self) -> None:
        assert resolve_config({"bucket": "my-bucket", "region": "eu-west-1"}) == {
            "bucket": "my-bucket",
            "region": "eu-west-1",
        }

    def test_empty_object(self) -> None:
        assert resolve_config({}) == {}

    def test_json_text(self) -> None:
        assert resolve_config('{"root": "/tmp/x"}') == {"root": "/tmp/x"}

    def test_json_bytes(self) -> None:
        assert resolve_config(b'{"root": "/tmp/x"}') == {"root": "/tmp/x"}

    @pytest.mark.parametrize("value", [5, 1.5, True, None, ["a"], {"nested": "x"}])
    def test_non_string_value_rejected(self, value: object) -> None:
        with pytest.raises(ConfigError, match="value for key 'k' is not a string"):
            resolve_config({"k": value})

    def test_numbers_are_not_coerced(self) -> None:
        with pytest.raises(ConfigError):
            resolve_config('{"port": 22}')

    @pytest.mark.parametrize("value", [None, [], ["a", "b"], 3, "[1, 2]", '"text"', "null"])
    def test_non_object_root_rejected(self, value: object) -> None:
        with pytest.raises(ConfigError, match="root is not an object"):
            resolve_config(value)  # type: ignore[arg-type]

    def test_invalid_json(self) -> None:
        with pytest.raises(ConfigError, match="invalid JSON"):
            resolve_config("{not json")

    def test_result_is_a_copy(self) -> None:
        source = {"a": "b"}
        result = resolve_config(source)
        result["a"] = "changed"
        assert source == {"a": "b"}


class TestBackendDescriptor:
    def test_resolve(self) -> None:
        d = BackendDescriptor.resolve("memory", {"root": "x"})
        assert d == BackendDescriptor(scheme="memory", options={"root": "x"})

    def test_resolve_rejects_bad_config(self) -> None:
        with pytest.raises(ConfigError):
            BackendDescriptor.resolve("memory", {"root": 1})

    def test_frozen(self) -> None:
        d = BackendDescriptor(scheme="fs")
        with pytest.raises(AttributeError):
            d.scheme = "s3"  # type: ignore[misc]


class TestOptionHelpers:
    def test_require_option(self) -> None:
        assert require_option({"bucket": "b"}, "bucket", scheme="s3") == "b"

    @pytest.mark.parametrize("options", [{}, {"bucket": ""}, {"bucket": "   "}])
    def test_require_option_missing(self, options: dict[str, str]) -> None:
        with pytest.raises(BackendInitError, match="bucket is required"):
            require_option(options, "bucket", scheme="s3")

    @pytest.mark.parametrize(
        ("raw", "expected"), [("true", True), ("TRUE", True), (" false ", False), ("False", False)]
    )
    def test_bool_option(self, raw: str, expected: bool) -> None:
        assert bool_option({"anonymous": raw}, "anonymous", scheme="s3") is expected

    def test_bool_option_default(self) -> None:
        assert bool_option({}, "anonymous", scheme="s3", default=True) is True

    @pytest.mark.parametrize("raw", ["maybe", "1", "yes", "on", ""])
    def test_bool_option_malformed(self, raw: str) -> None:
        with pytest.raises(BackendInitError, match="must be 'true' or 'false'"):
            bool_option({"anonymous": raw}, "anonymous", scheme="s3")
