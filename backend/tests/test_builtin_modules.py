"""Tests for the built-in utility modules."""

from datetime import datetime

import httpx
import pytest

from modules.utilities import array_utils, datetime_utils, json_transform, string_utils
from modules.utilities import http_client
from workflow.catalog import ModuleCatalog, ParameterStyle
from modules.registry import register_builtin_modules


@pytest.mark.unit
class TestRegistration:
    def test_every_builtin_registered(self):
        catalog = ModuleCatalog()
        register_builtin_modules(catalog)
        for path in [
            "utilities.datetime.now",
            "utilities.datetime.addDays",
            "utilities.string-utils.capitalize",
            "utilities.string-utils.truncateWords",
            "utilities.array-utils.sum",
            "utilities.json-transform.mergeDeep",
            "utilities.http.httpRequest",
        ]:
            assert catalog.has(path), path

    def test_declared_styles(self):
        catalog = ModuleCatalog()
        register_builtin_modules(catalog)
        assert catalog.resolve("utilities.datetime.now").parameter_style == ParameterStyle.NONE
        assert catalog.resolve("utilities.http.httpRequest").parameter_style == ParameterStyle.SINGLE_OBJECT
        assert catalog.resolve("utilities.string-utils.capitalize").parameter_style == ParameterStyle.SINGLE_SCALAR
        truncate = catalog.resolve("utilities.string-utils.truncate")
        assert truncate.parameter_style == ParameterStyle.POSITIONAL
        assert truncate.parameter_names == ["str", "maxLength", "suffix"]
        assert truncate.required_parameters == ["str", "maxLength"]


@pytest.mark.unit
class TestDatetime:
    def test_now_is_iso(self):
        parsed = datetime.fromisoformat(datetime_utils.now())
        assert parsed.tzinfo is not None

    def test_add_and_sub(self):
        assert datetime_utils.add_days("2025-01-30T00:00:00Z", 3) == "2025-02-02T00:00:00+00:00"
        assert datetime_utils.sub_hours("2025-01-01T01:00:00+00:00", 2) == "2024-12-31T23:00:00+00:00"

    def test_format_date(self):
        assert datetime_utils.format_date("2025-11-01T09:05:00Z", "yyyy-MM-dd HH:mm") == "2025-11-01 09:05"

    def test_format_date_keeps_percent(self):
        assert datetime_utils.format_date("2025-11-01T00:00:00Z", "dd%") == "01%"

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            datetime_utils.to_iso("not a date")


@pytest.mark.unit
class TestStringUtils:
    @pytest.mark.parametrize(
        "func, value, expected",
        [
            (string_utils.capitalize, "hello", "Hello"),
            (string_utils.to_slug, "Hello World!", "hello-world"),
            (string_utils.to_slug, "Café au lait", "cafe-au-lait"),
            (string_utils.to_camel_case, "hello world", "helloWorld"),
            (string_utils.to_pascal_case, "hello world", "HelloWorld"),
            (string_utils.to_snake_case, "helloWorld", "hello_world"),
            (string_utils.to_kebab_case, "helloWorld", "hello-world"),
            (string_utils.strip_html, "<p>Hello &amp; bye</p>", "Hello & bye"),
            (string_utils.escape_html, "<script>", "&lt;script&gt;"),
        ],
    )
    def test_transforms(self, func, value, expected):
        assert func(value) == expected

    def test_truncate(self):
        assert string_utils.truncate("Hello World", 8) == "Hello..."
        assert string_utils.truncate("Short", 8) == "Short"

    def test_truncate_words(self):
        assert string_utils.truncate_words("Hello beautiful world", 2) == "Hello beautiful..."


@pytest.mark.unit
class TestArrayUtils:
    def test_first_and_last(self):
        assert array_utils.first([1, 2, 3]) == 1
        assert array_utils.first([1, 2, 3], 2) == [1, 2]
        assert array_utils.last([1, 2, 3], 2) == [2, 3]
        assert array_utils.last([], None) is None

    def test_unique_keeps_order(self):
        assert array_utils.unique([3, 1, 3, {"a": 1}, {"a": 1}]) == [3, 1, {"a": 1}]

    def test_chunk(self):
        assert array_utils.chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_sort_and_group(self):
        items = [{"n": "b", "g": 1}, {"n": "a", "g": 2}, {"g": 1}]
        assert [i.get("n") for i in array_utils.sort_by(items, "n")] == ["a", "b", None]
        assert [i.get("n") for i in array_utils.sort_by(items, "n", "desc")] == ["b", "a", None]
        assert set(array_utils.group_by(items, "g")) == {"1", "2"}

    def test_sum(self):
        assert array_utils.sum_values([1, 2, 3.5]) == 6.5
        with pytest.raises(ValueError):
            array_utils.sum_values([1, "2"])

    def test_non_list_rejected(self):
        with pytest.raises(ValueError, match="must be an array"):
            array_utils.first("abc")


@pytest.mark.unit
class TestJsonTransform:
    def test_get_and_set(self):
        data = {"a": {"b": [{"c": 1}]}}
        assert json_transform.get_nested_value(data, "a.b[0].c") == 1
        updated = json_transform.set_nested_value(data, "a.x.y", 2)
        assert updated["a"]["x"] == {"y": 2}
        assert "x" not in data["a"]

    def test_flatten(self):
        assert json_transform.flatten_object({"a": {"b": 1, "c": {"d": 2}}, "e": 3}) == {
            "a.b": 1,
            "a.c.d": 2,
            "e": 3,
        }

    def test_merge_deep(self):
        merged = json_transform.merge_deep({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}, "d": 4})
        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


@pytest.mark.unit
class TestHttp:
    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/file",
            "http://localhost:8000/",
            "http://10.0.0.5/",
            "http://192.168.1.1/admin",
            "http://example.com:6379/",
        ],
    )
    def test_unsafe_urls_rejected(self, url):
        with pytest.raises(ValueError):
            http_client.validate_url_safety(url)

    def test_public_url_allowed(self):
        http_client.validate_url_safety("https://api.example.com/v1/items")

    @pytest.mark.asyncio
    async def test_http_request_parses_json(self, monkeypatch):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer tok"
            return httpx.Response(200, json={"ok": True})

        transport = httpx.MockTransport(handler)
        original = httpx.AsyncClient

        monkeypatch.setattr(
            http_client.httpx,
            "AsyncClient",
            lambda *args, **kwargs: original(*args, transport=transport, **kwargs),
        )

        result = await http_client.http_request({
            "url": "https://api.example.com/items",
            "auth": {"type": "bearer", "token": "tok"},
        })
        assert result["status"] == 200
        assert result["data"] == {"ok": True}

    @pytest.mark.asyncio
    async def test_http_error_status_raises(self, monkeypatch):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        original = httpx.AsyncClient
        monkeypatch.setattr(
            http_client.httpx,
            "AsyncClient",
            lambda *args, **kwargs: original(*args, transport=transport, **kwargs),
        )

        with pytest.raises(ValueError, match="HTTP 500"):
            await http_client.http_get("https://api.example.com/items")
