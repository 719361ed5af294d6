"""Tests for registry and backend source fetchers."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

import httpx

from core.errors import ConfigError, FetchFailure
from registry.backend import BackendCatalogFetcher, BackendClient, BackendTaskFetcher, unwrap_envelope
from registry.base import RawModelRecord, RegistryQuery, parse_records
from registry.factory import FetcherFactory
from registry.huggingface import HuggingFaceRegistry, RegistrySearchFetcher, RegistryTaskFetcher


def json_response(payload, status_code=200):
    request = httpx.Request("GET", "https://example.test/api/models")
    return httpx.Response(status_code, json=payload, request=request)


class TestRegistryQuery:
    def test_task_query_sorts_by_downloads(self):
        params = RegistryQuery(task="translation", limit=5).to_params()
        assert params == {"limit": 5, "pipeline_tag": "translation", "sort": "downloads"}

    def test_search_query(self):
        params = RegistryQuery(search_term="bert").to_params()
        assert params == {"limit": 10, "search": "bert"}

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            RegistryQuery(limit=0)


class TestRecords:
    def test_parse_records_ignores_extra_fields(self):
        records = parse_records("src", [{"id": "org/a", "pipeline_tag": "summarization", "sha": "abc"}])
        assert records[0].id == "org/a"
        assert records[0].is_dynamic is True

    def test_parse_records_rejects_non_list(self):
        with pytest.raises(FetchFailure):
            parse_records("src", {"models": []})

    def test_parse_records_rejects_missing_id(self):
        with pytest.raises(FetchFailure):
            parse_records("src", [{"pipeline_tag": "translation"}])

    def test_with_default_tag(self):
        untagged = RawModelRecord(id="org/a")
        tagged = RawModelRecord(id="org/b", pipeline_tag="translation")
        assert untagged.with_default_tag("summarization").pipeline_tag == "summarization"
        assert tagged.with_default_tag("summarization").pipeline_tag == "translation"


class TestHuggingFaceRegistry:
    @pytest.fixture
    def registry(self):
        return HuggingFaceRegistry({"base_url": "https://example.test", "token_env": "TEST_HF_TOKEN"})

    @patch.dict("os.environ", {"TEST_HF_TOKEN": "hf_123"})
    def test_bearer_token_from_env(self):
        registry = HuggingFaceRegistry({"token_env": "TEST_HF_TOKEN"})
        assert registry.client.headers["Authorization"] == "Bearer hf_123"

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_task_fetcher_defaults_missing_tag(self, mock_get, registry):
        mock_get.return_value = json_response([
            {"id": "org/a"},
            {"id": "org/b", "pipeline_tag": "text2text-generation"},
        ])

        records = await RegistryTaskFetcher(registry, "summarization", limit=5).fetch()

        assert [r.pipeline_tag for r in records] == ["summarization", "text2text-generation"]
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["pipeline_tag"] == "summarization"
        assert kwargs["params"]["limit"] == 5

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_search_fetcher_keeps_missing_tag(self, mock_get, registry):
        mock_get.return_value = json_response([{"id": "org/a"}])

        records = await RegistrySearchFetcher(registry, "bert").fetch()

        assert records[0].pipeline_tag is None
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["search"] == "bert"

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_http_error_is_isolated(self, mock_get, registry):
        mock_get.return_value = json_response({"error": "rate limited"}, status_code=429)

        outcome = await RegistrySearchFetcher(registry, "bert").fetch_isolated()

        assert outcome.failed
        assert outcome.records == []
        assert outcome.error == "HTTP 429"
        assert outcome.source == "search:bert"

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_network_error_is_isolated(self, mock_get, registry):
        mock_get.side_effect = httpx.ConnectTimeout("timed out")

        outcome = await RegistryTaskFetcher(registry, "translation").fetch_isolated()

        assert outcome.failed
        assert "ConnectTimeout" in outcome.error

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_non_http_error_is_isolated(self, mock_get, registry):
        mock_get.side_effect = httpx.InvalidURL("bad url")

        outcome = await RegistrySearchFetcher(registry, "bert").fetch_isolated()

        assert outcome.failed
        assert outcome.error == "InvalidURL: bad url"

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_malformed_payload_is_isolated(self, mock_get, registry):
        mock_get.return_value = json_response({"unexpected": True})

        outcome = await RegistryTaskFetcher(registry, "translation").fetch_isolated()

        assert outcome.failed


class TestBackendClient:
    @pytest.fixture
    def backend(self):
        return BackendClient({"base_url": "https://backend.test/api"})

    def test_unwrap_envelope(self):
        assert unwrap_envelope("src", {"success": True, "data": [1]}) == [1]
        with pytest.raises(FetchFailure, match="boom"):
            unwrap_envelope("src", {"success": False, "error": "boom"})

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_catalog_fetcher(self, mock_get, backend):
        mock_get.return_value = json_response({
            "success": True,
            "data": [{"id": "org/a", "name": "A", "task": "sentiment"}],
        })

        records = await BackendCatalogFetcher(backend).fetch()

        assert records[0].task == "sentiment"
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {}

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_task_fetcher_requests_dynamic_models(self, mock_get, backend):
        mock_get.return_value = json_response({"success": True, "data": [{"id": "org/a"}]})

        records = await BackendTaskFetcher(backend, "translation").fetch()

        assert records[0].pipeline_tag == "translation"
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"includeDynamic": "true", "task": "translation"}

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_unsuccessful_envelope_is_isolated(self, mock_get, backend):
        mock_get.return_value = json_response({"success": False, "error": "db down"})

        outcome = await BackendTaskFetcher(backend, "translation").fetch_isolated()

        assert outcome.failed
        assert "db down" in outcome.error


class TestFetcherFactory:
    def test_backend_load_more_fetchers(self):
        factory = FetcherFactory({"catalog": {"load_more_tasks": ["sentiment", "translation"]}})
        fetchers = factory.load_more_fetchers()
        assert [f.name for f in fetchers] == ["backend:sentiment", "backend:translation"]

    def test_registry_load_more_fetchers(self):
        factory = FetcherFactory({
            "catalog": {"load_more_source": "registry", "load_more_tasks": ["summarization"]},
            "registry": {"task_limit": 3},
        })
        fetchers = factory.load_more_fetchers()
        assert isinstance(fetchers[0], RegistryTaskFetcher)
        assert fetchers[0].limit == 3

    def test_unknown_source(self):
        factory = FetcherFactory({"catalog": {"load_more_source": "ftp"}})
        with pytest.raises(ConfigError, match="Unknown load-more source"):
            factory.load_more_fetchers()

    def test_search_fetcher_limit(self):
        factory = FetcherFactory({"registry": {"search_limit": 7}})
        fetcher = factory.search_fetcher("bert")
        assert fetcher.limit == 7
        assert fetcher.name == "search:bert"

    @pytest.mark.asyncio
    async def test_aclose_closes_created_clients(self):
        backend = Mock(spec=BackendClient)
        backend.aclose = AsyncMock()
        factory = FetcherFactory({}, backend=backend)
        await factory.aclose()
        backend.aclose.assert_awaited_once()
