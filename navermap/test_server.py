"""
Tests for the MCP server wiring.

To run tests:
- Command line: python -m pytest navermap/test_server.py -v
"""

import asyncio
import json
import time
from unittest.mock import patch

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from navermap.config.config_module import ConfigError, Settings
from navermap.gateway.gateway_errors import ErrorKind, ErrorRecord, MapsApiError
from navermap.server import create_server, main


MAPS_TOOLS = {
    "navermap_geocode",
    "navermap_reverse_geocode",
    "navermap_get_directions",
    "navermap_get_static_map",
}


@pytest.fixture(autouse=True)
def mock_logging():
    """Mock all logging functions to prevent actual logging during tests."""
    with patch('navermap.server.log_info'):
        with patch('navermap.server.log_error'):
            yield


def tool_names(server):
    return {tool.name for tool in asyncio.run(server.list_tools())}


class TestCreateServer:
    """Test tool registration."""

    def test_maps_tools_only_without_billing_keys(self):
        server = create_server(Settings(naver_client_id="id", naver_client_secret="secret"))

        assert tool_names(server) == MAPS_TOOLS

    def test_usage_tool_with_billing_keys(self):
        settings = Settings(naver_client_id="id", naver_client_secret="secret",
                            ncloud_access_key="AK", ncloud_secret_key="SK")

        assert tool_names(create_server(settings)) == MAPS_TOOLS | {"navermap_get_usage"}


class TestToolCalls:
    """Test that tool results and failures are surfaced as text."""

    @patch('navermap.server.tools_maps.geocode')
    def test_geocode_result_is_json(self, mock_geocode):
        mock_geocode.return_value = {"total_count": 0, "results": []}
        server = create_server(Settings(naver_client_id="id", naver_client_secret="secret"))

        content = asyncio.run(server.call_tool("navermap_geocode", {"query": "Seoul"}))

        text = "".join(getattr(block, "text", "") for block in _content_blocks(content))
        assert json.loads(text) == {"total_count": 0, "results": []}

    @patch('navermap.server.tools_maps.geocode')
    def test_gateway_error_becomes_user_message(self, mock_geocode):
        mock_geocode.side_effect = MapsApiError(ErrorRecord.from_status(401, "bad key"))
        server = create_server(Settings(naver_client_id="id", naver_client_secret="secret"))

        with pytest.raises(ToolError) as exc_info:
            asyncio.run(server.call_tool("navermap_geocode", {"query": "Seoul"}))

        assert "Authentication failed" in str(exc_info.value)
        assert mock_geocode.call_args[0][1].query == "Seoul"

    def test_invalid_input_rejected(self):
        server = create_server(Settings(naver_client_id="id", naver_client_secret="secret"))

        with pytest.raises(ToolError) as exc_info:
            asyncio.run(server.call_tool("navermap_geocode", {"query": "x", "count": 500}))

        assert "count" in str(exc_info.value)
        assert "less than or equal to 100" in str(exc_info.value)

    @patch('navermap.server.tools_maps.geocode')
    def test_concurrent_calls_do_not_block_each_other(self, mock_geocode):
        def slow_geocode(client, args):
            time.sleep(0.5)
            return {"query": args.query, "results": []}

        mock_geocode.side_effect = slow_geocode
        server = create_server(Settings(naver_client_id="id", naver_client_secret="secret"))

        async def call_both():
            return await asyncio.gather(
                server.call_tool("navermap_geocode", {"query": "Seoul"}),
                server.call_tool("navermap_geocode", {"query": "Busan"}),
            )

        started = time.monotonic()
        asyncio.run(call_both())
        elapsed = time.monotonic() - started

        assert mock_geocode.call_count == 2
        assert elapsed < 0.9


class TestAdvertisedSchemas:
    """Test that tool input schemas carry the same bounds as the input models."""

    def schema_of(self, settings, tool_name):
        tools = asyncio.run(create_server(settings).list_tools())
        return next(tool.inputSchema for tool in tools if tool.name == tool_name)

    def test_geocode_schema(self):
        schema = self.schema_of(Settings(naver_client_id="id", naver_client_secret="secret"),
                                "navermap_geocode")
        properties = schema["properties"]

        assert schema["required"] == ["query"]
        assert '"ja"' in json.dumps(properties["language"])
        assert '"maximum": 100' in json.dumps(properties["count"])
        assert "pattern" in json.dumps(properties["coordinate"])

    def test_directions_and_static_map_schemas(self):
        settings = Settings(naver_client_id="id", naver_client_secret="secret")
        directions = self.schema_of(settings, "navermap_get_directions")["properties"]
        static_map = self.schema_of(settings, "navermap_get_static_map")["properties"]

        assert '"traavoidcaronly"' in json.dumps(directions["option"])
        assert '"maximum": 6' in json.dumps(directions["cartype"])
        assert '"satellite_base"' in json.dumps(static_map["maptype"])
        assert '"maximum": 1024' in json.dumps(static_map["w"])

    def test_usage_schema(self):
        settings = Settings(naver_client_id="id", naver_client_secret="secret",
                            ncloud_access_key="AK", ncloud_secret_key="SK")
        properties = self.schema_of(settings, "navermap_get_usage")["properties"]

        assert "pattern" in json.dumps(properties["month"])


def _content_blocks(content):
    # call_tool returns either a list of blocks or (blocks, structured) depending on the mcp release
    if isinstance(content, tuple):
        return content[0]
    return content


class TestMain:
    """Test process startup."""

    @patch('navermap.server.get_settings')
    def test_config_error_exits(self, mock_get_settings, capsys):
        mock_get_settings.side_effect = ConfigError("Missing keys: NAVER_CLIENT_ID.")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "NAVER_CLIENT_ID" in capsys.readouterr().err

    @patch('navermap.server.create_server')
    @patch('navermap.server.initialize_logger')
    @patch('navermap.server.get_settings')
    def test_runs_server(self, mock_get_settings, mock_init_logger, mock_create):
        mock_get_settings.return_value = Settings(naver_client_id="id", naver_client_secret="secret",
                                                  log_level="DEBUG")

        main()

        mock_init_logger.assert_called_once_with("DEBUG", log_file=None)
        mock_create.return_value.run.assert_called_once_with()
