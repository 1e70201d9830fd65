# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Prometheus Query MCP Server implementation."""

import argparse
import asyncio
import os
import sys
from awslabs.prometheus_query_mcp_server.consts import (
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_PROMETHEUS_URL,
    DEFAULT_TRANSPORT,
    ENV_LOG_LEVEL,
    ENV_MCP_HOST,
    ENV_MCP_PORT,
    ENV_MCP_TRANSPORT,
    ENV_PROMETHEUS_URL,
    SERVER_INSTRUCTIONS,
)
from awslabs.prometheus_query_mcp_server.models import PrometheusConfig
from awslabs.prometheus_query_mcp_server.prometheus_client import (
    PrometheusConnection,
    configure,
)
from awslabs.prometheus_query_mcp_server.tools import PrometheusTools
from dotenv import load_dotenv
from loguru import logger
from mcp.server.fastmcp import FastMCP
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


# Configure loguru
logger.remove()
logger.add(sys.stderr, level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL))


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Prometheus Query MCP Server')
    parser.add_argument('--url', type=str, help='Prometheus server URL')
    parser.add_argument(
        '--transport',
        choices=['stdio', 'streamable-http'],
        help='Transport mode (default: stdio, can be set via MCP_TRANSPORT env var)',
    )
    parser.add_argument('--host', type=str, help='Host to bind to for HTTP transport')
    parser.add_argument('--port', type=int, help='Port to bind to for HTTP transport')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def load_config(args) -> Dict[str, Any]:
    """Load configuration from defaults, .env file, environment variables and command line arguments."""
    # Load .env file if it exists
    load_dotenv()

    config_data: Dict[str, Any] = {
        'prometheus_url': DEFAULT_PROMETHEUS_URL,
        'transport': DEFAULT_TRANSPORT,
        'host': DEFAULT_HOST,
        'port': DEFAULT_PORT,
    }

    # Override with environment variables
    if os.getenv(ENV_PROMETHEUS_URL):
        config_data['prometheus_url'] = os.getenv(ENV_PROMETHEUS_URL)
    if os.getenv(ENV_MCP_TRANSPORT):
        config_data['transport'] = os.getenv(ENV_MCP_TRANSPORT)
    if os.getenv(ENV_MCP_HOST):
        config_data['host'] = os.getenv(ENV_MCP_HOST)
    if os.getenv(ENV_MCP_PORT):
        config_data['port'] = os.getenv(ENV_MCP_PORT)

    # Override with command line arguments
    if args.url:
        config_data['prometheus_url'] = args.url
    if args.transport:
        config_data['transport'] = args.transport
    if args.host:
        config_data['host'] = args.host
    if args.port:
        config_data['port'] = args.port
    if args.debug:
        logger.remove()
        logger.add(sys.stderr, level='DEBUG')
        logger.debug('Debug logging enabled')

    return config_data


def validate_prometheus_url(prometheus_url: str) -> bool:
    """Check that the Prometheus URL has a scheme and a hostname."""
    parsed_url = urlparse(prometheus_url)
    if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
        logger.error(f'ERROR: Invalid Prometheus URL format: {prometheus_url}')
        logger.error('URL must include scheme (http:// or https://) and hostname')
        return False
    return True


def validate_port(port: Any) -> bool:
    """Check that the port is an integer in the TCP port range."""
    try:
        number = int(port)
    except (TypeError, ValueError):
        number = 0
    if not 1 <= number <= 65535:
        logger.error(f'ERROR: Invalid MCP port: {port}')
        logger.error('Port must be an integer between 1 and 65535')
        return False
    return True


def create_mcp_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> FastMCP:
    """Create and configure the FastMCP server instance.

    Args:
        host: Host to bind to (for HTTP transport)
        port: Port to bind to (for HTTP transport)

    Returns:
        Configured FastMCP instance
    """
    mcp = FastMCP(
        'awslabs.prometheus-query-mcp-server',
        instructions=SERVER_INSTRUCTIONS,
        dependencies=[
            'requests',
            'pydantic',
            'python-dotenv',
            'loguru',
        ],
    )
    mcp.settings.host = host
    mcp.settings.port = port

    PrometheusTools().register(mcp)
    logger.info('MCP server created and tools registered')
    return mcp


async def async_main(prometheus_url: str):
    """Run the async initialization tasks."""
    logger.info(f'Using Prometheus URL: {prometheus_url}')
    await PrometheusConnection.test_connection(prometheus_url)


def main():
    """Run the MCP server with CLI argument support."""
    logger.info('Starting Prometheus Query MCP Server...')

    args = parse_arguments()
    config_data = load_config(args)

    if not validate_prometheus_url(config_data['prometheus_url']) or not validate_port(
        config_data['port']
    ):
        logger.error('Environment setup failed')
        sys.exit(1)

    configure(PrometheusConfig(prometheus_url=config_data['prometheus_url']))

    asyncio.run(async_main(config_data['prometheus_url']))

    transport = config_data['transport']
    try:
        mcp = create_mcp_server(host=config_data['host'], port=int(config_data['port']))
        logger.info(f'Starting with {transport} transport...')
        mcp.run(transport=transport)
    except Exception as e:
        logger.error(f'Error starting server with {transport} transport: {e}')
        sys.exit(1)


if __name__ == '__main__':
    main()
