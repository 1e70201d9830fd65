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

"""Prometheus client for making HTTP API requests."""

import asyncio
import requests
from awslabs.prometheus_query_mcp_server.consts import (
    API_VERSION_PATH,
    CONNECTION_TEST_TIMEOUT,
    DEFAULT_PROMETHEUS_URL,
    REQUEST_HEADERS,
)
from awslabs.prometheus_query_mcp_server.models import PrometheusConfig, PrometheusResponse
from loguru import logger
from pydantic import ValidationError
from typing import Dict, List, Optional, Union


QueryParams = Dict[str, Union[str, List[str]]]

# Global config object, installed by configure() at startup
config: Optional[PrometheusConfig] = None


def configure(prometheus_config: PrometheusConfig) -> None:
    """Install the configuration used by every subsequent request."""
    global config
    config = prometheus_config


def build_api_url(base_url: str) -> str:
    """Return the API root for a Prometheus base URL.

    Args:
        base_url: Base URL of the Prometheus server, with or without the API path.

    Returns:
        str: The base URL ending in the API version path.
    """
    base_url = base_url.rstrip('/')
    if not base_url.endswith(API_VERSION_PATH):
        base_url = f'{base_url}{API_VERSION_PATH}'
    return base_url


async def make_prometheus_request(
    endpoint: str, params: Optional[QueryParams] = None
) -> Optional[PrometheusResponse]:
    """Make a GET request to the Prometheus HTTP API.

    List values in ``params`` are sent as repeated query keys.

    Args:
        endpoint: The API endpoint relative to the API root (e.g. 'query')
        params: Query parameters to include in the request

    Returns:
        The parsed response envelope, or None if the request failed, the server
        answered with a non-success HTTP status, or the body was not a valid envelope.
    """
    prometheus_url = config.prometheus_url if config else DEFAULT_PROMETHEUS_URL
    url = f'{build_api_url(prometheus_url)}/{endpoint.lstrip("/")}'
    logger.debug(f'Making request to {url} with params {params or {}}')

    try:
        response = await asyncio.to_thread(
            requests.get, url, params=params or {}, headers=REQUEST_HEADERS
        )
        response.raise_for_status()
        return PrometheusResponse.model_validate(response.json())
    except ValidationError as e:
        logger.error(f'Error making Prometheus request to {endpoint}: invalid response envelope: {e}')
    except requests.RequestException as e:
        logger.error(f'Error making Prometheus request to {endpoint}: {e}')
    except ValueError as e:
        logger.error(f'Error making Prometheus request to {endpoint}: invalid JSON: {e}')
    return None


class PrometheusConnection:
    """Handles Prometheus connection testing."""

    @staticmethod
    async def test_connection(prometheus_url: str) -> bool:
        """Test the connection to Prometheus.

        Args:
            prometheus_url: The Prometheus URL to test

        Returns:
            bool: True if connection is successful, False otherwise
        """
        logger.info('Testing Prometheus connection...')
        url = f'{build_api_url(prometheus_url)}/label/__name__/values'
        try:
            response = await asyncio.to_thread(
                requests.get, url, headers=REQUEST_HEADERS, timeout=CONNECTION_TEST_TIMEOUT
            )
            response.raise_for_status()
            logger.info('Successfully connected to Prometheus!')
            return True
        except requests.RequestException as e:
            logger.warning(f'WARNING: Could not connect to Prometheus at {prometheus_url}: {e}')
            logger.warning('Tools will report failures until the server is reachable')
            return False
