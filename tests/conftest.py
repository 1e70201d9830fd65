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
"""Configuration for pytest."""

import awslabs.prometheus_query_mcp_server.prometheus_client as prometheus_client_module
import pytest
from awslabs.prometheus_query_mcp_server.models import PrometheusResponse
from unittest.mock import AsyncMock


@pytest.fixture(autouse=True)
def _reset_prometheus_config():
    """Reset the module-level Prometheus configuration between tests."""
    prometheus_client_module.config = None
    yield
    prometheus_client_module.config = None


@pytest.fixture
def ctx():
    """Mock MCP context."""
    return AsyncMock()


@pytest.fixture
def success():
    """Build a successful response envelope around a payload."""

    def _success(data, warnings=None):
        return PrometheusResponse(status='success', data=data, warnings=warnings)

    return _success


@pytest.fixture
def failure():
    """Build an error response envelope."""

    def _failure(error='boom', error_type='bad_data'):
        return PrometheusResponse(status='error', errorType=error_type, error=error)

    return _failure


def pytest_addoption(parser):
    """Add command-line options to pytest."""
    parser.addoption(
        '--run-live',
        action='store_true',
        default=False,
        help='Run tests that make live API calls',
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is specified."""
    if not config.getoption('--run-live'):
        skip_live = pytest.mark.skip(reason='need --run-live option to run')
        for item in items:
            if 'live' in item.keywords:
                item.add_marker(skip_live)
