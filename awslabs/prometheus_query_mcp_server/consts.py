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

"""Constants for the Prometheus Query MCP Server."""

# Environment variable names
ENV_PROMETHEUS_URL = 'PROMETHEUS_URL'
ENV_LOG_LEVEL = 'FASTMCP_LOG_LEVEL'
ENV_MCP_TRANSPORT = 'MCP_TRANSPORT'
ENV_MCP_HOST = 'MCP_HOST'
ENV_MCP_PORT = 'MCP_PORT'

# Default values
DEFAULT_PROMETHEUS_URL = 'http://localhost:9090'
DEFAULT_LOG_LEVEL = 'INFO'
DEFAULT_TRANSPORT = 'stdio'
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 8080
CONNECTION_TEST_TIMEOUT = 5

# Prometheus HTTP API
API_VERSION_PATH = '/api/v1'
USER_AGENT = 'prometheus-client/1.0'
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'application/json',
}

# Fallbacks for fields the upstream may leave out
UNKNOWN = 'Unknown'
NONE = 'none'
UNKNOWN_ERROR = 'Unknown error'

SERVER_INSTRUCTIONS = """
# Prometheus Query MCP Server

This server forwards tool calls to the HTTP query API of a Prometheus server and returns
the answers as plain text.

## Available Tools

- **instant-query**: Evaluate a PromQL expression at a single point in time
- **range-query**: Evaluate a PromQL expression over a time range at a fixed step
- **get-series**: Find series matching a selector
- **get-label-values**: List the values of a label
- **get-metadata**: Show type, help and unit metadata for metrics
- **get-targets**: List active and dropped scrape targets
- **get-alerts**: List currently firing and pending alerts
- **get-rules**: List alerting and recording rule groups
- **get-status**: Show config, flags, runtime, build or TSDB status

## Tips

- Use get-label-values with labelName "__name__" to discover metric names
- Timestamps accept RFC3339 or Unix timestamps, durations use the PromQL format (e.g. '30s', '5m')
"""
