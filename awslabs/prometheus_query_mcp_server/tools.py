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

"""Prometheus query tools for MCP server."""

from awslabs.prometheus_query_mcp_server.consts import UNKNOWN_ERROR
from awslabs.prometheus_query_mcp_server.formatters import (
    format_alerts,
    format_instant_query,
    format_label_values,
    format_metadata,
    format_range_query,
    format_rules,
    format_series,
    format_status,
    format_targets,
    format_warnings,
    parse_alerts,
    parse_metadata,
    parse_rules,
)
from awslabs.prometheus_query_mcp_server.prometheus_client import (
    QueryParams,
    make_prometheus_request,
)
from loguru import logger
from mcp.server.fastmcp import Context
from pydantic import Field
from typing import Any, Callable, List, Literal, Optional, Tuple
from urllib.parse import quote


class PrometheusTools:
    """Prometheus query tools for MCP server."""

    def tool_table(self) -> List[Tuple[str, Callable]]:
        """Return the (name, handler) pairs of every tool this server exposes."""
        return [
            ('instant-query', self.instant_query),
            ('range-query', self.range_query),
            ('get-series', self.get_series),
            ('get-label-values', self.get_label_values),
            ('get-metadata', self.get_metadata),
            ('get-targets', self.get_targets),
            ('get-alerts', self.get_alerts),
            ('get-rules', self.get_rules),
            ('get-status', self.get_status),
        ]

    def register(self, mcp):
        """Register all Prometheus tools with the MCP server."""
        for name, handler in self.tool_table():
            mcp.tool(name=name)(handler)
            logger.debug(f'Registered tool {name}')

    async def _run(
        self,
        ctx: Context,
        endpoint: str,
        params: QueryParams,
        failure_text: str,
        no_data_text: str,
        render: Callable[[Any], str],
    ) -> str:
        """Perform one API call and turn its envelope into the tool's text result.

        Args:
            ctx: The MCP context
            endpoint: API endpoint relative to the API root
            params: Query parameters, only the ones the caller supplied
            failure_text: Text returned when no usable response was received
            no_data_text: Text returned when the response carries no data
            render: Renders the response data, may raise ValidationError or
                another ValueError for data it cannot render

        Returns:
            str: The text result of the tool.
        """
        response = await make_prometheus_request(endpoint, params)
        if response is None:
            await ctx.error(failure_text)
            return failure_text

        if response.status == 'error':
            return f'Error: {response.error or UNKNOWN_ERROR}'

        # An empty payload is reported the same way as a missing one
        if not response.data:
            return no_data_text

        try:
            text = render(response.data)
        except (ValueError, OverflowError) as e:
            logger.error(f'Unexpected response format from {endpoint}: {e}')
            await ctx.error(failure_text)
            return failure_text

        return f'{text}{format_warnings(response.warnings)}'

    async def instant_query(
        self,
        ctx: Context,
        query: str = Field(..., description='PromQL query expression'),
        time: Optional[str] = Field(
            None, description='Evaluation timestamp (RFC3339 or Unix timestamp)'
        ),
        timeout: Optional[str] = Field(None, description="Evaluation timeout (e.g. '30s')"),
    ) -> str:
        """Execute an instant Prometheus query.

        ## Usage
        - Evaluates the expression at a single point in time (now, unless `time` is given)
        - For values over a time range use range-query instead

        ## Example
        Input:
          query: "up"

        Output:
          Query: up
          Result Type: vector

          __name__="up", instance="localhost:9090", job="prometheus": 1 @2023-11-14T22:13:20.000Z
        """
        logger.info(f'Executing instant query: {query}')

        params: QueryParams = {'query': query}
        if time:
            params['time'] = time
        if timeout:
            params['timeout'] = timeout

        return await self._run(
            ctx,
            'query',
            params,
            'Failed to retrieve data from Prometheus',
            'No data returned',
            lambda data: f'Query: {query}\n{format_instant_query(data)}',
        )

    async def range_query(
        self,
        ctx: Context,
        query: str = Field(..., description='PromQL query expression'),
        start: str = Field(..., description='Start timestamp (RFC3339 or Unix timestamp)'),
        end: str = Field(..., description='End timestamp (RFC3339 or Unix timestamp)'),
        step: str = Field(
            ..., description="Query resolution step width (e.g. '15s', '1m', '1h')"
        ),
        timeout: Optional[str] = Field(None, description="Evaluation timeout (e.g. '30s')"),
    ) -> str:
        """Execute a range Prometheus query.

        ## Usage
        - Evaluates the expression at every step between start and end
        - Every series is listed with all of its samples

        ## Example
        Input:
          query: "rate(node_cpu_seconds_total{mode=\"system\"}[5m])"
          start: "2023-11-14T22:00:00Z"
          end: "2023-11-14T23:00:00Z"
          step: "5m"
        """
        logger.info(f'Executing range query: {query} from {start} to {end} with step {step}')

        params: QueryParams = {'query': query, 'start': start, 'end': end, 'step': step}
        if timeout:
            params['timeout'] = timeout

        return await self._run(
            ctx,
            'query_range',
            params,
            'Failed to retrieve data from Prometheus',
            'No data returned',
            lambda data: (
                f'Range Query: {query}\nStart: {start}\nEnd: {end}\nStep: {step}\n\n'
                f'{format_range_query(data)}'
            ),
        )

    async def get_series(
        self,
        ctx: Context,
        match: str = Field(
            ...,
            description='Series selector (e.g. \'up\', \'http_requests_total{job="prometheus"}\')',
        ),
        start: Optional[str] = Field(
            None, description='Start timestamp (RFC3339 or Unix timestamp)'
        ),
        end: Optional[str] = Field(None, description='End timestamp (RFC3339 or Unix timestamp)'),
    ) -> str:
        """Find series by label matchers."""
        logger.info(f'Finding series matching {match}')

        params: QueryParams = {'match[]': [match]}
        if start:
            params['start'] = start
        if end:
            params['end'] = end

        return await self._run(
            ctx,
            'series',
            params,
            'Failed to retrieve series data from Prometheus',
            'No series found matching the selector',
            lambda data: f'Series matching "{match}":\n\n{format_series(data)}',
        )

    async def get_label_values(
        self,
        ctx: Context,
        labelName: str = Field(..., description='Label name to get values for'),
    ) -> str:
        """Get label values for a label name.

        Use "__name__" as the label name to list all metric names.
        """
        logger.info(f'Getting values for label {labelName}')

        return await self._run(
            ctx,
            f'label/{quote(labelName, safe="")}/values',
            {},
            'Failed to retrieve label values from Prometheus',
            f'No values found for label "{labelName}"',
            lambda data: f'Values for label "{labelName}":\n\n{format_label_values(data)}',
        )

    async def get_metadata(
        self,
        ctx: Context,
        metric: Optional[str] = Field(None, description='Metric name to get metadata for'),
        limit: Optional[int] = Field(None, description='Maximum number of metrics to return'),
    ) -> str:
        """Get metadata for metrics."""
        logger.info(f'Getting metadata for {metric or "all metrics"}')

        params: QueryParams = {}
        if metric:
            params['metric'] = metric
        if limit is not None:
            params['limit'] = str(limit)

        no_data_text = f'No metadata found for metric "{metric}"' if metric else 'No metadata found'

        def render(data: Any) -> str:
            entries = parse_metadata(data)
            if not entries:
                return no_data_text
            return f'Metadata:\n\n{format_metadata(entries)}'

        return await self._run(
            ctx,
            'metadata',
            params,
            'Failed to retrieve metadata from Prometheus',
            no_data_text,
            render,
        )

    async def get_targets(
        self,
        ctx: Context,
        state: Optional[Literal['active', 'dropped', 'any']] = Field(
            None, description='Filter targets by state'
        ),
    ) -> str:
        """Get information about targets.

        ## Usage
        - Lists scrape targets with their health, labels and last scrape
        - `state` limits the output to active or dropped targets, `any` shows both
        """
        logger.info(f'Getting targets (state: {state or "any"})')

        params: QueryParams = {}
        if state and state != 'any':
            params['state'] = state

        return await self._run(
            ctx,
            'targets',
            params,
            'Failed to retrieve targets from Prometheus',
            'No target data returned',
            lambda data: format_targets(data, state) or 'No targets found',
        )

    async def get_alerts(self, ctx: Context) -> str:
        """Get information about alerts."""
        logger.info('Getting alerts')

        def render(data: Any) -> str:
            alerts = parse_alerts(data)
            if not alerts.alerts:
                return 'No alerts found'
            return f'Alerts:\n\n{format_alerts(alerts)}'

        return await self._run(
            ctx,
            'alerts',
            {},
            'Failed to retrieve alerts from Prometheus',
            'No alert data returned',
            render,
        )

    async def get_rules(self, ctx: Context) -> str:
        """Get information about alerting and recording rules."""
        logger.info('Getting rules')

        def render(data: Any) -> str:
            rules = parse_rules(data)
            if not rules.groups:
                return 'No rule groups found'
            return f'Rules:\n\n{format_rules(rules)}'

        return await self._run(
            ctx,
            'rules',
            {},
            'Failed to retrieve rules from Prometheus',
            'No rule data returned',
            render,
        )

    async def get_status(
        self,
        ctx: Context,
        statusType: Literal['config', 'flags', 'runtime', 'buildinfo', 'tsdb'] = Field(
            ..., description='Type of status information to retrieve'
        ),
    ) -> str:
        """Get status information about the Prometheus server.

        ## Usage
        - config: the loaded configuration file
        - flags: command-line flag values
        - runtime: runtime information such as start time and goroutines
        - buildinfo: version and build details
        - tsdb: head block and cardinality statistics
        """
        logger.info(f'Getting {statusType} status')

        return await self._run(
            ctx,
            f'status/{statusType}',
            {},
            f'Failed to retrieve {statusType} status from Prometheus',
            'No status data returned',
            lambda data: format_status(statusType, data),
        )
