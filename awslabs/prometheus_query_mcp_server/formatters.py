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

"""Text formatting for Prometheus API payloads.

Every function takes the ``data`` member of a successful response, validates it
against the endpoint model and renders it. Payloads that do not fit the model
raise ``pydantic.ValidationError``.
"""

import json
from awslabs.prometheus_query_mcp_server.consts import NONE, UNKNOWN
from awslabs.prometheus_query_mcp_server.models import (
    AlertingRule,
    AlertsData,
    BuildInfo,
    InstantQueryResult,
    MatrixResult,
    MatrixSeries,
    MetadataEntry,
    MetricMetadata,
    RangeQueryResult,
    RulesData,
    RuntimeInfo,
    ScalarResult,
    StringResult,
    TargetsData,
    TsdbStats,
    VectorResult,
    VectorSeries,
)
from pydantic import TypeAdapter
from typing import Any, Dict, List, Optional, Tuple


_MILLIS_PER_DAY = 86_400_000

_instant_query_adapter = TypeAdapter(InstantQueryResult)
_series_adapter = TypeAdapter(List[Dict[str, str]])
_label_values_adapter = TypeAdapter(List[str])
_metadata_list_adapter = TypeAdapter(List[MetricMetadata])
_metadata_map_adapter = TypeAdapter(Dict[str, List[MetadataEntry]])
_flags_adapter = TypeAdapter(Dict[str, Any])


def _civil_from_days(days: int) -> Tuple[int, int, int]:
    """Convert days since 1970-01-01 to a proleptic Gregorian (year, month, day).

    Works for any year, unlike ``datetime`` which stops at 9999.
    """
    shifted = days + 719468
    era = shifted // 146097
    day_of_era = shifted - era * 146097
    year_of_era = (
        day_of_era - day_of_era // 1460 + day_of_era // 36524 - day_of_era // 146096
    ) // 365
    day_of_year = day_of_era - (365 * year_of_era + year_of_era // 4 - year_of_era // 100)
    month_index = (5 * day_of_year + 2) // 153
    day = day_of_year - (153 * month_index + 2) // 5 + 1
    month = month_index + 3 if month_index < 10 else month_index - 9
    year = year_of_era + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def format_timestamp(seconds: float) -> str:
    """Render a Unix timestamp in seconds as ISO-8601 UTC with millisecond precision.

    Years outside 0000-9999 use the signed six digit extended form, for example
    ``+010000-01-01T00:00:00.000Z``.
    """
    days, millis = divmod(int(seconds * 1000), _MILLIS_PER_DAY)
    year, month, day = _civil_from_days(days)
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    year_text = f'{year:04d}' if 0 <= year <= 9999 else f'{year:+07d}'
    return f'{year_text}-{month:02d}-{day:02d}T{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}Z'


def format_labels(labels: Dict[str, str]) -> str:
    """Render a label set as comma separated ``name="value"`` pairs."""
    return ', '.join(f'{name}="{value}"' for name, value in labels.items())


def format_warnings(warnings: Optional[List[str]]) -> str:
    """Render the warnings block appended to successful results."""
    if not warnings:
        return ''
    return '\n\nWarnings:\n' + '\n'.join(warnings)


def _display(value: Any, default: str = UNKNOWN) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _format_sample(sample) -> str:
    timestamp, value = sample
    return f'{value} @{format_timestamp(timestamp)}'


def format_vector_result(result: List[VectorSeries]) -> str:
    """Render an instant vector, one line per series."""
    if not result:
        return 'No data found'

    lines = []
    for series in result:
        value = _format_sample(series.value) if series.value is not None else 'No value'
        lines.append(f'{format_labels(series.metric)}: {value}')
    return '\n\n'.join(lines)


def format_matrix_result(result: List[MatrixSeries]) -> str:
    """Render a range vector, the label line followed by all samples of the series."""
    if not result:
        return 'No data found'

    blocks = []
    for series in result:
        if series.values is not None:
            values = ', '.join(_format_sample(sample) for sample in series.values)
        else:
            values = 'No values'
        blocks.append(f'{format_labels(series.metric)}:\n{values}')
    return '\n\n'.join(blocks)


def format_instant_query(data: Any) -> str:
    """Render the result of an instant query.

    Returns:
        str: ``Result Type`` line followed by the rendered result.
    """
    result = _instant_query_adapter.validate_python(data)
    if isinstance(result, VectorResult):
        body = format_vector_result(result.result)
    elif isinstance(result, MatrixResult):
        body = format_matrix_result(result.result)
    elif isinstance(result, ScalarResult):
        body = f'Scalar value: {_format_sample(result.result)}'
    elif isinstance(result, StringResult):
        body = f'String value: {result.result[1]}'
    return f'Result Type: {result.resultType}\n\n{body}'


def format_range_query(data: Any) -> str:
    """Render the result of a range query, always as a matrix."""
    result = RangeQueryResult.model_validate(data)
    series = [
        MatrixSeries.model_validate(item) if isinstance(item, dict) else MatrixSeries()
        for item in result.result
    ]
    return format_matrix_result(series)


def format_series(data: Any) -> str:
    """Render the label sets returned by a series lookup, one per line."""
    return '\n'.join(format_labels(labels) for labels in _series_adapter.validate_python(data))


def format_label_values(data: Any) -> str:
    """Render label values, one per line."""
    return '\n'.join(_label_values_adapter.validate_python(data))


def parse_metadata(data: Any) -> List[MetricMetadata]:
    """Normalize a metadata payload into a flat list of entries.

    Older servers answer with a list of entries carrying the metric name, current
    ones with a map from metric name to its entries. Both shapes are accepted.
    """
    if isinstance(data, dict):
        return [
            MetricMetadata(metric=metric, **entry.model_dump())
            for metric, entries in _metadata_map_adapter.validate_python(data).items()
            for entry in entries
        ]
    return _metadata_list_adapter.validate_python(data)


def format_metadata(entries: List[MetricMetadata]) -> str:
    """Render metric metadata blocks."""
    return '\n'.join(
        '\n'.join(
            [
                f'Metric: {entry.metric}',
                f'Type: {_display(entry.type)}',
                f'Help: {_display(entry.help)}',
                f'Unit: {entry.unit or NONE}',
                '---',
            ]
        )
        for entry in entries
    )


def format_targets(data: Any, state: Optional[str] = None) -> str:
    """Render the active and dropped target sections selected by ``state``.

    Returns:
        str: The rendered sections, or an empty string when there is nothing to show.
    """
    targets = TargetsData.model_validate(data)
    sections = []

    if state in (None, 'active', 'any') and targets.activeTargets:
        blocks = [
            '\n'.join(
                [
                    f'Endpoint: {_display(target.scrapeUrl)}',
                    f'State: {_display(target.health)}',
                    f'Labels: {format_labels(target.labels)}',
                    f'Last Scrape: {_display(target.lastScrape)}',
                    f'Error: {target.lastError or NONE}',
                    '---',
                ]
            )
            for target in targets.activeTargets
        ]
        sections.append('Active Targets:\n\n' + '\n'.join(blocks))

    if state in (None, 'dropped', 'any') and targets.droppedTargets:
        blocks = []
        for target in targets.droppedTargets:
            # Dropped targets usually only carry their discovered labels
            endpoint = target.scrapeUrl or target.discoveredLabels.get('__address__')
            labels = target.labels if target.labels is not None else target.discoveredLabels
            blocks.append(
                '\n'.join(
                    [
                        f'Endpoint: {_display(endpoint)}',
                        f'Labels: {format_labels(labels)}',
                        '---',
                    ]
                )
            )
        sections.append('Dropped Targets:\n\n' + '\n'.join(blocks))

    return '\n\n'.join(sections)


def parse_alerts(data: Any) -> AlertsData:
    """Validate the payload of the alerts endpoint."""
    return AlertsData.model_validate(data)


def format_alerts(alerts: AlertsData) -> str:
    """Render alert blocks."""
    return '\n'.join(
        '\n'.join(
            [
                f'Name: {alert.labels.get("alertname") or UNKNOWN}',
                f'State: {_display(alert.state)}',
                f'Labels: {format_labels(alert.labels)}',
                f'Annotations: {format_labels(alert.annotations)}',
                f'Active Since: {_display(alert.activeAt)}',
                '---',
            ]
        )
        for alert in alerts.alerts
    )


def parse_rules(data: Any) -> RulesData:
    """Validate the payload of the rules endpoint."""
    return RulesData.model_validate(data)


def format_rules(rules: RulesData) -> str:
    """Render rule groups with their rules."""
    parts = []
    for group in rules.groups:
        parts.append(f'Group: {_display(group.name)} ({_display(group.file)})\n\n')

        if not group.rules:
            parts.append('No rules in this group\n\n')
            continue

        for rule in group.rules:
            lines = [f'Type: {rule.type}', f'Name: {_display(rule.name)}']
            if isinstance(rule, AlertingRule):
                lines.append(f'State: {_display(rule.state)}')
            lines.append(f'Query: {_display(rule.query)}')
            if isinstance(rule, AlertingRule):
                lines.append(f'Alerts: {len(rule.alerts)}')
            lines.append('---')
            parts.append('\n'.join(lines) + '\n\n')
    return ''.join(parts)


def format_status(status_type: str, data: Any) -> str:
    """Render a status payload according to the requested status type."""
    if status_type == 'config':
        return f'Configuration:\n\n{_to_json(data)}'

    if status_type == 'flags':
        flags = _flags_adapter.validate_python(data)
        return 'Flags:\n\n' + '\n'.join(f'{name}: {_display(value)}' for name, value in flags.items())

    if status_type == 'runtime':
        runtime = RuntimeInfo.model_validate(data)
        return 'Runtime Information:\n\n' + '\n'.join(
            [
                f'Start Time: {_display(runtime.startTime)}',
                f'CWD: {_display(runtime.CWD)}',
                f'GOMAXPROCS: {_display(runtime.GOMAXPROCS)}',
                f'GOGC: {_display(runtime.GOGC)}',
                f'GODEBUG: {_display(runtime.GODEBUG)}',
                f'Goroutines: {_display(runtime.goroutineCount)}',
            ]
        )

    if status_type == 'buildinfo':
        build = BuildInfo.model_validate(data)
        return 'Build Information:\n\n' + '\n'.join(
            [
                f'Version: {_display(build.version)}',
                f'Revision: {_display(build.revision)}',
                f'Branch: {_display(build.branch)}',
                f'Build User: {_display(build.buildUser)}',
                f'Build Date: {_display(build.buildDate)}',
                f'Go Version: {_display(build.goVersion)}',
            ]
        )

    if status_type == 'tsdb':
        tsdb = TsdbStats.model_validate(data)
        return 'TSDB Stats:\n\n' + '\n\n'.join(
            [
                f'Head: {_to_json(tsdb.headStats)}',
                f'Series Count by Metric Name: {_to_json(tsdb.seriesCountByMetricName)}',
                f'Label Value Count by Label Name: {_to_json(tsdb.labelValueCountByLabelName)}',
            ]
        )

    raise ValueError(f'Unsupported status type: {status_type}')
