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

"""Tests for the Prometheus payload formatters."""

import pytest
from awslabs.prometheus_query_mcp_server.formatters import (
    format_alerts,
    format_instant_query,
    format_label_values,
    format_labels,
    format_metadata,
    format_range_query,
    format_rules,
    format_series,
    format_status,
    format_targets,
    format_timestamp,
    format_warnings,
    parse_alerts,
    parse_metadata,
    parse_rules,
)
from pydantic import ValidationError


class TestBasics:
    """Tests for timestamps, labels and warnings."""

    def test_format_timestamp(self):
        """Unix seconds render as ISO-8601 UTC with milliseconds."""
        assert format_timestamp(1700000000) == '2023-11-14T22:13:20.000Z'

    def test_format_timestamp_fraction(self):
        """Fractional seconds keep millisecond precision."""
        assert format_timestamp(1700000000.25) == '2023-11-14T22:13:20.250Z'

    def test_format_timestamp_epoch(self):
        """The epoch itself renders with a zero millisecond part."""
        assert format_timestamp(0) == '1970-01-01T00:00:00.000Z'

    def test_format_timestamp_before_epoch(self):
        """Negative fractions count back from the epoch."""
        assert format_timestamp(-0.5) == '1969-12-31T23:59:59.500Z'

    def test_format_timestamp_small_year(self):
        """Years below 1000 are zero padded to four digits."""
        assert format_timestamp(-61536067200) == '0020-01-01T00:00:00.000Z'
        assert format_timestamp(-62167219200) == '0000-01-01T00:00:00.000Z'

    def test_format_timestamp_extended_year(self):
        """Years outside 0000-9999 use the signed six digit form."""
        assert format_timestamp(253402300799.5) == '9999-12-31T23:59:59.500Z'
        assert format_timestamp(253402300800) == '+010000-01-01T00:00:00.000Z'
        assert format_timestamp(-62198755200) == '-000001-01-01T00:00:00.000Z'

    def test_format_labels(self):
        """Labels render as comma separated name="value" pairs in order."""
        assert format_labels({'job': 'x', 'instance': 'a:1'}) == 'job="x", instance="a:1"'

    def test_format_labels_empty(self):
        """An empty label set renders as an empty string."""
        assert format_labels({}) == ''

    def test_format_warnings(self):
        """Warnings render as a trailing block, one per line."""
        assert format_warnings(['w1', 'w2']) == '\n\nWarnings:\nw1\nw2'

    def test_format_warnings_empty(self):
        """No warnings means no block."""
        assert format_warnings(None) == ''
        assert format_warnings([]) == ''


class TestQueryFormatting:
    """Tests for instant and range query results."""

    def test_vector(self):
        """A vector renders one line per series."""
        data = {
            'resultType': 'vector',
            'result': [
                {'metric': {'job': 'x'}, 'value': [1700000000, '5']},
                {'metric': {'job': 'y'}, 'value': [1700000000, '7']},
            ],
        }
        assert format_instant_query(data) == (
            'Result Type: vector\n\n'
            'job="x": 5 @2023-11-14T22:13:20.000Z\n\n'
            'job="y": 7 @2023-11-14T22:13:20.000Z'
        )

    def test_vector_empty(self):
        """An empty vector renders the no data line."""
        assert format_instant_query({'resultType': 'vector', 'result': []}) == (
            'Result Type: vector\n\nNo data found'
        )

    def test_vector_without_value(self):
        """A series without a sample renders a placeholder."""
        data = {'resultType': 'vector', 'result': [{'metric': {'job': 'x'}}]}
        assert format_instant_query(data) == 'Result Type: vector\n\njob="x": No value'

    def test_matrix(self):
        """A matrix renders the labels followed by every sample."""
        data = {
            'resultType': 'matrix',
            'result': [
                {
                    'metric': {'job': 'x'},
                    'values': [[1700000000, '1'], [1700000015, '2']],
                }
            ],
        }
        assert format_instant_query(data) == (
            'Result Type: matrix\n\n'
            'job="x":\n1 @2023-11-14T22:13:20.000Z, 2 @2023-11-14T22:13:35.000Z'
        )

    def test_matrix_without_values(self):
        """A series without samples renders a placeholder."""
        data = {'resultType': 'matrix', 'result': [{'metric': {'job': 'x'}}]}
        assert format_instant_query(data) == 'Result Type: matrix\n\njob="x":\nNo values'

    def test_scalar(self):
        """A scalar renders value and timestamp."""
        data = {'resultType': 'scalar', 'result': [1700000000, '42']}
        assert format_instant_query(data) == (
            'Result Type: scalar\n\nScalar value: 42 @2023-11-14T22:13:20.000Z'
        )

    def test_string(self):
        """A string renders its value only."""
        data = {'resultType': 'string', 'result': [1700000000, 'hello']}
        assert format_instant_query(data) == 'Result Type: string\n\nString value: hello'

    def test_unknown_result_type(self):
        """An unknown result type is rejected."""
        with pytest.raises(ValidationError):
            format_instant_query({'resultType': 'histogram', 'result': []})

    def test_range_query_ignores_result_type(self):
        """Range query results are always rendered as a matrix."""
        data = {
            'resultType': 'vector',
            'result': [{'metric': {'job': 'x'}, 'values': [[1700000000, '1']]}],
        }
        assert format_range_query(data) == 'job="x":\n1 @2023-11-14T22:13:20.000Z'

    def test_range_query_empty(self):
        """An empty range result renders the no data line."""
        assert format_range_query({'resultType': 'matrix', 'result': []}) == 'No data found'

    def test_range_query_non_series_items(self):
        """Items that are not series render as empty series."""
        data = {'resultType': 'scalar', 'result': [1700000000, '1']}
        assert format_range_query(data) == ':\nNo values\n\n:\nNo values'

    def test_range_query_bad_series(self):
        """A series object with malformed values still fails validation."""
        data = {'resultType': 'matrix', 'result': [{'metric': {'job': 'x'}, 'values': 'bad'}]}
        with pytest.raises(ValidationError):
            format_range_query(data)


class TestSeriesAndLabels:
    """Tests for series lookups and label values."""

    def test_series(self):
        """Each series renders on its own line without values."""
        data = [
            {'__name__': 'up', 'job': 'x'},
            {'__name__': 'up', 'job': 'y'},
        ]
        assert format_series(data) == '__name__="up", job="x"\n__name__="up", job="y"'

    def test_label_values(self):
        """Label values render one per line."""
        assert format_label_values(['node', 'prometheus']) == 'node\nprometheus'


class TestMetadata:
    """Tests for metric metadata."""

    def test_list_shape(self):
        """Entries carrying the metric name are read as is."""
        entries = parse_metadata(
            [{'metric': 'up', 'type': 'gauge', 'help': 'Target is up.', 'unit': ''}]
        )
        assert format_metadata(entries) == (
            'Metric: up\nType: gauge\nHelp: Target is up.\nUnit: none\n---'
        )

    def test_map_shape(self):
        """The map from metric name to entries is flattened."""
        entries = parse_metadata(
            {
                'http_requests_total': [
                    {'type': 'counter', 'help': 'Requests.', 'unit': 'requests'}
                ],
                'process_cpu_seconds_total': [
                    {'type': 'counter', 'help': 'CPU time.', 'unit': 'seconds'}
                ],
            }
        )
        assert [entry.metric for entry in entries] == [
            'http_requests_total',
            'process_cpu_seconds_total',
        ]
        assert format_metadata(entries) == (
            'Metric: http_requests_total\nType: counter\nHelp: Requests.\nUnit: requests\n---\n'
            'Metric: process_cpu_seconds_total\nType: counter\nHelp: CPU time.\nUnit: seconds\n---'
        )

    def test_missing_fields(self):
        """Missing type and help render as Unknown, missing unit as none."""
        entries = parse_metadata([{'metric': 'up'}])
        assert format_metadata(entries) == 'Metric: up\nType: Unknown\nHelp: Unknown\nUnit: none\n---'


TARGETS = {
    'activeTargets': [
        {
            'scrapeUrl': 'http://localhost:9090/metrics',
            'health': 'up',
            'labels': {'job': 'prometheus'},
            'lastScrape': '2023-11-14T22:13:20.000Z',
            'lastError': '',
        }
    ],
    'droppedTargets': [
        {
            'scrapeUrl': 'http://localhost:9100/metrics',
            'labels': {'job': 'node'},
        }
    ],
}

ACTIVE_SECTION = (
    'Active Targets:\n\n'
    'Endpoint: http://localhost:9090/metrics\n'
    'State: up\n'
    'Labels: job="prometheus"\n'
    'Last Scrape: 2023-11-14T22:13:20.000Z\n'
    'Error: none\n'
    '---'
)

DROPPED_SECTION = (
    'Dropped Targets:\n\n'
    'Endpoint: http://localhost:9100/metrics\n'
    'Labels: job="node"\n'
    '---'
)


class TestTargets:
    """Tests for target listings."""

    def test_both_sections(self):
        """Without a state filter both sections render."""
        assert format_targets(TARGETS) == f'{ACTIVE_SECTION}\n\n{DROPPED_SECTION}'

    def test_any(self):
        """The any filter renders both sections."""
        assert format_targets(TARGETS, 'any') == f'{ACTIVE_SECTION}\n\n{DROPPED_SECTION}'

    def test_active_only(self):
        """The active filter omits dropped targets even when present."""
        assert format_targets(TARGETS, 'active') == ACTIVE_SECTION

    def test_dropped_only(self):
        """The dropped filter omits active targets."""
        assert format_targets(TARGETS, 'dropped') == DROPPED_SECTION

    def test_last_error(self):
        """A scrape error is shown."""
        data = {'activeTargets': [dict(TARGETS['activeTargets'][0], lastError='timeout')]}
        assert 'Error: timeout' in format_targets(data)

    def test_dropped_discovered_labels(self):
        """Dropped targets fall back to their discovered labels."""
        data = {
            'droppedTargets': [
                {'discoveredLabels': {'__address__': 'node:9100', 'job': 'node'}}
            ]
        }
        assert format_targets(data) == (
            'Dropped Targets:\n\n'
            'Endpoint: node:9100\n'
            'Labels: __address__="node:9100", job="node"\n'
            '---'
        )

    def test_nothing_to_render(self):
        """An empty selection renders nothing."""
        assert format_targets({'activeTargets': [], 'droppedTargets': []}) == ''
        assert format_targets({'droppedTargets': TARGETS['droppedTargets']}, 'active') == ''


class TestAlerts:
    """Tests for alert listings."""

    def test_alert(self):
        """Alerts render name, state, labels, annotations and activation time."""
        alerts = parse_alerts(
            {
                'alerts': [
                    {
                        'labels': {'alertname': 'HighLoad', 'severity': 'page'},
                        'annotations': {'summary': 'Load is high'},
                        'state': 'firing',
                        'activeAt': '2023-11-14T22:13:20Z',
                        'value': '1e+00',
                    }
                ]
            }
        )
        assert format_alerts(alerts) == (
            'Name: HighLoad\n'
            'State: firing\n'
            'Labels: alertname="HighLoad", severity="page"\n'
            'Annotations: summary="Load is high"\n'
            'Active Since: 2023-11-14T22:13:20Z\n'
            '---'
        )

    def test_alert_without_name(self):
        """An alert without an alertname label is named Unknown."""
        alerts = parse_alerts({'alerts': [{'state': 'pending'}]})
        assert format_alerts(alerts).startswith('Name: Unknown\nState: pending\nLabels: \n')


class TestRules:
    """Tests for rule listings."""

    def test_rules(self):
        """Alerting rules show state and alert count, recording rules do not."""
        rules = parse_rules(
            {
                'groups': [
                    {
                        'name': 'example',
                        'file': '/etc/prometheus/rules.yml',
                        'rules': [
                            {
                                'type': 'alerting',
                                'name': 'HighLoad',
                                'state': 'firing',
                                'query': 'node_load1 > 4',
                                'alerts': [{'state': 'firing'}],
                            },
                            {
                                'type': 'recording',
                                'name': 'job:up:sum',
                                'query': 'sum by (job) (up)',
                            },
                        ],
                    }
                ]
            }
        )
        assert format_rules(rules) == (
            'Group: example (/etc/prometheus/rules.yml)\n\n'
            'Type: alerting\nName: HighLoad\nState: firing\nQuery: node_load1 > 4\nAlerts: 1\n---\n\n'
            'Type: recording\nName: job:up:sum\nQuery: sum by (job) (up)\n---\n\n'
        )

    def test_empty_group_continues(self):
        """An empty group is noted and the following groups still render."""
        rules = parse_rules(
            {
                'groups': [
                    {'name': 'empty', 'file': 'a.yml', 'rules': []},
                    {
                        'name': 'next',
                        'file': 'b.yml',
                        'rules': [{'type': 'recording', 'name': 'r', 'query': 'up'}],
                    },
                ]
            }
        )
        assert format_rules(rules) == (
            'Group: empty (a.yml)\n\nNo rules in this group\n\n'
            'Group: next (b.yml)\n\nType: recording\nName: r\nQuery: up\n---\n\n'
        )

    def test_unknown_rule_type(self):
        """A rule of unknown type is rejected."""
        with pytest.raises(ValidationError):
            parse_rules({'groups': [{'name': 'g', 'rules': [{'type': 'other'}]}]})


class TestStatus:
    """Tests for status pages."""

    def test_config(self):
        """The configuration is pretty printed as JSON."""
        assert format_status('config', {'yaml': 'global: {}'}) == (
            'Configuration:\n\n{\n  "yaml": "global: {}"\n}'
        )

    def test_flags(self):
        """Flags render as name: value lines."""
        data = {'web.enable-lifecycle': 'false', 'storage.tsdb.retention.time': '15d'}
        assert format_status('flags', data) == (
            'Flags:\n\nweb.enable-lifecycle: false\nstorage.tsdb.retention.time: 15d'
        )

    def test_runtime(self):
        """Runtime information renders a fixed list of fields."""
        data = {
            'startTime': '2023-11-14T22:13:20Z',
            'CWD': '/prometheus',
            'GOMAXPROCS': 8,
            'GOGC': '',
            'GODEBUG': '',
            'goroutineCount': 42,
            'storageRetention': '15d',
        }
        assert format_status('runtime', data) == (
            'Runtime Information:\n\n'
            'Start Time: 2023-11-14T22:13:20Z\n'
            'CWD: /prometheus\n'
            'GOMAXPROCS: 8\n'
            'GOGC: \n'
            'GODEBUG: \n'
            'Goroutines: 42'
        )

    def test_buildinfo(self):
        """Build information renders a fixed list of fields."""
        data = {
            'version': '2.48.0',
            'revision': 'abc123',
            'branch': 'HEAD',
            'buildUser': 'root@host',
            'buildDate': '20231116-04:35:21',
            'goVersion': 'go1.21.4',
        }
        assert format_status('buildinfo', data) == (
            'Build Information:\n\n'
            'Version: 2.48.0\n'
            'Revision: abc123\n'
            'Branch: HEAD\n'
            'Build User: root@host\n'
            'Build Date: 20231116-04:35:21\n'
            'Go Version: go1.21.4'
        )

    def test_buildinfo_missing_field(self):
        """A missing build field renders as Unknown."""
        assert 'Go Version: Unknown' in format_status('buildinfo', {'version': '2.48.0'})

    def test_tsdb(self):
        """TSDB statistics pretty print their three sections."""
        data = {
            'headStats': {'numSeries': 2},
            'seriesCountByMetricName': [{'name': 'up', 'value': 2}],
            'labelValueCountByLabelName': [],
        }
        assert format_status('tsdb', data) == (
            'TSDB Stats:\n\n'
            'Head: {\n  "numSeries": 2\n}\n\n'
            'Series Count by Metric Name: [\n  {\n    "name": "up",\n    "value": 2\n  }\n]\n\n'
            'Label Value Count by Label Name: []'
        )

    def test_unsupported(self):
        """Unknown status types are rejected."""
        with pytest.raises(ValueError, match='Unsupported status type'):
            format_status('wal', {})
