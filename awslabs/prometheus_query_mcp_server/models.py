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

"""Data models for the Prometheus Query MCP server.

The Prometheus HTTP API wraps every answer in the same envelope. The ``data``
member is loosely typed on the wire, so each endpoint gets its own model family
here and payloads are validated before they are rendered.
"""

from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union


# A sample is ``[<unix seconds>, "<value>"]``
SamplePair = Tuple[float, Any]


class PrometheusConfig(BaseModel):
    """Configuration for the Prometheus Query MCP server.

    Attributes:
        prometheus_url: Base URL of the Prometheus server, without the API path.
    """

    prometheus_url: str


class PrometheusResponse(BaseModel):
    """Envelope returned by every Prometheus API endpoint.

    Attributes:
        status: Status of the request ('success' or 'error').
        data: Endpoint specific payload, present on success.
        errorType: Error category if status is 'error'.
        error: Error message if status is 'error'.
        warnings: Non-fatal warnings reported by the server.
    """

    status: Literal['success', 'error']
    data: Any = None
    errorType: Optional[str] = None
    error: Optional[str] = None
    warnings: Optional[List[str]] = None


# Query results


class VectorSeries(BaseModel):
    """A single series of an instant vector."""

    metric: Dict[str, str] = Field(default_factory=dict)
    value: Optional[SamplePair] = None


class MatrixSeries(BaseModel):
    """A single series of a range vector."""

    metric: Dict[str, str] = Field(default_factory=dict)
    values: Optional[List[SamplePair]] = None


class VectorResult(BaseModel):
    """Instant vector query result."""

    resultType: Literal['vector']
    result: List[VectorSeries] = Field(default_factory=list)


class MatrixResult(BaseModel):
    """Range vector query result."""

    resultType: Literal['matrix']
    result: List[MatrixSeries] = Field(default_factory=list)


class ScalarResult(BaseModel):
    """Scalar query result."""

    resultType: Literal['scalar']
    result: SamplePair


class StringResult(BaseModel):
    """String query result."""

    resultType: Literal['string']
    result: SamplePair


InstantQueryResult = Annotated[
    Union[VectorResult, MatrixResult, ScalarResult, StringResult],
    Field(discriminator='resultType'),
]


class RangeQueryResult(BaseModel):
    """Range query result.

    Range queries always answer with a matrix, so the items are rendered as matrix
    series whatever ``resultType`` says. Items that are not series objects (the
    members of a scalar or string pair) are kept as-is and rendered as empty series.
    """

    resultType: Optional[str] = None
    result: List[Any] = Field(default_factory=list)


# Metadata


class MetricMetadata(BaseModel):
    """Metadata of a single metric."""

    metric: str
    type: Optional[str] = None
    help: Optional[str] = None
    unit: Optional[str] = None


class MetadataEntry(BaseModel):
    """Metadata entry as listed under a metric name by the metadata endpoint."""

    type: Optional[str] = None
    help: Optional[str] = None
    unit: Optional[str] = None


# Targets


class ActiveTarget(BaseModel):
    """A target currently being scraped."""

    scrapeUrl: Optional[str] = None
    health: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    lastScrape: Optional[str] = None
    lastError: Optional[str] = None


class DroppedTarget(BaseModel):
    """A target dropped during relabelling."""

    scrapeUrl: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    discoveredLabels: Dict[str, str] = Field(default_factory=dict)


class TargetsData(BaseModel):
    """Payload of the targets endpoint."""

    activeTargets: List[ActiveTarget] = Field(default_factory=list)
    droppedTargets: List[DroppedTarget] = Field(default_factory=list)


# Alerts


class Alert(BaseModel):
    """A pending or firing alert."""

    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    state: Optional[str] = None
    activeAt: Optional[str] = None


class AlertsData(BaseModel):
    """Payload of the alerts endpoint."""

    alerts: List[Alert] = Field(default_factory=list)


# Rules


class AlertingRule(BaseModel):
    """An alerting rule and the alerts it currently produces."""

    type: Literal['alerting']
    name: Optional[str] = None
    query: Optional[str] = None
    state: Optional[str] = None
    alerts: List[Dict[str, Any]] = Field(default_factory=list)


class RecordingRule(BaseModel):
    """A recording rule."""

    type: Literal['recording']
    name: Optional[str] = None
    query: Optional[str] = None


Rule = Annotated[Union[AlertingRule, RecordingRule], Field(discriminator='type')]


class RuleGroup(BaseModel):
    """A group of rules loaded from one rule file."""

    name: Optional[str] = None
    file: Optional[str] = None
    rules: Optional[List[Rule]] = None


class RulesData(BaseModel):
    """Payload of the rules endpoint."""

    groups: List[RuleGroup] = Field(default_factory=list)


# Status


class RuntimeInfo(BaseModel):
    """Payload of the runtime status endpoint."""

    startTime: Optional[str] = None
    CWD: Optional[str] = None
    GOMAXPROCS: Optional[int] = None
    GOGC: Optional[Union[str, int]] = None
    GODEBUG: Optional[str] = None
    goroutineCount: Optional[int] = None


class BuildInfo(BaseModel):
    """Payload of the build information endpoint."""

    version: Optional[str] = None
    revision: Optional[str] = None
    branch: Optional[str] = None
    buildUser: Optional[str] = None
    buildDate: Optional[str] = None
    goVersion: Optional[str] = None


class TsdbStats(BaseModel):
    """Payload of the TSDB status endpoint."""

    headStats: Any = None
    seriesCountByMetricName: Any = None
    labelValueCountByLabelName: Any = None
