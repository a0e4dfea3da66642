"""Pydantic models for Splunk search API payloads."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, JsonValue, ValidationError
from pydantic.alias_generators import to_camel

from splunkjobs.exceptions import DecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)


class SubmitResponse(BaseModel):
    """Body returned by POST /services/search/jobs."""

    sid: str


class Generator(BaseModel):
    build: str = ""
    version: str = ""


class Paging(BaseModel):
    total: int = 0
    per_page: int = Field(0, alias="perPage")
    offset: int = 0


class JobContent(BaseModel):
    """
    Job metadata as reported by Splunk.

    Field names are the snake_case form of Splunk's camelCase keys. None of
    them drive the polling or streaming logic except dispatch_state; the
    rest is passed through for callers. Keys not listed here are kept as
    extra attributes.
    """

    model_config = ConfigDict(alias_generator=to_camel, extra="allow")

    bundle_version: str = ""
    can_summarize: bool = False
    cursor_time: str = ""
    default_save_ttl: str = Field("", alias="defaultSaveTTL")
    default_ttl: str = Field("", alias="defaultTTL")
    delegate: str = ""
    disk_usage: float = 0
    dispatch_state: str = ""
    done_progress: float = 0
    drop_count: float = 0
    earliest_time: str = ""
    event_available_count: float = 0
    event_count: float = 0
    event_field_count: float = 0
    event_is_streaming: bool = False
    event_is_truncated: bool = False
    event_search: str = ""
    event_sorting: str = ""
    index_earliest_time: float = 0
    index_latest_time: float = 0
    is_batch_mode_search: bool = False
    is_done: bool = False
    is_events_preview_enabled: bool = False
    is_failed: bool = False
    is_finalized: bool = False
    is_paused: bool = False
    is_preview_enabled: bool = False
    is_real_time_search: bool = False
    is_remote_timeline: bool = False
    is_saved: bool = False
    is_saved_search: bool = False
    is_time_cursored: bool = False
    is_zombie: bool = False
    keywords: str = ""
    label: str = ""
    normalized_search: str = ""
    num_previews: float = 0
    optimized_search: str = ""
    phase0: str = ""
    phase1: str = ""
    pid: str = ""
    priority: float = 0
    provenance: str = ""
    remote_search: str = ""
    report_search: str = ""
    result_count: float = 0
    result_is_streaming: bool = False
    result_preview_count: float = 0
    run_duration: float = 0
    sample_ratio: str = ""
    sample_seed: str = ""
    scan_count: float = 0
    search: str = ""
    search_can_be_event_type: bool = False
    search_total_buckets_count: float = 0
    search_total_eliminated_buckets_count: float = 0
    sid: str = ""
    status_buckets: float = 0
    ttl: float = 0
    messages: Any = None
    search_providers: list[str] = Field(default_factory=list)
    remote_search_logs: list[str] = Field(default_factory=list)


class JobEntry(BaseModel):
    """A search job stored on the server in some state."""

    name: str = ""
    id: str = ""
    updated: str = ""
    links: Any = None
    published: str = ""
    author: str = ""
    content: JobContent = Field(default_factory=JobContent)

    @property
    def dispatch_state(self) -> str:
        return self.content.dispatch_state


class JobStatusDocument(BaseModel):
    """
    Response of GET /services/search/jobs/{id}.

    An empty entry list means the job does not exist (deleted or expired),
    which is different from a job that exists but is not done yet.
    """

    generator: Generator = Field(default_factory=Generator)
    entry: list[JobEntry] = Field(default_factory=list)
    paging: Paging = Field(default_factory=Paging)

    @property
    def found(self) -> bool:
        return len(self.entry) > 0

    @property
    def job(self) -> Optional[JobEntry]:
        """The job's entry, or None when the job was not found."""
        return self.entry[0] if self.entry else None


class ResultPage(BaseModel):
    """
    One page from the results_preview endpoint.

    preview is True while the job is still running; the page's contents
    may change on a later request for the same offset range.
    """

    preview: bool = False
    init_offset: int = 0
    fields: list[dict[str, Any]] = Field(default_factory=list)
    messages: list[dict[str, Any]] = Field(default_factory=list)
    results: list[dict[str, JsonValue]] = Field(default_factory=list)


class SearchResult(Mapping[str, JsonValue]):
    """
    A single result row: field name to JSON value.

    The set of fields depends on the query. Records are read-only.

    Example:
        host = record.get_field_string("host")
        event = record.to_model(WebEvent)
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, JsonValue]):
        self._fields = dict(fields)

    def __getitem__(self, key: str) -> JsonValue:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"SearchResult({self._fields!r})"

    def get_field_string(self, name: str) -> str:
        """Return the field rendered as a string, or "" if it does not exist."""
        if name not in self._fields:
            return ""
        value = self._fields[name]
        return value if isinstance(value, str) else str(value)

    def to_model(self, model: type[ModelT]) -> ModelT:
        """
        Fill a pydantic model from this record.

        Model fields are matched by name or by alias, so
        ``Field(alias="_time")`` maps a Splunk field onto a Python name.
        Numeric strings coerce to numbers and ISO timestamps to datetime.

        Raises:
            DecodeError: If a value cannot be converted to the field's type
        """
        try:
            return model.model_validate(self._fields)
        except ValidationError as e:
            raise DecodeError(
                f"Could not fill {model.__name__} from search result: {e}"
            ) from e


class ConcurrencySettings(BaseModel):
    """
    Scheduler-wide concurrency limits.

    A field left as None is not sent at all; 0 is a real value and is sent.
    """

    max_searches_perc: Optional[int] = None
    auto_summary_perc: Optional[int] = None

    def to_params(self) -> dict[str, str]:
        return {
            name: str(value)
            for name, value in self.model_dump(exclude_none=True).items()
        }
