"""Structured logger with pretty (rich markup) and JSON output.

Every call builds a ``LogRecord`` and returns it. The record is formatted and
handed to the transport of the call's severity only when the logger's
configured severity lets it through, so callers can always inspect what would
have been logged.

    logger = Logger(application="run", severity="DEBUG")
    record = logger.info("deployed", {"files": 3}, tags=["deploy"])
    record["log.level"]  # "INFO"
"""

from __future__ import annotations

import io
import json
import os
import re
import sys
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from rich.console import Console
from rich.markup import escape
from rich.pretty import pretty_repr

from .callsites import CallSite, callsites


class SeverityName(str, Enum):
    SILENT = "SILENT"
    DEBUG = "DEBUG"
    INFORMATIONAL = "INFORMATIONAL"
    WARNING = "WARNING"
    ERROR = "ERROR"


SEVERITY_LEVEL: dict[SeverityName, int] = {
    SeverityName.SILENT: 0,
    SeverityName.DEBUG: 1,
    SeverityName.INFORMATIONAL: 2,
    SeverityName.WARNING: 3,
    SeverityName.ERROR: 4,
}


class LevelName(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    HTTP = "HTTP"
    DEBUG = "DEBUG"


class Mode(str, Enum):
    PRETTY = "PRETTY"
    JSON = "JSON"


Transport = Callable[[str], None]


def _do_nothing(_: str) -> None:
    return None


def _stdout_transport(msg: str) -> None:
    sys.stdout.write(msg + "\n")


def _stderr_transport(msg: str) -> None:
    sys.stderr.write(msg + "\n")


PLACEHOLDER_REGEX = re.compile(r"{([^{}]+?)}")

TRANSPORT_DEFAULTS: dict[SeverityName, Transport] = {
    SeverityName.SILENT: _do_nothing,
    SeverityName.DEBUG: _stdout_transport,
    SeverityName.INFORMATIONAL: _stdout_transport,
    SeverityName.WARNING: _stderr_transport,
    SeverityName.ERROR: _stderr_transport,
}

# Templates are rich markup; {placeholders} name LogRecord keys.
SHARED_TEMPLATE = "[bold dim]{@timestamp}[/] {log.level} [[bold white]{log.logger}[/]]"

PRETTY_TEMPLATE = (
    f"{SHARED_TEMPLATE} "
    "[dim]{log.origin.file.path}:{log.origin.file.line}:{log.origin.file.column}[/] "
    "[yellow]{message}[/] {data}"
)

PRETTY_HTTP_TEMPLATE = (
    f"{SHARED_TEMPLATE} "
    '"[bold bright_green]{http.request.method} {http.request.url.original}[/] '
    '[bold green dim]HTTP/{http.version}[/]" '
    "{http.response.status_code} [bold dim]{event.duration}ms[/]"
)

PRETTY_ERROR_TEMPLATE = (
    f"{SHARED_TEMPLATE} "
    "[dim]{log.origin.file.path}:{log.origin.file.line}:{log.origin.file.column}[/] "
    "[yellow]{message}[/]\n"
    "[bold on red]{error.id}[/]: [bold]{error.message}[/] {error.stack_trace}"
)

LEVEL_THEME: dict[LevelName, str] = {
    LevelName.ERROR: "bold red",
    LevelName.WARN: "bold yellow",
    LevelName.INFO: "bold green",
    LevelName.HTTP: "bold cyan",
    LevelName.DEBUG: "bold blue",
}

HTTP_STATUS_THEME: dict[str, str] = {
    "informational": "bold cyan",
    "successful": "bold cyan",
    "redirection": "bold yellow",
    "error": "bold red",
    "default": "bold",
}


class LoggerSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    severity: SeverityName
    application: str
    environment: str = ""
    module: str | None = None
    id: str | None = None
    version: str | None = None
    padding: int = len(LevelName.DEBUG.value) + 1
    mode: Mode = Mode.PRETTY
    transports: dict[SeverityName, Callable[[str], None]] = dict(TRANSPORT_DEFAULTS)
    pretty_template: str = PRETTY_TEMPLATE
    pretty_error_template: str = PRETTY_ERROR_TEMPLATE
    pretty_http_template: str = PRETTY_HTTP_TEMPLATE
    colors: bool = True

    @field_validator("transports", mode="before")
    @classmethod
    def _merge_default_transports(cls, value: Any) -> Any:
        if value is None:
            return dict(TRANSPORT_DEFAULTS)
        if isinstance(value, Mapping):
            return {**TRANSPORT_DEFAULTS, **value}
        return value


@dataclass
class HttpRequest:
    method: str
    url: str
    http_version: str = "1.1"
    id: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        return _header(self.headers, name)


@dataclass
class HttpResponse:
    status_code: int
    duration: float | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        return _header(self.headers, name)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for k, v in headers.items():
        if k.lower() == wanted:
            return v
    return None


def _key(name: str) -> dict[str, str]:
    return {"key": name}


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


_LOGGER_FILES = frozenset({__file__})


@dataclass
class LogRecord:
    """One log entry, keyed by ECS-style dotted names in ``to_dict()``."""

    timestamp: str = field(default_factory=_now, metadata=_key("@timestamp"))
    level: str = field(default="", metadata=_key("log.level"))
    message: str = field(default="", metadata=_key("message"))
    data: list[Any] | None = field(default=None, metadata=_key("data"))
    labels: dict[str, str] | None = field(default=None, metadata=_key("labels"))
    tags: list[str] | None = field(default=None, metadata=_key("tags"))
    logger: str = field(default="unknown", metadata=_key("log.logger"))
    origin_file_column: int = field(default=0, metadata=_key("log.origin.file.column"))
    origin_file_line: int = field(default=0, metadata=_key("log.origin.file.line"))
    origin_file_name: str = field(default="", metadata=_key("log.origin.file.name"))
    origin_file_path: str = field(default="", metadata=_key("log.origin.file.path"))
    error_code: str | None = field(default=None, metadata=_key("error.code"))
    error_id: str | None = field(default=None, metadata=_key("error.id"))
    error_message: str | None = field(default=None, metadata=_key("error.message"))
    error_stack_trace: list[CallSite] | None = field(default=None, metadata=_key("error.stack_trace"))
    error_type: str | None = field(default=None, metadata=_key("error.type"))
    service_name: str | None = field(default=None, metadata=_key("service.name"))
    service_version: str | None = field(default=None, metadata=_key("service.version"))
    service_environment: str | None = field(default=None, metadata=_key("service.environment"))
    service_id: str | None = field(default=None, metadata=_key("service.id"))
    process_args: list[str] = field(default_factory=lambda: list(sys.argv[1:]), metadata=_key("process.args"))
    event_duration: float | None = field(default=None, metadata=_key("event.duration"))
    http_version: str | None = field(default=None, metadata=_key("http.version"))
    http_request_id: str | None = field(default=None, metadata=_key("http.request.id"))
    http_request_method: str | None = field(default=None, metadata=_key("http.request.method"))
    http_request_mime_type: str | None = field(default=None, metadata=_key("http.request.mime_type"))
    http_request_referrer: str | None = field(default=None, metadata=_key("http.request.referrer"))
    http_request_url_original: str | None = field(default=None, metadata=_key("http.request.url.original"))
    http_response_mime_type: str | None = field(default=None, metadata=_key("http.response.mime_type"))
    http_response_status_code: int | None = field(default=None, metadata=_key("http.response.status_code"))

    @classmethod
    def create(
        cls,
        error: BaseException | None = None,
        request: Any = None,
        response: Any = None,
    ) -> LogRecord:
        record = cls()
        if error is not None:
            record.set_error_fields(error)
        if request is not None:
            record.set_request_fields(request)
        if response is not None:
            record.set_response_fields(response)
        return record

    def to_dict(self) -> dict[str, Any]:
        return {f.metadata["key"]: getattr(self, f.name) for f in fields(self)}

    def __getitem__(self, key: str) -> Any:
        for f in fields(self):
            if f.metadata["key"] == key:
                return getattr(self, f.name)
        raise KeyError(key)

    def set_base_fields(
        self,
        message: str,
        data: list[Any] | None = None,
        labels: dict[str, str] | None = None,
        tags: list[str] | None = None,
    ) -> LogRecord:
        self.message = message
        self.data = data
        self.labels = labels
        self.tags = tags
        return self

    def set_error_fields(self, error: BaseException) -> LogRecord:
        self.error_message = str(error)
        self.error_code = getattr(error, "code", None)
        self.error_id = getattr(error, "id", None)
        self.error_type = type(error).__name__
        self.error_stack_trace = callsites(error, skip_files=_LOGGER_FILES)
        return self

    def set_log_fields(self, level: LevelName | str, logger: str) -> LogRecord:
        self.level = LevelName(level).value
        self.logger = logger
        sites = callsites(skip_files=_LOGGER_FILES)
        if sites:
            origin = sites[0]
            self.origin_file_column = origin.column_number
            self.origin_file_line = origin.line_number
            self.origin_file_name = os.path.basename(origin.file_name)
            self.origin_file_path = origin.file_name
        return self

    def set_request_fields(self, request: Any) -> LogRecord:
        self.http_version = getattr(request, "http_version", None)
        self.http_request_id = getattr(request, "id", None)
        self.http_request_method = getattr(request, "method", None)
        self.http_request_mime_type = request.get("content-type")
        self.http_request_referrer = request.get("referrer")
        self.http_request_url_original = getattr(request, "url", None)
        return self

    def set_response_fields(self, response: Any) -> LogRecord:
        self.event_duration = getattr(response, "duration", None) or 0.1
        self.http_response_mime_type = response.get("content-type")
        self.http_response_status_code = getattr(response, "status_code", None)
        return self

    def set_service_fields(
        self,
        environment: str,
        name: str | None = None,
        version: str | None = None,
        id: str | None = None,
    ) -> LogRecord:
        self.service_environment = environment
        self.service_name = name
        self.service_version = version
        self.service_id = id
        return self


class Formatter:
    def __init__(self, settings: LoggerSettings) -> None:
        self.settings = settings

    def format(self, record: LogRecord) -> str:
        raise NotImplementedError


class JsonFormatter(Formatter):
    def format(self, record: LogRecord) -> str:
        payload = {k: v for k, v in record.to_dict().items() if v is not None}
        return json.dumps(payload, indent=2, default=_json_default)


def _json_default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


class PrettyFormatter(Formatter):
    def inspect(self, value: Any) -> str:
        return escape(pretty_repr(value))

    def prettify_stack(self, site: CallSite) -> str:
        return f"[yellow]  • [underline]{escape(str(site))}[/underline][/yellow]"

    def get_status_color(self, status: int) -> str:
        if 400 <= status < 600:
            return HTTP_STATUS_THEME["error"]
        if 200 <= status < 300:
            return HTTP_STATUS_THEME["successful"]
        if 100 <= status < 200:
            return HTTP_STATUS_THEME["informational"]
        if 300 <= status < 400:
            return HTTP_STATUS_THEME["redirection"]
        return HTTP_STATUS_THEME["default"]

    def get_template(self, level: str, status: int | None = None) -> str:
        spaces = " " * max(self.settings.padding - len(level), 0)
        if level == LevelName.HTTP:
            template = self.settings.pretty_http_template
        elif level == LevelName.ERROR:
            template = self.settings.pretty_error_template
        else:
            template = self.settings.pretty_template

        if status:
            color = self.get_status_color(status)
            template = template.replace(
                "{http.response.status_code}",
                f"[{color}]{{http.response.status_code}}[/]",
            )

        theme = LEVEL_THEME[LevelName(level)]
        return template.replace("{log.level}", f"[{theme}]{{log.level}}{spaces}[/]")

    def substitute(self, template: str, record: LogRecord) -> str:
        values = record.to_dict()
        prepared = {
            "data": ("\n" + "\n".join(self.inspect(v) for v in record.data)) if record.data else "",
            "error.stack_trace": (
                "\n" + "\n".join(self.prettify_stack(s) for s in record.error_stack_trace)
                if record.error_stack_trace
                else ""
            ),
        }

        def replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in prepared:
                return prepared[key]
            if key not in values:
                return match.group(0)
            value = values[key]
            return "" if value is None else escape(str(value))

        return PLACEHOLDER_REGEX.sub(replace, template)

    def render(self, markup: str) -> str:
        colors = self.settings.colors
        console = Console(
            file=io.StringIO(),
            force_terminal=colors,
            color_system="standard" if colors else None,
            no_color=not colors,
            emoji=False,
            highlight=False,
            soft_wrap=True,
        )
        with console.capture() as capture:
            console.print(markup, end="")
        return capture.get()

    def format(self, record: LogRecord) -> str:
        template = self.get_template(record.level, record.http_response_status_code)
        return self.render(self.substitute(template, record))


FORMATTER_BY_MODE: dict[Mode, type[Formatter]] = {
    Mode.PRETTY: PrettyFormatter,
    Mode.JSON: JsonFormatter,
}


class Logger:
    def __init__(self, settings: LoggerSettings | Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        if isinstance(settings, LoggerSettings) and not kwargs:
            self.settings = settings
        else:
            base = dict(settings) if settings is not None else {}
            self.settings = LoggerSettings.model_validate({**base, **kwargs})
        self.severity_level = SEVERITY_LEVEL[self.settings.severity]
        self.formatter = FORMATTER_BY_MODE[self.settings.mode](self.settings)

    @property
    def name(self) -> str:
        if self.settings.module:
            return f"{self.settings.application}:{self.settings.module}"
        return self.settings.application

    def is_silent_mode(self, severity: SeverityName) -> bool:
        if self.settings.severity == SeverityName.SILENT:
            return True
        return SEVERITY_LEVEL[severity] < self.severity_level

    def _log(
        self,
        severity: SeverityName,
        level: LevelName,
        message: str,
        args: tuple[Any, ...] = (),
        *,
        error: BaseException | None = None,
        request: Any = None,
        response: Any = None,
        labels: dict[str, str] | None = None,
        tags: list[str] | None = None,
    ) -> LogRecord:
        record = (
            LogRecord.create(error, request, response)
            .set_base_fields(message, list(args), labels, tags)
            .set_log_fields(level, self.name)
            .set_service_fields(
                self.settings.environment,
                self.settings.application,
                self.settings.version,
                self.settings.id,
            )
        )
        if self.is_silent_mode(severity):
            return record
        self.settings.transports[severity](self.formatter.format(record))
        return record

    def debug(self, message: str, *args: Any, labels: dict[str, str] | None = None, tags: list[str] | None = None) -> LogRecord:
        return self._log(SeverityName.DEBUG, LevelName.DEBUG, message, args, labels=labels, tags=tags)

    def info(self, message: str, *args: Any, labels: dict[str, str] | None = None, tags: list[str] | None = None) -> LogRecord:
        return self._log(SeverityName.INFORMATIONAL, LevelName.INFO, message, args, labels=labels, tags=tags)

    def http(self, request: Any, response: Any) -> LogRecord:
        return self._log(
            SeverityName.INFORMATIONAL,
            LevelName.HTTP,
            "",
            request=request,
            response=response,
        )

    def warn(self, message: str, *args: Any, labels: dict[str, str] | None = None, tags: list[str] | None = None) -> LogRecord:
        return self._log(SeverityName.WARNING, LevelName.WARN, message, args, labels=labels, tags=tags)

    def error(self, message: str, *args: Any, labels: dict[str, str] | None = None, tags: list[str] | None = None) -> LogRecord:
        error = args[0] if args and isinstance(args[0], BaseException) else None
        return self._log(SeverityName.ERROR, LevelName.ERROR, message, args, error=error, labels=labels, tags=tags)

    def get_sub_logger(self, **overrides: Any) -> Logger:
        current = dict(self.settings)
        transports = overrides.pop("transports", None) or {}
        current.update(overrides)
        current["transports"] = {**self.settings.transports, **transports}
        return Logger(LoggerSettings.model_validate(current))
