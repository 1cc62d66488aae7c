from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml


@dataclass(frozen=True)
class ElasticsearchConfig:
    # uri vazia = dry-run (batches só são logados)
    uri: str = ""
    index: str = "logs-default"

    bulk_size: int = 1000
    flush_interval_sec: float = 5.0
    timeout_sec: float = 10.0


@dataclass(frozen=True)
class PipelineConfig:
    queue_capacity: int = 10_000
    poll_timeout_sec: float = 0.1
    error_backoff_sec: float = 1.0
    shutdown_timeout_sec: float = 30.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = ""


@dataclass(frozen=True)
class AppConfig:
    elasticsearch: ElasticsearchConfig = field(default_factory=ElasticsearchConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _opt(d: Mapping[str, Any], path: str, default: Any) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return default
        cur = cur[part]
    return default if cur is None else cur


def _positive(value: Any, path: str, cast=float):
    try:
        out = cast(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Config inválida: '{path}' deve ser numérico, veio {value!r}.") from e
    if out <= 0:
        raise ValueError(f"Config inválida: '{path}' deve ser > 0, veio {out}.")
    return out


def parse_config(data: Mapping[str, Any]) -> AppConfig:
    if not isinstance(data, Mapping):
        raise ValueError("Config inválida: o topo deve ser um mapa (dict).")

    es_raw = _opt(data, "elasticsearch", {})
    if not isinstance(es_raw, Mapping):
        raise ValueError("Config inválida: 'elasticsearch' deve ser um mapa (dict).")

    uri = str(_opt(es_raw, "uri", "")).strip()
    index = str(_opt(es_raw, "index", "logs-default")).strip()
    if not index:
        raise ValueError("Config inválida: 'elasticsearch.index' não pode ser vazio.")

    elasticsearch = ElasticsearchConfig(
        uri=uri,
        index=index,
        bulk_size=_positive(_opt(es_raw, "bulk_size", 1000), "elasticsearch.bulk_size", int),
        flush_interval_sec=_positive(
            _opt(es_raw, "flush_interval_sec", 5.0), "elasticsearch.flush_interval_sec"
        ),
        timeout_sec=_positive(_opt(es_raw, "timeout_sec", 10.0), "elasticsearch.timeout_sec"),
    )

    p_raw = _opt(data, "pipeline", {})
    pipeline = PipelineConfig(
        queue_capacity=_positive(
            _opt(p_raw, "queue_capacity", 10_000), "pipeline.queue_capacity", int
        ),
        poll_timeout_sec=_positive(_opt(p_raw, "poll_timeout_sec", 0.1), "pipeline.poll_timeout_sec"),
        error_backoff_sec=_positive(
            _opt(p_raw, "error_backoff_sec", 1.0), "pipeline.error_backoff_sec"
        ),
        shutdown_timeout_sec=_positive(
            _opt(p_raw, "shutdown_timeout_sec", 30.0), "pipeline.shutdown_timeout_sec"
        ),
    )

    log_raw = _opt(data, "logging", {})
    logging_cfg = LoggingConfig(
        level=str(_opt(log_raw, "level", "INFO")),
        format=str(_opt(log_raw, "format", "")),
    )

    return AppConfig(elasticsearch=elasticsearch, pipeline=pipeline, logging=logging_cfg)


def load_config(path: str = "config.yaml") -> AppConfig:
    """
    Lê o config YAML. Arquivo ausente = todos os defaults.
    ELASTICSEARCH_URI, se definida, substitui elasticsearch.uri.
    """
    p = Path(path)
    data: Any = {}
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    cfg = parse_config(data)

    env_uri = os.environ.get("ELASTICSEARCH_URI", "").strip()
    if env_uri:
        cfg = replace(cfg, elasticsearch=replace(cfg.elasticsearch, uri=env_uri))
    return cfg
