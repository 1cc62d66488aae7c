import logging

import pytest

from config import AppConfig, LoggingConfig, load_config, parse_config
from infra.logging_setup import configure_logging


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("ELASTICSEARCH_URI", raising=False)

    cfg = load_config(str(tmp_path / "nope.yaml"))

    assert cfg == AppConfig()
    assert cfg.elasticsearch.bulk_size == 1000
    assert cfg.elasticsearch.flush_interval_sec == 5.0
    assert cfg.pipeline.queue_capacity == 10_000
    assert cfg.elasticsearch.index == "logs-default"


def test_load_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("ELASTICSEARCH_URI", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        """
elasticsearch:
  uri: "http://es:9200"
  index: seller-integration
  bulk_size: 250
  flush_interval_sec: 2.5
pipeline:
  queue_capacity: 500
logging:
  level: debug
""",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.elasticsearch.uri == "http://es:9200"
    assert cfg.elasticsearch.index == "seller-integration"
    assert cfg.elasticsearch.bulk_size == 250
    assert cfg.elasticsearch.flush_interval_sec == 2.5
    assert cfg.pipeline.queue_capacity == 500
    assert cfg.pipeline.error_backoff_sec == 1.0
    assert cfg.logging.level == "debug"


def test_env_overrides_uri(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("elasticsearch:\n  uri: http://from-file:9200\n", encoding="utf-8")
    monkeypatch.setenv("ELASTICSEARCH_URI", "http://from-env:9200")

    assert load_config(str(path)).elasticsearch.uri == "http://from-env:9200"


@pytest.mark.parametrize(
    "data",
    [
        {"elasticsearch": {"bulk_size": 0}},
        {"elasticsearch": {"flush_interval_sec": "soon"}},
        {"pipeline": {"queue_capacity": -1}},
        {"elasticsearch": {"index": ""}},
        {"elasticsearch": "http://es:9200"},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ValueError, match="Config inválida"):
        parse_config(data)


def test_top_level_must_be_mapping():
    with pytest.raises(ValueError):
        parse_config(["a", "b"])


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_configure_logging(restore_root_logger):
    configure_logging(LoggingConfig(level="warning"))

    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 1


def test_configure_logging_rejects_unknown_level(restore_root_logger):
    with pytest.raises(ValueError):
        configure_logging(LoggingConfig(level="loud"))
