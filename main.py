import json
import logging
import os
import sys
from typing import Iterable, TextIO

from app.metrics import BulkMetrics
from app.pipeline import MetricsPipeline
from config import load_config
from domain.models import IntegrationRequest
from infra.elasticsearch_sink import ElasticsearchBulkSink
from infra.logging_setup import configure_logging
from infra.sinks import LogBulkSink

logger = logging.getLogger("main")


def feed_lines(lines: Iterable[str], metrics: BulkMetrics) -> int:
    """
    Envia uma integration request por linha JSON. Linha inválida é logada
    e ignorada. Retorna quantos registros foram entregues à facade.
    """
    submitted = 0
    for n, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = IntegrationRequest.from_mapping(json.loads(line))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Skipping line %d: %s", n, e)
            continue
        metrics.submit_event(record)
        submitted += 1
    return submitted


def main(stdin: TextIO = sys.stdin) -> int:
    try:
        cfg = load_config(os.environ.get("METRICS_SINK_CONFIG", "config.yaml"))
        configure_logging(cfg.logging)
    except ValueError as e:
        raise SystemExit(str(e))

    es = cfg.elasticsearch
    if es.uri:
        sink = ElasticsearchBulkSink(es.uri, es.index, timeout_sec=es.timeout_sec)
        sink.start()
        logger.info("Indexing metrics into %s index=%s", es.uri, es.index)
    else:
        sink = LogBulkSink(es.index)
        logger.info("elasticsearch.uri not set, running in dry-run mode")

    pipeline = MetricsPipeline.from_config(cfg, sink)
    pipeline.start()

    drained = False
    try:
        submitted = feed_lines(stdin, pipeline.metrics)
        logger.info("End of input after %d metrics", submitted)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        try:
            drained = pipeline.stop()
        finally:
            if isinstance(sink, ElasticsearchBulkSink):
                sink.close()

    return 0 if drained else 1


if __name__ == "__main__":
    sys.exit(main())
