import logging

from weather_metrics.config.logging import ContextualFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("weather_metrics.test", logging.INFO, __file__, 1, "Fetch query completed", None, None)
    record.__dict__.update(extra)
    return record


def test_appends_known_context_in_fixed_order():
    line = ContextualFormatter().format(make_record(sensor_id="station_1", trace_id="abc", other="ignored"))

    assert line.endswith("Fetch query completed | trace_id=abc sensor_id=station_1")
    assert "other" not in line


def test_plain_message_without_context():
    line = ContextualFormatter().format(make_record(trace_id=None))

    assert line.endswith("| INFO | weather_metrics.test | Fetch query completed")
