import io
import json
import logging

import pytest

from conftest import envelope_line, record_line
from logpretty.config import Config
from logpretty.errors import InputIOError
from logpretty.processor import Processor
from logpretty.renderer import Renderer
from logpretty.sink import ColorMode, ConsoleSink


def run(text, pattern="{m}{n}", sink=None, **config):
    cfg = Config(pattern=pattern, **config)
    processor = Processor(config=cfg, renderer=Renderer(cfg.compile_pattern()))
    out = io.StringIO()
    err = io.StringIO()
    processor.process_stream(io.StringIO(text), sink or ConsoleSink(out, ColorMode.NEVER), err)
    return out.getvalue(), err.getvalue()


def test_message_only_pattern_outputs_message_and_newline():
    out, err = run(record_line(message="hello there"), pattern="{m}")
    assert out == "hello there\n"
    assert err == ""


def test_each_record_is_one_line():
    text = record_line(message="one") + record_line(message="two") + record_line(message="three")
    out, _ = run(text)
    assert out == "one\ntwo\nthree\n"


def test_context_does_not_leak_between_records():
    text = (
        record_line(message="one", mdc={"tenant": "acme"})
        + record_line(message="two", mdc={"tenant": "globex"})
        + record_line(message="three", mdc={})
    )
    out, _ = run(text, pattern="{X(tenant)}|{m}{n}")
    assert out.splitlines() == ["acme|one", "globex|two", "|three"]


def test_malformed_line_goes_to_error_channel_once():
    out, err = run("this is not json\n")
    assert out == ""
    lines = err.splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("Parse failure: ")
    assert lines[0].endswith(" in this is not json")


def test_blank_lines_produce_nothing():
    out, err = run("\n   \n\t\n")
    assert out == ""
    assert err == ""


def test_processing_continues_after_bad_lines():
    text = "garbage\n\n" + record_line(message="still here")
    out, err = run(text)
    assert out == "still here\n"
    assert err.count("Parse failure") == 1


def test_enveloped_plain_text_passes_through():
    out, err = run(json.dumps({"message": "hello world"}) + "\n", enveloped=True)
    assert out == ""
    assert err == "hello world\n"


def test_enveloped_inner_newline_is_not_doubled():
    out, err = run(json.dumps({"message": "hello world\n"}) + "\n", enveloped=True)
    assert err == "hello world\n"


def test_enveloped_record_end_to_end():
    line = '{"message":"{\\"time\\":\\"2024-01-01T00:00:00Z\\",\\"message\\":\\"boot\\",\\"level\\":\\"INFO\\",\\"target\\":\\"svc\\",\\"mdc\\":{}}"}\n'
    out, err = run(line, pattern="{l} {t} - {m}{n}", enveloped=True)
    assert out == "INFO  svc - boot\n"
    assert err == ""


def test_raw_mode_rejects_envelopes():
    out, err = run(envelope_line(), enveloped=False)
    assert out == ""
    assert err.startswith("Parse failure: ")


def test_last_line_without_newline():
    out, _ = run(record_line(message="tail").rstrip("\n"))
    assert out == "tail\n"


def test_overlong_lines_are_reported_and_skipped():
    text = "x" * 25 + "\n" + "yyyyy\n"
    out, err = run(text, max_line_length=10)
    assert out == ""
    first, second = err.splitlines()
    assert first == "Parse failure: line exceeds 10 characters in xxxxxxxxxx"
    assert second.startswith("Parse failure: Invalid JSON")
    assert second.endswith(" in yyyyy")


def test_render_failure_drops_only_that_record(caplog):
    text = (
        record_line(message="bad", time="0001-01-01T00:00:00+01:00", thread="worker-7")
        + record_line(message="good")
    )
    with caplog.at_level(logging.ERROR, logger="logpretty.processor"):
        out, err = run(text)
    assert out == "good\n"
    assert err == ""
    assert len(caplog.records) == 1
    assert caplog.records[0].getMessage().startswith("[worker-7] ")


def test_unavailable_sink_drops_records_silently():
    out, err = run(record_line() + record_line(), sink=ConsoleSink(None))
    assert out == ""
    assert err == ""


def test_closed_sink_drops_records_silently():
    stream = io.StringIO()
    stream.close()
    out, err = run(record_line(), sink=ConsoleSink(stream, ColorMode.NEVER))
    assert err == ""


class _BrokenInput(io.StringIO):
    def readline(self, size=-1):
        raise OSError("device error")


def test_input_errors_are_fatal():
    cfg = Config()
    processor = Processor(config=cfg, renderer=Renderer(cfg.compile_pattern()))
    with pytest.raises(InputIOError):
        processor.process_stream(_BrokenInput(), ConsoleSink(io.StringIO()), io.StringIO())


def test_colors_follow_renderer_setting():
    cfg = Config(pattern="{h({l})}{n}")
    processor = Processor(config=cfg, renderer=Renderer(cfg.compile_pattern(), colorize=True))
    out = io.StringIO()
    processor.process_stream(io.StringIO(record_line(level="ERROR")), ConsoleSink(out, ColorMode.ALWAYS), io.StringIO())
    assert out.getvalue() == "\033[1;31mERROR\033[0m\n"


def test_closed_error_channel_does_not_stop_the_pump():
    cfg = Config(pattern="{m}{n}")
    processor = Processor(config=cfg, renderer=Renderer(cfg.compile_pattern()))
    out = io.StringIO()
    err = io.StringIO()
    err.close()
    text = "garbage\n" + json.dumps({"message": "x"}) + "\n" + record_line(message="after")
    processor.process_stream(io.StringIO(text), ConsoleSink(out, ColorMode.NEVER), err)
    assert out.getvalue() == "after\n"
