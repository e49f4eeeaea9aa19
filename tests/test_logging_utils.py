import logging

import numpy as np
import pytest

from symquad.logging_utils import apply_debug_logging, debug_log_call, summarize


def test_summarize_reduces_large_arrays():
    text = summarize(np.arange(100.0).reshape(10, 10))
    assert "shape=(10, 10)" in text
    assert "min=0" in text and "max=99" in text
    assert "values=[1.0, 2.0]" in summarize(np.array([1.0, 2.0]))
    assert summarize(np.random.default_rng(0)) == "Generator(...)"


def test_debug_log_call_records_entry_and_exit(caplog):
    logger = logging.getLogger("symquad.tests.logging")

    @debug_log_call(logger)
    def double(values):
        return values * 2

    with caplog.at_level(logging.DEBUG, logger="symquad.tests.logging"):
        double(np.ones(3))

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Entering") and "double" in message for message in messages)
    assert any(message.startswith("Exiting") and "values=[2.0, 2.0, 2.0]" in message for message in messages)


def test_debug_log_call_logs_exceptions(caplog):
    logger = logging.getLogger("symquad.tests.logging")

    @debug_log_call(logger)
    def broken():
        raise RuntimeError("boom")

    with caplog.at_level(logging.DEBUG, logger="symquad.tests.logging"):
        with pytest.raises(RuntimeError):
            broken()
    assert any("Exception in" in record.getMessage() for record in caplog.records)


def test_apply_debug_logging_respects_skip():
    def hot():
        return 1

    def cold():
        return 2

    hot.__module__ = cold.__module__ = "fake_module"
    namespace = {"__name__": "fake_module", "hot": hot, "cold": cold}
    apply_debug_logging(namespace, skip={"hot"})
    assert namespace["hot"] is hot
    assert getattr(namespace["cold"], "_debug_logging_wrapped", False)
    assert namespace["cold"]() == 2
