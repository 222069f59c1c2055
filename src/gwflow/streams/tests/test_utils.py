import logging

import numpy as np

from gwflow.streams.utils import configure_logging, safe_build_kdtree, safe_log_exception


def test_safe_build_kdtree_none():
    assert safe_build_kdtree(None) is None


def test_safe_build_kdtree_empty():
    assert safe_build_kdtree(np.zeros((0, 2))) is None


def test_safe_build_kdtree_good():
    tree = safe_build_kdtree(np.array([[0.0, 0.0], [1.0, 0.0]]))
    assert tree is not None


def test_safe_log_exception_fallback(monkeypatch, capsys):
    # Force logger.exception to raise to exercise fallback
    class E(Exception):
        pass

    def bad_exception(*args, **kwargs):
        raise E('boom')

    logger = logging.getLogger('gwflow.streams.utils')
    monkeypatch.setattr(logger, 'exception', bad_exception)
    safe_log_exception('msg', RuntimeError('test'), ctx='x')
    assert 'LOGGING FAILURE: msg test' in capsys.readouterr().err


def test_safe_log_exception_includes_context(caplog):
    try:
        raise RuntimeError('clip')
    except RuntimeError as e:
        safe_log_exception('stream failed', e, stream_id=3)
    assert 'stream failed' in caplog.text
    assert 'stream_id=3' in caplog.text


def test_configure_logging_is_idempotent():
    log = logging.getLogger('gwflow')
    before = list(log.handlers)
    try:
        configure_logging(logging.DEBUG)
        n = len(log.handlers)
        configure_logging(logging.WARNING)
        assert len(log.handlers) == n
        assert log.level == logging.WARNING
    finally:
        for h in list(log.handlers):
            if h not in before:
                log.removeHandler(h)
        log.setLevel(logging.NOTSET)


def test_safe_build_kdtree_malformed_shape(caplog):
    assert safe_build_kdtree(np.array([1.0, 2.0]), name='stream_midpoint_tree') is None
    assert 'stream_midpoint_tree' in caplog.text
