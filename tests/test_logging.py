"""Tests for repolens logging setup."""

from __future__ import annotations

import logging

from repolens.logging import configure_logging, get_logger


def test_console_output_is_terse_by_default(capsys) -> None:
    configure_logging()
    logger = get_logger("context.selector")

    logger.info("selected %d files", 3)
    logger.debug("hidden")

    err = capsys.readouterr().err
    assert "[repolens] INFO selected 3 files" in err
    assert "hidden" not in err


def test_verbose_output_names_the_component(capsys) -> None:
    configure_logging(verbose=True)

    get_logger("analyzers.gaps").debug("scanning %s", "src/App.tsx")

    assert "[repolens] DEBUG analyzers.gaps: scanning src/App.tsx" in capsys.readouterr().err


def test_reconfiguring_replaces_only_repolens_handlers() -> None:
    root = logging.getLogger("repolens")
    foreign = logging.NullHandler()
    root.addHandler(foreign)

    configure_logging()
    configure_logging(verbose=True)

    ours = [handler for handler in root.handlers if getattr(handler, "_repolens", False)]
    assert len(ours) == 1
    assert foreign in root.handlers
    assert root.propagate is False


def test_log_file_records_debug_detail(tmp_path, capsys) -> None:
    log_file = tmp_path / "repolens.log"
    configure_logging(log_file=log_file)

    get_logger("orchestrator").debug("config loaded")
    for handler in logging.getLogger("repolens").handlers:
        handler.flush()

    assert "DEBUG repolens.orchestrator: config loaded" in log_file.read_text(encoding="utf-8")
    assert "config loaded" not in capsys.readouterr().err
