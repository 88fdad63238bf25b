"""Tests for logging helpers, BLAS thread control, progress and JAX setup."""

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from genoprep.core import OutputConfig
from genoprep.core.progress import progress_iterator
from genoprep.core.threading import blas_threads, get_blas_thread_count
from genoprep.utils import WarnOnce, log_rss_memory, setup_logging, write_run_log


@pytest.mark.tier0
class TestWarnOnce:
    def test_warns_only_first_time(self, recording_logger):
        warn = WarnOnce("only once", logger=recording_logger)
        assert not warn.warn_if(False)
        assert warn.warn_if(True)
        assert not warn.warn_if(True)
        assert recording_logger.messages("WARNING") == ["only once"]

    def test_instances_are_independent(self, recording_logger):
        first = WarnOnce("a", logger=recording_logger)
        second = WarnOnce("a", logger=recording_logger)
        first.warn_if(True)
        second.warn_if(True)
        assert len(recording_logger.messages("WARNING")) == 2

    def test_default_logger_is_loguru(self, loguru_messages):
        WarnOnce("from loguru").warn_if(True)
        assert "WARNING: from loguru" in loguru_messages


@pytest.mark.tier1
class TestSetupLogging:
    def test_file_sink_is_json(self, tmp_path: Path):
        log_file = tmp_path / "run.jsonl"
        try:
            setup_logging(verbose=True, log_file=log_file)
            logger.debug("to file")
        finally:
            setup_logging()
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert records[-1]["record"]["message"] == "to file"
        assert records[-1]["record"]["level"]["name"] == "DEBUG"


@pytest.mark.tier1
class TestWriteRunLog:
    def test_format(self, tmp_path: Path):
        config = OutputConfig(outdir=tmp_path / "out", prefix="study")
        path = write_run_log(
            config,
            {"n_samples": 10, "strategy": "mean"},
            {"total": 1.234, "load": 2},
            "genoprep consolidate -bfile data",
        )
        assert path == tmp_path / "out" / "study.log.txt"
        content = path.read_text()
        assert content.startswith("##\n## genoprep Version = ")
        assert "## Command Line Input = genoprep consolidate -bfile data" in content
        assert "## n_samples = 10" in content
        assert "## strategy = mean" in content
        assert "## total time = 1.23 seconds" in content
        assert "## load time = 2 seconds" in content


@pytest.mark.tier0
class TestLogRssMemory:
    def test_returns_rss_in_gb(self):
        # psutil is imported inside the function
        with patch("psutil.Process") as mock_process_class:
            mock_process = MagicMock()
            mock_process.memory_info.return_value.rss = 12_345_678_901
            mock_process_class.return_value = mock_process

            rss = log_rss_memory("test_phase", "test_checkpoint")

        assert abs(rss - 12.35) < 0.01

    def test_logs_phase_and_checkpoint(self, loguru_messages):
        with patch("psutil.Process") as mock_process_class:
            mock_process_class.return_value.memory_info.return_value.rss = 5e9
            log_rss_memory("kinship", "before_eigendecomp")

        assert any(
            "RSS memory: 5.00GB" in m and "before_eigendecomp" in m
            for m in loguru_messages
        )

    def test_real_rss_measurement(self):
        assert 0 < log_rss_memory("integration", "test") < 100


@pytest.mark.tier0
class TestBlasThreads:
    def test_returns_positive(self):
        assert get_blas_thread_count() > 0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GENOPREP_BLAS_THREADS", "1")
        assert get_blas_thread_count() == 1

    def test_env_capped_at_cpu_count(self, monkeypatch):
        monkeypatch.setenv("GENOPREP_BLAS_THREADS", "9999")
        assert get_blas_thread_count() == (os.cpu_count() or 64)

    def test_env_floored_at_one(self, monkeypatch):
        monkeypatch.setenv("GENOPREP_BLAS_THREADS", "-5")
        assert get_blas_thread_count() == 1

    def test_invalid_env_falls_back(self, monkeypatch, loguru_messages):
        monkeypatch.setenv("GENOPREP_BLAS_THREADS", "many")
        assert get_blas_thread_count() > 0
        assert any("not a valid integer" in m for m in loguru_messages)

    def test_context_manager(self):
        with blas_threads(1) as result:
            assert result is None


@pytest.mark.tier0
class TestProgressIterator:
    def test_yields_all_items_and_finishes(self):
        with patch("genoprep.core.progress.progressbar") as mock_pb:
            mock_bar = MagicMock()
            mock_pb.ProgressBar.return_value = mock_bar

            collected = list(progress_iterator(iter(range(5)), total=5, desc="t"))

            assert collected == [0, 1, 2, 3, 4]
            mock_bar.finish.assert_called_once()
            assert mock_bar.update.call_count == 5

    def test_finish_called_on_early_break(self):
        with patch("genoprep.core.progress.progressbar") as mock_pb:
            mock_bar = MagicMock()
            mock_pb.ProgressBar.return_value = mock_bar

            for i, _item in enumerate(progress_iterator(range(10), total=10)):
                if i == 2:
                    break

            mock_bar.finish.assert_called_once()


@pytest.mark.tier0
class TestJaxConfig:
    def test_x64_enabled(self):
        from genoprep.core.jax_config import configure_jax, get_jax_info

        configure_jax(enable_x64=True)
        info = get_jax_info()
        assert info["x64_enabled"]
        assert info["devices"]


def test_progress_disabled_passes_items_through():
    with patch("genoprep.core.progress.progressbar") as mock_pb:
        assert list(progress_iterator([3, 4], total=2, enabled=False)) == [3, 4]
        mock_pb.ProgressBar.assert_not_called()
