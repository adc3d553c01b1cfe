"""Tests for logging setup and progress tracking."""

import logging

import colorlog
import pytest

from clickup_offline_wiki.logger import (
    LOGGER_NAME,
    ProgressTracker,
    _sanitize_config,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logger():
    package_logger = logging.getLogger(LOGGER_NAME)
    level = package_logger.level
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(level)


class TestSetupLogging:

    @pytest.mark.parametrize('verbosity, expected', [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_levels(self, verbosity, expected):
        assert setup_logging(verbosity=verbosity).level == expected

    def test_explicit_level_wins(self):
        assert setup_logging(verbosity=2, level='error').level == logging.ERROR

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            setup_logging(level='LOUD')

    def test_colored_console_handler(self):
        logger = setup_logging()

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / 'sync.log'

        logger = setup_logging(verbosity=1, log_file=str(log_file))
        logger.info('written to file')
        for handler in logger.handlers:
            handler.flush()

        assert 'written to file' in log_file.read_text(encoding='utf-8')


class TestProgressTracker:

    def test_counts(self):
        with ProgressTracker(3, 'files') as tracker:
            tracker.increment()
            tracker.increment(success=False)
            tracker.increment()

        stats = tracker.get_stats()
        assert stats['total'] == 3
        assert stats['processed'] == 3
        assert stats['successful'] == 2
        assert stats['failed'] == 1

    def test_stats_before_start(self):
        assert ProgressTracker(10).get_stats()['elapsed_time'] == 0.0

    @pytest.mark.parametrize('seconds, expected', [
        (5.0, '5.0s'),
        (65, '1m 5s'),
        (3725, '1h 2m 5s'),
    ])
    def test_format_elapsed(self, seconds, expected):
        assert ProgressTracker._format_elapsed(seconds) == expected


class TestSanitizeConfig:

    def test_api_key_is_redacted(self):
        config = {'clickup': {'api_key': 'pk_secret', 'app_host': 'app.clickup.com'}}

        sanitized = _sanitize_config(config)

        assert sanitized['clickup']['api_key'] == '***REDACTED***'
        assert sanitized['clickup']['app_host'] == 'app.clickup.com'
        assert config['clickup']['api_key'] == 'pk_secret'
