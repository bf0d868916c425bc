import logging

from hrdesk.logging_config import configure_app_logging


def test_sets_app_level_and_quiets_http_clients():
    configure_app_logging("debug")

    assert logging.getLogger("hrdesk").level == logging.DEBUG
    assert logging.getLogger("hrdesk.services").getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_app_logging("INFO")
    assert logging.getLogger("hrdesk").level == logging.INFO
