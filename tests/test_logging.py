import logging

from max_proxy.core.logging import SecretRedactingFilter, configure_logging


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


def test_filter_masks_configured_secrets_in_arguments() -> None:
    redactor = SecretRedactingFilter(["refresh-abc", "refresh-abc-long"])
    record = _record("refreshing with %s then %s", "refresh-abc-long", "refresh-abc")

    assert redactor.filter(record) is True
    assert record.getMessage() == "refreshing with *** then ***"


def test_filter_masks_bearer_tokens() -> None:
    redactor = SecretRedactingFilter()
    record = _record("sent Authorization: Bearer sk-ant-oat01-xyz, retrying")

    redactor.filter(record)

    assert record.getMessage() == "sent Authorization: Bearer ***, retrying"


def test_filter_leaves_clean_messages_untouched() -> None:
    redactor = SecretRedactingFilter(["secret"])
    record = _record("upstream responded %s", 200)

    redactor.filter(record)

    assert record.args == (200,)
    assert record.getMessage() == "upstream responded 200"


def test_configure_logging_replaces_previous_redactor() -> None:
    configure_logging("DEBUG", secrets=["first"])
    configure_logging("DEBUG", secrets=["second"])

    for handler in logging.getLogger().handlers:
        redactors = [f for f in handler.filters if isinstance(f, SecretRedactingFilter)]
        assert len(redactors) == 1
        assert redactors[0].redact("second first") == "*** first"
