import logging

from insightmap.utils.logging import get_logger
from insightmap.utils.redaction import REDACTED, redact_text, scrub_payload, secret_scope


class TestRedaction:

    def test_registered_secret_is_masked(self):
        with secret_scope("plain-secret-value"):
            assert redact_text("token=plain-secret-value;") == f"token={REDACTED};"

        assert redact_text("token=plain-secret-value;") == "token=plain-secret-value;"

    def test_patterns_masked_without_registration(self):
        text = "key sk-abcdef1234567890 and Bearer abc.def.ghijklmnop"

        redacted = redact_text(text)

        assert "sk-abcdef1234567890" not in redacted
        assert "abc.def.ghijklmnop" not in redacted

    def test_non_strings_pass_through(self):
        assert redact_text(42) == 42
        assert redact_text(None) is None

    def test_scrub_payload_is_deep(self):
        payload = {"a": ["x secret-abc-123 y", {"b": "secret-abc-123"}], "n": 3}

        scrubbed = scrub_payload(payload, secrets=["secret-abc-123"])

        assert scrubbed == {"a": [f"x {REDACTED} y", {"b": REDACTED}], "n": 3}

    def test_nested_scopes(self):
        with secret_scope("outer-secret"):
            with secret_scope("inner-secret", None, ""):
                assert redact_text("outer-secret inner-secret") == f"{REDACTED} {REDACTED}"
            assert redact_text("inner-secret") == "inner-secret"


class TestRedactingLogger:

    def test_log_records_are_scrubbed(self, caplog):
        logger = get_logger("insightmap.tests.redaction")

        with caplog.at_level(logging.INFO, logger="insightmap.tests.redaction"):
            with secret_scope("scoped-credential-999"):
                logger.info("calling with %s", "scoped-credential-999")
                try:
                    raise ValueError("boom scoped-credential-999")
                except ValueError:
                    logger.error("failure", exc_info=True)

        assert "scoped-credential-999" not in caplog.text
        assert REDACTED in caplog.text
