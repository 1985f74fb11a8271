"""
Tests for application configuration.
"""

import pytest

from config import Config, config


@pytest.mark.parametrize("filename, size, valid", [
    ("inbox.txt", 1024, True),
    ("INBOX.JSON", 1024, True),
    ("statement.pdf", 1024, False),
    ("inbox.txt", 0, False),
    ("inbox.txt", Config.MAX_INBOX_SIZE_BYTES + 1, False),
])
def test_validate_file(filename, size, valid):
    is_valid, error = config.validate_file(filename, size)

    assert is_valid is valid
    assert (error is None) is valid


def test_settings_cover_parser_and_api_only():
    settings = config.to_dict()

    assert settings["max_message_length"] == config.MAX_MESSAGE_LENGTH
    assert settings["allowed_inbox_types"] == [".txt", ".json"]
    assert isinstance(config.API_PORT, int)
    # The Streamlit host and port belong to the `streamlit run` command line
    assert not hasattr(Config, "FRONTEND_HOST")
    assert not hasattr(Config, "FRONTEND_PORT")
