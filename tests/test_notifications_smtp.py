"""Unit tests for SMTP client wrapper.

Tests the SMTPClient for:
- Connection handling (SMTP and SMTP_SSL)
- TLS/STARTTLS negotiation
- Authentication (with and without credentials)
- Error handling and connection cleanup
- Recipient normalization and sender address building
"""

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, Mock

import pytest

from skillbridge.config.environment import EnvironmentConfig
from skillbridge.notifications.models import InvalidRecipientError, SMTPDeliveryError
from skillbridge.notifications.smtp_client import (
    SMTPClient,
    build_sender_address,
    normalize_recipient,
)


@pytest.fixture
def env_config_with_auth():
    """Environment config with SMTP authentication."""
    return EnvironmentConfig(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="user@example.com",
        smtp_pass="secret123",
        smtp_sender_name="SkillBridge",
    )


@pytest.fixture
def env_config_without_auth():
    """Environment config without SMTP authentication."""
    return EnvironmentConfig(smtp_host="smtp.example.com", smtp_port=25)


@pytest.fixture
def env_config_implicit_tls():
    """Environment config for implicit TLS (port 465)."""
    return EnvironmentConfig(
        smtp_host="smtp.gmail.com",
        smtp_port=465,
        smtp_user="user@gmail.com",
        smtp_pass="apppassword",
    )


@pytest.fixture
def sample_message():
    msg = EmailMessage()
    msg["Subject"] = "Confirm your SkillBridge account"
    msg["From"] = "SkillBridge <user@example.com>"
    msg["To"] = "ada@example.com"
    msg.set_content("Open the link")
    return msg


def test_smtp_client_defaults_to_smtplib():
    client = SMTPClient()
    assert client.smtp_factory is smtplib.SMTP
    assert client.smtp_ssl_factory is smtplib.SMTP_SSL


def test_smtp_client_send_with_starttls(env_config_with_auth, sample_message):
    """Test sending email with STARTTLS (port 587)."""
    mock_smtp = MagicMock()
    mock_factory = Mock(return_value=mock_smtp)

    client = SMTPClient(smtp_factory=mock_factory)
    client.send(sample_message, env_config_with_auth, use_tls=True)

    mock_factory.assert_called_once_with("smtp.example.com", 587)
    mock_smtp.starttls.assert_called_once()
    assert "context" in mock_smtp.starttls.call_args[1]
    mock_smtp.login.assert_called_once_with("user@example.com", "secret123")
    mock_smtp.send_message.assert_called_once_with(sample_message)
    mock_smtp.quit.assert_called_once()


def test_smtp_client_send_with_implicit_tls(env_config_implicit_tls, sample_message):
    """Test sending email with implicit TLS (port 465)."""
    mock_smtp_ssl = MagicMock()
    mock_ssl_factory = Mock(return_value=mock_smtp_ssl)
    mock_factory = Mock()

    client = SMTPClient(smtp_factory=mock_factory, smtp_ssl_factory=mock_ssl_factory)
    client.send(sample_message, env_config_implicit_tls, use_tls=True)

    mock_factory.assert_not_called()
    call_args = mock_ssl_factory.call_args
    assert call_args[0] == ("smtp.gmail.com", 465)
    assert "context" in call_args[1]

    # Already encrypted
    mock_smtp_ssl.starttls.assert_not_called()
    mock_smtp_ssl.login.assert_called_once_with("user@gmail.com", "apppassword")
    mock_smtp_ssl.send_message.assert_called_once_with(sample_message)
    mock_smtp_ssl.quit.assert_called_once()


def test_smtp_client_send_without_auth(env_config_without_auth, sample_message):
    mock_smtp = MagicMock()
    mock_factory = Mock(return_value=mock_smtp)

    client = SMTPClient(smtp_factory=mock_factory)
    client.send(sample_message, env_config_without_auth, use_tls=False)

    mock_factory.assert_called_once_with("smtp.example.com", 25)
    mock_smtp.starttls.assert_not_called()
    mock_smtp.login.assert_not_called()
    mock_smtp.send_message.assert_called_once_with(sample_message)
    mock_smtp.quit.assert_called_once()


def test_smtp_client_skips_login_with_partial_credentials(sample_message):
    env_config = EnvironmentConfig(smtp_host="smtp.example.com", smtp_port=587, smtp_user="user")
    mock_smtp = MagicMock()

    SMTPClient(smtp_factory=Mock(return_value=mock_smtp)).send(sample_message, env_config)

    mock_smtp.login.assert_not_called()


def test_smtp_client_handles_smtp_exception(env_config_with_auth, sample_message):
    """SMTP exceptions are wrapped in SMTPDeliveryError."""
    mock_smtp = MagicMock()
    mock_smtp.send_message.side_effect = smtplib.SMTPException("Connection failed")
    mock_factory = Mock(return_value=mock_smtp)

    client = SMTPClient(smtp_factory=mock_factory)

    with pytest.raises(SMTPDeliveryError) as exc_info:
        client.send(sample_message, env_config_with_auth, use_tls=True)

    assert "SMTP error" in str(exc_info.value)
    mock_smtp.quit.assert_called_once()


def test_smtp_client_handles_network_error(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_smtp.starttls.side_effect = OSError("Network unreachable")

    client = SMTPClient(smtp_factory=Mock(return_value=mock_smtp))

    with pytest.raises(SMTPDeliveryError) as exc_info:
        client.send(sample_message, env_config_with_auth, use_tls=True)

    assert "Network error" in str(exc_info.value)
    mock_smtp.send_message.assert_not_called()
    mock_smtp.quit.assert_called_once()


def test_smtp_client_connection_refused(env_config_with_auth, sample_message):
    """No connection means nothing to close."""
    mock_factory = Mock(side_effect=ConnectionRefusedError("refused"))

    client = SMTPClient(smtp_factory=mock_factory)

    with pytest.raises(SMTPDeliveryError):
        client.send(sample_message, env_config_with_auth)


def test_smtp_client_quit_failure_is_ignored(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_smtp.quit.side_effect = smtplib.SMTPServerDisconnected("gone")

    SMTPClient(smtp_factory=Mock(return_value=mock_smtp)).send(sample_message, env_config_with_auth)

    mock_smtp.send_message.assert_called_once_with(sample_message)


def test_smtp_client_auth_failure(env_config_with_auth, sample_message):
    mock_smtp = MagicMock()
    mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")

    client = SMTPClient(smtp_factory=Mock(return_value=mock_smtp))

    with pytest.raises(SMTPDeliveryError):
        client.send(sample_message, env_config_with_auth)

    mock_smtp.send_message.assert_not_called()


class TestNormalizeRecipient:
    def test_strips_whitespace(self):
        assert normalize_recipient("  ada@example.com ") == "ada@example.com"

    def test_lowercases_domain(self):
        assert normalize_recipient("ada@Example.COM") == "ada@example.com"

    @pytest.mark.parametrize("address", ["", "not-an-email", "ada@", "@example.com"])
    def test_invalid(self, address):
        with pytest.raises(InvalidRecipientError, match="Invalid recipient address"):
            normalize_recipient(address)


class TestBuildSenderAddress:
    def test_uses_smtp_user(self, env_config_with_auth):
        assert build_sender_address(env_config_with_auth) == "SkillBridge <user@example.com>"

    def test_noreply_without_user(self, env_config_without_auth):
        assert build_sender_address(env_config_without_auth) == "SkillBridge <noreply@smtp.example.com>"

    def test_custom_sender_name(self):
        env_config = EnvironmentConfig(
            smtp_host="smtp.example.com", smtp_port=587, smtp_sender_name="Bridge Team"
        )
        assert build_sender_address(env_config) == "Bridge Team <noreply@smtp.example.com>"
