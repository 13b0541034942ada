import io
import logging

import pytest

from gitkwallet import main as main_module
from gitkwallet.config.settings import load_settings

REQUEST = "protocol=https\nhost=example.com\n"


@pytest.fixture
def settings(tmp_path):
    return load_settings(environ={"XDG_CONFIG_HOME": str(tmp_path)})


def test_get_writes_username_and_password(wallet_service, settings) -> None:
    wallet_service.seed(
        "kdewallet",
        "Git",
        {"https://example.com/": {"username": "alice"}, "https://alice@example.com/": "s3cret"},
    )
    out = io.StringIO()
    main_module.run("get", wallet_service, settings, stdin=io.StringIO(REQUEST), stdout=out)
    assert out.getvalue() == "username=alice\npassword=s3cret\n"


def test_get_with_non_utf8_input_writes_nothing(wallet_service, settings) -> None:
    out = io.StringIO()
    stdin = io.TextIOWrapper(io.BytesIO(REQUEST.encode() + b"username=caf\xe9\n"), encoding="utf-8")
    main_module.run("get", wallet_service, settings, stdin=stdin, stdout=out)
    assert out.getvalue() == ""


def test_get_without_match_writes_nothing(wallet_service, settings) -> None:
    out = io.StringIO()
    main_module.run("get", wallet_service, settings, stdin=io.StringIO(REQUEST + "username=bob\n"), stdout=out)
    assert out.getvalue() == ""


def test_store_then_erase(wallet_service, settings) -> None:
    request = REQUEST + "username=alice\npassword=s3cret\n"
    main_module.run("store", wallet_service, settings, stdin=io.StringIO(request))
    assert wallet_service.entries("kdewallet", "Git")["https://alice@example.com/"] == "s3cret"

    main_module.run("erase", wallet_service, settings, stdin=io.StringIO(request))
    assert wallet_service.entries("kdewallet", "Git") == {}


def test_unknown_operation_is_ignored(wallet_service, settings) -> None:
    out = io.StringIO()
    main_module.run("capability", wallet_service, settings, stdin=io.StringIO(REQUEST), stdout=out)
    assert out.getvalue() == ""
    assert wallet_service.calls == []


def test_main_exits_zero_and_uses_factory(monkeypatch: pytest.MonkeyPatch, wallet_service, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setattr(main_module, "create_wallet_service", lambda settings: wallet_service)
    monkeypatch.setattr("sys.stdin", io.StringIO(REQUEST + "username=alice\npassword=s3cret\n"))
    assert main_module.main(["store", "--folder", "Code"]) == 0
    assert wallet_service.entries("kdewallet", "Code") == {
        "https://example.com/": {"username": "alice"},
        "https://alice@example.com/": "s3cret",
    }


def test_main_invalid_settings_exit_two(monkeypatch: pytest.MonkeyPatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("GIT_CREDENTIAL_KWALLET_CONFIG", str(tmp_path / "missing.yaml"))
    assert main_module.main(["get"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "invalid settings" in captured.err


def test_main_unsupported_platform_exit_two(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setattr("platform.system", lambda: "Darwin")
    assert main_module.main(["get"]) == 2


def test_debug_log_goes_to_stderr_only(wallet_service, settings, caplog: pytest.LogCaptureFixture) -> None:
    out = io.StringIO()
    with caplog.at_level(logging.DEBUG, logger="gitkwallet"):
        main_module.run("get", wallet_service, settings, stdin=io.StringIO(REQUEST), stdout=out)
    assert out.getvalue() == ""
    assert "get: no such folder [NOT_FOUND]" in caplog.messages
