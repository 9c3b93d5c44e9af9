from unittest import mock

import pytest

from vless.ttyin import KeyboardInput, default_wheel_lines, tty_device


@pytest.fixture
def keyfile(tmp_path):
    path = tmp_path / "keys"
    path.write_bytes(b"a\x00b")
    return str(path)


def test_reads_bytes_in_order(keyfile):
    with KeyboardInput(keyfile) as kb:
        assert kb.getchr() == ord("a")
        assert kb.getchr() == 0o340
        assert kb.getchr() == ord("b")


def test_eof_raises(keyfile):
    with KeyboardInput(keyfile) as kb:
        for _ in range(3):
            kb.getchr()
        with pytest.raises(EOFError):
            kb.getchr()


def test_high_byte_value(tmp_path):
    path = tmp_path / "high"
    path.write_bytes(bytes([0xFF]))
    with KeyboardInput(str(path)) as kb:
        assert kb.getchr() == 0xFF


def test_missing_device_falls_back_to_fd2(tmp_path):
    kb = KeyboardInput(str(tmp_path / "missing"))
    kb.open()
    assert kb.fd == 2
    kb.close()
    assert kb.fd is None


def test_close_releases_descriptor(keyfile):
    kb = KeyboardInput(keyfile)
    kb.open()
    fd = kb.fd
    assert fd is not None and fd != 2
    kb.close()
    assert kb.fd is None


def test_getchr_opens_lazily(keyfile):
    kb = KeyboardInput(keyfile)
    assert kb.getchr() == ord("a")
    kb.close()


def test_tty_device_fallback():
    with mock.patch("os.ttyname", side_effect=OSError):
        assert tty_device() == "/dev/tty"


def test_tty_device_uses_ttyname():
    with mock.patch("os.ttyname", return_value="/dev/pts/7"):
        assert tty_device() == "/dev/pts/7"


def test_default_wheel_lines():
    assert default_wheel_lines() == 1