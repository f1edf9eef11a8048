"""Tests for terminal input decoding and the input poller."""

import asyncio
import os

import pytest

from kafka_eye.app.events import KeyCode, KeyEvent, KeyKind, MouseEvent, MouseKind, ResizeEvent
from kafka_eye.app.keyboard import InputPoller, _incomplete_escape, decode_input
from kafka_eye.app.queue import EventQueue
from kafka_eye.errors import TerminalError


class TestDecodeInput:
    """Raw terminal text to key and mouse events."""

    def test_plain_characters(self):
        assert decode_input("gg") == [KeyEvent.of("g"), KeyEvent.of("g")]

    @pytest.mark.parametrize(
        "text,code",
        [
            ("\r", KeyCode.ENTER),
            ("\n", KeyCode.ENTER),
            ("\t", KeyCode.TAB),
            ("\x7f", KeyCode.BACKSPACE),
            ("\x1b", KeyCode.ESC),
            ("\x1b[A", KeyCode.UP),
            ("\x1b[B", KeyCode.DOWN),
            ("\x1b[C", KeyCode.RIGHT),
            ("\x1b[D", KeyCode.LEFT),
            ("\x1bOA", KeyCode.UP),
            ("\x1b[H", KeyCode.HOME),
            ("\x1b[F", KeyCode.END),
            ("\x1b[Z", KeyCode.BACKTAB),
            ("\x1b[3~", KeyCode.DELETE),
            ("\x1b[5~", KeyCode.PAGE_UP),
            ("\x1b[6~", KeyCode.PAGE_DOWN),
        ],
    )
    def test_special_keys(self, text, code):
        assert decode_input(text) == [KeyEvent(code)]

    def test_ctrl_letter(self):
        (event,) = decode_input("\x03")
        assert event.code == KeyCode.CHAR
        assert event.char == "c"
        assert event.ctrl
        assert not event.is_char("c")

    def test_sequence_mixed_with_text(self):
        events = decode_input("j\x1b[Bk")
        assert events == [KeyEvent.of("j"), KeyEvent(KeyCode.DOWN), KeyEvent.of("k")]

    def test_escape_then_key(self):
        assert decode_input("\x1bq") == [KeyEvent(KeyCode.ESC), KeyEvent.of("q")]

    def test_truncated_csi(self):
        assert decode_input("\x1b[1;") == [KeyEvent(KeyCode.UNKNOWN)]

    def test_key_release_kind(self):
        (event,) = decode_input("\x1b[1;1:3A")
        assert event.code == KeyCode.UP
        assert event.kind == KeyKind.RELEASE

    def test_mouse_scroll(self):
        assert decode_input("\x1b[<64;10;5M") == [MouseEvent(MouseKind.SCROLL_UP, 9, 4)]
        assert decode_input("\x1b[<65;1;1M") == [MouseEvent(MouseKind.SCROLL_DOWN, 0, 0)]

    def test_mouse_press_release_drag(self):
        assert decode_input("\x1b[<0;3;4M")[0].kind == MouseKind.PRESS
        assert decode_input("\x1b[<0;3;4m")[0].kind == MouseKind.RELEASE
        assert decode_input("\x1b[<32;3;4M")[0].kind == MouseKind.DRAG


class TestIncompleteEscape:
    """Detection of escape sequences split across reads."""

    @pytest.mark.parametrize("data", [b"\x1b", b"\x1bO", b"\x1b[", b"a\x1b[1;"])
    def test_incomplete(self, data):
        assert _incomplete_escape(data)

    @pytest.mark.parametrize("data", [b"abc", b"\x1b[A", b"\x1b[5~", b"\x1bq"])
    def test_complete(self, data):
        assert not _incomplete_escape(data)


class TestInputPoller:
    """Event forwarding without a real terminal."""

    def test_emit_drops_release_and_repeat(self):
        queue = EventQueue()
        poller = InputPoller(queue)
        assert not poller.emit(KeyEvent(KeyCode.UP, kind=KeyKind.RELEASE))
        assert not poller.emit(KeyEvent(KeyCode.UP, kind=KeyKind.REPEAT))
        assert poller.emit(KeyEvent(KeyCode.UP))
        assert len(queue) == 1

    def test_emit_forwards_mouse(self):
        queue = EventQueue()
        poller = InputPoller(queue)
        assert poller.emit(MouseEvent(MouseKind.SCROLL_DOWN, 0, 0))

    def test_on_resize_queues_size(self, monkeypatch):
        queue = EventQueue()
        poller = InputPoller(queue)
        monkeypatch.setattr(
            "kafka_eye.app.keyboard.shutil.get_terminal_size",
            lambda: os.terminal_size((120, 40)),
        )
        poller.on_resize()
        assert queue.get_nowait() == ResizeEvent(120, 40)

    @pytest.mark.asyncio
    async def test_run_stops_at_end_of_input(self):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"q")
        os.close(write_fd)
        queue = EventQueue()
        poller = InputPoller(queue, tick_rate=10.0, fd=read_fd)
        try:
            with pytest.raises(TerminalError, match="Terminal input closed"):
                await asyncio.wait_for(poller.run(), timeout=5)
        finally:
            os.close(read_fd)
        assert queue.get_nowait() == KeyEvent.of("q")
        assert queue.get_nowait() is None
