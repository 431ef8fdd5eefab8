"""Tests for the EventEmitter and logging helpers."""

import logging

import pytest

from embedbook import EventEmitter
from embedbook import logging_utils


class TestEventEmitter:
    """Tests for EventEmitter."""

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_in_order(self):
        emitter = EventEmitter()
        calls = []

        emitter.on("thing", lambda value: calls.append(("sync", value)))

        @emitter.on("thing")
        async def on_thing(value):
            calls.append(("async", value))

        await emitter.emit("thing", 1)
        assert calls == [("sync", 1), ("async", 1)]

    @pytest.mark.asyncio
    async def test_listener_errors_are_contained(self, caplog):
        emitter = EventEmitter()
        calls = []

        def broken():
            raise RuntimeError("nope")

        emitter.on("thing", broken)
        emitter.on("thing", lambda: calls.append(True))

        with caplog.at_level(logging.ERROR):
            await emitter.emit("thing")

        assert calls == [True]
        assert "nope" in caplog.text

    @pytest.mark.asyncio
    async def test_remove_listener(self):
        emitter = EventEmitter()
        calls = []
        listener = emitter.on("thing", lambda: calls.append(True))
        emitter.remove_listener("thing", listener)
        emitter.remove_listener("thing", listener)
        await emitter.emit("thing")
        assert calls == []

    @pytest.mark.asyncio
    async def test_no_listeners(self):
        await EventEmitter().emit("nothing", 1, 2, 3)


class TestLogging:
    """Tests for the logging helpers."""

    def test_loggable_names_logger_after_class(self):
        class Thing(logging_utils.Loggable):
            pass

        assert Thing.logger.name == "embedbook.Thing"

    def test_configure(self, tmp_path):
        logger = logging_utils.configure("debug", filename=str(tmp_path / "embedbook.log"))
        try:
            assert logger.level == logging.DEBUG
            assert isinstance(logger.handlers[-1], logging.FileHandler)
        finally:
            handler = logger.handlers[-1]
            logger.removeHandler(handler)
            handler.close()
