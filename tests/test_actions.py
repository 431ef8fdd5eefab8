"""Tests for the ActionRegistry module."""

import pytest

from embedbook import ActionRegistry
from embedbook import DEFAULT_SYMBOLS
from embedbook import default_actions
from embedbook import normalise_symbol


def builtin_names(registry):
    return [action.name for action in registry]


class TestDefaults:
    """Tests for the built-in buttons."""

    def test_default_order(self):
        registry = ActionRegistry(default_actions())
        assert builtin_names(registry) == ["first", "back", "stop", "next", "last"]
        assert registry.symbols == [DEFAULT_SYMBOLS[n] for n in ("first", "back", "stop", "next", "last")]

    def test_subset_and_order(self):
        registry = ActionRegistry(default_actions(("next", "stop")))
        assert builtin_names(registry) == ["next", "stop"]

    def test_unknown_builtin(self):
        with pytest.raises(ValueError):
            default_actions(("first", "sideways"))

    def test_remapped_symbol(self):
        registry = ActionRegistry(default_actions(symbols={"stop": "\N{CROSS MARK}"}))
        assert registry.get("\N{CROSS MARK}").name == "stop"
        assert DEFAULT_SYMBOLS["stop"] not in registry


class TestRegistration:
    """Tests for registering and unregistering."""

    def test_register_replaces_in_place(self):
        registry = ActionRegistry(default_actions())

        def custom(*_):
            pass

        registry.register(DEFAULT_SYMBOLS["next"], custom)
        assert len(registry) == 5
        assert registry.symbols.index(DEFAULT_SYMBOLS["next"]) == 3
        assert registry.get(DEFAULT_SYMBOLS["next"]).handler is custom
        assert not registry.get(DEFAULT_SYMBOLS["next"]).is_builtin

    def test_unregister_missing_is_noop(self):
        registry = ActionRegistry()
        assert registry.unregister("\N{SLICE OF PIZZA}") is None

    def test_unregister(self):
        registry = ActionRegistry(default_actions())
        removed = registry.unregister(DEFAULT_SYMBOLS["stop"])
        assert removed.name == "stop"
        assert DEFAULT_SYMBOLS["stop"] not in registry

    def test_set_builtins_keeps_custom_actions_after(self):
        registry = ActionRegistry(default_actions())
        registry.register("\N{SLICE OF PIZZA}", lambda *_: None)
        registry.set_builtins(("back", "next"))
        assert builtin_names(registry) == ["back", "next", None]

    def test_set_builtins_keeps_user_override(self):
        registry = ActionRegistry(default_actions())

        def custom(*_):
            pass

        registry.register(DEFAULT_SYMBOLS["next"], custom)
        registry.set_builtins(("next", "back"))
        assert registry.symbols == [DEFAULT_SYMBOLS["next"], DEFAULT_SYMBOLS["back"]]
        assert registry.get(DEFAULT_SYMBOLS["next"]).handler is custom

    def test_remove_builtins(self):
        registry = ActionRegistry(default_actions())
        registry.remove_builtins(("first", "last"))
        assert builtin_names(registry) == ["back", "stop", "next"]


class TestSymbols:
    """Tests for custom emoji handling."""

    @pytest.mark.parametrize(
        "symbol, expected",
        [
            ("<:blob:757146517978087444>", "757146517978087444"),
            ("<a:dance:757146517978087444>", "757146517978087444"),
            ("757146517978087444", "757146517978087444"),
            ("\N{SLICE OF PIZZA}", "\N{SLICE OF PIZZA}"),
        ],
    )
    def test_normalise(self, symbol, expected):
        assert normalise_symbol(symbol) == expected

    def test_custom_emoji_forms_share_a_key(self):
        registry = ActionRegistry()
        registry.register("757146517978087444", lambda *_: None)
        assert "<:blob:757146517978087444>" in registry


class TestDispatch:
    """Tests for dispatching to handlers."""

    @pytest.mark.asyncio
    async def test_unbound_symbol_is_ignored(self):
        assert await ActionRegistry().dispatch("\N{SLICE OF PIZZA}", None, 0, None) is False

    @pytest.mark.asyncio
    async def test_sync_handler(self):
        calls = []
        registry = ActionRegistry()
        registry.register("\N{SLICE OF PIZZA}", lambda *args: calls.append(args))
        assert await registry.dispatch("\N{SLICE OF PIZZA}", "msg", 2, "nav") is True
        assert calls == [("msg", 2, "nav", "\N{SLICE OF PIZZA}")]

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self):
        calls = []

        async def handler(message, index, navigator, symbol):
            calls.append(index)

        registry = ActionRegistry()
        registry.register("\N{SLICE OF PIZZA}", handler)
        await registry.dispatch("\N{SLICE OF PIZZA}", None, 4, None)
        assert calls == [4]
