"""Tests for the style cache."""

import itertools
import threading

from sgrflow.graphics import Attribute, GraphicsState, Indexed, Truecolor
from sgrflow.palette import Palette
from sgrflow.style_cache import WIDE_KEY_FLAG, StyleCache, pack_key


def rgb(color):
    return tuple(color.get_truecolor())


class TestPackKey:
    def test_indexed_keys_are_narrow(self):
        key = pack_key(Attribute(127), Indexed(255), Indexed(255))
        assert key < 1 << 25

    def test_truecolor_keys_are_wide(self):
        key = pack_key(Attribute.NONE, Truecolor(0, 0, 0), None)
        assert key & WIDE_KEY_FLAG

    def test_distinct(self):
        colors = [
            None,
            Indexed(0),
            Indexed(1),
            Indexed(255),
            Truecolor(0, 0, 0),
            Truecolor(0, 0, 1),
            Truecolor(255, 255, 255),
        ]
        attributes = [
            Attribute.NONE,
            Attribute.BRIGHT,
            Attribute.OVERLINE,
            Attribute.BRIGHT | Attribute.NEGATIVE,
        ]
        keys = [
            pack_key(attribute, foreground, background)
            for attribute, foreground, background in itertools.product(
                attributes, colors, colors
            )
        ]
        assert len(set(keys)) == len(keys)


class TestStyleCache:
    def test_cached(self):
        cache = StyleCache()
        state = GraphicsState(Indexed(1), None, Attribute.ITALIC)
        style = cache.get(state)
        assert len(cache) == 1
        assert state in cache
        assert cache.get(GraphicsState(Indexed(1), None, Attribute.ITALIC)) is style

    def test_style(self):
        cache = StyleCache()
        style = cache.get(
            GraphicsState(
                Indexed(196),
                Truecolor(1, 2, 3),
                Attribute.ITALIC
                | Attribute.UNDERLINE
                | Attribute.STRIKE
                | Attribute.NEGATIVE
                | Attribute.FRAME
                | Attribute.OVERLINE,
            )
        )
        assert rgb(style.color) == (255, 0, 0)
        assert rgb(style.bgcolor) == (1, 2, 3)
        assert style.italic
        assert style.underline
        assert style.strike
        assert style.reverse
        assert style.frame
        assert style.overline
        assert style.bold is None

    def test_bright_color(self):
        cache = StyleCache()
        bright = cache.get(GraphicsState(Indexed(1), Indexed(1), Attribute.BRIGHT))
        assert rgb(bright.color) == (255, 0, 0)
        # The background isn't brightened
        assert rgb(bright.bgcolor) == (205, 0, 0)
        assert bright.bold is None
        assert bright == cache.get(GraphicsState(Indexed(9), Indexed(1)))

    def test_bright_as_bold(self):
        cache = StyleCache(bright_as_bold=True)
        bright = cache.get(GraphicsState(Indexed(1), None, Attribute.BRIGHT))
        assert bright.bold is True
        aixterm = cache.get(GraphicsState(Indexed(9), None))
        assert aixterm.bold is None
        assert rgb(aixterm.color) == rgb(bright.color)

    def test_configure(self):
        cache = StyleCache()
        state = GraphicsState(Indexed(2))
        cache.get(state)
        palette = Palette.from_names(["#111111"] * 8, ["#222222"] * 8)
        cache.configure(palette=palette)
        assert len(cache) == 0
        assert cache.palette is palette
        assert rgb(cache.get(state).color) == (17, 17, 17)

    def test_clear(self):
        cache = StyleCache()
        cache.clear()
        cache.get(GraphicsState(Indexed(2)))
        cache.clear()
        assert len(cache) == 0

    def test_shared_between_threads(self):
        cache = StyleCache()
        states = [GraphicsState(Indexed(index)) for index in range(256)]
        results = {}

        def worker(name):
            results[name] = [cache.get(state) for state in states]

        threads = [
            threading.Thread(target=worker, args=(name,)) for name in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 256
        for styles in results.values():
            assert styles == results[0]

    def test_configure_while_building(self):
        palette = Palette.from_names(["#111111"] * 8, ["#222222"] * 8)

        class InterruptedCache(StyleCache):
            interrupted = False

            def build_style(self, attributes, foreground, background):
                style = super().build_style(attributes, foreground, background)
                if not self.interrupted:
                    self.interrupted = True
                    self.configure(palette=palette)
                return style

        cache = InterruptedCache()
        state = GraphicsState(Indexed(1))
        stale = cache.get(state)
        assert rgb(stale.color) == (205, 0, 0)
        assert state not in cache
        assert rgb(cache.get(state).color) == (17, 17, 17)
        assert state in cache
