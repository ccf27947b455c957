import unittest

from pyenhance.engine.exceptions import RenderDepthExceededError, RenderError
from pyenhance.engine.expansion import (
    DEFAULT_MAX_DEPTH,
    ExpansionEngine,
    StyleFragment,
    project_slot,
)
from pyenhance.engine.markup import Element, Text, parse_fragment, serialize
from pyenhance.engine.registry import ComponentRegistry


def my_header(ctx):
    return ctx.html("<style>h1{color:red;}</style><h1><slot></slot></h1>")


def my_card(ctx):
    return '<style>.card{padding:1rem}</style><div class="card"><slot></slot></div>'


def my_title(ctx):
    return ctx.html("<h2>{{ text }}</h2>", text=ctx.attributes.get("text", ""))


def my_page(ctx):
    return '<my-card><my-title text="Page"></my-title></my-card>'


def my_fallback(ctx):
    return "<p><slot>Nothing here</slot></p>"


def my_slotless(ctx):
    return "<hr>"


class EngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = ComponentRegistry.from_mapping({
            "my-header": my_header,
            "my-card": my_card,
            "my-title": my_title,
            "my-page": my_page,
            "my-fallback": my_fallback,
            "my-slotless": my_slotless,
        })
        self.engine = ExpansionEngine(self.registry)

    def expand(self, markup, state=None, engine=None):
        expansion = (engine or self.engine).expand(parse_fragment(markup), state)
        return serialize(expansion.nodes), expansion.fragments


class TestExpansion(EngineTestCase):
    def test_registered_element_is_expanded_and_marked(self) -> None:
        body, fragments = self.expand("<my-header>Hello World</my-header>")
        self.assertEqual(body, '<my-header enhanced="✨"><h1>Hello World</h1></my-header>')
        self.assertEqual(fragments, [StyleFragment("h1{color:red;}", "my-header")])

    def test_unregistered_custom_tag_passes_through(self) -> None:
        body, fragments = self.expand("<not-a-component>x</not-a-component>")
        self.assertEqual(body, "<not-a-component>x</not-a-component>")
        self.assertEqual(fragments, [])

    def test_standard_tags_are_walked(self) -> None:
        body, _ = self.expand('<div id="a"><my-title text="Hi"></my-title></div>')
        self.assertEqual(body, '<div id="a"><my-title text="Hi" enhanced="✨"><h2>Hi</h2></my-title></div>')

    def test_components_inside_slot_content(self) -> None:
        body, fragments = self.expand('<my-card><my-title text="Hi"></my-title></my-card>')
        self.assertEqual(
            body,
            '<my-card enhanced="✨"><div class="card">'
            '<my-title text="Hi" enhanced="✨"><h2>Hi</h2></my-title>'
            "</div></my-card>",
        )
        self.assertEqual([f.host_tag for f in fragments], ["my-card"])

    def test_components_emitted_by_components(self) -> None:
        body, fragments = self.expand("<my-page></my-page>")
        self.assertEqual(
            body,
            '<my-page enhanced="✨"><my-card enhanced="✨"><div class="card">'
            '<my-title text="Page" enhanced="✨"><h2>Page</h2></my-title>'
            "</div></my-card></my-page>",
        )
        self.assertEqual([f.host_tag for f in fragments], ["my-card"])

    def test_duplicate_fragments_are_kept(self) -> None:
        _, fragments = self.expand("<my-header>a</my-header><my-header>b</my-header>")
        self.assertEqual(len(fragments), 2)
        self.assertEqual(fragments[0], fragments[1])

    def test_fragments_in_output_order(self) -> None:
        _, fragments = self.expand("<my-card></my-card><my-header></my-header>")
        self.assertEqual([f.host_tag for f in fragments], ["my-card", "my-header"])

    def test_scoped_fragment(self) -> None:
        fragment = StyleFragment("h1{color:red;}", "my-header")
        self.assertEqual(fragment.scoped(), "my-header h1 {\n  color: red;\n}")

    def test_empty_element_gets_slot_fallback(self) -> None:
        body, _ = self.expand("<my-fallback></my-fallback>")
        self.assertEqual(body, '<my-fallback enhanced="✨"><p>Nothing here</p></my-fallback>')

    def test_children_dropped_without_slot(self) -> None:
        body, _ = self.expand("<my-slotless>ignored</my-slotless>")
        self.assertEqual(body, '<my-slotless enhanced="✨"><hr></my-slotless>')

    def test_already_enhanced_elements_are_not_expanded_again(self) -> None:
        body, _ = self.expand("<my-header>Hello</my-header>")
        again, fragments = self.expand(body)
        self.assertEqual(again, body)
        self.assertEqual(fragments, [])


class TestRenderContext(EngineTestCase):
    def capture(self, tag="my-spy", output="<i></i>"):
        contexts = []

        def spy(ctx):
            contexts.append(ctx)
            return output

        self.registry.register(tag, spy)
        return contexts

    def test_slot_is_serialized_children(self) -> None:
        contexts = self.capture()
        self.expand("<my-spy><b>bold</b> &amp; text</my-spy>")
        self.assertEqual(contexts[0].slot, "<b>bold</b> &amp; text")

    def test_empty_slot(self) -> None:
        contexts = self.capture()
        self.expand("<my-spy></my-spy>")
        self.assertEqual(contexts[0].slot, "")

    def test_reserved_attributes_are_hidden(self) -> None:
        contexts = self.capture()
        body, _ = self.expand('<my-spy enhance-ssr="" size="big"></my-spy>')
        self.assertEqual(dict(contexts[0].attributes), {"size": "big"})
        self.assertEqual(body, '<my-spy size="big" enhanced="✨"><i></i></my-spy>')

    def test_attributes_are_read_only(self) -> None:
        contexts = self.capture()
        self.expand('<my-spy a="1"></my-spy>')
        with self.assertRaises(TypeError):
            contexts[0].attributes["a"] = "2"

    def test_state_only_reaches_top_level(self) -> None:
        contexts = self.capture()
        self.registry.register("my-outer", lambda ctx: "<my-spy></my-spy>")
        state = {"name": "Khalid"}

        self.expand("<my-spy></my-spy><my-outer></my-outer>", state)
        self.assertIs(contexts[0].state.store, state)
        self.assertIsNone(contexts[1].state.store)

    def test_state_propagation(self) -> None:
        contexts = self.capture()
        self.registry.register("my-outer", lambda ctx: "<my-spy></my-spy>")
        engine = ExpansionEngine(self.registry, propagate_state=True)
        state = {"name": "Khalid"}

        self.expand("<my-outer></my-outer>", state, engine=engine)
        self.assertIs(contexts[0].state.store, state)

    def test_contexts_are_not_shared(self) -> None:
        contexts = self.capture()
        self.expand('<my-spy a="1"></my-spy><my-spy a="2"></my-spy>')
        self.assertIsNot(contexts[0], contexts[1])
        self.assertEqual(contexts[0].attributes["a"], "1")
        self.assertEqual(contexts[1].attributes["a"], "2")


class TestExpansionErrors(EngineTestCase):
    def test_render_failure_is_wrapped(self) -> None:
        def broken(ctx):
            raise ValueError("boom")

        self.registry.register("my-broken", broken)
        with self.assertRaises(RenderError) as cm:
            self.expand("<div><my-broken></my-broken></div>")
        self.assertEqual(cm.exception.tag, "my-broken")
        self.assertIsInstance(cm.exception.cause, ValueError)
        self.assertIs(cm.exception.__cause__, cm.exception.cause)

    def test_non_string_output(self) -> None:
        self.registry.register("my-none", lambda ctx: None)
        with self.assertRaises(RenderError) as cm:
            self.expand("<my-none></my-none>")
        self.assertIsInstance(cm.exception.cause, TypeError)

    def test_nested_failure_keeps_inner_tag(self) -> None:
        def broken(ctx):
            raise KeyError("missing")

        self.registry.register("my-broken", broken)
        self.registry.register("my-wrapper", lambda ctx: "<section><my-broken></my-broken></section>")
        with self.assertRaises(RenderError) as cm:
            self.expand("<my-wrapper></my-wrapper>")
        self.assertEqual(cm.exception.tag, "my-broken")

    def test_self_referencing_component_hits_depth_guard(self) -> None:
        self.registry.register("my-loop", lambda ctx: "<my-loop></my-loop>")
        engine = ExpansionEngine(self.registry, max_depth=5)
        with self.assertRaises(RenderDepthExceededError) as cm:
            self.expand("<my-loop></my-loop>", engine=engine)
        self.assertEqual(cm.exception.tag, "my-loop")
        self.assertEqual(cm.exception.depth, 5)

    def test_default_depth_limit(self) -> None:
        self.assertEqual(self.engine.max_depth, DEFAULT_MAX_DEPTH)
        self.assertEqual(DEFAULT_MAX_DEPTH, 100)

    def test_invalid_max_depth(self) -> None:
        with self.assertRaises(ValueError):
            ExpansionEngine(self.registry, max_depth=0)


class TestProjectSlot(unittest.TestCase):
    def test_first_unnamed_slot_only(self) -> None:
        nodes = parse_fragment('<p><slot name="title"></slot><slot></slot><slot></slot></p>')
        projected = project_slot(nodes, [Text("x")])
        self.assertEqual(
            serialize(projected), '<p><slot name="title"></slot>x<slot></slot></p>'
        )

    def test_top_level_slot(self) -> None:
        projected = project_slot([Element("slot")], [Element("b", {}, [Text("y")])])
        self.assertEqual(serialize(projected), "<b>y</b>")


if __name__ == "__main__":
    unittest.main()
