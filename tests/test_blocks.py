"""
Block type tests - registry, built-in handlers and custom block types
"""

import textwrap

import pytest

from htmlprocessor.lib.directives import BlockRegistry
from htmlprocessor.lib.errors import CustomHandlerLoadError, UnknownBlockTypeError
from htmlprocessor.lib.processor import html_process
from htmlprocessor.models.directives import DirectiveSpec


class TestRegistry:
    """Test registry lookups"""

    def test_builtins_registered(self):
        """Built-in block types are available in every registry"""
        registry = BlockRegistry()
        for name in ["remove", "include", "ie", "js", "css", "[attr]"]:
            assert registry.get(name) is not None

    def test_attribute_types_resolve_to_attr_spec(self):
        """Any [name] resolves to the attribute handler"""
        registry = BlockRegistry()
        assert registry.spec_get("[href]").name == "[attr]"
        assert registry.spec_get("[data-src]").name == "[attr]"

    def test_unknown_returns_none(self):
        assert BlockRegistry().get("nonsense") is None

    def test_resolve_unknown_raises(self):
        with pytest.raises(UnknownBlockTypeError, match="nonsense"):
            BlockRegistry().resolve("nonsense")

    def test_remove_is_target_gated(self):
        registry = BlockRegistry()
        assert registry.resolve("remove").target_gated is True
        assert registry.resolve("include").target_gated is False

    def test_register_requires_callable(self):
        """Non-callable handlers are rejected"""
        with pytest.raises(TypeError):
            BlockRegistry().register(DirectiveSpec(name="bad", description="", handler="nope"))

    def test_registries_are_independent(self):
        """Registering on one registry does not affect another"""
        first = BlockRegistry()
        first.blockType_register("upper", lambda directive, context: directive.body.upper())
        assert BlockRegistry().get("upper") is None


class TestRemoveBlock:
    """Test the remove block type"""

    def test_matching_block_emitted(self):
        """Body of the matching target survives, markers go"""
        source = "<!--build:remove(dev) --> VISIBLE <!--endbuild--> <!--build:remove(prod) --> HIDDEN <!--endbuild-->"
        result = html_process(source, {"environment": "dev"})

        assert "VISIBLE" in result
        assert "HIDDEN" not in result
        assert result == " VISIBLE  <!--build:remove(prod) --><!--endbuild-->"

    def test_strip_removes_markers(self):
        """strip drops non-matching blocks entirely"""
        source = "<!--build:remove(dev) --> VISIBLE <!--endbuild--> <!--build:remove(prod) --> HIDDEN <!--endbuild-->"
        result = html_process(source, {"environment": "dev", "strip": True})

        assert result == " VISIBLE  "

    def test_no_environment_no_targets(self):
        """Block without targets is active when no environment is set"""
        assert html_process("<!-- build:remove -->ALWAYS<!-- /build -->") == "ALWAYS"

    def test_no_targets_inactive_with_environment(self):
        """Block without targets is inactive once an environment is set"""
        result = html_process("<!-- build:remove -->X<!-- /build -->", {"environment": "dev", "strip": True})
        assert result == ""

    def test_one_block_per_script(self):
        """Back-to-back blocks with the same target all survive"""
        source = (
            '<!-- build:remove(dev) --><script src="a.js"></script><!-- /build -->\n'
            '<!-- build:remove(dev) --><script src="b.js"></script><!-- /build -->\n'
        )
        result = html_process(source, {"environment": "dev"})

        assert result == '<script src="a.js"></script>\n<script src="b.js"></script>\n'

    def test_nested_blocks(self):
        """Emitted bodies are scanned for nested directives"""
        source = textwrap.dedent("""\
            <!-- build:remove(dev) -->
            A
            <!-- build:remove(debug) -->
            B
            <!-- /build -->
            <!-- /build -->
            """)
        result = html_process(source, {"environment": "dev"})

        assert result == "\nA\n<!-- build:remove(debug) --><!-- /build -->\n\n"

    def test_nested_inactive_outer_not_processed(self):
        """Body of an inactive block is dropped without being scanned"""
        source = (
            "<!-- build:remove(prod) -->"
            "<!-- build:include(missing.html) --><!-- /build -->"
            "<!-- /build -->"
        )
        assert html_process(source, {"environment": "dev", "strip": True}) == ""


class TestIeBlock:
    """Test the ie block type"""

    def test_wraps_in_conditional_comment(self):
        source = '<!-- build:ie(lt IE 9) --><script src="shiv.js"></script><!-- /build -->'
        assert html_process(source) == '<!--[if lt IE 9]><script src="shiv.js"></script><![endif]-->'

    def test_default_condition(self):
        assert html_process("<!-- build:ie -->x<!-- /build -->") == "<!--[if IE]>x<![endif]-->"

    def test_body_emitted_verbatim(self):
        """Build markers inside the ie body are left untouched"""
        source = "<!-- build:ie --><!-- build:remove(x) -->X<!-- /build --><!-- /build -->"
        result = html_process(source, {"environment": "dev", "strip": True})

        assert result == "<!--[if IE]><!-- build:remove(x) -->X<!-- /build --><![endif]-->"

    def test_verbatim_body_still_interpolated(self):
        """Interpolation runs over the assembled document, ie bodies included"""
        source = "<!-- build:ie(lt IE 9) --><script src=\"${shiv}\"></script><!-- /build -->"
        result = html_process(source, {"data": {"shiv": "shiv.js"}})

        assert result == '<!--[if lt IE 9]><script src="shiv.js"></script><![endif]-->'


class TestReferenceBlocks:
    """Test js, css and [attr] block types"""

    def test_js_block(self):
        source = textwrap.dedent("""\
            <!-- build:js app.min.js -->
            <script src="a.js"></script>
            <script src="b.js"></script>
            <!-- /build -->
            """)
        assert html_process(source) == '<script src="app.min.js"></script>\n'

    def test_css_block(self):
        source = '<!-- build:css(style.min.css) --><link rel="stylesheet" href="a.css"><!-- /build -->'
        assert html_process(source) == '<link rel="stylesheet" href="style.min.css">'

    def test_gated_js_block_outside_target(self):
        """Inactive js block keeps its original scripts"""
        source = '<!-- build:js:dist app.min.js --><script src="a.js"></script><!-- /build -->'

        assert html_process(source, {"environment": "dev", "strip": True}) == '<script src="a.js"></script>'
        assert html_process(source, {"environment": "dev"}) == source
        assert html_process(source, {"environment": "dist"}) == '<script src="app.min.js"></script>'

    def test_attr_replace_directory(self):
        """Value ending in / swaps the directory"""
        source = '<!-- build:[src] img/ --><img src="assets/logo.png"><!-- /build -->'
        assert html_process(source) == '<img src="img/logo.png">'

    def test_attr_replace_value(self):
        """Other values replace the attribute wholesale"""
        source = "<!-- build:[href] /home --><a href='#'>Home</a><!-- /build -->"
        assert html_process(source) == "<a href='/home'>Home</a>"

    def test_attr_only_named_attribute(self):
        source = '<!-- build:[href] x.css --><link rel="stylesheet" href="a.css"><!-- /build -->'
        assert html_process(source) == '<link rel="stylesheet" href="x.css">'


class TestUnknownBlockType:
    """Test unregistered block types"""

    def test_unknown_type_raises_with_line(self):
        source = "<p>\n</p>\n<!-- build:mystery -->x<!-- /build -->"
        with pytest.raises(UnknownBlockTypeError) as excinfo:
            html_process(source)

        assert excinfo.value.line == 3
        assert "mystery" in str(excinfo.value)


class TestCustomBlockTypes:
    """Test block types loaded from Python files"""

    def write_module(self, tmp_path, body, name="custom_blocktype.py"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body))
        return str(path)

    def test_custom_block_type(self, tmp_path):
        """register(registry) adds a working block type"""
        source_file = self.write_module(tmp_path, """\
            def register(registry):
                def upper_handler(directive, context):
                    return directive.body.upper()

                registry.blockType_register('upper', upper_handler)
            """)

        result = html_process(
            "<p><!-- build:upper -->hello<!-- /build --></p>",
            {"customBlockTypes": [source_file]},
        )
        assert result == "<p>HELLO</p>"

    def test_custom_handler_sees_context(self, tmp_path):
        """Handlers receive params and the processing context"""
        source_file = self.write_module(tmp_path, """\
            def register(registry):
                registry.blockType_register(
                    'env',
                    lambda directive, context: f"{directive.params}:{context.environment}",
                )
            """)

        result = html_process(
            "<!-- build:env(label) --><!-- /build -->",
            {"customBlockTypes": [source_file], "environment": "dist"},
        )
        assert result == "label:dist"

    def test_custom_gated_block_type(self, tmp_path):
        """Custom types can opt in to target gating"""
        source_file = self.write_module(tmp_path, """\
            def register(registry):
                registry.blockType_register(
                    'only', lambda directive, context: directive.body, target_gated=True
                )
            """)
        options = {"customBlockTypes": [source_file], "environment": "dev", "strip": True}

        assert html_process("<!-- build:only(dev) -->D<!-- /build -->", options) == "D"
        assert html_process("<!-- build:only(prod) -->P<!-- /build -->", options) == ""

    def test_missing_source(self, tmp_path):
        with pytest.raises(CustomHandlerLoadError, match="not found"):
            html_process("x", {"customBlockTypes": [str(tmp_path / "nope.py")]})

    def test_missing_register(self, tmp_path):
        source_file = self.write_module(tmp_path, "VALUE = 1\n")
        with pytest.raises(CustomHandlerLoadError, match="register"):
            html_process("x", {"customBlockTypes": [source_file]})

    def test_import_failure(self, tmp_path):
        source_file = self.write_module(tmp_path, "def register(registry)\n")
        with pytest.raises(CustomHandlerLoadError, match="Failed to import"):
            html_process("x", {"customBlockTypes": [source_file]})

    def test_failing_register(self, tmp_path):
        source_file = self.write_module(tmp_path, """\
            def register(registry):
                registry.blockType_register('bad', 'not callable')
            """)
        with pytest.raises(CustomHandlerLoadError) as excinfo:
            html_process("x", {"customBlockTypes": [source_file]})

        assert excinfo.value.source == source_file

    def test_load_failure_aborts_even_without_directives(self, tmp_path):
        """Loading happens before scanning, so nothing is returned"""
        source_file = self.write_module(tmp_path, "raise RuntimeError('boom')\n")
        with pytest.raises(CustomHandlerLoadError, match="boom"):
            html_process("<p>plain</p>", {"customBlockTypes": [source_file]})
