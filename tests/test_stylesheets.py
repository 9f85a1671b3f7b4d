"""Tests for stylesheet rendering and LESS import expansion."""

import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_inliner.config_loader import StyleOptions
from resource_inliner.errors import StylesheetCompileError
from resource_inliner.normalize import normalize_whitespace
from resource_inliner.stylesheets import (
    check_balanced,
    expand_less_imports,
    is_less_stylesheet,
    render_stylesheet,
    resolve_package_import,
)


class TestStylesheets(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)
        self.component_dir = self.root / "src" / "app" / "button"
        self.component_dir.mkdir(parents=True)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def _write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_is_less_stylesheet(self):
        self.assertTrue(is_less_stylesheet("theme.less"))
        self.assertTrue(is_less_stylesheet("THEME.LESS"))
        self.assertFalse(is_less_stylesheet("theme.css"))
        self.assertTrue(is_less_stylesheet("theme.lss", extensions=(".lss",)))

    def test_plain_css_passes_through(self):
        css = ".a {\n  color: red;\n}\n"
        self.assertEqual(render_stylesheet(css, self.component_dir / "a.css"), css)

    def test_relative_import_is_expanded(self):
        self._write("src/app/shared/vars.less", "@gap: 4px;")
        main = self._write("src/app/button/button.less", '@import "../shared/vars";\n.b { margin: @gap; }')
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertIn("@gap: 4px;", expanded)
        self.assertNotIn("@import", expanded)

    def test_prefixed_import_resolves_from_node_modules(self):
        self._write("node_modules/theme/vars.less", "@brand: 12px;")
        main = self._write("src/app/button/button.less", "@import '~theme/vars.less';\n.b { width: @brand; }")
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertIn("@brand: 12px;", expanded)

    def test_prefixed_import_uses_configured_package_roots(self):
        self._write("vendor/kit/mixins.less", "@radius: 2px;")
        options = StyleOptions(package_roots=(self.root / "vendor",))
        found = resolve_package_import("kit/mixins", self.component_dir, options.package_roots)
        self.assertEqual(found, (self.root / "vendor" / "kit" / "mixins.less").resolve())

    def test_nested_imports_resolve_relative_to_their_own_file(self):
        self._write("node_modules/theme/index.less", '@import "colors";')
        self._write("node_modules/theme/colors.less", "@ink: 1px;")
        main = self._write("src/app/button/button.less", '@import "~theme/index";')
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertIn("@ink: 1px;", expanded)

    def test_css_and_url_imports_are_kept_without_options(self):
        main = self._write(
            "src/app/button/button.less",
            '@import "reset.css" screen;\n@import url("https://fonts.example.com/x");\n@import (css) "other";\n.b { width: 1px; }',
        )
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertIn('@import "reset.css" screen;', expanded)
        self.assertIn('@import url("https://fonts.example.com/x");', expanded)
        self.assertIn('@import url("other");', expanded)
        self.assertNotIn("(css)", expanded)

    def test_css_imports_are_hoisted_in_front_of_compiled_css(self):
        main = self._write(
            "src/app/button/button.less",
            '.b { width: 1px; }\n@import (css) "other";\n@import "reset.css";',
        )
        css = render_stylesheet(main.read_text(encoding="utf-8"), main)
        self.assertTrue(css.startswith('@import url("other");\n@import "reset.css";\n'))
        self.assertIn("width: 1px", css)

    def test_less_option_expands_css_file(self):
        self._write("src/app/button/lib.css", ".lib { width: 2px; }")
        main = self._write("src/app/button/button.less", '@import (less) "lib.css";')
        css = render_stylesheet(main.read_text(encoding="utf-8"), main)
        self.assertIn("width: 2px", css)
        self.assertNotIn("@import", css)

    def test_reference_import_keeps_variables_and_mixins_only(self):
        self._write(
            "src/app/button/lib.less",
            "// shared\n@w: 3px;\n.big { width: 1px; }\n.pad(@p) { padding: @p; }\n@media print { .p { color: black; } }",
        )
        main = self._write("src/app/button/button.less", '@import (reference) "lib";\n.a { width: @w; }')
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertIn("@w: 3px;", expanded)
        self.assertIn(".pad(@p) { padding: @p; }", expanded)
        self.assertNotIn(".big", expanded)
        self.assertNotIn("@media", expanded)

        css = normalize_whitespace(render_stylesheet(main.read_text(encoding="utf-8"), main))
        self.assertIn("width: 3px", css)
        self.assertNotIn(".big", css)

    def test_commented_out_imports_are_ignored(self):
        main = self._write(
            "src/app/button/button.less",
            '// @import "gone";\n/* @import "also-gone";\n   @import "~nowhere/x"; */\n.a { width: 1px; }',
        )
        text = main.read_text(encoding="utf-8")
        self.assertEqual(expand_less_imports(text, main), text)
        self.assertIn("width: 1px", render_stylesheet(text, main))

    def test_import_inside_string_is_ignored(self):
        main = self._write("src/app/button/button.less", '.a:after { content: "@import \\"gone\\";"; }')
        text = main.read_text(encoding="utf-8")
        self.assertEqual(expand_less_imports(text, main), text)

    def test_unbalanced_braces_raise_compile_error(self):
        for source in (".a { color: @undefined; ", ".a { width: 1px; } }"):
            with self.subTest(source=source):
                with self.assertRaises(StylesheetCompileError):
                    render_stylesheet(source, self.component_dir / "button.less")

    def test_braces_in_comments_strings_and_urls_are_not_counted(self):
        check_balanced('/* { */ .a { content: "}"; background: url(http://x/{a}.png); } // {', "a.less")

    def test_each_file_is_included_once(self):
        self._write("src/app/button/a.less", '@import "b";\n.a {}')
        self._write("src/app/button/b.less", '@import "a";\n.b {}')
        main = self._write("src/app/button/main.less", '@import "a";\n@import "b";')
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertEqual(expanded.count(".a {}"), 1)
        self.assertEqual(expanded.count(".b {}"), 1)

    def test_optional_missing_import_is_dropped(self):
        main = self._write("src/app/button/main.less", '@import (optional) "missing";\n.m {}')
        expanded = expand_less_imports(main.read_text(encoding="utf-8"), main)
        self.assertEqual(expanded.strip(), ".m {}")

    def test_missing_import_raises_compile_error(self):
        main = self._write("src/app/button/main.less", '@import "~nowhere/vars";')
        with self.assertRaises(StylesheetCompileError):
            render_stylesheet(main.read_text(encoding="utf-8"), main)

    def test_compiles_less_to_css(self):
        self._write("node_modules/theme/vars.less", "@brand: 12px;")
        main = self._write("src/app/button/button.less", "@import '~theme/vars';\n.b { width: @brand; }")
        css = normalize_whitespace(render_stylesheet(main.read_text(encoding="utf-8"), main))
        self.assertIn("width: 12px", css)
        self.assertNotIn("@brand", css)

    def test_compiler_errors_are_wrapped(self):
        main = self._write("src/app/button/button.less", ".b { width: 1px; }")
        with patch("resource_inliner.stylesheets.lesscpy.compile", side_effect=SyntaxError("bad token")):
            with self.assertRaises(StylesheetCompileError) as ctx:
                render_stylesheet(main.read_text(encoding="utf-8"), main)
        self.assertIn("bad token", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
