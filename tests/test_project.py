"""Tests for project conversion and the command line entry point"""

import asyncio

import pytest

from mini2vue.config import settings
from mini2vue.main import main
from mini2vue.services.project import ConfigurationError, ProjectConverter

from helpers import returned_data


def convert(src, out, **kwargs):
    return asyncio.run(ProjectConverter(**kwargs).convert(src, out))


@pytest.fixture
def project(write_tree, page_markup, page_script, utility_script):
    return write_tree({
        "pages/index/index.axml": page_markup,
        "pages/index/index.js": page_script,
        "pages/index/format.sjs": "export default { upper: (s) => s.toUpperCase() };\n",
        "utils/math.js": utility_script,
        "utils/boot.js": "console.log('boot');\n",
        "components/card/card.axml": "<view>{{ title }}</view>",
        "components/card/card.ts": "Component({ props: { title: '' } });\n",
        "components/card/card.css": ".card { color: red; }\n",
        "assets/logo.png": b"\x89PNG\r\n",
        "app.json": '{"pages": ["pages/index/index"]}\n',
    })


class TestProjectConverter:

    def test_outputs(self, project, tmp_path):
        out = tmp_path / "out"
        report = convert(project, out)

        assert report.failed == []
        assert (out / "pages/index/index.vue").exists()
        assert not (out / "pages/index/index.axml").exists()
        assert (out / "pages/index/index.css").read_text() == settings.STYLE_PLACEHOLDER + "\n"
        assert (out / "components/card/card.vue").exists()
        assert (out / "components/card/card.css").read_text() == ".card { color: red; }\n"
        assert (out / "assets/logo.png").read_bytes() == b"\x89PNG\r\n"
        assert (out / "app.json").read_text() == '{"pages": ["pages/index/index"]}\n'

    def test_helper_module_copied_and_bound(self, project, tmp_path):
        out = tmp_path / "out"
        convert(project, out)

        helper = out / "pages/index/format.sjs"
        assert helper.read_text() == (project / "pages/index/format.sjs").read_text()
        script = (out / "pages/index/index.js").read_text()
        assert "import fmtModule from './format.sjs';" in script
        assert "fmt: fmtModule," in script

    def test_scripts(self, project, tmp_path, page_script):
        out = tmp_path / "out"
        convert(project, out)

        script = (out / "pages/index/index.js").read_text()
        assert "export default {" in script
        assert "Page(" not in script
        assert returned_data(script)['title'] == 'Home'
        assert "export const add = (a, b) => {" in (out / "utils/math.js").read_text()
        assert (out / "utils/boot.js").read_text() == "console.log('boot');\n"
        assert "export default {" in (out / "components/card/card.ts").read_text()

    def test_declaration_file(self, project, tmp_path):
        out = tmp_path / "out"
        convert(project, out)

        declarations = (out / settings.DECLARATION_FILE_NAME).read_text()
        assert "declare const my: any;" in declarations
        assert "declare function Page(options: any): any;" in declarations
        assert "declare function Component(options: any): any;" in declarations

    def test_report(self, project, tmp_path):
        out = tmp_path / "out"
        report = convert(project, out)

        converted = {path.relative_to(out.resolve()).as_posix() for path in report.converted}
        assert converted == {
            "pages/index/index.vue",
            "pages/index/index.js",
            "utils/math.js",
            "components/card/card.vue",
            "components/card/card.ts",
        }
        copied = {path.relative_to(out.resolve()).as_posix() for path in report.copied}
        assert "utils/boot.js" in copied
        assert "pages/index/format.sjs" in copied
        assert report.ok

    def test_typed_script_converted(self, write_tree, tmp_path):
        src = write_tree({
            "card.axml": "<view>{{ title }}</view>",
            "card.ts": (
                "interface Tap { type?: string }\n"
                "Component({\n"
                "  props: { title: '' },\n"
                "  methods: {\n"
                "    tap(e: Tap): void { this.setData({ last: e?.type ?? 'tap' }); },\n"
                "  },\n"
                "});\n"
            ),
        })
        out = tmp_path / "out"

        report = convert(src, out)

        assert report.failed == []
        script = (out / "card.ts").read_text()
        assert script.startswith("interface Tap { type?: string }\n\nexport default {\n")
        assert "    tap(e: Tap) {\n      this.setData({ last: e?.type ?? 'tap' });\n    }," in script

    def test_failed_script_skipped(self, write_tree, tmp_path):
        src = write_tree({"broken.js": "Page({ data: {", "ok.json": "{}"})
        out = tmp_path / "out"

        report = convert(src, out)

        assert [path.name for path in report.failed] == ["broken.js"]
        assert not (out / "broken.js").exists()
        assert (out / "ok.json").exists()
        assert not report.ok

    def test_failed_script_copied_when_enabled(self, write_tree, tmp_path):
        src = write_tree({"broken.js": "Page({ data: {"})
        out = tmp_path / "out"

        report = convert(src, out, copy_on_failure=True)

        assert (out / "broken.js").read_text() == "Page({ data: {"
        assert [path.name for path in report.failed] == ["broken.js"]

    def test_script_without_markup_has_no_bindings(self, write_tree, tmp_path):
        src = write_tree({
            "a.axml": '<import-sjs from="./h.sjs" name="h"/><view/>',
            "b.js": "Page({});",
        })
        out = tmp_path / "out"
        convert(src, out)

        assert "hModule" not in (out / "b.js").read_text()


class TestConfiguration:

    def test_missing_input(self, tmp_path):
        with pytest.raises(ConfigurationError):
            convert(tmp_path / "missing", tmp_path / "out")

    def test_input_is_a_file(self, tmp_path):
        source = tmp_path / "file.axml"
        source.write_text("<view/>")

        with pytest.raises(ConfigurationError):
            convert(source, tmp_path / "out")

    def test_output_inside_input(self, write_tree):
        src = write_tree({"index.axml": "<view/>"})

        with pytest.raises(ConfigurationError):
            convert(src, src / "dist")
        with pytest.raises(ConfigurationError):
            convert(src, src)


class TestCli:

    def test_success(self, write_tree, tmp_path):
        src = write_tree({"index.axml": "<view/>", "index.js": "Page({});"})
        out = tmp_path / "out"

        with pytest.raises(SystemExit) as exc_info:
            main(["--input", str(src), "--output", str(out)])

        assert exc_info.value.code == 0
        assert (out / "index.vue").exists()

    def test_bad_input_exits_with_error(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--input", str(tmp_path / "missing"), "--output", str(tmp_path / "out")])

        assert exc_info.value.code == 1

    def test_missing_arguments(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
