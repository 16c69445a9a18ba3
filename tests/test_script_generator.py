"""Tests for the component script generator and the per-file pipelines"""

from mini2vue.services.transpiler import convert_markup, convert_script
from mini2vue.services.transpiler.script_generator import (
    format_key,
    format_prop_default,
    format_value,
    generate_script,
    generate_utility_module,
    render_function,
)
from mini2vue.services.transpiler.script_parser import parse_script
from mini2vue.services.transpiler.script_transformer import transform_script, transform_utility_module

from helpers import exported_component, returned_data


class TestFormatting:

    def test_format_value(self):
        assert format_value(None) == 'null'
        assert format_value(True) == 'true'
        assert format_value('中文') == '"中文"'
        assert format_value({'a': [1, 2.5]}) == '{"a": [1, 2.5]}'

    def test_format_key(self):
        assert format_key('count') == 'count'
        assert format_key('$el') == '$el'
        assert format_key('e-f') == '"e-f"'

    def test_prop_default_factory(self):
        assert format_prop_default([1]) == '() => ([1])'
        assert format_prop_default({}) == '() => ({})'
        assert format_prop_default('x') == '"x"'

    def test_render_function(self):
        assert render_function('foo()', [], 1) == ['  foo() {},']
        assert render_function('bar(a)', ['return a;'], 0, suffix=';') == ['bar(a) {', '  return a;', '};']


class TestGenerateScript:

    def test_data_round_trip(self, page_script):
        description = transform_script(parse_script(page_script))
        code = generate_script(description)

        assert returned_data(code) == description['data']

    def test_sections(self, page_script):
        code = generate_script(transform_script(parse_script(page_script)))

        component = exported_component(code)
        assert list(component) == ['data', 'created', 'mounted', 'methods']
        methods = [m['key']['name'] for m in component['methods']['value']['properties']]
        assert methods == ['setData', 'handleTap']
        assert code.startswith("import { request } from './api';\n\nconst PAGE_SIZE = 20;\n\nexport default {\n")
        assert code.endswith('};\n')

    def test_method_output(self):
        code = generate_script(transform_script(parse_script(
            "Page({ async save(item) { await this.store(this.data.item); } });"
        )))

        assert '    async save(item) {\n      await this.store(this.item);\n    },' in code

    def test_props_and_watch(self):
        code = generate_script(transform_script(parse_script("""
Component({
  props: { title: 'Hi', tags: ['a'] },
  observers: {
    title: function (value) { this.setData({ upper: value }); },
    'user.name': function () {},
  },
});
""")))

        component = exported_component(code)
        assert list(component) == ['props', 'data', 'methods', 'watch']
        assert '    title: { type: String, default: "Hi" },' in code
        assert '    tags: { type: Array, default: () => (["a"]) },' in code
        assert '    title(value) {' in code
        watched = {p['key']['name']: p['value'] for p in component['watch']['value']['properties']}
        assert watched['user']['type'] == 'ObjectExpression'

    def test_empty_data(self):
        code = generate_script(transform_script(parse_script("Component({});")))

        assert returned_data(code) == {}


def test_generate_utility_module(utility_script):
    code = generate_utility_module(transform_utility_module(parse_script(utility_script)))

    assert code == (
        "export const add = (a, b) => {\n"
        "  return a + b;\n"
        "};\n"
        "\n"
        "export const fetchAll = async (ids) => {\n"
        "  const results = [];\n"
        "  return results;\n"
        "};\n"
    )
    exported = [node['declaration']['declarations'][0]['id']['name'] for node in parse_script(code)['body']]
    assert exported == ['add', 'fetchAll']


class TestConvert:

    def test_module_binding_exposed_in_data(self):
        markup = convert_markup('<import-sjs from="./a.sjs" name="b"/><view>{{ b.format(x) }}</view>', 'index')
        assert markup['moduleBindings'] == [{'from': './a.sjs', 'name': 'b'}]

        result = convert_script("Page({ data: { x: 1 } });", markup['moduleBindings'])

        assert result['kind'] == 'component'
        assert "import bModule from './a.sjs';" in result['content']
        assert '      b: bModule,' in result['content']
        data = exported_component(result['content'])['data']['value']['body']['body'][0]['argument']
        assert [p['key']['name'] for p in data['properties']] == ['x', 'b']

    def test_utility_module_not_routed_through_component(self, utility_script):
        result = convert_script(utility_script)

        assert result['kind'] == 'utility'
        assert 'export default' not in result['content']
        assert 'export const add = (a, b) => {' in result['content']

    def test_plain_script_left_alone(self):
        assert convert_script("console.log('boot');") is None

    def test_markup_file(self, page_markup):
        result = convert_markup(page_markup, 'home')

        assert result['moduleBindings'] == [{'from': './format.sjs', 'name': 'fmt'}]
        assert '<div :class="`page ${active ? \'on\' : \'\'}`">' in result['content']
        assert '<div v-for="(item, index) in items" :key="item.id" @click="handleTap()">' in result['content']
        assert '<text v-if="loggedIn" :disabled="false" @click="logout()">' in result['content']
        assert '<text v-else @click="login()">' in result['content']
        assert '{{ title }}' in result['content']
        assert "import component from './home';" in result['content']

    def test_contemporary_syntax_converted(self):
        result = convert_script("Page({ onLoad(q) { const a = q?.id ?? 1; this.setData({ a }); } });")

        assert result['kind'] == 'component'
        assert '  created(q) {\n    const a = q?.id ?? 1;\n    this.setData({ a });\n  },' in result['content']
