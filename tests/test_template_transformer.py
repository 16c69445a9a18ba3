"""Tests for the AXML to Vue template transformer"""

import pytest

from mini2vue.services.transpiler.markup_parser import parse_markup
from mini2vue.services.transpiler.template_transformer import (
    AxmlToVueTransformer,
    DirectiveKind,
    strip_mustache,
    transform_markup,
)

from helpers import attribute_map, elements


def transform(text: str) -> dict:
    return transform_markup(parse_markup(text))


def first_element(text: str) -> dict:
    return elements(transform(text)['template'])[0]


class TestLoops:

    def test_loop_with_text_child(self):
        element = first_element('<view a:for="{{ items }}">{{ item.name }}</view>')

        assert {'name': 'v-for', 'value': '(item, index) in items', 'kind': 'directive'} in element['attributes']
        assert element['children'] == [{'type': 'Text', 'value': '{{ item.name }}'}]

    def test_custom_loop_names(self):
        element = first_element(
            '<view a:for="{{ list }}" a:for-item="row" a:for-index="i" a:key="id"><view/></view>'
        )

        attrs = attribute_map(element)
        assert attrs['v-for'] == '(row, i) in list'
        assert attrs[':key'] == 'row.id'
        assert 'a:for-item' not in attrs
        assert 'v-for-item' not in attrs
        assert 'v-for-index' not in attrs

    def test_key_this(self):
        element = first_element('<view a:for="{{ tags }}" a:key="*this"><view/></view>')

        assert attribute_map(element)[':key'] == 'item'

    def test_key_expression(self):
        element = first_element('<view a:for="{{ tags }}" a:key="{{ index }}"><view/></view>')

        assert attribute_map(element)[':key'] == 'index'


class TestConditionals:

    def test_if_elif_else(self):
        template = transform(
            '<view a:if="{{ a }}"><view/></view>'
            '<view a:elif="{{ b }}"><view/></view>'
            '<view a:else><view/></view>'
        )['template']

        first, second, third = elements(template)
        assert attribute_map(first) == {'v-if': 'a'}
        assert attribute_map(second) == {'v-else-if': 'b'}
        assert attribute_map(third) == {'v-else': None}

    def test_other_directive_prefixed(self):
        element = first_element('<view a:show="{{ visible }}"><view/></view>')

        assert attribute_map(element) == {'v-show': 'visible'}


class TestEvents:

    @pytest.mark.parametrize("attribute,event", [
        ('onTap', '@click'),
        ('catchTap', '@click'),
        ('onLongPress', '@longpress'),
        ('onInput', '@input'),
        ('onScrollToLower', '@scrolltolower'),
    ])
    def test_event_names(self, attribute, event):
        element = first_element(f'<view {attribute}="handle"><view/></view>')

        assert element['attributes'] == [{'name': event, 'value': 'handle()', 'kind': 'event'}]

    def test_self_reference_stripped(self):
        element = first_element('<view onTap="this.handle"><view/></view>')

        assert attribute_map(element)['@click'] == 'handle()'


class TestStaticAttributes:

    def test_literal_kept(self):
        element = first_element('<view id="main" title="a {{ b }}"><view/></view>')

        assert attribute_map(element) == {'id': 'main', 'title': 'a {{ b }}'}

    def test_exact_mustache_bound(self):
        element = first_element('<image src="{{ item.icon }}"/>')

        assert element['attributes'] == [{'name': ':src', 'value': 'item.icon', 'kind': 'static'}]

    def test_boolean_literal_binding(self):
        element = first_element('<button disabled="{{true}}" loading="{{ false }}"><view/></button>')

        attrs = attribute_map(element)
        assert attrs[':disabled'] is True
        assert attrs[':loading'] is False

    def test_two_mustaches_not_bound(self):
        element = first_element('<view title="{{ a }} and {{ b }}"><view/></view>')

        assert attribute_map(element) == {'title': '{{ a }} and {{ b }}'}

    def test_static_class(self):
        element = first_element('<view class="box"><view/></view>')

        assert attribute_map(element) == {'class': 'box'}

    def test_class_binding(self):
        element = first_element('''<view class="item {{ active ? 'on' : '' }}"><view/></view>''')

        assert attribute_map(element) == {':class': "`item ${active ? 'on' : ''}`"}

    def test_class_binding_with_braces_inside(self):
        element = first_element('<view class="{{ {a: 1} }}"><view/></view>')

        assert attribute_map(element) == {':class': "`${{a: 1}}`"}


class TestTags:

    def test_component_map(self):
        template = transform('<view><view/></view><block><view/></block><text><view/></text>')['template']

        assert [el['tag'] for el in elements(template)] == ['div', 'template', 'span']

    def test_unknown_tag_passes_through(self):
        assert first_element('<swiper-item><view/></swiper-item>')['tag'] == 'swiper-item'

    def test_text_only_element_becomes_text(self):
        assert first_element('<view>Hello</view>')['tag'] == 'text'

    def test_empty_element_mapped(self):
        assert first_element('<view/>')['tag'] == 'div'

    def test_text_self_reference_normalized(self):
        element = first_element('<text>{{ this.title }} / {{this.count}}</text>')

        assert element['children'][0]['value'] == '{{ title }} / {{ count}}'

    def test_comments_dropped(self):
        template = transform('<!-- note --><view/>')['template']

        assert [child['type'] for child in template['children']] == ['Element']

    def test_custom_component_map(self):
        transformer = AxmlToVueTransformer(component_map={'view': 'section'})
        result = transformer.transform(parse_markup('<view><view/></view>'))

        assert elements(result['template'])[0]['tag'] == 'section'


class TestModuleImports:

    def test_binding_collected(self):
        result = transform('<import-sjs from="./a.sjs" name="b"/><view/>')

        assert result['moduleBindings'] == [{'from': './a.sjs', 'name': 'b'}]
        comment = result['template']['children'][0]
        assert comment['type'] == 'Comment'
        assert 'b from ./a.sjs' in comment['value']

    def test_incomplete_import_ignored(self):
        result = transform('<import-sjs from="./a.sjs"/><view/>')

        assert result['moduleBindings'] == []
        assert [child['type'] for child in result['template']['children']] == ['Element']

    def test_bindings_not_shared_between_calls(self):
        transformer = AxmlToVueTransformer()
        transformer.transform(parse_markup('<import-sjs from="./a.sjs" name="a"/>'))
        result = transformer.transform(parse_markup('<view/>'))

        assert result['moduleBindings'] == []


def test_directive_kind():
    assert DirectiveKind.of('a:if') is DirectiveKind.IF
    assert DirectiveKind.of('a:for-item') is DirectiveKind.FOR_ITEM
    assert DirectiveKind.of('a:show') is DirectiveKind.OTHER


def test_strip_mustache():
    assert strip_mustache('{{ a.b }}') == 'a.b'
    assert strip_mustache('plain') == 'plain'
