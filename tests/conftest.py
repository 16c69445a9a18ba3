"""Pytest configuration and fixtures for mini2vue tests."""

from pathlib import Path
from typing import Callable, Dict, Union

import pytest


PAGE_MARKUP = """<import-sjs from="./format.sjs" name="fmt"/>
<view class="page {{ active ? 'on' : '' }}">
  <!-- header -->
  <view a:for="{{ items }}" a:key="id" onTap="handleTap">
    <text>{{ this.title }}</text>
    <image src="{{ item.icon }}" />
  </view>
  <button a:if="{{ loggedIn }}" disabled="{{false}}" onTap="logout">Log out</button>
  <button a:else onTap="login">Log in</button>
</view>
"""

PAGE_SCRIPT = """import { request } from './api.js';

const PAGE_SIZE = 20;

Page({
  data: {
    title: 'Home',
    count: 0,
    items: [],
    user: { name: null, vip: false },
  },

  onLoad(query) {
    this.setData({ count: this.data.count + 1 });
  },

  onShow() {
    console.log('show');
  },

  handleTap(e) {
    request(this.data.title, PAGE_SIZE);
  },
});
"""

UTILITY_SCRIPT = """export const add = (a, b) => a + b;

export const fetchAll = async (ids) => {
  const results = [];
  return results;
};
"""


@pytest.fixture
def page_markup() -> str:
    return PAGE_MARKUP


@pytest.fixture
def page_script() -> str:
    return PAGE_SCRIPT


@pytest.fixture
def utility_script() -> str:
    return UTILITY_SCRIPT


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[Dict[str, Union[str, bytes]]], Path]:
    """Create a source tree under tmp_path/src from a {relative path: content} map."""

    def _write(files: Dict[str, Union[str, bytes]]) -> Path:
        root = tmp_path / "src"
        root.mkdir(exist_ok=True)
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _write
