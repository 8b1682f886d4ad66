# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import sizepicker  # noqa: F401
except ImportError:
    raise ImportError("sizepicker is not installed. Run: pip install -e '.[dev]'") from None

import pytest

SIZE_TABLE_PAGE = """\
<html>
<head><title>Oversized Tee</title></head>
<body>
  <nav>
    <table class="gnb">
      <tr><td><a href="/">Home</a></td><td><a href="/shop">Shop</a></td><td><a href="/cart">Cart</a></td></tr>
      <tr><td><a href="/new">New</a></td><td><a href="/best">Best</a></td><td><a href="/sale">Sale</a></td></tr>
    </table>
  </nav>
  <div class="detail">
    <table>
      <tr><th>SIZE</th><th>95</th><th>100</th><th>105</th></tr>
      <tr><td>가슴</td><td>52</td><td>54</td><td>56</td></tr>
    </table>
  </div>
</body>
</html>
"""

PRODUCT_PAGE = """\
<html>
<head>
  <meta property="og:image" content="//cdn.example.com/web/product/big/tee_main.jpg">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Product", "name": "Tee",
     "image": ["https://cdn.example.com/web/product/big/tee_main.jpg"]}
  </script>
</head>
<body>
  <img src="https://img.echosting.cafe24.com/skin/base/btn_buy.gif" alt="buy">
  <img src="/web/product/small/tee_main.jpg" alt="Cotton Tee">
  <img data-src="/web/upload/detail/size_chart.jpg" alt="사이즈 가이드">
  <img src="/web/upload/detail/model_01.jpg" alt="model">
  <select name="option1" id="product_option_id1">
    <option value="*">- [필수] 옵션을 선택해 주세요 -</option>
    <option value="**">-------------------</option>
    <option value="S">S</option>
    <option value="M">M [품절]</option>
    <option value="L">L (+1,000원)</option>
  </select>
  <div class="size-info">
    <table>
      <tr><th>사이즈</th><th>S</th><th>M</th><th>L</th></tr>
      <tr><td>총장</td><td>68</td><td>70</td><td>72</td></tr>
      <tr><td>어깨너비</td><td>50</td><td>52</td><td>54</td></tr>
      <tr><td>가슴단면</td><td>55</td><td>57</td><td>59</td></tr>
    </table>
  </div>
</body>
</html>
"""


@pytest.fixture
def size_table_page() -> str:
    return SIZE_TABLE_PAGE


@pytest.fixture
def product_page() -> str:
    return PRODUCT_PAGE
