"""Extraction tests for the six site adapters, run against trimmed result pages."""

import pytest

from rentwatch.scrapers.adapters import (
    GoodroomsAdapter,
    NiftyAdapter,
    RStoreAdapter,
    SumaityAdapter,
    SuumoAdapter,
    YahooAdapter,
)
from rentwatch.scrapers.adapters.sumaity import extract_address, extract_area, extract_layout, extract_price
from rentwatch.scrapers.base import UNKNOWN_VALUE
from rentwatch.scrapers.utils.identity import generate_property_id

ALL_ADAPTERS = [SuumoAdapter, NiftyAdapter, GoodroomsAdapter, RStoreAdapter, YahooAdapter, SumaityAdapter]


# ============================================================================
# PAGES
# ============================================================================

SUUMO_ROOM_PAGE = """
<html><body><div class="main">
<div class="property property--highlight js-property js-cassetLink">
  <div class="property_inner-title"><a href="/chintai/bc_100312345678/">パークハイツ阿佐ヶ谷</a></div>
  <img class="js-noContextMenu" rel="https://img01.suumo.com/gazo/100312345678_gw.jpg" src="data:image/gif;base64,R0lGOD">
  <div class="detailbox-property-point">12.5万円</div>
  <div class="detailbox-property-col">12.5万円 管理費 5000円</div>
  <div class="detailbox-property-col">東京都杉並区阿佐谷南１</div>
  <div class="detailbox-property-col detailbox-property--col3"><div>1LDK</div><div>35.2m2</div></div>
  <div class="detailbox-access">
    <div>ＪＲ中央線/阿佐ケ谷駅 歩5分</div>
    <div>東京メトロ丸ノ内線/南阿佐ケ谷駅 歩8分</div>
  </div>
</div>
<div class="property property--highlight js-property js-cassetLink">
  <div class="detailbox-property-point">8万円</div>
  <a href="/chintai/bc_100399999999/">詳細</a>
</div>
</div></body></html>
"""

SUUMO_BUILDING_PAGE = """
<html><body>
<div class="cassetteitem">
  <div class="cassetteitem_content-title">コーポ高円寺</div>
  <ul>
    <li class="cassetteitem_detail-col1">東京都杉並区高円寺南3-4-5</li>
    <li class="cassetteitem_detail-col2"><div class="cassetteitem_detail-text">ＪＲ中央線/高円寺駅 歩7分</div></li>
  </ul>
  <table><tbody><tr>
    <td>2階</td><td><span>9.8万円</span></td><td>管理費 5000円</td>
    <td>1K</td><td>22.1m2</td><td><a href="/chintai/jnc_000012345678/">詳細を見る</a></td>
  </tr></tbody></table>
</div>
<div class="cassetteitem">
  <ul><li class="cassetteitem_detail-col1">東京都杉並区和田1-2</li></ul>
  <table><tbody><tr>
    <td>1階</td><td><span>7.2万円</span></td><td>管理費 3000円</td>
    <td>1R</td><td>18.0m2</td><td><a href="/chintai/jnc_000087654321/">詳細を見る</a></td>
  </tr></tbody></table>
</div>
</body></html>
"""

NIFTY_PAGE = """
<html><body>
<div class="result-bukken-list">
  <div class="bukken-list-name"><a href="/rent/detail_abc123/">ライオンズマンション吉祥寺</a></div>
  <img class="lazyload thumbnail" alt="ライオンズマンション吉祥寺" data-src="https://img.myhome.nifty.com/abc123.jpg" src="/img/lazy-load-pc.gif">
  <p class="rent">13.5万円</p>
  <table>
    <tr><th>所在地</th><td class="bukken-attr-td"><svg class="mapmarker-icon"></svg>東京都武蔵野市吉祥寺本町2-10-3</td></tr>
    <tr><th>間取り</th><td>1LDK</td></tr>
    <tr><th>専有面積</th><td>40.12㎡</td></tr>
    <tr><th>階 / 建物階</th><td>3階/5階建</td></tr>
  </table>
  <ul><li class="bukken-list-station">JR中央線/吉祥寺駅 徒歩6分</li></ul>
</div>
<div class="result-bukken-list">
  <img class="lazyload thumbnail" alt="間取り図" data-src="https://img.myhome.nifty.com/icon_mansion_apart.svg">
  <h3><a href="/rent/detail_def456/">メゾン三鷹</a></h3>
  <div class="price-box"><span>9.2万円</span><span>管理費なし</span></div>
  <div class="spec"><span>1K</span><span>25.5m²</span></div>
  <table>
    <tr><th>所在地</th><td class="bukken-attr-td"><svg class="mapmarker-icon"></svg>東京都三鷹市下連雀3丁目</td></tr>
  </table>
</div>
</body></html>
"""

GOODROOMS_PAGE = """
<html><body>
<div class="list">
<a href="/tokyo/detail/12345/">
<div class="name">グランドメゾン中野</div>
<div class="rent">128,000円</div>
<div class="fee">管理費 8,000円</div>
<div class="addr">東京都中野区中野5丁目</div>
<div class="spec">1LDK / 38.5㎡</div>
<div class="station">中野駅 徒歩6分</div>
<img src="https://img.goodrooms.jp/12345.jpg">
</a>
<a href="/tokyo/detail/23456/">
<div class="name">ハイム高田馬場</div>
<div class="rent">256000円</div>
<div class="spec">2DK / 45.0㎡</div>
</a>
</div>
<h2>他にもこんなお部屋がオススメです</h2>
<a href="/tokyo/detail/99999/"><div>おすすめ物件です</div><div>99,000円</div><div>20.0㎡</div></a>
</body></html>
"""

RSTORE_PAGE = """
<html><body>
<div class="property-item">
<a href="/detail/rs-001/"><img src="/images/rs-001.jpg"></a>
<p>
代官山テラスハウス
</p>
<p>258,000円</p>
<p>東京都渋谷区代官山町12-3</p>
<p>2LDK 55.3㎡</p>
<p>東急東横線 代官山駅 徒歩4分</p>
</div>
<div class="property-item">
<a href="/detail/rs-002/"></a>
<p>価格未定のお部屋</p>
</div>
</body></html>
"""

YAHOO_PAGE = """
<html><body><ul>
<li class="ListBukken__item">
<a href="/rent/detail/000000123456/"><img src="https://realestate.yahoo.co.jp/img/123456.jpg"></a>
<p>
プラウド武蔵小山
</p>
<p>24.8万円</p>
<p>東京都品川区小山3丁目</p>
<p>2LDK / 83m<sup>2</sup></p>
<p>東急目黒線 武蔵小山駅 徒歩3分</p>
</li>
</ul></body></html>
"""

SUMAITY_PAGE = """
<html><body>
<a href="/chintai/tokyo/bldg_search/">条件を変更して検索</a>
<div class="property">
  <img src="https://img.sumaity.com/bldg/1234567.jpg">
  <h2><a href="/chintai/tokyo/bldg_1234567/">マンションサンライズ荻窪新着あり</a></h2>
  <p>JR中央線 荻窪駅 徒歩5分</p>
  <p>東京都杉並区上荻１丁目</p>
  <p>賃料 11.5万円</p>
  <p>管理費 5000円</p>
  <p>1LDK 40.5m²</p>
  <a href="/chintai/tokyo/bldg_1234567/room2/">マンションサンライズ荻窪新着あり</a>
</div>
<div class="property">
  <h2><a href="/chintai/tokyo/bldg_7654321/">コーポ阿佐ヶ谷</a></h2>
  <p>間取り：ワンルーム</p>
</div>
</body></html>
"""

MALFORMED_PAGES = [
    '<html><body><div class="result-bukken-list"><table><tr><td class="bukken-attr-td">',
    '<a href="/tokyo/detail/1/"><div>名前</div',
    "<<<>>> not html at all &&&",
    '<div class="property property--highlight js-property js-cassetLink"><div class="detailbox-property-point">',
]


# ============================================================================
# SHARED CONTRACT
# ============================================================================

class TestAdapterContract:
    @pytest.mark.parametrize("adapter_class", ALL_ADAPTERS)
    def test_empty_page_yields_nothing(self, adapter_class):
        adapter = adapter_class()
        assert adapter.extract("") == []
        assert adapter.extract("<html><body></body></html>") == []

    @pytest.mark.parametrize("adapter_class", ALL_ADAPTERS)
    @pytest.mark.parametrize("html", MALFORMED_PAGES)
    def test_malformed_page_yields_nothing(self, adapter_class, html):
        assert adapter_class().extract(html) == []

    @pytest.mark.parametrize(
        "adapter_class, url",
        [
            (SuumoAdapter, "https://suumo.jp/jj/chintai/ichiran/FR301FC005/?ar=030"),
            (NiftyAdapter, "https://myhome.nifty.com/rent/tokyo/koenji_st/"),
            (GoodroomsAdapter, "https://www.goodrooms.jp/tokyo/search/"),
            (RStoreAdapter, "https://www.r-store.jp/search/"),
            (YahooAdapter, "https://realestate.yahoo.co.jp/rent/search/"),
            (SumaityAdapter, "https://sumaity.com/chintai/tokyo/"),
        ],
    )
    def test_url_matching(self, adapter_class, url):
        assert adapter_class.matches(url)
        others = [cls for cls in ALL_ADAPTERS if cls is not adapter_class]
        assert not any(cls.matches(url) for cls in others)


# ============================================================================
# SITE A: SUUMO
# ============================================================================

class TestSuumoAdapter:
    def test_room_cards(self):
        records = SuumoAdapter().extract(SUUMO_ROOM_PAGE)

        assert len(records) == 1
        record = records[0]
        assert record.title == "パークハイツ阿佐ヶ谷 1LDK"
        assert record.price == "12.5万円"
        assert record.address == "東京都杉並区阿佐谷南１丁目"
        assert record.layout == "1LDK"
        assert record.area == "35.2m2"
        assert record.url == "https://suumo.jp/chintai/bc_100312345678/"
        assert record.access == ["ＪＲ中央線/阿佐ケ谷駅 歩5分", "東京メトロ丸ノ内線/南阿佐ケ谷駅 歩8分"]
        assert record.image_url == "https://img01.suumo.com/gazo/100312345678_gw.jpg"
        assert record.building_type == "apartment"
        assert record.id == generate_property_id("東京都杉並区阿佐谷南１丁目", "35.2m2", "12.5万円")

    def test_building_cards(self):
        records = SuumoAdapter().extract(SUUMO_BUILDING_PAGE)

        assert len(records) == 2
        named, unnamed = records
        assert named.title == "コーポ高円寺 1K"
        assert named.price == "9.8万円"
        assert named.area == "22.1m2"
        assert named.layout == "1K"
        assert named.address == "東京都杉並区高円寺南３丁目"
        assert named.access == ["ＪＲ中央線/高円寺駅 歩7分"]
        assert named.url == "https://suumo.jp/chintai/jnc_000012345678/"

        assert unnamed.title == "Property-18.0m2-7.2万円"
        assert unnamed.address == "東京都杉並区和田１丁目"

    def test_building_card_address_wrapped_over_lines(self):
        page = SUUMO_BUILDING_PAGE.replace(
            "東京都杉並区高円寺南3-4-5", "東京都杉並区\n高円寺南3-4-5"
        )

        named = SuumoAdapter().extract(page)[0]

        assert named.address == "東京都杉並区\n高円寺南３丁目"


# ============================================================================
# SITE B: NIFTY
# ============================================================================

class TestNiftyAdapter:
    def test_full_card(self):
        record = NiftyAdapter().extract(NIFTY_PAGE)[0]

        assert record.title == "ライオンズマンション吉祥寺 3階/5階建 1LDK"
        assert record.price == "13.5万円"
        assert record.address == "東京都武蔵野市吉祥寺本町２丁目"
        assert record.layout == "1LDK"
        assert record.area == "40.12㎡"
        assert record.url == "https://myhome.nifty.com/rent/detail_abc123/"
        assert record.access == ["JR中央線/吉祥寺駅 徒歩6分"]
        assert record.image_url == "https://img.myhome.nifty.com/abc123.jpg"

    def test_fallbacks_and_placeholder_image(self):
        record = NiftyAdapter().extract(NIFTY_PAGE)[1]

        assert record.title == "メゾン三鷹"
        assert record.price == "9.2万円"
        assert record.area == "25.5m²"
        assert record.address == "東京都三鷹市下連雀３丁目"
        assert record.url == "https://myhome.nifty.com/rent/detail_def456/"
        assert record.image_url is None

    def test_icon_glyphs_removed_from_address(self):
        html = NIFTY_PAGE.replace(">東京都武蔵野市", ">\ue003東京都武蔵野市")
        assert NiftyAdapter().extract(html)[0].address == "東京都武蔵野市吉祥寺本町２丁目"

    def test_guesses_next_page(self):
        adapter = NiftyAdapter()
        assert adapter.guess_next_page
        url = "https://myhome.nifty.com/rent/tokyo/koenji_st/?r2=300000&page=2"
        assert adapter.guess_next_page_url(url, 3).endswith("&page=3")


# ============================================================================
# SITE C: GOODROOMS
# ============================================================================

class TestGoodroomsAdapter:
    def test_listing_links(self):
        records = GoodroomsAdapter().extract(GOODROOMS_PAGE)

        assert [r.url for r in records] == [
            "https://www.goodrooms.jp/tokyo/detail/12345/",
            "https://www.goodrooms.jp/tokyo/detail/23456/",
        ]
        first = records[0]
        assert first.title == "グランドメゾン中野"
        assert first.price == "128,000円"
        assert first.address == "東京都中野区"
        assert first.layout == "1LDK"
        assert first.area == "38.5㎡"
        assert first.access == ["中野駅 徒歩6分"]
        assert first.image_url == "https://img.goodrooms.jp/12345.jpg"

    def test_price_without_separators(self):
        second = GoodroomsAdapter().extract(GOODROOMS_PAGE)[1]
        assert second.price == "256000円"

    def test_recommendations_are_ignored(self):
        records = GoodroomsAdapter().extract(GOODROOMS_PAGE)
        assert all("99999" not in r.url for r in records)


# ============================================================================
# SITE D: R-STORE
# ============================================================================

class TestRStoreAdapter:
    def test_cards(self):
        records = RStoreAdapter().extract(RSTORE_PAGE)

        assert len(records) == 1
        record = records[0]
        assert record.title == "代官山テラスハウス"
        assert record.price == "258,000円"
        assert record.address == "東京都渋谷区"
        assert record.layout == "2LDK"
        assert record.area == "55.3㎡"
        assert record.access == ["東急東横線 代官山駅 徒歩4分"]
        assert record.url == "https://www.r-store.jp/detail/rs-001/"
        assert record.image_url == "https://www.r-store.jp/images/rs-001.jpg"


# ============================================================================
# SITE E: YAHOO
# ============================================================================

class TestYahooAdapter:
    def test_cards(self):
        records = YahooAdapter().extract(YAHOO_PAGE)

        assert len(records) == 1
        record = records[0]
        assert record.title == "プラウド武蔵小山"
        assert record.price == "24.8万円"
        assert record.area == "83m²"
        assert record.layout == "2LDK"
        assert record.address == "東京都品川区"
        assert record.access == ["東急目黒線 武蔵小山駅 徒歩3分"]
        assert record.url == "https://realestate.yahoo.co.jp/rent/detail/000000123456/"

    def test_plain_text_area(self):
        html = YAHOO_PAGE.replace("83m<sup>2</sup>", "83.5m²")
        assert YahooAdapter().extract(html)[0].area == "83.5m²"


# ============================================================================
# SITE F: SUMAITY
# ============================================================================

class TestSumaityAdapter:
    def test_listing_with_all_fields(self):
        records = SumaityAdapter().extract(SUMAITY_PAGE)

        assert len(records) == 2
        record = records[0]
        assert record.title == "サンライズ荻窪"
        assert record.price == "11.5万円"
        assert record.layout == "1LDK"
        assert record.area == "40.5m²"
        assert record.address == "東京都杉並区上荻１丁目"
        assert record.access == ["JR中央線 荻窪駅 徒歩5分"]
        assert record.url == "https://sumaity.com/chintai/tokyo/bldg_1234567/"
        assert record.image_url == "https://img.sumaity.com/bldg/1234567.jpg"
        assert record.id == generate_property_id("東京都杉並区上荻１丁目", "40.5m²", "11.5万円")

    def test_partial_listing_uses_unknown_marker(self):
        record = SumaityAdapter().extract(SUMAITY_PAGE)[1]

        assert record.title == "コーポ阿佐ヶ谷"
        assert record.layout == "ワンルーム"
        assert record.price == UNKNOWN_VALUE
        assert record.area == UNKNOWN_VALUE
        assert record.id == generate_property_id("", "ワンルーム", "コーポ阿佐ヶ谷")

    def test_listing_without_any_numbers_is_dropped(self):
        html = '<div class="property"><a href="/chintai/tokyo/bldg_1/">メゾンドール</a><p>詳細はお問い合わせ</p></div>'
        assert SumaityAdapter().extract(html) == []


class TestSumaityFieldParsing:
    def test_rent_labels(self):
        assert extract_price("賃料 8.5万円") == "8.5万円"
        assert extract_price("家賃：12万円") == "12万円"

    def test_split_rent(self):
        assert extract_price("25万8千円") == "25.8万円"

    def test_deposit_amounts_are_skipped(self):
        assert extract_price("敷金 10万円") == ""
        text = "敷金 10万円" + "。" * 25 + "賃料 7万円"
        assert extract_price(text) == "7万円"

    def test_layout_and_area(self):
        assert extract_layout("2SLDK") == "2SLDK"
        assert extract_layout("1R") == "1R"
        assert extract_area("専有面積：25.3m2") == "25.3m²"
        assert extract_area("面積：30") == "30m²"

    def test_address_cleanup(self):
        assert extract_address("所在地 東京都　杉並区　荻窪 ５－１－２") == "東京都杉並区荻窪５丁目"
