# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for role-specific image scoring and ranking."""

from __future__ import annotations

import pytest

from sizepicker import ImageCandidate
from sizepicker.images.discovery import discover_image_candidates
from sizepicker.images.scoring import (
    add_image_resolution_variants,
    rank_product_images,
    rank_size_chart_images,
    score_product_image_candidate,
    score_size_chart_image_candidate,
)


class TestProductScore:
    def test_og_main_big_product(self):
        assert score_product_image_candidate("https://cdn.example.com/web/product/big/tee_main.jpg", "og:image") == 12

    def test_thumbnail_penalty(self):
        assert score_product_image_candidate("https://s.com/web/product/small/a.jpg") == 2 - 2

    def test_size_chart_vocabulary_penalized(self):
        plain = score_product_image_candidate("https://s.com/goods/a.jpg")
        chart = score_product_image_candidate("https://s.com/goods/size_chart.jpg")
        assert plain - chart == 4

    def test_gif_and_non_content(self):
        assert score_product_image_candidate("https://s.com/a.gif") == -5
        assert score_product_image_candidate("https://s.com/skin/icon.png") == -6

    def test_small_query_dimension(self):
        assert score_product_image_candidate("https://s.com/a.jpg?w=100") == -4
        assert score_product_image_candidate("https://s.com/a.jpg?w=800") == 0

    def test_korean_vocabulary(self):
        assert score_product_image_candidate("https://s.com/a.jpg", "대표 이미지") == 2


class TestSizeChartScore:
    def test_size_guide(self):
        assert score_size_chart_image_candidate("https://s.com/upload/size_guide.png") == 8

    def test_korean_hint(self):
        assert score_size_chart_image_candidate("https://s.com/upload/a.jpg", "실측 사이즈") == 5

    def test_main_photo_penalized(self):
        assert score_size_chart_image_candidate("https://s.com/upload/size_guide.png", "main") == 4
        assert score_size_chart_image_candidate("https://s.com/a.jpg", "og:image") == -4

    def test_decorative_host_rejected(self):
        assert score_size_chart_image_candidate("https://img.echosting.cafe24.com/skin/size.jpg") is None

    def test_query_floor_is_lower_than_product(self):
        url = "https://s.com/size.jpg?width=250"
        assert score_size_chart_image_candidate(url) == 5
        assert score_product_image_candidate(url) < 0

    def test_banner_directory(self):
        assert score_size_chart_image_candidate("https://s.com/banner/size.jpg") == 5 - 6

    def test_unparseable_url_rejected(self):
        assert score_size_chart_image_candidate("http://[broken/size_chart.jpg") is None


class TestResolutionVariants:
    def test_full_size_inserted_before_thumbnail(self):
        urls = [
            "https://s.com/web/product/small/a.jpg",
            "https://s.com/web/product/big/a.jpg",
            "https://s.com/web/product/extra/small/b.jpg",
            "https://other.com/c.jpg",
        ]
        assert add_image_resolution_variants(urls) == [
            "https://s.com/web/product/big/a.jpg",
            "https://s.com/web/product/small/a.jpg",
            "https://s.com/web/product/extra/big/b.jpg",
            "https://s.com/web/product/extra/small/b.jpg",
            "https://other.com/c.jpg",
        ]

    @pytest.mark.parametrize("size", ["tiny", "medium", "list"])
    def test_other_thumbnail_dirs(self, size):
        assert add_image_resolution_variants([f"https://s.com/web/product/{size}/a.jpg"])[0] == (
            "https://s.com/web/product/big/a.jpg"
        )

    def test_empty(self):
        assert add_image_resolution_variants([]) == []


class TestRanking:
    BASE = "https://shop.example.com/product/tee/1/"

    def test_product_ranking(self, product_page):
        ranked = rank_product_images(discover_image_candidates(product_page, self.BASE))
        assert ranked[0].url == "https://cdn.example.com/web/product/big/tee_main.jpg"
        assert ranked[1].url == "https://shop.example.com/web/product/big/tee_main.jpg"
        assert ranked[-1].url == "https://img.echosting.cafe24.com/skin/base/btn_buy.gif"
        assert [c.score for c in ranked] == sorted((c.score for c in ranked), reverse=True)

    def test_size_chart_ranking(self, product_page):
        ranked = rank_size_chart_images(discover_image_candidates(product_page, self.BASE))
        assert ranked[0].url == "https://shop.example.com/web/upload/detail/size_chart.jpg"
        assert all("echosting" not in c.url for c in ranked)

    def test_stable_for_equal_scores(self):
        cands = [ImageCandidate(url=f"https://s.com/{n}.jpg") for n in ("a", "b", "c")]
        assert [c.url for c in rank_product_images(cands)] == [c.url for c in cands]

    def test_variant_keeps_hint(self):
        ranked = rank_size_chart_images([ImageCandidate(url="https://s.com/web/product/small/x.jpg", hint="사이즈")])
        assert {c.hint for c in ranked} == {"사이즈"}
        assert len(ranked) == 2

    def test_unparseable_url_dropped_from_size_chart_ranking(self):
        cands = [
            ImageCandidate(url="http://[broken/size_chart.jpg"),
            ImageCandidate(url="https://s.com/size_guide.png"),
        ]
        assert [c.url for c in rank_size_chart_images(cands)] == ["https://s.com/size_guide.png"]
