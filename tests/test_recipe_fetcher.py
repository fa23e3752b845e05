#!/usr/bin/env python3
"""
Tests for the recipe source (no network access: HTTP calls go to a fake session)
"""

import json

import pytest
import requests

from dish_nutrition.models import RawIngredientLine
from dish_nutrition.recipe_fetcher import (
    GENERIC_TEMPLATE, RecipeFetcher, StaticRecipeSource, parse_recipe_content
)


class FakeResponse:

    def __init__(self, content=None, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {
            "choices": [{"message": {"content": content}}]
        }

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:

    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _fetcher(responses, **kwargs):
    session = FakeSession(responses)
    fetcher = RecipeFetcher(use_api=True, api_key="test-key", session=session,
                            retry_delay=0, **kwargs)
    return fetcher, session


class TestParseRecipeContent:

    def test_json_array(self):
        content = json.dumps([{"ingredient": "Paneer", "quantity": "200g"}])
        assert parse_recipe_content(content) == [RawIngredientLine("Paneer", "200g")]

    def test_json_array_inside_prose(self):
        content = 'Here you go:\n[{"ingredient": "Rice", "quantity": "1 cup"}]\nEnjoy!'
        assert parse_recipe_content(content) == [RawIngredientLine("Rice", "1 cup")]

    def test_ingredient_lines(self):
        content = "Ingredients:\n- Paneer: 200g\n• Onion: 1 medium\nCook well."
        lines = parse_recipe_content(content)
        assert RawIngredientLine("Paneer", "200g") in lines
        assert RawIngredientLine("Onion", "1 medium") in lines

    def test_nothing_usable(self):
        assert parse_recipe_content("I cannot help with that.") == []


class TestRecipeFetcher:

    def test_sample_recipe_is_case_insensitive(self):
        lines = RecipeFetcher(use_api=False).fetch("  Paneer Butter MASALA ")
        assert lines[0] == RawIngredientLine("Paneer", "250g")
        assert len(lines) == 9

    def test_keyword_template(self):
        result = RecipeFetcher(use_api=False).fetch_with_notes("Chicken Chettinad")
        assert result.value[0] == RawIngredientLine("Chicken", "500g")
        assert result.degraded

    def test_generic_template(self):
        lines = RecipeFetcher(use_api=False).fetch("Unknown Exotic Dish 12345")
        assert [(line.ingredient, line.quantity) for line in lines] == list(GENERIC_TEMPLATE)

    def test_api_request_and_parse(self):
        content = json.dumps([{"ingredient": "Bhindi", "quantity": "250g"}])
        fetcher, session = _fetcher([FakeResponse(content)], model="test-model")
        result = fetcher.fetch_with_notes("Bhindi Fry")
        assert result.value == [RawIngredientLine("Bhindi", "250g")]
        assert not result.degraded

        call = session.calls[0]
        assert call["json"]["model"] == "test-model"
        assert "Bhindi Fry" in call["json"]["messages"][1]["content"]
        assert call["headers"]["Authorization"] == "Bearer test-key"

    def test_api_failure_is_retried_then_falls_back(self):
        fetcher, session = _fetcher(
            [requests.ConnectionError("down"), FakeResponse(status_code=503)],
            max_retries=2,
        )
        result = fetcher.fetch_with_notes("Paneer Tikka")
        assert len(session.calls) == 2
        assert result.value[0] == RawIngredientLine("Paneer", "250g")
        assert any("failed" in note.message for note in result.notes)

    def test_retry_recovers(self):
        content = json.dumps([{"ingredient": "Rice", "quantity": "1 cup"}])
        fetcher, session = _fetcher([requests.Timeout("slow"), FakeResponse(content)], max_retries=3)
        assert fetcher.fetch("Jeera Rice") == [RawIngredientLine("Rice", "1 cup")]
        assert len(session.calls) == 2

    def test_malformed_response_falls_back(self):
        fetcher, _ = _fetcher([FakeResponse(payload={"unexpected": True})], max_retries=1)
        result = fetcher.fetch_with_notes("Moong Dal")
        assert result.value[0] == RawIngredientLine("Lentils", "1 cup")
        assert result.degraded

    def test_empty_reply_falls_back(self):
        fetcher, _ = _fetcher([FakeResponse("Sorry.")])
        lines = fetcher.fetch("Mystery Stew")
        assert [(line.ingredient, line.quantity) for line in lines] == list(GENERIC_TEMPLATE)

    def test_reply_without_text_content_falls_back(self):
        fetcher, session = _fetcher([FakeResponse(None), FakeResponse(None)], max_retries=2)
        result = fetcher.fetch_with_notes("Paneer Tikka")
        assert len(session.calls) == 2
        assert result.value[0] == RawIngredientLine("Paneer", "250g")
        assert any("no text content" in note.message for note in result.notes)

    def test_api_without_key_uses_templates(self):
        session = FakeSession([])
        lines = RecipeFetcher(use_api=True, api_key=None, session=session).fetch("Dal Tadka")
        assert lines[0] == RawIngredientLine("Lentils", "1 cup")
        assert session.calls == []


class TestStaticRecipeSource:

    def test_known_and_default(self):
        source = StaticRecipeSource({"Toast": [("Bread", "2")]})
        assert source.fetch("toast") == [RawIngredientLine("Bread", "2")]
        assert len(source.fetch("anything else")) == len(GENERIC_TEMPLATE)
        assert not source.fetch_with_notes("toast").degraded
