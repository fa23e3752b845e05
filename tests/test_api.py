#!/usr/bin/env python3
"""
Tests for the HTTP API
"""

import pytest
from fastapi.testclient import TestClient

from dish_nutrition.api.nutrition_api import create_app


class ExplodingEstimator:
    """Estimator whose pipeline faults outside the catch-all."""

    def __init__(self, reference_data):
        self.reference_data = reference_data

    def estimate(self, dish_name):
        raise RuntimeError("thread pool exhausted")


@pytest.fixture
def client(estimator, config):
    return TestClient(create_app(estimator=estimator, config=config))


class TestNutritionEndpoint:

    def test_estimate(self, client):
        response = client.post("/nutrition", json={"dishName": "Paneer Butter Masala"})
        assert response.status_code == 200
        data = response.json()
        assert data["dish_type"] == "Veg Gravy"
        assert data["nutrition_per_serving"]["calories"] > 0
        assert data["serving_unit"] == "katori"
        assert "error" not in data

    def test_unknown_dish_still_succeeds(self, client):
        response = client.post("/nutrition", json={"dishName": "Unknown Exotic Dish 12345"})
        assert response.status_code == 200
        assert response.json()["ingredients_used"]

    def test_missing_dish_name(self, client):
        response = client.post("/nutrition", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing dishName in request body"}

    def test_blank_dish_name(self, client):
        response = client.post("/nutrition", json={"dishName": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing dishName in request body"

    def test_no_body(self, client):
        assert client.post("/nutrition").status_code == 400

    def test_malformed_body(self, client):
        response = client.post("/nutrition", content="{not json",
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_wrong_type(self, client):
        assert client.post("/nutrition", json={"dishName": ["Dal"]}).status_code == 400

    def test_unexpected_fault(self, reference_data, config):
        client = TestClient(create_app(estimator=ExplodingEstimator(reference_data), config=config))
        response = client.post("/nutrition", json={"dishName": "Dal Makhani"})
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal server error"
        assert data["message"] == "thread pool exhausted"


class TestServiceEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["reference_data"]["nutrition_entries"] > 0

    def test_metrics(self, client):
        client.post("/nutrition", json={"dishName": "Aloo Gobi"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "nutrition_estimations_total" in response.text
