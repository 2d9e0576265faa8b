"""
Unit Tests - Reports API
"""
import polars as pl
import pytest
from fastapi.testclient import TestClient

from sales_reports.ingestion.snapshot import SalesSnapshot
from sales_reports.serving.api import create_api_app
from sales_reports.serving.api.routes.reports import get_snapshot

EVALUATION = {"evaluation_date": "2025-06-30"}


@pytest.fixture
def client(sample_snapshot) -> TestClient:
    """API client reading from the sample snapshot instead of the database"""
    app = create_api_app()
    app.dependency_overrides[get_snapshot] = lambda: sample_snapshot
    return TestClient(app)


class TestCustomerEndpoints:
    """Tests for /api/v1/reports/customers"""

    def test_list_customers(self, client):
        """All customers are returned, ordered by key"""
        response = client.get("/api/v1/reports/customers", params=EVALUATION)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4
        assert body["evaluation_date"] == "2025-06-30"
        assert [item["customer_key"] for item in body["items"]] == [1, 2, 3, 99]

    def test_filter_by_segment(self, client):
        """Segment filter keeps only matching customers"""
        response = client.get("/api/v1/reports/customers", params={**EVALUATION, "segment": "VIP"})

        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["customer_name"] == "John Doe"
        assert body["items"][0]["average_order_value"] == pytest.approx(3000.0)

    def test_unknown_segment_rejected(self, client):
        """Segment values are validated"""
        response = client.get("/api/v1/reports/customers", params={"segment": "Gold"})

        assert response.status_code == 422

    def test_order_and_paginate(self, client):
        """Ordering by total_sales descending with a page size of 2"""
        response = client.get(
            "/api/v1/reports/customers",
            params={**EVALUATION, "order_by": "total_sales", "descending": True, "page_size": 2},
        )

        body = response.json()
        assert [item["customer_key"] for item in body["items"]] == [1, 99]
        assert body["total"] == 4

    def test_invalid_order_by(self, client):
        """Ordering by an unknown column is a bad request"""
        response = client.get("/api/v1/reports/customers", params={"order_by": "nope"})

        assert response.status_code == 400

    def test_get_customer(self, client):
        """Single customer lookup"""
        response = client.get("/api/v1/reports/customers/2", params=EVALUATION)

        assert response.status_code == 200
        assert response.json()["customer_segment"] == "New"
        assert response.json()["average_monthly_spend"] == pytest.approx(150.0)
        assert response.json()["Age"] == 18

    def test_get_customer_not_found(self, client):
        """Customers without qualifying lines are not in the report"""
        response = client.get("/api/v1/reports/customers/4", params=EVALUATION)

        assert response.status_code == 404

    def test_customer_segments(self, client):
        """Segment summary counts and sums sales"""
        response = client.get("/api/v1/reports/customers/segments", params=EVALUATION)

        assert response.status_code == 200
        summary = {item["segment"]: item for item in response.json()}
        assert summary["VIP"]["count"] == 1
        assert summary["New"]["count"] == 3
        assert summary["New"]["total_sales"] == pytest.approx(530.0)


class TestProductEndpoints:
    """Tests for /api/v1/reports/products"""

    def test_filter_by_category(self, client):
        """Category filter"""
        response = client.get("/api/v1/reports/products", params={**EVALUATION, "category": "Accessories"})

        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["product_key"] == 20
        assert body["items"][0]["avg_selling_price"] == pytest.approx(450.0)

    def test_get_product(self, client):
        """Single product lookup"""
        response = client.get("/api/v1/reports/products/10", params=EVALUATION)

        assert response.status_code == 200
        assert response.json()["product_segment"] == "Mid-Range"
        assert response.json()["recency_months"] == 29

    def test_product_segments(self, client):
        """Every product is in the bottom band"""
        response = client.get("/api/v1/reports/products/segments", params=EVALUATION)

        assert response.json() == [{"segment": "Mid-Range", "count": 4, "total_sales": pytest.approx(6530.0)}]

    def test_duplicate_dimension_key(self, sample_snapshot):
        """Dimension integrity problems are unprocessable"""
        duplicated = pl.concat([sample_snapshot.dim_products, sample_snapshot.dim_products.head(1)])
        snapshot = SalesSnapshot(sample_snapshot.fact_sales, sample_snapshot.dim_customers, duplicated)
        app = create_api_app()
        app.dependency_overrides[get_snapshot] = lambda: snapshot

        response = TestClient(app).get("/api/v1/reports/products")

        assert response.status_code == 422
        assert "dim_products" in response.json()["detail"]

    def test_customers_ignore_product_dimension(self, sample_snapshot):
        """A broken product dimension leaves the customer routes working"""
        duplicated = pl.concat([sample_snapshot.dim_products, sample_snapshot.dim_products.head(1)])
        snapshot = SalesSnapshot(sample_snapshot.fact_sales, sample_snapshot.dim_customers, duplicated)
        app = create_api_app()
        app.dependency_overrides[get_snapshot] = lambda: snapshot

        response = TestClient(app).get("/api/v1/reports/customers", params=EVALUATION)

        assert response.status_code == 200
        assert response.json()["total"] == 4
        assert response.json()["items"][0]["Age"] == 35


class TestHealthEndpoints:
    """Tests for health checks without a database"""

    def test_liveness(self, client):
        """Liveness only needs the process"""
        response = client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_health_degraded(self, client):
        """An unreachable store degrades health"""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["database"]["status"] == "unhealthy"

    def test_readiness_unavailable(self, client):
        """Readiness fails without the store"""
        response = client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.headers["X-Request-ID"]
