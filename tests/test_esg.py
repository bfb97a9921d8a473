"""
ESG processing and summaries
"""
import pytest

from app.models import ProductEsgScore
from app.services.esg_service import esg_scores, risk_level, summary, vendor_symbol

SHOP = "s.test"
TOKEN = "tok"


def product_handler(vendor="Nike", product_id="7"):
    return lambda query, variables: {"product": {
        "id": f"gid://shopify/Product/{product_id}",
        "title": "Tee",
        "vendor": vendor,
        "tags": [],
    }}


@pytest.mark.parametrize("score, level", [(70, "low"), (69.9, "medium"), (50, "medium"), (49.9, "high")])
def test_risk_level_thresholds(score, level):
    assert risk_level(score) == level


def test_vendor_lookup():
    assert vendor_symbol(" NIKE ") == "NKE"
    assert vendor_symbol("Alphabet") == "GOOGL"
    assert vendor_symbol("Acme") is None
    assert vendor_symbol(None) is None
    # Known vendor without a score row gets the default scores
    assert esg_scores("META")["esg_score"] == 55.0


class TestProcess:
    def test_process_product(self, client, remote, db_session):
        remote.graphql(product_handler())
        response = client.post("/api/esg/process", json={"shop": SHOP, "credential": TOKEN, "productId": "7"})
        assert response.status_code == 200
        body = response.json()
        assert body["productId"] == "7"
        assert body["vendorSymbol"] == "NKE"
        assert body["esgScore"] == 61.2
        assert body["governanceScore"] == 42.0
        assert body["riskLevel"] == "medium"
        assert body["persisted"] is True

    def test_reprocessing_updates_single_row(self, client, remote, db_session):
        remote.graphql(product_handler())
        payload = {"shop": SHOP, "credential": TOKEN, "productId": "gid://shopify/Product/7"}
        client.post("/api/esg/process", json=payload)
        client.post("/api/esg/process", json=payload)
        rows = db_session.query(ProductEsgScore).all()
        assert len(rows) == 1
        assert rows[0].product_id == "7"
        assert rows[0].shop_domain == SHOP

    def test_unknown_vendor(self, client, remote, db_session):
        remote.graphql(product_handler(vendor="Acme"))
        response = client.post("/api/esg/process", json={"shop": SHOP, "credential": TOKEN, "productId": "7"})
        assert response.status_code == 400
        assert response.json()["error"] == "No stock symbol found for vendor: Acme"
        assert db_session.query(ProductEsgScore).count() == 0

    def test_unknown_product(self, client, remote):
        remote.graphql(lambda q, v: {"product": None})
        response = client.post("/api/esg/process", json={"shop": SHOP, "credential": TOKEN, "productId": "7"})
        assert response.status_code == 404

    def test_requires_product_id(self, client):
        response = client.post("/api/esg/process", json={"shop": SHOP, "credential": TOKEN})
        assert response.status_code == 400


class TestSummary:
    def _add(self, db_session, product_id, shop, total, env, social, gov):
        db_session.add(ProductEsgScore(
            product_id=product_id, shop_domain=shop, esg_score=total, environment_score=env,
            social_score=social, governance_score=gov, risk_level=risk_level(total),
        ))

    def test_summary_rounds_and_counts(self, db_session):
        self._add(db_session, "1", SHOP, 61.2, 73.1, 68.5, 42.0)
        self._add(db_session, "2", SHOP, 45.2, 62.1, 41.8, 31.7)
        self._add(db_session, "3", SHOP, 75.0, 80.0, 70.0, 75.0)
        self._add(db_session, "4", "other.test", 10.0, 10.0, 10.0, 10.0)
        db_session.commit()

        result = summary(db_session, SHOP)
        assert result["totalProducts"] == 3
        assert result["averageESGScore"] == 60.5
        assert result["riskDistribution"] == {"low": 1, "medium": 1, "high": 1}
        assert result["averageScores"] == {"environmental": 71.7, "social": 60.1, "governance": 49.6}

    def test_empty_summary(self, client):
        response = client.post("/api/esg/summary", json={"shop": SHOP})
        assert response.json() == {
            "totalProducts": 0,
            "averageESGScore": 0,
            "riskDistribution": {"low": 0, "medium": 0, "high": 0},
            "averageScores": {"environmental": 0, "social": 0, "governance": 0},
        }

    def test_products_list_scoped_to_shop(self, client, db_session):
        self._add(db_session, "1", SHOP, 61.2, 73.1, 68.5, 42.0)
        self._add(db_session, "2", "other.test", 10.0, 10.0, 10.0, 10.0)
        db_session.commit()
        data = client.post("/api/esg/products", json={"shop": SHOP}).json()["esgData"]
        assert [row["product_id"] for row in data] == ["1"]

    def test_shop_required(self, client):
        assert client.post("/api/esg/products", json={}).status_code == 400
