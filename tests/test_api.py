"""
Tests for the HTTP surface, with the engine swapped for the sample catalog.
"""
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from blind_pricing.api.main import app
from blind_pricing.api.state import get_engine
from blind_pricing.config.settings import Settings, get_settings
from blind_pricing.engine import CatalogUnavailableError, PricingEngine
from blind_pricing.identity import HandleIdentityResolver, ProductHandleCache, catalog_product_source


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_settings] = lambda: Settings(catalog_dir=Path('.'))
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_calculate(client):
    response = client.post('/api/pricing/calculate', json={
        'productId': 'prod-a', 'widthInches': 25, 'heightInches': 35,
    })

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['data']['total'] == 21.58
    assert body['data']['widthBand'] == {'mm': 750, 'inches': 30}
    assert body['data']['heightBand'] == {'mm': 1000, 'inches': 39}
    assert body['data']['priceBand'] == {'id': 'band-a', 'name': 'Band A'}


def test_calculate_by_handle_with_customizations(client):
    response = client.post('/api/pricing/calculate', json={
        'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35,
        'customizations': [
            {'category': 'headrail-colour', 'optionId': 'ice-white'},
            {'category': 'motorization', 'optionId': 'somfy'},
        ],
    })

    data = response.json()['data']
    assert data['total'] == 33.68
    assert data['customizationLines'] == [
        {'category': 'headrail-colour', 'optionId': 'ice-white', 'name': 'Ice White', 'price': 12.1},
    ]
    assert len(data['warnings']) == 1


@pytest.mark.parametrize("body,status,code", [
    ({'productId': 'prod-nope', 'widthInches': 25, 'heightInches': 35}, 404, 'PRODUCT_NOT_FOUND'),
    ({'productId': 'prod-unpriced', 'widthInches': 25, 'heightInches': 35}, 422, 'PRODUCT_NOT_PRICED'),
    ({'productId': 'prod-b', 'widthInches': 35, 'heightInches': 35}, 500, 'PRICE_CELL_MISSING'),
    ({'productId': 'prod-a', 'widthInches': -1, 'heightInches': 35}, 400, 'VALIDATION_ERROR'),
    ({'widthInches': 25, 'heightInches': 35}, 400, 'VALIDATION_ERROR'),
    ({'productId': 'prod-a', 'heightInches': 35}, 400, 'VALIDATION_ERROR'),
    ({'productId': 'prod-a', 'widthInches': 'wide', 'heightInches': 35}, 400, 'VALIDATION_ERROR'),
], ids=['not-found', 'not-priced', 'cell-missing', 'negative', 'no-product', 'no-width', 'bad-width'])
def test_calculate_errors(client, body, status, code):
    response = client.post('/api/pricing/calculate', json=body)
    assert response.status_code == status
    assert response.json()['success'] is False
    assert response.json()['error']['code'] == code


def test_validate_mismatch(client):
    response = client.post('/api/pricing/validate', json={
        'productId': 'prod-a', 'widthInches': 25, 'heightInches': 35, 'submittedPrice': 25,
    })

    assert response.status_code == 200
    assert response.json()['data'] == {'valid': False, 'calculatedPrice': 21.58, 'difference': 3.42}


def test_validate_by_handle(client):
    response = client.post('/api/pricing/validate', json={
        'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35, 'submittedPrice': 21.58,
    })
    assert response.json()['data']['valid'] is True


def test_validate_unknown_product(client):
    response = client.post('/api/pricing/validate', json={
        'productId': 'prod-nope', 'widthInches': 25, 'heightInches': 35, 'submittedPrice': 21.58,
    })
    assert response.status_code == 404


def test_matrix(client):
    data = client.get('/api/pricing/matrix/band-a').json()['data']
    assert data['name'] == 'Band A'
    assert len(data['prices']) == 20
    assert [b['mm'] for b in data['widthBands']] == [500, 750, 1000, 1250, 3500]

    response = client.get('/api/pricing/matrix/band-z')
    assert response.status_code == 404
    assert response.json()['error']['code'] == 'NOT_FOUND'


def test_customizations_and_bands(client):
    options = client.get('/api/pricing/customizations').json()['data']
    assert {(o['category'], o['optionId']) for o in options} >= {('headrail-colour', 'ice-white')}

    bands = client.get('/api/pricing/bands').json()['data']
    assert len(bands['widthBands']) == 5
    assert bands['heightBands'][0] == {'id': 'h500', 'mm': 500, 'inches': 20}


def test_minimum_prices(client):
    data = client.get('/api/pricing/minimum-prices', params=[('ids', 'band-a'), ('ids', 'band-c')]).json()['data']
    assert data == {'band-a': 18.1}

    assert client.get('/api/pricing/minimum-price/band-b').json()['data'] == {
        'priceBandId': 'band-b', 'minimumPrice': 30.0,
    }
    assert client.get('/api/pricing/minimum-price/band-c').json()['data']['minimumPrice'] is None


def test_checkout(client):
    response = client.post('/api/checkout/validate', json={
        'items': [{
            'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35,
            'quantity': 2, 'submittedPrice': 33.68,
            'configuration': {'headrailColour': 'ice-white'},
        }],
        'customerEmail': 'jo@example.com',
    })

    assert response.status_code == 200
    data = response.json()['data']
    assert data['subtotal'] == 67.36
    assert data['lineItems'][0]['calculatedPrice'] == 33.68
    assert data['draftOrder']['draft_order']['email'] == 'jo@example.com'
    assert data['draftOrder']['draft_order']['line_items'][0]['price'] == '33.68'


def test_checkout_mismatch(client):
    response = client.post('/api/checkout/validate', json={
        'items': [{
            'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35,
            'quantity': 1, 'submittedPrice': 21.58, 'configuration': {'headrailColour': 'ice-white'},
        }],
    })
    assert response.status_code == 422
    assert response.json()['error']['code'] == 'PRICE_MISMATCH'


def test_catalog_unavailable(client):
    def broken_engine():
        raise CatalogUnavailableError("Catalog directory not found: /nowhere")

    app.dependency_overrides[get_engine] = broken_engine
    response = client.get('/api/pricing/bands')
    assert response.status_code == 503
    assert response.json()['error']['code'] == 'CATALOG_UNAVAILABLE'


def test_root(client):
    assert client.get('/').json()['status'] == 'online'


def test_validate_by_handle_mismatch(client):
    response = client.post('/api/pricing/validate', json={
        'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35, 'submittedPrice': 25,
    })
    assert response.status_code == 200
    assert response.json()['data'] == {'valid': False, 'calculatedPrice': 21.58, 'difference': 3.42}


def test_product_refresh_does_not_block_other_requests(repository, clock):
    entered = threading.Event()
    release = threading.Event()
    fetch = catalog_product_source(repository)

    def slow_source():
        entered.set()
        release.wait(timeout=10)
        return fetch()

    cache = ProductHandleCache(slow_source, ttl_seconds=600, clock=clock)
    engine = PricingEngine(repository, HandleIdentityResolver(cache, repository))
    app.dependency_overrides[get_engine] = lambda: engine
    responses = {}

    try:
        with TestClient(app) as client:
            quoting = threading.Thread(target=lambda: responses.setdefault('quote', client.post(
                '/api/pricing/calculate',
                json={'handle': 'vertical-blind', 'widthInches': 25, 'heightInches': 35},
            )))
            quoting.start()
            assert entered.wait(timeout=5), "Product refresh never started"

            pinging = threading.Thread(target=lambda: responses.setdefault('root', client.get('/')))
            pinging.start()
            pinging.join(timeout=2)
            answered_during_refresh = not pinging.is_alive()

            release.set()
            quoting.join(timeout=10)
            pinging.join(timeout=10)
    finally:
        release.set()
        app.dependency_overrides.clear()

    assert answered_during_refresh, "GET / waited for the product refresh to finish"
    assert responses['root'].json()['status'] == 'online'
    assert responses['quote'].json()['data']['total'] == 21.58
