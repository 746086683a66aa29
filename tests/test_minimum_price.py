"""
Tests for starting ("from") prices.
"""
from decimal import Decimal

from blind_pricing.engine import PricingEngine
from blind_pricing.engine.minimum_price import minimum_price, minimum_prices, select_minimum_cell
from blind_pricing.engine.models import HeightBand, PriceCell, WidthBand


def test_minimum_is_smallest_area_cell(repository):
    assert minimum_price(repository, 'band-a') == Decimal('18.10')
    assert minimum_price(repository, 'band-b') == Decimal('30.00')


def test_minimum_ignores_price_values():
    """A cheaper but larger cell is never the starting price."""
    widths = [WidthBand('w500', 500, 20), WidthBand('w1000', 1000, 39)]
    heights = [HeightBand('h500', 500, 20), HeightBand('h1000', 1000, 39)]
    cells = [
        PriceCell('x', 'w1000', 'h1000', Decimal('1.00')),
        PriceCell('x', 'w500', 'h500', Decimal('99.00')),
    ]
    assert select_minimum_cell(cells, widths, heights).price == Decimal('99.00')


def test_area_tie_broken_by_width_then_height():
    widths = [WidthBand('w500', 500, 20), WidthBand('w1000', 1000, 39)]
    heights = [HeightBand('h500', 500, 20), HeightBand('h1000', 1000, 39)]
    cells = [
        PriceCell('x', 'w1000', 'h500', Decimal('10.00')),
        PriceCell('x', 'w500', 'h1000', Decimal('20.00')),
    ]
    chosen = select_minimum_cell(cells, widths, heights)
    assert chosen.width_band_id == 'w500', "Equal areas should prefer the narrower cell"
    assert chosen.price == Decimal('20.00')


def test_band_without_cells_has_no_minimum(repository):
    assert minimum_price(repository, 'band-c') is None
    assert minimum_price(repository, 'no-such-band') is None


def test_batch_agrees_with_single(repository):
    ids = ['band-a', 'band-b', 'band-c']
    batch = minimum_prices(repository, ids)
    for band_id in ids:
        single = minimum_price(repository, band_id)
        if single is None:
            assert band_id not in batch
        else:
            assert batch[band_id] == single, f"{band_id}: batch {batch[band_id]} != single {single}"


def test_batch_skips_blank_ids_and_fetches_once(repository, monkeypatch):
    calls = []
    fetch = repository.list_price_cells_for_bands

    def counting(ids):
        calls.append(list(ids))
        return fetch(ids)

    monkeypatch.setattr(repository, 'list_price_cells_for_bands', counting)
    result = minimum_prices(repository, ['band-a', None, '', 'band-b', 'band-a'])

    assert result == {'band-a': Decimal('18.10'), 'band-b': Decimal('30.00')}
    assert calls == [['band-a', 'band-b']]


def test_batch_of_nothing_is_empty(repository):
    assert minimum_prices(repository, []) == {}
    assert minimum_prices(repository, [None, '']) == {}


def test_engine_delegates(repository):
    engine = PricingEngine(repository)
    assert engine.minimum_price('band-a') == Decimal('18.10')
    assert engine.minimum_prices(['band-a']) == {'band-a': Decimal('18.10')}
