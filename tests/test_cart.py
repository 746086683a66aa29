"""
Tests for checkout cart repricing.
"""
from decimal import Decimal

import pytest

from blind_pricing.checkout import (
    CartItem,
    CartValidator,
    build_draft_order_payload,
    config_to_customizations,
)
from blind_pricing.checkout.cart import build_line_item_properties
from blind_pricing.engine import CustomizationSelection, ErrorCode


def item(**overrides):
    values = dict(
        handle='vertical-blind',
        width_inches=25,
        height_inches=35,
        quantity=1,
        submitted_price=Decimal('33.68'),
        configuration={'headrailColour': 'ice-white', 'motorization': 'none', 'stacking': ''},
    )
    values.update(overrides)
    return CartItem(**values)


@pytest.fixture
def validator(engine):
    return CartValidator(engine, Decimal('0.50'))


def test_config_maps_to_customizations():
    selections = config_to_customizations({
        'headrailColour': 'ice-white',
        'bottomChain': 'metal',
        'motorization': 'none',
        'stacking': '',
        'roomType': 'Kitchen',
    })
    assert selections == [
        CustomizationSelection('headrail-colour', 'ice-white'),
        CustomizationSelection('bottom-chain', 'metal'),
    ]


def test_valid_cart_uses_server_prices(validator):
    validation = validator.validate_cart([
        item(quantity=2, submitted_price=Decimal('33.50')),
        item(handle='roller-blind', width_inches=30, height_inches=30, submitted_price=35, configuration={}),
    ])

    assert validation.ok, validation.error
    assert [line.calculated_price for line in validation.lines] == [Decimal('33.68'), Decimal('35.00')]
    assert validation.subtotal == Decimal('102.36')
    assert validation.lines[0].title == 'Vertical Blind – 25" × 35"'
    assert validation.to_dict()['subtotal'] == 102.36


def test_mismatch_rejects_whole_cart(validator):
    validation = validator.validate_cart([
        item(),
        item(submitted_price=Decimal('21.58')),
    ])

    assert not validation.ok
    assert validation.error.code == ErrorCode.PRICE_MISMATCH
    assert 'Vertical Blind' in validation.error.message
    assert validation.error.details['calculatedPrice'] == 33.68


def test_empty_cart(validator):
    assert validator.validate_cart([]).error.code == ErrorCode.VALIDATION_ERROR


@pytest.mark.parametrize("overrides,field", [
    ({'handle': ''}, 'handle'),
    ({'width_inches': 0}, 'widthInches'),
    ({'height_inches': '35'}, 'heightInches'),
    ({'quantity': 0}, 'quantity'),
    ({'quantity': True}, 'quantity'),
    ({'submitted_price': None}, 'submittedPrice'),
])
def test_malformed_item(validator, overrides, field):
    validation = validator.validate_cart([item(**overrides)])
    assert validation.error.code == ErrorCode.VALIDATION_ERROR
    assert validation.error.details == {'field': field}


@pytest.mark.parametrize("overrides,field", [
    ({'submitted_price': float('nan')}, 'submittedPrice'),
    ({'submitted_price': Decimal('Infinity')}, 'submittedPrice'),
    ({'width_inches': Decimal('NaN')}, 'widthInches'),
    ({'width_inches': float('inf')}, 'widthInches'),
    ({'height_inches': float('nan')}, 'heightInches'),
], ids=['nan-price', 'infinite-price', 'nan-width', 'infinite-width', 'nan-height'])
def test_non_finite_values_are_rejected(validator, overrides, field):
    validation = validator.validate_cart([item(**overrides)])
    assert validation.error.code == ErrorCode.VALIDATION_ERROR
    assert validation.error.details == {'field': field}


def test_unknown_handle(validator):
    assert validator.validate_cart([item(handle='no-such-blind')]).error.code == ErrorCode.PRODUCT_NOT_FOUND


def test_unpriced_product(validator):
    assert validator.validate_cart([item(handle='sample-swatch')]).error.code == ErrorCode.PRODUCT_NOT_PRICED


def test_line_item_properties():
    properties = build_line_item_properties(
        item(configuration={'roomType': 'Kitchen', 'headrailColour': 'ice-white', 'motorization': 'none'}),
        Decimal('33.68'),
    )
    assert properties == [
        {'name': 'Width', 'value': '25 inches'},
        {'name': 'Height', 'value': '35 inches'},
        {'name': 'Room Type', 'value': 'Kitchen'},
        {'name': 'Headrail Colour', 'value': 'ice-white'},
        {'name': '_calculatedPrice', 'value': '33.68'},
    ]


def test_draft_order_payload(validator):
    validation = validator.validate_cart([item(quantity=3)])
    payload = build_draft_order_payload(validation, customer_email='jo@example.com', note='Measured twice')

    draft = payload['draft_order']
    assert draft['email'] == 'jo@example.com'
    assert draft['note'] == 'Measured twice'
    assert draft['line_items'][0]['price'] == '33.68'
    assert draft['line_items'][0]['quantity'] == 3
    assert draft['line_items'][0]['title'] == 'Vertical Blind – 25" × 35"'


def test_draft_order_refused_for_rejected_cart(validator):
    with pytest.raises(ValueError):
        build_draft_order_payload(validator.validate_cart([]))
