"""Pricing resolver tests."""

import pytest

from src.api.core.messages import MessageCode
from src.database.models import ChargeType, OperationType, Provider
from src.modules.billing.constants import MAX_TOKEN_AMOUNT
from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.pricing import RawUsage, image_cost_for, resolve_price
from src.modules.billing.settings import SettingsSnapshot
from tests.utils.assertions import assert_tokenmeter_exception


@pytest.fixture
def settings() -> SettingsSnapshot:
    return SettingsSnapshot(
        default_multiplier=1.5,
        image_costs={
            "openai/dall-e-3": 6000,
            "openai/dall-e-3/1024x1792": 8000,
            "openai/dall-e-3/1792x1024": 8000,
            "openai/dall-e-2": 3000,
            "openai/dall-e-2/512x512": 2000,
            "google/*": 4500,
        },
    )


def test_multiplier_pricing_rounds_up(settings):
    quote = resolve_price(
        OperationType.CONTENT_GENERATION,
        Provider.OPENAI,
        "gpt-4o",
        RawUsage(input_tokens=100, output_tokens=1),
        settings,
    )

    # 101 * 1.5 = 151.5
    assert quote.billable_tokens == 152
    assert quote.charge_type == ChargeType.MULTIPLIER
    assert quote.pricing_value == 1.5
    assert quote.actual_tokens == 101


def test_total_tokens_takes_precedence_over_parts(settings):
    quote = resolve_price(
        OperationType.CHAT_RESPONSE,
        Provider.ANTHROPIC,
        "claude-sonnet",
        RawUsage(input_tokens=10, output_tokens=10, total_tokens=1000),
        settings,
    )

    assert quote.actual_tokens == 1000
    assert quote.billable_tokens == 1500


def test_decimal_multiplier_has_no_float_drift():
    settings = SettingsSnapshot(default_multiplier=1.1)

    quote = resolve_price(
        OperationType.CHAT_RESPONSE,
        Provider.OPENAI,
        "gpt-4o-mini",
        RawUsage(total_tokens=100),
        settings,
    )

    assert quote.billable_tokens == 110


def test_zero_usage_costs_nothing(settings):
    quote = resolve_price(
        OperationType.CONTENT_REFINEMENT,
        Provider.OPENAI,
        "gpt-4o",
        RawUsage(),
        settings,
    )

    assert quote.billable_tokens == 0
    assert quote.charge_type == ChargeType.MULTIPLIER


def test_image_generation_uses_fixed_cost_per_image(settings):
    quote = resolve_price(
        OperationType.IMAGE_GENERATION,
        Provider.OPENAI,
        "dall-e-2",
        RawUsage(image_count=2, image_size="1024x1024"),
        settings,
    )

    assert quote.billable_tokens == 6000
    assert quote.charge_type == ChargeType.FIXED
    assert quote.pricing_value == 3000.0
    assert quote.actual_tokens == 0


def test_image_prompt_generation_is_token_priced(settings):
    quote = resolve_price(
        OperationType.IMAGE_PROMPT_GENERATION,
        Provider.OPENAI,
        "gpt-4o",
        RawUsage(total_tokens=200),
        settings,
    )

    assert quote.charge_type == ChargeType.MULTIPLIER
    assert quote.billable_tokens == 300


@pytest.mark.parametrize(
    "provider, model, expected",
    [
        (Provider.OPENAI, "dall-e-3", 6000),
        (Provider.GOOGLE, "imagen-3", 4500),
        (Provider.ANTHROPIC, "unknown-image-model", 6000),
    ],
)
def test_image_cost_lookup_falls_back(settings, provider, model, expected):
    assert image_cost_for(provider, model, settings) == expected


def test_missing_image_count_charges_one_image(settings):
    quote = resolve_price(
        OperationType.IMAGE_GENERATION,
        Provider.GOOGLE,
        "imagen-3",
        RawUsage(),
        settings,
    )

    assert quote.billable_tokens == 4500


def test_negative_token_counts_are_rejected(settings):
    with pytest.raises(InvalidAmountException) as exc_info:
        resolve_price(
            OperationType.CHAT_RESPONSE,
            Provider.OPENAI,
            "gpt-4o",
            RawUsage(input_tokens=-1),
            settings,
        )

    assert_tokenmeter_exception(exc_info.value, MessageCode.INVALID_AMOUNT, 400)
    assert exc_info.value.details["field"] == "input_tokens"


@pytest.mark.parametrize(
    "model, image_size, expected",
    [
        ("dall-e-3", "1024x1024", 6000),
        ("dall-e-3", "1792x1024", 8000),
        ("dall-e-3", "1024x1792", 8000),
        ("dall-e-2", "512x512", 2000),
        ("dall-e-2", "1024x1024", 3000),
        ("dall-e-3", None, 6000),
    ],
)
def test_image_cost_depends_on_size(settings, model, image_size, expected):
    quote = resolve_price(
        OperationType.IMAGE_GENERATION,
        Provider.OPENAI,
        model,
        RawUsage(image_count=1, image_size=image_size),
        settings,
    )

    assert quote.billable_tokens == expected
    assert quote.pricing_value == float(expected)


def test_size_lookup_ignores_case_and_padding(settings):
    cost = image_cost_for(Provider.OPENAI, "dall-e-3", settings, " 1792X1024 ")

    assert cost == 8000


def test_unknown_size_of_wildcard_provider_uses_wildcard(settings):
    cost = image_cost_for(Provider.GOOGLE, "imagen-3", settings, "2048x2048")

    assert cost == 4500


def test_default_snapshot_prices_large_dalle3_images():
    quote = resolve_price(
        OperationType.IMAGE_GENERATION,
        Provider.OPENAI,
        "dall-e-3",
        RawUsage(image_count=2, image_size="1792x1024"),
        SettingsSnapshot(),
    )

    assert quote.billable_tokens == 16_000


def test_token_counts_above_the_cap_are_rejected(settings):
    with pytest.raises(InvalidAmountException) as exc_info:
        resolve_price(
            OperationType.CHAT_RESPONSE,
            Provider.OPENAI,
            "gpt-4o",
            RawUsage(total_tokens=MAX_TOKEN_AMOUNT + 1),
            settings,
        )

    assert exc_info.value.details["field"] == "total_tokens"
