import pytest

from app.services.currency import amount_in_words, format_inr


@pytest.mark.parametrize(
    "amount,expected",
    [
        (0, "₹0"),
        (600, "₹600"),
        (5000, "₹5,000"),
        (99999, "₹99,999"),
        (100000, "₹1,00,000"),
        (1234567, "₹12,34,567"),
        (123456789, "₹12,34,56,789"),
        (4500.4, "₹4,500"),
        (-500, "-₹500"),
    ],
)
def test_format_inr_uses_indian_grouping(amount, expected):
    assert format_inr(amount) == expected


@pytest.mark.parametrize(
    "amount,expected",
    [
        (0, "Rupees Zero Only"),
        (7100, "Rupees Seven Thousand One Hundred Only"),
        (52000, "Rupees Fifty Two Thousand Only"),
        (250000, "Rupees Two Lakh Fifty Thousand Only"),
        (10000000, "Rupees One Crore Only"),
        (12345678, "Rupees One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight Only"),
    ],
)
def test_amount_in_words(amount, expected):
    assert amount_in_words(amount) == expected
