"""Property-based tests for AI analysis normalization.

**Feature: chart-journal**
"""

import json
import random
import sys

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chartjournal.analysis.normalizer import (
    DEFAULT_RISK_REWARD,
    coerce_levels,
    coerce_number,
    decode_analysis_json,
    extract_candidate_text,
    generate_fallback_analysis,
    infer_bias,
    interpret_indicator,
    normalize_analysis,
    parse_analysis_text,
    strip_code_fences,
)
from chartjournal.models import AIAnalysis

# Interpreters before 3.10.7 decode integers of any length
requires_int_digit_limit = pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="no integer string length limit"
)


json_scalars = (
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=True, allow_infinity=True)
    | st.text(max_size=30)
)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=5) | st.dictionaries(st.text(max_size=10), children, max_size=5),
    max_leaves=20,
)
analysis_like = st.fixed_dictionaries(
    {},
    optional={
        "pattern": json_values,
        "support": json_values | st.lists(st.floats() | st.text(max_size=10), max_size=6),
        "resistance": json_values | st.lists(st.floats() | st.text(max_size=10), max_size=6),
        "trend": json_values | st.sampled_from(["Bullish", "bearish breakdown", "sideways", ""]),
        "riskRewardRatio": json_values,
        "technicalIndicators": json_values | st.lists(
            st.fixed_dictionaries({
                "name": st.sampled_from(["RSI", "MACD", "Volume", "", "rsi (14)"]),
                "value": json_values,
                "interpretation": json_values,
            }),
            max_size=4,
        ),
        "recommendation": json_values,
    },
)
current_prices = (
    st.none()
    | st.floats(min_value=0.0001, max_value=1e9)
    | st.floats(allow_nan=True, allow_infinity=True)
    | st.integers(min_value=-10, max_value=10**6)
    | st.text(max_size=10)
)


def _mentions_direction(analysis: AIAnalysis) -> bool:
    trend = (analysis.trend or "").lower()
    return "bullish" in trend or "bearish" in trend


class TestNormalizerTotality:
    """
    **Feature: chart-journal, Property: Normalizer Totality**

    *For any* payload and any current price, normalization returns a
    complete analysis whose trend mentions bullish or bearish.
    """

    @given(payload=json_values | analysis_like, price=current_prices)
    @settings(max_examples=300)
    def test_never_raises_and_trend_has_direction(self, payload, price):
        analysis = normalize_analysis(payload, price)

        assert isinstance(analysis, AIAnalysis)
        assert _mentions_direction(analysis)
        assert analysis.pattern
        assert analysis.recommendation
        assert analysis.risk_reward_ratio is not None

    @given(payload=analysis_like, price=st.floats(min_value=0.01, max_value=1e7))
    @settings(max_examples=200)
    def test_levels_sit_on_the_right_side_of_price(self, payload, price):
        analysis = normalize_analysis(payload, price)

        assert analysis.support
        assert analysis.resistance
        assert all(level <= price for level in analysis.support)
        assert all(level >= price for level in analysis.resistance)
        assert analysis.support == sorted(analysis.support)
        assert analysis.resistance == sorted(analysis.resistance, reverse=True)

    @given(text=st.text())
    @settings(max_examples=200)
    def test_parse_text_never_raises(self, text):
        analysis, used_fallback = parse_analysis_text(text, 100.0)

        assert _mentions_direction(analysis)
        assert isinstance(used_fallback, bool)


class TestCodeFences:
    def test_json_fence(self):
        text = 'Here you go:\n```json\n{"trend": "Bullish"}\n```\nGood luck'
        assert strip_code_fences(text) == '{"trend": "Bullish"}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_decode_rejects_non_objects(self):
        assert decode_analysis_json("[1, 2]") is None
        assert decode_analysis_json("not json") is None
        assert decode_analysis_json(None) is None
        assert decode_analysis_json('```json\n{"pattern": "Wedge"}\n```') == {"pattern": "Wedge"}

    @pytest.mark.parametrize(
        "text",
        [
            '```JSON\n{"a": 1}\n```',
            '```javascript\n{"a": 1}```',
            '```json {"a": 1}```',
            'Result:\n```json\n{"a": 1}\n',
        ],
    )
    def test_language_tag_dropped(self, text):
        assert strip_code_fences(text) == '{"a": 1}'
        assert decode_analysis_json(text) == {"a": 1}

    @requires_int_digit_limit
    def test_decode_rejects_oversized_integers(self):
        text = '{"trend": "up", "support": [' + "9" * 5000 + "]}"
        assert decode_analysis_json(text) is None

    def test_decode_rejects_deep_nesting(self):
        assert decode_analysis_json("[" * 100000 + "]" * 100000) is None
        assert decode_analysis_json('{"a": ' * 100000 + "1" + "}" * 100000) is None


class TestCandidateExtraction:
    def test_joins_text_parts(self):
        envelope = {"candidates": [{"content": {"parts": [{"text": '{"a":'}, {"text": " 1}"}]}}]}
        assert extract_candidate_text(envelope) == '{"a": 1}'

    @pytest.mark.parametrize(
        "envelope",
        [None, [], {}, {"candidates": []}, {"candidates": [{"content": {}}]}, {"candidates": ["x"]}],
    )
    def test_missing_candidates(self, envelope):
        assert extract_candidate_text(envelope) is None


class TestCoercion:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (42, 42.0),
            ("42,500", 42500.0),
            ("$1,234.5", 1234.5),
            (" 0.25 ", 0.25),
            ("abc", None),
            (True, None),
            (None, None),
            (float("nan"), None),
            (10**400, None),
            ([1], None),
        ],
    )
    def test_coerce_number(self, value, expected):
        assert coerce_number(value) == expected

    def test_coerce_levels_drops_junk_and_duplicates(self):
        assert coerce_levels(["95", 95, -3, "x", None, 0, 97.5]) == [95.0, 97.5]

    def test_coerce_levels_wraps_scalars(self):
        assert coerce_levels("105") == [105.0]


class TestLevelSanitizing:
    def test_numeric_strings_and_sorting(self):
        analysis = normalize_analysis(
            {"trend": "Bullish", "support": [95, "90"], "resistance": ["105", 110]},
            current_price=100,
        )

        assert analysis.support == [90.0, 95.0]
        assert analysis.resistance == [110.0, 105.0]

    def test_implausible_levels_dropped_and_backfilled(self):
        analysis = normalize_analysis(
            {"trend": "Bullish", "support": [120, 10], "resistance": [50, 500]},
            current_price=100,
        )

        assert analysis.support == [95.0, 97.0]
        assert analysis.resistance == [105.0, 103.0]

    def test_crossing_levels_without_price(self):
        analysis = normalize_analysis(
            {"trend": "Bearish", "support": [100, 90], "resistance": [95, 120]}
        )

        assert analysis.support == [90.0]
        assert analysis.resistance == [120.0, 95.0]


class TestTrendRepair:
    def test_directionless_trend_gets_inferred_bias(self):
        analysis = normalize_analysis({
            "trend": "Sideways consolidation",
            "recommendation": "Consider a short, the downtrend is intact",
        })

        assert analysis.trend == "Sideways consolidation (bearish)"

    def test_missing_trend_defaults_bullish(self):
        analysis = normalize_analysis({"pattern": "Triangle"})

        assert analysis.trend == "Bullish"

    def test_existing_direction_kept(self):
        analysis = normalize_analysis({"trend": "Strong bearish momentum"})

        assert analysis.trend == "Strong bearish momentum"

    def test_proximity_breaks_ties(self):
        assert infer_bias([], support=[90], resistance=[101], current_price=100) == "bearish"
        assert infer_bias([], support=[99], resistance=[110], current_price=100) == "bullish"


class TestIndicators:
    @pytest.mark.parametrize(
        "name,value,expected",
        [
            ("RSI", "75", "Overbought"),
            ("RSI (14)", "25.5", "Oversold"),
            ("rsi", "55", "Neutral with bullish momentum"),
            ("RSI", "45", "Neutral with bearish momentum"),
            ("MACD", "Bearish crossover", "Bearish signal"),
            ("MACD", "Crossing above signal", "Bullish signal"),
            ("MACD", "-0.5", "Bearish signal"),
            ("MACD", "flat", "Neutral momentum"),
            ("Volume", "High", None),
        ],
    )
    def test_interpretation(self, name, value, expected):
        assert interpret_indicator(name, value) == expected

    def test_model_interpretation_replaced_for_known_indicators(self):
        analysis = normalize_analysis({
            "trend": "Bullish",
            "technicalIndicators": [
                {"name": "RSI", "value": 78, "interpretation": "Bullish"},
                {"name": "Volume", "value": "Rising", "interpretation": "Confirms breakout"},
                {"name": "", "value": "1"},
                "garbage",
            ],
        })

        names = [i.name for i in analysis.technical_indicators]
        assert names == ["RSI", "Volume"]
        assert analysis.technical_indicators[0].value == "78"
        assert analysis.technical_indicators[0].interpretation == "Overbought"
        assert analysis.technical_indicators[1].interpretation == "Confirms breakout"

    def test_defaults_when_missing(self):
        analysis = normalize_analysis({"trend": "Bearish"})

        names = [i.name for i in analysis.technical_indicators]
        assert names == ["RSI", "MACD", "Moving Averages"]


class TestRiskReward:
    def test_reported_ratio_coerced(self):
        assert normalize_analysis({"trend": "Bullish", "riskRewardRatio": "2.5"}).risk_reward_ratio == 2.5

    def test_ratio_computed_from_levels(self):
        analysis = normalize_analysis(
            {"trend": "Bullish", "support": [95], "resistance": [101]},
            current_price=100,
        )
        assert analysis.risk_reward_ratio == pytest.approx(1.43)

    def test_default_ratio_without_price(self):
        assert normalize_analysis({"trend": "Bullish"}).risk_reward_ratio == DEFAULT_RISK_REWARD


class TestFallbackAnalysis:
    """
    **Feature: chart-journal, Property: Deterministic Fallback**

    *For any* seed, the synthetic analysis is reproducible and anchored
    to the given price.
    """

    @given(seed=st.integers(), price=st.floats(min_value=0.01, max_value=1e6))
    @settings(max_examples=100)
    def test_same_seed_same_analysis(self, seed, price):
        first = generate_fallback_analysis(price, random.Random(seed))
        second = generate_fallback_analysis(price, random.Random(seed))

        assert first == second
        assert _mentions_direction(first)
        assert first.pattern in ("Bullish Flag", "Bearish Flag")

    def test_levels_derived_from_price(self):
        analysis = generate_fallback_analysis(100, random.Random(1))

        assert analysis.support == [95.0, 97.0]
        assert analysis.resistance == [105.0, 103.0]
        assert analysis.trend.endswith("continuation pattern")

    def test_default_price_when_unknown(self):
        analysis = generate_fallback_analysis(None, random.Random(1))

        assert analysis.support == [95.0, 97.0]

    @pytest.mark.parametrize("payload", [None, "text", 42, [], {}])
    def test_unusable_payload_falls_back(self, payload):
        analysis = normalize_analysis(payload, 100, random.Random(3))

        assert analysis == generate_fallback_analysis(100, random.Random(3))

    def test_parse_reports_fallback(self):
        analysis, used_fallback = parse_analysis_text("I cannot read this chart", 100, random.Random(5))
        assert used_fallback

        analysis, used_fallback = parse_analysis_text(json.dumps({"trend": "Bullish"}), 100)
        assert not used_fallback
        assert analysis.trend == "Bullish"

    @requires_int_digit_limit
    def test_oversized_integer_falls_back(self):
        text = '{"trend": "up", "support": [' + "9" * 5000 + "]}"
        analysis, used_fallback = parse_analysis_text(text, 100.0, random.Random(5))

        assert used_fallback
        assert analysis == generate_fallback_analysis(100.0, random.Random(5))

    def test_deep_nesting_falls_back(self):
        text = "[" * 100000 + "]" * 100000
        analysis, used_fallback = parse_analysis_text(text, 100.0, random.Random(5))

        assert used_fallback
        assert analysis == generate_fallback_analysis(100.0, random.Random(5))
