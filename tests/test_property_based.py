# tests/test_property_based.py
"""
Property-Based Tests - Sales Dashboard Engine

Hypothesis tests covering:
  - priority score bounds, monotonicity and tier consistency
  - domain key and dedup grouping invariants
  - date arithmetic symmetry
  - operator complements
"""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from dashboard_engine.models.defaults import build_default_config
from dashboard_engine.models.enumerations import ConditionOperator, TierName
from dashboard_engine.models.record import GROUP_COUNT
from dashboard_engine.scoring.comparisons import compare
from dashboard_engine.scoring.dedup import DedupGroupingEngine, extract_domain_key
from dashboard_engine.scoring.priority_scorer import ScoringEngine
from dashboard_engine.scoring.utils import days_between

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
PRIORITY = build_default_config().priority_scoring

intent_st = st.floats(min_value=0.0, max_value=100.0, allow_nan=False, allow_infinity=False)
employees_st = st.integers(min_value=0, max_value=2_000_000)
age_days_st = st.floats(min_value=0.0, max_value=20_000.0, allow_nan=False, allow_infinity=False)

company_names = st.sampled_from([
    "Park Hyatt", "Grand Hyatt", "Hyatt", "Acme", "Acme Inc", "Acme, Inc.",
    "Open AI", "Contoso Ltd", "Northwind Traders", "", None,
])

name_text = st.text(alphabet="abcdefghijklmnopqrstuvwxyzABCXYZ .,&-", max_size=30)

moment_st = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2040, 1, 1),
    timezones=st.just(timezone.utc),
)


@st.composite
def account_st(draw):
    return {
        "accountIntentScore6sense__c": draw(intent_st),
        "Clay_Employee_Count__c": draw(employees_st),
        "LastActivityDate": NOW - timedelta(days=draw(age_days_st)),
    }


@st.composite
def account_batch_st(draw):
    size = draw(st.integers(min_value=0, max_value=12))
    return [
        {
            "Id": f"001{i:03d}",
            "Name": draw(company_names),
            "priorityScore": draw(st.integers(min_value=0, max_value=100)),
        }
        for i in range(size)
    ]


# ---------------------------------------------------------------------------
# Priority Score Property Tests
# ---------------------------------------------------------------------------


class TestPriorityScorePropertyBased:
    """Priority score invariants over random accounts."""

    @given(account_st())
    @settings(max_examples=300)
    def test_score_always_bounded(self, account):
        """Score is an integer in [0, 100] for any valid inputs."""
        result = ScoringEngine(now=NOW).score(account, PRIORITY)
        assert isinstance(result.score, int)
        assert 0 <= result.score <= 100

    @given(account_st(), intent_st)
    @settings(max_examples=300)
    def test_higher_intent_never_lowers_score(self, account, other_intent):
        """Raising the intent field alone does not decrease the score."""
        engine = ScoringEngine(now=NOW)
        low, high = sorted([account["accountIntentScore6sense__c"], other_intent])
        low_score = engine.score({**account, "accountIntentScore6sense__c": low}, PRIORITY).score
        high_score = engine.score({**account, "accountIntentScore6sense__c": high}, PRIORITY).score
        assert high_score >= low_score

    @given(account_st())
    @settings(max_examples=300)
    def test_tier_matches_default_bands(self, account):
        """Tier agrees with the default 85 / 65 / 40 cut-offs."""
        result = ScoringEngine(now=NOW).score(account, PRIORITY)
        if result.score >= 85:
            assert result.tier == TierName.HOT
        elif result.score >= 65:
            assert result.tier == TierName.WARM
        elif result.score >= 40:
            assert result.tier == TierName.COOL
        else:
            assert result.tier == TierName.COLD

    @given(account_st())
    @settings(max_examples=200)
    def test_deterministic(self, account):
        """Scoring the same record twice yields the same result."""
        engine = ScoringEngine(now=NOW)
        assert engine.score(account, PRIORITY) == engine.score(account, PRIORITY)


# ---------------------------------------------------------------------------
# Dedup Property Tests
# ---------------------------------------------------------------------------


class TestDedupPropertyBased:
    """Grouping invariants over random account batches."""

    @given(name_text)
    @settings(max_examples=500)
    def test_domain_key_idempotent(self, name):
        """The key of a key is the key itself."""
        key = extract_domain_key(name)
        assert extract_domain_key(key) == key

    @given(name_text)
    @settings(max_examples=500)
    def test_domain_key_has_no_spaces_or_uppercase(self, name):
        key = extract_domain_key(name)
        assert " " not in key
        assert key == key.lower()

    @given(account_batch_st())
    @settings(max_examples=300)
    def test_member_count_conserved(self, batch):
        """Every input record is represented exactly once."""
        output = DedupGroupingEngine().group_by_domain(batch)
        assert sum(record.get(GROUP_COUNT, 1) for record in output) == len(batch)
        assert len(output) <= len(batch)

    @given(account_batch_st())
    @settings(max_examples=300)
    def test_grouping_idempotent(self, batch):
        """Grouping an already grouped list changes nothing."""
        engine = DedupGroupingEngine()
        once = engine.group_by_domain(batch)
        assert engine.group_by_domain(once) == once

    @given(account_batch_st())
    @settings(max_examples=300)
    def test_representative_has_top_score(self, batch):
        """A group's representative carries the highest member score."""
        engine = DedupGroupingEngine()
        scores = {record["Id"]: record["priorityScore"] for record in batch}
        for record in engine.group_by_domain(batch):
            if record.get("isGroup"):
                assert record["priorityScore"] == max(scores[m] for m in record["memberIds"])


# ---------------------------------------------------------------------------
# Date / Operator Property Tests
# ---------------------------------------------------------------------------


class TestDatePropertyBased:

    @given(moment_st, moment_st)
    @settings(max_examples=500)
    def test_days_between_symmetric(self, a, b):
        assert days_between(a, b) == days_between(b, a)
        assert days_between(a, b) >= 0

    @given(moment_st)
    @settings(max_examples=200)
    def test_days_between_self_is_zero(self, a):
        assert days_between(a, a) == 0


class TestOperatorPropertyBased:

    @given(
        st.sampled_from(["Prospecting", "Discovery", "Negotiation", "Closed Won"]),
        st.lists(st.sampled_from(["Prospecting", "Discovery", "Negotiation"]), max_size=3),
    )
    @settings(max_examples=200)
    def test_not_in_is_complement_of_in(self, actual, options):
        assert compare(actual, ConditionOperator.NOT_IN, options) != compare(actual, ConditionOperator.IN, options)

    @given(st.integers(-1000, 1000), st.integers(-1000, 1000))
    @settings(max_examples=200)
    def test_ordering_operators_agree_with_python(self, a, b):
        assert compare(a, ConditionOperator.LT, b) == (a < b)
        assert compare(a, ConditionOperator.GTE, b) == (a >= b)
        assert compare(a, ConditionOperator.NEQ, b) == (a != b)
