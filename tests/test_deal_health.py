"""
Deal Health Tests - Sales Dashboard Engine
tests/test_deal_health.py
"""
import pytest

from dashboard_engine.models.defaults import DEFAULT_OPPORTUNITY_STAGES
from dashboard_engine.models.record import MEDDPICC_SCORE
from dashboard_engine.scoring.deal_health import DealHealthScorer, staleness_warning

STAGES = DEFAULT_OPPORTUNITY_STAGES


@pytest.fixture
def scorer():
    return DealHealthScorer()


class TestDealHealthScorer:
    """Fallback chain: overall -> probability -> components -> heuristic."""

    def test_native_overall_score(self, scorer):
        result = scorer.calculate({"MEDDPICC_Overall_Score__c": 72, "Probability": 10}, STAGES)
        assert result.score == 72
        assert result.method == "overall"

    def test_probability(self, scorer):
        result = scorer.calculate({"Probability": 40, "NextStep": "Call"}, STAGES)
        assert result.score == 40
        assert result.method == "probability"

    def test_component_fields(self, scorer):
        record = {
            "COM_Metrics__c": "Reduce churn 10%",
            "MEDDPICCR_Economic_Buyer__c": "CFO",
            "MEDDPICCR_Decision_Criteria__c": "",
            "MEDDPICCR_Champion__c": None,
        }
        result = scorer.calculate(record, STAGES)
        assert result.score == 25
        assert result.method == "components"

    def test_components_present_but_empty(self, scorer):
        result = scorer.calculate({"MEDDPICCR_Economic_Buyer__c": None}, STAGES)
        assert result.score == 0
        assert result.method == "components"

    def test_heuristic_base(self, scorer):
        result = scorer.calculate({"StageName": "Discovery"}, STAGES)
        assert result.score == 30
        assert result.method == "heuristic"

    def test_heuristic_all_bonuses(self, scorer):
        record = {
            "NextStep": "Send proposal",
            "Description": "x" * 60,
            "StageName": "Negotiation",
        }
        assert scorer.score(record, STAGES) == 80

    def test_heuristic_capped_at_100(self):
        scorer = DealHealthScorer(base_score=60)
        record = {"NextStep": "Sign", "Description": "y" * 51, "StageName": "Negotiation"}
        assert scorer.score(record, STAGES) == 100

    def test_second_to_last_stage_is_late(self, scorer):
        assert scorer.score({"StageName": "Technical Evaluation"}, STAGES) == 45

    def test_description_at_threshold_earns_nothing(self, scorer):
        assert scorer.score({"Description": "z" * 50}, STAGES) == 30
        assert scorer.score({"Description": "z" * 51}, STAGES) == 45

    def test_blank_next_step(self, scorer):
        assert scorer.score({"NextStep": "   "}, STAGES) == 30

    def test_no_stage_list(self, scorer):
        assert scorer.score({"StageName": "Negotiation"}) == 30

    def test_overall_score_clamped(self, scorer):
        assert scorer.score({"MEDDPICC_Overall_Score__c": 140}) == 100

    def test_enrich(self, scorer):
        enriched = scorer.enrich({"Id": "006", "Probability": 55})
        assert enriched[MEDDPICC_SCORE] == 55


class TestStalenessWarning:

    def test_no_activity(self):
        assert staleness_warning(40, True) == "No activity in 40 days"

    def test_since_last_update(self):
        assert staleness_warning(20, True) == "20 days since last update"

    @pytest.mark.parametrize("days,expected", [
        (15, "15 days since last update"),
        (22, "22 days since last update"),
        (30, "30 days since last update"),
        (31, "No activity in 31 days"),
    ])
    def test_band_boundaries(self, days, expected):
        assert staleness_warning(days, True) == expected

    def test_combined_with_missing_next_step(self):
        assert staleness_warning(20, False) == "20 days since last update • No next step defined"

    def test_fresh_deal_without_next_step(self):
        assert staleness_warning(3, False) == "No next step defined"

    def test_nothing_to_report(self):
        assert staleness_warning(14, True) is None
        assert staleness_warning(None, True) is None
