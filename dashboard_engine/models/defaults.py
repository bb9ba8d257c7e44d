"""
Default Configuration - Sales Dashboard Engine
dashboard_engine/models/defaults.py

The factory-default AppConfig a new tenant starts from and that
ConfigStore.reset_to_defaults() restores.

Priority scoring defaults (weights sum to 100):
    comp_intent           40   6sense intent score (0-100 field)
    comp_employee_count   30   employee-count buckets
    comp_signal_recency   30   days-since-signal buckets

Tier bands: hot 85-100, warm 65-84, cool 40-64, cold 0-39
"""

from dashboard_engine.models.config import AppConfig

DEFAULT_OPPORTUNITY_STAGES = [
    "Prospecting",
    "Discovery",
    "Value Confirmation",
    "Technical Evaluation",
    "Negotiation",
]

DEFAULT_CONFIG_DATA = {
    "riskRules": [
        {
            "id": "rule_low_health",
            "name": "Low Health Score",
            "objectType": "Account",
            "conditions": [
                {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 60},
            ],
            "logic": "AND",
            "flag": "at-risk",
            "active": True,
        },
        {
            "id": "rule_stuck_deal",
            "name": "Stuck in Stage",
            "objectType": "Opportunity",
            "conditions": [
                {"field": "LastModifiedDate", "operator": ">", "value": 14},   # days
                {"field": "MEDDPICC_Overall_Score__c", "operator": "<", "value": 60},
            ],
            "logic": "AND",
            "flag": "at-risk",
            "active": True,
        },
        {
            "id": "rule_critical_deal",
            "name": "Critical Deal Risk",
            "objectType": "Opportunity",
            "conditions": [
                {"field": "LastModifiedDate", "operator": ">", "value": 30},   # days
            ],
            "logic": "OR",
            "flag": "critical",
            "active": True,
        },
    ],
    "priorityScoring": {
        "components": [
            {
                "id": "comp_intent",
                "name": "Intent Score",
                "weight": 40,
                "field": "accountIntentScore6sense__c",
            },
            {
                "id": "comp_employee_count",
                "name": "Employee Count",
                "weight": 30,
                "sourceField": "Clay_Employee_Count__c",
                "scoreRanges": [
                    {"min": 200, "max": 2000, "score": 100},
                    {"min": 100, "max": 200, "score": 75},
                    {"min": 50, "max": 100, "score": 50},
                    {"min": 2000, "max": 999999, "score": 60},
                ],
            },
            {
                "id": "comp_signal_recency",
                "name": "Signal Recency",
                "weight": 30,
                "sourceField": "LastActivityDate",   # bucketed by age in days
                "scoreRanges": [
                    {"min": 0, "max": 7, "score": 100},
                    {"min": 7, "max": 14, "score": 75},
                    {"min": 14, "max": 30, "score": 50},
                    {"min": 30, "max": 9999, "score": 25},
                ],
            },
        ],
        "thresholds": {
            "hot": {"min": 85, "max": 100},
            "warm": {"min": 65, "max": 84},
            "cool": {"min": 40, "max": 64},
            "cold": {"min": 0, "max": 39},
        },
    },
    "fieldMappings": [
        # Clay enrichment
        {"conceptName": "Employee Count", "category": "clay", "salesforceField": "Clay_Employee_Count__c"},
        {"conceptName": "Employee Growth", "category": "clay", "salesforceField": "Clay_Employee_Growth_Pct__c"},
        {"conceptName": "Current LMS", "category": "clay", "salesforceField": "LMS_System_s__c"},
        {"conceptName": "Active Signals", "category": "clay", "salesforceField": "Clay_Active_Signals__c"},
        # 6sense
        {"conceptName": "Buying Stage", "category": "6sense", "salesforceField": "accountBuyingStage6sense__c"},
        {"conceptName": "Intent Score", "category": "6sense", "salesforceField": "accountIntentScore6sense__c"},
        # Health & status
        {"conceptName": "Health Score", "category": "health", "salesforceField": "Current_Gainsight_Score__c"},
        {"conceptName": "Renewal Date", "category": "health", "salesforceField": "Agreement_Expiry_Date__c"},
        # Command of the Message
        {"conceptName": "Before Scenario", "category": "command", "salesforceField": "COM_Before_Scenario__c"},
        {"conceptName": "After Scenario", "category": "command", "salesforceField": "COM_After_Scenario__c"},
        {"conceptName": "Required Capabilities", "category": "command", "salesforceField": "COM_Required_Capabilities__c"},
        {"conceptName": "Metrics", "category": "command", "salesforceField": "COM_Metrics__c"},
        # MEDDPICC
        {"conceptName": "Economic Buyer", "category": "meddpicc", "salesforceField": "MEDDPICCR_Economic_Buyer__c"},
        {"conceptName": "Decision Criteria", "category": "meddpicc", "salesforceField": "MEDDPICCR_Decision_Criteria__c"},
        {"conceptName": "Decision Process", "category": "meddpicc", "salesforceField": "MEDDPICCR_Decision_Process__c"},
        {"conceptName": "Paper Process", "category": "meddpicc", "salesforceField": "MEDDPICCR_Paper_Process__c"},
        {"conceptName": "Identified Pain", "category": "meddpicc", "salesforceField": "MEDDPICCR_Implicate_Pain__c"},
        {"conceptName": "Champion", "category": "meddpicc", "salesforceField": "MEDDPICCR_Champion__c"},
        {"conceptName": "Competition", "category": "meddpicc", "salesforceField": "MEDDPICCR_Competition__c"},
        {"conceptName": "MEDDPICC Score", "category": "meddpicc", "salesforceField": None, "calculateInApp": True},
        # User quota
        {"conceptName": "Annual Quota", "category": "quota", "salesforceField": "Annual_Quota__c"},
        {"conceptName": "Quarterly Quota", "category": "quota", "salesforceField": "Quarterly_Quota__c"},
        {"conceptName": "Monthly Quota", "category": "quota", "salesforceField": "Monthly_Quota__c"},
    ],
    "opportunityStages": DEFAULT_OPPORTUNITY_STAGES,
    "roleMapping": [
        {"salesforceProfile": "Sales User", "appRole": "ae"},
        {"salesforceProfile": "Client Sales", "appRole": "am"},
        {"salesforceProfile": "Customer Success Manager", "appRole": "csm"},
        {"salesforceProfile": "System Administrator", "appRole": "admin"},
    ],
    "userRoleOverrides": [],
    "displaySettings": {
        "accountsPerPage": 10,
        "dealsPerPage": 8,
        "defaultSort": "priority",
        "viewMode": "table",
    },
    "scopeDefaults": {
        "ae": "my",
        "am": "my",
        "csm": "my",
        "sales-leader": "team",
        "executive": "all",
        "unknown": "my",
    },
}


def build_default_config() -> AppConfig:
    """Fresh default AppConfig (version 1, never modified)."""
    return AppConfig.model_validate(DEFAULT_CONFIG_DATA)
