"""
Configuration for the Search Term Classifier
Defines categories, model/price tables, sheet layout, GAQL queries and metric formulas
"""

import os

# Intent categories (default set)
INTENT_CATEGORIES = (
    "INFORMATIONAL",
    "NAVIGATIONAL",
    "COMMERCIAL",
    "LOCAL",
    "QUESTION",
)

# Alternate set that separates country/region terms from local ones
GEO_INTENT_CATEGORIES = (
    "INFORMATIONAL",
    "COMMERCIAL",
    "LOCAL",
    "GEOGRAPHICAL",
    "QUESTION",
    "OTHER",
)

CATEGORY_SETS = {
    "standard": INTENT_CATEGORIES,
    "geo": GEO_INTENT_CATEGORIES,
}

CATEGORY_DESCRIPTIONS = {
    "INFORMATIONAL": 'Seeks general information without purchase intent (e.g., "what is chlorine resistance")',
    "NAVIGATIONAL": 'Looks for a specific website or page (e.g., "nike login")',
    "COMMERCIAL": 'Purchase intent or product exploration, including brand/product terms (e.g., "freya swimwear")',
    "LOCAL": 'Location-specific at city/neighbourhood level (e.g., "plumbing services near me")',
    "GEOGRAPHICAL": 'Filters by country or broad region (e.g., "swimwear australia")',
    "QUESTION": 'Explicit question phrased with question words (e.g., "how do I bake a cake")',
    "OTHER": "Anything not fitting the other categories",
}

ERROR_CATEGORY = "ERROR"
DEFAULT_CONFIDENCE = 0.5

# Models per provider: standard and cheap tiers, costs in USD per million tokens
MODELS = {
    "openai": {
        "standard": "gpt-4-1106-preview",
        "cheap": "o4-mini-2025-04-16",
        "costs": {
            "standard": {"input": 2.0, "output": 8.0},
            "cheap": {"input": 1.10, "output": 4.40},
        },
    },
    "anthropic": {
        "standard": "claude-3-7-sonnet-latest",
        "cheap": "claude-3-5-haiku-latest",
        "costs": {
            "standard": {"input": 3.0, "output": 15.0},
            "cheap": {"input": 0.8, "output": 4.0},
        },
    },
    "gemini": {
        "standard": "gemini-2.5-pro",
        "cheap": "gemini-2.0-flash",
        "costs": {
            "standard": {"input": 1.25, "output": 10.0},
            "cheap": {"input": 0.15, "output": 0.6},
        },
    },
}

# Provider endpoints
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
MAX_OUTPUT_TOKENS = 500

# Retry and batching
MAX_RETRIES = 3
DEFAULT_BATCH_SIZE = 10

# Named ranges read from the settings sheet
RANGE_MODEL = "model"
RANGE_CHEAP = "cheap"
RANGE_TERMS = "topTerms"
RANGE_CATEGORIES = "categories"
RANGE_BATCH_SIZE = "batchSize"
ACCOUNT_KEY_PREFIX = "mike_key_"
SHARED_KEY_PREFIX = "key_"

# Output tabs and headers
RESULTS_TAB = "Results"
SUMMARY_TAB = "Summary Report"
LOGS_TAB = "Logs"
SEARCH_TERMS_TAB = "Search_Terms"
DAILY_TAB = "Daily"

RESULTS_HEADER = ["Search Term", "Category", "Confidence", "Duration (sec)", "Error"]
LOGS_HEADER = ["Timestamp", "Type", "Message"]
SUMMARY_HEADER = ["Intent Category", "Count", "Percentage"]
SEARCH_TERMS_HEADER = [
    "Search Term", "Campaign", "Ad Group", "Impressions", "Clicks", "Cost",
    "Conversions", "Conversion Value", "CPC", "CTR", "Conv. Rate", "CPA", "ROAS", "AOV",
]
DAILY_HEADER = [
    "campaign", "campaignId", "clicks", "lostBudget", "imprShare", "lostRank",
    "value", "conv", "cost", "impr", "date",
]

# GAQL queries
MIN_IMPRESSIONS = 30
DATE_RANGE = "LAST_30_DAYS"

SEARCH_TERMS_QUERY = """
SELECT
  search_term_view.search_term,
  campaign.name,
  ad_group.name,
  metrics.impressions,
  metrics.clicks,
  metrics.cost_micros,
  metrics.conversions,
  metrics.conversions_value
FROM search_term_view
WHERE segments.date DURING {date_range}
  AND campaign.advertising_channel_type = "SEARCH"
  AND metrics.impressions >= {min_impressions}
ORDER BY metrics.cost_micros DESC
"""

DAILY_QUERY = """
SELECT
  campaign.name,
  campaign.id,
  metrics.clicks,
  metrics.search_budget_lost_impression_share,
  metrics.search_impression_share,
  metrics.search_rank_lost_impression_share,
  metrics.conversions_value,
  metrics.conversions,
  metrics.cost_micros,
  metrics.impressions,
  segments.date
FROM campaign
WHERE segments.date DURING {date_range}
  AND campaign.advertising_channel_type = "SEARCH"
ORDER BY segments.date DESC, metrics.cost_micros DESC
"""

MICROS_PER_UNIT = 1_000_000

# Report fields keyed by standard name, with the aliases accepted in CSV exports
STANDARD_COLUMNS = {
    'search_term': ['search_term_view.search_term', 'search term', 'search_term', 'query'],
    'campaign_name': ['campaign.name', 'campaign', 'campaign name', 'campaign_name'],
    'campaign_id': ['campaign.id', 'campaign id', 'campaign_id'],
    'ad_group_name': ['ad_group.name', 'ad group', 'ad group name', 'ad_group', 'adgroup'],
    'status': ['search_term_view.status', 'status'],
    'date': ['segments.date', 'date', 'day'],
    'impressions': ['metrics.impressions', 'impressions', 'impr', 'imp'],
    'clicks': ['metrics.clicks', 'clicks', 'click', 'clk'],
    'cost_micros': ['metrics.cost_micros', 'cost_micros', 'cost micros'],
    'conversions': ['metrics.conversions', 'conversions', 'conv', 'conversion'],
    'conversion_value': ['metrics.conversions_value', 'conversions_value', 'conversion value', 'conv. value', 'value'],
    'lost_budget': ['metrics.search_budget_lost_impression_share', 'lost budget', 'lostbudget'],
    'impression_share': ['metrics.search_impression_share', 'impression share', 'imprshare'],
    'lost_rank': ['metrics.search_rank_lost_impression_share', 'lost rank', 'lostrank'],
}

NUMERIC_COLUMNS = [
    'impressions', 'clicks', 'cost_micros', 'conversions', 'conversion_value',
    'lost_budget', 'impression_share', 'lost_rank',
]

# Metric formulas using standard column names; every zero denominator yields 0
METRIC_FORMULAS = {
    'cpc': {
        'formula': lambda cost, clicks: (cost / clicks) if clicks > 0 else 0,
        'description': 'Cost Per Click',
        'required_columns': ['cost', 'clicks']
    },
    'ctr': {
        'formula': lambda clicks, impressions: (clicks / impressions) if impressions > 0 else 0,
        'description': 'Click-Through Rate',
        'required_columns': ['clicks', 'impressions']
    },
    'conv_rate': {
        'formula': lambda conversions, clicks: (conversions / clicks) if clicks > 0 else 0,
        'description': 'Conversion Rate',
        'required_columns': ['conversions', 'clicks']
    },
    'cpa': {
        'formula': lambda cost, conversions: (cost / conversions) if conversions > 0 else 0,
        'description': 'Cost Per Acquisition',
        'required_columns': ['cost', 'conversions']
    },
    'roas': {
        'formula': lambda conversion_value, cost: (conversion_value / cost) if cost > 0 else 0,
        'description': 'Return on Ad Spend',
        'required_columns': ['conversion_value', 'cost']
    },
    'aov': {
        'formula': lambda conversion_value, conversions: (conversion_value / conversions) if conversions > 0 else 0,
        'description': 'Average Order Value',
        'required_columns': ['conversion_value', 'conversions']
    },
}

# Environment-driven wiring
SHEET_URL = os.getenv('SHEET_URL', '')
GOOGLE_APPLICATION_CREDENTIALS = os.getenv('GOOGLE_APPLICATION_CREDENTIALS', '')
GOOGLE_ADS_CONFIGURATION_FILE = os.getenv('GOOGLE_ADS_CONFIGURATION_FILE', '')
GOOGLE_ADS_CUSTOMER_ID = os.getenv('GOOGLE_ADS_CUSTOMER_ID', '')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LLM_REQUEST_TIMEOUT = float(os.getenv('LLM_REQUEST_TIMEOUT', '60'))

# Only used by the model listing helper
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
