"""
Shared constants used across multiple modules.
Single source of truth for the tracked record categories.
"""

# Evaluation order matters: alerts of equal priority keep this order.
CATEGORIES = ("strength", "recovery", "nutrition", "wrestling", "injury", "cardio")

# Human label used in generated-text prompts
CATEGORY_LABELS = {
    "strength": "strength training",
    "cardio": "cardio training",
    "nutrition": "nutrition",
    "recovery": "recovery",
    "wrestling": "wrestling training",
    "injury": "injury",
}

# Storage table per category
CATEGORY_TABLES = {
    "strength": "strength_log",
    "cardio": "cardio_log",
    "nutrition": "nutrition_log",
    "recovery": "recovery_log",
    "wrestling": "wrestling_log",
    "injury": "injury_log",
}


def is_category(value: str) -> bool:
    return value in CATEGORY_TABLES
