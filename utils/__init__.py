# Utility modules for the planner backend
from .normalization import parse_list, normalize_tag, normalize_tags, join_list, find_excluded
from .sanitizer import (
    sanitize_text, sanitize_url, sanitize_recipe_name,
    sanitize_instructions, sanitize_ingredient_text
)
from .logging_utils import setup_logging, get_logger
