from .formatting import format_fixed, format_number, round_half_up
from .urls import validate_page_url

__all__ = ["format_fixed", "format_number", "round_half_up", "validate_page_url"]
