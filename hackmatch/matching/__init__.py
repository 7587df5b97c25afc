"""Match scoring — prompt templates, response decoding, scorer."""

from .parser import decode_object, find_json_object, parse_match_payload, strip_code_fence
from .prompts import build_match_prompt
from .scorer import MatchScorer, error_kind

__all__ = [
    "MatchScorer", "build_match_prompt", "parse_match_payload",
    "decode_object", "find_json_object", "strip_code_fence", "error_kind",
]
