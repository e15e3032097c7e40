"""
Static moderation contract sent to Gemini with every request.

The system instruction and the response schema are data, not logic. They are
kept here so they can be checked on their own and never depend on user input.
"""

from typing import Any, Dict, Tuple

CANONICAL_CONTENT_FIELD = "content"

# Body field names used by the legacy moderation routes
USER_CONTENT_FIELD = "userContent"
COMBINED_CONTENT_FIELD = "combinedContent"

VERDICT_FIELDS: Tuple[str, ...] = ("is_safe", "categories_flagged", "moderator_comment")

SYSTEM_PROMPT = (
    "You are an expert social media content moderator. Your task is to analyse the "
    "following user-submitted post (including the username) for violations of community "
    "guidelines, specifically focusing on hate speech, harassment, graphic violence, and "
    "self-harm content. Assign a safety status (is_safe) and list any categories flagged. "
    "Always provide a brief justification in 'moderator_comment'. Always respond strictly "
    "in the requested JSON format."
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "is_safe": {
            "type": "BOOLEAN",
            "description": (
                "True if the post is compliant with all guidelines (safe), "
                "false if any guidelines are violated (flagged)."
            ),
        },
        "categories_flagged": {
            "type": "ARRAY",
            "description": (
                "A list of strings containing all high-risk categories detected "
                "(e.g., 'Hate Speech', 'Harassment', 'Graphic Violence', 'Self-Harm'). "
                "Return an empty array if the post is safe."
            ),
            "items": {"type": "STRING"},
        },
        "moderator_comment": {
            "type": "STRING",
            "description": "A brief, concise justification for the safety determination.",
        },
    },
    "required": list(VERDICT_FIELDS),
}
