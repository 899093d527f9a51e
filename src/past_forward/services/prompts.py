"""Prompt text for decade portraits, narration and video clips."""

from past_forward.domain.errors import InvalidInputError

DEFAULT_STYLE_HINT = (
    "capture the distinct fashion, hairstyles, and overall atmosphere of that "
    "time period."
)


def build_primary_prompt(decade: str, style_hint: str) -> str:
    """Build the detailed instruction used for the first generation attempt."""
    label = _require_decade(decade)
    return (
        "You are an expert fashion historian and photographer. Your task is to "
        f"reimagine the person in this photo as if they were living in the {label}.\n"
        "\n"
        "**Primary Goal**: Create a photorealistic image that is authentic to the "
        f"{label}. The person's face and key features must be clearly recognizable.\n"
        "\n"
        "**Key Elements**:\n"
        "1.  **Clothing & Hairstyle**: Must be strictly era-appropriate for the "
        f"{label}.\n"
        "2.  **Photographic Style**: The image must visually match the photography "
        "of the era. Follow these specific style guidelines: "
        f"*{style_hint}*\n"
        "3.  **Output Format**: The output must be ONLY the image. Do not include "
        "any text, captions, or descriptions."
    )


def build_fallback_prompt(decade: str, style_hint: str | None = None) -> str:
    """Build the simpler instruction used after a policy rejection."""
    label = _require_decade(decade)
    hint = style_hint or DEFAULT_STYLE_HINT
    return (
        "Create an authentic-looking photograph of the person in this image from "
        f"the {label}. The clothing, hairstyle, and photo quality must match the "
        f"era. Specific photo style to emulate: {hint}. "
        "The output must only be the image."
    )


def build_narration_script_prompt(decade: str) -> str:
    label = _require_decade(decade)
    return (
        "Create a short, fun, immersive audio script (30-50 words) for a person "
        f"looking at their photo from the {label}. It could be a snippet from a "
        "radio broadcast, a diary entry, or a comment from a friend. Make it sound "
        "authentic to the era. The output should be only the script text itself."
    )


def build_video_prompt(decade: str) -> str:
    label = _require_decade(decade)
    return (
        f"A short, vintage-style video clip of this person from the {label}. The "
        "person should be subtly animated, perhaps smiling, looking around, or "
        "with a slight breeze in their hair. The video should have the look and "
        "feel of an authentic home movie from that era."
    )


def _require_decade(decade: str) -> str:
    label = decade.strip() if isinstance(decade, str) else ""
    if not label:
        raise InvalidInputError("A decade identifier is required")
    return label
