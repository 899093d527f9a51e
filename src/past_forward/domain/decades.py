"""Decade catalogue used to drive prompts and album captions."""

from dataclasses import dataclass

from past_forward.domain.errors import InvalidInputError


@dataclass(frozen=True)
class Decade:
    """A supported era with its description and photographic style hint."""

    label: str
    description: str
    style_hint: str


DECADES: tuple[Decade, ...] = (
    Decade(
        label="1900s",
        description=(
            "The turn of the century, known as the Belle Époque. High collars, "
            "S-bend corsets for women, and formal three-piece suits for men. "
            "A time of artistic elegance before the great wars."
        ),
        style_hint=(
            "Recreate the look of early portrait photography. The image should be "
            "in black-and-white or a heavily faded sepia tone, with a soft, almost "
            "ethereal focus. The lighting should be natural or simple studio light, "
            "mimicking the style of albumen or platinum prints. The image should "
            "feel formal and posed."
        ),
    ),
    Decade(
        label="1910s",
        description=(
            "The decade of the Titanic and World War I. Fashion saw a move towards "
            "more practical clothing, with military influences, hobble skirts, and "
            "the rise of more relaxed silhouettes."
        ),
        style_hint=(
            "Emulate the look of photography from this decade. Images should be in "
            "black-and-white or sepia, with a sharper focus than the 1900s but "
            "still retaining a classic, slightly grainy feel. The tone can be "
            "somber or formal, reflecting the era's mood. Posing should be stiff "
            "and traditional, as was common."
        ),
    ),
    Decade(
        label="1920s",
        description=(
            "The Roaring Twenties. Flapper dresses, sharp suits, Art Deco "
            "elegance, and the dawn of jazz. A revolutionary era of social and "
            "artistic change."
        ),
        style_hint=(
            "recreate the soft-focus, romanticized look of black-and-white or "
            "sepia-toned portraits from the era. Use lighting that creates dramatic "
            "shadows (like Rembrandt lighting), typical of studio photography of "
            "the time. The image should have a subtle grain and a timeless, "
            "classic feel."
        ),
    ),
    Decade(
        label="1930s",
        description=(
            "The Golden Age of Hollywood. Glamorous gowns, tailored suits, and "
            "dramatic studio lighting. An era of escapism through silver screen "
            "elegance."
        ),
        style_hint=(
            "emulate the high-glamour, sharp, and glossy look of Hollywood studio "
            "portraits. The lighting should be dramatic and controlled, creating a "
            "soft glow on the subject while maintaining deep, rich blacks. The "
            "final image should feel polished and aspirational, like a silver "
            "screen movie star's photograph."
        ),
    ),
    Decade(
        label="1940s",
        description=(
            "Dominated by World War II. Utilitarian fashion with sharp, padded "
            "shoulders and tailored suits for women. A sense of 'make do and "
            "mend' gave way to post-war optimism and pin-up glamour."
        ),
        style_hint=(
            "Capture the look of 40s photography. It could be either "
            "black-and-white or early, subtly saturated color (like early "
            "Kodachrome). The lighting should be purposeful, creating a mix of "
            "glamour and seriousness, reminiscent of film noir or wartime "
            "Hollywood portraits. The image should feel strong and defined."
        ),
    ),
    Decade(
        label="1950s",
        description=(
            "The era of rock 'n' roll, greaser jackets, and poodle skirts. Think "
            "classic Hollywood glamour and the birth of teenage rebellion."
        ),
        style_hint=(
            "emulate the classic, slightly desaturated look of early color "
            "photography from that time. The image should have a hint of film "
            "grain and a soft focus, reminiscent of Kodachrome or early "
            "Ektachrome film."
        ),
    ),
    Decade(
        label="1960s",
        description=(
            "A revolution in fashion, from polished Mod looks to the free-spirited "
            "hippie movement with bell-bottoms and psychedelic prints."
        ),
        style_hint=(
            "capture the shift from polished, sharp, high-contrast fashion "
            "photography to the vibrant, saturated, and sometimes dreamlike "
            "quality of the late 60s. A vintage lens flare or slight color "
            "bleeding effect would be appropriate."
        ),
    ),
    Decade(
        label="1970s",
        description=(
            "Defined by disco fever and bohemian flair. Earth tones, flare jeans, "
            "platform shoes, and feathered hair were all the rage."
        ),
        style_hint=(
            "the photo must have a warm, earthy color palette with a distinct "
            "yellow or orange cast. Use a soft focus, noticeable film grain, and a "
            "slightly faded look, as if it were a well-loved photo print from an "
            "old album."
        ),
    ),
    Decade(
        label="1980s",
        description=(
            "Bigger was better! Big hair, bold colors, shoulder pads, and neon "
            "everything. The decade of pop icons and power dressing."
        ),
        style_hint=(
            "go for a sharp, glossy look with vibrant, potentially neon, colors. "
            "The photo should have higher contrast and could feature studio "
            "lighting effects like soft glows or defined lens flare, typical of "
            "80s portrait and pop photography."
        ),
    ),
    Decade(
        label="1990s",
        description=(
            "From grunge rock's flannel and ripped jeans to hip-hop's baggy "
            "sportswear. A decade of casual, minimalist, and alternative styles."
        ),
        style_hint=(
            "recreate the look of 90s point-and-shoot 35mm film cameras. The image "
            "should have a straightforward, slightly muted color palette, visible "
            "film grain, and the direct, sometimes harsh, look of an on-camera "
            "flash."
        ),
    ),
    Decade(
        label="2000s",
        description=(
            "The new millennium brought low-rise jeans, velour tracksuits, and a "
            "heavy dose of denim, all with a touch of Y2K tech optimism."
        ),
        style_hint=(
            "mimic the aesthetic of early consumer digital cameras. The image "
            "should be sharp, but may have some subtle digital noise or artifacts, "
            "slightly oversaturated colors, and the harsh, direct lighting from a "
            "built-in flash."
        ),
    ),
    Decade(
        label="2010s",
        description=(
            "The era of social media, indie pop, and hipster culture. Skinny "
            "jeans, plaid shirts, vintage-inspired filters, and the rise of the "
            "influencer aesthetic."
        ),
        style_hint=(
            "emulate the look of a high-quality smartphone photo with a popular "
            "Instagram-like filter (e.g., Valencia or X-Pro II). The image should "
            "have high saturation, possibly with a slight vignette or tilt-shift "
            "effect, capturing the polished-yet-casual social media aesthetic of "
            "the time."
        ),
    ),
)

DECADE_LABELS: tuple[str, ...] = tuple(decade.label for decade in DECADES)

_BY_LABEL = {decade.label: decade for decade in DECADES}


def get_decade(label: str) -> Decade:
    """Return the catalogue entry for a decade label."""
    decade = _BY_LABEL.get(label.strip())
    if decade is None:
        raise InvalidInputError(f"Unknown decade: {label!r}")
    return decade


def style_hint_for(label: str) -> str | None:
    """Return the registered style hint for a label, if any."""
    decade = _BY_LABEL.get(label.strip())
    return decade.style_hint if decade else None


def normalize_decades(labels: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Validate labels and drop duplicates while keeping request order."""
    ordered: list[str] = []
    for label in labels:
        decade = get_decade(label)
        if decade.label not in ordered:
            ordered.append(decade.label)
    if not ordered:
        raise InvalidInputError("At least one decade must be requested")
    return tuple(ordered)
