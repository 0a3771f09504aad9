"""Parse markdown-style emphasis into formatted text segments.

Suggestions coming back from the LLM carry a small inline grammar:

  ***text***  bold + italic
  **text**    bold
  *text*      italic
  __text__    underline
  _text_      italic
  `text`      accent colour

Anything else is plain text. Markers without a closing pair are kept as
literal characters.
"""

import re
from dataclasses import dataclass

ACCENT_COLOR = "0000FF"

# Alternation order is the match priority. The last group catches a lone
# marker character that none of the paired patterns could close.
_MARKUP_RE = re.compile(
    r"\*\*\*(.+?)\*\*\*"
    r"|\*\*(.+?)\*\*"
    r"|\*(.+?)\*"
    r"|__(.+?)__"
    r"|_(.+?)_"
    r"|`(.+?)`"
    r"|([^*_`]+)"
    r"|([*_`])"
)


@dataclass(frozen=True)
class FormattedSegment:
    """A span of text with one consistent formatting state.

    ``None`` means "unspecified / inherit", never "explicitly off".
    ``font_size`` is in points; it is converted to half-points when the
    segment becomes a run.
    """

    text: str
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    color: str | None = None
    font_size: int | None = None
    highlight: str | None = None
    font_family: str | None = None

    @property
    def is_plain(self) -> bool:
        return (
            not self.bold
            and not self.italic
            and not self.underline
            and self.color is None
            and self.font_size is None
            and self.highlight is None
            and self.font_family is None
        )


def parse_markdown(text: str) -> list[FormattedSegment]:
    """Split ``text`` into segments in left-to-right order.

    Never raises. Adjacent plain spans (including unmatched markers) are
    merged so that marker-free input always yields a single segment.
    """
    segments: list[FormattedSegment] = []
    plain: list[str] = []

    def _flush_plain() -> None:
        if plain:
            segments.append(FormattedSegment(text="".join(plain)))
            plain.clear()

    for match in _MARKUP_RE.finditer(text):
        bold_italic, bold, star_italic, underline, under_italic, code, literal, lone = match.groups()
        if literal is not None or lone is not None:
            plain.append(literal if literal is not None else lone)
            continue

        _flush_plain()
        if bold_italic is not None:
            segments.append(FormattedSegment(text=bold_italic, bold=True, italic=True))
        elif bold is not None:
            segments.append(FormattedSegment(text=bold, bold=True))
        elif star_italic is not None:
            segments.append(FormattedSegment(text=star_italic, italic=True))
        elif underline is not None:
            segments.append(FormattedSegment(text=underline, underline=True))
        elif under_italic is not None:
            segments.append(FormattedSegment(text=under_italic, italic=True))
        else:
            segments.append(FormattedSegment(text=code, color=ACCENT_COLOR))

    _flush_plain()
    return segments
