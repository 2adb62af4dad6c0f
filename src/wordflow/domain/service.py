import re
from collections.abc import Callable

from wordflow.domain.value_object import Directive, Segment, SegmentKind

DIRECTIVE_PREFIX = "CALL TOOL:"

_prefix = re.compile(re.escape(DIRECTIVE_PREFIX), re.IGNORECASE)
_blank = " \t"


def _is_name_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _parse_directive(text: str, start: int) -> tuple[int, str, str] | None:
    """
    Parse the directive whose prefix begins at ``start``.

    The name and argument must sit on the prefix's line.

    :returns: ``(end, name, argument)`` or None when the text after the
        prefix is not a complete directive
    """
    pos = start + len(DIRECTIVE_PREFIX)
    size = len(text)
    while pos < size and text[pos] in _blank:
        pos += 1
    name_start = pos
    while pos < size and _is_name_char(text[pos]):
        pos += 1
    name = text[name_start:pos]
    if not name or pos >= size or text[pos] not in _blank:
        return None
    end = text.find("\n", pos)
    if end < 0:
        end = size
    argument = text[pos:end].strip()
    if not argument:
        return None
    return end, name, argument


def scan_directives(text: str) -> list[Segment]:
    """
    Split text into literal and directive segments in one left-to-right pass.

    A directive is ``CALL TOOL: <name> <input>`` (prefix matched without
    regard to case) where the input runs to the end of the line. The line
    break ending a directive stays in the following literal segment, so
    joining every segment's ``text`` gives back ``text`` unchanged.

    :param text: Model output to scan
    :type text: str
    :returns: Segments in source order
    :rtype: list[Segment]
    """
    segments: list[Segment] = []
    literal_start = 0
    pos = 0
    while True:
        found = _prefix.search(text, pos)
        if found is None:
            break
        parsed = _parse_directive(text, found.start())
        if parsed is None:
            pos = found.start() + 1
            continue
        end, name, argument = parsed
        if found.start() > literal_start:
            segments.append(Segment(kind=SegmentKind.LITERAL, text=text[literal_start : found.start()]))
        segments.append(Segment(kind=SegmentKind.DIRECTIVE, text=text[found.start() : end], name=name, argument=argument))
        literal_start = pos = end
    if literal_start < len(text):
        segments.append(Segment(kind=SegmentKind.LITERAL, text=text[literal_start:]))
    return segments


def match_directive(text: str) -> Directive | None:
    """
    Match text that is, once trimmed, exactly one directive on one line.

    :param text: Model output
    :type text: str
    :returns: The directive, or None if the text is anything more or less
    :rtype: Directive | None
    """
    segments = scan_directives(text.strip())
    if len(segments) == 1 and segments[0].is_directive:
        return segments[0].to_directive()
    return None


def substitute_directives(text: str, resolve: Callable[[Directive], str | None]) -> str:
    """
    Replace every directive in text with what ``resolve`` returns for it.

    Directives for which ``resolve`` returns None keep their original text.

    :param text: Model output
    :type text: str
    :param resolve: Called once per directive, in source order
    :type resolve: Callable[[Directive], str | None]
    :returns: The rebuilt text
    :rtype: str
    """
    parts = []
    for segment in scan_directives(text):
        if not segment.is_directive:
            parts.append(segment.text)
            continue
        replacement = resolve(segment.to_directive())
        parts.append(segment.text if replacement is None else replacement)
    return "".join(parts)
