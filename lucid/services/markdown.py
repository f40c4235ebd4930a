"""Heuristic repair of partially streamed markdown.

This is a conservative fallback for renderers without an incremental markdown
parser. Each paired marker is counted on its own and, when the count is odd,
one closing marker is appended. Nesting order between markers is not tracked.
"""

import re

CODE_FENCE = re.compile(r"```")
INLINE_CODE = re.compile(r"(?<!`)`(?!`)")
BOLD = re.compile(r"\*\*")
# Single * not touching another *; list bullets are counted too
ITALIC = re.compile(r"(?<!\*)\*(?!\*)")


def heal_markdown(content: str) -> str:
    """Close unbalanced code fences, inline code, bold and italic markers.

    Args:
        content: Partial markdown, possibly cut mid-marker

    Returns:
        The content with closing markers appended; unchanged if already balanced
    """
    result = content

    if len(CODE_FENCE.findall(result)) % 2:
        result += "\n```"

    if len(INLINE_CODE.findall(result)) % 2:
        result += "`"

    if len(BOLD.findall(result)) % 2:
        result += "**"

    if len(ITALIC.findall(result)) % 2:
        result += "*"

    return result
