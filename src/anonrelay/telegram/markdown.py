"""MarkdownV2 escaping for text embedded in formatted messages."""

import re

# Characters Telegram's MarkdownV2 parser treats as markup
RESERVED_CHARS = "_*[]()~`>#+-=|{}.!"

# Scanned left to right: an existing escape pair (backslash before a reserved
# character or another backslash), a bare reserved character, or a lone
# backslash
_TOKEN_PATTERN = re.compile(
    r"\\[" + re.escape(RESERVED_CHARS + "\\") + r"]"
    r"|[" + re.escape(RESERVED_CHARS) + r"]"
    r"|\\"
)


def _escape_token(match: re.Match) -> str:
    token = match.group(0)
    if len(token) == 2:
        return token
    return "\\" + token


def escape_markdown(text: str) -> str:
    """Escape every MarkdownV2 reserved character and lone backslash.

    Escape pairs already present are kept, so escaping an escaped string is
    a no-op.
    """
    return _TOKEN_PATTERN.sub(_escape_token, text)
