"""Time formatting shared by segment descriptions and transcript exports."""


def format_time(seconds: float) -> str:
    """
    Format a position as "M:SS".

    Minutes are not padded or capped; both parts are truncated, not rounded.

        >>> format_time(125)
        '2:05'
        >>> format_time(3725.9)
        '62:05'
    """
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
