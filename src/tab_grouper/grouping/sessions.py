"""Time-based segmentation of tabs into browsing sessions."""

from tab_grouper.grouping.models import TabNode


def segment_sessions(nodes: list[TabNode], session_gap: int) -> list[list[TabNode]]:
    """
    Break tabs into sessions separated by gaps in open time.

    Tabs are stable-sorted by open time (ties keep their input order) and a new
    session starts whenever the gap to the previous tab exceeds ``session_gap``.
    The sessions partition ``nodes`` exactly.

    Args:
        nodes: Tabs to segment
        session_gap: Largest gap (ms) allowed inside a session

    Returns:
        Non-empty sessions in chronological order
    """
    ordered = sorted(nodes, key=lambda n: n.open_time)
    sessions: list[list[TabNode]] = []
    if not ordered:
        return sessions

    current = [ordered[0]]
    sessions.append(current)

    for prev, curr in zip(ordered, ordered[1:]):
        if curr.open_time - prev.open_time > session_gap:
            current = [curr]
            sessions.append(current)
        else:
            current.append(curr)

    return sessions
