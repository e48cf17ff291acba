"""Anchor Resolver.

Picks the current tool that anchors the recommendation from the declared
anchor preference. No preference or no match means no anchor, which is a
valid outcome.
"""

from typing import Optional

from tool_catalog.schema import Tool, ToolCategory

from .schema import AnchorType


# Names and categories that satisfy each declared preference
ANCHOR_RULES = {
    AnchorType.DOC_CENTRIC: (
        {"notion"},
        {ToolCategory.DOCUMENTATION},
    ),
    AnchorType.DEV_CENTRIC: (
        {"github", "gitlab", "cursor"},
        {ToolCategory.DEVELOPMENT, ToolCategory.AI_BUILDERS},
    ),
    AnchorType.COMM_CENTRIC: (
        {"slack", "discord", "teams"},
        {ToolCategory.COMMUNICATION},
    ),
}


def resolve_anchor(
    anchor_type: AnchorType,
    other_anchor_text: str,
    user_tools: list[Tool],
) -> Optional[Tool]:
    """Return the first current tool matching the anchor preference.

    Args:
        anchor_type: Declared anchor preference
        other_anchor_text: Tool name typed in when the preference is OTHER
        user_tools: The company's current tools, already matched to the catalog

    Returns:
        The anchor tool, or None
    """
    if anchor_type == AnchorType.OTHER:
        if not other_anchor_text.strip():
            return None
        return next((t for t in user_tools if t.matches_name(other_anchor_text)), None)

    rule = ANCHOR_RULES.get(anchor_type)
    if rule is None:
        return None

    names, categories = rule
    for tool in user_tools:
        if tool.name.lower() in names or tool.category in categories:
            return tool
    return None
