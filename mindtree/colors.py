"""Branch colour resolution and assignment."""

import colorsys
import logging
import random
import string
from typing import Optional, Set

from mindtree.errors import InvalidNodeId
from mindtree.models import TopicNode
from mindtree.tree import ancestor_chain

logger = logging.getLogger(__name__)

BRANCH_SATURATION = 0.72
BRANCH_LIGHTNESS = 0.46
MAX_HUE_TRIALS = 48
MIN_HUE_DISTANCE = 16


def hex_to_hue(color: str) -> int:
    """Hue in whole degrees (0-359) of a ``#rgb``, ``#rrggbb`` or ``#aarrggbb`` colour.

    Raises ValueError for anything else, such as colour names.
    """
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    elif len(value) == 8:
        value = value[2:]
    if len(value) != 6 or any(ch not in string.hexdigits for ch in value):
        raise ValueError(f"Unsupported colour: {color!r}")
    r = int(value[0:2], 16) / 255
    g = int(value[2:4], 16) / 255
    b = int(value[4:6], 16) / 255
    h, _, _ = colorsys.rgb_to_hls(r, g, b)
    return round(h * 360) % 360


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360, lightness, saturation)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def hue_distance(a: int, b: int) -> int:
    """Circular distance between two hues."""
    distance = abs(a - b) % 360
    return 360 - distance if distance > 180 else distance


def resolve_color(root: TopicNode, node_id: str) -> Optional[str]:
    """Explicit colour of the node, else of its nearest coloured ancestor.

    None means no colour anywhere on the path; renderers fall back to a
    positional palette.
    """
    chain = ancestor_chain(root, node_id)
    if chain is None:
        raise InvalidNodeId(node_id)

    node = chain[-1][0].children[chain[-1][1]] if chain else root
    if node.branch_color is not None:
        return node.branch_color
    for ancestor, _ in reversed(chain):
        if ancestor.branch_color is not None:
            return ancestor.branch_color
    return None


def _used_root_hues(root: TopicNode) -> Set[int]:
    used = set()
    for child in root.children:
        color = child.branch_color if child.branch_color is not None else root.branch_color
        if color is None:
            continue
        try:
            used.add(hex_to_hue(color))
        except ValueError:
            logger.debug("Ignoring branch colour %r of %s", color, child.id)
    return used


def assign_root_child_color(root: TopicNode, rng: random.Random) -> str:
    """Pick a colour for a new first-level branch.

    Tries up to MAX_HUE_TRIALS random hues, keeping the first one at least
    MIN_HUE_DISTANCE degrees away from every existing first-level branch.
    If none qualifies, one more random hue is taken as-is.
    """
    used = _used_root_hues(root)
    for _ in range(MAX_HUE_TRIALS):
        candidate = rng.randrange(360)
        if all(hue_distance(candidate, hue) >= MIN_HUE_DISTANCE for hue in used):
            return hsl_to_hex(candidate, BRANCH_SATURATION, BRANCH_LIGHTNESS)

    fallback = rng.randrange(360)
    return hsl_to_hex(fallback, BRANCH_SATURATION, BRANCH_LIGHTNESS)
