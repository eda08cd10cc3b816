"""
Block accumulation.

Consecutive assistant-text fragments collapse into one growing text block;
activities are always appended as separate blocks.  Arrival order is kept.
"""

from typing import List, Optional

from .events import ActivityBlock, Block, TextBlock


class BlockAccumulator:
    """Ordered block list with in-place text merging."""

    def __init__(self) -> None:
        self.blocks: List[Block] = []

    @property
    def last(self) -> Optional[Block]:
        return self.blocks[-1] if self.blocks else None

    def add_text(self, fragment: str) -> Optional[TextBlock]:
        """Merge *fragment* into the trailing text block (or start one).

        Returns a block holding just the fragment, for live streaming, or
        ``None`` if the fragment is empty.
        """
        if not fragment:
            return None
        last = self.last
        if isinstance(last, TextBlock):
            last.content += fragment
        else:
            self.blocks.append(TextBlock(content=fragment))
        return TextBlock(content=fragment)

    def add_activity(self, block: ActivityBlock) -> ActivityBlock:
        self.blocks.append(block)
        return block

    def text_blocks(self) -> List[TextBlock]:
        return [b for b in self.blocks if isinstance(b, TextBlock)]

    def full_text(self) -> str:
        return "".join(b.content for b in self.text_blocks())

    def __len__(self) -> int:
        return len(self.blocks)
