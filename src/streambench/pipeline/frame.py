"""
Frame Data Model
=================

Internal frame representation for the streaming pipeline.

A frame is an opaque block of random bytes. It exists only to exercise
the transport; nothing downstream decodes or validates it.

Design Rules:
    - Immutable once produced
    - Consumed exactly once by exactly one delivery thread
    - No identity beyond its bytes (producer index is for logging only)
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Synthetic frame produced by a FrameProducerPool worker.
    
    Equality is identity: two frames with coincidentally identical
    bytes are still two distinct frames.
    
    Attributes:
        data: Frame payload, ``width * height`` bytes
        producer: Index of the worker that generated the frame
    """
    
    data: bytes
    producer: int = 0
    
    def __len__(self) -> int:
        return len(self.data)
    
    def __repr__(self) -> str:
        """Compact repr that doesn't dump the payload."""
        return f"Frame(size={len(self.data)}, producer={self.producer})"
