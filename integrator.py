"""
Chain Integrator
Advance every segment angle by one tick
"""

from chain import Chain


def advance(chain: Chain) -> None:
    """Add each segment's angular velocity to its angle, exactly once."""
    for segment in chain.segments:
        segment.angle += segment.angular_velocity

