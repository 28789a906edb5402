"""
Directed arcs on the unit circle, the working bracket type of the circular optimizer. Angles are in radians.
"""

import numpy as np

twopi = 2 * np.pi
default_atol = 1e-5


def mapminuspitopi(angle: float) -> float:
    """Map an angle to its canonical representative in (-pi, pi]."""
    if -np.pi < angle <= np.pi:
        return angle
    angle = angle % twopi
    if angle > np.pi:
        angle -= twopi
    return angle


def mapzerototwopi(angle: float) -> float:
    """Map an angle to its canonical representative in [0, 2pi)."""
    angle = angle % twopi
    if angle >= twopi:      # tiny negative inputs round up to 2pi
        angle = 0.
    return angle


def circulardistance(a: float, b: float) -> float:
    """Return the length of the shorter arc between two angles."""
    return abs(mapminuspitopi(a - b))


class CircleRange:
    """
    An immutable arc of the circle, traveled counterclockwise from source to target. A range whose source and
    target coincide is either a single point or the full circle, distinguished by its length.
    """

    def __init__(self, source: float, target: float, length: float):
        """Use the factory classmethods; this constructor trusts its arguments."""
        self._source = mapminuspitopi(source)
        self._target = mapminuspitopi(target)
        self._length = min(max(length, 0.), twopi)

    """Factories"""

    @classmethod
    def circle(cls):
        return cls(0., 0., twopi)

    @classmethod
    def bypoint(cls, t: float):
        return cls(t, t, 0.)

    @classmethod
    def byoffset(cls, source: float, offset: float):
        """The range sweeping counterclockwise from source through a non-negative angle offset."""
        if offset < 0:
            raise ValueError(f"CircleRange offset must be non-negative, got {offset}")
        if offset >= twopi:
            return cls(source, source, twopi)
        return cls(source, source + offset, offset)

    @classmethod
    def bycounterclockwisesegment(cls, source: float, target: float):
        """The range from source counterclockwise to target. Its length is never negative."""
        source = mapminuspitopi(source)
        target = mapminuspitopi(target)
        return cls(source, target, mapzerototwopi(target - source))

    @classmethod
    def byshortsegment(cls, a: float, b: float):
        """The shorter of the two arcs joining a and b, oriented counterclockwise."""
        if mapzerototwopi(b - a) <= np.pi:
            return cls.bycounterclockwisesegment(a, b)
        return cls.bycounterclockwisesegment(b, a)

    """Queries"""

    @property
    def source(self) -> float:
        return self._source

    @property
    def target(self) -> float:
        return self._target

    def length(self) -> float:
        return self._length

    def midpoint(self) -> float:
        return mapminuspitopi(self._source + self._length / 2)

    def iscircle(self) -> bool:
        return self._length >= twopi

    def ispoint(self) -> bool:
        return self._length == 0

    def _offset(self, t: float) -> float:
        """Counterclockwise angle from source to t."""
        return mapzerototwopi(t - self._source)

    def containspoint(self, t: float, atol: float = default_atol) -> bool:
        if self.iscircle():
            return True
        offset = self._offset(t)
        return offset <= self._length + atol or offset >= twopi - atol

    def containspointonboundary(self, t: float, atol: float = default_atol) -> bool:
        if self.iscircle():
            return False
        return circulardistance(t, self._source) < atol or circulardistance(t, self._target) < atol

    def isintersecting(self, other, atol: float = default_atol) -> bool:
        """
        :type other: CircleRange
        """
        if self.iscircle() or other.iscircle():
            return True
        return self.containspoint(other.source, atol) or other.containspoint(self._source, atol)

    def isintersectingonlyonboundary(self, other, atol: float = default_atol) -> bool:
        """Return whether two ranges touch without overlapping."""
        if self.iscircle() or other.iscircle():
            return False
        pieces = self.intersection(other, atol)
        return len(pieces) > 0 and all(piece.length() < atol for piece in pieces)

    def approximatelyequals(self, other, atol: float = default_atol) -> bool:
        return (
            circulardistance(self._source, other.source) < atol
            and circulardistance(self._target, other.target) < atol
            and abs(self._length - other.length()) < atol
        )

    def samplepoints(self, step: float) -> list:
        """Evenly spaced angles from source to target inclusive, no further apart than step."""
        n = max(1, int(np.ceil(self._length / step)))
        return [mapminuspitopi(self._source + self._length * i / n) for i in range(n + 1)]

    """Combinators"""

    def intersection(self, other, atol: float = default_atol) -> list:
        """
        Return the list of ranges (zero, one or two of them) lying in both self and other, ordered
        counterclockwise from self.source.

        :type other: CircleRange
        """
        if self.iscircle():
            return [other]
        if other.iscircle():
            return [self]
        o = self._offset(other.source)
        pieces = []
        for start in (o, o - twopi):
            lo = max(0., start)
            hi = min(self._length, start + other.length())
            if hi < lo - atol:
                continue
            source = self._source if lo == 0 else other.source
            if hi <= lo:
                pieces.append((lo, CircleRange.bypoint(source)))
                continue
            target = self._target if hi == self._length else other.target
            pieces.append((lo, CircleRange(source, target, hi - lo)))
        pieces.sort(key=lambda piece: piece[0])
        return [piece for _, piece in pieces]

    def merge(self, other, atol: float = default_atol):
        """
        Return the smallest range covering two intersecting ranges.

        :type other: CircleRange
        """
        if not self.isintersecting(other, atol):
            raise ValueError("Cannot merge non-intersecting CircleRanges")
        if self.iscircle() or other.iscircle():
            return CircleRange.circle()
        o = self._offset(other.source)
        if o >= twopi - atol or not self.containspoint(other.source, atol):
            o -= twopi      # other starts behind self
        lo = min(0., o)
        hi = max(self._length, o + other.length())
        if hi - lo >= twopi:
            return CircleRange.circle()
        source = self._source if lo == 0 else other.source
        target = self._target if hi == self._length else other.target
        return CircleRange(source, target, hi - lo)

    def split(self, t: float) -> list:
        """Split the range in two at the angle t, which must lie in the range."""
        if not self.containspoint(t):
            raise ValueError(f"Cannot split {self} at {t}, which lies outside it")
        d = self._offset(t)
        if d > self._length:
            d = 0. if d > twopi - default_atol else self._length
        return [CircleRange(self._source, t, d), CircleRange(t, self._target, self._length - d)]

    def __repr__(self) -> str:
        return f"CircleRange({self._source}, {self._target}, length={self._length})"
