# BSD 3-Clause License
#
# Copyright (c) 2022-2025, rd2
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

import math
import openstudio
from dataclasses import dataclass, field
from typing import Optional

from src.tbd.geo import CN, _dg, areSame
from src.tbd.records import Edge, Link


@dataclass
class Vertex:
    id   : str
    point: openstudio.Point3d


@dataclass
class Segment:
    """An undirected edge between 2 unique vertices."""
    id    : str
    v0    : Vertex
    v1    : Vertex
    length: float


@dataclass
class Wire:
    """A closed loop of vertices, e.g. a surface or subsurface perimeter."""
    id      : str
    vertices: list
    segments: list
    owner   : Optional[str] = None # surface, subsurface or shade id
    unhinged: bool = False
    n       : Optional[openstudio.Vector3d] = None

    def points(self) -> list:
        return [vx.point for vx in self.vertices]


@dataclass
class Face:
    id   : str
    outer: Wire
    holes: list = field(default_factory=list) # hinged subsurface wires
    n    : Optional[openstudio.Vector3d] = None

    def wires(self) -> list:
        return [self.outer] + list(self.holes)


class Topology:
    """Shared vertex/segment/wire/face graph. Vertices are unique within a
    distance tolerance, and segments are unique per (unordered) vertex pair:
    independently-specified polygons sharing a physical edge end up sharing
    the same Segment instance.
    """

    def __init__(self, tol=CN.TOL):
        self.tol       = tol
        self._vertices = []
        self._cells    = {} # spatial hash: (i, j, k) => vertices
        self._segments = {} # (vertex id, vertex id) => Segment
        self.wires     = []
        self.faces     = []

    def _cell(self, pt) -> tuple:
        return (math.floor(pt.x() / self.tol),
                math.floor(pt.y() / self.tol),
                math.floor(pt.z() / self.tol))

    def vertices(self) -> list:
        return self._vertices

    def segments(self) -> list:
        return list(self._segments.values())

    def vertex(self, pt=None) -> Vertex:
        """Returns the vertex matching an OpenStudio 3D point (within
        tolerance), creating a new one if none is found.
        """
        i, j, k = self._cell(pt)

        for di in (-1, 0, 1):
            for dj in (-1, 0, 1):
                for dk in (-1, 0, 1):
                    for vx in self._cells.get((i + di, j + dj, k + dk), []):
                        if areSame(vx.point, pt, self.tol): return vx

        vx = Vertex("v%d" % len(self._vertices),
                    openstudio.Point3d(pt.x(), pt.y(), pt.z()))

        self._vertices.append(vx)
        self._cells.setdefault((i, j, k), []).append(vx)

        return vx

    def segment(self, v0=None, v1=None) -> Segment:
        """Returns the segment joining 2 vertices, regardless of direction."""
        key = tuple(sorted((v0.id, v1.id)))

        if key not in self._segments:
            length = (v1.point - v0.point).length()
            self._segments[key] = Segment("e%d" % len(self._segments),
                                          v0, v1, length)

        return self._segments[key]

    def wire(self, pts=None, dg=None) -> Optional[Wire]:
        """Returns a new closed wire from +3 OpenStudio 3D points.

        Args:
            pts (list): OpenStudio 3D points.
            dg (Diagnostics): run log.

        Returns:
            Wire: new wire (None if invalid input).
        """
        mth = "tbd.wire"

        try:
            pts = list(pts)
        except TypeError:
            return _dg(dg).mismatch("points", pts, list, mth)

        if len(pts) < 3:
            _dg(dg).log(CN.DBG, "%d? need +3 points (%s)" % (len(pts), mth))
            return None

        vxs = []

        for pt in pts:
            vx = self.vertex(pt)
            if vxs and vx is vxs[-1]: continue

            vxs.append(vx)

        if len(vxs) > 1 and vxs[0] is vxs[-1]: vxs.pop()

        if len(vxs) < 3:
            return _dg(dg).invalid("points", mth, 1, CN.DBG, None)

        segs = []

        for i, vx in enumerate(vxs):
            segs.append(self.segment(vx, vxs[(i + 1) % len(vxs)]))

        w = Wire("w%d" % len(self.wires), vxs, segs)
        self.wires.append(w)

        return w

    def face(self, outer=None, holes=[]) -> Face:
        f = Face("f%d" % len(self.faces), outer, list(holes))
        self.faces.append(f)

        return f


def kids(topo=None, subs={}, dg=None) -> list:
    """Generates hole wires of subsurfaces (as a side effect, each subsurface
    holds a reference to its hole). Unhinged subsurfaces (e.g. tubular
    daylighting device domes) are not coplanar with their parent surface;
    their wires are flagged as such.

    Args:
        topo (Topology): shared topology.
        subs (dict): Subsurface records, keyed by id.
        dg (Diagnostics): run log.

    Returns:
        list: hole wires.
    """
    mth   = "tbd.kids"
    holes = []

    if not isinstance(topo, Topology):
        return _dg(dg).mismatch("topology", topo, Topology, mth, CN.DBG, holes)

    if not isinstance(subs, dict):
        return _dg(dg).mismatch("subsurfaces", subs, dict, mth, CN.DBG, holes)

    for id, sub in subs.items():
        w = topo.wire(sub.points, dg)
        if not w: continue

        w.owner    = id
        w.unhinged = sub.unhinged
        w.n        = sub.n
        sub.hole   = w
        holes.append(w)

    return holes


def dads(topo=None, pops={}, dg=None) -> dict:
    """Generates faces of (parent) surfaces or shades, with hinged subsurface
    wires as holes.

    Args:
        topo (Topology): shared topology.
        pops (dict): Surface (or Shade) records, keyed by id.
        dg (Diagnostics): run log.

    Returns:
        dict: hole wires (of all subsurfaces), keyed by subsurface id.
    """
    mth   = "tbd.dads"
    holes = {}
    dg    = _dg(dg)

    if not isinstance(topo, Topology):
        return dg.mismatch("topology", topo, Topology, mth, CN.DBG, holes)

    if not isinstance(pops, dict):
        return dg.mismatch("surfaces", pops, dict, mth, CN.DBG, holes)

    for id, props in pops.items():
        w = topo.wire(props.points, dg)

        if not w:
            dg.log(CN.DBG, "Unable to retrieve valid '%s' wire (%s)" % (id, mth))
            continue

        w.owner = id
        w.n     = props.n
        hols    = []

        if hasattr(props, "openings"): hols = kids(topo, props.openings(), dg)

        f   = topo.face(w, [hol for hol in hols if not hol.unhinged])
        f.n = props.n
        props.face = f

        for hol in hols: holes[hol.owner] = hol

    return holes


def _link(edges={}, seg=None, id="", wire=None):
    if seg.id not in edges:
        edges[seg.id] = Edge(id=seg.id,
                             v0=seg.v0.point,
                             v1=seg.v1.point,
                             length=seg.length)

    if id not in edges[seg.id].surfaces:
        edges[seg.id].surfaces[id] = Link(wire=wire)


def wires(holes={}, edges={}, dg=None) -> bool:
    """Populates edges with linked subsurface hole wires.

    Args:
        holes (dict): hole wires, keyed by subsurface id.
        edges (dict): Edge records, keyed by segment id.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input).
    """
    mth = "tbd.wires"

    if not isinstance(holes, dict):
        return _dg(dg).mismatch("holes", holes, dict, mth, CN.DBG, False)

    if not isinstance(edges, dict):
        return _dg(dg).mismatch("edges", edges, dict, mth, CN.DBG, False)

    for id, w in holes.items():
        for seg in w.segments: _link(edges, seg, id, w)

    return True


def faces(pops={}, edges={}, dg=None) -> bool:
    """Populates edges with linked surface (or shade) faces. A surface is
    linked to an edge via its outer wire, or one of its hinged hole wires.

    Args:
        pops (dict): Surface (or Shade) records, keyed by id.
        edges (dict): Edge records, keyed by segment id.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input).
    """
    mth = "tbd.faces"
    dg  = _dg(dg)

    if not isinstance(pops, dict):
        return dg.mismatch("surfaces", pops, dict, mth, CN.DBG, False)

    if not isinstance(edges, dict):
        return dg.mismatch("edges", edges, dict, mth, CN.DBG, False)

    for id, props in pops.items():
        if not props.face:
            dg.log(CN.DBG, "Missing '%s' face (%s)" % (id, mth))
            continue

        for w in props.face.wires():
            for seg in w.segments: _link(edges, seg, id, w)

    return True
