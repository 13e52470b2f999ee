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

from src.tbd.geo import CN, _dg, areSame, scalar
from src.tbd.records import Link

ZENITH = openstudio.Vector3d(0, 0, 1)
NORTH  = openstudio.Vector3d(0, 1, 0)
EAST   = openstudio.Vector3d(1, 0, 0)


def _farthest(wire=None, origin=None, terminal=None, plane=None):
    """Returns the vector (on the edge plane) from the edge origin to the
    farthest wire point, or None if all wire points are aligned with the edge.
    """
    far = None
    mag = 0

    for pt in wire.points():
        if areSame(pt, origin):   continue
        if areSame(pt, terminal): continue

        v = plane.project(pt) - origin
        if v.length() < CN.TOL: continue
        if v.length() < mag:    continue

        far = v
        mag = v.length()

    return far


def polarize(edges={}, normals={}, dg=None) -> bool:
    """Sets the polar position of each linked surface (in fact, linked surface
    wire) around each edge, with respect to a reference vector perpendicular
    to the edge, +clockwise as one is looking in the opposite direction of the
    edge vector. A vertical edge has a reference vector pointing North, so
    surfaces eastward of the edge are (0, PI], while surfaces westward of the
    edge are (PI, 2PI). Horizontal edges instead point to the zenith. Links
    are then sorted by ascending angle.

    Args:
        edges (dict): Edge records, keyed by id.
        normals (dict): outward normals (openstudio.Vector3d) of surfaces,
            subsurfaces & shades, keyed by id.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input).
    """
    mth = "tbd.polarize"
    dg  = _dg(dg)

    if not isinstance(edges, dict):
        return dg.mismatch("edges", edges, dict, mth, CN.DBG, False)

    if not isinstance(normals, dict):
        return dg.mismatch("normals", normals, dict, mth, CN.DBG, False)

    for edge in edges.values():
        origin     = edge.v0
        terminal   = edge.v1
        dx         = abs(origin.x() - terminal.x())
        dy         = abs(origin.y() - terminal.y())
        dz         = abs(origin.z() - terminal.z())
        horizontal = dz < CN.TOL
        vertical   = dx < CN.TOL and dy < CN.TOL
        edge_V     = terminal - origin
        if edge_V.length() < CN.TOL: continue

        plane = openstudio.Plane(origin, edge_V)

        if vertical:
            ref = NORTH
        elif horizontal:
            ref = ZENITH
        else:
            ref = plane.project(origin + ZENITH) - origin

        for id, link in edge.surfaces.items():
            if link.wire is None:
                dg.log(CN.DBG, "Missing '%s' wire (%s)" % (id, mth))
                continue

            far   = _farthest(link.wire, origin, terminal, plane)
            angle = 0

            if far is not None:
                angle = openstudio.getAngle(ref, far)

                if vertical:
                    adjust = EAST.dot(far) < -CN.TOL
                else:
                    dN = NORTH.dot(far)

                    if abs(dN) < CN.TOL or abs(abs(dN) - 1) < CN.TOL:
                        adjust = EAST.dot(far) < -CN.TOL
                    else:
                        adjust = dN < -CN.TOL

                if adjust: angle = 2 * math.pi - angle
                if abs(angle - 2 * math.pi) < CN.TOL: angle = 0

                far = scalar(far, 1 / far.length())
            else:
                far = openstudio.Vector3d()

            link.angle  = angle
            link.polar  = far
            link.normal = normals.get(id)

        edge.horizontal = horizontal
        edge.vertical   = vertical
        edge.surfaces   = dict(sorted(edge.surfaces.items(),
                                      key=lambda kv: kv[1].angle or 0))

    return True


def _dihedral(s1=None, s2=None, mth="", dg=None):
    """Returns the pair of dot products (n1.p2, p1.n2) of 2 links around an
    edge, or None if invalid or flat (i.e. neither concave nor convex).
    """
    dg = _dg(dg)

    for i, s in enumerate([s1, s2]):
        id = "s%d" % (i + 1)

        if not isinstance(s, Link):
            return dg.mismatch(id, s, Link, mth, CN.DBG, None)

        for attr in ("angle", "normal", "polar"):
            if getattr(s, attr) is None:
                return dg.invalid("%s %s" % (id, attr), mth, i + 1, CN.DBG, None)

    angle = abs(s1.angle - s2.angle)

    if angle < CN.TOL: return None
    if abs(2 * math.pi - angle) <= CN.TOL: return None
    if 3 * math.pi / 4 < angle < 5 * math.pi / 4: return None

    return s1.normal.dot(s2.polar), s1.polar.dot(s2.normal)


def concave(s1=None, s2=None, dg=None) -> bool:
    """Validates whether 2 edge-linked surfaces form a concave angle, as seen
    from outside.

    Args:
        s1 (Link): 1st surface link.
        s2 (Link): 2nd surface link.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether angle between surfaces is concave.
        False: If invalid input (see logs).
    """
    dots = _dihedral(s1, s2, "tbd.concave", dg)
    if dots is None: return False

    return dots[0] > 0 and dots[1] > 0


def convex(s1=None, s2=None, dg=None) -> bool:
    """Validates whether 2 edge-linked surfaces form a convex angle, as seen
    from outside.

    Args:
        s1 (Link): 1st surface link.
        s2 (Link): 2nd surface link.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether angle between surfaces is convex.
        False: If invalid input (see logs).
    """
    dots = _dihedral(s1, s2, "tbd.convex", dg)
    if dots is None: return False

    return dots[0] < 0 and dots[1] < 0
