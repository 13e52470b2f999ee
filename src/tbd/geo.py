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
from oslg import oslg
from dataclasses import dataclass
from src.tbd.diagnostics import Diagnostics

@dataclass(frozen=True)
class _CN:
    DBG  = oslg.CN.DEBUG
    INF  = oslg.CN.INFO
    WRN  = oslg.CN.WARN
    ERR  = oslg.CN.ERROR
    FTL  = oslg.CN.FATAL
    TOL  = 0.01      # default distance tolerance (m)
    TOL2 = TOL * TOL # default area tolerance (m2)
    MINW = 0.0254    # min frame width for offsets (m)
CN = _CN()


def _dg(dg=None) -> Diagnostics:
    """Returns a valid Diagnostics instance (a throwaway one if None)."""
    if isinstance(dg, Diagnostics): return dg

    return Diagnostics()


def p3Dv(pts=None) -> openstudio.Point3dVector:
    """Returns OpenStudio 3D points as an OpenStudio point vector.

    Args:
        pts: OpenStudio 3D points (list, vector or planar surface).

    Returns:
        openstudio.Point3dVector: Vector of 3D points (empty if invalid).
    """
    cl = openstudio.Point3d
    v  = openstudio.Point3dVector()

    if isinstance(pts, cl):
        v.append(pts)
        return v
    elif isinstance(pts, openstudio.Point3dVector):
        return pts
    elif isinstance(pts, openstudio.model.PlanarSurface):
        pts = list(pts.vertices())

    try:
        pts = list(pts)
    except TypeError:
        return v

    for pt in pts:
        if not isinstance(pt, cl): return openstudio.Point3dVector()

    for pt in pts:
        v.append(openstudio.Point3d(pt.x(), pt.y(), pt.z()))

    return v


def scalar(v=None, mag=0) -> openstudio.Vector3d:
    """Returns an OpenStudio vector scaled by a magnitude."""
    if not isinstance(v, openstudio.Vector3d): return openstudio.Vector3d()

    try:
        mag = float(mag)
    except (TypeError, ValueError):
        return openstudio.Vector3d()

    return openstudio.Vector3d(mag * v.x(), mag * v.y(), mag * v.z())


def areSame(p1=None, p2=None, tol=CN.TOL) -> bool:
    """Returns True if 2 OpenStudio 3D points are nearly equal."""
    cl = openstudio.Point3d

    if not isinstance(p1, cl): return False
    if not isinstance(p2, cl): return False

    if abs(p1.x() - p2.x()) > tol: return False
    if abs(p1.y() - p2.y()) > tol: return False
    if abs(p1.z() - p2.z()) > tol: return False

    return True


def transforms(group=None, dg=None) -> dict:
    """Returns OpenStudio site/space transformation & rotation angle.

    Args:
        group (openstudio.model.PlanarSurfaceGroup):
            A space or shading surface group.
        dg (Diagnostics): run log.

    Returns:
        dict:
        - t (openstudio.Transformation): site transformation (None if invalid)
        - r (float): rotation angle, in degrees (None if invalid)
    """
    mth = "tbd.transforms"
    res = dict(t=None, r=None)
    cl  = openstudio.model.PlanarSurfaceGroup

    if not isinstance(group, cl):
        return _dg(dg).mismatch("group", group, cl, mth, CN.DBG, res)

    mdl = group.model()

    res["t"] = group.siteTransformation()
    res["r"] = group.directionofRelativeNorth() + mdl.getBuilding().northAxis()

    return res


def trueNormal(s=None, r=0, dg=None):
    """Returns the site (or true) outward normal vector of a planar surface.

    Args:
        s (openstudio.model.PlanarSurface): A surface.
        r (float): group/site rotation angle (degrees).
        dg (Diagnostics): run log.

    Returns:
        openstudio.Vector3d: True normal vector (None if invalid inputs).
    """
    mth = "tbd.trueNormal"
    cl  = openstudio.model.PlanarSurface

    if not isinstance(s, cl):
        return _dg(dg).mismatch("surface", s, cl, mth)

    try:
        r = float(r)
    except (TypeError, ValueError):
        return _dg(dg).mismatch("rotation", r, float, mth)

    r = -r * math.pi / 180.0
    n = s.outwardNormal()

    vx = n.x() * math.cos(r) - n.y() * math.sin(r)
    vy = n.x() * math.sin(r) + n.y() * math.cos(r)

    return openstudio.Vector3d(vx, vy, n.z())


def validate(s=None, dg=None) -> bool:
    """Validates whether an OpenStudio planar surface is safe to process:
    at least 3 vertices, and no vertex-to-vertex segment shorter than TOL.

    Args:
        s (openstudio.model.PlanarSurface): A surface.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether surface is valid (see logs if False).
    """
    mth = "tbd.validate"
    cl  = openstudio.model.PlanarSurface
    dg  = _dg(dg)

    if not isinstance(s, cl):
        return dg.mismatch("surface", s, cl, mth, CN.DBG, False)

    id  = s.nameString()
    vtx = list(s.vertices())

    if len(vtx) < 3:
        dg.log(CN.ERR, "%s %d vertices? need +3 (%s)" % (id, len(vtx), mth))
        return False

    for i, p1 in enumerate(vtx):
        p2 = vtx[(i + 1) % len(vtx)]

        if (p2 - p1).length() < CN.TOL:
            dg.log(CN.ERR, "%s: segment < %.2fm (%s)" % (id, CN.TOL, mth))
            return False

    return True


def _version() -> int:
    """Returns the OpenStudio SDK version as an integer, eg 321 for v3.2.1."""
    vs = openstudio.openStudioVersion().split("-")[0]

    return int("".join(c for c in vs if c.isdigit()))


def _buffer(pts=None, w=0):
    """Offsets flat points with OpenStudio's buffer (SDK v3.4.0+). Returns
    None if unsuccessful.
    """
    t   = openstudio.Transformation.alignFace(pts)
    flt = list(t.inverse() * pts)
    if not _isClockwise(flt): flt.reverse()

    buf = openstudio.buffer(p3Dv(flt), w, CN.TOL)
    if not buf: return None

    vec = []

    for pt in buf.get():
        if vec and areSame(pt, vec[-1]): continue

        vec.append(pt)

    if len(vec) > 1 and areSame(vec[0], vec[-1]): vec.pop()
    if len(vec) < 3: return None
    if _isClockwise(vec): vec.reverse()

    return p3Dv(list(t * p3Dv(vec)))


def offset(p1=None, w=0, dg=None, v=None) -> openstudio.Point3dVector:
    """Generates offset vertices (by width) for a 3- or 4-sided, convex polygon.
    From OpenStudio SDK v3.4.0, offsets rely on OpenStudio's buffer. Earlier
    versions fall back to a brute force approach: each vertex is pushed out
    perpendicularly from its 'next' segment by 'w', then slid along that
    segment by 'w x tan(a/2)', 'a' being the angle between both (outward)
    segment perpendiculars. If width is negative, vertices are instead
    contracted inwards.

    Args:
        p1 (openstudio.Point3dVector): 3 or 4 OpenStudio 3D points.
        w (float): Offset width (absolute min: 0.0254m).
        dg (Diagnostics): run log.
        v (int): OpenStudio SDK version, eg 321 for v3.2.1 (optional).

    Returns:
        openstudio.Point3dVector: Offset points (unaltered if invalid inputs).
    """
    mth = "tbd.offset"
    dg  = _dg(dg)
    pts = p3Dv(p1)

    if len(pts) not in (3, 4): return dg.invalid("points", mth, 1, CN.DBG, pts)

    try:
        w = float(w)
    except (TypeError, ValueError):
        return dg.mismatch("width", w, float, mth, CN.DBG, pts)

    if v is None: v = _version()

    try:
        v = int(v)
    except (TypeError, ValueError):
        dg.mismatch("version", v, int, mth)
        v = _version()

    if abs(w) < CN.MINW: return pts

    if v >= 340:
        vec = _buffer(pts, w)
        if vec is None: return dg.invalid("buffer", mth, 0, CN.DBG, pts)

        return vec

    vec = openstudio.Point3dVector()
    n   = len(pts)

    for i, p in enumerate(pts):
        nxt = pts[(i + 1) % n]
        prv = pts[(i - 1) % n]
        f_n = p - nxt # from next point
        f_p = p - prv # from previous point

        # Project extended points onto planes perpendicular to each segment.
        pl_f_n = openstudio.Plane(p, f_n)
        pl_f_p = openstudio.Plane(p, f_p)
        n_p_n  = pl_f_n.project(p + f_p) - p
        n_n_p  = pl_f_p.project(p + f_n) - p

        if n_p_n.length() < CN.TOL or n_n_p.length() < CN.TOL:
            return dg.invalid("collinear points", mth, 1, CN.DBG, pts)

        a = openstudio.getAngle(n_p_n, n_n_p)
        f_n.normalize()
        n_p_n.normalize()

        pt = p + scalar(n_p_n, w)
        pt = pt + scalar(f_n, w * math.tan(a / 2))
        vec.append(openstudio.Point3d(pt.x(), pt.y(), pt.z()))

    return vec


def _isClockwise(pts=[]) -> bool:
    """Returns True if flat (XY-plane) points are sequenced clockwise."""
    area = 0

    for i, p in enumerate(pts):
        nxt   = pts[(i + 1) % len(pts)]
        area += p.x() * nxt.y() - nxt.x() * p.y()

    return area < 0


def _flat(p1=None, p2=None, dg=None):
    """Aligns 2 polygons onto the XY-plane of the first one, both sequenced
    clockwise (as expected by OpenStudio's boolean polygon operations).

    Returns:
        tuple: Both aligned point lists (None if invalid or non-coplanar).
    """
    mth = "tbd.flat"
    dg  = _dg(dg)
    a1  = p3Dv(p1)
    a2  = p3Dv(p2)

    if len(a1) < 3: return dg.empty("points 1", mth, CN.DBG, None)
    if len(a2) < 3: return dg.empty("points 2", mth, CN.DBG, None)

    t  = openstudio.Transformation.alignFace(a1)
    a1 = list(t.inverse() * a1)
    a2 = list(t.inverse() * a2)

    for pt in a1 + a2:
        if abs(pt.z()) > CN.TOL:
            return dg.invalid("coplanar polygons", mth, 2, CN.DBG, None)

    if not _isClockwise(a1): a1.reverse()
    if not _isClockwise(a2): a2.reverse()

    return p3Dv(a1), p3Dv(a2)


def fits(p1=None, p2=None, dg=None) -> bool:
    """Determines whether a 1st OpenStudio polygon fits within a 2nd polygon,
    i.e. their (coplanar) union is the 2nd polygon.

    Args:
        p1 (openstudio.Point3dVector): 1st vector of 3D points.
        p2 (openstudio.Point3dVector): 2nd vector of 3D points.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether 1st polygon fits within the 2nd polygon.
        False: If invalid input (see logs).
    """
    flat = _flat(p1, p2, dg)
    if not flat: return False

    a1, a2 = flat
    area2  = openstudio.getArea(a2)
    if not area2: return False

    union = openstudio.join(a1, a2, CN.TOL2)
    if not union: return False

    area = openstudio.getArea(union.get())
    if not area: return False

    return abs(area.get() - area2.get()) < CN.TOL


def overlaps(p1=None, p2=None, dg=None) -> bool:
    """Determines whether 2 coplanar OpenStudio polygons share any area.
    Polygons simply sharing an edge (or a vertex) do not overlap.

    Args:
        p1 (openstudio.Point3dVector): 1st vector of 3D points.
        p2 (openstudio.Point3dVector): 2nd vector of 3D points.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether polygons overlap.
        False: If invalid input (see logs).
    """
    flat = _flat(p1, p2, dg)
    if not flat: return False

    a1, a2 = flat
    area1  = openstudio.getArea(a1)
    area2  = openstudio.getArea(a2)
    if not area1 or not area2: return False

    union = openstudio.join(a1, a2, CN.TOL2)
    if not union: return False

    area = openstudio.getArea(union.get())
    if not area: return False

    return area1.get() + area2.get() - area.get() > CN.TOL


def matches(e1=None, e2=None, tol=CN.TOL, dg=None) -> bool:
    """Determines whether 2 edges share nearly identical end vertices,
    regardless of direction.

    Args:
        e1 (dict): 1st edge, "v0" & "v1" OpenStudio 3D points.
        e2 (dict): 2nd edge, "v0" & "v1" OpenStudio 3D points.
        tol (float): distance tolerance (m).
        dg (Diagnostics): run log.

    Returns:
        bool: Whether edges match.
        False: If invalid input (see logs).
    """
    mth = "tbd.matches"
    cl  = openstudio.Point3d
    dg  = _dg(dg)

    try:
        tol = float(tol)
    except (TypeError, ValueError):
        return dg.mismatch("tol", tol, float, mth, CN.DBG, False)

    for i, e in enumerate([e1, e2]):
        id = "e%d" % (i + 1)

        if not isinstance(e, dict):
            return dg.mismatch(id, e, dict, mth, CN.DBG, False)

        for k in ("v0", "v1"):
            if k not in e: return dg.hashkey(id, e, k, mth, CN.DBG, False)

            if not isinstance(e[k], cl):
                return dg.mismatch("%s %s" % (id, k), e[k], cl, mth, CN.DBG, False)

        if (e["v1"] - e["v0"]).length() < CN.TOL:
            return dg.zero(id, mth, CN.DBG, False)

    if areSame(e1["v0"], e2["v0"], tol) and areSame(e1["v1"], e2["v1"], tol):
        return True
    if areSame(e1["v0"], e2["v1"], tol) and areSame(e1["v1"], e2["v0"], tol):
        return True

    return False
